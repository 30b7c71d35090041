# tenant_cms/deployment/tenant_deployment.py
from __future__ import annotations

from typing import Any, Dict

from flask import current_app

from tenant_cms.models.base import utc_now
from tenant_cms.normalizers.section import isoformat
from tenant_cms.utils.transaction import transactional

from .nginx_config import NginxConfigService
from .shell import DeploymentResult, validate_domain
from .ssl import SSLService


class TenantDeploymentService:
    """Per-tenant nginx server blocks for every domain the tenant answers on."""

    def __init__(self, nginx: NginxConfigService = None):
        self.nginx = nginx or NginxConfigService()

    @staticmethod
    def get_deployment_path(tenant) -> str:
        base = current_app.config.get("DEPLOYMENT_BASE_PATH", "/var/www/tenants").rstrip("/")
        return f"{base}/{tenant.slug}"

    def deploy(self, tenant) -> DeploymentResult:
        domains = tenant.all_domains()
        if not domains:
            return DeploymentResult(False, "No domain configured for tenant")

        path = self.get_deployment_path(tenant)
        results = {domain: self.nginx.generate_config(tenant, domain, path) for domain in domains}
        failed = [domain for domain, result in results.items() if not result.success]

        with transactional():
            if failed:
                tenant.deployment_status = "failed"
                tenant.nginx_status = "failed"
            else:
                tenant.deployment_status = "deployed"
                tenant.nginx_status = "configured"
                tenant.deployed_at = utc_now()
                primary = results.get(tenant.domain)
                tenant.nginx_config_path = primary.path if primary else None

        details = {"nginx_configs": {domain: result.to_dict() for domain, result in results.items()},
                   "deployment_path": path}
        if failed:
            current_app.logger.error(f"Deployment failed for tenant {tenant.id} on: {', '.join(failed)}")
            return DeploymentResult(False, f"Deployment failed for: {', '.join(failed)}", details=details)

        current_app.logger.info(f"Tenant {tenant.id} deployed to {path}")
        return DeploymentResult(True, "Tenant deployed successfully", path=path, details=details)

    def add_domain(self, tenant, domain: str) -> DeploymentResult:
        try:
            domain = validate_domain(domain)
        except ValueError as exc:
            return DeploymentResult(False, str(exc))

        if domain != tenant.domain and domain not in (tenant.additional_domains or []):
            with transactional():
                tenant.additional_domains = list(tenant.additional_domains or []) + [domain]

        result = self.nginx.generate_config(tenant, domain, self.get_deployment_path(tenant))
        return DeploymentResult(
            result.success,
            f"Domain {domain} added" if result.success else result.message,
            output=result.output,
            path=result.path,
        )

    def remove_domain(self, tenant, domain: str) -> DeploymentResult:
        try:
            domain = validate_domain(domain)
        except ValueError as exc:
            return DeploymentResult(False, str(exc))

        if domain == tenant.domain:
            return DeploymentResult(False, "Cannot remove primary domain")

        with transactional():
            tenant.additional_domains = [d for d in (tenant.additional_domains or []) if d != domain]

        result = self.nginx.remove_config(domain)
        return DeploymentResult(
            result.success,
            f"Domain {domain} removed" if result.success else result.message,
            output=result.output,
        )

    def undeploy(self, tenant) -> DeploymentResult:
        results = [self.nginx.remove_config(domain) for domain in tenant.all_domains()]
        with transactional():
            tenant.deployment_status = "removed"
            tenant.nginx_status = "pending"
            tenant.deployed_at = None
        failed = [result.message for result in results if not result.success]
        if failed:
            return DeploymentResult(False, "; ".join(failed))
        return DeploymentResult(True, "Tenant undeployed")

    def get_status(self, tenant) -> Dict[str, Any]:
        template = tenant.active_template
        return {
            "status": tenant.deployment_status or "pending",
            "deployed_at": isoformat(tenant.deployed_at),
            "nginx_status": tenant.nginx_status,
            "ssl_status": tenant.ssl_status,
            "ssl_expires_at": isoformat(tenant.ssl_expires_at),
            "certificate_installed": bool(tenant.domain) and SSLService.certificate_exists(tenant.domain),
            "template": {"id": template.id, "name": template.name, "version": template.version} if template else None,
            "domains": tenant.all_domains(),
            "deployment_path": self.get_deployment_path(tenant),
            "configs": self.nginx.tenant_configs(tenant),
        }
