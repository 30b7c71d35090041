# tenant_cms/deployment/ssl.py
from __future__ import annotations

import os
from datetime import timedelta
from typing import List

from flask import current_app

from tenant_cms.extensions import db
from tenant_cms.models.base import utc_now

from .shell import (
    CERTBOT_RENEW_TIMEOUT,
    CERTBOT_TIMEOUT,
    DeploymentResult,
    is_production,
    run_command,
    validate_domain,
    validate_email,
)

LETSENCRYPT_LIVE_DIR = "/etc/letsencrypt/live"
CERTIFICATE_LIFETIME = timedelta(days=90)
SUCCESS_MARKERS = (
    "Successfully received certificate",
    "Successfully deployed certificate",
    "Congratulations",
    "Certificate not yet due for renewal",
)


def certbot_args(binary: str, domains: List[str], email: str) -> List[str]:
    args = [binary, "--nginx"]
    for domain in domains:
        args += ["-d", domain]
    return args + ["--non-interactive", "--agree-tos", "--email", email, "--redirect"]


def certbot_succeeded(returncode: int, output: str) -> bool:
    return returncode == 0 or any(marker in output for marker in SUCCESS_MARKERS)


class SSLService:
    """Let's Encrypt certificates through `certbot --nginx`; skipped outside production."""

    def __init__(self):
        self.binary = current_app.config.get("CERTBOT_BINARY", "certbot")
        self.email = current_app.config.get("SSL_EMAIL")

    def generate_certificate(self, tenant, domain: str = None) -> DeploymentResult:
        raw_domain = domain or tenant.domain
        if not raw_domain:
            return DeploymentResult(False, "No domain configured for tenant")

        try:
            domain = validate_domain(raw_domain)
            email = validate_email(self.email)
        except ValueError as exc:
            current_app.logger.error(f"SSL request rejected for tenant {tenant.id}: {exc}")
            return DeploymentResult(False, str(exc))

        if not is_production():
            current_app.logger.info(f"SSL generation skipped (dev mode) for tenant {tenant.id}: {domain}")
            return DeploymentResult(
                True,
                "SSL generation skipped in development mode",
                details={"mode": "development", "command": certbot_args(self.binary, [domain, f"www.{domain}"], email)},
            )

        result = run_command(certbot_args(self.binary, [domain, f"www.{domain}"], email), CERTBOT_TIMEOUT)
        if not certbot_succeeded(result.returncode, result.output):
            # www.<domain> often has no DNS record; retry for the bare domain
            current_app.logger.warning(f"certbot failed with www.{domain}, retrying without it")
            result = run_command(certbot_args(self.binary, [domain], email), CERTBOT_TIMEOUT)

        if not certbot_succeeded(result.returncode, result.output):
            tenant.ssl_status = "failed"
            db.session.commit()
            current_app.logger.error(f"SSL certificate generation failed for {domain}: {result.output}")
            return DeploymentResult(False, "Certbot command failed", output=result.output)

        tenant.ssl_status = "active"
        tenant.ssl_expires_at = utc_now() + CERTIFICATE_LIFETIME
        db.session.commit()
        current_app.logger.info(f"SSL certificate generated for {domain} (tenant {tenant.id})")
        return DeploymentResult(True, f"SSL certificate generated for {domain}", output=result.output)

    @staticmethod
    def certificate_exists(domain: str) -> bool:
        try:
            domain = validate_domain(domain)
        except ValueError:
            return False
        return os.path.exists(os.path.join(LETSENCRYPT_LIVE_DIR, domain, "fullchain.pem"))

    def renew_all(self) -> DeploymentResult:
        if not is_production():
            return DeploymentResult(True, "SSL renewal skipped in development mode")

        result = run_command([self.binary, "renew"], CERTBOT_RENEW_TIMEOUT)
        current_app.logger.info(f"SSL renewal finished ({result.returncode}): {result.output}")
        return DeploymentResult(result.ok, "Renewal completed" if result.ok else "Renewal failed", output=result.output)
