# tenant_cms/application/tenants.py
from __future__ import annotations

import copy
import socket
from typing import Any, Dict, List, Optional

import requests
from flask import current_app
from slugify import slugify
from sqlalchemy import or_

from tenant_cms.deployment.shell import clean_domain, is_valid_domain, strip_port
from tenant_cms.domain.invariants.exceptions import NotFoundError, ValidationError
from tenant_cms.extensions import db
from tenant_cms.models import (
    AuditLog, ContactSubmission, Faq, Media, Menu, Page, PageVersion, Section, Service, ServiceCategory,
    Setting, TeamMember, Template, Tenant, Testimonial, User, Webhook,
)
from tenant_cms.utils import media as storage
from tenant_cms.utils.audit import log_action
from tenant_cms.utils.pagination import DEFAULT_PER_PAGE, clamp_per_page
from tenant_cms.utils.slug import unique_slug
from tenant_cms.utils.transaction import transactional

from .base import coerce_bool
from .tenant_content import TenantContentCloner

FIELDS = (
    "name", "slug", "is_active", "logo", "favicon", "contact_email", "contact_phone",
    "domain", "additional_domains", "frontend_url", "active_template_id", "settings",
    "enable_cms", "features",
)

# Children before parents
TENANT_OWNED_MODELS = (
    Section, PageVersion, Page, Service, ServiceCategory, TeamMember, Testimonial,
    Faq, Menu, Setting, Media, Webhook, ContactSubmission, User, AuditLog,
)

REACHABILITY_TIMEOUT = 10


class TenantService:
    """Tenant administration; only super admins reach these operations."""

    def __init__(self, *, actor_id: Optional[str] = None):
        self.actor_id = actor_id

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_paginated(self, per_page: int = DEFAULT_PER_PAGE, filters: Optional[Dict[str, Any]] = None, page: int = 1):
        filters = filters or {}
        query = Tenant.query
        search = (filters.get("search") or "").strip()
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(Tenant.name.ilike(pattern), Tenant.domain.ilike(pattern)))
        if filters.get("is_active") not in (None, ""):
            query = query.filter(Tenant.is_active.is_(coerce_bool(filters["is_active"])))
        return query.order_by(Tenant.name.asc()).paginate(
            page=max(int(page or 1), 1), per_page=clamp_per_page(per_page), error_out=False
        )

    def get_all(self) -> List[Tenant]:
        return Tenant.query.order_by(Tenant.name.asc()).all()

    def get_by_id(self, tenant_id: str) -> Optional[Tenant]:
        return db.session.get(Tenant, tenant_id) if tenant_id else None

    def get_or_fail(self, tenant_id: str) -> Tenant:
        tenant = self.get_by_id(tenant_id)
        if tenant is None:
            raise NotFoundError("Tenant not found")
        return tenant

    def get_by_slug(self, slug: str) -> Optional[Tenant]:
        return Tenant.query.filter_by(slug=slug, is_active=True).first()

    @staticmethod
    def get_by_domain(domain: str) -> Optional[Tenant]:
        """Active tenant answering on `domain`, primary or additional."""
        domain = strip_port(clean_domain(domain))
        if not domain:
            return None
        tenant = Tenant.query.filter_by(domain=domain, is_active=True).first()
        if tenant is not None:
            return tenant
        for candidate in Tenant.query.filter(Tenant.is_active.is_(True)).all():
            if domain in (candidate.additional_domains or []):
                return candidate
        return None

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    @staticmethod
    def slug_taken(slug: str, ignore_id: Optional[str] = None) -> bool:
        query = Tenant.query.filter(Tenant.slug == slug)
        if ignore_id:
            query = query.filter(Tenant.id != ignore_id)
        return db.session.query(query.exists()).scalar()

    def _prepare(self, data: Dict[str, Any], tenant: Optional[Tenant] = None) -> Dict[str, Any]:
        errors = {}
        creating = tenant is None

        if (creating or "name" in data) and not (data.get("name") or "").strip():
            errors["name"] = "The name field is required."

        if data.get("slug"):
            data["slug"] = slugify(data["slug"])
            if self.slug_taken(data["slug"], tenant.id if tenant else None):
                errors["slug"] = "The slug has already been taken."
        elif creating and data.get("name"):
            data["slug"] = unique_slug(data["name"], self.slug_taken)

        if data.get("domain"):
            domain = clean_domain(data["domain"])
            if not is_valid_domain(domain):
                errors["domain"] = "The domain must be a valid hostname."
            else:
                taken = Tenant.query.filter(Tenant.domain == domain)
                if tenant is not None:
                    taken = taken.filter(Tenant.id != tenant.id)
                if taken.first() is not None:
                    errors["domain"] = "The domain has already been taken."
                data["domain"] = domain
        elif "domain" in data:
            data["domain"] = None

        if "additional_domains" in data:
            domains = [clean_domain(d) for d in (data["additional_domains"] or [])]
            invalid = [d for d in domains if not is_valid_domain(d)]
            if invalid:
                errors["additional_domains"] = f"Invalid domains: {', '.join(invalid)}"
            data["additional_domains"] = list(dict.fromkeys(domains))

        if data.get("active_template_id") and db.session.get(Template, data["active_template_id"]) is None:
            errors["active_template_id"] = "The selected template is invalid."

        if errors:
            raise ValidationError(errors)
        return data

    def _log(self, action: str, tenant: Tenant, payload: Dict[str, Any]) -> None:
        log_action(
            tenant_id=tenant.id,
            actor_id=self.actor_id,
            action=f"tenant.{action}",
            entity_type="tenant",
            entity_id=tenant.id,
            payload=payload,
        )

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create(self, data: Dict[str, Any], clone_content: bool = False, skip_existing: bool = True) -> Tenant:
        data = self._prepare(dict(data or {}))

        tenant = Tenant()
        tenant.is_active = True
        tenant.enable_cms = True
        tenant.additional_domains = []
        tenant.features = {}
        tenant.settings = {}
        for field in FIELDS:
            if field in data and data[field] is not None:
                setattr(tenant, field, copy.deepcopy(data[field]))
        if tenant.domain and not tenant.frontend_url:
            tenant.frontend_url = f"https://{tenant.domain}"
            tenant.deployment_status = "pending_dns"

        with transactional():
            db.session.add(tenant)
            db.session.flush()
            self._log("create", tenant, {"slug": tenant.slug, "domain": tenant.domain})

        current_app.logger.info(f"Tenant {tenant.id} ({tenant.slug}) created")
        if clone_content:
            self.clone_content(tenant, skip_existing=skip_existing)
        return tenant

    def update(self, tenant: Tenant, data: Dict[str, Any]) -> Tenant:
        data = self._prepare(dict(data or {}), tenant)
        old_domain = tenant.domain

        with transactional():
            changed = []
            for field in FIELDS:
                if field in data and getattr(tenant, field) != data[field]:
                    setattr(tenant, field, copy.deepcopy(data[field]))
                    changed.append(field)
            if tenant.domain != old_domain:
                tenant.frontend_url = f"https://{tenant.domain}" if tenant.domain else None
                tenant.deployment_status = "pending_dns" if tenant.domain else "pending"
            if changed:
                self._log("update", tenant, {"fields": changed})
        return tenant

    def delete(self, tenant: Tenant) -> bool:
        """Removes the tenant and every row it owns, plus its uploaded files."""
        media_paths = [m.path for m in Media.query.filter_by(tenant_id=tenant.id).all() if m.path]
        tenant_id = tenant.id

        with transactional():
            for model in TENANT_OWNED_MODELS:
                # Bulk delete: bypasses the ORM-level audit log immutability hook
                model.query.filter(model.tenant_id == tenant_id).delete(synchronize_session=False)
            db.session.delete(tenant)

        for path in media_paths:
            storage.delete_file(path)
        current_app.logger.info(f"Tenant {tenant_id} deleted")
        return True

    def toggle_active(self, tenant: Tenant) -> Tenant:
        with transactional():
            tenant.is_active = not tenant.is_active
            self._log("update", tenant, {"fields": ["is_active"]})
        return tenant

    def assign_template(self, tenant: Tenant, template_id: str) -> Tenant:
        template = db.session.get(Template, template_id) if template_id else None
        if template is None:
            raise NotFoundError("Template not found")
        with transactional():
            tenant.active_template_id = template.id
            self._log("update", tenant, {"fields": ["active_template_id"]})
        return tenant

    def get_statistics(self, tenant: Tenant) -> Dict[str, int]:
        counts = {
            "pages": Page, "sections": Section, "services": Service, "faqs": Faq,
            "testimonials": Testimonial, "team_members": TeamMember, "media": Media, "users": User,
            "contact_submissions": ContactSubmission,
        }
        return {name: model.query.filter_by(tenant_id=tenant.id).count() for name, model in counts.items()}

    def clone_content(self, tenant: Tenant, skip_existing: bool = True,
                      source_tenant_id: Optional[str] = None, brand: Optional[str] = None) -> Dict[str, int]:
        cloner = TenantContentCloner(source_tenant_id=source_tenant_id, brand=brand)
        return cloner.clone(tenant, skip_existing=skip_existing)

    def duplicate(self, source: Tenant, new_name: str, domain: Optional[str] = None) -> Tenant:
        """New inactive tenant carrying a verbatim copy of `source`'s content."""
        tenant = self.create({
            "name": new_name,
            "domain": domain,
            "logo": source.logo,
            "favicon": source.favicon,
            "active_template_id": source.active_template_id,
            "features": copy.deepcopy(source.features or {}),
            "is_active": False,
        })
        self.clone_content(tenant, skip_existing=False, source_tenant_id=source.id, brand="")
        return tenant

    # ------------------------------------------------------------------
    # DNS
    # ------------------------------------------------------------------

    @staticmethod
    def _reachable(url: str) -> bool:
        try:
            response = requests.head(url, timeout=REACHABILITY_TIMEOUT, allow_redirects=True)
        except requests.RequestException:
            return False
        return 200 <= response.status_code < 500

    def verify_domain_setup(self, tenant: Tenant) -> Dict[str, Any]:
        if not tenant.domain:
            return {"success": False, "status": "no_domain", "message": "No domain configured for this tenant"}

        domain = clean_domain(tenant.domain)
        server_ip = current_app.config.get("SERVER_IP")
        if not server_ip:
            return {"success": False, "status": "not_configured", "message": "SERVER_IP is not configured"}

        try:
            resolved = socket.gethostbyname(domain)
        except (socket.gaierror, UnicodeError):
            resolved = None

        dns_info = {"domain": domain, "resolved_ip": resolved, "expected_ip": server_ip,
                    "match": resolved == server_ip}
        if resolved is None:
            return {"success": False, "status": "dns_not_configured",
                    "message": f"Domain {domain} DNS not configured yet",
                    "instructions": f"Point the {domain} and www.{domain} A records to {server_ip}",
                    "dns_info": dns_info}
        if resolved != server_ip:
            return {"success": False, "status": "dns_mismatch",
                    "message": f"Domain {domain} resolves to {resolved}, expected {server_ip}",
                    "dns_info": dns_info}

        if self._reachable(f"https://{domain}"):
            status, ssl_status, success = "active", "active", True
            message = f"Domain {domain} is live with SSL"
        elif self._reachable(f"http://{domain}"):
            status, ssl_status, success = "pending_ssl", "pending", False
            message = "DNS verified and HTTP works; an SSL certificate is needed"
        else:
            status, ssl_status, success = "dns_verified", tenant.ssl_status, False
            message = "DNS points to this server; waiting for propagation or nginx"

        with transactional():
            tenant.deployment_status = status
            tenant.ssl_status = ssl_status

        return {"success": success, "status": status, "message": message, "dns_info": dns_info}
