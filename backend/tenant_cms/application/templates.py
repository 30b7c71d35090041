# tenant_cms/application/templates.py
from __future__ import annotations

import copy
from typing import Any, Dict, List, Optional

from slugify import slugify

from tenant_cms.domain.invariants.exceptions import BusinessRuleViolation, NotFoundError, ValidationError
from tenant_cms.extensions import db
from tenant_cms.models.template import Template
from tenant_cms.models.tenant import Tenant
from tenant_cms.utils.slug import unique_slug
from tenant_cms.utils.transaction import transactional

FIELDS = (
    "name", "slug", "description", "preview_image", "version", "category", "is_active",
    "is_premium", "supported_components", "default_settings", "default_colors",
)


class TemplateService:
    """Site templates are a global catalog shared by every tenant."""

    def get_all(self, active_only: bool = False) -> List[Template]:
        query = Template.query
        if active_only:
            query = query.filter(Template.is_active.is_(True))
        return query.order_by(Template.name.asc()).all()

    def get_by_id(self, template_id: str) -> Optional[Template]:
        return db.session.get(Template, template_id) if template_id else None

    def get_or_fail(self, template_id: str) -> Template:
        template = self.get_by_id(template_id)
        if template is None:
            raise NotFoundError("Template not found")
        return template

    def get_by_slug(self, slug: str) -> Optional[Template]:
        return Template.query.filter_by(slug=slug).first()

    def slug_taken(self, slug: str, ignore_id: Optional[str] = None) -> bool:
        query = Template.query.filter(Template.slug == slug)
        if ignore_id:
            query = query.filter(Template.id != ignore_id)
        return db.session.query(query.exists()).scalar()

    def _validate(self, data: Dict[str, Any], template: Optional[Template] = None) -> None:
        errors = {}
        if (template is None or "name" in data) and not (data.get("name") or "").strip():
            errors["name"] = "The name field is required."
        if data.get("slug") and self.slug_taken(data["slug"], template.id if template else None):
            errors["slug"] = "The slug has already been taken."
        components = data.get("supported_components")
        if components is not None and not isinstance(components, list):
            errors["supported_components"] = "The supported_components field must be a list."
        if errors:
            raise ValidationError(errors)

    def create(self, data: Dict[str, Any]) -> Template:
        data = dict(data or {})
        if data.get("slug"):
            data["slug"] = slugify(data["slug"])
        elif data.get("name"):
            data["slug"] = unique_slug(data["name"], self.slug_taken)
        self._validate(data)

        template = Template()
        template.is_active = True
        template.supported_components = []
        for field in FIELDS:
            if field in data and data[field] is not None:
                setattr(template, field, copy.deepcopy(data[field]))

        with transactional():
            db.session.add(template)
        return template

    def update(self, template: Template, data: Dict[str, Any]) -> Template:
        data = dict(data or {})
        if data.get("slug"):
            data["slug"] = slugify(data["slug"])
        elif data.get("name") and data["name"] != template.name:
            data["slug"] = unique_slug(data["name"], lambda s: self.slug_taken(s, template.id))
        self._validate(data, template)

        with transactional():
            for field in FIELDS:
                if field in data:
                    setattr(template, field, copy.deepcopy(data[field]))
        return template

    def tenant_count(self, template: Template) -> int:
        return Tenant.query.filter_by(active_template_id=template.id).count()

    def can_delete(self, template: Template) -> bool:
        return self.tenant_count(template) == 0

    def delete(self, template: Template) -> bool:
        if not self.can_delete(template):
            raise BusinessRuleViolation(f"Template '{template.name}' is active on one or more tenants.")
        with transactional():
            db.session.delete(template)
        return True

    def toggle_active(self, template: Template) -> Template:
        with transactional():
            template.is_active = not template.is_active
        return template

    @staticmethod
    def supports_component(template: Template, component_type: str) -> bool:
        return component_type in (template.supported_components or [])

    def get_statistics(self) -> Dict[str, int]:
        templates = Template.query.all()
        active = sum(1 for t in templates if t.is_active)
        return {
            "total": len(templates),
            "active": active,
            "inactive": len(templates) - active,
            "in_use": sum(1 for t in templates if not self.can_delete(t)),
        }
