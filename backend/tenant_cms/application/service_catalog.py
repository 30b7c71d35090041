# tenant_cms/application/service_catalog.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

from slugify import slugify

from tenant_cms.domain.invariants.exceptions import BusinessRuleViolation
from tenant_cms.extensions import db
from tenant_cms.models.service import Service
from tenant_cms.models.service_category import ServiceCategory
from tenant_cms.utils.schedule import parse_schedule_time
from tenant_cms.utils.slug import unique_slug
from tenant_cms.utils.transaction import transactional

from .base import TenantScopedService


class _SlugMixin:
    """Unique-per-tenant slug derived from `name` when not supplied."""

    def slug_taken(self, slug: str, ignore_id: Optional[str] = None) -> bool:
        query = self.query().filter(self.model.slug == slug)
        if ignore_id:
            query = query.filter(self.model.id != ignore_id)
        return db.session.query(query.exists()).scalar()

    def prepare(self, data: Dict[str, Any], entity=None) -> Dict[str, Any]:
        ignore_id = entity.id if entity is not None else None
        if data.get("slug"):
            data["slug"] = slugify(data["slug"])
        elif entity is None and data.get("name"):
            data["slug"] = unique_slug(data["name"], lambda s: self.slug_taken(s, ignore_id))
        return data

    def validate(self, data: Dict[str, Any], entity=None) -> Dict[str, str]:
        slug = data.get("slug")
        if slug and self.slug_taken(slug, ignore_id=entity.id if entity else None):
            return {"slug": "The slug has already been taken."}
        return {}


class ServiceCategoryService(_SlugMixin, TenantScopedService):
    model = ServiceCategory
    resource_type = "service_category"
    fields = ("name", "slug", "description", "image", "order", "is_active")
    required_on_create = ("name",)
    search_columns = ("name", "description")
    filter_columns = ("is_active",)
    boolean_columns = ("is_active",)
    ordered = True

    def get_by_slug(self, slug: str) -> Optional[ServiceCategory]:
        return self.query().filter(ServiceCategory.slug == slug).first()

    def get_active(self) -> List[ServiceCategory]:
        return self.get_all({"is_active": True})

    def before_delete(self, entity: ServiceCategory) -> None:
        count = Service.query.filter_by(tenant_id=self.tenant_id, category_id=entity.id).count()
        if count:
            raise BusinessRuleViolation(
                f"Cannot delete category '{entity.name}': it still has {count} service(s)."
            )

    def toggle_active(self, category: ServiceCategory) -> ServiceCategory:
        return self.toggle(category, "is_active")


class ServiceService(_SlugMixin, TenantScopedService):
    """Services are ordered within their category."""

    model = Service
    resource_type = "service"
    fields = (
        "category_id", "name", "slug", "description", "short_description", "headline",
        "pricing", "get_started_url", "image", "secondary_image", "is_popular",
        "is_published", "order", "content", "stats", "benefits",
    )
    required_on_create = ("name",)
    search_columns = ("name", "description")
    filter_columns = ("category_id", "is_published", "is_popular")
    boolean_columns = ("is_published", "is_popular")
    ordered = True
    order_scope = ("category_id",)

    def _sorted(self, query):
        return query.order_by(Service.category_id.asc(), Service.order.asc(), Service.created_at.asc())

    def validate(self, data: Dict[str, Any], entity=None) -> Dict[str, str]:
        errors = super().validate(data, entity)
        category_id = data.get("category_id")
        if category_id:
            exists = ServiceCategory.query.filter_by(id=category_id, tenant_id=self.tenant_id).first()
            if exists is None:
                errors["category_id"] = "The selected category is invalid."
        return errors

    def get_by_slug(self, slug: str, published_only: bool = False) -> Optional[Service]:
        query = self.query().filter(Service.slug == slug)
        if published_only:
            query = query.filter(Service.is_published.is_(True))
        return query.first()

    def get_by_category(self, category_id: str) -> List[Service]:
        return self.get_all({"category_id": category_id})

    def get_popular(self, limit: int = 6) -> List[Service]:
        return (
            self.query()
            .filter(Service.is_popular.is_(True), Service.is_published.is_(True))
            .order_by(Service.order.asc())
            .limit(limit)
            .all()
        )

    def grouped_by_category(self) -> List[Dict[str, Any]]:
        categories = ServiceCategoryService(self.tenant_id, notifier=self.notifier).get_active()
        return [
            {"category": category, "services": [s for s in category.services if s.is_published]}
            for category in categories
        ]

    def reorder_in_category(self, category_id: Optional[str], ordered_ids: List[str]) -> List[Service]:
        return self.reorder(ordered_ids, scope={"category_id": category_id})

    def toggle_published(self, service: Service) -> Service:
        return self.toggle(service, "is_published")

    def toggle_popular(self, service: Service) -> Service:
        return self.toggle(service, "is_popular")

    def schedule(self, service: Service, scheduled_at: Any) -> Service:
        """Hides the service until `scheduled_at`, when the scheduler publishes it."""
        when = parse_schedule_time(scheduled_at)
        with transactional():
            service.is_published = False
            service.scheduled_at = when
            self._log("schedule", service, {"scheduled_at": when.isoformat()})
        self._notify(service, "updated")
        return service

    def unschedule(self, service: Service) -> Service:
        if service.scheduled_at is None:
            return service
        with transactional():
            service.scheduled_at = None
            self._log("unschedule", service, {})
        self._notify(service, "updated")
        return service

    def publish_scheduled(self, service: Service) -> Service:
        with transactional():
            service.is_published = True
            service.scheduled_at = None
            self._log("publish", service, {})
        self._notify(service, "published")
        return service

    def get_statistics(self) -> Dict[str, int]:
        query = self.query()
        return {
            "total": query.count(),
            "published": query.filter(Service.is_published.is_(True)).count(),
            "popular": self.query().filter(Service.is_popular.is_(True)).count(),
            "uncategorized": self.query().filter(Service.category_id.is_(None)).count(),
        }
