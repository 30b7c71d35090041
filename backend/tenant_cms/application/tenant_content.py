# tenant_cms/application/tenant_content.py
"""
Copies the content of a source tenant (the master tenant by default) into
another tenant.

This is the one place that reads across tenants, so it queries the models
directly instead of going through a tenant-bound service. The whole copy
runs in a single transaction.
"""
from __future__ import annotations

import copy
from typing import Any, Callable, Dict, List, Optional, Sequence

from flask import current_app

from tenant_cms.domain.invariants.exceptions import NotFoundError
from tenant_cms.extensions import cache, db
from tenant_cms.models.faq import Faq
from tenant_cms.models.menu import Menu
from tenant_cms.models.page import Page
from tenant_cms.models.section import Section
from tenant_cms.models.service import Service
from tenant_cms.models.service_category import ServiceCategory
from tenant_cms.models.setting import Setting
from tenant_cms.models.team_member import TeamMember
from tenant_cms.models.tenant import Tenant
from tenant_cms.models.testimonial import Testimonial
from tenant_cms.utils.order import compact_order
from tenant_cms.utils.transaction import transactional

from .settings import settings_cache_key

PAGE_FIELDS = ("title", "slug", "status", "published_at", "scheduled_at", "order",
               "meta_title", "meta_description", "meta_keywords", "og_image")
SECTION_FIELDS = ("component_type", "order", "is_visible", "content", "styles", "settings")
CATEGORY_FIELDS = ("name", "slug", "description", "image", "order", "is_active")
SERVICE_FIELDS = ("name", "slug", "description", "short_description", "headline", "pricing",
                  "get_started_url", "image", "secondary_image", "is_popular", "is_published",
                  "order", "content", "stats", "benefits", "scheduled_at")
TEAM_FIELDS = ("name", "title", "bio", "image", "credentials", "social_links", "order", "is_published")
TESTIMONIAL_FIELDS = ("author_name", "author_title", "author_image", "content", "rating",
                      "is_featured", "is_published", "order")
FAQ_FIELDS = ("question", "answer", "category", "order", "is_published")
MENU_FIELDS = ("name", "location", "items", "is_active")
SETTING_FIELDS = ("group", "key", "value")

# Identity columns are copied verbatim; brand replacement never touches them
NATURAL_KEY_FIELDS = {"slug", "location", "key", "component_type"}

COUNT_KEYS = ("pages", "sections", "service_categories", "services", "team_members",
              "testimonials", "faqs", "menus", "settings")


def replace_brand(value: Any, brand: str, replacement: str) -> Any:
    """Replaces `brand` in every string leaf of a (possibly nested) value."""
    if not brand:
        return copy.deepcopy(value)
    if isinstance(value, str):
        return value.replace(brand, replacement)
    if isinstance(value, dict):
        return {key: replace_brand(item, brand, replacement) for key, item in value.items()}
    if isinstance(value, list):
        return [replace_brand(item, brand, replacement) for item in value]
    return value


class TenantContentCloner:
    """
    `skip_existing=True` leaves rows the target already has (by natural key)
    untouched; `skip_existing=False` overwrites them, and replaces the
    sections of every overwritten page.
    """

    def __init__(self, source_tenant_id: Optional[str] = None, brand: Optional[str] = None):
        self.source_tenant_id = str(source_tenant_id or current_app.config.get("MASTER_TENANT_ID", "1"))
        self._brand = brand

    def source(self) -> Tenant:
        tenant = db.session.get(Tenant, self.source_tenant_id)
        if tenant is None:
            raise NotFoundError(f"Source tenant {self.source_tenant_id} not found")
        return tenant

    def brand_for(self, source: Tenant) -> str:
        if self._brand is not None:
            return self._brand
        return current_app.config.get("MASTER_BRAND_NAME") or source.name

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def clone(self, target: Tenant, skip_existing: bool = True) -> Dict[str, int]:
        source = self.source()
        if source.id == target.id:
            current_app.logger.info(f"Tenant {target.id} is the clone source; nothing to copy")
            return {key: 0 for key in COUNT_KEYS}

        brand = self.brand_for(source)
        rewrite = lambda value: replace_brand(value, brand, target.name)  # noqa: E731

        counts: Dict[str, int] = {}
        with transactional():
            page_map = self._clone_pages(source, target, rewrite, skip_existing, counts)
            counts["sections"] = self._clone_sections(source, target, page_map, rewrite)
            category_map = self._clone_categories(source, target, rewrite, skip_existing, counts)
            counts["services"] = self._clone_services(source, target, category_map, rewrite, skip_existing)
            counts["team_members"] = self._copy_rows(
                TeamMember, TEAM_FIELDS, source, target, rewrite, skip_existing,
                key_fields=("name",),
            )
            counts["testimonials"] = self._copy_rows(
                Testimonial, TESTIMONIAL_FIELDS, source, target, rewrite, skip_existing,
                key_fields=("author_name", "content"),
            )
            counts["faqs"] = self._copy_rows(
                Faq, FAQ_FIELDS, source, target, rewrite, skip_existing,
                key_fields=("question",),
            )
            counts["menus"] = self._copy_rows(
                Menu, MENU_FIELDS, source, target, rewrite, skip_existing,
                key_fields=("location",),
            )
            counts["settings"] = self._clone_settings(source, target, rewrite, skip_existing)
            db.session.flush()
            self._compact(target)

        cache.delete(settings_cache_key(target.id))
        current_app.logger.info(f"Cloned {counts['pages']} pages for tenant {target.id}")
        return counts

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    @staticmethod
    def _rows(model, tenant_id: str) -> List[Any]:
        query = model.query.filter(model.tenant_id == tenant_id)
        if hasattr(model, "order"):
            query = query.order_by(model.order.asc(), model.created_at.asc())
        return query.all()

    @staticmethod
    def _apply(row, source_row, fields: Sequence[str], rewrite: Callable[[Any], Any]) -> None:
        for field in fields:
            value = getattr(source_row, field)
            setattr(row, field, copy.deepcopy(value) if field in NATURAL_KEY_FIELDS else rewrite(value))

    def _upsert(self, model, fields, source_row, target: Tenant, existing, rewrite, skip_existing):
        """Returns (row, written)."""
        if existing is not None and skip_existing:
            return existing, False
        row = existing
        if row is None:
            row = model()
            row.tenant_id = target.id
            db.session.add(row)
        self._apply(row, source_row, fields, rewrite)
        return row, True

    def _copy_rows(self, model, fields, source: Tenant, target: Tenant, rewrite, skip_existing,
                   key_fields: Sequence[str]) -> int:
        """Target rows are matched on `key_fields` as the source row reads once copied."""
        def target_key(row):
            return tuple(getattr(row, field) for field in key_fields)

        def source_key(row):
            return tuple(
                getattr(row, field) if field in NATURAL_KEY_FIELDS else rewrite(getattr(row, field))
                for field in key_fields
            )

        existing = {target_key(row): row for row in self._rows(model, target.id)}
        written = 0
        for source_row in self._rows(model, source.id):
            key = source_key(source_row)
            row, did_write = self._upsert(
                model, fields, source_row, target, existing.get(key), rewrite, skip_existing
            )
            existing[key] = row
            written += int(did_write)
        return written

    def _clone_pages(self, source, target, rewrite, skip_existing, counts) -> Dict[str, Optional[Page]]:
        """Maps source page id to the target page whose sections must be (re)written, or None."""
        existing = {page.slug: page for page in self._rows(Page, target.id)}
        page_map: Dict[str, Optional[Page]] = {}
        written = 0
        for source_page in self._rows(Page, source.id):
            row, did_write = self._upsert(
                Page, PAGE_FIELDS, source_page, target, existing.get(source_page.slug), rewrite, skip_existing
            )
            page_map[source_page.id] = row if did_write else None
            written += int(did_write)
        db.session.flush()
        counts["pages"] = written
        return page_map

    def _clone_sections(self, source, target, page_map, rewrite) -> int:
        written = 0
        replaced = set()
        for source_section in self._rows(Section, source.id):
            page = page_map.get(source_section.page_id)
            if page is None:
                continue
            if page.id not in replaced:
                Section.query.filter(
                    Section.tenant_id == target.id, Section.page_id == page.id
                ).delete(synchronize_session="fetch")
                replaced.add(page.id)

            section = Section()
            section.tenant_id = target.id
            section.page_id = page.id
            self._apply(section, source_section, SECTION_FIELDS, rewrite)
            db.session.add(section)
            written += 1
        return written

    def _clone_categories(self, source, target, rewrite, skip_existing, counts) -> Dict[str, str]:
        """Copies categories and returns source category id -> target category id, matched by slug."""
        counts["service_categories"] = self._copy_rows(
            ServiceCategory, CATEGORY_FIELDS, source, target, rewrite, skip_existing,
            key_fields=("slug",),
        )
        db.session.flush()
        by_slug = {category.slug: category.id for category in self._rows(ServiceCategory, target.id)}
        return {
            category.id: by_slug[category.slug]
            for category in self._rows(ServiceCategory, source.id)
            if category.slug in by_slug
        }

    def _clone_services(self, source, target, category_map, rewrite, skip_existing) -> int:
        existing = {service.slug: service for service in self._rows(Service, target.id)}
        written = 0
        for source_service in self._rows(Service, source.id):
            if source_service.category_id and source_service.category_id not in category_map:
                continue
            row, did_write = self._upsert(
                Service, SERVICE_FIELDS, source_service, target,
                existing.get(source_service.slug), rewrite, skip_existing,
            )
            if did_write:
                row.category_id = category_map.get(source_service.category_id)
            written += int(did_write)
        return written

    def _clone_settings(self, source, target, rewrite, skip_existing) -> int:
        written = self._copy_rows(
            Setting, SETTING_FIELDS, source, target, rewrite, skip_existing,
            key_fields=("key",),
        )
        db.session.flush()

        # Tenant identity always wins over the copied values
        overrides = {
            "site_name": target.name,
            "contact_email": target.contact_email,
            "contact_phone": target.contact_phone,
        }
        settings = {setting.key: setting for setting in self._rows(Setting, target.id)}
        for key, value in overrides.items():
            if value and key in settings:
                settings[key].value = value
        return written

    def _compact(self, target: Tenant) -> None:
        for model in (Page, ServiceCategory, TeamMember, Testimonial, Faq):
            compact_order(model.query.filter(model.tenant_id == target.id))

        for page in self._rows(Page, target.id):
            compact_order(Section.query.filter(Section.tenant_id == target.id, Section.page_id == page.id))

        category_ids = {service.category_id for service in self._rows(Service, target.id)}
        for category_id in category_ids:
            compact_order(Service.query.filter(Service.tenant_id == target.id, Service.category_id == category_id))
