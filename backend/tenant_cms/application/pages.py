# tenant_cms/application/pages.py
from __future__ import annotations

import copy
from typing import Any, Dict, List, Optional

from slugify import slugify

from tenant_cms.domain.invariants.exceptions import ValidationError
from tenant_cms.domain.lifecycle.page import DRAFT, PUBLISHED, SCHEDULED
from tenant_cms.extensions import db
from tenant_cms.models.page import Page
from tenant_cms.models.page_version import PageVersion
from tenant_cms.models.section import Section
from tenant_cms.utils.order import shift_after
from tenant_cms.utils.schedule import parse_schedule_time
from tenant_cms.utils.transaction import transactional

from .base import TenantScopedService
from .cms.publish_page import publish_page
from .cms.rollback_page import rollback_page
from .cms.schedule_page import schedule_page, unschedule_page
from .cms.unpublish_page import unpublish_page
from .sections import SectionService

META_FIELDS = ("meta_title", "meta_description", "meta_keywords", "og_image")


class PageService(TenantScopedService):
    model = Page
    resource_type = "page"
    fields = ("title", "slug", "order") + META_FIELDS
    required_on_create = ("title",)
    search_columns = ("title", "slug")
    filter_columns = ("status",)
    ordered = True

    def get_by_slug(self, slug: str, published_only: bool = True) -> Optional[Page]:
        query = self.query().filter(Page.slug == slug)
        if published_only:
            query = query.filter(Page.status == PUBLISHED)
        return query.first()

    def get_published(self) -> List[Page]:
        return self.get_all({"status": PUBLISHED})

    def slug_taken(self, slug: str, ignore_id: Optional[str] = None) -> bool:
        query = self.query().filter(Page.slug == slug)
        if ignore_id:
            query = query.filter(Page.id != ignore_id)
        return db.session.query(query.exists()).scalar()

    def prepare(self, data: Dict[str, Any], entity=None) -> Dict[str, Any]:
        if data.get("slug"):
            data["slug"] = slugify(data["slug"])
        elif entity is None and data.get("title"):
            data["slug"] = slugify(data["title"])

        meta = data.pop("meta", None)
        if isinstance(meta, dict):
            for key, value in meta.items():
                field = key if key.startswith("meta_") or key == "og_image" else f"meta_{key}"
                if field in META_FIELDS:
                    data.setdefault(field, value)
        return data

    def validate(self, data: Dict[str, Any], entity=None) -> Dict[str, str]:
        errors = {}
        slug = data.get("slug")
        if slug and self.slug_taken(slug, ignore_id=entity.id if entity else None):
            errors["slug"] = "The slug has already been taken."
        if "sections" in data and not isinstance(data["sections"], list):
            errors["sections"] = "The sections field must be a list."
        return errors

    def after_create(self, entity: Page, data: Dict[str, Any]) -> None:
        sections = SectionService(self.tenant_id, actor_id=self.actor_id, notifier=self.notifier)
        for index, section_data in enumerate(data.get("sections") or []):
            try:
                db.session.add(sections.build(entity, section_data, order=index))
            except ValidationError as exc:
                raise ValidationError({f"sections.{index}.{k}": v for k, v in exc.errors.items()}) from exc
        db.session.flush()

    def before_delete(self, entity: Page) -> None:
        PageVersion.query.filter_by(page_id=entity.id, tenant_id=self.tenant_id).delete(synchronize_session=False)

    def update_meta(self, page: Page, meta: Dict[str, Any]) -> Page:
        """Merges the given meta keys; keys not supplied keep their values."""
        return self.update(page, {"meta": meta})

    def duplicate(self, entity: Page, overrides: Optional[Dict[str, Any]] = None) -> Page:
        """
        Copies the page and its sections under a new slug, as a draft, right
        after the source page.
        """
        overrides = dict(overrides or {})
        new_slug = slugify(overrides.get("slug") or f"{entity.slug}-copy")
        if self.slug_taken(new_slug):
            raise ValidationError({"slug": "The slug has already been taken."})

        clone = Page()
        clone.tenant_id = self.tenant_id
        for field in self.fields:
            setattr(clone, field, copy.deepcopy(getattr(entity, field)))
        clone.slug = new_slug
        clone.title = overrides.get("title") or entity.title
        clone.status = DRAFT

        with transactional():
            shift_after(self.query(), Page, entity.order, 1)
            clone.order = entity.order + 1
            db.session.add(clone)
            db.session.flush()

            for section in sorted(entity.sections, key=lambda s: s.order):
                copy_section = Section()
                copy_section.tenant_id = self.tenant_id
                copy_section.page_id = clone.id
                copy_section.component_type = section.component_type
                copy_section.order = section.order
                copy_section.is_visible = section.is_visible
                copy_section.content = copy.deepcopy(section.content)
                copy_section.styles = copy.deepcopy(section.styles)
                copy_section.settings = copy.deepcopy(section.settings)
                db.session.add(copy_section)

            self._log("duplicate", clone, {"source_id": entity.id})

        self._notify(clone, "created")
        return clone

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def publish(self, page: Page) -> Dict[str, Any]:
        result = publish_page(tenant_id=self.tenant_id, page_id=page.id, actor_id=self.actor_id)
        self._notify(page, "published")
        return result

    def unpublish(self, page: Page) -> Dict[str, Any]:
        result = unpublish_page(tenant_id=self.tenant_id, page_id=page.id, actor_id=self.actor_id)
        self._notify(page, "unpublished")
        return result

    def schedule(self, page: Page, scheduled_at: Any) -> Dict[str, Any]:
        result = schedule_page(
            tenant_id=self.tenant_id,
            page_id=page.id,
            scheduled_at=parse_schedule_time(scheduled_at),
            actor_id=self.actor_id,
        )
        self._notify(page, "updated")
        return result

    def unschedule(self, page: Page) -> Dict[str, Any]:
        result = unschedule_page(tenant_id=self.tenant_id, page_id=page.id, actor_id=self.actor_id)
        self._notify(page, "updated")
        return result

    def get_scheduled(self) -> List[Page]:
        return self.query().filter(Page.status == SCHEDULED).order_by(Page.scheduled_at.asc()).all()

    def toggle_published(self, page: Page) -> Dict[str, Any]:
        return self.unpublish(page) if page.status == PUBLISHED else self.publish(page)

    def rollback(self, page: Page, version: int) -> Dict[str, Any]:
        result = rollback_page(
            tenant_id=self.tenant_id,
            page_id=page.id,
            rollback_version=version,
            actor_id=self.actor_id,
        )
        self._notify(page, "updated")
        return result

    def versions(self, page: Page) -> List[PageVersion]:
        return (
            PageVersion.query
            .filter_by(page_id=page.id, tenant_id=self.tenant_id)
            .order_by(PageVersion.version.desc())
            .all()
        )
