import copy
from typing import Any, Dict, Optional

from sqlalchemy import func, select

from tenant_cms.extensions import db
from tenant_cms.models.page import Page
from tenant_cms.models.page_version import PageVersion

PAGE_SNAPSHOT_FIELDS = ("id", "title", "slug", "status", "meta_title", "meta_description",
                        "meta_keywords", "og_image")
SECTION_SNAPSHOT_FIELDS = ("id", "component_type", "order", "is_visible")
SECTION_JSON_FIELDS = ("content", "styles", "settings")


def snapshot_section(section) -> Dict[str, Any]:
    data = {field: getattr(section, field) for field in SECTION_SNAPSHOT_FIELDS}
    for field in SECTION_JSON_FIELDS:
        data[field] = copy.deepcopy(getattr(section, field) or {})
    return data


def snapshot_page(page) -> Dict[str, Any]:
    """Page fields plus its sections in display order; enough to restore the page."""
    return {
        "page": {field: getattr(page, field) for field in PAGE_SNAPSHOT_FIELDS},
        "sections": [snapshot_section(s) for s in sorted(page.sections, key=lambda s: s.order)],
    }


def next_version(page_id: str, tenant_id: str) -> int:
    current = db.session.scalar(
        select(func.max(PageVersion.version)).where(
            PageVersion.page_id == page_id, PageVersion.tenant_id == tenant_id
        )
    )
    return (current or 0) + 1


def record_version(page: Page, status: str, actor_id: Optional[str]) -> PageVersion:
    """Adds an immutable snapshot of `page` as its next version."""
    version = PageVersion()
    version.page_id = page.id
    version.tenant_id = page.tenant_id
    version.version = next_version(page.id, page.tenant_id)
    version.status = status
    version.snapshot = snapshot_page(page)
    version.created_by = actor_id
    db.session.add(version)
    db.session.flush()
    return version


def lock_page(tenant_id: str, page_id: str) -> Optional[Page]:
    """Row-level lock on the page (a no-op on SQLite)."""
    return db.session.execute(
        select(Page).where(Page.id == page_id, Page.tenant_id == tenant_id).with_for_update()
    ).scalar_one_or_none()
