# tenant_cms/application/cms/rollback_page.py
from typing import Any, Dict, Optional

from tenant_cms.domain.invariants.exceptions import NotFoundError
from tenant_cms.domain.invariants.page import assert_page
from tenant_cms.domain.lifecycle.page import DRAFT, assert_page_transition
from tenant_cms.extensions import db
from tenant_cms.models.page import Page
from tenant_cms.models.page_version import PageVersion
from tenant_cms.models.section import Section
from tenant_cms.utils.audit import log_action
from tenant_cms.utils.order import compact_order
from tenant_cms.utils.transaction import transactional
from tenant_cms.utils.versioning import lock_page, record_version

RESTORED_PAGE_FIELDS = ("title", "meta_title", "meta_description", "meta_keywords", "og_image")
ROLLBACK = "rollback"


def _restore_sections(page: Page, tenant_id: str, sections: list) -> None:
    for section in list(page.sections):
        page.sections.remove(section)
    db.session.flush()

    for data in sections:
        section = Section()
        section.tenant_id = tenant_id
        section.component_type = data["component_type"]
        section.order = data["order"]
        section.is_visible = data.get("is_visible", True)
        section.content = data.get("content") or {}
        section.styles = data.get("styles") or {}
        section.settings = data.get("settings") or {}
        page.sections.append(section)
    db.session.flush()

    compact_order(Section.query.filter_by(page_id=page.id, tenant_id=tenant_id))
    db.session.refresh(page)


def rollback_page(
    *,
    tenant_id: str,
    page_id: str,
    rollback_version: int,
    actor_id: Optional[str],
) -> Dict[str, Any]:
    """
    Restores the page fields and sections of `rollback_version`. The page
    lands in draft (publishing again is an explicit step) and the restored
    state is recorded as a new `rollback` version; history is never rewritten.
    """
    target = PageVersion.query.filter_by(
        page_id=page_id, tenant_id=tenant_id, version=rollback_version
    ).first()
    if target is None:
        raise NotFoundError("PageVersion not found")

    page = lock_page(tenant_id, page_id)
    if page is None:
        raise NotFoundError("Page not found")

    snapshot = target.snapshot
    with transactional():
        if page.status != DRAFT:
            assert_page_transition(from_status=page.status, to_status=DRAFT)
        page.status = DRAFT
        page.published_at = None
        page.scheduled_at = None

        stored = snapshot.get("page", {})
        for field in RESTORED_PAGE_FIELDS:
            if field in stored:
                setattr(page, field, stored[field])

        _restore_sections(page, tenant_id, snapshot.get("sections", []))
        assert_page(page)

        version = record_version(page, ROLLBACK, actor_id)
        log_action(
            tenant_id=tenant_id,
            actor_id=actor_id,
            action="page.rollback",
            entity_type="page",
            entity_id=page.id,
            payload={"from_version": rollback_version, "to_version": version.version},
        )

    return {"page_id": page.id, "slug": page.slug, "new_version": version.version}
