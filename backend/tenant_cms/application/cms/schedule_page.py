# tenant_cms/application/cms/schedule_page.py
from datetime import datetime
from typing import Dict, Optional

from tenant_cms.domain.invariants.exceptions import NotFoundError
from tenant_cms.domain.invariants.page import assert_page
from tenant_cms.domain.lifecycle.page import DRAFT, SCHEDULED, IllegalTransition, assert_page_transition
from tenant_cms.normalizers.section import isoformat
from tenant_cms.utils.audit import log_action
from tenant_cms.utils.transaction import transactional
from tenant_cms.utils.versioning import lock_page


def schedule_page(
    *,
    tenant_id: str,
    page_id: str,
    scheduled_at: datetime,
    actor_id: Optional[str],
) -> Dict[str, object]:
    """
    draft -> scheduled, or a new time for a page already scheduled. The page
    is checked as if it were published now, so a page that could not go live
    is refused up front.
    """
    page = lock_page(tenant_id, page_id)
    if page is None:
        raise NotFoundError("Page not found")

    with transactional():
        if page.status != SCHEDULED:
            assert_page_transition(from_status=page.status, to_status=SCHEDULED)
        assert_page(page, publish=True)

        page.status = SCHEDULED
        page.scheduled_at = scheduled_at
        log_action(
            tenant_id=tenant_id,
            actor_id=actor_id,
            action="page.schedule",
            entity_type="page",
            entity_id=page.id,
            payload={"scheduled_at": scheduled_at.isoformat()},
        )

    return {"page_id": page.id, "slug": page.slug, "status": page.status,
            "scheduled_at": isoformat(scheduled_at)}


def unschedule_page(*, tenant_id: str, page_id: str, actor_id: Optional[str]) -> Dict[str, object]:
    """scheduled -> draft."""
    page = lock_page(tenant_id, page_id)
    if page is None:
        raise NotFoundError("Page not found")

    with transactional():
        if page.status != SCHEDULED:
            raise IllegalTransition(f"Page is not scheduled: {page.status}")
        page.status = DRAFT
        page.scheduled_at = None
        log_action(
            tenant_id=tenant_id,
            actor_id=actor_id,
            action="page.unschedule",
            entity_type="page",
            entity_id=page.id,
        )

    return {"page_id": page.id, "slug": page.slug, "status": page.status}
