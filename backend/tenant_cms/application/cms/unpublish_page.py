# tenant_cms/application/cms/unpublish_page.py
from typing import Dict, Optional

from tenant_cms.domain.invariants.exceptions import NotFoundError
from tenant_cms.domain.lifecycle.page import DRAFT, assert_page_transition
from tenant_cms.utils.audit import log_action
from tenant_cms.utils.transaction import transactional
from tenant_cms.utils.versioning import lock_page


def unpublish_page(*, tenant_id: str, page_id: str, actor_id: Optional[str]) -> Dict[str, object]:
    """published -> draft. Versions recorded so far are kept."""
    page = lock_page(tenant_id, page_id)
    if page is None:
        raise NotFoundError("Page not found")

    with transactional():
        assert_page_transition(from_status=page.status, to_status=DRAFT)
        page.status = DRAFT
        page.published_at = None
        log_action(
            tenant_id=tenant_id,
            actor_id=actor_id,
            action="page.unpublish",
            entity_type="page",
            entity_id=page.id,
        )

    return {"page_id": page.id, "slug": page.slug, "status": page.status}
