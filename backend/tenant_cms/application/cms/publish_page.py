# tenant_cms/application/cms/publish_page.py
from typing import Dict, Optional

from tenant_cms.domain.invariants.exceptions import NotFoundError
from tenant_cms.domain.invariants.page import assert_page
from tenant_cms.domain.lifecycle.page import PUBLISHED, assert_page_transition
from tenant_cms.models.base import utc_now
from tenant_cms.utils.audit import log_action
from tenant_cms.utils.transaction import transactional
from tenant_cms.utils.versioning import lock_page, record_version


def publish_page(*, tenant_id: str, page_id: str, actor_id: Optional[str]) -> Dict[str, object]:
    """
    draft (or scheduled) -> published. The page must hold at least one section, its
    section orders must be dense and every section's content must validate
    against its type; the published state is frozen as the next PageVersion.
    """
    page = lock_page(tenant_id, page_id)
    if page is None:
        raise NotFoundError("Page not found")

    with transactional():
        assert_page_transition(from_status=page.status, to_status=PUBLISHED)
        assert_page(page, publish=True)

        page.status = PUBLISHED
        page.published_at = utc_now()
        page.scheduled_at = None
        version = record_version(page, PUBLISHED, actor_id)

        log_action(
            tenant_id=tenant_id,
            actor_id=actor_id,
            action="page.publish",
            entity_type="page",
            entity_id=page.id,
            payload={"version": version.version},
        )

    return {"page_id": page.id, "slug": page.slug, "version": version.version}
