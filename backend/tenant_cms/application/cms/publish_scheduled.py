# tenant_cms/application/cms/publish_scheduled.py
from datetime import datetime
from typing import Dict, Optional

from flask import current_app

from tenant_cms.application.pages import PageService
from tenant_cms.application.service_catalog import ServiceService
from tenant_cms.domain.invariants.exceptions import InvariantViolation
from tenant_cms.domain.lifecycle.page import SCHEDULED, IllegalTransition
from tenant_cms.models.base import utc_now
from tenant_cms.models.page import Page
from tenant_cms.models.service import Service


def publish_scheduled(now: Optional[datetime] = None) -> Dict[str, int]:
    """
    Publishes every page and service whose scheduled time has passed, across
    all tenants. Each page goes through the normal publish path; one that
    fails its checks stays scheduled and is counted under `failed`.
    """
    now = now or utc_now()
    counts = {"pages": 0, "services": 0, "failed": 0}

    due_pages = (
        Page.query
        .filter(Page.status == SCHEDULED, Page.scheduled_at <= now)
        .order_by(Page.scheduled_at.asc())
        .all()
    )
    for page in due_pages:
        page_id, tenant_id = page.id, page.tenant_id
        try:
            PageService(tenant_id).publish(page)
        except (InvariantViolation, IllegalTransition) as exc:
            current_app.logger.error(f"Scheduled page {page_id} (tenant {tenant_id}) not published: {exc}")
            counts["failed"] += 1
            continue
        counts["pages"] += 1
        current_app.logger.info(f"Published scheduled page {page_id} (tenant {tenant_id})")

    due_services = (
        Service.query
        .filter(Service.scheduled_at.isnot(None), Service.scheduled_at <= now)
        .order_by(Service.scheduled_at.asc())
        .all()
    )
    for service in due_services:
        ServiceService(service.tenant_id).publish_scheduled(service)
        counts["services"] += 1
        current_app.logger.info(f"Published scheduled service {service.id} (tenant {service.tenant_id})")

    return counts
