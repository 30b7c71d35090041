from datetime import datetime, timezone

import pytest

from tenant_cms.application.cms.publish_scheduled import publish_scheduled
from tenant_cms.application.pages import PageService
from tenant_cms.application.sections import SectionService
from tenant_cms.application.service_catalog import ServiceService
from tenant_cms.domain.invariants.exceptions import InvariantViolation, ValidationError
from tenant_cms.domain.lifecycle.page import IllegalTransition
from tenant_cms.models import PageVersion

FUTURE = "2999-01-01T09:00:00Z"
BEFORE_DUE = datetime(2998, 12, 31, 23, 0, tzinfo=timezone.utc)
AFTER_DUE = datetime(2999, 1, 1, 10, 0, tzinfo=timezone.utc)


def _page(tenant, title="Launch"):
    pages = PageService(tenant.id, actor_id="editor-1")
    page = pages.create({"title": title, "sections": [{"component_type": "hero", "content": {"title": "Soon"}}]})
    return pages, page


def test_scheduled_page_publishes_when_due(tenant):
    pages, page = _page(tenant)

    result = pages.schedule(page, FUTURE)
    assert result["status"] == "scheduled"
    assert result["scheduled_at"] == "2999-01-01T09:00:00+00:00"
    assert page.status == "scheduled"
    assert pages.get_by_slug("launch") is None
    assert pages.get_scheduled() == [page]

    assert publish_scheduled(BEFORE_DUE) == {"pages": 0, "services": 0, "failed": 0}
    assert page.status == "scheduled"

    assert publish_scheduled(AFTER_DUE) == {"pages": 1, "services": 0, "failed": 0}
    assert page.status == "published"
    assert page.scheduled_at is None
    assert pages.get_by_slug("launch") == page
    assert PageVersion.query.filter_by(page_id=page.id).count() == 1


def test_rescheduling_moves_the_time(tenant):
    pages, page = _page(tenant)
    pages.schedule(page, FUTURE)
    pages.schedule(page, "3001-01-01T00:00:00+02:00")

    assert publish_scheduled(AFTER_DUE)["pages"] == 0
    assert page.status == "scheduled"


@pytest.mark.parametrize("value, message", [
    ("2000-01-01T00:00:00Z", "The scheduled_at must be a date in the future."),
    ("next tuesday", "The scheduled_at must be a valid ISO 8601 date."),
    (None, "The scheduled_at must be a valid ISO 8601 date."),
])
def test_schedule_time_must_be_a_future_date(tenant, value, message):
    pages, page = _page(tenant)
    with pytest.raises(ValidationError) as exc:
        pages.schedule(page, value)
    assert exc.value.errors == {"scheduled_at": message}
    assert page.status == "draft"


def test_only_publishable_drafts_can_be_scheduled(tenant):
    pages = PageService(tenant.id)
    empty = pages.create({"title": "Empty"})
    with pytest.raises(InvariantViolation):
        pages.schedule(empty, FUTURE)

    _, live = _page(tenant, title="Live")
    pages.publish(live)
    with pytest.raises(IllegalTransition):
        pages.schedule(live, FUTURE)


def test_unschedule_returns_the_page_to_draft(tenant):
    pages, page = _page(tenant)
    pages.schedule(page, FUTURE)

    assert pages.unschedule(page)["status"] == "draft"
    assert page.scheduled_at is None
    assert publish_scheduled(AFTER_DUE)["pages"] == 0

    with pytest.raises(IllegalTransition):
        pages.unschedule(page)


def test_a_page_that_can_no_longer_publish_stays_scheduled(tenant):
    pages, page = _page(tenant)
    pages.schedule(page, FUTURE)
    SectionService(tenant.id).delete(page.sections[0])

    assert publish_scheduled(AFTER_DUE) == {"pages": 0, "services": 0, "failed": 1}
    assert page.status == "scheduled"
    assert PageVersion.query.filter_by(page_id=page.id).count() == 0


def test_scheduled_service_is_hidden_until_due(tenant):
    services = ServiceService(tenant.id)
    service = services.create({"name": "Winter Glow Facial"})

    services.schedule(service, FUTURE)
    assert service.is_published is False
    assert services.get_by_slug("winter-glow-facial", published_only=True) is None

    assert publish_scheduled(AFTER_DUE) == {"pages": 0, "services": 1, "failed": 0}
    assert service.is_published is True
    assert service.scheduled_at is None


def test_unscheduled_service_stays_hidden(tenant):
    services = ServiceService(tenant.id)
    service = services.schedule(services.create({"name": "Peel"}), FUTURE)
    services.unschedule(service)

    assert publish_scheduled(AFTER_DUE)["services"] == 0
    assert service.is_published is False


def test_schedule_endpoints(client, tenant, editor_headers):
    _, page = _page(tenant)

    response = client.post(f"/api/v1/pages/{page.id}/schedule", json={"scheduled_at": "yesterday"},
                           headers=editor_headers)
    assert response.status_code == 422
    assert "scheduled_at" in response.get_json()["errors"]

    response = client.post(f"/api/v1/pages/{page.id}/schedule", json={"scheduled_at": FUTURE},
                           headers=editor_headers)
    assert response.status_code == 200
    assert response.get_json()["status"] == "scheduled"

    detail = client.get(f"/api/v1/pages/{page.id}", headers=editor_headers).get_json()
    assert detail["scheduled_at"].startswith("2999-01-01T09:00:00")

    response = client.delete(f"/api/v1/pages/{page.id}/schedule", headers=editor_headers)
    assert response.status_code == 200
    assert response.get_json()["status"] == "draft"
    assert client.delete(f"/api/v1/pages/{page.id}/schedule", headers=editor_headers).status_code == 409

    service = ServiceService(tenant.id).create({"name": "Peel"})
    response = client.post(f"/api/v1/services/{service.id}/schedule", json={"scheduled_at": FUTURE},
                           headers=editor_headers)
    assert response.status_code == 200
    assert response.get_json()["is_published"] is False
