import pytest

from tenant_cms.application.faqs import FaqService
from tenant_cms.application.menus import MenuService
from tenant_cms.application.pages import PageService
from tenant_cms.application.sections import SectionService
from tenant_cms.application.service_catalog import ServiceCategoryService, ServiceService
from tenant_cms.application.settings import SettingService
from tenant_cms.application.team_members import TeamMemberService
from tenant_cms.application.testimonials import TestimonialService

from conftest import make_tenant


@pytest.fixture()
def site(tenant):
    return {"X-Tenant-ID": tenant.id}


@pytest.fixture()
def published_home(tenant):
    pages = PageService(tenant.id)
    page = pages.create({
        "title": "Home",
        "sections": [
            {"component_type": "hero", "content": {"title": "Welcome"}},
            {"component_type": "blocks"},
            {"component_type": "cta"},
        ],
    })
    sections = SectionService(tenant.id)
    hero, blocks, cta = sorted(page.sections, key=lambda s: s.order)
    shown = sections.add_block(blocks, "heading", data={"text": "Shown"})
    hidden = sections.add_block(blocks, "text")
    sections.toggle_block_visibility(blocks, hidden["id"])
    sections.toggle_visibility(cta)
    pages.publish(page)
    return page, shown, hidden


def test_public_page_renders_only_visible_content(client, site, published_home):
    page, shown, hidden = published_home

    response = client.get("/api/v1/public/pages/home", headers=site)
    assert response.status_code == 200
    body = response.get_json()

    assert "status" not in body
    assert [s["component_type"] for s in body["sections"]] == ["hero", "blocks"]
    block_ids = [b["id"] for b in body["sections"][1]["content"]["blocks"]]
    assert block_ids == [shown["id"]]


def test_draft_pages_are_not_public(client, tenant, site):
    PageService(tenant.id).create({"title": "Secret", "sections": [{"component_type": "hero"}]})
    assert client.get("/api/v1/public/pages/secret", headers=site).status_code == 404
    assert client.get("/api/v1/public/pages", headers=site).get_json() == []


def test_public_pages_list(client, site, published_home):
    pages = client.get("/api/v1/public/pages", headers=site).get_json()
    assert [p["slug"] for p in pages] == ["home"]
    assert "sections" not in pages[0]


def test_public_content_is_tenant_scoped(client, site, published_home):
    other = make_tenant("Other Co")
    response = client.get("/api/v1/public/pages/home", headers={"X-Tenant-ID": other.id})
    assert response.status_code == 404


def test_public_site(client, tenant, site):
    SettingService(tenant.id).set("site_name", "Blue Fern Spa")
    body = client.get("/api/v1/public/site", headers=site).get_json()
    assert body["tenant"]["slug"] == "blue-fern"
    assert "is_active" not in body["tenant"]
    assert body["settings"]["site_name"] == "Blue Fern Spa"


def test_public_faqs_grouped(client, tenant, site):
    faqs = FaqService(tenant.id)
    faqs.create({"question": "Parking?", "answer": "Yes", "category": "Visiting"})
    faqs.create({"question": "Gift cards?", "answer": "Yes"})
    faqs.create({"question": "Draft?", "answer": "No", "is_published": False})

    body = client.get("/api/v1/public/faqs", headers=site).get_json()
    assert set(body) == {"Visiting", "General"}
    assert [f["question"] for f in body["General"]] == ["Gift cards?"]


def test_public_services(client, tenant, site):
    category = ServiceCategoryService(tenant.id).create({"name": "Facials"})
    services = ServiceService(tenant.id)
    glow = services.create({"name": "Glow", "category_id": category.id, "is_popular": True})
    services.create({"name": "Hidden", "category_id": category.id, "is_published": False})

    listed = client.get("/api/v1/public/services", headers=site).get_json()
    assert [s["slug"] for s in listed] == ["glow"]

    popular = client.get("/api/v1/public/services/popular", headers=site).get_json()
    assert [s["id"] for s in popular] == [glow.id]

    assert client.get("/api/v1/public/services/glow", headers=site).status_code == 200
    assert client.get("/api/v1/public/services/hidden", headers=site).status_code == 404

    grouped = client.get("/api/v1/public/service-categories", headers=site).get_json()
    assert grouped[0]["name"] == "Facials"
    assert [s["name"] for s in grouped[0]["services"]] == ["Glow"]


def test_public_testimonials_and_team(client, tenant, site):
    testimonials = TestimonialService(tenant.id)
    testimonials.create({"author_name": "Kim", "content": "Great", "rating": 5, "is_featured": True})
    testimonials.create({"author_name": "Lee", "content": "Good", "rating": 4})
    TeamMemberService(tenant.id).create({"name": "Jo", "title": "Founder"})

    body = client.get("/api/v1/public/testimonials", headers=site).get_json()
    assert len(body["items"]) == 2
    assert body["average_rating"] == 4.5

    featured = client.get("/api/v1/public/testimonials?featured=1", headers=site).get_json()
    assert [t["author_name"] for t in featured["items"]] == ["Kim"]

    team = client.get("/api/v1/public/team", headers=site).get_json()
    assert [m["name"] for m in team] == ["Jo"]


def test_public_menus(client, tenant, site):
    menus = MenuService(tenant.id)
    menus.create({"name": "Main", "location": "header", "items": [{"label": "Home", "url": "/"}]})
    menus.create({"name": "Old footer", "location": "footer", "is_active": False})

    header = client.get("/api/v1/public/menus/header", headers=site)
    assert header.status_code == 200
    assert header.get_json()["items"][0]["label"] == "Home"

    assert client.get("/api/v1/public/menus/footer", headers=site).status_code == 404
    assert client.get("/api/v1/public/menus/sidebar", headers=site).status_code == 404
