import pytest

from tenant_cms.application.faqs import FaqService
from tenant_cms.application.menus import MenuService
from tenant_cms.application.pages import PageService
from tenant_cms.application.service_catalog import ServiceCategoryService, ServiceService
from tenant_cms.application.settings import SettingService
from tenant_cms.application.team_members import TeamMemberService
from tenant_cms.application.tenant_content import COUNT_KEYS, TenantContentCloner, replace_brand
from tenant_cms.application.tenants import TenantService
from tenant_cms.application.testimonials import TestimonialService
from tenant_cms.domain.invariants.exceptions import NotFoundError
from tenant_cms.models import Faq, Menu, Page, Section, Service, ServiceCategory, Setting, TeamMember, Testimonial

from conftest import make_tenant


@pytest.fixture()
def seeded_master(master):
    PageService(master.id).create({
        "title": "Home",
        "meta": {"title": "Acme Studio | Home"},
        "sections": [
            {"component_type": "hero", "content": {"title": "Welcome to Acme Studio"}},
            {"component_type": "cta"},
        ],
    })
    category = ServiceCategoryService(master.id).create({"name": "Acme Studio Facials"})
    ServiceService(master.id).create({"name": "Signature Facial", "category_id": category.id,
                                      "description": "Only at Acme Studio"})
    TeamMemberService(master.id).create({"name": "Jo", "title": "Founder of Acme Studio"})
    TestimonialService(master.id).create({"author_name": "Kim", "content": "Acme Studio is great"})
    FaqService(master.id).create({"question": "Where is Acme Studio?", "answer": "Downtown"})
    MenuService(master.id).create({"name": "Main", "location": "header",
                                   "items": [{"label": "Acme Studio Home", "url": "/"}]})
    settings = SettingService(master.id)
    settings.set("site_name", "Acme Studio")
    settings.set("footer_text", "(c) Acme Studio")
    settings.set("contact_email", "hello@acme.example.com")
    return master


def test_replace_brand_walks_nested_values():
    value = {"title": "Acme rocks", "items": [{"label": "Acme"}, 3, None], "n": 1}
    assert replace_brand(value, "Acme", "Fern") == {"title": "Fern rocks", "items": [{"label": "Fern"}, 3, None], "n": 1}
    # an empty brand copies verbatim
    assert replace_brand(value, "", "Fern") == value


def test_clone_copies_everything_with_brand_replaced(seeded_master, tenant):
    counts = TenantService().clone_content(tenant)

    assert counts == {
        "pages": 1, "sections": 2, "service_categories": 1, "services": 1, "team_members": 1,
        "testimonials": 1, "faqs": 1, "menus": 1, "settings": 3,
    }

    page = PageService(tenant.id).get_by_slug("home", published_only=False)
    assert page.meta_title == "Blue Fern | Home"
    sections = Section.query.filter_by(page_id=page.id).order_by(Section.order).all()
    assert [(s.component_type, s.order) for s in sections] == [("hero", 0), ("cta", 1)]
    assert sections[0].content["title"] == "Welcome to Blue Fern"

    category = ServiceCategory.query.filter_by(tenant_id=tenant.id).one()
    assert category.name == "Blue Fern Facials"
    # natural keys are copied verbatim
    assert category.slug == "acme-studio-facials"

    service = Service.query.filter_by(tenant_id=tenant.id).one()
    assert service.description == "Only at Blue Fern"
    assert service.category_id == category.id

    assert FaqService(tenant.id).get_all()[0].question == "Where is Blue Fern?"
    assert MenuService(tenant.id).get_by_location("header").items[0]["label"] == "Blue Fern Home"

    values = SettingService(tenant.id).get_all_as_dict()
    assert values["site_name"] == "Blue Fern"
    assert values["footer_text"] == "(c) Blue Fern"
    assert values["contact_email"] == "team@bluefern.example.com"


def test_clone_leaves_the_source_untouched(seeded_master, tenant):
    TenantService().clone_content(tenant)
    assert FaqService(seeded_master.id).get_all()[0].question == "Where is Acme Studio?"
    assert SettingService(seeded_master.id).get("site_name") == "Acme Studio"
    assert Page.query.filter_by(tenant_id=seeded_master.id).count() == 1


def test_skip_existing_keeps_target_edits(seeded_master, tenant):
    service = TenantService()
    service.clone_content(tenant)

    faq = Faq.query.filter_by(tenant_id=tenant.id).one()
    FaqService(tenant.id).update(faq, {"answer": "Uptown now"})

    counts = service.clone_content(tenant, skip_existing=True)
    assert counts == {key: 0 for key in COUNT_KEYS}
    assert Faq.query.filter_by(tenant_id=tenant.id).count() == 1
    assert Faq.query.filter_by(tenant_id=tenant.id).one().answer == "Uptown now"
    assert Section.query.filter_by(tenant_id=tenant.id).count() == 2


def test_overwrite_replaces_rows_and_page_sections(seeded_master, tenant):
    service = TenantService()
    service.clone_content(tenant)

    page = PageService(tenant.id).get_by_slug("home", published_only=False)
    PageService(tenant.id).update(page, {"title": "Edited"})
    faq = Faq.query.filter_by(tenant_id=tenant.id).one()
    FaqService(tenant.id).update(faq, {"answer": "Uptown now"})

    counts = service.clone_content(tenant, skip_existing=False)
    assert counts["pages"] == 1
    assert counts["sections"] == 2
    assert counts["faqs"] == 1

    assert Page.query.filter_by(tenant_id=tenant.id).one().title == "Home"
    assert Faq.query.filter_by(tenant_id=tenant.id).one().answer == "Downtown"
    # sections are replaced, not appended
    assert Section.query.filter_by(tenant_id=tenant.id).count() == 2


def test_clone_into_the_source_is_a_no_op(seeded_master):
    counts = TenantService().clone_content(seeded_master)
    assert counts == {key: 0 for key in COUNT_KEYS}
    assert Faq.query.filter_by(tenant_id=seeded_master.id).count() == 1


def test_clone_from_a_missing_source(app, tenant):
    with pytest.raises(NotFoundError):
        TenantContentCloner(source_tenant_id="does-not-exist").clone(tenant)


def test_configured_brand_name_wins(app, seeded_master, tenant):
    app.config["MASTER_BRAND_NAME"] = "Acme"
    TenantService().clone_content(tenant)
    # only the configured brand text is replaced
    assert FaqService(tenant.id).get_all()[0].question == "Where is Blue Fern Studio?"


def test_clone_from_another_source(tenant):
    third = make_tenant("Green Leaf")
    FaqService(tenant.id).create({"question": "Is Blue Fern open?", "answer": "Yes"})

    counts = TenantService().clone_content(third, source_tenant_id=tenant.id)
    assert counts["faqs"] == 1
    assert FaqService(third.id).get_all()[0].question == "Is Green Leaf open?"


def _snapshot(tenant_id):
    return {
        model.__tablename__: model.query.filter_by(tenant_id=tenant_id).count()
        for model in (Page, Section, ServiceCategory, Service, TeamMember, Testimonial, Faq, Menu, Setting)
    }


def test_create_tenant_with_content_mirrors_master(seeded_master):
    PageService(seeded_master.id).create({
        "title": "About",
        "sections": [{"component_type": "hero", "content": {"title": "About Acme Studio"}}],
    })
    make_tenant("Red Oak", domain="old.redoak.example.com")
    master_before = _snapshot(seeded_master.id)

    tenant = TenantService().create({"name": "Red Oak", "domain": "redoak.example.com"}, clone_content=True)
    assert tenant.slug == "red-oak-1"

    copied = _snapshot(tenant.id)
    assert copied["pages"] == master_before["pages"] == 2
    assert copied["sections"] == master_before["sections"] == 3
    assert copied["services"] == master_before["services"]
    assert copied["service_categories"] == master_before["service_categories"]
    assert _snapshot(seeded_master.id) == master_before

    master_pages = {p.id for p in Page.query.filter_by(tenant_id=seeded_master.id)}
    master_categories = {c.id for c in ServiceCategory.query.filter_by(tenant_id=seeded_master.id)}
    own_pages = {p.id for p in Page.query.filter_by(tenant_id=tenant.id)}
    own_categories = {c.id for c in ServiceCategory.query.filter_by(tenant_id=tenant.id)}

    for section in Section.query.filter(Section.page_id.in_(sorted(own_pages))):
        assert section.tenant_id == tenant.id
    sections = Section.query.filter_by(tenant_id=tenant.id).all()
    assert {s.page_id for s in sections} <= own_pages
    assert not {s.page_id for s in sections} & master_pages

    services = Service.query.filter_by(tenant_id=tenant.id).all()
    assert {s.category_id for s in services} <= own_categories
    assert not {s.category_id for s in services} & master_categories

    assert PageService(tenant.id).get_by_slug("home", published_only=False) is not None
    assert SettingService(tenant.id).get("site_name") == "Red Oak"
