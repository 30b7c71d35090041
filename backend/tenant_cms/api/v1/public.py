# tenant_cms/api/v1/public.py
"""
Read-only endpoints the tenant frontend renders from. No auth; the tenant
comes from the request (header or domain) and only published content is
returned.
"""
from flask import g, request, jsonify
from tenant_cms.application.faqs import FaqService
from tenant_cms.application.menus import MenuService
from tenant_cms.application.pages import PageService
from tenant_cms.application.service_catalog import ServiceService
from tenant_cms.application.settings import SettingService
from tenant_cms.application.team_members import TeamMemberService
from tenant_cms.application.testimonials import TestimonialService
from tenant_cms.domain.invariants.exceptions import NotFoundError
from tenant_cms.normalizers.content import (
    normalize_faq,
    normalize_menu,
    normalize_service,
    normalize_service_category,
    normalize_team_member,
    normalize_tenant,
    normalize_testimonial,
)
from tenant_cms.normalizers.page import normalize_page
from .common import public_service
from . import v1_bp


@v1_bp.route("/public/site", methods=["GET"])
def public_site():
    return jsonify({
        "tenant": normalize_tenant(g.current_tenant, admin=False),
        "settings": public_service(SettingService).get_all_as_dict(),
    })


@v1_bp.route("/public/pages", methods=["GET"])
def public_pages():
    pages = public_service(PageService).get_published()
    return jsonify([normalize_page(p, include_sections=False) for p in pages])


@v1_bp.route("/public/pages/<slug>", methods=["GET"])
def public_page(slug):
    page = public_service(PageService).get_by_slug(slug, published_only=True)
    if page is None:
        raise NotFoundError("Page not found")
    return jsonify(normalize_page(page, admin=False))


@v1_bp.route("/public/services", methods=["GET"])
def public_services():
    filters = {"is_published": True}
    if request.args.get("category_id"):
        filters["category_id"] = request.args["category_id"]
    services = public_service(ServiceService).get_all(filters)
    return jsonify([normalize_service(s) for s in services])


@v1_bp.route("/public/services/popular", methods=["GET"])
def public_popular_services():
    limit = request.args.get("limit", 6, type=int)
    services = public_service(ServiceService).get_popular(limit=max(1, min(limit, 50)))
    return jsonify([normalize_service(s) for s in services])


@v1_bp.route("/public/services/<slug>", methods=["GET"])
def public_service_detail(slug):
    service = public_service(ServiceService).get_by_slug(slug, published_only=True)
    if service is None:
        raise NotFoundError("Service not found")
    return jsonify(normalize_service(service))


@v1_bp.route("/public/service-categories", methods=["GET"])
def public_service_categories():
    groups = public_service(ServiceService).grouped_by_category()
    return jsonify([
        {
            **normalize_service_category(group["category"]),
            "services": [normalize_service(s) for s in group["services"]],
        }
        for group in groups
    ])


@v1_bp.route("/public/faqs", methods=["GET"])
def public_faqs():
    grouped = public_service(FaqService).get_grouped_by_category()
    return jsonify({category: [normalize_faq(f) for f in faqs] for category, faqs in grouped.items()})


@v1_bp.route("/public/testimonials", methods=["GET"])
def public_testimonials():
    testimonials = public_service(TestimonialService)
    if request.args.get("featured"):
        items = testimonials.get_featured()
    else:
        items = testimonials.get_published()
    return jsonify({
        "items": [normalize_testimonial(t) for t in items],
        "average_rating": testimonials.get_average_rating(),
    })


@v1_bp.route("/public/team", methods=["GET"])
def public_team():
    return jsonify([normalize_team_member(m) for m in public_service(TeamMemberService).get_published()])


@v1_bp.route("/public/menus/<location>", methods=["GET"])
def public_menu(location):
    menu = public_service(MenuService).get_by_location(location, active_only=True)
    if menu is None:
        raise NotFoundError("Menu not found")
    return jsonify(normalize_menu(menu))
