# tenant_cms/api/v1/content.py
"""
Admin routes for the tenant's structured content: service catalog, FAQs,
testimonials, team and menus.
"""
from flask import request, jsonify, abort
from flask_jwt_extended import jwt_required
from tenant_cms.application.faqs import FaqService
from tenant_cms.application.menus import MenuService
from tenant_cms.application.service_catalog import ServiceCategoryService, ServiceService
from tenant_cms.application.team_members import TeamMemberService
from tenant_cms.application.testimonials import TestimonialService
from tenant_cms.domain.invariants.exceptions import ValidationError
from tenant_cms.normalizers.content import (
    normalize_faq,
    normalize_menu,
    normalize_service,
    normalize_service_category,
    normalize_team_member,
    normalize_testimonial,
)
from tenant_cms.utils.decorators import tenant_required, roles_required, feature_enabled
from .common import tenant_service, json_body, id_list, paginated
from . import v1_bp

CONTENT_ROLES = ("admin", "editor")


def content_route(rule, **options):
    """Route + the auth/tenant/role/feature stack every content endpoint shares."""
    def decorator(fn):
        wrapped = feature_enabled("cms")(fn)
        wrapped = roles_required(*CONTENT_ROLES)(wrapped)
        wrapped = tenant_required(wrapped)
        wrapped = jwt_required()(wrapped)
        v1_bp.add_url_rule(rule, view_func=wrapped, **options)
        return fn
    return decorator


def register_crud(path, name, service_cls, normalize_fn, filter_keys=()):
    """
    GET/POST on /<path> and GET/PUT/DELETE on /<path>/<id> for one
    tenant-scoped service.
    """
    @content_route(f"/{path}", endpoint=f"list_{name}", methods=["GET"])
    def list_items():
        service = tenant_service(service_cls)
        if request.args.get("all"):
            return jsonify([normalize_fn(item) for item in service.get_all(
                {key: request.args.get(key) for key in ("search",) + tuple(filter_keys) if request.args.get(key)}
            )])
        return jsonify(paginated(service, normalize_fn, *filter_keys))

    @content_route(f"/{path}", endpoint=f"create_{name}", methods=["POST"])
    def create_item():
        return jsonify(normalize_fn(tenant_service(service_cls).create(json_body()))), 201

    @content_route(f"/{path}/<item_id>", endpoint=f"get_{name}", methods=["GET"])
    def get_item(item_id):
        return jsonify(normalize_fn(tenant_service(service_cls).get_or_fail(item_id)))

    @content_route(f"/{path}/<item_id>", endpoint=f"update_{name}", methods=["PUT"])
    def update_item(item_id):
        service = tenant_service(service_cls)
        return jsonify(normalize_fn(service.update(service.get_or_fail(item_id), json_body())))

    @content_route(f"/{path}/<item_id>", endpoint=f"delete_{name}", methods=["DELETE"])
    def delete_item(item_id):
        service = tenant_service(service_cls)
        service.delete(service.get_or_fail(item_id))
        return jsonify({"message": "Deleted successfully"}), 200


# ------------------------
# Service catalog
# ------------------------

register_crud("service-categories", "service_categories", ServiceCategoryService,
              normalize_service_category, ("is_active",))
register_crud("services", "services", ServiceService, normalize_service,
              ("category_id", "is_published", "is_popular"))


@content_route("/service-categories/reorder", methods=["POST"])
def reorder_service_categories():
    categories = tenant_service(ServiceCategoryService).reorder(id_list(json_body()))
    return jsonify([normalize_service_category(c) for c in categories])


@content_route("/service-categories/<category_id>/toggle-active", methods=["POST"])
def toggle_service_category(category_id):
    categories = tenant_service(ServiceCategoryService)
    category = categories.toggle_active(categories.get_or_fail(category_id))
    return jsonify(normalize_service_category(category))


@content_route("/services/reorder", methods=["POST"])
def reorder_services():
    data = json_body()
    services = tenant_service(ServiceService).reorder_in_category(data.get("category_id"), id_list(data))
    return jsonify([normalize_service(s) for s in services])


@content_route("/services/<service_id>/duplicate", methods=["POST"])
def duplicate_service(service_id):
    services = tenant_service(ServiceService)
    source = services.get_or_fail(service_id)
    slug = json_body().get("slug") or f"{source.slug}-copy"
    if services.slug_taken(slug):
        raise ValidationError({"slug": "The slug has already been taken."})
    clone = services.duplicate(source, {"slug": slug, "is_published": False})
    return jsonify(normalize_service(clone)), 201


@content_route("/services/<service_id>/toggle-published", methods=["POST"])
def toggle_service_published(service_id):
    services = tenant_service(ServiceService)
    return jsonify(normalize_service(services.toggle_published(services.get_or_fail(service_id))))


@content_route("/services/<service_id>/toggle-popular", methods=["POST"])
def toggle_service_popular(service_id):
    services = tenant_service(ServiceService)
    return jsonify(normalize_service(services.toggle_popular(services.get_or_fail(service_id))))


@content_route("/services/<service_id>/schedule", methods=["POST"])
def schedule_service(service_id):
    services = tenant_service(ServiceService)
    service = services.schedule(services.get_or_fail(service_id), json_body().get("scheduled_at"))
    return jsonify(normalize_service(service))


@content_route("/services/<service_id>/schedule", methods=["DELETE"])
def unschedule_service(service_id):
    services = tenant_service(ServiceService)
    return jsonify(normalize_service(services.unschedule(services.get_or_fail(service_id))))


@content_route("/services-statistics", methods=["GET"])
def service_statistics():
    return jsonify(tenant_service(ServiceService).get_statistics())


# ------------------------
# FAQs
# ------------------------

register_crud("faqs", "faqs", FaqService, normalize_faq, ("category", "is_published"))


@content_route("/faqs/categories", methods=["GET"])
def faq_categories():
    return jsonify(tenant_service(FaqService).get_categories())


@content_route("/faqs/reorder", methods=["POST"])
def reorder_faqs():
    faqs = tenant_service(FaqService).reorder(id_list(json_body()))
    return jsonify([normalize_faq(f) for f in faqs])


@content_route("/faqs/bulk-delete", methods=["POST"])
def bulk_delete_faqs():
    deleted = tenant_service(FaqService).bulk_delete(id_list(json_body()))
    return jsonify({"deleted": deleted})


@content_route("/faqs/<faq_id>/duplicate", methods=["POST"])
def duplicate_faq(faq_id):
    faqs = tenant_service(FaqService)
    return jsonify(normalize_faq(faqs.duplicate(faqs.get_or_fail(faq_id)))), 201


@content_route("/faqs/<faq_id>/toggle-published", methods=["POST"])
def toggle_faq_published(faq_id):
    faqs = tenant_service(FaqService)
    return jsonify(normalize_faq(faqs.toggle_published(faqs.get_or_fail(faq_id))))


# ------------------------
# Testimonials
# ------------------------

register_crud("testimonials", "testimonials", TestimonialService, normalize_testimonial,
              ("is_featured", "is_published"))


@content_route("/testimonials/reorder", methods=["POST"])
def reorder_testimonials():
    testimonials = tenant_service(TestimonialService).reorder(id_list(json_body()))
    return jsonify([normalize_testimonial(t) for t in testimonials])


@content_route("/testimonials/<testimonial_id>/toggle-featured", methods=["POST"])
def toggle_testimonial_featured(testimonial_id):
    testimonials = tenant_service(TestimonialService)
    testimonial = testimonials.toggle_featured(testimonials.get_or_fail(testimonial_id))
    return jsonify(normalize_testimonial(testimonial))


@content_route("/testimonials/<testimonial_id>/toggle-published", methods=["POST"])
def toggle_testimonial_published(testimonial_id):
    testimonials = tenant_service(TestimonialService)
    testimonial = testimonials.toggle_published(testimonials.get_or_fail(testimonial_id))
    return jsonify(normalize_testimonial(testimonial))


@content_route("/testimonials-statistics", methods=["GET"])
def testimonial_statistics():
    return jsonify(tenant_service(TestimonialService).get_statistics())


# ------------------------
# Team
# ------------------------

register_crud("team", "team_members", TeamMemberService, normalize_team_member, ("is_published",))


@content_route("/team/reorder", methods=["POST"])
def reorder_team():
    members = tenant_service(TeamMemberService).reorder(id_list(json_body()))
    return jsonify([normalize_team_member(m) for m in members])


@content_route("/team/<member_id>/duplicate", methods=["POST"])
def duplicate_team_member(member_id):
    members = tenant_service(TeamMemberService)
    return jsonify(normalize_team_member(members.duplicate(members.get_or_fail(member_id)))), 201


@content_route("/team/<member_id>/toggle-published", methods=["POST"])
def toggle_team_member_published(member_id):
    members = tenant_service(TeamMemberService)
    return jsonify(normalize_team_member(members.toggle_published(members.get_or_fail(member_id))))


# ------------------------
# Menus
# ------------------------

register_crud("menus", "menus", MenuService, normalize_menu, ("location", "is_active"))


@content_route("/menu-locations", methods=["GET"])
def menu_locations():
    return jsonify(MenuService.get_available_locations())


@content_route("/menus/<menu_id>/items", methods=["POST"])
def add_menu_item(menu_id):
    menus = tenant_service(MenuService)
    return jsonify(normalize_menu(menus.add_item(menus.get_or_fail(menu_id), json_body()))), 201


@content_route("/menus/<menu_id>/items/<int:index>", methods=["PUT"])
def update_menu_item(menu_id, index):
    menus = tenant_service(MenuService)
    return jsonify(normalize_menu(menus.update_item(menus.get_or_fail(menu_id), index, json_body())))


@content_route("/menus/<menu_id>/items/<int:index>", methods=["DELETE"])
def remove_menu_item(menu_id, index):
    menus = tenant_service(MenuService)
    return jsonify(normalize_menu(menus.remove_item(menus.get_or_fail(menu_id), index)))


@content_route("/menus/<menu_id>/items/reorder", methods=["POST"])
def reorder_menu_items(menu_id):
    order = json_body().get("order")
    if not isinstance(order, list):
        abort(400, description="'order' must be a list of item indices")
    menus = tenant_service(MenuService)
    return jsonify(normalize_menu(menus.reorder_items(menus.get_or_fail(menu_id), order)))
