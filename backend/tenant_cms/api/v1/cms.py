# tenant_cms/api/v1/cms.py
from flask import request, jsonify, abort
from flask_jwt_extended import jwt_required
from tenant_cms.application.pages import PageService
from tenant_cms.application.sections import SectionService
from tenant_cms.domain.blocks import BLOCK_CATEGORIES, get_block_definitions
from tenant_cms.domain.registry import registry
from tenant_cms.normalizers.content import normalize_page_version
from tenant_cms.normalizers.page import normalize_page
from tenant_cms.normalizers.section import normalize_section
from tenant_cms.utils.decorators import tenant_required, roles_required, feature_enabled
from tenant_cms.utils.optimistic_lock import enforce_optimistic_lock
from .common import tenant_service, json_body, id_list, paginated
from . import v1_bp

CONTENT_ROLES = ("admin", "editor")


def _admin_page(page):
    return normalize_page(page, admin=True)


def _admin_section(section):
    return normalize_section(section, admin=True)


# ------------------------
# Pages
# ------------------------

@v1_bp.route("/pages", methods=["GET"])
@jwt_required()
@tenant_required
@roles_required(*CONTENT_ROLES)
@feature_enabled("cms")
def list_pages():
    pages = tenant_service(PageService)
    return jsonify(paginated(pages, lambda p: normalize_page(p, admin=True, include_sections=False), "status"))


@v1_bp.route("/pages", methods=["POST"])
@jwt_required()
@tenant_required
@roles_required(*CONTENT_ROLES)
@feature_enabled("cms")
def create_page():
    page = tenant_service(PageService).create(json_body())
    return jsonify(_admin_page(page)), 201


@v1_bp.route("/pages/<page_id>", methods=["GET"])
@jwt_required()
@tenant_required
@roles_required(*CONTENT_ROLES)
@feature_enabled("cms")
def get_page(page_id):
    return jsonify(_admin_page(tenant_service(PageService).get_or_fail(page_id)))


@v1_bp.route("/pages/<page_id>/preview", methods=["GET"])
@jwt_required()
@tenant_required
@roles_required(*CONTENT_ROLES)
@feature_enabled("cms")
def preview_page(page_id):
    # Rendered like the public page, whatever its status
    return jsonify(normalize_page(tenant_service(PageService).get_or_fail(page_id), admin=False))


@v1_bp.route("/pages/<page_id>", methods=["PUT"])
@jwt_required()
@tenant_required
@roles_required(*CONTENT_ROLES)
@feature_enabled("cms")
def update_page(page_id):
    pages = tenant_service(PageService)
    page = pages.get_or_fail(page_id)

    # -----------------------
    # Optimistic Locking Check
    # -----------------------
    enforce_optimistic_lock(page)

    data = json_body()
    # Status changes go through publish/unpublish
    data.pop("status", None)
    return jsonify(_admin_page(pages.update(page, data)))


@v1_bp.route("/pages/<page_id>/meta", methods=["PUT"])
@jwt_required()
@tenant_required
@roles_required(*CONTENT_ROLES)
@feature_enabled("cms")
def update_page_meta(page_id):
    pages = tenant_service(PageService)
    page = pages.update_meta(pages.get_or_fail(page_id), json_body())
    return jsonify(_admin_page(page))


@v1_bp.route("/pages/<page_id>", methods=["DELETE"])
@jwt_required()
@tenant_required
@roles_required(*CONTENT_ROLES)
@feature_enabled("cms")
def delete_page(page_id):
    pages = tenant_service(PageService)
    pages.delete(pages.get_or_fail(page_id))
    return jsonify({"message": "Page deleted successfully"}), 200


@v1_bp.route("/pages/reorder", methods=["POST"])
@jwt_required()
@tenant_required
@roles_required(*CONTENT_ROLES)
@feature_enabled("cms")
def reorder_pages():
    pages = tenant_service(PageService).reorder(id_list(json_body()))
    return jsonify([normalize_page(p, admin=True, include_sections=False) for p in pages])


@v1_bp.route("/pages/<page_id>/duplicate", methods=["POST"])
@jwt_required()
@tenant_required
@roles_required(*CONTENT_ROLES)
@feature_enabled("cms")
def duplicate_page(page_id):
    pages = tenant_service(PageService)
    data = json_body()
    clone = pages.duplicate(pages.get_or_fail(page_id), {
        "slug": data.get("slug"),
        "title": data.get("title"),
    })
    return jsonify(_admin_page(clone)), 201


# ------------------------
# Publishing
# ------------------------

@v1_bp.route("/pages/<page_id>/publish", methods=["POST"])
@jwt_required()
@tenant_required
@roles_required(*CONTENT_ROLES)
@feature_enabled("cms")
def publish_page(page_id):
    pages = tenant_service(PageService)
    result = pages.publish(pages.get_or_fail(page_id))
    return jsonify({"message": "Page published", **result}), 200


@v1_bp.route("/pages/<page_id>/unpublish", methods=["POST"])
@jwt_required()
@tenant_required
@roles_required(*CONTENT_ROLES)
@feature_enabled("cms")
def unpublish_page(page_id):
    pages = tenant_service(PageService)
    result = pages.unpublish(pages.get_or_fail(page_id))
    return jsonify({"message": "Page unpublished successfully", **result}), 200


@v1_bp.route("/pages/<page_id>/schedule", methods=["POST"])
@jwt_required()
@tenant_required
@roles_required(*CONTENT_ROLES)
@feature_enabled("cms")
def schedule_page(page_id):
    pages = tenant_service(PageService)
    result = pages.schedule(pages.get_or_fail(page_id), json_body().get("scheduled_at"))
    return jsonify({"message": "Page scheduled", **result}), 200


@v1_bp.route("/pages/<page_id>/schedule", methods=["DELETE"])
@jwt_required()
@tenant_required
@roles_required(*CONTENT_ROLES)
@feature_enabled("cms")
def unschedule_page(page_id):
    pages = tenant_service(PageService)
    result = pages.unschedule(pages.get_or_fail(page_id))
    return jsonify({"message": "Schedule cancelled", **result}), 200


@v1_bp.route("/pages/<page_id>/versions", methods=["GET"])
@jwt_required()
@tenant_required
@roles_required(*CONTENT_ROLES)
@feature_enabled("cms")
def list_versions(page_id):
    pages = tenant_service(PageService)
    versions = pages.versions(pages.get_or_fail(page_id))
    return jsonify([normalize_page_version(v) for v in versions])


@v1_bp.route("/pages/<page_id>/rollback/<int:version>", methods=["POST"])
@jwt_required()
@tenant_required
@roles_required("admin")
@feature_enabled("cms")
def rollback_page(page_id, version):
    pages = tenant_service(PageService)
    result = pages.rollback(pages.get_or_fail(page_id), version)
    return jsonify({"message": "Page rolled back", **result}), 200


# ------------------------
# Sections
# ------------------------

@v1_bp.route("/pages/<page_id>/sections", methods=["GET"])
@jwt_required()
@tenant_required
@roles_required(*CONTENT_ROLES)
@feature_enabled("cms")
def list_sections(page_id):
    tenant_service(PageService).get_or_fail(page_id)
    sections = tenant_service(SectionService).get_by_page(page_id)
    return jsonify([_admin_section(s) for s in sections])


@v1_bp.route("/pages/<page_id>/sections", methods=["POST"])
@jwt_required()
@tenant_required
@roles_required(*CONTENT_ROLES)
@feature_enabled("cms")
def create_section(page_id):
    tenant_service(PageService).get_or_fail(page_id)
    data = json_body()
    data["page_id"] = page_id
    section = tenant_service(SectionService).create(data)
    return jsonify(_admin_section(section)), 201


@v1_bp.route("/pages/<page_id>/sections/reorder", methods=["POST"])
@jwt_required()
@tenant_required
@roles_required(*CONTENT_ROLES)
@feature_enabled("cms")
def reorder_sections(page_id):
    tenant_service(PageService).get_or_fail(page_id)
    data = json_body()
    items = data.get("sections") if "sections" in data else id_list(data)
    if not isinstance(items, list):
        abort(400, description="'sections' must be a list")
    sections = tenant_service(SectionService).reorder_sections(page_id, items)
    return jsonify([_admin_section(s) for s in sections])


@v1_bp.route("/sections/<section_id>", methods=["GET"])
@jwt_required()
@tenant_required
@roles_required(*CONTENT_ROLES)
@feature_enabled("cms")
def get_section(section_id):
    return jsonify(_admin_section(tenant_service(SectionService).get_or_fail(section_id)))


@v1_bp.route("/sections/<section_id>", methods=["PUT"])
@jwt_required()
@tenant_required
@roles_required(*CONTENT_ROLES)
@feature_enabled("cms")
def update_section(section_id):
    sections = tenant_service(SectionService)
    section = sections.get_or_fail(section_id)
    enforce_optimistic_lock(section)
    return jsonify(_admin_section(sections.update(section, json_body())))


@v1_bp.route("/sections/<section_id>", methods=["DELETE"])
@jwt_required()
@tenant_required
@roles_required(*CONTENT_ROLES)
@feature_enabled("cms")
def delete_section(section_id):
    sections = tenant_service(SectionService)
    sections.delete(sections.get_or_fail(section_id))
    return jsonify({"message": "Section deleted successfully"}), 200


@v1_bp.route("/sections/<section_id>/duplicate", methods=["POST"])
@jwt_required()
@tenant_required
@roles_required(*CONTENT_ROLES)
@feature_enabled("cms")
def duplicate_section(section_id):
    sections = tenant_service(SectionService)
    clone = sections.duplicate(sections.get_or_fail(section_id))
    return jsonify(_admin_section(clone)), 201


@v1_bp.route("/sections/<section_id>/move-up", methods=["POST"])
@jwt_required()
@tenant_required
@roles_required(*CONTENT_ROLES)
@feature_enabled("cms")
def move_section_up(section_id):
    sections = tenant_service(SectionService)
    return jsonify(_admin_section(sections.move_up(sections.get_or_fail(section_id))))


@v1_bp.route("/sections/<section_id>/move-down", methods=["POST"])
@jwt_required()
@tenant_required
@roles_required(*CONTENT_ROLES)
@feature_enabled("cms")
def move_section_down(section_id):
    sections = tenant_service(SectionService)
    return jsonify(_admin_section(sections.move_down(sections.get_or_fail(section_id))))


@v1_bp.route("/sections/<section_id>/toggle-visibility", methods=["POST"])
@jwt_required()
@tenant_required
@roles_required(*CONTENT_ROLES)
@feature_enabled("cms")
def toggle_section_visibility(section_id):
    sections = tenant_service(SectionService)
    return jsonify(_admin_section(sections.toggle_visibility(sections.get_or_fail(section_id))))


# ------------------------
# Blocks (stored inside a section's content)
# ------------------------

@v1_bp.route("/sections/<section_id>/blocks", methods=["GET"])
@jwt_required()
@tenant_required
@roles_required(*CONTENT_ROLES)
@feature_enabled("cms")
def list_blocks(section_id):
    sections = tenant_service(SectionService)
    return jsonify(sections.get_blocks(sections.get_or_fail(section_id)))


@v1_bp.route("/sections/<section_id>/blocks", methods=["POST"])
@jwt_required()
@tenant_required
@roles_required(*CONTENT_ROLES)
@feature_enabled("cms")
def add_block(section_id):
    sections = tenant_service(SectionService)
    data = json_body()
    block = sections.add_block(
        sections.get_or_fail(section_id),
        data.get("type"),
        data=data.get("data"),
        settings=data.get("settings"),
        position=data.get("position"),
    )
    return jsonify(block), 201


@v1_bp.route("/sections/<section_id>/blocks", methods=["PUT"])
@jwt_required()
@tenant_required
@roles_required(*CONTENT_ROLES)
@feature_enabled("cms")
def save_block(section_id):
    sections = tenant_service(SectionService)
    block = sections.save_block(sections.get_or_fail(section_id), json_body())
    return jsonify(block)


@v1_bp.route("/sections/<section_id>/blocks/<block_id>", methods=["PATCH"])
@jwt_required()
@tenant_required
@roles_required(*CONTENT_ROLES)
@feature_enabled("cms")
def update_block(section_id, block_id):
    sections = tenant_service(SectionService)
    data = json_body()
    block = sections.update_block(
        sections.get_or_fail(section_id), block_id, data=data.get("data"), settings=data.get("settings")
    )
    return jsonify(block)


@v1_bp.route("/sections/<section_id>/blocks/<block_id>", methods=["DELETE"])
@jwt_required()
@tenant_required
@roles_required(*CONTENT_ROLES)
@feature_enabled("cms")
def delete_block(section_id, block_id):
    sections = tenant_service(SectionService)
    section = sections.delete_block(sections.get_or_fail(section_id), block_id)
    return jsonify(_admin_section(section))


@v1_bp.route("/sections/<section_id>/blocks/<block_id>/move", methods=["POST"])
@jwt_required()
@tenant_required
@roles_required(*CONTENT_ROLES)
@feature_enabled("cms")
def move_block(section_id, block_id):
    index = json_body().get("index")
    if not isinstance(index, int) or isinstance(index, bool):
        abort(400, description="'index' must be an integer")
    sections = tenant_service(SectionService)
    section = sections.move_block(sections.get_or_fail(section_id), block_id, index)
    return jsonify(_admin_section(section))


@v1_bp.route("/sections/<section_id>/blocks/<block_id>/duplicate", methods=["POST"])
@jwt_required()
@tenant_required
@roles_required(*CONTENT_ROLES)
@feature_enabled("cms")
def duplicate_block(section_id, block_id):
    sections = tenant_service(SectionService)
    return jsonify(sections.duplicate_block(sections.get_or_fail(section_id), block_id)), 201


@v1_bp.route("/sections/<section_id>/blocks/<block_id>/toggle-visibility", methods=["POST"])
@jwt_required()
@tenant_required
@roles_required(*CONTENT_ROLES)
@feature_enabled("cms")
def toggle_block_visibility(section_id, block_id):
    sections = tenant_service(SectionService)
    section = sections.toggle_block_visibility(sections.get_or_fail(section_id), block_id)
    return jsonify(_admin_section(section))


# ------------------------
# Type catalogs
# ------------------------

@v1_bp.route("/section-types", methods=["GET"])
@jwt_required()
@tenant_required
def list_section_types():
    if request.args.get("grouped"):
        return jsonify(registry.get_types_by_category())
    return jsonify(registry.get_all_types_with_schema())


@v1_bp.route("/section-types/<type_name>", methods=["GET"])
@jwt_required()
@tenant_required
def get_section_type(type_name):
    schema = registry.get_type_schema(type_name)
    if schema is None:
        abort(404, description="Unknown section type")
    return jsonify({**schema, "default_content": registry.get_default_content(type_name)})


@v1_bp.route("/block-types", methods=["GET"])
@jwt_required()
@tenant_required
def list_block_types():
    category = request.args.get("category")
    if category and category not in BLOCK_CATEGORIES:
        abort(400, description="Unknown block category")
    return jsonify(get_block_definitions(category))
