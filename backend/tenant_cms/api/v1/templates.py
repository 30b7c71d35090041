from flask import request, jsonify
from flask_jwt_extended import jwt_required
from tenant_cms.application.templates import TemplateService
from tenant_cms.normalizers.content import normalize_template
from tenant_cms.utils.decorators import roles_required, tenant_optional
from .common import json_body
from . import v1_bp

SUPER_ADMIN = "super_admin"


def _template(template, templates):
    return normalize_template(template, tenant_count=templates.tenant_count(template))


@v1_bp.route("/templates", methods=["GET"])
@tenant_optional
@jwt_required()
def list_templates():
    templates = TemplateService()
    active_only = request.args.get("active") not in (None, "", "0", "false")
    return jsonify([_template(t, templates) for t in templates.get_all(active_only=active_only)])


@v1_bp.route("/templates/statistics", methods=["GET"])
@tenant_optional
@jwt_required()
@roles_required(SUPER_ADMIN)
def template_statistics():
    return jsonify(TemplateService().get_statistics())


@v1_bp.route("/templates", methods=["POST"])
@tenant_optional
@jwt_required()
@roles_required(SUPER_ADMIN)
def create_template():
    templates = TemplateService()
    return jsonify(_template(templates.create(json_body()), templates)), 201


@v1_bp.route("/templates/<template_id>", methods=["GET"])
@tenant_optional
@jwt_required()
def get_template(template_id):
    templates = TemplateService()
    return jsonify(_template(templates.get_or_fail(template_id), templates))


@v1_bp.route("/templates/<template_id>", methods=["PUT"])
@tenant_optional
@jwt_required()
@roles_required(SUPER_ADMIN)
def update_template(template_id):
    templates = TemplateService()
    template = templates.update(templates.get_or_fail(template_id), json_body())
    return jsonify(_template(template, templates))


@v1_bp.route("/templates/<template_id>/toggle-active", methods=["POST"])
@tenant_optional
@jwt_required()
@roles_required(SUPER_ADMIN)
def toggle_template_active(template_id):
    templates = TemplateService()
    template = templates.toggle_active(templates.get_or_fail(template_id))
    return jsonify(_template(template, templates))


@v1_bp.route("/templates/<template_id>", methods=["DELETE"])
@tenant_optional
@jwt_required()
@roles_required(SUPER_ADMIN)
def delete_template(template_id):
    templates = TemplateService()
    templates.delete(templates.get_or_fail(template_id))
    return jsonify({"message": "Template deleted successfully"}), 200
