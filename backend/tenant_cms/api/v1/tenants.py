from flask import request, jsonify
from flask_jwt_extended import jwt_required
from tenant_cms.application.tenants import TenantService
from tenant_cms.deployment.ssl import SSLService
from tenant_cms.deployment.tenant_deployment import TenantDeploymentService
from tenant_cms.domain.invariants.exceptions import ValidationError
from tenant_cms.normalizers.content import normalize_tenant
from tenant_cms.normalizers.pagination import normalize_pagination
from tenant_cms.utils.decorators import roles_required, tenant_optional, current_actor_id
from .common import json_body, list_filters
from . import v1_bp

SUPER_ADMIN = "super_admin"


def _tenants():
    return TenantService(actor_id=current_actor_id())


def _deployment_response(result):
    return jsonify(result.to_dict()), 200 if result.success else 422


# ------------------------
# Tenant CRUD
# ------------------------

@v1_bp.route("/tenants", methods=["GET"])
@tenant_optional
@jwt_required()
@roles_required(SUPER_ADMIN)
def list_tenants():
    pagination = _tenants().get_paginated(
        per_page=request.args.get("per_page", 15),
        filters=list_filters("is_active"),
        page=request.args.get("page", 1, type=int),
    )
    return jsonify(normalize_pagination(pagination, normalize_tenant))


@v1_bp.route("/tenants", methods=["POST"])
@tenant_optional
@jwt_required()
@roles_required(SUPER_ADMIN)
def create_tenant():
    data = json_body()
    clone_content = bool(data.pop("clone_content", False))
    skip_existing = bool(data.pop("skip_existing", True))
    tenant = _tenants().create(data, clone_content=clone_content, skip_existing=skip_existing)
    return jsonify(normalize_tenant(tenant)), 201


@v1_bp.route("/tenants/<tenant_id>", methods=["GET"])
@tenant_optional
@jwt_required()
@roles_required(SUPER_ADMIN)
def get_tenant(tenant_id):
    tenants = _tenants()
    tenant = tenants.get_or_fail(tenant_id)
    return jsonify({**normalize_tenant(tenant), "statistics": tenants.get_statistics(tenant)})


@v1_bp.route("/tenants/<tenant_id>", methods=["PUT"])
@tenant_optional
@jwt_required()
@roles_required(SUPER_ADMIN)
def update_tenant(tenant_id):
    tenants = _tenants()
    return jsonify(normalize_tenant(tenants.update(tenants.get_or_fail(tenant_id), json_body())))


@v1_bp.route("/tenants/<tenant_id>", methods=["DELETE"])
@tenant_optional
@jwt_required()
@roles_required(SUPER_ADMIN)
def delete_tenant(tenant_id):
    tenants = _tenants()
    tenants.delete(tenants.get_or_fail(tenant_id))
    return jsonify({"message": "Tenant deleted successfully"}), 200


@v1_bp.route("/tenants/<tenant_id>/toggle-active", methods=["POST"])
@tenant_optional
@jwt_required()
@roles_required(SUPER_ADMIN)
def toggle_tenant_active(tenant_id):
    tenants = _tenants()
    return jsonify(normalize_tenant(tenants.toggle_active(tenants.get_or_fail(tenant_id))))


@v1_bp.route("/tenants/<tenant_id>/template", methods=["PUT"])
@tenant_optional
@jwt_required()
@roles_required(SUPER_ADMIN)
def assign_tenant_template(tenant_id):
    tenants = _tenants()
    tenant = tenants.assign_template(tenants.get_or_fail(tenant_id), json_body().get("template_id"))
    return jsonify(normalize_tenant(tenant))


# ------------------------
# Content copy
# ------------------------

@v1_bp.route("/tenants/<tenant_id>/clone-content", methods=["POST"])
@tenant_optional
@jwt_required()
@roles_required(SUPER_ADMIN)
def clone_tenant_content(tenant_id):
    tenants = _tenants()
    data = json_body()
    counts = tenants.clone_content(
        tenants.get_or_fail(tenant_id),
        skip_existing=bool(data.get("skip_existing", True)),
        source_tenant_id=data.get("source_tenant_id"),
    )
    return jsonify({"message": "Content cloned", "counts": counts}), 200


@v1_bp.route("/tenants/<tenant_id>/duplicate", methods=["POST"])
@tenant_optional
@jwt_required()
@roles_required(SUPER_ADMIN)
def duplicate_tenant(tenant_id):
    tenants = _tenants()
    data = json_body()
    if not (data.get("name") or "").strip():
        raise ValidationError({"name": "The name field is required."})
    tenant = tenants.duplicate(tenants.get_or_fail(tenant_id), data["name"], domain=data.get("domain"))
    return jsonify(normalize_tenant(tenant)), 201


# ------------------------
# Domains + deployment
# ------------------------

@v1_bp.route("/tenants/<tenant_id>/verify-domain", methods=["POST"])
@tenant_optional
@jwt_required()
@roles_required(SUPER_ADMIN)
def verify_tenant_domain(tenant_id):
    tenants = _tenants()
    return jsonify(tenants.verify_domain_setup(tenants.get_or_fail(tenant_id)))


@v1_bp.route("/tenants/<tenant_id>/deployment", methods=["GET"])
@tenant_optional
@jwt_required()
@roles_required(SUPER_ADMIN)
def tenant_deployment_status(tenant_id):
    tenant = _tenants().get_or_fail(tenant_id)
    return jsonify(TenantDeploymentService().get_status(tenant))


@v1_bp.route("/tenants/<tenant_id>/deploy", methods=["POST"])
@tenant_optional
@jwt_required()
@roles_required(SUPER_ADMIN)
def deploy_tenant(tenant_id):
    tenant = _tenants().get_or_fail(tenant_id)
    return _deployment_response(TenantDeploymentService().deploy(tenant))


@v1_bp.route("/tenants/<tenant_id>/undeploy", methods=["POST"])
@tenant_optional
@jwt_required()
@roles_required(SUPER_ADMIN)
def undeploy_tenant(tenant_id):
    tenant = _tenants().get_or_fail(tenant_id)
    return _deployment_response(TenantDeploymentService().undeploy(tenant))


@v1_bp.route("/tenants/<tenant_id>/domains", methods=["POST"])
@tenant_optional
@jwt_required()
@roles_required(SUPER_ADMIN)
def add_tenant_domain(tenant_id):
    tenant = _tenants().get_or_fail(tenant_id)
    return _deployment_response(TenantDeploymentService().add_domain(tenant, json_body().get("domain") or ""))


@v1_bp.route("/tenants/<tenant_id>/domains/<domain>", methods=["DELETE"])
@tenant_optional
@jwt_required()
@roles_required(SUPER_ADMIN)
def remove_tenant_domain(tenant_id, domain):
    tenant = _tenants().get_or_fail(tenant_id)
    return _deployment_response(TenantDeploymentService().remove_domain(tenant, domain))


@v1_bp.route("/tenants/<tenant_id>/ssl", methods=["POST"])
@tenant_optional
@jwt_required()
@roles_required(SUPER_ADMIN)
def generate_tenant_ssl(tenant_id):
    tenant = _tenants().get_or_fail(tenant_id)
    return _deployment_response(SSLService().generate_certificate(tenant, json_body().get("domain")))
