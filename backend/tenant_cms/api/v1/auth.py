from flask import request, jsonify, g
from flask_jwt_extended import (
    create_access_token,
    create_refresh_token,
    get_jwt,
    get_jwt_identity,
    jwt_required,
)
from tenant_cms.extensions import db
from tenant_cms.models.user import User
from tenant_cms.normalizers.content import normalize_user
from tenant_cms.utils.decorators import tenant_optional, current_user
from . import v1_bp


def _claims(user, tenant):
    # super_admin tokens carry the tenant they logged in against, if any
    tenant_id = user.tenant_id if not user.is_super_admin else (tenant.id if tenant else None)
    return {"tenant_id": tenant_id, "role": user.role}


@v1_bp.route("/auth/login", methods=["POST"])
@tenant_optional
def login():
    data = request.get_json(silent=True)
    if not data:
        return jsonify({"error": "Invalid request body"}), 400

    email = (data.get("email") or "").strip().lower()
    password = data.get("password")

    if not email or not password:
        return jsonify({"error": "Email and password required"}), 400

    tenant = g.get("current_tenant")
    user = User.query.filter_by(email=email).first()

    if not user or not user.check_password(password):
        return jsonify({"error": "Invalid credentials"}), 401

    if not user.is_super_admin:
        if not tenant:
            return jsonify({"error": "Tenant context missing"}), 400
        if user.tenant_id != tenant.id:
            return jsonify({"error": "Invalid credentials"}), 401

    if not user.is_active:
        return jsonify({"error": "User account disabled"}), 403

    claims = _claims(user, tenant)
    access_token = create_access_token(identity=user.id, additional_claims=claims)
    refresh_token = create_refresh_token(identity=user.id, additional_claims=claims)

    return jsonify({
        "access_token": access_token,
        "refresh_token": refresh_token,
        "user": normalize_user(user),
    }), 200


@v1_bp.route("/auth/refresh", methods=["POST"])
@tenant_optional
@jwt_required(refresh=True)
def refresh():
    user = db.session.get(User, get_jwt_identity())
    if not user or not user.is_active:
        return jsonify({"error": "User account disabled"}), 403

    claims = {"tenant_id": get_jwt().get("tenant_id"), "role": user.role}
    return jsonify({
        "access_token": create_access_token(identity=user.id, additional_claims=claims)
    }), 200


@v1_bp.route("/auth/me", methods=["GET"])
@tenant_optional
@jwt_required()
def me():
    user = current_user()
    if not user:
        return jsonify({"error": "User not found"}), 404
    return jsonify(normalize_user(user)), 200
