from flask import g, jsonify
from flask_jwt_extended import jwt_required
from tenant_cms.application.users import UserService
from tenant_cms.models.user import ROLE_SUPER_ADMIN
from tenant_cms.normalizers.content import normalize_user
from tenant_cms.utils.decorators import (
    tenant_required,
    roles_required,
    current_actor_id,
    current_role,
    current_user,
)
from .common import json_body, paginated
from . import v1_bp


def _users():
    return UserService(g.current_tenant.id, actor_id=current_actor_id())


def _guard_payload(data):
    """Tenant admins cannot hand out super_admin or move users across tenants."""
    if current_role() != ROLE_SUPER_ADMIN:
        data.pop("tenant_id", None)
        if data.get("role") == ROLE_SUPER_ADMIN:
            return jsonify({"error": "Insufficient permissions"}), 403
    return None


def _modifiable(user):
    if not UserService.can_modify(user, current_user()):
        return jsonify({"error": "Insufficient permissions"}), 403
    return None


@v1_bp.route("/users", methods=["GET"])
@jwt_required()
@tenant_required
@roles_required("admin")
def list_users():
    return jsonify(paginated(_users(), normalize_user, "role")), 200


@v1_bp.route("/users/stats", methods=["GET"])
@jwt_required()
@tenant_required
@roles_required("admin")
def user_stats():
    return jsonify(_users().stats_by_role())


@v1_bp.route("/users", methods=["POST"])
@jwt_required()
@tenant_required
@roles_required("admin")
def create_user():
    data = json_body()
    denied = _guard_payload(data)
    if denied:
        return denied
    return jsonify(normalize_user(_users().create(data))), 201


@v1_bp.route("/users/<user_id>", methods=["GET"])
@jwt_required()
@tenant_required
@roles_required("admin")
def get_user(user_id):
    return jsonify(normalize_user(_users().get_or_fail(user_id)))


@v1_bp.route("/users/<user_id>", methods=["PUT"])
@jwt_required()
@tenant_required
@roles_required("admin", "editor")
def update_user(user_id):
    users = _users()
    user = users.get_or_fail(user_id)
    data = json_body()
    denied = _modifiable(user) or _guard_payload(data)
    if denied:
        return denied
    if current_role() == "editor":
        # Editors edit their own profile, never their role or status
        data.pop("role", None)
        data.pop("is_active", None)
    return jsonify(normalize_user(users.update(user, data)))


@v1_bp.route("/users/<user_id>/toggle-active", methods=["POST"])
@jwt_required()
@tenant_required
@roles_required("admin")
def toggle_user_active(user_id):
    users = _users()
    user = users.get_or_fail(user_id)
    denied = _modifiable(user)
    if denied:
        return denied
    return jsonify(normalize_user(users.toggle_active(user)))


@v1_bp.route("/users/<user_id>", methods=["DELETE"])
@jwt_required()
@tenant_required
@roles_required("admin")
def delete_user(user_id):
    users = _users()
    users.delete(users.get_or_fail(user_id), current_user=current_user())
    return jsonify({"message": "User deleted successfully"}), 200
