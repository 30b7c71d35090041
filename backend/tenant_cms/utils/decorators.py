from functools import wraps
from flask import g, jsonify
from flask_jwt_extended import get_jwt, get_jwt_identity
from tenant_cms.extensions import db
from tenant_cms.models.user import ROLE_SUPER_ADMIN, User


def current_actor_id():
    return get_jwt_identity()


def current_role():
    return get_jwt().get("role")


def current_user():
    actor_id = current_actor_id()
    return db.session.get(User, actor_id) if actor_id else None


def tenant_optional(fn):
    """Marks a view that may run without a resolved tenant (super admin and auth routes)."""
    fn.tenant_optional = True
    return fn


def tenant_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        tenant = g.get("current_tenant")
        if not tenant:
            return jsonify({"error": "Tenant context missing"}), 400

        claims = get_jwt()
        if claims.get("role") != ROLE_SUPER_ADMIN and claims.get("tenant_id") != tenant.id:
            return jsonify({"error": "Tenant mismatch"}), 403

        return fn(*args, **kwargs)
    return wrapper


def roles_required(*allowed_roles):
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            role = get_jwt().get("role")

            # super_admin passes every role gate
            if role != ROLE_SUPER_ADMIN and role not in allowed_roles:
                return jsonify({"error": "Insufficient permissions"}), 403

            return fn(*args, **kwargs)
        return wrapper
    return decorator


def feature_enabled(feature_name):
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            tenant = g.get("current_tenant")

            if tenant is None or not tenant.has_feature(feature_name):
                return jsonify({
                    "error": f"Feature '{feature_name}' is disabled for this tenant"
                }), 403

            return fn(*args, **kwargs)
        return wrapper
    return decorator
