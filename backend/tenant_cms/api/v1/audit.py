from flask import request, jsonify, g
from flask_jwt_extended import jwt_required
from tenant_cms.utils.decorators import tenant_required, roles_required
from tenant_cms.models.audit_log import AuditLog
from tenant_cms.normalizers.audit import normalize_audit_log
from tenant_cms.normalizers.pagination import normalize_cursor_page
from tenant_cms.utils.pagination import clamp_per_page, paginate_cursor
from . import v1_bp


@v1_bp.route("/audit", methods=["GET"])
@jwt_required()
@tenant_required
@roles_required("admin")
def list_audit_logs():
    tenant = g.current_tenant

    query = AuditLog.query.filter(
        AuditLog.tenant_id == tenant.id
    )

    # Optional filters
    for column in ("action", "entity_type", "entity_id", "actor_id"):
        if value := request.args.get(column):
            query = query.filter(getattr(AuditLog, column) == value)

    # Cursor pagination, newest first
    logs, cursor = paginate_cursor(
        query,
        model=AuditLog,
        limit=clamp_per_page(request.args.get("limit"), default=20),
        cursor=request.args.get("cursor"),
    )

    return jsonify(normalize_cursor_page(logs, normalize_audit_log, cursor)), 200
