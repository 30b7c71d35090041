from typing import Optional
from tenant_cms.extensions import db
from tenant_cms.models.audit_log import AuditLog


def log_action(
    *,
    tenant_id: Optional[str],
    actor_id: Optional[str],
    action: str,
    entity_type: str,
    entity_id: Optional[str],
    payload: dict | None = None
):
    if not tenant_id:
        return  # Tenant-less actions (global templates, super admin users) are not audited
    log = AuditLog()

    log.actor_id = actor_id
    log.tenant_id = tenant_id
    log.action = action
    log.entity_type = entity_type
    log.entity_id = entity_id
    log.payload = payload or {}

    db.session.add(log)
    return log
