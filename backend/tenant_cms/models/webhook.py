from tenant_cms.extensions import db
from .base import BaseModel


class Webhook(BaseModel):
    __tablename__ = "webhooks"

    # NULL tenant_id means the webhook listens to every tenant
    tenant_id = db.Column(db.String(36), db.ForeignKey("tenants.id"), nullable=True, index=True)

    name = db.Column(db.String(255), nullable=False)
    url = db.Column(db.String(1024), nullable=False)
    secret = db.Column(db.String(255), nullable=False)
    events = db.Column(db.JSON, default=list)
    is_active = db.Column(db.Boolean, default=True)

    last_triggered_at = db.Column(db.DateTime, nullable=True)
    last_status = db.Column(db.Integer, nullable=True)
    last_error = db.Column(db.Text, nullable=True)

    def listens_to(self, event: str) -> bool:
        events = self.events or []
        return "*" in events or event in events
