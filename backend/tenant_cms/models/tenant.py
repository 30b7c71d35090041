from tenant_cms.extensions import db
from .base import BaseModel


class Tenant(BaseModel):
    __tablename__ = "tenants"

    # Basic info
    name = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(255), unique=True, nullable=False, index=True)
    is_active = db.Column(db.Boolean, default=True)
    logo = db.Column(db.String(512), nullable=True)
    favicon = db.Column(db.String(512), nullable=True)
    contact_email = db.Column(db.String(255), nullable=True)
    contact_phone = db.Column(db.String(64), nullable=True)

    # Domains
    domain = db.Column(db.String(255), unique=True, nullable=True, index=True)
    additional_domains = db.Column(db.JSON, default=list)
    frontend_url = db.Column(db.String(512), nullable=True)

    active_template_id = db.Column(db.String(36), db.ForeignKey("templates.id"), nullable=True)
    settings = db.Column(db.JSON, default=dict)

    # Feature toggles
    enable_cms = db.Column(db.Boolean, default=True)
    features = db.Column(db.JSON, default=dict)

    # Deployment state
    deployment_status = db.Column(db.String(32), default="pending")  # pending | deployed | failed | removed
    deployed_at = db.Column(db.DateTime, nullable=True)
    nginx_config_path = db.Column(db.String(512), nullable=True)
    nginx_status = db.Column(db.String(32), default="pending")
    ssl_status = db.Column(db.String(32), default="pending")
    ssl_expires_at = db.Column(db.DateTime, nullable=True)

    active_template = db.relationship("Template", foreign_keys=[active_template_id])

    def has_feature(self, feature_name: str) -> bool:
        """
        Check if a feature is enabled for this tenant.
        """
        # Check JSON overrides first
        features = self.features or {}
        if features.get(feature_name) is not None:
            return features.get(feature_name)

        # Fallback to attribute toggles
        attr_name = f"enable_{feature_name}"
        return bool(getattr(self, attr_name, False))

    def all_domains(self):
        domains = [self.domain] if self.domain else []
        return domains + [d for d in (self.additional_domains or []) if d not in domains]
