from tenant_cms.extensions import db
from .base import BaseModel
from .tenant_mixin import TenantMixin


class Setting(BaseModel, TenantMixin):
    __tablename__ = "settings"

    group = db.Column(db.String(100), nullable=False, default="general", index=True)
    key = db.Column(db.String(150), nullable=False)
    value = db.Column(db.JSON, nullable=True)

    __table_args__ = (
        db.UniqueConstraint("tenant_id", "key", name="uq_setting_key_per_tenant"),
    )
