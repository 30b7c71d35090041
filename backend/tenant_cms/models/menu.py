from tenant_cms.extensions import db
from .base import BaseModel
from .tenant_mixin import TenantMixin


class Menu(BaseModel, TenantMixin):
    __tablename__ = "menus"

    name = db.Column(db.String(255), nullable=False)
    location = db.Column(db.String(100), nullable=False)
    items = db.Column(db.JSON, default=list)
    is_active = db.Column(db.Boolean, default=True)

    __table_args__ = (
        db.UniqueConstraint("tenant_id", "location", name="uq_menu_location_per_tenant"),
    )
