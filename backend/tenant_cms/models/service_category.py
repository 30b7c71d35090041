from tenant_cms.extensions import db
from .base import BaseModel
from .tenant_mixin import TenantMixin


class ServiceCategory(BaseModel, TenantMixin):
    __tablename__ = "service_categories"

    name = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(255), nullable=False, index=True)
    description = db.Column(db.Text, nullable=True)
    image = db.Column(db.String(512), nullable=True)
    order = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, default=True)

    __table_args__ = (
        db.UniqueConstraint("tenant_id", "slug", name="uq_service_category_slug_per_tenant"),
    )

    services = db.relationship(
        "Service",
        back_populates="category",
        order_by="Service.order",
    )
