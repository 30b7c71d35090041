from tenant_cms.extensions import db
from .base import BaseModel
from .tenant_mixin import TenantMixin


class Service(BaseModel, TenantMixin):
    __tablename__ = "services"

    category_id = db.Column(db.String(36), db.ForeignKey("service_categories.id"), nullable=True, index=True)

    name = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(255), nullable=False, index=True)
    description = db.Column(db.Text, nullable=True)
    short_description = db.Column(db.Text, nullable=True)
    headline = db.Column(db.String(255), nullable=True)
    pricing = db.Column(db.String(255), nullable=True)
    get_started_url = db.Column(db.String(512), nullable=True)
    image = db.Column(db.String(512), nullable=True)
    secondary_image = db.Column(db.String(512), nullable=True)

    is_popular = db.Column(db.Boolean, default=False)
    is_published = db.Column(db.Boolean, default=True)
    scheduled_at = db.Column(db.DateTime, nullable=True, index=True)
    order = db.Column(db.Integer, nullable=False, default=0)

    content = db.Column(db.JSON, default=dict)
    stats = db.Column(db.JSON, default=list)
    benefits = db.Column(db.JSON, default=list)

    __table_args__ = (
        db.UniqueConstraint("tenant_id", "slug", name="uq_service_slug_per_tenant"),
    )

    category = db.relationship("ServiceCategory", back_populates="services")
