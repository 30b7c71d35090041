from tenant_cms.extensions import db
from .base import BaseModel
from .tenant_mixin import TenantMixin


class Testimonial(BaseModel, TenantMixin):
    __tablename__ = "testimonials"

    author_name = db.Column(db.String(255), nullable=False)
    author_title = db.Column(db.String(255), nullable=True)
    author_image = db.Column(db.String(512), nullable=True)
    content = db.Column(db.Text, nullable=False)
    rating = db.Column(db.Integer, default=5)
    is_featured = db.Column(db.Boolean, default=False)
    is_published = db.Column(db.Boolean, default=True)
    order = db.Column(db.Integer, nullable=False, default=0)
