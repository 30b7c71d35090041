from tenant_cms.extensions import db
from .base import BaseModel
from .tenant_mixin import TenantMixin


class Section(BaseModel, TenantMixin):
    __tablename__ = "sections"

    page_id = db.Column(db.String(36), db.ForeignKey("pages.id"), nullable=False, index=True)
    component_type = db.Column(db.String(100), nullable=False)  # hero, faq, blocks, ...
    order = db.Column(db.Integer, nullable=False, default=0)
    is_visible = db.Column(db.Boolean, default=True)
    content = db.Column(db.JSON, default=dict)
    styles = db.Column(db.JSON, default=dict)
    settings = db.Column(db.JSON, default=dict)

    page = db.relationship("Page", back_populates="sections")
