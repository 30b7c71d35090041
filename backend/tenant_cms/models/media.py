from tenant_cms.extensions import db
from .base import BaseModel
from .tenant_mixin import TenantMixin


class Media(BaseModel, TenantMixin):
    __tablename__ = "media"

    filename = db.Column(db.String(255), nullable=False)
    original_filename = db.Column(db.String(255), nullable=True)
    path = db.Column(db.String(512), nullable=True)
    url = db.Column(db.String(1024), nullable=False)
    disk = db.Column(db.String(50), default="local")
    mime_type = db.Column(db.String(150), nullable=True)
    size = db.Column(db.Integer, default=0)
    type = db.Column(db.String(20), nullable=False, default="document", index=True)  # image | video | audio | document
    alt_text = db.Column(db.String(255), nullable=True)
    caption = db.Column(db.Text, nullable=True)
    folder = db.Column(db.String(255), nullable=False, default="uploads", index=True)
    meta = db.Column(db.JSON, default=dict)
