from tenant_cms.extensions import db
from .base import BaseModel


class Template(BaseModel):
    """Site template catalog; shared across tenants."""
    __tablename__ = "templates"

    name = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(255), unique=True, nullable=False, index=True)
    description = db.Column(db.Text, nullable=True)
    preview_image = db.Column(db.String(512), nullable=True)
    version = db.Column(db.String(32), default="1.0.0")
    category = db.Column(db.String(100), nullable=True)
    is_active = db.Column(db.Boolean, default=True)
    is_premium = db.Column(db.Boolean, default=False)
    supported_components = db.Column(db.JSON, default=list)
    default_settings = db.Column(db.JSON, default=dict)
    default_colors = db.Column(db.JSON, default=dict)
