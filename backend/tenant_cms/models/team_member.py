from tenant_cms.extensions import db
from .base import BaseModel
from .tenant_mixin import TenantMixin


class TeamMember(BaseModel, TenantMixin):
    __tablename__ = "team_members"

    name = db.Column(db.String(255), nullable=False)
    title = db.Column(db.String(255), nullable=True)
    bio = db.Column(db.Text, nullable=True)
    image = db.Column(db.String(512), nullable=True)
    credentials = db.Column(db.String(255), nullable=True)
    social_links = db.Column(db.JSON, default=dict)
    order = db.Column(db.Integer, nullable=False, default=0)
    is_published = db.Column(db.Boolean, default=True)
