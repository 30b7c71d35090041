from tenant_cms.extensions import db
from .base import BaseModel
from .tenant_mixin import TenantMixin


class Faq(BaseModel, TenantMixin):
    __tablename__ = "faqs"

    question = db.Column(db.String(500), nullable=False)
    answer = db.Column(db.Text, nullable=False)
    category = db.Column(db.String(100), nullable=True, index=True)
    order = db.Column(db.Integer, nullable=False, default=0)
    is_published = db.Column(db.Boolean, default=True)
