from tenant_cms.extensions import db
from .base import BaseModel
from .tenant_mixin import TenantMixin


class ContactSubmission(BaseModel, TenantMixin):
    __tablename__ = "contact_submissions"

    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False, index=True)
    phone = db.Column(db.String(50), nullable=True)
    subject = db.Column(db.String(255), nullable=True)
    message = db.Column(db.Text, nullable=False)

    # contact_form | newsletter
    source = db.Column(db.String(50), nullable=False, default="contact_form", index=True)
    # new | read | replied | archived
    status = db.Column(db.String(50), nullable=False, default="new", index=True)
    notes = db.Column(db.Text, nullable=True)

    read_at = db.Column(db.DateTime, nullable=True)
    replied_at = db.Column(db.DateTime, nullable=True)
