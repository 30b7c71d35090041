from werkzeug.security import generate_password_hash, check_password_hash
from tenant_cms.extensions import db
from .base import BaseModel

ROLE_SUPER_ADMIN = "super_admin"
ROLE_ADMIN = "admin"
ROLE_EDITOR = "editor"
ROLES = (ROLE_SUPER_ADMIN, ROLE_ADMIN, ROLE_EDITOR)


class User(BaseModel):
    __tablename__ = 'users'

    # Super admins are not bound to a tenant
    tenant_id = db.Column(db.String(36), db.ForeignKey("tenants.id"), nullable=True, index=True)

    name = db.Column(db.String(255), nullable=True)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password_hash = db.Column(db.String(256), nullable=False)
    avatar = db.Column(db.String(512), nullable=True)

    role = db.Column(db.String(50), nullable=False, default=ROLE_EDITOR)
    is_active = db.Column(db.Boolean, default=True)

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    @property
    def is_super_admin(self):
        return self.role == ROLE_SUPER_ADMIN
