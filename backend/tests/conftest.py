import uuid

import pytest
from flask_jwt_extended import create_access_token

from tenant_cms import create_app
from tenant_cms.extensions import db
from tenant_cms.models import Tenant, User

MASTER_TENANT_ID = "1"
PASSWORD = "secret-password"


def build_test_app(tmp_path, overrides=None):
    config = {
        "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / f'cms_test_{uuid.uuid4().hex[:8]}.db'}",
        "UPLOAD_FOLDER": str(tmp_path / "uploads"),
        "NGINX_DEV_CONFIG_DIR": str(tmp_path / "nginx"),
        "MASTER_TENANT_ID": MASTER_TENANT_ID,
        "MASTER_BRAND_NAME": None,
        "SERVER_IP": None,
        "DEPLOYMENT_BASE_PATH": "/var/www/tenants",
    }
    if overrides:
        config.update(overrides)
    return create_app("testing", config)


@pytest.fixture()
def app(tmp_path):
    app = build_test_app(tmp_path)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


def make_tenant(name, tenant_id=None, domain=None, **fields):
    tenant = Tenant(
        id=tenant_id or str(uuid.uuid4()),
        name=name,
        slug=fields.pop("slug", None) or name.lower().replace(" ", "-"),
        domain=domain,
        additional_domains=fields.pop("additional_domains", []),
        features=fields.pop("features", {}),
        **fields,
    )
    db.session.add(tenant)
    db.session.commit()
    return tenant


def make_user(tenant, role="admin", email=None, password=PASSWORD, **fields):
    user = User(
        tenant_id=tenant.id if tenant is not None else None,
        email=email or f"{role}-{uuid.uuid4().hex[:6]}@example.com",
        name=fields.pop("name", role.title()),
        role=role,
        **fields,
    )
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    return user


def auth_headers(user, tenant=None):
    tenant_id = tenant.id if tenant is not None else user.tenant_id
    token = create_access_token(
        identity=user.id,
        additional_claims={"tenant_id": user.tenant_id or tenant_id, "role": user.role},
    )
    headers = {"Authorization": f"Bearer {token}"}
    if tenant_id:
        headers["X-Tenant-ID"] = tenant_id
    return headers


@pytest.fixture()
def master(app):
    return make_tenant("Acme Studio", tenant_id=MASTER_TENANT_ID, domain="acme.example.com",
                       contact_email="hello@acme.example.com")


@pytest.fixture()
def tenant(app):
    return make_tenant("Blue Fern", domain="bluefern.example.com", contact_email="team@bluefern.example.com")


@pytest.fixture()
def admin(tenant):
    return make_user(tenant, role="admin", email="admin@bluefern.example.com")


@pytest.fixture()
def editor(tenant):
    return make_user(tenant, role="editor", email="editor@bluefern.example.com")


@pytest.fixture()
def super_admin(app):
    return make_user(None, role="super_admin", email="root@example.com")


@pytest.fixture()
def admin_headers(admin, tenant):
    return auth_headers(admin, tenant)


@pytest.fixture()
def editor_headers(editor, tenant):
    return auth_headers(editor, tenant)


@pytest.fixture()
def super_headers(super_admin):
    return auth_headers(super_admin)
