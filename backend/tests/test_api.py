import io

import pytest
from PIL import Image

from tenant_cms.models import Tenant

from conftest import PASSWORD, auth_headers, make_tenant, make_user


def _login(client, email, tenant=None, password=PASSWORD):
    headers = {"X-Tenant-ID": tenant.id} if tenant is not None else {}
    return client.post("/api/v1/auth/login", json={"email": email, "password": password}, headers=headers)


def _page(client, headers, **data):
    data.setdefault("title", "Home")
    response = client.post("/api/v1/pages", json=data, headers=headers)
    assert response.status_code == 201, response.get_json()
    return response.get_json()


# ------------------------
# Plumbing
# ------------------------

def test_health_needs_no_tenant(client):
    response = client.get("/api/v1/health")
    assert response.status_code == 200
    assert response.get_json() == {"status": "ok", "service": "tenant-cms"}


def test_openapi_document_is_served(client):
    response = client.get("/openapi/cms.yaml")
    assert response.status_code == 200
    assert b"openapi:" in response.data


def test_unknown_tenant_id_is_rejected(client, tenant):
    response = client.get("/api/v1/public/pages", headers={"X-Tenant-ID": "nope"})
    assert response.status_code == 404
    assert response.get_json() == {"error": "Invalid tenant"}


def test_inactive_tenant_id_is_rejected(client, tenant):
    tenant.is_active = False
    response = client.get("/api/v1/public/pages", headers={"X-Tenant-ID": tenant.id})
    assert response.status_code == 404


def test_tenant_routes_need_a_tenant(client):
    response = client.get("/api/v1/public/pages")
    assert response.status_code == 400
    assert response.get_json() == {"error": "Tenant could not be resolved"}


def test_tenant_resolved_from_host(client, tenant):
    response = client.get("/api/v1/public/site", base_url="http://bluefern.example.com")
    assert response.status_code == 200
    assert response.get_json()["tenant"]["id"] == tenant.id


def test_tenant_resolved_from_proxy_header(client, tenant):
    response = client.get("/api/v1/public/site", headers={"X-Tenant-Domain": "BlueFern.example.com"})
    assert response.status_code == 200
    assert response.get_json()["tenant"]["name"] == "Blue Fern"


def test_unknown_route_is_a_json_404(client):
    response = client.get("/api/v1/does-not-exist")
    assert response.status_code == 404
    assert response.get_json()["error"] == "Not Found"


# ------------------------
# Auth
# ------------------------

def test_login_returns_tokens(client, tenant, admin):
    response = _login(client, "ADMIN@bluefern.example.com", tenant)
    assert response.status_code == 200
    body = response.get_json()
    assert body["access_token"] and body["refresh_token"]
    assert body["user"]["email"] == "admin@bluefern.example.com"

    me = client.get("/api/v1/auth/me", headers={
        "Authorization": f"Bearer {body['access_token']}", "X-Tenant-ID": tenant.id,
    })
    assert me.status_code == 200
    assert me.get_json()["id"] == admin.id


def test_login_failures(client, tenant, admin):
    other = make_tenant("Other Co")
    assert client.post("/api/v1/auth/login", headers={"X-Tenant-ID": tenant.id}).status_code == 400
    assert _login(client, admin.email, tenant, password="wrong").status_code == 401
    assert _login(client, admin.email, other).status_code == 401
    assert _login(client, admin.email).status_code == 400

    admin.is_active = False
    assert _login(client, admin.email, tenant).status_code == 403


def test_super_admin_logs_in_without_tenant(client, super_admin):
    response = _login(client, super_admin.email)
    assert response.status_code == 200
    assert response.get_json()["user"]["role"] == "super_admin"


def test_refresh_token(client, tenant, admin):
    tokens = _login(client, admin.email, tenant).get_json()
    response = client.post("/api/v1/auth/refresh", headers={"Authorization": f"Bearer {tokens['refresh_token']}"})
    assert response.status_code == 200
    assert response.get_json()["access_token"]


def test_missing_token(client, tenant):
    response = client.get("/api/v1/pages", headers={"X-Tenant-ID": tenant.id})
    assert response.status_code == 401


def test_token_for_another_tenant(client, tenant, admin):
    other = make_tenant("Other Co")
    headers = auth_headers(admin)
    headers["X-Tenant-ID"] = other.id
    response = client.get("/api/v1/pages", headers=headers)
    assert response.status_code == 403
    assert response.get_json() == {"error": "Tenant mismatch"}


def test_role_gates(client, tenant, editor_headers, admin_headers, super_admin):
    assert client.get("/api/v1/settings", headers=editor_headers).status_code == 403
    assert client.get("/api/v1/audit", headers=editor_headers).status_code == 403
    assert client.get("/api/v1/settings", headers=admin_headers).status_code == 200
    assert client.get("/api/v1/tenants", headers=admin_headers).status_code == 403
    # super_admin passes tenant-scoped gates for any tenant
    assert client.get("/api/v1/settings", headers=auth_headers(super_admin, tenant)).status_code == 200


def test_disabled_feature(client, app):
    locked = make_tenant("Locked", features={"cms": False})
    headers = auth_headers(make_user(locked))
    response = client.get("/api/v1/pages", headers=headers)
    assert response.status_code == 403
    assert "cms" in response.get_json()["error"]


# ------------------------
# Pages, sections, blocks
# ------------------------

def test_page_validation_error_shape(client, editor_headers):
    response = client.post("/api/v1/pages", json={}, headers=editor_headers)
    assert response.status_code == 422
    body = response.get_json()
    assert body["error"] == "ValidationError"
    assert "title" in body["errors"]


def test_non_object_body_is_a_bad_request(client, editor_headers):
    response = client.post("/api/v1/pages", json=["Home"], headers=editor_headers)
    assert response.status_code == 400


def test_page_crud_and_listing(client, editor_headers):
    home = _page(client, editor_headers, sections=[{"component_type": "hero"}])
    about = _page(client, editor_headers, title="About us")
    assert (home["slug"], about["slug"]) == ("home", "about-us")
    assert home["status"] == "draft"
    assert [s["component_type"] for s in home["sections"]] == ["hero"]

    listing = client.get("/api/v1/pages?per_page=1", headers=editor_headers).get_json()
    assert listing["pagination"] == {"page": 1, "per_page": 1, "total": 2, "total_pages": 2}
    assert "sections" not in listing["items"][0]

    response = client.put(f"/api/v1/pages/{about['id']}", json={"title": "About", "status": "published"},
                          headers=editor_headers)
    assert response.status_code == 200
    assert response.get_json()["title"] == "About"
    assert response.get_json()["status"] == "draft"

    meta = client.put(f"/api/v1/pages/{about['id']}/meta", json={"title": "About | Blue Fern"},
                      headers=editor_headers).get_json()
    assert meta["meta"]["title"] == "About | Blue Fern"

    reordered = client.post("/api/v1/pages/reorder", json={"ids": [about["id"], home["id"]]},
                            headers=editor_headers).get_json()
    assert [p["id"] for p in reordered] == [about["id"], home["id"]]

    copy = client.post(f"/api/v1/pages/{home['id']}/duplicate", json={}, headers=editor_headers)
    assert copy.status_code == 201
    assert copy.get_json()["slug"] != "home"

    assert client.delete(f"/api/v1/pages/{about['id']}", headers=editor_headers).status_code == 200
    assert client.get(f"/api/v1/pages/{about['id']}", headers=editor_headers).status_code == 404


def test_pages_are_tenant_scoped(client, editor_headers):
    other = make_tenant("Other Co")
    foreign = _page(client, auth_headers(make_user(other)))
    assert client.get(f"/api/v1/pages/{foreign['id']}", headers=editor_headers).status_code == 404


def test_optimistic_lock(client, editor_headers):
    page = _page(client, editor_headers)
    url = f"/api/v1/pages/{page['id']}"

    stale = {**editor_headers, "If-Unmodified-Since": "Mon, 01 Jan 2001 00:00:00 GMT"}
    response = client.put(url, json={"title": "Stale"}, headers=stale)
    assert response.status_code == 409

    fresh = {**editor_headers, "If-Unmodified-Since": "Fri, 01 Jan 2100 00:00:00 GMT"}
    assert client.put(url, json={"title": "Fresh"}, headers=fresh).status_code == 200

    garbage = {**editor_headers, "If-Unmodified-Since": "yesterday-ish"}
    assert client.put(url, json={"title": "?"}, headers=garbage).status_code == 400


def test_section_endpoints(client, editor_headers):
    page = _page(client, editor_headers)
    url = f"/api/v1/pages/{page['id']}/sections"

    hero = client.post(url, json={"component_type": "hero"}, headers=editor_headers)
    assert hero.status_code == 201
    hero = hero.get_json()
    assert hero["order"] == 0
    assert hero["content_kind"] == "fields"
    assert hero["styles"]["padding_top"] == "lg"

    bad = client.post(url, json={"component_type": "hero", "content": {"description": "x"}}, headers=editor_headers)
    assert bad.status_code == 422
    assert "content.title" in bad.get_json()["errors"]

    cta = client.post(url, json={"component_type": "cta"}, headers=editor_headers).get_json()
    assert cta["order"] == 1

    moved = client.post(f"/api/v1/sections/{cta['id']}/move-up", headers=editor_headers).get_json()
    assert moved["order"] == 0

    reordered = client.post(f"{url}/reorder", json={"ids": [hero["id"], cta["id"]]}, headers=editor_headers)
    assert [s["id"] for s in reordered.get_json()] == [hero["id"], cta["id"]]

    hidden = client.post(f"/api/v1/sections/{cta['id']}/toggle-visibility", headers=editor_headers).get_json()
    assert hidden["is_visible"] is False

    updated = client.put(f"/api/v1/sections/{hero['id']}", json={"content": {"title": "Hello"}},
                         headers=editor_headers)
    assert updated.status_code == 200
    assert updated.get_json()["content"]["title"] == "Hello"

    copy = client.post(f"/api/v1/sections/{hero['id']}/duplicate", headers=editor_headers)
    assert copy.status_code == 201

    assert client.delete(f"/api/v1/sections/{cta['id']}", headers=editor_headers).status_code == 200
    remaining = client.get(url, headers=editor_headers).get_json()
    assert [s["order"] for s in remaining] == [0, 1]


def test_block_endpoints(client, editor_headers):
    page = _page(client, editor_headers)
    section = client.post(f"/api/v1/pages/{page['id']}/sections", json={"component_type": "blocks"},
                          headers=editor_headers).get_json()
    blocks_url = f"/api/v1/sections/{section['id']}/blocks"

    heading = client.post(blocks_url, json={"type": "heading", "data": {"text": "Welcome"}}, headers=editor_headers)
    assert heading.status_code == 201
    heading = heading.get_json()
    assert heading["id"].startswith("block_")
    text = client.post(blocks_url, json={"type": "text"}, headers=editor_headers).get_json()

    assert client.post(blocks_url, json={"type": "marquee"}, headers=editor_headers).status_code == 422

    patched = client.patch(f"{blocks_url}/{heading['id']}", json={"data": {"level": "h1"}}, headers=editor_headers)
    assert patched.get_json()["data"] == {"text": "Welcome", "level": "h1"}

    moved = client.post(f"{blocks_url}/{text['id']}/move", json={"index": 0}, headers=editor_headers).get_json()
    assert [b["id"] for b in moved["content"]["blocks"]] == [text["id"], heading["id"]]
    assert client.post(f"{blocks_url}/{text['id']}/move", json={"index": "top"},
                       headers=editor_headers).status_code == 400

    clone = client.post(f"{blocks_url}/{heading['id']}/duplicate", headers=editor_headers)
    assert clone.status_code == 201

    toggled = client.post(f"{blocks_url}/{text['id']}/toggle-visibility", headers=editor_headers).get_json()
    stored = {b["id"]: b for b in toggled["content"]["blocks"]}
    assert stored[text["id"]]["settings"]["visibility"] == "hidden"

    saved = client.put(blocks_url, json={**heading, "data": {"text": "Saved"}}, headers=editor_headers)
    assert saved.get_json()["data"] == {"text": "Saved"}

    after_delete = client.delete(f"{blocks_url}/{clone.get_json()['id']}", headers=editor_headers).get_json()
    assert len(after_delete["content"]["blocks"]) == 2
    assert len(client.get(blocks_url, headers=editor_headers).get_json()) == 2


def test_block_endpoints_need_a_block_section(client, editor_headers):
    page = _page(client, editor_headers, sections=[{"component_type": "hero"}])
    hero = page["sections"][0]
    response = client.get(f"/api/v1/sections/{hero['id']}/blocks", headers=editor_headers)
    assert response.status_code == 400
    assert response.get_json()["error"] == "InvariantViolation"


def test_type_catalogs(client, editor_headers):
    types = client.get("/api/v1/section-types", headers=editor_headers).get_json()
    assert "hero" in types and "blocks" in types

    hero = client.get("/api/v1/section-types/hero", headers=editor_headers)
    assert hero.status_code == 200
    assert "default_content" in hero.get_json()
    assert client.get("/api/v1/section-types/nope", headers=editor_headers).status_code == 404

    assert client.get("/api/v1/block-types?category=layout", headers=editor_headers).status_code == 200
    assert client.get("/api/v1/block-types?category=bogus", headers=editor_headers).status_code == 400


# ------------------------
# Publishing
# ------------------------

def test_publish_flow(client, editor_headers, admin_headers):
    page = _page(client, editor_headers, sections=[{"component_type": "hero", "content": {"title": "One"}}])
    url = f"/api/v1/pages/{page['id']}"

    published = client.post(f"{url}/publish", headers=editor_headers)
    assert published.status_code == 200
    assert published.get_json() == {"message": "Page published", "page_id": page["id"], "slug": "home", "version": 1}

    again = client.post(f"{url}/publish", headers=editor_headers)
    assert again.status_code == 409
    assert again.get_json()["error"] == "Conflict"

    hero_id = page["sections"][0]["id"]
    client.put(f"/api/v1/sections/{hero_id}", json={"content": {"title": "Two"}}, headers=editor_headers)
    assert client.post(f"{url}/unpublish", headers=editor_headers).get_json()["status"] == "draft"
    client.post(f"{url}/publish", headers=editor_headers)

    versions = client.get(f"{url}/versions", headers=editor_headers).get_json()
    assert [v["version"] for v in versions] == [2, 1]

    assert client.post(f"{url}/rollback/1", headers=editor_headers).status_code == 403
    rolled = client.post(f"{url}/rollback/1", headers=admin_headers)
    assert rolled.status_code == 200
    restored = client.get(url, headers=admin_headers).get_json()
    assert restored["sections"][0]["content"]["title"] == "One"

    assert client.post(f"{url}/rollback/9", headers=admin_headers).status_code == 404


def test_publish_without_sections_is_rejected(client, editor_headers):
    page = _page(client, editor_headers)
    response = client.post(f"/api/v1/pages/{page['id']}/publish", headers=editor_headers)
    assert response.status_code == 400


# ------------------------
# Audit
# ------------------------

def test_audit_cursor_pagination(client, editor_headers, admin_headers):
    for title in ("One", "Two", "Three"):
        _page(client, editor_headers, title=title)

    query = {"action": "page.create", "limit": 2}
    first = client.get("/api/v1/audit", query_string=query, headers=admin_headers).get_json()
    assert len(first["items"]) == 2
    assert first["pagination"]["has_more"] is True
    assert first["items"][0]["entity_type"] == "page"

    cursor = first["pagination"]["next_cursor"]
    second = client.get("/api/v1/audit", query_string={**query, "cursor": cursor}, headers=admin_headers).get_json()
    assert len(second["items"]) == 1
    assert second["pagination"] == {"has_more": False, "next_cursor": None}

    seen = {item["id"] for item in first["items"] + second["items"]}
    assert len(seen) == 3


def test_audit_rejects_a_bad_cursor(client, admin_headers):
    assert client.get("/api/v1/audit?cursor=not-a-cursor", headers=admin_headers).status_code == 400


# ------------------------
# Content, media, settings, users
# ------------------------

def test_content_crud(client, editor_headers):
    faq = client.post("/api/v1/faqs", json={"question": "Open Sundays?", "answer": "No", "category": "Hours"},
                      headers=editor_headers)
    assert faq.status_code == 201
    faq_id = faq.get_json()["id"]

    assert client.post("/api/v1/faqs", json={"answer": "No"}, headers=editor_headers).status_code == 422
    assert client.get("/api/v1/faqs/categories", headers=editor_headers).get_json() == ["Hours"]

    everything = client.get("/api/v1/faqs?all=1", headers=editor_headers).get_json()
    assert [f["id"] for f in everything] == [faq_id]

    updated = client.put(f"/api/v1/faqs/{faq_id}", json={"answer": "Yes"}, headers=editor_headers)
    assert updated.get_json()["answer"] == "Yes"

    category = client.post("/api/v1/service-categories", json={"name": "Facials"}, headers=editor_headers).get_json()
    client.post("/api/v1/services", json={"name": "Glow", "category_id": category["id"]}, headers=editor_headers)
    blocked = client.delete(f"/api/v1/service-categories/{category['id']}", headers=editor_headers)
    assert blocked.status_code == 409

    assert client.delete(f"/api/v1/faqs/{faq_id}", headers=editor_headers).status_code == 200


def test_media_upload(client, editor_headers):
    buffer = io.BytesIO()
    Image.new("RGB", (4, 3), "blue").save(buffer, format="PNG")
    buffer.seek(0)

    response = client.post(
        "/api/v1/media",
        data={"file": (buffer, "photo.png"), "folder": "gallery", "alt_text": "Blue"},
        headers=editor_headers,
        content_type="multipart/form-data",
    )
    assert response.status_code == 201
    media = response.get_json()
    assert media["type"] == "image"
    assert media["folder"] == "gallery"
    assert media["meta"]["width"] == 4

    assert client.get("/api/v1/media/folders", headers=editor_headers).get_json() == ["gallery"]
    assert client.post("/api/v1/media", json={}, headers=editor_headers).status_code == 422


def test_settings_endpoints(client, admin_headers):
    response = client.put("/api/v1/settings/site_name", json={"value": "Blue Fern Spa"}, headers=admin_headers)
    assert response.status_code == 200
    assert response.get_json()["value"] == "Blue Fern Spa"

    flat = client.get("/api/v1/settings?format=flat", headers=admin_headers).get_json()
    assert flat["site_name"] == "Blue Fern Spa"

    bulk = client.put("/api/v1/settings", json={"settings": [{"key": "footer_text", "value": "Hi"}]},
                      headers=admin_headers)
    assert bulk.status_code == 200
    assert client.put("/api/v1/settings", json={"settings": "nope"}, headers=admin_headers).status_code == 422

    assert client.delete("/api/v1/settings/footer_text", headers=admin_headers).status_code == 200
    assert client.get("/api/v1/settings/footer_text", headers=admin_headers).status_code == 404

    initialized = client.post("/api/v1/settings/initialize", json={}, headers=admin_headers).get_json()
    assert initialized["written"] > 0


def test_user_management(client, tenant, admin_headers, editor, editor_headers):
    created = client.post("/api/v1/users", json={"email": "new@example.com", "password": "long-enough",
                                                 "role": "editor"}, headers=admin_headers)
    assert created.status_code == 201

    escalate = client.post("/api/v1/users", json={"email": "x@example.com", "password": "long-enough",
                                                  "role": "super_admin"}, headers=admin_headers)
    assert escalate.status_code == 403

    own = client.put(f"/api/v1/users/{editor.id}", json={"name": "Eddie", "role": "admin"}, headers=editor_headers)
    assert own.status_code == 200
    assert own.get_json()["name"] == "Eddie"
    assert own.get_json()["role"] == "editor"


# ------------------------
# Tenants (super admin)
# ------------------------

def test_tenant_administration(client, super_headers):
    created = client.post("/api/v1/tenants", json={"name": "Sun Spa", "domain": "sun.example.com"},
                          headers=super_headers)
    assert created.status_code == 201
    tenant_id = created.get_json()["id"]

    bad = client.post("/api/v1/tenants", json={"name": "Evil", "domain": "evil.com; reboot"}, headers=super_headers)
    assert bad.status_code == 422
    assert "domain" in bad.get_json()["errors"]

    detail = client.get(f"/api/v1/tenants/{tenant_id}", headers=super_headers).get_json()
    assert detail["statistics"]["pages"] == 0

    listing = client.get("/api/v1/tenants", headers=super_headers).get_json()
    assert listing["pagination"]["total"] == 1

    deployed = client.post(f"/api/v1/tenants/{tenant_id}/deploy", headers=super_headers)
    assert deployed.status_code == 200
    assert deployed.get_json()["success"] is True

    bad_domain = client.post(f"/api/v1/tenants/{tenant_id}/domains", json={"domain": "not a domain"},
                             headers=super_headers)
    assert bad_domain.status_code == 422

    assert client.delete(f"/api/v1/tenants/{tenant_id}", headers=super_headers).status_code == 200
    assert Tenant.query.count() == 0


@pytest.mark.parametrize("path", ["/api/v1/tenants", "/api/v1/templates"])
def test_admin_listings_without_tenant_context(client, super_headers, path):
    assert client.get(path, headers=super_headers).status_code == 200
