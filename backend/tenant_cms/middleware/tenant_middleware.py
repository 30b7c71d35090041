from flask import current_app, request, g, jsonify
from tenant_cms.application.tenants import TenantService
from tenant_cms.models.tenant import Tenant

# Served without any tenant context
PUBLIC_ENDPOINTS = {"static", "openapi_cms"}
PUBLIC_BLUEPRINTS = {"swagger_ui"}


def resolve_tenant():
    """
    X-Tenant-ID wins; otherwise X-Tenant-Domain (set by the tenant's NGINX
    proxy) and finally the request host are matched against tenant domains.
    Returns (tenant, explicit_id_given).
    """
    tenant_id = request.headers.get("X-Tenant-ID")
    if tenant_id:
        return Tenant.query.filter_by(id=tenant_id, is_active=True).first(), True

    for candidate in (request.headers.get("X-Tenant-Domain"), request.host):
        if candidate:
            tenant = TenantService.get_by_domain(candidate)
            if tenant is not None:
                return tenant, False
    return None, False


def tenant_is_optional() -> bool:
    # Unknown routes fall through to Flask's own 404
    if request.endpoint is None or request.endpoint in PUBLIC_ENDPOINTS:
        return True
    if request.blueprint in PUBLIC_BLUEPRINTS:
        return True
    view = current_app.view_functions.get(request.endpoint)
    return bool(getattr(view, "tenant_optional", False))


def tenant_middleware(app):
    @app.before_request
    def load_tenant():
        tenant, explicit = resolve_tenant()

        # Attach tenant to global context; services get tenant ids explicitly
        g.current_tenant = tenant

        if tenant is None and explicit:
            return jsonify({"error": "Invalid tenant"}), 404

        if tenant is None and not tenant_is_optional():
            return jsonify({"error": "Tenant could not be resolved"}), 400
