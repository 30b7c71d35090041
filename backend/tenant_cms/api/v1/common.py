# tenant_cms/api/v1/common.py
"""
Request plumbing shared by the v1 route modules. Services are built here
with the tenant id taken from `g`; nothing below the HTTP layer reads it.
"""
from flask import g, request
from werkzeug.exceptions import BadRequest

from tenant_cms.normalizers.pagination import normalize_pagination
from tenant_cms.utils.decorators import current_actor_id
from tenant_cms.utils.pagination import DEFAULT_PER_PAGE


def tenant_service(service_cls, **kwargs):
    return service_cls(g.current_tenant.id, actor_id=current_actor_id(), **kwargs)


def public_service(service_cls):
    return service_cls(g.current_tenant.id)


def json_body():
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise BadRequest("Request body must be a JSON object")
    return data


def id_list(data, key="ids"):
    ids = data.get(key)
    if not isinstance(ids, list) or not all(isinstance(i, str) for i in ids):
        raise BadRequest(f"'{key}' must be a list of ids")
    return ids


def list_filters(*keys):
    return {key: request.args.get(key) for key in ("search",) + keys if request.args.get(key) not in (None, "")}


def paginated(service, normalize_fn, *filter_keys):
    """Offset-paginated listing driven by ?page, ?per_page and the given filter keys."""
    pagination = service.get_paginated(
        per_page=request.args.get("per_page", DEFAULT_PER_PAGE),
        filters=list_filters(*filter_keys),
        page=request.args.get("page", 1, type=int),
    )
    return normalize_pagination(pagination, normalize_fn)
