# tenant_cms/application/webhooks.py
from __future__ import annotations

import hashlib
import hmac
import json
import secrets
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

import requests
from flask import current_app
from sqlalchemy import or_

from tenant_cms.domain.invariants.exceptions import NotFoundError, ValidationError
from tenant_cms.extensions import cache, db
from tenant_cms.models.base import utc_now
from tenant_cms.models.tenant import Tenant
from tenant_cms.models.webhook import Webhook
from tenant_cms.utils.transaction import transactional

REVALIDATE_TIMEOUT = 5
WEBHOOK_TIMEOUT = 10

CACHE_KEY_PREFIXES = {
    "page": "page:",
    "section": "section:",
    "service": "service:",
    "service_category": "service_category:",
    "testimonial": "testimonial:",
    "team_member": "team_member:",
    "faq": "faq:",
    "menu": "menu:",
    "setting": "settings:",
    "media": "media:",
}

FRONTEND_PATHS = {
    "page": "/",
    "section": "/",
    "service": "/services",
    "service_category": "/services",
    "testimonial": "/",
    "team_member": "/about",
    "faq": "/faq",
    "menu": "/",
    "setting": "/",
}


def sign_payload(body: bytes, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def encode_payload(payload: Dict[str, Any]) -> bytes:
    return json.dumps(payload, separators=(",", ":"), sort_keys=True, default=str).encode("utf-8")


def cache_keys_for(resource_type: str, tenant_id: str, slug: Optional[str] = None) -> List[str]:
    prefix = CACHE_KEY_PREFIXES.get(resource_type)
    if prefix is None:
        return []
    keys = [f"tenant:{tenant_id}:{prefix}list", f"tenant:{tenant_id}:{prefix}all"]
    if slug:
        keys.append(f"tenant:{tenant_id}:{prefix}{slug}")
    return keys


def frontend_paths_for(resource_type: str, slug: Optional[str] = None) -> List[str]:
    paths = []
    base = FRONTEND_PATHS.get(resource_type)
    if base:
        paths.append(base)
    if slug and resource_type == "page":
        paths.append("/" if slug == "home" else f"/{slug}")
    elif slug and resource_type == "service":
        paths.append(f"/services/{slug}")
    return list(dict.fromkeys(paths))


class ContentChangeNotifier:
    """
    Reacts to content mutations: clears cached keys for the resource, then
    (when enabled) asks the tenant frontend to revalidate and fires matching
    webhooks. Outbound HTTP is best effort: failures are logged, never raised.
    """

    def clear_cache(self, resource_type: str, tenant_id: str, slug: Optional[str] = None) -> List[str]:
        keys = cache_keys_for(resource_type, tenant_id, slug)
        if keys:
            cache.delete_many(*keys)
        return keys

    def handle_content_change(
        self,
        *,
        resource_type: str,
        resource_id: Optional[str],
        resource_slug: Optional[str],
        action: str,
        tenant_id: str,
    ) -> Dict[str, Any]:
        payload = {
            "resource_type": resource_type,
            "resource_id": resource_id,
            "resource_slug": resource_slug,
            "action": action,
            "tenant_id": tenant_id,
        }

        self.clear_cache(resource_type, tenant_id, resource_slug)

        if not current_app.config.get("CONTENT_CHANGE_NOTIFICATIONS", True):
            return payload

        for path in frontend_paths_for(resource_type, resource_slug):
            self.revalidate_frontend(tenant_id, path)

        self.fire_webhooks(f"{resource_type}.{action}", payload, tenant_id)
        return payload

    def frontend_url(self, tenant_id: str) -> Optional[str]:
        tenant = db.session.get(Tenant, tenant_id)
        url = (tenant.frontend_url if tenant else None) or current_app.config.get("FRONTEND_URL")
        return url.rstrip("/") if url else None

    def revalidate_frontend(self, tenant_id: str, path: str) -> bool:
        frontend = self.frontend_url(tenant_id)
        if not frontend:
            return False

        try:
            response = requests.post(
                f"{frontend}/api/revalidate",
                json={"path": path, "secret": current_app.config.get("REVALIDATION_SECRET", "")},
                timeout=REVALIDATE_TIMEOUT,
            )
        except requests.RequestException as exc:
            current_app.logger.warning(f"Frontend revalidation failed for {path} (tenant {tenant_id}): {exc}")
            return False

        if not response.ok:
            current_app.logger.warning(
                f"Frontend revalidation for {path} (tenant {tenant_id}) returned {response.status_code}"
            )
        return response.ok

    def fire_webhooks(self, event: str, payload: Dict[str, Any], tenant_id: Optional[str]) -> int:
        webhooks = (
            Webhook.query
            .filter(Webhook.is_active.is_(True))
            .filter(or_(Webhook.tenant_id == tenant_id, Webhook.tenant_id.is_(None)))
            .all()
        )

        fired = 0
        for webhook in webhooks:
            if not webhook.listens_to(event):
                continue
            deliver(webhook, event, payload)
            fired += 1

        if fired:
            db.session.commit()
        return fired


def deliver(webhook: Webhook, event: str, payload: Dict[str, Any]) -> Optional[int]:
    """POSTs one signed payload and records the outcome on the webhook row (not committed)."""
    body = encode_payload(payload)
    headers = {
        "Content-Type": "application/json",
        "X-Webhook-Signature": sign_payload(body, webhook.secret),
        "X-Webhook-Event": event,
    }

    webhook.last_triggered_at = utc_now()
    try:
        response = requests.post(webhook.url, data=body, headers=headers, timeout=WEBHOOK_TIMEOUT)
    except requests.RequestException as exc:
        current_app.logger.error(f"Webhook {webhook.id} ({webhook.url}) failed for {event}: {exc}")
        webhook.last_status = None
        webhook.last_error = str(exc)
        return None

    webhook.last_status = response.status_code
    webhook.last_error = None if response.ok else response.text[:1000]
    if not response.ok:
        current_app.logger.error(
            f"Webhook {webhook.id} ({webhook.url}) returned {response.status_code} for {event}"
        )
    return response.status_code


class WebhookService:
    """Webhook registrations for one tenant; global (tenant-less) hooks are listed read-only."""

    def __init__(self, tenant_id: Optional[str]):
        self.tenant_id = tenant_id

    def list(self, include_global: bool = True) -> List[Webhook]:
        query = Webhook.query
        if include_global:
            query = query.filter(or_(Webhook.tenant_id == self.tenant_id, Webhook.tenant_id.is_(None)))
        else:
            query = query.filter(Webhook.tenant_id == self.tenant_id)
        return query.order_by(Webhook.created_at.desc()).all()

    def get_or_fail(self, webhook_id: str) -> Webhook:
        webhook = Webhook.query.filter_by(id=webhook_id, tenant_id=self.tenant_id).first()
        if webhook is None:
            raise NotFoundError("Webhook not found")
        return webhook

    @staticmethod
    def validate(data: Dict[str, Any], creating: bool = True) -> None:
        errors = {}
        if creating or "name" in data:
            if not (data.get("name") or "").strip():
                errors["name"] = "The name field is required."
        if creating or "url" in data:
            parsed = urlparse(data.get("url") or "")
            if parsed.scheme not in ("http", "https") or not parsed.netloc:
                errors["url"] = "The url must be a valid http(s) URL."
        if "events" in data and not (
            isinstance(data["events"], list) and all(isinstance(e, str) and e for e in data["events"])
        ):
            errors["events"] = "The events field must be a list of event names."
        if errors:
            raise ValidationError(errors)

    def register(self, data: Dict[str, Any]) -> Webhook:
        self.validate(data)

        webhook = Webhook()
        webhook.tenant_id = self.tenant_id
        webhook.name = data["name"].strip()
        webhook.url = data["url"]
        webhook.secret = data.get("secret") or secrets.token_hex(16)
        webhook.events = list(data.get("events") or ["*"])
        webhook.is_active = bool(data.get("is_active", True))

        with transactional():
            db.session.add(webhook)
        return webhook

    def update(self, webhook: Webhook, data: Dict[str, Any]) -> Webhook:
        self.validate(data, creating=False)
        with transactional():
            for field in ("name", "url", "secret", "events", "is_active"):
                if field in data:
                    setattr(webhook, field, data[field])
        return webhook

    def delete(self, webhook: Webhook) -> bool:
        with transactional():
            db.session.delete(webhook)
        return True

    def send_test(self, webhook: Webhook) -> Optional[int]:
        status = deliver(webhook, "webhook.test", {
            "resource_type": "webhook",
            "resource_id": webhook.id,
            "resource_slug": None,
            "action": "test",
            "tenant_id": self.tenant_id,
        })
        db.session.commit()
        return status
