# tenant_cms/application/settings.py
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from tenant_cms.domain.invariants.exceptions import ValidationError
from tenant_cms.extensions import cache, db
from tenant_cms.models.setting import Setting
from tenant_cms.utils.transaction import transactional

from .base import TenantScopedService

SETTINGS_CACHE_TIMEOUT = 3600

GROUPS = {
    "general": "General Settings",
    "appearance": "Appearance",
    "contact": "Contact Information",
    "social": "Social Media",
    "seo": "SEO Settings",
    "integrations": "Integrations",
}

DEFAULTS = (
    ("site_name", "My Website", "general"),
    ("site_tagline", "", "general"),
    ("site_description", "", "general"),
    ("site_logo", "/images/logo.png", "general"),
    ("site_favicon", "/images/favicon.ico", "general"),
    ("primary_color", "#9a8b7a", "appearance"),
    ("secondary_color", "#3d3d3d", "appearance"),
    ("background_color", "#f5f2eb", "appearance"),
    ("font_heading", "Playfair Display", "appearance"),
    ("font_body", "Inter", "appearance"),
    ("contact_email", "", "contact"),
    ("contact_phone", "", "contact"),
    ("contact_address", "", "contact"),
    ("business_hours", "", "contact"),
    ("social_facebook", "", "social"),
    ("social_instagram", "", "social"),
    ("social_twitter", "", "social"),
    ("social_linkedin", "", "social"),
    ("social_youtube", "", "social"),
    ("seo_title", "", "seo"),
    ("seo_description", "", "seo"),
    ("seo_keywords", "", "seo"),
    ("google_analytics_id", "", "seo"),
    ("get_started_url", "", "integrations"),
    ("chat_widget_enabled", "false", "integrations"),
)


def settings_cache_key(tenant_id: str) -> str:
    return f"tenant:{tenant_id}:settings:all"


class SettingService(TenantScopedService):
    """
    Key/value site settings. Keys are unique per tenant; every write drops
    the cached key/value map for the tenant.
    """

    model = Setting
    resource_type = "setting"
    fields = ("group", "key", "value")
    required_on_create = ("key",)
    search_columns = ("key",)
    filter_columns = ("group",)
    default_sort = (("group", "asc"), ("key", "asc"))

    def get(self, key: str, default: Any = None) -> Any:
        setting = self.query().filter(Setting.key == key).first()
        return setting.value if setting is not None else default

    def get_by_key(self, key: str) -> Optional[Setting]:
        return self.query().filter(Setting.key == key).first()

    def get_by_group(self, group: str) -> List[Setting]:
        return self.get_all({"group": group})

    def get_all_as_dict(self) -> Dict[str, Any]:
        key = settings_cache_key(self.tenant_id)
        values = cache.get(key)
        if values is None:
            values = {setting.key: setting.value for setting in self.query().all()}
            cache.set(key, values, timeout=SETTINGS_CACHE_TIMEOUT)
        return dict(values)

    def get_grouped(self) -> Dict[str, List[Setting]]:
        grouped: Dict[str, List[Setting]] = {}
        for setting in self.get_all():
            grouped.setdefault(setting.group or "general", []).append(setting)
        return grouped

    @staticmethod
    def get_groups() -> Dict[str, str]:
        return dict(GROUPS)

    @staticmethod
    def get_defaults() -> List[Dict[str, Any]]:
        return [{"key": key, "value": value, "group": group} for key, value, group in DEFAULTS]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _notify_ref(self, ref, action: str) -> None:
        cache.delete(settings_cache_key(self.tenant_id))
        super()._notify_ref(ref, action)

    def _upsert(self, key: str, value: Any, group: Optional[str]) -> Setting:
        setting = self.get_by_key(key)
        if setting is None:
            setting = Setting()
            setting.tenant_id = self.tenant_id
            setting.key = key
            setting.group = group or "general"
            db.session.add(setting)
            db.session.flush()
        elif group:
            setting.group = group
        setting.value = value
        return setting

    def set(self, key: str, value: Any, group: Optional[str] = None) -> Setting:
        if not key or not str(key).strip():
            raise ValidationError({"key": "The key field is required."})
        with transactional():
            setting = self._upsert(key, value, group)
            self._log("update", setting, {"key": key})
        self._notify_ref((setting.id, None), "updated")
        return setting

    def bulk_update(self, settings: Iterable[Dict[str, Any]]) -> int:
        items = list(settings)
        errors = {
            f"settings.{index}.key": "The key field is required."
            for index, item in enumerate(items)
            if not isinstance(item, dict) or not item.get("key")
        }
        if errors:
            raise ValidationError(errors)

        with transactional():
            for item in items:
                self._upsert(item["key"], item.get("value"), item.get("group"))
            self._log("bulk_update", None, {"keys": [item["key"] for item in items]})

        self._notify(None, "updated")
        return len(items)

    def delete_key(self, key: str) -> bool:
        setting = self.get_by_key(key)
        if setting is None:
            return False
        return self.delete(setting)

    def initialize_defaults(self, overwrite: bool = False) -> int:
        """Adds missing default keys; existing values are kept unless `overwrite` is set."""
        written = 0
        with transactional():
            for default in self.get_defaults():
                existing = self.get_by_key(default["key"])
                if existing is not None and not overwrite:
                    continue
                self._upsert(default["key"], default["value"], default["group"])
                written += 1
            self._log("initialize_defaults", None, {"written": written})

        self._notify(None, "updated")
        return written

    def reset_to_defaults(self) -> int:
        with transactional():
            self.query().delete(synchronize_session=False)
        return self.initialize_defaults(overwrite=True)
