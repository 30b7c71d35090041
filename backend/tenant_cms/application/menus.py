# tenant_cms/application/menus.py
from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from tenant_cms.domain.invariants.exceptions import NotFoundError, ValidationError
from tenant_cms.models.menu import Menu
from tenant_cms.utils.transaction import transactional

from .base import TenantScopedService

AVAILABLE_LOCATIONS = {
    "header": "Header Navigation",
    "footer": "Footer Navigation",
    "footer-services": "Footer Services",
    "footer-about": "Footer About",
    "footer-vip": "Footer VIP",
    "footer-legal": "Footer Legal",
    "services": "Services Menu",
    "sidebar": "Sidebar Navigation",
    "mobile": "Mobile Navigation",
    "social": "Social Links",
}

LINK_TARGETS = ("_self", "_blank")


def process_item(item: Dict[str, Any], index: int = 0) -> Dict[str, Any]:
    """Normalizes one menu item (recursively for children); label and title mirror each other."""
    label = item.get("label") or item.get("title") or ""
    target = item.get("target") or "_self"
    return {
        "label": label,
        "title": item.get("title") or label,
        "url": item.get("url") or "",
        "target": target if target in LINK_TARGETS else "_self",
        "icon": item.get("icon"),
        "image": item.get("image"),
        "order": item.get("order", index),
        "children": process_items(item.get("children") or []),
    }


def process_items(items: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [process_item(item, index) for index, item in enumerate(items)]


def _renumber(items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    for index, item in enumerate(items):
        item["order"] = index
    return items


class MenuService(TenantScopedService):
    """Menus hold their items as a JSON tree; one menu per location per tenant."""

    model = Menu
    resource_type = "menu"
    fields = ("name", "location", "items", "is_active")
    required_on_create = ("name", "location")
    filter_columns = ("location", "is_active")
    boolean_columns = ("is_active",)
    default_sort = (("name", "asc"),)

    def prepare(self, data: Dict[str, Any], entity=None) -> Dict[str, Any]:
        if isinstance(data.get("items"), list):
            data["items"] = process_items(data["items"])
        elif entity is None:
            data.setdefault("items", [])
        return data

    def validate(self, data: Dict[str, Any], entity=None) -> Dict[str, str]:
        errors = {}
        if "items" in data and not isinstance(data["items"], list):
            errors["items"] = "The items field must be a list."

        location = data.get("location")
        if location:
            taken = self.query().filter(Menu.location == location)
            if entity is not None:
                taken = taken.filter(Menu.id != entity.id)
            if taken.first() is not None:
                errors["location"] = "A menu already exists for this location."
        return errors

    def get_by_location(self, location: str, active_only: bool = True) -> Optional[Menu]:
        query = self.query().filter(Menu.location == location)
        if active_only:
            query = query.filter(Menu.is_active.is_(True))
        return query.first()

    @staticmethod
    def get_available_locations() -> Dict[str, str]:
        return dict(AVAILABLE_LOCATIONS)

    # ------------------------------------------------------------------
    # Item operations (top level)
    # ------------------------------------------------------------------

    def _items(self, menu: Menu) -> List[Dict[str, Any]]:
        return [dict(item) for item in (menu.items or [])]

    def _check_index(self, items: List[Dict[str, Any]], index: int) -> None:
        if not 0 <= index < len(items):
            raise NotFoundError("Menu item not found.")

    def _save_items(self, menu: Menu, items: List[Dict[str, Any]]) -> Menu:
        with transactional():
            menu.items = items
            self._log("update", menu, {"fields": ["items"]})
        self._notify(menu, "updated")
        return menu

    def add_item(self, menu: Menu, item: Dict[str, Any]) -> Menu:
        items = self._items(menu)
        items.append(process_item(item, len(items)))
        return self._save_items(menu, _renumber(items))

    def update_item(self, menu: Menu, index: int, item: Dict[str, Any]) -> Menu:
        items = self._items(menu)
        self._check_index(items, index)
        merged = dict(items[index])
        merged.update(item)
        merged["order"] = index
        items[index] = process_item(merged, index)
        return self._save_items(menu, items)

    def remove_item(self, menu: Menu, index: int) -> Menu:
        items = self._items(menu)
        self._check_index(items, index)
        del items[index]
        return self._save_items(menu, _renumber(items))

    def reorder_items(self, menu: Menu, order: Sequence[int]) -> Menu:
        """`order` lists the current indices in their new sequence; it must be a permutation."""
        items = self._items(menu)
        if sorted(order) != list(range(len(items))):
            raise ValidationError({"order": "The order must list every item index exactly once."})
        return self._save_items(menu, _renumber([items[i] for i in order]))
