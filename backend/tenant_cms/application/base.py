# tenant_cms/application/base.py
"""
Shared CRUD behaviour for tenant-owned content.

Every service is bound to one tenant at construction time; there is no
ambient tenant lookup. `query()` is the tenant guard: all reads and
writes go through it. Tenant cloning is the only code that queries
across tenants, and it does so directly on the models.
"""
from __future__ import annotations

import copy
from typing import Any, Dict, Iterable, List, Optional, Sequence

from sqlalchemy import or_

from tenant_cms.domain.invariants.exceptions import NotFoundError, ValidationError
from tenant_cms.extensions import db
from tenant_cms.utils.audit import log_action
from tenant_cms.utils.order import apply_sequence, compact_order, next_order, shift_after
from tenant_cms.utils.pagination import DEFAULT_PER_PAGE, clamp_per_page
from tenant_cms.utils.transaction import transactional

TRUTHY = {"1", "true", "yes", "on"}


def coerce_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in TRUTHY
    return bool(value)


class TenantScopedService:
    model: Any = None
    resource_type: str = ""

    # Columns copied from input data on create/update
    fields: Sequence[str] = ()
    required_on_create: Sequence[str] = ()
    # Case-insensitive substring search
    search_columns: Sequence[str] = ()
    # Exact-match filters accepted by get_all / get_paginated
    filter_columns: Sequence[str] = ()
    boolean_columns: Sequence[str] = ()

    # Dense 0..n-1 ordering, optionally scoped by extra columns
    ordered: bool = False
    order_scope: Sequence[str] = ()
    default_sort: Sequence[tuple] = (("created_at", "desc"),)

    def __init__(self, tenant_id: str, *, actor_id: Optional[str] = None, notifier=None):
        if not tenant_id:
            raise ValueError("tenant_id is required")
        self.tenant_id = tenant_id
        self.actor_id = actor_id
        if notifier is None:
            from .webhooks import ContentChangeNotifier
            notifier = ContentChangeNotifier()
        self.notifier = notifier

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def query(self):
        return self.model.query.filter(self.model.tenant_id == self.tenant_id)

    def _sorted(self, query):
        if self.ordered:
            return query.order_by(self.model.order.asc(), self.model.created_at.asc())
        for column, direction in self.default_sort:
            attr = getattr(self.model, column)
            query = query.order_by(attr.desc() if direction == "desc" else attr.asc())
        return query

    def _filtered(self, filters: Optional[Dict[str, Any]] = None):
        filters = filters or {}
        query = self.query()

        search = (filters.get("search") or "").strip()
        if search and self.search_columns:
            pattern = f"%{search}%"
            query = query.filter(or_(*[
                getattr(self.model, column).ilike(pattern)
                for column in self.search_columns
            ]))

        for column in self.filter_columns:
            value = filters.get(column)
            if value is None or value == "":
                continue
            if column in self.boolean_columns:
                value = coerce_bool(value)
            query = query.filter(getattr(self.model, column) == value)

        return self._sorted(query)

    def get_all(self, filters: Optional[Dict[str, Any]] = None) -> List[Any]:
        return self._filtered(filters).all()

    def get_paginated(self, per_page: int = DEFAULT_PER_PAGE, filters: Optional[Dict[str, Any]] = None, page: int = 1):
        return self._filtered(filters).paginate(
            page=max(int(page or 1), 1),
            per_page=clamp_per_page(per_page),
            error_out=False,
        )

    def get_by_id(self, entity_id: str):
        if not entity_id:
            return None
        return self.query().filter(self.model.id == entity_id).first()

    def get_or_fail(self, entity_id: str):
        entity = self.get_by_id(entity_id)
        if entity is None:
            raise NotFoundError(f"{self.resource_type.replace('_', ' ').capitalize()} not found")
        return entity

    def count(self) -> int:
        return self.query().count()

    # ------------------------------------------------------------------
    # Validation + assignment hooks
    # ------------------------------------------------------------------

    def validate(self, data: Dict[str, Any], entity=None) -> Dict[str, str]:
        """Override for entity-specific checks; returns per-field errors."""
        return {}

    def _check(self, data: Dict[str, Any], entity=None) -> None:
        errors: Dict[str, str] = {}
        if entity is None:
            for field in self.required_on_create:
                value = data.get(field)
                if value is None or (isinstance(value, str) and not value.strip()):
                    errors[field] = f"The {field} field is required."
        else:
            for field in self.required_on_create:
                if field in data and (data[field] is None or (isinstance(data[field], str) and not data[field].strip())):
                    errors[field] = f"The {field} field is required."
        if self.ordered and data.get("order") is not None:
            try:
                int(data["order"])
            except (TypeError, ValueError):
                errors["order"] = "The order field must be an integer."
        errors.update(self.validate(data, entity))
        if errors:
            raise ValidationError(errors)

    def prepare(self, data: Dict[str, Any], entity=None) -> Dict[str, Any]:
        """Override to derive fields (slugs, defaults) before assignment."""
        return data

    def _assign(self, entity, data: Dict[str, Any]) -> List[str]:
        changed = []
        for field in self.fields:
            if field not in data:
                continue
            value = data[field]
            if field in self.boolean_columns and value is not None:
                value = coerce_bool(value)
            if isinstance(value, (dict, list)):
                value = copy.deepcopy(value)
            if getattr(entity, field) != value:
                setattr(entity, field, value)
                changed.append(field)
        return changed

    # ------------------------------------------------------------------
    # Ordering helpers
    # ------------------------------------------------------------------

    def _order_query(self, source):
        query = self.query()
        for column in self.order_scope:
            value = source.get(column) if isinstance(source, dict) else getattr(source, column)
            query = query.filter(getattr(self.model, column) == value)
        return query

    def _place(self, entity, position=None) -> None:
        """
        Splices `entity` into its scope at `position` (clamped to 0..n, end
        when None) and rewrites the scope as 0..n-1.
        """
        siblings = (
            self._order_query(entity)
            .filter(self.model.id != entity.id)
            .order_by(self.model.order.asc(), self.model.created_at.asc())
            .all()
        )
        index = len(siblings) if position is None else max(0, min(int(position), len(siblings)))
        siblings.insert(index, entity)
        apply_sequence(siblings)

    def _compact(self, source) -> None:
        if self.ordered:
            compact_order(self._order_query(source))

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create(self, data: Dict[str, Any]):
        data = self.prepare(dict(data or {}))
        self._check(data)

        entity = self.model()
        entity.tenant_id = self.tenant_id
        self._assign(entity, data)

        with transactional():
            if self.ordered:
                entity.order = next_order(self._order_query(data), self.model)
            db.session.add(entity)
            db.session.flush()
            if self.ordered and data.get("order") is not None:
                self._place(entity, data["order"])
            self.after_create(entity, data)
            self._log("create", entity, {"fields": sorted(k for k in data if k in self.fields)})

        self._notify(entity, "created")
        return entity

    def after_create(self, entity, data: Dict[str, Any]) -> None:
        pass

    def update(self, entity, data: Dict[str, Any]):
        data = self.prepare(dict(data or {}), entity)
        self._check(data, entity)

        previous_scope = {column: getattr(entity, column) for column in self.order_scope}

        with transactional():
            changed = self._assign(entity, data)
            scope_changed = any(previous_scope[c] != getattr(entity, c) for c in self.order_scope)
            if self.ordered and (scope_changed or "order" in changed):
                # Another scope appends unless an order is given; the old scope closes its gap
                self._place(entity, data.get("order"))
                if scope_changed:
                    self._compact(previous_scope)
            if changed:
                self._log("update", entity, {"fields": changed})

        if changed:
            self._notify(entity, "updated")
        return entity

    def delete(self, entity) -> bool:
        ref = self._ref(entity)
        with transactional():
            self.before_delete(entity)
            snapshot = {column: getattr(entity, column) for column in self.order_scope}
            db.session.delete(entity)
            db.session.flush()
            self._compact(snapshot)
            self._log("delete", entity, {})

        self._notify_ref(ref, "deleted")
        return True

    def before_delete(self, entity) -> None:
        pass

    def bulk_delete(self, ids: Iterable[str]) -> int:
        entities = self.query().filter(self.model.id.in_(list(ids))).all()
        refs = [self._ref(entity) for entity in entities]
        scopes = []
        with transactional():
            for entity in entities:
                self.before_delete(entity)
                scopes.append({column: getattr(entity, column) for column in self.order_scope})
                db.session.delete(entity)
            db.session.flush()
            seen = []
            for scope in scopes:
                if scope not in seen:
                    seen.append(scope)
                    self._compact(scope)
            self._log("bulk_delete", None, {"ids": [e.id for e in entities]})

        for ref in refs:
            self._notify_ref(ref, "deleted")
        return len(refs)

    def reorder(self, ordered_ids: Sequence[str], scope: Optional[Dict[str, Any]] = None) -> List[Any]:
        """
        Applies the given id sequence as 0..k-1. Rows of the same scope that
        are not listed keep their relative order after the listed ones.
        """
        if not self.ordered:
            raise ValueError(f"{self.resource_type} is not an ordered resource")

        query = self._order_query(scope or {}) if self.order_scope else self.query()
        items = query.order_by(self.model.order.asc(), self.model.created_at.asc()).all()
        by_id = {item.id: item for item in items}

        unknown = [i for i in ordered_ids if i not in by_id]
        if unknown:
            raise ValidationError({"ids": f"Unknown ids: {', '.join(unknown)}"})

        listed = [by_id[i] for i in dict.fromkeys(ordered_ids)]
        rest = [item for item in items if item.id not in set(ordered_ids)]

        with transactional():
            apply_sequence(listed + rest)
            self._log("reorder", None, {"ids": list(ordered_ids)})

        self._notify(None, "reordered")
        return listed + rest

    def duplicate(self, entity, overrides: Optional[Dict[str, Any]] = None):
        """
        New row with a fresh id and every other field copied, inserted
        immediately after the source.
        """
        overrides = dict(overrides or {})
        clone = self.model()
        clone.tenant_id = self.tenant_id
        for field in self.fields:
            setattr(clone, field, copy.deepcopy(getattr(entity, field)))
        for field, value in overrides.items():
            setattr(clone, field, copy.deepcopy(value))

        with transactional():
            if self.ordered:
                shift_after(self._order_query(entity), self.model, entity.order, 1)
                clone.order = entity.order + 1
            db.session.add(clone)
            db.session.flush()
            self._log("duplicate", clone, {"source_id": entity.id})

        self._notify(clone, "created")
        return clone

    def toggle(self, entity, field: str):
        with transactional():
            setattr(entity, field, not bool(getattr(entity, field)))
            self._log("update", entity, {"fields": [field]})
        self._notify(entity, "updated")
        return entity

    # ------------------------------------------------------------------
    # Side effects
    # ------------------------------------------------------------------

    def _log(self, action: str, entity, payload: Dict[str, Any]) -> None:
        log_action(
            tenant_id=self.tenant_id,
            actor_id=self.actor_id,
            action=f"{self.resource_type}.{action}",
            entity_type=self.resource_type,
            entity_id=getattr(entity, "id", None),
            payload=payload,
        )

    @staticmethod
    def _ref(entity):
        if entity is None:
            return None, None
        return entity.id, getattr(entity, "slug", None)

    def _notify(self, entity, action: str) -> None:
        self._notify_ref(self._ref(entity), action)

    def _notify_ref(self, ref, action: str) -> None:
        resource_id, resource_slug = ref
        self.notifier.handle_content_change(
            resource_type=self.resource_type,
            resource_id=resource_id,
            resource_slug=resource_slug,
            action=action,
            tenant_id=self.tenant_id,
        )
