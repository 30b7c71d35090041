# tenant_cms/application/users.py
from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

from sqlalchemy import or_

from tenant_cms.domain.invariants.exceptions import BusinessRuleViolation, NotFoundError, ValidationError
from tenant_cms.extensions import db
from tenant_cms.models.tenant import Tenant
from tenant_cms.models.user import ROLE_ADMIN, ROLE_SUPER_ADMIN, ROLES, User
from tenant_cms.utils.audit import log_action
from tenant_cms.utils.pagination import DEFAULT_PER_PAGE, clamp_per_page
from tenant_cms.utils.transaction import transactional

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PASSWORD_LENGTH = 8


class UserService:
    """
    User administration. A service bound to a tenant only sees that
    tenant's users; `tenant_id=None` is the super admin view of everyone.
    """

    def __init__(self, tenant_id: Optional[str] = None, *, actor_id: Optional[str] = None):
        self.tenant_id = tenant_id
        self.actor_id = actor_id

    def query(self):
        query = User.query
        if self.tenant_id:
            query = query.filter(User.tenant_id == self.tenant_id)
        return query

    def get_paginated(self, per_page: int = DEFAULT_PER_PAGE, filters: Optional[Dict[str, Any]] = None, page: int = 1):
        filters = filters or {}
        query = self.query()
        search = (filters.get("search") or "").strip()
        if search:
            query = query.filter(or_(User.name.ilike(f"%{search}%"), User.email.ilike(f"%{search}%")))
        if filters.get("role"):
            query = query.filter(User.role == filters["role"])
        if filters.get("tenant_id") and not self.tenant_id:
            query = query.filter(User.tenant_id == filters["tenant_id"])
        return query.order_by(User.created_at.desc()).paginate(
            page=max(int(page or 1), 1), per_page=clamp_per_page(per_page), error_out=False
        )

    def get_by_id(self, user_id: str) -> Optional[User]:
        return self.query().filter(User.id == user_id).first()

    def get_or_fail(self, user_id: str) -> User:
        user = self.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def get_by_email(self, email: str) -> Optional[User]:
        return User.query.filter(User.email == (email or "").strip().lower()).first()

    def get_by_role(self, role: str) -> List[User]:
        return self.query().filter(User.role == role).all()

    def stats_by_role(self) -> Dict[str, int]:
        return {role: self.query().filter(User.role == role).count() for role in ROLES}

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _validate(self, data: Dict[str, Any], user: Optional[User] = None) -> None:
        errors = {}
        creating = user is None

        if creating or "email" in data:
            email = (data.get("email") or "").strip().lower()
            if not EMAIL_RE.match(email):
                errors["email"] = "The email must be a valid email address."
            else:
                existing = self.get_by_email(email)
                if existing is not None and (creating or existing.id != user.id):
                    errors["email"] = "The email has already been taken."
                data["email"] = email

        password = data.get("password")
        if creating and not password:
            errors["password"] = "The password field is required."
        elif password and len(password) < MIN_PASSWORD_LENGTH:
            errors["password"] = f"The password must be at least {MIN_PASSWORD_LENGTH} characters."

        role = data.get("role") or (user.role if user else None)
        if "role" in data and data["role"] not in ROLES:
            errors["role"] = "The selected role is invalid."
        elif role != ROLE_SUPER_ADMIN:
            tenant_id = data.get("tenant_id", user.tenant_id if user else None) or self.tenant_id
            if not tenant_id:
                errors["tenant_id"] = "The tenant_id field is required."
            elif db.session.get(Tenant, tenant_id) is None:
                errors["tenant_id"] = "The selected tenant is invalid."

        if errors:
            raise ValidationError(errors)

    def _log(self, action: str, user: User, payload: Dict[str, Any]) -> None:
        log_action(
            tenant_id=user.tenant_id or self.tenant_id,
            actor_id=self.actor_id,
            action=f"user.{action}",
            entity_type="user",
            entity_id=user.id,
            payload=payload,
        )

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create(self, data: Dict[str, Any]) -> User:
        data = dict(data or {})
        data.setdefault("role", "editor")
        self._validate(data)

        user = User()
        user.email = data["email"]
        user.name = data.get("name")
        user.avatar = data.get("avatar")
        user.role = data["role"]
        user.is_active = bool(data.get("is_active", True))
        # Super admins are never bound to a tenant
        user.tenant_id = None if user.role == ROLE_SUPER_ADMIN else (data.get("tenant_id") or self.tenant_id)
        user.set_password(data["password"])

        with transactional():
            db.session.add(user)
            db.session.flush()
            self._log("create", user, {"role": user.role})
        return user

    def update(self, user: User, data: Dict[str, Any]) -> User:
        data = dict(data or {})
        if not data.get("password"):
            data.pop("password", None)
        self._validate(data, user)

        with transactional():
            for field in ("name", "email", "avatar", "role", "is_active"):
                if field in data:
                    setattr(user, field, data[field])
            if "tenant_id" in data:
                user.tenant_id = data["tenant_id"]
            if user.role == ROLE_SUPER_ADMIN:
                user.tenant_id = None
            if data.get("password"):
                user.set_password(data["password"])
            self._log("update", user, {"fields": sorted(k for k in data if k != "password")})
        return user

    def update_password(self, user: User, password: str) -> User:
        return self.update(user, {"password": password})

    def toggle_active(self, user: User) -> User:
        with transactional():
            user.is_active = not user.is_active
            self._log("update", user, {"fields": ["is_active"]})
        return user

    @staticmethod
    def can_delete(user: User, current_user: User) -> bool:
        if user.id == current_user.id:
            return False
        if user.is_super_admin and not current_user.is_super_admin:
            return False
        return True

    @staticmethod
    def can_modify(user: User, current_user: User) -> bool:
        if current_user.is_super_admin:
            return True
        if user.is_super_admin:
            return False
        if current_user.role == ROLE_ADMIN:
            return user.tenant_id == current_user.tenant_id
        # Editors may only modify themselves
        return user.id == current_user.id

    def delete(self, user: User, current_user: Optional[User] = None) -> bool:
        if current_user is not None and not self.can_delete(user, current_user):
            raise BusinessRuleViolation("You are not allowed to delete this user.")
        with transactional():
            self._log("delete", user, {"email": user.email})
            db.session.delete(user)
        return True
