# tenant_cms/application/contact_submissions.py
"""
Messages visitors leave through the site's contact form or newsletter box.
They are tenant data but not site content: no cache clearing, no webhooks.
"""
from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

from flask import current_app

from tenant_cms.domain.invariants.exceptions import ValidationError
from tenant_cms.models.base import utc_now
from tenant_cms.models.contact_submission import ContactSubmission
from tenant_cms.utils.transaction import transactional

from .base import TenantScopedService
from .users import EMAIL_RE

CONTACT_FORM = "contact_form"
NEWSLETTER = "newsletter"
SOURCES = (CONTACT_FORM, NEWSLETTER)

NEW, READ, REPLIED, ARCHIVED = "new", "read", "replied", "archived"
STATUSES = (NEW, READ, REPLIED, ARCHIVED)

MAX_LENGTHS = {"name": 255, "email": 255, "phone": 50, "subject": 255, "message": 5000}
PUBLIC_FIELDS = ("name", "email", "phone", "subject", "message")
NEWSLETTER_NAME = "Newsletter Subscriber"
NEWSLETTER_MESSAGE = "Newsletter subscription"


class ContactSubmissionService(TenantScopedService):
    model = ContactSubmission
    resource_type = "contact_submission"
    fields = ("name", "email", "phone", "subject", "message", "source", "status", "notes")
    required_on_create = ("name", "email", "message")
    search_columns = ("name", "email", "subject", "message")
    filter_columns = ("status", "source")

    def prepare(self, data: Dict[str, Any], entity=None) -> Dict[str, Any]:
        for field in PUBLIC_FIELDS:
            if isinstance(data.get(field), str):
                data[field] = data[field].strip()
        if isinstance(data.get("email"), str):
            data["email"] = data["email"].lower()
        if entity is None:
            data.setdefault("source", CONTACT_FORM)
            data.setdefault("status", NEW)
        return data

    def validate(self, data: Dict[str, Any], entity=None) -> Dict[str, str]:
        errors = {}
        for field, limit in MAX_LENGTHS.items():
            value = data.get(field)
            if value is not None and not isinstance(value, str):
                errors[field] = f"The {field} must be a string."
            elif value and len(value) > limit:
                errors[field] = f"The {field} may not be greater than {limit} characters."
        if data.get("email") and "email" not in errors and not EMAIL_RE.match(data["email"]):
            errors["email"] = "The email must be a valid email address."
        if "source" in data and data["source"] not in SOURCES:
            errors["source"] = "The selected source is invalid."
        if "status" in data and data["status"] not in STATUSES:
            errors["status"] = "The selected status is invalid."
        return errors

    # ------------------------------------------------------------------
    # Public intake
    # ------------------------------------------------------------------

    def submit(self, data: Dict[str, Any]) -> ContactSubmission:
        submission = self.create({field: data.get(field) for field in PUBLIC_FIELDS})
        current_app.logger.info(
            f"Contact form submitted for tenant {self.tenant_id} (submission {submission.id})"
        )
        return submission

    def subscribe(self, email: Any, name: Optional[str] = None) -> Tuple[ContactSubmission, bool]:
        """Newsletter signup; an address already subscribed is returned as-is with `False`."""
        if not isinstance(email, str) or not EMAIL_RE.match(email.strip()):
            raise ValidationError({"email": "Please enter a valid email address."})

        existing = self.query().filter(
            ContactSubmission.email == email.strip().lower(),
            ContactSubmission.source == NEWSLETTER,
        ).first()
        if existing is not None:
            return existing, False

        submission = self.create({
            "name": name or NEWSLETTER_NAME,
            "email": email,
            "message": NEWSLETTER_MESSAGE,
            "source": NEWSLETTER,
        })
        current_app.logger.info(f"Newsletter subscription for tenant {self.tenant_id}")
        return submission, True

    # ------------------------------------------------------------------
    # Inbox
    # ------------------------------------------------------------------

    def mark_read(self, submission: ContactSubmission) -> ContactSubmission:
        if submission.status != NEW:
            return submission
        return self.update_status(submission, READ)

    def update_status(self, submission: ContactSubmission, status: Any, notes: Any = None) -> ContactSubmission:
        """Sets the status; read/replied timestamps are stamped the first time only."""
        data = {"status": status}
        if notes is not None:
            data["notes"] = notes
        self._check(data, submission)

        with transactional():
            self._assign(submission, data)
            if status == READ and submission.read_at is None:
                submission.read_at = utc_now()
            if status == REPLIED and submission.replied_at is None:
                submission.replied_at = utc_now()
            self._log("update", submission, {"fields": sorted(data)})
        return submission

    def unread_count(self) -> int:
        return self.query().filter(ContactSubmission.status == NEW).count()

    def _notify_ref(self, ref, action: str) -> None:
        pass
