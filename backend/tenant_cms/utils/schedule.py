from datetime import datetime, timezone

from dateutil.parser import isoparse

from tenant_cms.domain.invariants.exceptions import ValidationError
from tenant_cms.models.base import utc_now
from .optimistic_lock import normalize_ts


def parse_schedule_time(value, field="scheduled_at"):
    """
    ISO 8601 string (or datetime) as an aware UTC datetime. Naive values are
    taken as UTC; the result must lie in the future.
    """
    when = value if isinstance(value, datetime) else None
    if when is None and isinstance(value, str) and value.strip():
        try:
            when = isoparse(value.strip())
        except (ValueError, OverflowError):
            when = None
    if when is None:
        raise ValidationError({field: f"The {field} must be a valid ISO 8601 date."})

    when = normalize_ts(when).astimezone(timezone.utc)
    if when <= utc_now():
        raise ValidationError({field: f"The {field} must be a date in the future."})
    return when
