from typing import Set

DRAFT = "draft"
PUBLISHED = "published"
SCHEDULED = "scheduled"


class IllegalTransition(ValueError):
    """A status change the page lifecycle does not allow."""


# Explicit allowed state transitions
ALLOWED_PAGE_TRANSITIONS: dict[str, Set[str]] = {
    DRAFT: {PUBLISHED, SCHEDULED},
    SCHEDULED: {PUBLISHED, DRAFT},  # due, or cancelled
    PUBLISHED: {DRAFT},  # unpublish or rollback
}


def assert_page_transition(*, from_status: str, to_status: str) -> None:
    """
    Guards page lifecycle transitions.
    Single source of truth for status changes.
    """
    allowed = ALLOWED_PAGE_TRANSITIONS.get(from_status, set())

    if to_status not in allowed:
        raise IllegalTransition(
            f"Illegal page transition: {from_status} -> {to_status}"
        )
