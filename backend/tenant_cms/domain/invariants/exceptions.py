class InvariantViolation(Exception):
    """Raised when a domain invariant would be broken."""


class ValidationError(Exception):
    """Per-field validation failure. `errors` maps field name -> message."""

    def __init__(self, errors, message="The given data was invalid."):
        super().__init__(message)
        self.errors = dict(errors)


class BusinessRuleViolation(Exception):
    """A conflicting operation, e.g. deleting a category that still owns services."""


class NotFoundError(LookupError):
    """A tenant-scoped lookup (entity, block, menu item) found nothing."""
