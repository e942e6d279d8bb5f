"""
Platform-wide exception hierarchy.

Services raise these; blueprints register handlers against them once and get
consistent HTTP status codes everywhere.

Usage:
    from orgdesk.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="Workspace", resource_id=42)
    raise ValidationError("Missing required report fields", details={...})
    raise AccessDeniedError("This form assignment is no longer active")
"""


class NotFoundError(Exception):
    """Raised when a requested resource does not exist.

    Args:
        resource: Human-readable entity name (e.g. "Workspace", "FormAssignment").
        resource_id: The key that was looked up. Included in logs, not in HTTP response.
    """

    def __init__(self, resource: str, resource_id: int | str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)


class ValidationError(Exception):
    """Raised when input is incomplete or violates a business rule.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown for structured API responses.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class ConflictError(Exception):
    """Raised when an operation clashes with the current state of a resource.

    Maps to HTTP 409.
    """

    def __init__(self, resource: str, field: str, value: str | None = None) -> None:
        self.resource = resource
        self.field = field
        self.value = value
        msg = f"{resource} with {field}={value!r} does not allow this operation"
        super().__init__(msg)


class ConversionError(Exception):
    """Raised when HTML→PDF conversion fails or produces an empty document.

    Fatal for the request; no retry is attempted.  ``details`` is a short,
    user-safe explanation returned in the 500 body.
    """

    def __init__(self, message: str, details: str | None = None) -> None:
        self.details = details or message
        super().__init__(message)


class AccessDeniedError(Exception):
    """Raised when a resource exists but may not be used through this route.

    Maps to HTTP 403 (e.g. a deactivated public form assignment).
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
