"""
Skenderaj Places Backend — Custom Exception Hierarchy
======================================================

What:  Application-specific exceptions for each failure class.
Why:   Services raise domain errors without knowing about HTTP. Global
       handlers in main.py turn them into JSON responses with the right
       status code, so internal details never leak to the client.
How:   Each exception carries a user-facing message and an optional
       context dict that is logged but not returned.

Exception Hierarchy:
    PlacesError (base)
    ├── ValidationError          → 400 Bad Request (client can fix)
    │   ├── DuplicateNameError   → 400 (another place has this name)
    │   └── DuplicateSlugError   → 400 (another place has this slug)
    ├── NotFoundError            → 404 Not Found
    ├── MediaHostError           → 500 (upload/delete on the media host failed)
    ├── DatabaseError            → 500 (store unreachable or query failed)
    └── MigrationError           → CLI exit code 1
"""

from typing import Any, Dict, Iterable, Optional

# User-facing messages; clients match on the exact Albanian text
PLACE_NOT_FOUND_MESSAGE = "Vendi nuk u gjet"
DUPLICATE_NAME_MESSAGE = "Ekziston një vend me të njëjtin emër"
DUPLICATE_NAME_ON_UPDATE_MESSAGE = "Ekziston një vend tjetër me të njëjtin emër"


class PlacesError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(PlacesError):
    """
    Raised when client input fails a business rule.

    When:    Non-image upload, oversized file, missing image URL, malformed images list.
    HTTP:    400 Bad Request
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class DuplicateNameError(ValidationError):
    """A different place already uses the requested name."""

    def __init__(self, name: str, on_update: bool = False):
        message = DUPLICATE_NAME_ON_UPDATE_MESSAGE if on_update else DUPLICATE_NAME_MESSAGE
        super().__init__(message=message, field="name", context={"name": name})
        self.name = name


class DuplicateSlugError(ValidationError):
    """
    The name is new but its slug collides with another place.

    Example: "Kalaja!" and "Kalaja" both slugify to "kalaja".
    """

    def __init__(self, slug: str):
        super().__init__(
            message=f"Ekziston një vend me të njëjtin slug ('{slug}')",
            field="name",
            context={"slug": slug},
        )
        self.slug = slug


class NotFoundError(PlacesError):
    """
    Raised when a requested resource does not exist.

    HTTP:    404 Not Found
    The message defaults to the fixed Albanian "place not found" text.
    """

    def __init__(
        self,
        resource: str = "place",
        resource_id: Optional[str] = None,
        message: str = PLACE_NOT_FOUND_MESSAGE,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class MediaHostError(PlacesError):
    """
    Raised when the media host rejects or fails an upload/delete.

    HTTP:    500 Internal Server Error
    The underlying error is logged; the client only sees a generic message.
    """

    def __init__(
        self,
        message: str = "Error uploading image",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(PlacesError):
    """
    Raised when database operations fail unexpectedly.

    HTTP:    500 Internal Server Error
    Query text and driver errors are logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class MigrationError(PlacesError):
    """
    Raised by the migration runner when a script fails to apply.

    Scripts after the failed one are left unapplied; the ones before it
    stay recorded.
    """

    def __init__(self, migration: str, context: Optional[Dict[str, Any]] = None):
        ctx = context or {}
        ctx["migration"] = migration
        super().__init__(message=f"Migration {migration} failed", context=ctx)
        self.migration = migration


def describe_validation_errors(errors: Iterable[Dict[str, Any]]) -> str:
    """
    Flatten pydantic error dicts into one readable message.

    Example:
        [{"loc": ("body", "name"), "msg": "Field required"}]
        → "name: Field required"
    """
    parts = []
    for error in errors:
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(location)
        message = error.get("msg", "Invalid value")
        parts.append(f"{field}: {message}" if field else message)
    return "; ".join(parts) or "Validation failed"
