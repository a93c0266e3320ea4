"""
Platebase — Custom Exception Hierarchy
========================================

What:  Application-specific exceptions for the error scenarios of the dish API.
How:   Each exception carries a message and an optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return JSON error responses with the matching HTTP status code.
Who:   Raised by services; caught by global handlers.

Exception Hierarchy:
    PlatebaseError (base)
    ├── ValidationFailedError  → 422 Unprocessable Entity
    ├── NotFoundError          → 404 Not Found
    ├── UnexpectedError        → 500 (message passed through to the client)
    └── DatabaseError          → 500 (generic message, details logged)

Services never build HTTP responses themselves; status-code translation
lives in the handlers only.
"""

from typing import Any, Dict, List, Optional


class PlatebaseError(Exception):
    """
    Base exception for all Platebase application errors.

    Attributes:
        message:  Human-readable error description
        context:  Additional debug info (logged, not returned to the client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationFailedError(PlatebaseError):
    """
    Raised when client input violates one or more field rules.

    Carries every violation at once, keyed by field name:
        {"name": ["The name field is required."],
         "price": ["The price field must be a number."]}

    HTTP: 422 Unprocessable Entity
    """

    def __init__(
        self,
        errors: Dict[str, List[str]],
        context: Optional[Dict[str, Any]] = None,
    ):
        self.errors = errors
        fields = ", ".join(errors)
        super().__init__(message=f"Validation failed for: {fields}", context=context)


class NotFoundError(PlatebaseError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None for missing records; the service layer converts
    that None into this exception.

    HTTP: 404 Not Found
    """

    def __init__(
        self,
        resource: str = "Dish",
        resource_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = resource_id
        super().__init__(message=f"{resource} not found", context=ctx)


class UnexpectedError(PlatebaseError):
    """
    Raised when create-or-replace fails for any reason after validation.

    The original error text becomes the message and is returned to the
    client verbatim.

    HTTP: 500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(PlatebaseError):
    """
    Raised when a read, update or delete fails inside the store.

    The client only sees a generic message; the SQL-level detail goes to
    the server log.

    HTTP: 500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
