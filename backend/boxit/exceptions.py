"""
BoxIT Backend — Custom Exception Hierarchy
===========================================

What:  Application-specific exceptions, one per failure kind a client sees.
How:   Each exception carries a message, an optional context dict, a stable
       machine-readable `kind` and the HTTP status it maps to. The global
       handler registered in main.py renders every subclass the same way.
Who:   Raised by services and dependencies; caught by the global handler.

Exception Hierarchy:
    BoxITError (base)
    ├── UnauthorizedError     → 401 unauthorized
    ├── NotFoundError         → 404 not_found
    ├── InvalidInputError     → 400 invalid_input
    ├── ConflictError         → 409 conflict
    └── UpstreamServiceError  → 503 upstream_failure

A missing resource and a resource owned by somebody else both raise
NotFoundError with the same message.
"""

from typing import Any, Dict, Optional


class BoxITError(Exception):
    """
    Base exception for all BoxIT application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged; only InvalidInputError exposes it)
    """

    kind = "internal_error"
    status_code = 500
    expose_context = False

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class UnauthorizedError(BoxITError):
    """No session, or a session token that is invalid or expired."""

    kind = "unauthorized"
    status_code = 401

    def __init__(
        self,
        message: str = "Authentication required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(BoxITError):
    """
    Raised when a resource does not exist or is not owned by the caller.

    The message names the resource type only. The id goes into context so
    it is logged but never echoed back.
    """

    kind = "not_found"
    status_code = 404

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=f"{resource.capitalize()} not found", context=ctx)
        self.resource = resource


class InvalidInputError(BoxITError):
    """
    Raised when client input fails a business rule.

    When:    Missing name, malformed label payload, bad image type or size,
             invalid or expired reset token.
    HTTP:    400 Bad Request

    Example response:
        {
            "error": "invalid_input",
            "message": "Invalid file type. Only JPEG, PNG, WebP, and GIF are allowed.",
            "details": {"field": "image", "content_type": "application/pdf"}
        }
    """

    kind = "invalid_input"
    status_code = 400
    expose_context = True

    def __init__(
        self,
        message: str = "Invalid input",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class ConflictError(BoxITError):
    """A unique value is already taken (email, QR code)."""

    kind = "conflict"
    status_code = 409

    def __init__(
        self,
        message: str = "Resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class UpstreamServiceError(BoxITError):
    """
    Raised when a collaborator fails: database, object storage, email
    delivery or QR rendering.

    HTTP:    503 Service Unavailable

    Internal details (URLs, driver errors) stay in context and are only
    logged.
    """

    kind = "upstream_failure"
    status_code = 503

    def __init__(
        self,
        message: str = "A dependent service is temporarily unavailable. Please try again later.",
        service: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if service:
            ctx["service"] = service
        super().__init__(message=message, context=ctx)
        self.service = service
