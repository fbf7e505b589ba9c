"""
CodeVault Backend — Custom Exception Hierarchy
===============================================

What:  Application-specific exceptions for the different error scenarios.
How:   Each exception carries a user-facing message, an HTTP status code and
       an optional context dict. Global exception handlers (registered in
       main.py) turn them into `{"error": message, ...}` JSON responses.
Who:   Raised by services, dependencies and middleware.

Exception Hierarchy:
    CodeVaultError (base)
    ├── ValidationError          → 400 Bad Request
    ├── AuthenticationError      → 401 Unauthorized
    ├── OriginNotAllowedError    → 403 Forbidden
    ├── NotFoundError            → 404 Not Found
    ├── ConflictError            → 409 Conflict
    ├── PayloadTooLargeError     → 413 Payload Too Large
    ├── RateLimitExceededError   → 429 Too Many Requests
    ├── ConfigurationError       → 500 (with remediation hint)
    ├── StoreError               → 500 (store message surfaced verbatim)
    ├── FileStorageError         → 500
    └── UpstreamServiceError     → upstream status, default 500

Every failure is terminal for the user action that caused it: nothing in this
package retries.
"""

from typing import Any, Dict, Optional


class CodeVaultError(Exception):
    """
    Base exception for all CodeVault application errors.

    Attributes:
        message:      User-facing error description (returned in the response)
        status_code:  HTTP status the global handler responds with
        details:      Extra, client-safe information (remediation hints etc.)
        context:      Debug info, logged but NOT returned to the client
    """

    status_code: int = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        details: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.details = details
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(CodeVaultError):
    """
    Raised when client input fails validation.

    When:    Missing/mistyped fields, empty titles, bad file types, over-long queries.
    HTTP:    400 Bad Request, checked before any external call is made.
    """

    status_code = 400

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


class PayloadTooLargeError(CodeVaultError):
    """Input exceeded a hard size cap (e.g. code above 200,000 characters)."""

    status_code = 413

    def __init__(self, message: str = "Payload too large", limit: Optional[int] = None):
        super().__init__(message=message, context={"limit": limit} if limit else None)
        self.limit = limit


class AuthenticationError(CodeVaultError):
    """
    Raised when a request needs a user and the bearer token is missing or invalid.

    HTTP:    401 Unauthorized
    """

    status_code = 401

    def __init__(self, message: str = "Not authenticated", context: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, context=context)


class OriginNotAllowedError(CodeVaultError):
    """
    Cross-origin request from an origin outside the allow-list.

    The body names no origin; the rejected origin goes to the server log,
    and only in development.
    """

    status_code = 403

    def __init__(self, origin: Optional[str] = None):
        super().__init__(message="Origin not allowed", context={"origin": origin})
        self.origin = origin


class NotFoundError(CodeVaultError):
    """
    Raised when a requested resource does not exist or is not visible to the caller.

    Ownership filters make "not yours" indistinguishable from "does not exist".
    """

    status_code = 404

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(CodeVaultError):
    """Unique business key already taken (e.g. a username at signup)."""

    status_code = 409

    def __init__(self, message: str = "Resource already exists", context: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, context=context)


class RateLimitExceededError(CodeVaultError):
    """
    Raised when a client exceeds the per-IP request rate limit.

    Response includes a Retry-After header.
    """

    status_code = 429

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Rate limit exceeded. Please wait {retry_after} seconds before making more requests."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, details={"retry_after": retry_after}, context=ctx)
        self.retry_after = retry_after


class ConfigurationError(CodeVaultError):
    """
    A third-party key the endpoint needs is absent.

    HTTP:    500, with `details` telling the operator how to fix it.
    Example response:
        {
            "error": "Gemini API key is not configured",
            "details": "Please add GEMINI_API_KEY to your backend .env file."
        }
    """

    status_code = 500

    def __init__(self, message: str, remediation: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, details=remediation, context=context)
        self.remediation = remediation


class StoreError(CodeVaultError):
    """
    A query or mutation against the hosted store failed.

    The store's own message is carried verbatim so the UI can show it in a
    toast; the in-flight action is aborted and nothing is retried.
    """

    status_code = 500

    def __init__(self, message: str = "A database error occurred", context: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, context=context)


class FileStorageError(CodeVaultError):
    """
    Raised when object storage operations fail.

    When:    Disk full, permission denied, directory not writable, I/O error.
    HTTP:    500 Internal Server Error
    """

    status_code = 500

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class UpstreamServiceError(CodeVaultError):
    """
    An external API (Gemini, YouTube, GitHub, identity) failed.

    HTTP:    The upstream's own error code when it reports one, otherwise 500.
    """

    def __init__(
        self,
        message: str = "Upstream service request failed",
        status_code: int = 500,
        details: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, details=details, context=context)
        if not isinstance(status_code, int) or not 400 <= status_code <= 599:
            status_code = 500
        self.status_code = status_code
