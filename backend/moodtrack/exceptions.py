"""
MoodTrack Backend — Custom Exception Hierarchy
================================================

What:  Application-specific exceptions, each carrying an HTTP status and a
       stable numeric error code.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return `{"success": false, "message", "error": <code>}` bodies.
Who:   Raised by services, dependencies and the persistence layer.

Exception Hierarchy:
    MoodTrackError (base)
    ├── ValidationError              → 400 / 40002
    │   ├── InvalidIdentifierError   → 400 / 40001
    │   └── ConflictError            → 400 / 40009
    ├── NotFoundError                → 404 / 40003
    ├── AuthenticationError
    │   ├── WrongCredentialsError    → 401 / 40004
    │   ├── InvalidTokenError        → 401 / 40005
    │   ├── AccountLockedError       → 423 / 40006
    │   └── InvalidPasswordHashError → 401 / 40008
    └── InfrastructureError          → 5xx, generic message to the client
        ├── TokenCreationError       → 500 / 5001
        ├── DatabaseError            → 500 / 5003
        │   └── DuplicateKeyError    → 500 / 5003
        ├── TaskFailureError         → 500 / 5005
        ├── HashingError             → 500 / 5006
        ├── MusicServiceError        → 503 / 5007
        ├── CircuitBreakerOpenError  → 503 / 5008
        └── FileStorageError         → 500 / 5009

Codes are part of the public API: clients branch on them, and operators
alert on the 5xxx range. Never renumber an existing code.
"""

from typing import Any, Dict, Optional

UNEXPECTED_ERROR_CODE = 5000


class MoodTrackError(Exception):
    """
    Base exception for all MoodTrack application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    status_code: int = 500
    error_code: int = UNEXPECTED_ERROR_CODE

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


# ══════════════════════════════════════════════════════════════════════════
# Client errors (4xx): message is returned verbatim
# ══════════════════════════════════════════════════════════════════════════


class ValidationError(MoodTrackError):
    """
    Raised when client input fails validation.

    When:    Out-of-range ratings, unknown emotion, bad pagination params,
             malformed request bodies.
    HTTP:    400 Bad Request
    """

    status_code = 400
    error_code = 40002

    def __init__(
        self,
        message: str = "Bad Request",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class InvalidIdentifierError(ValidationError):
    """Raised when a string is not a valid hex identifier."""

    error_code = 40001

    def __init__(self, value: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message=f"Error parsing identifier {value!r}", context=context)
        self.value = value


class ConflictError(ValidationError):
    """
    Raised when a write would violate a uniqueness rule.

    When:    Signup with an email that is already registered.
    HTTP:    400 Bad Request, with its own code so clients can tell it apart
             from malformed input.
    """

    error_code = 40009


class NotFoundError(MoodTrackError):
    """Raised when a requested resource does not exist."""

    status_code = 404
    error_code = 40003

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = "Not found"
        if resource_id:
            message = f"{resource} '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class AuthenticationError(MoodTrackError):
    """
    Base for authentication failures.

    Messages are deliberately vague: the client never learns whether the
    email was unknown or the password wrong, nor whether a token was expired
    or forged.
    """

    status_code = 401


class WrongCredentialsError(AuthenticationError):
    error_code = 40004

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="Wrong authentication credentials", context=context)


class InvalidTokenError(AuthenticationError):
    error_code = 40005

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="Invalid authentication credentials", context=context)


class AccountLockedError(AuthenticationError):
    status_code = 423
    error_code = 40006

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="User is locked", context=context)


class InvalidPasswordHashError(AuthenticationError):
    """Raised by password verification when the stored hash is malformed."""

    error_code = 40008

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="Invalid password", context=context)


# ══════════════════════════════════════════════════════════════════════════
# Infrastructure errors (5xx): message is logged, never echoed
# ══════════════════════════════════════════════════════════════════════════


class InfrastructureError(MoodTrackError):
    """
    Base for server-side failures.

    The global handler replaces `message` with a generic text in the response
    and logs the original message together with `context`.
    """

    status_code = 500


class TokenCreationError(InfrastructureError):
    """Signing an auth token failed."""

    error_code = 5001

    def __init__(
        self,
        message: str = "Failed to create authentication token",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(InfrastructureError):
    """
    Raised when a store operation fails.

    Security Note:
        Detailed error info (SQL, constraint names) stays in `context` and
        the server log, never in the API response.
    """

    error_code = 5003

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DuplicateKeyError(DatabaseError):
    """
    A uniqueness constraint rejected an insert.

    Still a DatabaseError: callers that know which constraint can be hit
    (signup → email) catch it and raise ConflictError instead.
    """


class TaskFailureError(InfrastructureError):
    """The blocking-work pool refused or lost a job."""

    error_code = 5005

    def __init__(
        self,
        message: str = "Background task could not be executed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class HashingError(InfrastructureError):
    """The password hashing primitive failed."""

    error_code = 5006

    def __init__(
        self,
        message: str = "Password hashing failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class MusicServiceError(InfrastructureError):
    """
    Raised when the music generation provider fails after all retries.

    HTTP:    503 Service Unavailable
    """

    status_code = 503
    error_code = 5007

    def __init__(
        self,
        message: str = "Music generation service is temporarily unavailable",
        retry_after: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if retry_after:
            ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class CircuitBreakerOpenError(InfrastructureError):
    """
    Raised when the circuit breaker guarding the music provider is OPEN.

    HTTP:    503 Service Unavailable, with a Retry-After header.
    """

    status_code = 503
    error_code = 5008

    def __init__(
        self,
        recovery_time: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            "Music generation is temporarily unavailable due to repeated failures. "
            f"Retry in approximately {recovery_time} seconds."
        )
        ctx = context or {}
        ctx["recovery_time"] = recovery_time
        super().__init__(message=message, context=ctx)
        self.recovery_time = recovery_time


class FileStorageError(InfrastructureError):
    """Could not write or read a generated audio file."""

    error_code = 5009

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
