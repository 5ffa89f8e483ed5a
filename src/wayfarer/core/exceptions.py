"""Error taxonomy for the authentication core.

Every error carries the HTTP status it maps to so the API layer can
translate it with a single exception handler.
"""


class AuthError(Exception):
    """Base class for all authentication errors."""

    status_code: int = 500
    error: str = "Internal Server Error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.error
        super().__init__(self.message)


class ValidationError(AuthError):
    """Raised when input is malformed."""

    status_code = 400
    error = "Validation Error"


class InvalidInputError(ValidationError):
    """Raised when a required value is empty or missing."""


class BadRequestError(AuthError):
    """Raised when a request cannot be fulfilled in the current state."""

    status_code = 400
    error = "Bad Request"


class UnauthorizedError(AuthError):
    """Raised for bad, expired or missing credentials and tokens."""

    status_code = 401
    error = "Unauthorized"


class NotFoundError(AuthError):
    """Raised when a resource does not exist."""

    status_code = 404
    error = "Not Found"


class ConflictError(AuthError):
    """Raised when a uniqueness invariant would be violated."""

    status_code = 409
    error = "Conflict"


class AccountLockedError(AuthError):
    """Raised when a login identifier is locked out after repeated failures."""

    status_code = 429
    error = "Too Many Requests"

    def __init__(self, remaining_minutes: int) -> None:
        self.remaining_minutes = remaining_minutes
        super().__init__(
            "Account temporarily locked due to too many failed attempts. "
            f"Please try again in {remaining_minutes} minutes."
        )


class InternalError(AuthError):
    """Raised when hashing or storage fails for reasons unrelated to the caller."""


class RateLimitExceededError(AuthError):
    """Raised when a client sends requests faster than an endpoint allows."""

    status_code = 429
    error = "Too Many Requests"

    def __init__(self, retry_after: int) -> None:
        self.retry_after = retry_after
        super().__init__(f"Rate limit exceeded. Try again in {retry_after} seconds.")
