"""Domain errors raised by the service layer.

Each error carries a stable code, a message that is safe to show to
clients and the HTTP status the transport layer should answer with.
Services never build HTTP responses themselves; ``main.py`` maps these
errors to responses in one place.
"""

from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"
    AUTHORIZATION_ERROR = "AUTHORIZATION_ERROR"
    PAYMENT_REQUIRED = "PAYMENT_REQUIRED"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"
    UNCLASSIFIED = "UNCLASSIFIED"


class DomainError(Exception):
    """Base domain error with code, user-safe message and HTTP status."""

    code: ErrorCode = ErrorCode.UNCLASSIFIED
    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class ValidationError(DomainError):
    """Malformed or missing input."""

    code = ErrorCode.VALIDATION_ERROR
    status_code = 400
    default_message = "Invalid input"


class AuthenticationError(DomainError):
    """Absent, invalid or expired token, or bad login credentials."""

    code = ErrorCode.AUTHENTICATION_ERROR
    status_code = 401
    default_message = "Not authenticated"


class AuthorizationError(DomainError):
    """Authenticated, but not allowed to act on the resource."""

    code = ErrorCode.AUTHORIZATION_ERROR
    status_code = 403
    default_message = "Insufficient permissions"


class PaymentRequiredError(DomainError):
    """Direct registration attempted on a paid event."""

    code = ErrorCode.PAYMENT_REQUIRED
    status_code = 402
    default_message = "This event requires payment before registration"


class NotFoundError(DomainError):
    code = ErrorCode.NOT_FOUND
    status_code = 404
    default_message = "Resource not found"


class ConflictError(DomainError):
    """Duplicate email or duplicate registration."""

    code = ErrorCode.CONFLICT
    status_code = 409
    default_message = "Resource already exists"


class InvalidSignatureError(DomainError):
    """Webhook payload failed signature verification."""

    code = ErrorCode.INVALID_SIGNATURE
    status_code = 400
    default_message = "Invalid webhook signature"


class UnclassifiedError(DomainError):
    code = ErrorCode.UNCLASSIFIED
    status_code = 500
