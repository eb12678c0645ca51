"""Error Hierarchy — typed, categorized exceptions for every favour failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Permission errors are raised at call time, even if the UI already disabled the action
    - StorageFailureError means no remote mutation happened (favour still pending)
    - RegistrationFailureError means the blob was stored but the record was not updated
    - user_message carries the remote's first structured error message, when one exists

Design Decisions:
    - Single hierarchy with FavourError base: callers catch one type per action
    - ErrorContext as dataclass: rich observability without coupling to logging framework
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    PERMISSION = "permission"
    AUTHENTICATION = "authentication"
    RESOURCE_NOT_FOUND = "resource_not_found"
    EXTERNAL_API = "external_api"
    STORAGE = "storage"
    TIMEOUT = "timeout"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    favour_id: str | None = None
    viewer_id: str | None = None
    storage_path: str | None = None
    status_code: int | None = None
    user_message: str | None = None
    debug_info: dict[str, Any] | None = None
    retry_after_ms: int | None = None


class FavourError(Exception):
    """Base exception for all favour errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    @property
    def user_message(self) -> str | None:
        """First structured error message reported by the remote side."""
        return self.context.user_message

    def to_response(self) -> dict:
        """Convert to standardized REST error envelope."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "favour_id": self.context.favour_id,
                    "viewer_id": self.context.viewer_id,
                    "storage_path": self.context.storage_path,
                    "retry_after_ms": self.context.retry_after_ms,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class ForbiddenError(FavourError):
    """Viewer is not permitted to perform the action on this favour."""
    def __init__(self, action: str, reason: str, context: ErrorContext | None = None):
        super().__init__(
            f"Not permitted to {action}: {reason}",
            "FORBIDDEN", ErrorCategory.PERMISSION,
            ErrorSeverity.WARNING, context, 403,
        )
        self.action = action
        self.reason = reason


class ResourceNotFoundError(FavourError):
    """Requested favour or blob does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.WARNING, context, 404,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class UnauthorizedError(FavourError):
    """Viewer credential was rejected upstream."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            f"Credential rejected: {message}",
            "UNAUTHORIZED", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.ERROR, context, 401,
        )


class InvalidFavourError(FavourError):
    """Remote returned a record that is not a structurally valid favour."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            f"Invalid favour record: {message}",
            "INVALID_FAVOUR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 502,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class TransportError(FavourError):
    """Network or remote failure talking to the favour API."""
    def __init__(
        self,
        message: str,
        operation: str,
        retry_after_ms: int | None = None,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.retry_after_ms = retry_after_ms
        super().__init__(
            f"Favour API {operation} failed: {message}",
            "TRANSPORT_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.ERROR, ctx, 503,
        )
        self.operation = operation


class StorageFailureError(FavourError):
    """Blob upload failed. No remote record mutation has happened."""
    def __init__(self, message: str, path: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.storage_path = path
        super().__init__(
            f"Evidence upload to '{path}' failed: {message}",
            "STORAGE_FAILURE", ErrorCategory.STORAGE,
            ErrorSeverity.ERROR, ctx, 503,
        )
        self.path = path


class RegistrationFailureError(FavourError):
    """Blob stored but the favour record rejected or never received the reference."""
    def __init__(
        self, path: str, cause: FavourError, context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.storage_path = path
        if ctx.user_message is None:
            ctx.user_message = cause.user_message
        super().__init__(
            f"Evidence '{path}' uploaded but not registered: {cause.message}",
            "REGISTRATION_FAILURE", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.ERROR, ctx, 502,
        )
        self.path = path
        self.cause = cause
