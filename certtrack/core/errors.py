"""Error Hierarchy — typed, categorized exceptions for every CertTrack failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (4xx) are recoverable; StorageIOError (5xx) is critical
    - to_response() produces the REST envelope consumed by the boundary layer
    - StorageIOError never exposes transport/filesystem detail in its message;
      the detail lives in ErrorContext.debug_info and in logs only

Design Decisions:
    - Single hierarchy with CertTrackError base: one FastAPI handler catches all (ADR: uniform error shape)
    - ConflictError subclasses (stale revision, duplicate active record, terminal plan)
      let callers pick reload-and-retry vs. fail-fast without string matching
    - PermissionDeniedError instead of PermissionError: the builtin name stays untouched
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
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    CONFLICT = "conflict"
    STORAGE = "storage"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    user_id: str | None = None
    collection: str | None = None
    resource_id: str | None = None
    debug_info: dict[str, Any] | None = None


class CertTrackError(Exception):
    """Base exception for all CertTrack errors."""

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
    def recoverable(self) -> bool:
        return self.severity in (ErrorSeverity.INFO, ErrorSeverity.WARNING, ErrorSeverity.ERROR)

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "collection": self.context.collection,
                    "resource_id": self.context.resource_id,
                },
            }
        }


# ─── Domain Errors (4xx) ─────────────────────────────────────────

class ValidationError(CertTrackError):
    """Input is well-formed but violates a domain rule (range, date ordering)."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


class NotFoundError(CertTrackError):
    """Requested entity does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.resource_id = resource_id
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, ctx, 404,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class AuthError(CertTrackError):
    """Bad credentials or unusable session."""
    def __init__(self, message: str = "Invalid credentials", context: ErrorContext | None = None):
        super().__init__(
            message, "AUTHENTICATION_FAILED", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, context, 401,
        )


class PermissionDeniedError(CertTrackError):
    """Role or ownership does not permit the action."""
    def __init__(self, resource: str, action: str, context: ErrorContext | None = None):
        super().__init__(
            f"Permission denied for {action} on {resource}",
            "FORBIDDEN", ErrorCategory.AUTHORIZATION,
            ErrorSeverity.WARNING, context, 403,
        )
        self.resource = resource
        self.action = action


class ConflictError(CertTrackError):
    """Write would violate a uniqueness rule or was based on stale state."""
    def __init__(
        self, message: str, code: str = "CONFLICT", context: ErrorContext | None = None,
    ):
        super().__init__(
            message, code, ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )


class StaleRevisionError(ConflictError):
    """Remote store rejected a write: the revision moved since it was loaded."""
    def __init__(self, collection: str, revision: str | None, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.collection = collection
        super().__init__(
            f"Collection '{collection}' changed since it was loaded; reload and retry",
            "STALE_REVISION", ctx,
        )
        self.collection = collection
        self.revision = revision


class DuplicateActiveRecordError(ConflictError):
    """An active plan/achievement already exists for (user, certification)."""
    def __init__(
        self, resource_type: str, user_id: str, certification_id: str,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.user_id = user_id
        super().__init__(
            f"Active {resource_type} for this certification already exists",
            "DUPLICATE_ACTIVE_RECORD", ctx,
        )
        self.resource_type = resource_type
        self.certification_id = certification_id


class TerminalPlanError(ConflictError):
    """Progress mutation attempted on a completed or cancelled plan."""
    def __init__(self, plan_id: str, status: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.resource_id = plan_id
        super().__init__(
            f"Study plan is {status}; progress can no longer change",
            "PLAN_TERMINAL", ctx,
        )
        self.status = status


# ─── Infrastructure Errors (5xx) ─────────────────────────────────

class StorageIOError(CertTrackError):
    """Transport or filesystem failure underneath a CollectionStore."""
    def __init__(self, detail: str, operation: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.debug_info = {**(ctx.debug_info or {}), "detail": detail, "operation": operation}
        super().__init__(
            "Storage is temporarily unavailable",
            "STORAGE_IO_ERROR", ErrorCategory.STORAGE,
            ErrorSeverity.CRITICAL, ctx, 503,
        )
        self.detail = detail
        self.operation = operation
