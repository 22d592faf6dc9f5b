"""Error Hierarchy — typed, categorized exceptions for all sitetrack failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Storage and sink errors never cross the tracker/logger boundary (caught there)
    - to_response() produces the REST envelope used by the ingest/reporting API
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with SiteTrackError base: FastAPI global handler catches all
    - ErrorContext as dataclass: rich observability without coupling to logging framework
"""

from dataclasses import dataclass, field
from enum import Enum
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
    STORAGE = "storage"
    PERSISTENCE = "persistence"
    DATABASE = "database"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    sink: str | None = None
    key: str | None = None


class SiteTrackError(Exception):
    """Base exception for all sitetrack errors."""

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
                    "sink": self.context.sink,
                },
            }
        }


# ─── Client-side Errors (swallowed at the tracker/logger boundary) ──

class StorageError(SiteTrackError):
    """Identity store read or write failed (unavailable, quota, permissions)."""
    def __init__(self, message: str, key: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.key = key
        super().__init__(
            f"Identity store access failed for '{key}': {message}",
            "STORAGE_ERROR", ErrorCategory.STORAGE,
            ErrorSeverity.WARNING, ctx, 500,
        )
        self.key = key


class SinkWriteError(SiteTrackError):
    """Persistence backend rejected or failed to accept a record."""
    def __init__(
        self,
        message: str,
        sink: str,
        status_code: int | None = None,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.sink = sink
        super().__init__(
            f"Write to {sink} failed: {message}",
            "SINK_WRITE_ERROR", ErrorCategory.PERSISTENCE,
            ErrorSeverity.WARNING, ctx, 502,
        )
        self.sink = sink
        self.status_code = status_code


# ─── Server-side Errors ─────────────────────────────────────────

class DatabaseError(SiteTrackError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation
