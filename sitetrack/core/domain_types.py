"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - VisitorId has the shape v_<epoch-ms>_<base36>, SessionId s_<epoch-ms>_<base36>
    - All closed value sets (device, browser, os, level, category, sink) are Enums
    - NavigationTarget is immutable once created

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON and DB columns without custom encoders
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, NewType


# ─── Identity Types ──────────────────────────────────────────────

VisitorId = NewType("VisitorId", str)
SessionId = NewType("SessionId", str)
EpochMillis = NewType("EpochMillis", int)

# Returns the current wall-clock time in epoch milliseconds
Clock = Callable[[], EpochMillis]


# ─── Identity Store Keys ─────────────────────────────────────────

VISITOR_ID_KEY = "st_visitor_id"
SESSION_ID_KEY = "st_session_id"
SESSION_TIMESTAMP_KEY = "st_session_timestamp"

VISITOR_ID_PREFIX = "v"
SESSION_ID_PREFIX = "s"

SESSION_INACTIVITY_MS = 30 * 60 * 1000


# ─── Enums ───────────────────────────────────────────────────────

class DeviceType(str, Enum):
    MOBILE = "mobile"
    TABLET = "tablet"
    DESKTOP = "desktop"


class Browser(str, Enum):
    CHROME = "Chrome"
    SAFARI = "Safari"
    FIREFOX = "Firefox"
    EDGE = "Edge"
    OPERA = "Opera"
    OTHER = "Other"


class OperatingSystem(str, Enum):
    WINDOWS = "Windows"
    MACOS = "macOS"
    LINUX = "Linux"
    ANDROID = "Android"
    IOS = "iOS"
    OTHER = "Other"


class LogLevel(str, Enum):
    """Log levels in order of severity — values match the system_logs column."""
    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


class LogCategory(str, Enum):
    """Predefined categories for consistent log filtering."""
    SYSTEM = "system"
    AUTH = "auth"
    EDGE = "edge"
    ORDER = "order"
    PAYMENT = "payment"
    PRODUCT = "product"
    USER = "user"


class RecordSink(str, Enum):
    """The two persistence sinks — values are the backing table names."""
    VISITS = "site_visits"
    LOGS = "system_logs"


# ─── Value Types ─────────────────────────────────────────────────

@dataclass(frozen=True)
class NavigationTarget:
    """One route change reported by the host's navigation source."""
    pathname: str
