"""Telemetry Records — the two record shapes handed to the persistence backend.

Invariants:
    - TrackingEvent is built fresh per dispatch; the core keeps no reference after submit
    - Every TrackingEvent carries a unique event_id (idempotency key for the backend)
    - Empty referrer is stored as None
    - Log metadata is always enriched with logged_at (ISO-8601 UTC) and user_agent;
      caller metadata is copied, never mutated

Design Decisions:
    - Frozen dataclasses + to_record(): column names live here, in one place
    - Enrichment is pure (timestamp injected) so it is testable without a clock
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from sitetrack.core.client_context import ClientContext
from sitetrack.core.domain_types import LogCategory, LogLevel

SERVER_USER_AGENT = "server"


@dataclass(frozen=True)
class TrackingEvent:
    visitor_id: str
    session_id: str
    page_url: str
    page_title: str | None
    referrer: str | None
    user_agent: str
    device_type: str
    browser: str
    os: str
    user_id: str | None = None
    event_id: uuid.UUID = field(default_factory=uuid.uuid4)

    def to_record(self) -> dict[str, Any]:
        return {
            "event_id": str(self.event_id),
            "visitor_id": self.visitor_id,
            "session_id": self.session_id,
            "page_url": self.page_url,
            "page_title": self.page_title,
            "referrer": self.referrer,
            "user_agent": self.user_agent,
            "device_type": self.device_type,
            "browser": self.browser,
            "os": self.os,
            "user_id": self.user_id,
        }


def build_tracking_event(
    *,
    visitor_id: str,
    session_id: str,
    page_url: str,
    page_title: str | None,
    referrer: str | None,
    user_agent: str,
    context: ClientContext,
    user_id: str | None = None,
) -> TrackingEvent:
    return TrackingEvent(
        visitor_id=visitor_id,
        session_id=session_id,
        page_url=page_url,
        page_title=page_title,
        referrer=referrer or None,
        user_agent=user_agent,
        device_type=context.device_type.value,
        browser=context.browser.value,
        os=context.os.value,
        user_id=user_id or None,
    )


@dataclass(frozen=True)
class LogRecord:
    level: LogLevel
    category: LogCategory
    source: str
    message: str
    user_id: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_record(self) -> dict[str, Any]:
        return {
            "level": self.level.value,
            "category": self.category.value,
            "source": self.source,
            "message": self.message,
            "user_id": self.user_id or None,
            "metadata": self.metadata,
        }


def enrich_metadata(
    metadata: dict[str, Any] | None,
    logged_at: datetime | None = None,
    user_agent: str | None = None,
) -> dict[str, Any]:
    """Copy caller metadata and stamp capture time + client user-agent."""
    stamp = logged_at or datetime.now(timezone.utc)
    return {
        **(metadata or {}),
        "logged_at": stamp.isoformat(),
        "user_agent": user_agent or SERVER_USER_AGENT,
    }
