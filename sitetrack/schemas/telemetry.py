"""Telemetry Schemas — Pydantic models validating the ingest API bodies.

Invariants:
    - VisitCreate mirrors TrackingEvent.to_record(); LogCreate mirrors LogRecord.to_record()
    - Classifier fields only accept the closed Enum value sets
    - message/source are stripped and must be non-empty
    - page_title/referrer/user_agent are truncated to CLIENT_TEXT_LIMITS, not rejected

Design Decisions:
    - Enums from core/domain_types.py: one source of truth for allowed values
"""

from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, ValidationInfo, field_validator

from sitetrack.core.domain_types import (
    Browser, DeviceType, LogCategory, LogLevel, OperatingSystem,
)


CLIENT_TEXT_LIMITS = {"page_title": 1000, "referrer": 2048, "user_agent": 1000}


class VisitCreate(BaseModel):
    """One tracked navigation."""
    event_id: UUID | None = None
    visitor_id: str = Field(min_length=1, max_length=64)
    session_id: str | None = Field(None, max_length=64)
    page_url: str = Field(min_length=1, max_length=2048)
    page_title: str | None = None
    referrer: str | None = None
    user_agent: str | None = None
    device_type: DeviceType | None = None
    browser: Browser | None = None
    os: OperatingSystem | None = None
    user_id: str | None = Field(None, max_length=64)

    @field_validator("page_title", "referrer", "user_agent", mode="before")
    @classmethod
    def truncate_client_text(cls, v: Any, info: ValidationInfo) -> Any:
        """Browser-supplied text is capped, never rejected (a rejected visit is lost)."""
        if isinstance(v, str):
            return v[:CLIENT_TEXT_LIMITS[info.field_name]]
        return v


class VisitIngestResponse(BaseModel):
    status: str
    event_id: UUID | None = None


class LogCreate(BaseModel):
    """One structured log record."""
    level: LogLevel = LogLevel.INFO
    category: LogCategory = LogCategory.SYSTEM
    source: str = Field(min_length=1, max_length=100)
    message: str = Field(min_length=1, max_length=10_000)
    user_id: str | None = Field(None, max_length=64)
    metadata: dict[str, Any] | None = None

    @field_validator("source", "message")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("cannot be empty or whitespace")
        return v


class LogEntryResponse(BaseModel):
    id: UUID
    level: str
    category: str
    source: str
    message: str
    user_id: str | None = None
    metadata: dict[str, Any] | None = None
    created_at: str
