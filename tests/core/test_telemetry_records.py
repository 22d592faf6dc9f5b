"""Tests for TrackingEvent / LogRecord shapes and metadata enrichment."""

import uuid
from datetime import datetime, timezone

from sitetrack.core.client_context import ClientContext
from sitetrack.core.domain_types import (
    Browser, DeviceType, LogCategory, LogLevel, OperatingSystem,
)
from sitetrack.core.telemetry_records import (
    SERVER_USER_AGENT, LogRecord, build_tracking_event, enrich_metadata,
)

CTX = ClientContext(DeviceType.MOBILE, Browser.CHROME, OperatingSystem.ANDROID)


def _event(**overrides):
    fields = dict(
        visitor_id="v_1_a", session_id="s_1_b", page_url="/shop",
        page_title="Shop", referrer="https://example.com/", user_agent="UA",
        context=CTX,
    )
    fields.update(overrides)
    return build_tracking_event(**fields)


def test_event_record_has_every_visit_column():
    record = _event(user_id="u-1").to_record()
    assert record["visitor_id"] == "v_1_a"
    assert record["session_id"] == "s_1_b"
    assert record["page_url"] == "/shop"
    assert record["device_type"] == "mobile"
    assert record["browser"] == "Chrome"
    assert record["os"] == "Android"
    assert record["user_id"] == "u-1"
    uuid.UUID(record["event_id"])


def test_empty_referrer_becomes_none():
    assert _event(referrer="").to_record()["referrer"] is None


def test_anonymous_event_has_no_user():
    assert _event().to_record()["user_id"] is None


def test_every_event_gets_its_own_event_id():
    assert _event().event_id != _event().event_id


def test_log_record_serializes_enum_values():
    record = LogRecord(
        LogLevel.WARN, LogCategory.PAYMENT, "PaymentSystem", "declined",
    ).to_record()
    assert record["level"] == "warn"
    assert record["category"] == "payment"
    assert record["user_id"] is None
    assert record["metadata"] == {}


def test_enrich_adds_timestamp_and_user_agent():
    at = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    meta = enrich_metadata({"order_id": "o-1"}, logged_at=at, user_agent="UA/1")
    assert meta == {
        "order_id": "o-1",
        "logged_at": "2026-01-02T03:04:05+00:00",
        "user_agent": "UA/1",
    }


def test_enrich_without_client_marks_server():
    assert enrich_metadata(None)["user_agent"] == SERVER_USER_AGENT


def test_enrich_does_not_mutate_caller_metadata():
    original = {"k": "v"}
    enrich_metadata(original)
    assert original == {"k": "v"}
