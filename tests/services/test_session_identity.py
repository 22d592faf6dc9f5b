"""Session Manager — sliding 30-minute inactivity window.

Invariants:
    - Gap <= 30 min keeps the id, gap > 30 min rotates it
    - Every call refreshes the last-activity timestamp (sliding expiry)
    - Unparsable timestamp forces rotation; broken store yields an ephemeral id
"""

from sitetrack.core.domain_types import SESSION_ID_KEY, SESSION_TIMESTAMP_KEY
from sitetrack.services.session_identity import SessionManager


def test_first_call_mints_session(store, clock, rng):
    session_id = SessionManager(store, clock, rng=rng).get_or_create_session_id()
    assert session_id.startswith(f"s_{clock()}_")
    assert store.get(SESSION_ID_KEY) == session_id
    assert store.get(SESSION_TIMESTAMP_KEY) == str(clock())


def test_ten_minutes_later_keeps_session(store, clock):
    manager = SessionManager(store, clock)
    first = manager.get_or_create_session_id()
    clock.advance_minutes(10)
    assert manager.get_or_create_session_id() == first


def test_thirty_one_minutes_later_rotates(store, clock):
    manager = SessionManager(store, clock)
    first = manager.get_or_create_session_id()
    clock.advance_minutes(31)
    second = manager.get_or_create_session_id()
    assert second != first
    assert second.startswith(f"s_{clock()}_")


def test_exactly_thirty_minutes_keeps_session(store, clock):
    manager = SessionManager(store, clock)
    first = manager.get_or_create_session_id()
    clock.advance_minutes(30)
    assert manager.get_or_create_session_id() == first


def test_window_slides_with_activity(store, clock):
    """10 + 25 + 25 minutes: 60 minutes total but never 30 idle."""
    manager = SessionManager(store, clock)
    first = manager.get_or_create_session_id()
    for minutes in (10, 25, 25):
        clock.advance_minutes(minutes)
        assert manager.get_or_create_session_id() == first


def test_timestamp_refreshed_on_every_call(store, clock):
    manager = SessionManager(store, clock)
    manager.get_or_create_session_id()
    clock.advance_minutes(5)
    manager.get_or_create_session_id()
    assert store.get(SESSION_TIMESTAMP_KEY) == str(clock())


def test_garbage_timestamp_forces_rotation(store, clock):
    store.set(SESSION_ID_KEY, "s_1_old")
    store.set(SESSION_TIMESTAMP_KEY, "not-a-number")
    assert SessionManager(store, clock).get_or_create_session_id() != "s_1_old"


def test_custom_window(store, clock):
    manager = SessionManager(store, clock, inactivity_window_ms=60 * 1000)
    first = manager.get_or_create_session_id()
    clock.advance_minutes(2)
    assert manager.get_or_create_session_id() != first


def test_broken_store_returns_ephemeral_id(broken_store, clock):
    session_id = SessionManager(broken_store, clock).get_or_create_session_id()
    assert session_id.startswith(f"s_{clock()}_")
