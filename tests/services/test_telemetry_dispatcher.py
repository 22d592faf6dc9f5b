"""Telemetry Dispatcher — delayed, cancellable, fail-silent visit writes.

Invariants:
    - A dispatch writes one site_visits record after the delay
    - A second dispatch within the delay supersedes the first
    - A dispatch already past its delay is not recalled by a later one
    - Sink/user-resolution failures never raise out of dispatch/track
"""

import asyncio

from sitetrack.core.domain_types import NavigationTarget, RecordSink
from sitetrack.services.session_identity import SessionManager
from sitetrack.services.telemetry_dispatcher import TelemetryDispatcher
from sitetrack.services.visitor_identity import VisitorIdentityManager

DELAY = 0.01


def _dispatcher(sink, store, clock, page, user_resolver=None, delay=DELAY):
    return TelemetryDispatcher(
        sink=sink,
        visitors=VisitorIdentityManager(store, clock),
        sessions=SessionManager(store, clock),
        page_context=page,
        user_resolver=user_resolver,
        delay_seconds=delay,
    )


async def test_dispatch_writes_one_visit_after_delay(sink, store, clock, page):
    dispatcher = _dispatcher(sink, store, clock, page)
    dispatcher.dispatch(NavigationTarget("/shop"))
    assert sink.records == []

    await dispatcher.drain()

    visits = sink.of(RecordSink.VISITS)
    assert len(visits) == 1
    visit = visits[0]
    assert visit["page_url"] == "/shop"
    assert visit["page_title"] == "Shop"
    assert visit["referrer"] == "https://www.google.com/search?q=shoes"
    assert visit["browser"] == "Chrome"
    assert visit["os"] == "Windows"
    assert visit["device_type"] == "desktop"
    assert visit["visitor_id"].startswith("v_")
    assert visit["session_id"].startswith("s_")
    assert visit["user_id"] is None


async def test_second_dispatch_supersedes_pending(sink, store, clock, page):
    dispatcher = _dispatcher(sink, store, clock, page, delay=0.05)
    first = dispatcher.dispatch(NavigationTarget("/shop"))
    dispatcher.dispatch(NavigationTarget("/cart"))

    await dispatcher.drain()

    assert first.cancelled() or first.done()
    assert [v["page_url"] for v in sink.of(RecordSink.VISITS)] == ["/cart"]


async def test_in_flight_submit_is_not_recalled(sink, store, clock, page):
    sink.gate = asyncio.Event()
    dispatcher = _dispatcher(sink, store, clock, page)
    dispatcher.dispatch(NavigationTarget("/shop"))
    await sink.entered.wait()

    assert dispatcher.pending is None
    dispatcher.dispatch(NavigationTarget("/cart"))
    sink.gate.set()
    await dispatcher.drain()

    pages = sorted(v["page_url"] for v in sink.of(RecordSink.VISITS))
    assert pages == ["/cart", "/shop"]


async def test_cancel_pending(sink, store, clock, page):
    dispatcher = _dispatcher(sink, store, clock, page, delay=0.05)
    dispatcher.dispatch(NavigationTarget("/shop"))
    assert dispatcher.cancel_pending() is True
    await dispatcher.drain()
    assert sink.records == []
    assert dispatcher.cancel_pending() is False


async def test_sink_failure_is_swallowed(failing_sink, store, clock, page):
    dispatcher = _dispatcher(failing_sink, store, clock, page)
    task = dispatcher.dispatch(NavigationTarget("/shop"))
    await dispatcher.drain()
    assert task.exception() is None
    assert failing_sink.records == []


async def test_track_never_raises(failing_sink, store, clock, page):
    dispatcher = _dispatcher(failing_sink, store, clock, page)
    await dispatcher.track(NavigationTarget("/shop"))


async def test_signed_in_user_attached(sink, store, clock, page, static_user):
    dispatcher = _dispatcher(sink, store, clock, page, user_resolver=static_user("u-42"))
    await dispatcher.track(NavigationTarget("/account"))
    assert sink.of(RecordSink.VISITS)[0]["user_id"] == "u-42"


async def test_user_resolution_failure_tracks_anonymously(
    sink, store, clock, page, static_user,
):
    resolver = static_user(fail=RuntimeError("auth backend down"))
    dispatcher = _dispatcher(sink, store, clock, page, user_resolver=resolver)
    await dispatcher.track(NavigationTarget("/shop"))
    visits = sink.of(RecordSink.VISITS)
    assert len(visits) == 1
    assert visits[0]["user_id"] is None


async def test_broken_store_still_tracks(sink, broken_store, clock, page):
    dispatcher = _dispatcher(sink, broken_store, clock, page)
    await dispatcher.track(NavigationTarget("/shop"))
    assert len(sink.of(RecordSink.VISITS)) == 1


async def test_each_visit_has_distinct_event_id(sink, store, clock, page):
    dispatcher = _dispatcher(sink, store, clock, page)
    await dispatcher.track(NavigationTarget("/a"))
    await dispatcher.track(NavigationTarget("/b"))
    ids = {v["event_id"] for v in sink.of(RecordSink.VISITS)}
    assert len(ids) == 2


def test_dispatch_without_event_loop_is_dropped(sink, store, clock, page):
    dispatcher = _dispatcher(sink, store, clock, page)
    assert dispatcher.dispatch(NavigationTarget("/shop")) is None
