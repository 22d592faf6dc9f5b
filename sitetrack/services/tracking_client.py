"""Tracking Client — wires the tracker and the system logger from Settings.

Invariants:
    - One TrackingClient per host process; its SystemLogger is the shared handle
    - Settings drive delay, inactivity window, excluded prefixes and the logging flag
    - close() drains outstanding writes and never raises
"""

import logging
import random
from dataclasses import dataclass

from sitetrack.config import Settings, get_settings
from sitetrack.core.domain_types import Clock
from sitetrack.core.repository_protocols import (
    IdentityStore, NavigationSource, PageContext, TelemetrySink, UserResolver,
)
from sitetrack.infrastructure.http_sink import HttpTelemetrySink
from sitetrack.infrastructure.identity_store import JsonFileIdentityStore
from sitetrack.services.session_identity import SessionManager
from sitetrack.services.system_logger import SystemLogger
from sitetrack.services.telemetry_dispatcher import TelemetryDispatcher
from sitetrack.services.telemetry_repository import DatabaseTelemetrySink, SessionProvider
from sitetrack.services.visit_tracker import VisitTracker
from sitetrack.services.visitor_identity import VisitorIdentityManager, system_clock

logger = logging.getLogger(__name__)


@dataclass
class TrackingClient:
    tracker: VisitTracker
    system_logger: SystemLogger
    sink: TelemetrySink

    async def close(self) -> None:
        await self.tracker.dispatcher.drain()
        await self.system_logger.drain()
        if isinstance(self.sink, HttpTelemetrySink):
            try:
                await self.sink.aclose()
            except Exception as e:
                logger.debug(f"Telemetry sink close failed: {e}")


def build_sink(
    settings: Settings, session_provider: SessionProvider | None = None,
) -> TelemetrySink:
    """Remote ingest when telemetry_endpoint is set, otherwise the local database."""
    if settings.telemetry_endpoint:
        return HttpTelemetrySink(
            settings.telemetry_endpoint, timeout=settings.telemetry_timeout_seconds,
        )
    if session_provider is None:
        raise ValueError("session_provider required when no telemetry_endpoint is set")
    return DatabaseTelemetrySink(session_provider)


def create_tracking_client(
    sink: TelemetrySink,
    page_context: PageContext,
    store: IdentityStore | None = None,
    navigation_source: NavigationSource | None = None,
    user_resolver: UserResolver | None = None,
    settings: Settings | None = None,
    clock: Clock = system_clock,
    rng: random.Random | None = None,
) -> TrackingClient:
    settings = settings or get_settings()
    store = store or JsonFileIdentityStore(settings.identity_store_path)

    dispatcher = TelemetryDispatcher(
        sink=sink,
        visitors=VisitorIdentityManager(store, clock=clock, rng=rng),
        sessions=SessionManager(
            store,
            clock=clock,
            inactivity_window_ms=settings.session_inactivity_minutes * 60 * 1000,
            rng=rng,
        ),
        page_context=page_context,
        user_resolver=user_resolver,
        delay_seconds=settings.tracking_dispatch_delay_ms / 1000,
    )
    tracker = VisitTracker(
        dispatcher,
        navigation_source=navigation_source,
        excluded_prefixes=settings.tracking_excluded_prefixes,
    )
    system_logger = SystemLogger(
        sink, page_context=page_context, enabled=settings.system_logging_enabled,
    )
    return TrackingClient(tracker=tracker, system_logger=system_logger, sink=sink)
