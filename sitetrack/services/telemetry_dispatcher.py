"""Telemetry Dispatcher — best-effort, non-blocking visit writes.

Invariants:
    - dispatch() never raises and never blocks; it schedules work on the running loop
    - A new dispatch cancels the still-sleeping previous one (last navigation wins)
    - Within one dispatch: visitor/session/context gathering → event assembly → submit
    - Any failure (user resolution, identity, page context, sink) becomes a debug diagnostic
    - User resolution failure degrades to an anonymous visit; it does not drop the visit

Design Decisions:
    - asyncio.Task as the cancellable timer handle; cancellation is advisory, a
      dispatch already past its delay is not recalled
    - Strong references to in-flight tasks (self._tasks) until they finish
    - Page metadata read after the delay so the host has finished setting the title
"""

import asyncio
import logging

from sitetrack.core.client_context import classify
from sitetrack.core.domain_types import NavigationTarget, RecordSink
from sitetrack.core.repository_protocols import PageContext, TelemetrySink, UserResolver
from sitetrack.core.telemetry_records import TrackingEvent, build_tracking_event
from sitetrack.services.session_identity import SessionManager
from sitetrack.services.visitor_identity import VisitorIdentityManager

logger = logging.getLogger(__name__)

DEFAULT_DISPATCH_DELAY_SECONDS = 0.5


class TelemetryDispatcher:
    """Gathers identity + context, assembles a TrackingEvent, writes it silently."""

    def __init__(
        self,
        sink: TelemetrySink,
        visitors: VisitorIdentityManager,
        sessions: SessionManager,
        page_context: PageContext,
        user_resolver: UserResolver | None = None,
        delay_seconds: float = DEFAULT_DISPATCH_DELAY_SECONDS,
    ):
        self._sink = sink
        self._visitors = visitors
        self._sessions = sessions
        self._page = page_context
        self._users = user_resolver
        self._delay = delay_seconds
        self._pending: asyncio.Task | None = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> asyncio.Task | None:
        """The scheduled dispatch still waiting out its delay, if any."""
        if self._pending is not None and self._pending.done():
            return None
        return self._pending

    def dispatch(self, target: NavigationTarget) -> asyncio.Task | None:
        """Schedule a delayed visit write. Returns the task handle (callers may ignore it)."""
        self.cancel_pending()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug(f"No running event loop, visit to {target.pathname} dropped")
            return None

        task = loop.create_task(self._delayed_track(target))
        self._pending = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def cancel_pending(self) -> bool:
        """Cancel the scheduled dispatch if it has not completed. Best-effort."""
        pending = self.pending
        self._pending = None
        if pending is None:
            return False
        return pending.cancel()

    async def _delayed_track(self, target: NavigationTarget) -> None:
        try:
            await asyncio.sleep(self._delay)
        except asyncio.CancelledError:
            logger.debug(f"Visit to {target.pathname} superseded before dispatch")
            return
        # Past the delay: a later navigation no longer cancels this submit
        if self._pending is asyncio.current_task():
            self._pending = None
        await self.track(target)

    async def track(self, target: NavigationTarget) -> None:
        """Gather, assemble and submit immediately. Never raises."""
        try:
            event = await self._assemble(target)
            await self._sink.insert(RecordSink.VISITS, event.to_record())
            logger.debug(
                f"Visit tracked: {target.pathname}",
                extra={"visitor_id": event.visitor_id, "session_id": event.session_id},
            )
        except Exception as e:
            logger.debug(
                f"Visit tracking failed: {e}",
                extra={"sink": RecordSink.VISITS.value},
            )

    async def _assemble(self, target: NavigationTarget) -> TrackingEvent:
        visitor_id = self._visitors.get_or_create_visitor_id()
        session_id = self._sessions.get_or_create_session_id()
        user_agent = self._page.user_agent()
        return build_tracking_event(
            visitor_id=visitor_id,
            session_id=session_id,
            page_url=target.pathname,
            page_title=self._page.page_title(),
            referrer=self._page.referrer(),
            user_agent=user_agent,
            context=classify(user_agent),
            user_id=await self._resolve_user_id(),
        )

    async def _resolve_user_id(self) -> str | None:
        if self._users is None:
            return None
        try:
            return await self._users.current_user_id()
        except Exception as e:
            logger.debug(f"User resolution failed, tracking anonymously: {e}")
            return None

    async def drain(self) -> None:
        """Wait for every in-flight dispatch (shutdown, tests)."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
