"""System Logger — leveled, categorized records written to the system_logs sink.

Invariants:
    - A disabled logger is a no-op for every entry point (default: enabled)
    - Every record's metadata carries logged_at and the client user-agent ("server" when none)
    - No entry point raises: sink, transport, permission and validation failures are
      reported as WARNING on the stdlib logging channel and dropped, never retried
    - write() and the convenience methods are fire-and-forget; log() is the awaitable form
    - The record (metadata copy, logged_at) is captured at call time, before scheduling
    - order()/payment() fold order_id into metadata

Design Decisions:
    - Explicit SystemLogger value built once at startup and passed to call sites
      (no module singleton)
    - ScopedLogger is a frozen dataclass binding (source, category): call sites never
      repeat their own identity strings
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Coroutine

from sitetrack.core.domain_types import LogCategory, LogLevel, RecordSink
from sitetrack.core.errors import SinkWriteError
from sitetrack.core.repository_protocols import PageContext, TelemetrySink
from sitetrack.core.telemetry_records import LogRecord, enrich_metadata

logger = logging.getLogger(__name__)

Metadata = dict[str, Any] | None


class SystemLogger:
    """Structured logger for admin monitoring. Construct once, share the handle."""

    def __init__(
        self,
        sink: TelemetrySink,
        page_context: PageContext | None = None,
        enabled: bool = True,
        now: Callable[[], datetime] | None = None,
    ):
        self._sink = sink
        self._page = page_context
        self._enabled = enabled
        self._now = now or (lambda: datetime.now(timezone.utc))
        self._tasks: set[asyncio.Task] = set()

    @property
    def enabled(self) -> bool:
        return self._enabled

    def set_enabled(self, enabled: bool) -> None:
        self._enabled = enabled

    async def log(
        self,
        level: LogLevel | str,
        category: LogCategory | str,
        source: str,
        message: str,
        user_id: str | None = None,
        metadata: Metadata = None,
    ) -> None:
        """Write one record and wait for the backend. Never raises."""
        if not self._enabled:
            return
        record = self._build(level, category, source, message, user_id, metadata)
        if record is not None:
            await self._submit(record)

    def write(
        self,
        level: LogLevel | str,
        category: LogCategory | str,
        source: str,
        message: str,
        user_id: str | None = None,
        metadata: Metadata = None,
    ) -> None:
        """Fire-and-forget form of log(). The record is built at call time."""
        if not self._enabled:
            return
        record = self._build(level, category, source, message, user_id, metadata)
        if record is not None:
            self._spawn(lambda: self._submit(record))

    def _build(
        self,
        level: LogLevel | str,
        category: LogCategory | str,
        source: str,
        message: str,
        user_id: str | None,
        metadata: Metadata,
    ) -> LogRecord | None:
        try:
            return LogRecord(
                level=LogLevel(level),
                category=LogCategory(category),
                source=source,
                message=message,
                user_id=user_id,
                metadata=enrich_metadata(metadata, self._now(), self._client_user_agent()),
            )
        except Exception as e:
            logger.warning(f"Logger error: {e}", extra={"source": source})
            return None

    async def _submit(self, record: LogRecord) -> None:
        try:
            await self._sink.insert(RecordSink.LOGS, record.to_record())
        except SinkWriteError as e:
            logger.warning(
                f"Failed to write system log: {e.message}",
                extra={"sink": e.sink, "source": record.source, "error_code": e.code},
            )
        except Exception as e:
            logger.warning(f"Logger error: {e}", extra={"source": record.source})

    def _spawn(self, make_coro: Callable[[], Coroutine[Any, Any, None]]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("System log dropped: no running event loop")
            return
        task = loop.create_task(make_coro())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _client_user_agent(self) -> str | None:
        return self._page.user_agent() if self._page is not None else None

    # ─── System category ─────────────────────────────────────────

    def debug(self, source: str, message: str, metadata: Metadata = None) -> None:
        self.write(LogLevel.DEBUG, LogCategory.SYSTEM, source, message, metadata=metadata)

    def info(self, source: str, message: str, metadata: Metadata = None) -> None:
        self.write(LogLevel.INFO, LogCategory.SYSTEM, source, message, metadata=metadata)

    def warn(self, source: str, message: str, metadata: Metadata = None) -> None:
        self.write(LogLevel.WARN, LogCategory.SYSTEM, source, message, metadata=metadata)

    def error(self, source: str, message: str, metadata: Metadata = None) -> None:
        self.write(LogLevel.ERROR, LogCategory.SYSTEM, source, message, metadata=metadata)

    # ─── Domain categories ───────────────────────────────────────

    def auth(
        self, level: LogLevel | str, message: str,
        user_id: str | None = None, metadata: Metadata = None,
    ) -> None:
        self.write(level, LogCategory.AUTH, "AuthSystem", message, user_id, metadata)

    def order(
        self, level: LogLevel | str, message: str, order_id: str | None = None,
        user_id: str | None = None, metadata: Metadata = None,
    ) -> None:
        self.write(
            level, LogCategory.ORDER, "OrderSystem", message, user_id,
            {**(metadata or {}), "order_id": order_id},
        )

    def payment(
        self, level: LogLevel | str, message: str,
        order_id: str | None = None, metadata: Metadata = None,
    ) -> None:
        self.write(
            level, LogCategory.PAYMENT, "PaymentSystem", message,
            metadata={**(metadata or {}), "order_id": order_id},
        )

    def edge(
        self, level: LogLevel | str, function_name: str, message: str,
        metadata: Metadata = None,
    ) -> None:
        self.write(level, LogCategory.EDGE, function_name, message, metadata=metadata)

    async def drain(self) -> None:
        """Wait for every outstanding fire-and-forget write (shutdown, tests)."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


@dataclass(frozen=True)
class ScopedLogger:
    """Binds source + category so call sites pass only message and metadata."""
    logger: SystemLogger
    source: str
    category: LogCategory = LogCategory.SYSTEM

    def debug(self, message: str, metadata: Metadata = None) -> None:
        self.logger.write(LogLevel.DEBUG, self.category, self.source, message, metadata=metadata)

    def info(self, message: str, metadata: Metadata = None) -> None:
        self.logger.write(LogLevel.INFO, self.category, self.source, message, metadata=metadata)

    def warn(self, message: str, metadata: Metadata = None) -> None:
        self.logger.write(LogLevel.WARN, self.category, self.source, message, metadata=metadata)

    def error(self, message: str, metadata: Metadata = None) -> None:
        self.logger.write(LogLevel.ERROR, self.category, self.source, message, metadata=metadata)


def create_scoped_logger(
    system_logger: SystemLogger,
    source: str,
    category: LogCategory | str = LogCategory.SYSTEM,
) -> ScopedLogger:
    """Unknown categories fall back to system (with a warning) rather than raising."""
    try:
        resolved = LogCategory(category)
    except ValueError:
        logger.warning(
            f"Unknown log category {category!r} for {source}, using system",
            extra={"source": source},
        )
        resolved = LogCategory.SYSTEM
    return ScopedLogger(system_logger, source, resolved)
