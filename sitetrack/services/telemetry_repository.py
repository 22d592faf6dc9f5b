"""Telemetry Repository — reads/writes of site_visits and system_logs, plus the DB-backed sink.

Invariants:
    - save_visit is idempotent on event_id: a known id is reported as duplicate, not re-inserted
      (a concurrent insert of the same id surfaces as IntegrityError on commit)
    - Write helpers never commit; DatabaseTelemetrySink and routes own the transaction
    - DatabaseTelemetrySink raises only SinkWriteError (callers treat it as non-fatal)
    - Log search is case-insensitive over message and source

Design Decisions:
    - Plain functions taking AsyncSession: shared by the ingest routes and the in-process sink
    - Visits returned to reporting as dicts: core/visit_stats.py stays ORM-free
"""

import logging
import uuid
from datetime import datetime
from typing import AsyncContextManager, Callable

from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from sitetrack.core.domain_types import RecordSink
from sitetrack.core.errors import SiteTrackError, SinkWriteError
from sitetrack.models.site_visit import SiteVisit
from sitetrack.models.system_log import SystemLog

logger = logging.getLogger(__name__)

SessionProvider = Callable[[], AsyncContextManager[AsyncSession]]

_VISIT_COLUMNS = (
    "visitor_id", "session_id", "page_url", "page_title", "referrer",
    "user_agent", "device_type", "browser", "os", "user_id",
)


# ─── Writes ──────────────────────────────────────────────────────

async def save_visit(db: AsyncSession, record: dict) -> bool:
    """Stage a visit. Returns False when event_id was already recorded."""
    event_id = record.get("event_id")
    visit_id = uuid.UUID(str(event_id)) if event_id else uuid.uuid4()
    if await db.get(SiteVisit, visit_id) is not None:
        logger.debug(f"Duplicate visit event ignored: {visit_id}")
        return False
    db.add(SiteVisit(id=visit_id, **{c: record.get(c) for c in _VISIT_COLUMNS}))
    return True


async def save_log(db: AsyncSession, record: dict) -> SystemLog:
    entry = SystemLog(
        level=record.get("level") or "info",
        category=record.get("category") or "system",
        source=record["source"],
        message=record["message"],
        user_id=record.get("user_id"),
        metadata_=record.get("metadata"),
    )
    db.add(entry)
    return entry


# ─── Reads ───────────────────────────────────────────────────────

def visit_to_dict(visit: SiteVisit) -> dict:
    return {
        "id": str(visit.id),
        **{c: getattr(visit, c) for c in _VISIT_COLUMNS},
        "created_at": visit.created_at,
    }


async def fetch_visits_between(
    db: AsyncSession, start: datetime, end: datetime,
) -> list[dict]:
    result = await db.execute(
        select(SiteVisit)
        .where(SiteVisit.created_at >= start, SiteVisit.created_at <= end)
        .order_by(SiteVisit.created_at.desc()),
    )
    return [visit_to_dict(v) for v in result.scalars().all()]


async def query_logs(
    db: AsyncSession,
    category: str | None = None,
    level: str | None = None,
    search: str | None = None,
    limit: int = 200,
) -> list[SystemLog]:
    """Newest first, optional exact filters and a case-insensitive search."""
    query = select(SystemLog).order_by(SystemLog.created_at.desc())
    if category:
        query = query.where(SystemLog.category == category)
    if level:
        query = query.where(SystemLog.level == level)
    if search:
        pattern = f"%{search.lower()}%"
        query = query.where(or_(
            func.lower(SystemLog.message).like(pattern),
            func.lower(SystemLog.source).like(pattern),
        ))
    result = await db.execute(query.limit(limit))
    return list(result.scalars().all())


async def purge_logs_before(db: AsyncSession, cutoff: datetime) -> int:
    result = await db.execute(
        delete(SystemLog).where(SystemLog.created_at < cutoff),
    )
    return result.rowcount or 0


# ─── In-process sink ─────────────────────────────────────────────

class DatabaseTelemetrySink:
    """TelemetrySink writing straight to the database (same process as the host)."""

    def __init__(self, session_provider: SessionProvider):
        self._sessions = session_provider

    async def insert(self, sink: RecordSink, record: dict) -> None:
        try:
            async with self._sessions() as db:
                if sink == RecordSink.VISITS:
                    await save_visit(db, record)
                else:
                    await save_log(db, record)
                await db.commit()
        except SiteTrackError as e:
            raise SinkWriteError(e.message, sink.value) from e
        except SQLAlchemyError as e:
            raise SinkWriteError(type(e).__name__, sink.value) from e
        except (KeyError, ValueError, TypeError) as e:
            raise SinkWriteError(f"malformed record: {e}", sink.value) from e
