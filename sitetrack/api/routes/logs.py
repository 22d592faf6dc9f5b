"""System Logs — ingest endpoint plus the admin log viewer queries.

Invariants:
    - GET returns newest first, capped at the configured limit, with level counters
    - DELETE /old removes only records older than the retention window
"""

import logging
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from sitetrack.config import get_settings
from sitetrack.core.domain_types import LogCategory, LogLevel
from sitetrack.core.visit_stats import summarize_log_levels
from sitetrack.infrastructure.database import get_db
from sitetrack.models.system_log import SystemLog
from sitetrack.schemas.telemetry import LogCreate, LogEntryResponse
from sitetrack.services.telemetry_repository import (
    purge_logs_before, query_logs, save_log,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/logs", tags=["logs"])


def _to_response(entry: SystemLog) -> LogEntryResponse:
    return LogEntryResponse(
        id=entry.id,
        level=entry.level,
        category=entry.category,
        source=entry.source,
        message=entry.message,
        user_id=entry.user_id,
        metadata=entry.metadata_,
        created_at=entry.created_at.isoformat(),
    )


@router.post(
    "", response_model=LogEntryResponse,
    status_code=status.HTTP_201_CREATED,
)
async def ingest_log(body: LogCreate, db: AsyncSession = Depends(get_db)):
    entry = await save_log(db, body.model_dump(mode="json"))
    await db.commit()
    await db.refresh(entry)
    return _to_response(entry)


@router.get("")
async def list_logs(
    category: LogCategory | None = Query(None),
    level: LogLevel | None = Query(None),
    search: str | None = Query(None, max_length=200),
    limit: int | None = Query(None, ge=1, le=1000),
    db: AsyncSession = Depends(get_db),
):
    """Filtered log list for the admin viewer."""
    entries = await query_logs(
        db,
        category=category.value if category else None,
        level=level.value if level else None,
        search=search,
        limit=limit or get_settings().log_query_limit,
    )
    return {
        "logs": [_to_response(e).model_dump(mode="json") for e in entries],
        "stats": summarize_log_levels(e.level for e in entries),
    }


@router.delete("/old")
async def clear_old_logs(db: AsyncSession = Depends(get_db)):
    """Delete logs older than the retention window."""
    retention_days = get_settings().log_retention_days
    cutoff = datetime.now(timezone.utc) - timedelta(days=retention_days)
    deleted = await purge_logs_before(db, cutoff)
    await db.commit()
    logger.info(f"Purged {deleted} system logs older than {retention_days} days")
    return {"deleted": deleted, "retention_days": retention_days}
