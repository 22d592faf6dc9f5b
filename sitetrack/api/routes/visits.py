"""Visits — ingest endpoint for tracked navigations and the visitor dashboard stats.

Invariants:
    - POST is idempotent on event_id: 201 on first write, 200 "duplicate" afterwards,
      including a concurrent write that loses the primary-key race
    - Stats are computed by core/visit_stats.py over one time-range query
"""

import logging
import uuid

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from sitetrack.config import get_settings
from sitetrack.core.visit_stats import compute_visit_stats, resolve_time_range
from sitetrack.infrastructure.database import get_db
from sitetrack.schemas.telemetry import VisitCreate, VisitIngestResponse
from sitetrack.services.telemetry_repository import fetch_visits_between, save_visit

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/visits", tags=["visits"])


@router.post(
    "", response_model=VisitIngestResponse,
    status_code=status.HTTP_201_CREATED,
)
async def ingest_visit(
    body: VisitCreate, response: Response, db: AsyncSession = Depends(get_db),
):
    """Record one visit. Replays of a known event_id are accepted and ignored."""
    event_id = body.event_id or uuid.uuid4()
    record = body.model_dump(mode="json")
    record["event_id"] = str(event_id)

    if await save_visit(db, record):
        try:
            await db.commit()
            return VisitIngestResponse(status="created", event_id=event_id)
        except IntegrityError:
            # Same event_id committed by a concurrent request
            await db.rollback()
            logger.info(f"Concurrent duplicate visit event: {event_id}")

    response.status_code = status.HTTP_200_OK
    return VisitIngestResponse(status="duplicate", event_id=event_id)


@router.get("/stats")
async def visit_stats(
    time_range: str = Query("7d", alias="range", pattern=r"^(24h|7d|30d)$"),
    db: AsyncSession = Depends(get_db),
):
    """Unique visitors/sessions, breakdowns, top pages, daily trend, referrers."""
    settings = get_settings()
    start, end = resolve_time_range(time_range)
    visits = await fetch_visits_between(db, start, end)
    stats = compute_visit_stats(
        visits, start, end,
        top_pages=settings.visit_stats_top_pages,
        top_referrers=settings.visit_stats_top_referrers,
    )
    return {"range": time_range, **stats}
