"""sitetrack API — FastAPI application entry point (ingest + reporting backend).

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map SiteTrackError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database initialized on startup and disposed on shutdown via lifespan
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sitetrack.api.error_handlers import register_error_handlers
from sitetrack.api.routes import health, logs, visits
from sitetrack.config import get_settings
from sitetrack.infrastructure.database import init_db
from sitetrack.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    manager = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    logger.info("sitetrack API started")
    yield
    await manager.dispose()
    logger.info("sitetrack API shutting down")


app = FastAPI(
    title="sitetrack API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(visits.router)
app.include_router(logs.router)

register_error_handlers(app)
