"""Root conftest — shared test configuration."""

import os

# Never touch a real database or a real ingest endpoint from tests
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///test.db",
)
os.environ.setdefault("TELEMETRY_ENDPOINT", "")
