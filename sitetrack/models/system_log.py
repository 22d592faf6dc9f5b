"""SystemLog ORM — leveled, categorized diagnostic records for admin monitoring.

Invariants:
    - level ∈ {debug, info, warn, error}; category is a LogCategory value
    - metadata always carries logged_at and user_agent (added by SystemLogger)

Design Decisions:
    - Python attribute metadata_ maps the "metadata" column (name reserved by DeclarativeBase)
    - JSON column for metadata: call sites attach arbitrary correlating fields (order_id, ...)
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from sitetrack.db.base import Base


class SystemLog(Base):
    """Log entry — written by SystemLogger."""
    __tablename__ = "system_logs"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    level: Mapped[str] = mapped_column(String(10), nullable=False, default="info")
    category: Mapped[str] = mapped_column(
        String(20), nullable=False, default="system", index=True,
    )
    source: Mapped[str] = mapped_column(String(100), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    user_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    metadata_: Mapped[dict | None] = mapped_column("metadata", JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
        default=lambda: datetime.now(timezone.utc),
    )
