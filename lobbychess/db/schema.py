"""Database tables / schema"""

from datetime import datetime, timezone

from sqlalchemy import JSON
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class DBSession(Base):
    """Snapshot of a live relay session. The row is deleted when the session is torn down."""

    __tablename__ = "sessions"
    id: Mapped[str] = mapped_column(primary_key=True)
    status: Mapped[str]
    players: Mapped[dict[str, str]] = mapped_column(JSON, default=dict)
    position: Mapped[str]
    moves_uci: Mapped[list[str]] = mapped_column(JSON, default=list)
    created_at: Mapped[datetime] = mapped_column(default=utc_now)
    last_activity: Mapped[datetime] = mapped_column(default=utc_now, index=True)
