"""Database model for the kiosk's durable key/value records."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from sqlalchemy import JSON, DateTime, Index, String, select
from sqlalchemy.orm import Mapped, Session, mapped_column

from .base import Base
from ..db.utils import as_utc


class PersistedRecord(Base):
    """One independently persisted kiosk record (draw counts, base stock, ...).

    Each record is a flat JSON document addressed by ``key``. Records are
    written one at a time; nothing in the application updates two records in
    the same transaction.
    """

    __tablename__ = "kiosk_records"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    """Record name, e.g. ``"draw_counts"`` or ``"lottery.params.v1"``."""

    value: Mapped[Any] = mapped_column(JSON, nullable=True)
    """JSON payload of the record."""

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
    """Timestamp automatically bumped whenever the record is rewritten."""

    expires_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    """When set, the record reads as absent from this moment on."""

    __table_args__ = (Index("ix_kiosk_records_expires_at", "expires_at"),)

    def __init__(
        self,
        *,
        key: str,
        value: Any = None,
        expires_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ) -> None:
        self.key = key
        self.value = value
        self.expires_at = expires_at
        if updated_at is not None:
            self.updated_at = updated_at

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return "<PersistedRecord(key={key}, expires_at={exp})>".format(
            key=self.key,
            exp=self.expires_at,
        )

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Return ``True`` when the record's retention window has elapsed."""

        expires_at = as_utc(self.expires_at)
        if expires_at is None:
            return False
        now = now or datetime.now(timezone.utc)
        return expires_at <= now

    @classmethod
    def get_by_key(cls, session: Session, key: str) -> Optional["PersistedRecord"]:
        """Return the record stored under ``key`` if it exists."""

        return session.scalar(select(cls).where(cls.key == key))

    @classmethod
    def upsert(
        cls,
        session: Session,
        key: str,
        value: Any,
        *,
        retention: Optional[timedelta] = None,
    ) -> "PersistedRecord":
        """Create or overwrite the record under ``key``.

        Parameters
        ----------
        session : Session
            Active SQLAlchemy session used for the lookup and write.
        key : str
            Record name.
        value : Any
            JSON-serializable payload.
        retention : Optional[timedelta], default: None
            When provided, the record expires ``retention`` after this write.
            Every write restarts the window.
        """

        now = datetime.now(timezone.utc)
        expires_at = now + retention if retention is not None else None
        record = cls.get_by_key(session, key)
        if record is None:
            record = cls(key=key, value=value, expires_at=expires_at, updated_at=now)
            session.add(record)
        else:
            record.value = value
            record.expires_at = expires_at
            record.updated_at = now
        session.flush()
        return record


__all__ = ["PersistedRecord"]
