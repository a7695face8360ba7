"""Durable record stores backing the kiosk's state.

Each piece of kiosk state (draw counts, base stock, parameters, weights,
targets) lives in its own :class:`Store`. Stores are constructed once per
session and injected into :class:`~prizekiosk.controller.LotteryController`,
which lets tests swap in :class:`MemoryStore`.
"""

from __future__ import annotations

import copy
import json
import logging
import math
from datetime import timedelta
from typing import Any, Mapping, Optional, Protocol

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from .models import PersistedRecord

logger = logging.getLogger(__name__)


class Store(Protocol):
    """Minimal interface of a durable JSON record."""

    def read(self) -> Any:
        """Return the stored payload, or ``None`` when absent or unreadable."""

    def write(self, value: Any) -> None:
        """Replace the stored payload with ``value``."""

    def clear(self) -> None:
        """Remove the stored payload."""


class MemoryStore:
    """In-process :class:`Store` holding a JSON-serialized copy of its payload.

    Serializing on write mirrors what a durable store sees, so callers cannot
    mutate stored state through a reference they still hold.
    """

    def __init__(self, value: Any = None, *, raw: Optional[str] = None) -> None:
        self._raw: Optional[str] = raw
        if value is not None:
            self.write(value)

    def read(self) -> Any:
        if self._raw is None:
            return None
        try:
            return json.loads(self._raw)
        except ValueError:
            logger.warning("Discarding malformed in-memory record")
            return None

    def write(self, value: Any) -> None:
        self._raw = json.dumps(value)

    def clear(self) -> None:
        self._raw = None


class SqlRecordStore:
    """:class:`Store` persisted as one row of the ``kiosk_records`` table.

    Every call opens its own short transaction, so no transaction ever spans
    two records.

    Parameters
    ----------
    session_factory : sessionmaker
        Factory producing sessions bound to the kiosk database.
    key : str
        Record name.
    retention : Optional[timedelta], default: None
        Lifetime of the record after each write. ``None`` keeps it forever.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        key: str,
        *,
        retention: Optional[timedelta] = None,
    ) -> None:
        if not key:
            raise ValueError("key must not be empty")
        self._session_factory = session_factory
        self.key = key
        self.retention = retention

    def read(self) -> Any:
        try:
            with self._session_factory() as session:
                record = PersistedRecord.get_by_key(session, self.key)
                if record is None or record.is_expired():
                    return None
                return copy.deepcopy(record.value)
        except (SQLAlchemyError, ValueError) as exc:
            logger.warning(f"Could not read record '{self.key}': {exc}")
            return None

    def write(self, value: Any) -> None:
        with self._session_factory.begin() as session:
            PersistedRecord.upsert(session, self.key, value, retention=self.retention)

    def clear(self) -> None:
        with self._session_factory.begin() as session:
            session.execute(delete(PersistedRecord).where(PersistedRecord.key == self.key))


def coerce_number(value: Any) -> Optional[float]:
    """Parse admin input into a finite number, or ``None`` for "no change".

    Strings are parsed after trimming; booleans, blanks, NaN and infinities
    are rejected.
    """

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def is_prize_name(name: Any) -> bool:
    """Return ``True`` when ``name`` can key an inventory (non-blank)."""

    return name is not None and bool(str(name).strip())


def coerce_count(value: Any) -> int:
    """Coerce a stored value to a non-negative integer (invalid values are 0)."""

    number = coerce_number(value)
    if number is None or number <= 0:
        return 0
    return math.floor(number)


def coerce_inventory(raw: Any) -> Optional[dict[str, int]]:
    """Return ``raw`` as a ``{name: count}`` mapping, or ``None`` if not a mapping.

    Blank prize names are dropped.
    """

    if not isinstance(raw, Mapping):
        return None
    return {
        str(name): coerce_count(value)
        for name, value in raw.items()
        if is_prize_name(name)
    }


def coerce_weights(raw: Any) -> Optional[dict[str, float]]:
    """Return ``raw`` as a ``{name: weight}`` mapping, or ``None`` if not a mapping.

    Non-numeric entries and blank names are dropped; negative weights are
    floored at zero.
    """

    if not isinstance(raw, Mapping):
        return None
    weights: dict[str, float] = {}
    for name, value in raw.items():
        if not is_prize_name(name):
            continue
        number = coerce_number(value)
        if number is None:
            continue
        weights[str(name)] = max(0.0, number)
    return weights


__all__ = [
    "MemoryStore",
    "SqlRecordStore",
    "Store",
    "coerce_count",
    "coerce_inventory",
    "coerce_number",
    "coerce_weights",
    "is_prize_name",
]
