"""Cumulative per-prize draw counts and stock reconciliation."""

from __future__ import annotations

import logging
import math
from datetime import timedelta
from typing import Any, Mapping

from .stores import Store, coerce_inventory

logger = logging.getLogger(__name__)

DrawCounts = dict[str, int]

DRAW_COUNTS_KEY = "draw_counts"
DRAW_COUNTS_RETENTION = timedelta(days=365)


class DrawCountStore:
    """Durable ledger of how many times each prize has been awarded.

    The ledger is the only source of truth for consumed stock. Increments
    are read-modify-write without cross-process atomicity: two kiosks
    incrementing at once can lose an update (last writer wins).
    """

    def __init__(self, store: Store) -> None:
        self._store = store

    def read(self) -> DrawCounts:
        """Return the current counts; malformed or missing data reads as empty."""

        raw = self._store.read()
        if raw is None:
            return {}
        counts = coerce_inventory(raw)
        if counts is None:
            logger.warning(f"Ignoring malformed draw counts of type {type(raw).__name__}")
            return {}
        return counts

    def write(self, counts: Mapping[str, Any]) -> None:
        self._store.write(coerce_inventory(counts) or {})

    def increment(self, prize: str, delta: int = 1) -> DrawCounts:
        """Add ``delta`` (floored, never negative) to ``prize`` and persist.

        Returns
        -------
        DrawCounts
            The counts as written.
        """

        if not prize:
            raise ValueError("prize must not be empty")
        counts = self.read()
        add = max(0, math.floor(delta))
        counts[prize] = counts.get(prize, 0) + add
        self.write(counts)
        logger.debug(f"Draw count for '{prize}' is now {counts[prize]}")
        return counts

    def clear(self) -> None:
        self._store.clear()


def apply_counts_to_stock(
    base_stock: Mapping[str, Any], counts: Mapping[str, Any]
) -> dict[str, int]:
    """Return ``base_stock`` minus ``counts`` per prize, floored at zero.

    Only prizes present in ``base_stock`` appear in the result; counts for
    unknown prizes are ignored.
    """

    base = coerce_inventory(base_stock) or {}
    used = coerce_inventory(counts) or {}
    return {name: max(0, stock - used.get(name, 0)) for name, stock in base.items()}


__all__ = [
    "DRAW_COUNTS_KEY",
    "DRAW_COUNTS_RETENTION",
    "DrawCountStore",
    "DrawCounts",
    "apply_counts_to_stock",
]
