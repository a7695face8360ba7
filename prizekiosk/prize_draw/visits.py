"""Helpers for deriving a visitor's draw eligibility from attraction history."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Sequence, Union

PRIZE_ATTRACTION = "prize"
"""Attraction tag recorded when a visitor redeems a prize draw."""


@dataclass(frozen=True)
class VisitEntry:
    """Single attraction visit taken from a visitor's history.

    Attributes
    ----------
    attraction : str
        Attraction tag, e.g. ``"mbti"`` or ``"prize"``.
    visited_at : str
        ISO 8601 timestamp of the visit as supplied by the entry service.
    staff : Optional[str]
        Staff member who recorded the visit, if any.
    personality : Optional[str]
        Personality id attached to the visit, if any.
    """

    attraction: str
    visited_at: str
    staff: Optional[str] = None
    personality: Optional[str] = None

    @classmethod
    def from_json(cls, payload: Mapping[str, Any]) -> "VisitEntry":
        """Build an entry from the entry service's camelCase JSON object."""

        return cls(
            attraction=str(payload.get("attraction", "")),
            visited_at=str(payload.get("visitedAt", "")),
            staff=payload.get("staff"),
            personality=payload.get("personality"),
        )


HistoryItem = Union[VisitEntry, Mapping[str, Any]]


def _parse_timestamp(value: Any) -> float:
    """Return ``value`` as a POSIX timestamp, or ``-inf`` when it is unparseable.

    Unparseable timestamps sort as the earliest entries. This is an accepted
    approximation: a malformed entry never counts as "after" a redemption
    unless the input order already placed it there.
    """

    if not isinstance(value, str) or not value:
        return float("-inf")
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return float("-inf")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()


def _fields(item: HistoryItem) -> tuple[Any, Any]:
    if isinstance(item, VisitEntry):
        return item.attraction, item.visited_at
    if isinstance(item, Mapping):
        return item.get("attraction"), item.get("visitedAt", item.get("visited_at"))
    return None, None


def compute_visits(history: Optional[Sequence[HistoryItem]]) -> int:
    """Count the visits that make a visitor eligible for their next draw.

    Entries are re-sorted by timestamp because caller order is not trusted.
    Only visits strictly after the most recent ``"prize"`` redemption count;
    without any redemption every visit counts.

    Parameters
    ----------
    history : Optional[Sequence[HistoryItem]]
        Visit history as :class:`VisitEntry` objects or raw JSON mappings with
        ``attraction`` and ``visitedAt`` keys.

    Returns
    -------
    int
        Non-negative visit count. Empty or non-sequence input yields ``0``.
    """

    if not isinstance(history, (list, tuple)) or not history:
        return 0

    # sorted() is stable, so entries with equal (or unparseable) timestamps
    # keep their relative input order.
    ordered = sorted(
        (_fields(item) for item in history),
        key=lambda fields: _parse_timestamp(fields[1]),
    )

    last_redemption = -1
    for idx in range(len(ordered) - 1, -1, -1):
        if ordered[idx][0] == PRIZE_ATTRACTION:
            last_redemption = idx
            break

    if last_redemption < 0:
        return len(ordered)
    return max(0, len(ordered) - (last_redemption + 1))


__all__ = ["PRIZE_ATTRACTION", "VisitEntry", "compute_visits"]
