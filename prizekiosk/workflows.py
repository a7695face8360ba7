"""End-to-end kiosk workflows combining the entry service with the draw engine."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

import requests

from .kiosk import KioskSession, eligibility_message
from .prize_draw import PRIZE_ATTRACTION, compute_visits

if TYPE_CHECKING:
    from .entry.api import EntryClient

logger = logging.getLogger(__name__)


class RedemptionNotRecorded(RuntimeError):
    """Raised when a prize was drawn but the redemption visit could not be saved.

    The draw has already consumed stock; ``prize`` carries its result so the
    kiosk can still show it.
    """

    def __init__(self, user_id: str, prize: str) -> None:
        super().__init__(
            f"Prize '{prize}' was drawn for user {user_id} but the redemption "
            "visit could not be recorded"
        )
        self.user_id = user_id
        self.prize = prize


@dataclass(frozen=True)
class VisitorDrawResult:
    """Outcome of :func:`run_visitor_draw`.

    Attributes
    ----------
    user_id : str
        Visitor the draw was attempted for.
    visits : int
        Visit count derived from the visitor's history.
    prize : Optional[str]
        Drawn prize, or ``None`` when the visitor could not draw.
    message : str
        Eligibility status shown when no draw took place.
    """

    user_id: str
    visits: int
    prize: Optional[str]
    message: str

    @property
    def drew(self) -> bool:
        return self.prize is not None


def load_visitor_visits(client: "EntryClient", user_id: str) -> int:
    """Fetch ``user_id``'s history and return their current visit count."""

    history = client.get_user_history(user_id)
    visits = compute_visits(history)
    logger.debug(f"User {user_id} has {visits} visits since their last redemption")
    return visits


def run_visitor_draw(
    kiosk: KioskSession,
    client: "EntryClient",
    user_id: str,
    *,
    staff: Optional[str] = None,
) -> VisitorDrawResult:
    """Draw for a scanned visitor and record the redemption with the entry service.

    The workflow performs the following steps:

    1. Fetch the visitor's history and derive their visit count.
    2. Start a draw on ``kiosk`` (no-op when the visitor is ineligible or
       stock is exhausted).
    3. Record a ``"prize"`` visit so the visitor's count restarts.

    Parameters
    ----------
    kiosk : KioskSession
        Kiosk in the ``WAITING`` view. It is left in ``DRAWING`` after a draw.
    client : EntryClient
        Client for the history/entry service.
    user_id : str
        Identifier read from the visitor's QR code.
    staff : Optional[str]
        Staff name recorded with the redemption visit.

    Returns
    -------
    VisitorDrawResult
        Visit count and drawn prize (``None`` when no draw happened).

    Raises
    ------
    RedemptionNotRecorded
        If the draw happened but the redemption visit could not be stored.
    requests.RequestException
        If the history lookup fails; no draw takes place in that case.
    """

    visits = load_visitor_visits(client, user_id)
    message = eligibility_message(kiosk.controller, visits)
    prize = kiosk.start_draw(visits)
    if prize is None:
        return VisitorDrawResult(user_id=user_id, visits=visits, prize=None, message=message)

    try:
        client.post_attraction_visit(user_id, PRIZE_ATTRACTION, staff)
    except requests.RequestException as exc:
        logger.exception(f"Failed to record redemption for user {user_id}")
        raise RedemptionNotRecorded(user_id, prize) from exc

    return VisitorDrawResult(user_id=user_id, visits=visits, prize=prize, message=message)


__all__ = [
    "RedemptionNotRecorded",
    "VisitorDrawResult",
    "load_visitor_visits",
    "run_visitor_draw",
]
