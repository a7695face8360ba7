"""Kiosk view state machine and display helpers."""

from __future__ import annotations

import enum
import logging
from typing import Optional, Sequence, cast

from .controller import LotteryController

logger = logging.getLogger(__name__)

# Celebration intensity for the 1st, 2nd and 3rd ranked gain targets.
CELEBRATION_BY_RANK = (0.9, 0.65, 0.4)


class KioskView(str, enum.Enum):
    WAITING = "WAITING"
    DRAWING = "DRAWING"
    RESULT = "RESULT"
    ADMIN = "ADMIN"


class InvalidTransition(RuntimeError):
    """Raised when an operation is not allowed in the current view."""


def eligibility_message(controller: LotteryController, visits: int) -> str:
    """Human readable status for the draw button."""

    if controller.total_stock <= 0:
        return "Out of stock"
    remaining = controller.remaining_visits(visits)
    if remaining > 0:
        suffix = "visit" if remaining == 1 else "visits"
        return f"Not eligible yet ({remaining} more {suffix})"
    return "Ready to draw"


def celebration_intensity(prize: str, gain_targets: Sequence[str]) -> float:
    """Return the effect strength for ``prize`` based on its gain-target rank."""

    try:
        rank = list(gain_targets).index(prize)
    except ValueError:
        return 0.0
    if rank >= len(CELEBRATION_BY_RANK):
        return 0.0
    return CELEBRATION_BY_RANK[rank]


class KioskSession:
    """Drives one kiosk through ``WAITING -> DRAWING -> RESULT -> WAITING``.

    ``ADMIN`` is a separate mode that can only be entered from and exited
    to ``WAITING``. The draw itself happens when entering ``DRAWING``; the
    prize is revealed by :meth:`finish_draw` once the animation is over.
    """

    def __init__(self, controller: LotteryController) -> None:
        self.controller = controller
        self.view = KioskView.WAITING
        self._pending_prize: Optional[str] = None
        self.last_prize: Optional[str] = None

    def _require(self, *views: KioskView) -> None:
        if self.view not in views:
            allowed = ", ".join(v.value for v in views)
            raise InvalidTransition(
                f"Operation requires view {allowed}; kiosk is in {self.view.value}"
            )

    def start_draw(self, visits: int) -> Optional[str]:
        """Run a draw if the visitor is eligible.

        Returns
        -------
        Optional[str]
            The drawn prize, or ``None`` when the visitor is not eligible or
            stock is exhausted (the kiosk then stays in ``WAITING``).
        """

        self._require(KioskView.WAITING)
        if not self.controller.can_draw(visits):
            logger.info(eligibility_message(self.controller, visits))
            return None
        self._pending_prize = self.controller.perform_draw(visits)
        self.view = KioskView.DRAWING
        return self._pending_prize

    def finish_draw(self) -> str:
        self._require(KioskView.DRAWING)
        prize = cast(str, self._pending_prize)
        self._pending_prize = None
        self.last_prize = prize
        self.view = KioskView.RESULT
        return prize

    def acknowledge(self) -> None:
        self._require(KioskView.RESULT)
        self.view = KioskView.WAITING

    def enter_admin(self) -> None:
        self._require(KioskView.WAITING)
        self.view = KioskView.ADMIN

    def exit_admin(self) -> None:
        self._require(KioskView.ADMIN)
        self.controller.sync()
        self.view = KioskView.WAITING

    @property
    def celebration(self) -> float:
        """Effect strength for the prize currently shown on the result screen."""
        if self.view is not KioskView.RESULT or self.last_prize is None:
            return 0.0
        return celebration_intensity(self.last_prize, self.controller.config.gain_targets)


__all__ = [
    "CELEBRATION_BY_RANK",
    "InvalidTransition",
    "KioskSession",
    "KioskView",
    "celebration_intensity",
    "eligibility_message",
]
