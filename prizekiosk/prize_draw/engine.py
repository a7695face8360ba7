"""Weighted random draw against a finite prize inventory."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

from .probability import DrawConfig, Inventory, boosted_weights, total_stock

logger = logging.getLogger(__name__)

LOSE_SENTINEL = "はずれ"
"""Prize name returned when nothing can be drawn."""

RandomSource = Callable[[], float]
"""Zero-argument callable returning a uniform float in ``[0, 1)``."""


@dataclass(frozen=True)
class DrawOutcome:
    """Value object describing the result of a single draw.

    Attributes
    ----------
    prize : str
        Name of the selected prize, or :data:`LOSE_SENTINEL`.
    remaining : Inventory
        Copy of the input inventory after the draw. The selected prize's
        stock is one lower when it had stock; otherwise it equals the input.
    """

    prize: str
    remaining: Inventory


def draw(
    inventory: Mapping[str, Any],
    weights: Mapping[str, Any],
    visits: float,
    config: DrawConfig,
    *,
    rng: Optional[RandomSource] = None,
) -> DrawOutcome:
    """Pick one prize by cumulative-weight sampling and consume one unit of it.

    Parameters
    ----------
    inventory : Mapping[str, Any]
        Current stock per prize. Never mutated.
    weights : Mapping[str, Any]
        Base weight per unit of stock. Never mutated.
    visits : float
        Visitor's eligibility count, used for the boost multiplier.
    config : DrawConfig
        Draw parameters.
    rng : Optional[RandomSource], default: None
        Randomness source; :func:`random.random` when omitted.

    Returns
    -------
    DrawOutcome
        Selected prize and the inventory after consumption.

    Notes
    -----
    Prizes are walked in the inventory's key order, so ties resolve to
    iteration order. When every weight is zero the first prize with stock is
    selected. If rounding leaves the cumulative sum short of the random
    target, the last prize in key order is selected.
    """

    remaining: Inventory = dict(inventory)

    if total_stock(remaining) <= 0:
        logger.debug(f"Draw requested with no stock left; returning {LOSE_SENTINEL}")
        return DrawOutcome(prize=LOSE_SENTINEL, remaining=remaining)

    entries = boosted_weights(remaining, dict(weights), visits, config)
    total_weight = sum(weight for _, _, weight in entries)

    chosen: Optional[str] = None
    if total_weight > 0:
        source = rng or random.random
        target = source() * total_weight
        acc = 0.0
        for name, _, weight in entries:
            acc += weight
            if target < acc:
                chosen = name
                break
        if chosen is None:
            chosen = entries[-1][0]
            logger.debug(
                f"Cumulative weight {acc!r} fell short of target {target!r}; "
                f"using last prize {chosen}"
            )
    else:
        chosen = next((name for name, stock, _ in entries if stock > 0), LOSE_SENTINEL)

    current = remaining.get(chosen)
    if current is not None and current > 0:
        remaining[chosen] = current - 1

    return DrawOutcome(prize=chosen, remaining=remaining)


__all__ = ["DrawOutcome", "LOSE_SENTINEL", "RandomSource", "draw"]
