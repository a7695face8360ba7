"""Pure draw engine: visit counting, probability tables and weighted draws."""

from .engine import DrawOutcome, LOSE_SENTINEL, RandomSource, draw
from .probability import (
    DrawConfig,
    Inventory,
    ProbRow,
    Weights,
    boost_multiplier,
    compute_probs,
    total_stock,
)
from .visits import PRIZE_ATTRACTION, VisitEntry, compute_visits

__all__ = [
    "DrawConfig",
    "DrawOutcome",
    "Inventory",
    "LOSE_SENTINEL",
    "PRIZE_ATTRACTION",
    "ProbRow",
    "RandomSource",
    "VisitEntry",
    "Weights",
    "boost_multiplier",
    "compute_probs",
    "compute_visits",
    "draw",
    "total_stock",
]
