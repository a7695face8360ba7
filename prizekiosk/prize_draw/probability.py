"""Probability utilities for weighted, stock-limited prize draws."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Any, Iterable, Mapping, Optional

Inventory = dict[str, int]
Weights = dict[str, float]


@dataclass(frozen=True)
class DrawConfig:
    """Immutable draw parameters.

    Attributes
    ----------
    threshold : int
        Required visit count ``N`` before a visitor may draw.
    beta : float
        Boost growth per visit beyond ``threshold``.
    mcap : float
        Upper bound of the boost multiplier. Values below ``1`` collapse the
        multiplier to ``1`` (see :func:`boost_multiplier`).
    gain_targets : tuple[str, ...]
        Prize names that receive the boost, ordered from highest rank down.
    lose_names : tuple[str, ...]
        Prize names representing a non-winning outcome.
    """

    threshold: int = 3
    beta: float = 0.15
    mcap: float = 2.0
    gain_targets: tuple[str, ...] = field(default_factory=tuple)
    lose_names: tuple[str, ...] = field(default_factory=tuple)

    def with_params(
        self,
        *,
        threshold: Optional[int] = None,
        beta: Optional[float] = None,
        mcap: Optional[float] = None,
    ) -> "DrawConfig":
        """Return a copy with the supplied numeric parameters replaced."""

        return replace(
            self,
            threshold=self.threshold if threshold is None else threshold,
            beta=self.beta if beta is None else beta,
            mcap=self.mcap if mcap is None else mcap,
        )

    def with_targets(
        self, gain_targets: Iterable[str], lose_names: Iterable[str]
    ) -> "DrawConfig":
        """Return a copy with new gain/lose partitions."""

        return replace(
            self, gain_targets=tuple(gain_targets), lose_names=tuple(lose_names)
        )

    def params_json(self) -> dict[str, Any]:
        return {"N": self.threshold, "beta": self.beta, "Mcap": self.mcap}

    def targets_json(self) -> dict[str, list[str]]:
        return {
            "gainTargets": list(self.gain_targets),
            "loseNames": list(self.lose_names),
        }


@dataclass(frozen=True)
class ProbRow:
    """Read-only projection of one prize for the probability table."""

    prize: str
    stock: int
    probability: float

    def to_json(self) -> dict[str, Any]:
        return {"prize": self.prize, "stock": self.stock, "prob": self.probability}


def non_negative(value: Any) -> float:
    """Return ``value`` floored at zero; ``None`` and non-finite values count as zero."""

    if value is None:
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(number) or number <= 0:
        return 0
    return value if isinstance(value, int) else number


def total_stock(inventory: Mapping[str, Any]) -> int:
    """Sum of all non-negative stock entries."""

    return sum(int(non_negative(v)) for v in inventory.values())


def boost_multiplier(visits: float, threshold: float, beta: float, mcap: float) -> float:
    """Return ``clamp(1, mcap, 1 + beta * max(0, visits - threshold))``.

    The lower bound is applied last, so an ``mcap`` below ``1`` yields ``1``.
    """

    raw = 1 + beta * max(0, visits - threshold)
    return max(1.0, min(mcap, raw))


def boosted_weights(
    inventory: Mapping[str, Any],
    weights: Mapping[str, Any],
    visits: float,
    config: DrawConfig,
) -> list[tuple[str, int, float]]:
    """Return ``(prize, stock, weight)`` per inventory key in key order.

    A prize's weight is ``weight * stock`` (zero when out of stock),
    multiplied by the boost only for names in ``config.gain_targets``.
    """

    m = boost_multiplier(visits, config.threshold, config.beta, config.mcap)
    gains = set(config.gain_targets)
    rows: list[tuple[str, int, float]] = []
    for name in inventory:
        stock = int(non_negative(inventory.get(name)))
        base = non_negative(weights.get(name)) * stock if stock > 0 else 0.0
        rows.append((name, stock, base * m if name in gains else float(base)))
    return rows


def compute_probs(
    inventory: Mapping[str, Any],
    weights: Mapping[str, Any],
    visits: float,
    config: DrawConfig,
) -> list[ProbRow]:
    """Compute the percentage chance of each prize for a visitor.

    Parameters
    ----------
    inventory : Mapping[str, Any]
        Displayed stock per prize; row order follows its key order.
    weights : Mapping[str, Any]
        Base likelihood per unit of stock. Missing names weigh zero.
    visits : float
        Visitor's eligibility count, which drives the boost.
    config : DrawConfig
        Threshold, boost and gain/lose configuration.

    Returns
    -------
    list[ProbRow]
        One row per inventory key. Probabilities sum to 100 when any prize
        has a positive boosted weight, otherwise every probability is 0.
    """

    if total_stock(inventory) <= 0:
        return [
            ProbRow(prize=name, stock=int(non_negative(inventory.get(name))), probability=0.0)
            for name in inventory
        ]

    rows = boosted_weights(inventory, weights, visits, config)
    weight_sum = sum(weight for _, _, weight in rows)
    if weight_sum <= 0:
        return [ProbRow(prize=name, stock=stock, probability=0.0) for name, stock, _ in rows]

    return [
        ProbRow(prize=name, stock=stock, probability=weight / weight_sum * 100)
        for name, stock, weight in rows
    ]


__all__ = [
    "DrawConfig",
    "Inventory",
    "ProbRow",
    "Weights",
    "boost_multiplier",
    "boosted_weights",
    "compute_probs",
    "non_negative",
    "total_stock",
]
