"""Session controller wiring the draw engine to durable kiosk state."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from .counters import (
    DRAW_COUNTS_KEY,
    DRAW_COUNTS_RETENTION,
    DrawCountStore,
    apply_counts_to_stock,
)
from .prize_draw import (
    DrawConfig,
    Inventory,
    LOSE_SENTINEL,
    ProbRow,
    RandomSource,
    Weights,
    compute_probs,
    draw,
    total_stock,
)
from .stores import (
    MemoryStore,
    SqlRecordStore,
    Store,
    coerce_inventory,
    coerce_number,
    coerce_weights,
    is_prize_name,
)

logger = logging.getLogger(__name__)

BASE_STOCK_KEY = "lottery.base_stock.v1"
PARAMS_KEY = "lottery.params.v1"
WEIGHTS_KEY = "lottery.weights.v1"
TARGETS_KEY = "lottery.targets.v1"

DEFAULT_INITIAL_STOCK: Inventory = {
    "大当たり": 3,
    "中当たり": 30,
    "小当たり": 99,
    LOSE_SENTINEL: 418,
}
DEFAULT_WEIGHTS: Weights = {name: 1.0 for name in DEFAULT_INITIAL_STOCK}
DEFAULT_CONFIG = DrawConfig(
    threshold=3,
    beta=0.15,
    mcap=2.0,
    gain_targets=("大当たり", "中当たり", "小当たり"),
    lose_names=(LOSE_SENTINEL,),
)


@dataclass
class KioskStores:
    """The independent durable records a kiosk session needs."""

    counts: Store
    base_stock: Store
    params: Store
    weights: Store
    targets: Store

    @classmethod
    def in_memory(cls) -> "KioskStores":
        return cls(
            counts=MemoryStore(),
            base_stock=MemoryStore(),
            params=MemoryStore(),
            weights=MemoryStore(),
            targets=MemoryStore(),
        )

    @classmethod
    def from_sessionmaker(cls, session_factory: sessionmaker) -> "KioskStores":
        """Back every record with a row of the ``kiosk_records`` table."""

        return cls(
            counts=SqlRecordStore(
                session_factory, DRAW_COUNTS_KEY, retention=DRAW_COUNTS_RETENTION
            ),
            base_stock=SqlRecordStore(session_factory, BASE_STOCK_KEY),
            params=SqlRecordStore(session_factory, PARAMS_KEY),
            weights=SqlRecordStore(session_factory, WEIGHTS_KEY),
            targets=SqlRecordStore(session_factory, TARGETS_KEY),
        )


def _string_list(value: Any) -> Optional[tuple[str, ...]]:
    if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
        return None
    return tuple(str(item) for item in value)


class LotteryController:
    """Owns base stock, weights and config, and keeps displayed stock in sync.

    Displayed inventory is always ``base stock - draw counts`` floored at
    zero; it is derived, never stored.

    Base stock, parameters, weights and targets are persisted best-effort:
    a failing write is logged and the in-memory value still applies. The
    draw-count ledger is written separately, so a crash between a draw and
    its increment, or a second kiosk drawing concurrently, can leave the
    ledger one draw behind. This is accepted for a single-kiosk event.

    Parameters
    ----------
    stores : KioskStores
        Durable records for this session.
    initial_stock : Optional[Mapping[str, int]], default: None
        Stock used on first run and restored by :meth:`reset_all`.
    config : Optional[DrawConfig], default: None
        Default draw parameters, overridden by any persisted values.
    weights : Optional[Mapping[str, float]], default: None
        Default weights, overridden by persisted weights. When omitted every
        prize in ``initial_stock`` weighs 1.0.
    rng : Optional[RandomSource], default: None
        Randomness source handed to the draw engine.
    """

    def __init__(
        self,
        stores: KioskStores,
        *,
        initial_stock: Optional[Mapping[str, int]] = None,
        config: Optional[DrawConfig] = None,
        weights: Optional[Mapping[str, float]] = None,
        rng: Optional[RandomSource] = None,
    ) -> None:
        self._stores = stores
        self._counts = DrawCountStore(stores.counts)
        self._rng = rng
        self._initial_stock: Inventory = coerce_inventory(
            initial_stock if initial_stock is not None else DEFAULT_INITIAL_STOCK
        ) or {}

        stored_base = coerce_inventory(stores.base_stock.read())
        self._base_stock: Inventory = (
            stored_base if stored_base is not None else dict(self._initial_stock)
        )
        self._config = self._load_config(config or DEFAULT_CONFIG)
        stored_weights = coerce_weights(stores.weights.read())
        self._weights: Weights = (
            stored_weights
            if stored_weights is not None
            else dict(weights)
            if weights is not None
            else {name: 1.0 for name in self._initial_stock}
        )
        self._stock: Inventory = {}
        self.sync()

    def _load_config(self, default: DrawConfig) -> DrawConfig:
        config = default
        params = self._stores.params.read()
        if isinstance(params, Mapping):
            threshold = coerce_number(params.get("N"))
            config = config.with_params(
                threshold=None if threshold is None else math.floor(threshold),
                beta=coerce_number(params.get("beta")),
                mcap=coerce_number(params.get("Mcap")),
            )
        elif params is not None:
            logger.warning("Ignoring malformed draw parameters")

        targets = self._stores.targets.read()
        if isinstance(targets, Mapping):
            gains = _string_list(targets.get("gainTargets"))
            loses = _string_list(targets.get("loseNames"))
            config = config.with_targets(
                config.gain_targets if gains is None else gains,
                config.lose_names if loses is None else loses,
            )
        return config

    def _persist(self, store: Store, value: Any, label: str) -> None:
        try:
            store.write(value)
        except SQLAlchemyError:
            logger.exception(f"Failed to persist {label}; keeping in-memory value")

    # -------- read-only views --------
    @property
    def config(self) -> DrawConfig:
        return self._config

    @property
    def weights(self) -> Weights:
        return dict(self._weights)

    @property
    def base_stock(self) -> Inventory:
        return dict(self._base_stock)

    @property
    def displayed_inventory(self) -> Inventory:
        """Base stock minus cumulative draws, floored at zero per prize."""
        return dict(self._stock)

    def get_displayed_inventory(self) -> Inventory:
        return self.displayed_inventory

    @property
    def total_stock(self) -> int:
        return total_stock(self._stock)

    def sync(self) -> Inventory:
        """Re-read the draw counts and recompute displayed inventory.

        Use this to pick up draws made by another kiosk tab.
        """

        self._stock = apply_counts_to_stock(self._base_stock, self._counts.read())
        return self.displayed_inventory

    # -------- visitor operations --------
    def can_draw(self, visits: int) -> bool:
        return visits >= self._config.threshold and self.total_stock > 0

    def remaining_visits(self, visits: int) -> int:
        """Number of further visits needed before :meth:`can_draw` allows a draw."""
        return max(0, math.ceil(self._config.threshold - visits))

    def prob_rows(self, visits: int) -> list[ProbRow]:
        return compute_probs(self._stock, self._weights, visits, self._config)

    def perform_draw(self, visits: int) -> str:
        """Draw once against the displayed inventory and record consumption.

        The ledger is incremented when the selected prize's displayed stock
        went down. If :data:`LOSE_SENTINEL` is also a stocked inventory key,
        a sentinel draw consumes a unit of it like any other prize.

        Returns
        -------
        str
            Name of the drawn prize.
        """

        before = self.displayed_inventory
        outcome = draw(before, self._weights, visits, self._config, rng=self._rng)
        prize = outcome.prize
        if prize in before and before[prize] > outcome.remaining.get(prize, 0):
            self._counts.increment(prize, 1)
        self.sync()
        logger.debug(f"Drew '{prize}' with {visits} visits; {self.total_stock} left")
        return prize

    # -------- admin operations --------
    def add_stock(self, delta: Mapping[str, Any]) -> Inventory:
        """Add ``delta`` to base stock; negative deltas never push stock below zero.

        Non-numeric amounts and blank prize names are ignored. Returns the new
        displayed inventory.
        """

        next_base = dict(self._base_stock)
        for name, raw in delta.items():
            amount = coerce_number(raw)
            if amount is None or not is_prize_name(name):
                continue
            current = max(0, next_base.get(name, 0))
            next_base[name] = max(0, current + math.floor(amount))
        self._base_stock = next_base
        self._persist(self._stores.base_stock, next_base, "base stock")
        return self.sync()

    def update_params(
        self,
        *,
        threshold: Any = None,
        beta: Any = None,
        mcap: Any = None,
    ) -> DrawConfig:
        """Replace ``N``, ``beta`` and/or ``Mcap``; invalid values leave a field unchanged."""

        parsed_threshold = coerce_number(threshold)
        self._config = self._config.with_params(
            threshold=None if parsed_threshold is None else math.floor(parsed_threshold),
            beta=coerce_number(beta),
            mcap=coerce_number(mcap),
        )
        self._persist(self._stores.params, self._config.params_json(), "draw parameters")
        return self._config

    def update_weights(self, weights: Mapping[str, Any]) -> Weights:
        parsed = coerce_weights(weights)
        if parsed is None:
            return self.weights
        self._weights = parsed
        self._persist(self._stores.weights, self._weights, "weights")
        return self.weights

    def update_targets(
        self, gain_targets: Iterable[str], lose_names: Iterable[str]
    ) -> DrawConfig:
        """Replace the gain/lose partitions.

        Each argument must be a collection of prize names; a bare string or
        any other value leaves that partition unchanged.
        """

        gains = _string_list(gain_targets)
        loses = _string_list(lose_names)
        if gains is None or loses is None:
            logger.warning("Ignoring target lists that are not collections of prize names")
        self._config = self._config.with_targets(
            self._config.gain_targets if gains is None else gains,
            self._config.lose_names if loses is None else loses,
        )
        self._persist(self._stores.targets, self._config.targets_json(), "targets")
        return self._config

    def reset_all(self) -> Inventory:
        """Clear the draw ledger and restore the initial base stock.

        This is destructive: all consumption history is lost.
        """

        self._counts.clear()
        self._base_stock = dict(self._initial_stock)
        self._persist(self._stores.base_stock, self._base_stock, "base stock")
        logger.info("Draw counts cleared and base stock reset")
        return self.sync()


__all__ = [
    "BASE_STOCK_KEY",
    "DEFAULT_CONFIG",
    "DEFAULT_INITIAL_STOCK",
    "DEFAULT_WEIGHTS",
    "KioskStores",
    "LotteryController",
    "PARAMS_KEY",
    "TARGETS_KEY",
    "WEIGHTS_KEY",
]
