"""Synthetic price feed.

Generates one price sample per catalog symbol per tick. Each tick applies a
uniform random step in ``[-step, +step]`` to the previous price and clamps the
result to ``floor``. Only the current price per symbol is kept; clients derive
tick direction from consecutive updates.
"""

from __future__ import annotations

import logging
import random
from datetime import datetime, timezone
from typing import Optional

from core.market_data.catalog import SymbolCatalog
from core.types import PriceSample

logger = logging.getLogger(__name__)

INITIAL_PRICE_MIN = 100.0
INITIAL_PRICE_SPAN = 100.0


class PriceFeedSimulator:
    """Owner of the price table.

    The tick loop is the only writer; readers go through `prices()` or
    `price()`.
    """

    def __init__(
        self,
        catalog: SymbolCatalog,
        *,
        step: float = 1.0,
        floor: float = 1.0,
        rng: Optional[random.Random] = None,
        initial_prices: Optional[dict[str, float]] = None,
    ) -> None:
        self._catalog = catalog
        self._step = step
        self._floor = floor
        self._rng = rng or random.Random()
        self._prices: dict[str, float] = {}
        self.tick_count = 0

        for symbol in catalog:
            if initial_prices and symbol in initial_prices:
                start = float(initial_prices[symbol])
            else:
                start = INITIAL_PRICE_MIN + self._rng.random() * INITIAL_PRICE_SPAN
            self._prices[symbol] = max(self._floor, start)

    @property
    def catalog(self) -> SymbolCatalog:
        return self._catalog

    @property
    def floor(self) -> float:
        return self._floor

    @property
    def step(self) -> float:
        return self._step

    def prices(self) -> dict[str, float]:
        """Return a copy of the current price for every catalog symbol."""
        return dict(self._prices)

    def price(self, symbol: str) -> Optional[float]:
        return self._prices.get(symbol)

    def tick(self, now: Optional[datetime] = None) -> list[PriceSample]:
        """Advance every symbol by one random step and return the batch."""
        timestamp = now or datetime.now(timezone.utc)
        samples: list[PriceSample] = []
        for symbol in self._catalog:
            delta = self._rng.uniform(-self._step, self._step)
            price = max(self._floor, self._prices[symbol] + delta)
            self._prices[symbol] = price
            samples.append(PriceSample(symbol=symbol, price=price, time=timestamp))

        self.tick_count += 1
        logger.debug(f"Tick {self.tick_count}: generated {len(samples)} samples")
        return samples
