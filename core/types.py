from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class Identity:
    email: str
    password_hash: str  # never sent over the wire
    subscriptions: frozenset[str] = field(default_factory=frozenset)


@dataclass(frozen=True)
class PriceSample:
    symbol: str
    price: float
    time: datetime
