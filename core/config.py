"""Runtime configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_SYMBOLS: tuple[str, ...] = ("GOOG", "TSLA", "AMZN", "META", "NVDA")


@dataclass(frozen=True)
class TickerConfig:
    """Service configuration.

    `database_url` should come from environment (e.g. DATABASE_URL).
    Do not log it. When unset, accounts live in memory for the process lifetime.
    """

    symbols: tuple[str, ...] = DEFAULT_SYMBOLS
    tick_interval_seconds: float = 1.0
    send_timeout_seconds: float = 5.0
    price_floor: float = 1.0
    price_step: float = 1.0
    min_password_length: int = 6
    database_url: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.symbols:
            raise ValueError("At least one symbol is required")
        if self.tick_interval_seconds <= 0:
            raise ValueError(f"tick_interval_seconds must be positive, got {self.tick_interval_seconds}")
        if self.send_timeout_seconds <= 0:
            raise ValueError(f"send_timeout_seconds must be positive, got {self.send_timeout_seconds}")
        if self.price_floor <= 0:
            raise ValueError(f"price_floor must be positive, got {self.price_floor}")
        if self.price_step < 0:
            raise ValueError(f"price_step must be non-negative, got {self.price_step}")
        if self.min_password_length < 1:
            raise ValueError(f"min_password_length must be >= 1, got {self.min_password_length}")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "TickerConfig":
        """Build a config from environment variables, falling back to defaults."""
        env = os.environ if environ is None else environ

        symbols = DEFAULT_SYMBOLS
        raw_symbols = env.get("TICKER_SYMBOLS", "").strip()
        if raw_symbols:
            symbols = tuple(dict.fromkeys(s.strip().upper() for s in raw_symbols.split(",") if s.strip()))

        try:
            return cls(
                symbols=symbols,
                tick_interval_seconds=float(env.get("TICK_INTERVAL_SECONDS", "1.0")),
                send_timeout_seconds=float(env.get("SEND_TIMEOUT_SECONDS", "5.0")),
                price_floor=float(env.get("PRICE_FLOOR", "1.0")),
                price_step=float(env.get("PRICE_STEP", "1.0")),
                min_password_length=int(env.get("MIN_PASSWORD_LENGTH", "6")),
                database_url=env.get("DATABASE_URL") or None,
            )
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Invalid ticker configuration: {exc}") from exc
