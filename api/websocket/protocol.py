"""Wire protocol for the ticker WebSocket.

Every frame in either direction is a JSON object::

    {"event": "<name>", "data": <payload>}

Client -> server events: register, login, subscribe, unsubscribe,
request_snapshot (``request_initial_prices`` is accepted as an alias).

Server -> client events: register_success, register_error, login_success,
login_error, subscribed, initial_prices, price_update.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional, TypeVar

from pydantic import BaseModel, Field, ValidationError, field_validator

from core.types import PriceSample

logger = logging.getLogger(__name__)

# Client -> server
REGISTER = "register"
LOGIN = "login"
SUBSCRIBE = "subscribe"
UNSUBSCRIBE = "unsubscribe"
REQUEST_SNAPSHOT = "request_snapshot"
REQUEST_INITIAL_PRICES = "request_initial_prices"

# Server -> client
REGISTER_SUCCESS = "register_success"
REGISTER_ERROR = "register_error"
LOGIN_SUCCESS = "login_success"
LOGIN_ERROR = "login_error"
SUBSCRIBED = "subscribed"
INITIAL_PRICES = "initial_prices"
PRICE_UPDATE = "price_update"

CLIENT_EVENTS = frozenset({REGISTER, LOGIN, SUBSCRIBE, UNSUBSCRIBE, REQUEST_SNAPSHOT, REQUEST_INITIAL_PRICES})

# Commands that are acted upon before login_success.
ANONYMOUS_EVENTS = frozenset({REGISTER, LOGIN})

M = TypeVar("M", bound=BaseModel)


class Envelope(BaseModel):
    event: str = Field(..., min_length=1)
    data: Any = None


class CredentialsPayload(BaseModel):
    """Payload of `register` and `login`."""

    email: str
    password: str


class SymbolPayload(BaseModel):
    """Payload of `subscribe` and `unsubscribe`."""

    symbol: str = Field(..., min_length=1)

    @field_validator("symbol")
    @classmethod
    def _normalize(cls, value: str) -> str:
        return value.strip().upper()


def parse_envelope(message: object) -> Optional[Envelope]:
    """Validate a decoded frame. Returns None for anything that is not an envelope."""
    if not isinstance(message, dict):
        return None
    try:
        envelope = Envelope.model_validate(message)
    except ValidationError:
        return None
    if envelope.event not in CLIENT_EVENTS:
        logger.debug(f"Unknown event {envelope.event!r}")
        return None
    return envelope


def parse_payload(model: type[M], data: Any) -> Optional[M]:
    """Validate an event payload, returning None when it is malformed."""
    if model is SymbolPayload and isinstance(data, str):
        # Bare-string form: {"event": "subscribe", "data": "GOOG"}
        data = {"symbol": data}
    if not isinstance(data, Mapping):
        return None
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        logger.debug(f"Malformed {model.__name__}: {exc.error_count()} error(s)")
        return None


def envelope(event: str, data: Any = None) -> dict[str, Any]:
    return {"event": event, "data": data}


def register_success(message: str = "registration successful") -> dict[str, Any]:
    return envelope(REGISTER_SUCCESS, {"message": message})


def register_error(reason: str) -> dict[str, Any]:
    return envelope(REGISTER_ERROR, {"reason": reason})


def login_success(email: str, catalog: Iterable[str]) -> dict[str, Any]:
    return envelope(LOGIN_SUCCESS, {"email": email, "catalog": list(catalog)})


def login_error(reason: str) -> dict[str, Any]:
    return envelope(LOGIN_ERROR, {"reason": reason})


def subscribed(symbols: Iterable[str]) -> dict[str, Any]:
    return envelope(SUBSCRIBED, {"symbols": sorted(symbols)})


def initial_prices(prices: Mapping[str, float]) -> dict[str, Any]:
    return envelope(INITIAL_PRICES, dict(prices))


def price_update(sample: PriceSample) -> dict[str, Any]:
    return envelope(
        PRICE_UPDATE,
        {"symbol": sample.symbol, "price": sample.price, "time": sample.time.isoformat()},
    )
