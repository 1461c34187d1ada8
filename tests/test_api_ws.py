"""End-to-end tests for the /ws endpoint."""

from __future__ import annotations

import math
import random
import time

import pytest
from fastapi.testclient import TestClient

from api.main import create_app
from core.config import TickerConfig
from core.storage.memory import InMemoryCredentialStore

CATALOG = ["GOOG", "TSLA", "AMZN", "META", "NVDA"]


def _send(ws, event: str, data=None) -> None:
    ws.send_json({"event": event, "data": data})


def _receive_event(ws, event: str, limit: int = 50) -> dict:
    """Read frames until one with the given event arrives."""
    for _ in range(limit):
        frame = ws.receive_json()
        if frame["event"] == event:
            return frame
    raise AssertionError(f"no {event!r} frame within {limit} frames")


@pytest.fixture
def store() -> InMemoryCredentialStore:
    return InMemoryCredentialStore()


@pytest.fixture
def client(store):
    """Client with the tick loop disabled so replies arrive in order."""
    app = create_app(TickerConfig(), store=store, rng=random.Random(5), start_ticker=False)
    with TestClient(app) as test_client:
        yield test_client


def test_persistence_survives_reconnect(client):
    with client.websocket_connect("/ws") as ws:
        _send(ws, "register", {"email": "a@x.com", "password": "secret1"})
        assert ws.receive_json() == {"event": "register_success", "data": {"message": "registration successful"}}

        _send(ws, "login", {"email": "a@x.com", "password": "secret1"})
        assert ws.receive_json() == {"event": "login_success", "data": {"email": "a@x.com", "catalog": CATALOG}}
        assert ws.receive_json() == {"event": "subscribed", "data": {"symbols": []}}

        _send(ws, "subscribe", {"symbol": "GOOG"})
        assert ws.receive_json() == {"event": "subscribed", "data": {"symbols": ["GOOG"]}}

    with client.websocket_connect("/ws") as ws:
        _send(ws, "login", {"email": "a@x.com", "password": "secret1"})
        assert ws.receive_json()["event"] == "login_success"
        assert ws.receive_json() == {"event": "subscribed", "data": {"symbols": ["GOOG"]}}


def test_duplicate_registration_reports_error(client):
    with client.websocket_connect("/ws") as ws:
        _send(ws, "register", {"email": "a@x.com", "password": "secret1"})
        ws.receive_json()
        _send(ws, "register", {"email": "a@x.com", "password": "secret2"})
        assert ws.receive_json() == {"event": "register_error", "data": {"reason": "user already exists"}}


def test_commands_before_login_are_ignored(client):
    with client.websocket_connect("/ws") as ws:
        _send(ws, "subscribe", {"symbol": "GOOG"})
        _send(ws, "request_snapshot")
        _send(ws, "login", {"email": "ghost@x.com", "password": "secret1"})

        # The first reply is the login error; the earlier commands produced nothing.
        assert ws.receive_json() == {"event": "login_error", "data": {"reason": "invalid email or password"}}


def test_malformed_frames_keep_connection_open(client):
    with client.websocket_connect("/ws") as ws:
        ws.send_text("not json")
        ws.send_json(["not", "an", "envelope"])
        _send(ws, "register", {"email": "b@x.com", "password": "secret1"})

        assert ws.receive_json()["event"] == "register_success"


def test_binary_frames_are_ignored(client):
    with client.websocket_connect("/ws") as ws:
        ws.send_bytes(b'{"event": "register"}')
        ws.send_bytes(b"\xff\xfe")
        _send(ws, "register", {"email": "c@x.com", "password": "secret1"})

        assert ws.receive_json() == {"event": "register_success", "data": {"message": "registration successful"}}
        assert len(client.app.state.registry) == 1


def test_snapshot_after_login(client):
    with client.websocket_connect("/ws") as ws:
        _send(ws, "register", {"email": "a@x.com", "password": "secret1"})
        _send(ws, "login", {"email": "a@x.com", "password": "secret1"})
        _receive_event(ws, "subscribed")

        _send(ws, "request_snapshot")
        frame = _receive_event(ws, "initial_prices")

    assert sorted(frame["data"]) == sorted(CATALOG)
    for price in frame["data"].values():
        assert math.isfinite(price)
        assert price >= 1.0


def test_session_is_released_on_disconnect(client):
    with client.websocket_connect("/ws") as ws:
        _send(ws, "register", {"email": "a@x.com", "password": "secret1"})
        ws.receive_json()
        assert len(client.app.state.registry) == 1

    # The server-side cleanup can finish just after the client closes.
    for _ in range(200):
        if client.get("/health").json()["sessions"] == 0:
            break
        time.sleep(0.01)
    assert len(client.app.state.registry) == 0


def test_live_ticks_reach_subscribers_only(store):
    app = create_app(TickerConfig(tick_interval_seconds=0.05), store=store, rng=random.Random(9))

    with TestClient(app) as client:
        with client.websocket_connect("/ws") as ws:
            _send(ws, "register", {"email": "a@x.com", "password": "secret1"})
            _send(ws, "login", {"email": "a@x.com", "password": "secret1"})
            _receive_event(ws, "subscribed")
            _send(ws, "subscribe", {"symbol": "TSLA"})
            _receive_event(ws, "subscribed")

            updates = [_receive_event(ws, "price_update") for _ in range(3)]

    for update in updates:
        assert update["data"]["symbol"] == "TSLA"
        assert update["data"]["price"] >= 1.0
        assert "time" in update["data"]
