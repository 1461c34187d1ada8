"""Tests for per-connection command dispatch."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from core.errors import StoreUnavailableError


def _frames(websocket: AsyncMock) -> list[dict]:
    return [call.args[0] for call in websocket.send_json.call_args_list]


def _events(websocket: AsyncMock) -> list[str]:
    return [frame["event"] for frame in _frames(websocket)]


def _msg(event: str, data=None) -> dict:
    return {"event": event, "data": data}


@pytest.fixture
def websocket() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def session(registry, websocket):
    return registry.connect(websocket)


@pytest.mark.asyncio
async def test_register_success(handler, session, websocket, store):
    await handler.handle(session, _msg("register", {"email": "a@x.com", "password": "secret1"}))

    assert _frames(websocket) == [{"event": "register_success", "data": {"message": "registration successful"}}]
    assert await store.find_by_email("a@x.com") is not None
    # Registering does not log the session in.
    assert not session.is_authenticated


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload, reason",
    [
        ({"email": "bad", "password": "secret1"}, "invalid email"),
        ({"email": "a@x.com", "password": "123"}, "password must be at least 6 characters"),
        ({"email": "a@x.com"}, "email and password are required"),
    ],
)
async def test_register_validation_errors(handler, session, websocket, store, payload, reason):
    await handler.handle(session, _msg("register", payload))

    assert _frames(websocket) == [{"event": "register_error", "data": {"reason": reason}}]
    assert await store.find_by_email("a@x.com") is None


@pytest.mark.asyncio
async def test_register_duplicate(handler, session, websocket):
    creds = {"email": "a@x.com", "password": "secret1"}
    await handler.handle(session, _msg("register", creds))
    await handler.handle(session, _msg("register", creds))

    assert _frames(websocket)[-1] == {"event": "register_error", "data": {"reason": "user already exists"}}


@pytest.mark.asyncio
async def test_register_store_failure_reports_server_error(handler, session, websocket, store, monkeypatch):
    monkeypatch.setattr(store, "create", AsyncMock(side_effect=StoreUnavailableError("down")))

    await handler.handle(session, _msg("register", {"email": "a@x.com", "password": "secret1"}))

    assert _frames(websocket) == [{"event": "register_error", "data": {"reason": "server error"}}]


@pytest.mark.asyncio
async def test_login_sends_catalog_then_subscriptions(handler, session, websocket, store):
    await store.create("a@x.com", "secret1")
    await store.add_subscription("a@x.com", "NVDA")

    await handler.handle(session, _msg("login", {"email": "a@x.com", "password": "secret1"}))

    assert _frames(websocket) == [
        {
            "event": "login_success",
            "data": {"email": "a@x.com", "catalog": ["GOOG", "TSLA", "AMZN", "META", "NVDA"]},
        },
        {"event": "subscribed", "data": {"symbols": ["NVDA"]}},
    ]
    assert session.is_authenticated
    assert session.subscriptions == frozenset({"NVDA"})


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "email, password",
    [("a@x.com", "wrong-secret"), ("ghost@x.com", "secret1")],
)
async def test_login_failures_use_one_generic_reason(handler, session, websocket, store, email, password):
    await store.create("a@x.com", "secret1")

    await handler.handle(session, _msg("login", {"email": email, "password": password}))

    assert _frames(websocket) == [{"event": "login_error", "data": {"reason": "invalid email or password"}}]
    assert not session.is_authenticated


@pytest.mark.asyncio
async def test_login_store_failure_reports_server_error(handler, session, websocket, store, monkeypatch):
    monkeypatch.setattr(store, "find_by_email", AsyncMock(side_effect=StoreUnavailableError("down")))

    await handler.handle(session, _msg("login", {"email": "a@x.com", "password": "secret1"}))

    assert _frames(websocket) == [{"event": "login_error", "data": {"reason": "server error"}}]
    assert not session.is_authenticated


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "message",
    [
        _msg("subscribe", {"symbol": "GOOG"}),
        _msg("unsubscribe", {"symbol": "GOOG"}),
        _msg("request_snapshot"),
        _msg("request_initial_prices"),
    ],
)
async def test_commands_before_login_are_silent(handler, session, websocket, message):
    await handler.handle(session, message)

    websocket.send_json.assert_not_called()


@pytest.mark.asyncio
async def test_subscribe_flow(handler, session, websocket, store):
    await store.create("a@x.com", "secret1")
    await handler.handle(session, _msg("login", {"email": "a@x.com", "password": "secret1"}))
    websocket.send_json.reset_mock()

    await handler.handle(session, _msg("subscribe", {"symbol": "goog"}))
    await handler.handle(session, _msg("subscribe", "TSLA"))
    await handler.handle(session, _msg("unsubscribe", {"symbol": "GOOG"}))

    assert _frames(websocket) == [
        {"event": "subscribed", "data": {"symbols": ["GOOG"]}},
        {"event": "subscribed", "data": {"symbols": ["GOOG", "TSLA"]}},
        {"event": "subscribed", "data": {"symbols": ["TSLA"]}},
    ]


@pytest.mark.asyncio
async def test_unknown_symbol_is_silent(handler, session, websocket, store):
    await store.create("a@x.com", "secret1")
    await handler.handle(session, _msg("login", {"email": "a@x.com", "password": "secret1"}))
    websocket.send_json.reset_mock()

    await handler.handle(session, _msg("subscribe", {"symbol": "DOGE"}))

    websocket.send_json.assert_not_called()
    assert (await store.find_by_email("a@x.com")).subscriptions == frozenset()


@pytest.mark.asyncio
async def test_subscribe_store_failure_is_logged_and_silent(handler, session, websocket, store, monkeypatch):
    await store.create("a@x.com", "secret1")
    await handler.handle(session, _msg("login", {"email": "a@x.com", "password": "secret1"}))
    websocket.send_json.reset_mock()
    monkeypatch.setattr(store, "add_subscription", AsyncMock(side_effect=StoreUnavailableError("down")))

    await handler.handle(session, _msg("subscribe", {"symbol": "GOOG"}))

    websocket.send_json.assert_not_called()
    assert session.is_authenticated


@pytest.mark.asyncio
async def test_snapshot_after_login(handler, session, websocket, store, catalog):
    await store.create("a@x.com", "secret1")
    await handler.handle(session, _msg("login", {"email": "a@x.com", "password": "secret1"}))
    websocket.send_json.reset_mock()

    await handler.handle(session, _msg("request_snapshot"))

    (frame,) = _frames(websocket)
    assert frame["event"] == "initial_prices"
    assert set(frame["data"]) == set(catalog.symbols)
    assert all(price >= 1.0 for price in frame["data"].values())


@pytest.mark.asyncio
async def test_malformed_frames_are_ignored(handler, session, websocket):
    await handler.handle(session, "garbage")
    await handler.handle(session, {"event": "explode"})
    await handler.handle(session, _msg("login", "not-a-dict"))

    assert _events(websocket) == ["login_error"]
