"""Shared test fixtures for pytest.

Provides the engine components wired the same way api.main does, backed by
an in-memory credential store and a seeded random source.
"""

from __future__ import annotations

import random

import pytest

from api.websocket.handler import ConnectionHandler
from api.websocket.manager import BroadcastRouter
from core.accounts.service import AccountService
from core.market_data.catalog import SymbolCatalog
from core.market_data.simulator import PriceFeedSimulator
from core.sessions.ledger import SubscriptionLedger
from core.sessions.registry import SessionRegistry
from core.storage.memory import InMemoryCredentialStore

CATALOG_SYMBOLS = ("GOOG", "TSLA", "AMZN", "META", "NVDA")


@pytest.fixture
def catalog() -> SymbolCatalog:
    return SymbolCatalog(CATALOG_SYMBOLS)


@pytest.fixture
def store() -> InMemoryCredentialStore:
    return InMemoryCredentialStore()


@pytest.fixture
def registry() -> SessionRegistry:
    return SessionRegistry()


@pytest.fixture
def feed(catalog: SymbolCatalog) -> PriceFeedSimulator:
    return PriceFeedSimulator(catalog, rng=random.Random(42))


@pytest.fixture
def ledger(store: InMemoryCredentialStore, catalog: SymbolCatalog, registry: SessionRegistry) -> SubscriptionLedger:
    return SubscriptionLedger(store=store, catalog=catalog, registry=registry)


@pytest.fixture
def accounts(store: InMemoryCredentialStore) -> AccountService:
    return AccountService(store)


@pytest.fixture
def router(registry: SessionRegistry, feed: PriceFeedSimulator) -> BroadcastRouter:
    return BroadcastRouter(registry=registry, feed=feed, interval_seconds=0.01)


@pytest.fixture
def handler(
    accounts: AccountService,
    ledger: SubscriptionLedger,
    registry: SessionRegistry,
    router: BroadcastRouter,
    catalog: SymbolCatalog,
) -> ConnectionHandler:
    return ConnectionHandler(
        accounts=accounts,
        ledger=ledger,
        registry=registry,
        router=router,
        catalog=catalog,
    )
