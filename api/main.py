"""FastAPI application for live stock ticks.

This module provides:
- WS  /ws     - Authenticated price stream (register, login, subscribe, snapshot)
- GET /health - Tick loop and session status

Configuration comes from environment variables (see core.config.TickerConfig).
Without DATABASE_URL, accounts are kept in memory.
"""

from __future__ import annotations

import logging
import random
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI

from api.routes.health import router as health_router
from api.routes.ws import router as ws_router
from api.websocket.handler import ConnectionHandler
from api.websocket.manager import BroadcastRouter
from core.accounts.service import AccountService
from core.config import TickerConfig
from core.market_data.catalog import SymbolCatalog
from core.market_data.simulator import PriceFeedSimulator
from core.persistence.interfaces import CredentialStore
from core.sessions.ledger import SubscriptionLedger
from core.sessions.registry import SessionRegistry
from core.storage import build_credential_store

logger = logging.getLogger(__name__)


def create_app(
    config: Optional[TickerConfig] = None,
    *,
    store: Optional[CredentialStore] = None,
    rng: Optional[random.Random] = None,
    start_ticker: bool = True,
) -> FastAPI:
    """Wire the engine components and return the application.

    Args:
        config: Service configuration. Defaults to TickerConfig.from_env().
        store: Credential store override (tests inject an in-memory store).
        rng: Random source for the price simulator.
        start_ticker: Start the tick loop in the lifespan (tests may drive ticks by hand).
    """
    config = config or TickerConfig.from_env()
    store = store or build_credential_store(config)

    catalog = SymbolCatalog(config.symbols)
    feed = PriceFeedSimulator(catalog, step=config.price_step, floor=config.price_floor, rng=rng)
    registry = SessionRegistry()
    ledger = SubscriptionLedger(store=store, catalog=catalog, registry=registry)
    accounts = AccountService(store, min_password_length=config.min_password_length)
    router = BroadcastRouter(
        registry=registry,
        feed=feed,
        interval_seconds=config.tick_interval_seconds,
        send_timeout_seconds=config.send_timeout_seconds,
    )
    handler = ConnectionHandler(
        accounts=accounts,
        ledger=ledger,
        registry=registry,
        router=router,
        catalog=catalog,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if start_ticker:
            router.start()
        try:
            yield
        finally:
            await router.stop()
            await router.close_all()

    app = FastAPI(
        title="Tickerstream API",
        description="Authenticated live price stream with durable symbol subscriptions",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.store = store
    app.state.catalog = catalog
    app.state.feed = feed
    app.state.registry = registry
    app.state.ledger = ledger
    app.state.accounts = accounts
    app.state.router = router
    app.state.handler = handler

    app.include_router(ws_router)
    app.include_router(health_router)

    logger.info(f"Tickerstream configured for symbols {list(catalog.symbols)}")
    return app


app = create_app()
