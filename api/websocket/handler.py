"""Per-connection command dispatch.

Each connection's receive loop feeds frames here one at a time, so commands on
a session complete in arrival order. Replies go only to the initiating
session; failures never leak into other sessions or the tick loop.
"""

from __future__ import annotations

import logging
from typing import Any

from api.websocket import protocol
from api.websocket.manager import BroadcastRouter
from core.accounts.service import AccountService
from core.errors import (
    AlreadyExistsError,
    IdentityNotFoundError,
    InvalidCredentialError,
    StoreUnavailableError,
    ValidationError,
)
from core.market_data.catalog import SymbolCatalog
from core.sessions.ledger import SubscriptionLedger
from core.sessions.registry import Session, SessionRegistry

logger = logging.getLogger(__name__)

ALREADY_EXISTS_REASON = "user already exists"
INVALID_LOGIN_REASON = "invalid email or password"
SERVER_ERROR_REASON = "server error"


class ConnectionHandler:
    def __init__(
        self,
        *,
        accounts: AccountService,
        ledger: SubscriptionLedger,
        registry: SessionRegistry,
        router: BroadcastRouter,
        catalog: SymbolCatalog,
    ) -> None:
        self._accounts = accounts
        self._ledger = ledger
        self._registry = registry
        self._router = router
        self._catalog = catalog

    async def handle(self, session: Session, message: Any) -> None:
        """Dispatch one decoded frame. Malformed frames are ignored."""
        envelope = protocol.parse_envelope(message)
        if envelope is None:
            logger.debug(f"Ignoring malformed frame on session {session.session_id}")
            return

        event = envelope.event
        if event not in protocol.ANONYMOUS_EVENTS and not session.is_authenticated:
            # Only register/login are honoured before login_success.
            logger.debug(f"Ignoring {event} on unauthenticated session {session.session_id}")
            return

        if event == protocol.REGISTER:
            await self._register(session, envelope.data)
        elif event == protocol.LOGIN:
            await self._login(session, envelope.data)
        elif event == protocol.SUBSCRIBE:
            await self._change_subscription(session, envelope.data, subscribe=True)
        elif event == protocol.UNSUBSCRIBE:
            await self._change_subscription(session, envelope.data, subscribe=False)
        elif event in (protocol.REQUEST_SNAPSHOT, protocol.REQUEST_INITIAL_PRICES):
            await self._router.send(session, protocol.initial_prices(self._router.snapshot()))

    async def _register(self, session: Session, data: Any) -> None:
        payload = protocol.parse_payload(protocol.CredentialsPayload, data)
        if payload is None:
            await self._router.send(session, protocol.register_error("email and password are required"))
            return

        try:
            await self._accounts.register(payload.email, payload.password)
        except ValidationError as exc:
            await self._router.send(session, protocol.register_error(str(exc)))
            return
        except AlreadyExistsError:
            await self._router.send(session, protocol.register_error(ALREADY_EXISTS_REASON))
            return
        except Exception:
            logger.exception(f"Registration failed on session {session.session_id}")
            await self._router.send(session, protocol.register_error(SERVER_ERROR_REASON))
            return

        await self._router.send(session, protocol.register_success())

    async def _login(self, session: Session, data: Any) -> None:
        payload = protocol.parse_payload(protocol.CredentialsPayload, data)
        if payload is None:
            await self._router.send(session, protocol.login_error(INVALID_LOGIN_REASON))
            return

        async with session.lock:
            self._registry.begin_bind(session)
            try:
                identity = await self._accounts.login(payload.email, payload.password)
            except (IdentityNotFoundError, InvalidCredentialError):
                self._registry.abort_bind(session)
                await self._router.send(session, protocol.login_error(INVALID_LOGIN_REASON))
                return
            except Exception:
                self._registry.abort_bind(session)
                logger.exception(f"Login failed on session {session.session_id}")
                await self._router.send(session, protocol.login_error(SERVER_ERROR_REASON))
                return

            subscriptions = self._ledger.bind(session, identity)

        if subscriptions is None:
            return

        await self._router.send(session, protocol.login_success(identity.email, self._catalog.symbols))
        await self._router.send(session, protocol.subscribed(subscriptions))

    async def _change_subscription(self, session: Session, data: Any, *, subscribe: bool) -> None:
        payload = protocol.parse_payload(protocol.SymbolPayload, data)
        if payload is None:
            return

        try:
            if subscribe:
                symbols = await self._ledger.subscribe(session, payload.symbol)
            else:
                symbols = await self._ledger.unsubscribe(session, payload.symbol)
        except StoreUnavailableError:
            logger.error(f"Store unavailable while updating subscriptions for {session.email}")
            return
        except Exception:
            logger.exception(f"Subscription update failed on session {session.session_id}")
            return

        if symbols is not None:
            await self._router.send(session, protocol.subscribed(symbols))
