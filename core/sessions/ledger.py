"""Subscription ledger: keeps session caches in step with the credential store.

The store is authoritative. After every mutation the session cache is
overwritten with the set the store returns, never with a locally computed
union/difference, so a change made by another session of the same identity
shows up on the next operation.

Silent no-ops are policy: an unauthenticated session or a symbol outside the
catalog yields ``None`` and nothing is written or sent.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional

from core.market_data.catalog import SymbolCatalog
from core.persistence.interfaces import CredentialStore
from core.sessions.registry import Session, SessionRegistry
from core.types import Identity

logger = logging.getLogger(__name__)

StoreMutation = Callable[[str, str], Awaitable[frozenset[str]]]


class SubscriptionLedger:
    def __init__(self, *, store: CredentialStore, catalog: SymbolCatalog, registry: SessionRegistry) -> None:
        self._store = store
        self._catalog = catalog
        self._registry = registry

    def bind(self, session: Session, identity: Identity) -> Optional[frozenset[str]]:
        """Seed the session cache from the identity record read at login.

        Callers hold ``session.lock`` so no subscribe/unsubscribe on this
        session runs until the seed is in place.
        """
        if not self._registry.bind(session, identity.email, identity.subscriptions):
            logger.debug(f"Discarding bind for closed session {session.session_id}")
            return None
        return session.subscriptions

    async def subscribe(self, session: Session, symbol: str) -> Optional[frozenset[str]]:
        """Add a symbol; returns the full set, or None when silently ignored."""
        return await self._apply(session, symbol, self._store.add_subscription, "subscribe")

    async def unsubscribe(self, session: Session, symbol: str) -> Optional[frozenset[str]]:
        """Remove a symbol; returns the full set, or None when silently ignored."""
        return await self._apply(session, symbol, self._store.remove_subscription, "unsubscribe")

    async def _apply(
        self,
        session: Session,
        symbol: str,
        mutation: StoreMutation,
        action: str,
    ) -> Optional[frozenset[str]]:
        async with session.lock:
            if not session.is_authenticated or session.email is None:
                return None
            if symbol not in self._catalog:
                logger.debug(f"Ignoring {action} for unknown symbol {symbol!r}")
                return None

            email = session.email
            subscriptions = await mutation(email, symbol)

            # The connection may have closed or re-bound while the store call was in flight.
            if session.is_closed or session.email != email:
                logger.debug(f"Discarding {action} result for session {session.session_id}")
                return None

            self._registry.update_subscriptions(session, subscriptions)
            logger.info(f"{email} {action} {symbol} -> {sorted(subscriptions)}")
            return session.subscriptions
