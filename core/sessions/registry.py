"""Per-connection session state.

A session moves through ``anonymous -> binding -> authenticated -> closed``
(``closed`` is reachable from any state). Only authenticated sessions carry a
subscription cache; everything else reports an empty set and is skipped by the
broadcast router.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional, Protocol

logger = logging.getLogger(__name__)


class Connection(Protocol):
    async def send_json(self, data: object) -> None: ...

    async def close(self, code: int = 1000) -> None: ...


class SessionState(str, Enum):
    ANONYMOUS = "anonymous"
    BINDING = "binding"
    AUTHENTICATED = "authenticated"
    CLOSED = "closed"


@dataclass(eq=False)
class Session:
    session_id: str
    connection: Connection
    state: SessionState = SessionState.ANONYMOUS
    email: Optional[str] = None
    _subscriptions: Optional[frozenset[str]] = None
    # Held by login/bind and by ledger mutations so they never interleave.
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    @property
    def is_authenticated(self) -> bool:
        return self.state is SessionState.AUTHENTICATED

    @property
    def is_closed(self) -> bool:
        return self.state is SessionState.CLOSED

    @property
    def subscriptions(self) -> frozenset[str]:
        if not self.is_authenticated or self._subscriptions is None:
            return frozenset()
        return self._subscriptions

    def is_subscribed(self, symbol: str) -> bool:
        return self.is_authenticated and self._subscriptions is not None and symbol in self._subscriptions


class SessionRegistry:
    """Owns every live session, indexed by session id.

    All methods are synchronous; they run between awaits on the event loop and
    therefore never observe a half-applied transition.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}

    def connect(self, connection: Connection) -> Session:
        session = Session(session_id=uuid.uuid4().hex, connection=connection)
        self._sessions[session.session_id] = session
        logger.info(f"Session {session.session_id} connected (total: {len(self._sessions)})")
        return session

    def begin_bind(self, session: Session) -> None:
        if session.state is SessionState.ANONYMOUS:
            session.state = SessionState.BINDING

    def abort_bind(self, session: Session) -> None:
        if session.state is SessionState.BINDING:
            session.state = SessionState.ANONYMOUS

    def bind(self, session: Session, email: str, subscriptions: Iterable[str]) -> bool:
        """Attach an identity and seed the cache. Returns False if the session is gone."""
        if session.is_closed or session.session_id not in self._sessions:
            return False
        session.email = email
        session._subscriptions = frozenset(subscriptions)
        session.state = SessionState.AUTHENTICATED
        logger.info(f"Session {session.session_id} bound to {email}")
        return True

    def update_subscriptions(self, session: Session, subscriptions: Iterable[str]) -> bool:
        if not session.is_authenticated:
            return False
        session._subscriptions = frozenset(subscriptions)
        return True

    def disconnect(self, session: Session) -> bool:
        """Drop the session and its cache. Safe to call more than once."""
        removed = self._sessions.pop(session.session_id, None)
        session.state = SessionState.CLOSED
        session._subscriptions = None
        if removed is None:
            return False
        logger.info(f"Session {session.session_id} disconnected (total: {len(self._sessions)})")
        return True

    def sessions(self) -> list[Session]:
        return list(self._sessions.values())

    def authenticated_sessions(self) -> list[Session]:
        return [s for s in self._sessions.values() if s.is_authenticated]

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session: object) -> bool:
        return isinstance(session, Session) and session.session_id in self._sessions
