"""In-memory credential store.

Used when no DATABASE_URL is configured and throughout the test suite.
Records vanish with the process.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional

from core.accounts.passwords import hash_password, verify_password
from core.errors import AlreadyExistsError, IdentityNotFoundError
from core.types import Identity

logger = logging.getLogger(__name__)


@dataclass
class _UserRecord:
    email: str
    password_hash: str
    subscriptions: set[str] = field(default_factory=set)

    def to_identity(self) -> Identity:
        return Identity(
            email=self.email,
            password_hash=self.password_hash,
            subscriptions=frozenset(self.subscriptions),
        )


class InMemoryCredentialStore:
    """Dict-backed CredentialStore guarded by a single asyncio lock."""

    def __init__(self) -> None:
        self._users: dict[str, _UserRecord] = {}
        self._lock = asyncio.Lock()

    async def find_by_email(self, email: str) -> Optional[Identity]:
        async with self._lock:
            record = self._users.get(email)
            return None if record is None else record.to_identity()

    async def create(self, email: str, password: str) -> Identity:
        # Hash outside the lock; it is the slow part.
        password_hash = await asyncio.to_thread(hash_password, password)
        async with self._lock:
            if email in self._users:
                raise AlreadyExistsError(email)
            record = _UserRecord(email=email, password_hash=password_hash)
            self._users[email] = record
            logger.info(f"Created identity {email}")
            return record.to_identity()

    async def verify(self, identity: Identity, password: str) -> bool:
        return await asyncio.to_thread(verify_password, identity.password_hash, password)

    async def add_subscription(self, email: str, symbol: str) -> frozenset[str]:
        async with self._lock:
            record = self._require(email)
            record.subscriptions.add(symbol)
            return frozenset(record.subscriptions)

    async def remove_subscription(self, email: str, symbol: str) -> frozenset[str]:
        async with self._lock:
            record = self._require(email)
            record.subscriptions.discard(symbol)
            return frozenset(record.subscriptions)

    def _require(self, email: str) -> _UserRecord:
        record = self._users.get(email)
        if record is None:
            raise IdentityNotFoundError(email)
        return record
