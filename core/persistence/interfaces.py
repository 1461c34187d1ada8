from __future__ import annotations

from typing import Optional, Protocol

from core.types import Identity


class CredentialStore(Protocol):
    """Durable user records keyed by email.

    Implementations must apply `add_subscription` / `remove_subscription`
    atomically per identity; two sessions of the same user may race on them.
    Unexpected backend failures are raised as `StoreUnavailableError`.
    """

    async def find_by_email(self, email: str) -> Optional[Identity]:
        """Fetch an identity, or None if the email is not registered."""

    async def create(self, email: str, password: str) -> Identity:
        """Register a new identity. Raises AlreadyExistsError if the email is taken."""

    async def verify(self, identity: Identity, password: str) -> bool:
        """Check a password against the identity's stored hash."""

    async def add_subscription(self, email: str, symbol: str) -> frozenset[str]:
        """Add a symbol (no-op if present). Returns the updated subscription set."""

    async def remove_subscription(self, email: str, symbol: str) -> frozenset[str]:
        """Remove a symbol (no-op if absent). Returns the updated subscription set."""
