"""Error taxonomy for account and subscription handling."""

from __future__ import annotations


class TickerError(Exception):
    """Base exception for tickerstream errors."""


class ValidationError(TickerError):
    """Registration input rejected before touching the store."""


class AlreadyExistsError(TickerError):
    """An identity with this email is already registered."""

    def __init__(self, email: str):
        super().__init__(f"identity already exists: {email}")
        self.email = email


class IdentityNotFoundError(TickerError):
    """Login attempted for an email that was never registered."""


class InvalidCredentialError(TickerError):
    """Login attempted with a wrong password."""


class StoreUnavailableError(TickerError):
    """Unexpected failure while talking to the credential store."""
