"""Registration and login policy on top of a CredentialStore."""

from __future__ import annotations

import logging

from core.errors import IdentityNotFoundError, InvalidCredentialError, ValidationError
from core.persistence.interfaces import CredentialStore
from core.types import Identity

logger = logging.getLogger(__name__)

DEFAULT_MIN_PASSWORD_LENGTH = 6


def validate_email(email: str) -> str:
    """Return the normalized email or raise ValidationError."""
    candidate = (email or "").strip()
    local, sep, domain = candidate.partition("@")
    if not sep or not local or not domain:
        raise ValidationError("invalid email")
    return candidate


def validate_password(password: str, *, min_length: int = DEFAULT_MIN_PASSWORD_LENGTH) -> str:
    if not password or len(password) < min_length:
        raise ValidationError(f"password must be at least {min_length} characters")
    return password


class AccountService:
    """Validates credentials and talks to the store.

    Validation failures short-circuit before the store is touched.
    """

    def __init__(self, store: CredentialStore, *, min_password_length: int = DEFAULT_MIN_PASSWORD_LENGTH):
        self._store = store
        self._min_password_length = min_password_length

    async def register(self, email: str, password: str) -> Identity:
        """Create an identity.

        Raises:
            ValidationError: malformed email or short password (store untouched)
            AlreadyExistsError: email already registered
            StoreUnavailableError: unexpected store failure
        """
        email = validate_email(email)
        validate_password(password, min_length=self._min_password_length)
        identity = await self._store.create(email, password)
        logger.info(f"Registered {email}")
        return identity

    async def login(self, email: str, password: str) -> Identity:
        """Return the identity for valid credentials.

        Raises:
            IdentityNotFoundError: no such email
            InvalidCredentialError: wrong password
            StoreUnavailableError: unexpected store failure
        """
        email = (email or "").strip()
        if not email or not password:
            raise InvalidCredentialError("missing email or password")

        identity = await self._store.find_by_email(email)
        if identity is None:
            logger.info(f"Login rejected for {email}: unknown identity")
            raise IdentityNotFoundError(email)

        if not await self._store.verify(identity, password):
            logger.info(f"Login rejected for {email}: wrong password")
            raise InvalidCredentialError(email)

        return identity
