"""Concrete implementations of the CredentialStore interface.

Keeping implementations separate from `core.persistence` makes them swappable.
"""

from __future__ import annotations

import logging

from core.config import TickerConfig
from core.persistence.interfaces import CredentialStore

from .memory import InMemoryCredentialStore
from .sql import SqlConfig, SqlCredentialStore

logger = logging.getLogger(__name__)


def build_credential_store(config: TickerConfig) -> CredentialStore:
    """Pick the SQL store when a database URL is configured, else in-memory."""
    if config.database_url:
        logger.info("Using SQL credential store")
        return SqlCredentialStore(config=SqlConfig(database_url=config.database_url))

    logger.warning("DATABASE_URL not set; accounts and subscriptions are kept in memory only")
    return InMemoryCredentialStore()


__all__ = [
    "InMemoryCredentialStore",
    "SqlConfig",
    "SqlCredentialStore",
    "build_credential_store",
]
