"""Persistence boundary (interfaces)."""

from core.persistence.interfaces import CredentialStore

__all__ = ["CredentialStore"]
