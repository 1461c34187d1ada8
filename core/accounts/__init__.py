"""Account registration, login and password hashing."""

from core.accounts.passwords import hash_password, verify_password
from core.accounts.service import AccountService, validate_email, validate_password

__all__ = [
    "AccountService",
    "hash_password",
    "validate_email",
    "validate_password",
    "verify_password",
]
