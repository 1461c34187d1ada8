"""Password hashing helpers.

Hashes are produced by werkzeug (salted scrypt/pbkdf2 depending on version).
Never log the raw password or the hash.
"""

from __future__ import annotations

from werkzeug.security import check_password_hash, generate_password_hash


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password_hash: str, password: str) -> bool:
    if not password_hash or not password:
        return False
    return check_password_hash(password_hash, password)
