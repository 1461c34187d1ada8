#!/usr/bin/env python3
"""Initialize the account database schema.

Creates the users and user_subscriptions tables (db/models/users.py) in the
database pointed to by DATABASE_URL. Existing tables are left untouched.

Usage:
  python -m db.init_db
"""

from __future__ import annotations

import os

from core.storage.sql import SqlConfig, SqlCredentialStore


def main() -> int:
    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        raise SystemExit("DATABASE_URL is not set")

    store = SqlCredentialStore(config=SqlConfig(database_url=database_url, create_schema=False))
    try:
        store.ensure_schema()
    finally:
        store.dispose()

    print("Database schema applied")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
