"""SQLAlchemy-backed credential store.

Notes
- We avoid logging connection URLs to prevent accidental secret leakage.
- Works against PostgreSQL in deployment and SQLite in tests.
"""

from .config import SqlConfig
from .stores import SqlCredentialStore
