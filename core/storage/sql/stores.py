from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any, Callable, Optional, TypeVar

from sqlalchemy import create_engine, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from core.accounts.passwords import hash_password, verify_password
from core.errors import AlreadyExistsError, IdentityNotFoundError, StoreUnavailableError
from core.storage.sql.config import SqlConfig
from core.types import Identity
from db.models.users import Base, UserAccount, UserSubscription

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SqlCredentialStore:
    """CredentialStore backed by SQLAlchemy (PostgreSQL or SQLite).

    SQLAlchemy calls are blocking, so every public coroutine runs its work in
    a worker thread via `asyncio.to_thread`. Subscription changes run inside a
    single transaction per call.
    """

    def __init__(self, *, config: SqlConfig) -> None:
        self._config = config
        self._engine: Any | None = None
        self._schema_ready = False
        self._engine_lock = threading.Lock()

    def _get_engine(self) -> Any:
        with self._engine_lock:
            return self._get_engine_locked()

    def _get_engine_locked(self) -> Any:
        if self._engine is None:
            connect_args: dict[str, Any] = {}
            if self._config.database_url.startswith("sqlite"):
                # Worker threads share the connection pool.
                connect_args["check_same_thread"] = False
            # Do not log the URL (it may contain secrets).
            self._engine = create_engine(
                self._config.database_url,
                echo=False,
                pool_pre_ping=True,
                connect_args=connect_args,
            )
        if self._config.create_schema and not self._schema_ready:
            Base.metadata.create_all(self._engine)
            self._schema_ready = True
        return self._engine

    def ensure_schema(self) -> None:
        """Create the users tables if they do not exist."""
        with self._engine_lock:
            engine = self._get_engine_locked()
            Base.metadata.create_all(engine)
            self._schema_ready = True

    def dispose(self) -> None:
        with self._engine_lock:
            self._dispose_locked()

    def _dispose_locked(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._schema_ready = False

    async def _run(self, fn: Callable[..., T], *args: Any) -> T:
        try:
            return await asyncio.to_thread(fn, *args)
        except (AlreadyExistsError, IdentityNotFoundError):
            raise
        except SQLAlchemyError as exc:
            logger.error(f"Credential store failure in {fn.__name__}: {exc.__class__.__name__}")
            raise StoreUnavailableError(str(exc)) from exc

    async def find_by_email(self, email: str) -> Optional[Identity]:
        return await self._run(self._find_by_email, email)

    async def create(self, email: str, password: str) -> Identity:
        return await self._run(self._create, email, password)

    async def verify(self, identity: Identity, password: str) -> bool:
        return await asyncio.to_thread(verify_password, identity.password_hash, password)

    async def add_subscription(self, email: str, symbol: str) -> frozenset[str]:
        return await self._run(self._add_subscription, email, symbol)

    async def remove_subscription(self, email: str, symbol: str) -> frozenset[str]:
        return await self._run(self._remove_subscription, email, symbol)

    # -- blocking helpers (worker thread) ---------------------------------

    def _find_by_email(self, email: str) -> Optional[Identity]:
        with Session(self._get_engine()) as session:
            account = session.get(UserAccount, email)
            if account is None:
                return None
            return Identity(
                email=account.email,
                password_hash=account.password_hash,
                subscriptions=self._load_symbols(session, email),
            )

    def _create(self, email: str, password: str) -> Identity:
        password_hash = hash_password(password)
        engine = self._get_engine()
        try:
            with Session(engine) as session, session.begin():
                if session.get(UserAccount, email) is not None:
                    raise AlreadyExistsError(email)
                session.add(UserAccount(email=email, password_hash=password_hash))
        except IntegrityError as exc:
            # Lost a race against a concurrent registration of the same email.
            raise AlreadyExistsError(email) from exc

        logger.info(f"Created identity {email}")
        return Identity(email=email, password_hash=password_hash, subscriptions=frozenset())

    def _add_subscription(self, email: str, symbol: str) -> frozenset[str]:
        engine = self._get_engine()
        try:
            with Session(engine) as session, session.begin():
                self._require_account(session, email)
                if session.get(UserSubscription, (email, symbol)) is None:
                    session.add(UserSubscription(email=email, symbol=symbol))
        except IntegrityError:
            # Another session inserted the same row first; the set already has it.
            logger.debug(f"Concurrent subscribe for {email}/{symbol} resolved by existing row")

        with Session(engine) as session:
            return self._load_symbols(session, email)

    def _remove_subscription(self, email: str, symbol: str) -> frozenset[str]:
        engine = self._get_engine()
        with Session(engine) as session, session.begin():
            self._require_account(session, email)
            row = session.get(UserSubscription, (email, symbol))
            if row is not None:
                session.delete(row)

        with Session(engine) as session:
            return self._load_symbols(session, email)

    @staticmethod
    def _require_account(session: Session, email: str) -> UserAccount:
        account = session.get(UserAccount, email)
        if account is None:
            raise IdentityNotFoundError(email)
        return account

    @staticmethod
    def _load_symbols(session: Session, email: str) -> frozenset[str]:
        rows = session.execute(select(UserSubscription.symbol).where(UserSubscription.email == email))
        return frozenset(rows.scalars().all())
