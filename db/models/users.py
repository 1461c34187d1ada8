"""SQLAlchemy models for user accounts and their symbol subscriptions.

Tables:
- users
- user_subscriptions
"""

from __future__ import annotations

from sqlalchemy import Column, DateTime, ForeignKey, Index, Text, func
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class UserAccount(Base):
    """Registered identity.

    Table: users
    """

    __tablename__ = "users"

    email = Column(Text, primary_key=True)
    password_hash = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    def __repr__(self) -> str:
        return f"<UserAccount(email={self.email})>"


class UserSubscription(Base):
    """One subscribed symbol per row; the composite key makes inserts idempotent.

    Table: user_subscriptions
    """

    __tablename__ = "user_subscriptions"

    email = Column(Text, ForeignKey("users.email", ondelete="CASCADE"), primary_key=True)
    symbol = Column(Text, primary_key=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (Index("idx_user_subscriptions_email", "email"),)

    def __repr__(self) -> str:
        return f"<UserSubscription(email={self.email}, symbol={self.symbol})>"
