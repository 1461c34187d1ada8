"""SQLAlchemy models for tickerstream database."""

from db.models.users import Base, UserAccount, UserSubscription

__all__ = ["Base", "UserAccount", "UserSubscription"]
