"""Session lifecycle and subscription ledger."""

from core.sessions.ledger import SubscriptionLedger
from core.sessions.registry import Connection, Session, SessionRegistry, SessionState

__all__ = [
    "Connection",
    "Session",
    "SessionRegistry",
    "SessionState",
    "SubscriptionLedger",
]
