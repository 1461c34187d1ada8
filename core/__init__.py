"""Core domain modules.

- accounts: registration/login policy and password hashing
- sessions: per-connection session lifecycle and the subscription ledger
- market_data: symbol catalog and synthetic price feed
- persistence: credential store boundary (interfaces)
- storage: concrete credential stores (in-memory, SQLAlchemy)
"""
