"""Persisted datastore: tracked servers, accounts and webhook subscriptions."""

from helium.store.database import Base, create_session_factory, init_db

__all__ = ["Base", "create_session_factory", "init_db"]
