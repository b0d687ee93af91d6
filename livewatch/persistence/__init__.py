"""Persistence layer: a key-value port with SQL and in-memory backends.

Public API:
    # Database lifecycle (SQL backend)
    - init_database(database_url: str) -> None
    - get_session() -> ContextManager[Session]
    - close_database() -> None

    # Key-value port
    - KeyValueStore (protocol), SqlKeyValueStore, InMemoryKeyValueStore

    # Repositories (fail open on PersistenceError)
    - CooldownRepository, PreferencesRepository, CheckRepository

Example usage:
    >>> from livewatch.persistence import init_database, SqlKeyValueStore, CooldownRepository
    >>> init_database("sqlite:///./data/livewatch.db")
    >>> cooldowns = CooldownRepository(SqlKeyValueStore())
"""

from .database import close_database, get_engine, get_session, init_database, is_initialized
from .exceptions import DatabaseConnectionError, DataIntegrityError, PersistenceError
from .repositories import CheckRepository, CooldownRepository, PreferencesRepository
from .store import InMemoryKeyValueStore, KeyValueStore, SqlKeyValueStore

__all__ = [
    # Database functions
    "init_database",
    "get_session",
    "get_engine",
    "close_database",
    "is_initialized",
    # Stores
    "KeyValueStore",
    "SqlKeyValueStore",
    "InMemoryKeyValueStore",
    # Repositories
    "CooldownRepository",
    "PreferencesRepository",
    "CheckRepository",
    # Exceptions
    "PersistenceError",
    "DatabaseConnectionError",
    "DataIntegrityError",
]
