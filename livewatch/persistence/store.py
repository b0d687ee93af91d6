"""Key-value port used by every persisted piece of state.

The scheduling core only needs ``get``/``set``/``remove`` by string key;
repositories layer typed records (cooldowns, preferences, last-check
instants) on top of it.
"""

import threading
from typing import Dict, Optional, Protocol, runtime_checkable

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from livewatch.logging import get_logger
from livewatch.utils.timestamps import format_timestamp, utc_now

from .database import get_session
from .exceptions import DataIntegrityError, PersistenceError
from .schema import KeyValueModel

logger = get_logger(__name__, component="store")


@runtime_checkable
class KeyValueStore(Protocol):
    """Minimal persisted key-value store."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def remove(self, key: str) -> None:
        ...


class InMemoryKeyValueStore:
    """Process-local store for tests and ``--dry-run``."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def snapshot(self) -> Dict[str, str]:
        with self._lock:
            return dict(self._data)


class SqlKeyValueStore:
    """Store backed by the ``kv_store`` table.

    Requires :func:`livewatch.persistence.database.init_database` to have
    been called. Every operation runs in its own short transaction.

    Raises:
        PersistenceError: On any database failure
    """

    def get(self, key: str) -> Optional[str]:
        try:
            with get_session() as session:
                row = session.execute(
                    select(KeyValueModel).where(KeyValueModel.key == key)
                ).scalar_one_or_none()
                return row.value if row is not None else None
        except PersistenceError:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Error reading key {key}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to read key '{key}': {e}") from e

    def set(self, key: str, value: str) -> None:
        try:
            with get_session() as session:
                row = session.get(KeyValueModel, key)
                stamp = format_timestamp(utc_now())
                if row is None:
                    session.add(KeyValueModel(key=key, value=value, updated_at=stamp))
                else:
                    row.value = value
                    row.updated_at = stamp
        except PersistenceError:
            raise
        except IntegrityError as e:
            logger.error(f"Integrity error writing key {key}: {e}", exc_info=True)
            raise DataIntegrityError(f"Failed to write key '{key}': {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error writing key {key}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to write key '{key}': {e}") from e

    def remove(self, key: str) -> None:
        try:
            with get_session() as session:
                session.execute(delete(KeyValueModel).where(KeyValueModel.key == key))
        except PersistenceError:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Error removing key {key}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to remove key '{key}': {e}") from e
