"""Database schema for the persisted key-value store.

A single ``kv_store`` table backs cooldown records, service preferences and
last-check timestamps; the keys are namespaced by the repositories.
"""

import logging

from sqlalchemy import Column, String, Text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base

logger = logging.getLogger(__name__)

Base = declarative_base()


class KeyValueModel(Base):
    """ORM model for the kv_store table."""

    __tablename__ = "kv_store"

    key = Column(String(255), primary_key=True, nullable=False)
    value = Column(Text, nullable=False)
    # ISO 8601 UTC string of the last write
    updated_at = Column(String(50), nullable=False)

    def __repr__(self) -> str:
        return f"<KeyValueModel key={self.key!r} updated_at={self.updated_at!r}>"


def create_schema(engine: Engine) -> None:
    """Create the kv_store table if it does not exist (idempotent)."""
    logger.info("Creating database schema if not exists")
    try:
        Base.metadata.create_all(engine, checkfirst=True)
    except Exception as e:
        logger.error(f"Failed to create database schema: {e}", exc_info=True)
        raise
