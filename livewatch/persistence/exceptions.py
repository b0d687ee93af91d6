"""Persistence layer exceptions.

Every store and repository error derives from PersistenceError. The poll
cycle and planner treat these as fail-open: a failed read means "no prior
record" or "default preferences", never a stalled loop.
"""


class PersistenceError(Exception):
    """Base exception for key-value store and repository failures."""


class DatabaseConnectionError(PersistenceError):
    """The backing database could not be initialised or reached.

    Examples:
    - Empty or malformed DATABASE_URL
    - Database file not writable
    - Store used before init_database()
    """


class DataIntegrityError(PersistenceError):
    """A stored value could not be decoded or violated a constraint."""
