"""Context propagation for structured logging.

Fields pushed here (``cycle_id``, ``service_id``, ``stream_id``...) are
copied onto every log record emitted inside the scope by
:class:`livewatch.logging.config.ContextualFilter`. APScheduler runs jobs
on worker threads, so each poll cycle opens its own scope.
"""

from contextvars import ContextVar, Token
from typing import Any, Dict, Optional

LogContextVar: ContextVar[Dict[str, Any]] = ContextVar("livewatch_log_context", default={})


def get_log_context() -> Dict[str, Any]:
    """Return a copy of the fields active in the current context."""
    return dict(LogContextVar.get())


def push_log_context(**fields: Any) -> Token:
    """Layer ``fields`` over the current context.

    Returns:
        Token to hand back to :func:`pop_log_context`
    """
    return LogContextVar.set({**LogContextVar.get(), **fields})


def pop_log_context(token: Token) -> None:
    """Restore the context captured by ``token``."""
    LogContextVar.reset(token)


def clear_log_context() -> None:
    """Drop every context field (used by tests)."""
    LogContextVar.set({})


class log_context:
    """Context manager scoping log fields to a block.

    Example:
        >>> with log_context(cycle_id="c-1a2b", service_id="early"):
        ...     logger.info("Probing oracle")
    """

    def __init__(self, **fields: Any):
        self.fields = fields
        self.token: Optional[Token] = None

    def __enter__(self):
        self.token = push_log_context(**self.fields)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.token is not None:
            pop_log_context(self.token)
            self.token = None
        return False
