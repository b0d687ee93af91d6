"""Structured logging helpers for the live-stream watcher.

Every module obtains its logger through :func:`get_logger` so that log
records carry a ``component`` field (``scheduler``, ``oracle``,
``planner``...) alongside the dotted ``event`` name passed in ``extra``.
"""

import logging
from typing import Optional, Union


class ComponentLoggerAdapter(logging.LoggerAdapter):
    """LoggerAdapter that merges the bound component into per-call extras."""

    def process(self, msg, kwargs):
        # Per-call extra wins over the bound fields
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def get_logger(
    name: str, component: Optional[str] = None
) -> Union[logging.Logger, ComponentLoggerAdapter]:
    """Return a logger, bound to ``component`` when one is given.

    Example:
        >>> logger = get_logger(__name__, component="scheduler")
        >>> logger.info("Poll cycle started", extra={"event": "poll.cycle.started"})
    """
    logger = logging.getLogger(name)
    if component:
        return ComponentLoggerAdapter(logger, {"component": component})
    return logger


__all__ = ["ComponentLoggerAdapter", "get_logger"]
