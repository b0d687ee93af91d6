"""Shared utilities."""

from .timestamps import (
    ensure_utc,
    format_timestamp,
    load_zone,
    parse_timestamp,
    to_epoch_millis,
    utc_now,
)

__all__ = [
    "utc_now",
    "ensure_utc",
    "load_zone",
    "format_timestamp",
    "parse_timestamp",
    "to_epoch_millis",
]
