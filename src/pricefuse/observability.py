"""Structured observability events.

Components report notable moments (retries, breaker transitions, rate-limit
waits, outlier counts, provider and cache failures) as named events with a
flat field dict. An event sink is any callable taking (event, fields); the
default sink writes events through `logging` so an external log collector
can pick them up.

Usage:
    from pricefuse.observability import emit_event

    emit_event("rate_limit_wait", {"provider": "eBay", "wait_seconds": 1.5})
"""

import logging
from typing import Any, Callable

logger = logging.getLogger("pricefuse.events")

EventSink = Callable[[str, dict[str, Any]], None]

# Event names
RETRY_ATTEMPT_FAILED = "retry_attempt_failed"
RETRIES_EXHAUSTED = "retries_exhausted"
BREAKER_OPENED = "breaker_opened"
BREAKER_HALF_OPEN = "breaker_half_open"
BREAKER_CLOSED = "breaker_closed"
BREAKER_REJECTED = "breaker_rejected"
RATE_LIMIT_WAIT = "rate_limit_wait"
OUTLIERS_REMOVED = "outliers_removed"
OBSERVATIONS_DROPPED = "observations_dropped"
PROVIDER_FAILED = "provider_failed"
CACHE_READ_FAILED = "cache_read_failed"
CACHE_WRITE_FAILED = "cache_write_failed"

_WARNING_EVENTS = {
    RETRY_ATTEMPT_FAILED,
    BREAKER_REJECTED,
    RATE_LIMIT_WAIT,
    CACHE_READ_FAILED,
}
_ERROR_EVENTS = {
    RETRIES_EXHAUSTED,
    BREAKER_OPENED,
    PROVIDER_FAILED,
    CACHE_WRITE_FAILED,
}


def _level_for(event: str) -> int:
    if event in _ERROR_EVENTS:
        return logging.ERROR
    if event in _WARNING_EVENTS:
        return logging.WARNING
    return logging.INFO


def emit_event(event: str, fields: dict[str, Any]) -> None:
    """Default sink: one log record per event, fields rendered key=value."""
    rendered = " | ".join(f"{k}={v}" for k, v in fields.items())
    logger.log(
        _level_for(event),
        "[%s] %s",
        event,
        rendered,
        extra={"event": event, "event_fields": dict(fields)},
    )
