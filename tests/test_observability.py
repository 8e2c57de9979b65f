"""Tests for the default event sink."""

import logging

from pricefuse.observability import (
    BREAKER_OPENED,
    OUTLIERS_REMOVED,
    RATE_LIMIT_WAIT,
    emit_event,
)


def test_event_logged_with_fields(caplog):
    with caplog.at_level(logging.DEBUG, logger="pricefuse.events"):
        emit_event(RATE_LIMIT_WAIT, {"provider": "eBay", "wait_seconds": 1.5})

    record = caplog.records[-1]
    assert record.levelno == logging.WARNING
    assert record.event == RATE_LIMIT_WAIT
    assert record.event_fields == {"provider": "eBay", "wait_seconds": 1.5}
    assert "provider=eBay | wait_seconds=1.5" in record.getMessage()


def test_levels_by_event(caplog):
    with caplog.at_level(logging.DEBUG, logger="pricefuse.events"):
        emit_event(BREAKER_OPENED, {"provider": "eBay"})
        emit_event(OUTLIERS_REMOVED, {"removed": 1})

    assert [r.levelno for r in caplog.records[-2:]] == [logging.ERROR, logging.INFO]
