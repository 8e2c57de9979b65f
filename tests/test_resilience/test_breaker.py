"""Tests for the per-provider circuit breaker."""

import pytest

from pricefuse.observability import BREAKER_CLOSED, BREAKER_HALF_OPEN, BREAKER_OPENED
from pricefuse.resilience import CircuitBreaker, CircuitState


@pytest.fixture
def breaker(clock, events):
    return CircuitBreaker(
        name="Test",
        failure_threshold=5,
        cooldown_seconds=60.0,
        clock=clock,
        sink=events,
    )


def trip(breaker: CircuitBreaker, times: int = 5) -> None:
    for _ in range(times):
        breaker.record_failure()


class TestClosed:
    """Normal operation."""

    def test_starts_closed(self, breaker):
        assert breaker.state is CircuitState.CLOSED
        assert breaker.is_available()
        assert breaker.try_acquire()

    def test_stays_closed_below_threshold(self, breaker, events):
        trip(breaker, 4)

        assert breaker.state is CircuitState.CLOSED
        assert breaker.is_available()
        assert BREAKER_OPENED not in events.names()

    def test_success_resets_consecutive_count(self, breaker):
        trip(breaker, 4)
        breaker.record_success()
        trip(breaker, 4)

        assert breaker.state is CircuitState.CLOSED
        assert breaker.snapshot().failure_count == 4


class TestOpen:
    """Threshold reached: calls are refused until the cooldown passes."""

    def test_opens_at_threshold(self, breaker, events):
        trip(breaker)

        assert breaker.state is CircuitState.OPEN
        assert not breaker.is_available()
        assert not breaker.try_acquire()

        opened = events.of(BREAKER_OPENED)
        assert len(opened) == 1
        assert opened[0]["failure_count"] == 5
        assert opened[0]["reopened"] is False

    def test_stays_open_during_cooldown(self, breaker, clock):
        trip(breaker)
        clock.advance(59.9)

        assert breaker.state is CircuitState.OPEN
        assert not breaker.try_acquire()

    def test_cooldown_counts_from_last_failure(self, breaker, clock):
        trip(breaker, 4)
        clock.advance(30)
        breaker.record_failure()
        clock.advance(45)

        assert breaker.state is CircuitState.OPEN


class TestHalfOpen:
    """After the cooldown exactly one probe is let through."""

    def test_half_open_after_cooldown(self, breaker, clock, events):
        trip(breaker)
        clock.advance(60)

        assert breaker.state is CircuitState.HALF_OPEN
        assert breaker.is_available()
        assert len(events.of(BREAKER_HALF_OPEN)) == 1

    def test_half_open_announced_once(self, breaker, clock, events):
        trip(breaker)
        clock.advance(60)

        breaker.is_available()
        breaker.state
        breaker.snapshot()

        assert len(events.of(BREAKER_HALF_OPEN)) == 1

    def test_single_probe(self, breaker, clock):
        """Only the first caller wins the probe."""
        trip(breaker)
        clock.advance(60)

        assert breaker.try_acquire()
        assert not breaker.try_acquire()
        assert not breaker.is_available()

    def test_probe_success_closes(self, breaker, clock, events):
        trip(breaker)
        clock.advance(60)
        breaker.try_acquire()

        breaker.record_success()

        assert breaker.state is CircuitState.CLOSED
        assert breaker.snapshot().failure_count == 0
        closed = events.of(BREAKER_CLOSED)
        assert len(closed) == 1
        assert closed[0]["previous_failures"] == 5

    def test_probe_failure_reopens(self, breaker, clock, events):
        trip(breaker)
        clock.advance(60)
        breaker.try_acquire()

        breaker.record_failure()

        assert breaker.state is CircuitState.OPEN
        assert not breaker.try_acquire()
        opened = events.of(BREAKER_OPENED)
        assert len(opened) == 2
        assert opened[1]["reopened"] is True

        # A fresh cooldown starts from the failed probe
        clock.advance(60)
        assert breaker.state is CircuitState.HALF_OPEN

    def test_release_probe_allows_new_probe(self, breaker, clock):
        trip(breaker)
        clock.advance(60)
        assert breaker.try_acquire()

        breaker.release_probe()

        assert breaker.try_acquire()

    def test_admit_reports_admission_state(self, breaker, clock):
        assert breaker.admit() is CircuitState.CLOSED

        trip(breaker)
        assert breaker.admit() is None

        clock.advance(60)
        assert breaker.admit() is CircuitState.HALF_OPEN
        assert breaker.admit() is None

    def test_sink_may_read_state(self, clock):
        seen = []
        breaker = CircuitBreaker(
            name="Test",
            failure_threshold=1,
            clock=clock,
            sink=lambda event, fields: seen.append((event, breaker.state)),
        )

        breaker.record_failure()
        clock.advance(60)

        assert breaker.state is CircuitState.HALF_OPEN
        assert seen == [
            (BREAKER_OPENED, CircuitState.OPEN),
            (BREAKER_HALF_OPEN, CircuitState.HALF_OPEN),
        ]


class TestSnapshot:
    """Monitoring snapshot."""

    def test_snapshot_fields(self, breaker, clock):
        trip(breaker)
        snap = breaker.snapshot()

        assert snap.failure_count == 5
        assert snap.last_failure_time == clock.now
        assert snap.is_open is True
        assert snap.to_dict() == {
            "failure_count": 5,
            "last_failure_time": clock.now,
            "is_open": True,
            "state": "open",
        }

    def test_rejects_zero_threshold(self):
        with pytest.raises(ValueError, match="failure_threshold"):
            CircuitBreaker(failure_threshold=0)
