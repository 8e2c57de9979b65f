"""Per-provider circuit breaker.

CLOSED → (threshold consecutive failures) → OPEN → (cooldown since last
failure) → HALF_OPEN → one probe call → CLOSED on success, OPEN on failure.
"""

import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from pricefuse.observability import (
    BREAKER_CLOSED,
    BREAKER_HALF_OPEN,
    BREAKER_OPENED,
    EventSink,
    emit_event,
)

logger = logging.getLogger(__name__)

DEFAULT_FAILURE_THRESHOLD = 5
DEFAULT_COOLDOWN_SECONDS = 60.0


class CircuitState(Enum):
    """Circuit breaker states."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass(frozen=True)
class BreakerSnapshot:
    """Point-in-time copy of breaker state for monitoring."""

    failure_count: int
    last_failure_time: float | None
    is_open: bool
    state: CircuitState

    def to_dict(self) -> dict:
        return {
            "failure_count": self.failure_count,
            "last_failure_time": self.last_failure_time,
            "is_open": self.is_open,
            "state": self.state.value,
        }


class CircuitBreaker:
    """Consecutive-failure circuit breaker with a single half-open probe.

    All state changes go through a mutex, so one breaker may be shared by
    concurrent calls into the same provider.

    Args:
        name: Owner name used in events (usually the provider name)
        failure_threshold: Consecutive failures that open the breaker (default: 5)
        cooldown_seconds: Time after the last failure before a probe is allowed
        clock: Monotonic time source in seconds
        sink: Observability event sink

    Example:
        >>> breaker = CircuitBreaker("eBay")
        >>> if breaker.try_acquire():
        ...     try:
        ...         call_provider()
        ...         breaker.record_success()
        ...     except Exception:
        ...         breaker.record_failure()
    """

    def __init__(
        self,
        name: str = "",
        failure_threshold: int = DEFAULT_FAILURE_THRESHOLD,
        cooldown_seconds: float = DEFAULT_COOLDOWN_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        sink: EventSink = emit_event,
    ) -> None:
        if failure_threshold < 1:
            raise ValueError("failure_threshold must be >= 1")
        self.name = name
        self.failure_threshold = failure_threshold
        self.cooldown_seconds = cooldown_seconds
        self._clock = clock
        self._sink = sink
        self._lock = threading.Lock()

        self._failures = 0
        self._last_failure_time: float | None = None
        self._open = False
        self._probe_in_flight = False
        self._half_open_announced = False

    def _current_state(self) -> tuple[CircuitState, bool]:
        """Resolve the effective state. Caller must hold the lock.

        Returns:
            (state, whether this call moved the breaker into HALF_OPEN).
            The caller announces the transition after releasing the lock.
        """
        if not self._open:
            return CircuitState.CLOSED, False

        elapsed = self._clock() - (self._last_failure_time or 0.0)
        if elapsed < self.cooldown_seconds:
            return CircuitState.OPEN, False

        entered = not self._half_open_announced
        self._half_open_announced = True
        return CircuitState.HALF_OPEN, entered

    def _announce_half_open(self, failures: int) -> None:
        self._sink(BREAKER_HALF_OPEN, {
            "provider": self.name,
            "failure_count": failures,
        })

    @property
    def state(self) -> CircuitState:
        with self._lock:
            state, entered = self._current_state()
            failures = self._failures
        if entered:
            self._announce_half_open(failures)
        return state

    def is_available(self) -> bool:
        """True when a call would currently be let through.

        Does not claim the half-open probe; use try_acquire() for that.
        """
        with self._lock:
            state, entered = self._current_state()
            failures = self._failures
            available = state is CircuitState.CLOSED or (
                state is CircuitState.HALF_OPEN and not self._probe_in_flight
            )
        if entered:
            self._announce_half_open(failures)
        return available

    def admit(self) -> CircuitState | None:
        """Claim permission for one call.

        In HALF_OPEN exactly one caller wins the probe; everyone else is
        refused until that probe records its outcome.

        Returns:
            The state the call was admitted under (CLOSED, or HALF_OPEN for
            the probe), or None when refused
        """
        with self._lock:
            state, entered = self._current_state()
            failures = self._failures
            if state is CircuitState.HALF_OPEN:
                if self._probe_in_flight:
                    state = None
                else:
                    self._probe_in_flight = True
            elif state is CircuitState.OPEN:
                state = None

        if entered:
            self._announce_half_open(failures)
        if state is CircuitState.HALF_OPEN:
            logger.info("Circuit breaker half-open for %s, sending probe", self.name)
        return state

    def try_acquire(self) -> bool:
        """admit() as a yes/no answer."""
        return self.admit() is not None

    def release_probe(self) -> None:
        """Give back an unfinished probe (e.g. the call was cancelled).

        Only the caller admitted under HALF_OPEN may call this.
        """
        with self._lock:
            self._probe_in_flight = False

    def record_success(self) -> None:
        """A call succeeded: reset failures and close the breaker."""
        with self._lock:
            was_open = self._open
            previous_failures = self._failures

            self._failures = 0
            self._open = False
            self._probe_in_flight = False
            self._half_open_announced = False

        if was_open:
            self._sink(BREAKER_CLOSED, {
                "provider": self.name,
                "previous_failures": previous_failures,
            })
        elif previous_failures:
            logger.info("%s recovered, resetting failure count", self.name)

    def record_failure(self) -> None:
        """A call failed after exhausting its retries."""
        with self._lock:
            state, entered = self._current_state()
            previous_failures = self._failures
            self._failures += 1
            self._last_failure_time = self._clock()
            self._probe_in_flight = False

            reopened = state is CircuitState.HALF_OPEN
            opened = reopened or (
                not self._open and self._failures >= self.failure_threshold
            )
            if opened:
                self._open = True
                self._half_open_announced = False
            failures = self._failures

        if entered:
            self._announce_half_open(previous_failures)
        if opened:
            self._sink(BREAKER_OPENED, {
                "provider": self.name,
                "failure_count": failures,
                "reopened": reopened,
            })

    def snapshot(self) -> BreakerSnapshot:
        with self._lock:
            state, entered = self._current_state()
            snap = BreakerSnapshot(
                failure_count=self._failures,
                last_failure_time=self._last_failure_time,
                is_open=state is not CircuitState.CLOSED,
                state=state,
            )
        if entered:
            self._announce_half_open(snap.failure_count)
        return snap
