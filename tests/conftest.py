"""Shared fixtures: a controllable clock, a recording sleep and an event recorder."""

import pytest


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeSleep:
    """Async sleep that records delays and advances the fake clock instead of waiting."""

    def __init__(self, clock: FakeClock) -> None:
        self.clock = clock
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        self.clock.advance(seconds)


class EventRecorder:
    """Event sink that keeps every (event, fields) pair."""

    def __init__(self) -> None:
        self.records: list[tuple[str, dict]] = []

    def __call__(self, event: str, fields: dict) -> None:
        self.records.append((event, dict(fields)))

    def names(self) -> list[str]:
        return [event for event, _ in self.records]

    def of(self, event: str) -> list[dict]:
        return [fields for name, fields in self.records if name == event]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_sleep(clock: FakeClock) -> FakeSleep:
    return FakeSleep(clock)


@pytest.fixture
def events() -> EventRecorder:
    return EventRecorder()
