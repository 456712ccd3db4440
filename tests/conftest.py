"""Shared fixtures: a manual clock/timer loop and recording endpoints."""

from typing import Any, Callable

from healthchecked.endpoint import NO_PAYLOAD

import pytest


class FakeTimer:
    def __init__(self, due_ms: int, callback: Callable[[], None]):
        self.due_ms = due_ms
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeLoop:
    """Deterministic clock and timer queue, driven by ``advance``."""

    def __init__(self, start_ms: int = 1_700_000_000_000):
        self.now = start_ms
        self.timers: list[FakeTimer] = []

    def now_ms(self) -> int:
        return self.now

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(self.now + round(delay_s * 1000), callback)
        self.timers.append(timer)
        return timer

    @property
    def pending(self) -> list[FakeTimer]:
        return [t for t in self.timers if not t.cancelled and not t.fired]

    def advance(self, ms: int) -> None:
        """Move the clock forward, firing due timers in order."""
        target = self.now + ms
        while True:
            due = [t for t in self.pending if t.due_ms <= target]
            if not due:
                break
            timer = min(due, key=lambda t: t.due_ms)
            self.now = timer.due_ms
            timer.fired = True
            timer.callback()
        self.now = target


class RecordingEndpoint:
    """Minimal endpoint: records remote sends and local publishes."""

    def __init__(self):
        self.handlers: dict[str, list[Callable[..., Any]]] = {}
        self.sent: list[tuple[str, Any, Callable[..., None]]] = []
        self.published: list[tuple[str, Any]] = []

    def subscribe(self, event: str, handler: Callable[..., Any]) -> None:
        self.handlers.setdefault(event, []).append(handler)

    def publish_with_ack(self, event: str, payload: Any, ack: Callable[..., None]) -> None:
        self.sent.append((event, payload, ack))

    def publish(self, event: str, payload: Any = NO_PAYLOAD) -> None:
        self.published.append((event, payload))
        for handler in self.handlers.get(event, []):
            handler() if payload is NO_PAYLOAD else handler(payload)

    def fire(self, event: str) -> None:
        self.publish(event)

    def events(self, name: str) -> list[Any]:
        return [payload for event, payload in self.published if event == name]

    @property
    def last_ack(self) -> Callable[..., None]:
        return self.sent[-1][2]

    @property
    def last_timestamp(self) -> int:
        return self.sent[-1][1]["timestamp"]


@pytest.fixture
def loop():
    return FakeLoop()


@pytest.fixture
def raw_endpoint():
    return RecordingEndpoint()


@pytest.fixture
def endpoint(raw_endpoint, loop):
    """RecordingEndpoint augmented with a 2000ms heartbeat on the fake loop."""
    from healthchecked import healthchecked
    return healthchecked(raw_endpoint, now_ms=loop.now_ms, call_later=loop.call_later)
