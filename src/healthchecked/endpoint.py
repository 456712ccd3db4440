"""Endpoint capability contracts and an in-process event endpoint.

The heartbeat only needs three operations from a connection endpoint:

    subscribe(event, handler)
    publish_with_ack(event, payload, ack)   # remote, ack invoked by the peer
    publish(event, payload)                 # local, application-facing

EventEndpoint implements them on top of a plain handler registry, with
the remote side supplied as a callable. LoopbackPeer is such a callable
that echoes health-check timestamps back after a delay.
"""

import asyncio
import functools
import logging
import random
from typing import Any, Callable, Protocol, runtime_checkable

from healthchecked.scheduler import HEALTH_CHECK_EVENT, CallLater
from healthchecked.state import HeartbeatStatus

logger = logging.getLogger(__name__)

CONNECTED_EVENT = "connected"
DISCONNECTED_EVENT = "disconnected"

EventHandler = Callable[..., Any]
AckCallback = Callable[..., None]
RemoteHandler = Callable[[str, Any, AckCallback], None]

# Marks a publish that carries no payload; None is a valid payload.
NO_PAYLOAD: Any = object()


@runtime_checkable
class Endpoint(Protocol):
    """What an endpoint must expose to be health-checked."""

    def subscribe(self, event: str, handler: EventHandler) -> None:
        ...

    def publish_with_ack(self, event: str, payload: Any, ack: AckCallback) -> None:
        ...

    def publish(self, event: str, payload: Any = None) -> Any:
        ...


@runtime_checkable
class HealthCheckable(Protocol):
    """Operations an augmented endpoint adds."""

    def reset_heartbeat_state(self) -> Any:
        ...

    def run_checkup(self) -> bool:
        ...

    def on_checkup_ack(self, timestamp: int) -> bool:
        ...

    def status(self) -> HeartbeatStatus:
        ...


class EventEndpoint:
    """Event-addressable endpoint with local handlers and a remote callable.

    Usage:
        endpoint = EventEndpoint(remote=LoopbackPeer(delay_ms=20))
        endpoint.subscribe("latency changed", print)
        endpoint.connect()
    """

    def __init__(self, name: str = "endpoint", remote: RemoteHandler | None = None):
        self.name = name
        self._remote = remote
        self._handlers: dict[str, list[EventHandler]] = {}
        self.connected = False

    def attach(self, remote: RemoteHandler | None) -> None:
        """Set (or clear) the remote side."""
        self._remote = remote

    def subscribe(self, event: str, handler: EventHandler) -> None:
        self._handlers.setdefault(event, []).append(handler)

    def unsubscribe(self, event: str, handler: EventHandler) -> bool:
        handlers = self._handlers.get(event, [])
        if handler in handlers:
            handlers.remove(handler)
            return True
        return False

    def handlers(self, event: str) -> list[EventHandler]:
        return list(self._handlers.get(event, []))

    def publish(self, event: str, payload: Any = NO_PAYLOAD) -> int:
        """Deliver ``payload`` to local handlers. Returns how many ran cleanly.

        A failing handler is logged and skipped; the rest still run.
        """
        delivered = 0
        for handler in self.handlers(event):
            try:
                if payload is NO_PAYLOAD:
                    handler()
                else:
                    handler(payload)
                delivered += 1
            except Exception as e:
                logger.error(f"Handler for '{event}' on {self.name} failed: {e}")
        return delivered

    def publish_with_ack(self, event: str, payload: Any, ack: AckCallback) -> None:
        """Send ``event`` to the remote side; it answers through ``ack``."""
        if not self.connected:
            raise ConnectionError(f"{self.name} is not connected")
        if self._remote is None:
            raise ConnectionError(f"{self.name} has no remote peer attached")
        self._remote(event, payload, ack)

    def connect(self) -> None:
        if self.connected:
            return
        self.connected = True
        logger.info(f"{self.name} connected")
        self.publish(CONNECTED_EVENT)

    def disconnect(self) -> None:
        if not self.connected:
            return
        self.connected = False
        logger.info(f"{self.name} disconnected")
        self.publish(DISCONNECTED_EVENT)

    def __repr__(self) -> str:
        state = "connected" if self.connected else "disconnected"
        return f"<EventEndpoint {self.name} {state}>"


class LoopbackPeer:
    """Remote side that acks health checks by echoing their timestamp.

    Each ack is delivered ``delay_ms`` (plus up to ``jitter_ms``) after
    the probe, through ``call_later``. Set ``paused`` to stop acking and
    reproduce a stalled peer.
    """

    def __init__(
        self,
        delay_ms: int = 0,
        jitter_ms: int = 0,
        call_later: CallLater | None = None,
        rng: random.Random | None = None,
    ):
        if delay_ms < 0 or jitter_ms < 0:
            raise ValueError("delay_ms and jitter_ms must not be negative")
        self.delay_ms = delay_ms
        self.jitter_ms = jitter_ms
        self.paused = False
        self.received: list[dict[str, Any]] = []
        self._call_later = call_later
        self._rng = rng or random.Random()

    def __call__(self, event: str, payload: Any, ack: AckCallback) -> None:
        if event != HEALTH_CHECK_EVENT:
            logger.debug(f"Loopback peer ignoring '{event}'")
            return
        self.received.append(payload)
        if self.paused:
            return

        delay = self.delay_ms
        if self.jitter_ms:
            delay += self._rng.randint(0, self.jitter_ms)
        callback = functools.partial(ack, payload["timestamp"])
        call_later = self._call_later or asyncio.get_running_loop().call_later
        call_later(delay / 1000.0, callback)
