"""Exception taxonomy for the heartbeat extension.

Configuration and capability errors abort augmentation. Measurement
errors (stale acks, clock anomalies) are absorbed by the scheduler and
only ever show up in the logs and the status counters.
"""


class HeartbeatError(Exception):
    """Base class for all heartbeat errors."""


class MissingCapability(HeartbeatError, TypeError):
    """The endpoint does not expose the operations the heartbeat needs."""

    def __init__(self, missing: tuple[str, ...]):
        self.missing = missing
        super().__init__(
            f"endpoint is missing required capabilities: {', '.join(missing)}"
        )


class InvalidConfig(HeartbeatError, ValueError):
    """Heartbeat options failed validation."""


class StaleAck(HeartbeatError):
    """An ack arrived that no longer belongs to an outstanding probe."""

    def __init__(self, timestamp: int, reason: str):
        self.timestamp = timestamp
        self.reason = reason
        super().__init__(f"ignored ack for probe {timestamp}: {reason}")


class AckTimeout(HeartbeatError, TimeoutError):
    """The remote peer has not acknowledged the outstanding probe in time."""

    def __init__(self, waited_ms: int, max_wait_ms: int):
        self.waited_ms = waited_ms
        self.max_wait_ms = max_wait_ms
        super().__init__(
            f"no ack after {waited_ms}ms (limit {max_wait_ms}ms)"
        )
