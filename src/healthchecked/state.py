"""Per-endpoint heartbeat state.

One HeartbeatState is owned by exactly one augmented endpoint. Only the
scheduler and the calculator write to it.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Protocol

from healthchecked.config import HeartbeatConfig


class HeartbeatPhase(str, Enum):
    IDLE = "idle"          # not connected, no timer
    PROBING = "probing"    # connected, checkup cycle running


class TimerHandle(Protocol):
    """Anything with a ``cancel()``; asyncio.TimerHandle qualifies."""

    def cancel(self) -> None:
        ...


@dataclass
class HeartbeatState:
    """Latency data, timer and config for one endpoint."""

    config: HeartbeatConfig = field(default_factory=HeartbeatConfig)

    # Measurements (milliseconds)
    latency: int = 0
    rtt: int = 0

    # Scheduling
    timer: TimerHandle | None = None
    phase: HeartbeatPhase = HeartbeatPhase.IDLE
    session: int = 0  # bumped on every connect/disconnect
    awaiting_ack: bool = False
    probe_sent_at: int | None = None  # timestamp of the outstanding probe

    # Counters
    probes_sent: int = 0
    acks_received: int = 0
    stale_acks: int = 0

    @property
    def timer_armed(self) -> bool:
        return self.timer is not None

    def cancel_timer(self) -> bool:
        """Cancel the pending checkup timer. Returns True if one was armed."""
        if self.timer is None:
            return False
        self.timer.cancel()
        self.timer = None
        return True

    def reset(self, config: HeartbeatConfig) -> None:
        """Zero the measurements, drop the timer and restore ``config``."""
        self.cancel_timer()
        self.latency = 0
        self.rtt = 0
        self.config = config


@dataclass(frozen=True)
class HeartbeatStatus:
    """Point-in-time snapshot of a heartbeat, safe to hand to callers."""

    phase: HeartbeatPhase
    latency: int
    rtt: int
    interval: int
    timer_armed: bool
    awaiting_ack: bool
    probe_sent_at: int | None
    probes_sent: int
    acks_received: int
    stale_acks: int

    @classmethod
    def from_state(cls, state: HeartbeatState) -> "HeartbeatStatus":
        return cls(
            phase=state.phase,
            latency=state.latency,
            rtt=state.rtt,
            interval=state.config.interval,
            timer_armed=state.timer_armed,
            awaiting_ack=state.awaiting_ack,
            probe_sent_at=state.probe_sent_at,
            probes_sent=state.probes_sent,
            acks_received=state.acks_received,
            stale_acks=state.stale_acks,
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["phase"] = self.phase.value
        return data
