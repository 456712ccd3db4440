"""RTT and latency computation.

Pure state mutations: nothing here touches timers or publishes events,
so other schedulers (and tests) can drive it directly.

Timestamps are wall-clock milliseconds. A clock adjustment between
sending a probe and reading its ack skews the measured RTT; that is a
known limitation, not corrected here.
"""

import time

from healthchecked.state import HeartbeatState


def now_ms() -> int:
    """Wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def measure_delta(timestamp: int, now: int) -> int:
    """Elapsed milliseconds between a probe ``timestamp`` and ``now``."""
    return now - timestamp


def compute_rtt(state: HeartbeatState, delta: int) -> HeartbeatState:
    """Store a measured round trip."""
    state.rtt = delta
    return state


def compute_latency(state: HeartbeatState) -> HeartbeatState:
    """Derive latency from the last RTT (direct pass-through, no smoothing)."""
    state.latency = state.rtt
    return state


def update_measurements(state: HeartbeatState, timestamp: int, now: int) -> HeartbeatState:
    """Turn an echoed probe timestamp into fresh RTT and latency values."""
    compute_rtt(state, measure_delta(timestamp, now))
    return compute_latency(state)
