"""healthchecked - heartbeat and latency measurement for event endpoints.

Modules:
    - augment: healthchecked() installs heartbeat capability on an endpoint
    - scheduler: probe / ack / reschedule cycle
    - calculator: RTT and latency computation
    - state: per-endpoint heartbeat state and status snapshots
    - endpoint: capability protocols, in-process endpoint, loopback peer
    - config: option validation and YAML loading
    - errors: exception taxonomy
"""

from .augment import HealthCheckedEndpoint, healthchecked
from .calculator import compute_latency, compute_rtt
from .config import HeartbeatConfig, load_config
from .endpoint import Endpoint, EventEndpoint, HealthCheckable, LoopbackPeer
from .errors import AckTimeout, HeartbeatError, InvalidConfig, MissingCapability, StaleAck
from .scheduler import HEALTH_CHECK_EVENT, LATENCY_CHANGED_EVENT, CheckupScheduler
from .state import HeartbeatPhase, HeartbeatState, HeartbeatStatus

__version__ = "0.1.0"

__all__ = [
    "AckTimeout",
    "CheckupScheduler",
    "Endpoint",
    "EventEndpoint",
    "HEALTH_CHECK_EVENT",
    "HealthCheckable",
    "HealthCheckedEndpoint",
    "HeartbeatConfig",
    "HeartbeatError",
    "HeartbeatPhase",
    "HeartbeatState",
    "HeartbeatStatus",
    "InvalidConfig",
    "LATENCY_CHANGED_EVENT",
    "LoopbackPeer",
    "MissingCapability",
    "StaleAck",
    "compute_latency",
    "compute_rtt",
    "healthchecked",
    "load_config",
]
