"""Augment an endpoint with heartbeat capabilities.

    endpoint = healthchecked(EventEndpoint(remote=peer), {"interval": 5000})
    endpoint.subscribe("latency changed", on_latency)
    endpoint.connect()

The returned HealthCheckedEndpoint wraps the original: heartbeat
operations live on the wrapper, everything else is forwarded to the
wrapped endpoint. The endpoint class itself is never modified.
"""

import logging
from typing import Any, Mapping

from healthchecked.config import HeartbeatConfig
from healthchecked.endpoint import CONNECTED_EVENT, DISCONNECTED_EVENT
from healthchecked.errors import HeartbeatError, MissingCapability
from healthchecked.scheduler import CallLater, CheckupScheduler, NowMs
from healthchecked.state import HeartbeatState, HeartbeatStatus

logger = logging.getLogger(__name__)

REQUIRED_CAPABILITIES = ("subscribe", "publish_with_ack", "publish")


class HealthCheckedEndpoint:
    """An endpoint composed with a HeartbeatState and its scheduler."""

    def __init__(
        self,
        endpoint: Any,
        config: HeartbeatConfig,
        now_ms: NowMs | None = None,
        call_later: CallLater | None = None,
    ):
        self._endpoint = endpoint
        self._config = config
        self._heartbeat = HeartbeatState(config=config)
        self._scheduler = CheckupScheduler(
            endpoint, self._heartbeat, now_ms=now_ms, call_later=call_later,
        )

    @property
    def endpoint(self) -> Any:
        """The wrapped endpoint."""
        return self._endpoint

    @property
    def heartbeat(self) -> HeartbeatState:
        return self._heartbeat

    @property
    def scheduler(self) -> CheckupScheduler:
        return self._scheduler

    @property
    def latency(self) -> int:
        return self._heartbeat.latency

    @property
    def rtt(self) -> int:
        return self._heartbeat.rtt

    def reset_heartbeat_state(self) -> "HealthCheckedEndpoint":
        """Zero latency and RTT and restore the config.

        The pending timer is replaced by one for the restored interval while
        probing, and dropped while idle.
        """
        self._scheduler.reset(self._config)
        return self

    def run_checkup(self) -> bool:
        """Send a health check probe now, if the endpoint is probing and idle."""
        return self._scheduler.run_checkup()

    def on_checkup_ack(self, timestamp: int) -> bool:
        """Feed an echoed probe timestamp into the measurements."""
        return self._scheduler.on_checkup_ack(timestamp)

    def status(self) -> HeartbeatStatus:
        return HeartbeatStatus.from_state(self._heartbeat)

    def ensure_responsive(self, max_wait_ms: int) -> int:
        """Raise AckTimeout if the outstanding probe is older than ``max_wait_ms``."""
        return self._scheduler.overdue_ms(max_wait_ms)

    def __getattr__(self, name: str) -> Any:
        # Only reached for attributes the wrapper does not define.
        if name.startswith("_"):
            raise AttributeError(name)
        return getattr(self._endpoint, name)

    def __repr__(self) -> str:
        return (
            f"<HealthCheckedEndpoint {self._endpoint!r} "
            f"phase={self._heartbeat.phase.value} latency={self._heartbeat.latency}ms>"
        )


def healthchecked(
    endpoint: Any,
    options: HeartbeatConfig | Mapping[str, Any] | None = None,
    *,
    now_ms: NowMs | None = None,
    call_later: CallLater | None = None,
) -> HealthCheckedEndpoint:
    """Install heartbeat capability on ``endpoint``.

    Args:
        endpoint: Object exposing subscribe, publish_with_ack and publish.
        options: ``{"interval": ms}``; defaults to a 2000ms interval.
        now_ms: Clock override, epoch milliseconds.
        call_later: Timer override, ``(delay_s, callback) -> handle``.

    Raises:
        MissingCapability: the endpoint lacks a required operation.
        InvalidConfig: the options are invalid.
    """
    if isinstance(endpoint, HealthCheckedEndpoint):
        raise HeartbeatError("endpoint is already health-checked")

    missing = tuple(
        name for name in REQUIRED_CAPABILITIES
        if not callable(getattr(endpoint, name, None))
    )
    if missing:
        raise MissingCapability(missing)

    config = HeartbeatConfig.from_options(options)
    augmented = HealthCheckedEndpoint(endpoint, config, now_ms=now_ms, call_later=call_later)

    endpoint.subscribe(CONNECTED_EVENT, augmented.scheduler.on_connected)
    endpoint.subscribe(DISCONNECTED_EVENT, augmented.scheduler.on_disconnected)

    logger.info(f"Heartbeat installed on {endpoint!r} (interval={config.interval}ms)")
    return augmented
