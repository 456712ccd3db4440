"""Checkup scheduler - the probe / ack / reschedule cycle.

State machine per endpoint:

    IDLE --connected--> PROBING --ack--> PROBING (timer re-armed)
    PROBING --disconnected--> IDLE (timer cancelled)

A checkup publishes ``"health check"`` with ``{latency, timestamp}`` and
waits for the peer to echo ``timestamp`` back through the ack. No timer
is armed while a probe is outstanding; the next checkup is scheduled
only once the ack has been processed. If the peer never acks, the cycle
stalls until the next reconnect (see ``overdue_ms``).
"""

import asyncio
import logging
from typing import Any, Callable

from healthchecked.calculator import now_ms as wall_clock_ms
from healthchecked.calculator import update_measurements
from healthchecked.config import HeartbeatConfig
from healthchecked.errors import AckTimeout, InvalidConfig, StaleAck
from healthchecked.state import HeartbeatPhase, HeartbeatState, TimerHandle

logger = logging.getLogger(__name__)

HEALTH_CHECK_EVENT = "health check"
LATENCY_CHANGED_EVENT = "latency changed"

NowMs = Callable[[], int]
CallLater = Callable[[float, Callable[[], None]], TimerHandle]


def _loop_call_later(delay_s: float, callback: Callable[[], None]) -> TimerHandle:
    return asyncio.get_running_loop().call_later(delay_s, callback)


class CheckupScheduler:
    """Drives periodic checkups for one endpoint.

    The endpoint only needs ``publish_with_ack`` and ``publish``. RTT math
    is delegated to the calculator; this class owns the timer.
    """

    def __init__(
        self,
        endpoint: Any,
        state: HeartbeatState,
        now_ms: NowMs | None = None,
        call_later: CallLater | None = None,
    ):
        self._endpoint = endpoint
        self._state = state
        self._now_ms = now_ms or wall_clock_ms
        self._call_later = call_later or _loop_call_later

    @property
    def state(self) -> HeartbeatState:
        return self._state

    # ── Lifecycle ──────────────────────────────────────────

    def on_connected(self, *_: Any) -> None:
        """Enter PROBING and fire the first checkup immediately."""
        state = self._state
        state.cancel_timer()
        state.session += 1
        state.phase = HeartbeatPhase.PROBING
        state.awaiting_ack = False
        state.probe_sent_at = None
        logger.info(f"Heartbeat started (interval={state.config.interval}ms)")
        self.run_checkup()

    def on_disconnected(self, *_: Any) -> None:
        """Cancel the pending timer and fall back to IDLE."""
        state = self._state
        had_timer = state.cancel_timer()
        state.session += 1
        state.phase = HeartbeatPhase.IDLE
        state.awaiting_ack = False
        state.probe_sent_at = None
        logger.info(f"Heartbeat stopped (timer cancelled: {had_timer})")

    # ── Checkup cycle ──────────────────────────────────────

    def run_checkup(self) -> bool:
        """Publish a probe. Returns False if none was sent.

        Nothing is sent while IDLE or while a previous probe still
        awaits its ack: at most one probe is ever in flight.
        """
        state = self._state
        if state.phase is HeartbeatPhase.IDLE:
            logger.debug("Checkup skipped: endpoint is idle")
            return False
        if state.awaiting_ack:
            logger.debug("Checkup skipped: previous probe not acked yet")
            return False

        state.cancel_timer()
        timestamp = self._now_ms()
        session = state.session

        def ack(echoed: Any = None) -> None:
            self._handle_ack(echoed, session)

        state.awaiting_ack = True
        state.probe_sent_at = timestamp
        try:
            self._endpoint.publish_with_ack(
                HEALTH_CHECK_EVENT,
                {"latency": state.latency, "timestamp": timestamp},
                ack,
            )
        except Exception:
            state.awaiting_ack = False
            state.probe_sent_at = None
            raise

        state.probes_sent += 1
        logger.debug(f"Probe sent (timestamp={timestamp}, latency={state.latency}ms)")
        return True

    def reset(self, config: HeartbeatConfig) -> None:
        """Zero the measurements and restore ``config``.

        While probing with no ack outstanding, a single timer is re-armed
        for the restored interval so the cycle keeps running.
        """
        state = self._state
        state.reset(config)
        if state.phase is HeartbeatPhase.PROBING and not state.awaiting_ack:
            self._arm_timer()

    def on_checkup_ack(self, timestamp: Any) -> bool:
        """Process an echoed probe timestamp. Returns True if it was applied."""
        return self._handle_ack(timestamp, None)

    def overdue_ms(self, max_wait_ms: int) -> int:
        """Raise AckTimeout if the outstanding probe waited longer than ``max_wait_ms``.

        Returns the time waited so far (0 when nothing is outstanding).
        The cycle itself never calls this; no retry is attempted.
        """
        if isinstance(max_wait_ms, bool) or not isinstance(max_wait_ms, int) or max_wait_ms <= 0:
            raise InvalidConfig(f"max_wait_ms must be a positive integer, got {max_wait_ms!r}")

        state = self._state
        if not state.awaiting_ack or state.probe_sent_at is None:
            return 0
        waited = self._now_ms() - state.probe_sent_at
        if waited > max_wait_ms:
            raise AckTimeout(waited, max_wait_ms)
        return waited

    def _handle_ack(self, timestamp: Any, session: int | None) -> bool:
        try:
            now = self._validate_ack(timestamp, session)
        except StaleAck as e:
            self._state.stale_acks += 1
            logger.warning(str(e))
            return False
        self._apply_ack(timestamp, now)
        return True

    def _validate_ack(self, timestamp: Any, session: int | None) -> int:
        state = self._state
        if state.phase is HeartbeatPhase.IDLE:
            raise StaleAck(timestamp, "endpoint is idle")
        if session is not None:
            if session != state.session:
                raise StaleAck(timestamp, "probe was sent before the last reconnect")
            if not state.awaiting_ack:
                raise StaleAck(timestamp, "probe was already acknowledged")
        if isinstance(timestamp, bool) or not isinstance(timestamp, int):
            raise StaleAck(timestamp, "echoed timestamp is not an integer")

        now = self._now_ms()
        if timestamp > now:
            raise StaleAck(timestamp, "echoed timestamp is ahead of the clock")
        return now

    def _apply_ack(self, timestamp: int, now: int) -> None:
        state = self._state
        previous_latency = state.latency

        update_measurements(state, timestamp, now)
        state.awaiting_ack = False
        state.probe_sent_at = None
        state.acks_received += 1
        logger.debug(f"Ack processed (rtt={state.rtt}ms)")

        try:
            if state.latency != previous_latency:
                logger.info(f"Latency changed: {previous_latency}ms -> {state.latency}ms")
                self._endpoint.publish(LATENCY_CHANGED_EVENT, {"latency": state.latency})
        finally:
            self._arm_timer()

    def _arm_timer(self) -> None:
        state = self._state
        state.cancel_timer()
        state.timer = self._call_later(state.config.interval / 1000.0, self._on_timer)
        logger.debug(f"Next checkup in {state.config.interval}ms")

    def _on_timer(self) -> None:
        self._state.timer = None
        try:
            self.run_checkup()
        except Exception as e:
            # Keep the cycle alive; try again next interval.
            logger.warning(f"Scheduled checkup failed: {e}")
            if self._state.phase is HeartbeatPhase.PROBING:
                self._arm_timer()
