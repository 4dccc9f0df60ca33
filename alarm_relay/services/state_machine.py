"""
Arming State Machine

Holds the process-lifetime alarm state and decides which transitions are
legal. States:

    DISARMED        armed=False
    ARMED_IDLE      armed=True, alarm_triggered=False
    ARMED_ALARMING  armed=True, alarm_triggered=True

Arm and disarm commit only after the remote device confirms. Stopping an
alarm commits locally first, then notifies the remote device from a
background task. Transitions run under one asyncio.Lock, which arm and
disarm hold across their remote call.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..common.exceptions import NotArmedError, RemoteNotifyError
from ..common.logging_setup import get_service_logger, log_remote_failure, log_transition

logger = get_service_logger("state")


class AlarmStatus(str, Enum):
    """Named states derived from the two flags"""
    DISARMED = "disarmed"
    ARMED_IDLE = "armed_idle"
    ARMED_ALARMING = "armed_alarming"


@dataclass(frozen=True)
class SystemState:
    """Immutable snapshot of the alarm state"""
    armed: bool = False
    alarm_triggered: bool = False

    @property
    def status(self) -> AlarmStatus:
        if not self.armed:
            return AlarmStatus.DISARMED
        if self.alarm_triggered:
            return AlarmStatus.ARMED_ALARMING
        return AlarmStatus.ARMED_IDLE

    def to_dict(self) -> dict[str, Any]:
        """Wire representation"""
        return {"armed": self.armed, "alarmTriggered": self.alarm_triggered}


@dataclass(frozen=True)
class TransitionResult:
    """State after an operation, and whether the operation changed it"""
    state: SystemState
    changed: bool


class AlarmStateMachine:
    """Sole authority over arm/disarm/trigger/stop transitions"""

    def __init__(self, notifier):
        self.notifier = notifier
        self._state = SystemState()
        self._lock = asyncio.Lock()
        # Strong references to in-flight stop notifications
        self._pending: set[asyncio.Task] = set()

    def get_state(self) -> SystemState:
        # The snapshot is immutable and replaced wholesale, so no lock needed
        return self._state

    async def arm(self) -> TransitionResult:
        async with self._lock:
            if self._state.armed:
                return self._unchanged("arm")

            try:
                await self.notifier.notify_arm()
            except RemoteNotifyError as e:
                log_remote_failure(logger, "arm", e)
                raise

            return self._commit("arm", SystemState(armed=True, alarm_triggered=False))

    async def disarm(self) -> TransitionResult:
        async with self._lock:
            if not self._state.armed:
                return self._unchanged("disarm")

            try:
                await self.notifier.notify_disarm()
            except RemoteNotifyError as e:
                log_remote_failure(logger, "disarm", e)
                raise

            return self._commit("disarm", SystemState(armed=False, alarm_triggered=False))

    async def trigger(self) -> TransitionResult:
        async with self._lock:
            if not self._state.armed:
                logger.warning("Trigger rejected: system not armed")
                raise NotArmedError()

            if self._state.alarm_triggered:
                return self._unchanged("trigger")

            return self._commit("trigger", SystemState(armed=True, alarm_triggered=True))

    async def stop_alarm(self) -> TransitionResult:
        async with self._lock:
            if not self._state.alarm_triggered:
                return self._unchanged("stop_alarm")

            result = self._commit(
                "stop_alarm", SystemState(armed=self._state.armed, alarm_triggered=False)
            )

        # Sent outside the lock so a slow device can't hold up later transitions
        task = asyncio.create_task(self._send_stop())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

        return result

    async def drain(self) -> None:
        """Wait for outstanding stop notifications to finish"""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    async def _send_stop(self) -> None:
        try:
            await self.notifier.notify_stop()
        except RemoteNotifyError as e:
            log_remote_failure(logger, "stop", e, blocking=False)

    def _commit(self, operation: str, new_state: SystemState) -> TransitionResult:
        self._state = new_state
        log_transition(logger, operation, new_state.to_dict(), changed=True)
        return TransitionResult(new_state, changed=True)

    def _unchanged(self, operation: str) -> TransitionResult:
        log_transition(logger, operation, self._state.to_dict(), changed=False)
        return TransitionResult(self._state, changed=False)
