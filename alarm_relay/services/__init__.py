"""
Relay Services

- state_machine.py - Arming state machine
- remote_notifier.py - Remote device controller client
- telemetry_store.py - Sensor/image JSON persistence
"""

from .remote_notifier import RemoteNotifier
from .state_machine import AlarmStateMachine, AlarmStatus, SystemState, TransitionResult
from .telemetry_store import BatchResult, TelemetryStore

__all__ = [
    "RemoteNotifier",
    "AlarmStateMachine",
    "AlarmStatus",
    "SystemState",
    "TransitionResult",
    "BatchResult",
    "TelemetryStore",
]
