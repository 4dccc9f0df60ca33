"""
Service Dependencies

FastAPI dependencies that hand the request the services created in the
application lifespan (stored on app.state).

Usage:
    from alarm_relay.dependencies.services import get_state_machine

    @router.get("/state")
    async def state(machine: AlarmStateMachine = Depends(get_state_machine)):
        ...
"""

from fastapi import Request

from ..services.state_machine import AlarmStateMachine
from ..services.telemetry_store import TelemetryStore


def get_state_machine(request: Request) -> AlarmStateMachine:
    return request.app.state.state_machine


def get_telemetry_store(request: Request) -> TelemetryStore:
    return request.app.state.telemetry_store
