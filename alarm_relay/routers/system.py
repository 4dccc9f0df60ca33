"""
System Router

Arming state machine endpoints:
- Current state
- Arm / disarm (confirmed by the remote device)
- Trigger / stop alarm
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..dependencies.services import get_state_machine
from ..services.state_machine import AlarmStateMachine

router = APIRouter()


# ============================================
# SCHEMAS
# ============================================

class StateSnapshot(BaseModel):
    armed: bool
    alarmTriggered: bool


class StateResponse(BaseModel):
    """Message plus the state after the operation."""
    message: str
    state: StateSnapshot


# ============================================
# ENDPOINTS
# ============================================

@router.get("/state", response_model=StateResponse)
async def get_state(machine: AlarmStateMachine = Depends(get_state_machine)):
    """Check system state."""
    return {
        "message": "System state retrieved successfully",
        "state": machine.get_state().to_dict(),
    }


@router.api_route("/arm", methods=["GET", "POST"], response_model=StateResponse)
async def arm(machine: AlarmStateMachine = Depends(get_state_machine)):
    """
    Arm the system.

    The remote device must confirm before the system counts as armed.
    Returns 500 and leaves the system disarmed if it doesn't.
    """
    result = await machine.arm()
    message = "System armed successfully" if result.changed else "System is already armed"
    return {"message": message, "state": result.state.to_dict()}


@router.api_route("/disarm", methods=["GET", "POST"], response_model=StateResponse)
async def disarm(machine: AlarmStateMachine = Depends(get_state_machine)):
    """
    Disarm the system and clear any active alarm.

    Returns 500 and leaves the system armed if the remote device
    doesn't confirm.
    """
    result = await machine.disarm()
    message = "System disarmed successfully" if result.changed else "System is already disarmed"
    return {"message": message, "state": result.state.to_dict()}


@router.api_route("/trigger", methods=["GET", "POST"], response_model=StateResponse)
async def trigger(machine: AlarmStateMachine = Depends(get_state_machine)):
    """Trigger an alarm. Returns 403 if the system is not armed."""
    result = await machine.trigger()
    return {"message": "Alarm triggered", "state": result.state.to_dict()}


@router.post("/stop-alarm", response_model=StateResponse)
async def stop_alarm(machine: AlarmStateMachine = Depends(get_state_machine)):
    """
    Stop an active alarm. The system stays armed.

    The remote device is told to stop, but a failure there doesn't
    keep the alarm active.
    """
    result = await machine.stop_alarm()
    message = "Alarm stopped" if result.changed else "No active alarm"
    return {"message": message, "state": result.state.to_dict()}
