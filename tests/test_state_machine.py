import asyncio

import pytest

from alarm_relay.common.exceptions import NotArmedError, RemoteNotifyError
from alarm_relay.services.state_machine import AlarmStateMachine, AlarmStatus, SystemState


def run(coro):
    return asyncio.run(coro)


async def alarming(machine):
    await machine.arm()
    await machine.trigger()


def test_initial_state_is_disarmed(make_notifier):
    machine = AlarmStateMachine(make_notifier())
    state = machine.get_state()
    assert state == SystemState(armed=False, alarm_triggered=False)
    assert state.status is AlarmStatus.DISARMED
    assert state.to_dict() == {"armed": False, "alarmTriggered": False}


def test_arm_notifies_remote_then_commits(make_notifier):
    notifier = make_notifier()
    machine = AlarmStateMachine(notifier)

    result = run(machine.arm())

    assert result.changed
    assert result.state.status is AlarmStatus.ARMED_IDLE
    assert notifier.calls == ["arm"]


def test_arm_when_armed_is_noop_without_remote_call(make_notifier):
    notifier = make_notifier()
    machine = AlarmStateMachine(notifier)

    async def scenario():
        await machine.arm()
        return await machine.arm()

    result = run(scenario())

    assert not result.changed
    assert result.state.armed
    assert notifier.calls == ["arm"]


def test_arm_failure_leaves_state_unchanged(make_notifier):
    machine = AlarmStateMachine(make_notifier(failing={"arm"}))

    with pytest.raises(RemoteNotifyError) as excinfo:
        run(machine.arm())

    assert excinfo.value.command == "arm"
    assert machine.get_state().armed is False


def test_disarm_clears_active_alarm(make_notifier):
    notifier = make_notifier()
    machine = AlarmStateMachine(notifier)

    async def scenario():
        await alarming(machine)
        return await machine.disarm()

    result = run(scenario())

    assert result.changed
    assert result.state == SystemState(armed=False, alarm_triggered=False)
    assert notifier.calls == ["arm", "disarm"]


def test_disarm_when_disarmed_is_noop(make_notifier):
    notifier = make_notifier()
    machine = AlarmStateMachine(notifier)

    result = run(machine.disarm())

    assert not result.changed
    assert notifier.calls == []


def test_disarm_failure_keeps_alarm_active(make_notifier):
    machine = AlarmStateMachine(make_notifier(failing={"disarm"}))

    async def scenario():
        await alarming(machine)
        await machine.disarm()

    with pytest.raises(RemoteNotifyError):
        run(scenario())

    assert machine.get_state().status is AlarmStatus.ARMED_ALARMING


def test_trigger_when_disarmed_raises_without_mutation(make_notifier):
    machine = AlarmStateMachine(make_notifier())

    with pytest.raises(NotArmedError):
        run(machine.trigger())

    assert machine.get_state() == SystemState()


def test_trigger_is_idempotent_when_alarming(make_notifier):
    machine = AlarmStateMachine(make_notifier())

    async def scenario():
        await machine.arm()
        first = await machine.trigger()
        second = await machine.trigger()
        return first, second

    first, second = run(scenario())

    assert first.changed and first.state.status is AlarmStatus.ARMED_ALARMING
    assert not second.changed and second.state.status is AlarmStatus.ARMED_ALARMING


def test_stop_alarm_keeps_system_armed(make_notifier):
    notifier = make_notifier()
    machine = AlarmStateMachine(notifier)

    async def scenario():
        await alarming(machine)
        result = await machine.stop_alarm()
        await machine.drain()
        return result

    result = run(scenario())

    assert result.changed
    assert result.state.status is AlarmStatus.ARMED_IDLE
    assert notifier.calls == ["arm", "stop"]


def test_stop_alarm_remote_failure_still_clears_alarm(make_notifier):
    notifier = make_notifier(failing={"stop"})
    machine = AlarmStateMachine(notifier)

    async def scenario():
        await alarming(machine)
        result = await machine.stop_alarm()
        await machine.drain()
        return result

    result = run(scenario())

    assert result.state.status is AlarmStatus.ARMED_IDLE
    assert notifier.calls == ["arm", "stop"]


def test_stop_alarm_without_alarm_is_noop(make_notifier):
    notifier = make_notifier()
    machine = AlarmStateMachine(notifier)

    async def scenario():
        result = await machine.stop_alarm()
        await machine.drain()
        return result

    result = run(scenario())

    assert not result.changed
    assert notifier.calls == []


def test_slow_stop_notification_does_not_block_transitions(make_blocking_notifier):
    async def scenario():
        notifier = make_blocking_notifier("stop")
        machine = AlarmStateMachine(notifier)
        await alarming(machine)

        stopped = await asyncio.wait_for(machine.stop_alarm(), timeout=0.5)
        await notifier.started.wait()

        # Device still hasn't answered the stop, a new alarm goes through
        retriggered = await asyncio.wait_for(machine.trigger(), timeout=0.5)
        assert not notifier.release.is_set()

        notifier.release.set()
        await machine.drain()
        return notifier, stopped, retriggered

    notifier, stopped, retriggered = run(scenario())

    assert stopped.state.status is AlarmStatus.ARMED_IDLE
    assert retriggered.state.status is AlarmStatus.ARMED_ALARMING
    assert notifier.calls == ["arm", "stop"]


def test_trigger_waits_for_in_flight_arm(make_blocking_notifier):
    async def scenario():
        notifier = make_blocking_notifier("arm")
        machine = AlarmStateMachine(notifier)

        arm_task = asyncio.create_task(machine.arm())
        await notifier.started.wait()

        trigger_task = asyncio.create_task(machine.trigger())
        await asyncio.sleep(0.01)
        assert not trigger_task.done()
        assert machine.get_state().armed is False

        notifier.release.set()
        await arm_task
        return await trigger_task

    result = run(scenario())

    assert result.state.status is AlarmStatus.ARMED_ALARMING


def test_trigger_queued_behind_failed_arm_is_rejected(make_blocking_notifier):
    async def scenario():
        notifier = make_blocking_notifier("arm", failing={"arm"})
        machine = AlarmStateMachine(notifier)

        arm_task = asyncio.create_task(machine.arm())
        await notifier.started.wait()
        trigger_task = asyncio.create_task(machine.trigger())

        notifier.release.set()
        results = await asyncio.gather(arm_task, trigger_task, return_exceptions=True)
        return machine, results

    machine, (arm_result, trigger_result) = run(scenario())

    assert isinstance(arm_result, RemoteNotifyError)
    assert isinstance(trigger_result, NotArmedError)
    assert machine.get_state() == SystemState()
