# path: tests/test_monitors.py
"""
Tests for behavior.monitors.

Covers:
- night window boundaries and the preemption predicate
- NightMonitor: starts one sleep attempt only when idle at night
- ModeMonitor: startup correction, drift correction, delayed re-verify,
  no repeated commands for an unchanged mode
- periodic loop cadence and stop()
"""

from __future__ import annotations

import asyncio

import pytest

from behavior.monitors import ModeMonitor, NightMonitor, is_night, night_preempts
from behavior.placement import PlacementPlanner
from behavior.provisioning import ProvisioningGate
from behavior.sleep import SleepRoutine
from behavior.state import AgentPhase, CycleState
from monitoring.events import EventType
from spec.types import GameMode


@pytest.mark.parametrize(
    "time_of_day,expected",
    [(None, False), (0, False), (12999, False), (13000, True), (18000, True), (22999, True), (23000, False)],
)
def test_is_night_window(time_of_day, expected):
    assert is_night(time_of_day) is expected


def test_night_preempts(world):
    state = CycleState()
    world.time = 14000

    assert night_preempts(True, world, state)
    assert not night_preempts(False, world, state)

    state.begin_sleep_attempt(0.0, 10.0)
    assert not night_preempts(True, world, state)


def _night_monitor(world, clock, scheduler):
    state = CycleState()
    routine = SleepRoutine(
        world,
        clock,
        state,
        PlacementPlanner(world, clock),
        ProvisioningGate(world, clock),
        bed_search_radius=20.0,
        resume=lambda delay: None,
    )
    return NightMonitor(world, clock, state, scheduler, routine), state


def test_night_monitor_starts_sleep_when_idle(world, clock, scheduler):
    world.time = 14000
    monitor, state = _night_monitor(world, clock, scheduler)

    async def scenario():
        started = monitor.check()
        await scheduler.drain()
        return started

    assert asyncio.run(scenario())
    assert state.phase is AgentPhase.SLEEPING
    assert len(world.ops("sleep_in")) == 1


def test_night_monitor_leaves_busy_agent_alone(world, clock, scheduler):
    world.time = 14000
    monitor, state = _night_monitor(world, clock, scheduler)
    state.begin_cycle()

    assert not monitor.check()
    assert scheduler.tasks == []

    world.time = 1000
    state.end_cycle()
    assert not monitor.check()


def test_mode_monitor_startup_correction(world, clock, scheduler, bus, captured):
    world.mode = GameMode.SURVIVAL
    state = CycleState()
    monitor = ModeMonitor(world, clock, state, scheduler, GameMode.CREATIVE, bus=bus)

    assert monitor.check_and_switch()
    assert world.commands == ["/gamemode creative"]
    assert state.game_mode is GameMode.SURVIVAL

    (call,) = scheduler.named("_verify")
    assert call.delay == 1.0
    assert call.fn(*call.args) is True
    assert state.game_mode is GameMode.CREATIVE

    corrections = [e.payload["corrected"] for e in captured if e.event_type == EventType.GAME_MODE_CORRECTION]
    assert corrections == [None, True]


def test_mode_monitor_already_correct(world, clock, scheduler):
    monitor = ModeMonitor(world, clock, CycleState(), scheduler, GameMode.CREATIVE)

    assert not monitor.check_and_switch()
    assert world.commands == []
    assert scheduler.calls == []


def test_mode_monitor_corrects_drift_once(world, clock, scheduler):
    monitor = ModeMonitor(world, clock, CycleState(), scheduler, GameMode.CREATIVE)
    monitor.check_and_switch()

    world.mode = GameMode.SURVIVAL
    assert monitor.check()
    assert world.commands == ["/gamemode creative"]

    # obeyed: back in the required mode, nothing to do
    assert not monitor.check()

    world.obey_mode_commands = False
    world.mode = GameMode.ADVENTURE
    assert monitor.check()
    verify = scheduler.named("_verify")[-1]
    assert verify.fn(*verify.args) is False

    # unchanged since the last observation: no repeated command
    assert not monitor.check()
    assert world.commands == ["/gamemode creative", "/gamemode creative"]


def test_periodic_loop_ticks_until_stopped(world, clock, scheduler):
    monitor, _ = _night_monitor(world, clock, scheduler)

    async def scenario():
        monitor.start()
        assert monitor.running
        for _ in range(5):
            await asyncio.sleep(0)
        monitor.stop()
        await asyncio.sleep(0)

    asyncio.run(scenario())

    assert not monitor.running
    assert len(clock.sleeps) >= 2
    assert set(clock.sleeps) == {2.0}
    assert world.ops("sleep_in") == []
