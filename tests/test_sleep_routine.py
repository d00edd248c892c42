# path: tests/test_sleep_routine.py
"""
Tests for behavior.sleep.SleepRoutine.

Covers:
- debounced attempts have no side effects
- no bed anywhere: phase cleared, resume requested, no travel / sleep action
- nearby bed: travel, sleep, wake listener, resume after waking
- creative mode provisions and places a bed on the shelter ring
- a refused sleep action abandons the attempt
- a second attempt while asleep is rejected
"""

from __future__ import annotations

import asyncio

from behavior.placement import PlacementPlanner
from behavior.provisioning import ProvisioningGate
from behavior.sleep import SleepOutcome, SleepRoutine
from behavior.state import AgentPhase, CycleState
from monitoring.events import EventType
from spec.types import BlockPos, GameMode


def _routine(world, clock, bus=None):
    state = CycleState(bus=bus)
    resumes = []
    planner = PlacementPlanner(world, clock, bus)
    gate = ProvisioningGate(world, clock)
    routine = SleepRoutine(
        world,
        clock,
        state,
        planner,
        gate,
        bed_search_radius=20.0,
        resume=resumes.append,
        bus=bus,
    )
    return routine, state, resumes


def test_debounced_attempt_has_no_side_effects(world, clock):
    routine, state, resumes = _routine(world, clock)
    state.last_sleep_attempt = clock.now() - 5.0

    outcome = asyncio.run(routine.attempt())

    assert outcome is SleepOutcome.DEBOUNCED
    assert state.phase is AgentPhase.IDLE
    assert world.calls == []
    assert resumes == []


def test_no_bed_abandons_and_requests_resume(world, clock, bus, captured):
    world.mode = GameMode.SURVIVAL
    routine, state, resumes = _routine(world, clock, bus)

    outcome = asyncio.run(routine.attempt())

    assert outcome is SleepOutcome.NO_BED
    assert state.phase is AgentPhase.IDLE
    assert state.last_sleep_attempt == clock.now()
    assert world.ops("clear_goal") == [None]
    assert world.ops("set_goal") == []
    assert world.ops("sleep_in") == []
    assert world.injections == []

    assert resumes == [2.0]

    outcomes = [e.payload["outcome"] for e in captured if e.event_type == EventType.SLEEP_ATTEMPT]
    assert outcomes == ["no_bed"]


def test_walks_to_distant_bed_and_wakes(world, clock):
    world.mode = GameMode.SURVIVAL
    bed = BlockPos(10, 64, 0)
    world.set_block(bed, "red_bed")
    routine, state, resumes = _routine(world, clock)

    outcome = asyncio.run(routine.attempt())

    assert outcome is SleepOutcome.SLEEPING
    assert state.phase is AgentPhase.SLEEPING
    assert world.ops("set_goal") == [bed]
    assert world.ops("sleep_in") == [bed]
    assert world.listener_count("wake") == 1
    assert resumes == []

    world.emit("wake")

    assert state.phase is AgentPhase.IDLE
    assert world.listener_count("wake") == 0
    assert resumes == [2.0]


def test_creative_places_a_bed_from_provisioning(world, clock):
    routine, state, resumes = _routine(world, clock)

    outcome = asyncio.run(routine.attempt())

    assert outcome is SleepOutcome.SLEEPING
    assert world.injections == [(9, "red_bed", 1)]
    placed = BlockPos(2, 64, 0)
    assert world.blocks[placed] == "red_bed"
    # close enough already, no travel
    assert world.ops("set_goal") == []
    assert world.ops("sleep_in") == [placed]


def test_refused_sleep_abandons_attempt(world, clock):
    world.set_block(BlockPos(1, 64, 1), "blue_bed")
    world.sleep_error = "You can only sleep at night"
    routine, state, resumes = _routine(world, clock)

    outcome = asyncio.run(routine.attempt())

    assert outcome is SleepOutcome.SLEEP_FAILED
    assert state.phase is AgentPhase.IDLE
    assert world.listener_count("wake") == 0
    assert resumes == [2.0]


def test_second_attempt_while_asleep_is_busy(world, clock):
    world.set_block(BlockPos(1, 64, 1), "blue_bed")
    routine, state, resumes = _routine(world, clock)

    async def scenario():
        first = await routine.attempt()
        clock.advance(60.0)
        second = await routine.attempt()
        return first, second

    first, second = asyncio.run(scenario())

    assert first is SleepOutcome.SLEEPING
    assert second is SleepOutcome.BUSY
    assert len(world.ops("sleep_in")) == 1
