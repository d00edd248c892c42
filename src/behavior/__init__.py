# behavior package
"""
Behavior orchestration core: cycle state machine, patrol, placement,
provisioning, sleep routine, interrupt monitors.
"""

from __future__ import annotations

from .build import BuildResult, BuildStep
from .containers import ContainerInteraction, ContainerReport
from .geometry import BUILD_RING, SHELTER_RING, PlacementCandidate, RingSpec, patrol_ring, ring_candidates
from .inventory import InventoryCheck, InventoryStatus, check_required_inventory
from .monitors import ModeMonitor, NightMonitor, is_night, night_preempts
from .movement import travel_to, wait_for_arrival
from .orchestrator import CycleOrchestrator
from .patrol import LegResult, PatrolLegExecutor
from .placement import PlacementPlanner, PlacementResult
from .provisioning import ProvisioningGate
from .scheduling import SystemClock, TaskScheduler
from .sleep import SleepOutcome, SleepRoutine
from .state import AgentPhase, CycleState, SleepGate

__all__ = [
    "AgentPhase",
    "BUILD_RING",
    "BuildResult",
    "BuildStep",
    "ContainerInteraction",
    "ContainerReport",
    "CycleOrchestrator",
    "CycleState",
    "InventoryCheck",
    "InventoryStatus",
    "LegResult",
    "ModeMonitor",
    "NightMonitor",
    "PatrolLegExecutor",
    "PlacementCandidate",
    "PlacementPlanner",
    "PlacementResult",
    "ProvisioningGate",
    "RingSpec",
    "SHELTER_RING",
    "SleepGate",
    "SleepOutcome",
    "SleepRoutine",
    "SystemClock",
    "TaskScheduler",
    "check_required_inventory",
    "is_night",
    "night_preempts",
    "patrol_ring",
    "ring_candidates",
    "travel_to",
    "wait_for_arrival",
]
