# src/behavior/state.py

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional

from monitoring.bus import EventBus
from monitoring.integration import emit_phase_change
from spec.types import GameMode

log = logging.getLogger(__name__)


class AgentPhase(Enum):
    """
    What currently drives the agent's body.

    Exactly one phase is active at a time. PATROLLING, BUILDING and
    INTERACTING belong to a running cycle; ATTEMPTING_SLEEP and SLEEPING
    belong to the sleep routine.

        IDLE -> PATROLLING -> BUILDING -> INTERACTING -> ... -> IDLE
        IDLE -> ATTEMPTING_SLEEP -> SLEEPING -> IDLE
    """

    IDLE = auto()
    PATROLLING = auto()
    BUILDING = auto()
    INTERACTING = auto()
    ATTEMPTING_SLEEP = auto()
    SLEEPING = auto()


CYCLE_PHASES = frozenset({AgentPhase.PATROLLING, AgentPhase.BUILDING, AgentPhase.INTERACTING})
SLEEP_PHASES = frozenset({AgentPhase.ATTEMPTING_SLEEP, AgentPhase.SLEEPING})


class SleepGate(Enum):
    """Answer to a request to start a sleep attempt."""

    STARTED = auto()
    DEBOUNCED = auto()   # previous attempt too recent
    BUSY = auto()        # an attempt is already in flight, or asleep


@dataclass
class CycleState:
    """
    Mutable behavior state owned by one session.

    Fields
    ------
    phase:
        Current AgentPhase. Only the transition methods below change it.
    cycle_count:
        Number of cycles started in this session.
    last_sleep_attempt:
        Clock time of the last sleep attempt that got past the gate.
    game_mode:
        Last game mode observed by the mode monitor.
    """

    phase: AgentPhase = AgentPhase.IDLE
    cycle_count: int = 0
    last_sleep_attempt: Optional[float] = None
    game_mode: GameMode = GameMode.UNKNOWN
    bus: Optional[EventBus] = field(default=None, repr=False, compare=False)

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    @property
    def is_processing(self) -> bool:
        return self.phase in CYCLE_PHASES

    @property
    def is_sleeping(self) -> bool:
        return self.phase is AgentPhase.SLEEPING

    @property
    def is_attempting_sleep(self) -> bool:
        return self.phase is AgentPhase.ATTEMPTING_SLEEP

    @property
    def sleep_in_progress(self) -> bool:
        return self.phase in SLEEP_PHASES

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _set(self, phase: AgentPhase) -> None:
        previous = self.phase
        if previous is phase:
            return
        self.phase = phase
        log.debug("Phase %s -> %s", previous.name, phase.name)
        if self.bus is not None:
            emit_phase_change(self.bus, previous.name, phase.name, self.cycle_count)

    def begin_cycle(self) -> bool:
        """
        Claim control for a new cycle. Returns False (no change) unless IDLE.

        Increments cycle_count on success.
        """
        if self.phase is not AgentPhase.IDLE:
            return False
        self.cycle_count += 1
        self._set(AgentPhase.PATROLLING)
        return True

    def enter(self, phase: AgentPhase) -> bool:
        """Move between cycle phases. Refused once the cycle has lost control."""
        if phase not in CYCLE_PHASES or not self.is_processing:
            return False
        self._set(phase)
        return True

    def end_cycle(self) -> None:
        """Release control at the end of a cycle (completed, preempted or faulted)."""
        if self.is_processing:
            self._set(AgentPhase.IDLE)

    def begin_sleep_attempt(self, now: float, debounce_s: float) -> SleepGate:
        """
        Gate for the sleep routine.

        Rejected while already attempting or sleeping, and within
        `debounce_s` of the previous accepted attempt. A rejected request
        leaves the state untouched.
        """
        if self.sleep_in_progress:
            return SleepGate.BUSY
        if self.last_sleep_attempt is not None and now - self.last_sleep_attempt < debounce_s:
            return SleepGate.DEBOUNCED
        self.last_sleep_attempt = now
        self._set(AgentPhase.ATTEMPTING_SLEEP)
        return SleepGate.STARTED

    def mark_sleeping(self) -> None:
        if self.phase is AgentPhase.ATTEMPTING_SLEEP:
            self._set(AgentPhase.SLEEPING)

    def finish_sleep(self) -> None:
        """Leave the sleep phases (woke up, or the attempt was abandoned)."""
        if self.sleep_in_progress:
            self._set(AgentPhase.IDLE)

    def reset(self) -> None:
        """Fresh state for a new connection."""
        self._set(AgentPhase.IDLE)
        self.cycle_count = 0
        self.last_sleep_attempt = None
        self.game_mode = GameMode.UNKNOWN
