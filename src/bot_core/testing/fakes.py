# src/bot_core/testing/fakes.py
"""
Test helpers for the capability layer.

Provides:
- FakeClock: virtual monotonic clock; sleep() advances time instantly.
- FakeWorld: in-memory WorldCapabilities implementation.
- FakeContainer: in-memory ContainerHandle.
- RecordingScheduler: scheduler stand-in that records instead of running.

No network, no real time.
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Tuple

from spec.types import Block, BlockPos, GameMode, ItemStack, Vec3

from ..errors import BridgeRequestError

EventCallback = Callable[..., Any]


# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------


class FakeClock:
    """Virtual clock. Each sleep() advances `now` and yields one loop turn."""

    def __init__(self, start: float = 1000.0) -> None:
        self._now = start
        self.sleeps: List[float] = []

    def now(self) -> float:
        return self._now

    def advance(self, seconds: float) -> None:
        self._now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self._now += max(seconds, 0.0)
        await asyncio.sleep(0)


# ---------------------------------------------------------------------------
# Scheduler
# ---------------------------------------------------------------------------


@dataclass
class ScheduledCall:
    """Record of a deferred call captured by RecordingScheduler."""

    delay: float
    fn: Callable[..., Any]
    args: Tuple[Any, ...] = ()

    @property
    def name(self) -> str:
        return getattr(self.fn, "__name__", repr(self.fn))


class RecordingScheduler:
    """
    Scheduler stand-in for unit tests.

    - spawn() still runs the coroutine as a real task (tests await them via
      drain()).
    - call_later()/call_soon() are recorded and never executed, so
      self-rescheduling loops stop after one turn.
    """

    def __init__(self) -> None:
        self.calls: List[ScheduledCall] = []
        self.tasks: List[asyncio.Task] = []
        self.canceled = False

    def spawn(self, coro: Any, *, name: Optional[str] = None) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self.tasks.append(task)
        return task

    def call_later(self, delay: float, fn: Callable[..., Any], *args: Any) -> None:
        self.calls.append(ScheduledCall(delay, fn, args))

    def call_soon(self, fn: Callable[..., Any], *args: Any) -> None:
        self.calls.append(ScheduledCall(0.0, fn, args))

    def cancel_all(self) -> None:
        self.canceled = True
        for task in self.tasks:
            task.cancel()

    async def drain(self) -> None:
        """Await every spawned task (including ones spawned while draining)."""
        while True:
            pending = [t for t in self.tasks if not t.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    def named(self, name: str) -> List[ScheduledCall]:
        return [c for c in self.calls if c.name == name]


# ---------------------------------------------------------------------------
# Containers
# ---------------------------------------------------------------------------


class FakeContainer:
    """In-memory chest window. Shares its item list with FakeWorld."""

    def __init__(self, world: "FakeWorld", contents: List[ItemStack]) -> None:
        self._world = world
        self._contents = contents
        self.closed = False
        self.deposits: List[Tuple[str, int]] = []
        self.withdrawals: List[Tuple[str, int]] = []

    def items(self) -> List[ItemStack]:
        return list(self._contents)

    async def deposit(self, item: ItemStack, count: int) -> None:
        self._world.take_item(item.name, count)
        _add_stack(self._contents, item.name, count)
        self.deposits.append((item.name, count))

    async def withdraw(self, item: ItemStack, count: int) -> None:
        available = sum(s.count for s in self._contents if s.name == item.name)
        if available < count:
            raise BridgeRequestError("rejected", {"op": "withdraw", "message": "not enough items"})
        _remove_stack(self._contents, item.name, count)
        self._world.give(item.name, count)
        self.withdrawals.append((item.name, count))

    def close(self) -> None:
        self.closed = True


def _add_stack(stacks: List[ItemStack], name: str, count: int) -> None:
    for i, s in enumerate(stacks):
        if s.name == name:
            stacks[i] = ItemStack(name, s.count + count, s.slot, s.type_id)
            return
    stacks.append(ItemStack(name, count))


def _remove_stack(stacks: List[ItemStack], name: str, count: int) -> None:
    remaining = count
    for s in list(stacks):
        if s.name != name or remaining <= 0:
            continue
        take = min(s.count, remaining)
        remaining -= take
        left = s.count - take
        idx = stacks.index(s)
        if left:
            stacks[idx] = ItemStack(name, left, s.slot, s.type_id)
        else:
            stacks.pop(idx)


# ---------------------------------------------------------------------------
# World
# ---------------------------------------------------------------------------


@dataclass
class FakeWorld:
    """
    In-memory world implementing spec.capabilities.WorldCapabilities.

    Terrain: cells below `ground_y` are solid `ground_block`, everything else
    is air, unless overridden in `blocks`. Positions in `unloaded` read as
    None. With `auto_arrive` the agent teleports to each goal instantly.

    Every capability call is appended to `calls` as (op, arg) for assertions.
    """

    position_value: Vec3 = Vec3(0.5, 64.0, 0.5)
    ground_y: int = 64
    ground_block: str = "grass_block"
    time: Optional[int] = 1000
    mode: GameMode = GameMode.CREATIVE
    auto_arrive: bool = True

    blocks: Dict[BlockPos, str] = field(default_factory=dict)
    unloaded: Set[BlockPos] = field(default_factory=set)
    slots: Dict[int, ItemStack] = field(default_factory=dict)
    known_items: Optional[Set[str]] = None       # None: everything is known
    containers: Dict[BlockPos, List[ItemStack]] = field(default_factory=dict)

    # failure injection
    silent_place_failures: Set[BlockPos] = field(default_factory=set)
    rejected_places: Set[BlockPos] = field(default_factory=set)
    sleep_error: Optional[str] = None
    obey_mode_commands: bool = True

    held: Optional[str] = None
    moving: bool = False
    jumping: bool = False
    goal: Optional[BlockPos] = None
    calls: List[Tuple[str, Any]] = field(default_factory=list)
    commands: List[str] = field(default_factory=list)
    injections: List[Tuple[int, str, int]] = field(default_factory=list)
    opened: List[FakeContainer] = field(default_factory=list)
    _listeners: Dict[str, List[Tuple[EventCallback, bool]]] = field(
        default_factory=lambda: defaultdict(list)
    )

    # ------------------------------------------------------------------
    # Test-only helpers
    # ------------------------------------------------------------------

    def ops(self, name: str) -> List[Any]:
        return [arg for op, arg in self.calls if op == name]

    def set_block(self, pos: BlockPos, name: str) -> None:
        self.blocks[pos] = name

    def give(self, name: str, count: int) -> None:
        for slot, stack in sorted(self.slots.items()):
            if stack.name == name:
                self.slots[slot] = ItemStack(name, stack.count + count, slot)
                return
        slot = next(i for i in range(9, 45) if i not in self.slots)
        self.slots[slot] = ItemStack(name, count, slot)

    def take_item(self, name: str, count: int) -> None:
        remaining = count
        for slot, stack in sorted(self.slots.items()):
            if stack.name != name or remaining <= 0:
                continue
            take = min(stack.count, remaining)
            remaining -= take
            if stack.count - take:
                self.slots[slot] = ItemStack(name, stack.count - take, slot)
            else:
                del self.slots[slot]
        if remaining:
            raise BridgeRequestError("rejected", {"message": f"not enough {name}"})

    def held_count(self, name: str) -> int:
        return sum(s.count for s in self.slots.values() if s.name == name)

    def emit(self, event: str, payload: Optional[Dict[str, Any]] = None) -> None:
        listeners = self._listeners.get(event, [])
        for cb, once in list(listeners):
            if once:
                listeners.remove((cb, once))
            cb(payload or {})

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, []))

    def _name_at(self, pos: BlockPos) -> str:
        if pos in self.blocks:
            return self.blocks[pos]
        return self.ground_block if pos.y < self.ground_y else "air"

    # ------------------------------------------------------------------
    # Movement
    # ------------------------------------------------------------------

    def position(self) -> Vec3:
        return self.position_value

    def set_goal(self, target: BlockPos, tolerance: float) -> None:
        self.calls.append(("set_goal", target))
        self.goal = target
        if self.auto_arrive:
            self.position_value = Vec3(target.x + 0.5, float(target.y), target.z + 0.5)
            self.moving = False
        else:
            self.moving = True

    def clear_goal(self) -> None:
        self.calls.append(("clear_goal", None))
        self.goal = None
        self.moving = False

    def is_moving(self) -> bool:
        return self.moving

    def set_jump(self, active: bool) -> None:
        self.calls.append(("set_jump", active))
        self.jumping = active

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def block_at(self, pos: BlockPos) -> Optional[Block]:
        if pos in self.unloaded:
            return None
        return Block(self._name_at(pos), pos)

    async def find_block(self, names: Iterable[str], max_distance: float) -> Optional[Block]:
        wanted = set(names)
        self.calls.append(("find_block", tuple(sorted(wanted))))
        here = self.position_value
        best: Optional[Block] = None
        best_d = max_distance
        for pos, name in self.blocks.items():
            if name not in wanted:
                continue
            d = pos.distance_to(here)
            if d <= best_d:
                best, best_d = Block(name, pos), d
        return best

    def time_of_day(self) -> Optional[int]:
        return self.time

    def game_mode(self) -> GameMode:
        return self.mode

    # ------------------------------------------------------------------
    # Block actions
    # ------------------------------------------------------------------

    async def place_block(self, reference: Block, face: BlockPos) -> None:
        target = reference.position.offset(face.x, face.y, face.z)
        self.calls.append(("place_block", target))
        if target in self.rejected_places:
            raise BridgeRequestError("rejected", {"op": "place_block", "message": "placement rejected"})
        if target in self.silent_place_failures or self.held is None:
            return
        self.blocks[target] = self.held
        if self.mode is not GameMode.CREATIVE:
            self.take_item(self.held, 1)

    async def dig(self, block: Block) -> None:
        self.calls.append(("dig", block.position))
        self.blocks[block.position] = "air"

    async def can_dig(self, block: Block) -> bool:
        return not block.is_air

    # ------------------------------------------------------------------
    # Inventory
    # ------------------------------------------------------------------

    async def inventory_items(self) -> List[ItemStack]:
        return [self.slots[k] for k in sorted(self.slots)]

    async def equip(self, item: ItemStack, destination: str = "hand") -> None:
        self.calls.append(("equip", item.name))
        if self.held_count(item.name) <= 0:
            raise BridgeRequestError("rejected", {"op": "equip", "message": f"no {item.name}"})
        self.held = item.name

    async def is_known_item(self, name: str) -> bool:
        return self.known_items is None or name in self.known_items

    async def first_empty_slot(self, start: int, end: int) -> Optional[int]:
        for slot in range(start, end):
            if slot not in self.slots:
                return slot
        return None

    async def set_creative_slot(self, slot: int, name: str, count: int) -> None:
        self.calls.append(("set_creative_slot", (slot, name, count)))
        if self.mode is not GameMode.CREATIVE:
            raise BridgeRequestError("rejected", {"op": "set_creative_slot", "message": "not creative"})
        self.injections.append((slot, name, count))
        self.slots[slot] = ItemStack(name, count, slot)

    # ------------------------------------------------------------------
    # Containers / sleep / commands / events
    # ------------------------------------------------------------------

    async def open_container(self, block: Block) -> FakeContainer:
        self.calls.append(("open_container", block.position))
        contents = self.containers.setdefault(block.position, [])
        handle = FakeContainer(self, contents)
        self.opened.append(handle)
        return handle

    async def sleep_in(self, bed: Block) -> None:
        self.calls.append(("sleep_in", bed.position))
        if self.sleep_error is not None:
            raise BridgeRequestError("rejected", {"op": "sleep", "message": self.sleep_error})

    def send_command(self, command: str) -> None:
        self.commands.append(command)
        if self.obey_mode_commands and command.startswith("/gamemode "):
            self.mode = GameMode.from_raw(command.split(" ", 1)[1])

    def on(self, event: str, callback: EventCallback) -> None:
        self._listeners[event].append((callback, False))

    def once(self, event: str, callback: EventCallback) -> None:
        self._listeners[event].append((callback, True))
