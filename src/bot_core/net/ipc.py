# IPC bridge to the external world-interaction process
# src/bot_core/net/ipc.py
"""
IPC-based world client.

This client talks to an external bridge process (the one that actually
holds the game session) over a TCP socket. The bridge is responsible for
pathfinding, block/inventory/container protocol and login; this side only
implements spec.capabilities.WorldCapabilities on top of its messages.

Message format (newline-delimited UTF-8 JSON):

  client -> bridge
    {"type": "request", "id": 7, "op": "block_at", "args": {...}}
    {"type": "notify", "op": "set_goal", "args": {...}}       # no reply

  bridge -> client
    {"type": "response", "id": 7, "ok": true, "result": ...}
    {"type": "response", "id": 7, "ok": false, "error": "..."}
    {"type": "event", "name": "state", "payload": {...}}

Pushed events: `state` (position, time_of_day, game_mode, moving), `spawn`,
`wake`, `death`, `chat` ({username, message}), `end`, `kicked`, `error`.
Cheap state is cached from `state` events so the behavior core can read it
synchronously.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections import defaultdict
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from env.schema import BridgeConfig
from spec.types import Block, BlockPos, GameMode, ItemStack, Vec3

from ..errors import (
    AuthenticationError,
    BridgeRequestError,
    ConnectionLostError,
    is_auth_failure,
)

log = logging.getLogger(__name__)

EventCallback = Callable[..., Any]

DEFAULT_REQUEST_TIMEOUT_S = 15.0
# container listings and inventories can exceed asyncio's 64 KiB line limit
DEFAULT_READ_LIMIT = 4 * 1024 * 1024


# ---------------------------------------------------------------------------
# Wire helpers
# ---------------------------------------------------------------------------


def _block_from(obj: Any) -> Optional[Block]:
    if not obj:
        return None
    x, y, z = obj["position"]
    return Block(name=str(obj["name"]), position=BlockPos(int(x), int(y), int(z)))


def _item_from(obj: Dict[str, Any]) -> ItemStack:
    return ItemStack(
        name=str(obj["name"]),
        count=int(obj.get("count", 0)),
        slot=obj.get("slot"),
        type_id=obj.get("type"),
    )


def _items_from(objs: Any) -> List[ItemStack]:
    return [_item_from(o) for o in (objs or [])]


class IpcContainer:
    """ContainerHandle backed by a bridge-side window id."""

    def __init__(self, client: "IpcWorldClient", window_id: int, items: List[ItemStack]) -> None:
        self._client = client
        self._window_id = window_id
        self._items = items

    def items(self) -> List[ItemStack]:
        return list(self._items)

    async def deposit(self, item: ItemStack, count: int) -> None:
        result = await self._client.request(
            "deposit",
            window=self._window_id,
            name=item.name,
            type=item.type_id,
            count=count,
        )
        self._refresh(result)

    async def withdraw(self, item: ItemStack, count: int) -> None:
        result = await self._client.request(
            "withdraw",
            window=self._window_id,
            name=item.name,
            type=item.type_id,
            count=count,
        )
        self._refresh(result)

    def close(self) -> None:
        self._client.notify("close_window", window=self._window_id)

    def _refresh(self, result: Any) -> None:
        if isinstance(result, dict) and "items" in result:
            self._items = _items_from(result["items"])


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class IpcWorldClient:
    """
    asyncio client for the world bridge.

    Lifecycle:
        client = IpcWorldClient(cfg.bridge)
        await client.connect()          # raises AuthenticationError on bad login
        reason = await client.wait_closed()
        await client.disconnect()
    """

    def __init__(
        self,
        config: BridgeConfig,
        *,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT_S,
        read_limit: int = DEFAULT_READ_LIMIT,
    ) -> None:
        self._config = config
        self._request_timeout = request_timeout
        self._read_limit = read_limit

        self._reader: Optional[asyncio.StreamReader] = None
        self._writer: Optional[asyncio.StreamWriter] = None
        self._read_task: Optional[asyncio.Task] = None
        self._closed: Optional[asyncio.Future] = None
        self._close_error: Optional[BaseException] = None

        self._next_id = 0
        self._pending: Dict[int, Tuple[str, asyncio.Future]] = {}
        self._listeners: Dict[str, List[Tuple[EventCallback, bool]]] = defaultdict(list)

        # Cached state from `state` events
        self._position = Vec3(0.0, 0.0, 0.0)
        self._time_of_day: Optional[int] = None
        self._game_mode = GameMode.UNKNOWN
        self._moving = False

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    @property
    def connected(self) -> bool:
        return self._closed is not None and not self._closed.done()

    async def connect(self) -> None:
        """Open the bridge socket and log in; returns once spawned."""
        host, port = self._config.host, self._config.port
        log.info("IpcWorldClient connecting to %s:%d as %s", host, port, self._config.username)
        try:
            reader, writer = await asyncio.open_connection(host, port, limit=self._read_limit)
        except OSError as exc:
            raise ConnectionLostError("connect_failed", {"host": host, "port": port, "message": str(exc)}) from exc

        self._reader, self._writer = reader, writer
        self._closed = asyncio.get_running_loop().create_future()
        self._close_error = None
        self._read_task = asyncio.create_task(self._read_loop(), name="ipc-reader")

        try:
            state = await self.request(
                "login",
                username=self._config.username,
                auth=self._config.auth,
                version=self._config.version,
            )
        except AuthenticationError:
            await self.disconnect()
            raise
        except BridgeRequestError as exc:
            await self.disconnect()
            if is_auth_failure(exc.message):
                raise AuthenticationError("auth_failed", dict(exc.details)) from exc
            raise ConnectionLostError("login_failed", dict(exc.details)) from exc

        if isinstance(state, dict):
            self._apply_state(state)
        log.info("IpcWorldClient logged in as %s", self._config.username)

    async def wait_closed(self) -> str:
        """
        Wait until the session ends and return the reason.

        Raises AuthenticationError if the bridge reported an auth failure.
        """
        if self._closed is None:
            raise ConnectionLostError("not_connected")
        reason = await asyncio.shield(self._closed)
        if isinstance(self._close_error, AuthenticationError):
            raise self._close_error
        return reason

    async def disconnect(self) -> None:
        """Close the socket and stop the reader task."""
        if self._writer is not None and self.connected:
            self.notify("quit")
        if self._read_task is not None:
            self._read_task.cancel()
            try:
                await self._read_task
            except asyncio.CancelledError:
                pass
            self._read_task = None
        if self._writer is not None:
            self._writer.close()
            try:
                await self._writer.wait_closed()
            except (ConnectionError, OSError):
                pass
            self._writer = None
        self._mark_closed("disconnected")

    # ------------------------------------------------------------------
    # Request plumbing
    # ------------------------------------------------------------------

    async def request(self, op: str, **args: Any) -> Any:
        """Send a request and await its response (bounded by the request timeout)."""
        if self._writer is None or not self.connected:
            raise ConnectionLostError("not_connected", {"op": op})

        self._next_id += 1
        request_id = self._next_id
        fut = asyncio.get_running_loop().create_future()
        self._pending[request_id] = (op, fut)

        self._send({"type": "request", "id": request_id, "op": op, "args": args})
        try:
            await self._writer.drain()
            return await asyncio.wait_for(fut, self._request_timeout)
        except asyncio.TimeoutError:
            raise BridgeRequestError("timeout", {"op": op, "message": f"{op} timed out"}) from None
        except (ConnectionError, OSError) as exc:
            raise ConnectionLostError("send_failed", {"op": op, "message": str(exc)}) from exc
        finally:
            self._pending.pop(request_id, None)

    def notify(self, op: str, **args: Any) -> None:
        """Fire-and-forget message."""
        if self._writer is None or not self.connected:
            log.debug("IpcWorldClient dropping %s: not connected", op)
            return
        self._send({"type": "notify", "op": op, "args": args})

    def _send(self, msg: Dict[str, Any]) -> None:
        assert self._writer is not None
        encoded = json.dumps(msg, separators=(",", ":")).encode("utf-8") + b"\n"
        self._writer.write(encoded)

    async def _read_loop(self) -> None:
        assert self._reader is not None
        reason = "eof"
        try:
            while True:
                line = await self._reader.readline()
                if not line:
                    break
                line = line.strip()
                if line:
                    self._handle_raw_line(line)
                if self._closed is not None and self._closed.done():
                    return
        except asyncio.CancelledError:
            reason = "disconnected"
            raise
        except (ConnectionError, OSError) as exc:
            log.warning("IpcWorldClient socket error: %s", exc)
            reason = f"socket error: {exc}"
        except ValueError as exc:
            # readline() raises ValueError for a line over the stream limit;
            # the stream cannot resync after that
            log.error("IpcWorldClient message over read limit: %s", exc)
            reason = f"protocol error: {exc}"
        except Exception as exc:
            log.exception("IpcWorldClient reader failed")
            reason = f"reader error: {exc!r}"
        finally:
            self._mark_closed(reason)

    def _handle_raw_line(self, line: bytes) -> None:
        try:
            obj = json.loads(line.decode("utf-8"))
        except ValueError:
            log.exception("IpcWorldClient failed to decode JSON line: %r", line)
            return
        if not isinstance(obj, dict):
            log.warning("IpcWorldClient received non-object message: %r", obj)
            return

        kind = obj.get("type")
        if kind == "response":
            self._handle_response(obj)
        elif kind == "event":
            payload = obj.get("payload") or {}
            self._handle_event(str(obj.get("name")), payload if isinstance(payload, dict) else {})
        else:
            log.warning("IpcWorldClient received message with unknown type: %r", obj)

    def _handle_response(self, obj: Dict[str, Any]) -> None:
        entry = self._pending.get(obj.get("id"))  # type: ignore[arg-type]
        if entry is None:
            log.debug("IpcWorldClient response for unknown request %r", obj.get("id"))
            return
        op, fut = entry
        if fut.done():
            return
        if obj.get("ok", False):
            fut.set_result(obj.get("result"))
        else:
            message = str(obj.get("error", "request failed"))
            fut.set_exception(BridgeRequestError("rejected", {"op": op, "message": message}))

    def _handle_event(self, name: str, payload: Dict[str, Any]) -> None:
        if name == "state":
            self._apply_state(payload)
        elif name == "error":
            message = str(payload.get("message", ""))
            log.error("Bridge error: %s", message)
            if is_auth_failure(message):
                self._mark_closed(
                    "auth_failed",
                    AuthenticationError("auth_failed", {"message": message}),
                )

        self._dispatch(name, payload)

        if name == "end":
            self._mark_closed(f"end: {payload.get('reason', 'unknown')}")
        elif name == "kicked":
            self._mark_closed(f"kicked: {payload.get('reason', 'unknown')}")

    def _apply_state(self, payload: Dict[str, Any]) -> None:
        pos = payload.get("position")
        if pos is not None:
            self._position = Vec3(float(pos[0]), float(pos[1]), float(pos[2]))
        if "time_of_day" in payload and payload["time_of_day"] is not None:
            self._time_of_day = int(payload["time_of_day"])
        if "game_mode" in payload:
            self._game_mode = GameMode.from_raw(payload["game_mode"])
        if "moving" in payload:
            self._moving = bool(payload["moving"])

    def _dispatch(self, name: str, payload: Dict[str, Any]) -> None:
        listeners = self._listeners.get(name)
        if not listeners:
            return
        for cb, once in list(listeners):
            if once and (cb, once) in listeners:
                listeners.remove((cb, once))
            try:
                cb(payload)
            except Exception:
                log.exception("Error in bridge event listener for %s", name)

    def _mark_closed(self, reason: str, error: Optional[BaseException] = None) -> None:
        if self._closed is None or self._closed.done():
            return
        log.info("IpcWorldClient session closed: %s", reason)
        self._close_error = error
        self._closed.set_result(reason)
        for op, fut in list(self._pending.values()):
            if not fut.done():
                fut.set_exception(error or ConnectionLostError("closed", {"op": op, "message": reason}))

    # ------------------------------------------------------------------
    # WorldCapabilities: movement
    # ------------------------------------------------------------------

    def position(self) -> Vec3:
        return self._position

    def set_goal(self, target: BlockPos, tolerance: float) -> None:
        self.notify("set_goal", position=list(target), tolerance=tolerance)

    def clear_goal(self) -> None:
        self.notify("clear_goal")

    def is_moving(self) -> bool:
        return self._moving

    def set_jump(self, active: bool) -> None:
        self.notify("set_control", control="jump", active=active)

    # ------------------------------------------------------------------
    # WorldCapabilities: queries
    # ------------------------------------------------------------------

    async def block_at(self, pos: BlockPos) -> Optional[Block]:
        return _block_from(await self.request("block_at", position=list(pos)))

    async def find_block(self, names: Iterable[str], max_distance: float) -> Optional[Block]:
        result = await self.request("find_block", names=list(names), max_distance=max_distance)
        return _block_from(result)

    def time_of_day(self) -> Optional[int]:
        return self._time_of_day

    def game_mode(self) -> GameMode:
        return self._game_mode

    # ------------------------------------------------------------------
    # WorldCapabilities: block actions
    # ------------------------------------------------------------------

    async def place_block(self, reference: Block, face: BlockPos) -> None:
        await self.request("place_block", reference=list(reference.position), face=list(face))

    async def dig(self, block: Block) -> None:
        await self.request("dig", position=list(block.position))

    async def can_dig(self, block: Block) -> bool:
        return bool(await self.request("can_dig", position=list(block.position)))

    # ------------------------------------------------------------------
    # WorldCapabilities: inventory
    # ------------------------------------------------------------------

    async def inventory_items(self) -> List[ItemStack]:
        return _items_from(await self.request("inventory"))

    async def equip(self, item: ItemStack, destination: str = "hand") -> None:
        await self.request("equip", name=item.name, slot=item.slot, destination=destination)

    async def is_known_item(self, name: str) -> bool:
        return bool(await self.request("is_known_item", name=name))

    async def first_empty_slot(self, start: int, end: int) -> Optional[int]:
        result = await self.request("first_empty_slot", start=start, end=end)
        return int(result) if result is not None else None

    async def set_creative_slot(self, slot: int, name: str, count: int) -> None:
        await self.request("set_creative_slot", slot=slot, name=name, count=count)

    # ------------------------------------------------------------------
    # WorldCapabilities: containers / sleep / commands / events
    # ------------------------------------------------------------------

    async def open_container(self, block: Block) -> IpcContainer:
        result = await self.request("open_container", position=list(block.position))
        if not isinstance(result, dict) or "window" not in result:
            raise BridgeRequestError("bad_response", {"op": "open_container", "message": repr(result)})
        return IpcContainer(self, int(result["window"]), _items_from(result.get("items")))

    async def sleep_in(self, bed: Block) -> None:
        await self.request("sleep", position=list(bed.position))

    def send_command(self, command: str) -> None:
        self.notify("chat", message=command)

    def on(self, event: str, callback: EventCallback) -> None:
        self._listeners[event].append((callback, False))

    def once(self, event: str, callback: EventCallback) -> None:
        self._listeners[event].append((callback, True))
