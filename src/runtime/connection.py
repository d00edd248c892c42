# path: src/runtime/connection.py
"""
Connection lifecycle with bounded reconnection.

    connect -> new BehaviorSession -> wait for end/kick -> discard session
            -> wait 5s -> reconnect (at most 10 times in a row)

A successful login resets the attempt counter. Authentication failures are
fatal at once. When the budget is spent, ReconnectExhausted is raised and
the entrypoint exits non-zero.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional

from bot_core.errors import AuthenticationError, ConnectionLostError
from behavior.scheduling import SystemClock
from monitoring.bus import EventBus
from monitoring.integration import emit_connection
from spec.capabilities import Clock

log = logging.getLogger(__name__)

MAX_RECONNECT_ATTEMPTS = 10
RECONNECT_DELAY_S = 5.0

ClientFactory = Callable[[], Any]
SessionFactory = Callable[[Any], Any]


class ReconnectExhausted(RuntimeError):
    def __init__(self, attempts: int, reason: str = "") -> None:
        super().__init__(f"failed to reconnect after {attempts} attempts: {reason}")
        self.attempts = attempts
        self.reason = reason


async def _wait_or_stop(aw: "asyncio.Future[Any]", stop: Optional[asyncio.Event]) -> bool:
    """Await `aw` unless `stop` fires first. Returns True when stopped."""
    if stop is None:
        await asyncio.wait({aw})
        return False
    stopper = asyncio.ensure_future(stop.wait())
    try:
        done, _ = await asyncio.wait({aw, stopper}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        stopper.cancel()
    return aw not in done


async def run_with_reconnect(
    client_factory: ClientFactory,
    session_factory: SessionFactory,
    *,
    bus: Optional[EventBus] = None,
    clock: Optional[Clock] = None,
    stop: Optional[asyncio.Event] = None,
    max_attempts: int = MAX_RECONNECT_ATTEMPTS,
    delay: float = RECONNECT_DELAY_S,
) -> None:
    """
    Keep a session alive until `stop` is set.

    `client_factory()` returns an object with `connect()`, `wait_closed()`
    and `disconnect()` that also implements WorldCapabilities;
    `session_factory(client)` returns an object with `start()` and `close()`.
    """
    clock = clock or SystemClock()
    attempts = 0

    def _emit(status: str, reason: Optional[str] = None) -> None:
        if bus is not None:
            emit_connection(bus, status, attempts, reason)

    while True:
        client = client_factory()
        session = None
        reason = "unknown"
        _emit("connecting")
        try:
            try:
                await client.connect()
            except AuthenticationError as exc:
                log.error("Authentication failed: %s", exc)
                _emit("failed", "authentication")
                raise
            except ConnectionLostError as exc:
                reason = str(exc.details.get("message", exc.code))
                log.warning("Connection failed: %s", reason)
            else:
                attempts = 0
                _emit("connected")
                session = session_factory(client)
                session.start()

                closed = asyncio.ensure_future(client.wait_closed())
                if await _wait_or_stop(closed, stop):
                    closed.cancel()
                    log.info("Stop requested, leaving the world")
                    _emit("stopped")
                    return
                try:
                    reason = closed.result()
                except AuthenticationError:
                    _emit("failed", "authentication")
                    raise
                log.info("Disconnected: %s", reason)
                _emit("disconnected", reason)
        finally:
            if session is not None:
                session.close()
            await client.disconnect()

        if stop is not None and stop.is_set():
            _emit("stopped")
            return
        if attempts >= max_attempts:
            log.error("Failed to reconnect after %d attempts. Giving up.", max_attempts)
            _emit("failed", reason)
            raise ReconnectExhausted(attempts, reason)

        attempts += 1
        log.info(
            "Attempting to reconnect (%d/%d) in %.0f seconds...",
            attempts, max_attempts, delay,
        )
        _emit("reconnecting", reason)
        sleeper = asyncio.ensure_future(clock.sleep(delay))
        if await _wait_or_stop(sleeper, stop):
            sleeper.cancel()
            _emit("stopped")
            return
