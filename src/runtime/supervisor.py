# path: src/runtime/supervisor.py
"""
Process supervisor with an HTTP status surface.

- Spawns the agent process (`python -m runtime.agent_runtime_main`).
- Restarts it 10 s after any non-zero exit; a clean exit is final.
- Serves, via FastAPI + uvicorn:
    GET /        service, status, uptime, cycle_count, phase, last_activity, timestamp
    GET /health  healthy flag, bot status, uptime seconds

cycle_count and phase come from the status file the agent process writes
(monitoring.status.StatusFileWriter).
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import uvicorn
from fastapi import FastAPI

from monitoring.status import DEFAULT_STATUS_PATH, read_status_file
from runtime.logging_config import configure_logging

log = logging.getLogger(__name__)

SERVICE_NAME = "World Agent"
RESTART_DELAY_S = 10.0
SRC_ROOT = Path(__file__).resolve().parents[1]


def format_uptime(seconds: float) -> str:
    total = int(seconds)
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours}h {minutes}m {secs}s"


def _iso(ts: float) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass
class SupervisorState:
    """What the HTTP surface reports about the supervised agent."""

    status_path: Path = DEFAULT_STATUS_PATH
    status: str = "starting"          # starting | running | stopped | error
    started_at: float = field(default_factory=time.time)
    last_activity: float = field(default_factory=time.time)
    restarts: int = 0

    def mark(self, status: str) -> None:
        self.status = status
        self.last_activity = time.time()


class AgentProcessSupervisor:
    """Runs the agent as a child process and applies the restart policy."""

    def __init__(
        self,
        state: SupervisorState,
        command: Sequence[str],
        *,
        restart_delay: float = RESTART_DELAY_S,
        env: Optional[Dict[str, str]] = None,
    ) -> None:
        self._state = state
        self._command = list(command)
        self._restart_delay = restart_delay
        self._env = env
        self._stop = asyncio.Event()
        self._proc: Optional[asyncio.subprocess.Process] = None

    def stop(self) -> None:
        self._stop.set()

    async def run(self) -> None:
        while not self._stop.is_set():
            code = await self._run_once()
            if code is None:
                return
            if code == 0:
                log.info("Agent process exited cleanly; not restarting")
                self._state.mark("stopped")
                return

            self._state.mark("error")
            self._state.restarts += 1
            log.warning("Agent crashed (exit %s), restarting in %.0f seconds...", code, self._restart_delay)
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self._restart_delay)
            except asyncio.TimeoutError:
                continue
        self._state.mark("stopped")

    async def _run_once(self) -> Optional[int]:
        """Run the child until it exits (exit code) or stop() is called (None)."""
        log.info("Starting agent process: %s", " ".join(self._command))
        self._state.mark("starting")
        try:
            self._proc = await asyncio.create_subprocess_exec(*self._command, env=self._env)
        except OSError as exc:
            log.error("Agent process could not start: %s", exc)
            return 127
        self._state.mark("running")
        log.info("Agent process spawned (pid %d)", self._proc.pid)

        waiter = asyncio.ensure_future(self._proc.wait())
        stopper = asyncio.ensure_future(self._stop.wait())
        done, _ = await asyncio.wait({waiter, stopper}, return_when=asyncio.FIRST_COMPLETED)
        stopper.cancel()

        if waiter in done:
            code = waiter.result()
            log.info("Agent process exited with code %s", code)
            self._state.mark("stopped")
            return code

        log.info("Stopping agent process")
        self._proc.terminate()
        try:
            await asyncio.wait_for(waiter, timeout=10.0)
        except asyncio.TimeoutError:
            self._proc.kill()
            await waiter
        self._state.mark("stopped")
        return None


def create_app(
    state: SupervisorState,
    supervisor: Optional[AgentProcessSupervisor] = None,
) -> FastAPI:
    """Build the status app; the supervisor (if any) runs for the app's lifetime."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        task = asyncio.create_task(supervisor.run()) if supervisor is not None else None
        yield
        if supervisor is not None and task is not None:
            supervisor.stop()
            await task

    app = FastAPI(title="World Agent Supervisor", lifespan=lifespan)

    @app.get("/")
    def status() -> Dict[str, Any]:
        now = time.time()
        snapshot = read_status_file(state.status_path) or {}
        return {
            "service": SERVICE_NAME,
            "status": state.status,
            "uptime": format_uptime(now - state.started_at),
            "cycle_count": snapshot.get("cycle_count", 0),
            "phase": snapshot.get("phase"),
            "last_activity": _iso(state.last_activity),
            "timestamp": _iso(now),
        }

    @app.get("/health")
    def health() -> Dict[str, Any]:
        return {
            "status": "healthy",
            "bot_status": state.status,
            "uptime": int(time.time() - state.started_at),
        }

    return app


def agent_command(extra: Sequence[str] = ()) -> List[str]:
    return [sys.executable, "-m", "runtime.agent_runtime_main", *extra]


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Supervise the world agent and serve its status.")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=int(os.environ.get("PORT", "3000")))
    parser.add_argument("--log-dir", type=Path, default=Path("logs"))
    parser.add_argument("agent_args", nargs="*", help="extra arguments for the agent process")
    args = parser.parse_args(argv)

    configure_logging()

    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(SRC_ROOT), env.get("PYTHONPATH")]))

    state = SupervisorState(status_path=args.log_dir / "status.json")
    supervisor = AgentProcessSupervisor(
        state,
        agent_command(["--log-dir", str(args.log_dir), *args.agent_args]),
        env=env,
    )
    app = create_app(state, supervisor)

    log.info("Health check server listening on port %d", args.port)
    log.info("Health endpoint: http://localhost:%d/health", args.port)
    # uvicorn handles SIGINT/SIGTERM and runs the lifespan shutdown,
    # which terminates the agent process.
    uvicorn.run(app, host=args.host, port=args.port, log_level="info")
    return 0


if __name__ == "__main__":
    sys.exit(main())
