# path: src/runtime/agent_runtime_main.py

"""
Agent process entrypoint.

Wires together:
- YAML behavior config (env.loader)
- monitoring stack: EventBus, JSONL logger, status file, optional TUI
- IpcWorldClient + BehaviorSession under run_with_reconnect

Exit codes:
    0  stopped by SIGINT/SIGTERM
    1  invalid config, authentication failure, or reconnect budget spent

Run with:

    python -m runtime.agent_runtime_main --config config/behavior.yaml
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from bot_core.errors import AuthenticationError
from bot_core.net.ipc import IpcWorldClient
from env.loader import ConfigError, load_behavior_config
from env.schema import BehaviorConfig
from monitoring.bus import EventBus
from monitoring.dashboard_tui import TuiDashboard
from monitoring.logger import JsonFileLogger
from monitoring.status import StatusFileWriter
from runtime.connection import ReconnectExhausted, run_with_reconnect
from runtime.failure_mitigation import (
    emit_auth_failure,
    emit_config_error,
    emit_reconnect_exhausted,
)
from runtime.logging_config import configure_logging
from runtime.session import BehaviorSession

log = logging.getLogger(__name__)


def build_monitoring_stack(
    log_dir: Path,
) -> Tuple[EventBus, JsonFileLogger, StatusFileWriter]:
    """
    Construct the monitoring stack for this process.

    - JSONL event log at <log_dir>/monitoring/events.log
    - status file at <log_dir>/status.json (read by the supervisor)
    """
    bus = EventBus()
    event_log = JsonFileLogger(path=log_dir / "monitoring" / "events.log", bus=bus)
    status = StatusFileWriter(path=log_dir / "status.json", bus=bus)
    return bus, event_log, status


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the world agent.")
    parser.add_argument("--config", type=Path, default=None, help="behavior YAML (default: $AGENT_CONFIG or config/behavior.yaml)")
    parser.add_argument("--log-dir", type=Path, default=Path("logs"))
    parser.add_argument("--log-level", default="INFO")
    parser.add_argument("--dashboard", action="store_true", help="show the rich terminal dashboard")
    return parser.parse_args(argv)


def _install_signal_handlers(stop: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except (NotImplementedError, RuntimeError):
            # add_signal_handler is unavailable on some platforms; Ctrl-C
            # then surfaces as KeyboardInterrupt in main().
            log.debug("Signal handler for %s not installed", sig)


async def run_agent(config: BehaviorConfig, bus: EventBus) -> None:
    stop = asyncio.Event()
    _install_signal_handlers(stop)

    await run_with_reconnect(
        lambda: IpcWorldClient(config.bridge),
        lambda world: BehaviorSession(world, config, bus=bus),
        bus=bus,
        stop=stop,
    )
    log.info("Agent stopped")


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level)

    bus, event_log, status = build_monitoring_stack(args.log_dir)
    dashboard: Optional[TuiDashboard] = None
    try:
        try:
            config = load_behavior_config(args.config)
        except ConfigError as exc:
            log.error("Invalid behavior config: %s", exc)
            emit_config_error(
                bus,
                "Invalid behavior config",
                config_path=str(args.config) if args.config else None,
                error_repr=repr(exc),
            )
            return 1

        bridge = config.bridge
        log.info("Starting world agent")
        log.info("Authentication mode: %s", bridge.auth)
        log.info("Connecting to %s:%d as %s", bridge.host, bridge.port, bridge.username)

        if args.dashboard:
            dashboard = TuiDashboard(bus)
            dashboard.start_in_thread()

        try:
            asyncio.run(run_agent(config, bus))
        except AuthenticationError as exc:
            log.error("AUTHENTICATION ERROR: %s", exc)
            if bridge.auth == "offline":
                log.error("Online-mode worlds need Microsoft authentication: set GAME_AUTH=microsoft.")
            emit_auth_failure(bus, bridge.auth, repr(exc))
            return 1
        except ReconnectExhausted as exc:
            log.error("%s", exc)
            emit_reconnect_exhausted(bus, exc.attempts, exc.reason)
            return 1
        except KeyboardInterrupt:
            log.info("Interrupted, shutting down")
        return 0
    finally:
        if dashboard is not None:
            dashboard.stop()
        status.close()
        event_log.close()


if __name__ == "__main__":
    sys.exit(main())
