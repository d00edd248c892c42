# bot_core.net package
# src/bot_core/net/__init__.py
"""
Network layer for the capability bridge.

This package provides:
- IpcWorldClient: asyncio JSON-lines client for the external bridge process
- IpcContainer: container window handle returned by IpcWorldClient
"""

from __future__ import annotations

from .ipc import IpcContainer, IpcWorldClient

__all__ = [
    "IpcContainer",
    "IpcWorldClient",
]
