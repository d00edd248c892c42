# bot_core package
# src/bot_core/__init__.py
"""
Capability layer for the world agent.

Exports:
    - IpcWorldClient: WorldCapabilities over the JSON-lines bridge socket
    - BotCoreError and its subclasses: domain errors for non-core failures
"""

from __future__ import annotations

from .errors import (
    AuthenticationError,
    BotCoreError,
    BridgeRequestError,
    ConnectionLostError,
)
from .net import IpcWorldClient

__all__ = [
    "AuthenticationError",
    "BotCoreError",
    "BridgeRequestError",
    "ConnectionLostError",
    "IpcWorldClient",
]
