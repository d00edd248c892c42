# src/bot_core/errors.py
"""
Domain errors for the capability layer.

World actions that fail (place rejected, dig aborted, container refused)
surface as BridgeRequestError; the behavior core catches those at the
candidate/step boundary. Connection-level failures raise the other types
and are handled by runtime.connection.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class BotCoreError(RuntimeError):
    """
    Domain-level error raised by the capability layer.

    `code` is a short machine-readable tag ("not_connected", "timeout", ...);
    `details` carries whatever context the bridge returned.
    """

    code: str
    details: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return f"BotCoreError(code={self.code!r}, details={self.details!r})"


class AuthenticationError(BotCoreError):
    """Login rejected by the world. Fatal; never retried."""


class ConnectionLostError(BotCoreError):
    """Session ended, kicked, or the bridge socket closed."""


class BridgeRequestError(BotCoreError):
    """A single bridge request was rejected or timed out."""

    @property
    def message(self) -> str:
        return str(self.details.get("message", self.code))


def is_auth_failure(message: str) -> bool:
    """Heuristic over bridge error text for login/authentication failures."""
    lowered = message.lower()
    return any(
        token in lowered
        for token in ("auth", "invalid session", "not authenticated", "failed to verify username")
    )
