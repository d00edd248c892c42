# src/runtime/logging_config.py
"""
Central logging configuration for the world agent.

Call configure_logging() once from an entrypoint, for example:

    from runtime.logging_config import configure_logging
    configure_logging("DEBUG")

After that, every module's `log = logging.getLogger(__name__)` output
goes to stdout with a timestamp, level and logger name.
"""

from __future__ import annotations

import logging
import sys
from typing import Union

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: Union[int, str] = logging.INFO) -> None:
    """
    Configure root logging if no handlers are attached yet.

    Args:
        level: logging level, either numeric (logging.DEBUG) or by name ("debug").
    """
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        level = resolved if isinstance(resolved, int) else logging.INFO

    root = logging.getLogger()

    # Don't duplicate handlers if someone already configured logging.
    if root.handlers:
        root.setLevel(level)
        return

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(level)
