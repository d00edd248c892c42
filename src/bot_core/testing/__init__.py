# bot_core.testing package
"""In-memory fakes for exercising the behavior core without a live world."""

from .fakes import FakeClock, FakeContainer, FakeWorld, RecordingScheduler, ScheduledCall

__all__ = [
    "FakeClock",
    "FakeContainer",
    "FakeWorld",
    "RecordingScheduler",
    "ScheduledCall",
]
