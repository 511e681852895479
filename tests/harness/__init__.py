"""Shared test helpers for rule-panes.

Re-exports all public API for convenient imports:
    from tests.harness import RecordingObserver, run_app, wait_until, ...
"""

from tests.harness.recorders import RecordingObserver, RecordingListener, FakeWindow, MemoryStore
from tests.harness.app_runner import run_app, wait_until

__all__ = [
    "RecordingObserver",
    "RecordingListener",
    "FakeWindow",
    "MemoryStore",
    "run_app",
    "wait_until",
]
