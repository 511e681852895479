"""Serial dispatcher — the single execution context that owns the roster.

// [LAW:single-enforcer] Roster mutation only ever happens inside drain().

post() is thread-safe and never runs work inline: registry events from
worker threads, the asyncio loop and UI callbacks all go through the same
FIFO queue. drain() runs queued work on the calling thread; a nested drain
(work that posts more work and then tries to drain) is refused, so the
outer loop picks the new items up in order.

When bound to a UI wake-up callback (e.g. a Textual app posting a message),
post() also asks the UI thread to drain.
"""

from __future__ import annotations

import logging
import queue
import threading
from collections.abc import Callable

logger = logging.getLogger(__name__)


class SerialDispatcher:
    def __init__(self) -> None:
        self._queue: queue.SimpleQueue[tuple[Callable, tuple]] = queue.SimpleQueue()
        self._drain_lock = threading.Lock()
        self._wake: Callable[[], None] | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def bind(self, wake: Callable[[], None] | None) -> None:
        """Set the callback that schedules drain() on the owning thread."""
        self._wake = wake

    def post(self, fn: Callable, *args) -> None:
        if self._closed:
            logger.debug("Dispatcher closed; dropping %r", fn)
            return
        self._queue.put((fn, args))
        wake = self._wake
        if wake is not None:
            try:
                wake()
            except Exception:
                logger.exception("Dispatcher wake-up failed")

    def drain(self) -> int:
        """Run everything queued so far (and anything it posts). Returns count run."""
        # Non-blocking: a nested or concurrent drain leaves the work to the active one.
        ran = 0
        while self._drain_lock.acquire(blocking=False):
            try:
                ran += self._run_queued()
            finally:
                self._drain_lock.release()
            # Work posted by a refused drain between our last get and the release.
            if self._queue.empty():
                break
        return ran

    def _run_queued(self) -> int:
        ran = 0
        while True:
            try:
                fn, args = self._queue.get_nowait()
            except queue.Empty:
                return ran
            ran += 1
            try:
                fn(*args)
            except Exception:
                logger.exception("Deferred callback %r failed", fn)

    def close(self) -> None:
        """Stop accepting work and drop anything still queued."""
        self._closed = True
        self._wake = None
        while True:
            try:
                self._queue.get_nowait()
            except queue.Empty:
                break
