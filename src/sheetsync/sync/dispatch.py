"""
Marshaling callbacks onto the single logical thread.

Watch notifications and debounce timers fire on their own threads, but
records and partitions may only be touched by the thread that owns the
dataset (the UI event loop in a desktop host). Background code never calls
into the dataset directly; it ``post()``s a callable, and the owning loop
runs it.

``QueueDispatcher`` queues callables; the owner drains them with
``run_pending()`` from its event loop, or blocks in ``run_forever()``.
"""

from __future__ import annotations

import queue
import threading
from typing import Callable, Protocol

from sheetsync.core.logging import get_logger


logger = get_logger(__name__)

Callback = Callable[[], None]


class Dispatcher(Protocol):
    """Anything that can run a callable on the dataset's owning thread."""

    def post(self, callback: Callback) -> None:
        ...


class QueueDispatcher:
    """Thread-safe queue drained by the owning loop.

    Example:
        >>> dispatcher = QueueDispatcher()
        >>> dispatcher.post(lambda: print("hello"))
        >>> dispatcher.run_pending()
        hello
        1
    """

    def __init__(self) -> None:
        self._queue: queue.SimpleQueue[Callback] = queue.SimpleQueue()

    def post(self, callback: Callback) -> None:
        self._queue.put(callback)

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def run_pending(self, timeout: float | None = None) -> int:
        """Run every queued callable on the calling thread.

        Args:
            timeout: If given, wait up to this long for the first callable.

        Returns:
            Number of callables run.
        """
        ran = 0
        try:
            callback = self._queue.get(timeout=timeout) if timeout else self._queue.get_nowait()
        except queue.Empty:
            return 0
        while True:
            self._run(callback)
            ran += 1
            try:
                callback = self._queue.get_nowait()
            except queue.Empty:
                return ran

    def run_forever(self, stop_event: threading.Event, poll_seconds: float = 0.1) -> None:
        """Block the calling thread, running callables until ``stop_event`` is set."""
        while not stop_event.is_set():
            self.run_pending(timeout=poll_seconds)

    @staticmethod
    def _run(callback: Callback) -> None:
        try:
            callback()
        except Exception as e:
            logger.exception("dispatched_callback_failed", error=str(e))


__all__ = ["Callback", "Dispatcher", "QueueDispatcher"]
