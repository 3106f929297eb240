"""Restartable one-shot timer.

Every ``trigger()`` (re)starts the countdown; the action runs once, on the
timer thread, after ``delay`` seconds without another trigger. Used to
collapse watch-notification bursts into one reload and edit bursts into one
save.
"""

from __future__ import annotations

import threading
from typing import Callable

from sheetsync.core.logging import get_logger


logger = get_logger(__name__)


class Debouncer:
    """Coalesce a burst of triggers into a single call of ``action``.

    Example:
        >>> debouncer = Debouncer(0.5, reload)
        >>> for _ in range(10):
        ...     debouncer.trigger()
        >>> # reload() runs once, 0.5s after the last trigger
    """

    def __init__(self, delay: float, action: Callable[[], None], *, name: str = "sheetsync-debounce"):
        self._delay = delay
        self._action = action
        self._name = name
        self._lock = threading.Lock()
        self._timer: threading.Timer | None = None
        self._generation = 0

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._timer is not None

    def trigger(self) -> None:
        """Restart the countdown."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                logger.debug("debounce_restarted", name=self._name)
            self._generation += 1
            timer = threading.Timer(self._delay, self._fire, args=(self._generation,))
            timer.daemon = True
            timer.name = self._name
            self._timer = timer
            timer.start()

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = None
            self._generation += 1

    def flush(self) -> bool:
        """Run a pending action now on the calling thread.

        Returns:
            True if an action was pending and ran.
        """
        with self._lock:
            if self._timer is None:
                return False
            self._timer.cancel()
            self._timer = None
            self._generation += 1
        self._run()
        return True

    def _fire(self, generation: int) -> None:
        with self._lock:
            # A trigger/cancel that raced with this timer owns the action now.
            if generation != self._generation:
                return
            self._timer = None
        self._run()

    def _run(self) -> None:
        try:
            self._action()
        except Exception as e:
            logger.exception("debounced_action_failed", name=self._name, error=str(e))


__all__ = ["Debouncer"]
