"""
Autosave scheduler: one debounced persist-and-reconcile cycle per burst of
edits.

Every committed edit on the dataset marks it dirty and restarts a single
timer. When the timer expires the flush is posted to the dataset's
dispatcher and runs there:

    reclassify -> rebuild ordering -> save() -> load() (optional)

so N edits inside the window produce one save. A failed save keeps the
dataset dirty; the next edit (or an explicit ``flush()``) tries again.

A peer write that arrived while edits were unsaved is overwritten by that
save; the reload after it notifies ``on_external_change`` listeners.

Example:
    >>> scheduler = AutosaveScheduler.attach(dataset, delay=3.0)
    >>> dataset.apply_edit(record_id, "status", "Booked in")
    >>> # ~3s later, on the dispatcher's thread: one save, then a reload
"""

from __future__ import annotations

from sheetsync.core.logging import get_logger
from sheetsync.core.result import Ok, Result
from sheetsync.dataset import BranchDataset
from sheetsync.sync.debounce import Debouncer


logger = get_logger(__name__)


class AutosaveScheduler:
    """Debounces dataset edits into saves."""

    def __init__(
        self,
        dataset: BranchDataset,
        *,
        delay: float | None = None,
        reload_after_save: bool | None = None,
    ):
        settings = dataset.session.settings
        self._dataset = dataset
        self._reload_after_save = (
            settings.reload_after_save if reload_after_save is None else reload_after_save
        )
        self._debouncer = Debouncer(
            settings.autosave_delay_seconds if delay is None else delay,
            self._on_timer,
            name=f"sheetsync-autosave-{dataset.branch}",
        )
        self._dirty = False
        self._subscription: str | None = None
        self._saves = 0

    @classmethod
    def attach(cls, dataset: BranchDataset, **kwargs) -> AutosaveScheduler:
        """Create a scheduler and subscribe it to the dataset's edits."""
        scheduler = cls(dataset, **kwargs)
        scheduler._subscription = dataset.on_edit(lambda _record_id: scheduler.mark_dirty())
        return scheduler

    @property
    def dirty(self) -> bool:
        return self._dirty

    @property
    def pending(self) -> bool:
        return self._debouncer.pending

    @property
    def save_count(self) -> int:
        """Saves performed by this scheduler."""
        return self._saves

    def mark_dirty(self) -> None:
        self._dirty = True
        self._debouncer.trigger()

    def _on_timer(self) -> None:
        # Timer thread: hand over to the dataset's thread.
        self._dataset.dispatcher.post(self.flush)

    def flush(self) -> Result[None]:
        """Persist now if dirty. Runs on the dataset's thread."""
        self._debouncer.cancel()
        if not self._dirty:
            return Ok(None)

        dataset = self._dataset
        logger.info("autosave_flush", branch=dataset.branch)
        reload_pending = dataset.reload_pending
        dataset.refresh()
        result = dataset.save()
        self._saves += 1
        if result.is_err():
            logger.warning("autosave_failed", branch=dataset.branch, error=str(result.error))
            return result

        self._dirty = False
        if reload_pending:
            dataset.reload_and_notify()
        elif self._reload_after_save:
            reloaded = dataset.load()
            if reloaded.is_err():
                logger.warning("autosave_reload_failed", branch=dataset.branch, error=str(reloaded.error))
        return Ok(None)

    def close(self, *, flush: bool = True) -> None:
        """Detach from the dataset, saving outstanding edits first if asked."""
        if self._subscription is not None:
            self._dataset.unsubscribe(self._subscription)
            self._subscription = None
        if flush:
            self.flush()
        self._debouncer.cancel()


__all__ = ["AutosaveScheduler"]
