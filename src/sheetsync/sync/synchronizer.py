"""
File synchronizer: safe read, atomic replace and change watching for one
shared partition file.

Every seat of the worklist reads and rewrites the same two files on a network
share, so the synchronizer assumes contention is normal:

- ``read()`` retries on sharing violations (another process holds the file)
  with a fixed delay, and hands back ``Err(TransientIOError)`` once retries
  are exhausted. It never returns a partially read file.
- ``write_atomic()`` writes the full document to a uniquely named temp file in
  the same directory, flushes it to disk, and atomically replaces the target.
  A reader on another seat sees either the old file or the new one. The temp
  file is always removed, whatever happens.
- ``watch()`` reports external changes. Notifications arriving while any
  suppression token is held (our own write, plus a settle window after it)
  are dropped; the rest are debounced so a burst becomes one callback.

Suppression is a set of tokens rather than a boolean so that overlapping
writes (Active and Finished saved back to back) cannot clear each other's
suppression early.

Examples:
    >>> sync = FileSynchronizer(Path("/share/headoffice.csv"))
    >>> match sync.read():
    ...     case Ok(lines):
    ...         records = codec.parse_lines(lines)
    ...     case Err(error):
    ...         logger.warning("read_failed", error=str(error))
    >>> sync.write_atomic(codec.format_document(records))
    Ok(None)
"""

from __future__ import annotations

import os
import tempfile
import threading
import time
from pathlib import Path
from typing import Callable, TypeVar

from sheetsync.core.errors import (
    ConfigurationError,
    ErrorCategory,
    SheetSyncError,
    TransientIOError,
    is_sharing_violation,
)
from sheetsync.core.logging import get_logger
from sheetsync.core.result import Err, Ok, Result
from sheetsync.core.settings import SheetSyncSettings
from sheetsync.sync.debounce import Debouncer
from sheetsync.sync.retry import ConstantBackoff, RetryStrategy
from sheetsync.sync.watcher import PollingFileWatcher


logger = get_logger(__name__)

T = TypeVar("T")


class SuppressionToken:
    """Held while our own write is in flight. Releasing starts the settle window.

    Usable as a context manager; ``release()`` is idempotent.
    """

    def __init__(self, owner: FileSynchronizer):
        self._owner = owner
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        self._owner._release(self)

    def __enter__(self) -> SuppressionToken:
        return self

    def __exit__(self, *args) -> None:
        self.release()


class FileSynchronizer:
    """Serializes one partition file between this seat and its peers."""

    def __init__(
        self,
        path: Path,
        *,
        encoding: str = "utf-8",
        retry: RetryStrategy | None = None,
        settle_seconds: float = 0.5,
        poll_seconds: float = 0.25,
        debounce_seconds: float = 0.5,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._path = Path(path)
        self._encoding = encoding
        self._retry = retry or ConstantBackoff()
        self._settle_seconds = settle_seconds
        self._poll_seconds = poll_seconds
        self._debounce_seconds = debounce_seconds
        self._sleep = sleep

        self._lock = threading.Lock()
        self._tokens: set[SuppressionToken] = set()
        self._watcher: PollingFileWatcher | None = None
        self._debouncer: Debouncer | None = None

    @classmethod
    def from_settings(cls, path: Path, settings: SheetSyncSettings) -> FileSynchronizer:
        return cls(
            path,
            encoding=settings.encoding,
            retry=ConstantBackoff.from_settings(settings),
            settle_seconds=settings.settle_seconds,
            poll_seconds=settings.watch_poll_seconds,
            debounce_seconds=settings.watch_debounce_seconds,
        )

    @property
    def path(self) -> Path:
        return self._path

    def __repr__(self) -> str:
        return f"FileSynchronizer({str(self._path)!r})"

    # -------------------------------------------------------------------------
    # READ
    # -------------------------------------------------------------------------

    def read(self) -> Result[list[str]]:
        """Read all lines, line endings kept.

        A missing file is treated like a locked one: a peer replacing the
        file can make it briefly absent, and an empty result here would wipe
        the caller's records.
        """

        def _read() -> list[str]:
            with open(self._path, "r", encoding=self._encoding, newline="") as f:
                return f.readlines()

        return self._with_retry("read", _read, retry_missing=True)

    # -------------------------------------------------------------------------
    # WRITE
    # -------------------------------------------------------------------------

    def write_atomic(self, lines: list[str]) -> Result[None]:
        """Replace the file with ``lines`` in one step.

        Holds its own suppression token for the duration, so the watch
        subsystem never reports this write back as an external change.
        """
        content = "".join(line + "\n" for line in lines)
        with self.suppress():
            tmp_path: str | None = None
            try:
                try:
                    with tempfile.NamedTemporaryFile(
                        "w",
                        encoding=self._encoding,
                        newline="",
                        dir=self._path.parent,
                        prefix=f".{self._path.name}.",
                        suffix=".tmp",
                        delete=False,
                    ) as tmp:
                        tmp_path = tmp.name
                        tmp.write(content)
                        tmp.flush()
                        os.fsync(tmp.fileno())
                except OSError as e:
                    logger.error("temp_write_failed", path=str(self._path), error=str(e))
                    return Err(
                        SheetSyncError(
                            f"Could not write temporary file next to {self._path.name}",
                            category=ErrorCategory.STORAGE,
                            cause=e,
                        ).with_context(path=str(self._path))
                    )

                result = self._with_retry("replace", lambda: os.replace(tmp_path, self._path))
                if result.is_ok():
                    tmp_path = None
                    logger.debug("file_replaced", path=str(self._path), lines=len(lines))
                return result.map(lambda _: None)
            finally:
                if tmp_path is not None:
                    try:
                        os.remove(tmp_path)
                    except FileNotFoundError:
                        pass
                    except OSError as e:
                        logger.warning("temp_cleanup_failed", path=tmp_path, error=str(e))

    def ensure_exists(self, header: str) -> Result[bool]:
        """Create the folder and a header-only file when missing.

        Returns:
            Ok(True) if the file was created, Ok(False) if it already existed,
            Err(ConfigurationError) if the folder cannot be created.
        """
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error("data_dir_unavailable", path=str(self._path.parent), error=str(e))
            return Err(
                ConfigurationError(
                    f"Data folder {self._path.parent} is missing and could not be created",
                    cause=e,
                ).with_context(path=str(self._path.parent))
            )
        if self._path.exists():
            return Ok(False)
        logger.info("partition_file_created", path=str(self._path))
        return self.write_atomic([header]).map(lambda _: True)

    # -------------------------------------------------------------------------
    # SUPPRESSION
    # -------------------------------------------------------------------------

    def suppress(self) -> SuppressionToken:
        """Acquire a suppression token.

        While any token is held, or within ``settle_seconds`` after the last
        one was released, watch notifications are dropped.
        """
        token = SuppressionToken(self)
        with self._lock:
            self._tokens.add(token)
        return token

    @property
    def is_suppressed(self) -> bool:
        with self._lock:
            return bool(self._tokens)

    def _release(self, token: SuppressionToken) -> None:
        if self._settle_seconds <= 0:
            self._expire(token)
            return
        timer = threading.Timer(self._settle_seconds, self._expire, args=(token,))
        timer.daemon = True
        timer.name = f"sheetsync-settle-{self._path.name}"
        timer.start()

    def _expire(self, token: SuppressionToken) -> None:
        # Re-baseline before dropping the token so a poll in between cannot
        # report our own write as external.
        watcher = self._watcher
        if watcher is not None:
            watcher.resync()
        with self._lock:
            self._tokens.discard(token)

    # -------------------------------------------------------------------------
    # WATCH
    # -------------------------------------------------------------------------

    def watch(self, on_changed: Callable[[], None]) -> None:
        """Start watching. ``on_changed`` runs on a timer thread after a quiet window."""
        if self._watcher is not None:
            logger.warning("already_watching", path=str(self._path))
            return
        self._debouncer = Debouncer(
            self._debounce_seconds, on_changed, name=f"sheetsync-reload-{self._path.name}"
        )
        self._watcher = PollingFileWatcher(self._path, self.notify_changed, self._poll_seconds)
        self._watcher.start()
        logger.info("watch_started", path=str(self._path))

    def notify_changed(self) -> None:
        """Entry point for raw change notifications."""
        if self.is_suppressed:
            logger.debug("watch_event_suppressed", path=str(self._path))
            return
        if self._debouncer is not None:
            self._debouncer.trigger()

    def stop(self) -> None:
        if self._watcher is not None:
            self._watcher.stop()
            self._watcher = None
        if self._debouncer is not None:
            self._debouncer.cancel()
            self._debouncer = None

    # -------------------------------------------------------------------------
    # RETRY
    # -------------------------------------------------------------------------

    def _with_retry(self, operation: str, fn: Callable[[], T], *, retry_missing: bool = False) -> Result[T]:
        """Run ``fn`` until it succeeds or the retry strategy gives up.

        Only sharing violations (and, for reads, a briefly missing file) are
        retried. Any other OSError fails on the spot.
        """
        attempt = 0
        while True:
            try:
                return Ok(fn())
            except OSError as e:
                transient = is_sharing_violation(e) or (retry_missing and isinstance(e, FileNotFoundError))
                if not transient:
                    logger.error(f"{operation}_failed", path=str(self._path), error=str(e))
                    return Err(
                        SheetSyncError(
                            f"{operation} of {self._path.name} failed: {e}",
                            category=ErrorCategory.STORAGE,
                            cause=e,
                        ).with_context(path=str(self._path), attempts=attempt + 1)
                    )
                if not self._retry.should_retry(attempt, e):
                    logger.error(
                        "file_busy_giving_up",
                        operation=operation,
                        path=str(self._path),
                        attempts=attempt + 1,
                        error=str(e),
                    )
                    return Err(
                        TransientIOError(
                            f"{self._path.name} is in use by another process",
                            cause=e,
                        ).with_context(path=str(self._path), attempts=attempt + 1)
                    )
                delay = self._retry.next_delay(attempt)
                logger.warning(
                    "file_busy_retrying",
                    operation=operation,
                    path=str(self._path),
                    attempt=attempt + 1,
                    delay=delay,
                    error=str(e),
                )
                self._sleep(delay)
                attempt += 1


__all__ = ["FileSynchronizer", "SuppressionToken"]
