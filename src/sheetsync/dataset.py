"""
Branch dataset: the in-memory Active/Finished pair for one branch and the
API the UI layer calls.

The dataset owns two backing lists of records (no separators) and the two
display sequences derived from them. Every mutation goes through one of the
API methods below, each of which re-runs lifecycle classification and the
ordering engine before returning, so the views are always consistent with
the backing lists.

Threading:
    All methods must be called on the thread that owns the dataset. Watch
    notifications and autosave timers fire on background threads and only
    ``post()`` to ``dataset.dispatcher``; nothing touches the records until
    the owner drains it (``dispatcher.run_pending()`` from its event loop,
    or ``run_forever()``).

Identity:
    Records carry an opaque ``record_id``. Loaded records are identified by
    a hash of (branch, file, line, occurrence); a reload reuses the id of an
    in-memory record with the same fingerprint, so a save followed by a
    reload keeps ids stable. Added and duplicated records get a random id.

Usage:
    session = Session(username="alice", branch="headoffice")
    dataset = BranchDataset(session)
    dataset.load()
    record_id = dataset.add_record()
    dataset.apply_edit(record_id, "customer", "Acme, Inc.")
    dataset.save()
    ...
    dataset.dispatcher.run_pending()   # owner's event loop tick
"""

from __future__ import annotations

import uuid
from collections import Counter
from dataclasses import dataclass
from typing import Callable

from sheetsync.core.errors import (
    InvalidEditError,
    RecordNotFoundError,
    ReorderError,
    SaveError,
    SheetSyncError,
)
from sheetsync.core.hashing import compute_record_id
from sheetsync.core.logging import LogContext, get_logger
from sheetsync.core.result import Err, Ok, Result
from sheetsync.core.session import Session
from sheetsync.records.codec import RecordCodec
from sheetsync.records.lifecycle import is_pinned, partition_of, reclassify
from sheetsync.records.models import DisplayEntry, Partition, Record, resolve_field
from sheetsync.records.ordering import build_active_view, build_finished_view
from sheetsync.sync.dispatch import Dispatcher, QueueDispatcher
from sheetsync.sync.synchronizer import FileSynchronizer


logger = get_logger(__name__)

ExternalChangeCallback = Callable[[list[DisplayEntry], list[DisplayEntry]], None]
SaveErrorCallback = Callable[[SheetSyncError], None]
EditCallback = Callable[[str | None], None]


@dataclass
class _Listener:
    id: str
    callback: Callable


class _Listeners:
    """Synchronous callback registry. A failing listener never stops delivery."""

    def __init__(self, kind: str):
        self._kind = kind
        self._listeners: dict[str, _Listener] = {}

    def add(self, callback: Callable) -> str:
        sub_id = f"sub_{uuid.uuid4().hex[:12]}"
        self._listeners[sub_id] = _Listener(sub_id, callback)
        return sub_id

    def remove(self, sub_id: str) -> None:
        self._listeners.pop(sub_id, None)

    def emit(self, *args) -> None:
        for listener in list(self._listeners.values()):
            try:
                listener.callback(*args)
            except Exception as e:
                logger.warning(
                    "listener_error",
                    kind=self._kind,
                    subscription_id=listener.id,
                    error=str(e),
                )

    def __len__(self) -> int:
        return len(self._listeners)


class BranchDataset:
    """Active and Finished partitions of one branch, backed by two files."""

    def __init__(
        self,
        session: Session,
        *,
        dispatcher: Dispatcher | None = None,
        codec: RecordCodec | None = None,
        active_sync: FileSynchronizer | None = None,
        finished_sync: FileSynchronizer | None = None,
    ):
        settings = session.settings
        self._session = session
        self._dispatcher = dispatcher or QueueDispatcher()
        self._codec = codec or RecordCodec(settings.delimiter)
        self._syncs = {
            Partition.ACTIVE: active_sync or FileSynchronizer.from_settings(session.active_path, settings),
            Partition.FINISHED: finished_sync or FileSynchronizer.from_settings(session.finished_path, settings),
        }

        self._active: list[Record] = []
        self._finished: list[Record] = []
        self._active_view: list[DisplayEntry] = []
        self._finished_view: list[DisplayEntry] = []

        self._unsaved = False
        self._reload_pending = False
        self._watching = False

        self._external_change = _Listeners("external_change")
        self._save_error = _Listeners("save_error")
        self._edit = _Listeners("edit")

    # -------------------------------------------------------------------------
    # STATE
    # -------------------------------------------------------------------------

    @property
    def session(self) -> Session:
        return self._session

    @property
    def branch(self) -> str:
        return self._session.branch

    @property
    def active(self) -> list[Record]:
        """Active backing list (copy)."""
        return list(self._active)

    @property
    def finished(self) -> list[Record]:
        """Finished backing list (copy)."""
        return list(self._finished)

    @property
    def active_view(self) -> list[DisplayEntry]:
        return list(self._active_view)

    @property
    def finished_view(self) -> list[DisplayEntry]:
        return list(self._finished_view)

    @property
    def dispatcher(self) -> Dispatcher:
        """Where background callbacks are posted for the owner thread to run."""
        return self._dispatcher

    @property
    def has_unsaved_changes(self) -> bool:
        return self._unsaved

    @property
    def reload_pending(self) -> bool:
        """An external change arrived while local edits were unsaved."""
        return self._reload_pending

    def get(self, record_id: str) -> Record:
        records, index = self._locate(record_id)
        return records[index]

    def partition_of(self, record_id: str) -> Partition:
        records, _ = self._locate(record_id)
        return Partition.ACTIVE if records is self._active else Partition.FINISHED

    def _log_context(self) -> LogContext:
        return LogContext(branch=self.branch, user=self._session.username)

    # -------------------------------------------------------------------------
    # LOAD / SAVE
    # -------------------------------------------------------------------------

    def load(self) -> Result[tuple[list[DisplayEntry], list[DisplayEntry]]]:
        """Read both files and replace the in-memory state.

        Each record is placed by its status, not by the file it came from.
        On any failure the previous state is left untouched.

        Returns:
            Ok((active_view, finished_view)) or Err with the first failure.
        """
        with self._log_context():
            for sync in self._syncs.values():
                ensured = sync.ensure_exists(self._codec.header)
                if ensured.is_err():
                    return Err(ensured.error)

            lines: dict[Partition, list[str]] = {}
            for partition, sync in self._syncs.items():
                result = sync.read()
                if result.is_err():
                    logger.warning(
                        "load_failed_keeping_state",
                        partition=partition.value,
                        error=str(result.error),
                    )
                    return Err(result.error)
                lines[partition] = result.value

            known_ids = self._current_fingerprints()
            loaded = {
                partition: self._identify(self._codec.parse_lines(lines[partition]), partition, known_ids)
                for partition in self._syncs
            }
            active, finished = loaded[Partition.ACTIVE], loaded[Partition.FINISHED]
            moved = reclassify(active, finished)

            self._active = active
            self._finished = finished
            self._unsaved = False
            self._reload_pending = False
            self._rebuild()
            logger.info(
                "dataset_loaded",
                active=len(self._active),
                finished=len(self._finished),
                misplaced=moved,
            )
            return Ok((self.active_view, self.finished_view))

    def save(self) -> Result[None]:
        """Write both partitions, each as its own atomic replace.

        Both writes are attempted even if the first fails. Local state is
        never rolled back; on failure the save-error listeners are told and
        the caller may retry.
        """
        with self._log_context():
            failures: list[tuple[Partition, Exception]] = []
            for partition, records in ((Partition.ACTIVE, self._active), (Partition.FINISHED, self._finished)):
                sync = self._syncs[partition]
                result = sync.write_atomic(self._codec.format_document(records))
                if result.is_err():
                    failures.append((partition, result.error))

            if failures:
                partition, cause = failures[0]
                error = SaveError(
                    f"Could not save {self.branch} ({', '.join(p.value for p, _ in failures)})",
                    cause=cause,
                ).with_context(
                    branch=self.branch,
                    path=str(self._syncs[partition].path),
                    failed=[p.value for p, _ in failures],
                )
                logger.error("save_failed", **error.to_dict())
                self._save_error.emit(error)
                return Err(error)

            self._unsaved = False
            logger.info("dataset_saved", active=len(self._active), finished=len(self._finished))
            return Ok(None)

    def _identify(
        self, records: list[Record], partition: Partition, known_ids: dict[str, str]
    ) -> list[Record]:
        source = self._syncs[partition].path.name
        seen: Counter[str] = Counter()
        for record in records:
            line = self._codec.format_record(record)
            fingerprint = compute_record_id(self.branch, source, line, seen[line])
            seen[line] += 1
            record.record_id = known_ids.get(fingerprint, fingerprint)
        return records

    def _current_fingerprints(self) -> dict[str, str]:
        """fingerprint -> id for the in-memory records, as they would be saved."""
        known: dict[str, str] = {}
        for partition, records in ((Partition.ACTIVE, self._active), (Partition.FINISHED, self._finished)):
            source = self._syncs[partition].path.name
            seen: Counter[str] = Counter()
            for record in records:
                line = self._codec.format_record(record)
                known[compute_record_id(self.branch, source, line, seen[line])] = record.record_id
                seen[line] += 1
        return known

    # -------------------------------------------------------------------------
    # EDITS
    # -------------------------------------------------------------------------

    def apply_edit(self, record_id: str, field_name: str, value: object) -> Record:
        """Set one field and stamp the editing user.

        Raises:
            RecordNotFoundError: unknown ``record_id``
            InvalidEditError: ``field_name`` is not a record column
        """
        record = self.get(record_id)
        try:
            attr = resolve_field(field_name)
        except KeyError:
            raise InvalidEditError(f"Unknown field {field_name!r}").with_context(
                branch=self.branch, record_id=record_id
            ) from None

        record.set_field(attr, value)
        if attr != "last_user":
            record.last_user = self._session.username
        logger.debug("record_edited", record_id=record_id, field=attr)
        self._commit(record_id)
        return record

    def add_record(self, after_id: str | None = None) -> str:
        """Insert a record with the default fields; returns its id."""
        record = Record.blank(self._session.username)
        record.record_id = uuid.uuid4().hex
        self._insert_after(record, after_id)
        logger.debug("record_added", record_id=record.record_id, after=after_id)
        self._commit(record.record_id)
        return record.record_id

    def duplicate_record(self, record_id: str) -> str:
        """Copy every field of a record into a new one right after it; returns the new id."""
        source = self.get(record_id)
        record = source.copy(last_user=self._session.username, record_id=uuid.uuid4().hex)
        self._insert_after(record, record_id)
        logger.debug("record_duplicated", record_id=record.record_id, source=record_id)
        self._commit(record.record_id)
        return record.record_id

    def delete_record(self, record_id: str) -> Record:
        records, index = self._locate(record_id)
        record = records.pop(index)
        logger.debug("record_deleted", record_id=record_id)
        self._commit(record_id)
        return record

    def reorder(self, record_id: str, before_id: str | None) -> None:
        """Move an Active record so it sits just before ``before_id``.

        With ``before_id=None`` the record moves to the end of its date group.
        Only records in the same date group can be reordered against each
        other; pinned and Finished records cannot be moved or targeted.

        Raises:
            RecordNotFoundError: either id is unknown
            ReorderError: the move is not allowed
        """
        record = self._reorderable(record_id, "source")
        if before_id is not None:
            target = self._reorderable(before_id, "target")
            if target is record:
                return
            if target.due_date != record.due_date:
                raise ReorderError(
                    f"Cannot move a record due {record.due_label} into the {target.due_label} group"
                ).with_context(branch=self.branch, record_id=record_id, target=before_id)

        # Duplicates compare equal, so remove by position.
        _, position = self._locate(record_id)
        del self._active[position]
        if before_id is not None:
            index = next(i for i, r in enumerate(self._active) if r.record_id == before_id)
        else:
            index = len(self._active)
            for i, other in enumerate(self._active):
                if not is_pinned(other) and other.due_date == record.due_date:
                    index = i + 1
        self._active.insert(index, record)
        logger.debug("record_reordered", record_id=record_id, before=before_id)
        self._commit(record_id)

    def _reorderable(self, record_id: str, role: str) -> Record:
        records, index = self._locate(record_id)
        record = records[index]
        if records is not self._active:
            raise ReorderError(f"Reorder {role} is a finished record").with_context(
                branch=self.branch, record_id=record_id
            )
        if is_pinned(record):
            raise ReorderError(f"Reorder {role} is pinned").with_context(
                branch=self.branch, record_id=record_id
            )
        return record

    def _insert_after(self, record: Record, after_id: str | None) -> None:
        if after_id is None:
            target = self._active if partition_of(record) is Partition.ACTIVE else self._finished
            target.append(record)
            return
        records, index = self._locate(after_id)
        records.insert(index + 1, record)

    def _locate(self, record_id: str) -> tuple[list[Record], int]:
        for records in (self._active, self._finished):
            for index, record in enumerate(records):
                if record.record_id == record_id:
                    return records, index
        raise RecordNotFoundError(f"No record {record_id!r}").with_context(
            branch=self.branch, record_id=record_id
        )

    def refresh(self) -> int:
        """Re-run classification and ordering. Returns the number of records moved."""
        moved = reclassify(self._active, self._finished)
        self._rebuild()
        return moved

    def _commit(self, record_id: str | None) -> None:
        self.refresh()
        self._unsaved = True
        self._edit.emit(record_id)

    def _rebuild(self) -> None:
        self._active_view = build_active_view(self._active)
        self._finished_view = build_finished_view(self._finished)

    # -------------------------------------------------------------------------
    # WATCHING / CALLBACKS
    # -------------------------------------------------------------------------

    def on_external_change(self, callback: ExternalChangeCallback) -> str:
        """Called with (active_view, finished_view) after a reload caused by a peer."""
        return self._external_change.add(callback)

    def on_save_error(self, callback: SaveErrorCallback) -> str:
        return self._save_error.add(callback)

    def on_edit(self, callback: EditCallback) -> str:
        """Called with the affected record id after every committed edit."""
        return self._edit.add(callback)

    def unsubscribe(self, subscription_id: str) -> None:
        for listeners in (self._external_change, self._save_error, self._edit):
            listeners.remove(subscription_id)

    def start_watching(self) -> None:
        if self._watching:
            return
        for sync in self._syncs.values():
            sync.watch(self._on_file_changed)
        self._watching = True
        logger.info("dataset_watching", branch=self.branch)

    def stop(self) -> None:
        for sync in self._syncs.values():
            sync.stop()
        self._watching = False

    def _on_file_changed(self) -> None:
        # Debounce timer thread: never touch state here.
        self._dispatcher.post(self.handle_external_change)

    def handle_external_change(self) -> None:
        """Reload after a peer wrote one of the files, then tell the UI.

        With unsaved local edits the reload is deferred (``reload_pending``)
        until the next save. That save writes the whole file, so the peer's
        write is overwritten (last writer wins); the reload that follows it
        brings the peer's branch state back into view.
        """
        with self._log_context():
            if self._unsaved:
                self._reload_pending = True
                logger.info("external_change_deferred")
                return
            self.reload_and_notify()

    def reload_and_notify(self) -> Result[tuple[list[DisplayEntry], list[DisplayEntry]]]:
        """Load from disk and emit ``on_external_change`` on success."""
        with self._log_context():
            result = self.load()
            if result.is_err():
                logger.warning("external_reload_failed", error=str(result.error))
                return result
            self._external_change.emit(self.active_view, self.finished_view)
            return result


def load_branch(session: Session, *, dispatcher: Dispatcher | None = None) -> Result[BranchDataset]:
    """Create a dataset for the session's branch and load it."""
    dataset = BranchDataset(session, dispatcher=dispatcher)
    return dataset.load().map(lambda _: dataset)


__all__ = ["BranchDataset", "load_branch"]
