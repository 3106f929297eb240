"""
CLI utility helpers: session/dataset setup and output formatting.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, NoReturn

import typer
from rich.console import Console
from rich.table import Table

from sheetsync.core.errors import SheetSyncError
from sheetsync.core.session import Session
from sheetsync.core.settings import get_settings
from sheetsync.dataset import BranchDataset
from sheetsync.records.models import FIELD_NAMES, DisplayEntry, Record, format_due_date

console = Console()
err_console = Console(stderr=True)


# ── Session / dataset ────────────────────────────────────────────────────


def default_user() -> str:
    return os.environ.get("SHEETSYNC_USER") or os.environ.get("USER") or os.environ.get("USERNAME") or "cli"


def make_session(branch: str, user: str | None = None, data_dir: Path | None = None) -> Session:
    """Build a session, overriding the configured data folder if given."""
    settings = get_settings()
    if data_dir is not None:
        settings = settings.model_copy(update={"data_dir": data_dir})
    try:
        return Session(username=user or default_user(), branch=branch, settings=settings)
    except ValueError as e:
        fail(e)


def open_dataset(
    branch: str,
    user: str | None = None,
    data_dir: Path | None = None,
) -> BranchDataset:
    """Create and load a dataset, exiting with an error message on failure."""
    dataset = BranchDataset(make_session(branch, user, data_dir))
    result = dataset.load()
    if result.is_err():
        fail(result.error)
    return dataset


def resolve_record_id(dataset: BranchDataset, ref: str) -> str:
    """Full record id for ``ref`` (an id or a unique id prefix)."""
    ids = [r.record_id for r in dataset.active + dataset.finished]
    if ref in ids:
        return ref
    candidates = [record_id for record_id in ids if record_id.startswith(ref)]
    if len(candidates) == 1:
        return candidates[0]
    if not candidates:
        fail(f"No record matches {ref!r}")
    fail(f"{ref!r} is ambiguous ({len(candidates)} records match)")


def save_or_exit(dataset: BranchDataset) -> None:
    result = dataset.save()
    if result.is_err():
        fail(result.error)


def fail(error: Exception | str) -> NoReturn:
    """Print an error and exit with status 1."""
    if isinstance(error, SheetSyncError):
        err_console.print(f"[bold red]Error[/bold red] ({error.category.value}): {error.message}")
    else:
        err_console.print(f"[bold red]Error[/bold red]: {error}")
    raise typer.Exit(code=1)


# ── Output helpers ───────────────────────────────────────────────────────

_TABLE_COLUMNS = (
    ("ID", lambda r: r.record_id[:8]),
    ("DUE", lambda r: r.date_due_text),
    ("STATUS", lambda r: r.status),
    ("CUSTOMER", lambda r: r.customer),
    ("SERIAL", lambda r: r.serial),
    ("QTY", lambda r: str(r.qty)),
    ("WHAT IS IT", lambda r: r.what_is_it),
    ("PRIORITY", lambda r: r.priority),
    ("LAST USER", lambda r: r.last_user),
)


def entry_to_dict(entry: DisplayEntry) -> dict[str, Any]:
    if entry.is_separator:
        return {"type": "separator", "label": entry.label, "due_date": format_due_date(entry.due_date)}
    return {"type": "record", "id": entry.record_id, **record_fields(entry)}


def record_fields(record: Record) -> dict[str, Any]:
    return {name: getattr(record, name) for name in FIELD_NAMES}


def output_views(
    branch: str,
    active: list[DisplayEntry],
    finished: list[DisplayEntry],
    *,
    as_json: bool = False,
) -> None:
    """Render both display sequences."""
    if as_json:
        payload = {
            "branch": branch,
            "active": [entry_to_dict(e) for e in active],
            "finished": [entry_to_dict(e) for e in finished],
        }
        console.print_json(json.dumps(payload, default=str))
        return

    _print_view(active, title=f"{branch}: active")
    _print_view(finished, title=f"{branch}: finished")


def _print_view(entries: list[DisplayEntry], *, title: str) -> None:
    if not entries:
        console.print(f"[bold]{title}[/bold] [dim]No records.[/dim]")
        return
    table = Table(title=title, show_lines=False, pad_edge=False)
    for header, _ in _TABLE_COLUMNS:
        table.add_column(header, overflow="fold")
    for entry in entries:
        if entry.is_separator:
            table.add_row("", f"[dim]── {entry.label} ──[/dim]", *[""] * (len(_TABLE_COLUMNS) - 2))
        else:
            table.add_row(*(getter(entry) for _, getter in _TABLE_COLUMNS))
    console.print(table)


def parse_assignments(assignments: list[str]) -> list[tuple[str, str]]:
    """``field=value`` strings -> pairs."""
    pairs = []
    for item in assignments:
        name, sep, value = item.partition("=")
        if not sep or not name.strip():
            fail(f"Expected FIELD=VALUE, got {item!r}")
        pairs.append((name.strip(), value))
    return pairs
