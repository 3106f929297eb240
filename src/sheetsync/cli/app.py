"""
Root Typer application for the sheetsync CLI.

A headless client of the same core the desktop UI uses: it loads a branch,
applies edits through the dataset API, and saves through the atomic
synchronizer, so it is safe to run against a share that seats are using.
"""

from __future__ import annotations

import threading
import time
from pathlib import Path

import typer
from typer import Typer

from sheetsync.cli.utils import (
    console,
    fail,
    open_dataset,
    output_views,
    parse_assignments,
    resolve_record_id,
    save_or_exit,
)
from sheetsync.core.errors import ValidationError
from sheetsync.core.logging import configure_logging
from sheetsync.core.settings import get_settings
from sheetsync.records.search import filter_view

app = Typer(
    name="sheetsync",
    help="sheetsync: shared worklist files for multi-seat editing.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

BranchOption = typer.Option(..., "--branch", "-b", envvar="SHEETSYNC_BRANCH", help="Branch name.")
UserOption = typer.Option(None, "--user", "-u", help="User stamped on edits (default: $SHEETSYNC_USER / $USER).")
DataDirOption = typer.Option(None, "--data-dir", "-d", help="Folder holding the branch files.")


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from importlib.metadata import PackageNotFoundError
        from importlib.metadata import version as pkg_version

        from sheetsync import __version__

        try:
            v = pkg_version("sheetsync")
        except PackageNotFoundError:
            v = __version__
        typer.echo(f"sheetsync {v}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    log_level: str | None = typer.Option(None, "--log-level", help="Default WARNING, or $SHEETSYNC_LOG_LEVEL."),
    log_json: bool = typer.Option(False, "--log-json", help="Log JSON lines to stderr."),
) -> None:
    """sheetsync CLI: show and edit a branch worklist."""
    settings = get_settings()
    if log_level is None:
        # WARNING unless SHEETSYNC_LOG_LEVEL (or .env) sets one.
        log_level = settings.log_level if "log_level" in settings.model_fields_set else "WARNING"
    configure_logging(level=log_level, json_format=log_json or settings.log_format == "json")


# ── Commands ─────────────────────────────────────────────────────────────


@app.command()
def show(
    branch: str = BranchOption,
    user: str | None = UserOption,
    data_dir: Path | None = DataDirOption,
    search: str | None = typer.Option(None, "--search", "-s", help="Only records matching this text."),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show the active and finished display sequences."""
    dataset = open_dataset(branch, user, data_dir)
    output_views(
        dataset.branch,
        filter_view(dataset.active_view, search),
        filter_view(dataset.finished_view, search),
        as_json=json_out,
    )


@app.command()
def add(
    branch: str = BranchOption,
    user: str | None = UserOption,
    data_dir: Path | None = DataDirOption,
    after: str | None = typer.Option(None, "--after", help="Insert after this record id."),
    assignments: list[str] = typer.Option([], "--set", help="FIELD=VALUE, repeatable."),
) -> None:
    """Add a record with default fields, optionally setting some of them."""
    dataset = open_dataset(branch, user, data_dir)
    pairs = parse_assignments(assignments)
    try:
        after_id = resolve_record_id(dataset, after) if after else None
        record_id = dataset.add_record(after_id)
        for name, value in pairs:
            dataset.apply_edit(record_id, name, value)
    except ValidationError as e:
        fail(e)
    save_or_exit(dataset)
    typer.echo(record_id)


@app.command()
def duplicate(
    record: str = typer.Argument(..., help="Record id (or unique prefix)."),
    branch: str = BranchOption,
    user: str | None = UserOption,
    data_dir: Path | None = DataDirOption,
) -> None:
    """Copy a record; the copy goes right after the original."""
    dataset = open_dataset(branch, user, data_dir)
    record_id = dataset.duplicate_record(resolve_record_id(dataset, record))
    save_or_exit(dataset)
    typer.echo(record_id)


@app.command("set")
def set_field(
    record: str = typer.Argument(..., help="Record id (or unique prefix)."),
    field: str = typer.Argument(..., help="Column, e.g. status or 'DATE DUE'."),
    value: str = typer.Argument(...),
    branch: str = BranchOption,
    user: str | None = UserOption,
    data_dir: Path | None = DataDirOption,
) -> None:
    """Apply one field edit and save."""
    dataset = open_dataset(branch, user, data_dir)
    record_id = resolve_record_id(dataset, record)
    try:
        dataset.apply_edit(record_id, field, value)
    except ValidationError as e:
        fail(e)
    save_or_exit(dataset)
    console.print(f"[green]✓[/green] {record_id[:8]} {field} = {value!r} ({dataset.partition_of(record_id).value})")


@app.command()
def delete(
    record: str = typer.Argument(..., help="Record id (or unique prefix)."),
    branch: str = BranchOption,
    user: str | None = UserOption,
    data_dir: Path | None = DataDirOption,
) -> None:
    """Delete a record and save."""
    dataset = open_dataset(branch, user, data_dir)
    record_id = resolve_record_id(dataset, record)
    dataset.delete_record(record_id)
    save_or_exit(dataset)
    console.print(f"[green]✓[/green] deleted {record_id[:8]}")


@app.command()
def watch(
    branch: str = BranchOption,
    user: str | None = UserOption,
    data_dir: Path | None = DataDirOption,
    duration: float = typer.Option(0.0, "--duration", help="Stop after this many seconds (0 = until Ctrl+C)."),
) -> None:
    """Print a line every time another seat changes the branch files."""
    dataset = open_dataset(branch, user, data_dir)

    def _refreshed(active, finished) -> None:
        active_count = sum(1 for e in active if not e.is_separator)
        console.print(
            f"[cyan]{time.strftime('%H:%M:%S')}[/cyan] {dataset.branch} reloaded: "
            f"{active_count} active, {len(finished)} finished"
        )

    dataset.on_external_change(_refreshed)
    dataset.start_watching()
    console.print(f"Watching {dataset.branch} in {dataset.session.data_dir} (Ctrl+C to stop)")

    stop_event = threading.Event()
    if duration > 0:
        timer = threading.Timer(duration, stop_event.set)
        timer.daemon = True
        timer.start()
    try:
        dataset.dispatcher.run_forever(stop_event)
    except KeyboardInterrupt:
        pass
    finally:
        dataset.stop()
