"""
Shared pytest fixtures for sheetsync tests.

This module provides:
- Settings pointing at a temporary data folder, with short timings
- A session for a test branch
- Sample lines and records
- A factory for records with a given due date and status

Usage:
    def test_something(session, write_branch, sample_line):
        write_branch(active=[sample_line])
        ...
"""

from __future__ import annotations

import os
from datetime import date
from pathlib import Path
from typing import Callable

import pytest

from sheetsync.core.session import Session
from sheetsync.core.settings import SheetSyncSettings, clear_settings_cache
from sheetsync.records.codec import RecordCodec
from sheetsync.records.models import HEADERS, Record


SAMPLE_LINE = "A1,OE1,Cust,SN1,Mon,05/01/2025,Quote,2,Pump,PO9,Rebuild,Seal,Domestic,N,alice"
HEADER_LINE = ",".join(HEADERS)


@pytest.fixture(autouse=True)
def _isolate_settings(monkeypatch: pytest.MonkeyPatch):
    """Keep SHEETSYNC_* from the developer's environment out of tests."""
    for key in list(os.environ):
        if key.startswith("SHEETSYNC_"):
            monkeypatch.delenv(key, raising=False)
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    path = tmp_path / "DesignData"
    path.mkdir()
    return path


@pytest.fixture
def settings(data_dir: Path) -> SheetSyncSettings:
    """Settings with millisecond timings so timer tests stay fast."""
    return SheetSyncSettings(
        data_dir=data_dir,
        retry_count=3,
        retry_delay_seconds=0.0,
        settle_seconds=0.0,
        watch_poll_seconds=0.02,
        watch_debounce_seconds=0.05,
        autosave_delay_seconds=0.05,
        reload_after_save=True,
    )


@pytest.fixture
def session(settings: SheetSyncSettings) -> Session:
    return Session(username="alice", branch="headoffice", settings=settings)


@pytest.fixture
def sample_line() -> str:
    return SAMPLE_LINE


@pytest.fixture
def make_record() -> Callable[..., Record]:
    """Factory: record with a due date text and status; other fields as given."""

    def _make(due: str = "", status: str = "Quote", customer: str = "Cust", **fields) -> Record:
        return Record(customer=customer, date_due_text=due, status=status, **fields)

    return _make


@pytest.fixture
def codec() -> RecordCodec:
    return RecordCodec()


@pytest.fixture
def today() -> date:
    return date(2025, 1, 6)


@pytest.fixture
def write_branch(session: Session) -> Callable[..., None]:
    """Write raw lines to the session's two files (header added)."""

    def _write(active: list[str] | None = None, finished: list[str] | None = None, header: bool = True) -> None:
        for path, lines in ((session.active_path, active or []), (session.finished_path, finished or [])):
            body = ([HEADER_LINE] if header else []) + list(lines)
            path.write_text("".join(line + "\n" for line in body), encoding="utf-8")

    return _write
