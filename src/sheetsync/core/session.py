"""Explicit session value.

Created at login from the (username, branch) pair the authentication
component supplies, passed by reference into the dataset and synchronizers,
and discarded at logout. Nothing in sheetsync reads the current user or
branch from module-level state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from sheetsync.core.settings import SheetSyncSettings, get_settings


@dataclass(frozen=True)
class Session:
    """Who is editing which branch, with which settings."""

    username: str
    branch: str
    settings: SheetSyncSettings = field(default_factory=get_settings)

    def __post_init__(self) -> None:
        if not self.branch.strip():
            raise ValueError("branch must not be empty")

    @property
    def data_dir(self) -> Path:
        return Path(self.settings.data_dir)

    @property
    def active_path(self) -> Path:
        """File backing the Active partition, e.g. ``headoffice.csv``."""
        return self.data_dir / self.settings.active_file_pattern.format(branch=self.branch)

    @property
    def finished_path(self) -> Path:
        """File backing the Finished partition, e.g. ``headofficefinished.csv``."""
        return self.data_dir / self.settings.finished_file_pattern.format(branch=self.branch)


__all__ = ["Session"]
