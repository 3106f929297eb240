"""Settings for sheetsync.

One validated settings object covers where the branch files live, how hard
the synchronizer retries a locked file, and the debounce/settle windows.
Values come from ``SHEETSYNC_*`` environment variables or a ``.env`` file.

Examples:
    >>> import os
    >>> os.environ["SHEETSYNC_DATA_DIR"] = "/mnt/share/DesignData"
    >>> get_settings(_force_reload=True).data_dir
    PosixPath('/mnt/share/DesignData')

Tags:
    settings, configuration, pydantic, environment, sheetsync
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SheetSyncSettings(BaseSettings):
    """Sheetsync configuration.

    Fields
    ──────
    data_dir               : Shared folder holding the branch files
    active_file_pattern    : File name for the Active partition (``{branch}`` expanded)
    finished_file_pattern  : File name for the Finished partition
    delimiter              : Field delimiter used when writing
    retry_count            : Attempts per read/replace before giving up
    retry_delay_seconds    : Fixed delay between attempts
    settle_seconds         : How long a write keeps its suppression token after finishing
    watch_poll_seconds     : Poll interval of the change watcher
    watch_debounce_seconds : Quiet window collapsing change bursts into one reload
    autosave_delay_seconds : Quiet window collapsing edits into one save
    reload_after_save      : Reload both files after every autosave
    """

    model_config = SettingsConfigDict(
        env_prefix="SHEETSYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Storage ──────────────────────────────────────────────────
    data_dir: Path = Field(default=Path("data"), description="Shared data folder")
    active_file_pattern: str = Field(default="{branch}.csv")
    finished_file_pattern: str = Field(default="{branch}finished.csv")
    delimiter: str = Field(default=",", min_length=1, max_length=1)
    encoding: str = Field(default="utf-8")

    # ── Retry ────────────────────────────────────────────────────
    retry_count: int = Field(default=5, ge=1)
    retry_delay_seconds: float = Field(default=0.2, ge=0)

    # ── Watch / debounce ─────────────────────────────────────────
    settle_seconds: float = Field(default=0.5, ge=0)
    watch_poll_seconds: float = Field(default=0.25, gt=0)
    watch_debounce_seconds: float = Field(default=0.5, ge=0)
    autosave_delay_seconds: float = Field(default=3.0, ge=0)
    reload_after_save: bool = Field(default=True)

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="console")

    @field_validator("active_file_pattern", "finished_file_pattern")
    @classmethod
    def _pattern_mentions_branch(cls, value: str) -> str:
        if "{branch}" not in value:
            raise ValueError("file pattern must contain '{branch}'")
        return value

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()


_settings_cache: dict[str, SheetSyncSettings] = {}


def get_settings(*, _force_reload: bool = False) -> SheetSyncSettings:
    """Load, validate, and cache a :class:`SheetSyncSettings` instance."""
    if not _force_reload and "default" in _settings_cache:
        return _settings_cache["default"]
    settings = SheetSyncSettings()
    _settings_cache["default"] = settings
    return settings


def clear_settings_cache() -> None:
    """Drop the cached settings (tests, or after changing the environment)."""
    _settings_cache.clear()


__all__ = ["SheetSyncSettings", "get_settings", "clear_settings_cache"]
