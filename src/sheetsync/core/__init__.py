"""
Core primitives shared by every sheetsync module: errors, result envelope,
logging, settings, hashing and the session value.
"""

from sheetsync.core.errors import (
    ConfigurationError,
    ErrorCategory,
    ErrorContext,
    InvalidEditError,
    RecordNotFoundError,
    ReorderError,
    SaveError,
    SheetSyncError,
    TransientIOError,
    ValidationError,
)
from sheetsync.core.result import Err, Ok, Result
from sheetsync.core.session import Session
from sheetsync.core.settings import SheetSyncSettings, get_settings

__all__ = [
    "ConfigurationError",
    "ErrorCategory",
    "ErrorContext",
    "InvalidEditError",
    "RecordNotFoundError",
    "ReorderError",
    "SaveError",
    "SheetSyncError",
    "TransientIOError",
    "ValidationError",
    "Err",
    "Ok",
    "Result",
    "Session",
    "SheetSyncSettings",
    "get_settings",
]
