"""
Structured error types for sheetsync.

Provides a small hierarchy of typed errors carrying the metadata the sync
engine needs for retry decisions and for reporting failures to the UI layer.

Instead of generic exceptions that lose context, SheetSyncError and its
subclasses carry:
- **Category:** What kind of error (storage, validation, config, ...)
- **Retryable:** Whether the operation can be attempted again
- **Context:** Branch, file path, record id, attempt count, custom fields
- **Cause:** Chained underlying exception for root cause analysis

Manifesto:
    - **Typed Error Hierarchy:** Different error types for different failures
    - **Explicit Retry Semantics:** Each error knows if it's retryable
    - **Rich Context:** Errors carry metadata for logging
    - **Error Chaining:** Preserve original exceptions while adding context

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────┐
        │                     SheetSyncError                        │
        │          (category, retryable, context, cause)            │
        ├──────────────────────────────────────────────────────────┤
        │                                                           │
        │  TransientIOError     SaveError        ConfigurationError │
        │  (STORAGE, retry)     (STORAGE, retry) (CONFIG)           │
        │                                                           │
        │  ValidationError                                          │
        │  (VALIDATION)                                             │
        │       │                                                   │
        │  RecordNotFoundError  InvalidEditError  ReorderError      │
        └──────────────────────────────────────────────────────────┘

    Malformed lines and unparseable dates never surface as errors: the codec
    absorbs them by defaulting fields, so there are no classes for them.

Examples:
    >>> error = TransientIOError("File in use")
    >>> error.retryable
    True
    >>> error.with_context(path="/share/headoffice.csv", attempts=5)
    TransientIOError('File in use', category=STORAGE)
    >>> error.context.attempts
    5

Tags:
    error-handling, exception-hierarchy, retry-logic, error-context, sheetsync
"""

from __future__ import annotations

import errno
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """
    Standard error categories for classification and reporting.

    Attributes:
        STORAGE: Shared folder, file lock, disk errors
        PARSE: Data parsing, format errors
        VALIDATION: Bad record reference, field name, reorder target
        CONFIG: Data folder missing and not creatable
        INTERNAL: Bugs, unexpected state
    """

    STORAGE = "STORAGE"
    PARSE = "PARSE"
    VALIDATION = "VALIDATION"
    CONFIG = "CONFIG"
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """
    Structured metadata context for errors.

    The `to_dict()` method serializes all non-None fields for logging.

    Attributes:
        branch: Branch whose dataset was being read or written
        path: File that was being accessed
        record_id: Record the operation targeted
        attempts: How many IO attempts were made before giving up
        metadata: Additional key-value pairs
    """

    branch: str | None = None
    path: str | None = None
    record_id: str | None = None
    attempts: int | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["branch", "path", "record_id", "attempts"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class SheetSyncError(Exception):
    """
    Base exception for all sheetsync errors.

    Subclasses set `default_category` and `default_retryable` class attributes
    to provide sensible defaults for their domain.

    Examples:
        >>> error = SheetSyncError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.retryable
        False
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> SheetSyncError:
        """
        Add context to this error (fluent API).

        Usage:
            raise SaveError("Save failed").with_context(
                branch="headoffice",
                path="/share/headoffice.csv",
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# STORAGE ERRORS (Retryable)
# =============================================================================


class TransientIOError(SheetSyncError):
    """
    The file is locked or in use by another process.

    Raised inside the synchronizer's retry loop. Once the retries are used up
    it is handed to the caller inside an ``Err`` so the last good in-memory
    state can be kept.
    """

    default_category = ErrorCategory.STORAGE
    default_retryable = True


class SaveError(SheetSyncError):
    """Persisting a partition failed after all retries. Local edits are kept."""

    default_category = ErrorCategory.STORAGE
    default_retryable = True


# =============================================================================
# CONFIG ERRORS
# =============================================================================


class ConfigurationError(SheetSyncError):
    """The data folder is missing and could not be created."""

    default_category = ErrorCategory.CONFIG
    default_retryable = False


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(SheetSyncError):
    """
    Caller supplied an invalid reference or value.

    Never retryable - the call must be fixed.
    """

    default_category = ErrorCategory.VALIDATION
    default_retryable = False


class RecordNotFoundError(ValidationError):
    """No record with the given id exists in either partition."""


class InvalidEditError(ValidationError):
    """Unknown field name, or an edit aimed at a separator."""


class ReorderError(ValidationError):
    """Source or target is not a reorderable Active record."""


# =============================================================================
# HELPERS
# =============================================================================

# ERROR_SHARING_VIOLATION / ERROR_LOCK_VIOLATION
_WINDOWS_SHARING_ERRORS = frozenset({32, 33})


def is_sharing_violation(exc: BaseException) -> bool:
    """True when ``exc`` means another process holds the file, so a retry may help."""
    if isinstance(exc, (PermissionError, BlockingIOError)):
        return True
    if isinstance(exc, OSError):
        if getattr(exc, "winerror", None) in _WINDOWS_SHARING_ERRORS:
            return True
        return exc.errno in (errno.EACCES, errno.EAGAIN, errno.EBUSY, errno.ETXTBSY)
    return False


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "SheetSyncError",
    "TransientIOError",
    "SaveError",
    "ConfigurationError",
    "ValidationError",
    "RecordNotFoundError",
    "InvalidEditError",
    "ReorderError",
    "is_sharing_violation",
]
