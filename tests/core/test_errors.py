"""Tests for sheetsync.core.errors module."""

import errno

import pytest

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
    is_sharing_violation,
)


class TestErrorContext:
    """Test ErrorContext dataclass."""

    def test_empty_context_serializes_to_empty_dict(self):
        assert ErrorContext().to_dict() == {}

    def test_to_dict_skips_none_and_merges_metadata(self):
        ctx = ErrorContext(branch="headoffice", attempts=5, metadata={"failed": ["active"]})
        assert ctx.to_dict() == {"branch": "headoffice", "attempts": 5, "failed": ["active"]}


class TestSheetSyncError:
    """Test the base error."""

    def test_defaults(self):
        error = SheetSyncError("boom")
        assert error.message == "boom"
        assert error.category == ErrorCategory.INTERNAL
        assert error.retryable is False
        assert error.cause is None

    def test_with_context_sets_known_fields_and_metadata(self):
        error = SheetSyncError("boom").with_context(path="/share/a.csv", attempts=3, extra="x")
        assert error.context.path == "/share/a.csv"
        assert error.context.attempts == 3
        assert error.context.metadata == {"extra": "x"}

    def test_with_context_returns_same_instance(self):
        error = TransientIOError("locked")
        assert error.with_context(branch="b") is error

    def test_cause_is_chained(self):
        cause = PermissionError("denied")
        error = SaveError("save failed", cause=cause)
        assert error.__cause__ is cause
        assert error.to_dict()["cause"] == "denied"

    def test_to_dict(self):
        error = TransientIOError("locked").with_context(path="/share/a.csv")
        data = error.to_dict()
        assert data["error_type"] == "TransientIOError"
        assert data["category"] == "STORAGE"
        assert data["retryable"] is True
        assert data["context"] == {"path": "/share/a.csv"}

    def test_repr(self):
        assert repr(SaveError("x")) == "SaveError('x', category=STORAGE)"


class TestHierarchy:
    """Categories and retryability of the concrete errors."""

    @pytest.mark.parametrize(
        "cls, category, retryable",
        [
            (TransientIOError, ErrorCategory.STORAGE, True),
            (SaveError, ErrorCategory.STORAGE, True),
            (ConfigurationError, ErrorCategory.CONFIG, False),
            (ValidationError, ErrorCategory.VALIDATION, False),
        ],
    )
    def test_defaults(self, cls, category, retryable):
        error = cls("x")
        assert error.category == category
        assert error.retryable is retryable

    @pytest.mark.parametrize("cls", [RecordNotFoundError, InvalidEditError, ReorderError])
    def test_validation_subclasses(self, cls):
        error = cls("x")
        assert isinstance(error, ValidationError)
        assert isinstance(error, SheetSyncError)
        assert error.retryable is False

    def test_retryable_override(self):
        assert TransientIOError("x", retryable=False).retryable is False


class TestSharingViolation:
    """Which OS errors count as 'file in use'."""

    def test_permission_error(self):
        assert is_sharing_violation(PermissionError(errno.EACCES, "denied"))

    def test_blocking_io_error(self):
        assert is_sharing_violation(BlockingIOError(errno.EAGAIN, "would block"))

    def test_windows_sharing_violation(self):
        exc = OSError(errno.EINVAL, "in use")
        exc.winerror = 32
        assert is_sharing_violation(exc)

    def test_busy(self):
        assert is_sharing_violation(OSError(errno.EBUSY, "busy"))

    def test_not_found_is_not_sharing(self):
        assert not is_sharing_violation(FileNotFoundError(errno.ENOENT, "missing"))

    def test_non_os_error(self):
        assert not is_sharing_violation(ValueError("x"))
