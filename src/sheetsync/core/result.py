"""
Result envelope for consistent success/failure handling.

File IO against a shared folder fails routinely (a peer seat or a spreadsheet
holds the file open). Those failures are expected, so the synchronizer and
the dataset return ``Ok[T]`` or ``Err[T]`` instead of raising, and the caller
decides whether to keep its last good state, warn, or retry.

Manifesto:
    - **Explicit over Implicit:** No hidden exceptions that callers might miss
    - **Keep last good state:** An ``Err`` from ``load()`` leaves the dataset alone
    - **Composition:** ``map`` transforms a success without nested try/except

Examples:
    >>> from sheetsync.core.result import Ok, Err
    >>> Ok(10).map(lambda x: x * 2).unwrap()
    20
    >>> Err(ValueError("oops")).map(lambda x: x * 2).is_err()
    True

    Pattern matching:

    >>> match sync.read():
    ...     case Ok(lines):
    ...         parse(lines)
    ...     case Err(error):
    ...         log.warning("read_failed", error=str(error))

Tags:
    result-pattern, error-handling, sheetsync
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, TypeVar


T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Successful result carrying a value."""

    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        """Get the value."""
        return self.value

    def map(self, f: Callable[[T], U]) -> Result[U]:
        """Transform the value."""
        return Ok(f(self.value))

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err(Generic[T]):
    """Failed result carrying the error."""

    error: Exception

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> T:
        """Raise the error. Use only when you're sure it's Ok."""
        raise self.error

    def map(self, f: Callable[[T], U]) -> Result[U]:
        """No-op for Err."""
        return Err(self.error)

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


Result = Ok[T] | Err[T]


__all__ = ["Ok", "Err", "Result"]
