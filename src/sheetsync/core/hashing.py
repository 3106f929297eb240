"""
Deterministic hashing for record identity.

The branch files carry no key column, so a record loaded from disk is
identified by where it came from and what it contained: the branch, the
partition file, its formatted line, and how many identical lines preceded
it. The same file read twice yields the same ids.

Examples:
    >>> compute_hash("a", "b") == compute_hash("a", "b")
    True
    >>> compute_hash("a", "b") != compute_hash("b", "a")
    True
    >>> len(compute_hash("test", length=16))
    16

Tags:
    hashing, identity, sheetsync
"""

from __future__ import annotations

import hashlib


def compute_hash(*values: object, length: int = 32) -> str:
    """
    Compute a deterministic hash from values.

    Args:
        *values: Values to hash (converted to strings)
        length: Hex digest length (default 32 = 128 bits)

    Returns:
        Hex string of specified length
    """
    content = "|".join(str(v) for v in values)
    return hashlib.sha256(content.encode()).hexdigest()[:length]


def compute_record_id(branch: str, source: str, line: str, occurrence: int) -> str:
    """Identity of a record parsed from ``source`` (the partition file name).

    ``occurrence`` counts earlier identical lines in the same file so that
    duplicate rows still get distinct ids.
    """
    return compute_hash(branch, source, line, occurrence)


__all__ = ["compute_hash", "compute_record_id"]
