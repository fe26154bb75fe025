"""Exception hierarchy shared by the range tree and its callers."""

from __future__ import annotations


class RangeTreeError(Exception):
    """Base class for every error raised by :mod:`rangetree`."""


class InvalidInputError(RangeTreeError, ValueError):
    """Raised for inputs the tree cannot be built from or updated with."""


class OutOfRangeError(RangeTreeError, IndexError):
    """Raised when an index or range falls outside ``[0, n - 1]``."""


__all__ = ["RangeTreeError", "InvalidInputError", "OutOfRangeError"]
