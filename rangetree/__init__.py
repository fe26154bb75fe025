"""Rangetree: array-backed segment tree for range aggregates.

Quick Start
-----------
>>> from rangetree import RangeQueryTree
>>>
>>> tree = RangeQueryTree([1, 3, 5, 7, 9, 11])
>>> int(tree.query(1, 4))
24
>>> tree.update(2, 100)
>>> int(tree.query(0, 5))
131
>>>
>>> # Any associative operation with an identity element
>>> lows = RangeQueryTree([4, 2, 8], operation="min")

Classes
-------
RangeQueryTree : Segment tree supporting point updates and range queries.
CombineOperation : Associative operation plus identity driving a tree.
"""

from importlib.metadata import version as _pkg_version

try:
    __version__ = _pkg_version("rangetree")
except Exception:  # pragma: no cover - best effort during local development
    __version__ = "0.1.0"

from .core import (
    MAX,
    MIN,
    PROD,
    SUM,
    CombineOperation,
    RangeQueryTree,
    TreeStats,
    available_operations,
    custom_operation,
    get_operation,
)
from .errors import InvalidInputError, OutOfRangeError, RangeTreeError

__all__ = [
    "__version__",
    "RangeQueryTree",
    "TreeStats",
    "CombineOperation",
    "SUM",
    "PROD",
    "MIN",
    "MAX",
    "available_operations",
    "custom_operation",
    "get_operation",
    "RangeTreeError",
    "InvalidInputError",
    "OutOfRangeError",
]
