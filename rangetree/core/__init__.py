"""Core data structures for the range-query tree."""

from .operations import (
    MAX,
    MIN,
    PROD,
    SUM,
    CombineOperation,
    available_operations,
    custom_operation,
    get_operation,
)
from .tree import RangeQueryTree, TreeStats

__all__ = [
    "CombineOperation",
    "SUM",
    "PROD",
    "MIN",
    "MAX",
    "available_operations",
    "custom_operation",
    "get_operation",
    "RangeQueryTree",
    "TreeStats",
]
