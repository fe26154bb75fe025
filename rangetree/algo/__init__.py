"""Compiled kernels backing the optional numba engine."""

from ._range_tree_numba import NUMBA_RANGE_TREE_AVAILABLE

__all__ = ["NUMBA_RANGE_TREE_AVAILABLE"]
