from __future__ import annotations

import numbers
import operator
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, Sequence, Tuple

import numpy as np

from rangetree import config as rt_config
from rangetree.algo import _range_tree_numba as numba_kernels
from rangetree.core.operations import CombineOperation, get_operation
from rangetree.errors import InvalidInputError, OutOfRangeError, RangeTreeError
from rangetree.logging import get_logger

LOGGER = get_logger("core.tree")

_ENGINES = ("python", "numba")

# Errors a combine function may raise on values it cannot handle.
_COMBINE_ERRORS = (TypeError, ValueError, ArithmeticError)


@dataclass(frozen=True)
class TreeStats:
    num_queries: int = 0
    num_updates: int = 0


def _as_index(value: Any, label: str) -> int:
    if isinstance(value, (bool, np.bool_)):
        raise InvalidInputError(f"{label} must be an integer, got {value!r}.")
    try:
        return operator.index(value)
    except TypeError:
        raise InvalidInputError(f"{label} must be an integer, got {value!r}.") from None


def _coerce_values(values: Any, dtype: Any) -> np.ndarray:
    try:
        array = np.array(values, dtype=dtype)
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(f"Cannot build a range tree from {values!r}: {exc}") from exc
    if array.ndim != 1:
        raise InvalidInputError(f"Expected a one-dimensional sequence, got shape {array.shape}.")
    if array.size == 0:
        raise InvalidInputError("Cannot build a range tree over an empty sequence.")
    if array.dtype.kind == "b":
        array = array.astype(np.int64)
    if array.dtype.kind not in {"i", "u", "f", "c", "O"}:
        raise InvalidInputError(f"Unsupported element dtype '{array.dtype}'.")
    return array


class RangeQueryTree:
    """Segment tree over a fixed-length array with an associative combine.

    Storage is one flat array of ``4 * n`` slots using 1-based heap indexing:
    slot ``v`` has children ``2v`` and ``2v + 1`` and slot 1 covers the whole
    index range. Each internal slot holds the combination of its children.

    Parameters
    ----------
    values:
        Non-empty one-dimensional sequence of numbers. It is copied.
    operation:
        Name of a registered operation (``"sum"``, ``"min"``, ``"max"``,
        ``"prod"``) or a :class:`CombineOperation`. Defaults to the runtime
        configuration's ``default_operation``.
    dtype:
        Element dtype; inferred from ``values`` when omitted.
    engine:
        ``"python"`` or ``"numba"``; defaults to the runtime configuration.
    """

    def __init__(
        self,
        values: Sequence[Any] | np.ndarray,
        operation: str | CombineOperation | None = None,
        *,
        dtype: Any = None,
        engine: str | None = None,
    ) -> None:
        runtime = rt_config.runtime_config()
        self._operation = get_operation(operation if operation is not None else runtime.default_operation)
        source = _coerce_values(values, dtype)
        self._size = int(source.shape[0])
        self._dtype = source.dtype
        self._identity = self._operation.identity_for(self._dtype)
        self._engine = self._resolve_engine(engine or runtime.engine)
        self._stats = TreeStats()

        if self._dtype.kind == "O":
            self._tree = np.empty(4 * self._size, dtype=object)
            self._tree.fill(self._identity)
        else:
            self._tree = np.full(4 * self._size, self._identity, dtype=self._dtype)

        if self._engine == "numba":
            numba_kernels.build_kernel(source, self._tree, self._operation.kernel_code)
        else:
            try:
                self._build(source, 1, 0, self._size - 1)
            except _COMBINE_ERRORS as exc:
                raise InvalidInputError(
                    f"Operation '{self._operation.name}' cannot combine the given values: {exc}"
                ) from exc

        LOGGER.debug(
            "Built range tree over %d values (operation=%s, engine=%s, dtype=%s).",
            self._size,
            self._operation.name,
            self._engine,
            self._dtype,
        )
        if runtime.validate_on_build:
            self.validate()

    @classmethod
    def build(
        cls,
        values: Sequence[Any] | np.ndarray,
        operation: str | CombineOperation | None = None,
        *,
        dtype: Any = None,
        engine: str | None = None,
    ) -> "RangeQueryTree":
        return cls(values, operation, dtype=dtype, engine=engine)

    def _resolve_engine(self, requested: str) -> str:
        engine = requested.strip().lower()
        if engine not in _ENGINES:
            raise InvalidInputError(f"Unsupported engine '{requested}'. Expected one of {_ENGINES}.")
        if engine != "numba":
            return engine
        if not numba_kernels.NUMBA_RANGE_TREE_AVAILABLE:
            LOGGER.debug("Numba engine requested but numba is unavailable; using python.")
            return "python"
        # Compiled arithmetic widens narrow integers, so only 64-bit ints keep wraparound parity.
        native = self._dtype.kind == "f" or (self._dtype.kind in {"i", "u"} and self._dtype.itemsize == 8)
        if self._operation.kernel_code is None or not native:
            LOGGER.debug(
                "Numba engine cannot run operation=%s dtype=%s; using python.",
                self._operation.name,
                self._dtype,
            )
            return "python"
        return engine

    # ------------------------------------------------------------------
    # Recursive kernels over the flat storage
    # ------------------------------------------------------------------

    def _build(self, source: np.ndarray, v: int, tl: int, tr: int) -> None:
        if tl == tr:
            self._tree[v] = source[tl]
            return
        tm = tl + (tr - tl) // 2
        self._build(source, 2 * v, tl, tm)
        self._build(source, 2 * v + 1, tm + 1, tr)
        self._tree[v] = self._operation(self._tree[2 * v], self._tree[2 * v + 1])

    def _query(self, v: int, tl: int, tr: int, l: int, r: int) -> Any:
        if l > r:
            return self._identity
        if l == tl and r == tr:
            return self._tree[v]
        tm = tl + (tr - tl) // 2
        return self._operation(
            self._query(2 * v, tl, tm, l, min(r, tm)),
            self._query(2 * v + 1, tm + 1, tr, max(l, tm + 1), r),
        )

    def _update(self, tree: np.ndarray, v: int, tl: int, tr: int, pos: int, value: Any) -> None:
        if tl == tr:
            tree[v] = value
            return
        tm = tl + (tr - tl) // 2
        if pos <= tm:
            self._update(tree, 2 * v, tl, tm, pos, value)
        else:
            self._update(tree, 2 * v + 1, tm + 1, tr, pos, value)
        tree[v] = self._operation(tree[2 * v], tree[2 * v + 1])

    def _path_to(self, pos: int) -> list[int]:
        """Slots visited from the root down to the leaf holding ``pos``."""

        path = [1]
        v, tl, tr = 1, 0, self._size - 1
        while tl != tr:
            tm = tl + (tr - tl) // 2
            if pos <= tm:
                v, tr = 2 * v, tm
            else:
                v, tl = 2 * v + 1, tm + 1
            path.append(v)
        return path

    def _apply(self, tree: np.ndarray, index: int, stored: Any) -> None:
        if self._engine == "numba":
            numba_kernels.update_kernel(tree, self._size, index, stored, self._operation.kernel_code)
        else:
            self._update(tree, 1, 0, self._size - 1, index, stored)

    # ------------------------------------------------------------------
    # Validation helpers
    # ------------------------------------------------------------------

    def _check_position(self, pos: Any, label: str = "pos") -> int:
        index = _as_index(pos, label)
        if not 0 <= index < self._size:
            raise OutOfRangeError(f"{label}={index} outside [0, {self._size - 1}].")
        return index

    def _check_range(self, left: Any, right: Any) -> Tuple[int, int]:
        l = self._check_position(left, "left")
        r = self._check_position(right, "right")
        if l > r:
            raise OutOfRangeError(f"left={l} is greater than right={r}.")
        return l, r

    def _coerce_value(self, value: Any) -> Any:
        if self._dtype.kind == "O":
            return value
        # numpy casts None and numeric strings silently; only numbers are stored.
        if not isinstance(value, (numbers.Number, np.number, np.bool_)):
            raise InvalidInputError(f"Cannot store {value!r} as {self._dtype}: not a number.")
        try:
            return np.array(value, dtype=self._dtype).item()
        except (TypeError, ValueError, OverflowError) as exc:
            raise InvalidInputError(f"Cannot store {value!r} as {self._dtype}: {exc}") from exc

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def size(self) -> int:
        return self._size

    @property
    def dtype(self) -> np.dtype:
        return self._dtype

    @property
    def operation(self) -> CombineOperation:
        return self._operation

    @property
    def engine(self) -> str:
        return self._engine

    @property
    def stats(self) -> TreeStats:
        return self._stats

    @property
    def storage(self) -> np.ndarray:
        """Read-only view of the flat slot array."""

        view = self._tree.view()
        view.flags.writeable = False
        return view

    def __len__(self) -> int:
        return self._size

    def __getitem__(self, pos: Any) -> Any:
        return self.query(pos, pos)

    def __setitem__(self, pos: Any, value: Any) -> None:
        self.update(pos, value)

    def __repr__(self) -> str:
        return (
            f"RangeQueryTree(size={self._size}, operation={self._operation.name!r}, "
            f"dtype={self._dtype}, engine={self._engine!r})"
        )

    def query(self, left: Any, right: Any) -> Any:
        """Return the combined aggregate of the elements in ``[left, right]``."""

        l, r = self._check_range(left, right)
        if self._engine == "numba":
            result = numba_kernels.query_kernel(
                self._tree, self._size, l, r, self._operation.kernel_code, self._identity
            )
        else:
            result = self._query(1, 0, self._size - 1, l, r)
        self._stats = replace(self._stats, num_queries=self._stats.num_queries + 1)
        return result

    def query_many(self, lefts: Iterable[Any], rights: Iterable[Any]) -> np.ndarray:
        """Answer a batch of inclusive range queries.

        Every pair is validated before any query runs.
        """

        lefts = list(lefts)
        rights = list(rights)
        if len(lefts) != len(rights):
            raise InvalidInputError(
                f"Got {len(lefts)} left bounds but {len(rights)} right bounds."
            )
        bounds = [self._check_range(l, r) for l, r in zip(lefts, rights)]
        out = np.empty(len(bounds), dtype=self._dtype)
        if self._engine == "numba" and bounds:
            left_arr = np.array([b[0] for b in bounds], dtype=np.int64)
            right_arr = np.array([b[1] for b in bounds], dtype=np.int64)
            numba_kernels.query_many_kernel(
                self._tree,
                self._size,
                left_arr,
                right_arr,
                self._operation.kernel_code,
                self._identity,
                out,
            )
        else:
            for idx, (l, r) in enumerate(bounds):
                out[idx] = self._query(1, 0, self._size - 1, l, r)
        self._stats = replace(self._stats, num_queries=self._stats.num_queries + len(bounds))
        return out

    def total(self) -> Any:
        """Aggregate over the whole array (the root slot)."""

        return self._tree[1]

    def update(self, pos: Any, value: Any) -> None:
        """Overwrite the element at ``pos`` and refresh its ancestors."""

        index = self._check_position(pos)
        stored = self._coerce_value(value)
        path = self._path_to(index)
        saved = self._tree[path].copy()
        try:
            self._apply(self._tree, index, stored)
        except _COMBINE_ERRORS as exc:
            self._tree[path] = saved
            raise InvalidInputError(
                f"Operation '{self._operation.name}' cannot combine {value!r}: {exc}"
            ) from exc
        self._stats = replace(self._stats, num_updates=self._stats.num_updates + 1)

    def update_many(self, positions: Iterable[Any], values: Iterable[Any]) -> None:
        """Apply point updates in order; storage changes only if every update succeeds."""

        positions = list(positions)
        values = list(values)
        if len(positions) != len(values):
            raise InvalidInputError(
                f"Got {len(positions)} positions but {len(values)} values."
            )
        checked = [
            (self._check_position(pos), self._coerce_value(value))
            for pos, value in zip(positions, values)
        ]
        working = self._tree.copy()
        try:
            for index, stored in checked:
                self._apply(working, index, stored)
        except _COMBINE_ERRORS as exc:
            raise InvalidInputError(
                f"Operation '{self._operation.name}' rejected a batched update: {exc}"
            ) from exc
        self._tree = working
        self._stats = replace(self._stats, num_updates=self._stats.num_updates + len(checked))

    def values(self) -> np.ndarray:
        """Return the current leaf values in index order."""

        out = np.empty(self._size, dtype=self._dtype)
        self._collect_leaves(1, 0, self._size - 1, out)
        return out

    def _collect_leaves(self, v: int, tl: int, tr: int, out: np.ndarray) -> None:
        if tl == tr:
            out[tl] = self._tree[v]
            return
        tm = tl + (tr - tl) // 2
        self._collect_leaves(2 * v, tl, tm, out)
        self._collect_leaves(2 * v + 1, tm + 1, tr, out)

    def validate(self) -> None:
        """Check that every internal slot combines its two children."""

        stack = [(1, 0, self._size - 1)]
        while stack:
            v, tl, tr = stack.pop()
            if tl == tr:
                continue
            expected = self._operation(self._tree[2 * v], self._tree[2 * v + 1])
            if not self._equal(self._tree[v], expected):
                raise RangeTreeError(
                    f"Slot {v} covering [{tl}, {tr}] holds {self._tree[v]!r}, expected {expected!r}."
                )
            tm = tl + (tr - tl) // 2
            stack.append((2 * v, tl, tm))
            stack.append((2 * v + 1, tm + 1, tr))
        LOGGER.debug("Validated range tree over %d values.", self._size)

    def _equal(self, stored: Any, expected: Any) -> bool:
        if self._dtype.kind in {"f", "c"}:
            return bool(np.isclose(stored, expected, equal_nan=True))
        return bool(stored == expected)

    def materialise(self) -> Dict[str, Any]:
        """Return a plain snapshot of the tree state."""

        return {
            "operation": self._operation.name,
            "engine": self._engine,
            "dtype": str(self._dtype),
            "size": self._size,
            "values": self.values(),
            "total": self.total(),
            "stats": {
                "num_queries": self._stats.num_queries,
                "num_updates": self._stats.num_updates,
            },
        }


__all__ = ["RangeQueryTree", "TreeStats"]
