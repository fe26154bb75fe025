from __future__ import annotations

import operator
from dataclasses import dataclass
from typing import Any, Callable, Dict, Tuple

import numpy as np

from rangetree.errors import InvalidInputError

# Integer codes understood by the numba kernels.
KERNEL_SUM = 0
KERNEL_PROD = 1
KERNEL_MIN = 2
KERNEL_MAX = 3


@dataclass(frozen=True)
class CombineOperation:
    """Associative binary operation plus its identity element.

    ``identity`` is the value returned for a sub-range that does not overlap
    the query. Operations with a ``kernel_code`` can run on the numba engine.
    """

    name: str
    func: Callable[[Any, Any], Any]
    identity: Any
    kernel_code: int | None = None

    def __call__(self, left: Any, right: Any) -> Any:
        return self.func(left, right)

    def identity_for(self, dtype: Any) -> Any:
        """Return the identity expressed in ``dtype``."""

        dtype = np.dtype(dtype)
        if dtype.kind in {"i", "u"} and self.kernel_code in {KERNEL_MIN, KERNEL_MAX}:
            info = np.iinfo(dtype)
            return dtype.type(info.max if self.kernel_code == KERNEL_MIN else info.min)
        if dtype.kind == "O":
            return self.identity
        return dtype.type(self.identity)


SUM = CombineOperation("sum", operator.add, 0, KERNEL_SUM)
PROD = CombineOperation("prod", operator.mul, 1, KERNEL_PROD)
MIN = CombineOperation("min", min, float("inf"), KERNEL_MIN)
MAX = CombineOperation("max", max, float("-inf"), KERNEL_MAX)

_REGISTRY: Dict[str, CombineOperation] = {op.name: op for op in (SUM, PROD, MIN, MAX)}


def available_operations() -> Tuple[str, ...]:
    return tuple(sorted(_REGISTRY))


def get_operation(operation: str | CombineOperation) -> CombineOperation:
    """Resolve ``operation`` to a registered :class:`CombineOperation`."""

    if isinstance(operation, CombineOperation):
        return operation
    key = str(operation).strip().lower()
    try:
        return _REGISTRY[key]
    except KeyError:
        raise InvalidInputError(
            f"Unknown operation '{operation}'. Expected one of {available_operations()}."
        ) from None


def custom_operation(
    func: Callable[[Any, Any], Any],
    identity: Any,
    *,
    name: str | None = None,
) -> CombineOperation:
    """Wrap an associative callable so it can drive a range tree."""

    if not callable(func):
        raise InvalidInputError("Combine function must be callable.")
    label = name or getattr(func, "__name__", "custom")
    return CombineOperation(label, func, identity, None)


__all__ = [
    "CombineOperation",
    "SUM",
    "PROD",
    "MIN",
    "MAX",
    "KERNEL_SUM",
    "KERNEL_PROD",
    "KERNEL_MIN",
    "KERNEL_MAX",
    "available_operations",
    "get_operation",
    "custom_operation",
]
