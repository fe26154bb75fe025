from __future__ import annotations

import numpy as np

try:  # pragma: no cover - optional dependency
    from numba import njit  # type: ignore

    NUMBA_RANGE_TREE_AVAILABLE = True
except Exception:  # pragma: no cover - when numba unavailable
    njit = None  # type: ignore
    NUMBA_RANGE_TREE_AVAILABLE = False

# Explicit stacks replace recursion; depth is bounded by log2(n) + 1.
_STACK_CAPACITY = 130


if NUMBA_RANGE_TREE_AVAILABLE:

    @njit(cache=True)
    def _combine(code: int, left, right):
        if code == 0:
            return left + right
        if code == 1:
            return left * right
        if code == 2:
            return left if left <= right else right
        return left if left >= right else right

    @njit(cache=True)
    def build_kernel(values: np.ndarray, tree: np.ndarray, code: int) -> None:
        n = values.shape[0]
        total_nodes = 2 * n
        order_v = np.empty(total_nodes, dtype=np.int64)
        order_tl = np.empty(total_nodes, dtype=np.int64)
        order_tr = np.empty(total_nodes, dtype=np.int64)
        stack_v = np.empty(_STACK_CAPACITY, dtype=np.int64)
        stack_tl = np.empty(_STACK_CAPACITY, dtype=np.int64)
        stack_tr = np.empty(_STACK_CAPACITY, dtype=np.int64)

        stack_v[0] = 1
        stack_tl[0] = 0
        stack_tr[0] = n - 1
        top = 1
        count = 0
        while top > 0:
            top -= 1
            v = stack_v[top]
            tl = stack_tl[top]
            tr = stack_tr[top]
            order_v[count] = v
            order_tl[count] = tl
            order_tr[count] = tr
            count += 1
            if tl != tr:
                tm = tl + (tr - tl) // 2
                stack_v[top] = 2 * v + 1
                stack_tl[top] = tm + 1
                stack_tr[top] = tr
                stack_v[top + 1] = 2 * v
                stack_tl[top + 1] = tl
                stack_tr[top + 1] = tm
                top += 2

        # Reverse pre-order visits children before their parent.
        for idx in range(count - 1, -1, -1):
            v = order_v[idx]
            if order_tl[idx] == order_tr[idx]:
                tree[v] = values[order_tl[idx]]
            else:
                tree[v] = _combine(code, tree[2 * v], tree[2 * v + 1])

    @njit(cache=True)
    def query_kernel(tree: np.ndarray, n: int, left: int, right: int, code: int, identity):
        stack = np.empty((_STACK_CAPACITY, 5), dtype=np.int64)
        stack[0, 0] = 1
        stack[0, 1] = 0
        stack[0, 2] = n - 1
        stack[0, 3] = left
        stack[0, 4] = right
        top = 1
        result = identity
        while top > 0:
            top -= 1
            v = stack[top, 0]
            tl = stack[top, 1]
            tr = stack[top, 2]
            l = stack[top, 3]
            r = stack[top, 4]
            if l > r:
                continue
            if l == tl and r == tr:
                result = _combine(code, result, tree[v])
                continue
            tm = tl + (tr - tl) // 2
            stack[top, 0] = 2 * v + 1
            stack[top, 1] = tm + 1
            stack[top, 2] = tr
            stack[top, 3] = max(l, tm + 1)
            stack[top, 4] = r
            stack[top + 1, 0] = 2 * v
            stack[top + 1, 1] = tl
            stack[top + 1, 2] = tm
            stack[top + 1, 3] = l
            stack[top + 1, 4] = min(r, tm)
            top += 2
        return result

    @njit(cache=True)
    def query_many_kernel(
        tree: np.ndarray,
        n: int,
        lefts: np.ndarray,
        rights: np.ndarray,
        code: int,
        identity,
        out: np.ndarray,
    ) -> None:
        for idx in range(lefts.shape[0]):
            out[idx] = query_kernel(tree, n, lefts[idx], rights[idx], code, identity)

    @njit(cache=True)
    def update_kernel(tree: np.ndarray, n: int, pos: int, value, code: int) -> None:
        path = np.empty(_STACK_CAPACITY, dtype=np.int64)
        depth = 0
        v = 1
        tl = 0
        tr = n - 1
        while tl != tr:
            path[depth] = v
            depth += 1
            tm = tl + (tr - tl) // 2
            if pos <= tm:
                v = 2 * v
                tr = tm
            else:
                v = 2 * v + 1
                tl = tm + 1
        tree[v] = value
        for idx in range(depth - 1, -1, -1):
            u = path[idx]
            tree[u] = _combine(code, tree[2 * u], tree[2 * u + 1])


__all__ = [
    "NUMBA_RANGE_TREE_AVAILABLE",
    "build_kernel",
    "query_kernel",
    "query_many_kernel",
    "update_kernel",
]
