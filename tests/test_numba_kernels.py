import numpy as np
import pytest

numba = pytest.importorskip("numba")

from rangetree import RangeQueryTree, custom_operation


def _random_values(seed: int, size: int) -> np.ndarray:
    rng = np.random.default_rng(seed)
    return rng.integers(-500, 500, size=size, dtype=np.int64)


@pytest.mark.parametrize("operation", ["sum", "min", "max"])
@pytest.mark.parametrize("size", [1, 2, 7, 64, 129])
def test_numba_engine_matches_python(operation: str, size: int):
    values = _random_values(size, size)
    compiled = RangeQueryTree(values, operation, engine="numba")
    reference = RangeQueryTree(values, operation, engine="python")

    assert compiled.engine == "numba"
    np.testing.assert_array_equal(compiled.storage, reference.storage)

    rng = np.random.default_rng(size + 1)
    for _ in range(25):
        left, right = sorted(rng.integers(0, size, size=2).tolist())
        assert compiled.query(left, right) == reference.query(left, right)


def test_numba_updates_keep_invariant():
    values = _random_values(3, 50)
    compiled = RangeQueryTree(values, engine="numba")
    rng = np.random.default_rng(4)
    expected = values.copy()
    for pos, value in zip(rng.integers(0, 50, size=40), rng.integers(-100, 100, size=40)):
        compiled.update(int(pos), int(value))
        expected[pos] = value

    compiled.validate()
    assert compiled.total() == expected.sum()
    np.testing.assert_array_equal(compiled.values(), expected)


def test_numba_query_many():
    tree = RangeQueryTree([1, 3, 5, 7, 9, 11], engine="numba")
    assert tree.query_many([1, 0], [4, 5]).tolist() == [24, 36]


def test_numba_scenario_on_floats():
    tree = RangeQueryTree([1.0, 3.0, 5.0, 7.0, 9.0, 11.0], engine="numba")
    tree.update(2, 100.0)
    assert tree.query(1, 4) == pytest.approx(119.0)
    assert tree.total() == pytest.approx(131.0)


def test_custom_operation_falls_back_to_python():
    gcd = custom_operation(np.gcd, 0, name="gcd")
    tree = RangeQueryTree([12, 18, 24], gcd, engine="numba")
    assert tree.engine == "python"
    assert tree.total() == 6


def test_object_dtype_falls_back_to_python():
    tree = RangeQueryTree([1, 2, 3], dtype=object, engine="numba")
    assert tree.engine == "python"


@pytest.mark.parametrize("dtype", [np.int8, np.uint8, np.int32])
def test_narrow_integer_dtypes_fall_back_to_python(dtype):
    tree = RangeQueryTree([100, 100, 100], dtype=dtype, engine="numba")
    assert tree.engine == "python"
    assert tree.total() == np.array([100, 100, 100], dtype=dtype).sum(dtype=dtype)


def test_float32_stays_on_numba():
    tree = RangeQueryTree([1.5, 2.5], dtype=np.float32, engine="numba")
    assert tree.engine == "numba"
    assert tree.total() == pytest.approx(4.0)
