import math

import numpy as np
import pytest

from rangetree import (
    MAX,
    MIN,
    SUM,
    CombineOperation,
    InvalidInputError,
    available_operations,
    custom_operation,
    get_operation,
)


def test_registry_lists_builtins():
    assert available_operations() == ("max", "min", "prod", "sum")


def test_get_operation_is_case_insensitive():
    assert get_operation(" Sum ") is SUM
    assert get_operation("MIN") is MIN


def test_get_operation_passes_instances_through():
    op = custom_operation(math.gcd, 0)
    assert get_operation(op) is op
    assert op.name == "gcd"
    assert op.kernel_code is None


def test_get_operation_rejects_unknown_names():
    with pytest.raises(InvalidInputError):
        get_operation("median")


def test_custom_operation_requires_callable():
    with pytest.raises(InvalidInputError):
        custom_operation(42, 0)


@pytest.mark.parametrize(
    "dtype, expected",
    [
        (np.int64, np.iinfo(np.int64).max),
        (np.int32, np.iinfo(np.int32).max),
        (np.float64, np.inf),
    ],
)
def test_min_identity_matches_dtype(dtype, expected):
    identity = MIN.identity_for(dtype)
    assert identity == expected
    assert np.asarray(identity).dtype == np.dtype(dtype)


def test_max_identity_on_unsigned_dtype():
    assert MAX.identity_for(np.uint8) == 0


def test_object_dtype_keeps_python_identity():
    assert SUM.identity_for(object) == 0
    assert isinstance(SUM.identity_for(object), int)


def test_operations_are_callable():
    op = CombineOperation("concat", lambda a, b: a + b, "")
    assert op("ab", "c") == "abc"
    assert MAX(3, 9) == 9
