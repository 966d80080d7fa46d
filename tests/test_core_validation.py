import numpy as np
import pytest

from gridsim.core.validation import (
    ensure_index,
    ensure_int,
    ensure_non_empty,
    ensure_non_negative,
    ensure_range_ordered,
)
from gridsim.errors import InvalidIndexError


def test_ensure_non_negative_ok():
    ensure_non_negative(0.0, "x")
    ensure_non_negative(12.5, "x")


@pytest.mark.parametrize("value", [-1e-9, float("nan"), float("inf")])
def test_ensure_non_negative_raises(value):
    with pytest.raises(ValueError):
        ensure_non_negative(value, "x")


def test_ensure_non_empty():
    ensure_non_empty("Hydro", "name")
    with pytest.raises(ValueError):
        ensure_non_empty("   ", "name")


def test_ensure_int_accepts_numpy_integers():
    ensure_int(3, "priority")
    ensure_int(np.int64(3), "priority")


@pytest.mark.parametrize("value", [True, 1.5, "2"])
def test_ensure_int_raises(value):
    with pytest.raises(ValueError):
        ensure_int(value, "priority")


def test_ensure_range_ordered():
    ensure_range_ordered(20.0, 50.0, "range")
    with pytest.raises(ValueError):
        ensure_range_ordered(50.0, 50.0, "range")


def test_ensure_index_accepts_numpy_integers():
    assert ensure_index("fault", 0, 1) == 0
    assert ensure_index("fault", np.int64(2), 3) == 2
    assert type(ensure_index("fault", np.int32(1), 3)) is int


@pytest.mark.parametrize("value", [-1, 3, True, 1.0, "1"])
def test_ensure_index_raises(value):
    with pytest.raises(InvalidIndexError):
        ensure_index("load", value, 3)
