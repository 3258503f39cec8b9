import math
import numpy as np
import pytest
from romsprobe.interp.averaging import combine


def test_equal_weights_give_plain_mean():
    assert combine([1.0, 2.0, 3.0, 4.0], [5.0, 5.0, 5.0, 5.0], [True] * 4) == pytest.approx(2.5)


def test_inverse_distance_weighting():
    # weights 1 and 3 -> inverse weights 1 and 1/3
    out = combine([10.0, 20.0], [1.0, 3.0], [True, True])
    assert out == pytest.approx((10.0 + 20.0 / 3.0) / (1.0 + 1.0 / 3.0))


def test_invalid_entries_are_excluded_entirely():
    with_bad = combine([1.0, 1000.0, 3.0], [1.0, 0.5, 2.0], [True, False, True])
    without = combine([1.0, 3.0], [1.0, 2.0], [True, True])
    assert with_bad == without


def test_no_valid_entries_returns_nan():
    assert math.isnan(combine([1.0, 2.0], [1.0, 1.0], [False, False]))


def test_zero_distance_returns_sample_exactly():
    assert combine([7.25, 100.0, -3.0], [3.0, 0.0, 1.0], [True, True, True]) == 100.0


def test_zero_distance_on_invalid_entry_is_ignored():
    out = combine([7.0, 100.0], [1.0, 0.0], [True, False])
    assert out == 7.0


def test_negative_sentinel_weight_marks_entry_invalid():
    assert combine([4.0, 9.0], [-1.0, 2.0], [True, True]) == 9.0
    assert math.isnan(combine([4.0, 9.0], [-1.0, -1.0], [True, True]))


def test_nan_value_propagates():
    assert math.isnan(combine([np.nan, 1.0], [1.0, 1.0], [True, True]))


def test_order_independent():
    vals = [0.1, 0.7, 0.2, 1e6]
    wts = [3.3, 1.7, 3.3, 9.1]
    ref = combine(vals, wts, [True] * 4)
    assert combine(vals[::-1], wts[::-1], [True] * 4) == ref
    assert combine([vals[2], vals[1], vals[0], vals[3]], [wts[2], wts[1], wts[0], wts[3]], [True] * 4) == ref


def test_length_mismatch_raises():
    with pytest.raises(ValueError):
        combine([1.0, 2.0], [1.0], [True, True])
