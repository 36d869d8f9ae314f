"""
Tests for gap detection, classification and interpolation.
"""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import numpy as np
import pytest

from biosignal_preprocessing import (
    Config,
    InvalidArgumentError,
    classify_gaps,
    fill_missing,
    find_nan_runs,
    get_valid_segments,
    interpolate_gaps,
    interpolate_short_gaps,
)


def test_find_nan_runs():
    """NaN runs are reported in order with 0-based inclusive bounds."""
    x = np.array([np.nan, 1, 2, np.nan, np.nan, 5, 6, np.nan, np.nan, np.nan])
    runs = find_nan_runs(x)

    assert runs["start_index"].tolist() == [0, 3, 7]
    assert runs["end_index"].tolist() == [0, 4, 9]
    assert runs["length"].tolist() == [1, 2, 3]

    assert find_nan_runs(np.arange(10.0)).empty
    assert len(find_nan_runs(np.array([np.nan]))) == 1
    assert find_nan_runs(np.array([3.0])).empty
    print("✓ NaN run detection passed")


def test_classify_gaps():
    """A gap is short iff its length is at most max_gap_length."""
    x = np.ones(30)
    x[2:4] = np.nan      # length 2
    x[10:15] = np.nan    # length 5
    x[20:26] = np.nan    # length 6
    runs = find_nan_runs(x)

    short_gaps, long_gaps = classify_gaps(runs, 5)
    assert short_gaps["length"].tolist() == [2, 5]
    assert long_gaps["length"].tolist() == [6]

    short_gaps, long_gaps = classify_gaps(runs, 0)
    assert short_gaps.empty
    assert len(long_gaps) == 3

    with pytest.raises(InvalidArgumentError):
        classify_gaps(runs, -1)
    with pytest.raises(InvalidArgumentError):
        classify_gaps(runs, np.nan)


def test_interpolate_short_gaps():
    """Short gaps are filled linearly, long gaps stay NaN."""
    x = np.array([1, 2, np.nan, 4, 5, np.nan, np.nan, 8, 9, 10])

    y = interpolate_short_gaps(x, 1)
    assert y[2] == pytest.approx(3.0)
    assert np.isnan(y[5:7]).all()

    y = interpolate_short_gaps(x, 2)
    np.testing.assert_allclose(y, np.arange(1, 11, dtype=float))

    # Input is not modified
    assert np.isnan(x[2])
    print("✓ Short gap interpolation passed")


@pytest.mark.parametrize("method", ["linear", "pchip", "cubic", "spline"])
def test_interpolation_reproduces_linear_data(method):
    """Every smooth method reproduces a straight line exactly."""
    line = 2.0 * np.arange(40) + 1.0
    x = line.copy()
    x[10:14] = np.nan
    x[25:27] = np.nan

    y = interpolate_gaps(x, find_nan_runs(x), method=method)
    np.testing.assert_allclose(y, line)


def test_nearest_interpolation():
    x = np.array([1.0, np.nan, np.nan, 4.0])
    y = interpolate_gaps(x, find_nan_runs(x), method="nearest")
    np.testing.assert_array_equal(y, [1.0, 1.0, 4.0, 4.0])


def test_pchip_stays_within_bracketing_values():
    """Monotone cubic interpolation does not overshoot across a step."""
    x = np.array([0.0, 0.0, 0.0, np.nan, np.nan, np.nan, 1.0, 1.0, 1.0])
    y = interpolate_gaps(x, find_nan_runs(x), method="pchip")

    assert not np.isnan(y).any()
    assert (y >= 0.0).all() and (y <= 1.0).all()
    assert (np.diff(y) >= 0).all()


def test_boundary_gaps_are_not_extrapolated():
    """Gaps touching the start or end need both neighbours, so they stay NaN."""
    x = np.array([np.nan, np.nan, 3, 4, np.nan, 6, np.nan])
    y = interpolate_gaps(x, find_nan_runs(x), method="linear")

    assert np.isnan(y[:2]).all()
    assert y[4] == pytest.approx(5.0)
    assert np.isnan(y[6])


def test_interpolation_uses_configured_method():
    """The default method comes from the configuration."""
    x = np.array([1.0, np.nan, np.nan, 4.0])
    y = interpolate_gaps(x, find_nan_runs(x), config=Config(INTERP_METHOD="nearest"))
    np.testing.assert_array_equal(y, [1.0, 1.0, 4.0, 4.0])


def test_all_nan_channel_unchanged():
    x = np.full(8, np.nan)
    assert np.isnan(interpolate_gaps(x, find_nan_runs(x))).all()
    assert np.isnan(interpolate_short_gaps(x, 100)).all()
    assert np.isnan(fill_missing(x)).all()


def test_invalid_interpolation_arguments():
    x = np.array([1.0, np.nan, 3.0])
    runs = find_nan_runs(x)

    with pytest.raises(InvalidArgumentError):
        interpolate_gaps(x, runs, method="quadratic")
    with pytest.raises(InvalidArgumentError):
        interpolate_gaps(x, runs, method="linear", context=0)
    with pytest.raises(InvalidArgumentError):
        interpolate_short_gaps(x, -2)


def test_fill_missing_extrapolates():
    """fill_missing fills every sample, including the ends."""
    x = np.array([np.nan, 2, np.nan, 4, np.nan])
    np.testing.assert_allclose(fill_missing(x), [1, 2, 3, 4, 5])

    single = np.array([np.nan, 7.0, np.nan])
    np.testing.assert_array_equal(fill_missing(single), [7.0, 7.0, 7.0])

    clean = np.arange(5.0)
    filled = fill_missing(clean)
    np.testing.assert_array_equal(filled, clean)
    assert filled is not clean


def test_get_valid_segments():
    """Segments and long gaps partition the channel."""
    x = np.ones(50)
    x[0:3] = np.nan
    x[10:20] = np.nan
    x[30:32] = np.nan
    x[45:50] = np.nan
    _, long_gaps = classify_gaps(find_nan_runs(x), 2)

    segments = get_valid_segments(len(x), long_gaps)
    assert segments == [(3, 10), (20, 45)]

    covered = np.zeros(len(x), dtype=int)
    for start, stop in segments:
        covered[start:stop] += 1
    for start, end in zip(long_gaps["start_index"], long_gaps["end_index"]):
        covered[start:end + 1] += 1
    assert (covered == 1).all()

    _, no_gaps = classify_gaps(find_nan_runs(np.ones(5)), 2)
    assert get_valid_segments(5, no_gaps) == [(0, 5)]
    print("✓ Valid segment partition passed")
