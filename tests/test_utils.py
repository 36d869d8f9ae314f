"""
Tests for utility functions (trim_nans, slice_signal).
"""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import numpy as np
import pytest

from biosignal_preprocessing import InvalidArgumentError, slice_signal, trim_nans


def test_trim_nans():
    x = np.array([np.nan, np.nan, 1, 2, np.nan, 3, np.nan])

    trimmed = trim_nans(x)
    np.testing.assert_array_equal(trimmed, [1, 2, np.nan, 3])

    trimmed, offset = trim_nans(x, return_offset=True)
    assert offset == 2
    assert len(trimmed) == 4

    clean = np.arange(4.0)
    np.testing.assert_array_equal(trim_nans(clean), clean)

    empty, offset = trim_nans(np.full(5, np.nan), return_offset=True)
    assert empty.size == 0
    assert offset == 0
    print("✓ NaN trimming passed")


def test_slice_signal_windows():
    """Windows become columns, consecutive windows share `overlap` samples."""
    x = np.arange(10.0)
    sliced, t_center = slice_signal(x, 4, 2)

    assert sliced.shape == (4, 4)
    assert t_center is None
    np.testing.assert_array_equal(sliced[:, 0], [0, 1, 2, 3])
    np.testing.assert_array_equal(sliced[:, 1], [2, 3, 4, 5])
    np.testing.assert_array_equal(sliced[:, 3], [6, 7, 8, 9])


def test_slice_signal_use_last():
    """A trailing partial window is kept and NaN padded only on request."""
    x = np.arange(11.0)

    sliced, _ = slice_signal(x, 4, 2)
    assert sliced.shape == (4, 4)

    sliced, _ = slice_signal(x, 4, 2, use_last=True)
    assert sliced.shape == (4, 5)
    np.testing.assert_array_equal(sliced[:3, 4], [8, 9, 10])
    assert np.isnan(sliced[3, 4])


def test_slice_signal_centre_times():
    fs = 100.0
    _, t_center = slice_signal(np.zeros(1000), 100, 50, fs=fs)

    assert len(t_center) == 19
    assert t_center[0] == pytest.approx(0.495)
    np.testing.assert_allclose(np.diff(t_center), 0.5)


def test_slice_signal_invalid_arguments():
    x = np.arange(10.0)

    with pytest.raises(InvalidArgumentError):
        slice_signal(x, 4, 4)
    with pytest.raises(InvalidArgumentError):
        slice_signal(x, 0, 0)
    with pytest.raises(InvalidArgumentError):
        slice_signal(x, 2.5, 1)
    with pytest.raises(InvalidArgumentError):
        slice_signal(x, 20, 0)
    with pytest.raises(InvalidArgumentError):
        slice_signal(x, 4, 2, fs=-1.0)
    with pytest.raises(InvalidArgumentError):
        slice_signal(np.zeros((5, 5)), 2, 0)
