"""
Utility functions shared by the gap-aware filtering and spectral modules.

- Boundary trimming of missing samples
- Generic overlapping windowing (slicing a signal into columns)
- Signal validation and channel (column) handling
- Channel fan-out over a joblib worker pool
"""

import logging
from typing import Callable, List, Optional, Sequence, Tuple, Union

import numpy as np
from joblib import Parallel, delayed

from .exceptions import InvalidArgumentError

logger = logging.getLogger(__name__)


def trim_nans(
    signal: np.ndarray,
    return_offset: bool = False
) -> Union[np.ndarray, Tuple[np.ndarray, int]]:
    """
    Trim NaN values from the beginning and end of a signal.

    Parameters:
    -----------
    signal : np.ndarray
        Input signal (1D array)
    return_offset : bool, optional
        Also return the index of the first kept sample (default: False)

    Returns:
    --------
    np.ndarray or Tuple[np.ndarray, int]
        Trimmed signal (empty if all values are NaN), and optionally the
        offset of the first kept sample in the input (0 for an all-NaN input)

    Examples:
    ---------
    >>> trim_nans(np.array([np.nan, np.nan, 1, 2, np.nan, 3, np.nan]))
    array([ 1.,  2., nan,  3.])
    """
    x = as_float_vector(signal, name="signal")
    valid = np.flatnonzero(~np.isnan(x))

    if valid.size == 0:
        trimmed, offset = x[:0].copy(), 0
    else:
        offset = int(valid[0])
        trimmed = x[offset:valid[-1] + 1].copy()

    if return_offset:
        return trimmed, offset
    return trimmed


def slice_signal(
    x: np.ndarray,
    window: int,
    overlap: int,
    fs: Optional[float] = None,
    use_last: bool = False
) -> Tuple[np.ndarray, Optional[np.ndarray]]:
    """
    Divide a signal into overlapping windows.

    Each window becomes a column of the output matrix, which is the layout
    expected by the periodogram computation (one spectrum per column).

    Parameters:
    -----------
    x : np.ndarray
        Input signal (1D array)
    window : int
        Window length in samples (must be positive)
    overlap : int
        Number of samples shared by consecutive windows (0 <= overlap < window)
    fs : float, optional
        Sampling frequency in Hz. If given, the window centre times are returned.
    use_last : bool, optional
        Keep a trailing window that does not fill completely, padding it with
        NaN (default: False)

    Returns:
    --------
    Tuple[np.ndarray, Optional[np.ndarray]]
        - Matrix of shape (window, n_windows)
        - Window centre times in seconds (None if fs is not given)

    Raises:
    -------
    InvalidArgumentError
        If window/overlap are invalid or the signal is shorter than one window
    """
    x = as_float_vector(x, name="x")
    window = as_count(window, "window", minimum=1)
    overlap = as_count(overlap, "overlap", minimum=0)

    if overlap >= window:
        raise InvalidArgumentError(
            f"Overlap ({overlap}) must be less than window length ({window})"
        )
    if fs is not None and not (np.isfinite(fs) and fs > 0):
        raise InvalidArgumentError(f"fs must be a positive finite number, got {fs!r}")

    step = window - overlap
    if use_last:
        n_windows = int(np.ceil((len(x) - overlap) / step))
    else:
        n_windows = (len(x) - overlap) // step

    if n_windows < 1:
        raise InvalidArgumentError(
            f"Signal length ({len(x)}) is too short for window length ({window}). "
            "Use use_last=True to NaN-pad a partial window."
        )

    sliced = np.full((window, n_windows), np.nan)
    for i in range(n_windows):
        start = i * step
        chunk = x[start:start + window]
        sliced[:len(chunk), i] = chunk

    t_center = None
    if fs is not None:
        t_center = np.arange(n_windows) * step / fs + (window - 1) / (2.0 * fs)

    return sliced, t_center


def as_float_vector(data, name: str = "signal") -> np.ndarray:
    """Validate a 1D numeric input and return it as a float array."""
    x = np.asarray(data)
    _check_numeric(x, name)
    if x.ndim != 1:
        x = np.squeeze(x)
        if x.ndim == 0:
            x = x.reshape(1)
        if x.ndim != 1:
            raise InvalidArgumentError(f"{name} must be a vector, got shape {np.shape(data)}")
    return x.astype(float)


def as_channel_matrix(data, name: str = "signal") -> Tuple[np.ndarray, bool]:
    """
    Validate a samples x channels signal.

    Returns the data as a 2D float array and whether the input was 1D, so the
    caller can give results back in the shape it received.
    """
    x = np.asarray(data)
    _check_numeric(x, name)
    if x.ndim == 1:
        return x.astype(float).reshape(-1, 1), True
    if x.ndim == 2:
        return x.astype(float), False
    raise InvalidArgumentError(
        f"{name} must be 1D (samples) or 2D (samples x channels), got {x.ndim}D"
    )


def map_channels(
    func: Callable,
    columns: Sequence[np.ndarray],
    n_jobs: Optional[int] = None
) -> List:
    """
    Apply a per-channel function to every column, optionally in parallel.

    Results come back in channel order, so the parallel path is numerically
    identical to the sequential one.
    """
    if n_jobs is None or n_jobs == 1 or len(columns) < 2:
        return [func(column) for column in columns]

    logger.debug("Processing %d channels with n_jobs=%s", len(columns), n_jobs)
    return Parallel(n_jobs=n_jobs, prefer="threads")(
        delayed(func)(column) for column in columns
    )


def _check_numeric(x: np.ndarray, name: str) -> None:
    if x.dtype.kind not in "biuf":
        raise InvalidArgumentError(
            f"{name} must be a real numeric array, got dtype {x.dtype}"
        )


def as_count(value, name: str, minimum: int) -> int:
    """Validate an integer-valued sample count."""
    if isinstance(value, (bool, np.bool_)) or not np.isscalar(value):
        raise InvalidArgumentError(f"{name} must be an integer, got {value!r}")
    try:
        as_int = int(value)
    except (TypeError, ValueError, OverflowError):
        raise InvalidArgumentError(f"{name} must be an integer, got {value!r}")
    if as_int != value or as_int < minimum:
        raise InvalidArgumentError(f"{name} must be an integer >= {minimum}, got {value!r}")
    return as_int
