"""
Missing-data gap handling for single-channel signals.

A gap is a run of NaN samples. This module implements:
- Gap detection (NaN runs, built on find_runs)
- Gap classification into short/long by a maximum gap length
- Interpolation of gaps from the valid samples that bracket them
- Filling of every missing sample (with extrapolation at the ends)
- Partitioning of a channel into segments separated by long gaps
"""

import logging
from typing import List, Optional, Tuple

import numpy as np
import pandas as pd
from scipy.interpolate import CubicSpline, PchipInterpolator, interp1d

from .config import Config, default_config
from .exceptions import InvalidArgumentError
from .sequences import RUN_COLUMNS, find_runs
from .utils import as_float_vector

logger = logging.getLogger(__name__)

INTERP_METHODS = ("nearest", "linear", "pchip", "cubic", "spline")

# Methods fitted on a neighbourhood of valid samples rather than the two
# samples bracketing a gap
CURVE_FIT_METHODS = ("pchip", "spline")


def find_nan_runs(channel: np.ndarray) -> pd.DataFrame:
    """
    Find the gaps (runs of NaN samples) of a single channel.

    Parameters:
    -----------
    channel : np.ndarray
        Input signal (1D array)

    Returns:
    --------
    pd.DataFrame
        RunTable of the NaN runs (value column is 1.0, the NaN-mask value),
        sorted by start_index
    """
    x = as_float_vector(channel, name="channel")
    missing = np.isnan(x)

    if x.size == 1:
        # find_runs needs two samples along the axis
        if missing[0]:
            return pd.DataFrame([[1.0, 0, 0, 1]], columns=RUN_COLUMNS)
        return pd.DataFrame(
            {name: np.array([], dtype=float if name == "value" else np.int64) for name in RUN_COLUMNS},
            columns=RUN_COLUMNS,
        )

    runs = find_runs(missing)
    return runs[runs["value"] == 1].reset_index(drop=True)


def classify_gaps(
    nan_runs: pd.DataFrame,
    max_gap_length: float
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Split NaN runs into short and long gaps.

    Parameters:
    -----------
    nan_runs : pd.DataFrame
        RunTable of NaN runs (from find_nan_runs)
    max_gap_length : float
        Longest gap, in samples, still considered short

    Returns:
    --------
    Tuple[pd.DataFrame, pd.DataFrame]
        (short_gaps, long_gaps): a gap is short iff length <= max_gap_length
    """
    max_gap_length = validate_gap_length(max_gap_length)

    is_short = nan_runs["length"] <= max_gap_length
    short_gaps = nan_runs[is_short].reset_index(drop=True)
    long_gaps = nan_runs[~is_short].reset_index(drop=True)
    return short_gaps, long_gaps


def interpolate_gaps(
    channel: np.ndarray,
    gap_runs: pd.DataFrame,
    method: Optional[str] = None,
    context: Optional[int] = None,
    config: Config = default_config
) -> np.ndarray:
    """
    Fill the listed gaps of a channel by interpolation.

    Parameters:
    -----------
    channel : np.ndarray
        Input signal (1D array)
    gap_runs : pd.DataFrame
        RunTable of the gaps to fill (start_index/end_index into channel)
    method : str, optional
        'nearest', 'linear', 'pchip' (monotone cubic, alias 'cubic') or
        'spline' (cubic spline). Defaults to config.INTERP_METHOD.
    context : int, optional
        Number of valid samples used on each side of a gap. Defaults to
        config.CURVE_FIT_CONTEXT for 'pchip'/'spline' and 1 otherwise.
    config : Config
        Processing configuration.

    Returns:
    --------
    np.ndarray
        Copy of the channel with the gaps filled

    Notes:
    ------
    - A gap needs a valid sample on both sides. Gaps touching the start or
      end of the channel are left as NaN.
    - Only samples that were valid in the input are used as support, so the
      result does not depend on the order in which gaps are filled.
    - An all-NaN channel is returned unchanged.
    """
    x = as_float_vector(channel, name="channel")
    filled = x.copy()
    valid_idx = np.flatnonzero(~np.isnan(x))

    if valid_idx.size == 0 or len(gap_runs) == 0:
        return filled

    method = resolve_method(method if method is not None else config.INTERP_METHOD)
    if context is None:
        context = config.CURVE_FIT_CONTEXT if method in CURVE_FIT_METHODS else 1
    if isinstance(context, bool) or not isinstance(context, (int, np.integer)) or context < 1:
        raise InvalidArgumentError(f"context must be a positive integer, got {context!r}")

    for start, end in zip(gap_runs["start_index"], gap_runs["end_index"]):
        start, end = int(start), int(end)
        if start < 0 or end >= len(x) or start > end:
            raise InvalidArgumentError(
                f"Gap [{start}, {end}] is outside a channel of {len(x)} samples"
            )

        left_pos = np.searchsorted(valid_idx, start)
        right_pos = np.searchsorted(valid_idx, end, side="right")
        left = valid_idx[max(0, left_pos - context):left_pos]
        right = valid_idx[right_pos:right_pos + context]
        if left.size == 0 or right.size == 0:
            continue

        support = np.concatenate([left, right])
        query = np.arange(start, end + 1)
        interpolator = make_interpolator(method, support, x[support], extrapolate=False)
        filled[query] = interpolator(query)

    return filled


def interpolate_short_gaps(
    channel: np.ndarray,
    max_gap_length: float,
    method: Optional[str] = None,
    config: Config = default_config
) -> np.ndarray:
    """
    Interpolate the gaps no longer than max_gap_length; leave the others.

    Examples:
    ---------
    >>> x = np.array([1, 2, np.nan, 4, 5, np.nan, np.nan, 8, 9, 10])
    >>> interpolate_short_gaps(x, 1)
    array([ 1.,  2.,  3.,  4.,  5., nan, nan,  8.,  9., 10.])
    """
    x = as_float_vector(channel, name="channel")
    short_gaps, _ = classify_gaps(find_nan_runs(x), max_gap_length)
    return interpolate_gaps(x, short_gaps, method=method, config=config)


def fill_missing(
    channel: np.ndarray,
    method: str = "linear"
) -> np.ndarray:
    """
    Fill every NaN sample of a channel, extrapolating at both ends.

    A channel with a single valid sample is filled with that value; an all-NaN
    channel is returned unchanged.
    """
    x = as_float_vector(channel, name="channel")
    filled = x.copy()
    missing = np.isnan(x)
    valid_idx = np.flatnonzero(~missing)

    if valid_idx.size == 0 or valid_idx.size == x.size:
        return filled
    if valid_idx.size == 1:
        filled[missing] = x[valid_idx[0]]
        return filled

    query = np.flatnonzero(missing)
    interpolator = make_interpolator(resolve_method(method), valid_idx, x[valid_idx], extrapolate=True)
    filled[query] = interpolator(query)
    return filled


def get_valid_segments(
    n_samples: int,
    long_gaps: pd.DataFrame
) -> List[Tuple[int, int]]:
    """
    Partition a channel into the segments left between long gaps.

    Parameters:
    -----------
    n_samples : int
        Channel length
    long_gaps : pd.DataFrame
        RunTable of the long gaps

    Returns:
    --------
    List[Tuple[int, int]]
        Ascending, non-overlapping (start, end) pairs, end exclusive, covering
        every sample outside the long gaps
    """
    segments = []
    current = 0
    bounds = sorted(zip(long_gaps["start_index"].astype(int), long_gaps["end_index"].astype(int)))
    for gap_start, gap_end in bounds:
        if current < gap_start:
            segments.append((current, gap_start))
        current = max(current, gap_end + 1)

    if current < n_samples:
        segments.append((current, n_samples))

    return segments


def resolve_method(method: str) -> str:
    """Validate an interpolation method name; 'cubic' maps to 'pchip'."""
    if not isinstance(method, str) or method.lower() not in INTERP_METHODS:
        raise InvalidArgumentError(
            f"Unknown interpolation method: {method!r}. Use one of {', '.join(INTERP_METHODS)}"
        )
    method = method.lower()
    return "pchip" if method == "cubic" else method


def make_interpolator(method: str, xi: np.ndarray, yi: np.ndarray, extrapolate: bool):
    """Build a 1D interpolant through the points (xi, yi); xi must be ascending."""
    if method in ("nearest", "linear"):
        return interp1d(
            xi, yi, kind=method, bounds_error=False, assume_sorted=True,
            fill_value="extrapolate" if extrapolate else np.nan,
        )
    if method == "pchip":
        return PchipInterpolator(xi, yi, extrapolate=extrapolate)
    return CubicSpline(xi, yi, extrapolate=extrapolate)


def validate_gap_length(max_gap_length) -> float:
    if isinstance(max_gap_length, (bool, np.bool_)) or not np.isscalar(max_gap_length):
        raise InvalidArgumentError(f"max_gap_length must be a number, got {max_gap_length!r}")
    try:
        value = float(max_gap_length)
    except (TypeError, ValueError):
        raise InvalidArgumentError(f"max_gap_length must be a number, got {max_gap_length!r}")
    if np.isnan(value) or value < 0:
        raise InvalidArgumentError(f"max_gap_length must be >= 0, got {max_gap_length!r}")
    return value
