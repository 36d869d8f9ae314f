"""
Detection of runs (maximal sequences of repeated values) in n-dimensional arrays.

A run is a maximal contiguous span of one value along a chosen axis. Runs are
reported in a RunTable, a pandas DataFrame with one row per run:

    value | start_index | end_index | length

start_index/end_index are 0-based column-major (Fortran-order) flat indices
into the input array and length is the number of samples along the scanned
axis. Along the first axis of a samples x channels signal this gives
length == end_index - start_index + 1.

The special values 0, NaN, +Inf and -Inf are scanned through their own masks,
since a plain equality test can never link two NaN samples. Rows are ordered
in blocks: runs of ordinary values first, then runs of 0, NaN, +Inf and -Inf,
each block sorted by start_index. Code selecting rows by position relies on
this order.
"""

import logging
from typing import List, Optional, Tuple

import numpy as np
import pandas as pd

from .exceptions import InvalidArgumentError

logger = logging.getLogger(__name__)

RUN_COLUMNS = ["value", "start_index", "end_index", "length"]

# Block order of the RunTable after the ordinary values
SPECIAL_VALUES = (0.0, np.nan, np.inf, -np.inf)


def find_runs(
    array: np.ndarray,
    axis: Optional[int] = None,
    min_length: int = 1
) -> pd.DataFrame:
    """
    Find maximal runs of identical values along one axis of an array.

    Parameters:
    -----------
    array : np.ndarray
        Real numeric or boolean array of any rank. Booleans are read as 0/1.
    axis : int, optional
        Axis to scan. Defaults to the first axis with more than one element.
    min_length : int, optional
        Shortest run to report (default: 1, every maximal run). Use 2 to list
        only values that actually repeat.

    Returns:
    --------
    pd.DataFrame
        RunTable with columns value, start_index, end_index, length.
        Empty for empty or scalar input, or when the scanned axis has fewer
        than two elements.

    Raises:
    -------
    InvalidArgumentError
        If the input is not real numeric, or axis/min_length are invalid

    Examples:
    ---------
    >>> runs = find_runs([1, 1, 1, 2, 3, 3, 4, 5, 5, 5, 5, 6, 7, 7, 8], min_length=2)
    >>> runs["value"].tolist()
    [1.0, 3.0, 5.0, 7.0]
    >>> runs.iloc[2].tolist()
    [5.0, 7.0, 10.0, 4.0]

    Notes:
    ------
    - For every scanned slice, the lengths of the runs of one value add up to
      the number of occurrences of that value (with min_length=1).
    - Run boundaries come from a single pass over a "linked to neighbour"
      mask: a run starts at a member not linked to its predecessor and ends
      at a member not linked to its successor.
    """
    data = np.asarray(array)
    if data.dtype.kind not in "biuf":
        raise InvalidArgumentError(
            f"find_runs expects a real numeric or boolean array, got dtype {data.dtype}"
        )
    if isinstance(min_length, (bool, np.bool_)) or not isinstance(min_length, (int, np.integer)) \
            or min_length < 1:
        raise InvalidArgumentError(f"min_length must be a positive integer, got {min_length!r}")

    if data.ndim == 0 or data.size == 0:
        return _empty_run_table()

    axis = _resolve_axis(data.shape, axis)
    if data.shape[axis] < 2:
        return _empty_run_table()

    data = data.astype(float)

    # Put the scanned axis last: every row is one 1D slice
    moved = np.moveaxis(data, axis, -1)
    rows = moved.reshape(-1, moved.shape[-1])
    slice_shape = moved.shape[:-1]

    blocks = []

    ordinary = np.isfinite(rows) & (rows != 0)
    linked = ordinary[:, 1:] & ordinary[:, :-1] & (rows[:, 1:] == rows[:, :-1])
    row_idx, starts, ends = _run_bounds(ordinary, linked)
    blocks.append((rows[row_idx, starts], row_idx, starts, ends))

    special_masks = (rows == 0, np.isnan(rows), rows == np.inf, rows == -np.inf)
    for value, member in zip(SPECIAL_VALUES, special_masks):
        if np.count_nonzero(member) == 0:
            continue
        row_idx, starts, ends = _run_bounds(member, member[:, 1:] & member[:, :-1])
        blocks.append((np.full(len(starts), value), row_idx, starts, ends))

    columns = {name: [] for name in RUN_COLUMNS}
    for values, row_idx, starts, ends in blocks:
        lengths = ends - starts + 1
        keep = lengths >= min_length
        start_flat = _to_flat_index(row_idx[keep], starts[keep], slice_shape, axis, data.shape)
        end_flat = _to_flat_index(row_idx[keep], ends[keep], slice_shape, axis, data.shape)

        order = np.argsort(start_flat, kind="stable")
        columns["value"].append(values[keep][order])
        columns["start_index"].append(start_flat[order])
        columns["end_index"].append(end_flat[order])
        columns["length"].append(lengths[keep][order])

    table = pd.DataFrame({
        "value": np.concatenate(columns["value"]).astype(float),
        "start_index": np.concatenate(columns["start_index"]).astype(np.int64),
        "end_index": np.concatenate(columns["end_index"]).astype(np.int64),
        "length": np.concatenate(columns["length"]).astype(np.int64),
    }, columns=RUN_COLUMNS)

    logger.debug("find_runs: %d runs along axis %d of shape %s", len(table), axis, data.shape)
    return table


def _resolve_axis(shape: Tuple[int, ...], axis: Optional[int]) -> int:
    if axis is None:
        non_singleton = [i for i, size in enumerate(shape) if size > 1]
        return non_singleton[0] if non_singleton else 0

    if isinstance(axis, (bool, np.bool_)) or not isinstance(axis, (int, np.integer)):
        raise InvalidArgumentError(f"axis must be an integer, got {axis!r}")
    if axis < 0 or axis >= len(shape):
        raise InvalidArgumentError(
            f"axis must satisfy 0 <= axis < {len(shape)} for an array of shape {shape}, got {axis}"
        )
    return int(axis)


def _run_bounds(
    member: np.ndarray,
    linked: np.ndarray
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Locate run boundaries in a (rows x n) membership mask.

    linked[:, j] tells whether samples j and j+1 of a row belong to the same
    run. Starts and ends are returned in row-major order, so the k-th start
    pairs with the k-th end.
    """
    unlinked = np.zeros((member.shape[0], 1), dtype=bool)
    linked_to_prev = np.hstack([unlinked, linked])
    linked_to_next = np.hstack([linked, unlinked])

    row_idx, starts = np.nonzero(member & ~linked_to_prev)
    _, ends = np.nonzero(member & ~linked_to_next)
    return row_idx, starts, ends


def _to_flat_index(
    row_idx: np.ndarray,
    positions: np.ndarray,
    slice_shape: Tuple[int, ...],
    axis: int,
    shape: Tuple[int, ...]
) -> np.ndarray:
    """Convert (slice row, position along axis) pairs to column-major flat indices."""
    if len(shape) == 1:
        return positions.astype(np.int64)

    slice_coords: List[np.ndarray] = list(np.unravel_index(row_idx, slice_shape))
    coords = slice_coords[:axis] + [positions] + slice_coords[axis:]
    return np.ravel_multi_index(tuple(coords), shape, order="F").astype(np.int64)


def _empty_run_table() -> pd.DataFrame:
    return pd.DataFrame({
        "value": np.array([], dtype=float),
        "start_index": np.array([], dtype=np.int64),
        "end_index": np.array([], dtype=np.int64),
        "length": np.array([], dtype=np.int64),
    }, columns=RUN_COLUMNS)
