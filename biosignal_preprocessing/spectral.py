"""
Welch-style power spectral density estimation for signals with NaN gaps.

The estimate is built from the valid runs of each channel:

1. Leading/trailing NaN samples are trimmed
2. Gaps no longer than max_gap_length are optionally interpolated
3. The remaining NaN gaps split the channel into valid runs
4. Every run at least one window long is cut into overlapping windows and
   a periodogram is computed per window
5. The windows of all runs are pooled and their periodograms averaged

For a channel without gaps this is exactly Welch's method
(scipy.signal.welch with detrend=False and mean averaging).
"""

import logging
import warnings
from functools import partial
from typing import List, NamedTuple, Optional, Tuple, Union

import numpy as np
from scipy import signal

from .config import Config, default_config
from .exceptions import InsufficientDataWarning, InvalidArgumentError
from .filters import FilterSpec, design_filter
from .gaps import find_nan_runs, get_valid_segments, interpolate_short_gaps, resolve_method, validate_gap_length
from .utils import as_channel_matrix, as_count, map_channels, slice_signal, trim_nans

logger = logging.getLogger(__name__)


class PSDResult(NamedTuple):
    """
    Result of a gap-aware spectral estimate.

    Attributes
    ----------
    psd : np.ndarray
        Averaged power spectral density, (n_freq,) or (n_freq, n_channels)
    freq : np.ndarray
        Frequencies in Hz, same shape as psd
    per_window : np.ndarray or List[np.ndarray]
        Pooled per-window periodograms, (n_freq, n_windows) for a 1D input,
        otherwise one such matrix per channel
    """
    psd: np.ndarray
    freq: np.ndarray
    per_window: Union[np.ndarray, List[np.ndarray]]


def estimate_spectrum_with_gaps(
    x: np.ndarray,
    window: Union[int, np.ndarray],
    overlap: int,
    nfft: Optional[int] = None,
    fs: float = 1.0,
    max_gap_length: Optional[float] = None,
    method: Optional[str] = None,
    highpass: Optional[float] = None,
    n_jobs: Optional[int] = None,
    config: Config = default_config
) -> PSDResult:
    """
    Estimate the power spectral density of a signal containing NaN gaps.

    Parameters:
    -----------
    x : np.ndarray
        Input signal, 1D (samples) or 2D (samples x channels)
    window : int or np.ndarray
        Window length in samples (weights from config.DEFAULT_WINDOW) or the
        window weights themselves
    overlap : int
        Number of samples shared by consecutive windows
    nfft : int, optional
        FFT length, at least the window length (default: window length)
    fs : float, optional
        Sampling frequency in Hz (default: 1.0)
    max_gap_length : float, optional
        Interpolate gaps up to this many samples before splitting the signal
        into valid runs. If None, every gap splits the signal.
    method : str, optional
        Interpolation method for those gaps (default: config.INTERP_METHOD)
    highpass : float, optional
        If given, each valid run is zero-phase high-pass filtered at this
        cutoff (Hz) before windowing
    n_jobs : int, optional
        Number of parallel workers over channels. Defaults to config.N_JOBS.
    config : Config
        Processing configuration.

    Returns:
    --------
    PSDResult
        (psd, freq, per_window). Channels without enough valid data get a
        NaN psd and an empty (n_freq, 0) per_window, and an
        InsufficientDataWarning is emitted.

    Raises:
    -------
    InvalidArgumentError
        On an invalid window, overlap, nfft, fs or gap length, or a signal
        that is not 1D/2D real numeric

    Examples:
    ---------
    >>> fs = 4.0
    >>> x = np.random.randn(1000)
    >>> x[400:451] = np.nan
    >>> psd, freq, per_window = estimate_spectrum_with_gaps(x, 128, 64, fs=fs, max_gap_length=10)
    >>> per_window.shape
    (65, 12)
    """
    weights = _window_weights(window, config)
    window_length = len(weights)

    overlap = as_count(overlap, "overlap", minimum=0)
    if overlap >= window_length:
        raise InvalidArgumentError(
            f"Overlap ({overlap}) must be less than window length ({window_length})"
        )
    nfft = window_length if nfft is None else as_count(nfft, "nfft", minimum=1)
    if nfft < window_length:
        raise InvalidArgumentError(f"nfft ({nfft}) must be at least the window length ({window_length})")
    if fs is None or not np.isscalar(fs) or not np.isfinite(fs) or fs <= 0:
        raise InvalidArgumentError(f"fs must be a positive finite number, got {fs!r}")
    if max_gap_length is not None:
        max_gap_length = validate_gap_length(max_gap_length)
    if method is not None:
        method = resolve_method(method)

    highpass_spec = None
    if highpass is not None:
        highpass_spec = design_filter(fs, highpass, btype="high", order=config.HIGHPASS_ORDER)

    data, was_vector = as_channel_matrix(x, name="x")
    freq = np.fft.rfftfreq(nfft, d=1.0 / fs)

    channel_func = partial(
        _estimate_channel,
        weights=weights,
        overlap=overlap,
        nfft=nfft,
        fs=float(fs),
        max_gap_length=max_gap_length,
        method=method,
        highpass_spec=highpass_spec,
        config=config,
    )
    columns = [data[:, i] for i in range(data.shape[1])]
    results = map_channels(channel_func, columns, n_jobs if n_jobs is not None else config.N_JOBS)

    for i, (_, _, diagnostic) in enumerate(results):
        if diagnostic is not None:
            prefix = "" if was_vector else f"Channel {i}: "
            warnings.warn(prefix + diagnostic, InsufficientDataWarning, stacklevel=2)

    if was_vector:
        psd, per_window, _ = results[0]
        return PSDResult(psd, freq, per_window)

    n_channels = data.shape[1]
    psd = np.column_stack([psd for psd, _, _ in results]) if n_channels else np.empty((len(freq), 0))
    return PSDResult(
        psd,
        np.tile(freq[:, np.newaxis], (1, n_channels)),
        [per_window for _, per_window, _ in results],
    )


def nan_welch(
    x: np.ndarray,
    window: Union[int, np.ndarray],
    overlap: int,
    nfft: Optional[int] = None,
    fs: float = 1.0,
    max_gap_length: Optional[float] = None
) -> Tuple[np.ndarray, np.ndarray]:
    """Welch PSD of a signal with NaN gaps; returns (psd, freq) only."""
    psd, freq, _ = estimate_spectrum_with_gaps(
        x, window, overlap, nfft=nfft, fs=fs, max_gap_length=max_gap_length
    )
    return psd, freq


def _estimate_channel(
    column: np.ndarray,
    weights: np.ndarray,
    overlap: int,
    nfft: int,
    fs: float,
    max_gap_length: Optional[float],
    method: Optional[str],
    highpass_spec: Optional[FilterSpec],
    config: Config
) -> Tuple[np.ndarray, np.ndarray, Optional[str]]:
    """
    Estimate the PSD of one channel.

    Returns (psd, per_window, diagnostic); diagnostic is None on success.
    The caller turns diagnostics into warnings.
    """
    window_length = len(weights)
    n_freq = nfft // 2 + 1
    no_estimate = np.full(n_freq, np.nan)
    no_windows = np.empty((n_freq, 0))

    trimmed = trim_nans(column)
    if trimmed.size == 0:
        return no_estimate, no_windows, "Signal contains no valid samples; PSD is NaN."
    if trimmed.size < window_length:
        return no_estimate, no_windows, (
            f"Signal too short: {trimmed.size} samples after trimming NaN, "
            f"window length is {window_length}; PSD is NaN."
        )

    if max_gap_length is not None and np.isnan(trimmed).any():
        trimmed = interpolate_short_gaps(trimmed, max_gap_length, method=method, config=config)

    pooled = []
    runs = get_valid_segments(len(trimmed), find_nan_runs(trimmed))
    for start, stop in runs:
        if stop - start < window_length:
            logger.debug("Run [%d, %d) shorter than one window, skipped", start, stop)
            continue

        run = trimmed[start:stop]
        if highpass_spec is not None:
            run = _highpass(run, highpass_spec, config)

        sliced, _ = slice_signal(run, window_length, overlap)
        for k in range(sliced.shape[1]):
            _, pxx = signal.periodogram(
                sliced[:, k], fs=fs, window=weights, nfft=nfft,
                detrend=False, return_onesided=True, scaling="density",
            )
            pooled.append(pxx)

    if not pooled:
        return no_estimate, no_windows, (
            f"No valid segments: none of the {len(runs)} valid runs spans a window of "
            f"{window_length} samples; PSD is NaN."
        )

    per_window = np.column_stack(pooled)
    logger.debug("Pooled %d windows from %d valid runs", per_window.shape[1], len(runs))
    return per_window.mean(axis=1), per_window, None


def _highpass(run: np.ndarray, spec: FilterSpec, config: Config) -> np.ndarray:
    padlen = config.ZERO_PHASE_PAD_FACTOR * (max(len(spec.a), len(spec.b)) - 1)
    if len(run) <= padlen:
        logger.debug("Run of %d samples too short for the high-pass, used unfiltered", len(run))
        return run
    return signal.filtfilt(spec.b, spec.a, run, padlen=padlen)


def _window_weights(window, config: Config) -> np.ndarray:
    """Window weights from a length or an explicit weight vector."""
    if np.isscalar(window):
        length = as_count(window, "window", minimum=1)
        return signal.get_window(config.DEFAULT_WINDOW, length)

    weights = np.asarray(window)
    if weights.dtype.kind not in "iuf" or weights.ndim != 1 or weights.size == 0:
        raise InvalidArgumentError("window must be a positive length or a non-empty 1D array of weights")
    weights = weights.astype(float)
    if not np.all(np.isfinite(weights)):
        raise InvalidArgumentError("window weights must be finite")
    return weights
