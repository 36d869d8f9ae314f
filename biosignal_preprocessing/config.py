"""
Configuration for gap-aware filtering and spectral estimation.

Centralizes the tunable defaults (interpolation, windowing, filter padding,
channel fan-out) so that every public function shares one consistent setup.
Explicit function arguments always take precedence over these values.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Config:
    """Processing configuration parameters."""

    # ==========================================================================
    # Gap Interpolation
    # ==========================================================================
    # One of 'nearest', 'linear', 'pchip' ('cubic'), 'spline'
    INTERP_METHOD: str = "linear"

    # Valid samples taken on each side of a gap by the curve-fitting
    # methods ('pchip', 'cubic', 'spline'). 'nearest' and 'linear' only
    # need the two samples that bracket the gap.
    CURVE_FIT_CONTEXT: int = 3

    # ==========================================================================
    # Filtering
    # ==========================================================================
    # Zero-phase filtering pads each segment with ZERO_PHASE_PAD_FACTOR
    # times the filter order (max(len(a), len(b)) - 1) samples. Segments
    # not longer than the padding are left unfiltered.
    ZERO_PHASE_PAD_FACTOR: int = 3

    # ==========================================================================
    # Spectral Estimation
    # ==========================================================================
    # Window shape used when the window is given as a length
    DEFAULT_WINDOW: str = "hamming"

    # Order of the optional Butterworth high-pass applied to each valid run
    HIGHPASS_ORDER: int = 4

    # ==========================================================================
    # Channel Fan-out
    # ==========================================================================
    # None or 1 processes channels sequentially; otherwise passed to joblib
    N_JOBS: Optional[int] = None


# Default configuration instance
default_config = Config()
