"""
Biosignal Preprocessing Toolkit

Gap-tolerant processing primitives for biomedical signals with missing
(NaN) samples: run detection over n-dimensional arrays, gap classification
and interpolation, segment-wise causal/zero-phase filtering, and segment-wise
Welch power spectral density estimation.
"""

__version__ = "0.1.0"

from .sequences import find_runs

from .gaps import (
    find_nan_runs,
    classify_gaps,
    interpolate_gaps,
    interpolate_short_gaps,
    fill_missing,
    get_valid_segments,
)

from .filters import (
    FilterSpec,
    design_filter,
    filter_with_gaps,
    nan_filter,
    nan_filtfilt,
)

from .spectral import (
    PSDResult,
    estimate_spectrum_with_gaps,
    nan_welch,
)

from .utils import (
    trim_nans,
    slice_signal,
)

from .config import Config, default_config

from .exceptions import (
    InvalidArgumentError,
    SignalProcessingWarning,
    InsufficientDataWarning,
    GapBoundWarning,
)

__all__ = [
    # Runs
    "find_runs",
    # Gaps
    "find_nan_runs",
    "classify_gaps",
    "interpolate_gaps",
    "interpolate_short_gaps",
    "fill_missing",
    "get_valid_segments",
    # Filters
    "FilterSpec",
    "design_filter",
    "filter_with_gaps",
    "nan_filter",
    "nan_filtfilt",
    # Spectral
    "PSDResult",
    "estimate_spectrum_with_gaps",
    "nan_welch",
    # Utilities
    "trim_nans",
    "slice_signal",
    # Configuration
    "Config",
    "default_config",
    # Errors and diagnostics
    "InvalidArgumentError",
    "SignalProcessingWarning",
    "InsufficientDataWarning",
    "GapBoundWarning",
]
