"""
Error and diagnostic categories used by the gap-aware processing functions.

Argument misuse raises InvalidArgumentError immediately. Data-quality problems
(too little data, ambiguous gap configuration) are reported through the
warnings machinery and the call still returns a well-defined NaN/empty result.
"""


class InvalidArgumentError(ValueError):
    """Malformed argument: bad axis, window, overlap, coefficients or input type."""


class SignalProcessingWarning(UserWarning):
    """Base class for diagnostics emitted by this toolkit."""


class InsufficientDataWarning(SignalProcessingWarning):
    """Not enough valid samples to compute the requested result."""


class GapBoundWarning(SignalProcessingWarning):
    """The maximum gap length was omitted and all gaps are preserved."""
