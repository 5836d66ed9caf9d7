"""Fatal input errors raised before any computation starts.

Non-fatal conditions (beta CDF domain violations, a VB loop that hits its
iteration cap) are logged and recorded on the result instead.
"""


class InvalidEvidenceError(ValueError):
    """Malformed evidence matrix, prior, or family membership matrix."""


class ShapeMismatchError(ValueError):
    """Non-scalar arguments to the beta CDF do not share one shape."""
