from __future__ import annotations


class PerchNLPError(Exception):
    """Base class for errors raised by perchnlp."""


# ----------------------------------------------------------
# Construction-time errors
# ----------------------------------------------------------
class ConfigurationError(PerchNLPError, ValueError):
    """Invalid model / dataset / minibatch configuration."""


class EmptyDatasetError(ConfigurationError):
    """A train or test split holds no samples."""


# ----------------------------------------------------------
# Per-call dimension errors
# ----------------------------------------------------------
class DimensionError(PerchNLPError, ValueError):
    """A vector or buffer disagrees with the problem dimension."""


class ShapeMismatch(DimensionError):
    """Flat vector length differs from the model's parameter count."""


class LengthMismatch(DimensionError):
    """Caller-supplied vector or buffer has the wrong length."""

    def __init__(self, name: str, expected, actual):
        self.name = name
        self.expected = expected
        self.actual = actual
        super().__init__(f"{name} has size {actual}, expected {expected}")
