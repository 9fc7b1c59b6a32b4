"""
perchnlp: PyTorch networks as smooth optimization problems.

Exposes a ``torch.nn.Module`` trained on minibatches through a flat
parameter vector and objective / gradient / Hessian evaluators.
"""

from .builder import NLPBuilder
from .config import NLPModelConfig, SolverConfig
from .core import (
    Accuracy,
    Counters,
    NLPModelMeta,
    TorchNLPModel,
    accuracy,
)
from .core.callbacks import (
    AccuracyCallback,
    Callback,
    CallbackList,
    EarlyStopping,
    HistoryCallback,
    MinibatchCallback,
)
from .data import DatasetSplit, MinibatchCursor, as_split
from .errors import (
    ConfigurationError,
    DimensionError,
    EmptyDatasetError,
    LengthMismatch,
    PerchNLPError,
    ShapeMismatch,
)
from .params import apply, flatten, num_params, unflatten, unflatten_named

__version__ = "0.1.0"

__all__ = [
    "NLPBuilder",
    "NLPModelConfig",
    "SolverConfig",
    "Accuracy",
    "Counters",
    "NLPModelMeta",
    "TorchNLPModel",
    "accuracy",
    "AccuracyCallback",
    "Callback",
    "CallbackList",
    "EarlyStopping",
    "HistoryCallback",
    "MinibatchCallback",
    "DatasetSplit",
    "MinibatchCursor",
    "as_split",
    "ConfigurationError",
    "DimensionError",
    "EmptyDatasetError",
    "LengthMismatch",
    "PerchNLPError",
    "ShapeMismatch",
    "apply",
    "flatten",
    "num_params",
    "unflatten",
    "unflatten_named",
]
