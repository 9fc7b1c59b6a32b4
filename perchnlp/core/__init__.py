from .model import TorchNLPModel
from .meta import Counters, NLPModelMeta
from .metrics import Accuracy, Metric, accuracy
from .callbacks import (
    AccuracyCallback,
    Callback,
    CallbackList,
    EarlyStopping,
    HistoryCallback,
    MinibatchCallback,
)

__all__ = [
    "TorchNLPModel",
    "Counters",
    "NLPModelMeta",
    "Accuracy",
    "Metric",
    "accuracy",
    "AccuracyCallback",
    "Callback",
    "CallbackList",
    "EarlyStopping",
    "HistoryCallback",
    "MinibatchCallback",
]
