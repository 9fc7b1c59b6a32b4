from .data import make_splits
from .plots import plot_accuracy, plot_history
from .seed import set_seed

__all__ = ["make_splits", "plot_accuracy", "plot_history", "set_seed"]
