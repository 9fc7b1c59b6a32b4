from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from ..core.callbacks import Callback


# ----------------------------------------------------------
# Model state configuration
# ----------------------------------------------------------
@dataclass
class NLPModelConfig:
    """Options used when assembling a TorchNLPModel.

    ``size_minibatch`` is a divisor: each split is cut into batches of
    ``ceil(len(split) / size_minibatch)`` samples.
    """

    size_minibatch: int = 100

    # Conventionally only the training split is shuffled
    shuffle_train: bool = True
    shuffle_test: bool = False

    # Device / reproducibility
    seed: Optional[int] = None
    device: str = "cpu"


# ----------------------------------------------------------
# Reference solver configuration
# ----------------------------------------------------------
@dataclass
class SolverConfig:
    """Hyperparameters for the backtracking steepest-descent driver."""

    max_iter: int = 100

    # Armijo backtracking
    step_size: float = 1.0
    backtrack: float = 0.5
    c1: float = 1e-4
    max_backtracks: int = 20

    # Stop when ||g|| falls below this
    gtol: float = 1e-6

    # Callbacks run once per iteration
    callbacks: List["Callback"] = field(default_factory=list)
