from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List

if TYPE_CHECKING:
    from ..optim.state import SolverState
    from .model import TorchNLPModel

logger = logging.getLogger(__name__)


class Callback:
    def on_solve_begin(self, nlp: "TorchNLPModel", state: "SolverState") -> None: ...
    def on_iteration_end(self, nlp: "TorchNLPModel", state: "SolverState") -> None: ...
    def on_solve_end(self, nlp: "TorchNLPModel", state: "SolverState") -> None: ...


@dataclass
class MinibatchCallback(Callback):
    """
    Advance a minibatch cursor once per solver iteration.

    When the partition is used up the cursor is reset and advanced again,
    which starts a new epoch. With ``reset_on_exhaustion=False`` the last
    batch simply stays current.
    """

    split: str = "train"
    reset_on_exhaustion: bool = True
    epochs: int = 0

    def on_solve_begin(self, nlp: "TorchNLPModel", state: "SolverState") -> None:
        nlp.cursor(self.split).reset()
        nlp.cursor(self.split).advance()

    def on_iteration_end(self, nlp: "TorchNLPModel", state: "SolverState") -> None:
        cursor = nlp.cursor(self.split)
        if cursor.advance():
            return
        if self.reset_on_exhaustion:
            self.epochs += 1
            logger.debug("%s epoch %d finished", self.split, self.epochs)
            cursor.reset()
            cursor.advance()


@dataclass
class HistoryCallback(Callback):
    history: Dict[str, Any] = field(
        default_factory=lambda: {
            "iteration": [],
            "objective": [],
            "grad_norm": [],
        }
    )

    def on_iteration_end(self, nlp: "TorchNLPModel", state: "SolverState") -> None:
        h = self.history
        h["iteration"].append(state.iteration)
        h["objective"].append(state.f)
        h["grad_norm"].append(state.gnorm)


@dataclass
class AccuracyCallback(Callback):
    """Record accuracy on ``split`` every ``every`` iterations."""

    split: str = "test"
    every: int = 1
    history: Dict[str, List[float]] = field(
        default_factory=lambda: {"iteration": [], "accuracy": []}
    )

    def on_iteration_end(self, nlp: "TorchNLPModel", state: "SolverState") -> None:
        if state.iteration % self.every:
            return
        self.history["iteration"].append(state.iteration)
        self.history["accuracy"].append(nlp.accuracy(self.split))


@dataclass
class EarlyStopping(Callback):
    patience: int = 10
    min_delta: float = 0.0

    best: float | None = None
    wait: int = 0
    stopped_iteration: int | None = None

    def on_iteration_end(self, nlp: "TorchNLPModel", state: "SolverState") -> None:
        current = state.f
        if current is None:
            return
        if self.best is None or current < self.best - self.min_delta:
            self.best = current
            self.wait = 0
        else:
            self.wait += 1
            if self.wait >= self.patience:
                self.stopped_iteration = state.iteration
                state.stop = True


class CallbackList(Callback):
    def __init__(self, callbacks: List[Callback] | None = None):
        self.callbacks = callbacks or []

    def append(self, cb: Callback) -> None:
        self.callbacks.append(cb)

    def on_solve_begin(self, nlp: "TorchNLPModel", state: "SolverState") -> None:
        for cb in self.callbacks:
            cb.on_solve_begin(nlp, state)

    def on_iteration_end(self, nlp: "TorchNLPModel", state: "SolverState") -> None:
        for cb in self.callbacks:
            cb.on_iteration_end(nlp, state)

    def on_solve_end(self, nlp: "TorchNLPModel", state: "SolverState") -> None:
        for cb in self.callbacks:
            cb.on_solve_end(nlp, state)
