from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

import torch

if TYPE_CHECKING:
    from .model import TorchNLPModel


class Metric(ABC):
    """Simple streaming metric API: reset -> update -> compute."""

    def __init__(self, name: str):
        self.name = name
        self.reset()

    @abstractmethod
    def reset(self) -> None: ...

    @abstractmethod
    def update(self, preds: torch.Tensor, target: torch.Tensor) -> None: ...

    @abstractmethod
    def compute(self) -> float: ...


class Accuracy(Metric):
    """Fraction of correctly classified samples.

    Targets may be class indices or one-hot rows; predictions are logits /
    scores (argmax) or single probabilities (thresholded at 0.5).
    """

    def __init__(self):
        super().__init__(name="accuracy")

    def reset(self) -> None:
        self._correct = 0
        self._total = 0

    def update(self, preds: torch.Tensor, target: torch.Tensor) -> None:
        preds = preds.detach()
        target = target.detach()
        if preds.ndim > 1 and preds.size(-1) > 1:
            y_hat = preds.argmax(dim=-1)
        else:
            y_hat = (preds.reshape(-1) >= 0.5).long()
        if target.ndim > 1 and target.shape == preds.shape and target.size(-1) > 1:
            target = target.argmax(dim=-1)
        y = target.reshape(y_hat.shape).long()
        self._correct += int((y_hat == y).sum().item())
        self._total += int(y.numel())

    def compute(self) -> float:
        if self._total == 0:
            return 0.0
        return self._correct / self._total


def accuracy(nlp: "TorchNLPModel", split: str = "test") -> float:
    """
    Classification accuracy of the network over one full pass of ``split``.

    Walks every batch of the split's partition without touching the
    cursor's position, exhaustion flag or current minibatch.
    """
    cursor = nlp.cursor(split)
    metric = Accuracy()

    model = nlp.model
    was_training = model.training
    model.eval()
    try:
        with torch.no_grad():
            for x, y in cursor.iter_batches():
                metric.update(model(x), y)
    finally:
        model.train(was_training)

    return metric.compute()
