from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Tuple

import numpy as np
import torch
from torch import Tensor, nn

from ..config.schema import NLPModelConfig
from ..data.minibatch import Batch, MinibatchCursor, validate_size_minibatch
from ..data.split import as_split
from ..errors import ConfigurationError
from ..params.codec import flatten, num_params
from . import evaluator
from .meta import Counters, NLPModelMeta
from .metrics import accuracy

logger = logging.getLogger(__name__)

LossFn = Callable[[Tensor, Tensor], Tensor]


class TorchNLPModel:
    """
    A ``torch.nn.Module`` seen as a smooth unconstrained problem ``min f(w)``.

    ``f`` is the loss of the network on the *current training minibatch*;
    ``w`` is the flat vector of all network parameters. The current
    minibatch only changes when the caller asks for it (``minibatch_next_train``,
    ``rand_minibatch_train``, ...), so repeated evaluations at the same point
    see the same sample.

    Parameters:
        model (nn.Module): The network. Its parameters define ``nvar``.
        data_train, data_test: ``(features, labels)`` pairs, TensorDatasets
            or DatasetSplits. Both must be non-empty.
        loss_fn: ``(predictions, labels) -> scalar``. Defaults to
            ``nn.CrossEntropyLoss()``.
        size_minibatch (int): Number of pieces each split is cut into.
        rng: ``np.random.Generator`` or integer seed used for shuffling and
            random batch selection.
        current_training_minibatch, current_test_minibatch: Optional explicit
            starting batches instead of random ones.
        config (NLPModelConfig): Defaults for the options above.
    """

    def __init__(
        self,
        model: nn.Module,
        data_train: Any,
        data_test: Any,
        loss_fn: Optional[LossFn] = None,
        *,
        size_minibatch: Optional[int] = None,
        rng: np.random.Generator | int | None = None,
        current_training_minibatch: Optional[Batch] = None,
        current_test_minibatch: Optional[Batch] = None,
        config: Optional[NLPModelConfig] = None,
        name: str = "Generic",
    ) -> None:
        self.config = config if config is not None else NLPModelConfig()
        if size_minibatch is None:
            size_minibatch = self.config.size_minibatch

        train = as_split(data_train, "train data")
        test = as_split(data_test, "test data")

        if num_params(model) == 0:
            raise ConfigurationError("model has no parameters")

        # RNG / device setup
        if isinstance(rng, np.random.Generator):
            self.rng = rng
        elif rng is not None:
            self.rng = np.random.default_rng(rng)
        else:
            self.rng = np.random.default_rng(self.config.seed)

        self.device = torch.device(self.config.device)
        self.model = model.to(self.device)
        self.loss_fn = loss_fn if loss_fn is not None else nn.CrossEntropyLoss()
        self.dtype: torch.dtype = next(self.model.parameters()).dtype

        # Cursors share the model's RNG so one seed fixes every draw
        self.train_cursor = MinibatchCursor(
            train,
            size_minibatch,
            shuffle=self.config.shuffle_train,
            rng=self.rng,
            dtype=self.dtype,
            device=self.device,
            current=current_training_minibatch,
        )
        self.test_cursor = MinibatchCursor(
            test,
            size_minibatch,
            shuffle=self.config.shuffle_test,
            rng=self.rng,
            dtype=self.dtype,
            device=self.device,
            current=current_test_minibatch,
        )
        self.size_minibatch = self.train_cursor.size_minibatch

        self.w: Tensor = flatten(self.model)
        self.meta = NLPModelMeta(nvar=self.w.numel(), x0=self.w.clone(), name=name)
        self.counters = Counters()

    # ------------------------------------------------------------------
    # Problem metadata
    # ------------------------------------------------------------------
    @property
    def nvar(self) -> int:
        return self.meta.nvar

    @property
    def current_training_minibatch(self) -> Batch:
        return self.train_cursor.current

    @property
    def current_test_minibatch(self) -> Batch:
        return self.test_cursor.current

    def cursor(self, split: str) -> MinibatchCursor:
        if split == "train":
            return self.train_cursor
        if split == "test":
            return self.test_cursor
        raise ValueError(f"split must be 'train' or 'test', got '{split}'")

    def reset_counters(self) -> None:
        self.counters.reset()

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------
    def obj(self, w) -> float:
        return evaluator.obj(self, w)

    def grad(self, w, g=None):
        return evaluator.grad(self, w, g)

    def objgrad(self, w, g=None) -> Tuple[float, Any]:
        return evaluator.objgrad(self, w, g)

    def hess(self, w, h=None):
        return evaluator.hess(self, w, h)

    def hprod(self, w, v, hv=None):
        return evaluator.hprod(self, w, v, hv)

    def accuracy(self, split: str = "test") -> float:
        return accuracy(self, split)

    # ------------------------------------------------------------------
    # Minibatch control
    # ------------------------------------------------------------------
    def reset_minibatch_train(self) -> None:
        self.train_cursor.reset()

    def minibatch_next_train(self) -> bool:
        return self.train_cursor.advance()

    def rand_minibatch_train(self, rng: np.random.Generator | None = None) -> Batch:
        return self.train_cursor.random_select(rng)

    def reset_minibatch_test(self) -> None:
        self.test_cursor.reset()

    def minibatch_next_test(self) -> bool:
        return self.test_cursor.advance()

    def rand_minibatch_test(self, rng: np.random.Generator | None = None) -> Batch:
        return self.test_cursor.random_select(rng)

    def set_size_minibatch(self, size_minibatch: int) -> None:
        """Re-partition both splits and draw fresh random current batches."""
        for cursor in (self.train_cursor, self.test_cursor):
            validate_size_minibatch(size_minibatch, len(cursor.split))
        self.train_cursor.set_size_minibatch(size_minibatch)
        self.test_cursor.set_size_minibatch(size_minibatch)
        self.size_minibatch = self.train_cursor.size_minibatch

    # ------------------------------------------------------------------
    # Precision
    # ------------------------------------------------------------------
    def convert_precision(self, dtype: torch.dtype) -> None:
        """Move parameters, stored vector, loss and minibatches to ``dtype``."""
        if dtype == self.dtype:
            return
        logger.debug("converting %s from %s to %s", self.meta.name, self.dtype, dtype)
        self.model.to(dtype=dtype)
        self.w = self.w.to(dtype)
        if isinstance(self.loss_fn, nn.Module):
            self.loss_fn.to(dtype=dtype)
        self.train_cursor.set_dtype(dtype)
        self.test_cursor.set_dtype(dtype)
        self.dtype = dtype

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(name={self.meta.name!r}, nvar={self.nvar}, "
            f"dtype={self.dtype}, size_minibatch={self.size_minibatch})"
        )
