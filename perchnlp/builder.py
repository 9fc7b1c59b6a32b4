from __future__ import annotations

from typing import Any, Sequence

import numpy as np
import torch
from torch import nn

from .config import NLPModelConfig
from .core.model import LossFn, TorchNLPModel
from .data.split import DatasetSplit, as_split
from .models import SimpleMLP
from .utils import make_splits


class NLPBuilder:
    """
    Builder assembling a TorchNLPModel from a network class and data.

    Example::

        nlp = (
            NLPBuilder()
            .simple_classifier(X, y, hidden=[16])
            .minibatches(10)
            .build(seed=0)
        )
    """

    def __init__(self) -> None:
        self._model_cls: type[nn.Module] | None = None
        self._model_kwargs: dict[str, Any] = {}
        self._loss_fn: LossFn | None = None

        self._X: Any = None
        self._y: Any = None
        self._split_kwargs: dict[str, Any] = {}

        self._train: DatasetSplit | None = None
        self._test: DatasetSplit | None = None

        self._size_minibatch: int = 100
        self._shuffle_train: bool = True
        self._shuffle_test: bool = False

        self._name: str = "Generic"

    # ------------------------------------------------------------------
    # Model configuration
    # ------------------------------------------------------------------
    def model(
        self,
        model_cls: type[nn.Module],
        /,
        *,
        loss_fn: LossFn | None = None,
        **model_kwargs: Any,
    ) -> "NLPBuilder":
        self._model_cls = model_cls
        self._model_kwargs = model_kwargs
        if loss_fn is not None:
            self._loss_fn = loss_fn
        return self

    def loss(self, loss_fn: LossFn) -> "NLPBuilder":
        self._loss_fn = loss_fn
        return self

    def name(self, name: str) -> "NLPBuilder":
        self._name = name
        return self

    def simple_classifier(
        self,
        X,
        y,
        *,
        hidden: Sequence[int] | None = None,
        activation: str = "relu",
        test_split: float = 0.2,
        stratify: bool = True,
        normalize: str | None = None,
    ) -> "NLPBuilder":
        if hidden is None:
            hidden = [32]

        X_arr = X if isinstance(X, (np.ndarray, torch.Tensor)) else np.asarray(X)
        input_dim = X_arr.shape[1]

        if isinstance(y, torch.Tensor):
            n_classes = int(torch.unique(y).numel())
        else:
            n_classes = int(np.unique(y).size)

        self._model_cls = SimpleMLP
        self._model_kwargs = {
            "input_dim": input_dim,
            "hidden": list(hidden),
            "output_dim": n_classes,
            "activation": activation,
        }
        self._loss_fn = nn.CrossEntropyLoss()

        self._X = X
        self._y = y
        self._split_kwargs = {
            "test_split": test_split,
            "stratify": stratify,
            "normalize": normalize,
        }
        return self

    # ------------------------------------------------------------------
    # Data configuration
    # ------------------------------------------------------------------
    def data(self, X, y, **split_kwargs: Any) -> "NLPBuilder":
        self._X = X
        self._y = y
        self._split_kwargs = split_kwargs
        return self

    def splits(self, train, test) -> "NLPBuilder":
        self._train = as_split(train, "train data")
        self._test = as_split(test, "test data")
        return self

    def minibatches(
        self,
        size_minibatch: int,
        *,
        shuffle_train: bool = True,
        shuffle_test: bool = False,
    ) -> "NLPBuilder":
        self._size_minibatch = size_minibatch
        self._shuffle_train = shuffle_train
        self._shuffle_test = shuffle_test
        return self

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _ensure_splits(self, seed: int | None, dtype: torch.dtype):
        if self._train is not None and self._test is not None:
            return self._train, self._test
        if self._X is None or self._y is None:
            raise ValueError("No data provided.")
        kws = dict(self._split_kwargs)
        if "seed" not in kws and seed is not None:
            kws["seed"] = seed
        kws.setdefault("dtype", dtype)
        return make_splits(self._X, self._y, **kws)

    # ------------------------------------------------------------------
    # Build
    # ------------------------------------------------------------------
    def build_model(self, dtype: torch.dtype | None = None) -> nn.Module:
        if self._model_cls is None:
            raise ValueError("Model not set.")
        model = self._model_cls(**self._model_kwargs)
        if dtype is not None:
            model = model.to(dtype=dtype)
        return model

    def build(
        self,
        *,
        seed: int | None = None,
        device: str = "cpu",
        dtype: torch.dtype | None = None,
    ) -> TorchNLPModel:
        if self._model_cls is None:
            raise ValueError("Model not set.")

        if seed is not None:
            torch.manual_seed(seed)
        model = self.build_model(dtype)

        if self._loss_fn is None:
            if hasattr(model, "net") and isinstance(model.net[-1], nn.Linear):
                out_dim = model.net[-1].out_features
                self._loss_fn = nn.MSELoss() if out_dim == 1 else nn.CrossEntropyLoss()
            else:
                self._loss_fn = nn.CrossEntropyLoss()

        param_dtype = next(model.parameters()).dtype
        train, test = self._ensure_splits(seed, param_dtype)

        config = NLPModelConfig(
            size_minibatch=self._size_minibatch,
            shuffle_train=self._shuffle_train,
            shuffle_test=self._shuffle_test,
            seed=seed,
            device=device,
        )
        return TorchNLPModel(
            model,
            train,
            test,
            self._loss_fn,
            config=config,
            name=self._name,
        )
