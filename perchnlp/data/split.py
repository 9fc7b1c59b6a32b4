from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np
import torch
from torch import Tensor
from torch.utils.data import TensorDataset

from ..errors import ConfigurationError, EmptyDatasetError


def _to_tensor(a: Any) -> Tensor:
    if isinstance(a, Tensor):
        return a
    if isinstance(a, np.ndarray):
        return torch.from_numpy(a)
    return torch.as_tensor(a)


@dataclass(frozen=True)
class DatasetSplit:
    """A (features, labels) pair sharing the leading sample dimension."""

    features: Tensor
    labels: Tensor

    def __post_init__(self) -> None:
        if self.features.dim() == 0 or self.labels.dim() == 0:
            raise ConfigurationError("features and labels need a sample dimension")
        if self.features.shape[0] != self.labels.shape[0]:
            raise ConfigurationError(
                f"features have {self.features.shape[0]} samples, "
                f"labels have {self.labels.shape[0]}"
            )
        if self.features.shape[0] == 0:
            raise EmptyDatasetError("dataset split has no samples")

    def __len__(self) -> int:
        return int(self.features.shape[0])

    def take(self, idx: Tensor) -> tuple[Tensor, Tensor]:
        return self.features[idx], self.labels[idx]


def as_split(data: Any, name: str = "data") -> DatasetSplit:
    """
    Coerce ``data`` into a DatasetSplit.

    Accepts a DatasetSplit, a TensorDataset of (features, labels) or a
    2-sequence of tensors / numpy arrays. ``None``, empty sequences and
    zero-sample splits raise EmptyDatasetError.
    """
    if isinstance(data, DatasetSplit):
        return data
    if data is None:
        raise EmptyDatasetError(f"{name} is empty")
    if isinstance(data, TensorDataset):
        tensors = data.tensors
    else:
        try:
            tensors = tuple(data)
        except TypeError:
            raise ConfigurationError(
                f"{name} must be a (features, labels) pair, got {type(data).__name__}"
            ) from None
    if len(tensors) == 0:
        raise EmptyDatasetError(f"{name} is empty")
    if len(tensors) != 2:
        raise ConfigurationError(
            f"{name} must hold exactly (features, labels), got {len(tensors)} items"
        )
    X, y = (_to_tensor(t) for t in tensors)
    try:
        return DatasetSplit(X, y)
    except EmptyDatasetError:
        raise EmptyDatasetError(f"{name} has no samples") from None
