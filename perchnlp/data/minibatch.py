"""
Minibatch partition and cursor.

A split is cut into ``size_minibatch`` pieces (the last one may be short).
The cursor walks that partition on request and never wraps around on its
own: once the last batch has been handed out, ``advance`` keeps returning
False until ``reset`` is called.
"""

from __future__ import annotations

import logging
import math
from typing import Iterator, List, Optional, Tuple

import numpy as np
import torch
from torch import Tensor

from ..errors import ConfigurationError
from .split import DatasetSplit

logger = logging.getLogger(__name__)

Batch = Tuple[Tensor, Tensor]


def validate_size_minibatch(size_minibatch, count: int) -> int:
    if isinstance(size_minibatch, bool) or not isinstance(
        size_minibatch, (int, np.integer)
    ):
        raise ConfigurationError(
            f"size_minibatch must be an integer, got {type(size_minibatch).__name__}"
        )
    size_minibatch = int(size_minibatch)
    if size_minibatch <= 0:
        raise ConfigurationError(f"size_minibatch must be positive, got {size_minibatch}")
    if size_minibatch > count:
        raise ConfigurationError(
            f"size_minibatch={size_minibatch} exceeds the number of samples ({count})"
        )
    return size_minibatch


def make_partition(
    count: int,
    size_minibatch: int,
    rng: np.random.Generator | None = None,
) -> List[Tensor]:
    """Split ``range(count)`` into index batches of ``ceil(count / size_minibatch)``.

    When ``rng`` is given the sample order is shuffled first.
    """
    size_minibatch = validate_size_minibatch(size_minibatch, count)
    batch_size = math.ceil(count / size_minibatch)
    if rng is not None:
        order = torch.from_numpy(rng.permutation(count))
    else:
        order = torch.arange(count)
    return list(torch.split(order, batch_size))


class MinibatchCursor:
    """
    Stateful pointer into the minibatch partition of one dataset split.

    ``status`` is ``None`` right after construction or ``reset`` and the
    index of the last batch handed out by ``advance`` otherwise.
    ``current`` is the batch the evaluator reads; it only changes through
    ``advance``, ``random_select`` or ``set_current``.
    """

    def __init__(
        self,
        split: DatasetSplit,
        size_minibatch: int,
        *,
        shuffle: bool = False,
        rng: np.random.Generator | None = None,
        dtype: torch.dtype | None = None,
        device: torch.device | str = "cpu",
        current: Optional[Batch] = None,
    ) -> None:
        self.split = split
        self.size_minibatch = validate_size_minibatch(size_minibatch, len(split))
        self.shuffle = shuffle
        self.rng = rng if rng is not None else np.random.default_rng()
        self.dtype = dtype
        self.device = torch.device(device)

        self.partition: List[Tensor] = []
        self.status: Optional[int] = None
        self.exhausted = False
        self._build()

        if current is not None:
            self.set_current(current)
        else:
            self.random_select()

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------
    @property
    def num_batches(self) -> int:
        return len(self.partition)

    @property
    def batch_size(self) -> int:
        return math.ceil(len(self.split) / self.size_minibatch)

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------
    def reset(self) -> None:
        """Rebuild the partition and rewind; ``current`` is left as is."""
        self._build()
        self.status = None
        self.exhausted = False
        logger.debug("minibatch cursor reset (%d batches)", self.num_batches)

    def advance(self) -> bool:
        """Move to the next batch; False once the partition is used up."""
        if self.exhausted:
            return False
        nxt = 0 if self.status is None else self.status + 1
        if nxt >= self.num_batches:
            self.exhausted = True
            logger.debug("minibatch cursor exhausted after %d batches", self.num_batches)
            return False
        self.current = self._load(self.partition[nxt])
        self.status = nxt
        return True

    def random_select(self, rng: np.random.Generator | None = None) -> Batch:
        """Pick a uniformly random batch as ``current``; position is untouched."""
        rng = rng if rng is not None else self.rng
        k = int(rng.integers(self.num_batches))
        self.current = self._load(self.partition[k])
        return self.current

    def set_current(self, batch: Batch) -> None:
        x, y = batch
        self.current = (self._cast(torch.as_tensor(x)), self._cast(torch.as_tensor(y)))

    def set_size_minibatch(self, size_minibatch: int) -> None:
        self.size_minibatch = validate_size_minibatch(size_minibatch, len(self.split))
        self.reset()
        self.random_select()

    # ------------------------------------------------------------------
    # Read-only traversal
    # ------------------------------------------------------------------
    def iter_batches(self) -> Iterator[Batch]:
        """Full pass over the partition, independent of the cursor state."""
        for idx in self.partition:
            yield self._load(idx)

    # ------------------------------------------------------------------
    # Precision / device
    # ------------------------------------------------------------------
    def set_dtype(self, dtype: torch.dtype) -> None:
        """Cast floating tensors of ``current`` and of every later batch to ``dtype``."""
        self.dtype = dtype
        self.set_current(self.current)

    def to(self, device: torch.device | str) -> "MinibatchCursor":
        self.device = torch.device(device)
        self.set_current(self.current)
        return self

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _build(self) -> None:
        rng = self.rng if self.shuffle else None
        self.partition = make_partition(len(self.split), self.size_minibatch, rng)

    def _cast(self, t: Tensor) -> Tensor:
        if self.dtype is not None and t.is_floating_point():
            return t.to(device=self.device, dtype=self.dtype)
        return t.to(device=self.device)

    def _load(self, idx: Tensor) -> Batch:
        x, y = self.split.take(idx)
        return self._cast(x), self._cast(y)
