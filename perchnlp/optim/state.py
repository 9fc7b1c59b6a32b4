from __future__ import annotations

from dataclasses import dataclass

from torch import Tensor


@dataclass
class SolverState:
    x: Tensor

    iteration: int = 0

    f: float | None = None
    gnorm: float | None = None

    stop: bool = False
    converged: bool = False
