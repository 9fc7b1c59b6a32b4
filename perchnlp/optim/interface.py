from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable

from ..config.schema import SolverConfig
from .state import SolverState

if TYPE_CHECKING:
    from ..core.model import TorchNLPModel


Solver = Callable[..., SolverState]


def get_solver(name: str) -> Solver:
    name = name.lower()
    if name in ("descent", "steepest_descent"):
        from . import descent

        return descent.steepest_descent
    raise KeyError(f"Unknown solver: {name}")


def solve(
    nlp: "TorchNLPModel",
    name: str = "descent",
    x0: Any = None,
    config: SolverConfig | None = None,
) -> SolverState:
    return get_solver(name)(nlp, x0=x0, config=config)
