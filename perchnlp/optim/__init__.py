from .descent import steepest_descent
from .interface import get_solver, solve
from .state import SolverState

__all__ = ["steepest_descent", "get_solver", "solve", "SolverState"]
