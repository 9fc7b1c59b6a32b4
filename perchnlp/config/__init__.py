from .schema import NLPModelConfig, SolverConfig

__all__ = ["NLPModelConfig", "SolverConfig"]
