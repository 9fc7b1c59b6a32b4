from .mlp import SimpleMLP, ACTS

__all__ = ["SimpleMLP", "ACTS"]
