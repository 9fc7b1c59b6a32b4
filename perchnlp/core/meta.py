from __future__ import annotations

from dataclasses import dataclass, fields

from torch import Tensor


@dataclass
class NLPModelMeta:
    """Problem metadata exposed to optimizers."""

    nvar: int
    x0: Tensor
    name: str = "Generic"


@dataclass
class Counters:
    """Number of evaluations performed, one counter per operation kind."""

    neval_obj: int = 0
    neval_grad: int = 0
    neval_hess: int = 0
    neval_hprod: int = 0

    def increment(self, name: str) -> None:
        if name not in {f.name for f in fields(self)}:
            raise KeyError(f"Unknown counter: {name}")
        setattr(self, name, getattr(self, name) + 1)

    def reset(self) -> None:
        for f in fields(self):
            setattr(self, f.name, 0)

    def sum(self) -> int:
        return sum(getattr(self, f.name) for f in fields(self))
