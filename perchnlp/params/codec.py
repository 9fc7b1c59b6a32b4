"""
Flat-vector codec for ``torch.nn.Module`` parameters.

Traversal order is ``module.named_parameters()`` order: layers in
registration order, weight before bias inside a layer, row-major
elements inside a tensor.
"""

from __future__ import annotations

import copy
from typing import Dict

import torch
from torch import Tensor, nn

from ..errors import ShapeMismatch


def num_params(model: nn.Module) -> int:
    return sum(p.numel() for p in model.parameters())


def _check_size(vector: Tensor, model: nn.Module) -> None:
    if vector.dim() != 1:
        raise ShapeMismatch(
            f"expected a 1-D parameter vector, got shape {tuple(vector.shape)}"
        )
    n = num_params(model)
    if vector.numel() != n:
        raise ShapeMismatch(
            f"parameter vector has {vector.numel()} elements, model has {n}"
        )


def flatten(model: nn.Module) -> Tensor:
    """Concatenate every parameter of ``model`` into one detached 1-D tensor."""
    return torch.cat([p.detach().reshape(-1) for p in model.parameters()]).clone()


def unflatten_named(vector: Tensor, model: nn.Module) -> Dict[str, Tensor]:
    """
    Split ``vector`` into tensors shaped like ``model``'s parameters.

    The returned tensors are reshaped slices of ``vector``, so gradients flow back
    to it when it is used with ``torch.func.functional_call``.
    """
    _check_size(vector, model)
    out: Dict[str, Tensor] = {}
    offset = 0
    for name, p in model.named_parameters():
        size = p.numel()
        out[name] = vector[offset : offset + size].reshape(p.shape)
        offset += size
    return out


def apply(vector: Tensor, model: nn.Module) -> nn.Module:
    """Write ``vector`` into ``model``'s parameter tensors in place."""
    _check_size(vector, model)
    offset = 0
    with torch.no_grad():
        for p in model.parameters():
            size = p.numel()
            p.copy_(vector[offset : offset + size].reshape(p.shape))
            offset += size
    return model


def unflatten(vector: Tensor, template: nn.Module) -> nn.Module:
    """Return a copy of ``template`` carrying the parameters in ``vector``."""
    _check_size(vector, template)
    model = copy.deepcopy(template)
    return apply(vector, model)
