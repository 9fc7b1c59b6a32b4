"""
Objective / gradient / Hessian evaluation for a TorchNLPModel.

Every operation goes through ``synchronize`` first: the incoming vector
decides the working precision, is written into the network, and the
evaluation counters are bumped. The loss handed to autograd is a pure
function of the flat vector (``functional_call`` over views of it), so
differentiation never reads the in-place parameters.

All operations read the current *training* minibatch and never move the
cursor; advancing is left to the caller.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Optional, Tuple

import numpy as np
import torch
from torch import Tensor
from torch.func import functional_call

from ..errors import LengthMismatch
from ..params.codec import apply, unflatten_named

if TYPE_CHECKING:
    from .model import TorchNLPModel

LossAt = Callable[[Tensor], Tensor]


# ----------------------------------------------------------------------
# Argument handling
# ----------------------------------------------------------------------
def _as_vector(nlp: "TorchNLPModel", w: Any) -> Tensor:
    if isinstance(w, np.ndarray):
        w = torch.from_numpy(np.ascontiguousarray(w))
    w = torch.as_tensor(w, device=nlp.device)
    if not w.is_floating_point():
        w = w.to(nlp.dtype)
    return w.detach().reshape(-1)


def _shape(buf: Any) -> Tuple[int, ...]:
    return tuple(buf.shape) if hasattr(buf, "shape") else np.shape(buf)


def _check_length(name: str, buf: Any, expected: int) -> None:
    if _shape(buf) != (expected,):
        raise LengthMismatch(name, (expected,), _shape(buf))


def _check_matrix(name: str, buf: Any, n: int) -> None:
    if _shape(buf) != (n, n):
        raise LengthMismatch(name, (n, n), _shape(buf))


def _write(buf: Any, value: Tensor) -> Any:
    """Copy ``value`` into a caller-supplied torch or NumPy buffer."""
    if isinstance(buf, Tensor):
        with torch.no_grad():
            buf.copy_(value.reshape(buf.shape))
        return buf
    buf[...] = value.detach().cpu().numpy().reshape(np.shape(buf))
    return buf


# ----------------------------------------------------------------------
# Shared pre-step
# ----------------------------------------------------------------------
def synchronize(nlp: "TorchNLPModel", w: Any, *counters: str) -> Tensor:
    """Reconcile precision, write ``w`` into the network and count the call."""
    w = _as_vector(nlp, w)
    if w.dtype != nlp.dtype:
        nlp.convert_precision(w.dtype)
    apply(w, nlp.model)
    nlp.w = w.clone()
    for name in counters:
        nlp.counters.increment(name)
    return w


def loss_at(nlp: "TorchNLPModel", x: Tensor, y: Tensor) -> LossAt:
    """Build ``v -> loss(model_v(x), y)`` as a pure function of ``v``."""
    model = nlp.model
    buffers = dict(model.named_buffers())

    def f(v: Tensor) -> Tensor:
        params = unflatten_named(v, model)
        preds = functional_call(model, (params, buffers), (x,))
        return nlp.loss_fn(preds, y)

    return f


def _value_and_grad(f: LossAt, w: Tensor) -> Tuple[Tensor, Tensor]:
    v = w.detach().requires_grad_(True)
    with torch.enable_grad():
        loss = f(v)
        (g,) = torch.autograd.grad(loss, v)
    return loss.detach(), g


# ----------------------------------------------------------------------
# Public operations
# ----------------------------------------------------------------------
def obj(nlp: "TorchNLPModel", w: Any) -> float:
    _check_length("w", w, nlp.nvar)
    w = synchronize(nlp, w, "neval_obj")
    x, y = nlp.current_training_minibatch
    with torch.no_grad():
        f = nlp.loss_fn(nlp.model(x), y)
    return float(f)


def grad(nlp: "TorchNLPModel", w: Any, g: Optional[Any] = None) -> Any:
    _check_length("w", w, nlp.nvar)
    if g is not None:
        _check_length("g", g, nlp.nvar)
    w = synchronize(nlp, w, "neval_grad")
    x, y = nlp.current_training_minibatch
    _, gw = _value_and_grad(loss_at(nlp, x, y), w)
    if g is None:
        return gw
    return _write(g, gw)


def objgrad(nlp: "TorchNLPModel", w: Any, g: Optional[Any] = None) -> Tuple[float, Any]:
    """Objective and gradient from a single read of the current minibatch."""
    _check_length("w", w, nlp.nvar)
    if g is not None:
        _check_length("g", g, nlp.nvar)
    w = synchronize(nlp, w, "neval_obj", "neval_grad")
    x, y = nlp.current_training_minibatch
    f, gw = _value_and_grad(loss_at(nlp, x, y), w)
    if g is None:
        return float(f), gw
    return float(f), _write(g, gw)


def hess(nlp: "TorchNLPModel", w: Any, h: Optional[Any] = None) -> Any:
    """
    Dense ``n x n`` Hessian of the minibatch loss.

    Cost grows quadratically in memory and roughly cubically in time with
    ``n``; meant for small networks and diagnostics.
    """
    _check_length("w", w, nlp.nvar)
    if h is not None:
        _check_matrix("h", h, nlp.nvar)
    w = synchronize(nlp, w, "neval_hess")
    x, y = nlp.current_training_minibatch
    hw = torch.autograd.functional.hessian(loss_at(nlp, x, y), w)
    if h is None:
        return hw.detach()
    return _write(h, hw)


def hprod(nlp: "TorchNLPModel", w: Any, v: Any, hv: Optional[Any] = None) -> Any:
    """Hessian-vector product ``H(w) @ v`` without forming ``H``."""
    _check_length("w", w, nlp.nvar)
    _check_length("v", v, nlp.nvar)
    if hv is not None:
        _check_length("hv", hv, nlp.nvar)
    w = synchronize(nlp, w, "neval_hprod")
    v = _as_vector(nlp, v).to(w.dtype)
    x, y = nlp.current_training_minibatch
    _, out = torch.autograd.functional.hvp(loss_at(nlp, x, y), w, v)
    if hv is None:
        return out.detach()
    return _write(hv, out)
