"""
Backtracking steepest descent over the flat parameter vector.

A reference driver for the TorchNLPModel call pattern: it only talks to
the model through ``objgrad`` / ``obj`` and lets callbacks (typically a
MinibatchCallback) move the minibatch once per iteration. Trial points of
the line search are all evaluated on the same minibatch.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import torch

from ..config.schema import SolverConfig
from ..core.callbacks import CallbackList
from .state import SolverState

if TYPE_CHECKING:
    from ..core.model import TorchNLPModel

logger = logging.getLogger(__name__)


def steepest_descent(
    nlp: "TorchNLPModel",
    x0: Any = None,
    config: SolverConfig | None = None,
) -> SolverState:
    """
    Minimize ``nlp`` from ``x0`` (defaults to the model's current vector).

    - evaluate f and g on the current minibatch
    - backtrack along -g until the Armijo condition holds
    - accept the step, run callbacks, repeat
    """
    cfg = config if config is not None else SolverConfig()
    callbacks = CallbackList(list(cfg.callbacks))

    x = torch.as_tensor(x0 if x0 is not None else nlp.w).detach().clone()
    state = SolverState(x=x)
    callbacks.on_solve_begin(nlp, state)

    f, g = nlp.objgrad(x)
    state.f, state.gnorm = f, float(g.norm())

    for it in range(1, cfg.max_iter + 1):
        if state.gnorm <= cfg.gtol:
            state.converged = True
            break

        # ---- Armijo backtracking along -g ----
        t = cfg.step_size
        slope = -state.gnorm**2
        x_try = x - t * g
        f_try = nlp.obj(x_try)
        for _ in range(cfg.max_backtracks):
            if f_try <= f + cfg.c1 * t * slope:
                break
            t *= cfg.backtrack
            x_try = x - t * g
            f_try = nlp.obj(x_try)

        x = x_try
        state.iteration = it
        state.x, state.f = x, f_try
        logger.debug("iter %d: f=%.6g |g|=%.3g step=%.3g", it, f_try, state.gnorm, t)

        callbacks.on_iteration_end(nlp, state)
        if state.stop:
            break

        # The minibatch may have moved, so re-evaluate at the accepted point
        f, g = nlp.objgrad(x)
        state.gnorm = float(g.norm())

    logger.info(
        "steepest descent stopped after %d iterations: f=%.6g |g|=%.3g",
        state.iteration,
        state.f,
        state.gnorm,
    )
    callbacks.on_solve_end(nlp, state)
    return state
