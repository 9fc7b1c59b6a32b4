import pytest
import torch

from perchnlp import (
    Callback,
    EarlyStopping,
    HistoryCallback,
    MinibatchCallback,
    SolverConfig,
    TorchNLPModel,
)
from perchnlp.core.callbacks import AccuracyCallback
from perchnlp.models import SimpleMLP
from perchnlp.optim import get_solver, solve, steepest_descent


def make_tiny_classification(n=200, d=6, seed=0):
    torch.manual_seed(seed)
    X = torch.randn(n, d)
    y = (X[:, :3].sum(dim=1) > 0).long()
    return X, y


def make_nlp(size_minibatch=1, seed=0):
    X, y = make_tiny_classification(seed=seed)
    model = SimpleMLP(input_dim=6, hidden=[8], output_dim=2)
    return TorchNLPModel(model, (X[:160], y[:160]), (X[160:], y[160:]), size_minibatch=size_minibatch, rng=seed)


class StopAt(Callback):
    def __init__(self, iteration):
        self.iteration = iteration

    def on_iteration_end(self, nlp, state):
        if state.iteration >= self.iteration:
            state.stop = True


def test_full_batch_descent_decreases_objective():
    nlp = make_nlp(size_minibatch=1)
    f0 = nlp.obj(nlp.w)

    history = HistoryCallback()
    state = steepest_descent(nlp, config=SolverConfig(max_iter=20, callbacks=[history]))

    assert state.iteration == 20
    assert state.f <= f0
    assert len(history.history["objective"]) == 20
    assert history.history["iteration"] == list(range(1, 21))
    assert torch.equal(nlp.w, state.x)


def test_minibatch_callback_cycles_epochs():
    nlp = make_nlp(size_minibatch=5)
    mb = MinibatchCallback()

    state = steepest_descent(nlp, config=SolverConfig(max_iter=12, gtol=0.0, callbacks=[mb]))

    assert state.iteration == 12
    assert mb.epochs == 2
    assert nlp.train_cursor.status == 2


def test_minibatch_callback_without_reset_stays_exhausted():
    nlp = make_nlp(size_minibatch=4)
    mb = MinibatchCallback(reset_on_exhaustion=False)

    steepest_descent(nlp, config=SolverConfig(max_iter=8, gtol=0.0, callbacks=[mb]))

    assert mb.epochs == 0
    assert nlp.train_cursor.exhausted


def test_callback_can_stop_solver():
    nlp = make_nlp()
    state = steepest_descent(nlp, config=SolverConfig(max_iter=50, callbacks=[StopAt(3)]))
    assert state.iteration == 3
    assert state.stop


def test_early_stopping_waits_for_patience():
    from perchnlp.optim import SolverState

    es = EarlyStopping(patience=2)
    state = SolverState(x=torch.zeros(1))
    for it, f in enumerate([1.0, 0.5, 0.6, 0.7], start=1):
        state.iteration, state.f = it, f
        es.on_iteration_end(None, state)

    assert state.stop
    assert es.best == 0.5
    assert es.stopped_iteration == 4


def test_accuracy_callback_records_every_n():
    nlp = make_nlp(size_minibatch=4)
    acc = AccuracyCallback(every=2)
    steepest_descent(nlp, config=SolverConfig(max_iter=6, gtol=0.0, callbacks=[acc]))

    assert acc.history["iteration"] == [2, 4, 6]
    assert all(0.0 <= a <= 1.0 for a in acc.history["accuracy"])


def test_converged_at_stationary_point():
    nlp = make_nlp()
    state = steepest_descent(nlp, config=SolverConfig(max_iter=5, gtol=1e6))
    assert state.converged
    assert state.iteration == 0


def test_solver_registry():
    assert get_solver("descent") is steepest_descent
    with pytest.raises(KeyError):
        get_solver("lbfgs")

    nlp = make_nlp()
    x0 = nlp.w.double()
    state = solve(nlp, "steepest_descent", x0=x0, config=SolverConfig(max_iter=2))
    assert state.x.dtype == torch.float64
    assert nlp.dtype == torch.float64
