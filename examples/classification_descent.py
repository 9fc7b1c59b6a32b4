import logging

import numpy as np
from sklearn.datasets import make_classification

from perchnlp import (
    AccuracyCallback,
    HistoryCallback,
    MinibatchCallback,
    NLPBuilder,
    SolverConfig,
)
from perchnlp.optim import steepest_descent


def main():
    logging.basicConfig(level=logging.INFO)

    X, y = make_classification(
        n_samples=1000,
        n_features=12,
        n_informative=8,
        n_classes=3,
        random_state=42,
    )
    X = X.astype(np.float32)

    nlp = (
        NLPBuilder()
        .simple_classifier(X, y, hidden=[16], activation="tanh", normalize="standard")
        .minibatches(20)
        .name("make_classification")
        .build(seed=42)
    )
    print(nlp)

    history = HistoryCallback()
    acc = AccuracyCallback(split="test", every=10)
    cfg = SolverConfig(
        max_iter=200,
        step_size=1.0,
        callbacks=[MinibatchCallback(), history, acc],
    )

    # float64 start point: the model follows the optimizer's precision
    state = steepest_descent(nlp, x0=nlp.w.double(), config=cfg)

    from perchnlp.utils import plot_accuracy, plot_history
    plot_history(history.history)
    plot_accuracy(acc.history)

    print("Final minibatch loss:", state.f)
    print("Test accuracy:", nlp.accuracy("test"))
    print("Evaluations:", nlp.counters)


if __name__ == "__main__":
    main()
