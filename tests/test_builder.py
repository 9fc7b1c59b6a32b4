import numpy as np
import pytest
import torch
from torch import nn

from perchnlp import NLPBuilder, TorchNLPModel
from perchnlp.data import DatasetSplit
from perchnlp.models import SimpleMLP
from perchnlp.utils import make_splits, set_seed


def make_tiny_classification(n=200, d=5, seed=0):
    set_seed(seed)
    X = torch.randn(n, d)
    y = (X[:, :2].sum(dim=1) > 0).long()
    return X, y


def test_simple_classifier_builds_model_state():
    X, y = make_tiny_classification()

    nlp = NLPBuilder().simple_classifier(X, y, hidden=[8]).minibatches(4).build(seed=0)

    assert isinstance(nlp, TorchNLPModel)
    assert isinstance(nlp.loss_fn, nn.CrossEntropyLoss)
    assert nlp.nvar == 5 * 8 + 8 + 8 * 2 + 2
    assert len(nlp.train_cursor.split) == 160
    assert len(nlp.test_cursor.split) == 40
    assert nlp.train_cursor.num_batches == 4


def test_seeded_builds_are_reproducible():
    X, y = make_tiny_classification()

    def build():
        return NLPBuilder().simple_classifier(X, y, hidden=[8]).minibatches(4).build(seed=3)

    a, b = build(), build()
    assert torch.equal(a.w, b.w)
    assert a.obj(a.w) == b.obj(b.w)


def test_model_and_explicit_splits():
    X, y = make_tiny_classification()
    nlp = (
        NLPBuilder()
        .model(SimpleMLP, input_dim=5, hidden=[4], output_dim=2)
        .splits((X[:150], y[:150]), (X[150:], y[150:]))
        .minibatches(5, shuffle_train=False)
        .name("tiny")
        .build(dtype=torch.float64)
    )

    assert nlp.meta.name == "tiny"
    assert nlp.dtype == torch.float64
    assert nlp.current_training_minibatch[0].dtype == torch.float64
    assert not nlp.train_cursor.shuffle


def test_default_loss_for_regression_head():
    set_seed(0)
    X = torch.randn(50, 3)
    y = X.sum(dim=1, keepdim=True)
    nlp = (
        NLPBuilder()
        .model(SimpleMLP, input_dim=3, hidden=[4], output_dim=1)
        .data(X, y, test_split=0.2, seed=0)
        .minibatches(2)
        .build()
    )
    assert isinstance(nlp.loss_fn, nn.MSELoss)
    assert np.isfinite(nlp.obj(nlp.w))


def test_builder_requires_model_and_data():
    with pytest.raises(ValueError):
        NLPBuilder().build()
    with pytest.raises(ValueError):
        NLPBuilder().model(SimpleMLP, input_dim=3, hidden=[4], output_dim=2).build()


def test_make_splits_normalizes_on_train():
    X = np.random.default_rng(0).normal(5.0, 3.0, size=(100, 3))
    y = np.arange(100) % 2

    train, test, scaler = make_splits(
        X, y, test_split=0.25, seed=0, stratify=True, normalize="standard", return_scaler=True
    )

    assert isinstance(train, DatasetSplit)
    assert len(train) == 75 and len(test) == 25
    assert train.features.dtype == torch.float32
    assert torch.allclose(train.features.mean(dim=0), torch.zeros(3), atol=1e-5)
    assert scaler is not None

    with pytest.raises(ValueError):
        make_splits(X, y, normalize="robust")


def test_simple_mlp_rejects_unknown_activation():
    with pytest.raises(ValueError):
        SimpleMLP(input_dim=3, hidden=[4], output_dim=2, activation="swish")
