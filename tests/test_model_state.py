import numpy as np
import pytest
import torch
from torch.utils.data import TensorDataset

from perchnlp import NLPModelConfig, TorchNLPModel
from perchnlp.errors import ConfigurationError, EmptyDatasetError
from perchnlp.models import SimpleMLP
from perchnlp.params import flatten, num_params


# ----------------------------------------------------------------------
# Helper functions for small reproducible problems
# ----------------------------------------------------------------------


def make_data(n=200, d=4, classes=3, seed=0):
    g = torch.Generator().manual_seed(seed)
    X = torch.randn(n, d, generator=g)
    y = torch.randint(0, classes, (n,), generator=g)
    return X, y


def make_nlp(size_minibatch=10, seed=0, **kwargs):
    torch.manual_seed(seed)
    model = SimpleMLP(input_dim=4, hidden=[5], output_dim=3)
    train = make_data(200, seed=seed)
    test = make_data(60, seed=seed + 1)
    return TorchNLPModel(model, train, test, size_minibatch=size_minibatch, rng=seed, **kwargs)


# ----------------------------------------------------------------------
# Construction
# ----------------------------------------------------------------------


def test_problem_dimension_matches_parameters():
    nlp = make_nlp()

    assert nlp.nvar == num_params(nlp.model) == 4 * 5 + 5 + 5 * 3 + 3
    assert nlp.w.shape == (nlp.nvar,)
    assert torch.equal(nlp.w, flatten(nlp.model))
    assert torch.equal(nlp.meta.x0, nlp.w)
    assert nlp.meta.x0 is not nlp.w


def test_precision_inferred_from_parameters():
    assert make_nlp().dtype == torch.float32

    model = SimpleMLP(input_dim=4, hidden=[5], output_dim=3, dtype=torch.float64)
    nlp = TorchNLPModel(model, make_data(), make_data(60), size_minibatch=10)

    assert nlp.dtype == torch.float64
    assert nlp.w.dtype == torch.float64
    assert nlp.current_training_minibatch[0].dtype == torch.float64


@pytest.mark.parametrize(
    "train, test",
    [
        ([], make_data(60)),
        (make_data(), []),
        ([], []),
    ],
)
def test_empty_split_is_a_configuration_error(train, test):
    model = SimpleMLP(input_dim=4, hidden=[5], output_dim=3)
    with pytest.raises(ConfigurationError):
        TorchNLPModel(model, train, test)


def test_zero_sample_split_raises_empty_dataset_error():
    model = SimpleMLP(input_dim=4, hidden=[5], output_dim=3)
    empty = (torch.zeros(0, 4), torch.zeros(0, dtype=torch.long))
    with pytest.raises(EmptyDatasetError):
        TorchNLPModel(model, make_data(), empty)


def test_size_minibatch_validation():
    with pytest.raises(ConfigurationError):
        make_nlp(size_minibatch=0)
    with pytest.raises(ConfigurationError):
        # test split only holds 60 samples
        make_nlp(size_minibatch=100)


def test_model_without_parameters_is_rejected():
    with pytest.raises(ConfigurationError):
        TorchNLPModel(torch.nn.ReLU(), make_data(), make_data(60))


def test_accepts_tensor_datasets_and_config_defaults():
    model = SimpleMLP(input_dim=4, hidden=[5], output_dim=3)
    cfg = NLPModelConfig(size_minibatch=20, shuffle_train=False, seed=3)
    nlp = TorchNLPModel(
        model,
        TensorDataset(*make_data()),
        TensorDataset(*make_data(60)),
        config=cfg,
    )

    assert nlp.size_minibatch == 20
    assert nlp.train_cursor.num_batches == 20
    assert nlp.train_cursor.batch_size == 10
    assert nlp.test_cursor.batch_size == 3


def test_explicit_initial_minibatches():
    X, y = make_data()
    Xt, yt = make_data(60, seed=1)
    model = SimpleMLP(input_dim=4, hidden=[5], output_dim=3)
    nlp = TorchNLPModel(
        model,
        (X, y),
        (Xt, yt),
        size_minibatch=10,
        current_training_minibatch=(X[:20], y[:20]),
        current_test_minibatch=(Xt[:6], yt[:6]),
    )

    assert torch.equal(nlp.current_training_minibatch[0], X[:20])
    assert torch.equal(nlp.current_test_minibatch[1], yt[:6])


def test_seeded_models_draw_the_same_batches():
    a = make_nlp(seed=0)
    b = make_nlp(seed=0)
    assert torch.equal(a.current_training_minibatch[0], b.current_training_minibatch[0])

    a.reset_minibatch_train()
    b.reset_minibatch_train()
    a.minibatch_next_train()
    b.minibatch_next_train()
    assert torch.equal(a.current_training_minibatch[0], b.current_training_minibatch[0])


def test_explicit_generator_is_used():
    torch.manual_seed(0)
    model = SimpleMLP(input_dim=4, hidden=[5], output_dim=3)
    rng = np.random.default_rng(11)
    nlp = TorchNLPModel(model, make_data(), make_data(60), size_minibatch=10, rng=rng)
    assert nlp.rng is rng
    assert nlp.train_cursor.rng is rng


# ----------------------------------------------------------------------
# Minibatch control
# ----------------------------------------------------------------------


def test_train_and_test_cursors_are_independent():
    nlp = make_nlp()
    nlp.reset_minibatch_train()
    assert nlp.train_cursor.status is None

    for _ in range(10):
        assert nlp.minibatch_next_train()
    assert not nlp.minibatch_next_train()

    nlp.reset_minibatch_test()
    assert nlp.minibatch_next_test()
    assert nlp.minibatch_next_test()
    assert nlp.test_cursor.status == 1
    assert nlp.train_cursor.exhausted


def test_advance_changes_current_batch():
    nlp = make_nlp()
    nlp.reset_minibatch_train()
    nlp.minibatch_next_train()
    before = nlp.current_training_minibatch[0].clone()

    assert nlp.minibatch_next_train()
    assert not torch.equal(nlp.current_training_minibatch[0], before)


def test_random_minibatch_selection():
    nlp = make_nlp()
    x, y = nlp.rand_minibatch_train(np.random.default_rng(0))
    assert x.shape == (20, 4)
    assert nlp.current_training_minibatch[0] is x

    xt, _ = nlp.rand_minibatch_test()
    assert xt.shape == (6, 4)


def test_set_size_minibatch_repartitions_both_splits():
    nlp = make_nlp(size_minibatch=10)
    nlp.set_size_minibatch(4)

    assert nlp.size_minibatch == 4
    assert nlp.train_cursor.num_batches == 4
    assert nlp.test_cursor.num_batches == 4
    assert nlp.current_training_minibatch[0].shape[0] == 50

    with pytest.raises(ConfigurationError):
        nlp.set_size_minibatch(61)


def test_unknown_split_name():
    with pytest.raises(ValueError):
        make_nlp().cursor("valid")


def test_repr_mentions_dimension():
    nlp = make_nlp()
    assert f"nvar={nlp.nvar}" in repr(nlp)
