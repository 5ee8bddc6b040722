import logging
import math

import numpy as np
import pytest

from feedforward_nn import (ArrayTrainingData, InvalidConstructionError, ParameterRangeError,
                            TrainingExample, matrix_t, network_t, sigmoid)

RNG = np.random.default_rng(1234)


def make_network(*sizes, seed=0):
    net = network_t(*sizes)
    net.init(np.random.default_rng(seed))
    return net


def separable_data(n=40, seed=3):
    # class 0 clusters near (0.2, 0.8), class 1 near (0.8, 0.2)
    rng = np.random.default_rng(seed)
    labels = np.arange(n) % 2
    centres = np.where(labels[:, None] == 0, [0.2, 0.8], [0.8, 0.2])
    X = centres + rng.normal(scale=0.05, size=(n, 2))
    return ArrayTrainingData(X, labels, 2)


def quadratic_cost(net, example):
    a = net.feedforward(example.inputs)
    return 0.5 * float(np.sum((a - example.target_outputs) ** 2))


# ---------------- construction ----------------
@pytest.mark.parametrize("sizes", [(), (784,)])
def test_too_few_layers(sizes):
    with pytest.raises(InvalidConstructionError, match="2 or more layers"):
        network_t(*sizes)


def test_non_positive_layer_size():
    with pytest.raises(InvalidConstructionError):
        network_t(4, 0, 2)


def test_layer_shapes():
    net = network_t(784, 30, 10)
    assert net.num_layers == 3
    assert [l.size for l in net.layers] == [784, 30, 10]
    hidden, out = net.hidden_layers
    assert hidden.weights.shape == (30, 784)
    assert hidden.biases.shape == (30, 1)
    assert out.weights.shape == (10, 30)
    assert out.biases.shape == (10, 1)
    assert out.previous is hidden
    assert hidden.previous is net.input_layer
    assert net.output_layer is out
    assert repr(net) == "Network[784,30,10]"


def test_init_is_repeatable():
    a, b = make_network(5, 4, 3, seed=9), make_network(5, 4, 3, seed=9)
    for ha, hb in zip(a.hidden_layers, b.hidden_layers):
        assert ha.weights == hb.weights
        assert ha.biases == hb.biases
    assert np.count_nonzero(a.hidden_layers[0].weights.values) == 20


# ---------------- forward ----------------
def test_forward_example():
    net = network_t(2, 1)
    out = net.output_layer
    out.weights = matrix_t(1, 2, [1.0, 1.0])
    out.biases = matrix_t(1, 1, [0.0])
    result = net.feedforward([1.0, 1.0])
    assert result.shape == (1,)
    assert result[0] == pytest.approx(sigmoid(2.0))
    assert result[0] == pytest.approx(0.8808, abs=1e-4)
    assert net.outputs[0, 0] == pytest.approx(result[0])


def test_forward_is_deterministic():
    net = make_network(6, 5, 4)
    x = RNG.random(6)
    first = net.feedforward(x)
    for _ in range(3):
        assert np.array_equal(net.feedforward(x), first)


def test_forward_matches_numpy():
    net = make_network(6, 5, 4)
    x = RNG.random(6)
    a = x.reshape(-1, 1)
    for h in net.hidden_layers:
        a = 1.0 / (1.0 + np.exp(-(h.weights.to_array() @ a + h.biases.to_array())))
    assert np.allclose(net.feedforward(x), a.ravel())


def test_classify_picks_highest_output():
    net = network_t(2, 3)
    out = net.output_layer
    out.weights = matrix_t(3, 2, [0, 0, 1, 1, 0, 0])
    out.biases = matrix_t(3, 1, [0, 0, 0])
    assert net.classify([1.0, 1.0]) == 1
    # all outputs equal -> first index wins
    assert net.classify([0.0, 0.0]) == 0


# ---------------- backprop ----------------
def test_backprop_shapes():
    net = make_network(4, 3, 2)
    ex = TrainingExample(RNG.random(4), np.array([1.0, 0.0]), 0)
    nabla_b, nabla_w = net.backprop(ex)
    assert [b.shape for b in nabla_b] == [(3, 1), (2, 1)]
    assert [w.shape for w in nabla_w] == [(3, 4), (2, 3)]


def test_backprop_single_layer_closed_form():
    net = make_network(3, 2)
    x = np.array([0.5, -1.0, 2.0])
    y = np.array([0.0, 1.0])
    nabla_b, nabla_w = net.backprop(TrainingExample(x, y, 1))
    h = net.output_layer
    z = h.weights.to_array() @ x.reshape(-1, 1) + h.biases.to_array()
    a = sigmoid(z)
    delta = (a - y.reshape(-1, 1)) * a * (1 - a)
    assert np.allclose(nabla_b[0].to_array(), delta)
    assert np.allclose(nabla_w[0].to_array(), delta @ x.reshape(1, -1))


def test_backprop_matches_finite_differences():
    net = make_network(5, 4, 3, 2, seed=11)
    ex = TrainingExample(RNG.normal(size=5), np.array([0.0, 1.0]), 1)
    nabla_b, nabla_w = net.backprop(ex)
    eps = 1e-6

    def check(param, grad, trials=8):
        for _ in range(trials):
            idx = int(RNG.integers(0, param.values.shape[0]))
            base = param.values[idx]
            param.values[idx] = base + eps
            f_plus = quadratic_cost(net, ex)
            param.values[idx] = base - eps
            f_minus = quadratic_cost(net, ex)
            param.values[idx] = base
            fd = (f_plus - f_minus) / (2 * eps)
            an = grad.values[idx]
            assert abs(fd - an) <= 1e-6 + 1e-4 * abs(an)

    for h, nb, nw in zip(net.hidden_layers, nabla_b, nabla_w):
        check(h.weights, nw)
        check(h.biases, nb)


def test_backprop_does_not_touch_parameters():
    net = make_network(4, 3, 2)
    before = [(h.weights.copy(), h.biases.copy()) for h in net.hidden_layers]
    net.backprop(TrainingExample(RNG.random(4), np.array([1.0, 0.0]), 0))
    for (w, b), h in zip(before, net.hidden_layers):
        assert h.weights == w
        assert h.biases == b


# ---------------- mini-batch update ----------------
def test_update_mini_batch_single_example():
    net = make_network(3, 2)
    data = ArrayTrainingData(np.array([[0.1, 0.2, 0.3]]), [1], 2)
    nabla_b, nabla_w = net.backprop(data[0])
    w0, b0 = net.output_layer.weights.copy(), net.output_layer.biases.copy()
    net.update_mini_batch(data, 0.5)
    assert np.allclose(net.output_layer.weights.values, (w0 - nabla_w[0] * 0.5).values)
    assert np.allclose(net.output_layer.biases.values, (b0 - nabla_b[0] * 0.5).values)


def test_update_mini_batch_averages_over_batch():
    x = np.array([[0.3, 0.7, 0.1]])
    a, b = make_network(3, 4, 2, seed=5), make_network(3, 4, 2, seed=5)
    a.update_mini_batch(ArrayTrainingData(x, [0], 2), 1.0)
    b.update_mini_batch(ArrayTrainingData(np.repeat(x, 3, axis=0), [0, 0, 0], 2), 1.0)
    for ha, hb in zip(a.hidden_layers, b.hidden_layers):
        assert np.allclose(ha.weights.values, hb.weights.values)
        assert np.allclose(ha.biases.values, hb.biases.values)


def test_update_keeps_parameter_shapes():
    net = make_network(3, 4, 2)
    net.update_mini_batch(ArrayTrainingData(RNG.random((6, 3)), [0, 1] * 3, 2), 3.0)
    assert net.hidden_layers[0].weights.shape == (4, 3)
    assert net.output_layer.biases.shape == (2, 1)


# ---------------- sgd ----------------
@pytest.mark.parametrize("epochs", [0, 201, -1])
def test_sgd_epoch_range(epochs):
    net = make_network(2, 2)
    before = net.output_layer.weights.copy()
    with pytest.raises(ParameterRangeError, match="1..200"):
        net.sgd(separable_data(), epochs, 10, 3.0, rng=np.random.default_rng(0))
    assert net.output_layer.weights == before


@pytest.mark.parametrize("batch,eta", [(0, 3.0), (10, 0.0), (10, -1.0)])
def test_sgd_other_parameter_ranges(batch, eta):
    with pytest.raises(ParameterRangeError):
        make_network(2, 2).sgd(separable_data(), 1, batch, eta)


def test_sgd_final_batch_may_be_short():
    sizes = []

    class recording_network_t(network_t):
        def update_mini_batch(self, mini_batch, eta):
            sizes.append(mini_batch.get_size())
            super().update_mini_batch(mini_batch, eta)

    net = recording_network_t(2, 2)
    net.init(np.random.default_rng(0))
    net.sgd(separable_data(25), 2, 10, 1.0, rng=np.random.default_rng(1))
    assert sizes == [10, 10, 5, 10, 10, 5]


def test_sgd_is_reproducible():
    data = separable_data()
    a, b = make_network(2, 3, 2, seed=4), make_network(2, 3, 2, seed=4)
    a.sgd(data, 3, 4, 2.0, rng=np.random.default_rng(77))
    b.sgd(data, 3, 4, 2.0, rng=np.random.default_rng(77))
    for ha, hb in zip(a.hidden_layers, b.hidden_layers):
        assert ha.weights == hb.weights
        assert ha.biases == hb.biases


def test_sgd_learns_separable_data():
    data = separable_data(40)
    net = make_network(2, 4, 2, seed=2)
    cost_before = net.total_cost(data)
    history = net.sgd(data, 100, 4, 3.0, rng=np.random.default_rng(5), test_data=data)
    assert len(history) == 100
    assert [r.epoch for r in history] == list(range(1, 101))
    assert history[-1].total == 40
    assert history[-1].correct >= 38
    assert net.evaluate(data) == history[-1].correct
    assert net.total_cost(data) < cost_before


def test_sgd_without_test_data_reports_no_accuracy():
    history = make_network(2, 2).sgd(separable_data(8), 2, 4, 1.0, rng=np.random.default_rng(0))
    assert [r.correct for r in history] == [None, None]
    assert history[0].accuracy is None
    assert all(r.elapsed >= 0 for r in history)


def test_sgd_logs_progress(caplog):
    net = make_network(2, 2)
    data = separable_data(8)
    with caplog.at_level(logging.INFO, logger="feedforward_nn"):
        net.sgd(data, 1, 4, 1.0, rng=np.random.default_rng(0), test_data=data)
    text = caplog.text
    assert "Stochastic Gradient Descent on Network[2,2]" in text
    assert "Completed epoch 1" in text
    assert "of 8" in text


def test_total_cost_of_perfect_outputs():
    net = network_t(1, 1)
    net.output_layer.weights = matrix_t(1, 1, [0.0])
    net.output_layer.biases = matrix_t(1, 1, [0.0])
    data = ArrayTrainingData(np.array([[1.0]]), [0], 1)
    # output is sigmoid(0) = 0.5 against target 1.0
    assert net.total_cost(data) == pytest.approx(0.125)
    assert math.isclose(net.total_cost(ArrayTrainingData(np.zeros((0, 1)), [], 1)), 0.0)
