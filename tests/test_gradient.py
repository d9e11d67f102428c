import math

import numpy as np
import pytest

from linalg import Vector, ShapeMismatchError
from network import Network, random_network
from training_data import TrainingData, TrainingSample
from gradient import apply_gradient, estimate_gradient, network_cost, network_cost_gradient, train

XOR_X = [[0, 0], [0, 1], [1, 0], [1, 1]]
XOR_Y = [[0], [1], [1], [0]]


@pytest.fixture
def xor_data():
    return TrainingData.from_arrays(XOR_X, XOR_Y)


def single_weight_network(w, b, activation):
    return Network([1, 1],
                   output_activation=activation,
                   initial_layer_weights=[np.array([[w]])],
                   initial_layer_biases=[np.array([b])])


def test_training_data_from_arrays(xor_data):
    assert xor_data.n == 4
    assert len(xor_data) == 4
    assert list(xor_data[1].input) == [0.0, 1.0]
    assert list(xor_data[1].output) == [1.0]
    with pytest.raises(ShapeMismatchError):
        TrainingData.from_arrays(XOR_X, XOR_Y[:3])
    with pytest.raises(ShapeMismatchError):
        TrainingData.from_arrays([0, 1], [1, 0])


def test_cost_is_mean_squared_error():
    network = single_weight_network(2.0, 1.0, 'identity')
    data = TrainingData([
        TrainingSample(Vector.from_values([1.0]), Vector.from_values([0.0])),  # prediction 3
        TrainingSample(Vector.from_values([0.0]), Vector.from_values([2.0])),  # prediction 1
    ])
    assert network_cost(network, data) == pytest.approx((9.0 + 1.0) / 2)


def test_cost_is_non_negative(xor_data):
    for seed in range(5):
        network = random_network(2, [2, 3, 1], rng=np.random.default_rng(seed))
        assert network_cost(network, xor_data) >= 0.0


def test_cost_is_zero_on_perfect_predictions():
    network = random_network(2, [3, 4, 2], rng=np.random.default_rng(11))
    inputs = np.random.default_rng(12).random((5, 3))
    outputs = [network.forward(x).elements for x in inputs]
    data = TrainingData.from_arrays(inputs, outputs)
    assert network_cost(network, data) == 0.0


def test_cost_of_empty_dataset_is_zero():
    network = Network([2, 1])
    assert network_cost(network, TrainingData([])) == 0.0
    gradient = network_cost_gradient(network, TrainingData([]))
    assert list(gradient) == [0.0, 0.0, 0.0]


def test_cost_rejects_mismatched_samples(xor_data):
    with pytest.raises(ShapeMismatchError):
        network_cost(Network([2, 2]), xor_data)
    with pytest.raises(ShapeMismatchError):
        network_cost(Network([3, 1]), xor_data)


def test_gradient_matches_analytic_derivative_identity():
    # C(w) = (w*x + b - t)^2, dC/dw = 2(w*x + b - t)x; the forward difference adds eps*x^2
    w, b, x, t = 0.7, 0.2, 2.0, 1.0
    network = single_weight_network(w, b, 'identity')
    network.eps = 1e-3
    data = TrainingData.from_arrays([[x]], [[t]])
    gradient = network_cost_gradient(network, data)
    assert gradient[0] == pytest.approx(2 * (w * x + b - t) * x, abs=2 * network.eps * x * x)
    assert gradient[1] == pytest.approx(2 * (w * x + b - t), abs=2 * network.eps)


def test_gradient_matches_analytic_derivative_sigmoid():
    w, b, x, t = 0.4, -0.3, 1.5, 1.0
    network = single_weight_network(w, b, 'sigmoid')
    network.eps = 1e-4
    data = TrainingData.from_arrays([[x]], [[t]])
    s = 1 / (1 + math.exp(-(w * x + b)))
    expected = 2 * (s - t) * s * (1 - s) * x
    gradient = network_cost_gradient(network, data)
    assert gradient[0] == pytest.approx(expected, abs=1e-3)


def test_gradient_error_shrinks_with_eps():
    w, b, x, t = 0.4, -0.3, 1.5, 1.0
    data = TrainingData.from_arrays([[x]], [[t]])
    s = 1 / (1 + math.exp(-(w * x + b)))
    expected = 2 * (s - t) * s * (1 - s) * x
    errors = []
    for eps in (1e-1, 1e-2, 1e-3):
        network = single_weight_network(w, b, 'sigmoid')
        network.eps = eps
        errors.append(abs(network_cost_gradient(network, data)[0] - expected))
    assert errors[0] > errors[1] > errors[2]


def test_gradient_entries_follow_parameter_order(xor_data):
    network = random_network(2, [2, 3, 1], rng=np.random.default_rng(4), eps=1e-3)
    gradient = estimate_gradient(network, xor_data)
    assert gradient.n == network.number_of_parameters

    base = network_cost(network, xor_data)
    for idx, ref in enumerate(network.parameters):
        perturbed = network.copy()
        perturbed.set_parameter(ref, perturbed.get_parameter(ref) + network.eps)
        expected = (network_cost(perturbed, xor_data) - base) / network.eps
        assert gradient[idx] == pytest.approx(expected, rel=1e-9, abs=1e-12)


def test_gradient_restores_parameters(xor_data):
    network = random_network(2, [2, 2, 1], rng=np.random.default_rng(8), eps=0.1)
    before = network.parameter_vector()
    network_cost_gradient(network, xor_data)
    assert network.parameter_vector() == before


def test_apply_gradient_walks_parameters_in_order():
    network = random_network(2, [2, 3, 1], rng=np.random.default_rng(2), learning_rate=0.5)
    before = network.parameter_vector()
    for k in (0, 7, 12):
        gradient = Vector(network.number_of_parameters)
        gradient[k] = 1.0
        snapshot = network.parameter_vector()
        apply_gradient(network, gradient)
        after = network.parameter_vector()
        changed = np.flatnonzero(after.elements != snapshot.elements)
        assert changed.tolist() == [k]
        assert after[k] == pytest.approx(snapshot[k] - 0.5)
    assert network.parameter_vector() != before


def test_apply_gradient_rejects_wrong_length():
    network = Network([2, 3, 1])
    with pytest.raises(ShapeMismatchError):
        apply_gradient(network, Vector(12))


def test_small_steps_do_not_increase_cost(xor_data):
    network = random_network(2, [2, 2, 1], rng=np.random.default_rng(0), learning_rate=0.1, eps=1e-4)
    costs = [network_cost(network, xor_data)]
    for _ in range(50):
        apply_gradient(network, network_cost_gradient(network, xor_data))
        costs.append(network_cost(network, xor_data))
    for previous, current in zip(costs, costs[1:]):
        assert current <= previous + 1e-12
    assert costs[-1] < costs[0]


def test_xor_training(xor_data, capsys):
    # Hidden units start out leaning towards OR and NAND, the output towards AND
    network = Network(
        [2, 2, 1],
        learning_rate=1.0,
        eps=1e-3,
        initial_layer_weights=[np.array([[3.0, 3.0], [-3.0, -3.0]]), np.array([[3.0, 3.0]])],
        initial_layer_biases=[np.array([-1.5, 4.5]), np.array([-4.5])],
    )
    initial_cost = network_cost(network, xor_data)
    history = train(network, xor_data, iterations=2000, verbose=True, log_every=500)

    assert len(history['cost']) == 2000
    assert history['iteration'][-1] == 1999
    assert history['cost'][-1] < initial_cost
    assert history['cost'][-1] == pytest.approx(network_cost(network, xor_data))
    assert network_cost(network, xor_data) < 0.05
    for sample in xor_data:
        prediction = network.forward(sample.input)[0]
        assert (prediction >= 0.5) == (sample.output[0] == 1.0)

    out = capsys.readouterr().out
    assert "Iteration 1/2000" in out
    assert "Iteration 2000/2000" in out


def test_train_rejects_bad_arguments(xor_data):
    network = Network([2, 1])
    with pytest.raises(ValueError):
        train(network, xor_data, iterations=-1)
    with pytest.raises(ValueError):
        train(network, xor_data, iterations=1, log_every=0)


def test_zero_eps_is_rejected_before_estimation(xor_data):
    network = random_network(2, [2, 2, 1], rng=np.random.default_rng(3))
    with pytest.raises(ValueError):
        network.eps = 0.0
    gradient = network_cost_gradient(network, xor_data)
    assert np.all(np.isfinite(gradient.elements))


def test_xor_training_from_random_init(xor_data):
    network = random_network(2, [2, 2, 1], rng=np.random.default_rng(0), learning_rate=1.0, eps=1e-3)
    initial_cost = network_cost(network, xor_data)
    history = train(network, xor_data, iterations=4000, verbose=False)

    final_cost = network_cost(network, xor_data)
    assert final_cost < initial_cost
    assert final_cost < 0.05
    assert history['cost'][-1] == pytest.approx(final_cost)
    for sample in xor_data:
        prediction = network.forward(sample.input)[0]
        assert (prediction >= 0.5) == (sample.output[0] == 1.0)
