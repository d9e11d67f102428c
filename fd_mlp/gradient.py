import numpy as np
from typing import Dict, List
import logging
import time

from linalg import Vector, ShapeMismatchError
from network import Network
from training_data import TrainingData


def network_cost(network: Network, data: TrainingData) -> float:
    """
    Computes the mean squared error of the network over a whole dataset.

    Cost = (1/N) * Σ_samples ||forward(input) - output||^2

    Args:
        network: The network to evaluate. Its parameters are not modified.
        data: Training samples; every expected output must have layers_sizes[-1] values.

    Returns:
        The cost as a float. An empty dataset has cost 0.0.

    Raises:
        ShapeMismatchError: If a sample's input or expected output has the wrong width.
    """
    if data.n == 0:
        return 0.0

    total = 0.0
    for i, sample in enumerate(data):
        prediction = network.forward(sample.input)
        if prediction.n != sample.output.n:
            raise ShapeMismatchError(
                f"Sample {i}: expected output has {sample.output.n} values, network produces {prediction.n}"
            )
        error = prediction.elements - sample.output.elements
        total += float(np.dot(error, error))
    return total / data.n


def network_cost_gradient(network: Network, data: TrainingData) -> Vector:
    """
    Estimates the gradient of `network_cost` with respect to every parameter.

    Uses the one-sided finite difference (C(p + eps) - C(p)) / eps with the network's
    `eps`. Each parameter is perturbed, the full-dataset cost re-evaluated, and the
    parameter restored before the next one is touched, so the estimate costs one
    extra cost evaluation per parameter.

    Args:
        network: The network to differentiate. Parameters are restored on return.
        data: Training samples the cost is computed over.

    Returns:
        A Vector of length number_of_parameters. Entry i is the partial derivative for
        `network.parameters[i]` (layer by layer, weights row-major, then biases).
    """
    base_cost = network_cost(network, data)
    if not np.isfinite(base_cost):
        logging.warning(f"Non-finite base cost ({base_cost}) while estimating gradient.")
    logging.debug(f"Estimating gradient over {network.number_of_parameters} parameters, base cost {base_cost:.6f}")

    eps = network.eps
    gradient = Vector(network.number_of_parameters)
    for idx, ref in enumerate(network.parameters):
        saved = network.get_parameter(ref)
        network.set_parameter(ref, saved + eps)
        try:
            gradient[idx] = (network_cost(network, data) - base_cost) / eps
        finally:
            network.set_parameter(ref, saved)
    return gradient


# Name used by drivers that treat the estimator as one interchangeable gradient source
estimate_gradient = network_cost_gradient


def apply_gradient(network: Network, gradient: Vector):
    """
    Takes one gradient descent step: param -= gradient[i] * learning_rate.

    Walks `network.parameters` in the same order `network_cost_gradient` filled the
    gradient, so each entry lands on the parameter it was estimated for.

    Raises:
        ShapeMismatchError: If the gradient length differs from number_of_parameters.
    """
    if gradient.n != network.number_of_parameters:
        raise ShapeMismatchError(
            f"Gradient has {gradient.n} entries but network has {network.number_of_parameters} parameters"
        )
    learning_rate = network.learning_rate
    for idx, ref in enumerate(network.parameters):
        network.set_parameter(ref, network.get_parameter(ref) - gradient[idx] * learning_rate)


def train(
    network: Network,
    data: TrainingData,
    iterations: int = 1000,
    verbose: bool = True,
    log_every: int = 100,
) -> Dict[str, List]:
    """
    Trains the network by repeated gradient estimation and application.

    Every iteration is a full-dataset step: estimate the gradient, apply it, and
    record the resulting cost.

    Args:
        network: The network to train in place.
        data: Training samples.
        iterations: Number of estimate/apply cycles.
        verbose: Whether to print training progress.
        log_every: Print progress every `log_every` iterations.

    Returns:
        A dictionary containing the training history: 'iteration', 'cost' (after the
        step) and 'time_per_iteration' (seconds).
    """
    if iterations < 0:
        raise ValueError(f"iterations must be non-negative, got {iterations}")
    if log_every <= 0:
        raise ValueError(f"log_every must be positive, got {log_every}")

    history: Dict[str, List] = {
        'iteration': [],
        'cost': [],
        'time_per_iteration': []
    }

    logging.info(f"Training for {iterations} iterations on {data.n} samples "
                 f"(learning_rate={network.learning_rate}, eps={network.eps}).")
    for iteration in range(iterations):
        start_time = time.time()
        gradient = network_cost_gradient(network, data)
        apply_gradient(network, gradient)
        cost = network_cost(network, data)
        elapsed = time.time() - start_time

        history['iteration'].append(iteration)
        history['cost'].append(cost)
        history['time_per_iteration'].append(elapsed)

        if not np.isfinite(cost):
            logging.warning(f"Iteration {iteration + 1}: cost became non-finite ({cost}).")

        if verbose and (iteration % log_every == 0 or iteration == iterations - 1):
            print(f"Iteration {iteration+1}/{iterations} - cost: {cost:.5f} - time: {elapsed:.4f}s")

    logging.info("Training finished.")
    return history
