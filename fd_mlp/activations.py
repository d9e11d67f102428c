import numpy as np
from typing import Union
import logging

from linalg import Vector, UnimplementedOperationError


def sigmoid(x: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
    """Logistic function 1 / (1 + e^-x)."""
    # Clip input to avoid overflow in exp(-x) for large negative x
    return 1.0 / (1.0 + np.exp(-np.clip(x, -500, 500)))


def identity(x: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
    return x


def relu(x: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
    """Branch-free ReLU: (x + |x|) / 2, equal to max(x, 0)."""
    return (x + np.abs(x)) / 2


class Activation:
    """Base class for all activation functions."""

    name = 'activation'

    def apply(self, x: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
        """Compute the activation of a scalar, or element-wise over an array.

        Args:
            x: Input data (scalar or numpy array).

        Returns:
            Activated output, same shape as the input.
        """
        raise NotImplementedError

    def apply_mut(self, values: np.ndarray) -> np.ndarray:
        """Overwrite `values` with their activations in place.

        Args:
            values: 1D numpy array, typically a view into a scratch buffer.

        Returns:
            The same array, for chaining.
        """
        values[...] = self.apply(values)
        return values

    def __repr__(self):
        return f"{self.__class__.__name__}()"


class Sigmoid(Activation):
    """Sigmoid activation function.

    Mathematical form:
        f(x) = 1 / (1 + e^-x)
    """

    name = 'sigmoid'

    def apply(self, x):
        return sigmoid(x)


class Identity(Activation):
    """Identity (linear) activation function: f(x) = x."""

    name = 'identity'

    def apply(self, x):
        return identity(x)

    def apply_mut(self, values: np.ndarray) -> np.ndarray:
        return values


class ReLU(Activation):
    """Rectified Linear Unit activation function.

    Mathematical form:
        f(x) = (x + |x|) / 2 = max(0, x)
    """

    name = 'relu'

    def apply(self, x):
        return relu(x)


class Softmax(Activation):
    """Softmax activation function.

    Normalizes a vector to a probability distribution:
        f(x_i) = e^x_i / Σ(e^x_j)

    Softmax couples every element through the normalization sum, so there is no
    scalar form; `apply` only accepts 1D arrays. The maximum is subtracted before
    exponentiation, which leaves the result unchanged mathematically but keeps
    large inputs from overflowing.
    """

    name = 'softmax'

    def apply(self, x):
        if np.ndim(x) != 1:
            raise UnimplementedOperationError("Softmax is defined over whole vectors, not scalars")
        return self.apply_mut(np.array(x, dtype=float))

    def apply_mut(self, values: np.ndarray) -> np.ndarray:
        if values.size == 0:
            return values
        if not np.all(np.isfinite(values)):
            logging.warning(f"Softmax received non-finite inputs: min={np.nanmin(values)}, max={np.nanmax(values)}")
        values -= np.max(values)
        np.exp(values, out=values)
        values /= np.sum(values)
        return values


def sigmoid_mut(v: Vector) -> Vector:
    Sigmoid().apply_mut(v.elements)
    return v


def identity_mut(v: Vector) -> Vector:
    return v


def relu_mut(v: Vector) -> Vector:
    ReLU().apply_mut(v.elements)
    return v


def softmax_mut(v: Vector) -> Vector:
    """Replace each element with e^v[i] / Σ e^v[j], in place."""
    Softmax().apply_mut(v.elements)
    return v


# Dictionary mapping activation function names to their classes
ACTIVATION_FUNCTIONS = {
    'sigmoid': Sigmoid,
    'identity': Identity,
    'linear': Identity,
    'relu': ReLU,
    'softmax': Softmax,
}


def get_activation(activation: Union[str, Activation]) -> Activation:
    """Resolves an activation function by name, or passes an instance through.

    Args:
        activation: Name of the activation function (case-insensitive), or an
                    Activation instance.

    Returns:
        An instance of the requested Activation class.

    Raises:
        ValueError: If the activation function name is not recognized.
        TypeError: If `activation` is neither a string nor an Activation.
    """
    if isinstance(activation, Activation):
        return activation
    if not isinstance(activation, str):
        raise TypeError(f"Activation must be a name or an Activation instance, got {type(activation).__name__}")
    name_lower = activation.lower()
    if name_lower not in ACTIVATION_FUNCTIONS:
        raise ValueError(
            f"Unknown activation function '{activation}'. "
            f"Available functions: {list(ACTIVATION_FUNCTIONS.keys())}"
        )
    return ACTIVATION_FUNCTIONS[name_lower]()
