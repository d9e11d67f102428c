import numpy as np
from typing import List, NamedTuple, Optional, Sequence, Union
import logging

from linalg import Vector, ShapeMismatchError, UnimplementedOperationError
from layer import Layer
from activations import get_activation, Activation

DEFAULT_LEARNING_RATE = 1e-2
DEFAULT_EPS = 1e-2
DEFAULT_ACTIVATION = 'sigmoid'

WEIGHT = 'weight'
BIAS = 'bias'


class ParameterRef(NamedTuple):
    """Locates one trainable scalar: layer index, role (weight or bias) and flat offset."""
    layer: int
    role: str
    offset: int


class Network:
    """
    A feedforward neural network (multilayer perceptron) trained without backpropagation.

    Owns an ordered stack of layers. Every hidden layer shares one activation and the
    last layer uses the (possibly different) output activation.

    Trainable scalars are enumerated once, at construction, into `parameters`: layer by
    layer, weights (row-major) before biases. Gradient estimation and gradient
    application both walk this list, so a gradient vector's index i always refers to
    `parameters[i]`.
    """

    def __init__(
        self,
        layers_sizes: Sequence[int],
        hidden_activation: Union[str, Activation] = DEFAULT_ACTIVATION,
        output_activation: Union[str, Activation] = DEFAULT_ACTIVATION,
        learning_rate: float = DEFAULT_LEARNING_RATE,
        eps: float = DEFAULT_EPS,
        initial_layer_weights: Optional[List[np.ndarray]] = None, # List of (output_size, input_size) arrays
        initial_layer_biases: Optional[List[np.ndarray]] = None,  # List of (output_size,) arrays
    ):
        """
        Initializes the network with zero weights and biases.

        Args:
            layers_sizes: Widths from the input to the output, e.g. [2, 2, 1] for a
                          two-input network with one hidden layer of 2 and a single output.
            hidden_activation: Activation applied after every layer but the last.
            output_activation: Activation applied after the last layer.
            learning_rate: Step size used by `apply_gradient`.
            eps: Perturbation size used by finite-difference gradient estimation.
            initial_layer_weights: Optional list of pre-defined weight matrices, one per layer.
            initial_layer_biases: Optional list of pre-defined bias vectors, one per layer.

        Raises:
            ValueError: If fewer than two sizes are given or `eps` is not positive.
            ShapeMismatchError: If the initial weights or biases do not fit the sizes.
        """
        layers_sizes = [int(size) for size in layers_sizes]
        if len(layers_sizes) < 2:
            raise ValueError("Network must have at least an input and an output layer size.")
        num_layers = len(layers_sizes) - 1

        # Validate initial weights/biases lengths if provided
        if initial_layer_weights is not None and len(initial_layer_weights) != num_layers:
            raise ShapeMismatchError(f"Length of initial_layer_weights ({len(initial_layer_weights)}) "
                                     f"must match number of layers ({num_layers}).")
        if initial_layer_biases is not None and len(initial_layer_biases) != num_layers:
            raise ShapeMismatchError(f"Length of initial_layer_biases ({len(initial_layer_biases)}) "
                                     f"must match number of layers ({num_layers}).")

        self.layers: List[Layer] = []
        for i in range(num_layers):
            layer = Layer(
                input_size      = layers_sizes[i],
                output_size     = layers_sizes[i+1],
                initial_weights = initial_layer_weights[i] if initial_layer_weights else None,
                initial_biases  = initial_layer_biases[i] if initial_layer_biases else None,
                id              = i
            )
            self.layers.append(layer)

        self.layers_sizes = layers_sizes
        self.max_layer_size = max(layers_sizes)
        self.hidden_activation = hidden_activation
        self.output_activation = output_activation
        self.learning_rate = learning_rate
        self.eps = eps

        self.parameters: List[ParameterRef] = []
        for i, layer in enumerate(self.layers):
            self.parameters.extend(ParameterRef(i, WEIGHT, k) for k in range(layer.weights.size))
            self.parameters.extend(ParameterRef(i, BIAS, k) for k in range(layer.biases.n))
        self.number_of_parameters = sum(layer.parameter_count for layer in self.layers)

        # Two rows of max_layer_size: forward propagation alternates between them
        self._scratch = np.zeros((2, self.max_layer_size), dtype=float)

        logging.info(f"Created neural network with architecture: {layers_sizes}")
        logging.info(f"Activations: hidden={self._hidden_activation.name}, output={self._output_activation.name}, "
                     f"parameters={self.number_of_parameters}")

    @property
    def layers_num(self) -> int:
        return len(self.layers)

    @property
    def eps(self) -> float:
        return self._eps

    @eps.setter
    def eps(self, eps: float):
        if not eps > 0:
            raise ValueError(f"eps must be positive, got {eps}")
        self._eps = eps

    @property
    def hidden_activation(self) -> Activation:
        return self._hidden_activation

    @hidden_activation.setter
    def hidden_activation(self, activation: Union[str, Activation]):
        self._hidden_activation = get_activation(activation)

    @property
    def output_activation(self) -> Activation:
        return self._output_activation

    @output_activation.setter
    def output_activation(self, activation: Union[str, Activation]):
        self._output_activation = get_activation(activation)

    def set_activations(self, hidden: Union[str, Activation, None] = None, output: Union[str, Activation, None] = None):
        """Selects the hidden and/or output activation. `None` leaves a slot unchanged."""
        if hidden is not None:
            self.hidden_activation = hidden
        if output is not None:
            self.output_activation = output

    def randomize(self, rng: Optional[np.random.Generator] = None):
        """Fills every weight and bias with independent uniform [0, 1) draws from `rng`."""
        if rng is None:
            rng = np.random.default_rng()
        for layer in self.layers:
            layer.randomize(rng)

    def _check_allocated(self):
        if not self.layers:
            raise RuntimeError("Network has been freed.")

    def forward(self, inputs: Union[Vector, Sequence[float], np.ndarray]) -> Vector:
        """
        Propagates one input vector through every layer.

        Each hidden layer computes hidden_activation(W·v + b); the last layer applies the
        output activation instead. The caller's input is never modified.

        Args:
            inputs: Input vector of length layers_sizes[0].

        Returns:
            A new Vector of length layers_sizes[-1], owned by the caller.

        Raises:
            ShapeMismatchError: If the input width does not match the network.
            RuntimeError: If the network has been freed.
        """
        self._check_allocated()
        values = inputs.elements if isinstance(inputs, Vector) else np.asarray(inputs, dtype=float)
        input_size = self.layers_sizes[0]
        if values.shape != (input_size,):
            raise ShapeMismatchError(f"Network expects input of shape ({input_size},), got {values.shape}")

        scratch = self._scratch
        scratch[0, :input_size] = values
        current = scratch[0, :input_size]
        last = self.layers_num - 1
        for i, layer in enumerate(self.layers):
            out = scratch[(i + 1) % 2, :layer.output_size]
            layer.affine(current, out)
            if i < last:
                self._hidden_activation.apply_mut(out)
            else:
                self._output_activation.apply_mut(out)
            current = out
        return Vector.from_values(current)

    def _parameter_location(self, ref: ParameterRef):
        layer = self.layers[ref.layer]
        if ref.role == WEIGHT:
            # Offsets count row-major; index by (row, col) so any memory layout is written in place
            return layer.weights.elements, divmod(ref.offset, layer.weights.cols)
        if ref.role == BIAS:
            return layer.biases.elements, ref.offset
        raise ValueError(f"Unknown parameter role '{ref.role}'")

    def get_parameter(self, ref: ParameterRef) -> float:
        storage, index = self._parameter_location(ref)
        return float(storage[index])

    def set_parameter(self, ref: ParameterRef, value: float):
        storage, index = self._parameter_location(ref)
        storage[index] = value

    def parameter_vector(self) -> Vector:
        """Snapshot of every trainable scalar, in traversal order."""
        values = []
        for layer in self.layers:
            values.append(layer.weights.elements.reshape(-1))
            values.append(layer.biases.elements)
        return Vector.from_values(np.concatenate(values) if values else np.zeros(0))

    def copy(self) -> 'Network':
        """Returns an independent deep copy with the same parameters and settings."""
        self._check_allocated()
        weights, biases = zip(*(layer.get_weights() for layer in self.layers))
        return Network(
            self.layers_sizes,
            hidden_activation=self._hidden_activation,
            output_activation=self._output_activation,
            learning_rate=self.learning_rate,
            eps=self.eps,
            initial_layer_weights=list(weights),
            initial_layer_biases=list(biases),
        )

    def free(self):
        """Releases every owned matrix and vector and resets the scalar fields."""
        for layer in self.layers:
            layer.free()
        self.layers = []
        self.layers_sizes = []
        self.parameters = []
        self.max_layer_size = 0
        self.number_of_parameters = 0
        self.learning_rate = DEFAULT_LEARNING_RATE
        self.eps = DEFAULT_EPS
        self._scratch = np.zeros((2, 0), dtype=float)
        logging.debug("Network freed.")

    def save_weights(self, filename: str):
        raise UnimplementedOperationError("Saving networks is not implemented")

    @classmethod
    def load_weights(cls, filename: str) -> 'Network':
        raise UnimplementedOperationError("Loading networks is not implemented")

    def summary(self) -> str:
        """
        Generates a text summary of the network architecture and parameters.

        Returns:
            A string containing the network summary.
        """
        summary_str = "\n" + "="*50 + "\n"
        summary_str += "Neural Network Summary\n"
        summary_str += "="*50 + "\n"
        last = self.layers_num - 1
        for i, layer in enumerate(self.layers):
            activation = self._output_activation if i == last else self._hidden_activation
            summary_str += f"Layer {i}: {layer.__class__.__name__} (ID: {layer.id})\n"
            summary_str += f"  Input Shape: ({layer.input_size},)\n"
            summary_str += f"  Output Shape: ({layer.output_size},)\n"
            summary_str += f"  Activation: {activation.__class__.__name__}\n"
            summary_str += f"  Weight Shape: {layer.weights.shape}\n"
            summary_str += f"  Bias Shape: {layer.biases.elements.shape}\n"
            summary_str += f"  Parameters: {layer.parameter_count}\n"
            summary_str += "-"*50 + "\n"

        summary_str += f"Total Parameters: {self.number_of_parameters}\n"
        summary_str += f"Learning Rate: {self.learning_rate}, eps: {self.eps}\n"
        summary_str += "="*50 + "\n"
        return summary_str

    def __str__(self):
        return "\n".join(str(layer) for layer in self.layers)

    def __repr__(self):
        return (f"Network(layers_sizes={self.layers_sizes}, "
                f"hidden_activation={self._hidden_activation.name}, "
                f"output_activation={self._output_activation.name})")


def network_alloc(layers_num: int, layers_sizes: Sequence[int], **kwargs) -> Network:
    """
    Allocates a zero-initialized network with `layers_num` layers.

    Raises:
        ShapeMismatchError: If `layers_sizes` does not hold layers_num + 1 widths.
    """
    if len(layers_sizes) != layers_num + 1:
        raise ShapeMismatchError(f"Expected {layers_num + 1} layer sizes for {layers_num} layers, got {len(layers_sizes)}")
    return Network(layers_sizes, **kwargs)


def random_network(layers_num: int, layers_sizes: Sequence[int], rng: Optional[np.random.Generator] = None, **kwargs) -> Network:
    """Allocates a network and fills its weights and biases with uniform [0, 1) draws."""
    network = network_alloc(layers_num, layers_sizes, **kwargs)
    network.randomize(rng)
    return network


def network_free(network: Network):
    network.free()


def network_forward(network: Network, inputs: Union[Vector, Sequence[float], np.ndarray]) -> Vector:
    return network.forward(inputs)
