import numpy as np
from typing import Optional, Tuple
import logging

from linalg import Matrix, Vector, ShapeMismatchError, accumulate_rows

class Layer:
    """
    Represents a single fully connected layer: one weight matrix and one bias vector.

    A layer maps an input vector of `input_size` values to `output_size` values with
    the affine transform W·x + b. The activation is not part of the layer; the owning
    network applies its hidden or output activation to the result.

    Key Attributes:
        weights (Matrix): Weight matrix of shape (output_size, input_size). Row i holds
                          the weights of output unit i.
        biases (Vector): Bias vector of length output_size.
    """

    def __init__(
        self,
        input_size: int,
        output_size: int,
        initial_weights: Optional[np.ndarray] = None,  # Expected shape (output_size, input_size)
        initial_biases: Optional[np.ndarray] = None,   # Expected shape (output_size,)
        id: int = 0,
    ):
        """
        Initializes the layer with zero weights and biases unless initial values are given.

        Args:
            input_size: Number of input features (size of the previous layer).
            output_size: Number of outputs of this layer.
            initial_weights: Optional pre-defined weight matrix of shape (output_size, input_size).
            initial_biases: Optional pre-defined bias vector of shape (output_size,).
            id: Position of the layer in its network (for logging/debugging).

        Raises:
            ValueError: If a size is not positive.
            ShapeMismatchError: If initial weights or biases have the wrong shape.
        """
        if input_size <= 0 or output_size <= 0:
            raise ValueError(f"Layer {id}: sizes must be positive, got input_size={input_size}, output_size={output_size}")
        self.input_size = input_size
        self.output_size = output_size
        self.id = id

        self.weights = Matrix(output_size, input_size)
        if initial_weights is not None:
            initial_weights = np.asarray(initial_weights, dtype=float)
            if initial_weights.shape != (output_size, input_size):
                raise ShapeMismatchError(
                    f"Layer {id}: Initial weights shape {initial_weights.shape} "
                    f"does not match expected shape ({output_size}, {input_size})"
                )
            self.weights.elements[...] = initial_weights

        self.biases = Vector(output_size)
        if initial_biases is not None:
            initial_biases = np.asarray(initial_biases, dtype=float)
            if initial_biases.shape != (output_size,):
                raise ShapeMismatchError(
                    f"Layer {id}: Initial biases shape {initial_biases.shape} "
                    f"does not match expected shape ({output_size},)"
                )
            self.biases.elements[...] = initial_biases

        logging.debug(
            f"Layer #{self.id} created: input_size={input_size}, output_size={output_size}, "
            f"weight_shape={self.weights.shape}, bias_shape={self.biases.elements.shape}"
        )

    def randomize(self, rng: np.random.Generator):
        """Fills every weight and bias with independent uniform [0, 1) draws."""
        self.weights.elements[...] = rng.random((self.output_size, self.input_size))
        self.biases.elements[...] = rng.random(self.output_size)

    def affine(self, inputs: np.ndarray, out: np.ndarray) -> np.ndarray:
        """
        Computes out = W·inputs + b without allocating.

        Args:
            inputs: Input values of shape (input_size,).
            out: Destination of shape (output_size,). Must not overlap `inputs`.

        Returns:
            `out`, holding the pre-activation values.

        Raises:
            ShapeMismatchError: If either buffer has the wrong length.
        """
        if inputs.shape != (self.input_size,):
            raise ShapeMismatchError(f"Layer {self.id}: Expected {self.input_size} inputs, got {inputs.shape[0]}")
        if out.shape != (self.output_size,):
            raise ShapeMismatchError(f"Layer {self.id}: Expected output buffer of {self.output_size}, got {out.shape[0]}")
        accumulate_rows(self.weights.elements, inputs, out)
        out += self.biases.elements
        return out

    @property
    def parameter_count(self) -> int:
        return self.input_size * self.output_size + self.output_size

    def get_weights(self) -> Tuple[np.ndarray, np.ndarray]:
        """Returns copies of the current weights and biases of the layer."""
        return self.weights.elements.copy(), self.biases.elements.copy()

    def copy(self) -> 'Layer':
        return Layer(self.input_size, self.output_size,
                     initial_weights=self.weights.elements,
                     initial_biases=self.biases.elements,
                     id=self.id)

    def free(self):
        self.weights.free()
        self.biases.free()

    def summary(self) -> str:
        """Returns a string summary of the layer's configuration."""
        return (
            f"Layer Summary (id={self.id}):\n"
            f"  Type: Fully Connected\n"
            f"  Input size: {self.input_size}\n"
            f"  Output size: {self.output_size}\n"
            f"  Weights shape: {self.weights.shape}\n"
            f"  Biases shape: {self.biases.elements.shape}\n"
            f"  Parameters: {self.parameter_count:,} parameters\n"
        )

    def __str__(self):
        return f"W{self.id} = {self.weights}\nb{self.id} = {self.biases}"

    def __repr__(self):
        return (f"Layer(id={self.id}, input_size={self.input_size}, "
                f"output_size={self.output_size})")
