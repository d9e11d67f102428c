import numpy as np
from typing import Iterator, List, NamedTuple, Sequence

from linalg import Vector, ShapeMismatchError


class TrainingSample(NamedTuple):
    """One (input, expected output) pair."""
    input: Vector
    output: Vector


class TrainingData:
    """
    An ordered collection of training samples.

    Owned by whoever loaded it; the cost and gradient functions only read it.
    Sample order does not affect the cost.
    """

    def __init__(self, samples: Sequence[TrainingSample]):
        self.samples: List[TrainingSample] = list(samples)

    @classmethod
    def from_arrays(cls, X, y) -> 'TrainingData':
        """
        Builds training data from row-per-sample arrays.

        Args:
            X: Inputs, shape (num_samples, input_dim).
            y: Expected outputs, shape (num_samples, output_dim).

        Returns:
            A TrainingData with one sample per row.

        Raises:
            ShapeMismatchError: If X or y is not 2D or the sample counts differ.
        """
        X = np.asarray(X, dtype=float)
        y = np.asarray(y, dtype=float)
        if X.ndim != 2 or y.ndim != 2:
            raise ShapeMismatchError(f"Expected 2D inputs and outputs, got shapes {X.shape} and {y.shape}")
        if X.shape[0] != y.shape[0]:
            raise ShapeMismatchError(f"Number of samples in X ({X.shape[0]}) and y ({y.shape[0]}) must match.")
        return cls([TrainingSample(Vector.from_values(x_row), Vector.from_values(y_row))
                    for x_row, y_row in zip(X, y)])

    @property
    def n(self) -> int:
        return len(self.samples)

    def __len__(self) -> int:
        return len(self.samples)

    def __iter__(self) -> Iterator[TrainingSample]:
        return iter(self.samples)

    def __getitem__(self, i: int) -> TrainingSample:
        return self.samples[i]

    def __repr__(self):
        return f"TrainingData(n={self.n})"
