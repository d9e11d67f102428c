import numpy as np
from typing import Optional, Sequence, Union


class ShapeMismatchError(ValueError):
    """Raised when operand dimensions are incompatible with an operation."""


class UnimplementedOperationError(NotImplementedError):
    """Raised by operations that are declared but deliberately not supported."""


class Vector:
    """
    Fixed-length vector of reals.

    Key Attributes:
        elements (np.ndarray): Backing storage of shape (n,). Mutated in place by the
                               `*_mut` activation functions and by training.
    """

    def __init__(self, n: int, elements: Optional[Sequence[float]] = None):
        """
        Creates a zero-initialized vector, or one holding a copy of `elements`.

        Args:
            n: Number of elements.
            elements: Optional initial values. Must have exactly `n` entries.

        Raises:
            ValueError: If `n` is negative.
            ShapeMismatchError: If `elements` does not hold `n` values.
        """
        if n < 0:
            raise ValueError(f"Vector length must be non-negative, got {n}")
        if elements is None:
            self.elements = np.zeros(n, dtype=float)
        else:
            values = np.array(elements, dtype=float).reshape(-1)
            if values.shape != (n,):
                raise ShapeMismatchError(f"Vector of length {n} cannot hold {values.size} elements")
            self.elements = values

    @classmethod
    def from_values(cls, values: Union[Sequence[float], np.ndarray]) -> 'Vector':
        """Builds a vector holding a copy of a 1D sequence."""
        values = np.asarray(values, dtype=float)
        if values.ndim != 1:
            raise ShapeMismatchError(f"Expected 1D values for a vector, got shape {values.shape}")
        return cls(values.shape[0], values)

    @property
    def n(self) -> int:
        return self.elements.shape[0]

    def copy(self) -> 'Vector':
        return Vector(self.n, self.elements)

    def free(self):
        """Releases the backing storage; the vector becomes empty."""
        self.elements = np.zeros(0, dtype=float)

    def __len__(self) -> int:
        return self.n

    def __getitem__(self, i):
        return self.elements[i]

    def __setitem__(self, i, value):
        self.elements[i] = value

    def __iter__(self):
        return iter(self.elements.tolist())

    def __eq__(self, other):
        if not isinstance(other, Vector):
            return NotImplemented
        return self.n == other.n and bool(np.array_equal(self.elements, other.elements))

    def __str__(self) -> str:
        return "[" + ", ".join(f"{x:.4f}" for x in self.elements) + "]"

    def __repr__(self):
        return f"Vector(n={self.n}, elements={self})"


class Matrix:
    """
    Dense row-major matrix of reals.

    Key Attributes:
        elements (np.ndarray): C-ordered backing storage of shape (rows, cols), so the
                               flat traversal `elements.flat` is row-major.
    """

    def __init__(self, rows: int, cols: int, elements: Optional[Union[Sequence, np.ndarray]] = None):
        if rows < 0 or cols < 0:
            raise ValueError(f"Matrix dimensions must be non-negative, got ({rows}, {cols})")
        if elements is None:
            self.elements = np.zeros((rows, cols), dtype=float)
        else:
            values = np.array(elements, dtype=float)
            if values.size != rows * cols:
                raise ShapeMismatchError(
                    f"Matrix of shape ({rows}, {cols}) cannot hold {values.size} elements"
                )
            # Flat input is accepted and interpreted row-major
            self.elements = np.ascontiguousarray(values.reshape(rows, cols))

    @classmethod
    def from_rows(cls, rows: Union[Sequence[Sequence[float]], np.ndarray]) -> 'Matrix':
        """Builds a matrix holding a copy of a 2D array-like."""
        values = np.asarray(rows, dtype=float)
        if values.ndim != 2:
            raise ShapeMismatchError(f"Expected 2D values for a matrix, got shape {values.shape}")
        return cls(values.shape[0], values.shape[1], values)

    @property
    def rows(self) -> int:
        return self.elements.shape[0]

    @property
    def cols(self) -> int:
        return self.elements.shape[1]

    @property
    def shape(self):
        return self.elements.shape

    @property
    def size(self) -> int:
        return self.elements.size

    def at(self, i: int, j: int) -> float:
        return float(self.elements[i, j])

    def copy(self) -> 'Matrix':
        return Matrix(self.rows, self.cols, self.elements)

    def free(self):
        """Releases the backing storage; the matrix becomes 0x0."""
        self.elements = np.zeros((0, 0), dtype=float)

    def __eq__(self, other):
        if not isinstance(other, Matrix):
            return NotImplemented
        return self.shape == other.shape and bool(np.array_equal(self.elements, other.elements))

    def __str__(self) -> str:
        lines = ["[" + ", ".join(f"{x:.4f}" for x in row) + "]" for row in self.elements]
        return "[\n" + "\n".join("  " + line for line in lines) + "\n]"

    def __repr__(self):
        return f"Matrix(rows={self.rows}, cols={self.cols})"


def vector_alloc(n: int) -> Vector:
    """Allocates a zero-initialized vector of length n."""
    return Vector(n)


def matrix_alloc(rows: int, cols: int) -> Matrix:
    """Allocates a zero-initialized row-major matrix."""
    return Matrix(rows, cols)


def vector_free(v: Vector):
    v.free()


def matrix_free(a: Matrix):
    a.free()


def vector_add(u: Vector, v: Vector, result: Optional[Vector] = None) -> Vector:
    """
    Element-wise sum of two vectors.

    Args:
        u: Left operand.
        v: Right operand, same length as `u`.
        result: Optional destination vector (may alias `u` or `v`). A new vector
                is allocated when omitted.

    Returns:
        The vector holding u + v.

    Raises:
        ShapeMismatchError: If the lengths disagree.
    """
    if u.n != v.n:
        raise ShapeMismatchError(f"vector_add: operand lengths differ ({u.n} vs {v.n})")
    if result is None:
        result = Vector(u.n)
    elif result.n != u.n:
        raise ShapeMismatchError(f"vector_add: result length {result.n} does not match operands ({u.n})")
    np.add(u.elements, v.elements, out=result.elements)
    return result


def matrix_vector_mul(a: Matrix, v: Vector, result: Optional[Vector] = None) -> Vector:
    """
    Dense matrix-vector product: result[i] = Σ_j a[i, j] * v[j].

    Rows are accumulated one at a time over their columns in order.

    Args:
        a: Matrix of shape (rows, cols).
        v: Vector of length cols.
        result: Optional destination of length rows. Must not alias `v`.

    Returns:
        The vector holding a·v.

    Raises:
        ShapeMismatchError: If a.cols != v.n or result.n != a.rows.
    """
    if a.cols != v.n:
        raise ShapeMismatchError(
            f"matrix_vector_mul: matrix has {a.cols} columns but vector has {v.n} elements"
        )
    if result is None:
        result = Vector(a.rows)
    elif result.n != a.rows:
        raise ShapeMismatchError(
            f"matrix_vector_mul: result length {result.n} does not match matrix rows ({a.rows})"
        )
    accumulate_rows(a.elements, v.elements, result.elements)
    return result


def accumulate_rows(weights: np.ndarray, values: np.ndarray, out: np.ndarray) -> np.ndarray:
    """
    Writes out[i] = Σ_j weights[i, j] * values[j], summing each row left to right.

    The running sum goes column by column in order, so rounding matches a plain
    sequential loop bit for bit.

    Args:
        weights: Array of shape (rows, cols).
        values: Array of shape (cols,).
        out: Destination of shape (rows,). Must not overlap `values`.

    Returns:
        `out`.
    """
    if weights.shape[1] == 0:
        out[...] = 0.0
        return out
    # cumsum along an axis accumulates sequentially; the last column is the row total
    out[...] = np.cumsum(weights * values, axis=1)[:, -1]
    return out


def matrix_mul(a: Matrix, b: Matrix, result: Optional[Matrix] = None) -> Matrix:
    """Matrix-matrix product. Not supported."""
    raise UnimplementedOperationError("matrix_mul: matrix-matrix multiplication is not implemented")


def vector_print(v: Vector):
    print(v)


def matrix_print(a: Matrix):
    print(a)
