import numpy as np

from .errors import DimensionMismatchError, InvalidConstructionError


class matrix_t:
    """
    Dense 2-D float64 matrix stored as a flat row-major array.
    Element (i, j) lives at values[i * cols + j].
    """

    def __init__(self, rows: int, cols: int, values=None):
        self.rows = rows
        self.cols = cols
        if values is None:
            self.values = np.zeros(rows * cols, dtype=np.float64)
        else:
            self.values = np.array(values, dtype=np.float64)
        if self.values.ndim != 1 or self.values.shape[0] != rows * cols:
            raise InvalidConstructionError("Array is incorrect size")

    @classmethod
    def _wrap(cls, rows: int, cols: int, values: np.ndarray) -> "matrix_t":
        # values must be a fresh array owned by nobody else
        m = cls.__new__(cls)
        m.rows, m.cols, m.values = rows, cols, values
        return m

    @classmethod
    def from_vector(cls, values) -> "matrix_t":
        values = np.array(values, dtype=np.float64).ravel()
        return cls._wrap(values.shape[0], 1, values)

    @property
    def shape(self):
        return self.rows, self.cols

    def get(self, i: int, j: int) -> float:
        return float(self.values[i * self.cols + j])

    def set(self, i: int, j: int, value: float):
        self.values[i * self.cols + j] = value

    def __getitem__(self, key):
        i, j = key
        return self.get(i, j)

    def __setitem__(self, key, value):
        i, j = key
        self.set(i, j, value)

    def _check_same(self, other: "matrix_t"):
        if self.rows != other.rows or self.cols != other.cols:
            raise DimensionMismatchError("Arrays must be same dimensions")

    # value-producing arithmetic
    def __add__(self, other: "matrix_t") -> "matrix_t":
        self._check_same(other)
        return matrix_t._wrap(self.rows, self.cols, self.values + other.values)

    def __sub__(self, other: "matrix_t") -> "matrix_t":
        self._check_same(other)
        return matrix_t._wrap(self.rows, self.cols, self.values - other.values)

    def __mul__(self, other):
        if isinstance(other, matrix_t):
            self._check_same(other)
            return matrix_t._wrap(self.rows, self.cols, self.values * other.values)
        return matrix_t._wrap(self.rows, self.cols, self.values * float(other))

    def __rmul__(self, other):
        return self * other

    # in-place arithmetic
    def __iadd__(self, other: "matrix_t") -> "matrix_t":
        self._check_same(other)
        self.values += other.values
        return self

    def __isub__(self, other: "matrix_t") -> "matrix_t":
        self._check_same(other)
        self.values -= other.values
        return self

    def __imul__(self, other):
        if isinstance(other, matrix_t):
            self._check_same(other)
            self.values *= other.values
        else:
            self.values *= float(other)
        return self

    add = __add__
    subtract = __sub__
    add_assign = __iadd__
    subtract_assign = __isub__

    def elementwise_multiply(self, other: "matrix_t") -> "matrix_t":
        if not isinstance(other, matrix_t):
            raise TypeError("elementwise_multiply expects a matrix_t")
        return self * other

    def elementwise_multiply_assign(self, other: "matrix_t") -> "matrix_t":
        if not isinstance(other, matrix_t):
            raise TypeError("elementwise_multiply_assign expects a matrix_t")
        self *= other
        return self

    def scalar_multiply(self, value: float) -> "matrix_t":
        return self * float(value)

    def dot(self, other: "matrix_t") -> "matrix_t":
        """
        Matrix product (rows, k) x (k, cols) -> (rows, cols).
        Fills one output row at a time, reducing over k for each column.
        """
        if self.cols != other.rows:
            raise DimensionMismatchError("Array dimensions not compatible")
        k, n = self.cols, other.cols
        rhs = other.values.reshape(k, n)
        out = np.empty(self.rows * n, dtype=np.float64)
        for i in range(self.rows):
            row = self.values[i * k:(i + 1) * k]
            out[i * n:(i + 1) * n] = row @ rhs
        return matrix_t._wrap(self.rows, n, out)

    def __matmul__(self, other: "matrix_t") -> "matrix_t":
        return self.dot(other)

    def transpose(self) -> "matrix_t":
        if self.rows == 1 or self.cols == 1:
            # vector layout is identical either way round
            return matrix_t._wrap(self.cols, self.rows, self.values.copy())
        flipped = self.values.reshape(self.rows, self.cols).T
        return matrix_t._wrap(self.cols, self.rows, np.ascontiguousarray(flipped).ravel())

    @property
    def T(self) -> "matrix_t":
        return self.transpose()

    def apply(self, function) -> "matrix_t":
        """Return a new matrix with a pure scalar function applied to every element."""
        n = self.values.shape[0]
        out = np.fromiter((function(v) for v in self.values.tolist()), dtype=np.float64, count=n)
        return matrix_t._wrap(self.rows, self.cols, out)

    def fill_gaussian(self, rng: np.random.Generator):
        self.values[:] = rng.standard_normal(self.values.shape[0])

    def copy(self) -> "matrix_t":
        return matrix_t._wrap(self.rows, self.cols, self.values.copy())

    def to_array(self) -> np.ndarray:
        return self.values.reshape(self.rows, self.cols).copy()

    def __eq__(self, other):
        if not isinstance(other, matrix_t):
            return NotImplemented
        return (self.rows == other.rows and self.cols == other.cols
                and bool(np.array_equal(self.values, other.values)))

    def __hash__(self):
        return hash((self.rows, self.cols, (self.values + 0.0).tobytes()))  # folds -0.0 into 0.0

    def __repr__(self):
        return f"matrix_t({self.rows}, {self.cols}, {self.values.tolist()})"
