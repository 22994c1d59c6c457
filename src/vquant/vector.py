"""
Immutable vector type for the vquant library.

A ``Vector`` wraps a read-only 1D float64 numpy array. Arithmetic always
returns a new ``Vector`` and operands of different dimension raise
``DimensionMismatchError``.
"""

from typing import Any, Iterator, Sequence, Union

import numpy as np

from .exceptions import DimensionMismatchError, InsufficientDataError
from .utils.validation import as_vector_array


class Vector:
    """
    A fixed-dimension vector of real values.

    Vectors are immutable once constructed: the underlying array is marked
    read-only and every operation returns a new instance.
    """

    __slots__ = ("_data",)

    def __init__(self, data: Any):
        """Initialize the vector from a non-empty sequence of numbers."""
        if isinstance(data, Vector):
            array = data._data
        else:
            array = as_vector_array(data).copy()
            array.flags.writeable = False
        self._data = array

    @property
    def data(self) -> np.ndarray:
        """Read-only view of the values."""
        return self._data

    @property
    def dim(self) -> int:
        """Number of components."""
        return int(self._data.shape[0])

    def __len__(self) -> int:
        return self.dim

    def __iter__(self) -> Iterator[float]:
        return iter(self._data.tolist())

    def __getitem__(self, index):
        return self._data[index]

    def __array__(self, dtype=None, copy=None):
        if dtype is None:
            return self._data.copy()
        return self._data.astype(dtype)

    def to_numpy(self) -> np.ndarray:
        """Return a writable copy of the values."""
        return self._data.copy()

    def tolist(self) -> list:
        return self._data.tolist()

    def _check_dim(self, other: "Vector") -> None:
        if self.dim != other.dim:
            raise DimensionMismatchError(self.dim, other.dim)

    @staticmethod
    def _coerce(other: Any) -> "Vector":
        return other if isinstance(other, Vector) else Vector(other)

    def __add__(self, other: Any) -> "Vector":
        other = self._coerce(other)
        self._check_dim(other)
        return Vector(self._data + other._data)

    def __sub__(self, other: Any) -> "Vector":
        other = self._coerce(other)
        self._check_dim(other)
        return Vector(self._data - other._data)

    def __mul__(self, scalar: float) -> "Vector":
        if not isinstance(scalar, (int, float, np.integer, np.floating)):
            return NotImplemented
        return Vector(self._data * float(scalar))

    __rmul__ = __mul__

    def __neg__(self) -> "Vector":
        return Vector(-self._data)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Vector):
            return NotImplemented
        return self.dim == other.dim and bool(np.array_equal(self._data, other._data))

    def __hash__(self) -> int:
        return hash(self._data.tobytes())

    def __repr__(self) -> str:
        values = ", ".join(f"{x:g}" for x in self._data[:8])
        if self.dim > 8:
            values += ", ..."
        return f"Vector([{values}], dim={self.dim})"

    def dot(self, other: Any) -> float:
        """Dot product with another vector of the same dimension."""
        other = self._coerce(other)
        self._check_dim(other)
        return float(np.dot(self._data, other._data))

    def norm(self) -> float:
        """Euclidean norm."""
        return float(np.linalg.norm(self._data))

    def distance2(self, other: Any) -> float:
        """Squared Euclidean distance to another vector."""
        diff = self - other
        return diff.dot(diff)


VectorLike = Union[Vector, np.ndarray, Sequence[float]]


def mean_vector(vectors: Sequence[VectorLike]) -> Vector:
    """
    Compute the coordinate-wise mean of a sequence of vectors.

    Args:
        vectors: Non-empty sequence of vectors of equal dimension

    Returns:
        Mean vector

    Raises:
        InsufficientDataError: If ``vectors`` is empty
        DimensionMismatchError: If the vectors differ in dimension
    """
    if len(vectors) == 0:
        raise InsufficientDataError("Cannot compute the mean of zero vectors")
    arrays = [Vector(v).data for v in vectors]
    dim = arrays[0].shape[0]
    for array in arrays:
        if array.shape[0] != dim:
            raise DimensionMismatchError(dim, array.shape[0])
    return Vector(np.mean(np.stack(arrays), axis=0))
