"""
Dense Vector Container

numpy-backed dense vector used as the operand of matrix-vector products and
relaxation sweeps. It provides exactly what the kernels consume: a size
query, indexed read/write access, element-wise ``+=`` and a free ``dot``
function.
"""

from typing import Union, List, Any, Optional

import numpy as np

from .._config import config
from .._errors import DimensionMismatchError, InvalidArgumentError
from ._dtypes import DType, resolve_dtype, cast_array, coerce_scalar, sqrt_as

__all__ = ['Vector', 'zeros', 'from_list', 'from_numpy', 'dot', 'norm']


# =============================================================================
# Vector Class
# =============================================================================

class Vector:
    """
    Dense vector of a fixed element type.

    Attributes:
        dtype (str): Element type ('float64', 'int32', ...)
        size (int): Number of elements

    Example:
        >>> v = Vector.zeros(3, dtype='float64')
        >>> v[0] = 2.5
        >>> v += Vector.from_list([1.0, 1.0, 1.0])
        >>> v.to_list()
        [3.5, 1.0, 1.0]
    """

    __slots__ = ('_data',)

    def __init__(self, size: int, dtype: Union[str, DType, None] = None):
        """
        Allocate a zero-initialized vector.

        Args:
            size: Number of elements
            dtype: Element type (defaults to ``config.dtype.default``)
        """
        if size < 0:
            raise InvalidArgumentError(f"Vector size must be non-negative, got {size}")
        self._data = np.zeros(int(size), dtype=resolve_dtype(dtype, config.default_dtype))

    @classmethod
    def _wrap(cls, data: np.ndarray) -> 'Vector':
        obj = cls.__new__(cls)
        obj._data = data
        return obj

    # -------------------------------------------------------------------------
    # Factory Methods
    # -------------------------------------------------------------------------

    @classmethod
    def zeros(cls, size: int, dtype: Union[str, DType, None] = None) -> 'Vector':
        """Create zero-initialized vector."""
        return cls(size, dtype)

    @classmethod
    def from_list(cls, data: List, dtype: Union[str, DType, None] = None) -> 'Vector':
        """Create vector from Python list."""
        arr = np.asarray(data, dtype=resolve_dtype(dtype, config.default_dtype))
        if arr.ndim != 1:
            raise InvalidArgumentError(f"Vector data must be 1-D, got shape {arr.shape}")
        return cls._wrap(arr.copy())

    @classmethod
    def from_numpy(cls, arr: np.ndarray, copy: bool = True) -> 'Vector':
        """
        Create vector from a 1-D numpy array.

        Args:
            arr: Source array; its dtype must be a supported element type
            copy: If False, share memory with ``arr``

        Returns:
            Vector with the dtype of ``arr``
        """
        arr = np.asarray(arr)
        if arr.ndim != 1:
            raise InvalidArgumentError(f"Vector data must be 1-D, got shape {arr.shape}")
        resolve_dtype(arr.dtype)
        return cls._wrap(arr.copy() if copy else arr)

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def size(self) -> int:
        """Number of elements."""
        return self._data.shape[0]

    @property
    def dtype(self) -> str:
        """Element type string."""
        return self._data.dtype.name

    # -------------------------------------------------------------------------
    # Element Access
    # -------------------------------------------------------------------------

    def __getitem__(self, idx: Union[int, slice]):
        return self._data[idx]

    def __setitem__(self, idx: Union[int, slice], value):
        self._data[idx] = value

    def __len__(self) -> int:
        return self.size

    def __iter__(self):
        return iter(self._data)

    # -------------------------------------------------------------------------
    # Arithmetic
    # -------------------------------------------------------------------------

    def _operand(self, other: Any) -> np.ndarray:
        other = other._data if isinstance(other, Vector) else np.asarray(other)
        if other.ndim == 0:
            return coerce_scalar(other[()], self._data.dtype, "operand")
        if other.shape != self._data.shape:
            raise DimensionMismatchError(
                f"Vector size mismatch: {self.size} vs {other.shape[0]}"
            )
        return cast_array(other, self._data.dtype, "operand")

    def __iadd__(self, other) -> 'Vector':
        np.add(self._data, self._operand(other), out=self._data, casting='same_kind')
        return self

    def __isub__(self, other) -> 'Vector':
        np.subtract(self._data, self._operand(other), out=self._data, casting='same_kind')
        return self

    def __add__(self, other) -> 'Vector':
        result = self.copy()
        result += other
        return result

    def __sub__(self, other) -> 'Vector':
        result = self.copy()
        result -= other
        return result

    def __neg__(self) -> 'Vector':
        return Vector._wrap(-self._data)

    # -------------------------------------------------------------------------
    # Conversion
    # -------------------------------------------------------------------------

    def __array__(self, dtype=None, copy=None):
        if dtype is not None and np.dtype(dtype) != self._data.dtype:
            return self._data.astype(dtype)
        if copy:
            return self._data.copy()
        return self._data

    def tolist(self) -> List:
        """Convert to Python list."""
        return self._data.tolist()

    def to_list(self) -> List:
        """Alias for tolist()."""
        return self.tolist()

    def to_numpy(self, copy: bool = False) -> np.ndarray:
        """
        Underlying numpy array.

        Args:
            copy: If False (default) the returned array shares memory with
                the vector, so writes are visible on both sides.
        """
        return self._data.copy() if copy else self._data

    def copy(self) -> 'Vector':
        """Create a deep copy."""
        return Vector._wrap(self._data.copy())

    def fill(self, value):
        """Fill vector with a constant value."""
        self._data.fill(value)

    # -------------------------------------------------------------------------
    # Representation
    # -------------------------------------------------------------------------

    def __repr__(self) -> str:
        if self.size <= 6:
            data_str = str(self.tolist())
        else:
            items = self.tolist()
            data_str = str(items[:3] + ['...'] + items[-3:])
        return f"Vector({data_str}, dtype={self.dtype})"


# =============================================================================
# Free Functions
# =============================================================================

def zeros(size: int, dtype: Union[str, DType, None] = None) -> Vector:
    """Create zero-initialized vector."""
    return Vector.zeros(size, dtype)


def from_list(data: List, dtype: Union[str, DType, None] = None) -> Vector:
    """Create vector from Python list."""
    return Vector.from_list(data, dtype)


def from_numpy(arr: np.ndarray, copy: bool = True) -> Vector:
    """Create vector from numpy array."""
    return Vector.from_numpy(arr, copy=copy)


def dot(a: Any, b: Any):
    """
    Dot product of two equal-length vectors.

    Args:
        a: Vector or 1-D array
        b: Vector or 1-D array

    Returns:
        Scalar of the promoted element type

    Raises:
        DimensionMismatchError: If the lengths differ.
    """
    a = np.asarray(a)
    b = np.asarray(b)
    if a.shape != b.shape or a.ndim != 1:
        raise DimensionMismatchError(f"dot() requires equal-length vectors, got {a.shape} and {b.shape}")
    return np.dot(a, b)


def norm(v: Any):
    """Euclidean norm ``sqrt(v . v)`` in the element type of ``v``."""
    arr = np.asarray(v)
    return sqrt_as(dot(arr, arr), arr.dtype)
