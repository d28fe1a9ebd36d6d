"""
Data Type Definitions

Provides type-safe dtype constants, validation, and the scalar arithmetic
helpers that keep kernel results in the matrix element type.
"""

from typing import Any, Optional, Union
from enum import Enum

import numpy as np

from .._errors import TypeMismatchError

__all__ = [
    'DType', 'float32', 'float64', 'int32', 'int64',
    'normalize_dtype', 'validate_dtype', 'resolve_dtype',
    'is_float_dtype', 'is_int_dtype', 'dtype_itemsize',
    'coerce_scalar', 'cast_array', 'divide', 'zero_of', 'sqrt_as',
]


class DType(Enum):
    """
    Element Type Enumeration.

    Provides type-safe constants for matrix and vector creation.

    Example:
        >>> from csrrelax.sparse import DType, SparseCSRMatrix
        >>> mat = SparseCSRMatrix.empty(10, dtype=DType.float32)
        >>>
        >>> # Or use module-level constants
        >>> import csrrelax.sparse as sp
        >>> mat = SparseCSRMatrix.empty(10, dtype=sp.int64)
    """

    float32 = 'float32'
    float64 = 'float64'
    int32 = 'int32'
    int64 = 'int64'

    def __str__(self) -> str:
        return self.value

    def __repr__(self) -> str:
        return f"DType.{self.name}"


# =============================================================================
# Module-Level Constants (For Clean Syntax)
# =============================================================================

float32 = DType.float32
float64 = DType.float64
int32 = DType.int32
int64 = DType.int64


# =============================================================================
# Type Utilities
# =============================================================================

def normalize_dtype(dtype: Union[str, DType, np.dtype, type]) -> str:
    """
    Normalize dtype to string.

    Args:
        dtype: String, DType enum, numpy dtype or numpy scalar type

    Returns:
        String dtype

    Example:
        >>> normalize_dtype(DType.float32)
        'float32'
        >>> normalize_dtype(np.int64)
        'int64'
    """
    if isinstance(dtype, DType):
        return dtype.value
    elif isinstance(dtype, str):
        return dtype
    elif isinstance(dtype, np.dtype):
        return dtype.name
    elif isinstance(dtype, type) and issubclass(dtype, np.generic):
        return np.dtype(dtype).name
    else:
        raise TypeMismatchError(f"dtype must be str or DType, got {type(dtype)}")


def validate_dtype(dtype: str) -> None:
    """
    Validate dtype string.

    Args:
        dtype: Data type string

    Raises:
        TypeMismatchError: If dtype is not supported
    """
    valid = {e.value for e in DType}
    if dtype not in valid:
        raise TypeMismatchError(f"Invalid dtype: {dtype}. Valid: {sorted(valid)}")


def resolve_dtype(dtype: Any, default: Optional[str] = None) -> np.dtype:
    """Normalize, validate and convert ``dtype`` to a numpy dtype."""
    if dtype is None:
        dtype = default
    name = normalize_dtype(dtype)
    validate_dtype(name)
    return np.dtype(name)


def is_float_dtype(dtype: Union[str, DType, np.dtype]) -> bool:
    """Check if dtype is floating point."""
    return normalize_dtype(dtype) in ('float32', 'float64')


def is_int_dtype(dtype: Union[str, DType, np.dtype]) -> bool:
    """Check if dtype is integer."""
    return normalize_dtype(dtype) in ('int32', 'int64')


def dtype_itemsize(dtype: Union[str, DType, np.dtype]) -> int:
    """Get size in bytes for dtype."""
    return np.dtype(normalize_dtype(dtype)).itemsize


# =============================================================================
# Scalar Arithmetic in T
# =============================================================================

def zero_of(dtype: np.dtype):
    """Additive identity of ``dtype`` as a numpy scalar."""
    return dtype.type(0)


def coerce_scalar(value: Any, dtype: np.dtype, name: str = "value"):
    """
    Convert a Python/numpy scalar to ``dtype``.

    Integer element types only accept integral values; ``2.0`` is fine,
    ``2.5`` is not.

    Raises:
        TypeMismatchError: If the value is not a real scalar, would lose its
            fractional part, or lies outside the range of ``dtype``.
    """
    if isinstance(value, (bool, np.bool_)) or np.ndim(value) != 0:
        raise TypeMismatchError(f"{name} must be a real scalar, got {value!r}")
    if dtype.kind == 'i' and isinstance(value, (int, np.integer)):
        as_int = int(value)
    else:
        try:
            as_float = float(value)
        except (TypeError, ValueError):
            raise TypeMismatchError(f"{name} must be a real scalar, got {value!r}") from None
        except OverflowError:
            raise TypeMismatchError(
                f"{name}={value!r} cannot be represented as {dtype.name}"
            ) from None
        if dtype.kind != 'i':
            with np.errstate(over='ignore'):
                converted = dtype.type(as_float)
            if np.isfinite(as_float) and not np.isfinite(converted):
                raise TypeMismatchError(f"{name}={value!r} overflows {dtype.name}")
            return converted
        if not np.isfinite(as_float) or as_float != int(as_float):
            raise TypeMismatchError(
                f"{name}={value!r} cannot be represented as {dtype.name}"
            )
        as_int = int(as_float)
    info = np.iinfo(dtype)
    if as_int < info.min or as_int > info.max:
        raise TypeMismatchError(
            f"{name}={value!r} is outside the {dtype.name} range [{info.min}, {info.max}]"
        )
    return dtype.type(as_int)


def cast_array(arr: np.ndarray, dtype: np.dtype, name: str = "array") -> np.ndarray:
    """
    Convert ``arr`` to ``dtype`` without silently changing its values.

    The cast must be ``same_kind``. Integer targets additionally require
    every value to survive the round trip; floating targets may round but
    must not overflow a finite value to infinity.

    Raises:
        TypeMismatchError: If the kinds are incompatible or a value does not
            fit ``dtype``.
    """
    if arr.dtype == dtype:
        return arr
    if not np.can_cast(arr.dtype, dtype, casting='same_kind'):
        raise TypeMismatchError(f"Cannot use {arr.dtype} {name} with {dtype.name} elements")
    with np.errstate(over='ignore', invalid='ignore'):
        out = arr.astype(dtype)
        if dtype.kind == 'i':
            lost = out.astype(arr.dtype) != arr
        else:
            lost = np.isinf(out) & np.isfinite(arr)
    if np.any(lost):
        first = np.argwhere(lost)[0]
        index = tuple(int(k) for k in first) if arr.ndim != 1 else int(first[0])
        raise TypeMismatchError(
            f"{name}[{index}]={arr[index]!r} cannot be represented as {dtype.name}"
        )
    return out


def divide(num, den, dtype: np.dtype):
    """
    Divide in ``dtype`` arithmetic.

    Floating types use true division; integer types truncate toward zero,
    matching fixed-width integer division. Works on scalars and arrays.
    """
    if dtype.kind == 'i':
        num = np.asarray(num, dtype=dtype)
        den = np.asarray(den, dtype=dtype)
        quot = np.abs(num) // np.abs(den)
        quot = np.where((num < 0) != (den < 0), -quot, quot)
        return quot.astype(dtype, copy=False)[()]
    return (np.asarray(num, dtype=dtype) / np.asarray(den, dtype=dtype))[()]


def sqrt_as(value, dtype: np.dtype):
    """``sqrt(value)`` converted back to ``dtype`` (truncated for integers)."""
    root = np.sqrt(np.float64(value))
    if dtype.kind == 'i':
        return dtype.type(int(root)) if np.isfinite(root) else root
    return dtype.type(root)
