"""
csrrelax Type Definitions and Input Dispatch.

This module provides type aliases and conversion helpers so the functional
API in ``csrrelax.math`` accepts several input formats:

    - Native matrices (SparseCSRMatrix)
    - SciPy sparse matrices (any format, converted to CSR)
    - NumPy arrays and Python sequences for vectors

Example:
    >>> from csrrelax._typing import SparseInput, ensure_csr
    >>>
    >>> def my_func(mat: SparseInput):
    ...     csr = ensure_csr(mat)
    ...     return csr.nnz
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, List, Optional, Sequence, Union

from csrrelax._errors import DimensionMismatchError, TypeMismatchError

if TYPE_CHECKING:
    import numpy as np
    from scipy import sparse as sp
    from csrrelax.sparse import SparseCSRMatrix, Vector


# =============================================================================
# Type Aliases
# =============================================================================

# Sparse matrix inputs
SparseInput = Union[
    "SparseCSRMatrix",
    "sp.csr_matrix",
    "sp.spmatrix",
]

# Vector inputs (read-only operands)
VectorInput = Union[
    "Vector",
    "np.ndarray",
    Sequence[float],
    List[float],
]

# Vectors updated in place
MutableVector = Union["Vector", "np.ndarray"]


# =============================================================================
# Format Detection
# =============================================================================

def is_csr_matrix(obj: Any) -> bool:
    """Check if object is a native SparseCSRMatrix."""
    from csrrelax.sparse import SparseCSRMatrix
    return isinstance(obj, SparseCSRMatrix)


def is_scipy_sparse(obj: Any) -> bool:
    """Check if object is any scipy sparse matrix.

    Returns False when scipy is not installed.
    """
    try:
        from scipy import sparse as sp
    except ImportError:
        return False
    return sp.issparse(obj)


def is_scipy_csr(obj: Any) -> bool:
    """Check if object is a scipy CSR matrix."""
    return is_scipy_sparse(obj) and obj.format == "csr"


def get_format(obj: Any) -> str:
    """Detect the format of a matrix object.

    Returns:
        'csr', 'scipy_csr', 'scipy_other', 'numpy', 'sequence' or 'unknown'.
    """
    import numpy as np

    if is_csr_matrix(obj):
        return "csr"
    elif is_scipy_csr(obj):
        return "scipy_csr"
    elif is_scipy_sparse(obj):
        return "scipy_other"
    elif isinstance(obj, np.ndarray):
        return "numpy"
    elif isinstance(obj, (list, tuple)):
        return "sequence"
    else:
        return "unknown"


# =============================================================================
# Conversion Functions
# =============================================================================

def ensure_csr(mat: SparseInput, copy: bool = False) -> "SparseCSRMatrix":
    """Convert a sparse input to SparseCSRMatrix.

    - SparseCSRMatrix: returned as-is, or copied if requested
    - scipy sparse (any format): converted through ``from_scipy``

    Args:
        mat: Input matrix.
        copy: If True, always return a new matrix.

    Raises:
        TypeMismatchError: Unsupported input type.
    """
    from csrrelax.sparse import SparseCSRMatrix

    fmt = get_format(mat)
    if fmt == "csr":
        return mat.copy() if copy else mat
    elif fmt in ("scipy_csr", "scipy_other"):
        return SparseCSRMatrix.from_scipy(mat)
    raise TypeMismatchError(
        f"Cannot convert {type(mat).__name__} to SparseCSRMatrix. "
        f"Supported types: SparseCSRMatrix, scipy.sparse"
    )


def ensure_vector(
    x: VectorInput,
    size: Optional[int] = None,
    dtype: Optional[str] = None,
) -> "Vector":
    """Convert a read-only vector input to Vector.

    Vectors are returned unchanged when ``dtype`` already matches. Other
    inputs are cast to ``dtype`` only when every value survives the cast.

    Args:
        x: Vector, ndarray or sequence.
        size: Expected length, checked when given.
        dtype: Target element type.

    Raises:
        DimensionMismatchError: Not 1-D or length differs from ``size``.
        TypeMismatchError: A value is not representable in ``dtype``.
    """
    import numpy as np
    from csrrelax.sparse import Vector
    from csrrelax.sparse._dtypes import resolve_dtype, cast_array

    target = resolve_dtype(dtype) if dtype is not None else None
    if isinstance(x, Vector) and (target is None or x.dtype == target.name):
        vec = x
    else:
        arr = x.to_numpy() if isinstance(x, Vector) else np.asarray(x)
        if size is not None and (arr.ndim != 1 or arr.shape[0] != size):
            raise DimensionMismatchError(f"Vector shape {arr.shape} does not match expected ({size},)")
        if target is not None:
            arr = cast_array(arr, target, "vector")
        vec = Vector.from_numpy(arr, copy=False)

    if size is not None and vec.size != size:
        raise DimensionMismatchError(f"Vector length {vec.size} does not match expected {size}")
    return vec


__all__ = [
    "SparseInput",
    "VectorInput",
    "MutableVector",
    "is_csr_matrix",
    "is_scipy_sparse",
    "is_scipy_csr",
    "get_format",
    "ensure_csr",
    "ensure_vector",
]
