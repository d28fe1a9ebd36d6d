"""csrrelax Sparse Matrix Module.

Square CSR sparse matrices with a two-phase build lifecycle and in-place
stationary relaxation sweeps, plus the dense Vector they operate on.

Type Hierarchy:

    SparseBase (ABC)
    └── SparseCSRMatrix               # Square CSR, OPEN -> CLOSED lifecycle

    Vector                            # Dense numpy-backed operand
    ElementRef                        # Writable handle to a stored entry

Quick Start:
    >>> from csrrelax.sparse import SparseCSRMatrix, Vector
    >>>
    >>> # Incremental build, rows in any order
    >>> A = SparseCSRMatrix.empty(2)
    >>> A.set(1, 1, 4.0)
    >>> A.set(0, 0, 4.0)
    >>> A.close()
    >>>
    >>> # Or directly from CSR arrays
    >>> A = SparseCSRMatrix.from_arrays([0, 1, 2], [0, 1], [4.0, 4.0])
    >>>
    >>> x = Vector.zeros(2)
    >>> A.jacobi_step(x, [4.0, 8.0])
    8.94427190999916

Key Classes:
    - SparseCSRMatrix / CSR: the matrix
    - Vector: dense operand
    - BuildState: OPEN / CLOSED

Key Functions:
    - dot, norm: vector reductions
    - zeros, from_list, from_numpy: vector factories
"""

# =============================================================================
# Data Types
# =============================================================================
from ._dtypes import (
    DType,
    float32,
    float64,
    int32,
    int64,
    validate_dtype,
    normalize_dtype,
    is_float_dtype,
    is_int_dtype,
)

# =============================================================================
# Dense Vector
# =============================================================================
from ._vector import (
    Vector,
    zeros,
    from_list,
    from_numpy,
    dot,
    norm,
)

# =============================================================================
# Base Classes and Lifecycle
# =============================================================================
from ._base import SparseBase, SparseFormat
from ._builder import BuildState, TripletBuffer

# =============================================================================
# CSR Matrix
# =============================================================================
from ._csr import SparseCSRMatrix, CSR, ElementRef


__all__ = [
    # Data types
    'DType',
    'float32',
    'float64',
    'int32',
    'int64',
    'validate_dtype',
    'normalize_dtype',
    'is_float_dtype',
    'is_int_dtype',

    # Vector
    'Vector',
    'zeros',
    'from_list',
    'from_numpy',
    'dot',
    'norm',

    # Base
    'SparseBase',
    'SparseFormat',
    'BuildState',
    'TripletBuffer',

    # Matrix
    'SparseCSRMatrix',
    'CSR',
    'ElementRef',
]
