"""
csrrelax - Square CSR Sparse Matrices with Relaxation Sweeps

Small numerical core for iterative solvers:
- Two-phase construction: OPEN (set entries in any order) -> CLOSED
- Frozen sparsity pattern with mutable values
- y = scalar * A * x, and single Jacobi / SOR / SSOR steps in place

Modules:
- sparse: matrix, vector and dtype definitions
- math: functional API accepting native or scipy matrices

Architecture:
    ┌──────────────────────────────────────────────┐
    │      SparseCSRMatrix (OPEN -> CLOSED)        │
    ├──────────────────────────────────────────────┤
    │  TripletBuffer -> row_ptr / col_ind / val    │
    │  diag_ptr -> relaxation kernels              │
    └──────────────────────────────────────────────┘

Example:
    >>> import csrrelax
    >>> from csrrelax import SparseCSRMatrix, Vector
    >>>
    >>> A = SparseCSRMatrix.from_dense([[4.0, -1.0], [-1.0, 4.0]])
    >>> x = Vector.zeros(2)
    >>> b = Vector.from_list([3.0, 3.0])
    >>> for _ in range(50):
    ...     if A.sor_step(x, b, 1.0) < 1e-12:
    ...         break
    >>> x.to_list()
    [1.0, 1.0]
"""

__version__ = '0.1.0'

# Import main modules
from . import sparse
from . import math

# Errors
from ._errors import (
    ErrorKind,
    CSRError,
    InvalidArgumentError,
    DimensionMismatchError,
    IndexOutOfBoundsError,
    InvalidStateError,
    ElementNotFoundError,
    TypeMismatchError,
    NumericalError,
    ZeroDiagonalError,
)

# Configuration
from ._config import config, get_config

# Re-export common types
from .sparse import (
    # Core classes
    SparseCSRMatrix,
    CSR,  # Alias
    ElementRef,
    Vector,
    BuildState,

    # Type constants
    DType,
    float32,
    float64,
    int32,
    int64,

    # Vector functions
    dot,
    norm,
)

__all__ = [
    # Version
    '__version__',

    # Modules
    'sparse',
    'math',

    # Errors
    'ErrorKind',
    'CSRError',
    'InvalidArgumentError',
    'DimensionMismatchError',
    'IndexOutOfBoundsError',
    'InvalidStateError',
    'ElementNotFoundError',
    'TypeMismatchError',
    'NumericalError',
    'ZeroDiagonalError',

    # Configuration
    'config',
    'get_config',

    # Core classes
    'SparseCSRMatrix',
    'CSR',
    'ElementRef',
    'Vector',
    'BuildState',

    # Type constants
    'DType',
    'float32',
    'float64',
    'int32',
    'int64',

    # Vector functions
    'dot',
    'norm',
]
