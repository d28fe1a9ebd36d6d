"""csrrelax Private Kernels (_kernel).

Array-level numerical kernels behind ``SparseCSRMatrix``.

Architecture:
    - Functions take raw CSR arrays (``row_ptr``, ``col_ind``, ``val``) and
      numpy vectors, never matrix objects
    - Output vectors are written in place
    - No validation: callers check shapes, dtypes and build state

Modules:
    - spmv: Sparse matrix-vector product
    - relax: Jacobi, SOR and SSOR sweeps

Usage (Internal only):
    >>> from csrrelax._kernel import spmv
    >>> spmv.spmv_csr(val, col_ind, row_ids, x, y, scalar)
"""

from . import spmv
from . import relax
