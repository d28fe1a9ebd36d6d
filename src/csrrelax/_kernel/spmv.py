"""
Sparse Matrix-Vector Kernels

Array-level CSR products used by ``SparseCSRMatrix.multiply`` and the Jacobi
residual.
"""

import numpy as np

__all__ = [
    'row_ids_csr',
    'spmv_csr',
]


def row_ids_csr(row_ptr: np.ndarray) -> np.ndarray:
    """
    Row index of every stored entry.

    Args:
        row_ptr: CSR row pointers, length nrow + 1

    Returns:
        int64 array of length nnz; entry d belongs to row ``row_ids[d]``
    """
    nrow = row_ptr.shape[0] - 1
    return np.repeat(np.arange(nrow, dtype=np.int64), np.diff(row_ptr))


def spmv_csr(
    val: np.ndarray,
    col_ind: np.ndarray,
    row_ids: np.ndarray,
    x: np.ndarray,
    y: np.ndarray,
    scalar,
) -> None:
    """
    Sparse matrix-vector multiplication: y = scalar * A * x

    ``y`` is overwritten, never accumulated into. Products are gathered
    before ``y`` is cleared, so ``x`` and ``y`` may be the same array.

    Args:
        val: CSR values
        col_ind: CSR column indices
        row_ids: Row of each stored entry (see ``row_ids_csr``)
        x: Input vector, shape (nrow,)
        y: Output vector, shape (nrow,) - modified in-place
        scalar: Multiplier applied to each row sum, in the dtype of ``y``
    """
    products = val * x[col_ind]
    y.fill(0)
    np.add.at(y, row_ids, products)
    y *= scalar
