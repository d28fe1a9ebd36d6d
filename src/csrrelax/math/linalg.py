"""
Linear Algebra Operations for Square Sparse Matrices.

Functional counterparts of the ``SparseCSRMatrix`` kernels. Every function
accepts a native matrix or any scipy sparse matrix (converted with
``ensure_csr``); vectors may be ``Vector``, ``numpy.ndarray`` or sequences
where they are only read.

Implemented Operations:
    - Sparse matrix-dense vector multiplication (SpMV)
    - One Jacobi step
    - One forward SOR sweep (Gauss-Seidel at omega = 1)
    - One symmetric SOR step
    - Residual norm ||rhs - A x||
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from csrrelax._typing import (
    SparseInput,
    VectorInput,
    MutableVector,
    ensure_csr,
    ensure_vector,
)

if TYPE_CHECKING:
    from csrrelax.sparse import Vector


# =============================================================================
# Sparse Matrix-Vector Multiplication
# =============================================================================

def spmv(
    mat: SparseInput,
    x: VectorInput,
    scalar: Any = 1,
) -> "Vector":
    """Sparse matrix-vector multiplication (SpMV).

    Computes y = scalar * A * x where A is a square sparse matrix and x a
    dense vector.

    Mathematical Definition:
        y[i] = scalar * sum(A[i, j] * x[j] for j in range(n))

    Algorithm (CSR Format):
        For each row i:
            y[i] = scalar * sum(val[d] * x[col_ind[d]]
                                for d in range(row_ptr[i], row_ptr[i+1]))

    Args:
        mat: Square sparse matrix of order n.
        x: Dense vector of length n.
        scalar: Multiplier, representable in the matrix dtype.

    Returns:
        New Vector of length n in the matrix dtype.

    Raises:
        DimensionMismatchError: If x length differs from n.

    Examples:
        >>> from csrrelax import SparseCSRMatrix
        >>> import csrrelax.math as cmath
        >>>
        >>> # [[1, 2], [3, 4]]
        >>> mat = SparseCSRMatrix.from_arrays([0, 2, 4], [0, 1, 0, 1],
        ...                                   [1.0, 2.0, 3.0, 4.0])
        >>> cmath.spmv(mat, [1.0, 2.0]).to_list()
        [5.0, 11.0]
    """
    csr = ensure_csr(mat)
    return csr.matvec(ensure_vector(x, csr.nrow, csr.dtype), scalar)


# =============================================================================
# Relaxation Steps
# =============================================================================

def jacobi_step(mat: SparseInput, x: MutableVector, rhs: VectorInput):
    """One in-place Jacobi step for A x = rhs.

    Mathematical Definition:
        r = rhs - A x
        x[i] <- x[i] + r[i] / A[i, i]     for all i simultaneously

    Args:
        mat: Square sparse matrix with a nonzero diagonal.
        x: Current iterate (Vector or ndarray of the matrix dtype),
            updated in place.
        rhs: Right-hand side.

    Returns:
        ||r||_2 computed before the update, in the matrix dtype.

    Raises:
        ZeroDiagonalError: A diagonal entry is zero or missing.

    Notes:
        Jacobi converges for strictly diagonally dominant matrices, with the
        residual shrinking every step.
    """
    csr = ensure_csr(mat)
    return csr.jacobi_step(x, ensure_vector(rhs, csr.nrow, csr.dtype))


def sor_step(mat: SparseInput, x: MutableVector, rhs: VectorInput, omega: Any):
    """One in-place forward SOR sweep for A x = rhs.

    Mathematical Definition:
        for i = 0 .. n-1:
            r_i = rhs[i] - A[i, :] x       (x already updated for rows < i)
            x[i] <- x[i] + omega * r_i / A[i, i]

    ``omega = 1`` is Gauss-Seidel; values in (1, 2) over-relax.

    Returns:
        sqrt(sum r_i^2) over the row residuals of the sweep.

    See Also:
        ssor_step: forward plus backward sweep.
    """
    csr = ensure_csr(mat)
    return csr.sor_step(x, ensure_vector(rhs, csr.nrow, csr.dtype), omega)


def ssor_step(mat: SparseInput, x: MutableVector, rhs: VectorInput, omega: Any):
    """One in-place symmetric SOR step: forward sweep, then backward sweep.

    Returns:
        sqrt(sum r_i^2) over the backward sweep's row residuals.
    """
    csr = ensure_csr(mat)
    return csr.ssor_step(x, ensure_vector(rhs, csr.nrow, csr.dtype), omega)


def residual_norm(mat: SparseInput, x: VectorInput, rhs: VectorInput):
    """||rhs - A x||_2 in the matrix dtype. Neither vector is modified."""
    csr = ensure_csr(mat)
    return csr.residual_norm(
        ensure_vector(x, csr.nrow, csr.dtype),
        ensure_vector(rhs, csr.nrow, csr.dtype),
    )


__all__ = [
    "spmv",
    "jacobi_step",
    "sor_step",
    "ssor_step",
    "residual_norm",
]
