"""
csrrelax Math Module.

Functional interface to the sparse kernels: matrix-vector products and
single relaxation steps. Functions accept native matrices and scipy sparse
matrices alike.

Example:
    >>> import csrrelax.math as cmath
    >>> x = numpy.zeros(3)
    >>> cmath.sor_step(scipy_matrix, x, rhs, 1.0)
"""

from csrrelax.math.linalg import (
    spmv,
    jacobi_step,
    sor_step,
    ssor_step,
    residual_norm,
)

__all__ = [
    "spmv",
    "jacobi_step",
    "sor_step",
    "ssor_step",
    "residual_norm",
]
