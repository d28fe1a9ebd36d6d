"""
Pytest configuration and shared fixtures for csrrelax tests.
"""

import pytest
import numpy as np
from pathlib import Path
import sys

# Add src to path for imports
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root / "src"))

from csrrelax import config
from csrrelax.sparse import SparseCSRMatrix, Vector


# Try to import scipy
try:
    import scipy.sparse as sp
    HAS_SCIPY = True
except ImportError:
    HAS_SCIPY = False


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture(scope="session")
def requires_scipy():
    """Skip test if scipy is not available."""
    if not HAS_SCIPY:
        pytest.skip("scipy not available")


@pytest.fixture(autouse=True)
def reset_config():
    """Restore default configuration after every test."""
    yield
    config.reset()


@pytest.fixture
def tridiag_dense():
    """Strictly diagonally dominant 3x3 system matrix.

    Matrix:
    [[ 4, -1,  0],
     [-1,  4, -1],
     [ 0, -1,  4]]

    With rhs = [3, 2, 3] the solution is [1, 1, 1].
    """
    return np.array([
        [4.0, -1.0, 0.0],
        [-1.0, 4.0, -1.0],
        [0.0, -1.0, 4.0],
    ])


@pytest.fixture
def tridiag(tridiag_dense):
    """CLOSED float64 CSR matrix of ``tridiag_dense``."""
    return SparseCSRMatrix.from_arrays(
        [0, 2, 5, 7],
        [0, 1, 0, 1, 2, 1, 2],
        [4.0, -1.0, -1.0, 4.0, -1.0, -1.0, 4.0],
    )


@pytest.fixture
def tridiag_rhs():
    """Right-hand side whose solution is all ones."""
    return Vector.from_list([3.0, 2.0, 3.0])


@pytest.fixture
def identity3():
    """CLOSED 3x3 float64 identity."""
    return SparseCSRMatrix.from_arrays([0, 1, 2, 3], [0, 1, 2], [1.0, 1.0, 1.0])


@pytest.fixture
def open_matrix():
    """OPEN 3x3 float64 matrix with no entries."""
    return SparseCSRMatrix.empty(3, dtype='float64')


@pytest.fixture
def scipy_tridiag(requires_scipy, tridiag_dense):
    """scipy CSR version of ``tridiag_dense``."""
    return sp.csr_matrix(tridiag_dense)


@pytest.fixture
def random_dominant_dense():
    """Random 20x20 strictly diagonally dominant matrix, ~20% fill."""
    rng = np.random.default_rng(42)
    n = 20
    dense = rng.standard_normal((n, n)) * (rng.random((n, n)) < 0.2)
    np.fill_diagonal(dense, 0.0)
    np.fill_diagonal(dense, np.abs(dense).sum(axis=1) + 1.0)
    return dense


# =============================================================================
# Helper Functions
# =============================================================================

def dense_sor_sweep(dense, x, rhs, omega, rows):
    """Reference SOR sweep on a dense matrix.

    Returns the sum of squared row residuals; ``x`` is updated in place.
    """
    res = 0.0
    for i in rows:
        r = rhs[i] - dense[i] @ x
        x[i] += omega * r / dense[i, i]
        res += r * r
    return res


@pytest.fixture
def dense_sor():
    """Reference dense SOR sweep (see ``dense_sor_sweep``)."""
    return dense_sor_sweep
