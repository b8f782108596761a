"""
Shared pytest fixtures for unit tests.
"""
import numpy as np
import pytest
from scipy.linalg import null_space


def _threshold_for(coef):
    return 0.9 * np.min(np.abs(coef[coef != 0]))


@pytest.fixture
def data_equal_sizes():
    rng = np.random.default_rng(1)
    x = rng.standard_normal((3, 10))
    A = np.array([[1.0, 0.0, -0.1], [0.0, -2.0, 0.0], [0.1, 0.5, -1.0]])
    y = A @ x
    # features and targets in (n_samples, n_columns) layout
    return x.T, y.T, A, _threshold_for(A)


@pytest.fixture
def data_single_signal():
    rng = np.random.default_rng(2)
    x = rng.standard_normal((3, 10))
    A = np.array([[1.0, 0.0, -0.1]])
    y = A @ x
    return x.T, y.T, A, _threshold_for(A)


@pytest.fixture
def data_multiple_signals():
    rng = np.random.default_rng(3)
    x = rng.standard_normal((100, 500))
    A = np.zeros((5, 100))
    A[0, 0] = 1.0
    A[0, 49] = 3.0
    A[1, 74] = 10.0
    A[2, 4] = -2.0
    A[3, 79] = 0.2
    A[4, 4] = 0.1
    y = A @ x
    return x.T, y.T, A, _threshold_for(A)


@pytest.fixture(
    params=["data_equal_sizes", "data_single_signal", "data_multiple_signals"]
)
def data_linear_system(request):
    return request.getfixturevalue(request.param)


@pytest.fixture
def data_implicit():
    """Features of the rational relation z (1 + x1) - x0 - 3 x2 = 0.

    Returns the augmented features (n_samples, 7), the exact null space basis
    (7, 1) and the expected relation scaled to a leading one.
    """
    rng = np.random.default_rng(4)
    x = rng.standard_normal((3, 100))
    A = np.array([[1.0, 0.0, 3.0], [0.0, 1.0, 0.0], [0.0, 2.0, 1.0]])
    z = A @ x
    z[0] = z[0] / (1 + x[1])
    theta = np.vstack([z[0], z[0] * x[0], z[0] * x[1], z[0] * x[2], x])
    features = theta.T
    basis = null_space(features, rcond=1e-10)
    relation = np.array([1.0, 0.0, 1.0, 0.0, -1.0, 0.0, -3.0])
    return features, basis, relation


def _rational_system(kind, rng):
    x = rng.standard_normal((3, 100))
    z = np.array([1.0, 0.0, 3.0]) @ x
    if kind == "linear":
        z = z / (1 + x[1])
        extra = []
        relation = [1.0, 0.0, 1.0, 0.0, -1.0, 0.0, -3.0]
    elif kind == "quadratic":
        z = z / (1 + x[0] * x[1])
        extra = [z * x[0] * x[1]]
        relation = [1.0, 0.0, 0.0, 0.0, 1.0, -1.0, 0.0, -3.0]
    else:
        z = z / (2 + np.sin(x[0]))
        extra = [z * x[0] * x[1], z * np.sin(x[0])]
        relation = [1.0, 0.0, 0.0, 0.0, 0.0, 0.5, -0.5, 0.0, -1.5]
    theta = np.vstack([z, z * x[0], z * x[1], z * x[2], *extra, x])
    return theta.T, np.array(relation)


@pytest.fixture(params=["linear", "quadratic", "nonlinear"])
def data_implicit_system(request):
    """Augmented features (n_samples, n_features) of a rational relation and
    the relation scaled to a leading one."""
    return _rational_system(request.param, np.random.default_rng(5))
