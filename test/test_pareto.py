import numpy as np
import pytest

from sparseid import DimensionMismatchError
from sparseid.utils import normalize_relation
from sparseid.utils import pareto_scores
from sparseid.utils import select_pareto_column


@pytest.fixture
def features():
    return np.array([[1.0, 1.0, 0.0], [0.0, 0.0, 2.0]])


@pytest.fixture
def candidates():
    return np.array([[1.0, 0.0, 1.0], [-1.0, 0.0, 0.0], [0.0, 1.0, 0.0]])


def test_pareto_scores(candidates, features):
    scores = pareto_scores(candidates, features)
    np.testing.assert_allclose(scores, [2.0, np.sqrt(5.0), np.sqrt(2.0)])


def test_select_pareto_column(candidates, features):
    best, score = select_pareto_column(candidates, features)
    assert best == 2
    assert score == pytest.approx(np.sqrt(2.0))


def test_ties_go_to_first_column(features):
    candidates = np.array([[1.0, 1.0], [-1.0, -1.0], [0.0, 0.0]])
    best, _ = select_pareto_column(candidates, features)
    assert best == 0


def test_tolerance_ignores_tiny_entries(features):
    q = np.array([1.0, -1.0, 1e-12])
    assert pareto_scores(q, features)[0] > pareto_scores(q, features, tol=1e-10)[0]


def test_dimension_mismatch(candidates, features):
    with pytest.raises(DimensionMismatchError):
        pareto_scores(candidates[:2], features)


def test_zero_column_is_never_selected(candidates, features):
    candidates = np.column_stack([np.zeros(3), candidates])
    assert pareto_scores(candidates, features)[0] == np.inf
    best, score = select_pareto_column(candidates, features)
    assert best == 3
    assert score == pytest.approx(np.sqrt(2.0))


def test_all_zero_candidates_warn(features):
    with pytest.warns(UserWarning, match="Every candidate relation is zero"):
        best, score = select_pareto_column(np.zeros((3, 2)), features)
    assert best == 0
    assert score == np.inf


@pytest.mark.parametrize(
    "q, expected",
    [
        ([0.0, 2.0, -4.0], [0.0, 1.0, -2.0]),
        ([-0.5, 0.0, 1.5], [1.0, 0.0, -3.0]),
        ([0.0, 0.0], [0.0, 0.0]),
    ],
)
def test_normalize_relation(q, expected):
    np.testing.assert_allclose(normalize_relation(np.array(q)), expected)
