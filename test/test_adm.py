"""
Unit tests for the null space optimizer.
"""
import logging
import warnings

import numpy as np
import pytest
from scipy.linalg import null_space
from sklearn.exceptions import NotFittedError

from sparseid import CommonOptions
from sparseid import DimensionMismatchError
from sparseid.optimizers import ADM
from sparseid.optimizers import fit
from sparseid.optimizers import init
from sparseid.utils import normalize_relation
from sparseid.utils import select_pareto_column


def _run(opt, basis, **kwargs):
    return fit(init(opt, basis), basis, opt, **kwargs)


@pytest.fixture
def two_candidates(data_implicit):
    """The exact relation next to a dense unit vector that is a poor fit."""
    features, basis, relation = data_implicit
    e_1 = np.zeros(basis.shape[0])
    e_1[1] = 1.0
    return features, np.column_stack([basis[:, 0], e_1]), relation


def test_unit_norm_columns(two_candidates):
    _, basis, _ = two_candidates
    M = _run(ADM(threshold=1e-2), basis, max_iter=100)
    assert M.shape == basis.shape
    np.testing.assert_allclose(np.linalg.norm(M, axis=0), 1.0)


def test_preserves_residual(data_implicit):
    features, basis, _ = data_implicit
    M = _run(ADM(threshold=1e-2), basis, max_iter=100)
    np.testing.assert_allclose(
        np.linalg.norm(features @ M), np.linalg.norm(features @ basis), atol=1e-8
    )


def test_finds_implicit_relation(data_implicit):
    _, basis, relation = data_implicit
    M = _run(ADM(threshold=1e-2), basis, max_iter=100)
    np.testing.assert_allclose(normalize_relation(M[:, 0]), relation, atol=1e-8)


def test_soft_thresholding_keeps_support(data_implicit):
    _, basis, relation = data_implicit
    M = _run(ADM(threshold=1e-2, thresholder="soft"), basis, max_iter=100)
    np.testing.assert_allclose(np.linalg.norm(M, axis=0), 1.0)
    np.testing.assert_array_equal(M[:, 0] != 0, relation != 0)


def test_deterministic(two_candidates):
    _, basis, _ = two_candidates
    first = _run(ADM(threshold=1e-2), basis, max_iter=50)
    second = _run(ADM(threshold=1e-2), basis, max_iter=50)
    np.testing.assert_array_equal(first, second)


def test_runs_all_iterations_without_warning(data_implicit):
    _, basis, _ = data_implicit
    opt = ADM(threshold=1e-2)
    with warnings.catch_warnings():
        warnings.simplefilter("error", UserWarning)
        _run(opt, basis, max_iter=25)
    assert opt.iters == 25
    assert not opt.converged_
    assert len(opt.history_) == 26


def test_options_max_iter(data_implicit):
    _, basis, relation = data_implicit
    opt = ADM(threshold=1e-2, max_iter=1000)
    M = _run(opt, basis, options=CommonOptions(maxiter=10))
    assert opt.iters == 10
    np.testing.assert_allclose(normalize_relation(M[:, 0]), relation, atol=1e-8)


def test_too_big_threshold(data_implicit):
    _, basis, _ = data_implicit
    with pytest.warns(UserWarning, match="Sparsity parameter is too big"):
        M = _run(ADM(threshold=1.0), basis, max_iter=5)
    assert not np.any(M)


def test_basis_shape_mismatch(data_implicit):
    _, basis, _ = data_implicit
    opt = ADM()
    with pytest.raises(DimensionMismatchError):
        fit(np.ones((7, 2)), basis, opt)
    with pytest.raises(DimensionMismatchError):
        fit(basis[:, 0], basis[:, 0], opt)


def test_rejects_explicit_call(data_implicit):
    features, basis, _ = data_implicit
    with pytest.raises(TypeError):
        init(ADM(), features, features[:, 0])


def test_fit_selects_best_column(two_candidates):
    features, basis, relation = two_candidates
    opt = ADM(threshold=1e-2).fit(features, basis=basis)
    assert opt.best_index_ == 0
    assert opt.best_score_ == pytest.approx(np.count_nonzero(relation), abs=1e-6)
    np.testing.assert_allclose(opt.relation_, relation, atol=1e-8)
    assert opt.coef_.shape == (2, 7)
    np.testing.assert_array_equal(opt.coef_, opt.null_space_.T)


def test_fit_computes_null_space(data_implicit):
    features, _, relation = data_implicit
    opt = ADM(threshold=1e-2, null_space_rcond=1e-10).fit(features)
    assert opt.null_space_.shape == (7, 1)
    assert opt.best_index_ == 0
    np.testing.assert_allclose(opt.relation_, relation, atol=1e-8)


def test_select(two_candidates):
    features, basis, relation = two_candidates
    opt = ADM(threshold=1e-2)
    with pytest.raises(NotFittedError):
        opt.select(features)
    opt.fit(features, basis=basis)
    best, score = opt.select(features)
    assert best == 0
    assert score == pytest.approx(opt.best_score_)
    np.testing.assert_allclose(opt.best_relation(features), relation, atol=1e-8)


def test_verbose_logging(data_implicit, caplog):
    _, basis, _ = data_implicit
    opt = ADM(threshold=1e-2, verbose=True)
    with caplog.at_level(logging.INFO, logger="sparseid"):
        _run(opt, basis, max_iter=3)
    assert "|M|_0" in caplog.text


def test_recovers_relation_from_mixed_basis(data_implicit_system):
    features, relation = data_implicit_system
    basis = null_space(features, rcond=0.99)
    assert basis.shape[1] > 1
    opt = ADM(threshold=1e-2)
    M = _run(opt, basis, max_iter=10000)
    np.testing.assert_allclose(np.linalg.norm(M, axis=0), 1.0)
    assert np.count_nonzero(M) < np.count_nonzero(basis)
    best, _ = select_pareto_column(M, features)
    np.testing.assert_allclose(M[:, best] / M[0, best], relation, atol=1e-6)


def test_fit_recovers_relation_from_mixed_basis(data_implicit_system):
    features, relation = data_implicit_system
    opt = ADM(threshold=1e-2, max_iter=10000, null_space_rcond=0.99)
    opt.fit(features)
    np.testing.assert_allclose(opt.relation_, relation, atol=1e-6)


@pytest.fixture
def duplicated_feature():
    """x0 == x1, so (e0 - e1) / sqrt(2) is the only sparse relation, next to a
    dense unit vector orthogonal to it."""
    rng = np.random.default_rng(6)
    features = rng.standard_normal((100, 4))
    features[:, 1] = features[:, 0]
    sparse = np.array([1.0, -1.0, 0.0, 0.0]) / np.sqrt(2)
    dense = np.full(4, 0.5)
    return features, np.column_stack([sparse, dense])


def test_fit_skips_emptied_column(duplicated_feature):
    features, basis = duplicated_feature
    opt = ADM(threshold=0.6)
    with pytest.warns(UserWarning, match="Sparsity parameter is too big"):
        opt.fit(features, basis=basis)
    assert not np.any(opt.null_space_[:, 1])
    assert opt.best_index_ == 0
    assert np.isfinite(opt.best_score_)
    np.testing.assert_allclose(opt.relation_, [1.0, -1.0, 0.0, 0.0], atol=1e-8)
    np.testing.assert_allclose(
        opt.best_relation(features), [1.0, -1.0, 0.0, 0.0], atol=1e-8
    )


def test_fit_warns_when_every_column_is_emptied(duplicated_feature):
    features, basis = duplicated_feature
    opt = ADM(threshold=1.0)
    with pytest.warns(UserWarning, match="Every candidate relation is zero"):
        opt.fit(features, basis=basis)
    assert opt.best_score_ == np.inf
    assert not np.any(opt.relation_)


def test_threshold_per_column(two_candidates):
    _, basis, relation = two_candidates
    with pytest.warns(UserWarning, match="Sparsity parameter is too big"):
        M = _run(ADM(threshold=[1e-2, 1.5]), basis, max_iter=10)
    np.testing.assert_allclose(normalize_relation(M[:, 0]), relation, atol=1e-8)
    assert not np.any(M[:, 1])
