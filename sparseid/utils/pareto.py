"""Sparsity versus fit trade-off for candidate null-space relations."""
import warnings
from typing import Tuple

import numpy as np
from numpy.linalg import norm
from numpy.typing import NDArray

from .._typing import Float1D
from .base import DimensionMismatchError


def pareto_scores(
    candidates: NDArray, features: NDArray, tol: float = 0.0
) -> Float1D:
    """
    Score each candidate relation by sparsity and residual.

    The score of a column q is the Euclidean norm of the pair
    ``(count_nonzero(q), ||features @ q||_2)``; smaller is better.  An all-zero
    column is not a relation and scores ``inf``.

    Parameters
    ----------
    candidates : np.ndarray, shape (n_features, n_candidates)
        Candidate relations, one per column (e.g. a sparse null space basis).

    features : np.ndarray, shape (n_samples, n_features)
        The un-augmented feature matrix the relations should annihilate.

    tol : float, optional (default 0.0)
        Entries with magnitude at or below ``tol`` do not count as non-zero.

    Returns
    -------
    scores : np.ndarray, shape (n_candidates,)
    """
    candidates = np.asarray(candidates, dtype=float)
    features = np.asarray(features, dtype=float)
    if candidates.ndim == 1:
        candidates = candidates.reshape(-1, 1)
    if features.ndim != 2 or features.shape[1] != candidates.shape[0]:
        raise DimensionMismatchError(
            f"features of shape {features.shape} cannot be applied to "
            f"candidates with {candidates.shape[0]} entries"
        )
    sparsity = np.count_nonzero(np.abs(candidates) > tol, axis=0)
    residuals = norm(features @ candidates, axis=0)
    scores = np.hypot(sparsity, residuals)
    return np.where(sparsity == 0, np.inf, scores)


def select_pareto_column(
    candidates: NDArray, features: NDArray, tol: float = 0.0
) -> Tuple[int, float]:
    """Index and score of the best candidate; ties go to the first column."""
    scores = pareto_scores(candidates, features, tol=tol)
    best = int(np.argmin(scores))
    if not np.isfinite(scores[best]):
        warnings.warn(
            "Every candidate relation is zero; no relation can be selected"
        )
    return best, float(scores[best])


def normalize_relation(q: NDArray) -> Float1D:
    """Scale a relation so its first non-zero entry equals one."""
    q = np.asarray(q, dtype=float)
    nonzero = np.flatnonzero(q)
    if nonzero.size == 0:
        return q.copy()
    return q / q[nonzero[0]]
