import warnings
from typing import NamedTuple

import numpy as np
from joblib import delayed
from joblib import Parallel

from .._typing import BoolND
from .._typing import Float2D
from ..utils import hard_threshold
from .base import _ridge
from .base import BaseOptimizer


class _STRRidgeState(NamedTuple):
    x: Float2D
    y: Float2D
    coef: Float2D
    ind: BoolND
    done: BoolND


def _update_column(x, y, ind, alpha, threshold):
    """Ridge refit of one target on its active features, then threshold."""
    coef = np.zeros(x.shape[1])
    coef[ind] = _ridge(x[:, ind], y, alpha)
    coef = hard_threshold(coef, threshold)
    return coef, coef != 0


class STRRidge(BaseOptimizer):
    """Sequentially thresholded ridge regression.

    Attempts to minimize the objective function
    :math:`\\|y - Xw\\|^2_2 + \\alpha \\|w\\|^2_2`
    by iteratively performing ridge regression on the active features and
    masking out elements of the weight array w that are below a given
    threshold.  Each target column is handled independently and stops once
    its set of active features no longer changes.

    See the following reference for more details:

        Brunton, Steven L., Joshua L. Proctor, and J. Nathan Kutz.
        "Discovering governing equations from data by sparse
        identification of nonlinear dynamical systems."
        Proceedings of the national academy of sciences
        113.15 (2016): 3932-3937.

    Parameters
    ----------
    threshold : float or np.ndarray, optional (default 0.1)
        Minimum magnitude for a coefficient in the weight vector.
        Coefficients with magnitude below the threshold are set
        to zero.  An array gives one threshold per target.

    alpha : float, optional (default 0.0)
        Optional L2 (ridge) regularization on the weight vector.

    max_iter : int, optional (default 20)
        Maximum iterations of the optimization algorithm.

    n_jobs : int, optional (default None)
        Number of joblib workers used to refit the target columns.
        ``None`` means one.  The result does not depend on it.

    copy_X : boolean, optional (default True)
        Kept for scikit-learn compatibility; the data are always copied.

    verbose : bool, optional (default False)
        If True, logs the different error terms every iteration.

    Attributes
    ----------
    coef_ : array, shape (n_targets, n_features)
        Weight vector(s).

    ind_ : array, shape (n_targets, n_features)
        Array of bools indicating which coefficients of the
        weight vector have not been masked out, i.e. the support of
        ``self.coef_``.

    history_ : list
        History of ``coef_``. ``history_[k]`` contains the values of
        ``coef_`` at iteration k of sequentially thresholded ridge regression.

    Examples
    --------
    >>> import numpy as np
    >>> from sparseid.optimizers import STRRidge
    >>> x = np.random.randn(10, 3)
    >>> y = x @ np.array([1.0, 0.0, -0.1])
    >>> opt = STRRidge(threshold=0.05).fit(x, y)
    >>> np.round(opt.coef_, 3)
    array([[ 1. ,  0. , -0.1]])
    """

    _report_columns = ("|y - Xw|^2", "a * |w|_2", "|w|_0", "Total error")

    def __init__(
        self,
        threshold=0.1,
        alpha=0.0,
        max_iter=20,
        n_jobs=None,
        copy_X=True,
        verbose=False,
    ):
        super().__init__(
            threshold=threshold,
            max_iter=max_iter,
            copy_X=copy_X,
            verbose=verbose,
        )
        if alpha < 0:
            raise ValueError("alpha cannot be negative")
        self.alpha = alpha
        self.n_jobs = n_jobs

    def _column_thresholds(self, n_targets):
        threshold = np.asarray(self.threshold, dtype=float)
        if threshold.ndim == 0:
            return np.full(n_targets, float(threshold))
        if threshold.shape != (n_targets,):
            raise ValueError(
                f"Expected a scalar threshold or one per target ({n_targets}), "
                f"received shape {threshold.shape}"
            )
        return threshold

    def _init_state(self, coef, x, y, options):
        thresholds = self._column_thresholds(y.shape[1])
        coef = hard_threshold(coef, thresholds)
        ind = coef != 0
        return _STRRidgeState(x, y, coef, ind, np.zeros(y.shape[1], dtype=bool))

    def _step(self, state):
        coef = state.coef.copy()
        ind = state.ind.copy()
        done = state.done.copy()
        thresholds = self._column_thresholds(state.y.shape[1])

        todo = [j for j in np.flatnonzero(~done) if ind[:, j].any()]
        for j in np.flatnonzero(~done):
            if not ind[:, j].any():
                warnings.warn(
                    "Sparsity parameter is too big ({}) and eliminated all "
                    "coefficients of target {}".format(thresholds[j], j)
                )
                coef[:, j] = 0.0
                done[j] = True

        updates = Parallel(n_jobs=self.n_jobs)(
            delayed(_update_column)(
                state.x, state.y[:, j], ind[:, j], self.alpha, thresholds[j]
            )
            for j in todo
        )
        for j, (coef_j, ind_j) in zip(todo, updates):
            if not ind_j.any():
                warnings.warn(
                    "Sparsity parameter is too big ({}) and eliminated all "
                    "coefficients of target {}".format(thresholds[j], j)
                )
            done[j] = np.array_equal(ind_j, ind[:, j]) or not ind_j.any()
            coef[:, j] = coef_j
            ind[:, j] = ind_j
        return state._replace(coef=coef, ind=ind, done=done)

    def _converged(self, state):
        return bool(np.all(state.done))

    def _result(self, state):
        return state.coef.copy()

    def _report(self, state):
        R2 = np.sum((state.y - state.x @ state.coef) ** 2)
        L2 = self.alpha * np.sum(state.coef**2)
        L0 = np.count_nonzero(state.coef)
        return R2, L2, L0, R2 + L2

    def fit(self, x_, y, sample_weight=None):
        super().fit(x_, y, sample_weight=sample_weight)
        self.ind_ = self.coef_ != 0
        return self
