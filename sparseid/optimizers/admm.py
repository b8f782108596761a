from typing import NamedTuple

import numpy as np
from scipy.linalg import cho_solve

from .._typing import Float2D
from ..utils import get_thresholder
from .base import _factorize
from .base import BaseOptimizer


class _ADMMState(NamedTuple):
    x: Float2D
    y: Float2D
    cho: tuple
    x_transpose_y: Float2D
    coef_full: Float2D
    coef_sparse: Float2D
    dual: Float2D
    coef_sparse_prev: Float2D
    abstol: float
    reltol: float


class ADMM(BaseOptimizer):
    """
    Alternating direction method of multipliers.

    Splits the sparse regression problem

    .. math::

        \\min_{w, z} \\|y - Xw\\|^2_2 + R(z) \\quad \\text{s.t.} \\quad w = z

    and alternates a ridge-like solve for w, a thresholding (proximal) step
    for z and an ascent step for the scaled dual variable u:

    .. math::

        w &\\leftarrow (X^T X + \\rho I)^{-1}(X^T y + \\rho (z - u)) \\\\
        z &\\leftarrow T_{\\text{threshold}}(w + u) \\\\
        u &\\leftarrow u + w - z

    The returned coefficients are z.  See

        Boyd, S., Parikh, N., Chu, E., Peleato, B., & Eckstein, J. (2011).
        Distributed optimization and statistical learning via the alternating
        direction method of multipliers. Foundations and Trends in Machine
        Learning, 3(1), 1-122.

    Parameters
    ----------
    threshold : float or np.ndarray, optional (default 0.1)
        Threshold of the z-update.  An array gives one threshold per target.

    rho : float, optional (default 1.0)
        Penalty ratio of the augmented Lagrangian.

    thresholder : string, optional (default 'hard')
        'hard' (an L0-like penalty) or 'soft' (the L1 penalty).

    max_iter : int, optional (default 100)
        Maximum iterations of the optimization algorithm.

    abstol : float, optional (default sqrt(eps))
        Absolute tolerance on the primal and dual residuals.

    reltol : float, optional (default sqrt(eps))
        Relative tolerance on the primal and dual residuals.

    copy_X : boolean, optional (default True)
        Kept for scikit-learn compatibility; the data are always copied.

    verbose : bool, optional (default False)
        If True, logs the residuals every iteration.

    Attributes
    ----------
    coef_ : array, shape (n_targets, n_features)
        Sparse weight vector(s) z.

    coef_full_ : array, shape (n_targets, n_features)
        Weight vector(s) w of the ridge-like update.
    """

    _report_columns = ("|y - Xw|^2", "|w - z|", "rho |z - z'|", "|z|_0")

    def __init__(
        self,
        threshold=0.1,
        rho=1.0,
        thresholder="hard",
        max_iter=100,
        abstol=np.sqrt(np.finfo(float).eps),
        reltol=np.sqrt(np.finfo(float).eps),
        copy_X=True,
        verbose=False,
    ):
        super().__init__(
            threshold=threshold,
            max_iter=max_iter,
            copy_X=copy_X,
            verbose=verbose,
        )
        if rho <= 0:
            raise ValueError("rho must be positive")
        if abstol <= 0 or reltol <= 0:
            raise ValueError("abstol and reltol must be positive")
        get_thresholder(thresholder)
        self.rho = rho
        self.thresholder = thresholder
        self.abstol = abstol
        self.reltol = reltol

    def _init_state(self, coef, x, y, options):
        # Precompute the factorization for upcoming least-squares solves.
        # Assumes that self.rho is fixed throughout optimization procedure.
        cho = _factorize(x, self.rho)
        abstol, reltol = self.abstol, self.reltol
        if options is not None:
            abstol, reltol = options.abstol, options.reltol
        return _ADMMState(
            x=x,
            y=y,
            cho=cho,
            x_transpose_y=x.T @ y,
            coef_full=coef,
            coef_sparse=coef.copy(),
            dual=np.zeros_like(coef),
            coef_sparse_prev=coef.copy(),
            abstol=abstol,
            reltol=reltol,
        )

    def _step(self, state):
        threshold = get_thresholder(self.thresholder)
        coef_full = cho_solve(
            state.cho,
            state.x_transpose_y + self.rho * (state.coef_sparse - state.dual),
        )
        coef_sparse = threshold(coef_full + state.dual, self.threshold)
        dual = state.dual + coef_full - coef_sparse
        return state._replace(
            coef_full=coef_full,
            coef_sparse=coef_sparse,
            dual=dual,
            coef_sparse_prev=state.coef_sparse,
        )

    def _residuals(self, state):
        primal = np.linalg.norm(state.coef_full - state.coef_sparse)
        dual = self.rho * np.linalg.norm(state.coef_sparse - state.coef_sparse_prev)
        return primal, dual

    def _converged(self, state):
        primal, dual = self._residuals(state)
        scale = np.sqrt(state.coef_full.size) * state.abstol
        eps_primal = scale + state.reltol * max(
            np.linalg.norm(state.coef_full), np.linalg.norm(state.coef_sparse)
        )
        eps_dual = scale + state.reltol * np.linalg.norm(self.rho * state.dual)
        return primal <= eps_primal and dual <= eps_dual

    def _result(self, state):
        return state.coef_sparse.copy()

    def _report(self, state):
        R2 = np.sum((state.y - state.x @ state.coef_full) ** 2)
        primal, dual = self._residuals(state)
        return R2, primal, dual, np.count_nonzero(state.coef_sparse)

    def _finalize(self, state):
        self.coef_full_ = state.coef_full.T.copy()
