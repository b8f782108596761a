from typing import NamedTuple
from typing import Union

import numpy as np
from scipy.linalg import cho_solve

from .._typing import Float2D
from ..utils import get_prox
from ..utils import get_regularization
from .base import _factorize
from .base import BaseOptimizer


class _SR3State(NamedTuple):
    x: Float2D
    y: Float2D
    cho: tuple
    x_transpose_y: Float2D
    coef_full: Float2D
    coef_sparse: Float2D
    coef_sparse_prev: Float2D
    tol: float


class SR3(BaseOptimizer):
    """
    Sparse relaxed regularized regression.

    Attempts to minimize the objective function

    .. math::

        0.5\\|y-Xw\\|^2_2 + \\lambda R(u)
        + (0.5 / \\nu)\\|w-u\\|^2_2

    where :math:`R(u)` is a regularization function.  Every iteration first
    updates the relaxed sparse coefficients u with the proximal operator of
    :math:`\\lambda \\nu R`, then solves the regularized normal equations for w.
    The weight :math:`\\lambda` is derived from ``threshold`` so that the
    proximal step removes exactly the coefficients below the threshold.
    See the following references for more details:

        Zheng, Peng, et al. "A unified framework for sparse relaxed
        regularized regression: SR3." IEEE Access 7 (2018): 1404-1423.

        Champion, K., Zheng, P., Aravkin, A. Y., Brunton, S. L., & Kutz, J. N.
        (2020). A unified sparse optimization framework to learn parsimonious
        physics-informed models from data. IEEE Access, 8, 169259-169271.

    Parameters
    ----------
    threshold : float or np.ndarray, optional (default 0.1)
        Coefficients of u below this magnitude are set to zero.  An array
        gives one threshold per target.

    nu : float, optional (default 1)
        Determines the level of relaxation. Decreasing nu encourages
        w and u to be close, whereas increasing nu allows the
        regularized coefficients u to be farther from w.

    regularizer : string, optional (default 'l0')
        Regularization function to use. 'l0' performs hard thresholding,
        'l1' soft thresholding.

    tol : float, optional (default 1e-5)
        Tolerance used for determining convergence of the optimization
        algorithm.

    max_iter : int, optional (default 30)
        Maximum iterations of the optimization algorithm.

    copy_X : boolean, optional (default True)
        Kept for scikit-learn compatibility; the data are always copied.

    verbose : bool, optional (default False)
        If True, logs the objective terms every iteration.

    Attributes
    ----------
    coef_ : array, shape (n_targets, n_features)
        Regularized weight vector(s). This is the u in the objective
        function.

    coef_full_ : array, shape (n_targets, n_features)
        Weight vector(s) that are not subjected to the regularization.
        This is the w in the objective function.

    objective_history : list
        Value of the objective function at every iteration of the last fit.
    """

    _report_columns = ("|y - Xw|^2", "|w-u|^2/v", "R(u)", "Total Error")

    def __init__(
        self,
        threshold=0.1,
        nu=1.0,
        regularizer="l0",
        tol=1e-5,
        max_iter=30,
        copy_X=True,
        verbose=False,
    ):
        super().__init__(
            threshold=threshold,
            max_iter=max_iter,
            copy_X=copy_X,
            verbose=verbose,
        )
        if nu <= 0:
            raise ValueError("nu must be positive")
        if tol <= 0:
            raise ValueError("tol must be positive")
        if regularizer.lower() not in ("l0", "l1"):
            raise NotImplementedError(
                "Please use a valid regularizer, l0 or l1."
            )
        self.nu = nu
        self.tol = tol
        self.regularizer = regularizer

    @staticmethod
    def calculate_reg_weight(
        threshold: Union[float, np.ndarray], nu: float, regularizer: str = "l0"
    ):
        """
        Regularizer weight whose proximal operator, taken with step ``nu``,
        thresholds exactly at ``threshold``.

        See Appendix S1 of the following paper for more details.
            Champion, K., Zheng, P., Aravkin, A. Y., Brunton, S. L., & Kutz, J. N.
            (2020). A unified sparse optimization framework to learn parsimonious
            physics-informed models from data. IEEE Access, 8, 169259-169271.
        """
        threshold = np.asarray(threshold, dtype=float)
        if regularizer.lower() == "l0":
            return (threshold**2) / (2 * nu)
        return threshold / nu

    @property
    def reg_weight_lam(self):
        return self.calculate_reg_weight(self.threshold, self.nu, self.regularizer)

    def _init_state(self, coef, x, y, options):
        # Precompute some objects for upcoming least-squares solves.
        # Assumes that self.nu is fixed throughout optimization procedure.
        cho = _factorize(x, 1.0 / self.nu)
        tol = self.tol if options is None else options.abstol
        self.objective_history = []
        return _SR3State(
            x=x,
            y=y,
            cho=cho,
            x_transpose_y=x.T @ y,
            coef_full=coef,
            coef_sparse=coef.copy(),
            coef_sparse_prev=coef.copy(),
            tol=tol,
        )

    def _update_sparse_coef(self, coef_full):
        """Update the regularized weight vector"""
        prox = get_prox(self.regularizer)
        return prox(coef_full, self.reg_weight_lam * self.nu)

    def _update_full_coef(self, cho, x_transpose_y, coef_sparse):
        """Update the unregularized weight vector"""
        b = x_transpose_y + coef_sparse / self.nu
        return cho_solve(cho, b)

    def _step(self, state):
        coef_sparse = self._update_sparse_coef(state.coef_full)
        coef_full = self._update_full_coef(
            state.cho, state.x_transpose_y, coef_sparse
        )
        state = state._replace(
            coef_full=coef_full,
            coef_sparse=coef_sparse,
            coef_sparse_prev=state.coef_sparse,
        )
        self.objective_history.append(self._objective(state))
        return state

    def _objective_terms(self, state):
        R2 = np.sum((state.y - state.x @ state.coef_full) ** 2)
        D2 = np.sum((state.coef_full - state.coef_sparse) ** 2) / self.nu
        reg = get_regularization(self.regularizer)
        regularization = reg(state.coef_sparse, self.reg_weight_lam)
        return R2, D2, regularization

    def _objective(self, state):
        """Objective function"""
        R2, D2, regularization = self._objective_terms(state)
        return 0.5 * R2 + regularization + 0.5 * D2

    def _report(self, state):
        R2, D2, regularization = self._objective_terms(state)
        return R2, D2, regularization, R2 + D2 + regularization

    def _convergence_criterion(self, state):
        """Calculate the convergence criterion for the optimization"""
        return (
            np.linalg.norm(state.coef_sparse - state.coef_sparse_prev) / self.nu
        )

    def _converged(self, state):
        return self._convergence_criterion(state) < state.tol

    def _result(self, state):
        return state.coef_sparse.copy()

    def _finalize(self, state):
        self.coef_full_ = state.coef_full.T.copy()
