import warnings
from typing import NamedTuple

import numpy as np
from scipy.linalg import null_space
from sklearn.utils.validation import check_array
from sklearn.utils.validation import check_is_fitted

from .._typing import Float2D
from ..utils import get_thresholder
from ..utils import normalize_relation
from ..utils import select_pareto_column
from ..utils import validate_null_space_data
from .base import BaseOptimizer
from .base import fit as _fit


class _ADMState(NamedTuple):
    projector: Float2D
    basis: Float2D


def _normalize_columns(q):
    norms = np.linalg.norm(q, axis=0)
    scale = np.where(norms > 0, norms, 1.0)
    return q / scale


class ADM(BaseOptimizer):
    """
    Alternating directions method for sparse vectors in a null space.

    Given a basis L of an (approximate) null space of an augmented feature
    matrix, finds a matrix M of the same shape whose columns are unit-norm,
    as sparse as possible, and still lie (approximately) in the span of L.
    Every iteration projects each column of M onto span(L) by a least-squares
    re-projection, thresholds it and rescales it to unit norm.  The number of
    iterations is fixed: there is no early stopping, so the selected model
    only depends on the data and ``max_iter``.

    Each column of M is a candidate implicit relation q with
    :math:`\\Theta q \\approx 0`; :meth:`select` ranks them by the Pareto
    score :math:`\\|(\\|q\\|_0, \\|\\Theta q\\|_2)\\|_2`.  See

        Qu, Q., Sun, J., & Wright, J. (2014). Finding a sparse vector in a
        subspace: Linear sparsity using alternating directions.
        Advances in Neural Information Processing Systems, 27.

        Kaheman, K., Kutz, J. N., & Brunton, S. L. (2020). SINDy-PI: a robust
        algorithm for parallel implicit sparse identification of nonlinear
        dynamics. Proceedings of the Royal Society A, 476(2242), 20200279.

    Parameters
    ----------
    threshold : float or np.ndarray, optional (default 0.1)
        Entries of the unit-norm columns below this magnitude are set to zero.
        An array gives one threshold per column of the basis.

    thresholder : string, optional (default 'hard')
        'hard' or 'soft' thresholding.

    max_iter : int, optional (default 100)
        Number of iterations.

    null_space_rcond : float, optional (default None)
        Relative condition number passed to :func:`scipy.linalg.null_space`
        when :meth:`fit` computes the basis itself.

    verbose : bool, optional (default False)
        If True, logs the sparsity of the basis every iteration.

    Attributes
    ----------
    null_space_ : array, shape (n_features, n_candidates)
        The sparse basis M.

    coef_ : array, shape (n_candidates, n_features)
        ``null_space_.T``; one candidate relation per row.

    best_index_ : int
        Column of ``null_space_`` with the smallest Pareto score.

    best_score_ : float
        Pareto score of that column.

    relation_ : array, shape (n_features,)
        The selected column scaled so that its first non-zero entry is one.
    """

    _report_columns = ("|M|_0", "min |m_j|_2")
    _warn_on_max_iter = False

    def __init__(
        self,
        threshold=0.1,
        thresholder="hard",
        max_iter=100,
        null_space_rcond=None,
        copy_X=True,
        verbose=False,
    ):
        super().__init__(
            threshold=threshold,
            max_iter=max_iter,
            copy_X=copy_X,
            verbose=verbose,
        )
        get_thresholder(thresholder)
        self.thresholder = thresholder
        self.null_space_rcond = null_space_rcond

    def _validate_data(self, basis, *data):
        if len(data) != 1:
            raise TypeError("ADM expects a null space basis and its copy")
        return validate_null_space_data(basis, data[0])

    def _initial_guess(self, basis, *_):
        return check_array(basis, dtype=np.float64, copy=True)

    def _init_state(self, basis, basis_copy, options):
        # least-squares re-projection onto span(L): L @ lstsq(L, M)
        projector = basis_copy @ np.linalg.pinv(basis_copy)
        return _ADMState(projector=projector, basis=basis)

    def _step(self, state):
        threshold = get_thresholder(self.thresholder)
        basis = state.projector @ state.basis
        basis = threshold(basis, self.threshold)
        return state._replace(basis=_normalize_columns(basis))

    def _converged(self, state):
        return False

    def _result(self, state):
        return state.basis.copy()

    def _report(self, state):
        return (
            np.count_nonzero(state.basis),
            np.min(np.linalg.norm(state.basis, axis=0)),
        )

    def _finalize(self, state):
        empty = ~np.any(state.basis, axis=0)
        if np.any(empty):
            warnings.warn(
                "Sparsity parameter is too big ({}) and eliminated all "
                "entries of null space columns {}".format(
                    self.threshold, np.flatnonzero(empty).tolist()
                )
            )

    def fit(self, x_, y=None, basis=None):
        """
        Find sparse implicit relations among the columns of ``x_``.

        Parameters
        ----------
        x_ : array-like, shape (n_samples, n_features)
            Augmented feature matrix.  Relations q satisfy ``x_ @ q ~ 0``.

        y : None
            Ignored.

        basis : array-like, shape (n_features, n_candidates), optional
            Basis of the (approximate) null space of ``x_``.  Computed with
            :func:`scipy.linalg.null_space` if not given.

        Returns
        -------
        self : returns an instance of self
        """
        x = check_array(x_, dtype=np.float64)
        if basis is None:
            basis = null_space(x, rcond=self.null_space_rcond)
        self.history_ = []
        basis = _fit(basis, basis, self)
        self.null_space_ = basis
        self.n_features_in_ = x.shape[1]
        self.coef_ = basis.T
        self.intercept_ = 0.0
        self.best_index_, self.best_score_ = select_pareto_column(basis, x)
        self.relation_ = normalize_relation(basis[:, self.best_index_])
        return self

    def select(self, features):
        """Pareto-optimal column of the fitted basis for ``features``.

        Returns the column index and its score.
        """
        check_is_fitted(self, "null_space_")
        return select_pareto_column(self.null_space_, features)

    def best_relation(self, features):
        """Pareto-optimal column scaled so its first non-zero entry is one."""
        best, _ = self.select(features)
        return normalize_relation(self.null_space_[:, best])
