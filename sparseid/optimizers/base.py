"""
Base class for sparse regression optimizers and the shared iteration loop.
"""
import abc
import warnings
from logging import getLogger
from typing import Optional

import numpy as np
from scipy.linalg import cho_factor
from scipy.linalg import LinAlgError
from scipy.linalg import LinAlgWarning
from sklearn.exceptions import ConvergenceWarning
from sklearn.linear_model import LinearRegression
from sklearn.linear_model import ridge_regression
from sklearn.utils.validation import check_is_fitted
from sklearn.utils.validation import check_X_y
from tqdm.auto import tqdm

from .._typing import Float2D
from ..utils import CommonOptions
from ..utils import validate_fit_data
from ..utils import validate_threshold

logger = getLogger(__name__)


class ComplexityMixin:
    @property
    def complexity(self):
        check_is_fitted(self)
        return np.count_nonzero(self.coef_) + np.count_nonzero(self.intercept_)


class BaseOptimizer(LinearRegression, ComplexityMixin):
    """
    Base class for sparse regression optimizers.

    Subclasses describe one iteration of their algorithm and leave the loop
    to :func:`fit`.  They must implement

    * ``_init_state(coef, x, y, options)``: build the working state of a fit
      call from the (already validated) initial coefficients and data,
    * ``_step(state)``: return the state after one iteration, without
      modifying the state passed in,
    * ``_converged(state)``: whether the loop may stop,
    * ``_result(state)``: the coefficient matrix to return.

    Parameters
    ----------
    threshold : float or np.ndarray, optional (default 0.1)
        Minimum magnitude for a coefficient.  Either a scalar or one value per
        target column.  Can be changed after construction with
        :meth:`set_threshold`.

    max_iter : int, optional (default 20)
        Maximum iterations of the optimization algorithm.

    copy_X : boolean, optional (default True)
        Kept for scikit-learn compatibility; the data are always copied.

    verbose : bool, optional (default False)
        If True, logs the objective terms at every iteration.

    Attributes
    ----------
    coef_ : array, shape (n_targets, n_features)
        Weight vector(s), following the scikit-learn convention.

    history_ : list
        History of ``coef_`` over iterations of the optimization algorithm.

    iters : int
        Number of iterations carried out by the last fit.

    converged_ : bool
        Whether the last fit met its convergence criterion.
    """

    _report_columns = ()
    _warn_on_max_iter = True

    def __init__(self, threshold=0.1, max_iter=20, copy_X=True, verbose=False):
        super().__init__(fit_intercept=False, copy_X=copy_X)

        if max_iter <= 0:
            raise ValueError("max_iter must be positive")

        validate_threshold(threshold)
        self.threshold = threshold
        self.max_iter = max_iter
        self.verbose = verbose
        self.iters = 0

    def set_threshold(self, threshold):
        """Replace the sparsity threshold used by subsequent fits."""
        validate_threshold(threshold)
        self.threshold = threshold

    # Force subclasses to implement these
    @abc.abstractmethod
    def _init_state(self, coef, x, y, options):
        raise NotImplementedError

    @abc.abstractmethod
    def _step(self, state):
        raise NotImplementedError

    @abc.abstractmethod
    def _converged(self, state) -> bool:
        raise NotImplementedError

    @abc.abstractmethod
    def _result(self, state) -> Float2D:
        raise NotImplementedError

    def _report(self, state):
        """Objective terms logged for one iteration when verbose."""
        return ()

    def _finalize(self, state):
        """Store diagnostics of the final state on the optimizer."""

    def _validate_data(self, coef, *data):
        if len(data) != 2:
            raise TypeError(
                f"{type(self).__name__} expects coefficients, features and targets"
            )
        return validate_fit_data(coef, *data)

    def _initial_guess(self, x, y):
        return _lstsq(x, y)

    def fit(self, x_, y, sample_weight=None):
        """
        Fit the model.

        Parameters
        ----------
        x_ : array-like, shape (n_samples, n_features)
            Training data

        y : array-like, shape (n_samples,) or (n_samples, n_targets)
            Target values

        sample_weight : float or numpy array of shape (n_samples,), optional
            Individual weights for each sample

        Returns
        -------
        self : returns an instance of self
        """
        x, y = check_X_y(x_, y, y_numeric=True, multi_output=True)
        if y.ndim == 1:
            y = y.reshape(-1, 1)
        if sample_weight is not None:
            x, y = _rescale_data(x, y, sample_weight)

        self.history_ = []
        coef = fit(init(self, x, y), x, y, self, options=None)
        self.n_features_in_ = x.shape[1]
        self.coef_ = coef.T
        self.intercept_ = 0.0
        return self


def _rescale_data(x, y, sample_weight):
    """Rescale data so as to support sample_weight"""
    sample_weight = np.asarray(sample_weight, dtype=float)
    if sample_weight.ndim == 0:
        sample_weight = np.full(x.shape[0], sample_weight)
    sw = np.sqrt(sample_weight).reshape(-1, 1)
    return x * sw, y * sw


def _lstsq(x, y):
    return np.linalg.lstsq(x, y, rcond=None)[0]


def _factorize(x, shift):
    """Cholesky factor of x^T x + shift * I"""
    return cho_factor(x.T @ x + shift * np.eye(x.shape[1]))


def _ridge(x, y, alpha):
    """Ridge regression that falls back to a pseudo-inverse solve when the
    regularized normal equations are singular or badly conditioned"""
    with warnings.catch_warnings():
        warnings.simplefilter("error", LinAlgWarning)
        try:
            return ridge_regression(x, y, alpha)
        except (LinAlgError, LinAlgWarning) as err:
            logger.debug("Ridge solve failed (%s); using lstsq instead", err)
    if alpha == 0:
        return _lstsq(x, y)
    n_features = x.shape[1]
    x_aug = np.vstack((x, np.sqrt(alpha) * np.eye(n_features)))
    y_aug = np.concatenate((y, np.zeros((n_features,) + y.shape[1:])))
    return _lstsq(x_aug, y_aug)


def init(optimizer: BaseOptimizer, *data) -> Float2D:
    """
    Initial coefficients for :func:`fit`.

    For explicit solvers, ``init(optimizer, features, targets)`` returns the
    ordinary least-squares solution, shape (n_features, n_targets).  For
    :class:`ADM`, ``init(optimizer, basis)`` returns a copy of the basis.
    """
    if not isinstance(optimizer, BaseOptimizer):
        raise TypeError("optimizer must be a BaseOptimizer")
    if len(data) == 2:
        x, y = data
        y = np.asarray(y)
        n_targets = 1 if y.ndim == 1 else y.shape[-1]
        placeholder = np.zeros((np.shape(x)[-1], n_targets))
        _, x, y = optimizer._validate_data(placeholder, x, y)
        return optimizer._initial_guess(x, y)
    return optimizer._initial_guess(*data)


def fit(
    coefficients,
    *args,
    max_iter: Optional[int] = None,
    options: Optional[CommonOptions] = None,
) -> Float2D:
    """
    Iterate an optimizer from the given coefficients until it converges or
    runs out of iterations.

    Explicit solvers are called as ``fit(coefficients, features, targets,
    optimizer)``; :class:`ADM` as ``fit(basis, basis_copy, optimizer)``.
    Shapes are checked before the first iteration and a
    :class:`DimensionMismatchError` is raised if they disagree.

    Parameters
    ----------
    coefficients : np.ndarray
        Initial coefficients, shape (n_features, n_targets), e.g. from
        :func:`init`.  Not modified.

    max_iter : int, optional
        Maximum number of iterations.  Defaults to ``options.maxiter`` when
        options are given and to ``optimizer.max_iter`` otherwise.

    options : CommonOptions, optional
        Tolerances, progress bar, logging and rounding of the result.

    Returns
    -------
    coefficients : np.ndarray
        A new array with the final (sparse) coefficients.
    """
    if not args or not isinstance(args[-1], BaseOptimizer):
        raise TypeError("the last positional argument must be an optimizer")
    *data, optimizer = args
    arrays = optimizer._validate_data(coefficients, *data)

    if max_iter is None:
        max_iter = optimizer.max_iter if options is None else options.maxiter
    if max_iter <= 0:
        raise ValueError("max_iter must be positive")
    verbose = optimizer.verbose or (options is not None and options.verbose)
    progress = options is not None and options.progress

    state = optimizer._init_state(*arrays, options)
    optimizer.iters = 0
    optimizer.converged_ = False
    optimizer.history_ = [optimizer._result(state).T]

    name = type(optimizer).__name__
    if verbose and optimizer._report_columns:
        logger.info(
            " ... ".join(
                "{: >10}".format(c) for c in ("Iteration",) + optimizer._report_columns
            )
        )
    try:
        for k in tqdm(range(max_iter), desc=name, disable=not progress, leave=False):
            state = optimizer._step(state)
            optimizer.iters = k + 1
            optimizer.history_.append(optimizer._result(state).T)
            if verbose and optimizer._report_columns:
                logger.info(
                    " ... ".join(
                        ["{:10d}".format(k)]
                        + ["{:10.4e}".format(v) for v in optimizer._report(state)]
                    )
                )
            if optimizer._converged(state):
                optimizer.converged_ = True
                break
    except KeyboardInterrupt:
        warnings.warn(
            f"{name} interrupted after {optimizer.iters} iterations; returning "
            "the last completed iterate."
        )
    else:
        if not optimizer.converged_ and optimizer._warn_on_max_iter:
            warnings.warn(
                f"{name} did not converge after {max_iter} iterations.",
                ConvergenceWarning,
            )

    optimizer._finalize(state)
    result = optimizer._result(state)
    if options is not None and options.digits is not None:
        result = np.round(result, options.digits)
    return result
