from typing import Callable
from typing import Tuple
from typing import Union

import numpy as np
from numpy.typing import NDArray
from sklearn.utils.validation import check_array

from .._typing import Float2D


class DimensionMismatchError(ValueError):
    """Raised when feature, target and coefficient shapes are incompatible."""


def _broadcast_threshold(x: NDArray, threshold) -> NDArray:
    """Bring a scalar, per-column or elementwise threshold to the shape of x"""
    threshold = np.asarray(threshold, dtype=float)
    if threshold.ndim == 0 or threshold.shape == x.shape:
        return threshold
    if threshold.ndim == 1 and x.ndim == 2 and threshold.shape[0] == x.shape[1]:
        return threshold.reshape(1, -1)
    raise ValueError(
        f"Invalid shape for threshold: {threshold.shape}. Must be a scalar, "
        f"one value per column ({x.shape[-1]}) or the shape of x {x.shape}."
    )


def hard_threshold(x: NDArray, threshold) -> NDArray:
    """Zero every entry with magnitude below ``threshold``.

    Entries at or above the threshold are passed through unchanged. The input
    is never modified; a threshold <= 0 returns a copy of ``x``.
    """
    x = np.asarray(x, dtype=float)
    threshold = _broadcast_threshold(x, threshold)
    return np.where(np.abs(x) < threshold, 0.0, x)


def soft_threshold(x: NDArray, threshold) -> NDArray:
    """Zero entries below ``threshold`` and shrink the rest toward zero by it.

    Surviving entries keep their sign. A threshold <= 0 returns a copy of ``x``.
    """
    x = np.asarray(x, dtype=float)
    threshold = np.maximum(_broadcast_threshold(x, threshold), 0.0)
    return np.sign(x) * np.maximum(np.abs(x) - threshold, 0.0)


def get_thresholder(thresholder: str) -> Callable[[NDArray, float], NDArray]:
    """
    Args:
    -----
    thresholder: 'hard' | 'l0' | 'soft' | 'l1'

    Returns:
    --------
    thresholding_function: (x: np.array, threshold: float | np.array) -> np.array
    """
    thresholders = {
        "hard": hard_threshold,
        "l0": hard_threshold,
        "soft": soft_threshold,
        "l1": soft_threshold,
    }
    try:
        return thresholders[thresholder.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown thresholder '{thresholder}'. Use one of "
            f"{sorted(thresholders)}."
        ) from None


def _prox_l0(x: NDArray, regularization_weight) -> NDArray:
    return hard_threshold(x, np.sqrt(2 * np.asarray(regularization_weight)))


def _prox_l1(x: NDArray, regularization_weight) -> NDArray:
    return soft_threshold(x, regularization_weight)


def _prox_l2(x: NDArray, regularization_weight) -> NDArray:
    return np.asarray(x, dtype=float) / (1 + 2 * np.asarray(regularization_weight))


def _regularization_l0(x: NDArray, regularization_weight) -> float:
    return float(np.sum(regularization_weight * (x != 0)))


def _regularization_l1(x: NDArray, regularization_weight) -> float:
    return float(np.sum(regularization_weight * np.abs(x)))


def _regularization_l2(x: NDArray, regularization_weight) -> float:
    return float(np.sum(regularization_weight * x**2))


def get_prox(regularization: str) -> Callable[[NDArray, float], NDArray]:
    """
    Args:
    -----
    regularization: 'l0' | 'l1' | 'l2'

    Returns:
    --------
    proximal_operator: (x: np.array, reg_weight: float | np.array) -> np.array
        A function that takes an input array x and a regularization weight,
        which can be either a scalar or array broadcastable to x,
        and returns an array of the same shape
    """
    prox = {"l0": _prox_l0, "l1": _prox_l1, "l2": _prox_l2}
    try:
        return prox[regularization.lower()]
    except KeyError:
        raise NotImplementedError(
            f"Unknown regularizer '{regularization}'. Use l0, l1 or l2."
        ) from None


def get_regularization(regularization: str) -> Callable[[NDArray, float], float]:
    """
    Args:
    -----
    regularization: 'l0' | 'l1' | 'l2'

    Returns:
    --------
    regularization_function: (x: np.array, reg_weight: float | np.array) -> float
    """
    regularization_fn = {
        "l0": _regularization_l0,
        "l1": _regularization_l1,
        "l2": _regularization_l2,
    }
    try:
        return regularization_fn[regularization.lower()]
    except KeyError:
        raise NotImplementedError(
            f"Unknown regularizer '{regularization}'. Use l0, l1 or l2."
        ) from None


def validate_threshold(threshold) -> Union[float, NDArray]:
    """Check that a threshold (scalar or array) is finite and non-negative."""
    arr = np.asarray(threshold, dtype=float)
    if arr.ndim > 2:
        raise ValueError("threshold must be a scalar, 1D or 2D array")
    if not np.all(np.isfinite(arr)):
        raise ValueError("threshold must be finite")
    if np.any(arr < 0):
        raise ValueError("threshold cannot be negative")
    return float(arr) if arr.ndim == 0 else arr


def validate_fit_data(coef, x, y) -> Tuple[Float2D, Float2D, Float2D]:
    """Check shapes of the coefficient, feature and target matrices.

    Args:
        coef: coefficients, shape (n_features, n_targets) or (n_features,)
        x: features, shape (n_samples, n_features)
        y: targets, shape (n_samples, n_targets) or (n_samples,)

    Returns:
        Float copies of coef, x and y as 2D arrays.
    """
    x = np.asarray(x)
    y = np.asarray(y)
    coef = np.asarray(coef)
    if x.ndim != 2:
        raise DimensionMismatchError(
            f"features must be a 2D array, received shape {x.shape}"
        )
    if y.ndim == 1:
        y = y.reshape(-1, 1)
    if coef.ndim == 1:
        coef = coef.reshape(-1, 1)
    if y.ndim != 2:
        raise DimensionMismatchError(
            f"targets must be a 1D or 2D array, received shape {y.shape}"
        )
    if x.shape[0] != y.shape[0]:
        raise DimensionMismatchError(
            f"features have {x.shape[0]} samples but targets have {y.shape[0]}"
        )
    expected = (x.shape[1], y.shape[1])
    if coef.shape != expected:
        raise DimensionMismatchError(
            f"coefficients shape is incompatible with training data. "
            f"Expected: {expected}. Received: {coef.shape}."
        )
    x = check_array(x, dtype=np.float64, copy=True)
    y = check_array(y, dtype=np.float64, copy=True)
    coef = check_array(coef, dtype=np.float64, copy=True)
    return coef, x, y


def validate_null_space_data(basis, basis_copy) -> Tuple[Float2D, Float2D]:
    """Check that a null-space basis and its reference copy agree in shape."""
    basis = np.asarray(basis)
    basis_copy = np.asarray(basis_copy)
    if basis.ndim != 2 or basis_copy.ndim != 2:
        raise DimensionMismatchError("null space bases must be 2D arrays")
    if basis.shape != basis_copy.shape:
        raise DimensionMismatchError(
            f"null space basis has shape {basis.shape} but its reference "
            f"copy has shape {basis_copy.shape}"
        )
    basis = check_array(basis, dtype=np.float64, copy=True)
    basis_copy = check_array(basis_copy, dtype=np.float64, copy=True)
    return basis, basis_copy
