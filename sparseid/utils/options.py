from dataclasses import dataclass
from dataclasses import field
from typing import Optional

import numpy as np


def _sqrt_eps() -> float:
    return float(np.sqrt(np.finfo(float).eps))


@dataclass(frozen=True)
class CommonOptions:
    """Settings shared by every optimizer run through :func:`sparseid.fit`.

    maxiter: Maximum number of iterations, by default 100.  An explicit
        ``max_iter`` passed to ``fit`` takes precedence.
    abstol: Absolute convergence tolerance, by default sqrt(eps).
    reltol: Relative convergence tolerance, by default sqrt(eps).
    progress: Show a tqdm progress bar over the iterations.
    verbose: Log the objective terms of every iteration at INFO level.
    digits: Significant decimals kept in the returned coefficients, by
        default 10.  ``None`` disables rounding.
    """

    maxiter: int = 100
    abstol: float = field(default_factory=_sqrt_eps)
    reltol: float = field(default_factory=_sqrt_eps)
    progress: bool = False
    verbose: bool = False
    digits: Optional[int] = 10

    def __post_init__(self):
        if self.maxiter <= 0:
            raise ValueError("maxiter must be positive")
        if self.abstol <= 0 or self.reltol <= 0:
            raise ValueError("abstol and reltol must be positive")
        if self.digits is not None and self.digits < 0:
            raise ValueError("digits cannot be negative")
