from .base import DimensionMismatchError
from .base import get_prox
from .base import get_regularization
from .base import get_thresholder
from .base import hard_threshold
from .base import soft_threshold
from .base import validate_fit_data
from .base import validate_null_space_data
from .base import validate_threshold
from .options import CommonOptions
from .pareto import normalize_relation
from .pareto import pareto_scores
from .pareto import select_pareto_column

__all__ = [
    "CommonOptions",
    "DimensionMismatchError",
    "get_prox",
    "get_regularization",
    "get_thresholder",
    "hard_threshold",
    "soft_threshold",
    "validate_fit_data",
    "validate_null_space_data",
    "validate_threshold",
    "normalize_relation",
    "pareto_scores",
    "select_pareto_column",
]
