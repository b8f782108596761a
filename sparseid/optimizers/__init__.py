from .adm import ADM
from .admm import ADMM
from .base import BaseOptimizer
from .base import fit
from .base import init
from .sr3 import SR3
from .strridge import STRRidge

__all__ = [
    "BaseOptimizer",
    "STRRidge",
    "ADMM",
    "SR3",
    "ADM",
    "fit",
    "init",
]
