from importlib.metadata import PackageNotFoundError
from importlib.metadata import version

try:
    __version__ = version(__name__)
except PackageNotFoundError:
    pass

from . import optimizers
from . import utils
from .optimizers import ADM
from .optimizers import ADMM
from .optimizers import BaseOptimizer
from .optimizers import fit
from .optimizers import init
from .optimizers import SR3
from .optimizers import STRRidge
from .utils import CommonOptions
from .utils import DimensionMismatchError


__all__ = ["CommonOptions", "DimensionMismatchError"]
__all__.extend(optimizers.__all__)
__all__.extend(["utils"])
