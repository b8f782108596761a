import numpy as np
import numpy.typing as npt

# Shape-annotated aliases; numpy does not check the shape parameter
FloatDType = np.dtype[np.floating[npt.NBitBase]]
Float1D = np.ndarray[tuple[int], FloatDType]
Float2D = np.ndarray[tuple[int, int], FloatDType]
BoolND = npt.NDArray[np.bool_]
