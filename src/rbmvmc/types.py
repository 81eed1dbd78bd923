from __future__ import annotations

from typing import TypeAlias

import numpy as np
import numpy.typing as npt

SpinArray: TypeAlias = npt.NDArray[np.int8]
SpinBatch: TypeAlias = npt.NDArray[np.int8]
FloatArray: TypeAlias = npt.NDArray[np.float64]
ScalarArray: TypeAlias = npt.NDArray[np.float64] | npt.NDArray[np.complex128]
IntArray: TypeAlias = npt.NDArray[np.int64]

Scalar: TypeAlias = float | complex
