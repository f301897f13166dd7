from __future__ import annotations

from typing import Union

import numpy as np
import numpy.typing as npt
import pandas as pd

from traitdiv import structures

DistanceMatrixType = Union[
    structures.DenseMatrix,
    structures.CompactPairwiseDistances,
    pd.DataFrame,
    pd.Series,
    npt.NDArray[np.float64],
    int,
    float,
]
WeightsType = Union[list[float], tuple[float], pd.Series, npt.NDArray[np.float64], None]
AbundanceType = Union[pd.DataFrame, npt.NDArray[np.float64]]
TraitsType = Union[pd.DataFrame, pd.Series, npt.NDArray[np.float64]]
QType = Union[int, float]
