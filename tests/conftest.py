# pyright: basic
from __future__ import annotations

import numpy as np
import numpy.typing as npt
import pandas as pd
import pytest


@pytest.fixture
def trait_matrix() -> npt.NDArray[np.float64]:
    """
    Prepare a 3 taxon trait distance matrix for testing.

    Returns
    -------
    ndarray
        A symmetric `3x3` matrix with a zero diagonal and distances in the unit interval.

    """
    return np.array(
        [
            [0, 0.2, 0.8],
            [0.2, 0, 0.6],
            [0.8, 0.6, 0],
        ],
        dtype=np.float64,
    )


@pytest.fixture
def trait_frame(trait_matrix) -> pd.DataFrame:
    """The 3 taxon trait distance matrix, labelled by taxon."""
    labels = ["daphnia", "bosmina", "cyclops"]
    return pd.DataFrame(trait_matrix, index=labels, columns=labels)


@pytest.fixture
def community_frame() -> pd.DataFrame:
    """
    Prepare a site by taxon abundance table for testing.

    Returns
    -------
    DataFrame
        Three communities over the 3 taxa: one with two taxa, one with a single taxon, one with all three.

    """
    return pd.DataFrame(
        [
            [4, 2, 0],
            [0, 0, 7],
            [5, 3, 2],
        ],
        index=["lake_a", "lake_b", "lake_c"],
        columns=["daphnia", "bosmina", "cyclops"],
    )
