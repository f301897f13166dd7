from __future__ import annotations

import numpy as np
import numpy.typing as npt
from numba import njit


@njit(cache=True)
def check_distance_matrix(tdmat: npt.NDArray[np.float64]) -> None:
    """
    Checks the integrity of a square trait distance matrix.

    Only the shape and finiteness are checked. Asymmetry, non-zero self-distances, and values outside of the unit
    interval are corrected (and reported) by the calling functions instead.

    """
    if tdmat.shape[0] == 0:
        raise ValueError("Zero length distance matrix.")
    if tdmat.shape[0] != tdmat.shape[1]:
        raise ValueError("The distance matrix must be an NxN pairwise matrix of trait distances.")
    for i in range(tdmat.shape[0]):
        for j in range(tdmat.shape[1]):
            if not np.isfinite(tdmat[i, j]):
                raise ValueError("The distance matrix must consist of finite values.")


@njit(cache=True)
def check_weights(weights: npt.NDArray[np.float64], n_taxa: int) -> None:
    """Checks the integrity of a community weights vector."""
    if len(weights) != n_taxa:
        raise ValueError("Mismatching number of weights and dimensionality of the distance matrix.")
    for wt in weights:
        if not np.isfinite(wt):
            raise ValueError("Weights must consist of finite values.")
        if wt < 0:
            raise ValueError("Weights must be non-negative.")


@njit(cache=True)
def check_abundance_matrix(spmat: npt.NDArray[np.float64]) -> None:
    """
    Checks the integrity of a site by taxon abundance matrix.

    Notes
    -----
    ABUNDANCE MATRIX:
    rows - communities (sites)
    cols - taxa

    """
    if spmat.shape[0] == 0:
        raise ValueError("Zero length abundance matrix: at least one community is required.")
    if spmat.shape[1] == 0:
        raise ValueError("The abundance matrix contains no taxa.")
    for comm_idx in range(spmat.shape[0]):
        for taxon_idx in range(spmat.shape[1]):
            abund = spmat[comm_idx, taxon_idx]
            if not np.isfinite(abund):
                raise ValueError("The abundance matrix contains missing or infinite values.")
            if abund < 0:
                raise ValueError("The abundance matrix contains negative abundances.")


@njit(cache=True)
def check_q(q: np.float64) -> None:
    """Checks that the order of diversity is a finite, non-negative number."""
    if not np.isfinite(q):
        raise ValueError("Please select a finite value for q.")
    if q < 0:
        raise ValueError("Please select a non-negative value for q.")
