from __future__ import annotations

from typing import Any

import numpy as np
import numpy.typing as npt
from numba import njit, prange  # type: ignore

from traitdiv import config


@njit(cache=True, fastmath=config.FASTMATH, nogil=True)
def hill_diversity(class_counts: npt.NDArray[np.float64], q: np.float64) -> np.float64:
    """
    Compute Hill diversity.

    Hill numbers - express actual diversity as opposed e.g. to Gini-Simpson (probability) and Shannon (information)

    exponent at 1 results in undefined because of 1/0 - but limit exists as exp(entropy)
    Ssee "Entropy and diversity" by Lou Jost

    Exponent at 0 = variety - i.e. count of unique species
    Exponent at 1 = unity
    Exponent at 2 = diversity form of simpson index

    """
    if q < 0:
        raise ValueError("Please select a non-negative value for q.")
    num = class_counts.sum()
    # catch potential division by zero situations
    if num == 0:
        return np.float64(0)
    # hill number defined in the limit as the exponential of information entropy
    if q == 1:
        ent = 0.0
        for class_count in class_counts:
            if class_count > 0:
                prob = class_count / num  # the probability of this class
                ent += prob * np.log(prob)  # sum entropy
        return np.exp(-ent)  # return exponent of entropy
    # otherwise use the usual form of Hill numbers
    div = 0.0
    for class_count in class_counts:
        if class_count > 0:
            prob = class_count / num  # the probability of this class
            div += prob**q  # sum
    return div ** (1 / (1 - q))  # return as equivalent species


@njit(cache=True, fastmath=config.FASTMATH, nogil=True)
def raos_quadratic_entropy(weights: npt.NDArray[np.float64], tdmat: npt.NDArray[np.float64]) -> np.float64:
    """
    Rao's quadratic entropy.

    Sum of pairwise trait distances weighted by the product of the respective proportional abundances.
    Q = sum(dij * pi * pj)

    This is the sum of diag(p) . D . diag(p), i.e. the abundance-weighted mean pairwise dissimilarity when the
    weights sum to unity. Not bias corrected.

    """
    if len(weights) != len(tdmat):
        raise ValueError("Mismatching number of weights and dimensionality of the distance matrix.")
    raos = 0.0
    for i, p_i in enumerate(weights):
        if p_i == 0:
            continue
        for j, p_j in enumerate(weights):
            if p_j == 0:
                continue
            raos += p_i * tdmat[i, j] * p_j
    return raos


@njit(cache=True, fastmath=config.FASTMATH, nogil=True)
def functional_entropy(
    weights: npt.NDArray[np.float64], tdmat: npt.NDArray[np.float64], agg_m: np.float64, q: np.float64
) -> np.float64:
    """
    Order-q trait entropy (qHt) over the normalised weighted distances fij = pi * dij * pj / M.

    exponent at 1 is undefined because of 1/(1-q) - the Shannon-Wiener analogue is used instead
    exponent at 0 reduces to a count of the non-zero fij
    qHt is zero by definition where all weighted trait distances vanish

    """
    # vanishing dispersion, i.e. all (weighted) trait distances are zero
    if agg_m < config.ZERO_TOL:
        return np.float64(0)
    # in the limit use the exponential of the entropy
    if q == 1:
        ent = 0.0
        for i, p_i in enumerate(weights):
            if p_i == 0:
                continue
            for j, p_j in enumerate(weights):
                f_ij = p_i * tdmat[i, j] * p_j / agg_m
                # 0 * log(0) treated as 0
                if f_ij > 0:
                    ent += f_ij * np.log(f_ij)
        return np.exp(-ent)
    # variety of non-zero fij
    if q == 0:
        count = 0.0
        for i, p_i in enumerate(weights):
            if p_i == 0:
                continue
            for j, p_j in enumerate(weights):
                if p_i * tdmat[i, j] * p_j / agg_m > 0:
                    count += 1
        return count
    # otherwise conventional form
    div = 0.0
    for i, p_i in enumerate(weights):
        if p_i == 0:
            continue
        for j, p_j in enumerate(weights):
            f_ij = p_i * tdmat[i, j] * p_j / agg_m
            if f_ij > 0:
                div += f_ij**q
    return div ** (1 / (1 - q))


@njit(cache=True, fastmath=config.FASTMATH, nogil=True)
def functional_trait_diversity(
    tdmat: npt.NDArray[np.float64], weights: npt.NDArray[np.float64], q: np.float64
) -> tuple[float, float, float, float, float, float, float]:
    """
    Functional trait diversity for a single community.

    Following the decomposition in Scheiner, Kosman, Presley, & Willig 2017, "Decomposing functional diversity".
    Assumes a validated distance matrix with values in the unit interval.

    Returns a tuple of:
    0 - effective number of species (count of non-zero weights)
    1 - dispersion M (Rao's Q)
    2 - bias corrected dispersion M'
    3 - trait entropy qHt
    4 - trait diversity qDT
    5 - total functional diversity qDTM
    6 - evenness qEt

    """
    if len(weights) != len(tdmat):
        raise ValueError("Mismatching number of weights and dimensionality of the distance matrix.")
    n_sp = 0.0
    for wt in weights:
        if wt > 0:
            n_sp += 1
    # force summation to unity - empty communities are left as is
    wt_sum = weights.sum()
    if wt_sum > 0 and np.abs(wt_sum - 1) > config.ZERO_TOL:
        wts = weights / wt_sum
    else:
        wts = weights.copy()
    agg_m = raos_quadratic_entropy(wts, tdmat)
    if n_sp <= 1:
        agg_m_prime = 0.0
    else:
        agg_m_prime = agg_m * n_sp / (n_sp - 1)
    q_ht = functional_entropy(wts, tdmat, agg_m, q)
    # undefined for communities without species
    if n_sp == 0:
        return n_sp, agg_m, agg_m_prime, q_ht, np.nan, np.nan, np.nan
    # positive root of qHt = qDT * (qDT - 1)
    q_dt = (1 + np.sqrt(1 + 4 * q_ht)) / 2
    q_dtm = 1 + q_dt * agg_m
    q_et = q_dt / n_sp
    return n_sp, agg_m, agg_m_prime, q_ht, q_dt, q_dtm, q_et


@njit(cache=True, fastmath=config.FASTMATH, nogil=True, parallel=True)
def functional_trait_diversity_communities(
    tdmat: npt.NDArray[np.float64],
    spmat: npt.NDArray[np.float64],
    q: np.float64,
    progress_proxy: Any = None,
) -> npt.NDArray[np.float64]:
    """
    Functional trait diversity for each community (row) of a site by taxon matrix.

    Rows are independent and computed in parallel. Returns an array of shape (communities, 7) with columns in the
    same order as the tuple returned by `functional_trait_diversity`.

    """
    if spmat.shape[1] != len(tdmat):
        raise ValueError("Mismatching number of taxa in the abundance matrix and the distance matrix.")
    n_comm = spmat.shape[0]
    ftd_data: npt.NDArray[np.float64] = np.full((n_comm, 7), np.nan, dtype=np.float64)
    for comm_idx in prange(n_comm):  # pylint: disable=not-an-iterable
        if progress_proxy is not None:
            progress_proxy.update(1)
        n_sp, agg_m, agg_m_prime, q_ht, q_dt, q_dtm, q_et = functional_trait_diversity(tdmat, spmat[comm_idx], q)
        ftd_data[comm_idx, 0] = n_sp
        ftd_data[comm_idx, 1] = agg_m
        ftd_data[comm_idx, 2] = agg_m_prime
        ftd_data[comm_idx, 3] = q_ht
        ftd_data[comm_idx, 4] = q_dt
        ftd_data[comm_idx, 5] = q_dtm
        ftd_data[comm_idx, 6] = q_et
    return ftd_data


@njit(cache=True, fastmath=config.FASTMATH, nogil=True)
def generalised_mean(values: npt.NDArray[np.float64], q: np.float64) -> np.float64:
    """
    Generalised (power) mean with exponent 1 - q.

    The geometric mean is used at q = 1, where it is the limit of the generalised mean as the exponent approaches 0.
    q = 0 gives the arithmetic mean and q = 2 the harmonic mean. NaN values propagate.

    """
    n_vals = len(values)
    if n_vals == 0:
        return np.nan
    if q == 1:
        log_sum = 0.0
        for val in values:
            log_sum += np.log(val)
        return np.exp(log_sum / n_vals)
    order = 1 - q
    agg = 0.0
    for val in values:
        agg += val**order
    return (agg / n_vals) ** (1 / order)
