r"""
Functional and phylogenetic diversity computed from pairwise trait distances.

The methods follow the decomposition of functional diversity set out by Scheiner, Kosman, Presley, & Willig (2017),
"Decomposing functional diversity", _Methods in Ecology and Evolution_ 8:809-820. Diversity is expressed in terms of
an order-$q$ Hill number computed over the abundance-weighted pairwise trait distances of a community:

- [`ftd`](#ftd) computes the measures for a single community.
- [`ftd_communities`](#ftd-communities) computes the measures for each community of a site by taxon matrix and
aggregates these into summary statistics.

The distances can be derived from any source: e.g. Euclidean distances between numeric traits (see
[`distances.trait_distances`](/tools/distances#trait-distances)) or cophenetic distances from a phylogeny.
Distances are expected to fall within the unit interval; distances outside of this range are rescaled.

Both methods return a list of [`DiversityWarning`](/structures#diversitywarning) records alongside their results,
describing corrections applied to the inputs (rescaling, renormalisation of weights) and degenerate communities.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

import numpy as np
import numpy.typing as npt
import pandas as pd
from numba_progress import ProgressBar  # type: ignore

from traitdiv import config, structures, tdtypes
from traitdiv.algos import checks, diversity

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def _prepare_weights(
    weights: tdtypes.WeightsType, n_taxa: int
) -> tuple[npt.NDArray[np.float64], list[structures.DiversityWarning]]:
    """Cast weights to a unit-sum vector, reporting any renormalisation or empty communities."""
    warnings: list[structures.DiversityWarning] = []
    # if no weights are provided then abundances are assumed equal
    if weights is None:
        return np.full(n_taxa, 1 / n_taxa, dtype=np.float64), warnings
    try:
        _weights = np.array(weights, dtype=np.float64)
    except (TypeError, ValueError) as err:
        raise structures.InvalidInputKind(f"Weights must be numeric: {err}") from err
    if _weights.ndim != 1:
        raise structures.InvalidInputKind("Weights must be provided as a one dimensional vector.")
    try:
        checks.check_weights(_weights, n_taxa)
    except ValueError as err:
        raise structures.InvalidInputKind(str(err)) from err
    wt_sum = float(_weights.sum())
    if wt_sum == 0:
        warnings.append(
            structures.DiversityWarning(
                structures.WarningKind.EMPTY_COMMUNITY,
                "The community has no species.",
                0,
            )
        )
    elif abs(wt_sum - 1) > config.ZERO_TOL:
        _weights = _weights / wt_sum
        warnings.append(
            structures.DiversityWarning(
                structures.WarningKind.RENORMALIZED_WEIGHTS,
                "Input proportional abundances do not sum to 1: summation to 1 forced.",
                wt_sum,
            )
        )
    return _weights, warnings


def ftd(
    tdmat: tdtypes.DistanceMatrixType,
    weights: tdtypes.WeightsType = None,
    q: tdtypes.QType = 2,
) -> tuple[structures.PerCommunityResult, list[structures.DiversityWarning]]:
    r"""
    Compute functional trait diversity for a single community.

    The pairwise distances are weighted by the product of the respective proportional abundances, giving the
    dispersion $M = \sum_{i}\sum_{j} p_{i} d_{ij} p_{j}$ (Rao's $Q$). The normalised weighted distances
    $f_{ij} = p_{i} d_{ij} p_{j} / M$ are then expressed as an order-$q$ trait entropy:

    | q | $^{q}H_{t}$ |
    |---|:-----------:|
    | $M = 0$ | $0$ |
    | $0$ | count of $f_{ij} > 0$ |
    | $1$ | $exp\big(-\sum f_{ij}\ log\ f_{ij}\big)$ |
    | otherwise | $\big(\sum f_{ij}^{q}\big)^{1/(1-q)}$ |

    from which the trait diversity $^{q}D_{T} = (1 + \sqrt{1 + 4\ ^{q}H_{t}}) / 2$, total functional diversity
    $^{q}D_{T}M = 1 + {^{q}D_{T}} M$, and evenness $^{q}E_{t} = {^{q}D_{T}} / S$ are derived, where $S$ is the
    number of species with non-zero weights.

    Parameters
    ----------
    tdmat
        Pairwise trait distances: a [`DenseMatrix`](/structures#densematrix) or
        [`CompactPairwiseDistances`](/structures#compactpairwisedistances), or a 2D `ndarray` or `DataFrame` (dense),
        or a 1D `ndarray` or `Series` (condensed). A single taxon can be given as `0`. Asymmetric matrices and non-zero
        self-distances are permitted but reported. Matrices with values outside of the unit interval are rescaled.
    weights
        Proportional abundances of each taxon, in the same order as the distances. If omitted, abundances are
        assumed equal. Weights not summing to 1 are renormalised.
    q
        The order of diversity. Must be non-negative. $q = 0$ is insensitive to abundances, whereas increasing
        values of $q$ give increasing emphasis to dominant taxa.

    Returns
    -------
    result: PerCommunityResult
        A [`PerCommunityResult`](/structures#percommunityresult).
    warnings: list[DiversityWarning]
        Corrections applied to the inputs.

    Examples
    --------
    ```python
    import numpy as np
    from traitdiv.metrics import functional

    tdmat = np.array([[0, 0.2, 0.8], [0.2, 0, 0.6], [0.8, 0.6, 0]])
    result, warnings = functional.ftd(tdmat, weights=[0.5, 0.3, 0.2], q=2)
    print(result.dispersion, result.diversity, result.evenness)
    # 0.292 2.782... 0.927...
    ```

    """
    _q = structures.prepare_q(q)
    td_matrix, warnings = structures.prepare_trait_distances(tdmat)
    _weights, wt_warnings = _prepare_weights(weights, td_matrix.n_taxa)
    warnings += wt_warnings
    ftd_tuple = diversity.functional_trait_diversity(td_matrix.values, _weights, _q)
    for warning in warnings:
        warning.log()
    return structures.PerCommunityResult.from_kernel(ftd_tuple, float(_q)), warnings


def _align_communities(
    spmat_df: pd.DataFrame, labelled: bool, td_matrix: structures.TraitDistanceMatrix
) -> pd.DataFrame:
    """Reorder community columns to match the taxon order of the distance matrix."""
    if not labelled or not td_matrix.labelled:
        raise structures.TaxonAlignmentError(
            "Matching taxa requires labelled distances (e.g. a DataFrame) and a labelled community DataFrame."
        )
    if len(set(td_matrix.labels)) != td_matrix.n_taxa:
        raise structures.TaxonAlignmentError("Taxon labels of the distance matrix must be unique.")
    dupes = sorted(set(spmat_df.columns[spmat_df.columns.duplicated()]))
    if dupes:
        raise structures.TaxonAlignmentError(f"Duplicate taxa in the community columns: {', '.join(dupes)}.")
    missing = [label for label in td_matrix.labels if label not in spmat_df.columns]
    if missing:
        raise structures.TaxonAlignmentError(
            f"The following taxa can't be matched to the community columns: {', '.join(missing)}."
        )
    return spmat_df.loc[:, list(td_matrix.labels)]


def _community_warnings(
    spmat_df: pd.DataFrame, ftd_data: npt.NDArray[np.float64]
) -> list[structures.DiversityWarning]:
    warnings: list[structures.DiversityWarning] = []
    row_sums = spmat_df.to_numpy().sum(axis=1)
    for comm_key, row_sum, n_sp in zip(spmat_df.index, row_sums, ftd_data[:, 0]):
        if n_sp == 0:
            warnings.append(
                structures.DiversityWarning(
                    structures.WarningKind.EMPTY_COMMUNITY,
                    "The community has no species.",
                    0,
                    str(comm_key),
                )
            )
        elif abs(row_sum - 1) > config.ZERO_TOL:
            warnings.append(
                structures.DiversityWarning(
                    structures.WarningKind.RENORMALIZED_WEIGHTS,
                    "Input proportional abundances do not sum to 1: summation to 1 forced.",
                    float(row_sum),
                    str(comm_key),
                )
            )
    return warnings


def ftd_communities(
    tdmat: tdtypes.DistanceMatrixType,
    spmat: tdtypes.AbundanceType,
    q: tdtypes.QType = 2,
    abundance: bool = True,
    match_names: bool = False,
) -> tuple[structures.AggregateResult, list[structures.DiversityWarning]]:
    r"""
    Compute functional trait diversity for each community of a site by taxon matrix.

    Each community is computed per [`ftd`](#ftd), with the distances validated and, if necessary, rescaled only once.
    The per-community measures are then summarised as follows, where $S_{k}$ is the number of species in community
    $k$ and $N$ is the number of communities:

    | measure | formula | notes |
    |---------|:-------:|-------|
    | mean species | $\bar{S} = \frac{1}{N}\sum_{k} S_{k}$ | Always an arithmetic mean, regardless of $q$. |
    | mean dispersion | $\bar{M} = \sum_{k} S_{k} M_{k} / \sum_{k} S_{k}$ | Weighted by species counts. |
    | mean diversity | $\big(\frac{1}{N}\sum_{k} {^{q}D_{T,k}}^{1-q}\big)^{1/(1-q)}$ | Generalised mean; geometric mean at $q = 1$. |
    | mean bias corrected dispersion | $\bar{M}\bar{S} / (\bar{S} - 1)$ | |
    | mean total diversity | $1 + \bar{D}\bar{M}$ | |
    | mean evenness | $\bar{D} / \bar{S}$ | |

    Parameters
    ----------
    tdmat
        Pairwise trait distances, as accepted by [`ftd`](#ftd).
    spmat
        A site by taxon abundance matrix: a `DataFrame` indexed by community identifiers with taxa as columns, or a
        2D `ndarray`. Abundances must be finite and non-negative.
    q
        The order of diversity. Must be non-negative.
    abundance
        Whether to weight taxa by their abundances. If `False`, abundances are reduced to presence / absence such
        that each taxon present in a community is weighted equally.
    match_names
        Whether to reorder the community columns to match the taxon labels of the distances. This requires a
        `DataFrame` for `tdmat` (labels taken from the index) and for `spmat`. Columns that do not correspond to a
        taxon are dropped.

    Returns
    -------
    result: AggregateResult
        An [`AggregateResult`](/structures#aggregateresult) containing the per-community table and the summary
        statistics.
    warnings: list[DiversityWarning]
        Corrections applied to the inputs, and any empty communities.

    Examples
    --------
    ```python
    import pandas as pd
    from traitdiv.metrics import functional
    from traitdiv.tools import mock

    tdmat = mock.mock_trait_distances(n_taxa=20)
    spmat = mock.mock_community_data(n_communities=10, n_taxa=20)
    result, warnings = functional.ftd_communities(tdmat, spmat, q=2, match_names=True)
    print(result.communities.head())
    print(result.mean_diversity, result.mean_evenness)
    ```

    """
    _q = structures.prepare_q(q)
    td_matrix, warnings = structures.prepare_trait_distances(tdmat)
    spmat_df, labelled = structures.prepare_communities(spmat)
    if not abundance:
        pres = (spmat_df > 0).astype(np.float64)
        row_sums = pres.sum(axis=1)
        # empty communities remain zero
        spmat_df = pres.div(row_sums.where(row_sums > 0, 1), axis=0)
    if match_names:
        spmat_df = _align_communities(spmat_df, labelled, td_matrix)
    elif spmat_df.shape[1] != td_matrix.n_taxa:
        raise structures.InvalidInputKind(
            f"The abundance matrix has {spmat_df.shape[1]} taxa whereas the distance matrix has {td_matrix.n_taxa}."
        )
    spmat_arr = np.ascontiguousarray(spmat_df.to_numpy(dtype=np.float64))
    n_comm = spmat_arr.shape[0]
    if not config.QUIET_MODE:
        logger.info(f"Computing functional trait diversity for {n_comm} communities at q={float(_q)}.")
        progress_proxy: Optional[Any] = ProgressBar(update_interval=0.25, notebook=False, total=n_comm)
    else:
        progress_proxy = None
    try:
        ftd_data = diversity.functional_trait_diversity_communities(
            td_matrix.values, spmat_arr, _q, progress_proxy=progress_proxy
        )
    finally:
        # the progress bar runs on a non-daemon thread
        if progress_proxy is not None:
            progress_proxy.close()
    comm_warnings = _community_warnings(spmat_df, ftd_data)
    # summarise
    n_sps = ftd_data[:, 0]
    agg_ms = ftd_data[:, 1]
    q_dts = ftd_data[:, 4]
    total_taxa = int(np.count_nonzero(np.any(spmat_arr > 0, axis=0)))
    with np.errstate(divide="ignore", invalid="ignore"):
        # always an arithmetic mean
        u_nsp = np.float64(np.mean(n_sps))
        u_m = np.float64(np.sum(n_sps * agg_ms)) / np.float64(np.sum(n_sps))
        u_q_dt = np.float64(diversity.generalised_mean(q_dts, _q))
        u_m_prime = u_m * u_nsp / (u_nsp - 1)
        u_q_dtm = 1 + u_q_dt * u_m
        u_q_et = u_q_dt / u_nsp
    comm_df = pd.DataFrame(
        {
            "effective_species": n_sps.astype(np.int_),
            "q": np.full(n_comm, float(_q)),
            "dispersion": agg_ms,
            "dispersion_prime": ftd_data[:, 2],
            "entropy": ftd_data[:, 3],
            "diversity": q_dts,
            "total_diversity": ftd_data[:, 5],
            "evenness": ftd_data[:, 6],
        },
        index=spmat_df.index.copy(),
    )
    result = structures.AggregateResult(
        communities=comm_df,
        total_taxa=total_taxa,
        mean_effective_species=float(u_nsp),
        mean_dispersion=float(u_m),
        mean_dispersion_prime=float(u_m_prime),
        mean_diversity=float(u_q_dt),
        mean_total_diversity=float(u_q_dtm),
        mean_evenness=float(u_q_et),
    )
    warnings += comm_warnings
    for warning in warnings:
        warning.log()
    return result, warnings
