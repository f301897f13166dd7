"""
The `structures` module defines the data structures passed to and returned from the `traitdiv` API.

Trait distances are accepted either as a dense `DenseMatrix` or as a `CompactPairwiseDistances` condensed vector
(the upper triangle in `scipy.spatial.distance.pdist` order). Raw `numpy` arrays and `pandas` objects are mapped to
one of these two variants, which are in turn normalised to a validated `TraitDistanceMatrix` before any computation.

Corrective actions taken while validating inputs are reported as `DiversityWarning` records, which are returned
alongside the results so that callers can inspect which corrections were applied.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Hashable, Optional, Union

import numpy as np
import numpy.typing as npt
import pandas as pd
from scipy.spatial import distance

from traitdiv import config
from traitdiv.algos import checks

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class TraitDiversityError(ValueError):
    """Base class for structural input errors. No results are produced when raised."""


class InvalidInputKind(TraitDiversityError):
    """Raised for inputs of the wrong kind or shape, e.g. a non-square distance matrix."""


class TaxonAlignmentError(TraitDiversityError):
    """Raised when taxa can't be matched between a distance matrix and a community matrix."""


class WarningKind(str, Enum):
    """Kinds of corrective actions reported by `DiversityWarning` records."""

    ASYMMETRIC_MATRIX = "AsymmetricMatrixWarning"
    NON_ZERO_SELF_DISTANCE = "NonZeroSelfDistanceWarning"
    RESCALED = "RescaledWarning"
    RENORMALIZED_WEIGHTS = "RenormalizedWeightsWarning"
    EMPTY_COMMUNITY = "EmptyCommunityWarning"


@dataclass(frozen=True)
class DiversityWarning:
    """A corrective action applied to an input, or a degenerate community."""

    kind: WarningKind
    """The kind of warning."""
    message: str
    """Human readable description."""
    value: Any = None
    """The offending value, e.g. the weights sum before renormalisation."""
    community: Optional[str] = None
    """The community identifier, where the warning pertains to a specific community."""

    def log(self) -> None:
        """Emit the warning via the module logger."""
        if not config.QUIET_MODE:
            prefix = f"Community {self.community}: " if self.community is not None else ""
            logger.warning(f"{prefix}{self.message}")


@dataclass(frozen=True, eq=False)
class DenseMatrix:
    """A dense square matrix of pairwise trait distances."""

    values: npt.NDArray[np.float64]
    """`NxN` distances."""
    labels: Optional[tuple[str, ...]] = None
    """Optional taxon labels in row (and column) order."""


@dataclass(frozen=True, eq=False)
class CompactPairwiseDistances:
    """A condensed vector of pairwise trait distances, as returned by `scipy.spatial.distance.pdist`."""

    values: npt.NDArray[np.float64]
    """The upper triangle of the distance matrix, row by row, of length `N * (N - 1) / 2`."""
    labels: Optional[tuple[str, ...]] = None
    """Optional taxon labels."""


DistanceVariant = Union[DenseMatrix, CompactPairwiseDistances]


@dataclass(frozen=True, eq=False)
class TraitDistanceMatrix:
    """
    A validated trait distance matrix: square, finite, and with values in the unit interval.

    Created by [`prepare_trait_distances`](#prepare-trait-distances); read-only thereafter.
    """

    values: npt.NDArray[np.float64]
    """C-contiguous `NxN` distances."""
    labels: tuple[str, ...]
    """Taxon labels. Positional labels are used where none were provided."""
    labelled: bool
    """Whether the labels were provided by the caller."""

    @property
    def n_taxa(self) -> int:
        """The number of taxa."""
        return len(self.labels)

    def to_frame(self) -> pd.DataFrame:
        """Return the distances as a `DataFrame` indexed by taxon labels."""
        return pd.DataFrame(self.values, index=list(self.labels), columns=list(self.labels))


def _prep_labels(labels: Any) -> tuple[str, ...]:
    return tuple(str(label) for label in labels)


def as_distance_variant(tdmat: Any) -> DistanceVariant:
    """
    Map a raw distance input to a `DenseMatrix` or `CompactPairwiseDistances`.

    Parameters
    ----------
    tdmat
        A `DenseMatrix` or `CompactPairwiseDistances` (returned as is); a 2D `ndarray` or a `DataFrame` (dense, with
        the `DataFrame` index used for taxon labels); a 1D `ndarray` or `Series` (condensed); or the scalar `0` for a
        single taxon.

    Returns
    -------
    DenseMatrix | CompactPairwiseDistances

    """
    if isinstance(tdmat, (DenseMatrix, CompactPairwiseDistances)):
        return tdmat
    if isinstance(tdmat, (pd.DataFrame, pd.Series)):
        try:
            values = tdmat.to_numpy(dtype=np.float64)
        except (TypeError, ValueError) as err:
            raise InvalidInputKind(f"Distances must be numeric: {err}") from err
        if isinstance(tdmat, pd.DataFrame):
            return DenseMatrix(values, _prep_labels(tdmat.index))
        return CompactPairwiseDistances(values)
    if isinstance(tdmat, np.ndarray) and np.issubdtype(tdmat.dtype, np.number):
        if tdmat.ndim == 2:
            return DenseMatrix(tdmat.astype(np.float64))
        if tdmat.ndim == 1:
            return CompactPairwiseDistances(tdmat.astype(np.float64))
        if tdmat.ndim == 0 and tdmat == 0:
            return DenseMatrix(np.zeros((1, 1), dtype=np.float64))
    # contingency for single taxon communities
    if isinstance(tdmat, (int, float, np.number)) and not isinstance(tdmat, bool) and tdmat == 0:
        return DenseMatrix(np.zeros((1, 1), dtype=np.float64))
    raise InvalidInputKind(
        "Distances must be provided as a dense matrix or as condensed pairwise distances, "
        f"not as {type(tdmat).__name__}."
    )


def prepare_trait_distances(tdmat: Any) -> tuple[TraitDistanceMatrix, list[DiversityWarning]]:
    """
    Validate and normalise trait distances.

    Asymmetric matrices and non-zero self-distances are reported but otherwise left as is. If any value falls outside
    of the unit interval, the whole matrix is linearly rescaled to $[0, 1]$ via $(x - min) / (max - min)$.

    Parameters
    ----------
    tdmat
        Any input accepted by [`as_distance_variant`](#as-distance-variant).

    Returns
    -------
    tdmat: TraitDistanceMatrix
        The validated distances.
    warnings: list[DiversityWarning]
        Corrections applied to the distances.

    """
    variant = as_distance_variant(tdmat)
    try:
        raw = np.asarray(variant.values, dtype=np.float64)
    except (TypeError, ValueError) as err:
        raise InvalidInputKind(f"Distances must be numeric: {err}") from err
    if isinstance(variant, CompactPairwiseDistances):
        if raw.ndim != 1:
            raise InvalidInputKind("Condensed pairwise distances must be one dimensional.")
        try:
            dense = distance.squareform(raw, force="tomatrix", checks=False)
        except ValueError as err:
            raise InvalidInputKind(f"Invalid condensed pairwise distances: {err}") from err
    else:
        dense = raw
    if dense.ndim != 2:
        raise InvalidInputKind("The distance matrix must be two dimensional.")
    dense = np.array(dense, dtype=np.float64, order="C")
    try:
        checks.check_distance_matrix(dense)
    except ValueError as err:
        raise InvalidInputKind(str(err)) from err
    n_taxa = dense.shape[0]
    if variant.labels is not None:
        if len(variant.labels) != n_taxa:
            raise InvalidInputKind("The number of taxon labels does not match the dimensionality of the distances.")
        labels = _prep_labels(variant.labels)
        labelled = True
    else:
        labels = _prep_labels(range(n_taxa))
        labelled = False
    warnings: list[DiversityWarning] = []
    max_asym = float(np.max(np.abs(dense - dense.T)))
    if max_asym > config.ZERO_TOL:
        warnings.append(
            DiversityWarning(
                WarningKind.ASYMMETRIC_MATRIX,
                "Trait distance matrix is not symmetric.",
                max_asym,
            )
        )
    diag = np.diag(dense)
    if np.any(np.abs(diag) > config.ZERO_TOL):
        warnings.append(
            DiversityWarning(
                WarningKind.NON_ZERO_SELF_DISTANCE,
                "Non-zero diagonal: taxa appear to have non-zero trait distances from themselves.",
                diag.copy(),
            )
        )
    d_min = float(dense.min())
    d_max = float(dense.max())
    if d_max > 1 or d_min < 0:
        d_range = d_max - d_min
        if d_range > 0:
            dense = (dense - d_min) / d_range
        else:
            dense = np.zeros_like(dense)
        warnings.append(
            DiversityWarning(
                WarningKind.RESCALED,
                "Trait distances must be between 0 and 1: rescaling.",
                (d_min, d_max),
            )
        )
    return TraitDistanceMatrix(np.ascontiguousarray(dense), labels, labelled), warnings


def prepare_q(q: Any) -> np.float64:
    """Check that the order of diversity is a finite, non-negative number and cast it for the kernels."""
    if isinstance(q, bool) or not isinstance(q, (int, float, np.number)):
        raise ValueError("Please provide q as a number.")
    _q = np.float64(q)
    checks.check_q(_q)
    return _q


def prepare_communities(spmat: Any) -> tuple[pd.DataFrame, bool]:
    """
    Validate a site by taxon abundance matrix and cast it to a float `DataFrame`.

    Returns the `DataFrame` and whether the taxa (columns) were labelled by the caller. Column labels are cast to
    strings. Community identifiers (the index) must be unique. Abundances must be finite and non-negative.
    """
    if isinstance(spmat, pd.DataFrame):
        try:
            spmat_df = spmat.astype(np.float64)
        except (TypeError, ValueError) as err:
            raise InvalidInputKind(f"Abundances must be numeric: {err}") from err
        spmat_df.columns = [str(col) for col in spmat_df.columns]
        labelled = True
    elif isinstance(spmat, np.ndarray) and np.issubdtype(spmat.dtype, np.number):
        if spmat.ndim != 2:
            raise InvalidInputKind("The abundance matrix must be two dimensional: communities x taxa.")
        spmat_df = pd.DataFrame(spmat.astype(np.float64))
        labelled = False
    else:
        raise InvalidInputKind(
            f"Abundances must be provided as a DataFrame or a 2D array, not as {type(spmat).__name__}."
        )
    if not spmat_df.index.is_unique:
        dupes = sorted({str(key) for key in spmat_df.index[spmat_df.index.duplicated()]})
        raise InvalidInputKind(f"Duplicate community identifiers: {', '.join(dupes)}.")
    try:
        checks.check_abundance_matrix(np.ascontiguousarray(spmat_df.to_numpy(dtype=np.float64)))
    except ValueError as err:
        raise InvalidInputKind(str(err)) from err
    return spmat_df, labelled


@dataclass(frozen=True)
class PerCommunityResult:
    """Functional trait diversity for a single community."""

    effective_species: int
    """The number of taxa with strictly positive weights."""
    q: float
    """The order of diversity."""
    dispersion: float
    """Dispersion $M$: the abundance weighted mean pairwise distance, i.e. Rao's $Q$."""
    dispersion_prime: float
    """Bias corrected dispersion $M'$; zero for single taxon communities."""
    entropy: float
    """Trait entropy $^{q}H_{t}$."""
    diversity: float
    """Trait diversity $^{q}D_{T}$."""
    total_diversity: float
    """Total functional diversity $^{q}D_{T}M = 1 + {^{q}D_{T}} M$."""
    evenness: float
    """Evenness $^{q}E_{t} = {^{q}D_{T}} / S$."""

    @classmethod
    def from_kernel(cls, ftd_row: npt.NDArray[np.float64] | tuple[float, ...], q: float) -> PerCommunityResult:
        """Instance from the tuple or row returned by the functional trait diversity kernels."""
        n_sp, agg_m, agg_m_prime, q_ht, q_dt, q_dtm, q_et = (float(val) for val in ftd_row)
        return cls(int(n_sp), float(q), agg_m, agg_m_prime, q_ht, q_dt, q_dtm, q_et)


RESULT_COLUMNS: tuple[str, ...] = tuple(fld.name for fld in fields(PerCommunityResult))


@dataclass(frozen=True, eq=False)
class AggregateResult:
    """
    Functional trait diversity for a set of communities.

    The per-community table and the summary statistics derived from it. The mean diversity is a generalised mean of
    order $1 - q$ (geometric at $q = 1$), whereas the mean number of species is always an arithmetic mean.
    """

    communities: pd.DataFrame
    """One row per community, indexed by community identifiers, one column per `PerCommunityResult` field."""
    total_taxa: int
    """Taxa present in at least one community."""
    mean_effective_species: float
    """Arithmetic mean of the effective number of species."""
    mean_dispersion: float
    """Mean dispersion, weighted by the effective number of species."""
    mean_dispersion_prime: float
    """Bias corrected mean dispersion."""
    mean_diversity: float
    """Generalised mean of the per-community trait diversity."""
    mean_total_diversity: float
    """$1 + \\bar{D} \\bar{M}$."""
    mean_evenness: float
    """Mean diversity divided by the mean effective number of species."""

    def community(self, key: Hashable) -> PerCommunityResult:
        """Return the `PerCommunityResult` for a given community identifier."""
        row = self.communities.loc[key]
        return PerCommunityResult(
            effective_species=int(row["effective_species"]),
            **{col: float(row[col]) for col in RESULT_COLUMNS[1:]},
        )

    def __len__(self) -> int:
        return len(self.communities)
