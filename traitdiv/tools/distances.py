"""
Convenience methods for preparing trait distances.

Distances computed here are returned as [`CompactPairwiseDistances`](/structures#compactpairwisedistances), which
can be passed directly to the [`functional`](/metrics/functional) methods.
"""
from __future__ import annotations

import logging
from typing import Any

import numpy as np
import numpy.typing as npt
import pandas as pd
from scipy.spatial import distance
from sklearn.preprocessing import StandardScaler  # type: ignore

from traitdiv import config, structures, tdtypes

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def trait_distances(traits: tdtypes.TraitsType, standardise: bool = False) -> structures.CompactPairwiseDistances:
    """
    Compute Euclidean distances between taxa from numeric traits.

    Parameters
    ----------
    traits
        A `DataFrame` of taxa (rows) by numeric traits (columns), a `Series` of a single numeric trait, or an
        equivalent `ndarray`. Taxon labels are taken from the `DataFrame` or `Series` index.
    standardise
        Whether to standardise each trait to zero mean and unit variance prior to computing distances. Recommended
        where traits are measured in different units.

    Returns
    -------
    CompactPairwiseDistances
        Condensed pairwise distances with taxon labels, where available.

    Examples
    --------
    ```python
    import pandas as pd
    from traitdiv.tools import distances

    sizes = pd.Series([0.5, 1.2, 2.0], index=["daphnia", "bosmina", "cyclops"])
    dists = distances.trait_distances(sizes)
    print(dists.values)
    # [0.7 1.5 0.8]
    ```

    """
    labels = None
    if isinstance(traits, (pd.DataFrame, pd.Series)):
        labels = tuple(str(label) for label in traits.index)
    try:
        trait_arr: npt.NDArray[np.float64] = np.asarray(traits, dtype=np.float64)
    except (TypeError, ValueError) as err:
        raise structures.InvalidInputKind(f"Traits must be numeric: {err}") from err
    if trait_arr.ndim == 1:
        trait_arr = trait_arr.reshape(-1, 1)
    if trait_arr.ndim != 2 or trait_arr.shape[0] == 0:
        raise structures.InvalidInputKind("Traits must be provided as taxa by traits.")
    if not np.all(np.isfinite(trait_arr)):
        raise structures.InvalidInputKind("Trait values must be finite.")
    if standardise:
        trait_arr = StandardScaler().fit_transform(trait_arr)
    if not config.QUIET_MODE:
        logger.info(f"Computing trait distances for {trait_arr.shape[0]} taxa and {trait_arr.shape[1]} traits.")
    return structures.CompactPairwiseDistances(distance.pdist(trait_arr, metric="euclidean"), labels)


def scale_to_max(dists: Any) -> structures.DistanceVariant:
    """
    Divide distances by their maximum so that the largest distance is 1.

    Unlike the rescaling applied by the functional methods, this preserves the ratios between distances. The returned
    variant matches the variant of the input. Distances that are all zero are returned unchanged.
    """
    variant = structures.as_distance_variant(dists)
    dist_vals = np.asarray(variant.values, dtype=np.float64)
    if dist_vals.size == 0:
        return variant
    d_max = float(np.max(dist_vals))
    if d_max <= 0:
        return variant
    if isinstance(variant, structures.CompactPairwiseDistances):
        return structures.CompactPairwiseDistances(dist_vals / d_max, variant.labels)
    return structures.DenseMatrix(dist_vals / d_max, variant.labels)


def to_dense(dists: Any) -> structures.DenseMatrix:
    """Convert distances to a `DenseMatrix`, preserving any labels."""
    variant = structures.as_distance_variant(dists)
    if isinstance(variant, structures.DenseMatrix):
        return variant
    try:
        dense = distance.squareform(np.asarray(variant.values, dtype=np.float64), force="tomatrix", checks=False)
    except ValueError as err:
        raise structures.InvalidInputKind(f"Invalid condensed pairwise distances: {err}") from err
    return structures.DenseMatrix(dense, variant.labels)
