"""
A collection of functions for the generation of mock data.

This module is predominately used for writing code tests, but can otherwise be useful for demonstration and utility
purposes.
"""
from __future__ import annotations

from typing import Generator

import numpy as np
import numpy.typing as npt
import pandas as pd
from scipy.spatial import distance

from traitdiv import structures


def _taxon_labels(n_taxa: int) -> list[str]:
    return [f"taxon_{idx}" for idx in range(n_taxa)]


def mock_trait_data(n_taxa: int = 20, random_seed: int = 0) -> pd.DataFrame:
    """
    Generate mock traits for a set of taxa.

    Parameters
    ----------
    n_taxa: int
        The number of taxa.
    random_seed: int
        An optional random seed.

    Returns
    -------
    DataFrame
        A `DataFrame` indexed by taxon labels, with a log-normally distributed `body_size` column, and a
        `feeding_guild` column of integer guild codes between 0 and 3.

    """
    np.random.seed(seed=random_seed)  # pylint: disable=no-member
    return pd.DataFrame(
        {
            "body_size": np.random.lognormal(mean=0, sigma=0.5, size=n_taxa),  # pylint: disable=no-member
            "feeding_guild": np.random.randint(0, 4, n_taxa),  # pylint: disable=no-member
        },
        index=_taxon_labels(n_taxa),
    )


def mock_trait_distances(n_taxa: int = 20, random_seed: int = 0) -> structures.DenseMatrix:
    """
    Generate a labelled matrix of body size distances scaled to the unit interval.

    Parameters
    ----------
    n_taxa: int
        The number of taxa.
    random_seed: int
        An optional random seed.

    Returns
    -------
    DenseMatrix
        A symmetric [`DenseMatrix`](/structures#densematrix) with a zero diagonal and a maximum distance of 1.

    """
    traits = mock_trait_data(n_taxa=n_taxa, random_seed=random_seed)
    dists = distance.pdist(traits[["body_size"]].to_numpy(), metric="euclidean")
    if n_taxa > 1 and dists.max() > 0:
        dists = dists / dists.max()
    return structures.DenseMatrix(distance.squareform(dists), tuple(traits.index))


def mock_community_data(
    n_communities: int = 10, n_taxa: int = 20, occupancy: float = 0.5, random_seed: int = 0
) -> pd.DataFrame:
    """
    Generate a site by taxon table of mock abundances.

    Parameters
    ----------
    n_communities: int
        The number of communities (sites).
    n_taxa: int
        The number of taxa.
    occupancy: float
        The probability of a taxon being present in a given community.
    random_seed: int
        An optional random seed.

    Returns
    -------
    DataFrame
        Integer abundances, indexed by `site_{i}` community labels with `taxon_{j}` columns. Some communities may
        contain a single taxon; none are empty.

    """
    if not 0 < occupancy <= 1:
        raise ValueError("Occupancy should be in the range (0, 1].")
    np.random.seed(seed=random_seed)  # pylint: disable=no-member
    present = np.random.random_sample((n_communities, n_taxa)) < occupancy  # pylint: disable=no-member
    # make sure that each community has at least one taxon
    for comm_idx in range(n_communities):
        if not present[comm_idx].any():
            present[comm_idx, np.random.randint(0, n_taxa)] = True  # pylint: disable=no-member
    counts = np.random.randint(1, 50, (n_communities, n_taxa))  # pylint: disable=no-member
    return pd.DataFrame(
        np.where(present, counts, 0),
        index=[f"site_{idx}" for idx in range(n_communities)],
        columns=_taxon_labels(n_taxa),
    )


def mock_species_data(
    n_communities: int = 10, n_taxa: int = 20, random_seed: int = 0
) -> Generator[tuple[npt.NDArray[np.int_], npt.NDArray[np.float64]], None, None]:
    """
    Yield the abundances of the taxa present in each mock community, with their relative abundances.

    Occupancy increases across the communities so that both sparse and well populated communities are represented.
    Used for checking Hill numbers against reference implementations.

    Parameters
    ----------
    n_communities: int
        The number of communities.
    n_taxa: int
        The number of taxa.
    random_seed: int
        An optional random seed.

    Yields
    ------
    counts: ndarray[int]
        Abundances of the taxa present in the community.
    probs: ndarray[float]
        Relative abundances of the same taxa.

    """
    for comm_idx in range(n_communities):
        occupancy = (comm_idx + 1) / n_communities
        spmat = mock_community_data(
            n_communities=1, n_taxa=n_taxa, occupancy=occupancy, random_seed=random_seed + comm_idx
        )
        row: npt.NDArray[np.int_] = spmat.to_numpy()[0]
        counts = row[row > 0]
        yield counts, counts / counts.sum()
