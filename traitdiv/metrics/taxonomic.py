"""
Taxonomic diversity and community-level trait summaries.

These methods operate directly on site by taxon abundance tables and do not require trait distances. They cover the
taxonomic richness and evenness measures, as well as community weighted means of a numeric trait, e.g. body size or a
numerically coded feeding guild.
"""
from __future__ import annotations

import logging

import numpy as np
import numpy.typing as npt
import pandas as pd
from tqdm import tqdm

from traitdiv import config, structures, tdtypes
from traitdiv.algos import diversity

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def presence_absence(spmat: tdtypes.AbundanceType) -> pd.DataFrame:
    """
    Reduce abundances to presence (1) or absence (0).

    Parameters
    ----------
    spmat
        A site by taxon abundance matrix.

    Returns
    -------
    DataFrame
        Integer presence / absence data with the same index and columns.

    """
    spmat_df = structures.prepare_communities(spmat)[0]
    return (spmat_df > 0).astype(np.int_)


def species_richness(spmat: tdtypes.AbundanceType) -> pd.Series:
    """Count the number of taxa present in each community."""
    return presence_absence(spmat).sum(axis=1).rename("richness")


def hill_numbers(spmat: tdtypes.AbundanceType, q: tdtypes.QType = 2) -> pd.Series:
    r"""
    Compute Hill numbers for each community.

    $$q\geq{0},\ q\neq{1} \ \big(\sum_{i}^{S}p_{i}^q\big)^{1/(1-q)} \qquad lim_{q\to1} \ exp\big(-\sum_{i}^{S}\ p_{i}\
    log\ p_{i}\big)$$

    $q = 0$ gives richness, $q = 1$ the exponential of Shannon entropy, and $q = 2$ the inverse Simpson index.
    Communities without any taxa return zero.

    Parameters
    ----------
    spmat
        A site by taxon abundance matrix. Abundances need not sum to unity.
    q
        The order of diversity. Must be non-negative.

    Returns
    -------
    Series
        Hill numbers indexed by community.

    """
    spmat_df = structures.prepare_communities(spmat)[0]
    _q = structures.prepare_q(q)
    if not config.QUIET_MODE:
        logger.info(f"Computing Hill numbers for {len(spmat_df)} communities at q={float(_q)}.")
    spmat_arr = np.ascontiguousarray(spmat_df.to_numpy(dtype=np.float64))
    hills: npt.NDArray[np.float64] = np.full(spmat_arr.shape[0], np.nan, dtype=np.float64)
    for comm_idx in tqdm(range(spmat_arr.shape[0]), disable=config.QUIET_MODE):
        hills[comm_idx] = diversity.hill_diversity(spmat_arr[comm_idx], _q)
    return pd.Series(hills, index=spmat_df.index, name="hill")


def hill_evenness(spmat: tdtypes.AbundanceType, q: tdtypes.QType = 2) -> pd.DataFrame:
    """
    Compute evenness as the Hill number of order `q` divided by species richness.

    With the default of `q=2`, this is the inverse Simpson index divided by richness. Evenness is `NaN` for communities
    without taxa.

    Returns
    -------
    DataFrame
        Columns `richness`, `hill`, and `evenness`, indexed by community.

    """
    richness = species_richness(spmat)
    hills = hill_numbers(spmat, q=q)
    with np.errstate(divide="ignore", invalid="ignore"):
        evenness = hills.where(richness > 0) / richness.where(richness > 0)
    return pd.DataFrame({"richness": richness, "hill": hills, "evenness": evenness})


def community_weighted_mean(traits: tdtypes.TraitsType, spmat: tdtypes.AbundanceType) -> pd.Series:
    """
    Compute the community weighted mean of a numeric trait.

    Each community's mean is the sum of taxon trait values weighted by the taxon's relative abundance in that
    community.

    Parameters
    ----------
    traits
        Numeric trait values per taxon. If a `Series` is provided together with a `DataFrame` of abundances, the
        trait values are matched to the abundance columns by label. Otherwise traits are taken in column order.
    spmat
        A site by taxon abundance matrix.

    Returns
    -------
    Series
        Community weighted means indexed by community. `NaN` for communities without taxa.

    """
    spmat_df = structures.prepare_communities(spmat)[0]
    if isinstance(traits, pd.DataFrame):
        if traits.shape[1] != 1:
            raise structures.InvalidInputKind("Please provide a single trait column.")
        traits = traits.iloc[:, 0]
    if isinstance(traits, pd.Series) and isinstance(spmat, pd.DataFrame):
        trait_lu = {str(key): val for key, val in traits.items()}
        missing = [str(col) for col in spmat_df.columns if str(col) not in trait_lu]
        if missing:
            raise structures.TaxonAlignmentError(f"No trait values for taxa: {', '.join(missing)}.")
        trait_vals = np.array([trait_lu[str(col)] for col in spmat_df.columns], dtype=np.float64)
    else:
        trait_vals = np.asarray(traits, dtype=np.float64)
        if trait_vals.ndim != 1 or len(trait_vals) != spmat_df.shape[1]:
            raise structures.InvalidInputKind("Mismatching number of trait values and taxa.")
    if not np.all(np.isfinite(trait_vals)):
        raise structures.InvalidInputKind("Trait values must be finite.")
    spmat_arr = spmat_df.to_numpy(dtype=np.float64)
    row_sums = spmat_arr.sum(axis=1)
    with np.errstate(divide="ignore", invalid="ignore"):
        cwm = (spmat_arr @ trait_vals) / row_sums
    cwm[row_sums == 0] = np.nan
    return pd.Series(cwm, index=spmat_df.index, name="cwm")
