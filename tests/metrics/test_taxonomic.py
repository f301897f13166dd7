# pyright: basic
from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from traitdiv import config, structures
from traitdiv.metrics import taxonomic
from traitdiv.tools import mock


def test_presence_absence(community_frame):
    pres = taxonomic.presence_absence(community_frame)
    assert pres.to_numpy().tolist() == [[1, 1, 0], [0, 0, 1], [1, 1, 1]]
    assert list(pres.index) == list(community_frame.index)
    assert list(pres.columns) == list(community_frame.columns)
    # arrays
    pres = taxonomic.presence_absence(community_frame.to_numpy() * 0.5)
    assert pres.to_numpy().tolist() == [[1, 1, 0], [0, 0, 1], [1, 1, 1]]
    with pytest.raises(structures.InvalidInputKind):
        taxonomic.presence_absence(community_frame * -1)


def test_species_richness(community_frame):
    richness = taxonomic.species_richness(community_frame)
    assert richness.name == "richness"
    assert richness.to_dict() == {"lake_a": 2, "lake_b": 1, "lake_c": 3}
    spmat = mock.mock_community_data()
    assert np.all(taxonomic.species_richness(spmat) == (spmat > 0).sum(axis=1))


def test_hill_numbers(community_frame):
    # q=0 is richness
    hills = taxonomic.hill_numbers(community_frame, q=0)
    assert hills.name == "hill"
    assert np.allclose(hills, taxonomic.species_richness(community_frame))
    # q=2 is inverse simpson
    hills = taxonomic.hill_numbers(community_frame, q=2)
    for comm_key, row in community_frame.iterrows():
        probs = row.to_numpy() / row.sum()
        assert np.allclose(hills[comm_key], 1 / np.sum(probs**2), atol=config.ATOL, rtol=config.RTOL)
    assert np.isclose(hills["lake_a"], 1.8)
    # q=1 is the exponential of shannon entropy
    hills = taxonomic.hill_numbers(community_frame, q=1)
    assert np.isclose(hills["lake_a"], np.exp(-(2 / 3 * np.log(2 / 3) + 1 / 3 * np.log(1 / 3))))
    # single taxa
    assert np.isclose(hills["lake_b"], 1)
    # empty communities
    hills = taxonomic.hill_numbers(pd.DataFrame([[0, 0], [1, 1]]), q=2)
    assert hills[0] == 0
    assert np.isclose(hills[1], 2)
    # malformed q
    with pytest.raises(ValueError):
        taxonomic.hill_numbers(community_frame, q=-1)
    for bad_q in [True, "2", None]:
        with pytest.raises(ValueError):
            taxonomic.hill_numbers(community_frame, q=bad_q)
        with pytest.raises(ValueError):
            taxonomic.hill_evenness(community_frame, q=bad_q)
    # mock communities, padded with absent taxa
    species_data = list(mock.mock_species_data(n_communities=5, n_taxa=12))
    spmat = np.zeros((len(species_data), 12), dtype=np.int_)
    for comm_idx, (counts, _) in enumerate(species_data):
        spmat[comm_idx, : len(counts)] = counts
    for q in [0, 1, 2]:
        hills = taxonomic.hill_numbers(spmat, q=q)
        for comm_idx, (_, probs) in enumerate(species_data):
            if q == 1:
                expected = np.exp(-np.sum(probs * np.log(probs)))
            else:
                expected = np.sum(probs**q) ** (1 / (1 - q))
            assert np.allclose(hills[comm_idx], expected, atol=config.ATOL, rtol=config.RTOL)


def test_hill_evenness(community_frame):
    even = taxonomic.hill_evenness(community_frame, q=2)
    assert list(even.columns) == ["richness", "hill", "evenness"]
    assert np.isclose(even.at["lake_a", "evenness"], 0.9)
    assert np.isclose(even.at["lake_b", "evenness"], 1)
    assert np.all(even.evenness <= 1 + config.ZERO_TOL)
    # undefined for empty communities
    even = taxonomic.hill_evenness(pd.DataFrame([[0, 0], [1, 1]]))
    assert np.isnan(even.evenness[0])
    assert np.isclose(even.evenness[1], 1)


def test_community_weighted_mean(community_frame):
    sizes = pd.Series({"daphnia": 1.0, "bosmina": 0.5, "cyclops": 2.0}, name="body_size")
    cwm = taxonomic.community_weighted_mean(sizes, community_frame)
    assert cwm.name == "cwm"
    assert np.allclose(cwm.to_numpy(), [5 / 6, 2.0, 1.05])
    # traits are matched by label
    cwm_shuffled = taxonomic.community_weighted_mean(sizes[["cyclops", "daphnia", "bosmina"]], community_frame)
    assert np.allclose(cwm_shuffled.to_numpy(), cwm.to_numpy())
    # single column frames
    cwm_frame = taxonomic.community_weighted_mean(sizes.to_frame(), community_frame)
    assert np.allclose(cwm_frame.to_numpy(), cwm.to_numpy())
    # arrays are taken in column order
    cwm_arr = taxonomic.community_weighted_mean(np.array([1.0, 0.5, 2.0]), community_frame.to_numpy())
    assert np.allclose(cwm_arr.to_numpy(), cwm.to_numpy())
    # empty communities
    cwm_empty = taxonomic.community_weighted_mean(np.array([1.0, 2.0]), np.array([[0, 0], [1, 3]]))
    assert np.isnan(cwm_empty[0])
    assert np.isclose(cwm_empty[1], 1.75)
    # malformed traits
    with pytest.raises(structures.TaxonAlignmentError):
        taxonomic.community_weighted_mean(sizes[["daphnia", "bosmina"]], community_frame)
    with pytest.raises(structures.InvalidInputKind):
        taxonomic.community_weighted_mean(np.array([1.0, 0.5]), community_frame)
    with pytest.raises(structures.InvalidInputKind):
        taxonomic.community_weighted_mean(pd.DataFrame({"a": [1, 2, 3], "b": [1, 2, 3]}), community_frame)
    with pytest.raises(structures.InvalidInputKind):
        taxonomic.community_weighted_mean(np.array([1.0, np.nan, 2.0]), community_frame)
