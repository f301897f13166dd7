# pyright: basic
from __future__ import annotations

import numpy as np
import pytest
from scipy.stats import entropy, gmean, hmean

from traitdiv import config
from traitdiv.algos import diversity
from traitdiv.tools import mock


def test_hill_diversity():
    # test hill diversity against scipy entropy
    for counts, probs in mock.mock_species_data():
        # check hill q=1 - this can be tested against scipy because hill q=1 is exponential of entropy
        assert np.allclose(
            diversity.hill_diversity(counts, q=1),
            np.exp(entropy(probs)),
            atol=config.ATOL,
            rtol=config.RTOL,
        )
        # check that hill q<1 and q>1 is reasonably close to scipy entropy
        # (different internal computation)
        assert np.allclose(
            diversity.hill_diversity(counts, 0.99999999),
            np.exp(entropy(probs)),
            atol=config.ATOL,
            rtol=config.RTOL,
        )
        assert np.allclose(
            diversity.hill_diversity(counts, 1.00000001),
            np.exp(entropy(probs)),
            atol=config.ATOL,
            rtol=config.RTOL,
        )
        # q=0 is a count of unique classes and q=2 is inverse simpson
        assert np.isclose(diversity.hill_diversity(counts, 0.0), len(counts))
        assert np.allclose(
            diversity.hill_diversity(counts, 2.0),
            1 / np.sum(probs**2),
            atol=config.ATOL,
            rtol=config.RTOL,
        )
        # check for malformed q
        with pytest.raises(ValueError):
            diversity.hill_diversity(counts, q=-1)
    # empty
    assert diversity.hill_diversity(np.zeros(3), 2.0) == 0


def test_raos_quadratic_entropy(trait_matrix):
    weights = np.array([0.5, 0.3, 0.2])
    assert np.isclose(diversity.raos_quadratic_entropy(weights, trait_matrix), weights @ trait_matrix @ weights)
    assert np.isclose(diversity.raos_quadratic_entropy(weights, trait_matrix), 0.292)
    # a single taxon has no dispersion
    assert diversity.raos_quadratic_entropy(np.array([0.0, 1.0, 0.0]), trait_matrix) == 0
    # check for malformed signatures
    with pytest.raises(ValueError):
        diversity.raos_quadratic_entropy(weights[:-1], trait_matrix)


def test_functional_entropy(trait_matrix):
    weights = np.array([0.5, 0.3, 0.2])
    agg_m = diversity.raos_quadratic_entropy(weights, trait_matrix)
    f_ij = np.outer(weights, weights) * trait_matrix / agg_m
    # vanishing dispersion
    for q in [0.0, 1.0, 2.0]:
        assert diversity.functional_entropy(weights, np.zeros((3, 3)), np.float64(0), q) == 0
    # q=0 is a count of the pairs with non-zero weighted distances
    assert diversity.functional_entropy(weights, trait_matrix, agg_m, 0.0) == 6
    part_wts = np.array([0.5, 0.5, 0.0])
    part_m = diversity.raos_quadratic_entropy(part_wts, trait_matrix)
    assert diversity.functional_entropy(part_wts, trait_matrix, part_m, 0.0) == 2
    # q=1 is the exponential of the entropy of fij
    nonzero = f_ij[f_ij > 0]
    assert np.isclose(
        diversity.functional_entropy(weights, trait_matrix, agg_m, 1.0),
        np.exp(-np.sum(nonzero * np.log(nonzero))),
    )
    assert np.isclose(
        diversity.functional_entropy(weights, trait_matrix, agg_m, 1.0),
        np.exp(entropy(f_ij.flatten())),
    )
    # otherwise generalised form
    for q in [0.5, 2.0, 3.0]:
        assert np.isclose(
            diversity.functional_entropy(weights, trait_matrix, agg_m, q),
            np.sum(nonzero**q) ** (1 / (1 - q)),
        )
    # the limit converges from either side
    q_ht_lim = diversity.functional_entropy(weights, trait_matrix, agg_m, 1.0)
    for q in [0.9999999, 1.0000001]:
        assert np.allclose(
            diversity.functional_entropy(weights, trait_matrix, agg_m, q),
            q_ht_lim,
            atol=config.ATOL,
            rtol=config.RTOL,
        )


def test_functional_trait_diversity(trait_matrix):
    weights = np.array([0.5, 0.3, 0.2])
    n_sp, agg_m, agg_m_prime, q_ht, q_dt, q_dtm, q_et = diversity.functional_trait_diversity(
        trait_matrix, weights, 2.0
    )
    # independently computed reference values
    tdmat_abund = np.diag(weights) @ trait_matrix @ np.diag(weights)
    ref_m = tdmat_abund.sum()
    ref_q_ht = 1 / np.sum((tdmat_abund / ref_m) ** 2)
    ref_q_dt = (1 + np.sqrt(1 + 4 * ref_q_ht)) / 2
    assert n_sp == 3
    assert abs(agg_m - 0.292) < 1e-6
    assert abs(agg_m - ref_m) < 1e-6
    assert abs(agg_m_prime - 0.292 * 3 / 2) < 1e-6
    assert abs(q_ht - 0.292**2 / (2 * (0.03**2 + 0.08**2 + 0.036**2))) < 1e-6
    assert abs(q_ht - ref_q_ht) < 1e-6
    assert abs(q_dt - ref_q_dt) < 1e-6
    assert abs(q_dtm - (1 + ref_q_dt * ref_m)) < 1e-6
    assert abs(q_et - ref_q_dt / 3) < 1e-6
    # qDT is the positive root of qHt = qDT * (qDT - 1)
    assert abs(q_dt * (q_dt - 1) - q_ht) < 1e-6
    # weights are forced to sum to unity
    assert np.allclose(
        diversity.functional_trait_diversity(trait_matrix, weights * 10, 2.0),
        (n_sp, agg_m, agg_m_prime, q_ht, q_dt, q_dtm, q_et),
    )
    # single species communities
    for q in [0.0, 1.0, 2.0, 3.0]:
        n_sp, agg_m, agg_m_prime, q_ht, q_dt, q_dtm, q_et = diversity.functional_trait_diversity(
            trait_matrix, np.array([0.0, 1.0, 0.0]), q
        )
        assert n_sp == 1
        assert agg_m == 0
        assert agg_m_prime == 0
        assert q_ht == 0
        assert q_dt == 1
        assert q_dtm == 1
        assert q_et == 1
    # empty communities
    n_sp, agg_m, agg_m_prime, q_ht, q_dt, q_dtm, q_et = diversity.functional_trait_diversity(
        trait_matrix, np.zeros(3), 2.0
    )
    assert n_sp == 0
    assert agg_m == 0
    assert agg_m_prime == 0
    assert q_ht == 0
    assert np.isnan(q_dt) and np.isnan(q_dtm) and np.isnan(q_et)
    # check for malformed signatures
    with pytest.raises(ValueError):
        diversity.functional_trait_diversity(trait_matrix, weights[:-1], 2.0)


def test_functional_trait_diversity_communities(trait_matrix):
    spmat = np.array(
        [
            [0.5, 0.5, 0.0],
            [0.0, 0.0, 1.0],
            [5.0, 3.0, 2.0],
            [0.0, 0.0, 0.0],
        ]
    )
    for q in [0.0, 1.0, 2.0]:
        ftd_data = diversity.functional_trait_diversity_communities(trait_matrix, spmat, q)
        assert ftd_data.shape == (4, 7)
        for comm_idx in range(3):
            assert np.allclose(
                ftd_data[comm_idx],
                diversity.functional_trait_diversity(trait_matrix, spmat[comm_idx], q),
            )
        # the empty community is retained
        assert ftd_data[3, 0] == 0
        assert np.isnan(ftd_data[3, 4])
    # check for malformed signatures
    with pytest.raises(ValueError):
        diversity.functional_trait_diversity_communities(trait_matrix, spmat[:, :-1], 2.0)


def test_generalised_mean():
    vals = np.array([1.0, 2.0, 2.5, 4.0])
    # q=1 is the geometric mean
    assert np.isclose(diversity.generalised_mean(vals, 1.0), gmean(vals))
    assert np.isclose(diversity.generalised_mean(vals, 1.0), np.prod(vals) ** (1 / len(vals)))
    # q=2 is the harmonic mean
    assert np.isclose(diversity.generalised_mean(vals, 2.0), hmean(vals))
    assert np.isclose(diversity.generalised_mean(vals, 2.0), np.mean(vals**-1) ** -1)
    # q=0 is the arithmetic mean
    assert np.isclose(diversity.generalised_mean(vals, 0.0), np.mean(vals))
    # the limit converges from either side
    for q in [0.9999999, 1.0000001]:
        assert np.allclose(
            diversity.generalised_mean(vals, q),
            gmean(vals),
            atol=config.ATOL,
            rtol=config.RTOL,
        )
    # identical values
    assert np.isclose(diversity.generalised_mean(np.full(5, 3.0), 3.0), 3.0)
    # nan propagates
    assert np.isnan(diversity.generalised_mean(np.array([1.0, np.nan]), 2.0))
    assert np.isnan(diversity.generalised_mean(np.array([], dtype=np.float64), 2.0))
