# tests/test_inference.py
import logging
from functools import partial

import numpy as np
import pytest

from fieldrand.assign import assign, block_assign, simple_assign
from fieldrand.errors import InvalidArgument
from fieldrand.inference import randomization_inference, exact_randomization_inference
from fieldrand.ipw import diff_in_means


def test_p_value_in_unit_interval_and_reproducible():
    rng = np.random.default_rng(0)
    y = rng.normal(size=40)
    z = assign(40, 20, seed=1)

    res1 = randomization_inference(y, z, partial(assign, 40, 20), n_iter=500, seed=5)
    res2 = randomization_inference(y, z, partial(assign, 40, 20), n_iter=500, seed=5)
    assert 0.0 <= res1.p_value <= 1.0
    assert res1.p_value == res2.p_value
    assert res1.observed == pytest.approx(diff_in_means(y, z))
    assert len(res1.null_distribution) == 500


def test_detects_large_effect():
    rng = np.random.default_rng(1)
    z = assign(60, 30, seed=2)
    y = rng.normal(size=60) + 2.0 * z

    res = randomization_inference(y, z, partial(assign, 60, 30), n_iter=1000, seed=3)
    assert res.p_value < 0.01


def test_p_values_roughly_uniform_under_null():
    rng = np.random.default_rng(10)
    design = partial(assign, 30, 15)
    pvals = []
    for _ in range(200):
        y = rng.normal(size=30)
        z = design(rng)
        pvals.append(randomization_inference(y, z, design, n_iter=200, seed=rng).p_value)
    pvals = np.array(pvals)

    assert np.all((pvals >= 0) & (pvals <= 1))
    assert pvals.mean() == pytest.approx(0.5, abs=0.08)
    assert np.mean(pvals <= 0.05) < 0.12
    assert np.mean(pvals <= 0.5) == pytest.approx(0.5, abs=0.12)


def test_ties_count_toward_null():
    # constant outcome: every statistic equals the observed one
    y = np.ones(10)
    z = assign(10, 5, seed=0)
    res = randomization_inference(y, z, partial(assign, 10, 5), n_iter=50, seed=0)
    assert res.p_value == 1.0


def test_alternatives():
    rng = np.random.default_rng(4)
    z = assign(50, 25, seed=4)
    y = rng.normal(size=50) - 1.5 * z
    design = partial(assign, 50, 25)

    greater = randomization_inference(y, z, design, n_iter=400, seed=1)
    less = randomization_inference(y, z, design, n_iter=400, seed=1, alternative="less")
    two = randomization_inference(y, z, design, n_iter=400, seed=1, alternative="two-sided")
    assert greater.p_value > 0.9
    assert less.p_value < 0.05
    assert two.p_value < 0.05


def test_custom_statistic_with_blocked_design():
    blocks = np.repeat(["a", "b", "c"], 10)
    z = block_assign(blocks, m=5, seed=0)
    y = np.where(blocks == "c", 10.0, 0.0)  # no treatment effect

    def mean_treated(y, z):
        return float(np.mean(y[z == 1]))

    res = randomization_inference(
        y, z, lambda g: block_assign(blocks, m=5, seed=g),
        n_iter=300, statistic=mean_treated, seed=2,
    )
    # every blocked draw treats 5 units per block, so the statistic is constant
    assert res.p_value == 1.0
    assert np.allclose(res.null_distribution, res.observed)


def test_validation():
    y = np.arange(6, dtype=float)
    z = assign(6, 3, seed=0)
    design = partial(assign, 6, 3)
    with pytest.raises(InvalidArgument):
        randomization_inference(y, z, design, n_iter=0)
    with pytest.raises(InvalidArgument):
        randomization_inference(y[:5], z, design)
    with pytest.raises(InvalidArgument):
        randomization_inference(y, z, design, alternative="bigger")
    with pytest.raises(InvalidArgument):
        randomization_inference(y, z, partial(assign, 7, 3), n_iter=10)


def test_warns_on_mismatched_design(caplog):
    y = np.arange(10, dtype=float)
    z = assign(10, 5, seed=0)
    with caplog.at_level(logging.WARNING, logger="fieldrand.inference"):
        randomization_inference(y, z, partial(assign, 10, 3), n_iter=100, seed=0)
    assert "different number of units" in caplog.text


def test_exact_inference_hand_count():
    # C(4, 2) = 6 assignments; diffs are [-2, -1, 0, 0, 1, 2]
    y = np.array([0.0, 1.0, 2.0, 3.0])
    z = np.array([0, 0, 1, 1])
    res = exact_randomization_inference(y, z)
    assert res.n_iter == 6
    assert res.observed == pytest.approx(2.0)
    assert res.p_value == pytest.approx(1 / 6)
    assert sorted(res.null_distribution.tolist()) == pytest.approx([-2, -1, 0, 0, 1, 2])
    two = exact_randomization_inference(y, z, alternative="two-sided")
    assert two.p_value == pytest.approx(2 / 6)


def test_exact_inference_refuses_large_designs():
    y = np.zeros(40)
    z = assign(40, 20, seed=0)
    with pytest.raises(InvalidArgument):
        exact_randomization_inference(y, z, max_assignments=1000)


def test_bernoulli_design_redraws_empty_arms():
    # with n=6 a coin-flip design treats nobody (or everybody) ~3% of the time
    y = np.arange(6, dtype=float)
    z = np.array([0, 1, 0, 1, 0, 1])
    res = randomization_inference(y, z, partial(simple_assign, 6, 0.5), n_iter=1000, seed=0)
    assert 0.0 <= res.p_value <= 1.0
    assert np.all(np.isfinite(res.null_distribution))


def test_design_that_never_has_two_arms_is_rejected():
    y = np.arange(4, dtype=float)
    z = np.array([0, 0, 1, 1])
    with pytest.raises(InvalidArgument):
        randomization_inference(y, z, lambda g: np.ones(4, dtype=int), n_iter=10, max_redraws=5)
