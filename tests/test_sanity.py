# tests/test_sanity.py
import numpy as np
import pandas as pd
import pytest

from fieldrand.assign import assign, block_assign
from fieldrand.errors import InvalidArgument
from fieldrand.sanity import (
    check_assignment_size,
    assignment_counts,
    standardized_mean_diff,
    balance_report,
)


def test_check_assignment_size():
    z = assign(20, 7, seed=0)
    check_assignment_size(z, 7)
    with pytest.raises(InvalidArgument):
        check_assignment_size(z, 8)


def test_assignment_counts_overall():
    z = assign(10, 4, seed=1)
    table = assignment_counts(z)
    assert table.loc[0, "units"] == 6
    assert table.loc[1, "units"] == 4


def test_assignment_counts_by_block():
    blocks = np.array(["a"] * 6 + ["b"] * 4)
    z = block_assign(blocks, m={"a": 3, "b": 1}, seed=2)
    table = assignment_counts(z, blocks)
    assert table.loc["a", 1] == 3
    assert table.loc["a", 0] == 3
    assert table.loc["b", 1] == 1
    assert table.loc["b", 0] == 3


def test_standardized_mean_diff_zero_variance():
    assert standardized_mean_diff(np.ones(5), np.ones(5)) == 0.0


def test_balance_report_random_assignment_is_balanced():
    rng = np.random.default_rng(0)
    n = 400
    covariates = pd.DataFrame({
        "age": rng.normal(30, 5, n),
        "income": rng.lognormal(3, 0.5, n),
    })
    z = assign(n, n // 2, seed=3)

    rows = balance_report(covariates, z)
    assert [r.covariate for r in rows] == ["age", "income"]
    for r in rows:
        assert abs(r.smd) < 0.25  # loose threshold for randomness
        assert 0.0 <= r.p_value <= 1.0


def test_balance_report_flags_imbalance():
    z = np.array([0] * 50 + [1] * 50)
    covariates = pd.DataFrame({"x": np.arange(100, dtype=float)})
    (row,) = balance_report(covariates, z)
    assert row.abs_diff == pytest.approx(50.0)
    assert row.smd > 1.0
    assert row.p_value < 1e-6


def test_balance_report_length_mismatch():
    with pytest.raises(InvalidArgument):
        balance_report(pd.DataFrame({"x": [1.0, 2.0]}), [0, 1, 1])


def test_balance_report_counts_skip_missing_values():
    z = np.array([0, 0, 0, 1, 1, 1])
    covariates = pd.DataFrame({"x": [1.0, np.nan, 3.0, 4.0, 5.0, 6.0]})
    (row,) = balance_report(covariates, z)
    assert (row.n_control, row.n_treat) == (2, 3)
    assert row.control_mean == pytest.approx(2.0)
