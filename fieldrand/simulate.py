from __future__ import annotations
from typing import Iterable, Optional

import numpy as np
import pandas as pd

from .errors import InvalidArgument
from .utils import SeedLike, as_1d_float, as_binary, check_same_length, rng


def potential_outcomes(
    n: int,
    effect: float,
    seed: SeedLike = None,
    noise_sd: float = 1.0,
    baseline: Optional[Iterable[float]] = None,
) -> pd.DataFrame:
    """
    Return a unit-level dataframe with:
    unit_id, y0, y1 (= y0 + effect)

    y0 is `baseline` when given, otherwise N(0, noise_sd) draws.
    A constant effect makes the true ATE known exactly.
    """
    if n < 1:
        raise InvalidArgument("n must be >= 1")
    if baseline is None:
        if noise_sd < 0:
            raise InvalidArgument("noise_sd must be >= 0")
        y0 = rng(seed).normal(0.0, noise_sd, size=n)
    else:
        y0 = as_1d_float(baseline, "baseline")
        if len(y0) != n:
            raise InvalidArgument(f"baseline has {len(y0)} values, expected {n}")

    return pd.DataFrame({
        "unit_id": np.arange(1, n + 1),
        "y0": y0,
        "y1": y0 + effect,
    })

def reveal_outcomes(y0: Iterable[float], y1: Iterable[float], z: Iterable[int]) -> np.ndarray:
    """Observed outcome: y1 where treated, y0 otherwise."""
    y0 = as_1d_float(y0, "y0")
    y1 = as_1d_float(y1, "y1")
    z = as_binary(z)
    check_same_length(y0=y0, y1=y1, z=z)
    return np.where(z == 1, y1, y0)

def graded_probabilities(n: int, low: float = 0.25, high: float = 0.75) -> np.ndarray:
    """
    p_i = low + (high - low) * i / n for i = 1..n.
    Paired with a baseline increasing in i, treatment probability and outcome
    are correlated and the naive difference in means is biased upward.
    """
    if n < 1:
        raise InvalidArgument("n must be >= 1")
    if not (0 < low < high < 1):
        raise InvalidArgument("Need 0 < low < high < 1")
    i = np.arange(1, n + 1)
    return low + (high - low) * i / n
