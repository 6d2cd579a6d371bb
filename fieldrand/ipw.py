"""
fieldrand/ipw.py

Effect estimation when units are assigned with unequal probabilities.

Dependencies:
  - numpy

What's included:
  - Naive difference in means
  - Inverse-probability weights and the IPW (Hajek) difference in means
  - Simulation-estimated assignment probabilities for designs without a
    closed form
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, Tuple

import numpy as np

from .errors import InvalidArgument
from .utils import SeedLike, as_1d_float, as_binary, check_count, check_same_length, rng


# -------------------------
# Small helpers
# -------------------------

def _check_probabilities(p: np.ndarray) -> None:
    if np.any(np.isnan(p)):
        raise InvalidArgument("p must not contain NaN.")
    bad = (p <= 0.0) | (p >= 1.0)
    if np.any(bad):
        idx = np.flatnonzero(bad)
        raise InvalidArgument(
            f"p must lie strictly in (0,1); {len(idx)} unit(s) violate this "
            f"(first at position {int(idx[0])}, p={p[idx[0]]}). "
            "Exclude them before estimating."
        )

def _check_arms(z: np.ndarray) -> None:
    n_t = int(z.sum())
    if n_t == 0 or n_t == len(z):
        raise InvalidArgument("Need at least one treated and one control unit.")

def _prepare(y, z, p) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    y = as_1d_float(y, "y")
    z = as_binary(z, "z")
    p = as_1d_float(p, "p")
    check_same_length(y=y, z=z, p=p)
    _check_probabilities(p)
    _check_arms(z)
    return y, z, p


# -------------------------
# Estimators
# -------------------------

def diff_in_means(y: Iterable[float], z: Iterable[int]) -> float:
    """
    mean(Y | Z=1) - mean(Y | Z=0)
    """
    y = as_1d_float(y, "y")
    z = as_binary(z, "z")
    check_same_length(y=y, z=z)
    _check_arms(z)
    return float(np.mean(y[z == 1]) - np.mean(y[z == 0]))

def ipw_weights(z: Iterable[int], p: Iterable[float]) -> np.ndarray:
    """
    1/p for treated units, 1/(1-p) for control units.
    """
    z = as_binary(z, "z")
    p = as_1d_float(p, "p")
    check_same_length(z=z, p=p)
    _check_probabilities(p)
    return np.where(z == 1, 1.0 / p, 1.0 / (1.0 - p))

def ipw_estimate(y: Iterable[float], z: Iterable[int], p: Iterable[float]) -> float:
    """
    Weighted mean of Y among treated (weights 1/p) minus weighted mean of Y
    among controls (weights 1/(1-p)).

    Units with p of 0 or 1 carry no information about one of the two
    potential outcomes; they are rejected, not dropped. Use `interior_mask`
    to exclude them first.
    """
    return ipw_effect(y, z, p).estimate


@dataclass(frozen=True)
class IPWResult:
    estimate: float
    naive: float
    mean_treat: float
    mean_control: float
    n_treat: int
    n_control: int
    method: str

def ipw_effect(y: Iterable[float], z: Iterable[int], p: Iterable[float]) -> IPWResult:
    """
    IPW estimate alongside the unweighted difference for comparison.
    """
    y, z, p = _prepare(y, z, p)
    w = np.where(z == 1, 1.0 / p, 1.0 / (1.0 - p))
    t, c = z == 1, z == 0

    mean_t = float(np.sum(w[t] * y[t]) / np.sum(w[t]))
    mean_c = float(np.sum(w[c] * y[c]) / np.sum(w[c]))

    return IPWResult(
        estimate=mean_t - mean_c,
        naive=float(np.mean(y[t]) - np.mean(y[c])),
        mean_treat=mean_t,
        mean_control=mean_c,
        n_treat=int(t.sum()),
        n_control=int(c.sum()),
        method="IPW difference in weighted means (weights 1/p, 1/(1-p))",
    )


# -------------------------
# Assignment probabilities
# -------------------------

def simulated_probabilities(
    assign_fn: Callable[[np.random.Generator], np.ndarray],
    n_sims: int = 1000,
    seed: SeedLike = None,
) -> np.ndarray:
    """
    Estimate each unit's treatment probability by re-running the design.

    `assign_fn(rng)` must return a 0/1 vector, e.g.
      simulated_probabilities(lambda g: block_assign(blocks, m=2, seed=g))

    Units estimated at exactly 0 or 1 were never (or always) treated in the
    simulations; see `interior_mask`.
    """
    n_sims = check_count(n_sims, "n_sims", 1, np.iinfo(np.int64).max)
    gen = rng(seed)

    total = as_binary(assign_fn(gen), "assignment").astype(float)
    for _ in range(n_sims - 1):
        z = as_binary(assign_fn(gen), "assignment")
        if len(z) != len(total):
            raise InvalidArgument("assign_fn returned vectors of different lengths.")
        total += z
    return total / n_sims

def interior_mask(p: Iterable[float]) -> np.ndarray:
    """
    True where 0 < p < 1, i.e. units usable in IPW estimation.
    """
    p = as_1d_float(p, "p")
    return (p > 0.0) & (p < 1.0)
