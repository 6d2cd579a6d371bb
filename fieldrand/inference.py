"""
fieldrand/inference.py

Randomization inference: compare an observed test statistic with its
distribution over re-randomizations of the same design.

Dependencies:
  - numpy
  - scipy

What's included:
  - Monte Carlo randomization inference for any design (pass its assignment
    function)
  - Exact enumeration for small complete-randomization designs
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Literal

import numpy as np
from scipy.special import comb

from .errors import InvalidArgument
from .ipw import diff_in_means
from .utils import SeedLike, as_1d_float, check_count, check_same_length, rng

Statistic = Callable[[np.ndarray, np.ndarray], float]
Alternative = Literal["greater", "less", "two-sided"]

_ALTERNATIVES = ("greater", "less", "two-sided")


def _logger() -> logging.Logger:
    return logging.getLogger(__name__)


@dataclass(frozen=True)
class RandomizationInferenceResult:
    observed: float
    p_value: float
    n_iter: int
    null_distribution: np.ndarray
    alternative: str
    method: str


def _p_value(null: np.ndarray, observed: float, alternative: str) -> float:
    # ties count toward the null
    if alternative == "greater":
        hits = null >= observed
    elif alternative == "less":
        hits = null <= observed
    else:
        hits = np.abs(null) >= abs(observed)
    return float(np.mean(hits))

def _draw(assign_fn, gen: np.random.Generator, shape) -> np.ndarray:
    z_i = np.asarray(assign_fn(gen))
    if z_i.shape != shape:
        raise InvalidArgument(f"assign_fn returned shape {z_i.shape}, expected {shape}")
    return z_i

def _check_alternative(alternative: str) -> None:
    if alternative not in _ALTERNATIVES:
        raise InvalidArgument(f"alternative must be one of {_ALTERNATIVES}, got {alternative!r}")


def randomization_inference(
    y: Iterable[float],
    z: Iterable,
    assign_fn: Callable[[np.random.Generator], np.ndarray],
    n_iter: int = 1000,
    statistic: Statistic = diff_in_means,
    seed: SeedLike = None,
    alternative: Alternative = "greater",
    max_redraws: int = 1000,
) -> RandomizationInferenceResult:
    """
    Monte Carlo randomization inference.

    t0 = statistic(y, z); for K = n_iter draws z_i = assign_fn(rng) compute
    t_i = statistic(y, z_i), then p = #{t_i >= t0} / K.

    `assign_fn` must reproduce the original design exactly (same treated
    count, same blocks, same clusters); otherwise the p-value is invalid.

    For binary designs whose treated count varies (e.g. `simple_assign`), a
    draw with an empty arm is discarded and drawn again, so the null
    distribution is conditional on both arms being non-empty. More than
    `max_redraws` such draws in a row raises `InvalidArgument`.

    For complete randomization:
      randomization_inference(y, z, functools.partial(assign, 100, 34))
    """
    y = as_1d_float(y, "y")
    z = np.asarray(z if isinstance(z, np.ndarray) else list(z))
    check_same_length(y=y, z=z)
    n_iter = check_count(n_iter, "n_iter", 1, np.iinfo(np.int64).max)
    _check_alternative(alternative)

    if n_iter < 100:
        _logger().warning("n_iter=%d gives a p-value resolution of only 1/%d", n_iter, n_iter)

    observed = float(statistic(y, z))
    gen = rng(seed)
    binary = np.isin(z, (0, 1)).all()
    n_treated = int(np.sum(z == 1)) if binary else None

    null = np.empty(n_iter, dtype=float)
    mismatched = 0
    redrawn = 0
    for i in range(n_iter):
        z_i = _draw(assign_fn, gen, z.shape)
        if binary:
            # an empty arm leaves the contrast undefined; draw again
            attempts = 0
            while z_i.sum() in (0, len(z_i)):
                attempts += 1
                if attempts > max_redraws:
                    raise InvalidArgument(
                        f"assign_fn produced {attempts} assignments in a row with an empty arm"
                    )
                z_i = _draw(assign_fn, gen, z.shape)
            redrawn += attempts
        if binary and int(np.sum(z_i == 1)) != n_treated:
            mismatched += 1
        null[i] = statistic(y, z_i)

    if redrawn:
        _logger().debug("randomization_inference: redrew %d assignments with an empty arm", redrawn)
    if mismatched:
        _logger().warning(
            "%d of %d re-assignments treat a different number of units than "
            "the observed assignment (%d); check that assign_fn matches the design",
            mismatched, n_iter, n_treated,
        )

    p = _p_value(null, observed, alternative)
    _logger().debug("randomization_inference: t0=%.6g, p=%.4f over %d draws", observed, p, n_iter)

    return RandomizationInferenceResult(
        observed=observed,
        p_value=p,
        n_iter=n_iter,
        null_distribution=null,
        alternative=alternative,
        method="Monte Carlo randomization inference",
    )


def exact_randomization_inference(
    y: Iterable[float],
    z: Iterable[int],
    statistic: Statistic = diff_in_means,
    alternative: Alternative = "greater",
    max_assignments: int = 100_000,
) -> RandomizationInferenceResult:
    """
    Exact p-value for complete randomization: enumerate every assignment with
    the observed number of treated units.

    Only feasible for small designs; C(n, m) must not exceed `max_assignments`.
    """
    y = as_1d_float(y, "y")
    z = np.asarray(z if isinstance(z, np.ndarray) else list(z))
    if not np.isin(z, (0, 1)).all():
        raise InvalidArgument("z must contain only 0/1 values.")
    z = z.astype(int)
    n = check_same_length(y=y, z=z)
    _check_alternative(alternative)

    m = int(z.sum())
    total = int(comb(n, m, exact=True))
    if total > max_assignments:
        raise InvalidArgument(
            f"C({n}, {m}) = {total} assignments exceeds max_assignments={max_assignments}; "
            "use randomization_inference instead"
        )

    observed = float(statistic(y, z))
    null = np.empty(total, dtype=float)
    z_i = np.zeros(n, dtype=int)
    for i, treated in enumerate(itertools.combinations(range(n), m)):
        z_i[:] = 0
        z_i[list(treated)] = 1
        null[i] = statistic(y, z_i)

    return RandomizationInferenceResult(
        observed=observed,
        p_value=_p_value(null, observed, alternative),
        n_iter=total,
        null_distribution=null,
        alternative=alternative,
        method="Exact randomization inference (all assignments enumerated)",
    )
