"""
fieldrand/assign.py

Treatment assignment designs for field experiments.

Dependencies:
  - numpy
  - pandas

What's included:
  - Simple (Bernoulli) and complete (fixed-size) random assignment
  - Factorial designs: independent treatment indicators
  - Multi-arm designs: non-overlapping labeled groups
  - Block (stratified) and variable-probability designs
  - Cluster designs
  - Wait-list (phase-in) designs

Every function takes an explicit `seed` (int, SeedSequence or Generator);
nothing touches global random state.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, Hashable, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from .errors import InvalidArgument
from .utils import SeedLike, check_count, rng


def _logger() -> logging.Logger:
    return logging.getLogger(__name__)


# -------------------------
# Small helpers
# -------------------------

def _check_sizes(sizes: Sequence[int], n: int, name: str) -> List[int]:
    sizes = list(sizes)
    if not sizes:
        raise InvalidArgument(f"{name} must not be empty.")
    return [check_count(s, f"{name}[{i}]", 0, n) for i, s in enumerate(sizes)]

def _factorize(groups: Iterable[Hashable], name: str) -> Tuple[np.ndarray, pd.Index]:
    if not isinstance(groups, (np.ndarray, pd.Series)):
        groups = list(groups)
    codes, uniques = pd.factorize(pd.Series(groups))
    if len(codes) == 0:
        raise InvalidArgument(f"{name} must not be empty.")
    if np.any(codes < 0):
        raise InvalidArgument(f"{name} must not contain missing values.")
    return codes, pd.Index(uniques)

def _per_block(value: Union[Any, Mapping[Hashable, Any]], block: Hashable, name: str) -> Any:
    if isinstance(value, Mapping):
        if block not in value:
            raise InvalidArgument(f"{name} has no entry for block {block!r}")
        return value[block]
    return value

def _check_prob(p, name: str) -> float:
    try:
        p = float(p)
    except (TypeError, ValueError):
        raise InvalidArgument(f"{name} must be a number, got {p!r}") from None
    if not (0.0 <= p <= 1.0):
        raise InvalidArgument(f"{name} must be in [0, 1], got {p}")
    return p

def _one_of(m, prob) -> None:
    if (m is None) == (prob is None):
        raise InvalidArgument("Provide exactly one of m or prob")


# -------------------------
# Simple / complete
# -------------------------

def simple_assign(n: int, prob: float = 0.5, seed: SeedLike = None) -> np.ndarray:
    """
    Independent coin flip per unit; the number treated is itself random.
    """
    n = check_count(n, "n", 1, sys.maxsize)
    prob = _check_prob(prob, "prob")
    return (rng(seed).random(n) < prob).astype(int)

def assign(n: int, m: int, seed: SeedLike = None) -> np.ndarray:
    """
    Complete random assignment: exactly m of n units treated, drawn uniformly
    over all C(n, m) subsets.

    Returns an int vector of 0/1 of length n.
    """
    n = check_count(n, "n", 1, sys.maxsize)
    m = check_count(m, "m", 0, n)
    treated = rng(seed).choice(n, size=m, replace=False)
    z = np.zeros(n, dtype=int)
    z[treated] = 1
    return z


# -------------------------
# Factorial / multi-arm
# -------------------------

def factorial_assign(n: int, arm_sizes: Sequence[int], seed: SeedLike = None) -> np.ndarray:
    """
    Factorial design: one complete randomization per factor, drawn
    independently. A unit can receive any combination of treatments.
    Sizes are checked one at a time, so they may sum past n. For
    non-overlapping groups use `multi_arm_assign`.

    Returns an (n, k) int matrix; column j has exactly arm_sizes[j] ones.
    """
    n = check_count(n, "n", 1, sys.maxsize)
    sizes = _check_sizes(arm_sizes, n, "arm_sizes")
    gen = rng(seed)
    return np.column_stack([assign(n, m, gen) for m in sizes])

def multi_arm_assign(
    n: int,
    group_sizes: Sequence[int],
    seed: SeedLike = None,
    labels: Optional[Sequence[Hashable]] = None,
    unassigned: Hashable = 0,
) -> np.ndarray:
    """
    Partition units into non-overlapping groups.

    Group 1 is drawn uniformly from all n units, group 2 uniformly from the
    units left over, and so on. Group i is labeled i + 1 unless `labels` is
    given; units left in no group carry `unassigned`.
    """
    n = check_count(n, "n", 1, sys.maxsize)
    sizes = _check_sizes(group_sizes, n, "group_sizes")
    if sum(sizes) > n:
        raise InvalidArgument(f"group_sizes sum to {sum(sizes)}, more than n={n}")

    if labels is None:
        labels = list(range(1, len(sizes) + 1))
    else:
        labels = list(labels)
        if len(labels) != len(sizes):
            raise InvalidArgument(f"Got {len(labels)} labels for {len(sizes)} groups.")
    if len(set(labels)) != len(labels) or unassigned in labels:
        raise InvalidArgument("labels must be distinct and differ from `unassigned`.")

    integer_labels = all(isinstance(v, (int, np.integer)) for v in [*labels, unassigned])
    out = np.full(n, unassigned, dtype=int if integer_labels else object)

    gen = rng(seed)
    remaining = np.arange(n)
    for label, size in zip(labels, sizes):
        chosen = gen.choice(remaining, size=size, replace=False)
        out[chosen] = label
        remaining = np.setdiff1d(remaining, chosen, assume_unique=True)
    return out


# -------------------------
# Block / variable probability
# -------------------------

def _block_plan(blocks, m, prob) -> Tuple[np.ndarray, pd.Index, List[float]]:
    """Per-block target: an int count (m) or a probability (prob)."""
    _one_of(m, prob)
    codes, uniques = _factorize(blocks, "blocks")
    plan: List[float] = []
    for k, block in enumerate(uniques):
        n_b = int(np.sum(codes == k))
        if m is not None:
            plan.append(check_count(_per_block(m, block, "m"), f"m[{block!r}]", 0, n_b))
        else:
            plan.append(_check_prob(_per_block(prob, block, "prob"), f"prob[{block!r}]"))
    return codes, uniques, plan

def block_assign(
    blocks: Iterable[Hashable],
    m: Union[None, int, Mapping[Hashable, int]] = None,
    prob: Union[None, float, Mapping[Hashable, float]] = None,
    seed: SeedLike = None,
) -> np.ndarray:
    """
    Complete randomization carried out separately within each block.

    Exactly one of:
      - m:    treated count, one int for every block or a {block: count} mapping
      - prob: treatment probability, one float or a {block: prob} mapping

    With `prob`, a block of size N treats floor(N*p) units plus one more with
    probability equal to the remainder, so every unit is treated with
    probability exactly p.
    """
    codes, uniques, plan = _block_plan(blocks, m, prob)
    gen = rng(seed)
    z = np.zeros(len(codes), dtype=int)

    for k, target in enumerate(plan):
        idx = np.flatnonzero(codes == k)
        if m is not None:
            m_b = int(target)
        else:
            expected = len(idx) * target
            m_b = int(np.floor(expected))
            if gen.random() < expected - m_b:
                m_b += 1
            m_b = min(m_b, len(idx))
        z[idx] = assign(len(idx), m_b, gen)

    _logger().debug("block_assign: %d units in %d blocks, %d treated",
                    len(z), len(uniques), int(z.sum()))
    return z

def block_probabilities(
    blocks: Iterable[Hashable],
    m: Union[None, int, Mapping[Hashable, int]] = None,
    prob: Union[None, float, Mapping[Hashable, float]] = None,
) -> np.ndarray:
    """
    Per-unit treatment probability of the matching `block_assign` design.
    """
    codes, _, plan = _block_plan(blocks, m, prob)
    p = np.empty(len(codes), dtype=float)
    for k, target in enumerate(plan):
        mask = codes == k
        p[mask] = target / mask.sum() if m is not None else target
    return p


# -------------------------
# Cluster
# -------------------------

def cluster_assign(clusters: Iterable[Hashable], m: int, seed: SeedLike = None) -> np.ndarray:
    """
    Treat m whole clusters, chosen by complete randomization over the distinct
    cluster ids. Units inherit their cluster's condition.
    """
    codes, uniques = _factorize(clusters, "clusters")
    m = check_count(m, "m", 0, len(uniques))
    z_cluster = assign(len(uniques), m, seed)
    return z_cluster[codes]


# -------------------------
# Wait-list
# -------------------------

def waitlist_assign(n: int, wave_sizes: Sequence[int], seed: SeedLike = None) -> np.ndarray:
    """
    Wait-list (phase-in) design: every unit is eventually treated, and the
    randomization decides in which wave. Wave sizes must cover all n units.

    Returns wave numbers 1..k.
    """
    n = check_count(n, "n", 1, sys.maxsize)
    sizes = _check_sizes(wave_sizes, n, "wave_sizes")
    if sum(sizes) != n:
        raise InvalidArgument(f"wave_sizes must sum to n={n}, got {sum(sizes)}")
    return multi_arm_assign(n, sizes, seed)

def treated_in_period(waves: Iterable[int], period: int) -> np.ndarray:
    """
    0/1 indicator of units phased in by `period` (wave <= period).
    """
    period = check_count(period, "period", 0, sys.maxsize)
    w = np.asarray(waves if isinstance(waves, np.ndarray) else list(waves), dtype=int)
    return (w <= period).astype(int)
