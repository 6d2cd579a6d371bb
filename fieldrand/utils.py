"""
fieldrand/utils.py

Utility functions used across the package:
  - Input coercion and validation
  - Reproducibility helpers
  - Keyed views (unit identifier -> value)
"""

from __future__ import annotations

from typing import Hashable, Iterable, Optional, Sequence, Union

import numpy as np
import pandas as pd

from .errors import InvalidArgument

SeedLike = Union[None, int, np.random.SeedSequence, np.random.Generator]


# -------------------------
# Validation / coercion
# -------------------------

def as_1d_float(x: Iterable[float], name: str = "input") -> np.ndarray:
    arr = np.asarray(x if isinstance(x, (np.ndarray, pd.Series)) else list(x), dtype=float)
    if arr.ndim != 1:
        raise InvalidArgument(f"{name} must be 1D.")
    return arr

def as_binary(z: Iterable[int], name: str = "z") -> np.ndarray:
    arr = np.asarray(z if isinstance(z, (np.ndarray, pd.Series)) else list(z))
    if arr.ndim != 1:
        raise InvalidArgument(f"{name} must be 1D.")
    if not np.isin(arr, (0, 1)).all():
        raise InvalidArgument(f"{name} must contain only 0/1 values.")
    return arr.astype(int)

def check_count(value, name: str, lo: int, hi: int) -> int:
    """
    Integer check for counts such as n, m or a group size: lo <= value <= hi.
    """
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise InvalidArgument(f"{name} must be an integer, got {value!r}")
    if not (lo <= value <= hi):
        raise InvalidArgument(f"{name} must be in [{lo}, {hi}], got {value}")
    return int(value)

def check_same_length(**arrays: np.ndarray) -> int:
    lengths = {k: len(v) for k, v in arrays.items()}
    if len(set(lengths.values())) > 1:
        raise InvalidArgument(f"Length mismatch: {lengths}")
    return next(iter(lengths.values()), 0)


# -------------------------
# Reproducibility
# -------------------------

def rng(seed: SeedLike = None) -> np.random.Generator:
    """
    Normalize a seed into a Generator. A Generator passes through unchanged,
    so one stream can be threaded through several draws.
    """
    return np.random.default_rng(seed)


# -------------------------
# Keyed views
# -------------------------

def keyed(values: Iterable, units: Optional[Sequence[Hashable]] = None,
          name: Optional[str] = None) -> pd.Series:
    """
    View an assignment, probability or outcome vector as a mapping from unit
    identifier to value.

    Example:
      z = keyed(assign(4, 2, seed=1), units=["a", "b", "c", "d"], name="z")
      z["c"]
    """
    arr = np.asarray(values if isinstance(values, np.ndarray) else list(values))
    if units is None:
        units = range(len(arr))
    units = list(units)
    if len(units) != len(arr):
        raise InvalidArgument(f"Got {len(units)} unit ids for {len(arr)} values.")
    if len(set(units)) != len(units):
        raise InvalidArgument("Unit ids must be unique.")
    return pd.Series(arr, index=pd.Index(units, name="unit"), name=name)
