"""
fieldrand/sanity.py

Sanity checks for randomized designs:
  - treated counts (did the draw treat exactly m units?)
  - assignment tables per condition and block
  - covariate balance between conditions
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Hashable, Iterable, List, Optional, Sequence

import numpy as np
import pandas as pd
from scipy import stats

from .errors import InvalidArgument
from .utils import as_binary, check_same_length


# -------------------------
# Assignment counts
# -------------------------

def check_assignment_size(z: Iterable[int], m: int) -> None:
    z = as_binary(z)
    n_t = int(z.sum())
    if n_t != m:
        raise InvalidArgument(f"Expected {m} treated units, got {n_t}")

def assignment_counts(z: Iterable[Hashable],
                      blocks: Optional[Iterable[Hashable]] = None) -> pd.DataFrame:
    """
    Units per condition, or a block x condition table when `blocks` is given.
    """
    zs = pd.Series(np.asarray(z if isinstance(z, np.ndarray) else list(z)), name="condition")
    if blocks is None:
        return zs.value_counts().sort_index().rename("units").to_frame()
    bs = pd.Series(np.asarray(blocks if isinstance(blocks, np.ndarray) else list(blocks)), name="block")
    check_same_length(z=zs, blocks=bs)
    return pd.crosstab(bs, zs)


# -------------------------
# Balance checks
# -------------------------

def standardized_mean_diff(x_control: np.ndarray, x_treat: np.ndarray) -> float:
    """
    (mean_t - mean_c) / sqrt((var_c + var_t) / 2), using sample variances.
    Zero when both arms are constant.
    """
    x_control = np.asarray(x_control, dtype=float)
    x_treat = np.asarray(x_treat, dtype=float)
    mc, mt = np.mean(x_control), np.mean(x_treat)
    sc, st = np.std(x_control, ddof=1), np.std(x_treat, ddof=1)
    pooled = np.sqrt((sc**2 + st**2) / 2.0)
    if pooled == 0:
        return 0.0
    return float((mt - mc) / pooled)

@dataclass(frozen=True)
class BalanceRow:
    covariate: str
    n_control: int
    n_treat: int
    control_mean: float
    treat_mean: float
    abs_diff: float
    smd: float
    p_value: float

def balance_report(covariates: pd.DataFrame,
                   z: Iterable[int],
                   columns: Optional[Sequence[str]] = None) -> List[BalanceRow]:
    """
    For numeric covariates, reports mean diff, SMD, and Welch t-test p-value
    between units with z == 0 and z == 1. Missing covariate values are left
    out, so n_control / n_treat count the units actually compared.
    """
    z = as_binary(z)
    if len(z) != len(covariates):
        raise InvalidArgument(f"z has {len(z)} entries, covariates has {len(covariates)} rows")
    columns = list(covariates.columns) if columns is None else list(columns)

    rows: List[BalanceRow] = []
    for col in columns:
        x = covariates[col].to_numpy(dtype=float)
        xc = x[z == 0]
        xt = x[z == 1]
        xc = xc[~np.isnan(xc)]
        xt = xt[~np.isnan(xt)]

        if len(xc) < 2 or len(xt) < 2:
            p = np.nan
        else:
            p = float(stats.ttest_ind(xt, xc, equal_var=False).pvalue)

        mc = float(np.mean(xc)) if len(xc) else np.nan
        mt = float(np.mean(xt)) if len(xt) else np.nan
        smd = standardized_mean_diff(xc, xt) if len(xc) > 1 and len(xt) > 1 else np.nan

        rows.append(BalanceRow(
            covariate=str(col),
            n_control=len(xc),
            n_treat=len(xt),
            control_mean=mc,
            treat_mean=mt,
            abs_diff=(mt - mc) if np.isfinite(mc) and np.isfinite(mt) else np.nan,
            smd=smd,
            p_value=p,
        ))
    return rows
