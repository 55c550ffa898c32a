# src/trends.py
"""
Per-group linear trends.

Rows are partitioned by (year, category); within each group an ordinary
least-squares line  y = intercept + slope * x  is fitted once and the two
coefficients are broadcast back onto every member row. Groups that cannot
support a line (too few usable rows, or no spread in x) carry <NA>
coefficients instead of a number, so consumers must handle absence
explicitly.
"""
from __future__ import annotations

from typing import Dict, Optional, Tuple

import numpy as np
import pandas as pd

from helpers import _as_float_array, _require_columns


def fit_group(x, y, min_rows: int = 2) -> Optional[Tuple[float, float]]:
    """
    OLS fit of y ~ 1 + x.

    Parameters
    ----------
    x, y : array-like
        Predictor and outcome, same length. Pairs with a non-finite member
        are ignored.
    min_rows : int
        Minimum number of usable pairs (at least 2).

    Returns
    -------
    (intercept, slope) or None
        None when fewer than `min_rows` usable pairs remain or all x are equal.
    """
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    if x.shape != y.shape:
        raise ValueError(f"x and y must have the same shape, got {x.shape} and {y.shape}")

    ok = np.isfinite(x) & np.isfinite(y)
    x, y = x[ok], y[ok]
    if x.size < max(int(min_rows), 2) or np.ptp(x) == 0.0:
        return None

    X = np.column_stack([np.ones_like(x), x])
    coef, *_ = np.linalg.lstsq(X, y, rcond=None)
    return float(coef[0]), float(coef[1])


def fit_trends(
    df: pd.DataFrame,
    x_col: str = "age",
    y_col: str = "proportion",
    group_cols=("year", "category"),
    min_rows: int = 2,
) -> pd.DataFrame:
    """
    Fit one line per group and attach the coefficients to every row.

    Adds nullable Float64 columns `intercept` and `slope`, and an int column
    `trend_n` with the number of rows that entered the group's fit (0 when
    nothing usable). `y_col` may be any per-row continuous outcome.
    """
    group_cols = list(group_cols)
    _require_columns(df, group_cols + [x_col, y_col], "aggregated observations")
    out = df.copy()

    n = len(out)
    intercept = np.full(n, np.nan)
    slope = np.full(n, np.nan)
    used = np.zeros(n, dtype="int64")

    xv = _as_float_array(out[x_col])
    yv = _as_float_array(out[y_col])

    if n:
        # group key -> positional row indices
        members = out.groupby(group_cols, dropna=False, observed=True, sort=True).indices
        for idx in members.values():
            gx, gy = xv[idx], yv[idx]
            used[idx] = int(np.sum(np.isfinite(gx) & np.isfinite(gy)))
            fit = fit_group(gx, gy, min_rows=min_rows)
            if fit is None:
                continue
            intercept[idx], slope[idx] = fit

    out["intercept"] = pd.array(intercept, dtype="Float64")
    out["slope"] = pd.array(slope, dtype="Float64")
    out["trend_n"] = used
    return out


def category_series(
    df: pd.DataFrame,
    year_col: str = "year",
    category_col: str = "category",
) -> Dict[str, pd.DataFrame]:
    """
    Per-category, year-ascending tables for plotting.

    Each table is indexed by year and holds `intercept`, `slope`,
    `proportion` (constant within a group, so the first member's value) and
    `n` (group size). Rows without a year are skipped since they cannot be
    placed on a year axis.
    """
    _require_columns(
        df, [year_col, category_col, "intercept", "slope", "proportion"],
        "fitted observations",
    )
    work = df[df[year_col].notna()]

    series: Dict[str, pd.DataFrame] = {}
    for cat, grp in work.groupby(category_col, observed=True, sort=True):
        s = (
            grp.groupby(year_col, sort=True)
               .agg(
                   intercept=("intercept", "first"),
                   slope=("slope", "first"),
                   proportion=("proportion", "first"),
                   n=("proportion", "size"),
               )
        )
        s["intercept"] = s["intercept"].astype("Float64")
        s["slope"] = s["slope"].astype("Float64")
        series[str(cat)] = s
    return series
