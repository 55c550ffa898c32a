# src/aggregation.py
import numpy as np
import pandas as pd

from helpers import _require_columns


def aggregate(
    df: pd.DataFrame,
    year_col: str = "year",
    category_col: str = "category",
) -> pd.DataFrame:
    """
    Attach year and (year, category) counts to every row.

    Adds:
      - population_count: rows sharing `year_col`
      - category_count:   rows sharing `year_col` and `category_col`
      - proportion:       category_count / population_count

    Only observed (year, category) combinations are counted; nothing is
    zero-filled. Each input row maps to exactly one output row and the index
    is preserved.
    """
    _require_columns(df, [year_col, category_col], "recoded observations")
    out = df.copy()

    if out.empty:
        out["population_count"] = pd.Series(dtype="int64")
        out["category_count"] = pd.Series(dtype="int64")
        out["proportion"] = pd.Series(dtype="float64")
        return out

    ones = pd.Series(1, index=out.index, dtype="int64")
    years, cats = out[year_col], out[category_col]
    by_year = ones.groupby(years, dropna=False)
    by_pair = ones.groupby([years, cats], dropna=False, observed=True)

    out["population_count"] = by_year.transform("sum").astype("int64")
    out["category_count"] = by_pair.transform("sum").astype("int64")
    out["proportion"] = (
        out["category_count"].astype(float) / out["population_count"].astype(float)
    )
    return out


def count_table(
    df: pd.DataFrame,
    year_col: str = "year",
    category_col: str = "category",
) -> pd.DataFrame:
    """
    Distinct (year, category) table with population_count, category_count and
    proportion, sorted by year then category order.
    """
    _require_columns(df, [year_col, category_col], "recoded observations")

    pop = (
        df.groupby(year_col, dropna=False)
          .size()
          .rename("population_count")
          .reset_index()
    )
    cat = (
        df.groupby([year_col, category_col], dropna=False, observed=True)
          .size()
          .rename("category_count")
          .reset_index()
    )
    cat = cat[cat["category_count"] > 0]

    tbl = cat.merge(pop, on=year_col, how="left")
    tbl["proportion"] = np.where(
        tbl["population_count"] > 0,
        tbl["category_count"] / tbl["population_count"],
        np.nan,
    )
    return (
        tbl[[year_col, category_col, "population_count", "category_count", "proportion"]]
        .sort_values([year_col, category_col], kind="mergesort")
        .reset_index(drop=True)
    )
