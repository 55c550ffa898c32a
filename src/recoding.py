# src/recoding.py
import numpy as np
import pandas as pd

from helpers import _require_columns

UNDEFINED = "undefined"

FOOD_SECURITY_LABELS = {
    1: "full food security",
    2: "marginal food security",
    3: "low food security",
    4: "very low food security",
}

# Increasing severity
CATEGORY_ORDER = [FOOD_SECURITY_LABELS[k] for k in sorted(FOOD_SECURITY_LABELS)]


def recode(raw_code) -> str:
    """
    Map a household food-security code to its label.

    Codes 1-4 map to the four USDA food-security levels. Anything else
    (missing, out of range, non-integral, non-numeric) maps to UNDEFINED.
    Integral floats such as 2.0 are accepted, since an integer column with
    missing values is read back as float.
    """
    if raw_code is None or isinstance(raw_code, (bool, np.bool_)):
        return UNDEFINED
    try:
        code = float(raw_code)
    except (TypeError, ValueError, OverflowError):
        return UNDEFINED
    if not np.isfinite(code) or not code.is_integer():
        return UNDEFINED
    return FOOD_SECURITY_LABELS.get(int(code), UNDEFINED)


def recode_frame(
    df: pd.DataFrame,
    code_col: str = "raw_code",
    category_col: str = "category",
    drop_undefined: bool = True,
) -> pd.DataFrame:
    """
    Attach a labelled food-security category to every row.

    Parameters
    ----------
    df : pd.DataFrame
        Observation table holding `code_col`.
    code_col : str
        Column with the raw 1-4 code.
    category_col : str
        Name of the column to create.
    drop_undefined : bool
        If True (default), rows whose code does not map to a label are removed.
        Rows with a missing code are always undefined and therefore dropped too.

    Returns
    -------
    pd.DataFrame
        New frame; `category_col` is an ordered Categorical in CATEGORY_ORDER
        (with UNDEFINED appended when undefined rows are kept). The original
        index labels are preserved for surviving rows.
    """
    _require_columns(df, [code_col], "observations")
    out = df.copy()
    labels = out[code_col].astype(object).map(recode)

    categories = list(CATEGORY_ORDER)
    if drop_undefined:
        keep = labels != UNDEFINED
        out = out.loc[keep].copy()
        labels = labels.loc[keep]
    else:
        categories.append(UNDEFINED)

    out[category_col] = pd.Categorical(labels, categories=categories, ordered=True)
    return out


def recode_summary(df: pd.DataFrame, code_col: str = "raw_code") -> pd.Series:
    """
    Row counts per label, UNDEFINED included, in severity order.
    """
    _require_columns(df, [code_col], "observations")
    labels = df[code_col].astype(object).map(recode)
    return labels.value_counts().reindex(CATEGORY_ORDER + [UNDEFINED], fill_value=0)
