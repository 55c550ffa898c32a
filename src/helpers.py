# src/helpers.py
"""
General-purpose helpers shared across the pipeline.

This module centralizes reusable utilities that are agnostic to the survey
variables being analysed:
- Label-to-filename token conversion.
- Numeric coercion of columns to plain float arrays with NaN for missing.
- Required-column checks with a uniform KeyError message.

All functions are pure and side-effect free, facilitating reuse and unit
testing.

IMPORTANT: This module does not import project-specific modules to avoid
circular dependencies. Callers must supply any configuration defaults they need.
"""
from __future__ import annotations

import re
import numpy as np
import pandas as pd

# ---------------------------------------------------------------------------
# Labels and filenames
# ---------------------------------------------------------------------------

_WS = re.compile(r"\s+")


def label_token(label: str, sep: str = "-") -> str:
    """
    Turn a human-readable category label into a filename token.

    The label is lower-cased, stripped, and every run of whitespace is
    replaced with `sep`.

    Example
    -------
    label_token("Very Low Food Security") -> "very-low-food-security"

    Parameters
    ----------
    label : str
        Category label.
    sep : str
        Separator placed between words.

    Returns
    -------
    str
        Filename-safe token.
    """
    return _WS.sub(sep, str(label).strip().lower())


# ---------------------------------------------------------------------------
# Column helpers
# ---------------------------------------------------------------------------

def _require_columns(df: pd.DataFrame, cols, what: str = "input") -> None:
    """
    Raise KeyError listing every column of `cols` absent from `df`.
    """
    missing = [c for c in cols if c not in df.columns]
    if missing:
        raise KeyError(f"Missing columns in {what}: {missing}")


def _as_float_array(s: pd.Series) -> np.ndarray:
    """
    Coerce a Series (numpy or nullable dtype) to a float ndarray with NaN
    standing in for anything missing or non-numeric.
    """
    return pd.to_numeric(s, errors="coerce").astype("Float64").to_numpy(
        dtype=float, na_value=np.nan
    )
