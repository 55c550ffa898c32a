# src/data_loaders.py
import os
import yaml
import pyreadr
import pandas as pd


# Canonical field names used throughout the pipeline
FIELDS = ("year", "raw_code", "age")


def return_default_config():
    """
    Returns the default configuration dictionary
    """
    return {
        "paths": {
            "data_file": "./data/nhanes.csv",
            "figures_dir": "./figures",
        },
        "columns": {
            "year": "SDDSRVYR",
            "raw_code": "FSDHH",
            "age": "RIDAGEYR",
        },
        "trends": {
            "predictor": "age",
            "outcome": "proportion",
            "min_rows": 2,
        },
        "figures": {
            "format": "png",
            "dpi": 150,
            "separator": "-",
            "slope": {"subdir": "slope_by_year", "template": "slope_{token}"},
            "proportion": {"subdir": "proportion_by_year", "template": "proportion_{token}"},
        },
        "diagnostics": {"verbose": True},
    }

def _resolve(ROOT_DIR, p):
    """
    Resolve path p relative to ROOT_DIR if not absolute.
    """
    return os.path.abspath(os.path.join(ROOT_DIR, p))

def _deep_merge(dst, src):
    """
    Recursively merge src into dst
    """
    for k, v in src.items():
        if isinstance(v, dict) and isinstance(dst.get(k), dict):
            _deep_merge(dst[k], v)
        else:
            dst[k] = v

def _load_config(ROOT_DIR: str, path: str):
    """
    Load YAML config if present; otherwise use defaults for both config and paths.
    Returns (cfg, PATHS)
    """
    cfg = return_default_config()
    if os.path.exists(path):
        with open(path, "r", encoding="utf-8") as fh:
            user = yaml.safe_load(fh) or {}
        _deep_merge(cfg, user)
    else:
        print(f"[config] No config file at {path}; using built-in defaults.")

    PATHS = {
        "data_file": _resolve(ROOT_DIR, cfg["paths"]["data_file"]),
        "figures_dir": _resolve(ROOT_DIR, cfg["paths"]["figures_dir"]),
    }
    return cfg, PATHS

# ------------------------------- survey input --------------------------------

def read_rds_file(file_path: str) -> pd.DataFrame:
    """
    Reads an RDS file and returns its contents as a pandas DataFrame.
    """
    try:
        result = pyreadr.read_r(file_path)
        return result[None]
    except Exception as e:
        raise RuntimeError(f"Failed to read {file_path}: {e}")

def read_survey_file(file_path: str) -> pd.DataFrame:
    """
    Read the raw survey extract. Supported formats: .csv and .rds.
    """
    if not os.path.exists(file_path):
        raise FileNotFoundError(f"File not found: {file_path}")
    ext = os.path.splitext(file_path)[1].lower()
    if ext == ".csv":
        return pd.read_csv(file_path)
    if ext == ".rds":
        return read_rds_file(file_path)
    raise ValueError(f"Unsupported survey file format {ext!r} for {file_path}")

def select_fields(raw: pd.DataFrame, columns: dict) -> pd.DataFrame:
    """
    Keep the configured source columns and rename them to the canonical
    field names ('year', 'raw_code', 'age').

    Args:
        raw (pd.DataFrame): Survey extract as read from disk.
        columns (dict): Mapping canonical field -> source column name.

    Returns:
        pd.DataFrame: Frame with exactly the columns in FIELDS, index preserved.

    Raises:
        KeyError: If a field has no configured source column, or the source
            column is not in `raw`.
    """
    unknown = [f for f in FIELDS if f not in columns]
    if unknown:
        raise KeyError(f"No source column configured for fields: {unknown}")
    missing = [columns[f] for f in FIELDS if columns[f] not in raw.columns]
    if missing:
        raise KeyError(f"Missing columns in survey data: {missing}")

    df = raw[[columns[f] for f in FIELDS]].copy()
    df.columns = list(FIELDS)
    df["year"] = pd.to_numeric(df["year"], errors="coerce").astype("Int64")
    df["age"] = pd.to_numeric(df["age"], errors="coerce")
    return df

def load_survey(file_path: str, columns: dict) -> pd.DataFrame:
    """
    Loads the survey file and returns the Observation table
    (one row per respondent with year, raw_code, age).
    """
    return select_fields(read_survey_file(file_path), columns)
