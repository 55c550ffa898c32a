# ------------------------------------------------------------------------------
# Food-security trend pipeline (single pass, batch).
# - Reads the survey extract named in config.yaml (paths.data_file).
# - Recodes the household food-security code (1-4) into labelled categories;
#   rows without a valid code are dropped.
# - Attaches per-year and per-(year, category) counts and proportions.
# - Fits one OLS line of the configured outcome on age per (year, category)
#   and broadcasts intercept/slope back onto each row.
# - Writes two charts per category into figures_dir:
#     * <slope subdir>/slope_<category-token>.<fmt>
#     * <proportion subdir>/proportion_<category-token>.<fmt>
# - Nothing else is persisted; re-running overwrites the same files.
# ------------------------------------------------------------------------------


from __future__ import annotations
import os
import pandas as pd

from data_loaders import _load_config, load_survey
from recoding import recode_frame, recode_summary, UNDEFINED
from aggregation import aggregate, count_table
from trends import fit_trends, category_series
from figures_static import export_category_figures

# ------------------------------- Config loading -------------------------------
ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
CONFIG_PATH = os.path.join(ROOT_DIR, "config.yaml")


def run_pipeline(cfg: dict, paths: dict, survey: pd.DataFrame | None = None) -> dict:
    """
    Run recode -> aggregate -> fit -> export once.

    `survey` may be passed to skip reading paths["data_file"]; it must already
    carry the canonical 'year', 'raw_code', 'age' columns.

    Returns a summary dict with row/group counts and the written figure paths.
    """
    verbose = bool(cfg.get("diagnostics", {}).get("verbose", True))
    tcfg = cfg.get("trends", {})
    predictor = tcfg.get("predictor", "age")
    outcome = tcfg.get("outcome", "proportion")
    min_rows = int(tcfg.get("min_rows", 2))

    if survey is None:
        survey = load_survey(paths["data_file"], cfg["columns"])
        print(f"[data] Loaded {len(survey)} rows from {paths['data_file']}")

    if verbose:
        summary = recode_summary(survey)
        print("[recode] " + ", ".join(f"{k}: {int(v)}" for k, v in summary.items()))
    recoded = recode_frame(survey)
    n_dropped = len(survey) - len(recoded)
    if n_dropped:
        print(f"[recode] Dropped {n_dropped} rows with '{UNDEFINED}' food-security status.")

    aggregated = aggregate(recoded)
    if verbose:
        tbl = count_table(recoded)
        print(f"[aggregate] {tbl['year'].nunique()} years, {len(tbl)} (year, category) groups.")

    fitted = fit_trends(aggregated, x_col=predictor, y_col=outcome, min_rows=min_rows)
    groups = fitted.groupby(["year", "category"], dropna=False, observed=True)["slope"].first()
    n_fitted = int(groups.notna().sum())
    if n_fitted < len(groups):
        print(f"[trends] {len(groups) - n_fitted} of {len(groups)} groups have no trend "
              f"(fewer than {min_rows} rows or no spread in {predictor}).")

    series = category_series(fitted)
    figures = export_category_figures(series, paths["figures_dir"], cfg.get("figures"))
    print(f"[output] {2 * len(figures)} figures saved in {paths['figures_dir']}")

    return {
        "n_input": int(len(survey)),
        "n_recoded": int(len(recoded)),
        "n_groups": int(len(groups)),
        "n_fitted": n_fitted,
        "figures": figures,
    }


def main():
    cfg, paths = _load_config(ROOT_DIR, CONFIG_PATH)
    return run_pipeline(cfg, paths)


if __name__ == "__main__":
    main()
