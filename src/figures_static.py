import os
import matplotlib.pyplot as plt
import seaborn as sns
from tqdm import tqdm

from helpers import label_token

FIGURE_KINDS = ("slope", "proportion")

DEFAULT_FIGURES_CFG = {
    "format": "png",
    "dpi": 150,
    "separator": "-",
    "slope": {"subdir": "slope_by_year", "template": "slope_{token}"},
    "proportion": {"subdir": "proportion_by_year", "template": "proportion_{token}"},
}

LINE_COLOR = "#345995"
POINT_COLOR = "#B80C09"


def _figures_cfg(cfg):
    out = {k: (dict(v) if isinstance(v, dict) else v) for k, v in DEFAULT_FIGURES_CFG.items()}
    for k, v in (cfg or {}).items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k].update(v)
        else:
            out[k] = v
    return out


def figure_path(output_dir, kind, label, cfg=None):
    """
    <output_dir>/<subdir>/<template>.<format> for a chart kind and category.
    """
    if kind not in FIGURE_KINDS:
        raise ValueError(f"Unknown figure kind: {kind!r}; expected one of {FIGURE_KINDS}")
    fc = _figures_cfg(cfg)
    token = label_token(label, sep=fc["separator"])
    fname = f"{fc[kind]['template'].format(token=token)}.{fc['format']}"
    return os.path.join(output_dir, fc[kind]["subdir"], fname)


def _style_axis(ax, label, ylabel):
    ax.set_xlabel('Survey year')
    ax.set_ylabel(ylabel)
    ax.set_title(label.capitalize(), loc='left', fontweight='bold', fontsize=13)
    ax.grid(which='major', linestyle='--', alpha=0.2)
    sns.despine(ax=ax)


def plot_slope_by_year(series, label, fig_path, dpi=150):
    """
    Line chart of the fitted slope against survey year, one point per year
    with a defined fit.
    """
    s = series["slope"].dropna().sort_index()
    fig, ax = plt.subplots(figsize=(7, 4))
    try:
        if s.empty:
            ax.text(0.5, 0.5, 'No year with a defined trend', ha='center', va='center',
                    transform=ax.transAxes, color='grey')
        else:
            ax.plot(s.index.astype(float), s.to_numpy(dtype=float), color=LINE_COLOR,
                    marker='o', linewidth=2, alpha=0.8)
            ax.axhline(0.0, color='k', linewidth=0.8, alpha=0.4)
        _style_axis(ax, label, 'Slope (per year of age)')
        plt.tight_layout()
        fig.savefig(fig_path, dpi=dpi, bbox_inches='tight')
    finally:
        plt.close(fig)
    return fig_path


def plot_proportion_by_year(series, label, fig_path, dpi=150):
    """
    Scatter of the category's share of respondents against survey year.
    """
    s = series["proportion"].dropna().sort_index()
    fig, ax = plt.subplots(figsize=(7, 4))
    try:
        ax.scatter(s.index.astype(float), s.to_numpy(dtype=float), color=POINT_COLOR,
                   s=40, edgecolor='k', alpha=0.8)
        ax.set_ylim(0.0, min(1.0, float(s.max()) * 1.15) if not s.empty else 1.0)
        _style_axis(ax, label, 'Proportion of respondents')
        plt.tight_layout()
        fig.savefig(fig_path, dpi=dpi, bbox_inches='tight')
    finally:
        plt.close(fig)
    return fig_path


_PLOTTERS = {
    "slope": plot_slope_by_year,
    "proportion": plot_proportion_by_year,
}


def export_category_figures(series_by_category, output_dir, cfg=None, categories=None):
    """
    Write the slope-by-year and proportion-by-year charts for each category.

    Existing files with the same name are overwritten. Errors while writing
    propagate; charts already written for earlier categories are left in place.

    Returns
    -------
    dict
        {category: {kind: path}} for every file written.
    """
    fc = _figures_cfg(cfg)
    if categories is None:
        categories = list(series_by_category)
    missing = [c for c in categories if c not in series_by_category]
    if missing:
        raise KeyError(f"No series for categories: {missing}")

    for kind in FIGURE_KINDS:
        os.makedirs(os.path.join(output_dir, fc[kind]["subdir"]), exist_ok=True)

    written = {}
    for cat in tqdm(categories, desc="Exporting figures", unit="category"):
        written[cat] = {}
        for kind in FIGURE_KINDS:
            path = figure_path(output_dir, kind, cat, fc)
            _PLOTTERS[kind](series_by_category[cat], cat, path, dpi=int(fc["dpi"]))
            written[cat][kind] = path
    return written
