# tests/test_figures_static.py
import os
import sys
import tempfile
import pytest
import numpy as np
import pandas as pd
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from unittest.mock import patch

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from figures_static import (
    FIGURE_KINDS,
    figure_path,
    plot_slope_by_year,
    plot_proportion_by_year,
    export_category_figures,
)


@pytest.fixture
def temp_dir():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


def _series(slopes, proportions, years):
    return pd.DataFrame({
        'intercept': pd.array([None if s is None else 0.1 for s in slopes], dtype="Float64"),
        'slope': pd.array(slopes, dtype="Float64"),
        'proportion': proportions,
        'n': [10] * len(years),
    }, index=pd.Index(years, name='year'))


@pytest.fixture
def series_by_category():
    return {
        'full food security': _series([0.001, -0.002, 0.0], [0.8, 0.78, 0.75], [2005, 2007, 2009]),
        'very low food security': _series([None, 0.003, None], [0.04, 0.05, 0.06], [2005, 2007, 2009]),
    }


class TestFigurePath:
    """Test figure_path function"""

    def test_slope_path(self):
        path = figure_path('/out', 'slope', 'Full Food Security')
        assert path == os.path.join('/out', 'slope_by_year', 'slope_full-food-security.png')

    def test_proportion_path(self):
        path = figure_path('/out', 'proportion', 'very low food security')
        assert path == os.path.join('/out', 'proportion_by_year', 'proportion_very-low-food-security.png')

    def test_config_overrides(self):
        cfg = {'format': 'pdf', 'separator': '_', 'slope': {'subdir': 'slopes'}}
        path = figure_path('/out', 'slope', 'low food security', cfg)
        assert path == os.path.join('/out', 'slopes', 'slope_low_food_security.pdf')

    def test_unknown_kind(self):
        with pytest.raises(ValueError, match="Unknown figure kind"):
            figure_path('/out', 'histogram', 'low food security')

    def test_deterministic(self):
        assert figure_path('/out', 'slope', 'Low Food Security') == figure_path('/out', 'slope', 'low food security')


class TestPlotters:
    """Test the individual chart writers"""

    def test_slope_plot_written(self, temp_dir, series_by_category):
        path = os.path.join(temp_dir, 'slope.png')
        plot_slope_by_year(series_by_category['full food security'], 'full food security', path)
        assert os.path.getsize(path) > 0

    def test_slope_plot_uses_only_fitted_years(self, temp_dir, series_by_category):
        path = os.path.join(temp_dir, 'slope.png')
        with patch('matplotlib.axes.Axes.plot') as mock_plot:
            plot_slope_by_year(series_by_category['very low food security'], 'very low food security', path)
        x, y = mock_plot.call_args[0][:2]
        np.testing.assert_array_equal(np.asarray(x), [2007.0])
        np.testing.assert_allclose(np.asarray(y), [0.003])

    def test_slope_plot_without_any_fit(self, temp_dir):
        s = _series([None, None], [0.2, 0.3], [2005, 2007])
        path = os.path.join(temp_dir, 'slope.png')
        plot_slope_by_year(s, 'low food security', path)
        assert os.path.exists(path)

    def test_slope_plot_sorted_by_year(self, temp_dir):
        s = _series([0.3, 0.1, 0.2], [0.2, 0.3, 0.4], [2009, 2005, 2007])
        path = os.path.join(temp_dir, 'slope.png')
        with patch('matplotlib.axes.Axes.plot') as mock_plot:
            plot_slope_by_year(s, 'low food security', path)
        x, y = mock_plot.call_args[0][:2]
        np.testing.assert_array_equal(np.asarray(x), [2005.0, 2007.0, 2009.0])
        np.testing.assert_allclose(np.asarray(y), [0.1, 0.2, 0.3])

    def test_proportion_plot_one_point_per_year(self, temp_dir, series_by_category):
        path = os.path.join(temp_dir, 'prop.png')
        with patch('matplotlib.axes.Axes.scatter') as mock_scatter:
            plot_proportion_by_year(series_by_category['very low food security'], 'very low food security', path)
        x, y = mock_scatter.call_args[0][:2]
        np.testing.assert_array_equal(np.asarray(x), [2005.0, 2007.0, 2009.0])
        np.testing.assert_allclose(np.asarray(y), [0.04, 0.05, 0.06])

    def test_figures_are_closed(self, temp_dir, series_by_category):
        before = len(plt.get_fignums())
        plot_proportion_by_year(series_by_category['full food security'], 'full food security',
                                os.path.join(temp_dir, 'p.png'))
        assert len(plt.get_fignums()) == before

    def test_figure_closed_on_write_error(self, series_by_category):
        before = len(plt.get_fignums())
        with pytest.raises(OSError):
            plot_slope_by_year(series_by_category['full food security'], 'full food security',
                               '/nonexistent/dir/slope.png')
        assert len(plt.get_fignums()) == before


class TestExportCategoryFigures:
    """Test export_category_figures function"""

    def test_writes_two_files_per_category(self, temp_dir, series_by_category):
        written = export_category_figures(series_by_category, temp_dir)
        assert set(written) == set(series_by_category)
        for cat, paths in written.items():
            assert set(paths) == set(FIGURE_KINDS)
            for kind, path in paths.items():
                assert path == figure_path(temp_dir, kind, cat)
                assert os.path.exists(path)

    def test_creates_subdirectories(self, temp_dir, series_by_category):
        out = os.path.join(temp_dir, 'nested', 'figures')
        export_category_figures(series_by_category, out)
        assert os.path.isdir(os.path.join(out, 'slope_by_year'))
        assert os.path.isdir(os.path.join(out, 'proportion_by_year'))

    def test_rerun_overwrites_without_duplicates(self, temp_dir, series_by_category):
        first = export_category_figures(series_by_category, temp_dir)
        listing = sorted(os.listdir(os.path.join(temp_dir, 'slope_by_year')))
        second = export_category_figures(series_by_category, temp_dir)
        assert first == second
        assert sorted(os.listdir(os.path.join(temp_dir, 'slope_by_year'))) == listing
        assert len(listing) == 2

    def test_subset_of_categories(self, temp_dir, series_by_category):
        written = export_category_figures(series_by_category, temp_dir,
                                          categories=['very low food security'])
        assert list(written) == ['very low food security']
        assert os.listdir(os.path.join(temp_dir, 'proportion_by_year')) == [
            'proportion_very-low-food-security.png'
        ]

    def test_unknown_category_raises_before_writing(self, temp_dir, series_by_category):
        with pytest.raises(KeyError, match="marginal"):
            export_category_figures(series_by_category, temp_dir,
                                    categories=['full food security', 'marginal food security'])
        assert not os.path.exists(os.path.join(temp_dir, 'slope_by_year'))

    def test_config_format(self, temp_dir, series_by_category):
        written = export_category_figures(series_by_category, temp_dir, cfg={'format': 'pdf', 'dpi': 72})
        assert written['full food security']['slope'].endswith('slope_full-food-security.pdf')
        assert os.path.exists(written['full food security']['slope'])

    def test_write_failure_propagates_and_keeps_earlier_files(self, temp_dir, series_by_category):
        import figures_static
        real = figures_static._PLOTTERS['proportion']
        calls = []

        def failing(series, label, path, dpi=150):
            calls.append(label)
            if label == 'very low food security':
                raise OSError("disk full")
            return real(series, label, path, dpi=dpi)

        with patch.dict(figures_static._PLOTTERS, {'proportion': failing}):
            with pytest.raises(OSError, match="disk full"):
                export_category_figures(series_by_category, temp_dir)

        assert os.path.exists(figure_path(temp_dir, 'proportion', 'full food security'))
        assert os.path.exists(figure_path(temp_dir, 'slope', 'full food security'))

    def test_empty_mapping(self, temp_dir):
        assert export_category_figures({}, temp_dir) == {}
