"""Tests for chart helpers (Agg backend, see conftest)."""

import matplotlib.pyplot as plt
import pandas as pd
import pytest

from insights_engine import viz
from insights_engine.errors import SchemaError


@pytest.fixture
def table():
    return pd.DataFrame({
        "restaurant": pd.array(["Subway", "Mcdonalds", None], dtype="string"),
        "avg_calories": pd.array([900.0, None, 170.0], dtype="Float64"),
    })


class TestBarCharts:
    def test_bar_saves_into_new_directory(self, table, tmp_path):
        out = tmp_path / "charts" / "bar.png"
        fig, ax, saved = viz.plot_bar(table, "restaurant", "avg_calories", str(out))
        assert saved == str(out)
        assert out.exists()
        assert [t.get_text() for t in ax.get_xticklabels()] == ["Subway", "Mcdonalds", "(missing)"]
        assert not plt.fignum_exists(fig.number)

    def test_bar_without_path_returns_none(self, table):
        _, _, saved = viz.plot_bar(table, "restaurant", "avg_calories")
        assert saved is None

    def test_barh_top_n(self, table):
        _, ax, _ = viz.plot_barh(table, "restaurant", "avg_calories", top_n=2)
        assert len(ax.patches) == 2

    def test_missing_column(self, table):
        with pytest.raises(SchemaError):
            viz.plot_bar(table, "restaurant", "avg_sugar")


class TestDistributionCharts:
    def test_box_groups_in_first_seen_order(self, nutrition_df):
        _, ax, _ = viz.plot_box(nutrition_df, "calories", "restaurant")
        assert [t.get_text() for t in ax.get_xticklabels()] == ["Mcdonalds", "Subway", "Taco Bell"]

    def test_scatter_with_hue(self, nutrition_df, tmp_path):
        out = tmp_path / "scatter.png"
        _, ax, saved = viz.plot_scatter(nutrition_df, "calories", "sodium", str(out), hue="restaurant")
        assert saved and out.exists()
        assert len(ax.collections) == 3

    def test_line_per_hue(self):
        t = pd.DataFrame({"year": [2020, 2019, 2019], "type": ["Movie", "Movie", "TV Show"], "n": [2, 1, 4]})
        _, ax, _ = viz.plot_line(t, "year", "n", hue="type")
        assert len(ax.get_lines()) == 2
        movie = ax.get_lines()[0]
        assert list(movie.get_xdata()) == [2019.0, 2020.0]
