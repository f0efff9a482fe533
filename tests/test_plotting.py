"""
Tests for report figures.

Validates:
    - Each figure function returns a Figure, or the saved path when asked
    - Panel counts and titles follow the inputs
"""

import matplotlib.pyplot as plt
import pytest
from matplotlib.figure import Figure

from carstats import plotting
from carstats.regression import lm


@pytest.fixture(autouse=True)
def close_figures():
    yield
    plt.close("all")


class TestScatterPanel:

    def test_returns_figure(self, mtcars):
        fig = plotting.scatter_panel(mtcars, "mpg", ["wt", "hp", "qsec", "disp"], ncols=3)
        assert isinstance(fig, Figure)
        visible = [ax for ax in fig.axes if ax.get_visible()]
        assert len(visible) == 4
        assert visible[0].get_title().startswith("mpg vs wt")

    def test_saves_png(self, mtcars, tmp_path):
        path = plotting.scatter_panel(mtcars, "mpg", ["wt"], path=tmp_path / "out" / "scatter.png")
        assert path.exists()
        assert path.stat().st_size > 0


class TestBoxplot:

    def test_levels_on_axis(self, mtcars):
        fig = plotting.boxplot_by(mtcars, "mpg", "cyl")
        labels = [t.get_text() for t in fig.axes[0].get_xticklabels()]
        assert labels == ["4", "6", "8"]

    def test_saves_png(self, mtcars, tmp_path):
        path = plotting.boxplot_by(mtcars, "mpg", "am", path=tmp_path / "box.png")
        assert path.name == "box.png"
        assert path.exists()


class TestDiagnosticPlots:

    def test_four_panels(self, mtcars):
        fig = plotting.diagnostic_plots(lm("mpg ~ wt + I(hp/wt)", mtcars))
        titles = [ax.get_title() for ax in fig.axes]
        assert titles == ["Residuals vs Fitted", "Normal Q-Q", "Scale-Location",
                          "Residuals vs Leverage"]

    def test_saves_png(self, mtcars, tmp_path):
        path = plotting.diagnostic_plots(lm("mpg ~ wt", mtcars), path=tmp_path / "diag.png")
        assert path.exists()
