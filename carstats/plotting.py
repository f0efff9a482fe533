"""
Figures for the mtcars report.

Three figures, each returning the saved path when `path` is given and the
Figure otherwise:

    scatter_panel(dataset, response, predictors)   response vs each predictor
    boxplot_by(dataset, response, by)              response per factor level
    diagnostic_plots(solution)                     2x2 residual diagnostics

Figures only consume computed results (Dataset columns, LinearSolution,
Diagnostics); nothing here fits or tests anything.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.figure import Figure
from scipy import stats as sp_stats

from carstats.core.dataset import Dataset
from carstats.regression.solution import LinearSolution


@dataclass(frozen=True)
class StyleConfig:
    BASE_FONTSIZE: float = 10.0
    TITLE_FONTSIZE: float = 11.0
    MARKERSIZE: float = 22.0
    LINEWIDTH: float = 1.2
    ALPHA_POINTS: float = 0.8
    GRID_ALPHA: float = 0.25
    POINT_COLOR: str = "#1f77b4"
    SMOOTH_COLOR: str = "#d62728"
    GUIDE_COLOR: str = "#7f7f7f"
    FIGSIZE_PANEL_COL: float = 3.2
    FIGSIZE_PANEL_ROW: float = 3.0
    FIGSIZE_SINGLE: tuple[float, float] = (6.0, 4.2)
    FIGSIZE_2x2: tuple[float, float] = (9.5, 7.2)
    DPI: int = 150
    N_LABELLED: int = 3


STYLE = StyleConfig()


def _finish(fig: Figure, path: str | Path | None, dpi: int = STYLE.DPI) -> Figure | Path:
    """Save and close the figure when a path is given, else hand it back."""
    fig.tight_layout()
    if path is None:
        return fig
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(path, dpi=dpi)
    plt.close(fig)
    return path


def _grid(ax: plt.Axes) -> None:
    ax.grid(True, alpha=STYLE.GRID_ALPHA, linewidth=0.6)
    ax.set_axisbelow(True)


def scatter_panel(
    dataset: Dataset,
    response: str,
    predictors: Sequence[str],
    *,
    ncols: int = 3,
    path: str | Path | None = None,
) -> Figure | Path:
    """Response against each continuous predictor, with a least-squares line."""
    y = dataset.numeric(response)
    n = len(predictors)
    ncols = max(1, min(ncols, n))
    nrows = int(np.ceil(n / ncols))
    fig, axes = plt.subplots(
        nrows, ncols,
        figsize=(STYLE.FIGSIZE_PANEL_COL * ncols, STYLE.FIGSIZE_PANEL_ROW * nrows),
        squeeze=False,
    )
    for ax, name in zip(axes.flat, predictors):
        x = dataset.numeric(name)
        ax.scatter(x, y, s=STYLE.MARKERSIZE, alpha=STYLE.ALPHA_POINTS, color=STYLE.POINT_COLOR)
        slope, intercept = np.polyfit(x, y, 1)
        grid = np.linspace(x.min(), x.max(), 50)
        ax.plot(grid, intercept + slope * grid, color=STYLE.SMOOTH_COLOR, linewidth=STYLE.LINEWIDTH)
        r = np.corrcoef(x, y)[0, 1]
        ax.set_title(f"{response} vs {name} (r = {r:.2f})", fontsize=STYLE.TITLE_FONTSIZE)
        ax.set_xlabel(name, fontsize=STYLE.BASE_FONTSIZE)
        ax.set_ylabel(response, fontsize=STYLE.BASE_FONTSIZE)
        _grid(ax)
    for ax in list(axes.flat)[n:]:
        ax.set_visible(False)
    return _finish(fig, path)


def boxplot_by(
    dataset: Dataset,
    response: str,
    by: str,
    *,
    path: str | Path | None = None,
) -> Figure | Path:
    """Box plot of the response per level of a categorical field, with jittered points."""
    y = dataset.numeric(response)
    field = dataset.schema[by]
    groups = dataset[by]
    levels = [level for level in field.levels if np.any(groups == level)]
    data = [y[groups == level] for level in levels]

    fig, ax = plt.subplots(figsize=STYLE.FIGSIZE_SINGLE)
    ax.boxplot(data, showmeans=True)
    ax.set_xticks(range(1, len(levels) + 1), labels=levels)
    rng = np.random.default_rng(0)
    for i, values in enumerate(data, start=1):
        jitter = rng.uniform(-0.08, 0.08, size=len(values))
        ax.scatter(i + jitter, values, s=STYLE.MARKERSIZE * 0.6,
                   alpha=STYLE.ALPHA_POINTS, color=STYLE.POINT_COLOR)
    ax.set_xlabel(by, fontsize=STYLE.BASE_FONTSIZE)
    ax.set_ylabel(response, fontsize=STYLE.BASE_FONTSIZE)
    ax.set_title(f"{response} by {by}", fontsize=STYLE.TITLE_FONTSIZE)
    _grid(ax)
    return _finish(fig, path)


def diagnostic_plots(
    solution: LinearSolution,
    *,
    path: str | Path | None = None,
) -> Figure | Path:
    """
    The four panels of R's plot.lm(): residuals vs fitted, normal Q-Q,
    scale-location, and standardized residuals vs leverage with Cook's
    distance contours at 0.5 and 1.
    """
    diag = solution.diagnostics()
    fitted = diag.fitted_values
    resid = diag.residuals
    std_resid = diag.standardized_residuals
    lev = diag.leverage
    labels = diag.row_labels
    top = np.argsort(-np.abs(std_resid), kind='stable')[:STYLE.N_LABELLED]

    fig, axes = plt.subplots(2, 2, figsize=STYLE.FIGSIZE_2x2)
    (ax_rf, ax_qq), (ax_sl, ax_lev) = axes

    ax_rf.scatter(fitted, resid, s=STYLE.MARKERSIZE, color=STYLE.POINT_COLOR)
    ax_rf.axhline(0.0, color=STYLE.GUIDE_COLOR, linestyle=':', linewidth=STYLE.LINEWIDTH)
    ax_rf.set_xlabel("Fitted values")
    ax_rf.set_ylabel("Residuals")
    ax_rf.set_title("Residuals vs Fitted", fontsize=STYLE.TITLE_FONTSIZE)

    (osm, osr), (slope, intercept, _) = sp_stats.probplot(std_resid, dist='norm')
    ax_qq.scatter(osm, osr, s=STYLE.MARKERSIZE, color=STYLE.POINT_COLOR)
    ax_qq.plot(osm, intercept + slope * osm, color=STYLE.GUIDE_COLOR,
               linestyle=':', linewidth=STYLE.LINEWIDTH)
    ax_qq.set_xlabel("Theoretical Quantiles")
    ax_qq.set_ylabel("Standardized residuals")
    ax_qq.set_title("Normal Q-Q", fontsize=STYLE.TITLE_FONTSIZE)

    ax_sl.scatter(fitted, np.sqrt(np.abs(std_resid)), s=STYLE.MARKERSIZE, color=STYLE.POINT_COLOR)
    ax_sl.set_xlabel("Fitted values")
    ax_sl.set_ylabel(r"$\sqrt{|\mathrm{Standardized\ residuals}|}$")
    ax_sl.set_title("Scale-Location", fontsize=STYLE.TITLE_FONTSIZE)

    ax_lev.scatter(lev, std_resid, s=STYLE.MARKERSIZE, color=STYLE.POINT_COLOR)
    ax_lev.axhline(0.0, color=STYLE.GUIDE_COLOR, linestyle=':', linewidth=STYLE.LINEWIDTH)
    p = diag.n_coefficients
    h_grid = np.linspace(max(lev.min(), 1e-3), min(lev.max() * 1.05, 0.999), 100)
    for level in (0.5, 1.0):
        # D = r² h / (p (1 - h))  solved for r
        bound = np.sqrt(level * p * (1 - h_grid) / h_grid)
        for sign in (1, -1):
            ax_lev.plot(h_grid, sign * bound, color=STYLE.SMOOTH_COLOR,
                        linestyle='--', linewidth=STYLE.LINEWIDTH * 0.8)
    ax_lev.set_ylim(min(std_resid.min(), -2.5) * 1.1, max(std_resid.max(), 2.5) * 1.1)
    ax_lev.set_xlabel("Leverage")
    ax_lev.set_ylabel("Standardized residuals")
    ax_lev.set_title("Residuals vs Leverage", fontsize=STYLE.TITLE_FONTSIZE)

    for i in top:
        ax_rf.annotate(labels[i], (fitted[i], resid[i]), fontsize=STYLE.BASE_FONTSIZE * 0.75)
        ax_sl.annotate(labels[i], (fitted[i], np.sqrt(abs(std_resid[i]))),
                       fontsize=STYLE.BASE_FONTSIZE * 0.75)
        ax_lev.annotate(labels[i], (lev[i], std_resid[i]), fontsize=STYLE.BASE_FONTSIZE * 0.75)

    for ax in axes.flat:
        _grid(ax)
    fig.suptitle(solution.name, fontsize=STYLE.TITLE_FONTSIZE)
    return _finish(fig, path)
