"""
Markdown report: what explains the fuel economy of the mtcars vehicles.

build_report() runs the fixed analysis (descriptive summaries, the
candidate comparison, F tests and diagnostics of the proposed model) and
renders it as one Markdown document. Every number in the text comes from
the computed solution objects; the narrative is a template over them.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import numpy as np
import pandas as pd

from carstats.core.compute.tolerances import SIGNIFICANCE_LEVEL
from carstats.core.dataset import Dataset
from carstats.core.formatting import format_pvalue
from carstats.anova import anova_table, compare_models
from carstats.descriptive import correlations, describe, group_means
from carstats.selection import CONTAINS_PROPOSED, NESTED_IN_PROPOSED, compare_candidates
from carstats.datasets.mtcars import RESPONSE, load_mtcars


CANDIDATES: tuple[str, ...] = (
    "mpg ~ am",
    "mpg ~ wt",
    "mpg ~ wt + am",
    "mpg ~ wt + hp",
    "mpg ~ wt + I(hp/wt)",
    "mpg ~ wt * I(hp/wt)",
    "mpg ~ wt + I(hp/wt) + am",
    "mpg ~ wt + qsec + am",
)

PROPOSED = "mpg ~ wt + I(hp/wt)"

SCATTER_PREDICTORS = ("wt", "hp", "disp", "drat", "qsec")


def markdown_table(
    df: pd.DataFrame,
    *,
    float_format: Callable[[float], str] = lambda v: f"{v:.4g}",
    index_name: str = "",
) -> str:
    """Render a DataFrame as a GitHub-flavoured Markdown table."""

    def cell(value: Any) -> str:
        if value is None:
            return "NA"
        if isinstance(value, (float, np.floating)):
            return "NA" if np.isnan(value) else float_format(float(value))
        return str(value)

    header = [index_name or (df.index.name or "")] + [str(c) for c in df.columns]
    lines = [
        "| " + " | ".join(header) + " |",
        "|" + "|".join("---" for _ in header) + "|",
    ]
    for label, *values in df.itertuples(index=True, name=None):
        lines.append("| " + " | ".join([str(label)] + [cell(v) for v in values]) + " |")
    return "\n".join(lines)


def build_report(
    dataset: Dataset | None = None,
    *,
    figures_dir: str | Path | None = None,
) -> str:
    """
    Run the fixed analysis and return the report as Markdown.

    Args:
        dataset: Dataset to analyse. Defaults to load_mtcars().
        figures_dir: If given, figures are written there as PNG files and
            linked from the report.
    """
    if dataset is None:
        dataset = load_mtcars()

    sections: list[str] = []
    sections.append("# Fuel economy of the mtcars vehicles\n")
    sections.append(_overview(dataset))
    sections.append(_descriptive(dataset))

    table = compare_candidates(dataset, CANDIDATES, proposed=PROPOSED)
    proposed = table.solutions[table.proposed]

    sections.append("## Candidate models\n")
    sections.append(
        "Each candidate is fit by ordinary least squares. The p-value is the "
        "F test between the candidate and the proposed model where one is "
        "nested in the other; NA marks pairs that are not nested.\n"
    )
    frame = table.to_dataframe()[
        ['terms', 'r_squared', 'adj_r_squared', 'p_value', 'direction']
    ]
    sections.append(markdown_table(frame, index_name="model") + "\n")

    sections.append(f"## Proposed model: `{proposed.spec.formula}`\n")
    sections.append("```\n" + proposed.summary() + "\n```\n")
    ci = pd.concat([proposed.coef.to_frame(), proposed.conf_int(0.95)], axis=1)
    sections.append("95% confidence intervals:\n")
    sections.append(markdown_table(ci, index_name="coefficient") + "\n")
    sections.append("Sequential ANOVA:\n")
    sections.append("```\n" + anova_table(proposed).summary() + "\n```\n")

    sections.append(_tests(table))

    diag = proposed.diagnostics()
    sections.append("## Residual diagnostics\n")
    influential = diag.influential_observations()
    high_lev = diag.high_leverage_observations()
    sections.append(
        f"Cook's distance above 4/N = {diag.cooks_threshold:.3f}: "
        f"{', '.join(influential) if influential else 'none'}.\n\n"
        f"Leverage above 2(P+1)/N = {diag.leverage_threshold:.3f}: "
        f"{', '.join(high_lev) if high_lev else 'none'}.\n"
    )
    top = diag.to_dataframe().sort_values('cooks_distance', ascending=False).head(5)
    sections.append(markdown_table(
        top[['fitted', 'residual', 'leverage', 'cooks_distance', 'std_residual']],
        index_name="vehicle",
    ) + "\n")

    if figures_dir is not None:
        sections.append(_figures(dataset, proposed, Path(figures_dir)))

    sections.append(_conclusion(table, proposed))
    return "\n".join(sections)


# =====================================================================
# Sections
# =====================================================================


def _overview(dataset: Dataset) -> str:
    rows = []
    for f in dataset.schema:
        levels = ", ".join(f.levels) if f.kind == 'categorical' else ""
        rows.append((f.name, f.kind, levels, f.description))
    frame = pd.DataFrame(rows, columns=['field', 'kind', 'levels', 'description']).set_index('field')
    return (
        "## Data\n\n"
        f"{dataset.n_observations} vehicles, {len(dataset.schema)} variables; "
        f"the response is `{RESPONSE}`.\n\n"
        + markdown_table(frame, index_name="field") + "\n"
    )


def _descriptive(dataset: Dataset) -> str:
    parts = ["## Descriptive statistics\n"]
    parts.append(markdown_table(describe(dataset).to_dataframe(),
                                float_format=lambda v: f"{v:.3f}") + "\n")
    for by in ('am', 'cyl'):
        gm = group_means(dataset, RESPONSE, by)
        parts.append(f"`{RESPONSE}` by `{by}`:\n")
        parts.append(markdown_table(gm.to_dataframe(), float_format=lambda v: f"{v:.2f}",
                                    index_name=by) + "\n")
    cor = correlations(dataset, RESPONSE)
    ranked = ", ".join(f"{name} ({r:+.2f})" for name, r in cor.ranked())
    parts.append(f"Correlation with `{RESPONSE}`, strongest first: {ranked}.\n")
    return "\n".join(parts)


def _tests(table) -> str:
    proposed = table.solutions[table.proposed]
    parts = ["## Nested model tests\n"]
    for row in table.rows:
        if row.p_value is None:
            continue
        sol = table.solutions[row.name]
        if row.direction == NESTED_IN_PROPOSED:
            result = compare_models(sol, proposed)
        else:
            result = compare_models(proposed, sol)
        verdict = "significant" if result.significant() else "not significant"
        parts.append(
            f"- `{result.restricted}` vs `{result.full}`: "
            f"F({result.df_numerator}, {result.df_denominator}) = {result.f_statistic:.3f}, "
            f"p = {format_pvalue(result.p_value)} ({verdict} at α = {SIGNIFICANCE_LEVEL})"
        )
    return "\n".join(parts) + "\n"


def _figures(dataset: Dataset, proposed, figures_dir: Path) -> str:
    from carstats import plotting

    figures_dir.mkdir(parents=True, exist_ok=True)
    scatter = plotting.scatter_panel(dataset, RESPONSE, SCATTER_PREDICTORS,
                                     path=figures_dir / "scatter.png")
    box = plotting.boxplot_by(dataset, RESPONSE, 'am', path=figures_dir / "mpg_by_am.png")
    diag = plotting.diagnostic_plots(proposed, path=figures_dir / "diagnostics.png")
    return (
        "## Figures\n\n"
        f"![{RESPONSE} against continuous predictors]({scatter.as_posix()})\n\n"
        f"![{RESPONSE} by transmission]({box.as_posix()})\n\n"
        f"![Diagnostics of the proposed model]({diag.as_posix()})\n"
    )


def _conclusion(table, proposed) -> str:
    coef = proposed.coef
    ci = proposed.conf_int(0.95)
    p = proposed.p_values
    names = proposed.column_names

    lines = ["## Conclusion\n"]
    lines.append(
        f"The proposed model `{proposed.spec.formula}` explains "
        f"{proposed.r_squared:.1%} of the variance of `{RESPONSE}` "
        f"(adjusted R² = {proposed.adjusted_r_squared:.3f}, residual standard error "
        f"{proposed.residual_std_error:.2f} on {proposed.df_residual} df)."
    )
    for j, name in enumerate(names[1:], start=1):
        lo, hi = ci.iloc[j, 0], ci.iloc[j, 1]
        lines.append(
            f"- `{name}`: {coef.iloc[j]:+.3f} per unit (95% CI {lo:.3f} to {hi:.3f}, "
            f"p = {format_pvalue(p[j])})."
        )

    best = max(table.rows, key=lambda r: r.adjusted_r_squared)
    proposed_row = table.row(table.proposed)
    lines.append("")
    if best.name == proposed_row.name:
        lines.append("No candidate reaches a higher adjusted R² than the proposed model.")
    else:
        lines.append(
            f"The highest adjusted R² among the candidates is {best.adjusted_r_squared:.3f} "
            f"for `{best.name}`, against {proposed_row.adjusted_r_squared:.3f} for the "
            f"proposed model."
        )
    for row in table.rows:
        if row.direction == CONTAINS_PROPOSED and row.p_value is not None:
            if row.p_value < SIGNIFICANCE_LEVEL:
                lines.append(
                    f"Extending to `{row.name}` improves the fit significantly "
                    f"(p = {format_pvalue(row.p_value)})."
                )
            else:
                lines.append(
                    f"Extending to `{row.name}` does not improve the fit significantly "
                    f"(p = {format_pvalue(row.p_value)}), so the extra terms are not retained."
                )
    return "\n".join(lines) + "\n"
