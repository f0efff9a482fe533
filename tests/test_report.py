"""
Tests for the Markdown report and the command line entry point.

Validates:
    - build_report() contains every section, driven by computed numbers
    - Figures are written and linked when a directory is given
    - markdown_table() renders NA for missing values
    - main() subcommands print their tables and map library errors to exit 1
"""

import numpy as np
import pandas as pd
import pytest

from carstats.__main__ import main
from carstats.regression import lm
from carstats.report import CANDIDATES, PROPOSED, build_report, markdown_table


# ═══════════════════════════════════════════════════════════════════════
# build_report
# ═══════════════════════════════════════════════════════════════════════


class TestBuildReport:

    @pytest.fixture(scope="class")
    def report(self):
        return build_report()

    def test_sections(self, report):
        for heading in (
            "# Fuel economy of the mtcars vehicles",
            "## Data",
            "## Descriptive statistics",
            "## Candidate models",
            "## Proposed model: `mpg ~ wt + I(hp/wt)`",
            "## Nested model tests",
            "## Residual diagnostics",
            "## Conclusion",
        ):
            assert heading in report
        assert "## Figures" not in report

    def test_every_candidate_listed(self, report):
        for formula in CANDIDATES:
            assert f"| {formula} |" in report

    def test_numbers_come_from_fit(self, report, mtcars):
        sol = lm(PROPOSED, mtcars)
        assert f"{sol.r_squared:.1%}" in report
        assert f"{sol.adjusted_r_squared:.3f}" in report
        assert "Chrysler Imperial" in report or "Toyota Corolla" in report

    def test_interaction_not_retained(self, report):
        assert "Extending to `mpg ~ wt * I(hp/wt)` does not improve the fit significantly" in report

    def test_nested_tests_listed(self, report):
        assert "`mpg ~ wt` vs `mpg ~ wt + I(hp/wt)`" in report
        assert "significant at α = 0.05" in report

    def test_deterministic(self, report):
        assert build_report() == report

    def test_figures(self, tmp_path, mtcars):
        text = build_report(mtcars, figures_dir=tmp_path / "fig")
        assert "## Figures" in text
        for name in ("scatter.png", "mpg_by_am.png", "diagnostics.png"):
            assert (tmp_path / "fig" / name).exists()
            assert name in text


class TestMarkdownTable:

    def test_renders_na(self):
        df = pd.DataFrame({"a": [1.5, np.nan], "b": ["x", None]}, index=["r1", "r2"])
        text = markdown_table(df, index_name="row")
        lines = text.splitlines()
        assert lines[0] == "| row | a | b |"
        assert lines[1] == "|---|---|---|"
        assert lines[2] == "| r1 | 1.5 | x |"
        assert lines[3] == "| r2 | NA | NA |"

    def test_integers_unformatted(self):
        df = pd.DataFrame({"n": [19, 13]}, index=["automatic", "manual"])
        assert "| automatic | 19 |" in markdown_table(df, float_format=lambda v: f"{v:.2f}")


# ═══════════════════════════════════════════════════════════════════════
# Command line
# ═══════════════════════════════════════════════════════════════════════


class TestCLI:

    def test_fit(self, capsys):
        assert main(["fit", "mpg ~ wt"]) == 0
        out = capsys.readouterr().out
        assert "lm(formula = mpg ~ wt)" in out
        assert "2.5 %" in out

    def test_fit_with_anova_and_diagnostics(self, capsys):
        assert main(["fit", "mpg ~ wt", "--anova", "--diagnostics"]) == 0
        out = capsys.readouterr().out
        assert "Analysis of Variance Table" in out
        assert "Influential (Cook's D > 0.125): Chrysler Imperial, Toyota Corolla, Fiat 128" in out

    def test_fit_error_exit_code(self, capsys):
        assert main(["fit", "mpg ~ torque"]) == 1
        err = capsys.readouterr().err
        assert err.startswith("ERROR:")
        assert "torque" in err

    def test_compare(self, capsys):
        assert main(["compare"]) == 0
        out = capsys.readouterr().out
        assert f"> {PROPOSED}" in out

    def test_compare_adds_proposed(self, capsys):
        assert main(["compare", "--proposed", "mpg ~ wt + hp + am"]) == 0
        out = capsys.readouterr().out
        assert "> mpg ~ wt + hp + am" in out

    def test_report_to_file(self, tmp_path, capsys):
        path = tmp_path / "report.md"
        assert main(["report", "-o", str(path)]) == 0
        assert path.read_text(encoding="utf-8").startswith("# Fuel economy")
        assert str(path) in capsys.readouterr().out

    def test_missing_command(self):
        with pytest.raises(SystemExit):
            main([])
