"""
Tests for candidate model comparison.

Validates:
    - One row per candidate, in input order, with R² and adjusted R²
    - Nested candidates get the F test against the proposed model, in the
      right direction; non-nested candidates get NA
    - The proposed model can be named by index, name, formula or spec
    - Invalid candidate lists are rejected; fit errors are tagged with the
      candidate that raised them
"""

import numpy as np
import pytest

from carstats.anova import compare_models
from carstats.core.exceptions import (
    InsufficientDegreesOfFreedomError,
    InvalidSpecificationError,
    SingularMatrixError,
)
from carstats.regression import ModelSpec, lm
from carstats.report import CANDIDATES, PROPOSED
from carstats.selection import (
    CONTAINS_PROPOSED,
    NESTED_IN_PROPOSED,
    compare_candidates,
)
from carstats.selection import PROPOSED as PROPOSED_DIRECTION


@pytest.fixture
def table(mtcars):
    return compare_candidates(mtcars, CANDIDATES, proposed=PROPOSED)


# ═══════════════════════════════════════════════════════════════════════
# Table contents
# ═══════════════════════════════════════════════════════════════════════


class TestCandidateTable:

    def test_rows_in_input_order(self, table):
        assert [r.name for r in table.rows] == list(CANDIDATES)
        assert table.proposed == PROPOSED
        assert table.response == "mpg"
        assert table.n_obs == 32

    def test_fit_statistics_match_direct_fits(self, table, mtcars):
        for row in table.rows:
            sol = lm(row.formula, mtcars)
            assert row.r_squared == pytest.approx(sol.r_squared, rel=1e-12)
            assert row.adjusted_r_squared == pytest.approx(sol.adjusted_r_squared, rel=1e-12)
            assert row.n_coefficients == sol.n_coefficients

    def test_known_values(self, table):
        assert table.row("mpg ~ wt").adjusted_r_squared == pytest.approx(0.744594, abs=1e-6)
        assert table.row(PROPOSED).adjusted_r_squared == pytest.approx(0.811991, abs=1e-6)
        assert table.row("mpg ~ am").r_squared == pytest.approx(0.359799, abs=1e-6)

    def test_directions(self, table):
        directions = {r.name: r.direction for r in table.rows}
        assert directions == {
            "mpg ~ am": None,
            "mpg ~ wt": NESTED_IN_PROPOSED,
            "mpg ~ wt + am": None,
            "mpg ~ wt + hp": None,
            "mpg ~ wt + I(hp/wt)": PROPOSED_DIRECTION,
            "mpg ~ wt * I(hp/wt)": CONTAINS_PROPOSED,
            "mpg ~ wt + I(hp/wt) + am": CONTAINS_PROPOSED,
            "mpg ~ wt + qsec + am": None,
        }

    def test_non_nested_rows_are_na(self, table):
        for row in table.rows:
            if row.direction is None or row.direction == PROPOSED_DIRECTION:
                assert row.p_value is None
                assert row.f_statistic is None
            else:
                assert 0.0 <= row.p_value <= 1.0

    def test_p_values_match_compare_models(self, table):
        proposed = table.solutions[PROPOSED]
        smaller = table.solutions["mpg ~ wt"]
        larger = table.solutions["mpg ~ wt * I(hp/wt)"]
        assert table.row("mpg ~ wt").p_value == pytest.approx(
            compare_models(smaller, proposed).p_value, rel=1e-12
        )
        assert table.row("mpg ~ wt * I(hp/wt)").p_value == pytest.approx(
            compare_models(proposed, larger).p_value, rel=1e-12
        )

    def test_conclusions(self, table):
        assert table.row("mpg ~ wt").p_value < 0.05
        assert table.row("mpg ~ wt * I(hp/wt)").p_value > 0.05
        assert table.row(PROPOSED).adjusted_r_squared > table.row("mpg ~ wt").adjusted_r_squared

    def test_solutions_read_only(self, table):
        assert len(table.solutions) == len(CANDIDATES)
        with pytest.raises(TypeError):
            table.solutions["x"] = None

    def test_unknown_row(self, table):
        with pytest.raises(KeyError):
            table.row("mpg ~ disp")


# ═══════════════════════════════════════════════════════════════════════
# Output
# ═══════════════════════════════════════════════════════════════════════


class TestOutput:

    def test_to_dataframe(self, table):
        df = table.to_dataframe()
        assert df.index.name == "model"
        assert list(df.index) == list(CANDIDATES)
        assert np.isnan(df.loc["mpg ~ am", "p_value"])
        assert np.isnan(df.loc[PROPOSED, "p_value"])
        assert df.loc["mpg ~ wt", "p_value"] < 0.05
        assert df.loc["mpg ~ wt * I(hp/wt)", "terms"] == 3

    def test_summary(self, table):
        text = table.summary()
        assert text.splitlines()[0].startswith("Candidate models for mpg (n = 32)")
        assert f"> {PROPOSED}" in text
        assert "NA: not nested with the proposed model" in text
        assert text.count(" NA") >= 4

    def test_metadata(self, table):
        assert table.info["n_candidates"] == len(CANDIDATES)
        assert table.info["proposed_index"] == 4
        assert "total_seconds" in table.timing
        assert table.warnings == ()


# ═══════════════════════════════════════════════════════════════════════
# Naming the proposed model
# ═══════════════════════════════════════════════════════════════════════


class TestProposedResolution:

    def test_by_index(self, mtcars):
        table = compare_candidates(mtcars, CANDIDATES, proposed=4)
        assert table.proposed == PROPOSED
        assert compare_candidates(mtcars, CANDIDATES, proposed=-1).proposed == CANDIDATES[-1]

    def test_by_spec(self, mtcars):
        spec = ModelSpec.parse("mpg ~ I(hp/wt) + wt")
        table = compare_candidates(mtcars, CANDIDATES, proposed=spec)
        assert table.proposed == PROPOSED

    def test_by_name(self, mtcars):
        candidates = [
            ModelSpec.parse("mpg ~ wt", name="weight"),
            ModelSpec.parse("mpg ~ wt + I(hp/wt)", name="ratio"),
        ]
        table = compare_candidates(mtcars, candidates, proposed="ratio")
        assert table.proposed == "ratio"
        assert table.row("weight").direction == NESTED_IN_PROPOSED

    def test_not_a_candidate(self, mtcars):
        with pytest.raises(InvalidSpecificationError, match="not among the candidates"):
            compare_candidates(mtcars, CANDIDATES, proposed="mpg ~ disp")

    def test_index_out_of_range(self, mtcars):
        with pytest.raises(InvalidSpecificationError, match="out of range"):
            compare_candidates(mtcars, CANDIDATES, proposed=len(CANDIDATES))

    def test_bool_rejected(self, mtcars):
        with pytest.raises(InvalidSpecificationError):
            compare_candidates(mtcars, CANDIDATES, proposed=True)


# ═══════════════════════════════════════════════════════════════════════
# Invalid candidate lists and fit failures
# ═══════════════════════════════════════════════════════════════════════


class TestCandidateErrors:

    def test_empty(self, mtcars):
        with pytest.raises(InvalidSpecificationError, match="no candidate"):
            compare_candidates(mtcars, [], proposed=0)

    def test_duplicate_names(self, mtcars):
        with pytest.raises(InvalidSpecificationError, match="unique"):
            compare_candidates(mtcars, ["mpg ~ wt", "mpg ~ wt"], proposed=0)

    def test_mixed_responses(self, mtcars):
        with pytest.raises(InvalidSpecificationError, match="one response"):
            compare_candidates(mtcars, ["mpg ~ wt", "qsec ~ wt"], proposed=0)

    def test_parse_error_tagged(self, mtcars):
        with pytest.raises(InvalidSpecificationError) as exc_info:
            compare_candidates(mtcars, ["mpg ~ wt", "mpg ~ wt +"], proposed=0)
        assert exc_info.value.candidate == "mpg ~ wt +"

    def test_unknown_field_tagged(self, mtcars):
        with pytest.raises(InvalidSpecificationError) as exc_info:
            compare_candidates(mtcars, ["mpg ~ wt", "mpg ~ torque"], proposed=0)
        assert exc_info.value.candidate == "mpg ~ torque"
        assert exc_info.value.field == "torque"

    def test_singular_candidate_tagged(self, mtcars):
        with pytest.raises(SingularMatrixError) as exc_info:
            compare_candidates(mtcars, ["mpg ~ wt", "mpg ~ wt + I(2 * wt)"], proposed=0)
        assert exc_info.value.candidate == "mpg ~ wt + I(2 * wt)"
        assert "mpg ~ wt + I(2 * wt)" in str(exc_info.value)

    def test_degrees_of_freedom_tagged(self, mtcars):
        few = mtcars.subset([0, 4, 6])
        with pytest.raises(InsufficientDegreesOfFreedomError) as exc_info:
            compare_candidates(few, ["mpg ~ wt", "mpg ~ wt + hp"], proposed=0)
        assert exc_info.value.candidate == "mpg ~ wt + hp"
