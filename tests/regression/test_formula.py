"""
Tests for model specifications and the formula parser.

Validates:
    - Term labels and keys (Variable, Derived, Interaction)
    - '*' crossing, ':' interaction, I(...) arithmetic
    - Intercept-only formulas and the zero-term rule
    - Nesting between specifications
    - Parse errors carry a position
"""

import pytest

from carstats.core.exceptions import InvalidSpecificationError
from carstats.regression import Derived, Interaction, ModelSpec, Variable, parse_formula


# ═══════════════════════════════════════════════════════════════════════
# Terms
# ═══════════════════════════════════════════════════════════════════════


class TestTerms:

    def test_variable(self):
        assert Variable("wt").label == "wt"
        assert Variable("wt") == Variable("wt")

    def test_ratio(self):
        term = Derived.ratio("hp", "wt")
        assert term.label == "I(hp/wt)"
        assert term.fields() == frozenset({"hp", "wt"})

    def test_interaction_key_is_symmetric(self):
        ab = Interaction(Variable("a"), Variable("b"))
        ba = Interaction(Variable("b"), Variable("a"))
        assert ab.label == "a:b"
        assert ba.label == "b:a"
        assert ab.key == ba.key

    def test_interaction_components(self):
        term = Interaction(Interaction(Variable("a"), Variable("b")), Variable("c"))
        assert [t.label for t in term.components()] == ["a", "b", "c"]
        assert term.label == "a:b:c"


# ═══════════════════════════════════════════════════════════════════════
# ModelSpec
# ═══════════════════════════════════════════════════════════════════════


class TestModelSpec:

    def test_formula_round_trip(self):
        spec = ModelSpec("mpg", (Variable("wt"), Derived.ratio("hp", "wt")))
        assert spec.formula == "mpg ~ wt + I(hp/wt)"
        assert str(spec) == spec.formula
        assert spec.display_name == spec.formula

    def test_name_overrides_display(self):
        spec = ModelSpec("mpg", (Variable("wt"),), name="weight only")
        assert spec.display_name == "weight only"

    def test_zero_terms_rejected(self):
        with pytest.raises(InvalidSpecificationError, match="zero terms"):
            ModelSpec("mpg")

    def test_intercept_only(self):
        spec = ModelSpec("mpg", intercept_only=True)
        assert spec.formula == "mpg ~ 1"
        assert spec.terms == ()

    def test_intercept_only_with_terms_rejected(self):
        with pytest.raises(InvalidSpecificationError):
            ModelSpec("mpg", (Variable("wt"),), intercept_only=True)

    def test_duplicate_term_rejected(self):
        with pytest.raises(InvalidSpecificationError, match="more than once"):
            ModelSpec("mpg", (Variable("wt"), Variable("wt")))

    def test_response_as_regressor_rejected(self):
        with pytest.raises(InvalidSpecificationError, match="regressor") as exc_info:
            ModelSpec("mpg", (Derived.ratio("mpg", "wt"),))
        assert exc_info.value.field == "mpg"

    def test_fields(self):
        spec = ModelSpec("mpg", (Variable("wt"), Derived.ratio("hp", "wt")))
        assert spec.fields() == frozenset({"mpg", "wt", "hp"})

    def test_nesting(self):
        small = ModelSpec.parse("mpg ~ wt")
        big = ModelSpec.parse("mpg ~ wt + I(hp/wt)")
        assert small.is_nested_in(big)
        assert not big.is_nested_in(small)
        assert small.is_nested_in(small)

    def test_nesting_requires_same_response(self):
        assert not ModelSpec.parse("mpg ~ wt").is_nested_in(ModelSpec.parse("qsec ~ wt + hp"))

    def test_extend(self):
        spec = ModelSpec.parse("mpg ~ wt").extend(Variable("am"))
        assert spec.formula == "mpg ~ wt + am"


# ═══════════════════════════════════════════════════════════════════════
# Parser
# ═══════════════════════════════════════════════════════════════════════


class TestParseFormula:

    def test_single_term(self):
        spec = parse_formula("mpg ~ wt")
        assert spec.response == "mpg"
        assert spec.term_labels == ("wt",)

    def test_ratio_term(self):
        spec = parse_formula("mpg ~ wt + I(hp / wt)")
        assert spec.term_labels == ("wt", "I(hp/wt)")
        assert spec.terms[1].key == Derived.ratio("hp", "wt").key

    def test_star_expands(self):
        spec = parse_formula("mpg ~ wt * I(hp/wt)")
        assert spec.term_labels == ("wt", "I(hp/wt)", "wt:I(hp/wt)")

    def test_three_way_star(self):
        spec = parse_formula("y ~ a * b * c")
        assert len(spec.terms) == 7
        assert "a:b:c" in spec.term_labels

    def test_colon(self):
        spec = parse_formula("mpg ~ wt:am")
        assert isinstance(spec.terms[0], Interaction)

    def test_intercept_only(self):
        spec = parse_formula("mpg ~ 1")
        assert spec.intercept_only
        assert spec.terms == ()

    def test_repeated_term_dropped(self):
        spec = parse_formula("mpg ~ wt + hp + wt")
        assert spec.term_labels == ("wt", "hp")

    def test_arithmetic_precedence(self):
        spec = parse_formula("y ~ I((a + b) / c) + I(-a * 2)")
        assert spec.term_labels == ("I((a + b)/c)", "I(-a * 2)")

    def test_name(self):
        assert parse_formula("mpg ~ wt", name="m1").display_name == "m1"

    def test_modelspec_parse_equivalent(self):
        assert ModelSpec.parse("mpg ~ wt + qsec") == parse_formula("mpg ~ wt + qsec")

    @pytest.mark.parametrize("formula, message", [
        ("", "Empty formula"),
        ("mpg wt", "Expected '~'"),
        ("mpg ~ wt +", "position 10"),
        ("mpg ~ wt $ hp", "Unexpected character"),
        ("mpg ~ 2", "Only '1'"),
        ("mpg ~ 1 + wt", "Intercept-only"),
        ("mpg ~ I(hp/wt", "Expected '\\)'"),
        ("~ wt", "Expected response"),
    ])
    def test_syntax_errors(self, formula, message):
        with pytest.raises(InvalidSpecificationError, match=message):
            parse_formula(formula)

    def test_response_on_rhs_rejected(self):
        with pytest.raises(InvalidSpecificationError, match="regressor"):
            parse_formula("mpg ~ wt + mpg")
