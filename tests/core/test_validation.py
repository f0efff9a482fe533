"""
Tests for input validators.

Validates:
    - check_array converts numeric input to float64 and rejects the rest
    - check_finite counts NaN and Inf
    - dimension and length checks raise DimensionError
    - check_level accepts only (0, 1)
"""

import numpy as np
import pytest

from carstats.core.exceptions import DimensionError, ValidationError
from carstats.core.validation import (
    check_1d,
    check_2d,
    check_array,
    check_consistent_length,
    check_finite,
    check_level,
)


# ═══════════════════════════════════════════════════════════════════════
# check_array
# ═══════════════════════════════════════════════════════════════════════


class TestCheckArray:

    def test_int_list_becomes_float64(self):
        arr = check_array([1, 2, 3], "x")
        assert arr.dtype == np.float64
        np.testing.assert_array_equal(arr, [1.0, 2.0, 3.0])

    def test_float64_passes_through(self):
        x = np.array([1.5, 2.5])
        assert check_array(x, "x") is x

    def test_strings_rejected(self):
        with pytest.raises(ValidationError, match="x: non-numeric"):
            check_array(["a", "b"], "x")

    def test_mixed_types_rejected(self):
        with pytest.raises(ValidationError, match="object dtype"):
            check_array([1, "a", None], "x")


# ═══════════════════════════════════════════════════════════════════════
# check_finite / dimensions
# ═══════════════════════════════════════════════════════════════════════


class TestChecks:

    def test_finite_ok(self):
        check_finite(np.array([1.0, 2.0]), "x")

    def test_finite_reports_counts(self):
        with pytest.raises(ValidationError, match=r"1 NaN, 2 Inf"):
            check_finite(np.array([np.nan, np.inf, -np.inf, 0.0]), "x")

    def test_1d(self):
        check_1d(np.zeros(3), "y")
        with pytest.raises(DimensionError, match="expected 1D"):
            check_1d(np.zeros((3, 1)), "y")

    def test_2d(self):
        check_2d(np.zeros((3, 2)), "X")
        with pytest.raises(DimensionError, match="expected 2D"):
            check_2d(np.zeros(3), "X")

    def test_consistent_length(self):
        check_consistent_length(np.zeros((4, 2)), np.zeros(4), names=("X", "y"))
        with pytest.raises(DimensionError, match="X=4, y=5"):
            check_consistent_length(np.zeros((4, 2)), np.zeros(5), names=("X", "y"))

    def test_consistent_length_name_mismatch(self):
        with pytest.raises(ValueError):
            check_consistent_length(np.zeros(2), np.zeros(2), names=("x",))

    @pytest.mark.parametrize("level", [0.5, 0.9, 0.95, 0.999])
    def test_level_valid(self, level):
        check_level(level)

    @pytest.mark.parametrize("level", [0.0, 1.0, -0.1, 95])
    def test_level_invalid(self, level):
        with pytest.raises(ValidationError, match="level"):
            check_level(level)
