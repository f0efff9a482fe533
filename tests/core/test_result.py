"""
Tests for the Result[P] envelope and the section timer.

Validates:
    - Generic type parameter works with arbitrary payload types
    - Frozen immutability
    - Default warnings and has_warning()
    - Timer sections accumulate and timed() always stops
"""

from dataclasses import FrozenInstanceError, dataclass

import pytest

from carstats.core.result import Result
from carstats.core.compute.timing import Timer, timed


@dataclass(frozen=True)
class FakeParams:
    """Minimal payload for testing."""
    value: float


# ═══════════════════════════════════════════════════════════════════════
# Result
# ═══════════════════════════════════════════════════════════════════════


class TestResult:

    def test_basic_creation(self):
        result = Result(
            params=FakeParams(value=42.0),
            info={"method": "qr"},
            timing={"total_seconds": 0.01},
            backend_name="cpu_qr",
        )
        assert result.params.value == 42.0
        assert result.info["method"] == "qr"
        assert result.timing["total_seconds"] == 0.01
        assert result.backend_name == "cpu_qr"

    def test_default_warnings_empty(self):
        result = Result(params=FakeParams(1.0), info={}, timing=None, backend_name="cpu")
        assert result.warnings == ()
        assert result.timing is None

    def test_frozen(self):
        result = Result(params=FakeParams(1.0), info={}, timing=None, backend_name="cpu")
        with pytest.raises(FrozenInstanceError):
            result.backend_name = "other"

    def test_has_warning(self):
        result = Result(
            params=FakeParams(1.0),
            info={},
            timing=None,
            backend_name="cpu",
            warnings=("essentially perfect fit: residual sum of squares is zero",),
        )
        assert result.has_warning("perfect fit")
        assert not result.has_warning("collinear")


# ═══════════════════════════════════════════════════════════════════════
# Timing
# ═══════════════════════════════════════════════════════════════════════


class TestTimer:

    def test_sections_accumulate(self):
        timer = Timer()
        timer.start()
        with timer.section("solve"):
            pass
        with timer.section("solve"):
            pass
        timer.stop()
        result = timer.result()
        assert set(result) == {"total_seconds", "solve"}
        assert result["solve"] >= 0.0
        assert result["total_seconds"] >= 0.0

    def test_result_before_stop_raises(self):
        timer = Timer()
        timer.start()
        with pytest.raises(RuntimeError):
            timer.result()

    def test_stop_before_start_raises(self):
        with pytest.raises(RuntimeError):
            Timer().stop()

    def test_timed_stops_on_exception(self):
        with pytest.raises(ValueError):
            with timed() as timer:
                raise ValueError("boom")
        assert "total_seconds" in timer.result()
