"""
Tests for Schema and Dataset.

Validates:
    - Field declarations (levels, codes, reference level)
    - Dataset construction from columns, DataFrames and CSV files
    - Immutability of stored columns
    - subset() and to_dataframe()
    - The built-in mtcars dataset
"""

import numpy as np
import pandas as pd
import pytest

from carstats.core.dataset import CategoricalField, ContinuousField, Dataset, Schema
from carstats.core.exceptions import DimensionError, ValidationError
from carstats.datasets import MTCARS_SCHEMA, load_mtcars


@pytest.fixture
def small_schema():
    return Schema((
        ContinuousField("mpg"),
        ContinuousField("wt"),
        CategoricalField("am", levels=("automatic", "manual"), codes=(0, 1)),
    ))


@pytest.fixture
def small_columns():
    return {
        "mpg": [21.0, 22.8, 18.7, 14.3],
        "wt": [2.62, 2.32, 3.44, 3.57],
        "am": [1, 1, 0, 0],
    }


# ═══════════════════════════════════════════════════════════════════════
# Schema
# ═══════════════════════════════════════════════════════════════════════


class TestSchema:

    def test_names_and_kinds(self, small_schema):
        assert small_schema.names == ("mpg", "wt", "am")
        assert small_schema.continuous() == ("mpg", "wt")
        assert small_schema.categorical() == ("am",)
        assert "wt" in small_schema
        assert len(small_schema) == 3

    def test_unknown_field_raises_key_error(self, small_schema):
        with pytest.raises(KeyError, match="hp"):
            small_schema["hp"]

    def test_duplicate_fields_rejected(self):
        with pytest.raises(ValidationError, match="duplicate"):
            Schema((ContinuousField("x"), ContinuousField("x")))

    def test_categorical_reference_is_first_level(self):
        f = CategoricalField("cyl", levels=(4, 6, 8))
        assert f.levels == ("4", "6", "8")
        assert f.reference == "4"

    def test_categorical_needs_two_levels(self):
        with pytest.raises(ValidationError, match="at least 2 levels"):
            CategoricalField("x", levels=("only",))

    def test_codes_must_match_levels(self):
        with pytest.raises(ValidationError, match="codes"):
            CategoricalField("am", levels=("a", "m"), codes=(0, 1, 2))

    def test_coerce(self):
        f = CategoricalField("am", levels=("automatic", "manual"), codes=(0, 1))
        assert f.coerce(0) == "automatic"
        assert f.coerce(1.0) == "manual"
        assert f.coerce("manual") == "manual"
        with pytest.raises(ValidationError, match="not one of the declared levels"):
            f.coerce(2)


# ═══════════════════════════════════════════════════════════════════════
# Dataset construction
# ═══════════════════════════════════════════════════════════════════════


class TestDatasetConstruction:

    def test_from_columns(self, small_schema, small_columns):
        ds = Dataset.from_columns(small_schema, small_columns)
        assert ds.n_observations == 4
        assert len(ds) == 4
        assert ds.keys() == ("mpg", "wt", "am")
        assert ds["mpg"].dtype == np.float64
        assert list(ds["am"]) == ["manual", "manual", "automatic", "automatic"]
        assert ds.row_labels == ("0", "1", "2", "3")

    def test_columns_are_read_only_copies(self, small_schema, small_columns):
        source = np.array(small_columns["mpg"])
        ds = Dataset.from_columns(small_schema, {**small_columns, "mpg": source})
        source[0] = -1.0
        assert ds["mpg"][0] == 21.0
        with pytest.raises(ValueError):
            ds["mpg"][0] = 0.0

    def test_missing_column(self, small_schema, small_columns):
        del small_columns["wt"]
        with pytest.raises(ValidationError, match="missing"):
            Dataset.from_columns(small_schema, small_columns)

    def test_undeclared_column(self, small_schema, small_columns):
        small_columns["hp"] = [1, 2, 3, 4]
        with pytest.raises(ValidationError, match="not declared"):
            Dataset.from_columns(small_schema, small_columns)

    def test_inconsistent_lengths(self, small_schema, small_columns):
        small_columns["wt"] = [2.62, 2.32]
        with pytest.raises(DimensionError, match="Inconsistent column lengths"):
            Dataset.from_columns(small_schema, small_columns)

    def test_non_finite_continuous(self, small_schema, small_columns):
        small_columns["mpg"] = [21.0, np.nan, 18.7, 14.3]
        with pytest.raises(ValidationError, match="non-finite"):
            Dataset.from_columns(small_schema, small_columns)

    def test_unknown_level(self, small_schema, small_columns):
        small_columns["am"] = [1, 1, 0, 5]
        with pytest.raises(ValidationError, match="am"):
            Dataset.from_columns(small_schema, small_columns)

    def test_row_label_count(self, small_schema, small_columns):
        with pytest.raises(DimensionError, match="row_labels"):
            Dataset.from_columns(small_schema, small_columns, row_labels=["a", "b"])

    def test_from_dataframe_uses_index(self, small_schema, small_columns):
        df = pd.DataFrame(small_columns, index=["A", "B", "C", "D"])
        df["extra"] = 0.0
        ds = Dataset.from_dataframe(df, small_schema)
        assert ds.row_labels == ("A", "B", "C", "D")
        assert "extra" not in ds
        assert ds.metadata["source"] == "dataframe"

    def test_from_dataframe_missing_field(self, small_schema, small_columns):
        df = pd.DataFrame(small_columns).drop(columns=["wt"])
        with pytest.raises(ValidationError, match="missing schema fields"):
            Dataset.from_dataframe(df, small_schema)

    def test_from_csv(self, tmp_path, small_schema, small_columns):
        path = tmp_path / "cars.csv"
        pd.DataFrame(small_columns, index=["A", "B", "C", "D"]).to_csv(path)
        ds = Dataset.from_csv(path, small_schema, index_col=0)
        assert ds.n_observations == 4
        assert ds.row_labels[0] == "A"
        assert ds.metadata["source_path"] == str(path)
        np.testing.assert_array_equal(ds["wt"], small_columns["wt"])


# ═══════════════════════════════════════════════════════════════════════
# Access and export
# ═══════════════════════════════════════════════════════════════════════


class TestDatasetAccess:

    def test_unknown_field_lists_available(self, small_schema, small_columns):
        ds = Dataset.from_columns(small_schema, small_columns)
        with pytest.raises(KeyError, match="Available"):
            ds["hp"]

    def test_numeric_rejects_categorical(self, small_schema, small_columns):
        ds = Dataset.from_columns(small_schema, small_columns)
        with pytest.raises(ValidationError, match="categorical"):
            ds.numeric("am")

    def test_subset(self, small_schema, small_columns):
        ds = Dataset.from_columns(
            small_schema, small_columns, row_labels=["A", "B", "C", "D"]
        )
        sub = ds.subset([3, 0])
        assert sub.n_observations == 2
        assert sub.row_labels == ("D", "A")
        np.testing.assert_array_equal(sub["mpg"], [14.3, 21.0])
        assert list(sub["am"]) == ["automatic", "manual"]

    def test_to_dataframe(self, small_schema, small_columns):
        df = Dataset.from_columns(small_schema, small_columns).to_dataframe()
        assert list(df.columns) == ["mpg", "wt", "am"]
        assert isinstance(df["am"].dtype, pd.CategoricalDtype)
        assert list(df["am"].cat.categories) == ["automatic", "manual"]


# ═══════════════════════════════════════════════════════════════════════
# mtcars
# ═══════════════════════════════════════════════════════════════════════


class TestMtcars:

    def test_shape(self):
        ds = load_mtcars()
        assert ds.n_observations == 32
        assert ds.keys() == MTCARS_SCHEMA.names
        assert len(ds.keys()) == 11

    def test_row_labels(self):
        ds = load_mtcars()
        assert ds.row_labels[0] == "Mazda RX4"
        assert ds.row_labels[-1] == "Volvo 142E"

    def test_known_values(self):
        ds = load_mtcars()
        np.testing.assert_allclose(np.mean(ds["mpg"]), 20.090625, rtol=1e-12)
        np.testing.assert_allclose(np.sum(ds["wt"]), 102.952, rtol=1e-12)

    def test_categorical_levels(self):
        ds = load_mtcars()
        assert int(np.sum(ds["am"] == "manual")) == 13
        assert int(np.sum(ds["cyl"] == "8")) == 14
        assert ds.schema["cyl"].levels == ("4", "6", "8")
