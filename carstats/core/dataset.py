"""
Tabular dataset container for carstats.

A Dataset is an ordered, immutable collection of observations sharing a
Schema. The schema declares every field up front: continuous fields hold
float64 values, categorical fields hold one of a fixed, ordered set of
levels. Declaring the level set at schema-definition time is what lets the
design builder validate model specifications before any fitting happens.

Usage:
    from carstats.core.dataset import Schema, ContinuousField, CategoricalField, Dataset

    schema = Schema((
        ContinuousField('mpg'),
        CategoricalField('am', levels=('automatic', 'manual'), codes=(0, 1)),
    ))
    ds = Dataset.from_columns(schema, {'mpg': [21.0, 22.8], 'am': [1, 1]})
    ds = Dataset.from_dataframe(df, schema)
    ds = Dataset.from_csv("mtcars.csv", schema, index_col=0)

    ds.keys()        # ('mpg', 'am')
    ds['mpg']        # read-only float64 array
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, ClassVar, Iterator, Mapping, Sequence, TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from carstats.core.exceptions import ValidationError, DimensionError
from carstats.core.validation import check_array, check_finite, check_1d

if TYPE_CHECKING:
    import pandas as pd


@dataclass(frozen=True)
class ContinuousField:
    """A real-valued field."""
    name: str
    description: str = ''
    kind: ClassVar[str] = 'continuous'


@dataclass(frozen=True)
class CategoricalField:
    """
    A field taking one of a fixed, ordered set of levels.

    The first declared level is the reference level for dummy coding.

    Attributes:
        name: Field name
        levels: Ordered level labels
        codes: Optional raw values that map position-wise onto levels
            (e.g. ``(0, 1)`` for ``('automatic', 'manual')``). Without codes,
            raw values are matched by their string form.
        description: Human-readable description
    """
    name: str
    levels: tuple[str, ...]
    codes: tuple[Any, ...] | None = None
    description: str = ''
    kind: ClassVar[str] = 'categorical'

    def __post_init__(self):
        levels = tuple(str(level) for level in self.levels)
        if len(levels) < 2:
            raise ValidationError(
                f"{self.name}: categorical field needs at least 2 levels, got {len(levels)}"
            )
        if len(set(levels)) != len(levels):
            raise ValidationError(f"{self.name}: duplicate levels in {levels}")
        if self.codes is not None and len(self.codes) != len(levels):
            raise ValidationError(
                f"{self.name}: {len(self.codes)} codes for {len(levels)} levels"
            )
        object.__setattr__(self, 'levels', levels)
        if self.codes is not None:
            object.__setattr__(self, 'codes', tuple(self.codes))

    @property
    def reference(self) -> str:
        """Level dropped by dummy coding."""
        return self.levels[0]

    def coerce(self, value: Any) -> str:
        """
        Map a raw value onto one of the declared levels.

        Raises:
            ValidationError: If the value does not name a declared level
        """
        if self.codes is not None:
            for code, level in zip(self.codes, self.levels):
                if value == code:
                    return level
        if isinstance(value, (float, np.floating)) and float(value).is_integer():
            label = str(int(value))
        else:
            label = str(value)
        if label not in self.levels:
            raise ValidationError(
                f"{self.name}: value {value!r} is not one of the declared levels {self.levels}"
            )
        return label


Field = ContinuousField | CategoricalField


@dataclass(frozen=True)
class Schema:
    """
    Ordered mapping of field name to field definition.

    Field order is the column order of the dataset and of any DataFrame
    produced from it.
    """
    fields: tuple[Field, ...]

    def __post_init__(self):
        fields = tuple(self.fields)
        names = [f.name for f in fields]
        if len(set(names)) != len(names):
            duplicates = sorted({n for n in names if names.count(n) > 1})
            raise ValidationError(f"Schema has duplicate field names: {duplicates}")
        object.__setattr__(self, 'fields', fields)

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(f.name for f in self.fields)

    def __getitem__(self, name: str) -> Field:
        for f in self.fields:
            if f.name == name:
                return f
        raise KeyError(f"Schema has no field '{name}'. Available: {self.names}")

    def __contains__(self, name: object) -> bool:
        return name in self.names

    def __iter__(self) -> Iterator[Field]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def continuous(self) -> tuple[str, ...]:
        """Names of continuous fields in schema order."""
        return tuple(f.name for f in self.fields if f.kind == 'continuous')

    def categorical(self) -> tuple[str, ...]:
        """Names of categorical fields in schema order."""
        return tuple(f.name for f in self.fields if f.kind == 'categorical')


@dataclass(frozen=True)
class Dataset:
    """
    Immutable, column-stored observations with a declared schema.

    Construct via factory classmethods, not directly. Every column array
    is a private read-only copy, so a Dataset can be shared freely between
    fits, comparisons and threads.
    """
    _schema: Schema
    _columns: dict[str, NDArray]
    _n: int
    _row_labels: tuple[str, ...] | None = None
    _metadata: dict[str, Any] = field(default_factory=dict)

    # === Access ===

    @property
    def schema(self) -> Schema:
        return self._schema

    @property
    def n_observations(self) -> int:
        """Number of observations (rows)."""
        return self._n

    @property
    def row_labels(self) -> tuple[str, ...]:
        """Row labels; positional labels when none were supplied."""
        if self._row_labels is None:
            return tuple(str(i) for i in range(self._n))
        return self._row_labels

    @property
    def metadata(self) -> dict[str, Any]:
        return self._metadata.copy()

    def keys(self) -> tuple[str, ...]:
        """Field names in schema order."""
        return self._schema.names

    def __getitem__(self, name: str) -> NDArray:
        """
        Access a column by field name.

        Raises:
            KeyError: If the field is unknown, listing the available fields
        """
        if name not in self._columns:
            raise KeyError(
                f"Dataset has no field '{name}'. Available: {self.keys()}"
            )
        return self._columns[name]

    def __contains__(self, name: object) -> bool:
        return name in self._columns

    def __len__(self) -> int:
        return self._n

    def column(self, name: str) -> NDArray:
        return self[name]

    def numeric(self, name: str) -> NDArray[np.floating[Any]]:
        """
        Float64 values of a continuous field.

        Raises:
            KeyError: If the field is unknown
            ValidationError: If the field is categorical
        """
        values = self[name]
        if self._schema[name].kind != 'continuous':
            raise ValidationError(
                f"{name}: categorical field has no numeric values"
            )
        return values

    def subset(self, indices: Sequence[int] | NDArray) -> Dataset:
        """New dataset holding the rows at `indices`, in that order."""
        idx = np.asarray(indices, dtype=np.intp)
        columns = {name: values[idx] for name, values in self._columns.items()}
        labels = tuple(self.row_labels[i] for i in idx)
        return Dataset.from_columns(
            self._schema, columns, row_labels=labels, metadata=self._metadata,
        )

    # === Factory Methods ===

    @classmethod
    def from_columns(
        cls,
        schema: Schema,
        columns: Mapping[str, Any],
        *,
        row_labels: Sequence[str] | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> Dataset:
        """
        Construct from a mapping of field name to column values.

        Raises:
            ValidationError: On missing/unknown fields, non-finite continuous
                values, or categorical values outside the level set
            DimensionError: On columns of different lengths
        """
        missing = [name for name in schema.names if name not in columns]
        if missing:
            raise ValidationError(f"Columns missing for schema fields: {missing}")
        unknown = sorted(set(columns) - set(schema.names))
        if unknown:
            raise ValidationError(f"Columns not declared in schema: {unknown}")

        storage: dict[str, NDArray] = {}
        lengths: dict[str, int] = {}
        for f in schema:
            raw = columns[f.name]
            if f.kind == 'continuous':
                arr = check_array(raw, f.name)
                check_1d(arr, f.name)
                check_finite(arr, f.name)
                arr = arr.copy()
            else:
                raw_arr = np.asarray(raw, dtype=object)
                if raw_arr.ndim != 1:
                    raise DimensionError(
                        f"{f.name}: expected 1D array, got {raw_arr.ndim}D with shape {raw_arr.shape}"
                    )
                arr = np.array([f.coerce(v) for v in raw_arr], dtype=str)
            arr.setflags(write=False)
            storage[f.name] = arr
            lengths[f.name] = arr.shape[0]

        if len(set(lengths.values())) > 1:
            details = ", ".join(f"{name}={length}" for name, length in lengths.items())
            raise DimensionError(f"Inconsistent column lengths: {details}")

        n = next(iter(lengths.values())) if lengths else 0

        labels: tuple[str, ...] | None = None
        if row_labels is not None:
            labels = tuple(str(label) for label in row_labels)
            if len(labels) != n:
                raise DimensionError(
                    f"row_labels: expected {n} labels, got {len(labels)}"
                )

        meta = dict(metadata) if metadata is not None else {}
        meta.setdefault('source', 'columns')

        return cls(
            _schema=schema,
            _columns=storage,
            _n=n,
            _row_labels=labels,
            _metadata=meta,
        )

    @classmethod
    def from_dataframe(
        cls,
        df: 'pd.DataFrame',
        schema: Schema,
        *,
        metadata: Mapping[str, Any] | None = None,
    ) -> Dataset:
        """
        Construct from a pandas DataFrame.

        Only the schema's fields are read; extra DataFrame columns are
        ignored. A non-default index becomes the row labels.
        """
        import pandas as pd

        absent = [name for name in schema.names if name not in df.columns]
        if absent:
            raise ValidationError(f"DataFrame is missing schema fields: {absent}")

        columns: dict[str, Any] = {}
        for f in schema:
            series = df[f.name]
            if f.kind == 'continuous':
                columns[f.name] = series.to_numpy(dtype=np.float64)
            else:
                columns[f.name] = series.astype(object).to_numpy()

        row_labels = None
        if not isinstance(df.index, pd.RangeIndex):
            row_labels = [str(label) for label in df.index]

        return cls.from_columns(
            schema, columns, row_labels=row_labels,
            metadata=metadata if metadata is not None else {'source': 'dataframe'},
        )

    @classmethod
    def from_csv(
        cls,
        path: str | Path,
        schema: Schema,
        *,
        index_col: int | str | None = None,
    ) -> Dataset:
        """Construct from a CSV file (read with pandas)."""
        import pandas as pd

        path = Path(path)
        df = pd.read_csv(path, index_col=index_col)
        return cls.from_dataframe(
            df, schema, metadata={'source': 'csv', 'source_path': str(path)},
        )

    # === Export ===

    def to_dataframe(self) -> 'pd.DataFrame':
        """
        Export as a pandas DataFrame.

        Categorical fields become ``pd.Categorical`` columns with the
        declared level order.
        """
        import pandas as pd

        data: dict[str, Any] = {}
        for f in self._schema:
            values = self._columns[f.name]
            if f.kind == 'categorical':
                data[f.name] = pd.Categorical(values, categories=list(f.levels))
            else:
                data[f.name] = np.array(values, dtype=np.float64)
        return pd.DataFrame(data, index=list(self.row_labels))

    def __repr__(self) -> str:
        return f"Dataset(n={self._n}, fields={list(self.keys())})"
