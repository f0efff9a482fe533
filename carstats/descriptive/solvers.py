"""
Descriptive summaries of a Dataset.

Public API:
    describe(dataset, fields=None) -> DescriptiveSolution
    group_means(dataset, response, by) -> GroupMeansSolution
    correlations(dataset, response) -> CorrelationSolution
"""

from __future__ import annotations

from typing import Sequence

import numpy as np
from scipy import stats as sp_stats

from carstats.core.dataset import Dataset
from carstats.core.exceptions import ValidationError
from carstats.core.result import Result
from carstats.core.compute.timing import timed
from carstats.descriptive.solution import (
    CorrelationParams,
    CorrelationSolution,
    DescriptiveParams,
    DescriptiveSolution,
    GroupMeansParams,
    GroupMeansSolution,
)


_PROBS = np.array([0.0, 0.25, 0.5, 0.75, 1.0])


def describe(
    dataset: Dataset,
    fields: Sequence[str] | None = None,
) -> DescriptiveSolution:
    """
    Count, mean, sample standard deviation and five-number summary.

    Args:
        dataset: Source dataset
        fields: Continuous fields to summarise. Default: all of them.

    Raises:
        ValidationError: If a requested field is categorical
    """
    columns = tuple(fields) if fields is not None else dataset.schema.continuous()
    if not columns:
        raise ValidationError("describe: no continuous fields to summarise")

    with timed() as timer:
        data = np.column_stack([dataset.numeric(name) for name in columns])
        mean = np.mean(data, axis=0)
        sd = np.std(data, axis=0, ddof=1)
        # numpy's default 'linear' method is R's quantile type 7
        quantiles = np.quantile(data, _PROBS, axis=0)

    params = DescriptiveParams(
        columns=columns,
        n=dataset.n_observations,
        mean=mean,
        sd=sd,
        quantiles=quantiles,
    )
    result = Result(
        params=params,
        info={'quantile_type': 7},
        timing=timer.result(),
        backend_name='cpu',
    )
    return DescriptiveSolution(_result=result)


def group_means(dataset: Dataset, response: str, by: str) -> GroupMeansSolution:
    """
    Count, mean and standard deviation of `response` per level of `by`.

    Levels appear in declared order, including levels with no observations
    (n = 0, mean and sd NaN). A level with one observation has sd NaN.

    Raises:
        ValidationError: If `by` is not categorical or `response` is not continuous
    """
    y = dataset.numeric(response)
    f = dataset.schema[by]
    if f.kind != 'categorical':
        raise ValidationError(f"group_means: {by!r} is not a categorical field")

    with timed() as timer:
        groups = dataset[by]
        counts, means, sds = [], [], []
        result_warnings = []
        for level in f.levels:
            values = y[groups == level]
            counts.append(len(values))
            means.append(float(np.mean(values)) if len(values) else np.nan)
            sds.append(float(np.std(values, ddof=1)) if len(values) > 1 else np.nan)
            if len(values) == 0:
                result_warnings.append(f"{by}: level {level!r} has no observations")

    params = GroupMeansParams(
        response=response,
        by=by,
        levels=f.levels,
        n=np.array(counts, dtype=np.int64),
        mean=np.array(means),
        sd=np.array(sds),
    )
    result = Result(
        params=params,
        info={},
        timing=timer.result(),
        backend_name='cpu',
        warnings=tuple(result_warnings),
    )
    return GroupMeansSolution(_result=result)


def correlations(dataset: Dataset, response: str) -> CorrelationSolution:
    """
    Pearson correlation (and its two-sided p-value) of every other
    continuous field with `response`, in schema order.
    """
    y = dataset.numeric(response)
    columns = tuple(name for name in dataset.schema.continuous() if name != response)

    with timed() as timer:
        r = np.empty(len(columns))
        p = np.empty(len(columns))
        for j, name in enumerate(columns):
            test = sp_stats.pearsonr(dataset.numeric(name), y)
            r[j] = test.statistic
            p[j] = test.pvalue

    params = CorrelationParams(
        response=response,
        columns=columns,
        r=r,
        p_value=p,
        n=dataset.n_observations,
    )
    result = Result(
        params=params,
        info={'method': 'pearson'},
        timing=timer.result(),
        backend_name='cpu',
    )
    return CorrelationSolution(_result=result)
