"""
Model comparison.

Public API:
    compare_models(restricted, full) -> ComparisonSolution
    anova_models(m1, m2, ...) -> ModelAnovaSolution
    anova_table(solution) -> AnovaSolution

All three work on already fitted LinearSolutions and only compare
residual sums of squares; no new solver math.
"""

import warnings

import numpy as np
from scipy import stats as sp_stats

from carstats.core.result import Result
from carstats.core.exceptions import NotNestedError, ValidationError
from carstats.core.compute.timing import timed
from carstats.anova._common import (
    AnovaParams,
    AnovaTableRow,
    ComparisonParams,
    ModelAnovaParams,
    ModelComparisonRow,
)
from carstats.anova.solution import (
    AnovaSolution,
    ComparisonSolution,
    ModelAnovaSolution,
)
from carstats.regression.solution import LinearSolution
from carstats.regression.solvers import fit


def compare_models(
    restricted: LinearSolution,
    full: LinearSolution,
) -> ComparisonSolution:
    """
    F test of a restricted model against a larger model containing it.

        F = [(RSS_r - RSS_f) / (P_f - P_r)] / [RSS_f / (N - P_f - 1)]

    with p-value from F(P_f - P_r, N - P_f - 1).

    Nesting of the term sets is the caller's precondition. It is checked
    here only when both fits carry a ModelSpec; otherwise just the degrees
    of freedom and the data are checked.

    Args:
        restricted: Fit of the smaller model (A)
        full: Fit of the larger model (B)

    Returns:
        ComparisonSolution with F, degrees of freedom and p-value

    Raises:
        NotNestedError: If P_f <= P_r (comparing a model with itself
            included), if the fits use different observations or
            responses, or if both specs are known and A is not nested in B

    Examples:
        >>> small = lm("mpg ~ wt + I(hp/wt)", mtcars)
        >>> big = lm("mpg ~ wt * I(hp/wt)", mtcars)
        >>> compare_models(small, big).p_value
    """
    with timed() as timer:
        _check_same_data(restricted, full)

        p_r = restricted.n_coefficients
        p_f = full.n_coefficients
        if p_f <= p_r:
            raise NotNestedError(
                f"Full model must have more coefficients than the restricted model: "
                f"restricted {restricted.name!r} has {p_r}, full {full.name!r} has {p_f}",
                df_restricted=restricted.df_residual,
                df_full=full.df_residual,
            )
        if restricted.spec is not None and full.spec is not None:
            if not restricted.spec.is_nested_in(full.spec):
                raise NotNestedError(
                    f"{restricted.spec.formula!r} is not nested in {full.spec.formula!r}",
                    df_restricted=restricted.df_residual,
                    df_full=full.df_residual,
                )

        df_num = p_f - p_r
        df_den = full.df_residual
        sum_sq = restricted.rss - full.rss

        result_warnings: list[str] = []
        if sum_sq < 0:
            msg = (
                f"RSS of the full model ({full.rss:.6g}) exceeds RSS of the restricted "
                f"model ({restricted.rss:.6g}); the models are probably not nested"
            )
            warnings.warn(msg, RuntimeWarning, stacklevel=2)
            result_warnings.append(msg)

        f_value, p_value = _f_test(sum_sq, df_num, full.rss, df_den)

    params = ComparisonParams(
        restricted=restricted.name,
        full=full.name,
        n_obs=full.n_observations,
        rss_restricted=restricted.rss,
        rss_full=full.rss,
        df_restricted=restricted.df_residual,
        df_full=full.df_residual,
        df_numerator=df_num,
        df_denominator=df_den,
        sum_sq=sum_sq,
        f_value=f_value,
        p_value=p_value,
    )
    result = Result(
        params=params,
        info={'test': 'F', 'method': 'nested_rss'},
        timing=timer.result(),
        backend_name='cpu',
        warnings=tuple(result_warnings),
    )
    return ComparisonSolution(_result=result)


def anova_models(*solutions: LinearSolution) -> ModelAnovaSolution:
    """
    Sequential comparison of two or more fits, like R's anova(m1, m2, ...).

    Each model is compared with its predecessor. The scale is the residual
    mean square of the model with the fewest residual degrees of freedom,
    so with two models the F test equals compare_models().

    Raises:
        ValidationError: If fewer than two models are given
        NotNestedError: If the fits use different observations or responses
    """
    if len(solutions) < 2:
        raise ValidationError(
            f"anova_models: need at least 2 models, got {len(solutions)}"
        )

    with timed() as timer:
        for other in solutions[1:]:
            _check_same_data(solutions[0], other)

        res_df = [s.df_residual for s in solutions]
        rss = [s.rss for s in solutions]
        big = int(np.argmin(res_df))
        scale_df = res_df[big]
        scale = rss[big] / scale_df

        rows = [ModelComparisonRow(
            model=solutions[0].name,
            res_df=res_df[0],
            rss=rss[0],
            df=None,
            sum_sq=None,
            f_value=None,
            p_value=None,
        )]
        for i in range(1, len(solutions)):
            df = res_df[i - 1] - res_df[i]
            ss = rss[i - 1] - rss[i]
            if df == 0 or scale == 0:
                f_value = p_value = None
            else:
                f_value = float(ss / df / scale)
                p_value = float(sp_stats.f.sf(f_value, abs(df), scale_df))
            rows.append(ModelComparisonRow(
                model=solutions[i].name,
                res_df=res_df[i],
                rss=rss[i],
                df=df,
                sum_sq=ss,
                f_value=f_value,
                p_value=p_value,
            ))

    params = ModelAnovaParams(
        table=tuple(rows),
        n_obs=solutions[0].n_observations,
        scale=scale,
        scale_df=scale_df,
    )
    result = Result(
        params=params,
        info={'n_models': len(solutions)},
        timing=timer.result(),
        backend_name='cpu',
    )
    return ModelAnovaSolution(_result=result)


def anova_table(solution: LinearSolution) -> AnovaSolution:
    """
    Type I (sequential) sums of squares for each term of one fitted model.

    Terms are added in declaration order:
        SS(term_k) = RSS(terms 1..k-1) - RSS(terms 1..k)
    and tested against the full model's residual mean square. This matches
    R's anova(lm(...)).
    """
    with timed() as timer:
        design = solution.design
        X = design.X
        y = design.y
        n = design.n

        if design.has_intercept:
            rss_prev = float(np.sum((y - np.mean(y)) ** 2))
        else:
            rss_prev = float(y @ y)

        df_residual = solution.df_residual
        ms_residual = solution.rss / df_residual

        rows: list[AnovaTableRow] = []
        for term, cols in design.term_slices.items():
            rss_current = fit(X[:, :cols.stop], y).rss
            ss_term = rss_prev - rss_current
            df_term = cols.stop - cols.start
            f_value, p_value = _f_test(ss_term, df_term, solution.rss, df_residual)
            rows.append(AnovaTableRow(
                term=term,
                df=df_term,
                sum_sq=ss_term,
                mean_sq=ss_term / df_term,
                f_value=f_value,
                p_value=p_value,
            ))
            rss_prev = rss_current

        rows.append(AnovaTableRow(
            term='Residuals',
            df=df_residual,
            sum_sq=solution.rss,
            mean_sq=ms_residual,
            f_value=None,
            p_value=None,
        ))

    params = AnovaParams(
        table=tuple(rows),
        model=solution.name,
        response=design.spec.response if design.spec is not None else 'y',
        n_obs=n,
        residual_df=df_residual,
        residual_ss=solution.rss,
        residual_ms=ms_residual,
    )
    result = Result(
        params=params,
        info={'ss_type': 1},
        timing=timer.result(),
        backend_name='cpu',
    )
    return AnovaSolution(_result=result)


# =====================================================================
# Helpers
# =====================================================================


def _check_same_data(a: LinearSolution, b: LinearSolution) -> None:
    """Both fits must use the same observations and the same response."""
    if a.n_observations != b.n_observations:
        raise NotNestedError(
            f"Models were fit to different numbers of observations: "
            f"{a.name!r} n={a.n_observations}, {b.name!r} n={b.n_observations}",
            df_restricted=a.df_residual,
            df_full=b.df_residual,
        )
    if not np.array_equal(a.design.y, b.design.y):
        raise NotNestedError(
            f"Models {a.name!r} and {b.name!r} were fit to different responses",
            df_restricted=a.df_residual,
            df_full=b.df_residual,
        )


def _f_test(
    ss: float,
    df: int,
    rss_error: float,
    df_error: int,
) -> tuple[float, float]:
    """F statistic and upper-tail p-value for an extra sum of squares."""
    with np.errstate(divide='ignore', invalid='ignore'):
        f_value = float(np.float64(ss / df) / np.float64(rss_error / df_error))
    p_value = float(sp_stats.f.sf(f_value, df, df_error))
    return f_value, p_value

