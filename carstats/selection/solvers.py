"""
Candidate model comparison.

Public API:
    compare_candidates(dataset, candidates, *, proposed) -> SelectionSolution

Fits a fixed, ordered list of candidate specifications and tabulates R²,
adjusted R² and the nested F test of each candidate against one proposed
model. No model is picked; the table is input for a human judgement.
"""

from __future__ import annotations

from typing import Sequence

from carstats.core.dataset import Dataset
from carstats.core.exceptions import CarStatsError, InvalidSpecificationError
from carstats.core.result import Result
from carstats.core.compute.timing import timed
from carstats.anova.solvers import compare_models
from carstats.regression.solvers import lm
from carstats.regression.solution import LinearSolution
from carstats.regression.terms import ModelSpec, as_spec
from carstats.selection._common import (
    CONTAINS_PROPOSED,
    NESTED_IN_PROPOSED,
    PROPOSED,
    CandidateRow,
    SelectionParams,
)
from carstats.selection.solution import SelectionSolution


def compare_candidates(
    dataset: Dataset,
    candidates: Sequence[ModelSpec | str],
    *,
    proposed: ModelSpec | str | int,
    tol: float | None = None,
) -> SelectionSolution:
    """
    Fit every candidate and compare each with the proposed model.

    Args:
        dataset: Dataset all candidates are fit to
        candidates: Ordered ModelSpecs or formula strings sharing one response
        proposed: The proposed model, given as a candidate index, a
            candidate name or formula, or a ModelSpec with the same terms
            as one of the candidates
        tol: Rank tolerance passed to every fit

    Returns:
        SelectionSolution with one row per candidate, in input order

    Raises:
        InvalidSpecificationError: If there are no candidates, names repeat,
            responses differ, or the proposed model is not a candidate
        CarStatsError: Whatever a candidate's fit raises, with the same type,
            tagged with the candidate name (``exc.candidate``)

    Example:
        >>> table = compare_candidates(
        ...     mtcars,
        ...     ["mpg ~ wt", "mpg ~ wt + I(hp/wt)", "mpg ~ wt * I(hp/wt)"],
        ...     proposed="mpg ~ wt + I(hp/wt)",
        ... )
        >>> print(table.summary())
    """
    if len(candidates) == 0:
        raise InvalidSpecificationError("compare_candidates: no candidate models given")

    with timed() as timer:
        specs = []
        for candidate in candidates:
            # Formula strings keep their spelling as the display name
            name = candidate if isinstance(candidate, str) else None
            try:
                specs.append(as_spec(candidate, name=name))
            except CarStatsError as exc:
                raise exc.tag_candidate(str(candidate))

        names = [spec.display_name for spec in specs]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise InvalidSpecificationError(f"Candidate names must be unique: {duplicates}")

        responses = {spec.response for spec in specs}
        if len(responses) > 1:
            raise InvalidSpecificationError(
                f"All candidates must share one response, got {sorted(responses)}"
            )

        proposed_index = _resolve_proposed(proposed, specs)
        proposed_spec = specs[proposed_index]

        solutions: dict[str, LinearSolution] = {}
        for name, spec in zip(names, specs):
            try:
                solutions[name] = lm(spec, dataset, tol=tol)
            except CarStatsError as exc:
                raise exc.tag_candidate(name)

        proposed_sol = solutions[names[proposed_index]]
        rows: list[CandidateRow] = []
        result_warnings: list[str] = []

        for i, (name, spec) in enumerate(zip(names, specs)):
            sol = solutions[name]
            f_value = p_value = None
            if i == proposed_index:
                direction = PROPOSED
            elif spec.term_keys < proposed_spec.term_keys:
                direction = NESTED_IN_PROPOSED
                cmp = compare_models(sol, proposed_sol)
                f_value, p_value = cmp.f_statistic, cmp.p_value
                result_warnings.extend(cmp.warnings)
            elif proposed_spec.term_keys < spec.term_keys:
                direction = CONTAINS_PROPOSED
                cmp = compare_models(proposed_sol, sol)
                f_value, p_value = cmp.f_statistic, cmp.p_value
                result_warnings.extend(cmp.warnings)
            else:
                direction = None

            rows.append(CandidateRow(
                name=name,
                formula=spec.formula,
                n_terms=len(spec.terms),
                n_coefficients=sol.n_coefficients,
                r_squared=sol.r_squared,
                adjusted_r_squared=sol.adjusted_r_squared,
                f_statistic=f_value,
                p_value=p_value,
                direction=direction,
            ))
            result_warnings.extend(f"{name}: {w}" for w in sol.warnings)

    params = SelectionParams(
        rows=tuple(rows),
        proposed=names[proposed_index],
        response=proposed_spec.response,
        n_obs=dataset.n_observations,
    )
    result = Result(
        params=params,
        info={'n_candidates': len(specs), 'proposed_index': proposed_index},
        timing=timer.result(),
        backend_name='cpu_qr',
        warnings=tuple(result_warnings),
    )
    return SelectionSolution(_result=result, _solutions=solutions)


def _resolve_proposed(proposed: ModelSpec | str | int, specs: list[ModelSpec]) -> int:
    """Index of the proposed model among the candidate specs."""
    if isinstance(proposed, bool):
        raise InvalidSpecificationError(f"Invalid proposed model: {proposed!r}")

    if isinstance(proposed, int):
        if not -len(specs) <= proposed < len(specs):
            raise InvalidSpecificationError(
                f"proposed index {proposed} out of range for {len(specs)} candidates"
            )
        return proposed % len(specs)

    if isinstance(proposed, str):
        for i, spec in enumerate(specs):
            if proposed in (spec.display_name, spec.formula):
                return i

    target = as_spec(proposed)
    for i, spec in enumerate(specs):
        if spec.response == target.response and spec.term_keys == target.term_keys:
            return i

    raise InvalidSpecificationError(
        f"Proposed model {target.formula!r} is not among the candidates: "
        f"{[spec.display_name for spec in specs]}"
    )
