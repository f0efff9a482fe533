"""
Model specification: response plus an ordered set of regressor terms.

Three kinds of term exist:

    Variable('wt')                 a raw dataset field
    Derived.ratio('hp', 'wt')      a numeric expression over fields, I(hp/wt)
    Interaction(a, b)              element-wise product of two terms, a:b

Terms are frozen and hashable. Two terms are the same term when their
``key`` matches, which is what nesting between specifications is decided
on (``a:b`` and ``b:a`` share a key).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Hashable, Mapping

import numpy as np
from numpy.typing import NDArray

from carstats.core.exceptions import InvalidSpecificationError


# =====================================================================
# Arithmetic expressions (bodies of I(...) terms)
# =====================================================================

_PRECEDENCE = {'+': 1, '-': 1, '*': 2, '/': 2}


class Expr(ABC):
    """Node of a derived-term expression tree."""

    precedence: int = 3

    @abstractmethod
    def render(self) -> str:
        ...

    @abstractmethod
    def fields(self) -> frozenset[str]:
        ...

    @abstractmethod
    def evaluate(self, columns: Mapping[str, NDArray]) -> NDArray:
        ...


@dataclass(frozen=True)
class FieldRef(Expr):
    name: str

    def render(self) -> str:
        return self.name

    def fields(self) -> frozenset[str]:
        return frozenset({self.name})

    def evaluate(self, columns: Mapping[str, NDArray]) -> NDArray:
        return np.asarray(columns[self.name], dtype=np.float64)


@dataclass(frozen=True)
class Constant(Expr):
    value: float

    def render(self) -> str:
        return repr(int(self.value)) if float(self.value).is_integer() else repr(self.value)

    def fields(self) -> frozenset[str]:
        return frozenset()

    def evaluate(self, columns: Mapping[str, NDArray]) -> NDArray:
        return np.float64(self.value)


@dataclass(frozen=True)
class Negate(Expr):
    operand: Expr

    def render(self) -> str:
        inner = self.operand.render()
        if self.operand.precedence < self.precedence:
            inner = f"({inner})"
        return f"-{inner}"

    def fields(self) -> frozenset[str]:
        return self.operand.fields()

    def evaluate(self, columns: Mapping[str, NDArray]) -> NDArray:
        return -self.operand.evaluate(columns)


@dataclass(frozen=True)
class BinOp(Expr):
    op: str
    left: Expr
    right: Expr

    def __post_init__(self):
        if self.op not in _PRECEDENCE:
            raise InvalidSpecificationError(f"Unsupported operator {self.op!r}")

    @property
    def precedence(self) -> int:  # type: ignore[override]
        return _PRECEDENCE[self.op]

    def render(self) -> str:
        left = self.left.render()
        if self.left.precedence < self.precedence:
            left = f"({left})"
        right = self.right.render()
        if (self.right.precedence < self.precedence
                or (self.right.precedence == self.precedence and self.op in '-/')):
            right = f"({right})"
        # R deparses division without spaces: I(hp/wt)
        if self.op == '/':
            return f"{left}/{right}"
        return f"{left} {self.op} {right}"

    def fields(self) -> frozenset[str]:
        return self.left.fields() | self.right.fields()

    def evaluate(self, columns: Mapping[str, NDArray]) -> NDArray:
        a = self.left.evaluate(columns)
        b = self.right.evaluate(columns)
        if self.op == '+':
            return a + b
        if self.op == '-':
            return a - b
        if self.op == '*':
            return a * b
        with np.errstate(divide='ignore', invalid='ignore'):
            return a / b


# =====================================================================
# Terms
# =====================================================================


class Term(ABC):
    """A regressor term of a model specification."""

    @property
    @abstractmethod
    def label(self) -> str:
        """Display label, R formula notation."""

    @property
    @abstractmethod
    def key(self) -> Hashable:
        """Identity used for equality between specifications."""

    @abstractmethod
    def fields(self) -> frozenset[str]:
        """All dataset fields this term reads."""

    def __str__(self) -> str:
        return self.label


@dataclass(frozen=True)
class Variable(Term):
    """A raw dataset field (continuous or categorical)."""
    name: str

    @property
    def label(self) -> str:
        return self.name

    @property
    def key(self) -> Hashable:
        return ('variable', self.name)

    def fields(self) -> frozenset[str]:
        return frozenset({self.name})


@dataclass(frozen=True)
class Derived(Term):
    """A numeric expression over continuous fields, evaluated row-wise."""
    expression: Expr

    @classmethod
    def ratio(cls, numerator: str, denominator: str) -> Derived:
        """The term I(numerator/denominator)."""
        return cls(BinOp('/', FieldRef(numerator), FieldRef(denominator)))

    @property
    def label(self) -> str:
        return f"I({self.expression.render()})"

    @property
    def key(self) -> Hashable:
        return ('derived', self.expression.render())

    def fields(self) -> frozenset[str]:
        return self.expression.fields()

    def evaluate(self, columns: Mapping[str, NDArray], n: int) -> NDArray:
        """Row-wise values; constant expressions are broadcast to length n."""
        values = np.asarray(self.expression.evaluate(columns), dtype=np.float64)
        if values.ndim == 0:
            values = np.full(n, float(values))
        return values


@dataclass(frozen=True)
class Interaction(Term):
    """Element-wise product of two terms (after categorical expansion)."""
    left: Term
    right: Term

    def components(self) -> tuple[Term, ...]:
        """Non-interaction terms making up this product, left to right."""
        parts: list[Term] = []
        for side in (self.left, self.right):
            if isinstance(side, Interaction):
                parts.extend(side.components())
            else:
                parts.append(side)
        return tuple(parts)

    @property
    def label(self) -> str:
        return f"{self.left.label}:{self.right.label}"

    @property
    def key(self) -> Hashable:
        return ('interaction', frozenset(c.key for c in self.components()))

    def fields(self) -> frozenset[str]:
        return self.left.fields() | self.right.fields()


# =====================================================================
# ModelSpec
# =====================================================================


@dataclass(frozen=True)
class ModelSpec:
    """
    Response field plus ordered regressor terms.

    The intercept is implicit. A specification without terms is only
    valid when explicitly intercept-only (formula ``y ~ 1``).

    Attributes:
        response: Response field name
        terms: Regressor terms in declaration (= column) order
        name: Optional display name, used by the model selector
        intercept_only: True for the ``y ~ 1`` model

    Raises:
        InvalidSpecificationError: On zero terms, duplicate terms, or the
            response appearing inside a regressor term
    """
    response: str
    terms: tuple[Term, ...] = ()
    name: str | None = None
    intercept_only: bool = False

    def __post_init__(self):
        terms = tuple(self.terms)
        object.__setattr__(self, 'terms', terms)

        if not terms and not self.intercept_only:
            raise InvalidSpecificationError(
                f"Model for {self.response!r} declares zero terms; "
                f"use intercept_only=True (formula '{self.response} ~ 1') for the null model"
            )
        if terms and self.intercept_only:
            raise InvalidSpecificationError(
                "intercept_only=True cannot be combined with regressor terms"
            )

        seen: set[Hashable] = set()
        for term in terms:
            if not isinstance(term, Term):
                raise InvalidSpecificationError(
                    f"Expected Term, got {type(term).__name__}: {term!r}"
                )
            if term.key in seen:
                raise InvalidSpecificationError(
                    f"Term {term.label!r} appears more than once"
                )
            seen.add(term.key)
            if self.response in term.fields():
                raise InvalidSpecificationError(
                    f"Response {self.response!r} cannot be used as a regressor "
                    f"(term {term.label!r})",
                    field=self.response,
                )

    @classmethod
    def parse(cls, formula: str, *, name: str | None = None) -> ModelSpec:
        """Build a specification from an R-style formula string."""
        from carstats.regression.formula import parse_formula
        return parse_formula(formula, name=name)

    @property
    def formula(self) -> str:
        rhs = ' + '.join(t.label for t in self.terms) if self.terms else '1'
        return f"{self.response} ~ {rhs}"

    @property
    def display_name(self) -> str:
        return self.name if self.name is not None else self.formula

    @property
    def term_labels(self) -> tuple[str, ...]:
        return tuple(t.label for t in self.terms)

    @property
    def term_keys(self) -> frozenset[Hashable]:
        return frozenset(t.key for t in self.terms)

    def fields(self) -> frozenset[str]:
        """Every field the specification reads, response included."""
        out = {self.response}
        for term in self.terms:
            out |= term.fields()
        return frozenset(out)

    def is_nested_in(self, other: ModelSpec) -> bool:
        """True when this model's terms are a subset of `other`'s (same response)."""
        return self.response == other.response and self.term_keys <= other.term_keys

    def extend(self, *terms: Term, name: str | None = None) -> ModelSpec:
        """New specification with `terms` appended."""
        return ModelSpec(self.response, self.terms + tuple(terms), name=name)

    def __str__(self) -> str:
        return self.formula


def as_spec(spec: ModelSpec | str, **kwargs: Any) -> ModelSpec:
    """Accept either a ModelSpec or a formula string."""
    if isinstance(spec, ModelSpec):
        return spec
    if isinstance(spec, str):
        return ModelSpec.parse(spec, **kwargs)
    raise InvalidSpecificationError(
        f"Expected ModelSpec or formula string, got {type(spec).__name__}"
    )
