"""
R-style model formulas.

Supported grammar (a subset of R's):

    formula      := NAME '~' rhs
    rhs          := '1' | crossed ('+' crossed)*
    crossed      := interaction ('*' interaction)*     a*b  ->  a + b + a:b
    interaction  := factor (':' factor)*
    factor       := NAME | 'I' '(' expr ')'
    expr         := arithmetic over NAME and NUMBER with + - * / and parentheses

Examples:
    mpg ~ 1
    mpg ~ wt
    mpg ~ wt + I(hp/wt)
    mpg ~ wt * I(hp/wt)
    mpg ~ wt + qsec + am

Repeated terms are dropped, keeping the first occurrence (R behaviour).
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from carstats.core.exceptions import InvalidSpecificationError
from carstats.regression.terms import (
    BinOp,
    Constant,
    Derived,
    Expr,
    FieldRef,
    Interaction,
    ModelSpec,
    Negate,
    Term,
    Variable,
)


_TOKEN_RE = re.compile(
    r"\s*(?:"
    r"(?P<number>\d+\.\d*|\.\d+|\d+)"
    r"|(?P<name>[A-Za-z_][A-Za-z0-9_.]*)"
    r"|(?P<op>[~+\-*/:()])"
    r")"
)


@dataclass(frozen=True)
class _Token:
    kind: str    # 'number', 'name', 'op', 'end'
    text: str
    pos: int


def _tokenize(text: str) -> list[_Token]:
    tokens: list[_Token] = []
    pos = 0
    text = text.rstrip()
    while pos < len(text):
        while text[pos].isspace():
            pos += 1
        match = _TOKEN_RE.match(text, pos)
        if match is None or match.end() == pos:
            raise InvalidSpecificationError(
                f"Unexpected character {text[pos]!r} at position {pos} in formula {text!r}"
            )
        kind = match.lastgroup
        tokens.append(_Token(kind, match.group(kind), match.start(kind)))
        pos = match.end()
    tokens.append(_Token('end', '', len(text)))
    return tokens


class _Parser:
    """Recursive-descent parser over the token list."""

    def __init__(self, text: str):
        self.text = text
        self.tokens = _tokenize(text)
        self.i = 0

    # --- token helpers ---

    @property
    def current(self) -> _Token:
        return self.tokens[self.i]

    def _error(self, message: str) -> InvalidSpecificationError:
        tok = self.current
        found = tok.text if tok.kind != 'end' else 'end of formula'
        return InvalidSpecificationError(
            f"{message} at position {tok.pos} (found {found!r}) in formula {self.text!r}"
        )

    def _accept(self, text: str) -> bool:
        if self.current.kind == 'op' and self.current.text == text:
            self.i += 1
            return True
        return False

    def _expect(self, text: str) -> None:
        if not self._accept(text):
            raise self._error(f"Expected {text!r}")

    # --- grammar ---

    def parse(self, name: str | None) -> ModelSpec:
        if self.current.kind != 'name':
            raise self._error("Expected response name")
        response = self.current.text
        self.i += 1
        self._expect('~')

        if self.current.kind == 'number':
            if self.current.text not in ('1', '1.', '1.0'):
                raise self._error("Only '1' may stand for the intercept")
            self.i += 1
            if self.current.kind != 'end':
                raise self._error("Intercept-only formula must end after '1'")
            return ModelSpec(response, (), name=name, intercept_only=True)

        terms = self._sum()
        if self.current.kind != 'end':
            raise self._error("Unexpected token")

        unique: list[Term] = []
        seen = set()
        for term in terms:
            if term.key not in seen:
                seen.add(term.key)
                unique.append(term)
        return ModelSpec(response, tuple(unique), name=name)

    def _sum(self) -> list[Term]:
        terms = self._crossed()
        while self._accept('+'):
            terms.extend(self._crossed())
        return terms

    def _crossed(self) -> list[Term]:
        expanded = [self._interaction()]
        while self._accept('*'):
            factor = self._interaction()
            expanded = expanded + [factor] + [Interaction(t, factor) for t in expanded]
        return expanded

    def _interaction(self) -> Term:
        term = self._factor()
        while self._accept(':'):
            term = Interaction(term, self._factor())
        return term

    def _factor(self) -> Term:
        tok = self.current
        if tok.kind != 'name':
            raise self._error("Expected a variable name or I(...)")
        self.i += 1
        if tok.text == 'I' and self._accept('('):
            expr = self._expr()
            self._expect(')')
            return Derived(expr)
        return Variable(tok.text)

    # --- arithmetic inside I(...) ---

    def _expr(self) -> Expr:
        node = self._mul()
        while self.current.kind == 'op' and self.current.text in '+-':
            op = self.current.text
            self.i += 1
            node = BinOp(op, node, self._mul())
        return node

    def _mul(self) -> Expr:
        node = self._unary()
        while self.current.kind == 'op' and self.current.text in '*/':
            op = self.current.text
            self.i += 1
            node = BinOp(op, node, self._unary())
        return node

    def _unary(self) -> Expr:
        if self._accept('-'):
            return Negate(self._unary())
        if self._accept('+'):
            return self._unary()
        return self._atom()

    def _atom(self) -> Expr:
        tok = self.current
        if tok.kind == 'number':
            self.i += 1
            return Constant(float(tok.text))
        if tok.kind == 'name':
            self.i += 1
            return FieldRef(tok.text)
        if self._accept('('):
            node = self._expr()
            self._expect(')')
            return node
        raise self._error("Expected a number, a field name or '('")


def parse_formula(formula: str, *, name: str | None = None) -> ModelSpec:
    """
    Parse an R-style formula into a ModelSpec.

    Raises:
        InvalidSpecificationError: On any syntax error, or when the
            resulting specification is invalid
    """
    if not isinstance(formula, str) or not formula.strip():
        raise InvalidSpecificationError(f"Empty formula: {formula!r}")
    return _Parser(formula).parse(name)
