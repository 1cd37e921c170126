"""
adaquad Expression Collaborators

The quadrature engine never parses text itself. It calls two capabilities:

- ExpressionParser.parse(text) -> float, for the integration endpoints
- FunctionEvaluator.evaluate(x, expr_text) -> float, for the integrand

SympyExpressions implements both on top of sympy. Expressions use the
calculator conventions of the web front end: ``^`` is exponentiation,
juxtaposition multiplies (``2x``, ``3sin(x)``), ``x`` (or ``X``) is the only
variable and ``pi``/``e`` are constants.
"""

from functools import lru_cache
from tokenize import TokenError
from typing import Callable, Protocol
import math
import re

import sympy as sp
from sympy.core.function import AppliedUndef
from sympy.core.sympify import SympifyError
from sympy.parsing.sympy_parser import (
    parse_expr,
    standard_transformations,
    implicit_multiplication_application,
    convert_xor,
)

from .errors import EvalError, ParseError, QuadratureError

X = sp.Symbol("x", real=True)

TRANSFORMATIONS = standard_transformations + (implicit_multiplication_application, convert_xor)

LOCALS = {"x": X, "X": X, "e": sp.E, "pi": sp.pi}

# Arithmetic alphabet accepted from callers; anything else never reaches sympy
_ALLOWED = re.compile(r"^[0-9A-Za-z.+\-*/^()\s,]+$")

_SYMPY_ERRORS = (SympifyError, SyntaxError, TokenError, TypeError, ValueError, AttributeError, NameError)
_MATH_ERRORS = (ZeroDivisionError, ValueError, OverflowError, TypeError, NameError)


class ExpressionParser(Protocol):
    """Parses an endpoint expression into a finite real number."""

    def parse(self, text: str) -> float:
        ...


class FunctionEvaluator(Protocol):
    """Evaluates an integrand expression at a real x."""

    def evaluate(self, x: float, expr_text: str) -> float:
        ...


def to_sympy(text: str, error_cls: type[QuadratureError] = ParseError) -> sp.Expr:
    """Parse ``text`` into a sympy expression.

    Raises:
        error_cls: If the text is empty, contains characters outside the
            arithmetic alphabet, or is not a valid scalar expression
    """
    if not text or not text.strip():
        raise error_cls("empty expression")
    if not _ALLOWED.match(text) or "__" in text:
        raise error_cls(f"invalid characters in expression '{text}'")

    try:
        expr = parse_expr(text, local_dict=dict(LOCALS), transformations=TRANSFORMATIONS)
    except _SYMPY_ERRORS as exc:
        raise error_cls(f"cannot parse expression '{text}': {exc}") from exc

    if not isinstance(expr, sp.Expr):
        raise error_cls(f"expression '{text}' is not a scalar")
    return expr


@lru_cache(maxsize=256)
def compile_function(expr_text: str) -> Callable[[float], float]:
    """Compile an integrand expression into a plain float callable.

    Results are memoised per expression string, so the refinement loop
    pays the sympy cost once per request.

    Raises:
        EvalError: If the text does not parse or references anything but x
    """
    expr = to_sympy(expr_text, EvalError)

    unknown = sorted(str(s) for s in expr.free_symbols - {X})
    if unknown:
        raise EvalError(f"unknown symbol(s) {', '.join(unknown)} in f(x) = {expr_text}")
    undefined = sorted(str(f.func) for f in expr.atoms(AppliedUndef))
    if undefined:
        raise EvalError(f"unknown function(s) {', '.join(undefined)} in f(x) = {expr_text}")

    try:
        return sp.lambdify(X, expr, modules="math")
    except _SYMPY_ERRORS as exc:
        raise EvalError(f"cannot compile f(x) = {expr_text}: {exc}") from exc


class SympyExpressions:
    """Expression Parser and Function Evaluator backed by sympy."""

    def parse(self, text: str) -> float:
        """Parse an endpoint such as ``"2"``, ``"pi/2"`` or ``"e^2"``.

        Raises:
            ParseError: If the text is not a finite real constant
        """
        expr = to_sympy(text, ParseError)
        if expr.free_symbols:
            names = ", ".join(sorted(str(s) for s in expr.free_symbols))
            raise ParseError(f"endpoint '{text}' must be a number, found symbol(s) {names}")

        value = expr.evalf()
        if value.is_real is not True or value.is_finite is not True:
            raise ParseError(f"endpoint '{text}' is not a finite real number")
        # Finite in sympy can still overflow a double
        try:
            result = float(value)
        except OverflowError as exc:
            raise ParseError(f"endpoint '{text}' is not a finite real number") from exc
        if not math.isfinite(result):
            raise ParseError(f"endpoint '{text}' is not a finite real number")
        return result

    def evaluate(self, x: float, expr_text: str) -> float:
        """Evaluate ``expr_text`` at ``x``.

        Raises:
            EvalError: On unknown symbols, division by zero, domain errors,
                overflow, or a complex or non-finite value
        """
        func = compile_function(expr_text)
        try:
            value = func(x)
        except _MATH_ERRORS as exc:
            raise EvalError(f"cannot evaluate f(x) = {expr_text} at x = {x}: {exc}", x=x) from exc

        if isinstance(value, complex):
            raise EvalError(f"f(x) = {expr_text} is complex at x = {x}", x=x)
        try:
            value = float(value)
        except _SYMPY_ERRORS as exc:
            raise EvalError(f"f(x) = {expr_text} is not real at x = {x}", x=x) from exc
        if not math.isfinite(value):
            raise EvalError(f"f(x) = {expr_text} is not finite at x = {x}", x=x)
        return value


DEFAULT_EXPRESSIONS = SympyExpressions()


def parse_expression(text: str) -> float:
    """Parse an endpoint with the default sympy collaborator."""
    return DEFAULT_EXPRESSIONS.parse(text)


def evaluate_function(x: float, expr_text: str) -> float:
    """Evaluate an integrand with the default sympy collaborator."""
    return DEFAULT_EXPRESSIONS.evaluate(x, expr_text)
