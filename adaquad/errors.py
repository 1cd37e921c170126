"""
adaquad Errors

Failures raised by the quadrature engine and its expression collaborators.
Every error is terminal for the current request and carries a human-readable
``message`` that the presentation layer can echo verbatim.
"""

from typing import Optional


class QuadratureError(Exception):
    """Base class for all adaquad failures."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ParseError(QuadratureError):
    """An endpoint expression could not be parsed into a finite real number."""


class EvalError(QuadratureError):
    """The integrand could not be evaluated at some x."""

    def __init__(self, message: str, x: Optional[float] = None) -> None:
        self.x = x
        super().__init__(message)


class ConvergenceError(QuadratureError):
    """Refinement hit the subdivision cap before the estimates settled."""

    def __init__(self, message: str, estimate: float, subdivisions: int) -> None:
        self.estimate = estimate
        self.subdivisions = subdivisions
        super().__init__(message)
