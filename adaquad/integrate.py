"""
adaquad Numerical Integration

This module provides the adaptive definite-integral evaluator:

∫_{xi}^{xf} f(x) dx ≈ (2·dx/3) · Σ weight_k · f(x_k)

Key features:
- Uniform grids that double every refinement level (whole-interval refinement)
- Extended Simpson's rule with weights 0.5 / 1 / 2
- Richardson (Aitken) correction exploiting Simpson's O(dx^4) error
- Convergence on two consecutive accelerated estimates agreeing to epsilon
- A subdivision cap that turns runaway refinement into ConvergenceError
"""

from typing import Callable, Optional
import math
import numpy as np
from numpy.typing import NDArray

from .errors import ConvergenceError
from .expression import DEFAULT_EXPRESSIONS, ExpressionParser, FunctionEvaluator
from .model import (
    ENDPOINT_WEIGHT,
    MIDPOINT_WEIGHT,
    SURVIVOR_WEIGHT,
    IntegralResult,
    QuadratureSettings,
    RefinementLevel,
    Sample,
    resolve_settings,
)

Grid = tuple[Sample, ...]

# Simpson's error falls by 2^4 when dx halves
RICHARDSON_FACTOR = 16.0 - 1.0


def initial_grid(xi: float, xf: float, evaluate: Callable[[float], float]) -> Grid:
    """Evaluate the integrand at both endpoints.

    Args:
        xi: Lower endpoint
        xf: Upper endpoint
        evaluate: Integrand as a float callable

    Returns:
        Two-sample grid, each endpoint with weight 0.5
    """
    return (
        Sample(xi, evaluate(xi), ENDPOINT_WEIGHT),
        Sample(xf, evaluate(xf), ENDPOINT_WEIGHT),
    )


def refine(grid: Grid, evaluate: Callable[[float], float]) -> Grid:
    """Build the next refinement level from ``grid``.

    Every existing sample survives with weight 1 (the endpoints keep 0.5)
    and a weight-2 midpoint is inserted between each consecutive pair.
    The previous generation is left untouched.

    Args:
        grid: Current level, ordered from xi to xf
        evaluate: Integrand as a float callable

    Returns:
        Grid with ``2 * (len(grid) - 1) + 1`` samples
    """
    last = len(grid) - 1
    refined = [grid[0]]
    for k in range(last):
        left, right = grid[k], grid[k + 1]
        x = 0.5 * (left.x + right.x)
        refined.append(Sample(x, evaluate(x), MIDPOINT_WEIGHT))
        refined.append(right if k + 1 == last else Sample(right.x, right.f, SURVIVOR_WEIGHT))
    return tuple(refined)


def simpson_estimate(grid: Grid, dx: float) -> float:
    """Extended Simpson's rule over a grid of spacing ``dx``.

    With weights 0.5 / 2 / 1 / ... / 2 / 0.5 the usual dx/3 · (1, 4, 2, ..., 4, 1)
    coefficients become 2·dx/3 times the weights.
    """
    total = 0.0
    for sample in grid:
        total += sample.f * sample.weight
    return total * 2.0 * dx / 3.0


def accelerate(raw: float, previous_raw: float) -> float:
    """Richardson correction of a Simpson estimate.

    Returns ``raw`` unchanged when there is no finite previous estimate.
    """
    if not math.isfinite(previous_raw):
        return raw
    return raw + (raw - previous_raw) / RICHARDSON_FACTOR


def is_converged(previous: float, current: float, epsilon: float) -> bool:
    """True once both accelerated estimates are finite and within epsilon."""
    if not (math.isfinite(previous) and math.isfinite(current)):
        return False
    return abs(current - previous) <= epsilon


def integrate_function(xi: float,
                       xf: float,
                       func: Callable[[float], float],
                       settings: Optional[QuadratureSettings] = None) -> IntegralResult:
    """Integrate a float callable over ``[xi, xf]``.

    A reversed interval (xi > xf) gives a negative spacing and therefore
    the negated integral. Exceptions raised by ``func`` propagate unchanged.

    Args:
        xi: Lower endpoint
        xf: Upper endpoint
        func: Integrand
        settings: Tolerance and subdivision cap (defaults if None)

    Returns:
        IntegralResult with the accelerated estimate and diagnostics

    Raises:
        ConvergenceError: If the estimates have not settled within
            ``settings.max_subdivisions`` sub-intervals
    """
    settings = resolve_settings(settings)

    grid = initial_grid(xi, xf, func)
    dx = xf - xi
    subdivisions = 1
    previous_raw = math.inf
    previous = math.inf
    current = math.inf
    levels = []

    while not is_converged(previous, current, settings.epsilon):
        if subdivisions * 2 > settings.max_subdivisions:
            raise ConvergenceError(
                f"no convergence to {settings.epsilon} within "
                f"{settings.max_subdivisions} subdivisions (last estimate {current})",
                estimate=current,
                subdivisions=subdivisions,
            )

        subdivisions *= 2
        dx /= 2.0
        grid = refine(grid, func)

        raw = simpson_estimate(grid, dx)
        previous, current = current, accelerate(raw, previous_raw)
        previous_raw = raw
        levels.append(RefinementLevel(subdivisions, raw, current))

    return IntegralResult(
        integral=current,
        xi=xi,
        xf=xf,
        epsilon=settings.epsilon,
        subdivisions=subdivisions,
        levels=tuple(levels),
    )


def integrate(xi_expr: str,
              xf_expr: str,
              f_expr: str,
              parser: Optional[ExpressionParser] = None,
              evaluator: Optional[FunctionEvaluator] = None,
              settings: Optional[QuadratureSettings] = None) -> IntegralResult:
    """Compute the definite integral of ``f_expr`` from ``xi_expr`` to ``xf_expr``.

    Args:
        xi_expr: Lower endpoint expression, e.g. ``"0"`` or ``"pi/2"``
        xf_expr: Upper endpoint expression
        f_expr: Integrand in x, e.g. ``"x^2 + sin(x)"``
        parser: Endpoint parser (sympy-backed default if None)
        evaluator: Integrand evaluator (sympy-backed default if None)
        settings: Tolerance and subdivision cap (defaults if None)

    Returns:
        IntegralResult with the accelerated estimate and diagnostics

    Raises:
        ParseError: If an endpoint is not a finite real number
        EvalError: If the integrand cannot be evaluated at a sampled x
        ConvergenceError: If the subdivision cap is reached
    """
    parser = parser if parser is not None else DEFAULT_EXPRESSIONS
    evaluator = evaluator if evaluator is not None else DEFAULT_EXPRESSIONS

    xi = parser.parse(xi_expr)
    xf = parser.parse(xf_expr)

    return integrate_function(xi, xf, lambda x: evaluator.evaluate(x, f_expr), settings)


def convergence_arrays(result: IntegralResult) -> tuple[NDArray[np.int64], NDArray[np.float64], NDArray[np.float64]]:
    """Per-level diagnostics as arrays.

    Returns:
        Tuple of (subdivisions, raw_estimates, accelerated_estimates)
    """
    subdivisions = np.array([level.subdivisions for level in result.levels], dtype=np.int64)
    raw = np.array([level.raw_estimate for level in result.levels], dtype=np.float64)
    accelerated = np.array([level.accelerated for level in result.levels], dtype=np.float64)
    return subdivisions, raw, accelerated


def accelerated_deltas(result: IntegralResult) -> NDArray[np.float64]:
    """Absolute change of the accelerated estimate between consecutive levels."""
    _, _, accelerated = convergence_arrays(result)
    return np.abs(np.diff(accelerated))
