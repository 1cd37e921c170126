"""
adaquad - Adaptive Simpson/Aitken Quadrature

Numerically evaluates the definite integral of an analytic expression
over a real interval. A uniform grid is doubled level by level, each
level is integrated with the extended Simpson's rule, and a Richardson
correction accelerates the sequence until two consecutive accelerated
estimates agree to an absolute tolerance.

Usage:
    python -m adaquad 0 1 "x^2"
    python -m adaquad 0 pi "sin(x)" --json
    python -m adaquad --benchmark --outdir outputs

Main components:
    - model: Samples, results, settings and benchmark integrals
    - expression: Endpoint parser and integrand evaluator (sympy)
    - integrate: The adaptive refinement loop
    - experiments: Benchmark suite and tolerance sweeps
    - plot: Visualization utilities
    - report: JSON/HTML result forms and report generation
"""

__version__ = "0.1.0"

from .errors import (
    QuadratureError,
    ParseError,
    EvalError,
    ConvergenceError,
)

from .model import (
    EPSILON,
    Sample,
    RefinementLevel,
    IntegralResult,
    QuadratureSettings,
    BENCHMARKS,
    get_benchmark,
)

from .expression import (
    ExpressionParser,
    FunctionEvaluator,
    SympyExpressions,
    parse_expression,
    evaluate_function,
)

from .integrate import (
    integrate,
    integrate_function,
    refine,
    simpson_estimate,
    accelerate,
    convergence_arrays,
)

__all__ = [
    "QuadratureError",
    "ParseError",
    "EvalError",
    "ConvergenceError",
    "EPSILON",
    "Sample",
    "RefinementLevel",
    "IntegralResult",
    "QuadratureSettings",
    "BENCHMARKS",
    "get_benchmark",
    "ExpressionParser",
    "FunctionEvaluator",
    "SympyExpressions",
    "parse_expression",
    "evaluate_function",
    "integrate",
    "integrate_function",
    "refine",
    "simpson_estimate",
    "accelerate",
    "convergence_arrays",
]
