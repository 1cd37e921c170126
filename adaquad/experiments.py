"""
adaquad Experiments

Benchmark runs of the adaptive integrator against integrals with known
closed forms.

Experiments include:
- Single benchmark runs with absolute error against the exact value
- The full benchmark suite
- Tolerance sweeps: subdivisions needed and error achieved vs epsilon
"""

from dataclasses import dataclass
from typing import Optional
import numpy as np
from numpy.typing import NDArray

from .errors import QuadratureError
from .expression import ExpressionParser, FunctionEvaluator
from .integrate import integrate
from .model import BENCHMARKS, Benchmark, IntegralResult, QuadratureSettings, get_benchmark, resolve_settings


@dataclass
class BenchmarkResult:
    """Result of integrating one benchmark."""
    name: str
    benchmark: Benchmark
    result: Optional[IntegralResult]
    abs_error: float
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.result is not None


@dataclass
class ToleranceSweepResult:
    """Result of sweeping epsilon for one benchmark."""
    name: str
    epsilon_values: NDArray[np.float64]
    subdivision_values: NDArray[np.int64]
    abs_errors: NDArray[np.float64]


def run_benchmark(name: str,
                  settings: Optional[QuadratureSettings] = None,
                  parser: Optional[ExpressionParser] = None,
                  evaluator: Optional[FunctionEvaluator] = None) -> BenchmarkResult:
    """Integrate a named benchmark and compare with its exact value.

    Failures of the integrator propagate.
    """
    bench = get_benchmark(name)
    result = integrate(bench.xi, bench.xf, bench.expression,
                       parser=parser, evaluator=evaluator, settings=settings)
    return BenchmarkResult(
        name=name,
        benchmark=bench,
        result=result,
        abs_error=abs(result.integral - bench.exact),
    )


def run_benchmark_suite(settings: Optional[QuadratureSettings] = None,
                        names: Optional[list[str]] = None,
                        quiet: bool = True) -> list[BenchmarkResult]:
    """Run several benchmarks (all of them by default).

    A benchmark that fails is recorded with its error message and a NaN
    error instead of aborting the suite.
    """
    if names is None:
        names = list(BENCHMARKS.keys())

    results = []
    for name in names:
        try:
            bench_result = run_benchmark(name, settings)
        except QuadratureError as e:
            bench_result = BenchmarkResult(
                name=name,
                benchmark=get_benchmark(name),
                result=None,
                abs_error=float("nan"),
                message=e.message,
            )
        if not quiet:
            if bench_result.ok:
                print(f"  {name:22s}: {bench_result.result.integral:.15g}  "
                      f"(error {bench_result.abs_error:.1e}, {bench_result.result.subdivisions} subdivisions)")
            else:
                print(f"  {name:22s}: FAILED ({bench_result.message})")
        results.append(bench_result)

    return results


def tolerance_sweep(name: str,
                    epsilon_values: Optional[list[float]] = None,
                    base_settings: Optional[QuadratureSettings] = None) -> ToleranceSweepResult:
    """Integrate one benchmark at a range of tolerances.

    Args:
        name: Benchmark name
        epsilon_values: Tolerances to test (default: 1e-2 ... 1e-12)
        base_settings: Settings supplying the subdivision cap

    Returns:
        ToleranceSweepResult with subdivisions and errors per epsilon
    """
    if epsilon_values is None:
        epsilon_values = [1e-2, 1e-4, 1e-6, 1e-8, 1e-10, 1e-12]
    base_settings = resolve_settings(base_settings)

    eps_arr = np.array(epsilon_values, dtype=np.float64)
    subdivisions = np.zeros(len(eps_arr), dtype=np.int64)
    errors = np.zeros_like(eps_arr)

    for i, eps in enumerate(epsilon_values):
        settings = QuadratureSettings(epsilon=eps, max_subdivisions=base_settings.max_subdivisions)
        bench_result = run_benchmark(name, settings)
        subdivisions[i] = bench_result.result.subdivisions
        errors[i] = bench_result.abs_error

    return ToleranceSweepResult(
        name=name,
        epsilon_values=eps_arr,
        subdivision_values=subdivisions,
        abs_errors=errors,
    )
