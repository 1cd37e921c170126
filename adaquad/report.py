"""
adaquad Report Generation

Presentation forms for integration results:

- JSON objects for API consumers (success and ``{"message": ...}`` failure)
- HTML sentences for the calculator page
- A markdown report and a JSON results file for the benchmark suite

The engine never formats output itself; everything user-facing lives here.
"""

from datetime import datetime
from html import escape
from pathlib import Path
from typing import Optional
import json

from .errors import QuadratureError
from .experiments import BenchmarkResult, ToleranceSweepResult
from .integrate import accelerated_deltas
from .model import IntegralResult, QuadratureSettings

# URL-safe spellings of division accepted from the web front end, longest first
_DIVISION_TOKENS = ("div", "DIV", "d", "D")


def normalize_expression(text: str) -> str:
    """Undo the URL encoding of an expression for display.

    ``%5E`` becomes ``^``, ``%20`` is dropped, the division spellings
    ``div``/``DIV``/``d``/``D`` become ``/`` and ``X`` becomes ``x``.
    """
    expression = text.replace("%5E", "^")
    expression = expression.replace("%20", "")
    for token in _DIVISION_TOKENS:
        expression = expression.replace(token, "/")
    return expression.replace("X", "x")


def result_to_dict(result: IntegralResult) -> dict:
    """JSON-ready mapping of the fields exposed to API consumers."""
    return {
        "integral": result.integral,
        "xi": result.xi,
        "xf": result.xf,
        "epsilon": result.epsilon,
        "subdivisions": result.subdivisions,
    }


def render_json(result: IntegralResult) -> str:
    """Serialize a successful integration."""
    return json.dumps(result_to_dict(result))


def render_error_json(error: QuadratureError) -> str:
    """Serialize a failed integration as ``{"message": ...}``."""
    return json.dumps({"message": error.message})


def render_html(result: IntegralResult, expression: str, page: str = "") -> str:
    """HTML sentence describing a successful integration.

    Args:
        result: Integration result
        expression: Integrand as received from the URL (normalized here)
        page: Optional page markup placed before the sentence
    """
    prefix = f"{page}<br><br>" if page else ""
    shown = escape(normalize_expression(expression), quote=False)
    return (
        f"{prefix}<b>result</b>: {result.integral} equals the definite integral "
        f"from x = {result.xi} to x = {result.xf} of the function f(x) = {shown}."
        f"<br>Convergence to an absolute accuracy of {result.epsilon} "
        f"required {result.subdivisions} subdivisions."
    )


def render_error_html(expression: str, error: QuadratureError, page: str = "") -> str:
    """HTML sentence reporting a failed integration."""
    prefix = f"{page}<br><br>" if page else ""
    return (
        f"{prefix}<b>result</b> for integral of the function f(x) = "
        f"{escape(expression, quote=False)}:<br>{escape(error.message, quote=False)}"
    )


def format_levels(result: IntegralResult) -> str:
    """Plain-text table of the per-level estimates."""
    deltas = accelerated_deltas(result)
    lines = [f"{'subdivisions':>12}  {'raw estimate':>24}  {'accelerated':>24}  {'|change|':>10}"]
    for i, level in enumerate(result.levels):
        delta = f"{deltas[i - 1]:.3e}" if i > 0 else "-"
        lines.append(f"{level.subdivisions:>12d}  {level.raw_estimate:>24.17g}  "
                     f"{level.accelerated:>24.17g}  {delta:>10}")
    return "\n".join(lines)


def generate_benchmark_report(benchmark_results: list[BenchmarkResult],
                              sweep_results: Optional[list[ToleranceSweepResult]],
                              settings: QuadratureSettings,
                              outdir: Path) -> str:
    """Generate the markdown benchmark report.

    Args:
        benchmark_results: One entry per benchmark integral
        sweep_results: Tolerance sweeps (optional)
        settings: Settings the suite ran with
        outdir: Output directory for report.md

    Returns:
        Report content as string
    """
    report = []

    report.append("# Adaptive Simpson/Aitken Quadrature Benchmark Report")
    report.append("")
    report.append(f"*Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}*")
    report.append("")

    report.append("## Method")
    report.append("")
    report.append("Each level halves the spacing $dx$ of a uniform grid on $[x_i, x_f]$ and applies")
    report.append("the extended Simpson's rule with weights $1/2, 2, 1, 2, \\ldots, 2, 1/2$ scaled by $2\\,dx/3$.")
    report.append("Consecutive estimates are combined as $A_n = S_n + (S_n - S_{n-1})/15$,")
    report.append("and refinement stops once $|A_n - A_{n-1}| \\le \\varepsilon$.")
    report.append("")

    report.append("## Settings")
    report.append("")
    report.append("| Setting | Value |")
    report.append("|---------|-------|")
    report.append(f"| $\\varepsilon$ | {settings.epsilon:.0e} |")
    report.append(f"| max subdivisions | {settings.max_subdivisions} |")
    report.append("")

    report.append("## Benchmark Results")
    report.append("")
    report.append("| Benchmark | $f(x)$ | Interval | Exact | Estimate | Abs. error | Subdivisions |")
    report.append("|-----------|--------|----------|-------|----------|------------|--------------|")
    for item in benchmark_results:
        bench = item.benchmark
        interval = f"[{bench.xi}, {bench.xf}]"
        if item.ok:
            report.append(f"| {item.name} | `{bench.expression}` | {interval} | {bench.exact:.15g} | "
                          f"{item.result.integral:.15g} | {item.abs_error:.1e} | {item.result.subdivisions} |")
        else:
            report.append(f"| {item.name} | `{bench.expression}` | {interval} | {bench.exact:.15g} | "
                          f"failed: {item.message} | - | - |")
    report.append("")

    if sweep_results:
        report.append("## Tolerance Sweeps")
        report.append("")
        for sweep in sweep_results:
            report.append(f"### {sweep.name}")
            report.append("")
            report.append("| $\\varepsilon$ | Subdivisions | Abs. error |")
            report.append("|----------------|--------------|------------|")
            for eps, n, err in zip(sweep.epsilon_values, sweep.subdivision_values, sweep.abs_errors):
                report.append(f"| {eps:.0e} | {n} | {err:.1e} |")
            report.append("")

    failed = [item.name for item in benchmark_results if not item.ok]
    report.append("## Summary")
    report.append("")
    report.append(f"{len(benchmark_results) - len(failed)} of {len(benchmark_results)} benchmarks converged.")
    if failed:
        report.append(f"Failed: {', '.join(failed)}")
    report.append("")

    content = "\n".join(report)
    outdir.mkdir(parents=True, exist_ok=True)
    (outdir / "report.md").write_text(content)
    return content


def save_results_json(benchmark_results: list[BenchmarkResult],
                      sweep_results: Optional[list[ToleranceSweepResult]],
                      settings: QuadratureSettings,
                      outdir: Path) -> dict:
    """Save all numerical results to results.json.

    Returns:
        Results dictionary
    """
    results = {
        "settings": {
            "epsilon": settings.epsilon,
            "max_subdivisions": settings.max_subdivisions,
        },
        "benchmarks": {},
        "tolerance_sweeps": {},
        "timestamp": datetime.now().isoformat(),
    }

    for item in benchmark_results:
        entry = {
            "expression": item.benchmark.expression,
            "xi": item.benchmark.xi,
            "xf": item.benchmark.xf,
            "exact": item.benchmark.exact,
        }
        if item.ok:
            entry.update(result_to_dict(item.result))
            entry["abs_error"] = float(item.abs_error)
        else:
            entry["message"] = item.message
        results["benchmarks"][item.name] = entry

    for sweep in sweep_results or []:
        results["tolerance_sweeps"][sweep.name] = {
            "epsilon_values": sweep.epsilon_values.tolist(),
            "subdivision_values": sweep.subdivision_values.tolist(),
            "abs_errors": sweep.abs_errors.tolist(),
        }

    outdir.mkdir(parents=True, exist_ok=True)
    with open(outdir / "results.json", "w") as f:
        json.dump(results, f, indent=2)

    return results
