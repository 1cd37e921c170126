"""
adaquad CLI Entry Point

Run with: python -m adaquad [options] XI XF EXPR
"""

import argparse
import sys
from pathlib import Path
from typing import Optional
import time

from .errors import QuadratureError
from .experiments import run_benchmark_suite, tolerance_sweep
from .integrate import integrate
from .model import EPSILON, DEFAULT_MAX_SUBDIVISIONS, QuadratureSettings
from .plot import plot_convergence, plot_integrand, plot_tolerance_sweep
from .report import (
    format_levels,
    generate_benchmark_report,
    normalize_expression,
    render_error_html,
    render_error_json,
    render_html,
    render_json,
    save_results_json,
)

SWEEP_BENCHMARKS = ["sine_half_period", "gaussian", "lorentzian"]


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="adaquad",
        description="Adaptive Simpson/Aitken definite integral evaluator",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument("xi", nargs="?", default=None,
                        help="Lower endpoint expression, e.g. 0 or pi/2")
    parser.add_argument("xf", nargs="?", default=None,
                        help="Upper endpoint expression")
    parser.add_argument("expression", nargs="?", default=None,
                        help="Integrand in x, e.g. 'x^2 + sin(x)'")

    # Numerical settings
    parser.add_argument("--epsilon", type=float, default=EPSILON,
                        help="Absolute tolerance between consecutive accelerated estimates")
    parser.add_argument("--max-subdivisions", type=int, default=DEFAULT_MAX_SUBDIVISIONS,
                        help="Give up beyond this many sub-intervals")

    # Output form
    form = parser.add_mutually_exclusive_group()
    form.add_argument("--json", action="store_true",
                      help="Print the JSON form of the result")
    form.add_argument("--html", action="store_true",
                      help="Print the HTML sentence form of the result")
    parser.add_argument("--verbose", action="store_true",
                        help="Print the per-level refinement table")

    # Benchmarks
    parser.add_argument("--benchmark", action="store_true",
                        help="Run the benchmark suite and tolerance sweeps")

    # Output
    parser.add_argument("--plot", action="store_true",
                        help="Save convergence and integrand plots")
    parser.add_argument("--outdir", type=str, default="outputs",
                        help="Output directory for plots and reports")
    parser.add_argument("--show", action="store_true",
                        help="Display plots interactively")
    parser.add_argument("--quiet", action="store_true",
                        help="Suppress progress output")

    args = parser.parse_args(argv)
    if not args.benchmark and None in (args.xi, args.xf, args.expression):
        parser.error("XI, XF and EXPR are required unless --benchmark is given")
    return args


def make_settings(args: argparse.Namespace) -> QuadratureSettings:
    """Build QuadratureSettings from the parsed flags."""
    return QuadratureSettings(epsilon=args.epsilon, max_subdivisions=args.max_subdivisions)


def run_single(args: argparse.Namespace) -> int:
    """Integrate one expression and print it in the requested form."""
    settings = make_settings(args)

    try:
        result = integrate(args.xi, args.xf, args.expression, settings=settings)
    except QuadratureError as e:
        if args.json:
            print(render_error_json(e))
        elif args.html:
            print(render_error_html(args.expression, e))
        else:
            print(f"Error: {e.message}", file=sys.stderr)
        return 1

    if args.json:
        print(render_json(result))
    elif args.html:
        print(render_html(result, args.expression))
    else:
        print(f"Integral of f(x) = {normalize_expression(args.expression)} "
              f"from x = {result.xi} to x = {result.xf}:")
        print(f"  {result.integral!r}")
        print(f"  converged to {result.epsilon} with {result.subdivisions} subdivisions")

    if args.verbose:
        print()
        print(format_levels(result))

    if args.plot:
        outdir = Path(args.outdir)
        outdir.mkdir(parents=True, exist_ok=True)
        plot_convergence(result, outdir=outdir, show=args.show)
        # Plot points are not the grid points, so f may fail here alone
        try:
            plot_integrand(args.expression, result, outdir=outdir, show=args.show)
        except QuadratureError as e:
            print(f"Error: {e.message}", file=sys.stderr)
            return 1
        if not args.quiet and not (args.json or args.html):
            print(f"Plots written to {outdir}")

    return 0


def run_benchmarks(args: argparse.Namespace) -> int:
    """Run the benchmark suite, sweeps, plots and report."""
    settings = make_settings(args)
    outdir = Path(args.outdir)
    outdir.mkdir(parents=True, exist_ok=True)

    start_time = time.time()

    if not args.quiet:
        print("=" * 60)
        print("Running benchmark integrals...")
        print("=" * 60)

    benchmark_results = run_benchmark_suite(settings, quiet=args.quiet)

    for item in benchmark_results:
        if item.ok:
            plot_convergence(item.result, label=item.name, outdir=outdir, show=False)

    if not args.quiet:
        print("\n" + "=" * 60)
        print("Running tolerance sweeps...")
        print("=" * 60)

    sweep_results = [tolerance_sweep(name, base_settings=settings) for name in SWEEP_BENCHMARKS]
    plot_tolerance_sweep(sweep_results, outdir=outdir, show=False)

    generate_benchmark_report(benchmark_results, sweep_results, settings, outdir)
    save_results_json(benchmark_results, sweep_results, settings, outdir)

    elapsed = time.time() - start_time
    failed = [item.name for item in benchmark_results if not item.ok]

    print(f"\nCompleted in {elapsed:.1f} seconds")
    print(f"Results saved to: {outdir.absolute()}")
    print(f"  - report.md")
    print(f"  - results.json")
    print(f"  - *.png plots")

    if args.show:
        import matplotlib.pyplot as plt
        plt.show()

    return 1 if failed else 0


def main(argv: Optional[list[str]] = None) -> None:
    """Main entry point."""
    args = parse_args(argv)

    try:
        status = run_benchmarks(args) if args.benchmark else run_single(args)
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        sys.exit(1)
    except QuadratureError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        sys.exit(1)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)

    sys.exit(status)


if __name__ == "__main__":
    main()
