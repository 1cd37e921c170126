"""
adaquad Plotting Utilities

This module provides plotting functions for visualizing the refinement
history of an integration and the benchmark tolerance sweeps.
Uses matplotlib only.
"""

from pathlib import Path
from typing import Optional
import numpy as np
import matplotlib.pyplot as plt
from matplotlib.figure import Figure

from .experiments import ToleranceSweepResult
from .expression import DEFAULT_EXPRESSIONS, FunctionEvaluator
from .integrate import accelerated_deltas, convergence_arrays
from .model import IntegralResult


def setup_style() -> None:
    """Set up matplotlib style for publication-quality plots."""
    plt.rcParams.update({
        'font.size': 10,
        'axes.labelsize': 11,
        'axes.titlesize': 12,
        'xtick.labelsize': 9,
        'ytick.labelsize': 9,
        'legend.fontsize': 9,
        'figure.figsize': (8, 6),
        'figure.dpi': 150,
        'savefig.dpi': 150,
        'axes.grid': True,
        'grid.alpha': 0.3,
    })


def plot_convergence(result: IntegralResult,
                     label: str = "integral",
                     outdir: Optional[Path] = None,
                     show: bool = False) -> Figure:
    """Plot raw and accelerated estimates, and their changes, per level.

    Args:
        result: IntegralResult with recorded levels
        label: Name used in the title and file name
        outdir: Directory to save plot (if provided)
        show: Whether to display the plot

    Returns:
        matplotlib Figure object
    """
    setup_style()

    subdivisions, raw, accelerated = convergence_arrays(result)
    deltas = accelerated_deltas(result)

    fig, (ax_est, ax_delta) = plt.subplots(1, 2, figsize=(12, 5))

    ax_est.semilogx(subdivisions, raw, 'o-', color='#2E86AB', label='Simpson')
    ax_est.semilogx(subdivisions, accelerated, 's--', color='#E94F37', label='Richardson')
    ax_est.set_xscale('log', base=2)
    ax_est.set_xlabel('Subdivisions')
    ax_est.set_ylabel('Estimate')
    ax_est.set_title('Estimates per level')
    ax_est.legend()

    # Exact agreement between levels cannot be drawn on a log axis
    mask = deltas > 0
    ax_delta.loglog(subdivisions[1:][mask], deltas[mask], 'o-', color='#2E86AB')
    ax_delta.axhline(result.epsilon, color='gray', linestyle=':', label=rf'$\varepsilon$ = {result.epsilon:.0e}')
    ax_delta.set_xscale('log', base=2)
    ax_delta.set_xlabel('Subdivisions')
    ax_delta.set_ylabel(r'$|A_n - A_{n-1}|$')
    ax_delta.set_title('Change of accelerated estimate')
    ax_delta.legend()

    fig.suptitle(f'Convergence: {label.replace("_", " ")} = {result.integral:.12g}')
    plt.tight_layout()

    if outdir is not None:
        fig.savefig(outdir / f"convergence_{label}.png", bbox_inches='tight')

    if show:
        plt.show()

    return fig


def plot_integrand(f_expr: str,
                   result: IntegralResult,
                   label: str = "integral",
                   evaluator: Optional[FunctionEvaluator] = None,
                   n_points: int = 400,
                   outdir: Optional[Path] = None,
                   show: bool = False) -> Figure:
    """Plot f(x) over the integration interval with the area shaded.

    Args:
        f_expr: Integrand expression
        result: IntegralResult supplying the endpoints
        label: Name used in the title and file name
        evaluator: Integrand evaluator (sympy-backed default if None)
        n_points: Number of plotting points
        outdir: Directory to save plot (if provided)
        show: Whether to display the plot

    Returns:
        matplotlib Figure object
    """
    setup_style()
    evaluator = evaluator if evaluator is not None else DEFAULT_EXPRESSIONS

    xs = np.linspace(result.xi, result.xf, n_points)
    fs = np.array([evaluator.evaluate(float(x), f_expr) for x in xs])

    fig, ax = plt.subplots()
    ax.plot(xs, fs, '-', linewidth=1.5, color='#2E86AB')
    ax.fill_between(xs, fs, 0.0, alpha=0.25, color='#2E86AB')
    ax.axhline(0.0, color='black', linewidth=0.8)
    ax.set_xlabel('x')
    ax.set_ylabel('f(x)')
    ax.set_title(f'f(x) = {f_expr},  integral = {result.integral:.12g}')

    plt.tight_layout()

    if outdir is not None:
        fig.savefig(outdir / f"integrand_{label}.png", bbox_inches='tight')

    if show:
        plt.show()

    return fig


def plot_tolerance_sweep(results: list[ToleranceSweepResult],
                         outdir: Optional[Path] = None,
                         show: bool = False) -> Figure:
    """Plot achieved error and subdivisions against the requested tolerance."""
    setup_style()

    fig, (ax_err, ax_n) = plt.subplots(1, 2, figsize=(12, 5))
    colors = ['#2E86AB', '#E94F37', '#44AF69', '#F8333C', '#FCAB10']

    for i, result in enumerate(results):
        color = colors[i % len(colors)]
        # A zero error is exact to double precision; pin it to the floor
        errors = np.maximum(result.abs_errors, np.finfo(float).eps * 1e-2)
        ax_err.loglog(result.epsilon_values, errors, 'o-', color=color, label=result.name)
        ax_n.semilogx(result.epsilon_values, result.subdivision_values, 's-', color=color, label=result.name)

    eps_all = np.concatenate([r.epsilon_values for r in results]) if results else np.array([1e-12, 1e-2])
    ax_err.loglog(eps_all, eps_all, ':', color='gray', label='error = epsilon')
    ax_err.set_xlabel(r'$\varepsilon$')
    ax_err.set_ylabel('Absolute error')
    ax_err.set_title('Achieved accuracy')
    ax_err.invert_xaxis()
    ax_err.legend()

    ax_n.set_yscale('log', base=2)
    ax_n.set_xlabel(r'$\varepsilon$')
    ax_n.set_ylabel('Subdivisions')
    ax_n.set_title('Work required')
    ax_n.invert_xaxis()
    ax_n.legend()

    plt.tight_layout()

    if outdir is not None:
        fig.savefig(outdir / "tolerance_sweep.png", bbox_inches='tight')

    if show:
        plt.show()

    return fig
