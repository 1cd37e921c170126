"""
adaquad Model Definitions

This module provides the data types shared by the quadrature engine,
the experiments and the presentation layer:

- Sample: one evaluated grid point with its Simpson weight
- RefinementLevel: raw and accelerated estimates recorded per level
- IntegralResult: immutable record handed back to callers
- QuadratureSettings: tolerance and refinement cap
- BENCHMARKS: named integrals with known exact values
"""

from dataclasses import dataclass, field
from typing import Optional
import math

# Absolute tolerance on consecutive accelerated estimates
EPSILON = 1e-12

# Simpson weights, scaled by a common 2*dx/3 factor
ENDPOINT_WEIGHT = 0.5
SURVIVOR_WEIGHT = 1.0
MIDPOINT_WEIGHT = 2.0

DEFAULT_MAX_SUBDIVISIONS = 2 ** 20


@dataclass(frozen=True)
class Sample:
    """A single evaluated grid point.

    Attributes:
        x: Position on the integration interval
        f: Integrand value at x
        weight: Simpson coefficient at the current refinement level
    """
    x: float
    f: float
    weight: float


@dataclass(frozen=True)
class RefinementLevel:
    """Estimates produced at one refinement level."""
    subdivisions: int
    raw_estimate: float
    accelerated: float


@dataclass(frozen=True)
class IntegralResult:
    """Result of an adaptive integration.

    Attributes:
        integral: Final accelerated estimate of the definite integral
        xi: Lower endpoint actually used (after parsing)
        xf: Upper endpoint actually used (after parsing)
        epsilon: Absolute tolerance the estimates converged to
        subdivisions: Number of equal sub-intervals of the final grid, all
            of which enter the last Simpson estimate (no extra level of
            midpoints is evaluated ahead of use)
        levels: Per-level raw and accelerated estimates, coarsest first
    """
    integral: float
    xi: float
    xf: float
    epsilon: float
    subdivisions: int
    levels: tuple[RefinementLevel, ...] = field(default=(), repr=False)


@dataclass(frozen=True)
class QuadratureSettings:
    """Settings for the refinement loop.

    Attributes:
        epsilon: Absolute tolerance between consecutive accelerated estimates
        max_subdivisions: Refinement stops with an error beyond this count
    """
    epsilon: float = EPSILON
    max_subdivisions: int = DEFAULT_MAX_SUBDIVISIONS

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        if not math.isfinite(self.epsilon) or self.epsilon <= 0:
            raise ValueError(f"epsilon must be a positive finite number, got {self.epsilon}")
        if self.max_subdivisions < 2:
            raise ValueError(f"max_subdivisions must be >= 2, got {self.max_subdivisions}")


@dataclass(frozen=True)
class Benchmark:
    """A named definite integral with a known closed form."""
    expression: str
    xi: str
    xf: str
    exact: float


# Predefined integrals used by the benchmark suite
BENCHMARKS: dict[str, Benchmark] = {
    "constant": Benchmark("7", "2", "5", 21.0),
    "square_unit": Benchmark("x^2", "0", "1", 1.0 / 3.0),
    "odd_cubic_symmetric": Benchmark("x^3", "-1", "1", 0.0),
    "reversed_square": Benchmark("x^2", "1", "0", -1.0 / 3.0),
    "sine_half_period": Benchmark("sin(x)", "0", "pi", 2.0),
    "exponential": Benchmark("exp(x)", "0", "1", math.e - 1.0),
    "gaussian": Benchmark("exp(-x^2)", "0", "1", 0.5 * math.sqrt(math.pi) * math.erf(1.0)),
    "reciprocal": Benchmark("1/x", "1", "e", 1.0),
    "lorentzian": Benchmark("1/(1+x^2)", "0", "1", math.pi / 4.0),
}


def get_benchmark(name: str) -> Benchmark:
    """Get a benchmark integral by name.

    Raises:
        ValueError: If name is not recognized
    """
    if name not in BENCHMARKS:
        valid = ", ".join(BENCHMARKS.keys())
        raise ValueError(f"Unknown benchmark '{name}'. Valid: {valid}")
    return BENCHMARKS[name]


def resolve_settings(settings: Optional[QuadratureSettings]) -> QuadratureSettings:
    """Return ``settings`` or the defaults when None."""
    return settings if settings is not None else QuadratureSettings()
