"""
Unit tests for the adaptive quadrature engine.

Tests cover:
- Grid construction and Simpson weights
- Richardson correction and the convergence test
- Integrals with known values (constant, x^2, x^3)
- Reversed and degenerate intervals
- Error propagation and the subdivision cap
"""

import math

import pytest
import numpy as np

from adaquad.errors import ConvergenceError, EvalError, ParseError
from adaquad.integrate import (
    accelerate,
    accelerated_deltas,
    convergence_arrays,
    initial_grid,
    integrate,
    integrate_function,
    is_converged,
    refine,
    simpson_estimate,
)
from adaquad.model import QuadratureSettings, Sample


class StubParser:
    """Parses plain float literals only."""

    def parse(self, text):
        try:
            return float(text)
        except ValueError as e:
            raise ParseError(f"cannot parse '{text}'") from e


class StubEvaluator:
    """Looks integrands up by name and records every x it is asked for."""

    def __init__(self, functions):
        self.functions = functions
        self.calls = []

    def evaluate(self, x, expr_text):
        self.calls.append(x)
        if expr_text not in self.functions:
            raise EvalError(f"unknown symbol in f(x) = {expr_text}", x=x)
        return self.functions[expr_text](x)


@pytest.fixture
def parser():
    return StubParser()


@pytest.fixture
def evaluator():
    return StubEvaluator({
        "7": lambda x: 7.0,
        "x^2": lambda x: x * x,
        "x^3": lambda x: x ** 3,
        "exp(x)": math.exp,
        "sin(x)": math.sin,
    })


class TestGrid:
    """Tests for grid construction and refinement."""

    def test_initial_grid_endpoints(self):
        """Both endpoints are evaluated with weight 0.5."""
        grid = initial_grid(1.0, 3.0, lambda x: 2 * x)
        assert grid == (Sample(1.0, 2.0, 0.5), Sample(3.0, 6.0, 0.5))

    def test_refine_weights(self):
        """Midpoints enter with weight 2, survivors are demoted to 1."""
        grid = initial_grid(0.0, 1.0, lambda x: x)
        level1 = refine(grid, lambda x: x)
        assert [s.weight for s in level1] == [0.5, 2.0, 0.5]

        level2 = refine(level1, lambda x: x)
        assert [s.weight for s in level2] == [0.5, 2.0, 1.0, 2.0, 0.5]

        level3 = refine(level2, lambda x: x)
        assert [s.weight for s in level3] == [0.5, 2.0, 1.0, 2.0, 1.0, 2.0, 1.0, 2.0, 0.5]

    def test_refine_uniform_spacing(self):
        """Refined positions are uniformly spaced and keep the endpoints."""
        grid = initial_grid(-1.0, 3.0, lambda x: 0.0)
        for _ in range(4):
            grid = refine(grid, lambda x: 0.0)
        xs = np.array([s.x for s in grid])
        assert len(grid) - 1 == 16
        np.testing.assert_allclose(np.diff(xs), 0.25, rtol=1e-12)
        assert xs[0] == -1.0
        assert xs[-1] == 3.0

    def test_refine_does_not_touch_previous_generation(self):
        """Refinement builds a new grid; the old one is unchanged."""
        grid = initial_grid(0.0, 1.0, lambda x: x)
        level1 = refine(grid, lambda x: x)
        refine(level1, lambda x: x)
        assert [s.weight for s in level1] == [0.5, 2.0, 0.5]

    def test_refine_evaluates_only_midpoints(self):
        """Existing samples are never re-evaluated."""
        seen = []

        def f(x):
            seen.append(x)
            return x

        grid = initial_grid(0.0, 1.0, f)
        seen.clear()
        refine(refine(grid, f), f)
        assert seen == [0.5, 0.25, 0.75]


class TestSimpson:
    """Tests for the Simpson sum and its acceleration."""

    def test_simpson_exact_for_cubic(self):
        """Simpson's rule is exact for cubics on a single panel."""
        grid = refine(initial_grid(0.0, 2.0, lambda x: x ** 3), lambda x: x ** 3)
        np.testing.assert_allclose(simpson_estimate(grid, 1.0), 4.0, rtol=1e-14)

    def test_simpson_constant(self):
        """A constant integrates to c * (b - a)."""
        grid = refine(initial_grid(2.0, 5.0, lambda x: 7.0), lambda x: 7.0)
        assert simpson_estimate(grid, 1.5) == pytest.approx(21.0, rel=1e-15)

    def test_accelerate_without_previous(self):
        """No previous estimate means no correction."""
        assert accelerate(1.25, math.inf) == 1.25

    def test_accelerate_richardson(self):
        """Correction adds (S_n - S_{n-1}) / 15."""
        assert accelerate(1.0, 0.0) == pytest.approx(1.0 + 1.0 / 15.0)

    def test_is_converged(self):
        """Convergence needs two finite estimates within epsilon."""
        assert not is_converged(math.inf, 1.0, 1e-12)
        assert not is_converged(1.0, math.inf, 1e-12)
        assert not is_converged(math.nan, math.nan, 1e-12)
        assert not is_converged(1.0, 1.0 + 1e-9, 1e-12)
        assert is_converged(1.0, 1.0, 1e-12)


class TestIntegrate:
    """Tests for integrals with known values."""

    def test_constant(self, parser, evaluator):
        """Constant f: the first raw estimate is already exact."""
        result = integrate("2", "5", "7", parser=parser, evaluator=evaluator)
        assert result.levels[0].raw_estimate == pytest.approx(21.0, rel=1e-15)
        assert result.integral == pytest.approx(21.0, rel=1e-15)
        assert result.subdivisions == 4
        assert len(result.levels) == 2

    def test_square(self, parser, evaluator):
        """∫_0^1 x^2 dx = 1/3."""
        result = integrate("0", "1", "x^2", parser=parser, evaluator=evaluator)
        assert abs(result.integral - 0.33333333333) < 1e-9
        assert result.xi == 0.0
        assert result.xf == 1.0
        assert result.epsilon == 1e-12

    def test_odd_cubic(self, parser, evaluator):
        """∫_{-1}^1 x^3 dx = 0."""
        result = integrate("-1", "1", "x^3", parser=parser, evaluator=evaluator)
        assert abs(result.integral) < 1e-9

    def test_sine(self, parser, evaluator):
        """∫_0^π sin(x) dx = 2, needing several levels."""
        result = integrate("0", repr(math.pi), "sin(x)", parser=parser, evaluator=evaluator)
        assert abs(result.integral - 2.0) < 1e-10
        assert result.subdivisions > 8

    def test_subdivisions_match_grid(self, parser, evaluator):
        """The evaluator is called once per grid point."""
        result = integrate("0", "1", "exp(x)", parser=parser, evaluator=evaluator)
        assert len(evaluator.calls) == result.subdivisions + 1
        assert result.levels[-1].subdivisions == result.subdivisions

    def test_idempotent(self, parser, evaluator):
        """Identical inputs give identical results."""
        first = integrate("0", "1", "exp(x)", parser=parser, evaluator=evaluator)
        second = integrate("0", "1", "exp(x)", parser=parser, evaluator=evaluator)
        assert first == second
        assert first.integral == second.integral

    def test_reversed_interval(self, parser, evaluator):
        """Swapping the endpoints negates the integral."""
        forward = integrate("0", "2", "exp(x)", parser=parser, evaluator=evaluator)
        backward = integrate("2", "0", "exp(x)", parser=parser, evaluator=evaluator)
        assert backward.integral == pytest.approx(-forward.integral, abs=1e-11)
        assert forward.integral == pytest.approx(math.exp(2.0) - 1.0, abs=1e-10)

    def test_degenerate_interval(self, parser, evaluator):
        """xi == xf converges to zero without special handling."""
        result = integrate("1.5", "1.5", "exp(x)", parser=parser, evaluator=evaluator)
        assert result.integral == 0.0
        assert result.subdivisions == 4

    def test_integrate_function_callable(self):
        """The float-level entry point accepts any callable."""
        result = integrate_function(0.0, 1.0, lambda x: 4.0 / (1.0 + x * x))
        assert result.integral == pytest.approx(math.pi, abs=1e-10)

    def test_convergence_arrays(self, parser, evaluator):
        """Per-level diagnostics come back as aligned arrays."""
        result = integrate("0", "1", "exp(x)", parser=parser, evaluator=evaluator)
        subdivisions, raw, accelerated = convergence_arrays(result)
        assert len(subdivisions) == len(raw) == len(accelerated) == len(result.levels)
        np.testing.assert_array_equal(subdivisions, 2 ** np.arange(1, len(subdivisions) + 1))
        assert accelerated[-1] == result.integral
        assert accelerated_deltas(result)[-1] <= result.epsilon


class TestErrors:
    """Tests for error propagation."""

    def test_unparseable_endpoint(self, parser, evaluator):
        """An endpoint that does not parse aborts with ParseError."""
        with pytest.raises(ParseError, match="cannot parse 'abc'"):
            integrate("abc", "1", "x^2", parser=parser, evaluator=evaluator)
        assert evaluator.calls == []

    def test_unknown_integrand(self, parser, evaluator):
        """An unknown integrand aborts at the first endpoint."""
        with pytest.raises(EvalError, match="unknown symbol"):
            integrate("0", "1", "x*y", parser=parser, evaluator=evaluator)

    def test_failure_at_midpoint_aborts(self, parser):
        """A failure at an inserted midpoint aborts the whole call."""

        def f(x):
            if x == 0.5:
                raise EvalError("division by zero", x=x)
            return 1.0

        evaluator = StubEvaluator({"f": f})
        with pytest.raises(EvalError) as excinfo:
            integrate("0", "1", "f", parser=parser, evaluator=evaluator)
        assert excinfo.value.x == 0.5
        assert evaluator.calls == [0.0, 1.0, 0.5]

    def test_subdivision_cap(self):
        """A discontinuous integrand hits the cap with ConvergenceError."""
        settings = QuadratureSettings(max_subdivisions=2 ** 8)
        with pytest.raises(ConvergenceError, match="no convergence") as excinfo:
            integrate_function(0.0, 1.0, lambda x: 1.0 if x > 1.0 / 3.0 else 0.0, settings)
        assert excinfo.value.subdivisions == 2 ** 8
        assert excinfo.value.estimate == pytest.approx(2.0 / 3.0, abs=1e-2)

    def test_custom_epsilon_reported(self, parser, evaluator):
        """The tolerance used is reported in the result."""
        settings = QuadratureSettings(epsilon=1e-6)
        result = integrate("0", "1", "exp(x)", parser=parser, evaluator=evaluator, settings=settings)
        assert result.epsilon == 1e-6


class TestSettings:
    """Tests for QuadratureSettings validation."""

    def test_defaults(self):
        """Default tolerance and cap."""
        settings = QuadratureSettings()
        assert settings.epsilon == 1e-12
        assert settings.max_subdivisions == 2 ** 20

    def test_invalid_epsilon(self):
        """Non-positive or non-finite epsilon is rejected."""
        with pytest.raises(ValueError, match="epsilon must be a positive finite number"):
            QuadratureSettings(epsilon=0.0)
        with pytest.raises(ValueError, match="epsilon must be a positive finite number"):
            QuadratureSettings(epsilon=math.inf)

    def test_invalid_max_subdivisions(self):
        """A cap below 2 is rejected."""
        with pytest.raises(ValueError, match="max_subdivisions must be >= 2"):
            QuadratureSettings(max_subdivisions=1)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
