"""Shared fixtures and utilities for ExprDSL tests."""

import math
from typing import Tuple

import pytest

from exprdsl import ExprDSL, CompileError, compile_expression


@pytest.fixture
def exprdsl():
    """Create a fresh ExprDSL instance for each test."""
    return ExprDSL()


@pytest.fixture
def exprdsl_custom():
    """Factory for ExprDSL instances with custom configuration."""
    def _create_exprdsl(optimize: bool = True, validate: bool = True, max_depth: int = 48, max_height: int = 256) -> ExprDSL:
        return ExprDSL(optimize=optimize, validate=validate, max_depth=max_depth, max_height=max_height)
    return _create_exprdsl


class ExprDSLTestHelpers:
    """Helper utilities for ExprDSL testing."""

    @staticmethod
    def evaluate(source: str, inputs: Tuple[float, float, float, float] = (0.0, 0.0, 0.0, 0.0)) -> float:
        """Compile and evaluate, failing the test on a compile error."""
        program, error = compile_expression(source)
        assert error is None, f"Unexpected compile error for {source!r}: {error}"
        return program(*inputs)

    @staticmethod
    def assert_evaluates_to(
        source: str,
        expected: float,
        inputs: Tuple[float, float, float, float] = (0.0, 0.0, 0.0, 0.0)
    ) -> None:
        """Assert that an expression evaluates to the expected value (NaN matches NaN)."""
        result = ExprDSLTestHelpers.evaluate(source, inputs)
        if math.isnan(expected):
            assert math.isnan(result), f"Expected NaN for {source!r}, got {result!r}"
            return

        assert result == expected, f"Expected {expected!r} for {source!r}, got {result!r}"

    @staticmethod
    def assert_compile_error(source: str, position: int, message_fragment: str = "") -> CompileError:
        """Assert that compiling fails at the given position."""
        program, error = compile_expression(source)
        assert error is not None, f"Expected a compile error for {source!r}"
        assert error.position == position, f"Expected position {position} for {source!r}, got {error.position}"
        assert message_fragment in error.message, f"Expected {message_fragment!r} in {error.message!r}"
        assert program(1.0, 2.0, 3.0, 4.0) == 0.0
        return error

    @staticmethod
    def same_float(a: float, b: float) -> bool:
        """Bitwise-style float equality: NaN matches NaN and signed zeros differ."""
        if math.isnan(a) or math.isnan(b):
            return math.isnan(a) and math.isnan(b)

        return a == b and math.copysign(1.0, a) == math.copysign(1.0, b)

    @staticmethod
    def build_nested_parens(depth: int, inner: str = "x") -> str:
        """Build an expression wrapped in the given number of parentheses."""
        return "(" * depth + inner + ")" * depth


@pytest.fixture
def helpers():
    """Provide test helper utilities."""
    return ExprDSLTestHelpers
