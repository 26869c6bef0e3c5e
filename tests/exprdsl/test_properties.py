"""Property checks over a fixed corpus of expressions and inputs."""

import itertools

import pytest

from exprdsl import ExprDSL, ExprDSLParser, ExprDSLPrettyPrinter, compile_expression


LITERAL_EXPRESSIONS = [
    "1 + 2 * 3 - 4 / 5",
    "2 ^ 0.5 ^ 2",
    "-3 % 2 + 7 % -3",
    "1 / 0 - 1 / 0",
    "0 / 0 == 0 / 0",
    "sqrt(-4) != sqrt(-4)",
    "log(0) < exp(800)",
    "round(-2.5) * floor(1.5) + ceil(-0.1)",
    "atan2(1, -1) + fmod(10, 3) + pow(2, -2)",
    "!(1 && 0) || (3 > 4 ? 1 : 0)",
    "min(0 / 0, 1) + max(1, 0 / 0)",
    "(0 / 0) ? 5 : 6",
    "asin(2) + acos(0.5) + atan(1) + tan(0) + log10(1000)",
]

VARIABLE_EXPRESSIONS = [
    "x * x + y * y",
    "x > 0 && 1 / x > 0.5",
    "x < y ? z : w",
    "-x ^ 2 + y % z",
    "!x || y && z != w",
    "min(x, max(y, z)) / w",
    "sqrt(abs(x)) * sin(y) - cos(z) ^ w",
    "x ? y ? 1 : 2 : z ? 3 : 4",
]

INPUTS = list(itertools.product((-1.5, 0.0, 2.0), (0.0, 3.0), (-0.0, 1.0), (2.0, 0.5)))


class TestFoldingIsTransparent:
    """Folded and unfolded programs agree on every input."""

    @pytest.mark.parametrize("source", LITERAL_EXPRESSIONS)
    def test_literal_expressions(self, helpers, source):
        folded = ExprDSL(optimize=True).compile(source)[0]
        unfolded = ExprDSL(optimize=False).compile(source)[0]
        assert len(folded.code) == 2
        for inputs in INPUTS[:4]:
            assert helpers.same_float(folded(*inputs), unfolded(*inputs)), source

    @pytest.mark.parametrize("source", VARIABLE_EXPRESSIONS)
    def test_variable_expressions(self, helpers, source):
        folded = ExprDSL(optimize=True).compile(source)[0]
        unfolded = ExprDSL(optimize=False).compile(source)[0]
        for inputs in INPUTS:
            assert helpers.same_float(folded(*inputs), unfolded(*inputs)), (source, inputs)


class TestDeterminism:
    """Independent compilations evaluate identically."""

    @pytest.mark.parametrize("source", LITERAL_EXPRESSIONS + VARIABLE_EXPRESSIONS)
    def test_two_compilations_agree(self, helpers, source):
        first, _error = compile_expression(source)
        second, _error = compile_expression(source)
        assert len(first.code) == len(second.code)
        for inputs in INPUTS:
            assert helpers.same_float(first(*inputs), second(*inputs))


class TestShortCircuit:
    """The right operand of a decided && or || is never evaluated."""

    @pytest.mark.parametrize("optimize", [True, False])
    def test_false_and_skips_division(self, optimize):
        program = ExprDSL(optimize=optimize).compile("x && 1 / y")[0]
        assert program(0, 0, 0, 0) == 0.0

    @pytest.mark.parametrize("optimize", [True, False])
    def test_true_or_skips_nan(self, optimize):
        program = ExprDSL(optimize=optimize).compile("x || sqrt(-1) + 0 / y")[0]
        assert program(1, 0, 0, 0) == 1.0


class TestExplicitParentheses:
    """Parenthesising per the precedence table never changes the result."""

    @pytest.mark.parametrize("source", VARIABLE_EXPRESSIONS)
    def test_fully_parenthesised_matches(self, helpers, source):
        parenthesised = ExprDSLPrettyPrinter().format(ExprDSLParser().parse(source))
        original, _error = compile_expression(source)
        explicit, error = compile_expression(parenthesised)
        assert error is None
        for inputs in INPUTS:
            assert helpers.same_float(original(*inputs), explicit(*inputs)), parenthesised


class TestArityEnforced:
    """Every wrong-arity call fails at the identifier."""

    @pytest.mark.parametrize("name,arity", [
        ("sin", 1), ("cos", 1), ("tan", 1), ("asin", 1), ("acos", 1), ("atan", 1), ("exp", 1),
        ("log", 1), ("log10", 1), ("sqrt", 1), ("abs", 1), ("floor", 1), ("ceil", 1), ("round", 1),
        ("pow", 2), ("atan2", 2), ("fmod", 2), ("min", 2), ("max", 2),
    ])
    def test_wrong_arity(self, helpers, name, arity):
        for count in range(4):
            if count == arity:
                continue

            args = ", ".join(["1"] * count)
            helpers.assert_compile_error(f"2 * {name}({args})", 4, f"expects {arity}")
