"""ExprDSL pretty printer - renders an AST as fully parenthesised source text.

Every compound node is wrapped in parentheses, so the output never depends on
operator precedence.  Re-parsing the output of a parser-produced AST yields an
equal AST.
"""

import math
from typing import Callable, Dict

from exprdsl.exprdsl_ast import (
    ExprDSLASTNode, ExprDSLASTNumber, ExprDSLASTVariable, ExprDSLASTUnary,
    ExprDSLASTBinary, ExprDSLASTTernary, ExprDSLASTCall, ExprDSLUnaryOp
)


_VARIABLE_NAMES = ('x', 'y', 'z', 'w')


class ExprDSLPrettyPrinter:
    """Formats ExprDSL ASTs back to source."""

    def __init__(self) -> None:
        self._jump_table: Dict[type, Callable[..., str]] = {
            ExprDSLASTNumber: self._format_number,
            ExprDSLASTVariable: self._format_variable,
            ExprDSLASTUnary: self._format_unary,
            ExprDSLASTBinary: self._format_binary,
            ExprDSLASTTernary: self._format_ternary,
            ExprDSLASTCall: self._format_call,
        }

    def format(self, expr: ExprDSLASTNode) -> str:
        """
        Format an AST node as source text.

        Args:
            expr: Node to format

        Returns:
            Fully parenthesised source text
        """
        formatter = self._jump_table[type(expr)]
        return formatter(expr)

    def _format_number(self, expr: ExprDSLASTNumber) -> str:
        # Folding can produce values with no literal spelling
        value = expr.value
        if math.isnan(value):
            return "(0 / 0)"

        if math.isinf(value):
            return "1e999" if value > 0 else "(-1e999)"

        if value < 0 or (value == 0.0 and math.copysign(1.0, value) < 0):
            return f"(-{-value!r})"

        return repr(value)

    def _format_variable(self, expr: ExprDSLASTVariable) -> str:
        return _VARIABLE_NAMES[expr.index]

    def _format_unary(self, expr: ExprDSLASTUnary) -> str:
        operand = self.format(expr.operand)
        if expr.op == ExprDSLUnaryOp.TO_BOOL:
            return f"({operand} != 0)"

        return f"({expr.op.value}{operand})"

    def _format_binary(self, expr: ExprDSLASTBinary) -> str:
        return f"({self.format(expr.left)} {expr.op.value} {self.format(expr.right)})"

    def _format_ternary(self, expr: ExprDSLASTTernary) -> str:
        condition = self.format(expr.condition)
        then_branch = self.format(expr.then_branch)
        else_branch = self.format(expr.else_branch)
        return f"({condition} ? {then_branch} : {else_branch})"

    def _format_call(self, expr: ExprDSLASTCall) -> str:
        args = ", ".join(self.format(arg) for arg in expr.args)
        return f"{expr.name}({args})"
