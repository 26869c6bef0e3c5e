"""
ExprDSL constant folder - evaluates pure constant subexpressions at compile time.

Folding is observationally transparent: every rule computes exactly what the
VM would compute for the same subexpression, using the same scalar kernels.
"""

import operator
from typing import Callable, Dict

from exprdsl.exprdsl_ast import (
    ExprDSLASTNode, ExprDSLASTNumber, ExprDSLASTVariable, ExprDSLASTUnary,
    ExprDSLASTBinary, ExprDSLASTTernary, ExprDSLASTCall, ExprDSLUnaryOp, ExprDSLBinaryOp
)
from exprdsl.exprdsl_functions import (
    bool_to_float, call_function, ieee_div, ieee_fmod, ieee_pow, truth
)
from exprdsl.exprdsl_optimization_pass import ExprDSLOptimizationPass


# Strict binary operators: both operands are always evaluated
BINARY_OPERATIONS: Dict[ExprDSLBinaryOp, Callable[[float, float], float]] = {
    ExprDSLBinaryOp.ADD: operator.add,
    ExprDSLBinaryOp.SUB: operator.sub,
    ExprDSLBinaryOp.MUL: operator.mul,
    ExprDSLBinaryOp.DIV: ieee_div,
    ExprDSLBinaryOp.MOD: ieee_fmod,
    ExprDSLBinaryOp.POW: ieee_pow,
    ExprDSLBinaryOp.LT: lambda a, b: bool_to_float(a < b),
    ExprDSLBinaryOp.LE: lambda a, b: bool_to_float(a <= b),
    ExprDSLBinaryOp.GT: lambda a, b: bool_to_float(b < a),
    ExprDSLBinaryOp.GE: lambda a, b: bool_to_float(b <= a),
    ExprDSLBinaryOp.EQ: lambda a, b: bool_to_float(a == b),
    ExprDSLBinaryOp.NE: lambda a, b: bool_to_float(a != b),
}

UNARY_OPERATIONS: Dict[ExprDSLUnaryOp, Callable[[float], float]] = {
    ExprDSLUnaryOp.PLUS: lambda a: a,
    ExprDSLUnaryOp.MINUS: operator.neg,
    ExprDSLUnaryOp.NOT: lambda a: bool_to_float(not truth(a)),
    ExprDSLUnaryOp.TO_BOOL: lambda a: bool_to_float(truth(a)),
}


class ExprDSLConstantFolder(ExprDSLOptimizationPass):
    """
    Fold constant expressions at compile time.

    This is a post-order rewrite: children are folded first and a node is
    replaced by a number when all of its operands are numbers.  The logical
    and conditional operators only fold the operand that can still be
    evaluated, so a discarded arm is never touched.

    Examples:
        1 + 2 * 3           → 7
        +x                  → x
        0 && y              → 0
        1 && y              → bool(y)
        0 || y              → bool(y)
        1 ? x : sqrt(4)     → x
        min(1, 2) + x       → 1 + x
    """

    def __init__(self) -> None:
        """Build the dispatch table mapping node classes to their fold methods."""
        self._jump_table: Dict[type, Callable[..., ExprDSLASTNode]] = {
            ExprDSLASTNumber: self._fold_leaf,
            ExprDSLASTVariable: self._fold_leaf,
            ExprDSLASTUnary: self._fold_unary,
            ExprDSLASTBinary: self._fold_binary,
            ExprDSLASTTernary: self._fold_ternary,
            ExprDSLASTCall: self._fold_call,
        }

    def optimize(self, expr: ExprDSLASTNode) -> ExprDSLASTNode:
        """
        Recursively fold constants in an expression tree.

        Args:
            expr: Input expression

        Returns:
            Folded expression (may be the same object if nothing folds)
        """
        folder = self._jump_table[type(expr)]
        return folder(expr)

    def _fold_leaf(self, expr: ExprDSLASTNode) -> ExprDSLASTNode:
        return expr

    def _fold_unary(self, expr: ExprDSLASTUnary) -> ExprDSLASTNode:
        operand = self.optimize(expr.operand)
        if isinstance(operand, ExprDSLASTNumber):
            return ExprDSLASTNumber(UNARY_OPERATIONS[expr.op](operand.value), position=expr.position)

        # +x → x
        if expr.op == ExprDSLUnaryOp.PLUS:
            return operand

        if operand is expr.operand:
            return expr

        return ExprDSLASTUnary(expr.op, operand, position=expr.position)

    def _fold_binary(self, expr: ExprDSLASTBinary) -> ExprDSLASTNode:
        left = self.optimize(expr.left)

        if expr.op == ExprDSLBinaryOp.AND:
            return self._fold_and(expr, left)

        if expr.op == ExprDSLBinaryOp.OR:
            return self._fold_or(expr, left)

        right = self.optimize(expr.right)
        if isinstance(left, ExprDSLASTNumber) and isinstance(right, ExprDSLASTNumber):
            value = BINARY_OPERATIONS[expr.op](left.value, right.value)
            return ExprDSLASTNumber(value, position=expr.position)

        if left is expr.left and right is expr.right:
            return expr

        return ExprDSLASTBinary(expr.op, left, right, position=expr.position)

    def _fold_and(self, expr: ExprDSLASTBinary, left: ExprDSLASTNode) -> ExprDSLASTNode:
        """
        Fold `left && right` once `left` has been folded.

        (0 && anything) → 0 (right is discarded without being folded)
        (c && right)    → bool(right) for any other constant c
        """
        if isinstance(left, ExprDSLASTNumber):
            if not truth(left.value):
                return ExprDSLASTNumber(0.0, position=expr.position)

            return self._fold_unary(ExprDSLASTUnary(ExprDSLUnaryOp.TO_BOOL, expr.right, position=expr.position))

        return self._rebuild_binary(expr, left, self.optimize(expr.right))

    def _fold_or(self, expr: ExprDSLASTBinary, left: ExprDSLASTNode) -> ExprDSLASTNode:
        """
        Fold `left || right` once `left` has been folded.

        (c || anything) → 1 for any truthy constant c (right is discarded)
        (0 || right)    → bool(right)
        """
        if isinstance(left, ExprDSLASTNumber):
            if truth(left.value):
                return ExprDSLASTNumber(1.0, position=expr.position)

            return self._fold_unary(ExprDSLASTUnary(ExprDSLUnaryOp.TO_BOOL, expr.right, position=expr.position))

        return self._rebuild_binary(expr, left, self.optimize(expr.right))

    def _rebuild_binary(self, expr: ExprDSLASTBinary, left: ExprDSLASTNode, right: ExprDSLASTNode) -> ExprDSLASTNode:
        if left is expr.left and right is expr.right:
            return expr

        return ExprDSLASTBinary(expr.op, left, right, position=expr.position)

    def _fold_ternary(self, expr: ExprDSLASTTernary) -> ExprDSLASTNode:
        """
        Fold a conditional.  With a constant condition only the selected arm is
        kept (and folded); the other arm is dropped, which is safe because every
        function is pure.
        """
        condition = self.optimize(expr.condition)
        if isinstance(condition, ExprDSLASTNumber):
            if truth(condition.value):
                return self.optimize(expr.then_branch)

            return self.optimize(expr.else_branch)

        then_branch = self.optimize(expr.then_branch)
        else_branch = self.optimize(expr.else_branch)
        if condition is expr.condition and then_branch is expr.then_branch and else_branch is expr.else_branch:
            return expr

        return ExprDSLASTTernary(condition, then_branch, else_branch, position=expr.position)

    def _fold_call(self, expr: ExprDSLASTCall) -> ExprDSLASTNode:
        args = tuple(self.optimize(arg) for arg in expr.args)
        if all(isinstance(arg, ExprDSLASTNumber) for arg in args):
            values = [arg.value for arg in args if isinstance(arg, ExprDSLASTNumber)]
            return ExprDSLASTNumber(call_function(expr.fid, values), position=expr.position)

        if all(new is old for new, old in zip(args, expr.args)):
            return expr

        return ExprDSLASTCall(expr.fid, expr.name, expr.arity, args, position=expr.position)
