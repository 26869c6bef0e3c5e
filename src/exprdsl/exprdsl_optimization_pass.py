"""
ExprDSL AST optimization pass
"""

from exprdsl.exprdsl_ast import ExprDSLASTNode


class ExprDSLOptimizationPass:
    """Base class for AST optimization passes."""

    def optimize(self, expr: ExprDSLASTNode) -> ExprDSLASTNode:
        """
        Transform AST, returning optimized version.

        Args:
            expr: Input AST expression

        Returns:
            Optimized AST expression
        """
        raise NotImplementedError
