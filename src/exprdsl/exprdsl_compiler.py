"""ExprDSL Compiler - Orchestrates the complete compilation pipeline.

This is the main entry point for compiling ExprDSL source to bytecode.  It
chains the passes in order: parse (lexing happens on demand inside the
parser), AST optimization, code generation and bytecode validation.
"""

import logging
import time
from typing import List

from exprdsl.exprdsl_ast import ExprDSLASTNode
from exprdsl.exprdsl_bytecode import CodeObject
from exprdsl.exprdsl_bytecode_validator import ExprDSLBytecodeValidator
from exprdsl.exprdsl_codegen import ExprDSLCodeGen
from exprdsl.exprdsl_constant_folder import ExprDSLConstantFolder
from exprdsl.exprdsl_optimization_pass import ExprDSLOptimizationPass
from exprdsl.exprdsl_parser import ExprDSLParser


class ExprDSLCompiler:
    """
    Main compiler pass manager.
    """

    def __init__(self, optimize: bool = True, validate: bool = True, max_depth: int = 48, max_height: int = 256):
        """
        Initialize compiler with all passes.

        Args:
            optimize: Enable the constant folding pass
            validate: Validate emitted bytecode before returning it
            max_depth: Maximum parser nesting depth
            max_height: Maximum AST height
        """
        self.optimize = optimize
        self.validate = validate
        self._logger = logging.getLogger("ExprDSLCompiler")

        self.parser = ExprDSLParser(max_depth=max_depth, max_height=max_height)

        self.ast_passes: List[ExprDSLOptimizationPass] = []
        if optimize:
            self.ast_passes = [
                ExprDSLConstantFolder(),
            ]

        self.codegen = ExprDSLCodeGen()
        self.validator = ExprDSLBytecodeValidator()

    def compile_to_ast(self, source: str) -> ExprDSLASTNode:
        """
        Compile source to an (optionally folded) AST.

        Args:
            source: ExprDSL source text

        Returns:
            AST after all enabled optimization passes

        Raises:
            ExprDSLTokenError: If lexing fails
            ExprDSLParseError: If parsing fails
        """
        ast = self.parser.parse(source)

        for ast_pass in self.ast_passes:
            start = time.perf_counter()
            ast = ast_pass.optimize(ast)
            self._logger.debug(
                "%s took %.3f ms", type(ast_pass).__name__, (time.perf_counter() - start) * 1000.0
            )

        return ast

    def compile_ast(self, ast: ExprDSLASTNode, name: str = "<expr>") -> CodeObject:
        """
        Generate (and optionally validate) bytecode for an already-built AST.

        Args:
            ast: AST, typically from `compile_to_ast`
            name: Optional name for the code object

        Returns:
            Compiled bytecode ready for execution

        Raises:
            ExprDSLValidationError: If the emitted bytecode is malformed
        """
        code = self.codegen.generate(ast, name)
        if self.validate:
            self.validator.validate(code)

        return code

    def compile(self, source: str, name: str = "<expr>") -> CodeObject:
        """
        Compile ExprDSL source to bytecode.

        Args:
            source: ExprDSL source text
            name: Optional name for the code object

        Returns:
            Compiled bytecode ready for execution

        Raises:
            ExprDSLTokenError: If lexing fails
            ExprDSLParseError: If parsing fails
            ExprDSLValidationError: If the emitted bytecode is malformed
        """
        start = time.perf_counter()
        code = self.compile_ast(self.compile_to_ast(source), name)

        self._logger.debug(
            "Compiled %r to %d instructions in %.3f ms",
            source, len(code), (time.perf_counter() - start) * 1000.0
        )
        return code
