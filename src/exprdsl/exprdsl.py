"""Main ExprDSL class: compile expressions over four scalar inputs and evaluate them."""

import logging
from typing import Tuple

from exprdsl.exprdsl_bytecode import CodeObject
from exprdsl.exprdsl_compiler import ExprDSLCompiler
from exprdsl.exprdsl_error import CompileError, ExprDSLParseError, ExprDSLTokenError
from exprdsl.exprdsl_vm import ExprDSLVM


# The VM keeps no per-evaluation state, so one instance serves every program
_VM = ExprDSLVM()

_EMPTY_CODE = CodeObject(())


class CompiledExpression:
    """
    A compiled, immutable expression program.

    Calling the program evaluates it against one (x, y, z, w) quadruple.  A
    program produced by a failed compile is empty and always returns 0.0.
    """

    __slots__ = ('_expr', '_code')

    def __init__(self, expr: str = "", code: CodeObject = _EMPTY_CODE):
        self._expr = expr
        self._code = code

    @property
    def expr(self) -> str:
        """Source text the program was compiled from."""
        return self._expr

    @property
    def code(self) -> CodeObject:
        """Compiled bytecode."""
        return self._code

    def is_empty(self) -> bool:
        """True if this program came from a failed compile."""
        return not self._code.instructions

    def __call__(self, x: float, y: float, z: float, w: float) -> float:
        if not self._code.instructions:
            return 0.0

        return _VM.execute(self._code, (float(x), float(y), float(z), float(w)))

    def __repr__(self) -> str:
        return f"CompiledExpression({self._expr!r}, {len(self._code)} instructions)"


class ExprDSL:
    """
    ExprDSL expression compiler with detailed error messages.

    Errors carry the 0-based source position of the problem and, where it
    helps, a suggestion for how to fix it.

    An instance keeps parser state while compiling, so use one instance per
    thread.  Compiled programs may be shared freely.
    """

    def __init__(self, optimize: bool = True, validate: bool = True, max_depth: int = 48, max_height: int = 256):
        """
        Initialize ExprDSL.

        Args:
            optimize: Fold constant subexpressions at compile time
            validate: Validate emitted bytecode
            max_depth: Maximum parser nesting depth
            max_height: Maximum AST height
        """
        self.compiler = ExprDSLCompiler(
            optimize=optimize, validate=validate, max_depth=max_depth, max_height=max_height
        )
        self._logger = logging.getLogger("ExprDSL")

    def compile(self, source: str) -> Tuple[CompiledExpression, CompileError | None]:
        """
        Compile an expression.

        Args:
            source: Expression source text

        Returns:
            (program, None) on success, or (empty program, error) on failure
        """
        try:
            code = self.compiler.compile(source)

        except (ExprDSLTokenError, ExprDSLParseError) as e:
            error = CompileError.from_exception(e)
            self._logger.debug("Failed to compile expression %r: %s", source, error)
            return CompiledExpression(source), error

        return CompiledExpression(source, code), None

    def evaluate(self, source: str, x: float = 0.0, y: float = 0.0, z: float = 0.0, w: float = 0.0) -> float:
        """
        Compile and evaluate an expression in one step.

        Args:
            source: Expression source text
            x, y, z, w: Input values

        Returns:
            The expression's value

        Raises:
            ExprDSLTokenError: If lexing fails
            ExprDSLParseError: If parsing fails
        """
        code = self.compiler.compile(source)
        return CompiledExpression(source, code)(x, y, z, w)


def compile_expression(source: str) -> Tuple[CompiledExpression, CompileError | None]:
    """Compile source with default settings; see `ExprDSL.compile`."""
    return ExprDSL().compile(source)
