"""ExprDSL: a small expression language over four scalar inputs, compiled to stack bytecode."""

# Main API
from exprdsl.exprdsl import ExprDSL, CompiledExpression, compile_expression

# Exceptions (for error handling)
from exprdsl.exprdsl_error import (
    ExprDSLError, ExprDSLTokenError, ExprDSLParseError, ExprDSLValidationError, CompileError, ErrorMessageBuilder
)

# AST
from exprdsl.exprdsl_ast import (
    ExprDSLASTNode, ExprDSLASTNumber, ExprDSLASTVariable, ExprDSLASTUnary, ExprDSLASTBinary,
    ExprDSLASTTernary, ExprDSLASTCall, ExprDSLUnaryOp, ExprDSLBinaryOp
)

# Bytecode
from exprdsl.exprdsl_bytecode import CodeObject, Instruction, Opcode
from exprdsl.exprdsl_bytecode_validator import ExprDSLBytecodeValidator, validate_bytecode

# Lower-level components (for advanced usage)
from exprdsl.exprdsl_token import ExprDSLToken, ExprDSLTokenType
from exprdsl.exprdsl_lexer import ExprDSLLexer
from exprdsl.exprdsl_parser import ExprDSLParser
from exprdsl.exprdsl_constant_folder import ExprDSLConstantFolder
from exprdsl.exprdsl_codegen import ExprDSLCodeGen
from exprdsl.exprdsl_compiler import ExprDSLCompiler
from exprdsl.exprdsl_vm import ExprDSLVM
from exprdsl.exprdsl_pretty_printer import ExprDSLPrettyPrinter
from exprdsl.exprdsl_functions import FUNCTION_TABLE, ExprDSLFunction


# Mirrors the operation name used in documentation; shadows the builtin only inside this namespace
compile = compile_expression  # pylint: disable=redefined-builtin


__all__ = [
    # Main API
    "ExprDSL", "CompiledExpression", "compile_expression", "compile",

    # Exceptions
    "ExprDSLError", "ExprDSLTokenError", "ExprDSLParseError", "ExprDSLValidationError", "CompileError",
    "ErrorMessageBuilder",

    # AST
    "ExprDSLASTNode", "ExprDSLASTNumber", "ExprDSLASTVariable", "ExprDSLASTUnary", "ExprDSLASTBinary",
    "ExprDSLASTTernary", "ExprDSLASTCall", "ExprDSLUnaryOp", "ExprDSLBinaryOp",

    # Bytecode
    "CodeObject", "Instruction", "Opcode", "ExprDSLBytecodeValidator", "validate_bytecode",

    # Lower-level components
    "ExprDSLToken", "ExprDSLTokenType", "ExprDSLLexer", "ExprDSLParser", "ExprDSLConstantFolder",
    "ExprDSLCodeGen", "ExprDSLCompiler", "ExprDSLVM", "ExprDSLPrettyPrinter", "FUNCTION_TABLE", "ExprDSLFunction"
]
