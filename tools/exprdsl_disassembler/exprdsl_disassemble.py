#!/usr/bin/env python3
"""
ExprDSL Disassembler - Compile an expression and show its AST and bytecode.

This tool compiles a single ExprDSL expression and prints:
- The (optionally folded) AST, rendered as fully parenthesised source
- Annotated bytecode, one instruction per line
- Optionally, the result of evaluating it against four inputs

Usage:
    python exprdsl_disassemble.py "sin(x) * 2 + 1"
    python exprdsl_disassemble.py "x > 0 && y > 0" --eval 1 2 0 0
    python exprdsl_disassemble.py "1 + 2 * 3" --no-optimize --ast
"""

import argparse
import logging
from pathlib import Path
import sys

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from exprdsl import CompiledExpression, ExprDSLParseError, ExprDSLTokenError  # pylint: disable=wrong-import-position
from exprdsl.exprdsl_compiler import ExprDSLCompiler  # pylint: disable=wrong-import-position
from exprdsl.exprdsl_error import CompileError  # pylint: disable=wrong-import-position
from exprdsl.exprdsl_pretty_printer import ExprDSLPrettyPrinter  # pylint: disable=wrong-import-position


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Compile an ExprDSL expression and disassemble its bytecode",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument('expression', help='Expression source text')
    parser.add_argument('--no-optimize', action='store_true',
                        help='Disable constant folding')
    parser.add_argument('--ast', action='store_true',
                        help='Also print the AST as fully parenthesised source')
    parser.add_argument('--eval', nargs=4, type=float, metavar=('X', 'Y', 'Z', 'W'),
                        help='Evaluate the expression with these inputs')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Enable debug logging')

    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    compiler = ExprDSLCompiler(optimize=not args.no_optimize)

    try:
        ast = compiler.compile_to_ast(args.expression)
        code = compiler.compile_ast(ast)

    except (ExprDSLTokenError, ExprDSLParseError) as e:
        print(f"Error compiling: {CompileError.from_exception(e)}", file=sys.stderr)
        print(e, file=sys.stderr)
        return 1

    if args.ast:
        print(f"AST: {ExprDSLPrettyPrinter().format(ast)}")
        print()

    print(code.disassemble())

    if args.eval:
        program = CompiledExpression(args.expression, code)
        print()
        print(f"Result: {program(*args.eval)!r}")

    return 0


if __name__ == '__main__':
    sys.exit(main())
