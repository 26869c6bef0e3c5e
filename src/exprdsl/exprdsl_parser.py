"""Recursive-descent parser for ExprDSL expressions with detailed error messages."""

from typing import Dict, List

from exprdsl.exprdsl_ast import (
    ExprDSLASTNode, ExprDSLASTNumber, ExprDSLASTVariable, ExprDSLASTUnary,
    ExprDSLASTBinary, ExprDSLASTTernary, ExprDSLASTCall, ExprDSLUnaryOp, ExprDSLBinaryOp
)
from exprdsl.exprdsl_error import ExprDSLParseError, ErrorMessageBuilder
from exprdsl.exprdsl_functions import FUNCTION_TABLE
from exprdsl.exprdsl_lexer import ExprDSLLexer
from exprdsl.exprdsl_token import ExprDSLToken, ExprDSLTokenType


_EQUALITY_OPS: Dict[ExprDSLTokenType, ExprDSLBinaryOp] = {
    ExprDSLTokenType.EQ_EQ: ExprDSLBinaryOp.EQ,
    ExprDSLTokenType.BANG_EQ: ExprDSLBinaryOp.NE,
}

_RELATIONAL_OPS: Dict[ExprDSLTokenType, ExprDSLBinaryOp] = {
    ExprDSLTokenType.LESS: ExprDSLBinaryOp.LT,
    ExprDSLTokenType.LESS_EQ: ExprDSLBinaryOp.LE,
    ExprDSLTokenType.GREATER: ExprDSLBinaryOp.GT,
    ExprDSLTokenType.GREATER_EQ: ExprDSLBinaryOp.GE,
}

_ADDITIVE_OPS: Dict[ExprDSLTokenType, ExprDSLBinaryOp] = {
    ExprDSLTokenType.PLUS: ExprDSLBinaryOp.ADD,
    ExprDSLTokenType.MINUS: ExprDSLBinaryOp.SUB,
}

_MULTIPLICATIVE_OPS: Dict[ExprDSLTokenType, ExprDSLBinaryOp] = {
    ExprDSLTokenType.STAR: ExprDSLBinaryOp.MUL,
    ExprDSLTokenType.SLASH: ExprDSLBinaryOp.DIV,
    ExprDSLTokenType.PERCENT: ExprDSLBinaryOp.MOD,
}

_UNARY_OPS: Dict[ExprDSLTokenType, ExprDSLUnaryOp] = {
    ExprDSLTokenType.PLUS: ExprDSLUnaryOp.PLUS,
    ExprDSLTokenType.MINUS: ExprDSLUnaryOp.MINUS,
    ExprDSLTokenType.BANG: ExprDSLUnaryOp.NOT,
}


class ExprDSLParser:
    """
    Parses ExprDSL source into an AST.

    Precedence, lowest first: ?: (right-assoc), ||, &&, == !=, < <= > >=,
    binary + -, * / %, prefix + - !, ^ (right-assoc, unary right operand),
    then primaries: numbers, variables, parenthesised expressions and calls.
    """

    def __init__(self, max_depth: int = 48, max_height: int = 256):
        """
        Initialize parser.

        Args:
            max_depth: Maximum nesting of parentheses, call arguments and prefix operators
            max_height: Maximum height of the resulting AST
        """
        self.max_depth = max_depth
        self.max_height = max_height
        self.message_builder = ErrorMessageBuilder()
        self.expression = ""
        self.lexer = ExprDSLLexer("")
        self._depth = 0
        self._heights: Dict[int, int] = {}

    def parse(self, expression: str) -> ExprDSLASTNode:
        """
        Parse an expression into an AST.

        Args:
            expression: Source text

        Returns:
            Root AST node

        Raises:
            ExprDSLTokenError: If lexing fails
            ExprDSLParseError: If parsing fails
        """
        self.expression = expression
        self.lexer = ExprDSLLexer(expression)
        self._depth = 0
        self._heights = {}

        try:
            node = self._parse_expression()
            token = self.lexer.peek()
            if token.type != ExprDSLTokenType.END:
                raise ExprDSLParseError(
                    message="Unexpected token after end of expression",
                    position=token.position,
                    received=f"Found: {token.describe()}",
                    expected="End of expression",
                    example="Correct: (x + 1) * 2\nIncorrect: (x + 1) 2",
                    suggestion="Remove the extra tokens or join them with an operator",
                    context=self._context(token.position)
                )

            return node

        finally:
            self._heights = {}

    def _accept(self, token_type: ExprDSLTokenType) -> ExprDSLToken | None:
        """Consume the next token if it has the given type."""
        if self.lexer.peek().type == token_type:
            return self.lexer.next()

        return None

    def _expect(self, token_type: ExprDSLTokenType, what: str, example: str | None = None) -> ExprDSLToken:
        """Consume a token of the given type or fail at the offending token."""
        token = self.lexer.next()
        if token.type != token_type:
            raise ExprDSLParseError(
                message=f"Expected {what}",
                position=token.position,
                received=f"Found: {token.describe()}",
                expected=what,
                example=example,
                context=self._context(token.position)
            )

        return token

    def _context(self, position: int) -> str:
        return self.message_builder.get_expression_context(self.expression, position)

    def _make(self, node: ExprDSLASTNode, *children: ExprDSLASTNode) -> ExprDSLASTNode:
        """Record the height of a newly built node, enforcing max_height."""
        height = 1 + max((self._heights.get(id(child), 1) for child in children), default=0)
        if height > self.max_height:
            raise ExprDSLParseError(
                message="Expression nested too deeply",
                position=node.position,
                context=f"The expression tree exceeds the maximum height of {self.max_height}",
                suggestion="Split long operator chains with parentheses or simplify the expression"
            )

        self._heights[id(node)] = height
        return node

    def _parse_expression(self) -> ExprDSLASTNode:
        return self._parse_conditional()

    def _check_depth(self, token: ExprDSLToken) -> None:
        """Fail at token once nesting exceeds max_depth."""
        if self._depth > self.max_depth:
            raise ExprDSLParseError(
                message="Expression nested too deeply",
                position=token.position,
                context=f"Nesting exceeds the maximum depth of {self.max_depth}",
                suggestion="Remove redundant parentheses, prefix operators or nested conditionals"
            )

    def _parse_conditional(self) -> ExprDSLASTNode:
        """conditional := logical_or ('?' expression ':' conditional)?"""
        condition = self._parse_logical_or()
        question = self._accept(ExprDSLTokenType.QUESTION)
        if question is None:
            return condition

        # Both arms recurse back into conditional, so each `?` counts as a nesting level
        self._depth += 1
        try:
            self._check_depth(question)
            then_branch = self._parse_expression()
            self._expect(ExprDSLTokenType.COLON, "':' in conditional operator", "Correct: x > 0 ? 1 : -1")
            else_branch = self._parse_conditional()

        finally:
            self._depth -= 1

        return self._make(
            ExprDSLASTTernary(condition, then_branch, else_branch, position=question.position),
            condition, then_branch, else_branch
        )

    def _binary(self, token: ExprDSLToken, op: ExprDSLBinaryOp, left: ExprDSLASTNode, right: ExprDSLASTNode) -> ExprDSLASTNode:
        return self._make(ExprDSLASTBinary(op, left, right, position=token.position), left, right)

    def _parse_logical_or(self) -> ExprDSLASTNode:
        node = self._parse_logical_and()
        while True:
            token = self._accept(ExprDSLTokenType.OR_OR)
            if token is None:
                return node

            node = self._binary(token, ExprDSLBinaryOp.OR, node, self._parse_logical_and())

    def _parse_logical_and(self) -> ExprDSLASTNode:
        node = self._parse_equality()
        while True:
            token = self._accept(ExprDSLTokenType.AND_AND)
            if token is None:
                return node

            node = self._binary(token, ExprDSLBinaryOp.AND, node, self._parse_equality())

    def _parse_equality(self) -> ExprDSLASTNode:
        node = self._parse_relational()
        while self.lexer.peek().type in _EQUALITY_OPS:
            token = self.lexer.next()
            node = self._binary(token, _EQUALITY_OPS[token.type], node, self._parse_relational())

        return node

    def _parse_relational(self) -> ExprDSLASTNode:
        node = self._parse_additive()
        while self.lexer.peek().type in _RELATIONAL_OPS:
            token = self.lexer.next()
            node = self._binary(token, _RELATIONAL_OPS[token.type], node, self._parse_additive())

        return node

    def _parse_additive(self) -> ExprDSLASTNode:
        node = self._parse_multiplicative()
        while self.lexer.peek().type in _ADDITIVE_OPS:
            token = self.lexer.next()
            node = self._binary(token, _ADDITIVE_OPS[token.type], node, self._parse_multiplicative())

        return node

    def _parse_multiplicative(self) -> ExprDSLASTNode:
        node = self._parse_unary()
        while self.lexer.peek().type in _MULTIPLICATIVE_OPS:
            token = self.lexer.next()
            node = self._binary(token, _MULTIPLICATIVE_OPS[token.type], node, self._parse_unary())

        return node

    def _parse_unary(self) -> ExprDSLASTNode:
        """unary := ('+' | '-' | '!') unary | power"""
        token = self.lexer.peek()
        self._depth += 1
        try:
            self._check_depth(token)

            op = _UNARY_OPS.get(token.type)
            if op is None:
                return self._parse_power()

            self.lexer.next()
            operand = self._parse_unary()
            return self._make(ExprDSLASTUnary(op, operand, position=token.position), operand)

        finally:
            self._depth -= 1

    def _parse_power(self) -> ExprDSLASTNode:
        """
        power := primary ('^' unary)?

        The right operand is a unary expression, which itself descends into
        power, so `a ^ b ^ c` is `a ^ (b ^ c)` and `a ^ -b` is accepted.
        """
        base = self._parse_primary()
        caret = self._accept(ExprDSLTokenType.CARET)
        if caret is None:
            return base

        exponent = self._parse_unary()
        return self._make(
            ExprDSLASTBinary(ExprDSLBinaryOp.POW, base, exponent, position=caret.position), base, exponent
        )

    def _parse_primary(self) -> ExprDSLASTNode:
        """primary := number | variable | '(' expression ')' | ident '(' args ')'"""
        token = self.lexer.peek()

        if token.type == ExprDSLTokenType.NUMBER:
            self.lexer.next()
            return self._make(ExprDSLASTNumber(token.number, position=token.position))

        if token.type == ExprDSLTokenType.VAR:
            self.lexer.next()
            return self._make(ExprDSLASTVariable(token.var_index, position=token.position))

        if token.type == ExprDSLTokenType.IDENT:
            self.lexer.next()
            return self._parse_call(token)

        if token.type == ExprDSLTokenType.LPAREN:
            self.lexer.next()
            node = self._parse_expression()
            self._expect(ExprDSLTokenType.RPAREN, "')'", "Correct: (x + 1) * 2")
            return node

        raise ExprDSLParseError(
            message="Expected primary expression",
            position=token.position,
            received=f"Found: {token.describe()}",
            expected="A number, variable, function call or '('",
            example="Valid operands: 42, x, $2, sqrt(x), (x + 1)",
            context=self._context(token.position)
        )

    def _parse_call(self, ident: ExprDSLToken) -> ExprDSLASTNode:
        """Parse `name(arg, ...)` after the identifier; all failures report the identifier."""
        name = ident.ident
        if self._accept(ExprDSLTokenType.LPAREN) is None:
            raise ExprDSLParseError(
                message="Identifier must be a function call like name(...)",
                position=ident.position,
                received=f"Identifier: {name}",
                expected=f"'(' after {name}",
                context="Identifiers are only used as function names; variables are x, y, z, w or $1..$4"
            )

        func = FUNCTION_TABLE.get(name)
        if func is None:
            similar = self.message_builder.suggest_similar_functions(name, list(FUNCTION_TABLE))
            raise ExprDSLParseError(
                message=f"Unknown or disallowed function: {name}",
                position=ident.position,
                received=f"Function: {name}",
                expected="One of: " + ", ".join(FUNCTION_TABLE),
                suggestion=f"Did you mean: {', '.join(similar)}?" if similar else None
            )

        args: List[ExprDSLASTNode] = []
        if self._accept(ExprDSLTokenType.RPAREN) is None:
            args.append(self._parse_expression())
            while self._accept(ExprDSLTokenType.COMMA) is not None:
                args.append(self._parse_expression())

            self._expect(ExprDSLTokenType.RPAREN, "')' to close function call", f"Correct: {name}(...)")

        if len(args) != func.arity:
            arg_word = "arg" if func.arity == 1 else "args"
            raise ExprDSLParseError(
                message=f"Function '{name}' expects {func.arity} {arg_word}, got {len(args)}",
                position=ident.position,
                received=f"{len(args)} argument(s)",
                expected=f"{func.arity} argument(s)"
            )

        return self._make(
            ExprDSLASTCall(func.fid, name, func.arity, tuple(args), position=ident.position), *args
        )
