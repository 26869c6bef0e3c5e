"""Lexer for ExprDSL expressions with detailed error messages."""

from typing import Dict, List

from exprdsl.exprdsl_error import ExprDSLTokenError
from exprdsl.exprdsl_token import ExprDSLToken, ExprDSLTokenType


# C-locale isspace(): space, \t, \n, \v, \f, \r
_WHITESPACE = frozenset(' \t\n\v\f\r')
_DIGITS = frozenset('0123456789')
_LETTERS = frozenset('abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ')
_IDENT_START = _LETTERS | {'_'}
_IDENT_CONT = _IDENT_START | _DIGITS

_TWO_CHAR_OPERATORS: Dict[str, ExprDSLTokenType] = {
    '&&': ExprDSLTokenType.AND_AND,
    '||': ExprDSLTokenType.OR_OR,
    '==': ExprDSLTokenType.EQ_EQ,
    '!=': ExprDSLTokenType.BANG_EQ,
    '<=': ExprDSLTokenType.LESS_EQ,
    '>=': ExprDSLTokenType.GREATER_EQ,
}

_SINGLE_CHAR_OPERATORS: Dict[str, ExprDSLTokenType] = {
    '(': ExprDSLTokenType.LPAREN,
    ')': ExprDSLTokenType.RPAREN,
    ',': ExprDSLTokenType.COMMA,
    '+': ExprDSLTokenType.PLUS,
    '-': ExprDSLTokenType.MINUS,
    '*': ExprDSLTokenType.STAR,
    '/': ExprDSLTokenType.SLASH,
    '%': ExprDSLTokenType.PERCENT,
    '^': ExprDSLTokenType.CARET,
    '!': ExprDSLTokenType.BANG,
    '<': ExprDSLTokenType.LESS,
    '>': ExprDSLTokenType.GREATER,
    '?': ExprDSLTokenType.QUESTION,
    ':': ExprDSLTokenType.COLON,
}

# Single-letter variable aliases.  These are checked before identifiers, so no
# identifier can start with one of these letters.
_SHORT_VARIABLES: Dict[str, int] = {'x': 0, 'y': 1, 'z': 2, 'w': 3}


class ExprDSLLexer:
    """
    Produces ExprDSL tokens on demand with one token of lookahead.

    Tokens carry the 0-based position of their first character.  An END token
    is synthesised once the cursor passes the last character, and is returned
    again on every subsequent request.
    """

    def __init__(self, expression: str) -> None:
        """
        Initialize the lexer over a source string.

        Args:
            expression: The expression string to lex
        """
        self.expression = expression
        self.pos = 0
        self._peeked: ExprDSLToken | None = None

    def peek(self) -> ExprDSLToken:
        """Return the next token without consuming it."""
        if self._peeked is None:
            self._peeked = self._next_token()

        return self._peeked

    def next(self) -> ExprDSLToken:
        """Consume and return the next token."""
        if self._peeked is not None:
            token = self._peeked
            self._peeked = None
            return token

        return self._next_token()

    def lex(self) -> List[ExprDSLToken]:
        """
        Lex the remaining input into a list of tokens, ending with END.

        Returns:
            List of tokens

        Raises:
            ExprDSLTokenError: If tokenization fails
        """
        tokens = []
        while True:
            token = self.next()
            tokens.append(token)
            if token.type == ExprDSLTokenType.END:
                return tokens

    def _skip_whitespace(self) -> None:
        expression = self.expression
        while self.pos < len(expression) and expression[self.pos] in _WHITESPACE:
            self.pos += 1

    def _next_token(self) -> ExprDSLToken:
        """Scan one token starting at the cursor."""
        self._skip_whitespace()
        expression = self.expression
        start = self.pos

        if start >= len(expression):
            return ExprDSLToken(ExprDSLTokenType.END, start)

        char = expression[start]

        # Two-character operators are matched greedily before single characters
        two_chars = expression[start:start + 2]
        if two_chars in _TWO_CHAR_OPERATORS:
            self.pos += 2
            return ExprDSLToken(_TWO_CHAR_OPERATORS[two_chars], start)

        if char in _SINGLE_CHAR_OPERATORS:
            self.pos += 1
            return ExprDSLToken(_SINGLE_CHAR_OPERATORS[char], start)

        if char == '$':
            return self._read_dollar_variable(start)

        if char in _SHORT_VARIABLES:
            self.pos += 1
            return ExprDSLToken(ExprDSLTokenType.VAR, start, var_index=_SHORT_VARIABLES[char])

        if char in _IDENT_START:
            end = start + 1
            while end < len(expression) and expression[end] in _IDENT_CONT:
                end += 1

            self.pos = end
            return ExprDSLToken(ExprDSLTokenType.IDENT, start, ident=expression[start:end])

        if char in _DIGITS or char == '.':
            return self._read_number(start)

        raise ExprDSLTokenError(
            message=f"Unexpected character: {char!r}",
            position=start,
            received=f"Character: {char!r} (code {ord(char)})",
            expected="A number, variable (x, y, z, w, $1..$4), function name, operator or parenthesis",
            example="Valid: x * 2 + sin(y)",
            suggestion=self._suggest_for_character(char)
        )

    def _suggest_for_character(self, char: str) -> str | None:
        suggestions = {
            '&': "Use '&&' for logical and",
            '|': "Use '||' for logical or",
            '=': "Use '==' for equality",
            '[': "Use parentheses ( ) for grouping",
            ']': "Use parentheses ( ) for grouping",
            '{': "Use parentheses ( ) for grouping",
            '}': "Use parentheses ( ) for grouping",
        }
        return suggestions.get(char)

    def _read_dollar_variable(self, start: int) -> ExprDSLToken:
        """Read `$n` where n is 1..4; the token position is the `$`."""
        expression = self.expression
        i = start + 1
        if i >= len(expression) or expression[i] not in _DIGITS:
            raise ExprDSLTokenError(
                message="Expected digit after '$'",
                position=start,
                received=f"Found: {expression[start:i + 1]!r}",
                expected="$1, $2, $3 or $4",
                example="Correct: $1 + $2"
            )

        digits_start = i
        while i < len(expression) and expression[i] in _DIGITS:
            i += 1

        # Leading zeros are insignificant; more than one significant digit is always out of range
        digits = expression[digits_start:i].lstrip('0')
        index = int(digits) if len(digits) == 1 else 0
        if index < 1 or index > 4:
            raise ExprDSLTokenError(
                message="Variable index after '$' must be 1..4",
                position=start,
                received=f"Variable: {self._abbreviate(expression[start:i])}",
                expected="$1, $2, $3 or $4",
                suggestion="Only four inputs are available: $1..$4 (or x, y, z, w)"
            )

        self.pos = i
        return ExprDSLToken(ExprDSLTokenType.VAR, start, var_index=index - 1)

    def _abbreviate(self, text: str, limit: int = 16) -> str:
        if len(text) <= limit:
            return text

        return f"{text[:limit]}... ({len(text)} characters)"

    def _read_number(self, start: int) -> ExprDSLToken:
        """
        Read a decimal literal: digits [. digits*] or . digits, with an optional exponent.

        An `e`/`E` that is not followed by a valid exponent is not part of the
        number; the literal ends just before it.
        """
        expression = self.expression
        length = len(expression)
        i = start

        if expression[i] == '.':
            i += 1
            if i >= length or expression[i] not in _DIGITS:
                raise ExprDSLTokenError(
                    message="Invalid number literal",
                    position=start,
                    received="A '.' not followed by digits",
                    expected="Digits after the decimal point",
                    example="Correct: .5 or 0.5"
                )

            while i < length and expression[i] in _DIGITS:
                i += 1

        else:
            while i < length and expression[i] in _DIGITS:
                i += 1

            if i < length and expression[i] == '.':
                i += 1
                while i < length and expression[i] in _DIGITS:
                    i += 1

        if i < length and expression[i] in 'eE':
            exponent_start = i
            i += 1
            if i < length and expression[i] in '+-':
                i += 1

            if i < length and expression[i] in _DIGITS:
                while i < length and expression[i] in _DIGITS:
                    i += 1

            else:
                i = exponent_start

        text = expression[start:i]
        try:
            value = float(text)

        except ValueError as e:
            raise ExprDSLTokenError(
                message="Failed to parse number",
                position=start,
                received=f"Literal: {text}"
            ) from e

        self.pos = i
        return ExprDSLToken(ExprDSLTokenType.NUMBER, start, number=value)
