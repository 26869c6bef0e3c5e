"""Token types and token representation for ExprDSL expressions."""

from dataclasses import dataclass
from enum import Enum


class ExprDSLTokenType(Enum):
    """Token types for ExprDSL expressions."""
    END = "END"
    NUMBER = "NUMBER"
    IDENT = "IDENT"
    VAR = "VAR"
    LPAREN = "("
    RPAREN = ")"
    COMMA = ","
    PLUS = "+"
    MINUS = "-"
    STAR = "*"
    SLASH = "/"
    PERCENT = "%"
    CARET = "^"
    BANG = "!"
    LESS = "<"
    LESS_EQ = "<="
    GREATER = ">"
    GREATER_EQ = ">="
    EQ_EQ = "=="
    BANG_EQ = "!="
    AND_AND = "&&"
    OR_OR = "||"
    QUESTION = "?"
    COLON = ":"


@dataclass
class ExprDSLToken:
    """Represents a single token in an ExprDSL expression."""
    type: ExprDSLTokenType
    position: int
    number: float = 0.0
    var_index: int = -1
    ident: str = ""

    def describe(self) -> str:
        """Describe the token the way it appears in source, for error messages."""
        if self.type == ExprDSLTokenType.END:
            return "end of input"

        if self.type == ExprDSLTokenType.NUMBER:
            return repr(self.number)

        if self.type == ExprDSLTokenType.VAR:
            return f"${self.var_index + 1}"

        if self.type == ExprDSLTokenType.IDENT:
            return self.ident

        return f"'{self.type.value}'"

    def __repr__(self) -> str:
        return f"ExprDSLToken({self.type.name}, pos={self.position})"
