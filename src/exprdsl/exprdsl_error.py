"""Exception classes for ExprDSL with detailed context."""

from dataclasses import dataclass
from typing import List
import difflib


class ExprDSLError(Exception):
    """Base exception for ExprDSL errors with detailed context information."""

    def __init__(
        self,
        message: str,
        context: str | None = None,
        expected: str | None = None,
        received: str | None = None,
        suggestion: str | None = None,
        example: str | None = None,
        position: int | None = None
    ):
        """
        Initialize detailed error.

        Args:
            message: Core error description
            context: Additional context information
            expected: What was expected
            received: What was actually received
            suggestion: Suggestion for fixing the error
            example: Example of correct usage
            position: 0-based character position where the error occurred
        """
        self.message = message
        self.context = context
        self.expected = expected
        self.received = received
        self.suggestion = suggestion
        self.example = example
        self.position = position

        super().__init__(self._format_detailed_message())

    def _format_detailed_message(self) -> str:
        """Format the error message with all available details."""
        parts = [f"Error: {self.message}"]

        if self.position is not None:
            parts.append(f"Position: {self.position}")

        if self.received:
            parts.append(f"Received: {self.received}")

        if self.expected:
            parts.append(f"Expected: {self.expected}")

        if self.context:
            parts.append(f"Context: {self.context}")

        if self.suggestion:
            parts.append(f"Suggestion: {self.suggestion}")

        if self.example:
            parts.append(f"Example: {self.example}")

        return "\n".join(parts)


class ExprDSLTokenError(ExprDSLError):
    """Tokenization errors with detailed context."""


class ExprDSLParseError(ExprDSLError):
    """Parsing errors with detailed context."""


class ExprDSLValidationError(ExprDSLError):
    """Bytecode validation errors (indicate a compiler bug, not bad input)."""

    def __init__(self, message: str, instruction_index: int | None = None, context: str | None = None):
        self.instruction_index = instruction_index
        if instruction_index is not None:
            context = f"at instruction {instruction_index}" + (f", {context}" if context else "")

        super().__init__(message, context=context)


@dataclass(frozen=True)
class CompileError:
    """A compile failure returned as data: 0-based position plus message."""
    position: int
    message: str

    @classmethod
    def from_exception(cls, error: ExprDSLError) -> 'CompileError':
        """Build a compile error from a raised lexer or parser exception."""
        message = error.message
        if error.suggestion:
            message = f"{message} ({error.suggestion})"

        return cls(error.position if error.position is not None else 0, message)

    def __str__(self) -> str:
        return f"{self.position}: {self.message}"


class ErrorMessageBuilder:
    """Helper class for building detailed error messages."""

    @staticmethod
    def suggest_similar_functions(target: str, available_functions: List[str], max_suggestions: int = 3) -> List[str]:
        """Suggest similar function names using fuzzy matching."""
        if not target or not available_functions:
            return []

        return difflib.get_close_matches(target, available_functions, n=max_suggestions, cutoff=0.6)

    @staticmethod
    def get_expression_context(expression: str, position: int, context_size: int = 20) -> str:
        """Get context around an error position, marking the offending character."""
        start = max(0, position - context_size)
        end = min(len(expression), position + context_size)

        before = expression[start:position]
        at_pos = expression[position] if position < len(expression) else ""
        after = expression[position + 1:end]

        return f"...{before}→{at_pos}←{after}..."
