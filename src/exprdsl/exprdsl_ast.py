"""ExprDSL AST node hierarchy - compile-time representation with source positions.

The AST is a closed set of immutable node types.  Passes dispatch on the
concrete node class; each node owns its children and no node is shared
between two parents.  Positions are metadata only and do not take part in
equality, so two trees that differ only in where they came from compare
equal.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple


class ExprDSLUnaryOp(Enum):
    """Unary operators.  TO_BOOL is synthesised by folding, never parsed."""
    PLUS = "+"
    MINUS = "-"
    NOT = "!"
    TO_BOOL = "bool"


class ExprDSLBinaryOp(Enum):
    """Binary operators, valued by their source spelling."""
    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"
    MOD = "%"
    POW = "^"
    LT = "<"
    LE = "<="
    GT = ">"
    GE = ">="
    EQ = "=="
    NE = "!="
    AND = "&&"
    OR = "||"


@dataclass(frozen=True)
class ExprDSLASTNode:
    """
    Base class for all ExprDSL AST nodes.

    The source position is keyword-only so that node fields can be passed
    positionally.
    """
    position: int = field(default=0, kw_only=True, compare=False)


@dataclass(frozen=True)
class ExprDSLASTNumber(ExprDSLASTNode):
    """A literal double."""
    value: float


@dataclass(frozen=True)
class ExprDSLASTVariable(ExprDSLASTNode):
    """A reference to input 0..3."""
    index: int


@dataclass(frozen=True)
class ExprDSLASTUnary(ExprDSLASTNode):
    """Unary operator applied to one operand."""
    op: ExprDSLUnaryOp
    operand: ExprDSLASTNode


@dataclass(frozen=True)
class ExprDSLASTBinary(ExprDSLASTNode):
    """Binary operator applied to two operands."""
    op: ExprDSLBinaryOp
    left: ExprDSLASTNode
    right: ExprDSLASTNode


@dataclass(frozen=True)
class ExprDSLASTTernary(ExprDSLASTNode):
    """The conditional operator: condition ? then_branch : else_branch."""
    condition: ExprDSLASTNode
    then_branch: ExprDSLASTNode
    else_branch: ExprDSLASTNode


@dataclass(frozen=True)
class ExprDSLASTCall(ExprDSLASTNode):
    """A call to a whitelisted function; `arity` always equals len(args)."""
    fid: int
    name: str
    arity: int
    args: Tuple[ExprDSLASTNode, ...]
