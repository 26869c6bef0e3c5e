"""Bytecode definitions for the ExprDSL virtual machine."""

from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, List, Tuple

from exprdsl.exprdsl_functions import FUNCTIONS_BY_ID


class OperandKind(IntEnum):
    """Which instruction field an opcode reads."""
    NONE = 0
    ARG = 1         # integer operand: variable index, jump target or function id
    IMM = 2         # floating-point immediate


def _op(n: int, operand: OperandKind = OperandKind.NONE) -> Tuple[int, OperandKind]:
    """Helper to construct an Opcode value: (integer_value, operand_kind)."""
    return (n, operand)


class Opcode(IntEnum):
    """Bytecode operation codes.

    Each member's value is a (integer_value, operand_kind) tuple.  The integer
    value is used for VM dispatch; the operand property says which field of
    the instruction the opcode uses.
    """

    _operand: OperandKind

    def __new__(cls, int_value: int, operand: OperandKind = OperandKind.NONE) -> 'Opcode':
        obj = int.__new__(cls, int_value)
        obj._value_ = int_value
        obj._operand = operand
        return obj

    @property
    def operand(self) -> OperandKind:
        """The instruction field this opcode reads."""
        return self._operand

    # Stack
    PUSH_CONST = _op(0, OperandKind.IMM)    # PUSH_CONST imm
    PUSH_VAR = _op(1, OperandKind.ARG)      # PUSH_VAR index
    POP = _op(2)                            # Drop top of stack

    # Unary
    TO_BOOL = _op(3)                        # top ← top != 0 ? 1 : 0
    NEG = _op(4)                            # top ← -top
    LOGICAL_NOT = _op(5)                    # top ← top != 0 ? 0 : 1

    # Arithmetic: pop b, pop a, push a op b
    ADD = _op(6)
    SUB = _op(7)
    MUL = _op(8)
    DIV = _op(9)
    MOD = _op(10)                           # fmod, sign follows a
    POW = _op(11)

    # Comparison: pop b, pop a, push 1.0 or 0.0
    LT = _op(12)
    LE = _op(13)
    GT = _op(14)
    GE = _op(15)
    EQ = _op(16)
    NE = _op(17)

    # Control flow
    JZ = _op(18, OperandKind.ARG)           # Pop condition; jump to target if it is 0
    JMP = _op(19, OperandKind.ARG)          # Unconditional jump to target
    CALL = _op(20, OperandKind.ARG)         # CALL function_id
    END = _op(21)                           # Return top of stack


# Net stack effect of each opcode as (pop_count, push_count).  CALL depends on
# the function's arity and is handled separately by its users.
STACK_EFFECTS: Dict[Opcode, Tuple[int, int]] = {
    Opcode.PUSH_CONST: (0, 1),
    Opcode.PUSH_VAR: (0, 1),
    Opcode.POP: (1, 0),
    Opcode.TO_BOOL: (1, 1),
    Opcode.NEG: (1, 1),
    Opcode.LOGICAL_NOT: (1, 1),
    Opcode.ADD: (2, 1),
    Opcode.SUB: (2, 1),
    Opcode.MUL: (2, 1),
    Opcode.DIV: (2, 1),
    Opcode.MOD: (2, 1),
    Opcode.POW: (2, 1),
    Opcode.LT: (2, 1),
    Opcode.LE: (2, 1),
    Opcode.GT: (2, 1),
    Opcode.GE: (2, 1),
    Opcode.EQ: (2, 1),
    Opcode.NE: (2, 1),
    Opcode.JZ: (1, 0),
    Opcode.JMP: (0, 0),
    Opcode.END: (0, 0),
}


_VARIABLE_NAMES = ('x', 'y', 'z', 'w')


@dataclass
class Instruction:
    """Single bytecode instruction.

    At most one operand is meaningful: PUSH_CONST reads `imm`; PUSH_VAR, JZ,
    JMP and CALL read `arg`; everything else reads neither.
    """
    opcode: Opcode
    arg: int = 0
    imm: float = 0.0

    def __repr__(self) -> str:
        """Human-readable representation."""
        if self.opcode.operand == OperandKind.IMM:
            return f"{self.opcode.name} {self.imm!r}"

        if self.opcode.operand == OperandKind.ARG:
            return f"{self.opcode.name} {self.arg}"

        return f"{self.opcode.name}"

    def annotation(self) -> str:
        """Describe what the instruction does, for disassembly listings."""
        opcode = self.opcode
        if opcode == Opcode.PUSH_VAR and 0 <= self.arg < len(_VARIABLE_NAMES):
            return f"load {_VARIABLE_NAMES[self.arg]} (${self.arg + 1})"

        if opcode == Opcode.CALL:
            if 0 <= self.arg < len(FUNCTIONS_BY_ID):
                func = FUNCTIONS_BY_ID[self.arg]
                arg_word = "arg" if func.arity == 1 else "args"
                return f"call {func.name} with {func.arity} {arg_word}"

            return "call unknown function (yields NaN)"

        if opcode == Opcode.JZ:
            return f"jump to {self.arg} if top of stack is 0"

        if opcode == Opcode.JMP:
            return f"jump to {self.arg}"

        if opcode == Opcode.END:
            return "return top of stack"

        return ""


@dataclass(frozen=True)
class CodeObject:
    """Compiled ExprDSL program: a flat instruction sequence ending in END.

    The instruction tuple must not be modified once the code object has been
    built; evaluation only ever reads it.
    """
    instructions: Tuple[Instruction, ...]
    name: str = "<expr>"

    def __len__(self) -> int:
        return len(self.instructions)

    def __repr__(self) -> str:
        return f"CodeObject({self.name}, {len(self.instructions)} instructions)"

    def disassemble(self) -> str:
        """Return an annotated listing, one instruction per line."""
        lines: List[str] = []
        width = len(str(max(len(self.instructions) - 1, 0)))
        for i, instr in enumerate(self.instructions):
            line = f"{i:>{width}}: {instr!r}"
            annotation = instr.annotation()
            if annotation:
                line = f"{line:<{width + 24}} ; {annotation}"

            lines.append(line)

        return "\n".join(lines)
