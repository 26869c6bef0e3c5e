"""ExprDSL Virtual Machine - executes bytecode."""

import math
from typing import Any, Callable, List, Sequence

from exprdsl.exprdsl_bytecode import CodeObject, Instruction, Opcode
from exprdsl.exprdsl_functions import (
    FUNCTIONS_BY_ID, bool_to_float, ieee_div, ieee_fmod, ieee_pow, truth
)


# A handler mutates the stack and returns the next program counter, or None to
# fall through to the following instruction.
Handler = Callable[[List[float], Instruction, Sequence[float]], Any]


def _binary(func: Callable[[float, float], float]) -> Handler:
    """Build a handler that pops b, pops a and pushes func(a, b)."""
    def handler(stack: List[float], _instr: Instruction, _inputs: Sequence[float]) -> None:
        b = stack.pop()
        a = stack.pop()
        stack.append(func(a, b))

    return handler


class ExprDSLVM:
    """
    Virtual machine for executing ExprDSL bytecode.

    The VM holds no per-evaluation state: each call to `execute` gets a fresh
    stack and program counter, so a single VM and a single code object can be
    shared by any number of threads.  Arithmetic never raises; edge cases
    surface as infinities or NaN in the result.
    """

    def __init__(self) -> None:
        self._dispatch_table = self._build_dispatch_table()

    def _build_dispatch_table(self) -> List[Any]:
        """Build the jump table for opcode dispatch, indexed by opcode value."""
        table: List[Any] = [None] * (max(Opcode) + 1)
        table[Opcode.PUSH_CONST] = self._op_push_const
        table[Opcode.PUSH_VAR] = self._op_push_var
        table[Opcode.POP] = self._op_pop
        table[Opcode.TO_BOOL] = self._op_to_bool
        table[Opcode.NEG] = self._op_neg
        table[Opcode.LOGICAL_NOT] = self._op_logical_not
        table[Opcode.ADD] = _binary(lambda a, b: a + b)
        table[Opcode.SUB] = _binary(lambda a, b: a - b)
        table[Opcode.MUL] = _binary(lambda a, b: a * b)
        table[Opcode.DIV] = _binary(ieee_div)
        table[Opcode.MOD] = _binary(ieee_fmod)
        table[Opcode.POW] = _binary(ieee_pow)
        table[Opcode.LT] = _binary(lambda a, b: bool_to_float(a < b))
        table[Opcode.LE] = _binary(lambda a, b: bool_to_float(a <= b))
        table[Opcode.GT] = _binary(lambda a, b: bool_to_float(b < a))
        table[Opcode.GE] = _binary(lambda a, b: bool_to_float(b <= a))
        table[Opcode.EQ] = _binary(lambda a, b: bool_to_float(a == b))
        table[Opcode.NE] = _binary(lambda a, b: bool_to_float(a != b))
        table[Opcode.JZ] = self._op_jz
        table[Opcode.JMP] = self._op_jmp
        table[Opcode.CALL] = self._op_call
        return table

    def execute(self, code: CodeObject, inputs: Sequence[float]) -> float:
        """
        Execute a code object against one input quadruple.

        Args:
            code: Compiled code object
            inputs: The four input values (x, y, z, w)

        Returns:
            The value on top of the stack at END, or 0.0 if the stack is empty
        """
        instructions = code.instructions
        dispatch = self._dispatch_table
        stack: List[float] = []
        pc = 0
        count = len(instructions)

        while pc < count:
            instr = instructions[pc]
            if instr.opcode == Opcode.END:
                break

            target = dispatch[instr.opcode](stack, instr, inputs)
            pc = pc + 1 if target is None else target

        return stack[-1] if stack else 0.0

    def _op_push_const(self, stack: List[float], instr: Instruction, _inputs: Sequence[float]) -> None:
        """PUSH_CONST: Push the immediate onto the stack."""
        stack.append(instr.imm)

    def _op_push_var(self, stack: List[float], instr: Instruction, inputs: Sequence[float]) -> None:
        """PUSH_VAR: Push input[arg] onto the stack."""
        stack.append(inputs[instr.arg])

    def _op_pop(self, stack: List[float], _instr: Instruction, _inputs: Sequence[float]) -> None:
        """POP: Drop the top of the stack."""
        stack.pop()

    def _op_to_bool(self, stack: List[float], _instr: Instruction, _inputs: Sequence[float]) -> None:
        """TO_BOOL: Normalise the top of the stack to 1.0 or 0.0."""
        stack[-1] = bool_to_float(truth(stack[-1]))

    def _op_neg(self, stack: List[float], _instr: Instruction, _inputs: Sequence[float]) -> None:
        """NEG: Negate the top of the stack."""
        stack[-1] = -stack[-1]

    def _op_logical_not(self, stack: List[float], _instr: Instruction, _inputs: Sequence[float]) -> None:
        """LOGICAL_NOT: 1.0 if the top of the stack is 0, else 0.0."""
        stack[-1] = bool_to_float(not truth(stack[-1]))

    def _op_jz(self, stack: List[float], instr: Instruction, _inputs: Sequence[float]) -> int | None:
        """JZ: Pop the condition and jump if it is 0."""
        if not truth(stack.pop()):
            return instr.arg

        return None

    def _op_jmp(self, _stack: List[float], instr: Instruction, _inputs: Sequence[float]) -> int:
        """JMP: Jump unconditionally."""
        return instr.arg

    def _op_call(self, stack: List[float], instr: Instruction, _inputs: Sequence[float]) -> None:
        """CALL: Pop arity arguments (last argument on top) and push the result."""
        fid = instr.arg
        if fid < 0 or fid >= len(FUNCTIONS_BY_ID):
            stack.append(math.nan)
            return

        func = FUNCTIONS_BY_ID[fid]
        if func.arity == 1:
            stack[-1] = func.impl(stack[-1])
            return

        b = stack.pop()
        a = stack.pop()
        stack.append(func.impl(a, b))
