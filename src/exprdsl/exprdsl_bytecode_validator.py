"""
Bytecode validator for the ExprDSL virtual machine.

The validator performs static analysis on a code object so that the VM can
run without bounds checks in its hot loop.  It checks:
- Structural invariants (one terminal END, operands in range)
- Jump targets are valid, forward instruction indices
- Stack depth is consistent on every path, never underflows, and is exactly
  one when END is reached
"""

from typing import Dict, List, Tuple

from exprdsl.exprdsl_bytecode import CodeObject, Opcode, STACK_EFFECTS
from exprdsl.exprdsl_error import ExprDSLValidationError
from exprdsl.exprdsl_functions import FUNCTIONS_BY_ID


class ExprDSLBytecodeValidator:
    """Validates ExprDSL bytecode for correctness and safety."""

    def validate(self, code: CodeObject) -> None:
        """
        Validate a code object.

        Args:
            code: Code object to validate

        Raises:
            ExprDSLValidationError: If the bytecode is malformed
        """
        self._validate_structure(code)
        self._validate_operands(code)
        self._validate_stack_depth(code)

    def _validate_structure(self, code: CodeObject) -> None:
        instructions = code.instructions
        if not instructions:
            raise ExprDSLValidationError("Code object has no instructions")

        end_indices = [i for i, instr in enumerate(instructions) if instr.opcode == Opcode.END]
        if end_indices != [len(instructions) - 1]:
            raise ExprDSLValidationError(
                "Code must end with exactly one END instruction",
                context=f"END found at {end_indices}"
            )

    def _validate_operands(self, code: CodeObject) -> None:
        count = len(code.instructions)
        for i, instr in enumerate(code.instructions):
            opcode = instr.opcode

            if opcode == Opcode.PUSH_VAR and not 0 <= instr.arg <= 3:
                raise ExprDSLValidationError(f"Variable index {instr.arg} out of range 0..3", i)

            if opcode == Opcode.CALL and not 0 <= instr.arg < len(FUNCTIONS_BY_ID):
                raise ExprDSLValidationError(f"Unknown function id {instr.arg}", i)

            if opcode in (Opcode.JZ, Opcode.JMP):
                # Only forward jumps are ever emitted, which also guarantees termination
                if not i < instr.arg < count:
                    raise ExprDSLValidationError(
                        f"Jump target {instr.arg} is not a forward instruction index",
                        i,
                        context=f"instruction count: {count}"
                    )

    def _stack_effect(self, opcode: Opcode, arg: int) -> Tuple[int, int]:
        if opcode == Opcode.CALL:
            return FUNCTIONS_BY_ID[arg].arity, 1

        return STACK_EFFECTS[opcode]

    def _validate_stack_depth(self, code: CodeObject) -> None:
        """Abstract interpretation over stack depth along every path."""
        instructions = code.instructions
        depth_at: Dict[int, int] = {0: 0}
        worklist: List[int] = [0]

        while worklist:
            pc = worklist.pop()
            depth = depth_at[pc]
            instr = instructions[pc]

            pops, pushes = self._stack_effect(instr.opcode, instr.arg)
            if depth < pops:
                raise ExprDSLValidationError(
                    f"Stack underflow: {instr!r} needs {pops} value(s), stack has {depth}", pc
                )

            new_depth = depth - pops + pushes

            if instr.opcode == Opcode.END:
                if depth != 1:
                    raise ExprDSLValidationError(f"END reached with stack depth {depth}, expected 1", pc)

                continue

            if instr.opcode == Opcode.JMP:
                successors = [instr.arg]

            elif instr.opcode == Opcode.JZ:
                successors = [pc + 1, instr.arg]

            else:
                successors = [pc + 1]

            for successor in successors:
                known = depth_at.get(successor)
                if known is None:
                    depth_at[successor] = new_depth
                    worklist.append(successor)
                    continue

                if known != new_depth:
                    raise ExprDSLValidationError(
                        f"Inconsistent stack depth at instruction {successor}: {known} vs {new_depth}", pc
                    )


def validate_bytecode(code: CodeObject) -> None:
    """
    Validate bytecode (convenience function).

    Args:
        code: Code object to validate

    Raises:
        ExprDSLValidationError: If validation fails
    """
    ExprDSLBytecodeValidator().validate(code)
