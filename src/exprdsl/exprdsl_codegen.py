"""
ExprDSL code generator - emits flat bytecode from an AST.

Every subexpression leaves exactly one value on the stack.  Forward jumps are
emitted with a zero target and back-patched once the destination is known.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List

from exprdsl.exprdsl_ast import (
    ExprDSLASTNode, ExprDSLASTNumber, ExprDSLASTVariable, ExprDSLASTUnary,
    ExprDSLASTBinary, ExprDSLASTTernary, ExprDSLASTCall, ExprDSLUnaryOp, ExprDSLBinaryOp
)
from exprdsl.exprdsl_bytecode import CodeObject, Instruction, Opcode


BINARY_OPCODES: Dict[ExprDSLBinaryOp, Opcode] = {
    ExprDSLBinaryOp.ADD: Opcode.ADD,
    ExprDSLBinaryOp.SUB: Opcode.SUB,
    ExprDSLBinaryOp.MUL: Opcode.MUL,
    ExprDSLBinaryOp.DIV: Opcode.DIV,
    ExprDSLBinaryOp.MOD: Opcode.MOD,
    ExprDSLBinaryOp.POW: Opcode.POW,
    ExprDSLBinaryOp.LT: Opcode.LT,
    ExprDSLBinaryOp.LE: Opcode.LE,
    ExprDSLBinaryOp.GT: Opcode.GT,
    ExprDSLBinaryOp.GE: Opcode.GE,
    ExprDSLBinaryOp.EQ: Opcode.EQ,
    ExprDSLBinaryOp.NE: Opcode.NE,
}

# Unary plus emits nothing
UNARY_OPCODES: Dict[ExprDSLUnaryOp, Opcode] = {
    ExprDSLUnaryOp.MINUS: Opcode.NEG,
    ExprDSLUnaryOp.NOT: Opcode.LOGICAL_NOT,
    ExprDSLUnaryOp.TO_BOOL: Opcode.TO_BOOL,
}


@dataclass
class ExprDSLCodeGenContext:
    """Code generation context - tracks bytecode emission."""
    instructions: List[Instruction] = field(default_factory=list)

    def emit(self, opcode: Opcode, arg: int = 0, imm: float = 0.0) -> int:
        """Emit an instruction and return its index."""
        index = len(self.instructions)
        self.instructions.append(Instruction(opcode, arg, imm))
        return index

    def emit_placeholder(self, opcode: Opcode) -> int:
        """Emit a jump whose target will be patched later; return its index."""
        return self.emit(opcode, 0)

    def patch_jump(self, instr_index: int, target: int) -> None:
        """Patch a jump instruction to point to target."""
        self.instructions[instr_index].arg = target

    def current_instruction_index(self) -> int:
        """Get index of next instruction to be emitted."""
        return len(self.instructions)


class ExprDSLCodeGen:
    """Generates bytecode from an (optionally folded) AST."""

    def __init__(self) -> None:
        self._jump_table: Dict[type, Callable[..., None]] = {
            ExprDSLASTNumber: self._generate_number,
            ExprDSLASTVariable: self._generate_variable,
            ExprDSLASTUnary: self._generate_unary,
            ExprDSLASTBinary: self._generate_binary,
            ExprDSLASTTernary: self._generate_ternary,
            ExprDSLASTCall: self._generate_call,
        }

    def generate(self, expr: ExprDSLASTNode, name: str = "<expr>") -> CodeObject:
        """
        Generate bytecode for an expression.

        Args:
            expr: Root of the AST
            name: Name for the code object (for debugging)

        Returns:
            Code object whose last instruction is the single END
        """
        ctx = ExprDSLCodeGenContext()
        self._generate_expr(expr, ctx)
        ctx.emit(Opcode.END)
        return CodeObject(tuple(ctx.instructions), name)

    def _generate_expr(self, expr: ExprDSLASTNode, ctx: ExprDSLCodeGenContext) -> None:
        generator = self._jump_table[type(expr)]
        generator(expr, ctx)

    def _generate_number(self, expr: ExprDSLASTNumber, ctx: ExprDSLCodeGenContext) -> None:
        ctx.emit(Opcode.PUSH_CONST, imm=expr.value)

    def _generate_variable(self, expr: ExprDSLASTVariable, ctx: ExprDSLCodeGenContext) -> None:
        ctx.emit(Opcode.PUSH_VAR, expr.index)

    def _generate_unary(self, expr: ExprDSLASTUnary, ctx: ExprDSLCodeGenContext) -> None:
        self._generate_expr(expr.operand, ctx)
        opcode = UNARY_OPCODES.get(expr.op)
        if opcode is not None:
            ctx.emit(opcode)

    def _generate_binary(self, expr: ExprDSLASTBinary, ctx: ExprDSLCodeGenContext) -> None:
        if expr.op == ExprDSLBinaryOp.AND:
            self._generate_and(expr, ctx)
            return

        if expr.op == ExprDSLBinaryOp.OR:
            self._generate_or(expr, ctx)
            return

        self._generate_expr(expr.left, ctx)
        self._generate_expr(expr.right, ctx)
        ctx.emit(BINARY_OPCODES[expr.op])

    def _generate_and(self, expr: ExprDSLASTBinary, ctx: ExprDSLCodeGenContext) -> None:
        """
        left; TO_BOOL; JZ false; right; TO_BOOL; JMP end
        false: PUSH_CONST 0.0
        end:
        """
        self._generate_expr(expr.left, ctx)
        ctx.emit(Opcode.TO_BOOL)
        jz_false = ctx.emit_placeholder(Opcode.JZ)
        self._generate_expr(expr.right, ctx)
        ctx.emit(Opcode.TO_BOOL)
        jmp_end = ctx.emit_placeholder(Opcode.JMP)
        ctx.patch_jump(jz_false, ctx.current_instruction_index())
        ctx.emit(Opcode.PUSH_CONST, imm=0.0)
        ctx.patch_jump(jmp_end, ctx.current_instruction_index())

    def _generate_or(self, expr: ExprDSLASTBinary, ctx: ExprDSLCodeGenContext) -> None:
        """
        left; TO_BOOL; JZ eval_right; PUSH_CONST 1.0; JMP end
        eval_right: right; TO_BOOL
        end:
        """
        self._generate_expr(expr.left, ctx)
        ctx.emit(Opcode.TO_BOOL)
        jz_eval_right = ctx.emit_placeholder(Opcode.JZ)
        ctx.emit(Opcode.PUSH_CONST, imm=1.0)
        jmp_end = ctx.emit_placeholder(Opcode.JMP)
        ctx.patch_jump(jz_eval_right, ctx.current_instruction_index())
        self._generate_expr(expr.right, ctx)
        ctx.emit(Opcode.TO_BOOL)
        ctx.patch_jump(jmp_end, ctx.current_instruction_index())

    def _generate_ternary(self, expr: ExprDSLASTTernary, ctx: ExprDSLCodeGenContext) -> None:
        """
        condition; TO_BOOL; JZ else; then; JMP end
        else: else_branch
        end:
        """
        self._generate_expr(expr.condition, ctx)
        ctx.emit(Opcode.TO_BOOL)
        jz_else = ctx.emit_placeholder(Opcode.JZ)
        self._generate_expr(expr.then_branch, ctx)
        jmp_end = ctx.emit_placeholder(Opcode.JMP)
        ctx.patch_jump(jz_else, ctx.current_instruction_index())
        self._generate_expr(expr.else_branch, ctx)
        ctx.patch_jump(jmp_end, ctx.current_instruction_index())

    def _generate_call(self, expr: ExprDSLASTCall, ctx: ExprDSLCodeGenContext) -> None:
        for arg in expr.args:
            self._generate_expr(arg, ctx)

        ctx.emit(Opcode.CALL, expr.fid)
