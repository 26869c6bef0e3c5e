"""Tests for ExprDSL bytecode generation."""

import pytest

from exprdsl import ExprDSLCodeGen, ExprDSLCompiler, ExprDSLParser, Instruction, Opcode


def listing(code):
    """Reduce a code object to (opcode, operand) pairs for comparison."""
    result = []
    for instr in code.instructions:
        if instr.opcode == Opcode.PUSH_CONST:
            result.append((instr.opcode, instr.imm))

        elif instr.opcode in (Opcode.PUSH_VAR, Opcode.JZ, Opcode.JMP, Opcode.CALL):
            result.append((instr.opcode, instr.arg))

        else:
            result.append((instr.opcode,))

    return result


@pytest.fixture
def generate():
    parser = ExprDSLParser()
    codegen = ExprDSLCodeGen()

    def _generate(source):
        return codegen.generate(parser.parse(source))

    return _generate


class TestCodeGenBasic:
    """Test straight-line code."""

    def test_single_constant(self, generate):
        assert listing(generate("42")) == [(Opcode.PUSH_CONST, 42.0), (Opcode.END,)]

    def test_binary_emits_left_right_op(self, generate):
        assert listing(generate("x - y")) == [
            (Opcode.PUSH_VAR, 0),
            (Opcode.PUSH_VAR, 1),
            (Opcode.SUB,),
            (Opcode.END,),
        ]

    def test_unary_plus_emits_nothing(self, generate):
        assert listing(generate("+x")) == [(Opcode.PUSH_VAR, 0), (Opcode.END,)]

    def test_unary_operators(self, generate):
        assert listing(generate("-!z")) == [
            (Opcode.PUSH_VAR, 2),
            (Opcode.LOGICAL_NOT,),
            (Opcode.NEG,),
            (Opcode.END,),
        ]

    def test_call_emits_arguments_in_order(self, generate):
        assert listing(generate("atan2(y, x)")) == [
            (Opcode.PUSH_VAR, 1),
            (Opcode.PUSH_VAR, 0),
            (Opcode.CALL, 15),
            (Opcode.END,),
        ]

    def test_exactly_one_end(self, generate):
        code = generate("x ? y && z : w || 1")
        ends = [instr for instr in code.instructions if instr.opcode == Opcode.END]
        assert len(ends) == 1
        assert code.instructions[-1].opcode == Opcode.END

    def test_code_object_is_immutable(self, generate):
        code = generate("x")
        assert isinstance(code.instructions, tuple)
        with pytest.raises(AttributeError):
            code.instructions = ()


class TestCodeGenControlFlow:
    """Test jump layouts for the short-circuit and conditional operators."""

    def test_and_layout(self, generate):
        assert listing(generate("x && y")) == [
            (Opcode.PUSH_VAR, 0),
            (Opcode.TO_BOOL,),
            (Opcode.JZ, 6),
            (Opcode.PUSH_VAR, 1),
            (Opcode.TO_BOOL,),
            (Opcode.JMP, 7),
            (Opcode.PUSH_CONST, 0.0),
            (Opcode.END,),
        ]

    def test_or_layout(self, generate):
        assert listing(generate("x || y")) == [
            (Opcode.PUSH_VAR, 0),
            (Opcode.TO_BOOL,),
            (Opcode.JZ, 5),
            (Opcode.PUSH_CONST, 1.0),
            (Opcode.JMP, 7),
            (Opcode.PUSH_VAR, 1),
            (Opcode.TO_BOOL,),
            (Opcode.END,),
        ]

    def test_ternary_layout(self, generate):
        assert listing(generate("x ? y : z")) == [
            (Opcode.PUSH_VAR, 0),
            (Opcode.TO_BOOL,),
            (Opcode.JZ, 5),
            (Opcode.PUSH_VAR, 1),
            (Opcode.JMP, 6),
            (Opcode.PUSH_VAR, 2),
            (Opcode.END,),
        ]

    def test_jumps_are_forward(self, generate):
        code = generate("x && (y || z ? 1 : w && 2)")
        for i, instr in enumerate(code.instructions):
            if instr.opcode in (Opcode.JZ, Opcode.JMP):
                assert i < instr.arg < len(code.instructions)


class TestCodeGenWithFolding:
    """Test the compiler pipeline with and without folding."""

    def test_folded_program_is_single_constant(self):
        code = ExprDSLCompiler().compile("1 + 2 * 3")
        assert listing(code) == [(Opcode.PUSH_CONST, 7.0), (Opcode.END,)]

    def test_unfolded_program_keeps_operations(self):
        code = ExprDSLCompiler(optimize=False).compile("1 + 2 * 3")
        assert listing(code) == [
            (Opcode.PUSH_CONST, 1.0),
            (Opcode.PUSH_CONST, 2.0),
            (Opcode.PUSH_CONST, 3.0),
            (Opcode.MUL,),
            (Opcode.ADD,),
            (Opcode.END,),
        ]

    def test_folded_to_bool(self):
        code = ExprDSLCompiler().compile("1 && x")
        assert listing(code) == [(Opcode.PUSH_VAR, 0), (Opcode.TO_BOOL,), (Opcode.END,)]

    @pytest.mark.parametrize("optimize", [True, False])
    def test_compile_ast_matches_compile(self, optimize):
        compiler = ExprDSLCompiler(optimize=optimize)
        source = "x > 0 && y < 2 ? sqrt(1 + 3) : -z"
        ast = compiler.compile_to_ast(source)
        assert listing(compiler.compile_ast(ast)) == listing(compiler.compile(source))


class TestDisassembly:
    """Test code object listings."""

    def test_disassemble_names_functions_and_variables(self):
        code = ExprDSLCompiler().compile("sqrt($2)")
        text = code.disassemble()
        lines = text.splitlines()
        assert len(lines) == 3
        assert lines[0].startswith("0: PUSH_VAR 1")
        assert "load y ($2)" in lines[0]
        assert "call sqrt with 1 arg" in lines[1]
        assert "END" in lines[2]

    def test_instruction_repr(self):
        assert repr(Instruction(Opcode.PUSH_CONST, imm=1.5)) == "PUSH_CONST 1.5"
        assert repr(Instruction(Opcode.JMP, 4)) == "JMP 4"
        assert repr(Instruction(Opcode.ADD)) == "ADD"
