"""Tests for the ExprDSL lexer."""

import math

import pytest

from exprdsl import ExprDSLLexer, ExprDSLTokenError, ExprDSLTokenType


def token_types(source):
    return [token.type for token in ExprDSLLexer(source).lex()]


class TestLexerOperators:
    """Test operator and punctuation tokens."""

    def test_two_char_operators_are_greedy(self):
        """Test that two-character operators win over their one-character prefixes."""
        assert token_types("&& || == != <= >=") == [
            ExprDSLTokenType.AND_AND,
            ExprDSLTokenType.OR_OR,
            ExprDSLTokenType.EQ_EQ,
            ExprDSLTokenType.BANG_EQ,
            ExprDSLTokenType.LESS_EQ,
            ExprDSLTokenType.GREATER_EQ,
            ExprDSLTokenType.END,
        ]

    def test_single_char_operators(self):
        """Test every single-character operator."""
        assert token_types("()+-*/%^!<>?:,") == [
            ExprDSLTokenType.LPAREN,
            ExprDSLTokenType.RPAREN,
            ExprDSLTokenType.PLUS,
            ExprDSLTokenType.MINUS,
            ExprDSLTokenType.STAR,
            ExprDSLTokenType.SLASH,
            ExprDSLTokenType.PERCENT,
            ExprDSLTokenType.CARET,
            ExprDSLTokenType.BANG,
            ExprDSLTokenType.LESS,
            ExprDSLTokenType.GREATER,
            ExprDSLTokenType.QUESTION,
            ExprDSLTokenType.COLON,
            ExprDSLTokenType.COMMA,
            ExprDSLTokenType.END,
        ]

    def test_bang_followed_by_space_and_equals(self):
        """Test that '! =' is two tokens, not '!='."""
        assert token_types("! =")[0] == ExprDSLTokenType.BANG

    def test_positions_are_zero_based(self):
        """Test that tokens record the offset of their first character."""
        tokens = ExprDSLLexer("  x <= 10").lex()
        assert [token.position for token in tokens] == [2, 4, 7, 9]

    def test_end_is_repeated(self):
        """Test that the lexer keeps returning END once input is exhausted."""
        lexer = ExprDSLLexer("1")
        lexer.next()
        assert lexer.next().type == ExprDSLTokenType.END
        assert lexer.next().type == ExprDSLTokenType.END

    def test_peek_does_not_consume(self):
        """Test one-token lookahead."""
        lexer = ExprDSLLexer("x y")
        assert lexer.peek().var_index == 0
        assert lexer.peek().var_index == 0
        assert lexer.next().var_index == 0
        assert lexer.next().var_index == 1

    def test_c_whitespace_is_skipped(self):
        """Test that all C-locale whitespace characters separate tokens."""
        assert token_types(" \t\n\v\f\r1") == [ExprDSLTokenType.NUMBER, ExprDSLTokenType.END]


class TestLexerVariables:
    """Test variable tokens."""

    @pytest.mark.parametrize("source,index", [("x", 0), ("y", 1), ("z", 2), ("w", 3)])
    def test_short_variables(self, source, index):
        """Test x, y, z and w."""
        token = ExprDSLLexer(source).next()
        assert token.type == ExprDSLTokenType.VAR
        assert token.var_index == index

    @pytest.mark.parametrize("source,index", [("$1", 0), ("$2", 1), ("$3", 2), ("$4", 3)])
    def test_dollar_variables(self, source, index):
        """Test $1..$4 decode to indices 0..3."""
        token = ExprDSLLexer(source).next()
        assert token.type == ExprDSLTokenType.VAR
        assert token.var_index == index

    def test_short_variable_wins_over_identifier(self):
        """Test that an identifier starting with x is lexed as the variable x."""
        tokens = ExprDSLLexer("xmax").lex()
        assert tokens[0].type == ExprDSLTokenType.VAR
        assert tokens[1].type == ExprDSLTokenType.IDENT
        assert tokens[1].ident == "max"

    def test_dollar_zero_out_of_range(self):
        """Test that $0 fails at the '$'."""
        with pytest.raises(ExprDSLTokenError, match="must be 1..4") as exc_info:
            ExprDSLLexer("1 + $0").lex()

        assert exc_info.value.position == 4

    def test_dollar_reads_all_digits(self):
        """Test that $12 is read as index 12 and rejected."""
        with pytest.raises(ExprDSLTokenError, match="must be 1..4"):
            ExprDSLLexer("$12").lex()

    def test_dollar_leading_zeros_are_insignificant(self):
        tokens = ExprDSLLexer("$01 + $004").lex()
        assert tokens[0].var_index == 0
        assert tokens[2].var_index == 3

    def test_dollar_all_zeros_out_of_range(self):
        with pytest.raises(ExprDSLTokenError, match="must be 1..4") as exc_info:
            ExprDSLLexer("$00").lex()

        assert exc_info.value.position == 0

    def test_dollar_huge_index_out_of_range(self):
        """Test that an arbitrarily long digit run fails at the  converting it."""
        with pytest.raises(ExprDSLTokenError, match="must be 1..4") as exc_info:
            ExprDSLLexer("$" + "9" * 5000).lex()

        assert exc_info.value.position == 0
        assert "5001 characters" in exc_info.value.received

    def test_dollar_without_digit(self):
        """Test that a bare '$' fails."""
        with pytest.raises(ExprDSLTokenError, match="Expected digit after '\\$'") as exc_info:
            ExprDSLLexer("$x").lex()

        assert exc_info.value.position == 0


class TestLexerNumbers:
    """Test number literals."""

    @pytest.mark.parametrize("source,value", [
        ("0", 0.0),
        ("42", 42.0),
        ("3.25", 3.25),
        (".5", 0.5),
        ("1.", 1.0),
        ("1e3", 1000.0),
        ("1E-2", 0.01),
        ("2.5e+1", 25.0),
        (".5e1", 5.0),
    ])
    def test_number_literals(self, source, value):
        """Test the accepted literal forms."""
        tokens = ExprDSLLexer(source).lex()
        assert tokens[0].type == ExprDSLTokenType.NUMBER
        assert tokens[0].number == value
        assert tokens[1].type == ExprDSLTokenType.END

    def test_exponent_without_digits_rewinds(self):
        """Test that '1e' lexes as 1 followed by the identifier 'e'."""
        tokens = ExprDSLLexer("1e").lex()
        assert tokens[0].number == 1.0
        assert tokens[1].type == ExprDSLTokenType.IDENT
        assert tokens[1].ident == "e"
        assert tokens[1].position == 1

    def test_exponent_sign_without_digits_rewinds(self):
        """Test that '2e+' stops before the 'e'."""
        tokens = ExprDSLLexer("2e+").lex()
        assert tokens[0].number == 2.0
        assert tokens[1].type == ExprDSLTokenType.IDENT
        assert tokens[2].type == ExprDSLTokenType.PLUS

    def test_huge_literal_is_infinity(self):
        """Test that out-of-range literals become infinity."""
        assert math.isinf(ExprDSLLexer("1e999").next().number)

    def test_lone_dot_is_invalid(self):
        """Test that '.' without digits fails at the dot."""
        with pytest.raises(ExprDSLTokenError, match="Invalid number literal") as exc_info:
            ExprDSLLexer("1 + .").lex()

        assert exc_info.value.position == 4

    def test_no_hex_literals(self):
        """Test that 0x10 is 0 followed by the variable x."""
        tokens = ExprDSLLexer("0x10").lex()
        assert tokens[0].number == 0.0
        assert tokens[1].type == ExprDSLTokenType.VAR
        assert tokens[2].number == 10.0


class TestLexerErrors:
    """Test unexpected characters."""

    @pytest.mark.parametrize("source,position", [("@", 0), ("1 # 2", 2), ("x & y", 2), ("a = 1", 2)])
    def test_unexpected_character(self, source, position):
        """Test that unknown characters fail at the cursor."""
        with pytest.raises(ExprDSLTokenError, match="Unexpected character") as exc_info:
            ExprDSLLexer(source).lex()

        assert exc_info.value.position == position

    def test_single_ampersand_suggests_double(self):
        """Test the suggestion for '&'."""
        with pytest.raises(ExprDSLTokenError) as exc_info:
            ExprDSLLexer("x & y").lex()

        assert "&&" in exc_info.value.suggestion

    def test_non_ascii_is_rejected(self):
        """Test that non-ASCII letters are not identifiers."""
        with pytest.raises(ExprDSLTokenError, match="Unexpected character"):
            ExprDSLLexer("π").lex()
