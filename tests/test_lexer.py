"""
Tests for the Pebble lexer: token kinds, positions, literals and errors.
"""

import pytest

from pebblec.lexer import Lexer, LexError
from pebblec.tokens import TokenType, INT64_MAX


def types_of(source):
    return [tok.type for tok in Lexer(source)]


class TestTokens:
    """Token kinds for each lexical rule"""

    def test_let_statement(self):
        tokens = Lexer("let x = 10;").tokenize()
        assert [t.type for t in tokens] == [
            TokenType.LET, TokenType.IDENTIFIER, TokenType.EQUAL,
            TokenType.NUMBER, TokenType.SEMICOLON,
        ]
        assert tokens[1].lexeme == "x"
        assert tokens[3].literal == 10

    def test_operators_and_punctuation(self):
        assert types_of("+ - * / < > ( ) ;") == [
            TokenType.PLUS, TokenType.MINUS, TokenType.STAR, TokenType.SLASH,
            TokenType.LESS, TokenType.GREATER, TokenType.LEFT_PAREN,
            TokenType.RIGHT_PAREN, TokenType.SEMICOLON,
        ]

    def test_double_equals_vs_assignment(self):
        assert types_of("a == b = c") == [
            TokenType.IDENTIFIER, TokenType.EQUAL_EQUAL, TokenType.IDENTIFIER,
            TokenType.EQUAL, TokenType.IDENTIFIER,
        ]

    def test_three_equals(self):
        assert types_of("===") == [TokenType.EQUAL_EQUAL, TokenType.EQUAL]

    def test_keywords(self):
        assert types_of("let if else while print") == [
            TokenType.LET, TokenType.IF, TokenType.ELSE, TokenType.WHILE, TokenType.PRINT,
        ]

    def test_keyword_prefixes_are_identifiers(self):
        tokens = Lexer("letter iffy while_ _print printx").tokenize()
        assert all(t.type is TokenType.IDENTIFIER for t in tokens)
        assert [t.lexeme for t in tokens] == ["letter", "iffy", "while_", "_print", "printx"]

    def test_identifier_with_digits(self):
        tokens = Lexer("x1 _2").tokenize()
        assert [t.lexeme for t in tokens] == ["x1", "_2"]

    def test_number_then_identifier(self):
        tokens = Lexer("9abc").tokenize()
        assert [t.type for t in tokens] == [TokenType.NUMBER, TokenType.IDENTIFIER]
        assert tokens[0].literal == 9
        assert tokens[1].lexeme == "abc"

    def test_no_whitespace_needed(self):
        assert types_of("x=x+1;") == [
            TokenType.IDENTIFIER, TokenType.EQUAL, TokenType.IDENTIFIER,
            TokenType.PLUS, TokenType.NUMBER, TokenType.SEMICOLON,
        ]

    def test_comments_are_skipped(self):
        tokens = Lexer("print 1; // ignored ; @\nprint 2;").tokenize()
        assert len(tokens) == 6
        assert tokens[4].literal == 2

    def test_empty_source(self):
        assert Lexer("").tokenize() == []
        assert Lexer("  \n\t ").tokenize() == []


class TestPositions:
    """Line and column tracking"""

    def test_line_and_column(self):
        tokens = Lexer("let\n  x").tokenize()
        assert (tokens[0].line, tokens[0].col) == (1, 1)
        assert (tokens[1].line, tokens[1].col) == (2, 3)

    def test_two_char_token_column(self):
        tokens = Lexer("a == b").tokenize()
        assert tokens[1].col == 3
        assert tokens[1].lexeme == "=="


class TestNumbers:
    """64-bit integer literals"""

    def test_max_int64(self):
        tok = Lexer(str(INT64_MAX)).tokenize()[0]
        assert tok.literal == INT64_MAX

    def test_overflow_is_lex_error(self):
        with pytest.raises(LexError) as exc:
            Lexer("print 9223372036854775808;").tokenize()
        assert "64 bits" in str(exc.value)
        assert exc.value.col == 7

    def test_leading_zeros(self):
        assert Lexer("007").tokenize()[0].literal == 7


class TestErrors:
    """Unrecognised characters are reported, not treated as end of input"""

    def test_unknown_character(self):
        with pytest.raises(LexError) as exc:
            Lexer("let x = 1;\n  @").tokenize()
        assert (exc.value.line, exc.value.col) == (2, 3)
        assert "'@'" in str(exc.value)

    def test_non_ascii_letter(self):
        with pytest.raises(LexError):
            Lexer("let é = 1;").tokenize()

    def test_error_is_raised_lazily(self):
        it = iter(Lexer("1 @"))
        assert next(it).literal == 1
        with pytest.raises(LexError):
            next(it)


class TestIteration:
    """Lazy, restartable iteration"""

    def test_restarts_from_scratch(self):
        lexer = Lexer("let x = 1;")
        first = list(lexer)
        second = list(lexer)
        assert first == second
        assert len(first) == 5

    def test_abandoned_iteration_does_not_resume(self):
        lexer = Lexer("a b c")
        it = iter(lexer)
        next(it)
        assert [t.lexeme for t in lexer] == ["a", "b", "c"]

    def test_interleaved_iterations_are_independent(self):
        lexer = Lexer("a b c")
        pairs = [(x.lexeme, y.lexeme) for x, y in zip(lexer, lexer)]
        assert pairs == [("a", "a"), ("b", "b"), ("c", "c")]

    def test_new_iteration_does_not_move_live_one(self):
        lexer = Lexer("let x = 1;")
        it = iter(lexer)
        assert next(it).type is TokenType.LET
        assert len(lexer.tokenize()) == 5
        assert next(it).lexeme == "x"
