"""
Tests for the pdxtree lexer.
"""

import pytest
from pdxtree.parser.lexer import Lexer, TokenType, tokenize


def types(source, **kwargs):
    return [t.type for t in tokenize(source, **kwargs)]


def values(source):
    return [t.value for t in tokenize(source) if t.type != TokenType.EOF]


class TestBasicTokens:
    """Test simple token kinds."""

    def test_empty_source(self):
        """Empty input is a single EOF token."""
        assert types("") == [TokenType.EOF]

    def test_whitespace_only(self):
        assert types("  \n\t\r\n ") == [TokenType.EOF]

    def test_simple_assignment(self):
        """Tokenize key = value."""
        assert types("owner = FRA") == [
            TokenType.IDENTIFIER, TokenType.EQUALS, TokenType.IDENTIFIER, TokenType.EOF,
        ]
        assert values("owner = FRA") == ["owner", "=", "FRA"]

    def test_identifier_characters(self):
        """Identifiers may contain digits, underscores and colons."""
        assert values("culture:french _private add_core2") == [
            "culture:french", "_private", "add_core2",
        ]

    def test_braces(self):
        assert types("a = { b = c }") == [
            TokenType.IDENTIFIER, TokenType.EQUALS, TokenType.LBRACE,
            TokenType.IDENTIFIER, TokenType.EQUALS, TokenType.IDENTIFIER,
            TokenType.RBRACE, TokenType.EOF,
        ]

    def test_single_eof_at_end(self):
        tokens = tokenize("a = 1 b = 2")
        assert [t.type for t in tokens].count(TokenType.EOF) == 1
        assert tokens[-1].type == TokenType.EOF


class TestComments:
    """Test comment handling."""

    def test_comment_token(self):
        """Comments are emitted with surrounding whitespace trimmed."""
        tokens = tokenize("#  a comment  \nx = 1")
        assert tokens[0].type == TokenType.COMMENT
        assert tokens[0].value == "a comment"
        assert tokens[1].type == TokenType.IDENTIFIER
        assert tokens[1].line == 2

    def test_inline_comment(self):
        assert types("x = 1 # trailing") == [
            TokenType.IDENTIFIER, TokenType.EQUALS, TokenType.NUMBER,
            TokenType.COMMENT, TokenType.EOF,
        ]

    def test_comments_excluded(self):
        """include_comments=False drops comment tokens."""
        assert types("# one\nx = 1 # two", include_comments=False) == [
            TokenType.IDENTIFIER, TokenType.EQUALS, TokenType.NUMBER, TokenType.EOF,
        ]


class TestStrings:
    """Test quoted strings."""

    def test_quotes_removed(self):
        tokens = tokenize('name = "Kingdom of France"')
        assert tokens[2].type == TokenType.STRING
        assert tokens[2].value == "Kingdom of France"

    def test_escaped_quote(self):
        """Only \\" is an escape sequence."""
        tokens = tokenize('name = "a \\"b\\" c"')
        assert tokens[2].value == 'a "b" c'

    def test_backslash_kept(self):
        tokens = tokenize('path = "gfx\\flags"')
        assert tokens[2].value == "gfx\\flags"

    def test_unterminated_string_runs_to_eof(self):
        tokens = tokenize('name = "never closed')
        assert tokens[2].type == TokenType.STRING
        assert tokens[2].value == "never closed"
        assert tokens[3].type == TokenType.EOF

    def test_empty_string(self):
        tokens = tokenize('name = ""')
        assert tokens[2].type == TokenType.STRING
        assert tokens[2].value == ""


class TestNumbersAndDates:
    """Test number-or-date scanning."""

    def test_numbers(self):
        tokens = tokenize("a = 42 b = -5 c = 0.25")
        numbers = [t.value for t in tokens if t.type == TokenType.NUMBER]
        assert numbers == ["42", "-5", "0.25"]

    def test_date(self):
        tokens = tokenize("1444.11.11 = { }")
        assert tokens[0].type == TokenType.DATE
        assert tokens[0].value == "1444.11.11"

    def test_short_year_date(self):
        tokens = tokenize("1.1.1")
        assert tokens[0].type == TokenType.DATE

    @pytest.mark.parametrize("text", ["1444.13.1", "1444.0.1", "1444.1.32", "0.1.1", "1.2.3.4"])
    def test_invalid_dates_are_numbers(self, text):
        """Out-of-range dates stay NUMBER tokens with their raw text."""
        tokens = tokenize(text)
        assert tokens[0].type == TokenType.NUMBER
        assert tokens[0].value == text

    def test_february_30_is_a_date(self):
        """Day 1..31 is accepted for every month."""
        assert tokenize("1444.2.30")[0].type == TokenType.DATE

    def test_minus_without_digit_skipped(self):
        assert types("- x") == [TokenType.IDENTIFIER, TokenType.EOF]

    def test_superscript_digit_ends_number(self):
        assert values("x = 1² y = ²2") == ["x", "=", "1", "y", "=", "2"]


class TestBooleansAndOperators:
    """Test yes/no and comparison operators."""

    def test_booleans_case_insensitive(self):
        tokens = tokenize("YES No yes no")
        assert [t.type for t in tokens[:4]] == [TokenType.YES, TokenType.NO, TokenType.YES, TokenType.NO]
        assert tokens[0].value == "YES"

    def test_yes_prefix_is_identifier(self):
        assert tokenize("yesterday")[0].type == TokenType.IDENTIFIER

    def test_comparison_operators(self):
        tokens = tokenize("a >= 1 b <= 2 c != 3 d > 4 e < 5")
        operators = [t.type for t in tokens if t.is_operator]
        assert operators == [
            TokenType.GREATER_EQUAL, TokenType.LESS_EQUAL, TokenType.NOT_EQUAL,
            TokenType.GREATER_THAN, TokenType.LESS_THAN,
        ]

    def test_lone_bang_dropped(self):
        assert types("a ! = 1") == [
            TokenType.IDENTIFIER, TokenType.EQUALS, TokenType.NUMBER, TokenType.EOF,
        ]

    def test_unknown_characters_skipped(self):
        """Unrecognised characters produce no token."""
        assert values("a = 1 ; $ b = 2") == ["a", "=", "1", "b", "=", "2"]


class TestColors:
    """Test { r g b } color literal detection."""

    def test_rgb_color(self):
        tokens = tokenize("color = { 10 20 30 }")
        assert [t.type for t in tokens] == [
            TokenType.IDENTIFIER, TokenType.EQUALS, TokenType.COLOR, TokenType.EOF,
        ]
        assert tokens[2].value == "{ 10 20 30 }"

    def test_compact_rgb_color(self):
        tokens = tokenize("color = {10 20 30}")
        assert tokens[2].type == TokenType.COLOR
        assert tokens[2].value == "{10 20 30}"

    def test_four_numbers_not_color(self):
        """A four-number list must not be read as a color."""
        assert types("list = { 10 20 30 40 }") == [
            TokenType.IDENTIFIER, TokenType.EQUALS, TokenType.LBRACE,
            TokenType.NUMBER, TokenType.NUMBER, TokenType.NUMBER, TokenType.NUMBER,
            TokenType.RBRACE, TokenType.EOF,
        ]

    def test_component_out_of_range(self):
        assert TokenType.COLOR not in types("color = { 10 20 256 }")

    def test_two_components_not_color(self):
        assert TokenType.COLOR not in types("pair = { 10 20 }")

    def test_float_component_not_color(self):
        assert TokenType.COLOR not in types("color = { 0.5 0.2 0.1 }")

    def test_digit_after_brace_not_color(self):
        assert TokenType.COLOR not in types("{ 1 2 3 } 4")

    def test_identifier_after_color_allowed(self):
        assert types("{ 1 2 3 } x")[0] == TokenType.COLOR

    def test_failed_lookahead_restores_position(self):
        """After a rejected color scan the brace and numbers keep their positions."""
        tokens = tokenize("x = { 10 20 30 40 }")
        assert tokens[2].type == TokenType.LBRACE
        assert (tokens[2].line, tokens[2].column, tokens[2].position) == (1, 5, 4)
        assert (tokens[3].line, tokens[3].column, tokens[3].position) == (1, 7, 6)

    def test_superscript_digit_not_color(self):
        """Non-ASCII digits are skipped, never read as color components."""
        assert values("b = { ² 2 3 }") == ["b", "=", "{", "2", "3", "}"]

    def test_multiline_color_advances_lines(self):
        tokens = tokenize("c = { 1\n2\n3 }\nd = 1")
        assert tokens[2].type == TokenType.COLOR
        d = tokens[3]
        assert d.value == "d"
        assert d.line == 4
        assert d.column == 1


class TestPositions:
    """Test line/column/offset tracking."""

    def test_line_and_column(self):
        tokens = tokenize("a = 1\n  b = 2")
        b = tokens[3]
        assert b.value == "b"
        assert (b.line, b.column, b.position) == (2, 3, 8)

    def test_date_suffix_backtracking(self):
        """A failed identifier date suffix rewinds to the '.' exactly."""
        tokens = tokenize("root.owner = x")
        assert [t.value for t in tokens[:2]] == ["root", "owner"]
        assert tokens[1].column == 6
        assert tokens[1].position == 5

    def test_checkpoint_and_rewind(self):
        lexer = Lexer("abc\ndef")
        saved = lexer.checkpoint()
        for _ in range(5):
            lexer._advance()
        assert (lexer.line, lexer.column) == (2, 2)
        lexer.rewind(saved)
        assert (lexer.pos, lexer.line, lexer.column) == (0, 1, 1)
