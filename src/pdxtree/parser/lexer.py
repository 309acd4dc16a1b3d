"""
Paradox Script Lexer (Tokenizer)

Converts raw script text into a flat list of tokens.
Handles: identifiers, strings, numbers, dates, booleans, operators,
braces, comments and { r g b } color literals.
"""

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator, List, Optional

from pdxtree.parser.dates import is_date_text

logger = logging.getLogger(__name__)


def _is_digit(ch: Optional[str]) -> bool:
    """ASCII digits only. str.isdigit() also accepts superscript digits."""
    return ch is not None and '0' <= ch <= '9'


class TokenType(Enum):
    """Types of tokens in Paradox script."""
    IDENTIFIER = auto()      # owner, add_core, culture:french
    STRING = auto()          # "quoted string"
    NUMBER = auto()          # 123, -0.5, 0.25
    DATE = auto()            # 1444.11.11
    YES = auto()             # yes
    NO = auto()              # no
    EQUALS = auto()          # =
    LBRACE = auto()          # {
    RBRACE = auto()          # }
    GREATER_THAN = auto()    # >
    LESS_THAN = auto()       # <
    GREATER_EQUAL = auto()   # >=
    LESS_EQUAL = auto()      # <=
    NOT_EQUAL = auto()       # !=
    COMMENT = auto()         # # comment to end of line
    COLOR = auto()           # { 255 128 0 }
    EOF = auto()             # End of file


OPERATOR_TYPES = frozenset({
    TokenType.EQUALS,
    TokenType.GREATER_THAN,
    TokenType.LESS_THAN,
    TokenType.GREATER_EQUAL,
    TokenType.LESS_EQUAL,
    TokenType.NOT_EQUAL,
})

VALUE_TYPES = frozenset({
    TokenType.STRING,
    TokenType.NUMBER,
    TokenType.DATE,
    TokenType.IDENTIFIER,
    TokenType.YES,
    TokenType.NO,
})


@dataclass(frozen=True)
class Token:
    """A single token from the lexer."""
    type: TokenType
    value: str
    line: int
    column: int
    position: int = 0

    @property
    def is_operator(self) -> bool:
        return self.type in OPERATOR_TYPES

    @property
    def is_value(self) -> bool:
        return self.type in VALUE_TYPES

    def __repr__(self):
        return f"Token({self.type.name}, {self.value!r}, L{self.line}:{self.column})"


@dataclass(frozen=True)
class LexerCheckpoint:
    """Saved cursor state for speculative scans."""
    position: int
    line: int
    column: int


class Lexer:
    """
    Tokenizer for Paradox script files.

    Usage:
        lexer = Lexer(source_text)
        tokens = lexer.tokenize_all()

    The lexer never fails on content: characters it does not recognise
    are skipped without producing a token.
    """

    def __init__(self, source: str, string_pool=None):
        self.source = source or ""
        self.string_pool = string_pool
        self.pos = 0
        self.line = 1
        self.column = 1
        self.length = len(self.source)

    # ------------------------------------------------------------------
    # Cursor
    # ------------------------------------------------------------------

    def _current(self) -> Optional[str]:
        """Get current character or None if at end."""
        if self.pos >= self.length:
            return None
        return self.source[self.pos]

    def _peek(self, offset: int = 1) -> Optional[str]:
        """Peek ahead by offset characters."""
        pos = self.pos + offset
        if pos >= self.length:
            return None
        return self.source[pos]

    def _advance(self) -> Optional[str]:
        """Advance one character and return it."""
        ch = self._current()
        if ch is not None:
            self.pos += 1
            if ch == '\n':
                self.line += 1
                self.column = 1
            else:
                self.column += 1
        return ch

    def checkpoint(self) -> LexerCheckpoint:
        return LexerCheckpoint(self.pos, self.line, self.column)

    def rewind(self, checkpoint: LexerCheckpoint) -> None:
        self.pos = checkpoint.position
        self.line = checkpoint.line
        self.column = checkpoint.column

    def _skip_whitespace(self) -> None:
        """Skip all whitespace, newlines included."""
        while True:
            ch = self._current()
            if ch is None or not ch.isspace():
                break
            self._advance()

    def _make(self, token_type: TokenType, value: str, start: LexerCheckpoint) -> Token:
        return Token(token_type, value, start.line, start.column, start.position)

    def _intern(self, text: str) -> str:
        if self.string_pool is None:
            return text
        return self.string_pool.intern(text)

    # ------------------------------------------------------------------
    # Readers
    # ------------------------------------------------------------------

    def _read_comment(self) -> str:
        """Read a comment from # to end of line (newline not consumed)."""
        result = []
        self._advance()  # skip #
        while True:
            ch = self._current()
            if ch is None or ch == '\n':
                break
            result.append(ch)
            self._advance()
        return ''.join(result).strip()

    def _read_string(self) -> str:
        """Read a quoted string. Only \\" is an escape; unterminated strings run to EOF."""
        self._advance()  # skip opening quote
        result = []
        while True:
            ch = self._current()
            if ch is None:
                break
            if ch == '"':
                self._advance()
                break
            if ch == '\\' and self._peek() == '"':
                self._advance()
                result.append('"')
                self._advance()
                continue
            result.append(ch)
            self._advance()
        return ''.join(result)

    def _read_number_or_date(self, start: LexerCheckpoint) -> Token:
        result = []
        if self._current() == '-':
            result.append('-')
            self._advance()

        while True:
            ch = self._current()
            if not (_is_digit(ch) or ch == '.'):
                break
            result.append(ch)
            self._advance()

        value = ''.join(result)
        if is_date_text(value):
            return self._make(TokenType.DATE, value, start)
        return self._make(TokenType.NUMBER, value, start)

    def _read_identifier(self, start: LexerCheckpoint) -> Token:
        result = []
        while True:
            ch = self._current()
            if ch is None or not (ch.isalnum() or ch in '_:'):
                break
            result.append(ch)
            self._advance()

        value = ''.join(result)
        lowered = value.lower()
        if lowered == 'yes':
            return self._make(TokenType.YES, value, start)
        if lowered == 'no':
            return self._make(TokenType.NO, value, start)

        if self._current() == '.':
            date_token = self._try_read_date_suffix(value, start)
            if date_token is not None:
                return date_token

        return self._make(TokenType.IDENTIFIER, self._intern(value), start)

    def _try_read_date_suffix(self, head: str, start: LexerCheckpoint) -> Optional[Token]:
        """Try to extend ``head`` with ``.MONTH.DAY``; rewind when it is not a date."""
        saved = self.checkpoint()
        parts = [head]

        for _ in range(2):
            if self._current() != '.':
                self.rewind(saved)
                return None
            parts.append(self._advance())
            while _is_digit(self._current()):
                parts.append(self._advance())

        text = ''.join(parts)
        if is_date_text(text):
            return self._make(TokenType.DATE, text, start)

        self.rewind(saved)
        return None

    def _scan_rgb_color(self) -> bool:
        """
        Check whether the cursor sits on a { r g b } color literal.

        Exactly three integers in [0, 255] separated by whitespace, then '}',
        and no digit right after the closing brace. The cursor is always
        restored before returning.
        """
        saved = self.checkpoint()
        try:
            self._advance()  # skip {
            self._skip_whitespace()

            for index in range(3):
                ch = self._current()
                if not _is_digit(ch):
                    return False
                digits = []
                while _is_digit(self._current()):
                    digits.append(self._advance())
                if int(''.join(digits)) > 255:
                    return False
                if index < 2:
                    following = self._current()
                    if following is None or not following.isspace():
                        return False
                self._skip_whitespace()

            if self._current() != '}':
                return False

            self._advance()  # skip }
            self._skip_whitespace()
            after = self._current()
            return not _is_digit(after)
        finally:
            self.rewind(saved)

    def _read_rgb_color(self) -> str:
        """Consume an already validated { r g b } group."""
        result = []
        while True:
            ch = self._advance()
            result.append(ch)
            if ch == '}':
                break
        return ''.join(result).strip()

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------

    def tokenize(self, include_comments: bool = True) -> Iterator[Token]:
        """
        Generate tokens from the source.

        Args:
            include_comments: If True, emit COMMENT tokens. Otherwise skip them.
        """
        while True:
            self._skip_whitespace()

            ch = self._current()
            start = self.checkpoint()

            if ch is None:
                yield self._make(TokenType.EOF, '', start)
                break

            if ch == '#':
                comment = self._read_comment()
                if include_comments:
                    yield self._make(TokenType.COMMENT, comment, start)
                continue

            if ch == '"':
                value = self._read_string()
                yield self._make(TokenType.STRING, self._intern(value), start)
                continue

            if ch == '=':
                self._advance()
                yield self._make(TokenType.EQUALS, '=', start)
                continue

            if ch == '{':
                if self._scan_rgb_color():
                    yield self._make(TokenType.COLOR, self._read_rgb_color(), start)
                else:
                    self._advance()
                    yield self._make(TokenType.LBRACE, '{', start)
                continue

            if ch == '}':
                self._advance()
                yield self._make(TokenType.RBRACE, '}', start)
                continue

            if ch == '>':
                self._advance()
                if self._current() == '=':
                    self._advance()
                    yield self._make(TokenType.GREATER_EQUAL, '>=', start)
                else:
                    yield self._make(TokenType.GREATER_THAN, '>', start)
                continue

            if ch == '<':
                self._advance()
                if self._current() == '=':
                    self._advance()
                    yield self._make(TokenType.LESS_EQUAL, '<=', start)
                else:
                    yield self._make(TokenType.LESS_THAN, '<', start)
                continue

            if ch == '!':
                self._advance()
                if self._current() == '=':
                    self._advance()
                    yield self._make(TokenType.NOT_EQUAL, '!=', start)
                # A lone '!' is not a token
                continue

            next_ch = self._peek()
            if _is_digit(ch) or (ch == '-' and _is_digit(next_ch)):
                yield self._read_number_or_date(start)
                continue

            if ch.isalpha() or ch == '_':
                yield self._read_identifier(start)
                continue

            # Unknown character
            self._advance()

    def tokenize_all(self, include_comments: bool = True) -> List[Token]:
        """Convenience method to get all tokens as a list."""
        tokens = list(self.tokenize(include_comments))
        logger.debug(f"Tokenized {self.length} chars into {len(tokens)} tokens")
        return tokens


def tokenize(source: str, include_comments: bool = True, string_pool=None) -> List[Token]:
    """Tokenize a source string, terminated by a single EOF token."""
    return Lexer(source, string_pool=string_pool).tokenize_all(include_comments)
