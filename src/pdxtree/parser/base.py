"""
Shared parsing infrastructure.

BaseParser is a template method: every parse call resets the error log and
metrics, tokenizes the input with the Lexer, then hands the token list to
``_parse_tokens()``, which concrete parsers implement. File entry points add
encoding detection and optional @include expansion in front of that.

Concrete parsers get token cursor helpers (current/peek/consume/expect),
error and warning recording, and a few list helpers for strategies that
read fixed shapes such as ``{ a b c }`` or ``{ key = 1 }``.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Generic, Iterable, List, Optional, Tuple, TypeVar, Union

from pdxtree.config import ParserConfig
from pdxtree.parser.encoding import read_script_text
from pdxtree.parser.includes import IncludePreprocessor
from pdxtree.parser.lexer import Lexer, Token, TokenType
from pdxtree.parser.metrics import ParsingMetrics, PerformanceTimer

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ParseError(Exception):
    """Structural error inside a parse strategy. Always turned into a diagnostic."""
    def __init__(self, message: str, token: Optional[Token] = None):
        self.token = token
        self.message = message
        if token:
            super().__init__(f"Parse error at line {token.line}, column {token.column}: {message}")
        else:
            super().__init__(f"Parse error: {message}")


@dataclass
class ParseDiagnostic:
    """A diagnostic message from parsing (error or warning)."""
    line: int
    column: int
    severity: str  # "error", "warning"
    code: str
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "line": self.line,
            "column": self.column,
            "severity": self.severity,
            "code": self.code,
            "message": self.message,
        }


@dataclass
class ParseResult(Generic[T]):
    """A parse result bundled with its diagnostics."""
    root: T
    diagnostics: List[ParseDiagnostic]
    metrics: ParsingMetrics

    @property
    def success(self) -> bool:
        return not self.errors

    @property
    def errors(self) -> List[ParseDiagnostic]:
        return [d for d in self.diagnostics if d.severity == "error"]

    @property
    def warnings(self) -> List[ParseDiagnostic]:
        return [d for d in self.diagnostics if d.severity == "warning"]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }


class BaseParser(ABC, Generic[T]):
    """
    Base class for token-stream parsers.

    Subclasses implement ``_parse_tokens()`` and may override
    ``_empty_result()`` to say what a failed parse returns.

    A parser instance is not thread-safe; use one per thread.
    """

    def __init__(self, config: Optional[ParserConfig] = None, string_pool=None):
        self.config = config or ParserConfig.defaults()
        self.string_pool = string_pool
        self.tokens: List[Token] = []
        self.pos = 0
        self.filename = "<string>"
        self._errors: List[str] = []
        self._warnings: List[str] = []
        self._diagnostics: List[ParseDiagnostic] = []
        self._metrics = ParsingMetrics()
        self._error_limit_reached = False

    # ------------------------------------------------------------------
    # Results of the last call
    # ------------------------------------------------------------------

    @property
    def errors(self) -> List[str]:
        return list(self._errors)

    @property
    def warnings(self) -> List[str]:
        return list(self._warnings)

    @property
    def diagnostics(self) -> List[ParseDiagnostic]:
        return list(self._diagnostics)

    @property
    def has_errors(self) -> bool:
        return bool(self._errors)

    @property
    def has_warnings(self) -> bool:
        return bool(self._warnings)

    @property
    def metrics(self) -> ParsingMetrics:
        return self._metrics

    @property
    def error_limit_reached(self) -> bool:
        return self._error_limit_reached

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def parse(self, content: str, filename: str = "<string>") -> T:
        """Parse a source string."""
        self._reset(filename)
        return self._parse_content(content)

    def parse_file(self, path: Union[str, Path]) -> T:
        """
        Parse a file, detecting its encoding.

        Raises:
            ScriptFileNotFoundError: If the file does not exist.
            ScriptDecodeError: If the file cannot be decoded.
        """
        self._reset(str(path))
        with PerformanceTimer(self._set_file_io_time):
            content = read_script_text(path, self.config.legacy_encoding)
        return self._parse_content(content)

    def parse_file_with_includes(self, path: Union[str, Path]) -> T:
        """Parse a file after expanding its @include directives."""
        self._reset(str(path))
        with PerformanceTimer(self._set_file_io_time):
            content = read_script_text(path, self.config.legacy_encoding)
            content = self.create_include_preprocessor().expand(content, path)
        return self._parse_content(content)

    def try_parse(self, content: str) -> Tuple[T, Optional[str]]:
        """Parse and return (result, joined error text or None)."""
        result = self.parse(content)
        error = "; ".join(self._errors) if self._errors else None
        return result, error

    def parse_multiple(self, contents: Iterable[str]) -> List[T]:
        """Parse several sources in order, dropping results that came back empty."""
        results = []
        for content in contents:
            result = self.parse(content)
            if result is not None:
                results.append(result)
        return results

    def parse_with_result(self, content: str, filename: str = "<string>") -> ParseResult:
        root = self.parse(content, filename)
        return ParseResult(root=root, diagnostics=self.diagnostics, metrics=self._metrics)

    def create_include_preprocessor(self) -> IncludePreprocessor:
        return IncludePreprocessor(
            max_depth=self.config.max_include_depth,
            legacy_encoding=self.config.legacy_encoding,
            on_error=lambda message: self.add_error(message, code="INCLUDE_ERROR"),
            on_warning=lambda message: self.add_warning(message, code="INCLUDE_WARNING"),
            metrics=self._metrics,
        )

    # ------------------------------------------------------------------
    # Template
    # ------------------------------------------------------------------

    @abstractmethod
    def _parse_tokens(self) -> T:
        """Build the result from ``self.tokens``, starting at ``self.pos``."""

    def _empty_result(self) -> Optional[T]:
        """Result returned when the strategy fails outright."""
        return None

    def _reset(self, filename: str) -> None:
        self.filename = filename
        self.tokens = []
        self.pos = 0
        self._errors.clear()
        self._warnings.clear()
        self._diagnostics.clear()
        self._error_limit_reached = False
        self._metrics.reset()

    def _parse_content(self, content: str) -> T:
        content = content or ""
        self._metrics.input_size_bytes = len(content.encode("utf-8"))
        self._metrics.lines_processed = content.count("\n") + 1

        try:
            with PerformanceTimer(self._set_tokenization_time):
                self.tokens = Lexer(content, string_pool=self.string_pool).tokenize_all()
                self._metrics.tokens_processed = len(self.tokens)
            self.pos = 0

            with PerformanceTimer(self._set_parsing_time):
                result = self._parse_tokens()
        except (ParseError, ValueError, RecursionError) as e:
            token = getattr(e, "token", None)
            self.add_error(f"Parse error: {getattr(e, 'message', e)}", token, code="FATAL_PARSE_ERROR")
            result = self._empty_result()
        finally:
            self._metrics.error_count = len(self._errors)
            self._metrics.warning_count = len(self._warnings)

        logger.debug(f"{self.filename}: {self._metrics.summary()}")
        return result

    def _set_tokenization_time(self, elapsed: float) -> None:
        self._metrics.tokenization_time = elapsed

    def _set_parsing_time(self, elapsed: float) -> None:
        self._metrics.parsing_time = elapsed

    def _set_file_io_time(self, elapsed: float) -> None:
        self._metrics.file_io_time = elapsed

    # ------------------------------------------------------------------
    # Token cursor
    # ------------------------------------------------------------------

    def current_token(self) -> Token:
        """Current token, or a synthetic EOF past the end of the stream."""
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return Token(TokenType.EOF, "", -1, -1, -1)

    def peek_token(self, offset: int = 1) -> Token:
        index = self.pos + offset
        if index < len(self.tokens):
            return self.tokens[index]
        return Token(TokenType.EOF, "", -1, -1, -1)

    def consume_token(self) -> Token:
        token = self.current_token()
        self.pos += 1
        return token

    def is_token(self, token_type: TokenType) -> bool:
        return self.current_token().type == token_type

    def is_eof(self) -> bool:
        return self.current_token().type == TokenType.EOF

    def expect_token(self, token_type: TokenType, code: str = "UNEXPECTED_TOKEN") -> Optional[Token]:
        """Consume a token of ``token_type``, or record an error and return None."""
        token = self.current_token()
        if token.type != token_type:
            self.add_error(f"Expected {token_type.name}, but got {token.type.name}", token, code)
            return None
        return self.consume_token()

    def skip_comments(self) -> None:
        while self.is_token(TokenType.COMMENT):
            self.consume_token()

    # ------------------------------------------------------------------
    # Diagnostics and metrics
    # ------------------------------------------------------------------

    def add_error(self, message: str, token: Optional[Token] = None, code: str = "PARSE_ERROR") -> None:
        if self._error_limit_reached:
            return
        self._record("error", message, token, code)
        if len(self._errors) >= self.config.max_errors:
            self._error_limit_reached = True
            self._record("error", f"Too many errors ({self.config.max_errors}+), stopping",
                         None, "TOO_MANY_ERRORS")

    def add_warning(self, message: str, token: Optional[Token] = None, code: str = "PARSE_WARNING") -> None:
        self._record("warning", message, token, code)

    def _record(self, severity: str, message: str, token: Optional[Token], code: str) -> None:
        line = token.line if token else 0
        column = token.column if token else 0
        text = f"{message} at line {line}, column {column}" if token and line > 0 else message
        self._diagnostics.append(ParseDiagnostic(line, column, severity, code, message))
        if severity == "error":
            self._errors.append(text)
        else:
            self._warnings.append(text)
        logger.debug(f"{self.filename}: {severity}: {text}")

    def record_timing(self, name: str, elapsed: float) -> None:
        self._metrics.custom_timings[name] = elapsed

    def increment_counter(self, name: str, amount: int = 1) -> None:
        self._metrics.increment(name, amount)

    def start_timing(self, name: str) -> PerformanceTimer:
        return PerformanceTimer(lambda elapsed: self.record_timing(name, elapsed))

    # ------------------------------------------------------------------
    # List helpers for fixed-shape blocks
    # ------------------------------------------------------------------

    def parse_string_list(self) -> List[str]:
        """Read ``{ a "b" 3 }`` as strings."""
        items: List[str] = []
        if self.expect_token(TokenType.LBRACE) is None:
            return items

        self.skip_comments()
        while not self.is_token(TokenType.RBRACE) and not self.is_eof():
            token = self.consume_token()
            if token.type in (TokenType.IDENTIFIER, TokenType.STRING, TokenType.NUMBER):
                items.append(token.value)
            else:
                self.add_warning(f"Unexpected token in list: {token.type.name} '{token.value}'", token)
            self.skip_comments()

        self.expect_token(TokenType.RBRACE)
        return items

    def parse_integer_list(self) -> List[int]:
        """Read ``{ 1 2 3 }`` as integers, warning about anything else."""
        items: List[int] = []
        if self.expect_token(TokenType.LBRACE) is None:
            return items

        self.skip_comments()
        while not self.is_token(TokenType.RBRACE) and not self.is_eof():
            token = self.consume_token()
            if token.type == TokenType.NUMBER:
                try:
                    items.append(int(token.value))
                except ValueError:
                    self.add_warning(f"Cannot parse integer: '{token.value}'", token)
            else:
                self.add_warning(
                    f"Expected number in integer list, got {token.type.name} '{token.value}'", token
                )
            self.skip_comments()

        self.expect_token(TokenType.RBRACE)
        return items

    def parse_string_integer_map(self) -> Dict[str, int]:
        """Read ``{ key = 1 other = 2 }`` into a dict."""
        mapping: Dict[str, int] = {}
        if self.expect_token(TokenType.LBRACE) is None:
            return mapping

        self.skip_comments()
        while not self.is_token(TokenType.RBRACE) and not self.is_eof():
            key_token = self.consume_token()
            if key_token.type not in (TokenType.IDENTIFIER, TokenType.STRING):
                self.add_warning(f"Expected string key, got {key_token.type.name} '{key_token.value}'", key_token)
                self.skip_comments()
                continue

            if self.expect_token(TokenType.EQUALS) is None:
                self.skip_comments()
                continue

            value_token = self.consume_token()
            try:
                mapping[key_token.value] = int(value_token.value)
            except ValueError:
                self.add_warning(
                    f"Expected integer value, got {value_token.type.name} '{value_token.value}'", value_token
                )
            self.skip_comments()

        self.expect_token(TokenType.RBRACE)
        return mapping
