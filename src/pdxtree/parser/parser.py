"""
Paradox Script Parser

Converts the lexer's token list into a tree of ScalarNode / ObjectNode /
ListNode / DateNode values.

Grammar (informal):

    file      := statement* EOF
    statement := key '=' ( '{' body '}' | value )
    key       := IDENTIFIER | DATE | NUMBER | STRING
    body      := statement* | item*
    item      := value | '{' body '}'
    value     := STRING | NUMBER | DATE | YES | NO | IDENTIFIER | COLOR

Malformed statements never stop the parse. A key without '=' is reported
and the parser skips ahead, treating any {...} group as a single unit,
until the next identifier or date token. The rest of the document is
parsed normally.
"""

from pathlib import Path
from typing import Iterable, Optional, Union

from pdxtree.config import ParserConfig
from pdxtree.parser.base import BaseParser, ParseDiagnostic, ParseError, ParseResult
from pdxtree.parser.dates import GameDate
from pdxtree.parser.lexer import Token, TokenType, VALUE_TYPES
from pdxtree.parser.tree import (
    FALSE_WORDS,
    TRUE_WORDS,
    ListNode,
    Node,
    ObjectNode,
    ScalarValue,
    create_date,
    create_list,
    create_object,
    create_scalar,
)

__all__ = [
    "GenericParser",
    "SchemaRestrictedParser",
    "ParseError",
    "ParseDiagnostic",
    "ParseResult",
    "parse_source",
    "parse_file",
    "parse_file_with_includes",
    "parse_source_with_result",
]

ROOT_KEY = "root"

KEY_TYPES = frozenset({
    TokenType.IDENTIFIER,
    TokenType.DATE,
    TokenType.NUMBER,
    TokenType.STRING,
})

# Tokens where skipping after a malformed statement stops
RECOVERY_TYPES = frozenset({TokenType.IDENTIFIER, TokenType.DATE})

ITEM_TYPES = VALUE_TYPES | {TokenType.COLOR}


class GenericParser(BaseParser[ObjectNode]):
    """
    Parses any Paradox script into a generic tree.

    Repeated keys overwrite each other (last one wins). With
    ``accumulate=True`` they are collected into a ListNode instead, which
    is how files such as province history express ``add_core`` lists.
    When ``accumulate`` is None the config decides.

    The result is always an ObjectNode keyed "root", even for empty or
    completely malformed input.
    """

    def __init__(self, config: Optional[ParserConfig] = None, string_pool=None,
                 accumulate: Optional[bool] = None):
        super().__init__(config=config, string_pool=string_pool)
        if accumulate is None:
            accumulate = self.config.accumulate_repeated_keys
        self.accumulate = accumulate
        self._depth = 0

    def _empty_result(self) -> ObjectNode:
        return create_object(ROOT_KEY)

    def _parse_tokens(self) -> ObjectNode:
        root = create_object(ROOT_KEY)
        self._depth = 0

        while not self.error_limit_reached:
            self.skip_comments()
            if self.is_eof():
                break

            start = self.current_token()
            node = self._parse_statement(in_block=False)
            if node is not None and self._accept_root_statement(node, start):
                self._insert(root, node)

        return root

    def _accept_root_statement(self, node: Node, token: Token) -> bool:
        """Hook for strategies that restrict which top-level keys are kept."""
        return True

    def _insert(self, container: Node, node: Node) -> None:
        if self.accumulate:
            container.add_child_accumulating(node)
        else:
            container.add_child(node)

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def _parse_statement(self, in_block: bool) -> Optional[Node]:
        """Parse one statement at the cursor. Returns None if it was dropped."""
        token = self.current_token()

        if token.type in KEY_TYPES:
            self.consume_token()
            if self.expect_token(TokenType.EQUALS, code="MISSING_EQUALS") is None:
                self._skip_to_next_statement(in_block)
                return None
            return self._parse_assignment(token)

        if token.type == TokenType.LBRACE:
            self.add_error("Unexpected '{' without a key", token, "UNEXPECTED_TOKEN")
            self._skip_balanced_braces()
            return None

        self.add_error(f"Unexpected {token.type.name} '{token.value}' at start of statement",
                       token, "UNEXPECTED_TOKEN")
        self.consume_token()
        return None

    def _parse_assignment(self, key_token: Token) -> Optional[Node]:
        key = key_token.value
        self.skip_comments()
        token = self.current_token()

        if token.type == TokenType.LBRACE:
            if key_token.type == TokenType.DATE:
                return self._parse_date_block(key_token)
            return self._parse_block(key)

        if token.type in ITEM_TYPES:
            self.consume_token()
            return create_scalar(key, self._parse_value(token))

        self.add_error(f"Expected value after '{key} =', got {token.type.name}", token, "EXPECTED_VALUE")
        if token.type not in (TokenType.RBRACE, TokenType.EOF):
            self.consume_token()
        return None

    def _parse_date_block(self, key_token: Token) -> Optional[Node]:
        """1444.11.11 = { ... }"""
        if self._too_deep(key_token.value):
            return None
        open_brace = self.consume_token()
        node = create_date(key_token.value, GameDate.parse(key_token.value))
        self._depth += 1
        try:
            self._parse_body(node, open_brace)
        finally:
            self._depth -= 1
        return node

    def _parse_block(self, key: str) -> Optional[Node]:
        """
        key = { ... }

        The block is a list when its entries are bare values or nested
        anonymous blocks with no '=' at this level. A single malformed
        entry in front of real statements therefore still yields an
        ObjectNode. An empty block is an empty ObjectNode.
        """
        if self._too_deep(key):
            return None
        open_brace = self.consume_token()
        self.skip_comments()

        self._depth += 1
        try:
            if self._looks_like_list():
                node = create_list(key)
                self._parse_list_items(node, open_brace)
            else:
                node = create_object(key)
                self._parse_body(node, open_brace)
        finally:
            self._depth -= 1
        return node

    def _too_deep(self, key: str) -> bool:
        """Report and skip a block that would nest past max_nesting_depth."""
        limit = self.config.max_nesting_depth
        if self._depth < limit:
            return False
        self.add_error(f"Block '{key}' nested deeper than {limit} levels", self.current_token(),
                       "NESTING_TOO_DEEP")
        self._skip_balanced_braces()
        return True

    def _looks_like_list(self) -> bool:
        """
        A block is a list when it starts with a value or '{' and has no '='
        at its own level, up to the matching '}'.
        """
        first = self.current_token()
        if first.type != TokenType.LBRACE and first.type not in ITEM_TYPES:
            return False

        offset = 0
        depth = 0
        while True:
            token = self.peek_token(offset)
            if token.type == TokenType.EOF:
                return True
            if token.type == TokenType.LBRACE:
                depth += 1
            elif token.type == TokenType.RBRACE:
                if depth == 0:
                    return True
                depth -= 1
            elif token.type == TokenType.EQUALS and depth == 0:
                return False
            offset += 1

    def _parse_body(self, container: Node, open_brace: Token) -> None:
        while not self.error_limit_reached:
            self.skip_comments()
            if self.is_eof():
                self._unclosed(container, open_brace)
                return
            if self.is_token(TokenType.RBRACE):
                self.consume_token()
                return

            node = self._parse_statement(in_block=True)
            if node is not None:
                self._insert(container, node)

    def _parse_list_items(self, node: ListNode, open_brace: Token) -> None:
        while not self.error_limit_reached:
            self.skip_comments()
            token = self.current_token()
            if token.type == TokenType.EOF:
                self._unclosed(node, open_brace)
                return
            if token.type == TokenType.RBRACE:
                self.consume_token()
                return

            if token.type in ITEM_TYPES:
                self.consume_token()
                node.add_item(create_scalar("", self._parse_value(token)))
            elif token.type == TokenType.LBRACE:
                item = self._parse_block("")
                if item is not None:
                    node.add_item(item)
            else:
                self.add_error(f"Unexpected {token.type.name} '{token.value}' in list", token,
                               "UNEXPECTED_TOKEN")
                self.consume_token()

    def _unclosed(self, node: Node, open_brace: Token) -> None:
        self.add_error(f"Unexpected end of file in block '{node.key}' (missing closing '}}')",
                       open_brace, "UNCLOSED_BLOCK")

    # ------------------------------------------------------------------
    # Values
    # ------------------------------------------------------------------

    def _parse_value(self, token: Token) -> ScalarValue:
        """Convert a value token to its Python value."""
        if token.type == TokenType.STRING:
            return token.value

        if token.type == TokenType.NUMBER:
            try:
                return int(token.value)
            except ValueError:
                pass
            try:
                return float(token.value)
            except ValueError:
                return token.value

        if token.type == TokenType.YES:
            return True
        if token.type == TokenType.NO:
            return False

        if token.type == TokenType.DATE:
            return GameDate.parse(token.value)

        if token.type == TokenType.IDENTIFIER:
            lowered = token.value.lower()
            if lowered in TRUE_WORDS:
                return True
            if lowered in FALSE_WORDS:
                return False

        # Identifiers and color literals keep their text
        return token.value

    # ------------------------------------------------------------------
    # Recovery
    # ------------------------------------------------------------------

    def _skip_to_next_statement(self, in_block: bool) -> None:
        """Skip to the next identifier or date token, stepping over {...} groups whole."""
        while not self.is_eof():
            token = self.current_token()
            if token.type in RECOVERY_TYPES:
                break
            if in_block and token.type == TokenType.RBRACE:
                break
            if token.type == TokenType.LBRACE:
                self._skip_balanced_braces()
            else:
                self.consume_token()

    def _skip_balanced_braces(self) -> None:
        if not self.is_token(TokenType.LBRACE):
            return

        self.consume_token()
        depth = 1
        while not self.is_eof() and depth > 0:
            token = self.consume_token()
            if token.type == TokenType.LBRACE:
                depth += 1
            elif token.type == TokenType.RBRACE:
                depth -= 1


class SchemaRestrictedParser(GenericParser):
    """
    Generic parser that only keeps a known set of top-level keys.

    Statements under any other key are parsed (so their syntax errors are
    still reported) and then dropped with an UNKNOWN_KEY warning. Nested
    content is not restricted.
    """

    def __init__(self, allowed_keys: Iterable[str], config: Optional[ParserConfig] = None,
                 string_pool=None, accumulate: Optional[bool] = None):
        super().__init__(config=config, string_pool=string_pool, accumulate=accumulate)
        self.allowed_keys = frozenset(allowed_keys)

    def _accept_root_statement(self, node: Node, token: Token) -> bool:
        if node.key in self.allowed_keys:
            return True
        self.add_warning(f"Unknown top-level key '{node.key}'", token, "UNKNOWN_KEY")
        return False


# =============================================================================
# Convenience functions
# =============================================================================

def parse_source(source: str, accumulate: bool = False, config: Optional[ParserConfig] = None) -> ObjectNode:
    """Parse a source string into a tree."""
    return GenericParser(config=config, accumulate=accumulate).parse(source)


def parse_file(path: Union[str, Path], config: Optional[ParserConfig] = None) -> ObjectNode:
    """
    Parse a file into a tree, detecting its encoding.

    Raises:
        ScriptFileNotFoundError: If the file does not exist.
        ScriptDecodeError: If the file cannot be decoded.
    """
    return GenericParser(config=config).parse_file(path)


def parse_file_with_includes(path: Union[str, Path], config: Optional[ParserConfig] = None) -> ObjectNode:
    """Parse a file after expanding its @include directives."""
    return GenericParser(config=config).parse_file_with_includes(path)


def parse_source_with_result(source: str, filename: str = "<string>",
                             config: Optional[ParserConfig] = None) -> ParseResult:
    """
    Parse source and return the tree together with all diagnostics.

    Args:
        source: Script text
        filename: For log messages

    Returns:
        ParseResult with root, diagnostics and metrics
    """
    return GenericParser(config=config).parse_with_result(source, filename)
