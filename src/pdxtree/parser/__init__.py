"""
pdxtree.parser - Paradox Script Parser

Lexer, tree model and recursive-descent parser for Paradox script files,
plus the shared infrastructure (encoding detection, @include expansion,
metrics, diagnostics) that file-level parsers build on.
"""

from pdxtree.parser.lexer import Lexer, LexerCheckpoint, Token, TokenType, tokenize
from pdxtree.parser.dates import GameDate, is_date_text
from pdxtree.parser.tree import (
    DateNode,
    InvalidNodeOperation,
    ListNode,
    Node,
    NodeType,
    ObjectNode,
    ScalarNode,
    create_date,
    create_list,
    create_object,
    create_scalar,
    format_tree,
)
from pdxtree.parser.base import BaseParser, ParseDiagnostic, ParseError, ParseResult
from pdxtree.parser.encoding import ScriptDecodeError, ScriptFileNotFoundError, detect_encoding
from pdxtree.parser.includes import (
    IncludeCycleError,
    IncludeDepthError,
    IncludeError,
    IncludeNotFoundError,
    IncludePreprocessor,
)
from pdxtree.parser.metrics import ParsingMetrics, PerformanceTimer
from pdxtree.parser.parser import (
    GenericParser,
    SchemaRestrictedParser,
    parse_file,
    parse_file_with_includes,
    parse_source,
    parse_source_with_result,
)
from pdxtree.parser.tree_serde import count_nodes, deserialize_tree, serialize_tree
from pdxtree.parser.batch import BatchResult, parse_files

__all__ = [
    # Lexer
    "Lexer",
    "LexerCheckpoint",
    "Token",
    "TokenType",
    "tokenize",
    "GameDate",
    "is_date_text",
    # Tree
    "Node",
    "NodeType",
    "ScalarNode",
    "ObjectNode",
    "ListNode",
    "DateNode",
    "InvalidNodeOperation",
    "create_scalar",
    "create_object",
    "create_list",
    "create_date",
    "format_tree",
    # Parser
    "BaseParser",
    "GenericParser",
    "SchemaRestrictedParser",
    "ParseError",
    "ParseDiagnostic",
    "ParseResult",
    "parse_file",
    "parse_file_with_includes",
    "parse_source",
    "parse_source_with_result",
    # Infrastructure
    "ScriptDecodeError",
    "ScriptFileNotFoundError",
    "detect_encoding",
    "IncludeError",
    "IncludeCycleError",
    "IncludeDepthError",
    "IncludeNotFoundError",
    "IncludePreprocessor",
    "ParsingMetrics",
    "PerformanceTimer",
    # Serialization / batch
    "serialize_tree",
    "deserialize_tree",
    "count_nodes",
    "BatchResult",
    "parse_files",
]
