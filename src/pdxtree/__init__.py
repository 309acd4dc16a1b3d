"""
pdxtree - Paradox Script Parser

Parses Paradox-style configuration scripts (nested key = value statements,
date-keyed history blocks, color literals, @include directives) into a
generic tree that callers query with get_child / get_value.
"""

__version__ = "0.1.0"
__author__ = "pdxtree contributors"

from pdxtree.parser import parse_file, parse_source
