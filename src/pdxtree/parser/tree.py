"""
Generic tree model for parsed Paradox script.

A parse produces a tree of four node variants:

- ScalarNode:  key = value
- ObjectNode:  key = { ... }           (children keyed by statement key)
- ListNode:    repeated keys, or { a b c } bare value lists
- DateNode:    1444.11.11 = { ... }    (an object that also carries its date)

Nodes are built by the parser and then handed to callers, who query them
through get_child / get_children / get_value / has_child. Lookups are
lenient: a missing key or a value that cannot be coerced yields the
caller's default instead of an exception.
"""

import re
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, List, Optional, Tuple, Union

from pdxtree.parser.dates import GameDate, is_date_text

ScalarValue = Union[str, int, float, bool, GameDate]

_INT_RE = re.compile(r'^[+-]?\d+$')
_FLOAT_RE = re.compile(r'^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$')
_COLOR_RE = re.compile(r'^\{\s*(\d+)\s+(\d+)\s+(\d+)\s*\}$')

TRUE_WORDS = frozenset({'yes', 'true'})
FALSE_WORDS = frozenset({'no', 'false'})


class NodeType(Enum):
    """Variants of tree nodes."""
    SCALAR = auto()
    OBJECT = auto()
    LIST = auto()
    DATE = auto()


class InvalidNodeOperation(Exception):
    """Raised when a building operation is applied to the wrong node variant."""


@dataclass
class Node:
    """Base class for tree nodes."""
    key: str = ""
    node_type: NodeType = field(default=None, init=False, repr=False)

    def _child_map(self) -> Optional[Dict[str, "Node"]]:
        return None

    # Building ---------------------------------------------------------

    def add_child(self, child: "Node") -> None:
        add_child(self, child)

    def add_child_accumulating(self, child: "Node") -> None:
        add_child_accumulating(self, child)

    def add_item(self, item: "Node") -> None:
        add_item(self, item)

    # Querying ---------------------------------------------------------

    def get_child(self, key: str) -> Optional["Node"]:
        return get_child(self, key)

    def get_children(self, key: str) -> List["Node"]:
        return get_children(self, key)

    def has_child(self, key: str) -> bool:
        return has_child(self, key)

    def get_value(self, key: str, default: Any = None, as_type: Optional[type] = None) -> Any:
        return get_value(self, key, default, as_type)

    def get_values(self, key: str, as_type: Optional[type] = None) -> List[Any]:
        return get_values(self, key, as_type)

    def get_color(self, key: str, default: Optional[Tuple[int, int, int]] = None):
        return get_color(self, key, default)

    def __str__(self):
        return format_tree(self)


@dataclass
class ScalarNode(Node):
    """A leaf value: text, integer, float, boolean or GameDate."""
    value: ScalarValue = None

    def __post_init__(self):
        self.node_type = NodeType.SCALAR


@dataclass
class ObjectNode(Node):
    """A keyed block: key = { ... }"""
    children: Dict[str, Node] = field(default_factory=dict)

    def __post_init__(self):
        self.node_type = NodeType.OBJECT

    def _child_map(self) -> Optional[Dict[str, Node]]:
        return self.children


@dataclass
class ListNode(Node):
    """An ordered sequence of nodes."""
    items: List[Node] = field(default_factory=list)

    def __post_init__(self):
        self.node_type = NodeType.LIST


@dataclass
class DateNode(Node):
    """A history block keyed by a date: 1444.11.11 = { ... }"""
    date: GameDate = None
    children: Dict[str, Node] = field(default_factory=dict)

    def __post_init__(self):
        self.node_type = NodeType.DATE

    def _child_map(self) -> Optional[Dict[str, Node]]:
        return self.children


# =============================================================================
# Factories
# =============================================================================

def create_scalar(key: str, value: ScalarValue) -> ScalarNode:
    return ScalarNode(key=key, value=value)


def create_object(key: str) -> ObjectNode:
    return ObjectNode(key=key)


def create_list(key: str) -> ListNode:
    return ListNode(key=key)


def create_date(key: str, date: GameDate) -> DateNode:
    return DateNode(key=key, date=date)


# =============================================================================
# Building
# =============================================================================

def _require_children(node: Node, operation: str) -> Dict[str, Node]:
    children = node._child_map()
    if children is None:
        raise InvalidNodeOperation(
            f"Cannot {operation} on {node.node_type.name} node '{node.key}'"
        )
    return children


def add_child(node: Node, child: Node) -> None:
    """Add ``child`` under its key, replacing any existing entry."""
    children = _require_children(node, "add child")
    children[child.key] = child


def add_child_accumulating(node: Node, child: Node) -> None:
    """
    Add ``child`` under its key, turning repeated keys into a ListNode.

    The first repeat replaces the existing entry with a list holding
    [previous, new]; further repeats append to that list.
    """
    children = _require_children(node, "add child")
    existing = children.get(child.key)
    if existing is None:
        children[child.key] = child
    elif isinstance(existing, ListNode):
        existing.items.append(child)
    else:
        merged = create_list(child.key)
        merged.items.extend((existing, child))
        children[child.key] = merged


def add_item(node: Node, item: Node) -> None:
    """Append ``item`` to a ListNode."""
    if not isinstance(node, ListNode):
        raise InvalidNodeOperation(
            f"Cannot add item on {node.node_type.name} node '{node.key}'"
        )
    node.items.append(item)


# =============================================================================
# Querying
# =============================================================================

def get_child(node: Node, key: str) -> Optional[Node]:
    children = node._child_map()
    if children is None:
        return None
    return children.get(key)


def get_children(node: Node, key: str) -> List[Node]:
    """All nodes stored under ``key``: [] if absent, list items, or [child]."""
    child = get_child(node, key)
    if child is None:
        return []
    if isinstance(child, ListNode):
        return list(child.items)
    return [child]


def has_child(node: Node, key: str) -> bool:
    children = node._child_map()
    return children is not None and key in children


def _format_scalar(value: ScalarValue) -> str:
    if isinstance(value, bool):
        return "yes" if value else "no"
    return str(value)


def coerce_scalar(value: ScalarValue, target: type) -> Any:
    """
    Convert a scalar value to ``target``.

    Numbers are parsed with '.' as the only decimal separator regardless of
    locale. Booleans accept yes/true and no/false in any case.

    Raises:
        ValueError: If the value cannot be represented as ``target``.
    """
    if target is bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)):
            return value != 0
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in TRUE_WORDS:
                return True
            if lowered in FALSE_WORDS:
                return False
        raise ValueError(f"Cannot convert {value!r} to bool")

    if target is int:
        if isinstance(value, bool):
            return int(value)
        if isinstance(value, int):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
        if isinstance(value, str) and _INT_RE.match(value.strip()):
            return int(value.strip())
        raise ValueError(f"Cannot convert {value!r} to int")

    if target is float:
        if isinstance(value, bool):
            raise ValueError(f"Cannot convert {value!r} to float")
        if isinstance(value, (int, float)):
            return float(value)
        if isinstance(value, str) and _FLOAT_RE.match(value.strip()):
            return float(value.strip())
        raise ValueError(f"Cannot convert {value!r} to float")

    if target is str:
        return _format_scalar(value)

    if target is GameDate:
        if isinstance(value, GameDate):
            return value
        if isinstance(value, str) and is_date_text(value.strip()):
            return GameDate.parse(value)
        raise ValueError(f"Cannot convert {value!r} to GameDate")

    if isinstance(value, target):
        return value
    raise ValueError(f"Unsupported conversion of {value!r} to {target.__name__}")


def get_value(node: Node, key: str, default: Any = None, as_type: Optional[type] = None) -> Any:
    """
    Look up the scalar under ``key`` and coerce it.

    The target type is ``as_type``, or the type of ``default`` when it is
    omitted. Missing keys, non-scalar children and failed conversions all
    return ``default``.
    """
    child = get_child(node, key)
    if not isinstance(child, ScalarNode) or child.value is None:
        return default

    target = as_type if as_type is not None else (type(default) if default is not None else None)
    if target is None:
        return child.value

    try:
        return coerce_scalar(child.value, target)
    except ValueError:
        return default


def get_values(node: Node, key: str, as_type: Optional[type] = None) -> List[Any]:
    """All scalar values under ``key`` (e.g. repeated add_core), dropping failed conversions."""
    values = []
    for child in get_children(node, key):
        if not isinstance(child, ScalarNode) or child.value is None:
            continue
        if as_type is None:
            values.append(child.value)
            continue
        try:
            values.append(coerce_scalar(child.value, as_type))
        except ValueError:
            continue
    return values


def parse_color(text: str) -> Optional[Tuple[int, int, int]]:
    """Decode a ``{ r g b }`` color literal, or None if it is not one."""
    match = _COLOR_RE.match(text.strip())
    if not match:
        return None
    rgb = tuple(int(part) for part in match.groups())
    if any(component > 255 for component in rgb):
        return None
    return rgb


def get_color(node: Node, key: str, default: Optional[Tuple[int, int, int]] = None):
    child = get_child(node, key)
    if not isinstance(child, ScalarNode) or not isinstance(child.value, str):
        return default
    rgb = parse_color(child.value)
    return rgb if rgb is not None else default


# =============================================================================
# Debug printing
# =============================================================================

def format_tree(node: Node, indent: int = 0) -> str:
    """Indented recursive dump of a tree, for debugging."""
    lines: List[str] = []
    _format_into(node, indent, lines)
    return "\n".join(lines) + "\n"


def _format_into(node: Node, indent: int, lines: List[str]) -> None:
    pad = "  " * indent
    if isinstance(node, ScalarNode):
        if node.key:
            lines.append(f"{pad}{node.key} = {_format_scalar(node.value)}")
        else:
            lines.append(f"{pad}{_format_scalar(node.value)}")
    elif isinstance(node, DateNode):
        lines.append(f"{pad}{node.key} = {{  # Date: {node.date}")
        for child in node.children.values():
            _format_into(child, indent + 1, lines)
        lines.append(f"{pad}}}")
    elif isinstance(node, ObjectNode):
        lines.append(f"{pad}{node.key} = {{")
        for child in node.children.values():
            _format_into(child, indent + 1, lines)
        lines.append(f"{pad}}}")
    elif isinstance(node, ListNode):
        lines.append(f"{pad}{node.key} = [")
        for item in node.items:
            _format_into(item, indent + 1, lines)
        lines.append(f"{pad}]")
