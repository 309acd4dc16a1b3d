"""
Tree Serialization - tree <-> JSON conversion.

This module depends only on json and the tree node types, so parsed trees
can be cached or shipped between processes without importing the parser.

Usage:
    from pdxtree.parser.tree_serde import serialize_tree, deserialize_tree, count_nodes
"""

import json
from typing import Any, Dict, Union

from pdxtree.parser.dates import GameDate
from pdxtree.parser.tree import (
    DateNode,
    ListNode,
    Node,
    ObjectNode,
    ScalarNode,
    ScalarValue,
)


def _value_type(value: ScalarValue) -> str:
    if isinstance(value, bool):
        return 'bool'
    if isinstance(value, int):
        return 'int'
    if isinstance(value, float):
        return 'float'
    if isinstance(value, GameDate):
        return 'date'
    if value is None:
        return 'none'
    return 'string'


def node_to_dict(node: Node) -> Dict[str, Any]:
    """Convert a tree node to a JSON-compatible dict."""
    if isinstance(node, ScalarNode):
        value_type = _value_type(node.value)
        return {
            '_type': 'scalar',
            'key': node.key,
            'value': str(node.value) if value_type == 'date' else node.value,
            'value_type': value_type,
        }
    elif isinstance(node, DateNode):
        return {
            '_type': 'date',
            'key': node.key,
            'date': str(node.date),
            'children': [node_to_dict(c) for c in node.children.values()],
        }
    elif isinstance(node, ObjectNode):
        return {
            '_type': 'object',
            'key': node.key,
            'children': [node_to_dict(c) for c in node.children.values()],
        }
    elif isinstance(node, ListNode):
        return {
            '_type': 'list',
            'key': node.key,
            'items': [node_to_dict(i) for i in node.items],
        }
    raise TypeError(f"Cannot serialize {type(node).__name__}")


def dict_to_node(data: Dict[str, Any]) -> Node:
    """
    Rebuild a tree node from node_to_dict() output.

    Raises:
        ValueError: If a dict has no known '_type'.
    """
    node_type = data.get('_type')
    key = data.get('key', '')

    if node_type == 'scalar':
        value = data.get('value')
        if data.get('value_type') == 'date':
            value = GameDate.parse(value)
        return ScalarNode(key=key, value=value)

    if node_type == 'date':
        node = DateNode(key=key, date=GameDate.parse(data['date']))
        for child in data.get('children', []):
            child_node = dict_to_node(child)
            node.children[child_node.key] = child_node
        return node

    if node_type == 'object':
        node = ObjectNode(key=key)
        for child in data.get('children', []):
            child_node = dict_to_node(child)
            node.children[child_node.key] = child_node
        return node

    if node_type == 'list':
        return ListNode(key=key, items=[dict_to_node(i) for i in data.get('items', [])])

    raise ValueError(f"Unknown node type in serialized tree: {node_type!r}")


def serialize_tree(root: Node) -> bytes:
    """
    Serialize a tree to JSON bytes.

    Args:
        root: Parsed tree root (or any subtree)

    Returns:
        UTF-8 encoded compact JSON bytes
    """
    data = node_to_dict(root)
    return json.dumps(data, separators=(',', ':'), ensure_ascii=False).encode('utf-8')


def deserialize_tree(data: Union[bytes, str]) -> Node:
    """
    Deserialize a tree from JSON bytes or string.

    Args:
        data: Output of serialize_tree()

    Returns:
        The rebuilt tree
    """
    if isinstance(data, bytes):
        data = data.decode('utf-8')
    return dict_to_node(json.loads(data))


def count_nodes(node: Node) -> int:
    """Count ``node`` and every node below it."""
    count = 1
    if isinstance(node, (ObjectNode, DateNode)):
        for child in node.children.values():
            count += count_nodes(child)
    elif isinstance(node, ListNode):
        for item in node.items:
            count += count_nodes(item)
    return count
