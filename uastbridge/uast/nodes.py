"""Current-generation tree and its wire encoding.

A tree is made of plain Python values:
    - objects: dict[str, Node]
    - arrays: list[Node]
    - values: str, int, float, bool or None

Objects use reserved keys for node metadata (see KEY_*).
"""

from __future__ import annotations

import json
from typing import Any, TypeAlias

from uastbridge.core.exceptions import DecodeError

Node: TypeAlias = Any

KEY_TYPE = "@type"
KEY_TOKEN = "@token"
KEY_ROLES = "@role"
KEY_POS = "@pos"


def encode(tree: Node) -> bytes:
    """Encode a tree to its wire payload."""
    return json.dumps(tree, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


def decode(payload: bytes, language: str = "") -> Node:
    """Decode a wire payload to a tree. An empty payload is an empty tree."""
    if not payload:
        return None
    try:
        return json.loads(payload.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise DecodeError(f"cannot decode the uast: {e}", language) from e


def type_of(node: Node) -> str:
    """Return the type of an object node, or '' for anything else."""
    if isinstance(node, dict):
        value = node.get(KEY_TYPE)
        if isinstance(value, str):
            return value
    return ""
