"""Legacy tree shape and conversion from the current-generation tree."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from uastbridge.core.exceptions import BridgeError
from uastbridge.core.models import Position
from uastbridge.uast.nodes import KEY_POS, KEY_ROLES, KEY_TOKEN, KEY_TYPE

INTERNAL_ROLE_KEY = "internalRole"

_RESERVED = (KEY_TYPE, KEY_TOKEN, KEY_ROLES, KEY_POS)


@dataclass
class Node:
    """A node of the legacy tree."""

    internal_type: str = ""
    properties: dict[str, str] = field(default_factory=dict)
    children: list[Node] = field(default_factory=list)
    token: str = ""
    start_position: Position | None = None
    end_position: Position | None = None
    roles: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "internal_type": self.internal_type,
            "properties": dict(self.properties),
            "children": [c.to_dict() for c in self.children],
            "token": self.token,
            "start_position": self.start_position.to_dict() if self.start_position else None,
            "end_position": self.end_position.to_dict() if self.end_position else None,
            "roles": list(self.roles),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Node:
        """Create a Node from its JSON form."""
        start = data.get("start_position")
        end = data.get("end_position")
        return cls(
            internal_type=data.get("internal_type", ""),
            properties=dict(data.get("properties") or {}),
            children=[cls.from_dict(c) for c in data.get("children") or []],
            token=data.get("token", ""),
            start_position=Position.from_dict(start) if start else None,
            end_position=Position.from_dict(end) if end else None,
            roles=list(data.get("roles") or []),
        )

    def __iter__(self) -> Iterator[Node]:
        """Pre-order traversal."""
        yield self
        for child in self.children:
            yield from child


def to_node(tree: Any) -> Node | None:
    """Convert a current-generation tree to the legacy shape.

    Raises BridgeError for any construct the legacy shape cannot hold;
    nothing is dropped silently.
    """
    if tree is None:
        return None
    if not isinstance(tree, dict):
        raise BridgeError(f"root must be an object, got {_kind(tree)}", "$")
    return _object_to_node(tree, "$")


def _object_to_node(obj: dict[str, Any], path: str) -> Node:
    node = Node(
        internal_type=_string_field(obj, KEY_TYPE, path),
        token=_string_field(obj, KEY_TOKEN, path),
        roles=_roles(obj.get(KEY_ROLES), f"{path}.{KEY_ROLES}"),
    )
    if obj.get(KEY_POS) is not None:
        node.start_position, node.end_position = _positions(obj[KEY_POS], f"{path}.{KEY_POS}")

    for key in sorted(obj):
        if key in _RESERVED:
            continue
        value = obj[key]
        field_path = f"{path}.{key}"
        if key == INTERNAL_ROLE_KEY:
            raise BridgeError(f"field name {key!r} is reserved in the legacy shape", field_path)
        if value is None:
            continue
        if isinstance(value, dict):
            node.children.append(_child(value, key, field_path))
        elif isinstance(value, list):
            for i, item in enumerate(value):
                item_path = f"{field_path}[{i}]"
                if not isinstance(item, dict):
                    raise BridgeError(f"arrays may only hold objects, got {_kind(item)}", item_path)
                node.children.append(_child(item, key, item_path))
        else:
            node.properties[key] = _value_to_string(value)
    return node


def _child(obj: dict[str, Any], role: str, path: str) -> Node:
    child = _object_to_node(obj, path)
    child.properties[INTERNAL_ROLE_KEY] = role
    return child


def _string_field(obj: dict[str, Any], key: str, path: str) -> str:
    value = obj.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise BridgeError(f"{key} must be a string, got {_kind(value)}", f"{path}.{key}")
    return value


def _roles(value: Any, path: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(r, str) for r in value):
        raise BridgeError("roles must be a list of strings", path)
    return list(value)


def _positions(value: Any, path: str) -> tuple[Position | None, Position | None]:
    if not isinstance(value, dict):
        raise BridgeError(f"positions must be an object, got {_kind(value)}", path)
    unknown = set(value) - {KEY_TYPE, "start", "end"}
    if unknown:
        raise BridgeError(f"unexpected position fields: {sorted(unknown)}", path)
    start = _position(value.get("start"), f"{path}.start")
    end = _position(value.get("end"), f"{path}.end")
    return start, end


def _position(value: Any, path: str) -> Position | None:
    if value is None:
        return None
    if not isinstance(value, dict):
        raise BridgeError(f"position must be an object, got {_kind(value)}", path)
    coords = {k: v for k, v in value.items() if k != KEY_TYPE}
    if set(coords) != {"offset", "line", "col"}:
        raise BridgeError("position needs exactly offset, line and col", path)
    if not all(isinstance(v, int) and not isinstance(v, bool) for v in coords.values()):
        raise BridgeError("position fields must be integers", path)
    return Position(offset=coords["offset"], line=coords["line"], col=coords["col"])


def _value_to_string(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _kind(value: Any) -> str:
    if isinstance(value, dict):
        return "object"
    if isinstance(value, list):
        return "array"
    return type(value).__name__
