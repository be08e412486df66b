"""Current protocol messages."""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass, field
from typing import Any

from uastbridge.core.exceptions import DecodeError, PartialParseError
from uastbridge.core.models import Mode
from uastbridge.uast import nodes as uast_nodes


@dataclass
class ParseRequest:
    """Request to parse a file with a selectable transformation mode."""

    filename: str = ""
    language: str = ""
    content: str = ""
    # None leaves the choice to the server.
    mode: Mode | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "filename": self.filename,
            "language": self.language,
            "content": self.content,
            "mode": self.mode.value if self.mode else None,
        }


@dataclass
class ParseResponse:
    """Encoded tree returned by the server."""

    language: str = ""
    filename: str = ""
    uast: bytes = b""
    errors: list[str] = field(default_factory=list)

    def nodes(self) -> uast_nodes.Node:
        """Decode the tree.

        Raises PartialParseError, carrying the partial tree, if the server
        reported syntax errors.
        """
        tree = uast_nodes.decode(self.uast, self.language)
        if self.errors:
            raise PartialParseError(self.errors, tree, self.language)
        return tree

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ParseResponse:
        """Create a ParseResponse from its JSON form (tree payload in base64)."""
        language = data.get("language", "")
        try:
            payload = base64.b64decode(data.get("uast") or "", validate=True)
        except (binascii.Error, TypeError, ValueError) as e:
            raise DecodeError(f"cannot decode the uast: {e}", language) from e
        return cls(
            language=language,
            filename=data.get("filename", ""),
            uast=payload,
            errors=list(data.get("errors") or []),
        )
