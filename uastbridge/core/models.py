"""Enums and small value types shared by both protocol generations."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from uastbridge.core.exceptions import UnsupportedModeError


class Mode(Enum):
    """Transformation level applied to the returned tree."""

    NATIVE = "native"
    ANNOTATED = "annotated"
    SEMANTIC = "semantic"

    @classmethod
    def parse(cls, value: str) -> Mode:
        """Parse a mode token. Case-sensitive, no aliases."""
        for mode in cls:
            if mode.value == value:
                return mode
        raise UnsupportedModeError(value)


def parse_mode(value: str) -> Mode:
    """Parse a UAST mode string to an enum value."""
    return Mode.parse(value)


class Status(Enum):
    """Status of a legacy response."""

    OK = "ok"
    ERROR = "error"
    FATAL = "fatal"


class Encoding(Enum):
    """Text encoding of the request content."""

    UTF8 = "utf8"
    BASE64 = "base64"


@dataclass(frozen=True)
class Position:
    """A position in the source file."""

    offset: int
    line: int
    col: int

    def to_dict(self) -> dict[str, int]:
        return {"offset": self.offset, "line": self.line, "col": self.col}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Position:
        """Create a Position from its JSON form."""
        return cls(offset=data["offset"], line=data["line"], col=data["col"])
