"""Legacy protocol messages."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from uastbridge.core.models import Encoding, Status
from uastbridge.uast.legacy import Node


@dataclass
class ParseRequest:
    """Request to parse a file into a legacy UAST."""

    filename: str = ""
    language: str = ""
    content: str = ""
    encoding: Encoding = Encoding.UTF8
    # Seconds; zero means no timeout.
    timeout: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "filename": self.filename,
            "language": self.language,
            "content": self.content,
            "encoding": self.encoding.value,
            "timeout": self.timeout,
        }


@dataclass
class ParseResponse:
    """Legacy UAST along with the status of the call."""

    status: Status = Status.OK
    errors: list[str] = field(default_factory=list)
    elapsed: float = 0.0
    language: str = ""
    filename: str = ""
    uast: Node | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ParseResponse:
        """Create a ParseResponse from its JSON form."""
        uast = data.get("uast")
        return cls(
            status=Status(data.get("status", Status.OK.value)),
            errors=list(data.get("errors") or []),
            elapsed=data.get("elapsed", 0.0),
            language=data.get("language", ""),
            filename=data.get("filename", ""),
            uast=Node.from_dict(uast) if uast else None,
        )


@dataclass
class NativeParseRequest:
    """Request to parse a file into the service's native AST."""

    filename: str = ""
    language: str = ""
    content: str = ""
    encoding: Encoding = Encoding.UTF8

    def to_dict(self) -> dict[str, Any]:
        return {
            "filename": self.filename,
            "language": self.language,
            "content": self.content,
            "encoding": self.encoding.value,
        }


@dataclass
class NativeParseResponse:
    """Native AST, untouched by the service."""

    status: Status = Status.OK
    errors: list[str] = field(default_factory=list)
    elapsed: float = 0.0
    language: str = ""
    ast: Any = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> NativeParseResponse:
        """Create a NativeParseResponse from its JSON form."""
        return cls(
            status=Status(data.get("status", Status.OK.value)),
            errors=list(data.get("errors") or []),
            elapsed=data.get("elapsed", 0.0),
            language=data.get("language", ""),
            ast=data.get("ast"),
        )


@dataclass
class VersionRequest:
    """Request for the server version."""

    def to_dict(self) -> dict[str, Any]:
        return {}


@dataclass
class VersionResponse:
    status: Status = Status.OK
    errors: list[str] = field(default_factory=list)
    elapsed: float = 0.0
    version: str = ""
    build: datetime | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> VersionResponse:
        """Create a VersionResponse from its JSON form."""
        build = data.get("build")
        return cls(
            status=Status(data.get("status", Status.OK.value)),
            errors=list(data.get("errors") or []),
            elapsed=data.get("elapsed", 0.0),
            version=data.get("version", ""),
            build=datetime.fromisoformat(build) if build else None,
        )


@dataclass
class SupportedLanguagesRequest:
    """Request for the languages the server has drivers for."""

    def to_dict(self) -> dict[str, Any]:
        return {}


@dataclass
class DriverManifest:
    """Description of one language driver installed on the server."""

    name: str
    language: str
    version: str = ""
    status: str = ""
    features: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "language": self.language,
            "version": self.version,
            "status": self.status,
            "features": list(self.features),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DriverManifest:
        return cls(
            name=data["name"],
            language=data["language"],
            version=data.get("version", ""),
            status=data.get("status", ""),
            features=list(data.get("features") or []),
        )


@dataclass
class SupportedLanguagesResponse:
    status: Status = Status.OK
    errors: list[str] = field(default_factory=list)
    elapsed: float = 0.0
    languages: list[DriverManifest] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SupportedLanguagesResponse:
        """Create a SupportedLanguagesResponse from its JSON form."""
        return cls(
            status=Status(data.get("status", Status.OK.value)),
            errors=list(data.get("errors") or []),
            elapsed=data.get("elapsed", 0.0),
            languages=[DriverManifest.from_dict(d) for d in data.get("languages") or []],
        )
