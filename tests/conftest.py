"""Shared fixtures: a fake session that records every call."""

from __future__ import annotations

import asyncio
import copy
from typing import Any

import pytest

from uastbridge.core.models import Position, Status
from uastbridge.protocol import v1, v2
from uastbridge.uast import encode
from uastbridge.uast.legacy import Node

SAMPLE_TREE: dict[str, Any] = {
    "@type": "python:Module",
    "@pos": {
        "@type": "uast:Positions",
        "start": {"@type": "uast:Position", "offset": 0, "line": 1, "col": 1},
        "end": {"@type": "uast:Position", "offset": 12, "line": 1, "col": 13},
    },
    "body": [
        {
            "@type": "python:Expr",
            "@role": ["Expression"],
            "value": {"@type": "python:Name", "@token": "print", "ctx": "Load"},
        }
    ],
    "docstring": None,
}

SAMPLE_LEGACY = Node(
    internal_type="python:Module",
    start_position=Position(offset=0, line=1, col=1),
    end_position=Position(offset=12, line=1, col=13),
    children=[
        Node(
            internal_type="python:Expr",
            roles=["Expression"],
            properties={"internalRole": "body"},
            children=[
                Node(
                    internal_type="python:Name",
                    token="print",
                    properties={"ctx": "Load", "internalRole": "value"},
                )
            ],
        )
    ],
)


class FakeLegacyService:
    """Legacy surface returning canned responses."""

    def __init__(self, calls: list[tuple[str, Any, float | None]]) -> None:
        self.calls = calls
        self.delay = 0.0
        self.error: Exception | None = None
        self.parse_response = v1.ParseResponse(
            status=Status.OK, language="python", filename="hello.py", uast=Node("python:Module")
        )
        self.native_parse_response = v1.NativeParseResponse(
            status=Status.OK, language="python", ast={"ast_type": "Module", "body": []}
        )
        self.version_response = v1.VersionResponse(status=Status.OK, version="v2.16.1")
        self.supported_languages_response = v1.SupportedLanguagesResponse(
            status=Status.OK,
            languages=[v1.DriverManifest(name="Python", language="python", version="v2.9.0")],
        )

    async def _call(self, name: str, request: Any, timeout: float | None) -> Any:
        self.calls.append((f"v1.{name}", request, timeout))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return getattr(self, f"{name}_response")

    async def parse(self, request: Any, *, timeout: float | None = None) -> Any:
        return await self._call("parse", request, timeout)

    async def native_parse(self, request: Any, *, timeout: float | None = None) -> Any:
        return await self._call("native_parse", request, timeout)

    async def version(self, request: Any, *, timeout: float | None = None) -> Any:
        return await self._call("version", request, timeout)

    async def supported_languages(self, request: Any, *, timeout: float | None = None) -> Any:
        return await self._call("supported_languages", request, timeout)


class FakeCurrentService:
    """Current surface returning a canned response."""

    def __init__(self, calls: list[tuple[str, Any, float | None]]) -> None:
        self.calls = calls
        self.delay = 0.0
        self.error: Exception | None = None
        self.cancelled = False
        self.parse_response = v2.ParseResponse(
            language="python", filename="hello.py", uast=encode(copy.deepcopy(SAMPLE_TREE))
        )

    async def parse(self, request: Any, *, timeout: float | None = None) -> Any:
        self.calls.append(("v2.parse", request, timeout))
        if self.delay:
            try:
                await asyncio.sleep(self.delay)
            except asyncio.CancelledError:
                self.cancelled = True
                raise
        if self.error is not None:
            raise self.error
        return self.parse_response


class FakeSession:
    """Session recording which surface every call went to."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, Any, float | None]] = []
        self.v1 = FakeLegacyService(self.calls)
        self.v2 = FakeCurrentService(self.calls)

    @property
    def called(self) -> list[str]:
        return [name for name, _, _ in self.calls]


@pytest.fixture
def session() -> FakeSession:
    """Create a fake session."""
    return FakeSession()


@pytest.fixture
def sample_tree() -> dict[str, Any]:
    """A current-generation tree that has a legacy equivalent."""
    return copy.deepcopy(SAMPLE_TREE)


@pytest.fixture
def sample_legacy() -> Node:
    """The legacy equivalent of sample_tree."""
    return copy.deepcopy(SAMPLE_LEGACY)
