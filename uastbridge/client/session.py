"""Protocols for the RPC surfaces a session exposes."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from uastbridge.protocol import v1, v2


class LegacyService(Protocol):
    """Legacy protocol surface."""

    async def parse(
        self, request: v1.ParseRequest, *, timeout: float | None = None
    ) -> v1.ParseResponse: ...

    async def native_parse(
        self, request: v1.NativeParseRequest, *, timeout: float | None = None
    ) -> v1.NativeParseResponse: ...

    async def version(
        self, request: v1.VersionRequest, *, timeout: float | None = None
    ) -> v1.VersionResponse: ...

    async def supported_languages(
        self, request: v1.SupportedLanguagesRequest, *, timeout: float | None = None
    ) -> v1.SupportedLanguagesResponse: ...


class CurrentService(Protocol):
    """Current protocol surface."""

    async def parse(
        self, request: v2.ParseRequest, *, timeout: float | None = None
    ) -> v2.ParseResponse: ...


class Session(Protocol):
    """A connection to the service exposing both protocol generations.

    ``timeout`` is the number of seconds left on the caller's context, or
    None when it has no deadline. Sessions raise TransportError subclasses
    when a call cannot complete.
    """

    v1: LegacyService
    v2: CurrentService
