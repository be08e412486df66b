"""Client that hands out request builders bound to one session."""

from __future__ import annotations

from typing import TYPE_CHECKING

from uastbridge.client.http import HttpSession
from uastbridge.client.requests import (
    NativeParseRequest,
    ParseRequest,
    ParseRequestV2,
    SupportedLanguagesRequest,
    VersionRequest,
)

if TYPE_CHECKING:
    from uastbridge.client.session import Session


class Client:
    """Entry point: creates requests against a session."""

    def __init__(self, session: Session) -> None:
        self.session = session

    @classmethod
    def connect(cls, endpoint: str | None = None) -> Client:
        """Create a client over HTTP. Uses the default endpoint if none is given."""
        return cls(HttpSession(endpoint))

    def new_parse_request(self) -> ParseRequest:
        """Legacy parse request; bridged over the current protocol once a mode is set."""
        return ParseRequest(self.session)

    def new_parse_request_v2(self) -> ParseRequestV2:
        return ParseRequestV2(self.session)

    def new_native_parse_request(self) -> NativeParseRequest:
        return NativeParseRequest(self.session)

    def new_version_request(self) -> VersionRequest:
        return VersionRequest(self.session)

    def new_supported_languages_request(self) -> SupportedLanguagesRequest:
        return SupportedLanguagesRequest(self.session)

    async def aclose(self) -> None:
        """Close the session if it holds resources."""
        aclose = getattr(self.session, "aclose", None)
        if aclose is not None:
            await aclose()

    async def __aenter__(self) -> Client:
        return self

    async def __aexit__(
        self, exc_type: type | None, exc_val: BaseException | None, exc_tb: object
    ) -> None:
        await self.aclose()
