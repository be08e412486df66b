"""HTTP session speaking a JSON envelope over httpx."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from typing import Any, TypeVar

import httpx

from uastbridge.core.exceptions import DeadlineExceededError, TransportError
from uastbridge.protocol import v1, v2

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "http://localhost:9432"
ENDPOINT_ENV = "UASTBRIDGE_ENDPOINT"

T = TypeVar("T")


def get_default_endpoint() -> str:
    """Get the service endpoint from the environment, or the default one."""
    return os.environ.get(ENDPOINT_ENV) or DEFAULT_ENDPOINT


class _Transport:
    """Posts JSON bodies and maps httpx failures onto TransportError."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def post(self, path: str, body: dict[str, Any], timeout: float | None) -> dict[str, Any]:
        # No deadline on the context means no client-side timeout either.
        try:
            response = await self._client.post(path, json=body, timeout=timeout)
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as e:
            logger.warning("call to %s timed out: %s", path, e)
            raise DeadlineExceededError(f"{path}: {e}") from e
        except httpx.HTTPStatusError as e:
            logger.warning("call to %s failed with HTTP %d", path, e.response.status_code)
            raise TransportError(f"{path}: HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.warning("call to %s failed: %s", path, e)
            raise TransportError(f"{path}: {e}") from e
        except ValueError as e:
            raise TransportError(f"{path}: invalid JSON response: {e}") from e
        if not isinstance(data, dict):
            raise TransportError(f"{path}: expected a JSON object")
        return data


def _parse_response(path: str, data: dict[str, Any], factory: Callable[[dict[str, Any]], T]) -> T:
    """Build a response message, mapping schema mismatches onto TransportError."""
    try:
        return factory(data)
    except (KeyError, TypeError, ValueError) as e:
        raise TransportError(f"{path}: malformed response: {e}") from e


class HttpLegacyService:
    """Legacy surface over HTTP."""

    def __init__(self, transport: _Transport) -> None:
        self._transport = transport

    async def parse(
        self, request: v1.ParseRequest, *, timeout: float | None = None
    ) -> v1.ParseResponse:
        data = await self._transport.post("/v1/parse", request.to_dict(), timeout)
        return _parse_response("/v1/parse", data, v1.ParseResponse.from_dict)

    async def native_parse(
        self, request: v1.NativeParseRequest, *, timeout: float | None = None
    ) -> v1.NativeParseResponse:
        data = await self._transport.post("/v1/native-parse", request.to_dict(), timeout)
        return _parse_response("/v1/native-parse", data, v1.NativeParseResponse.from_dict)

    async def version(
        self, request: v1.VersionRequest, *, timeout: float | None = None
    ) -> v1.VersionResponse:
        data = await self._transport.post("/v1/version", request.to_dict(), timeout)
        return _parse_response("/v1/version", data, v1.VersionResponse.from_dict)

    async def supported_languages(
        self, request: v1.SupportedLanguagesRequest, *, timeout: float | None = None
    ) -> v1.SupportedLanguagesResponse:
        data = await self._transport.post("/v1/languages", request.to_dict(), timeout)
        return _parse_response("/v1/languages", data, v1.SupportedLanguagesResponse.from_dict)


class HttpCurrentService:
    """Current surface over HTTP."""

    def __init__(self, transport: _Transport) -> None:
        self._transport = transport

    async def parse(
        self, request: v2.ParseRequest, *, timeout: float | None = None
    ) -> v2.ParseResponse:
        data = await self._transport.post("/v2/parse", request.to_dict(), timeout)
        return _parse_response("/v2/parse", data, v2.ParseResponse.from_dict)


class HttpSession:
    """Session over a single httpx.AsyncClient.

    Connection pooling and transport retries are left to httpx.
    """

    def __init__(
        self,
        endpoint: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.endpoint = endpoint or get_default_endpoint()
        self._client = client or httpx.AsyncClient(base_url=self.endpoint)
        transport = _Transport(self._client)
        self.v1 = HttpLegacyService(transport)
        self.v2 = HttpCurrentService(transport)

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> HttpSession:
        return self

    async def __aexit__(
        self, exc_type: type | None, exc_val: BaseException | None, exc_tb: object
    ) -> None:
        await self.aclose()
