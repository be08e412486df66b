"""Request builders for both protocol generations.

Builders are configured with chained setters and executed with ``do*`` or
``uast*``. A setter that fails (e.g. ``read_file`` on a missing path) keeps
the chain going and stores the error; every execution method then raises it
without contacting the service.

Builders are not synchronized: configure first, then execute. Executing an
already configured builder from several tasks at once is fine since every
call builds its own outgoing message.
"""

from __future__ import annotations

import logging
import time
from contextlib import nullcontext
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING, Any, Self

from uastbridge.core.context import Context, background
from uastbridge.core.exceptions import ConfigurationError, FatalError, UnsupportedModeError
from uastbridge.core.models import Encoding, Mode, Status
from uastbridge.protocol import v1, v2
from uastbridge.uast import nodes
from uastbridge.uast.legacy import to_node

if TYPE_CHECKING:
    from uastbridge.client.session import Session

logger = logging.getLogger(__name__)


def check_fatal(resp: Any) -> Any:
    """Raise FatalError if a legacy response reports a Fatal status."""
    if resp.status is Status.FATAL:
        raise FatalError(resp.errors, response=resp)
    return resp


def _read_source(path: str | Path) -> tuple[str, str]:
    """Read a local file, returning its text and base name."""
    file = Path(path)
    try:
        content = file.read_bytes().decode("utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"cannot read {file}: {e}") from e
    return content, file.name


class _Request:
    """Holds the session and the first configuration error."""

    def __init__(self, session: Session) -> None:
        self._session = session
        self._err: ConfigurationError | None = None

    @property
    def error(self) -> ConfigurationError | None:
        """The stored configuration error, if any."""
        return self._err

    def _fail(self, err: ConfigurationError) -> None:
        if self._err is None:
            self._err = err

    def _check(self) -> None:
        if self._err is not None:
            raise self._err


class _SourceRequest(_Request):
    """Setters shared by the builders that send source code."""

    _internal: Any

    def language(self, language: str) -> Self:
        """Set the language of the source. If unset, the server guesses it."""
        self._internal.language = language
        return self

    def filename(self, filename: str) -> Self:
        """Set the filename of the content."""
        self._internal.filename = filename
        return self

    def content(self, content: str) -> Self:
        """Set the source code to parse."""
        self._internal.content = content
        return self

    def read_file(self, path: str | Path) -> Self:
        """Load a local file, setting the content and the filename."""
        try:
            content, filename = _read_source(path)
        except ConfigurationError as e:
            self._fail(e)
        else:
            self._internal.content = content
            self._internal.filename = filename
        return self

    def _parse_mode(self, mode: Mode | str) -> Mode | None:
        if isinstance(mode, Mode):
            return mode
        try:
            return Mode.parse(mode)
        except UnsupportedModeError as e:
            err = ConfigurationError(str(e))
            err.__cause__ = e
            self._fail(err)
            return None


class ParseRequestV2(_SourceRequest):
    """Parse request on the current protocol."""

    def __init__(self, session: Session) -> None:
        super().__init__(session)
        self._internal = v2.ParseRequest()

    def mode(self, mode: Mode | str) -> Self:
        """Set the transformation level applied to the tree."""
        parsed = self._parse_mode(mode)
        if parsed is not None:
            self._internal.mode = parsed
        return self

    async def do(self) -> v2.ParseResponse:
        """Send the request and wait for the response."""
        return await self.do_context(background())

    async def do_context(self, ctx: Context) -> v2.ParseResponse:
        """Same as do(), under the given context."""
        self._check()
        return await _call_v2(self._session, replace(self._internal), ctx)

    async def uast(self) -> tuple[nodes.Node, str]:
        """Same as uast_context(), with a background context."""
        return await self.uast_context(background())

    async def uast_context(self, ctx: Context) -> tuple[nodes.Node, str]:
        """Send the request and return the decoded tree and the language.

        If the source has syntax errors, PartialParseError is raised with the
        partial tree attached.
        """
        resp = await self.do_context(ctx)
        return resp.nodes(), resp.language


class ParseRequest(_SourceRequest):
    """Parse request on the legacy protocol.

    Setting a mode switches the request to the current protocol; the response
    is converted back to the legacy shape.
    """

    def __init__(self, session: Session) -> None:
        super().__init__(session)
        self._internal = v1.ParseRequest()
        self._mode: Mode | None = None

    def encoding(self, encoding: Encoding) -> Self:
        """Set the text encoding of the content."""
        self._internal.encoding = encoding
        return self

    def timeout(self, timeout: float) -> Self:
        """Set the timeout in seconds. Zero (or less) means none."""
        self._internal.timeout = max(0.0, timeout)
        return self

    def mode(self, mode: Mode | str) -> Self:
        """Set the transformation level; the request goes over the current protocol."""
        parsed = self._parse_mode(mode)
        if parsed is not None:
            self._mode = parsed
        return self

    async def do(self) -> v1.ParseResponse:
        """Send the request and wait for the response."""
        return await self.do_with_context(background())

    async def do_with_context(self, ctx: Context) -> v1.ParseResponse:
        """Same as do(), under the given context.

        A Fatal status raises FatalError. An Error status is returned as is;
        check ``status`` and ``errors`` on the response.
        """
        self._check()
        if self._mode is not None:
            logger.debug("bridging v1 parse over v2 (mode=%s)", self._mode.value)
            return await self._do_bridged(ctx)

        req = replace(self._internal)
        logger.debug("v1 parse %r (language=%r)", req.filename, req.language)
        resp = await ctx.run(self._session.v1.parse(req, timeout=ctx.remaining()))
        return check_fatal(resp)

    async def uast(self) -> tuple[nodes.Node, str]:
        """Same as uast_context(), with a background context."""
        return await self.uast_context(background())

    async def uast_context(self, ctx: Context) -> tuple[nodes.Node, str]:
        """Send the request over the current protocol and return the decoded tree.

        The tree is in the current shape. If the source has syntax errors,
        PartialParseError is raised with the partial tree attached.
        """
        self._check()
        return await self._bridge(ctx)

    async def _bridge(self, ctx: Context) -> tuple[nodes.Node, str]:
        req = v2.ParseRequest(
            filename=self._internal.filename,
            language=self._internal.language,
            content=self._internal.content,
            mode=self._mode,
        )
        timeout = self._internal.timeout
        scope = ctx.with_timeout(timeout) if timeout > 0 else nullcontext(ctx)
        with scope as call_ctx:
            resp = await _call_v2(self._session, req, call_ctx)
        return resp.nodes(), resp.language

    async def _do_bridged(self, ctx: Context) -> v1.ParseResponse:
        start = time.perf_counter()
        tree, language = await self._bridge(ctx)
        elapsed = time.perf_counter() - start

        return v1.ParseResponse(
            status=Status.OK,
            language=language,
            filename=self._internal.filename,
            uast=to_node(tree),
            elapsed=elapsed,
        )


class NativeParseRequest(_SourceRequest):
    """Request for the native AST; legacy protocol only."""

    def __init__(self, session: Session) -> None:
        super().__init__(session)
        self._internal = v1.NativeParseRequest()

    def encoding(self, encoding: Encoding) -> Self:
        """Set the text encoding of the content."""
        self._internal.encoding = encoding
        return self

    async def do(self) -> v1.NativeParseResponse:
        """Send the request and wait for the response."""
        return await self.do_with_context(background())

    async def do_with_context(self, ctx: Context) -> v1.NativeParseResponse:
        """Same as do(), under the given context."""
        self._check()
        req = replace(self._internal)
        logger.debug("v1 native parse %r (language=%r)", req.filename, req.language)
        resp = await ctx.run(self._session.v1.native_parse(req, timeout=ctx.remaining()))
        return check_fatal(resp)


class VersionRequest(_Request):
    """Request for the version of the server."""

    async def do(self) -> v1.VersionResponse:
        return await self.do_with_context(background())

    async def do_with_context(self, ctx: Context) -> v1.VersionResponse:
        self._check()
        logger.debug("v1 version")
        resp = await ctx.run(
            self._session.v1.version(v1.VersionRequest(), timeout=ctx.remaining())
        )
        return check_fatal(resp)


class SupportedLanguagesRequest(_Request):
    """Request for the languages supported by the server."""

    async def do(self) -> v1.SupportedLanguagesResponse:
        return await self.do_with_context(background())

    async def do_with_context(self, ctx: Context) -> v1.SupportedLanguagesResponse:
        self._check()
        logger.debug("v1 supported languages")
        resp = await ctx.run(
            self._session.v1.supported_languages(
                v1.SupportedLanguagesRequest(), timeout=ctx.remaining()
            )
        )
        return check_fatal(resp)


async def _call_v2(session: Session, req: v2.ParseRequest, ctx: Context) -> v2.ParseResponse:
    mode = req.mode.value if req.mode else "default"
    logger.debug("v2 parse %r (language=%r, mode=%s)", req.filename, req.language, mode)
    return await ctx.run(session.v2.parse(req, timeout=ctx.remaining()))


__all__ = [
    "ParseRequest",
    "ParseRequestV2",
    "NativeParseRequest",
    "VersionRequest",
    "SupportedLanguagesRequest",
    "check_fatal",
]
