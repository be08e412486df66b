"""Unit tests for request builders against a fake session."""

import asyncio
import time
from pathlib import Path
from typing import Any

import pytest

from uastbridge.client import (
    Client,
    NativeParseRequest,
    ParseRequest,
    ParseRequestV2,
    SupportedLanguagesRequest,
    VersionRequest,
)
from uastbridge.core.context import background
from uastbridge.core.exceptions import (
    BridgeError,
    CanceledError,
    ConfigurationError,
    DeadlineExceededError,
    DecodeError,
    FatalError,
    PartialParseError,
    TransportError,
)
from uastbridge.core.models import Encoding, Mode, Status
from uastbridge.protocol import v1, v2
from uastbridge.uast import encode
from uastbridge.uast.legacy import Node

MISSING_FILE = "/nonexistent/file.py"


@pytest.fixture
def client(session: Any) -> Client:
    """Create a client over the fake session."""
    return Client(session)


@pytest.fixture
def source_file(tmp_path: Path) -> Path:
    """Create a small Python file."""
    file_path = tmp_path / "hello.py"
    file_path.write_text("print('hi')\n")
    return file_path


class TestBuilderConfiguration:
    """Tests for the fluent setters."""

    def test_setters_return_builder(self, client: Client) -> None:
        request = client.new_parse_request()
        assert request.language("python") is request
        assert request.filename("a.py") is request
        assert request.content("x = 1") is request
        assert request.encoding(Encoding.BASE64) is request
        assert request.timeout(1.0) is request
        assert request.mode(Mode.SEMANTIC) is request

    def test_read_file_sets_content_and_basename(
        self, client: Client, source_file: Path
    ) -> None:
        request = client.new_parse_request_v2().read_file(source_file)
        assert request.error is None
        assert request._internal.content == "print('hi')\n"
        assert request._internal.filename == "hello.py"

    def test_read_file_failure_keeps_chain(self, client: Client) -> None:
        """Test that a failing setter stores the error and still returns the builder."""
        request = client.new_parse_request()
        chained = request.read_file(MISSING_FILE).language("python").mode("semantic")
        assert chained is request
        assert isinstance(request.error, ConfigurationError)
        assert MISSING_FILE in str(request.error)

    def test_read_file_non_utf8(self, client: Client, tmp_path: Path) -> None:
        file_path = tmp_path / "latin1.py"
        file_path.write_bytes(b"\xff\xfe invalid utf-8 \x80\x81")
        request = client.new_native_parse_request().read_file(file_path)
        assert isinstance(request.error, ConfigurationError)

    def test_first_error_wins(self, client: Client) -> None:
        request = client.new_parse_request().read_file(MISSING_FILE).mode("bogus")
        assert request.error is not None
        assert MISSING_FILE in str(request.error)

    def test_invalid_mode_string_is_stored(self, client: Client) -> None:
        request = client.new_parse_request().mode("bogus")
        assert isinstance(request.error, ConfigurationError)
        assert "bogus" in str(request.error)
        assert request._mode is None

    def test_negative_timeout_is_zero(self, client: Client) -> None:
        request = client.new_parse_request().timeout(-5)
        assert request._internal.timeout == 0.0

    def test_client_builders(self, client: Client) -> None:
        assert isinstance(client.new_parse_request(), ParseRequest)
        assert isinstance(client.new_parse_request_v2(), ParseRequestV2)
        assert isinstance(client.new_native_parse_request(), NativeParseRequest)
        assert isinstance(client.new_version_request(), VersionRequest)
        assert isinstance(client.new_supported_languages_request(), SupportedLanguagesRequest)


class TestConfigurationErrors:
    """Tests that stored configuration errors block every call."""

    @pytest.mark.asyncio
    async def test_every_execution_method_raises_stored_error(
        self, client: Client, session: Any
    ) -> None:
        """Test that a missing file short-circuits without any RPC."""
        ctx = background()
        legacy = client.new_parse_request().read_file(MISSING_FILE)
        bridged = client.new_parse_request().read_file(MISSING_FILE).mode(Mode.NATIVE)
        current = client.new_parse_request_v2().read_file(MISSING_FILE)
        native = client.new_native_parse_request().read_file(MISSING_FILE)

        calls = [
            (legacy, legacy.do()),
            (legacy, legacy.do_with_context(ctx)),
            (legacy, legacy.uast()),
            (legacy, legacy.uast_context(ctx)),
            (bridged, bridged.do()),
            (bridged, bridged.do_with_context(ctx)),
            (current, current.do()),
            (current, current.do_context(ctx)),
            (current, current.uast()),
            (current, current.uast_context(ctx)),
            (native, native.do()),
            (native, native.do_with_context(ctx)),
        ]
        for request, call in calls:
            with pytest.raises(ConfigurationError) as exc_info:
                await call
            assert exc_info.value is request.error

        assert session.calls == []

    @pytest.mark.asyncio
    async def test_configuration_error_beats_cancelled_context(
        self, client: Client, session: Any
    ) -> None:
        ctx = background()
        ctx.cancel()
        request = client.new_parse_request().read_file(MISSING_FILE).mode(Mode.SEMANTIC)
        with pytest.raises(ConfigurationError):
            await request.do_with_context(ctx)
        assert session.calls == []


class TestLegacyParse:
    """Tests for the legacy parse request without a mode."""

    @pytest.mark.asyncio
    async def test_uses_only_legacy_surface(self, client: Client, session: Any) -> None:
        """Test that an unset mode never touches the current protocol."""
        resp = await client.new_parse_request().content("print('hi')").language("python").do()

        assert session.called == ["v1.parse"]
        assert resp is session.v1.parse_response

    @pytest.mark.asyncio
    async def test_sends_legacy_fields(self, client: Client, session: Any) -> None:
        await (
            client.new_parse_request()
            .filename("a.py")
            .language("python")
            .content("x = 1")
            .encoding(Encoding.BASE64)
            .timeout(3)
            .do()
        )

        _, request, timeout = session.calls[0]
        assert request == v1.ParseRequest(
            filename="a.py", language="python", content="x = 1", encoding=Encoding.BASE64, timeout=3
        )
        assert timeout is None

    @pytest.mark.asyncio
    async def test_fatal_status_raises(self, client: Client, session: Any) -> None:
        """Test that a Fatal status becomes an error that still holds the response."""
        session.v1.parse_response = v1.ParseResponse(
            status=Status.FATAL, errors=["driver crashed", "exit status 2"]
        )
        with pytest.raises(FatalError) as exc_info:
            await client.new_parse_request().content("x").do()

        assert str(exc_info.value) == "driver crashed\nexit status 2"
        assert exc_info.value.response is session.v1.parse_response

    @pytest.mark.asyncio
    async def test_fatal_status_without_messages(self, client: Client, session: Any) -> None:
        session.v1.parse_response = v1.ParseResponse(status=Status.FATAL)
        with pytest.raises(FatalError) as exc_info:
            await client.new_parse_request().content("x").do()

        assert str(exc_info.value) == "fatal error"

    @pytest.mark.asyncio
    async def test_error_status_is_returned(self, client: Client, session: Any) -> None:
        """Test that a non-fatal Error status is returned, not raised."""
        session.v1.parse_response = v1.ParseResponse(
            status=Status.ERROR, errors=["syntax error at 1:3"], uast=Node("File")
        )
        resp = await client.new_parse_request().content("x(").do()

        assert resp.status is Status.ERROR
        assert resp.errors == ["syntax error at 1:3"]

    @pytest.mark.asyncio
    async def test_transport_error_propagates(self, client: Client, session: Any) -> None:
        error = TransportError("connection refused")
        session.v1.error = error
        with pytest.raises(TransportError) as exc_info:
            await client.new_parse_request().content("x").do()

        assert exc_info.value is error

    @pytest.mark.asyncio
    async def test_context_deadline_passed_to_session(
        self, client: Client, session: Any
    ) -> None:
        with background().with_timeout(5) as ctx:
            await client.new_parse_request().content("x").do_with_context(ctx)

        _, _, timeout = session.calls[0]
        assert timeout is not None
        assert 0 < timeout <= 5

    @pytest.mark.asyncio
    async def test_each_call_is_fresh(self, client: Client, session: Any) -> None:
        """Test that re-executing re-sends the same request with its own message."""
        request = client.new_parse_request().content("x = 1")
        await asyncio.gather(request.do(), request.do())

        assert session.called == ["v1.parse", "v1.parse"]
        first, second = session.calls[0][1], session.calls[1][1]
        assert first == second
        assert first is not second


class TestBridgedParse:
    """Tests for the legacy parse request with a mode (bridged)."""

    @pytest.mark.asyncio
    async def test_uses_only_current_surface_once(
        self, client: Client, session: Any, sample_legacy: Node
    ) -> None:
        """Test that a set mode calls the current protocol exactly once."""
        resp = await (
            client.new_parse_request()
            .filename("hello.py")
            .language("python")
            .content("print('hi')")
            .mode(Mode.SEMANTIC)
            .do()
        )

        assert session.called == ["v2.parse"]
        assert resp.status is Status.OK
        assert resp.errors == []
        assert resp.elapsed > 0
        assert resp.language == "python"
        assert resp.filename == "hello.py"
        assert resp.uast == sample_legacy

    @pytest.mark.asyncio
    async def test_sends_current_request(self, client: Client, session: Any) -> None:
        await (
            client.new_parse_request()
            .filename("hello.py")
            .language("python")
            .content("print('hi')")
            .encoding(Encoding.UTF8)
            .mode("annotated")
            .do()
        )

        _, request, _ = session.calls[0]
        assert request == v2.ParseRequest(
            filename="hello.py", language="python", content="print('hi')", mode=Mode.ANNOTATED
        )

    @pytest.mark.asyncio
    async def test_filename_comes_from_request(self, client: Client, session: Any) -> None:
        session.v2.parse_response.filename = "server-side.py"
        resp = await client.new_parse_request().filename("mine.py").mode(Mode.NATIVE).do()
        assert resp.filename == "mine.py"

    @pytest.mark.asyncio
    async def test_elapsed_covers_round_trip(self, client: Client, session: Any) -> None:
        session.v2.delay = 0.05
        resp = await client.new_parse_request().content("x").mode(Mode.NATIVE).do()
        assert resp.elapsed >= 0.04

    @pytest.mark.asyncio
    async def test_timeout_aborts_slow_call(self, client: Client, session: Any) -> None:
        """Test that a 50ms timeout against a 200ms call fails with a deadline error."""
        session.v2.delay = 0.2
        request = client.new_parse_request().content("x").timeout(0.05).mode(Mode.SEMANTIC)

        started = time.monotonic()
        with pytest.raises(DeadlineExceededError):
            await request.do()

        assert time.monotonic() - started < 0.2
        assert session.v2.cancelled

    @pytest.mark.asyncio
    async def test_timeout_becomes_session_deadline(self, client: Client, session: Any) -> None:
        await client.new_parse_request().content("x").timeout(2).mode(Mode.NATIVE).do()

        _, _, timeout = session.calls[0]
        assert timeout is not None
        assert 0 < timeout <= 2

    @pytest.mark.asyncio
    async def test_zero_timeout_is_unlimited(self, client: Client, session: Any) -> None:
        session.v2.delay = 0.05
        resp = await client.new_parse_request().content("x").timeout(-1).mode(Mode.NATIVE).do()

        assert resp.status is Status.OK
        _, _, timeout = session.calls[0]
        assert timeout is None

    @pytest.mark.asyncio
    async def test_cancellation_aborts_call(self, client: Client, session: Any) -> None:
        session.v2.delay = 1.0
        ctx = background().with_cancel()
        asyncio.get_running_loop().call_later(0.01, ctx.cancel)

        with pytest.raises(CanceledError):
            await client.new_parse_request().content("x").mode(Mode.NATIVE).do_with_context(ctx)

        assert session.v2.cancelled

    @pytest.mark.asyncio
    async def test_partial_parse_raises_with_tree(
        self, client: Client, session: Any, sample_tree: dict[str, Any]
    ) -> None:
        session.v2.parse_response.errors = ["unexpected EOF"]
        with pytest.raises(PartialParseError) as exc_info:
            await client.new_parse_request().content("print(").mode(Mode.SEMANTIC).do()

        assert exc_info.value.tree == sample_tree
        assert exc_info.value.language == "python"

    @pytest.mark.asyncio
    async def test_unrepresentable_tree_raises(self, client: Client, session: Any) -> None:
        """Test that a tree the legacy shape cannot hold fails loudly."""
        session.v2.parse_response = v2.ParseResponse(
            language="python", uast=encode({"@type": "File", "names": ["a", "b"]})
        )
        with pytest.raises(BridgeError) as exc_info:
            await client.new_parse_request().content("x").mode(Mode.NATIVE).do()

        assert exc_info.value.path == "$.names[0]"

    @pytest.mark.asyncio
    async def test_decode_error_keeps_language(self, client: Client, session: Any) -> None:
        session.v2.parse_response = v2.ParseResponse(language="python", uast=b"{not json")
        with pytest.raises(DecodeError) as exc_info:
            await client.new_parse_request().content("x").mode(Mode.NATIVE).do()

        assert exc_info.value.language == "python"

    @pytest.mark.asyncio
    async def test_transport_error_propagates(self, client: Client, session: Any) -> None:
        session.v2.error = TransportError("connection reset")
        with pytest.raises(TransportError, match="connection reset"):
            await client.new_parse_request().content("x").mode(Mode.NATIVE).do()


class TestLegacyUast:
    """Tests for uast() on the legacy request, which always bridges."""

    @pytest.mark.asyncio
    async def test_bridges_without_mode(
        self, client: Client, session: Any, sample_tree: dict[str, Any]
    ) -> None:
        tree, language = await client.new_parse_request().content("print('hi')").uast()

        assert session.called == ["v2.parse"]
        assert tree == sample_tree
        assert language == "python"
        _, request, _ = session.calls[0]
        assert request.mode is None

    @pytest.mark.asyncio
    async def test_passes_mode(self, client: Client, session: Any) -> None:
        await client.new_parse_request().content("x").mode(Mode.SEMANTIC).uast()

        _, request, _ = session.calls[0]
        assert request.mode is Mode.SEMANTIC

    @pytest.mark.asyncio
    async def test_partial_parse_yields_tree(self, client: Client, session: Any) -> None:
        """Test that a partial parse from uast_context still hands over a tree."""
        session.v2.parse_response.errors = ["unexpected EOF"]
        with pytest.raises(PartialParseError) as exc_info:
            await client.new_parse_request().content("print(").uast_context(background())

        assert exc_info.value.tree is not None

    @pytest.mark.asyncio
    async def test_timeout_applies(self, client: Client, session: Any) -> None:
        session.v2.delay = 0.2
        with pytest.raises(DeadlineExceededError):
            await client.new_parse_request().content("x").timeout(0.05).uast()


class TestParseRequestV2:
    """Tests for the current-protocol request."""

    @pytest.mark.asyncio
    async def test_do(self, client: Client, session: Any) -> None:
        resp = await client.new_parse_request_v2().content("x").mode(Mode.ANNOTATED).do()

        assert session.called == ["v2.parse"]
        assert resp is session.v2.parse_response
        _, request, _ = session.calls[0]
        assert request.mode is Mode.ANNOTATED

    @pytest.mark.asyncio
    async def test_mode_defaults_to_server(self, client: Client, session: Any) -> None:
        await client.new_parse_request_v2().content("x").do()

        _, request, _ = session.calls[0]
        assert request.mode is None

    @pytest.mark.asyncio
    async def test_uast(self, client: Client, sample_tree: dict[str, Any]) -> None:
        tree, language = await client.new_parse_request_v2().content("x").uast()
        assert tree == sample_tree
        assert language == "python"

    @pytest.mark.asyncio
    async def test_uast_partial_parse(
        self, client: Client, session: Any, sample_tree: dict[str, Any]
    ) -> None:
        session.v2.parse_response.errors = ["unexpected EOF"]
        with pytest.raises(PartialParseError) as exc_info:
            await client.new_parse_request_v2().content("print(").uast_context(background())

        assert exc_info.value.tree == sample_tree

    @pytest.mark.asyncio
    async def test_do_context_deadline(self, client: Client, session: Any) -> None:
        session.v2.delay = 0.2
        with background().with_timeout(0.05) as ctx:
            with pytest.raises(DeadlineExceededError):
                await client.new_parse_request_v2().content("x").do_context(ctx)

    @pytest.mark.asyncio
    async def test_do_does_not_decode(self, client: Client, session: Any) -> None:
        """Test that do() hands back the raw response even with partial-parse errors."""
        session.v2.parse_response.errors = ["unexpected EOF"]
        resp = await client.new_parse_request_v2().content("print(").do()
        assert resp.errors == ["unexpected EOF"]


class TestLegacyOnlyRequests:
    """Tests for native parse, version and supported languages."""

    @pytest.mark.asyncio
    async def test_native_parse(self, client: Client, session: Any) -> None:
        resp = await (
            client.new_native_parse_request()
            .language("python")
            .content("x = 1")
            .encoding(Encoding.UTF8)
            .do()
        )

        assert session.called == ["v1.native_parse"]
        assert resp.ast == {"ast_type": "Module", "body": []}
        _, request, _ = session.calls[0]
        assert request == v1.NativeParseRequest(language="python", content="x = 1")

    @pytest.mark.asyncio
    async def test_native_parse_fatal(self, client: Client, session: Any) -> None:
        session.v1.native_parse_response = v1.NativeParseResponse(
            status=Status.FATAL, errors=["no driver for language"]
        )
        with pytest.raises(FatalError, match="no driver for language"):
            await client.new_native_parse_request().content("x").do()

    @pytest.mark.asyncio
    async def test_version(self, client: Client, session: Any) -> None:
        resp = await client.new_version_request().do()

        assert session.called == ["v1.version"]
        assert resp.version == "v2.16.1"
        _, request, _ = session.calls[0]
        assert request == v1.VersionRequest()

    @pytest.mark.asyncio
    async def test_version_fatal(self, client: Client, session: Any) -> None:
        session.v1.version_response = v1.VersionResponse(status=Status.FATAL)
        with pytest.raises(FatalError) as exc_info:
            await client.new_version_request().do_with_context(background())

        assert str(exc_info.value) == "fatal error"
        assert exc_info.value.response is session.v1.version_response

    @pytest.mark.asyncio
    async def test_supported_languages(self, client: Client, session: Any) -> None:
        resp = await client.new_supported_languages_request().do()

        assert session.called == ["v1.supported_languages"]
        assert [m.language for m in resp.languages] == ["python"]

    @pytest.mark.asyncio
    async def test_supported_languages_fatal(self, client: Client, session: Any) -> None:
        session.v1.supported_languages_response = v1.SupportedLanguagesResponse(
            status=Status.FATAL, errors=["a", "b"]
        )
        with pytest.raises(FatalError) as exc_info:
            await client.new_supported_languages_request().do()

        assert str(exc_info.value) == "a\nb"

    @pytest.mark.asyncio
    async def test_cancelled_context(self, client: Client, session: Any) -> None:
        ctx = background()
        ctx.cancel()
        with pytest.raises(CanceledError):
            await client.new_version_request().do_with_context(ctx)
        assert session.calls == []
