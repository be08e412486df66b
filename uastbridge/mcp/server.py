"""MCP server implementation for UastBridge."""

from __future__ import annotations

import json
import logging
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from uastbridge.client import Client, get_default_endpoint
from uastbridge.core.exceptions import PartialParseError, UastBridgeError

logger = logging.getLogger(__name__)

server = Server("uastbridge")

_SOURCE_PROPERTIES: dict[str, Any] = {
    "content": {
        "type": "string",
        "description": "Source code to parse (use this or path)",
    },
    "path": {
        "type": "string",
        "description": "Local file to parse (use this or content)",
    },
    "filename": {
        "type": "string",
        "description": "Filename of the content, helps language detection",
    },
    "language": {
        "type": "string",
        "description": "Language of the source (optional, guessed if omitted)",
    },
}


def _get_client() -> Client:
    """Get a client for the configured endpoint."""
    return Client.connect(get_default_endpoint())


@server.list_tools()  # type: ignore[no-untyped-call, untyped-decorator]
async def list_tools() -> list[Tool]:
    """List available tools."""
    return [
        Tool(
            name="uast_parse",
            description=(
                "Parse source code into a UAST. Without a mode the legacy protocol is used; "
                "with a mode the tree is returned in the current shape, transformed at the "
                "requested level."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    **_SOURCE_PROPERTIES,
                    "mode": {
                        "type": "string",
                        "enum": ["native", "annotated", "semantic"],
                        "description": "Transformation level (optional)",
                    },
                    "timeout": {
                        "type": "number",
                        "description": "Timeout in seconds (default: none)",
                        "default": 0,
                    },
                },
            },
        ),
        Tool(
            name="uast_native_parse",
            description="Parse source code into the native AST of its language driver.",
            inputSchema={
                "type": "object",
                "properties": dict(_SOURCE_PROPERTIES),
            },
        ),
        Tool(
            name="uast_version",
            description="Get the version of the UAST server.",
            inputSchema={
                "type": "object",
                "properties": {},
            },
        ),
        Tool(
            name="uast_languages",
            description="List the languages supported by the UAST server.",
            inputSchema={
                "type": "object",
                "properties": {},
            },
        ),
    ]


@server.call_tool()  # type: ignore[untyped-decorator]
async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
    """Handle tool calls."""
    try:
        async with _get_client() as client:
            if name == "uast_parse":
                result = await _handle_parse(client, arguments)
            elif name == "uast_native_parse":
                result = await _handle_native_parse(client, arguments)
            elif name == "uast_version":
                result = await _handle_version(client)
            elif name == "uast_languages":
                result = await _handle_languages(client)
            else:
                result = {"error": f"Unknown tool: {name}"}

        return [TextContent(type="text", text=json.dumps(result, indent=2))]

    except PartialParseError as e:
        payload = {"error": str(e), "language": e.language, "partial_tree": e.tree}
        return [TextContent(type="text", text=json.dumps(payload))]
    except UastBridgeError as e:
        logger.info("tool %s failed: %s", name, e)
        return [TextContent(type="text", text=json.dumps({"error": str(e)}))]


def _configure(request: Any, arguments: dict[str, Any]) -> Any:
    """Apply the shared source arguments to a request builder."""
    if arguments.get("path"):
        request.read_file(arguments["path"])
    if arguments.get("content") is not None:
        request.content(arguments["content"])
    if arguments.get("filename"):
        request.filename(arguments["filename"])
    if arguments.get("language"):
        request.language(arguments["language"])
    return request


async def _handle_parse(client: Client, arguments: dict[str, Any]) -> dict[str, Any]:
    """Handle uast_parse tool."""
    request = _configure(client.new_parse_request(), arguments)
    request.timeout(float(arguments.get("timeout") or 0))
    if arguments.get("mode"):
        tree, language = await request.mode(arguments["mode"]).uast()
        return {"language": language, "mode": arguments["mode"], "uast": tree}

    resp = await request.do()
    return {
        "status": resp.status.value,
        "errors": resp.errors,
        "language": resp.language,
        "filename": resp.filename,
        "elapsed": resp.elapsed,
        "uast": resp.uast.to_dict() if resp.uast else None,
    }


async def _handle_native_parse(client: Client, arguments: dict[str, Any]) -> dict[str, Any]:
    """Handle uast_native_parse tool."""
    resp = await _configure(client.new_native_parse_request(), arguments).do()
    return {
        "status": resp.status.value,
        "errors": resp.errors,
        "language": resp.language,
        "ast": resp.ast,
    }


async def _handle_version(client: Client) -> dict[str, Any]:
    """Handle uast_version tool."""
    resp = await client.new_version_request().do()
    return {
        "version": resp.version,
        "build": resp.build.isoformat() if resp.build else None,
    }


async def _handle_languages(client: Client) -> dict[str, Any]:
    """Handle uast_languages tool."""
    resp = await client.new_supported_languages_request().do()
    return {"languages": [m.to_dict() for m in resp.languages]}


async def serve() -> None:
    """Run the MCP server."""
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())
