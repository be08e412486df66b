"""
MCP server for UastBridge.

Exposes the UAST service to LLMs via the Model Context Protocol.

Tools:
    - uast_parse: Parse source code into a UAST (legacy shape, or current shape with a mode)
    - uast_native_parse: Parse source code into the driver's native AST
    - uast_version: Get the server version
    - uast_languages: List supported languages

Usage:
    Install: pip install mcp-server-uastbridge
    Run: mcp-server-uastbridge
"""

import asyncio

from uastbridge.mcp.server import serve as _serve


def serve() -> None:
    """Entry point for the MCP server."""
    asyncio.run(_serve())


__all__ = ["serve"]
