"""
UastBridge: client for a remote UAST extraction service.

UastBridge sends parse requests to the service and bridges its two protocol
generations, enabling you to:
- Keep issuing legacy-shaped parse requests while they run on the current protocol
- Pick a transformation mode (native, annotated, semantic) for the returned tree
- Query the server version and its supported languages

Usage:
    from uastbridge import Client, Mode

    async with Client.connect("http://localhost:9432") as client:
        resp = await client.new_parse_request().read_file("app.py").mode(Mode.SEMANTIC).do()
        print(resp.language, resp.uast)
"""

from uastbridge.client import Client
from uastbridge.core import Context, Mode, background, parse_mode

__version__ = "0.1.0"

__all__ = ["Client", "Context", "Mode", "background", "parse_mode", "__version__"]
