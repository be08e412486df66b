"""
Client layer: request builders over an injected session.

Components:
    - Client: creates request builders bound to a session
    - ParseRequest: legacy parse; bridged over the current protocol when a mode is set
    - ParseRequestV2: current-protocol parse
    - NativeParseRequest, VersionRequest, SupportedLanguagesRequest: legacy-only requests
    - Session: protocol for the two RPC surfaces (v1, v2)
    - HttpSession: Session over httpx with a JSON envelope
"""

from uastbridge.client.client import Client
from uastbridge.client.http import HttpSession, get_default_endpoint
from uastbridge.client.requests import (
    NativeParseRequest,
    ParseRequest,
    ParseRequestV2,
    SupportedLanguagesRequest,
    VersionRequest,
)
from uastbridge.client.session import CurrentService, LegacyService, Session

__all__ = [
    "Client",
    "HttpSession",
    "get_default_endpoint",
    "Session",
    "LegacyService",
    "CurrentService",
    "ParseRequest",
    "ParseRequestV2",
    "NativeParseRequest",
    "VersionRequest",
    "SupportedLanguagesRequest",
]
