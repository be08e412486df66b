"""UastBridge custom exceptions."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any


class UastBridgeError(Exception):
    """Base exception for UastBridge errors."""


class ConfigurationError(UastBridgeError):
    """A request builder was misconfigured before execution (e.g. unreadable file)."""


class TransportError(UastBridgeError):
    """The remote call could not complete."""


class ContextError(TransportError):
    """The call was aborted by its context."""


class CanceledError(ContextError):
    """The context was canceled."""

    def __init__(self, message: str = "context canceled") -> None:
        super().__init__(message)


class DeadlineExceededError(ContextError):
    """The context deadline passed before the call returned."""

    def __init__(self, message: str = "context deadline exceeded") -> None:
        super().__init__(message)


class FatalError(UastBridgeError):
    """The service answered with a Fatal status.

    The raw response stays available as ``response`` so callers can still
    inspect it.
    """

    def __init__(self, errors: Iterable[str] = (), response: Any = None) -> None:
        self.errors = tuple(errors)
        self.response = response
        super().__init__(str(self))

    def __str__(self) -> str:
        if not self.errors:
            return "fatal error"
        return "\n".join(self.errors)


class DecodeError(UastBridgeError):
    """The encoded tree in a response could not be decoded."""

    def __init__(self, message: str, language: str = "") -> None:
        super().__init__(message)
        self.language = language


class PartialParseError(DecodeError):
    """The service parsed only part of the source; ``tree`` holds what it got."""

    def __init__(self, errors: Iterable[str], tree: Any, language: str = "") -> None:
        self.errors = tuple(errors)
        self.tree = tree
        message = "partial parse: " + "; ".join(self.errors) if self.errors else "partial parse"
        super().__init__(message, language)


class BridgeError(UastBridgeError):
    """A tree cannot be expressed in the legacy shape without losing data."""

    def __init__(self, message: str, path: str = "") -> None:
        self.path = path
        super().__init__(f"{message} (at {path})" if path else message)


class UnsupportedModeError(UastBridgeError, ValueError):
    """A mode string is not one of the known modes."""

    def __init__(self, mode: str) -> None:
        self.mode = mode
        super().__init__(f"unsupported mode: {mode!r}")
