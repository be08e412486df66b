"""
Core module: shared types, exceptions, and call contexts.

Models (models.py):
    - Mode: transformation level requested from the service
    - Status/Encoding: legacy response status and content encoding
    - Position: a position in a source file

Exceptions (exceptions.py):
    - UastBridgeError: Base exception for all uastbridge errors
    - ConfigurationError: builder misconfigured before execution
    - TransportError/CanceledError/DeadlineExceededError: call did not complete
    - FatalError: service answered with a Fatal status
    - DecodeError/PartialParseError: tree payload could not be (fully) used
    - BridgeError: tree has no lossless legacy equivalent

Context (context.py):
    - Context: deadline and cancellation carried into every call
"""

from uastbridge.core.context import Context, background
from uastbridge.core.exceptions import (
    BridgeError,
    CanceledError,
    ConfigurationError,
    ContextError,
    DeadlineExceededError,
    DecodeError,
    FatalError,
    PartialParseError,
    TransportError,
    UastBridgeError,
    UnsupportedModeError,
)
from uastbridge.core.models import Encoding, Mode, Position, Status, parse_mode

__all__ = [
    # Models
    "Mode",
    "Status",
    "Encoding",
    "Position",
    "parse_mode",
    # Exceptions
    "UastBridgeError",
    "ConfigurationError",
    "TransportError",
    "ContextError",
    "CanceledError",
    "DeadlineExceededError",
    "FatalError",
    "DecodeError",
    "PartialParseError",
    "BridgeError",
    "UnsupportedModeError",
    # Context
    "Context",
    "background",
]
