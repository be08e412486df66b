"""
Wire messages of the two protocol generations.

    - v1: legacy protocol (status/errors envelope, encoding, timeout, fixed tree shape)
    - v2: current protocol (transformation mode, encoded tree payload)

Usage:
    from uastbridge.protocol import v1, v2
"""

from uastbridge.protocol import v1, v2

__all__ = ["v1", "v2"]
