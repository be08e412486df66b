"""
Trees returned by the parsing service.

Two shapes exist, one per protocol generation:

    - nodes: current-generation tree made of plain dicts, lists and values,
      plus encode()/decode() for its wire payload
    - legacy: the fixed legacy Node shape, plus to_node() which converts a
      current-generation tree without dropping data
"""

from uastbridge.uast.legacy import INTERNAL_ROLE_KEY, Node, to_node
from uastbridge.uast.nodes import KEY_POS, KEY_ROLES, KEY_TOKEN, KEY_TYPE, decode, encode

__all__ = [
    "Node",
    "to_node",
    "INTERNAL_ROLE_KEY",
    "KEY_TYPE",
    "KEY_TOKEN",
    "KEY_ROLES",
    "KEY_POS",
    "encode",
    "decode",
]
