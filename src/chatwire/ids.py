"""Tool-call identifier normalization.

Internally a tool call is identified by a bare id. On the wire this
backend expects a ``call_`` prefix. Ids minted by other backends keep
their own prefix so that replaying their tool results does not rewrite
them.
"""

import hashlib
import random
import time

WIRE_PREFIX = "call_"
FOREIGN_PREFIXES = ("toolu_",)
ID_LENGTH = 24


def new_tool_id() -> str:
    """Mint a fresh bare tool-call id."""
    seed = f"{random.random()}{time.time()}".encode()
    return hashlib.md5(seed, usedforsecurity=False).hexdigest()[:ID_LENGTH]


def to_wire(tool_id: str | None = None) -> str:
    if not tool_id:
        tool_id = new_tool_id()
    if tool_id.startswith(FOREIGN_PREFIXES):
        return tool_id
    return f"{WIRE_PREFIX}{tool_id}"


def from_wire(tool_id: str) -> str:
    return tool_id.removeprefix(WIRE_PREFIX)
