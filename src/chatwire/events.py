"""Events yielded while a provider streams a response."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class StreamEvent:
    """Base for all streaming events."""


@dataclass
class TextDeltaEvent(StreamEvent):
    """Answer text decoded from the latest read."""

    content: str = ""


@dataclass
class ReasoningEvent(StreamEvent):
    """Reasoning text so far. Cumulative, not a delta."""

    text: str = ""


@dataclass
class StreamCompleteEvent(StreamEvent):
    """Final event, carrying the :class:`~chatwire.response.Completion`."""

    result: Any = None
