"""Protocol chunks lexed from a streamed chat-completion response.

Each ``data:`` line of the stream is validated against
:class:`~chatwire.wire.WireStreamEvent` and turned into a short list of
:class:`ProtocolChunk` values. The stream decoder consumes nothing else.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from chatwire.wire import WireDelta, WireStreamEvent

logger = logging.getLogger(__name__)

DATA_PREFIX = "data:"
DONE_MARKER = "[DONE]"

# Checked in this order; the first non-empty field wins.
REASONING_FIELDS = ("reasoning", "reasoning_content")

# Some servers send the string "null" as the function name on every
# continuation delta instead of omitting the field.
NULL_NAME_SENTINEL = "null"


@dataclass(frozen=True)
class AnswerDelta:
    text: str


@dataclass(frozen=True)
class ToolCallStart:
    call_id: str | None
    name: str
    arguments: str = ""


@dataclass(frozen=True)
class ToolCallContinuation:
    arguments: str


@dataclass(frozen=True)
class ReasoningDelta:
    field: str
    text: str


@dataclass(frozen=True)
class Finish:
    """Finish reason and/or output token count reported mid-stream."""

    reason: str | None = None
    output_tokens: int | None = None


@dataclass(frozen=True)
class StreamEnd:
    pass


ProtocolChunk = (
    AnswerDelta
    | ToolCallStart
    | ToolCallContinuation
    | ReasoningDelta
    | Finish
    | StreamEnd
)


def is_call_start(name: str | None) -> bool:
    """Return True if a tool-call delta with this function name opens a new call."""
    return bool(name) and name != NULL_NAME_SENTINEL


def chunks_from_event(event: WireStreamEvent) -> list[ProtocolChunk]:
    """Translate one validated stream event into protocol chunks.

    Parts of a single delta are emitted in the order reasoning, answer
    text, tool calls, finish.
    """
    chunks: list[ProtocolChunk] = []
    reason = None
    if event.error is not None:
        logger.warning(f"Stream reported an error: {event.error}")
    if event.choices:
        choice = event.choices[0]
        delta = choice.delta or WireDelta()
        for field in REASONING_FIELDS:
            text = getattr(delta, field)
            if text:
                chunks.append(ReasoningDelta(field=field, text=text))
                break
        if delta.content:
            chunks.append(AnswerDelta(text=delta.content))
        for call in delta.tool_calls or ():
            function = call.function
            name = function.name if function else None
            arguments = (function.arguments if function else None) or ""
            if is_call_start(name):
                chunks.append(ToolCallStart(
                    call_id=call.id, name=name, arguments=arguments,
                ))
            elif arguments:
                chunks.append(ToolCallContinuation(arguments=arguments))
        reason = choice.finish_reason

    tokens = event.usage.completion_tokens if event.usage else None
    if reason is not None or tokens is not None:
        chunks.append(Finish(reason=reason, output_tokens=tokens))
    return chunks


def lex_line(line: str) -> list[ProtocolChunk] | None:
    """Lex one line of the SSE stream.

    Returns ``None`` for lines that carry no data (blank lines, SSE
    comments, ``event:`` fields). Raises ``ValueError`` (pydantic's
    ``ValidationError`` included) when the data payload is not a valid
    stream event.
    """
    line = line.strip()
    if not line.startswith(DATA_PREFIX):
        return None
    body = line[len(DATA_PREFIX):].strip()
    if body == DONE_MARKER:
        return [StreamEnd()]
    event = WireStreamEvent.model_validate_json(body)
    return chunks_from_event(event)
