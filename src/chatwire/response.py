"""Extraction of results from complete (non-streamed) responses."""

from __future__ import annotations

import json
from dataclasses import dataclass, field

from chatwire.chunks import REASONING_FIELDS
from chatwire.ids import from_wire, new_tool_id
from chatwire.message import AssistantMessage, ToolCallRequestMessage
from chatwire.streaming import DecoderSession, ToolCall, parse_args
from chatwire.wire import WireCompletion, WireToolCall


@dataclass
class Completion:
    """What a response amounted to, streamed or not.

    ``text`` and ``tool_calls`` are independent: a server may return
    both in one reply.
    """

    text: str | None = None
    stop_reason: str | None = None
    output_tokens: int | None = None
    tool_calls: list[ToolCall] = field(default_factory=list)
    reasoning: str | None = None
    reasoning_field: str | None = None

    @classmethod
    def from_session(cls, session: DecoderSession) -> Completion:
        tracker = session.reasoning_tracker
        return cls(
            text=session.text or None,
            stop_reason=session.finish_reason,
            output_tokens=session.output_tokens,
            tool_calls=list(session.tool_calls),
            reasoning=tracker.text or None,
            reasoning_field=tracker.field,
        )

    def to_message(self) -> AssistantMessage:
        """Build the assistant turn to record in the transcript."""
        if self.tool_calls:
            return ToolCallRequestMessage(
                content=self.text,
                tool_calls=self.tool_calls,
                reasoning_field=self.reasoning_field,
                reasoning=self.reasoning,
            )
        return AssistantMessage(
            content=self.text,
            reasoning_field=self.reasoning_field,
            reasoning=self.reasoning,
        )


def blocks_to_text(content: str | list) -> str:
    if isinstance(content, str):
        return content
    parts = []
    for block in content:
        if isinstance(block, dict) and block.get("type") == "text":
            parts.append(block["text"])
        elif isinstance(block, str):
            parts.append(block)
    return "".join(parts)


def _tool_call(tc: WireToolCall) -> ToolCall:
    raw = tc.function.arguments
    return ToolCall(
        id=from_wire(tc.id) if tc.id else new_tool_id(),
        name=tc.function.name,
        arguments=parse_args(raw),
        raw_arguments=raw if isinstance(raw, str) else json.dumps(raw or {}),
    )


def extract(response: dict | str | bytes) -> Completion:
    """Pull text, tool calls, reasoning and stop data out of a response body.

    Accepts the decoded JSON object or its raw text.
    """
    if isinstance(response, (str, bytes)):
        wire = WireCompletion.model_validate_json(response)
    else:
        wire = WireCompletion.model_validate(response)

    output_tokens = wire.usage.completion_tokens if wire.usage else None
    if not wire.choices:
        return Completion(output_tokens=output_tokens)

    choice = wire.choices[0]
    message = choice.message
    text = blocks_to_text(message.content) if message.content else None

    reasoning_field = reasoning = None
    for name in REASONING_FIELDS:
        value = getattr(message, name)
        if value:
            reasoning_field, reasoning = name, value
            break

    return Completion(
        text=text or None,
        stop_reason=choice.finish_reason,
        output_tokens=output_tokens,
        tool_calls=[_tool_call(tc) for tc in message.tool_calls or ()],
        reasoning=reasoning,
        reasoning_field=reasoning_field,
    )
