"""Pydantic models for the chat-completions wire format.

Incoming JSON is validated into these models once, at the boundary. The
decoder and extractor only ever see typed attributes afterwards.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class _WireModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class WireUsage(_WireModel):
    prompt_tokens: int | None = None
    completion_tokens: int | None = None


class WireFunctionDelta(_WireModel):
    name: str | None = None
    arguments: str | None = None


class WireToolCallDelta(_WireModel):
    index: int | None = None
    id: str | None = None
    function: WireFunctionDelta | None = None


class WireDelta(_WireModel):
    content: str | None = None
    tool_calls: list[WireToolCallDelta] | None = None
    reasoning: str | None = None
    reasoning_content: str | None = None


class WireStreamChoice(_WireModel):
    delta: WireDelta | None = None
    finish_reason: str | None = None


class WireStreamEvent(_WireModel):
    """One ``data:`` line of a streamed response."""

    choices: list[WireStreamChoice] = Field(default_factory=list)
    usage: WireUsage | None = None
    error: dict | str | None = None


class WireFunction(_WireModel):
    name: str = ""
    arguments: str | dict | None = None


class WireToolCall(_WireModel):
    id: str | None = None
    type: str = "function"
    function: WireFunction = Field(default_factory=WireFunction)


class WireMessage(_WireModel):
    role: str = "assistant"
    content: str | list | None = None
    tool_calls: list[WireToolCall] | None = None
    reasoning: str | None = None
    reasoning_content: str | None = None


class WireChoice(_WireModel):
    message: WireMessage = Field(default_factory=WireMessage)
    finish_reason: str | None = None


class WireCompletion(_WireModel):
    """A complete, non-streamed response body."""

    choices: list[WireChoice] = Field(default_factory=list)
    usage: WireUsage | None = None
