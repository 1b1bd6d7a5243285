"""OpenAI-style chat-completion protocol layer.

Builds request bodies from a conversation transcript, decodes streamed
and complete responses, and keeps tool-call turns consistent across
round trips.
"""

from chatwire.chunks import (
    AnswerDelta,
    Finish,
    ProtocolChunk,
    ReasoningDelta,
    StreamEnd,
    ToolCallContinuation,
    ToolCallStart,
)
from chatwire.config import BackendConfig, ModelInfo, RequestOptions
from chatwire.content import FilePart, MediaPart, TextPart, UrlPart, encode
from chatwire.exceptions import ChatWireError, ContentEncodingError
from chatwire.ids import from_wire, to_wire
from chatwire.instrumentation import instrument, uninstrument
from chatwire.message import (
    AssistantMessage,
    Message,
    MessageRole,
    ToolCallRequestMessage,
    ToolCallResultMessage,
)
from chatwire.payload import build_payload
from chatwire.provider import ModelProvider, OpenAICompatibleProvider, OpenAIProvider
from chatwire.response import Completion, extract
from chatwire.session import Session
from chatwire.streaming import DecoderSession, ReasoningPhase, ToolCall, decode
from chatwire.tools import Tool, tool

__all__ = [
    "AnswerDelta",
    "AssistantMessage",
    "BackendConfig",
    "ChatWireError",
    "Completion",
    "ContentEncodingError",
    "DecoderSession",
    "FilePart",
    "Finish",
    "MediaPart",
    "Message",
    "MessageRole",
    "ModelInfo",
    "ModelProvider",
    "OpenAICompatibleProvider",
    "OpenAIProvider",
    "ProtocolChunk",
    "ReasoningDelta",
    "ReasoningPhase",
    "RequestOptions",
    "Session",
    "StreamEnd",
    "TextPart",
    "Tool",
    "ToolCall",
    "ToolCallContinuation",
    "ToolCallRequestMessage",
    "ToolCallResultMessage",
    "ToolCallStart",
    "UrlPart",
    "build_payload",
    "decode",
    "encode",
    "extract",
    "from_wire",
    "instrument",
    "tool",
    "to_wire",
    "uninstrument",
]
