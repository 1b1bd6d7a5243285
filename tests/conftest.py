import json
from dataclasses import dataclass, field

import pytest

from chatwire.config import ModelInfo, RequestOptions
from chatwire.session import Session


# ---------------------------------------------------------------------------
# Wire builders (mirror the OpenAI streaming shape)
# ---------------------------------------------------------------------------

def delta_event(
    content: str | None = None,
    tool_calls: list[dict] | None = None,
    finish_reason: str | None = None,
    usage: dict | None = None,
    **reasoning: str,
) -> dict:
    """One streamed event whose delta carries the given parts.

    Pass ``reasoning="..."`` or ``reasoning_content="..."`` for thinking
    text.
    """
    delta: dict = {}
    if content is not None:
        delta["content"] = content
    if tool_calls is not None:
        delta["tool_calls"] = tool_calls
    delta.update(reasoning)
    event: dict = {"choices": [{"index": 0, "delta": delta, "finish_reason": finish_reason}]}
    if usage is not None:
        event["usage"] = usage
    return event


def tool_start(name: str, arguments: str = "", call_id: str | None = "call_1", index: int = 0) -> dict:
    call: dict = {"index": index, "type": "function", "function": {"name": name, "arguments": arguments}}
    if call_id is not None:
        call["id"] = call_id
    return call


def tool_more(arguments: str, index: int = 0) -> dict:
    return {"index": index, "function": {"arguments": arguments}}


def sse(*events: dict, done: bool = True) -> str:
    """Render events as the ``data:`` lines of a streamed response."""
    lines = [f"data: {json.dumps(e)}\n\n" for e in events]
    if done:
        lines.append("data: [DONE]\n\n")
    return "".join(lines)


def completion_body(
    content: str | None = "hi",
    tool_calls: list[dict] | None = None,
    finish_reason: str | None = "stop",
    completion_tokens: int | None = 7,
    **extra,
) -> dict:
    """A non-streamed response body."""
    message: dict = {"role": "assistant", "content": content}
    if tool_calls is not None:
        message["tool_calls"] = tool_calls
    message.update(extra)
    body: dict = {
        "id": "chatcmpl-1",
        "model": "gpt-4o",
        "choices": [{"index": 0, "message": message, "finish_reason": finish_reason}],
    }
    if completion_tokens is not None:
        body["usage"] = {"prompt_tokens": 3, "completion_tokens": completion_tokens}
    return body


def wire_tool_call(name: str, args: dict, call_id: str = "call_1") -> dict:
    return {
        "id": call_id,
        "type": "function",
        "function": {"name": name, "arguments": json.dumps(args)},
    }


# ---------------------------------------------------------------------------
# Fake OpenAI SDK surfaces
# ---------------------------------------------------------------------------

@dataclass
class FakeCompletion:
    """Stands in for the SDK's ChatCompletion model."""

    body: dict

    def model_dump(self) -> dict:
        return self.body


class FakeStreamResponse:
    def __init__(self, pieces: list[str]):
        self.pieces = pieces

    async def iter_text(self):
        for piece in self.pieces:
            yield piece


@dataclass
class FakeStreamingCreate:
    """Replacement for ``client.chat.completions.with_streaming_response``.

    ``pieces`` are handed out by ``iter_text()`` exactly as given, so
    tests choose where the transport splits the stream.
    """

    pieces: list[str]
    error: Exception | None = None
    calls: list[dict] = field(default_factory=list)
    closed: bool = False

    def create(self, **kwargs):
        self.calls.append(kwargs)
        return self

    async def __aenter__(self):
        if self.error is not None:
            raise self.error
        return FakeStreamResponse(self.pieces)

    async def __aexit__(self, *exc):
        self.closed = True
        return False


def split_every(text: str, size: int) -> list[str]:
    return [text[i:i + size] for i in range(0, len(text), size)]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def session():
    s = Session(session_id="s1")
    s.add_user("What's the weather in Paris?")
    return s


@pytest.fixture
def gpt4o():
    return ModelInfo(id="gpt-4o")


@pytest.fixture
def o3():
    return ModelInfo(id="o3")


@pytest.fixture
def options():
    return RequestOptions()
