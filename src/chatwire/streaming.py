"""Incremental decoding of streamed chat-completion responses.

The transport hands :func:`decode` the response text received so far,
as often as it likes. A :class:`DecoderSession` remembers how far into
that text it has read, so each call lexes only the newly completed
lines and returns only the answer text they carried.

Tool calls are reassembled by :class:`ToolCallAccumulator`, whose
argument strings arrive as fragments in :class:`FragmentStore` cells.
"Thinking" text is kept apart from the answer by
:class:`ReasoningTracker`.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum

from chatwire.chunks import (
    AnswerDelta,
    Finish,
    ProtocolChunk,
    ReasoningDelta,
    StreamEnd,
    ToolCallContinuation,
    ToolCallStart,
    lex_line,
)
from chatwire.ids import from_wire, new_tool_id
from chatwire.message import AssistantMessage, Message, ToolCallRequestMessage

logger = logging.getLogger(__name__)


def parse_args(raw: str | dict | None) -> dict:
    """Parse a tool-call argument string, yielding ``{}`` on failure."""
    if isinstance(raw, dict):
        return raw
    if not raw or not raw.strip():
        return {}
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning(f"Discarding unparseable tool arguments {raw!r}: {e}")
        return {}
    if not isinstance(value, dict):
        logger.warning(f"Discarding non-object tool arguments {raw!r}")
        return {}
    return value


class FragmentStore:
    """Ordered argument fragments of one in-progress tool call."""

    def __init__(self, first: str = "") -> None:
        self._fragments: list[str] = [first] if first else []

    def append(self, fragment: str) -> None:
        self._fragments.append(fragment)

    def flatten(self) -> str:
        return "".join(self._fragments)

    def __len__(self) -> int:
        return len(self._fragments)


@dataclass
class ToolCallRecord:
    """A tool call seen in the stream, open until the next one starts."""

    name: str
    id: str | None = None
    fragments: FragmentStore | None = field(default_factory=FragmentStore)
    arguments: str | None = None

    @property
    def is_open(self) -> bool:
        return self.fragments is not None

    def close(self) -> str:
        if self.fragments is not None:
            self.arguments = self.fragments.flatten()
            self.fragments = None
        return self.arguments or ""


@dataclass
class ToolCall:
    """A resolved tool call ready for the transcript."""

    id: str = ""
    name: str = ""
    arguments: dict = field(default_factory=dict)
    raw_arguments: str = ""


class ToolCallAccumulator:
    """Assembles complete tool calls from streaming fragments.

    Records are kept in arrival order. Only the most recent record can be
    open; starting a new call closes it.
    """

    def __init__(self) -> None:
        self._records: list[ToolCallRecord] = []

    @property
    def records(self) -> tuple[ToolCallRecord, ...]:
        return tuple(self._records)

    @property
    def open_record(self) -> ToolCallRecord | None:
        if self._records and self._records[-1].is_open:
            return self._records[-1]
        return None

    def start(self, chunk: ToolCallStart) -> None:
        self.close_open()
        self._records.append(ToolCallRecord(
            name=chunk.name,
            id=chunk.call_id,
            fragments=FragmentStore(chunk.arguments),
        ))

    def extend(self, chunk: ToolCallContinuation) -> bool:
        record = self.open_record
        if record is None:
            return False
        record.fragments.append(chunk.arguments)
        return True

    def close_open(self) -> None:
        record = self.open_record
        if record is not None:
            record.close()

    def finalize(self) -> list[ToolCall]:
        """Close any open record and return resolved calls in arrival order."""
        self.close_open()
        calls = [
            ToolCall(
                id=from_wire(r.id) if r.id else new_tool_id(),
                name=r.name,
                arguments=parse_args(r.arguments),
                raw_arguments=r.arguments or "",
            )
            for r in self._records
        ]
        self._records.clear()
        return calls


class ReasoningPhase(Enum):
    NONE = "none"
    ACTIVE = "active"
    DONE = "done"


class ReasoningTracker:
    """Separates reasoning text from the answer.

    The phase latches to ``DONE`` on the first answer text seen while
    reasoning is active; reasoning arriving after that is ignored.
    """

    def __init__(self) -> None:
        self.phase = ReasoningPhase.NONE
        self.field: str | None = None
        self._seen: list[str] = []
        self._pending: list[str] = []

    @property
    def text(self) -> str:
        return "".join(self._seen)

    def feed(self, chunk: ReasoningDelta) -> bool:
        if self.phase is ReasoningPhase.DONE or not chunk.text:
            return False
        if self.phase is ReasoningPhase.NONE:
            self.phase = ReasoningPhase.ACTIVE
            self.field = chunk.field
            logger.debug(f"Reasoning started in field {chunk.field!r}")
        self._seen.append(chunk.text)
        self._pending.append(chunk.text)
        return True

    def answer_started(self) -> None:
        if self.phase is ReasoningPhase.ACTIVE:
            self.phase = ReasoningPhase.DONE
            logger.debug("Reasoning done")

    def drain(self) -> tuple[str, str] | None:
        """Return ``(field, text)`` for replay and forget the held chunks."""
        if not self._pending:
            return None
        echo = (self.field, "".join(self._pending))
        self._pending.clear()
        return echo


@dataclass
class DecoderSession:
    """State of one streamed response, owned by the request that made it.

    Args:
        transcript: Conversation history. At stream end one assistant turn
            is appended to it: the tool-call batch if the response
            requested tools, otherwise the answer text. Reasoning held
            since the last turn is echoed on it.
    """

    transcript: list[Message] | None = None
    cursor: int = 0
    done: bool = False
    finish_reason: str | None = None
    output_tokens: int | None = None
    tool_calls: list[ToolCall] = field(default_factory=list)
    message: AssistantMessage | None = None
    accumulator: ToolCallAccumulator = field(
        default_factory=ToolCallAccumulator, repr=False,
    )
    reasoning_tracker: ReasoningTracker = field(
        default_factory=ReasoningTracker, repr=False,
    )
    _answer: list[str] = field(default_factory=list, repr=False)

    @property
    def text(self) -> str:
        return "".join(self._answer)

    @property
    def reasoning(self) -> str:
        return self.reasoning_tracker.text

    def feed(self, chunks: Iterable[ProtocolChunk]) -> str:
        """Apply already-lexed chunks; return the answer text they carried."""
        emitted = []
        for chunk in chunks:
            if self.done:
                break
            text = self.apply(chunk)
            if text:
                emitted.append(text)
        return "".join(emitted)

    def apply(self, chunk: ProtocolChunk) -> str:
        if isinstance(chunk, AnswerDelta):
            if not chunk.text:
                return ""
            self.reasoning_tracker.answer_started()
            self._answer.append(chunk.text)
            return chunk.text
        if isinstance(chunk, ToolCallStart):
            self.accumulator.start(chunk)
        elif isinstance(chunk, ToolCallContinuation):
            if not self.accumulator.extend(chunk):
                logger.warning(
                    f"Dropping tool argument fragment with no open call: "
                    f"{chunk.arguments!r}"
                )
        elif isinstance(chunk, ReasoningDelta):
            self.reasoning_tracker.feed(chunk)
        elif isinstance(chunk, Finish):
            if chunk.reason is not None:
                self.finish_reason = chunk.reason
            if chunk.output_tokens is not None:
                self.output_tokens = chunk.output_tokens
        elif isinstance(chunk, StreamEnd):
            self._end()
        return ""

    def _end(self) -> None:
        self.done = True
        self.tool_calls = self.accumulator.finalize()
        echo = self.reasoning_tracker.drain()
        field_name, reasoning = echo if echo else (None, None)
        if self.tool_calls:
            self.message = ToolCallRequestMessage(
                content=None,
                tool_calls=self.tool_calls,
                reasoning_field=field_name,
                reasoning=reasoning,
            )
        elif self._answer or reasoning:
            self.message = AssistantMessage(
                content=self.text or None,
                reasoning_field=field_name,
                reasoning=reasoning,
            )
        else:
            return
        if self.transcript is not None:
            self.transcript.append(self.message)


def decode(session: DecoderSession, buffer: str) -> str:
    """Decode newly completed lines of ``buffer``; return the answer text.

    ``buffer`` is everything received so far for this response. Each
    call must pass the same text, possibly extended. An unterminated last
    line is only consumed once it lexes as a complete event; until then
    it is left for the next call. A complete line that does not lex is
    logged and skipped.
    """
    emitted = []
    while not session.done and session.cursor < len(buffer):
        start = session.cursor
        end = buffer.find("\n", start)
        complete = end != -1
        line = buffer[start:end] if complete else buffer[start:]
        try:
            chunks = lex_line(line)
        except ValueError as e:
            if not complete:
                break
            logger.warning(f"Skipping malformed stream line {line!r}: {e}")
            chunks = []
        if chunks is None:
            if not complete:
                break
            chunks = []
        session.cursor = end + 1 if complete else len(buffer)
        emitted.append(session.feed(chunks))
    return "".join(emitted)
