import uuid
from collections.abc import Sequence

from pydantic import BaseModel, Field, SerializeAsAny

from chatwire.content import (
    DEFAULT_PROMPT_PREFIX,
    DEFAULT_RESPONSE_PREFIX,
    ContentPart,
    encode,
)
from chatwire.message import Message, MessageRole, ToolCallResultMessage


class Session(BaseModel):
    """A conversation transcript in send order.

    Serialization keeps each message's own fields, so tool-call turns and
    tool results dump with their ids.
    """

    session_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    transcript: list[SerializeAsAny[Message]] = Field(default_factory=list)

    def add_user(
        self,
        content: str | Sequence[ContentPart],
        prompt_prefix: str = DEFAULT_PROMPT_PREFIX,
        response_prefix: str = DEFAULT_RESPONSE_PREFIX,
    ) -> Message:
        if not isinstance(content, str):
            content = encode(content, prompt_prefix, response_prefix)
        message = Message(role=MessageRole.USER, content=content)
        self.transcript.append(message)
        return message

    def add_tool_result(self, call, output: str) -> ToolCallResultMessage:
        """Record the result of executing ``call`` as a tool reply turn."""
        message = ToolCallResultMessage(
            role=MessageRole.TOOL, content=output, tool_call_id=call.id,
        )
        self.transcript.append(message)
        return message

    def wire_messages(self) -> list[dict]:
        return [m.model_dump() for m in self.transcript]
