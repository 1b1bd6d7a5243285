import json
from enum import Enum

from pydantic import BaseModel, field_serializer, model_serializer

from chatwire.ids import to_wire


class MessageRole(Enum):
    SYSTEM = "system"
    ASSISTANT = "assistant"
    USER = "user"
    TOOL = "tool"


class Message(BaseModel):
    role: MessageRole
    content: str | list[dict] | None = None

    @field_serializer('role')
    def serialize_role(self, role: MessageRole, _info) -> str:
        return role.value


class AssistantMessage(Message):
    """Assistant turn, optionally echoing the reasoning that preceded it.

    ``reasoning`` is sent back under ``reasoning_field`` (the field name
    the server used for it) so the next request replays it verbatim.
    """

    role: MessageRole = MessageRole.ASSISTANT
    reasoning_field: str | None = None
    reasoning: str | None = None

    @model_serializer(mode="wrap")
    def serialize_reasoning(self, handler) -> dict:
        data = handler(self)
        field = data.pop("reasoning_field", None)
        text = data.pop("reasoning", None)
        if field and text:
            data[field] = text
        return data


class ToolCallRequestMessage(AssistantMessage):
    tool_calls: list

    @field_serializer("tool_calls")
    def serialize_tool_calls(self, tool_calls: list) -> list[dict]:
        return [
            {
                "id": to_wire(t.id),
                "type": "function",
                "function": {
                    "arguments": json.dumps(t.arguments),
                    "name": t.name
                }
            }
            for t in tool_calls
        ]


class ToolCallResultMessage(Message):
    tool_call_id: str

    @field_serializer("tool_call_id")
    def serialize_tool_call_id(self, tool_call_id: str) -> str:
        return to_wire(tool_call_id)
