import json

import pytest
from pydantic import ValidationError

from chatwire.chunks import AnswerDelta, ReasoningDelta, StreamEnd, ToolCallStart, Finish
from chatwire.message import AssistantMessage, ToolCallRequestMessage
from chatwire.response import Completion, blocks_to_text, extract
from chatwire.streaming import DecoderSession, ToolCall

from tests.conftest import completion_body, wire_tool_call


class TestExtract:
    def test_text_response(self):
        result = extract(completion_body(content="Hello!"))

        assert result.text == "Hello!"
        assert result.stop_reason == "stop"
        assert result.output_tokens == 7
        assert result.tool_calls == []
        assert result.reasoning is None

    def test_accepts_raw_json(self):
        body = json.dumps(completion_body(content="Hello!"))
        assert extract(body).text == "Hello!"
        assert extract(body.encode()).text == "Hello!"

    @pytest.mark.parametrize("content", ["", None])
    def test_empty_text_is_none(self, content):
        assert extract(completion_body(content=content)).text is None

    def test_content_blocks_joined(self):
        blocks = [{"type": "text", "text": "a"}, {"type": "refusal", "refusal": "x"}, {"type": "text", "text": "b"}]
        assert extract(completion_body(content=blocks)).text == "ab"

    def test_tool_calls(self):
        body = completion_body(
            content=None,
            finish_reason="tool_calls",
            tool_calls=[
                wire_tool_call("get_weather", {"city": "Paris"}, call_id="call_w1"),
                wire_tool_call("get_time", {}, call_id="toolu_9"),
            ],
        )
        result = extract(body)

        assert result.text is None
        assert result.stop_reason == "tool_calls"
        assert [(c.id, c.name, c.arguments) for c in result.tool_calls] == [
            ("w1", "get_weather", {"city": "Paris"}),
            ("toolu_9", "get_time", {}),
        ]
        assert result.tool_calls[0].raw_arguments == '{"city": "Paris"}'

    def test_text_and_tool_calls_together(self):
        body = completion_body(
            content="Let me look.",
            tool_calls=[wire_tool_call("f", {"a": 1})],
        )
        result = extract(body)

        assert result.text == "Let me look."
        assert len(result.tool_calls) == 1

    def test_unparseable_arguments_give_empty_dict(self):
        call = {"id": "call_1", "type": "function", "function": {"name": "f", "arguments": "{oops"}}
        (tc,) = extract(completion_body(tool_calls=[call])).tool_calls

        assert tc.arguments == {}
        assert tc.raw_arguments == "{oops"

    def test_object_arguments_accepted(self):
        call = {"id": "call_1", "function": {"name": "f", "arguments": {"a": 1}}}
        (tc,) = extract(completion_body(tool_calls=[call])).tool_calls

        assert tc.arguments == {"a": 1}
        assert tc.raw_arguments == '{"a": 1}'

    def test_missing_id_minted(self):
        call = {"function": {"name": "f", "arguments": "{}"}}
        (tc,) = extract(completion_body(tool_calls=[call])).tool_calls
        assert tc.id

    @pytest.mark.parametrize("field", ["reasoning", "reasoning_content"])
    def test_reasoning(self, field):
        result = extract(completion_body(content="42", **{field: "I thought."}))

        assert result.reasoning == "I thought."
        assert result.reasoning_field == field

    def test_missing_usage_and_finish_reason(self):
        result = extract(completion_body(finish_reason=None, completion_tokens=None))

        assert result.stop_reason is None
        assert result.output_tokens is None

    def test_no_choices(self):
        result = extract({"choices": [], "usage": {"completion_tokens": 0}})

        assert result == Completion(output_tokens=0)

    def test_malformed_body_raises(self):
        with pytest.raises(ValidationError):
            extract("{not json")


class TestCompletion:
    def test_from_session(self):
        session = DecoderSession()
        session.feed([
            ReasoningDelta("reasoning_content", "hmm"),
            AnswerDelta("Hi"),
            Finish(reason="stop", output_tokens=3),
            StreamEnd(),
        ])
        result = Completion.from_session(session)

        assert result == Completion(
            text="Hi",
            stop_reason="stop",
            output_tokens=3,
            reasoning="hmm",
            reasoning_field="reasoning_content",
        )

    def test_from_session_tool_calls(self):
        session = DecoderSession()
        session.feed([ToolCallStart(call_id="call_x", name="f", arguments='{"a": 1}'), StreamEnd()])
        result = Completion.from_session(session)

        assert result.text is None
        assert result.tool_calls == [ToolCall(id="x", name="f", arguments={"a": 1}, raw_arguments='{"a": 1}')]

    def test_to_message_text(self):
        message = Completion(text="Hi", reasoning="r", reasoning_field="reasoning").to_message()

        assert type(message) is AssistantMessage
        assert message.model_dump() == {"role": "assistant", "content": "Hi", "reasoning": "r"}

    def test_to_message_tool_calls(self):
        call = ToolCall(id="x", name="f", arguments={"a": 1})
        message = Completion(text="Checking.", tool_calls=[call]).to_message()

        assert isinstance(message, ToolCallRequestMessage)
        assert message.model_dump() == {
            "role": "assistant",
            "content": "Checking.",
            "tool_calls": [{
                "id": "call_x",
                "type": "function",
                "function": {"arguments": '{"a": 1}', "name": "f"},
            }],
        }


class TestBlocksToText:
    def test_string(self):
        assert blocks_to_text("abc") == "abc"

    def test_mixed_blocks(self):
        assert blocks_to_text(["a", {"type": "text", "text": "b"}, {"type": "image_url"}]) == "ab"
