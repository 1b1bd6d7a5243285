"""Assembly of chat-completion request bodies.

:func:`build_payload` turns a transcript plus :class:`RequestOptions`
into the JSON body of a ``/chat/completions`` request. Which fields
appear depends on the model: reasoning models take
``max_completion_tokens`` instead of ``max_tokens``, refuse a
``temperature`` and do not get ``parallel_tool_calls``.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from copy import deepcopy
from typing import Any

from pydantic import BaseModel

from chatwire.config import BackendConfig, ModelInfo, RequestOptions
from chatwire.message import Message

logger = logging.getLogger(__name__)

REASONING_MODELS = frozenset({
    "o1",
    "o1-preview",
    "o1-mini",
    "o3",
    "o3-mini",
    "o4-mini",
    "gpt-5",
    "gpt-5-mini",
    "gpt-5-nano",
})


def is_reasoning_model(model: ModelInfo) -> bool:
    return model.reasoning or model.id in REASONING_MODELS


def merge_params(base: dict[str, Any], *overrides: dict[str, Any] | None) -> dict[str, Any]:
    """Recursively merge each override onto ``base``; later ones win."""
    merged: dict[str, Any] = deepcopy(base)
    for override in overrides:
        for key, value in (override or {}).items():
            if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
                merged[key] = merge_params(merged[key], value)
            else:
                merged[key] = deepcopy(value)
    return merged


def _declare_tool(tool) -> dict:
    if isinstance(tool, dict):
        return tool
    return tool.model_dump()


def _response_format(schema) -> dict:
    if isinstance(schema, type) and issubclass(schema, BaseModel):
        schema = schema.model_json_schema()
    return {
        "type": "json_schema",
        "json_schema": {
            "name": f"response_{uuid.uuid4().hex[:12]}",
            "schema": schema,
            "strict": True,
        },
    }


def _fold_system(messages: list[dict], system: str) -> None:
    """Prepend the system text to the first user turn."""
    for message in messages:
        if message.get("role") != "user":
            continue
        content = message.get("content")
        if isinstance(content, list):
            message["content"] = [{"type": "text", "text": system}, *content]
        elif content:
            message["content"] = f"{system}\n\n{content}"
        else:
            message["content"] = system
        return
    messages.insert(0, {"role": "user", "content": system})


def build_payload(
    history: Sequence[Message | dict],
    options: RequestOptions,
    model: ModelInfo,
    backend: BackendConfig | None = None,
) -> dict[str, Any]:
    """Build the request body for ``history``.

    Extra parameters are merged on top of the assembled body in the order
    caller (``options``), backend, model.
    """
    reasoning = is_reasoning_model(model)
    messages = [
        m.model_dump() if isinstance(m, Message) else deepcopy(m)
        for m in history
    ]
    if options.system_message:
        if model.nosystem:
            _fold_system(messages, options.system_message)
        else:
            messages.insert(0, {"role": "system", "content": options.system_message})

    payload: dict[str, Any] = {
        "model": model.id,
        "messages": messages,
        "stream": options.stream,
    }
    if options.stream and (backend is None or backend.stream_usage):
        payload["stream_options"] = {"include_usage": True}
    if options.temperature is not None:
        if reasoning:
            logger.debug(f"Omitting temperature for reasoning model {model.id}")
        else:
            payload["temperature"] = options.temperature
    if options.max_tokens is not None:
        key = "max_completion_tokens" if reasoning else "max_tokens"
        payload[key] = options.max_tokens

    if options.use_tools and options.tools:
        payload["tools"] = [_declare_tool(t) for t in options.tools]
        if options.force_tools:
            payload["tool_choice"] = "required"
        if not reasoning:
            payload["parallel_tool_calls"] = True

    if options.response_schema is not None:
        payload["response_format"] = _response_format(options.response_schema)

    return merge_params(
        payload,
        options.request_params,
        backend.request_params if backend else None,
        model.request_params,
    )
