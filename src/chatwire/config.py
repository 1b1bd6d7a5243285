from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from chatwire.content import DEFAULT_PROMPT_PREFIX, DEFAULT_RESPONSE_PREFIX


class ModelInfo(BaseModel):
    """Capabilities of the model a request is sent to.

    Args:
        id: Model identifier sent as ``model``.
        reasoning: Treat as a reasoning model even if ``id`` is not a
            known one.
        nosystem: The model rejects system turns; the system message is
            folded into the first user turn instead.
        request_params: Extra request fields for this model. Applied last.
    """

    id: str
    reasoning: bool = False
    nosystem: bool = False
    request_params: dict[str, Any] = Field(default_factory=dict)


class BackendConfig(BaseModel):
    """Settings of one OpenAI-compatible backend.

    Args:
        name: Display name, also reported to tracing as the provider.
        base_url: API root, or ``None`` for the OpenAI default.
        api_key_env: Environment variable read when no key is passed.
        request_params: Extra request fields for every request to this
            backend.
        stream_usage: Ask for a final usage event on streamed requests
            (``stream_options.include_usage``). Turn off for servers that
            reject ``stream_options``.
        prompt_prefix: Prefix trimmed from the start of user text.
        response_prefix: Prefix trimmed from the end of user text.
    """

    name: str = "openai"
    base_url: str | None = None
    api_key_env: str = "OPENAI_API_KEY"
    request_params: dict[str, Any] = Field(default_factory=dict)
    stream_usage: bool = True
    prompt_prefix: str = DEFAULT_PROMPT_PREFIX
    response_prefix: str = DEFAULT_RESPONSE_PREFIX


class RequestOptions(BaseModel):
    """Per-call request options.

    ``tools`` holds :class:`~chatwire.tools.Tool` objects or ready
    function declarations. ``response_schema`` is a JSON schema dict or a
    pydantic model class.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    system_message: str | None = None
    stream: bool = False
    temperature: float | None = Field(default=None, ge=0, le=2)
    max_tokens: int | None = Field(default=None, gt=0)
    use_tools: bool = True
    force_tools: bool = False
    tools: list[Any] = Field(default_factory=list)
    response_schema: Any = None
    request_params: dict[str, Any] = Field(default_factory=dict)
