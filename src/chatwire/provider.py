import logging
import os
from collections.abc import AsyncIterator

from openai import AsyncOpenAI

from chatwire.chunks import StreamEnd
from chatwire.config import BackendConfig, ModelInfo, RequestOptions
from chatwire.events import (
    ReasoningEvent,
    StreamCompleteEvent,
    StreamEvent,
    TextDeltaEvent,
)
from chatwire.instrumentation import completion_span, record_error, record_usage
from chatwire.payload import build_payload
from chatwire.response import Completion, extract
from chatwire.session import Session
from chatwire.streaming import DecoderSession, decode

logger = logging.getLogger(__name__)


class ModelProvider:
    """Interface for sending a session to a model.

    ``complete()`` returns the whole :class:`Completion`; ``stream()``
    yields :class:`StreamEvent` values as the reply arrives and ends
    with a :class:`StreamCompleteEvent`. Both append the assistant turn
    to the session once the reply is complete.
    """

    async def complete(
            self,
            session: Session,
            options: RequestOptions,
            model: ModelInfo,
    ) -> Completion:
        raise NotImplementedError

    async def stream(
            self,
            session: Session,
            options: RequestOptions,
            model: ModelInfo,
    ) -> AsyncIterator[StreamEvent]:
        raise NotImplementedError
        yield


class OpenAIProvider(ModelProvider):

    def __init__(
            self,
            api_key: str | None = None,
            backend: BackendConfig | None = None,
            max_retries: int = 5,
            timeout: float = 600.0,
    ):
        self.backend = backend or BackendConfig()
        if not api_key:
            api_key = os.getenv(self.backend.api_key_env)
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=self.backend.base_url,
            max_retries=max_retries,
            timeout=timeout,
        )

    def payload(
            self,
            session: Session,
            options: RequestOptions,
            model: ModelInfo,
            stream: bool,
    ) -> dict:
        options = options.model_copy(update={"stream": stream})
        return build_payload(session.transcript, options, model, self.backend)

    @staticmethod
    def _create_kwargs(payload: dict) -> dict:
        # The SDK only types the standard fields; everything else,
        # merged extras included, travels in extra_body.
        body = dict(payload)
        kwargs = {
            "model": body.pop("model"),
            "messages": body.pop("messages"),
            "stream": body.pop("stream"),
        }
        if "stream_options" in body:
            kwargs["stream_options"] = body.pop("stream_options")
        if body:
            kwargs["extra_body"] = body
        return kwargs

    async def complete(
            self,
            session: Session,
            options: RequestOptions,
            model: ModelInfo,
    ) -> Completion:
        payload = self.payload(session, options, model, stream=False)
        async with completion_span(self.backend.name, model.id) as span:
            try:
                response = await self.client.chat.completions.create(
                    **self._create_kwargs(payload)
                )
            except Exception as e:
                record_error(span, e)
                raise
            raw = response if isinstance(response, dict) else response.model_dump()
            completion = extract(raw)
            record_usage(span, completion, raw.get("model"))
        session.transcript.append(completion.to_message())
        logger.debug(
            f"Completion from {model.id}: stop_reason={completion.stop_reason} "
            f"tool_calls={len(completion.tool_calls)}"
        )
        return completion

    async def stream(
            self,
            session: Session,
            options: RequestOptions,
            model: ModelInfo,
    ) -> AsyncIterator[StreamEvent]:
        payload = self.payload(session, options, model, stream=True)
        decoder = DecoderSession(transcript=session.transcript)
        buffer = ""
        reasoning = ""
        async with completion_span(self.backend.name, model.id, stream=True) as span:
            try:
                async with self.client.chat.completions.with_streaming_response.create(
                    **self._create_kwargs(payload)
                ) as response:
                    async for text in response.iter_text():
                        buffer += text
                        emitted = decode(decoder, buffer)
                        if decoder.reasoning != reasoning:
                            reasoning = decoder.reasoning
                            yield ReasoningEvent(text=reasoning)
                        if emitted:
                            yield TextDeltaEvent(content=emitted)
            except Exception as e:
                record_error(span, e)
                raise
            if not decoder.done:
                logger.warning(
                    f"Stream from {model.id} closed without an end marker"
                )
                decoder.feed([StreamEnd()])
            completion = Completion.from_session(decoder)
            record_usage(span, completion, model.id)

        yield StreamCompleteEvent(result=completion)


class OpenAICompatibleProvider(OpenAIProvider):
    """Provider for self-hosted OpenAI-compatible servers (vLLM, Ollama,
    llama.cpp and the like). ``api_key`` defaults to a dummy value."""

    def __init__(
            self,
            base_url: str,
            api_key: str | None = None,
            backend: BackendConfig | None = None,
            **kwargs,
    ):
        self.base_url = base_url.rstrip("/")
        backend = (backend or BackendConfig(name="openai_compatible")).model_copy(
            update={"base_url": self.base_url}
        )
        super().__init__(api_key=api_key or "DUMMY", backend=backend, **kwargs)
