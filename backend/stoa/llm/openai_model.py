"""OpenAI chat-completions adapter."""
from __future__ import annotations

import logging
from typing import AsyncIterator, List, Optional

import openai

from stoa.core.config import Settings, settings as default_settings
from stoa.core.errors import UpstreamFailure
from stoa.llm.base import ChatModel, PromptMessage

logger = logging.getLogger(__name__)


class OpenAIChatModel(ChatModel):
    def __init__(self, client: "openai.AsyncOpenAI", *, model: str, temperature: float, max_tokens: int) -> None:
        self._client = client
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> "OpenAIChatModel":
        config = config or default_settings
        if not config.openai_api_key:
            raise UpstreamFailure("model.configure", "OPENAI_API_KEY is not configured")
        return cls(
            openai.AsyncOpenAI(api_key=config.openai_api_key),
            model=config.openai_model,
            temperature=config.openai_temperature,
            max_tokens=config.chat_max_output_tokens,
        )

    async def invoke(self, messages: List[PromptMessage]) -> str:
        try:
            completion = await self._client.chat.completions.create(
                model=self._model,
                temperature=self._temperature,
                max_tokens=self._max_tokens,
                messages=[message.to_dict() for message in messages],
            )
        except openai.OpenAIError as exc:
            logger.warning("OpenAI completion failed: %s", exc)
            raise UpstreamFailure("model.invoke") from exc
        return completion.choices[0].message.content or ""

    async def stream(self, messages: List[PromptMessage]) -> AsyncIterator[str]:
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                temperature=self._temperature,
                max_tokens=self._max_tokens,
                messages=[message.to_dict() for message in messages],
                stream=True,
            )
            async for event in response:
                if not event.choices:
                    continue
                delta = event.choices[0].delta.content
                if delta:
                    yield delta
        except openai.OpenAIError as exc:
            logger.warning("OpenAI stream failed: %s", exc)
            raise UpstreamFailure("model.stream") from exc
