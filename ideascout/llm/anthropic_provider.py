"""Anthropic Claude provider, via the official SDK."""

from __future__ import annotations

import logging

import anthropic

from ideascout.llm import register_provider
from ideascout.llm.base import BaseLLMProvider, LLMResponse

logger = logging.getLogger(__name__)


@register_provider("anthropic")
class AnthropicProvider(BaseLLMProvider):

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._client: anthropic.AsyncAnthropic | None = None

    @property
    def provider_name(self) -> str:
        return "anthropic"

    @property
    def client(self) -> anthropic.AsyncAnthropic:
        # retry_async owns retries, so the SDK's own are disabled
        if self._client is None:
            self._client = anthropic.AsyncAnthropic(
                api_key=self.api_key, timeout=self.timeout, max_retries=0,
            )
        return self._client

    async def _send(self, prompt, system, model, temperature, max_tokens) -> LLMResponse:
        request = {
            "model": model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system:
            request["system"] = system

        message = await self.client.messages.create(**request)

        return LLMResponse(
            text="".join(
                block.text for block in message.content
                if getattr(block, "type", "") == "text"
            ),
            input_tokens=message.usage.input_tokens,
            output_tokens=message.usage.output_tokens,
            model=model,
            truncated=getattr(message, "stop_reason", None) == "max_tokens",
        )
