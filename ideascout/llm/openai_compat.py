"""Chat-completions provider (OpenAI, DeepSeek, Ollama, vLLM, etc.)."""

from __future__ import annotations

import logging

import httpx

from ideascout.llm import register_provider
from ideascout.llm.base import BaseLLMProvider, LLMResponse

logger = logging.getLogger(__name__)


def build_messages(prompt: str, system: str = "") -> list[dict]:
    messages = [{"role": "system", "content": system}] if system else []
    messages.append({"role": "user", "content": prompt})
    return messages


@register_provider("openai_compatible")
class OpenAICompatibleProvider(BaseLLMProvider):
    """Provider for any ``/chat/completions`` endpoint."""

    @property
    def provider_name(self) -> str:
        return "openai_compatible"

    @property
    def endpoint(self) -> str:
        return self.base_url.rstrip("/") + "/chat/completions"

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        # Local servers (Ollama, vLLM) run without a key
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def _send(self, prompt, system, model, temperature, max_tokens) -> LLMResponse:
        payload = {
            "model": model,
            "messages": build_messages(prompt, system),
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            resp = await client.post(self.endpoint, json=payload, headers=self._headers())
            resp.raise_for_status()
            data = resp.json()

        if not data.get("choices"):
            raise ValueError(f"{model} returned no choices")
        choice = data["choices"][0]
        usage = data.get("usage") or {}
        return LLMResponse(
            text=(choice.get("message") or {}).get("content") or "",
            input_tokens=usage.get("prompt_tokens", 0),
            output_tokens=usage.get("completion_tokens", 0),
            model=data.get("model") or model,
            truncated=choice.get("finish_reason") == "length",
        )
