"""Abstract base class for LLM providers.

Providers only implement ``_send``; ``complete`` wraps it with model
resolution, transport retries and cost reporting so the scorer, similarity
strategy, topic namer and summarizer all see the same behaviour.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from ideascout.retry import retry_async

logger = logging.getLogger(__name__)


@dataclass
class LLMResponse:
    """Response from an LLM call."""

    text: str
    input_tokens: int = 0
    output_tokens: int = 0
    model: str = ""
    truncated: bool = False  # stopped on the token limit


class BaseLLMProvider(ABC):
    """Base class for LLM providers."""

    def __init__(
        self,
        api_key: str,
        base_url: str,
        default_model: str,
        max_retries: int = 3,
        timeout: int = 60,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.default_model = default_model
        self.active_model = default_model
        self.max_retries = max_retries
        self.timeout = timeout

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Human-readable provider name."""
        ...

    @abstractmethod
    async def _send(
        self,
        prompt: str,
        system: str,
        model: str,
        temperature: float,
        max_tokens: int,
    ) -> LLMResponse:
        """Perform one request against the provider's API."""
        ...

    async def complete(
        self,
        prompt: str,
        system: str = "",
        model: str | None = None,
        temperature: float = 0.1,
        max_tokens: int = 200,
    ) -> LLMResponse:
        """Send a completion request and return the response.

        Transport errors are retried; whatever survives the retries is
        raised to the caller, which decides its own fallback.
        """
        model = model or self.active_model or self.default_model
        response = await retry_async(
            self._send, prompt, system, model, temperature, max_tokens,
            max_retries=self.max_retries,
        )
        if response.truncated:
            logger.warning(
                "%s response from %s hit max_tokens=%d",
                self.provider_name, model, max_tokens,
            )
        self._track_cost(response)
        return response

    def _track_cost(self, response: LLMResponse) -> None:
        from ideascout.llm.cost import get_cost_tracker

        tracker = get_cost_tracker()
        if tracker and (response.input_tokens or response.output_tokens):
            tracker.track(
                response.input_tokens,
                response.output_tokens,
                response.model,
            )
