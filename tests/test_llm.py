"""Tests for LLM providers, task routing and cost tracking."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from ideascout.errors import ConfigError
from ideascout.llm import get_provider_for_task
from ideascout.llm.anthropic_provider import AnthropicProvider
from ideascout.llm.cost import estimate_cost, get_cost_tracker, tracking
from ideascout.llm.openai_compat import OpenAICompatibleProvider


@pytest.fixture
def openai_provider():
    return OpenAICompatibleProvider(
        api_key="test-key",
        base_url="http://localhost:9999",
        default_model="test-model",
    )


def _mock_openai_response(content="test response", model="test-model"):
    return {
        "choices": [{"message": {"content": content}}],
        "usage": {"prompt_tokens": 10, "completion_tokens": 20},
    }


def _mock_client(payload: dict) -> AsyncMock:
    mock_resp = MagicMock()
    mock_resp.json.return_value = payload
    mock_resp.raise_for_status = MagicMock()

    mock_client = AsyncMock()
    mock_client.post.return_value = mock_resp
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)
    return mock_client


@pytest.mark.asyncio
@patch("ideascout.llm.openai_compat.httpx.AsyncClient")
async def test_openai_compat_complete(mock_client_cls, openai_provider):
    """OpenAI-compatible provider makes correct API call."""
    mock_client = _mock_client(_mock_openai_response("0.8, 0.7, 0.6, 0.5"))
    mock_client_cls.return_value = mock_client

    response = await openai_provider.complete("test prompt", system="sys")

    assert response.text == "0.8, 0.7, 0.6, 0.5"
    assert response.input_tokens == 10
    assert response.output_tokens == 20

    call_args = mock_client.post.call_args
    assert call_args.args[0] == "http://localhost:9999/chat/completions"
    payload = call_args.kwargs["json"]
    assert payload["model"] == "test-model"
    assert len(payload["messages"]) == 2
    assert payload["messages"][0]["role"] == "system"
    assert payload["messages"][1]["content"] == "test prompt"
    assert call_args.kwargs["headers"]["Authorization"] == "Bearer test-key"


@pytest.mark.asyncio
@patch("ideascout.llm.openai_compat.httpx.AsyncClient")
async def test_openai_compat_no_system(mock_client_cls, openai_provider):
    """System message is omitted when empty."""
    mock_client = _mock_client(_mock_openai_response())
    mock_client_cls.return_value = mock_client

    await openai_provider.complete("prompt only")

    payload = mock_client.post.call_args.kwargs["json"]
    assert len(payload["messages"]) == 1
    assert payload["messages"][0]["role"] == "user"
    assert "response_format" not in payload


@pytest.mark.asyncio
@patch("ideascout.llm.openai_compat.httpx.AsyncClient")
async def test_openai_compat_length_stop_marks_truncated(mock_client_cls, openai_provider):
    payload = _mock_openai_response("0.8, 0.7")
    payload["choices"][0]["finish_reason"] = "length"
    mock_client_cls.return_value = _mock_client(payload)

    response = await openai_provider.complete("prompt", max_tokens=5)

    assert response.truncated
    assert response.text == "0.8, 0.7"


@pytest.mark.asyncio
@patch("ideascout.llm.openai_compat.httpx.AsyncClient")
async def test_openai_compat_empty_choices_raises(mock_client_cls, openai_provider):
    mock_client_cls.return_value = _mock_client({"choices": []})
    with pytest.raises(ValueError, match="no choices"):
        await openai_provider.complete("prompt")


@pytest.mark.asyncio
@patch("ideascout.llm.openai_compat.httpx.AsyncClient")
async def test_usage_reported_to_tracker(mock_client_cls, openai_provider):
    mock_client_cls.return_value = _mock_client(_mock_openai_response())
    with tracking() as tracker:
        await openai_provider.complete("prompt")
        await openai_provider.complete("prompt")

    assert tracker.calls == 2
    assert tracker.total_tokens == 60
    assert get_cost_tracker() is None


@pytest.mark.asyncio
async def test_anthropic_joins_text_blocks():
    provider = AnthropicProvider(
        api_key="test-key", base_url="", default_model="claude-test",
    )
    message = MagicMock()
    message.content = [
        MagicMock(type="text", text="Workflow "),
        MagicMock(type="tool_use", text="ignored"),
        MagicMock(type="text", text="Automation"),
    ]
    message.usage.input_tokens = 5
    message.usage.output_tokens = 3
    message.stop_reason = "end_turn"
    client = MagicMock()
    client.messages.create = AsyncMock(return_value=message)
    provider._client = client

    response = await provider.complete("label this", system="sys")

    assert response.text == "Workflow Automation"
    assert not response.truncated
    kwargs = client.messages.create.call_args.kwargs
    assert kwargs["system"] == "sys"
    assert kwargs["model"] == "claude-test"


def test_provider_routing(llm_config):
    provider = get_provider_for_task(llm_config, "score")
    assert isinstance(provider, OpenAICompatibleProvider)
    assert provider.active_model == "test-model"
    # One client per provider endpoint
    assert get_provider_for_task(llm_config, "topic") is provider


def test_provider_routing_unconfigured_task(sample_config):
    with pytest.raises(ConfigError, match="score"):
        get_provider_for_task(sample_config, "score")


def test_provider_routing_unknown_type(llm_config):
    llm_config["llm"]["providers"] = {"mock": {"type": "carrier_pigeon"}}
    with pytest.raises(ConfigError, match="carrier_pigeon"):
        get_provider_for_task(llm_config, "score")


def test_estimate_cost():
    assert estimate_cost(1_000_000, 0, "gpt-4o-mini") == pytest.approx(0.15)
    assert estimate_cost(0, 1_000_000, "unknown-model") == pytest.approx(2.0)
