# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Tests for Ollama provider."""

from unittest.mock import MagicMock, patch

import httpx
import pytest
from structlog.testing import capture_logs

from craftbot.llm.config import LLMConfig, OllamaConfig
from craftbot.llm.exceptions import (
    LLMConnectionError,
    LLMError,
    LLMInvalidResponseError,
    LLMModelNotFoundError,
    LLMRateLimitError,
    LLMTimeoutError,
)
from craftbot.llm.providers import get_provider
from craftbot.llm.providers.ollama import OllamaProvider
from craftbot.llm.types import ChatMessage, ChatRequest


@pytest.fixture
def ollama_config():
    """Create test Ollama config."""
    return OllamaConfig(
        base_url="http://localhost:11434",
        model="llama3",
        timeout_seconds=10.0,
        max_retries=1,
        retry_delay_seconds=0.0,
    )


@pytest.fixture
async def ollama_provider(ollama_config):
    """Create Ollama provider for testing."""
    provider = OllamaProvider(ollama_config)
    yield provider
    await provider.close()


def _request(model: str = "llama3") -> ChatRequest:
    return ChatRequest(
        messages=[
            ChatMessage(role="system", content="You are AIPlayer."),
            ChatMessage(role="user", content="anyone seen diamonds?"),
        ],
        model=model,
        temperature=0.8,
        max_tokens=60,
    )


def _status_error(status: int) -> httpx.HTTPStatusError:
    response = MagicMock()
    response.status_code = status
    return httpx.HTTPStatusError("error", request=MagicMock(), response=response)


@pytest.mark.asyncio
async def test_ollama_chat_success(ollama_provider):
    """Test successful chat request."""
    mock_response = MagicMock()
    mock_response.status_code = 200
    mock_response.json.return_value = {
        "message": {"role": "assistant", "content": "not yet, still looking!"},
        "done": True,
        "done_reason": "stop",
        "prompt_eval_count": 31,
        "eval_count": 7,
    }

    with patch.object(ollama_provider._client, "post", return_value=mock_response) as mock_post:
        response = await ollama_provider.chat(_request())

        assert response.message.role == "assistant"
        assert response.message.content == "not yet, still looking!"
        assert response.finish_reason == "stop"
        assert response.usage is not None
        assert response.usage.total_tokens == 38
        mock_post.assert_called_once()

        path = mock_post.call_args.args[0]
        payload = mock_post.call_args.kwargs["json"]
        assert path == "/api/chat"
        assert payload["stream"] is False
        assert payload["options"]["num_predict"] == 60
        assert [m["role"] for m in payload["messages"]] == ["system", "user"]


@pytest.mark.asyncio
async def test_ollama_connection_error_retried_then_raised(ollama_provider):
    """Connection errors are retried, then surfaced."""
    with patch.object(
        ollama_provider._client,
        "post",
        side_effect=httpx.ConnectError("Connection refused"),
    ) as mock_post:
        with pytest.raises(LLMConnectionError):
            await ollama_provider.chat(_request())

        assert mock_post.call_count == 2


@pytest.mark.asyncio
async def test_ollama_timeout_error(ollama_provider):
    """Test timeout error handling."""
    with patch.object(
        ollama_provider._client,
        "post",
        side_effect=httpx.TimeoutException("Request timeout"),
    ):
        with pytest.raises(LLMTimeoutError):
            await ollama_provider.chat(_request())


@pytest.mark.asyncio
async def test_ollama_model_not_found(ollama_provider):
    """Test model not found error."""
    with patch.object(ollama_provider._client, "post", side_effect=_status_error(404)) as mock_post:
        with pytest.raises(LLMModelNotFoundError):
            await ollama_provider.chat(_request("nonexistent"))

        mock_post.assert_called_once()


@pytest.mark.asyncio
async def test_ollama_rate_limited(ollama_provider):
    with patch.object(ollama_provider._client, "post", side_effect=_status_error(429)):
        with pytest.raises(LLMRateLimitError):
            await ollama_provider.chat(_request())


@pytest.mark.asyncio
async def test_ollama_server_error_is_invalid_response(ollama_provider):
    with patch.object(ollama_provider._client, "post", side_effect=_status_error(500)):
        with pytest.raises(LLMInvalidResponseError):
            await ollama_provider.chat(_request())


@pytest.mark.asyncio
async def test_ollama_missing_message(ollama_provider):
    """A payload without message content is rejected."""
    mock_response = MagicMock()
    mock_response.json.return_value = {"done": True}

    with patch.object(ollama_provider._client, "post", return_value=mock_response):
        with pytest.raises(LLMInvalidResponseError):
            await ollama_provider.chat(_request())


@pytest.mark.asyncio
async def test_ollama_non_json_body(ollama_provider):
    mock_response = MagicMock()
    mock_response.json.side_effect = ValueError("Expecting value")

    with patch.object(ollama_provider._client, "post", return_value=mock_response):
        with pytest.raises(LLMInvalidResponseError):
            await ollama_provider.chat(_request())


@pytest.mark.asyncio
async def test_ollama_health_check_success(ollama_provider):
    """Test health check success."""
    mock_response = MagicMock()
    mock_response.status_code = 200

    with patch.object(ollama_provider._client, "get", return_value=mock_response):
        result = await ollama_provider.health_check()
        assert result is True


@pytest.mark.asyncio
async def test_ollama_health_check_failure(ollama_provider):
    """Test health check failure."""
    with capture_logs() as logs, patch.object(
        ollama_provider._client,
        "get",
        side_effect=httpx.ConnectError("Connection refused"),
    ):
        result = await ollama_provider.health_check()
        assert result is False
    assert all(entry["log_level"] == "debug" for entry in logs)


@pytest.mark.asyncio
async def test_get_provider_builds_ollama():
    provider = get_provider(LLMConfig(enabled=True))
    try:
        assert isinstance(provider, OllamaProvider)
        assert provider.config.model == "llama3"
    finally:
        await provider.close()


def test_get_provider_rejects_unknown():
    config = LLMConfig.model_construct(provider="openai")

    with pytest.raises(LLMError):
        get_provider(config)
