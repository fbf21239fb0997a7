# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Ollama provider implementation."""

from __future__ import annotations

from typing import Any

import httpx

from craftbot.llm.config import OllamaConfig
from craftbot.llm.exceptions import (
    LLMConnectionError,
    LLMInvalidResponseError,
    LLMModelNotFoundError,
    LLMRateLimitError,
    LLMTimeoutError,
)
from craftbot.llm.retry import retry_with_backoff
from craftbot.llm.types import ChatMessage, ChatRequest, ChatResponse, TokenUsage
from craftbot.logging import get_logger

logger = get_logger(__name__)


class OllamaProvider:
    """Chat completions from a local Ollama server over its HTTP API."""

    name = "ollama"

    def __init__(self, config: OllamaConfig):
        self.config = config
        self._client = httpx.AsyncClient(
            base_url=config.base_url,
            timeout=httpx.Timeout(config.timeout_seconds),
        )

    def _payload(self, request: ChatRequest) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": request.model,
            "messages": [{"role": m.role, "content": m.content} for m in request.messages],
            "stream": False,
            "options": {"temperature": request.temperature},
        }
        if request.max_tokens:
            payload["options"]["num_predict"] = request.max_tokens
        if request.stop:
            payload["options"]["stop"] = request.stop
        return payload

    async def chat(self, request: ChatRequest) -> ChatResponse:
        """Generate a chat response.

        Raises:
            LLMError: On connection, timeout, status or payload errors
        """
        payload = self._payload(request)

        async def _make_request() -> ChatResponse:
            try:
                response = await self._client.post("/api/chat", json=payload)
                response.raise_for_status()
                data = response.json()
            except httpx.ConnectError as e:
                raise LLMConnectionError(f"Failed to connect to Ollama at {self.config.base_url}") from e
            except httpx.TimeoutException as e:
                raise LLMTimeoutError(f"Request timed out after {self.config.timeout_seconds}s") from e
            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                if status == 404:
                    raise LLMModelNotFoundError(f"Model '{request.model}' not found") from e
                if status == 429:
                    raise LLMRateLimitError("Ollama rate limit exceeded") from e
                raise LLMInvalidResponseError(f"HTTP {status}") from e
            except ValueError as e:
                raise LLMInvalidResponseError(f"Response is not JSON: {e}") from e

            message = data.get("message") if isinstance(data, dict) else None
            if not isinstance(message, dict) or "content" not in message:
                raise LLMInvalidResponseError("Response has no message content")

            usage = None
            if "prompt_eval_count" in data or "eval_count" in data:
                usage = TokenUsage(
                    prompt_tokens=int(data.get("prompt_eval_count") or 0),
                    completion_tokens=int(data.get("eval_count") or 0),
                )
            return ChatResponse(
                message=ChatMessage(role="assistant", content=str(message["content"])),
                model=request.model,
                finish_reason=data.get("done_reason"),
                usage=usage,
            )

        return await retry_with_backoff(
            _make_request,
            max_retries=self.config.max_retries,
            initial_delay=self.config.retry_delay_seconds,
            backoff_multiplier=self.config.retry_backoff_multiplier,
        )

    async def health_check(self) -> bool:
        try:
            response = await self._client.get("/api/tags")
            return response.status_code == 200
        except httpx.HTTPError as e:
            logger.debug("ollama_health_check_failed", error=str(e))
            return False

    async def close(self) -> None:
        await self._client.aclose()
