# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Optional text generation for chat replies.

Public API:
    - LLMProvider: protocol every provider implements
    - get_provider: provider factory
    - LLMReplyGenerator: adapts a provider to the chat responder
    - LLMConfig / OllamaConfig: configuration models
    - Exception hierarchy
"""

from __future__ import annotations

from craftbot.llm.base import LLMProvider
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
from craftbot.llm.reply import ChatTurn, LLMReplyGenerator, ReplyGenerator
from craftbot.llm.types import ChatMessage, ChatRequest, ChatResponse, TokenUsage

__all__ = [
    "ChatMessage",
    "ChatRequest",
    "ChatResponse",
    "ChatTurn",
    "LLMConfig",
    "LLMConnectionError",
    "LLMError",
    "LLMInvalidResponseError",
    "LLMModelNotFoundError",
    "LLMProvider",
    "LLMRateLimitError",
    "LLMReplyGenerator",
    "LLMTimeoutError",
    "OllamaConfig",
    "ReplyGenerator",
    "TokenUsage",
    "get_provider",
]
