# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Request and response types for chat generation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal


@dataclass
class TokenUsage:
    prompt_tokens: int
    completion_tokens: int

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens


@dataclass
class ChatMessage:
    """A single message in a chat conversation."""

    role: Literal["system", "user", "assistant"]
    content: str


@dataclass
class ChatRequest:
    messages: list[ChatMessage]
    model: str
    temperature: float = 0.7
    max_tokens: int | None = None
    stop: list[str] | None = None


@dataclass
class ChatResponse:
    message: ChatMessage
    model: str
    finish_reason: str | None = None
    usage: TokenUsage | None = None
