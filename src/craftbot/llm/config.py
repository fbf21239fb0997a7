# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Configuration models for the chat text generator."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

DEFAULT_SYSTEM_PROMPT = (
    "You are {me}, a friendly player on a block-building game server. "
    "Reply to {sender} in one short casual chat line, lowercase, no more than 100 characters. "
    "Right now you are {activity}."
)


class OllamaConfig(BaseModel):
    """Configuration for the Ollama provider."""

    base_url: str = "http://localhost:11434"
    model: str = "llama3"
    timeout_seconds: float = 10.0
    max_retries: int = 2
    retry_delay_seconds: float = 0.5
    retry_backoff_multiplier: float = 2.0


class LLMConfig(BaseModel):
    """Text generation for chat replies. Off unless ``enabled``."""

    enabled: bool = False
    provider: Literal["ollama"] = "ollama"
    ollama: OllamaConfig = Field(default_factory=OllamaConfig)
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    temperature: float = Field(default=0.8, ge=0.0, le=2.0)
    max_tokens: int | None = 60
    max_reply_chars: int = 100

    def get_model(self) -> str:
        return self.ollama.model
