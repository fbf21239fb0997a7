# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Base protocol for LLM providers."""

from __future__ import annotations

from typing import Protocol

from craftbot.llm.types import ChatRequest, ChatResponse


class LLMProvider(Protocol):
    """Interface every provider implements, so providers can be swapped."""

    name: str

    async def chat(self, request: ChatRequest) -> ChatResponse:
        """Generate a chat response.

        Raises:
            LLMError: On provider-specific errors
        """
        ...

    async def health_check(self) -> bool:
        ...

    async def close(self) -> None:
        ...
