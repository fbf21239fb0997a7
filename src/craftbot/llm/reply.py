# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Chat reply generation backed by an LLM provider."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Protocol

from craftbot.errors import ExternalGenerationError
from craftbot.llm.base import LLMProvider
from craftbot.llm.config import LLMConfig
from craftbot.llm.exceptions import LLMError
from craftbot.llm.types import ChatMessage, ChatRequest


@dataclass(frozen=True)
class ChatTurn:
    """One line of a per-sender conversation window."""

    role: Literal["user", "assistant"]
    text: str


class ReplyGenerator(Protocol):
    async def generate(self, *, sender: str, me: str, history: list[ChatTurn], activity: str) -> str:
        """Produce one chat line.

        Raises:
            ExternalGenerationError: When no usable reply could be produced
        """
        ...


class LLMReplyGenerator:
    """Sends the recent conversation with one sender to an LLM provider."""

    def __init__(self, provider: LLMProvider, config: LLMConfig) -> None:
        self.provider = provider
        self.config = config

    def build_request(self, *, sender: str, me: str, history: list[ChatTurn], activity: str) -> ChatRequest:
        system = self.config.system_prompt.format(me=me, sender=sender, activity=activity)
        messages = [ChatMessage(role="system", content=system)]
        messages.extend(ChatMessage(role=turn.role, content=turn.text) for turn in history)
        return ChatRequest(
            messages=messages,
            model=self.config.get_model(),
            temperature=self.config.temperature,
            max_tokens=self.config.max_tokens,
        )

    async def generate(self, *, sender: str, me: str, history: list[ChatTurn], activity: str) -> str:
        request = self.build_request(sender=sender, me=me, history=history, activity=activity)
        try:
            response = await self.provider.chat(request)
        except LLMError as e:
            raise ExternalGenerationError(str(e)) from e
        text = " ".join(response.message.content.split())
        if not text:
            raise ExternalGenerationError("Empty reply")
        return text[: self.config.max_reply_chars]

    async def close(self) -> None:
        await self.provider.close()
