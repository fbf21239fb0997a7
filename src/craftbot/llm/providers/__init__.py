# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Provider registry and factory."""

from __future__ import annotations

from craftbot.llm.base import LLMProvider
from craftbot.llm.config import LLMConfig
from craftbot.llm.exceptions import LLMError


def get_provider(config: LLMConfig) -> LLMProvider:
    """Build the provider named by ``config.provider``.

    Raises:
        LLMError: If the provider type is unsupported
    """
    if config.provider == "ollama":
        from craftbot.llm.providers.ollama import OllamaProvider

        return OllamaProvider(config.ollama)
    raise LLMError(f"Unsupported provider: {config.provider}")


__all__ = ["get_provider"]
