# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Exception hierarchy for text-generation calls."""

from __future__ import annotations


class LLMError(Exception):
    """Base exception for LLM operations."""

    pass


class LLMConnectionError(LLMError):
    """Could not reach the provider."""

    pass


class LLMTimeoutError(LLMError):
    pass


class LLMRateLimitError(LLMError):
    pass


class LLMModelNotFoundError(LLMError):
    pass


class LLMInvalidResponseError(LLMError):
    """Non-success status or a body without a usable message."""

    pass
