# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Retry logic with exponential backoff."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from craftbot.llm.exceptions import LLMConnectionError, LLMRateLimitError, LLMTimeoutError
from craftbot.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


async def retry_with_backoff(
    func: Callable[[], Awaitable[T]],
    max_retries: int = 3,
    initial_delay: float = 1.0,
    backoff_multiplier: float = 2.0,
    retryable_exceptions: tuple[type[Exception], ...] = (
        LLMConnectionError,
        LLMTimeoutError,
        LLMRateLimitError,
    ),
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> T:
    """Retry an async call with exponential backoff.

    Args:
        func: Zero-argument coroutine function
        max_retries: Retries after the first attempt
        initial_delay: Delay before the first retry
        backoff_multiplier: Multiplier for each further delay
        retryable_exceptions: Exceptions that trigger a retry

    Returns:
        Result of the first successful call

    Raises:
        The last retryable exception once retries are exhausted, or any
        non-retryable exception immediately
    """
    delay = initial_delay
    attempt = 0
    while True:
        try:
            return await func()
        except retryable_exceptions as e:
            if attempt >= max_retries:
                logger.debug("llm_retry_exhausted", max_retries=max_retries, error=str(e))
                raise
            attempt += 1
            logger.debug("llm_retry_attempt", attempt=attempt, max_retries=max_retries, delay=delay, error=str(e))
            await sleep(delay)
            delay *= backoff_multiplier
