# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Tiered reconnect backoff.

Attempts 1-3 wait a short fixed delay, 4-10 a medium fixed delay, and
beyond that the delay grows linearly with the attempt number up to a hard
ceiling. In ``degrade`` mode the attempt counter is halved when it reaches
``max_attempts`` so retries continue forever at a bounded long period. In
``give_up`` mode reaching ``max_attempts`` raises ``ReconnectExhausted``.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from craftbot.errors import ReconnectExhausted
from craftbot.logging import get_logger

logger = get_logger(__name__)


class ReconnectMode(StrEnum):
    DEGRADE = "degrade"
    GIVE_UP = "give_up"


class ReconnectConfig(BaseModel):
    """Backoff schedule settings."""

    mode: ReconnectMode = ReconnectMode.DEGRADE
    max_attempts: int = Field(default=50, ge=2)
    short_attempts: int = 3
    short_delay_s: float = 5.0
    medium_attempts: int = 10
    medium_delay_s: float = 30.0
    long_base_s: float = 60.0
    long_step_s: float = 10.0
    max_delay_s: float = 300.0

    model_config = ConfigDict(extra="ignore")


class ReconnectPolicyState(BaseModel):
    attempt_count: int = Field(default=0, ge=0)
    is_reconnecting: bool = False
    max_attempts: int = 50


class ReconnectPolicy:
    """Attempt counter plus delay schedule, with a guard against double scheduling."""

    def __init__(self, config: ReconnectConfig | None = None) -> None:
        self.config = config or ReconnectConfig()
        self.state = ReconnectPolicyState(max_attempts=self.config.max_attempts)

    @property
    def attempt_count(self) -> int:
        return self.state.attempt_count

    @property
    def is_reconnecting(self) -> bool:
        return self.state.is_reconnecting

    def delay_for(self, attempt: int) -> float:
        """Delay in seconds before reconnect attempt ``attempt`` (1-based)."""
        cfg = self.config
        if attempt <= cfg.short_attempts:
            return cfg.short_delay_s
        if attempt <= cfg.medium_attempts:
            return cfg.medium_delay_s
        return min(cfg.max_delay_s, cfg.long_base_s + attempt * cfg.long_step_s)

    def begin(self) -> float | None:
        """Claim the single reconnect slot and advance the attempt counter.

        Returns:
            Delay before the next connect, or None if a reconnect is already pending

        Raises:
            ReconnectExhausted: In give_up mode once max_attempts is reached
        """
        if self.state.is_reconnecting:
            return None

        if self.state.attempt_count >= self.config.max_attempts:
            if self.config.mode is ReconnectMode.GIVE_UP:
                raise ReconnectExhausted(
                    f"Gave up after {self.state.attempt_count} reconnect attempts"
                )
            halved = self.config.max_attempts // 2
            logger.warning(
                "reconnect_budget_degraded",
                attempts=self.state.attempt_count,
                max_attempts=self.config.max_attempts,
                reset_to=halved,
            )
            self.state.attempt_count = halved

        self.state.is_reconnecting = True
        self.state.attempt_count += 1
        return self.delay_for(self.state.attempt_count)

    def finish(self) -> None:
        """Release the reconnect slot once the scheduled reconnect fires."""
        self.state.is_reconnecting = False

    def reset(self) -> None:
        """Successful login: attempts back to zero."""
        self.state.attempt_count = 0
        self.state.is_reconnecting = False
