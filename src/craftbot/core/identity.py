# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Identity rotation across reconnect attempts.

The first connection uses the configured base name. Every reconnect steps
round-robin through a fixed pool of base names and appends a random numeric
suffix. Every issued name is appended to an in-memory history of
``IdentityRecord`` entries (seedable from persistence) which is also used to
avoid reissuing names flagged on the same endpoint.
"""

from __future__ import annotations

import random
import time
from collections.abc import Iterable, Sequence

from pydantic import BaseModel, ConfigDict, Field

from craftbot.defaults import BAN_KEYWORDS
from craftbot.errors import BanDetected
from craftbot.logging import get_logger

logger = get_logger(__name__)


class IdentityRecord(BaseModel):
    """History entry for one issued identity on one endpoint."""

    name: str
    server_host: str
    server_port: int
    was_flagged: bool = False
    flag_reason: str | None = None
    used_at: float = Field(default_factory=time.time)

    model_config = ConfigDict(extra="ignore")


def is_ban_reason(reason: str, keywords: Iterable[str] = BAN_KEYWORDS) -> bool:
    """Case-insensitive substring match of a kick reason against ban keywords.

    Known false positive: any reason mentioning "block" for unrelated
    reasons (e.g. "blocked by world border") also matches.
    """
    lowered = (reason or "").lower()
    return any(keyword in lowered for keyword in keywords)


class IdentityRotator:
    """Chooses the connection name for each (re)connection attempt."""

    def __init__(
        self,
        base_name: str,
        pool: Sequence[str],
        server_host: str,
        server_port: int,
        *,
        rng: random.Random | None = None,
        history: Iterable[IdentityRecord] | None = None,
        max_redraws: int = 20,
    ) -> None:
        if not pool:
            raise ValueError("Identity pool must not be empty")
        self.base_name = base_name
        self.pool = tuple(pool)
        self.server_host = server_host
        self.server_port = server_port
        self._rng = rng or random.Random()
        self._history: list[IdentityRecord] = list(history or ())
        self._max_redraws = max(1, int(max_redraws))
        self._current: str | None = None

    @property
    def current(self) -> str | None:
        """Most recently issued identity in this process."""
        return self._current

    @property
    def history(self) -> list[IdentityRecord]:
        return list(self._history)

    def flagged_names(self) -> set[str]:
        """Names flagged on this rotator's endpoint."""
        return {
            record.name
            for record in self._history
            if record.was_flagged
            and record.server_host == self.server_host
            and record.server_port == self.server_port
        }

    def next_identity(self, attempt: int) -> str:
        """Issue the identity for connection attempt ``attempt``.

        Args:
            attempt: Reconnect attempt number (0 for the first-ever connection)

        Returns:
            Identity to connect with
        """
        if attempt < 0:
            raise ValueError(f"attempt must be >= 0, got {attempt}")

        if attempt == 0:
            name = self.base_name
        else:
            name = self._draw(attempt)

        self._history.append(
            IdentityRecord(name=name, server_host=self.server_host, server_port=self.server_port)
        )
        previous, self._current = self._current, name
        logger.info("identity_issued", identity=name, attempt=attempt, previous=previous)
        return name

    def _draw(self, attempt: int) -> str:
        stem = self.pool[attempt % len(self.pool)]
        avoid = self.flagged_names()
        if self._current is not None:
            avoid.add(self._current)
        for _ in range(self._max_redraws):
            candidate = f"{stem}{self._rng.randrange(999)}"
            if candidate not in avoid:
                return candidate
        # Every draw collided; fall back to a suffix outside the random range.
        suffix = 999 + len(self._history)
        while f"{stem}{suffix}" in avoid:
            suffix += 1
        return f"{stem}{suffix}"

    def mark_flagged(self, name: str, reason: str) -> bool:
        """Flag the most recent record for ``name`` if ``reason`` looks like a ban.

        Returns:
            True if the reason matched the ban keywords and a record was flagged
        """
        if not is_ban_reason(reason):
            return False
        for record in reversed(self._history):
            if record.name == name:
                record.was_flagged = True
                record.flag_reason = reason
                return True
        return False

    def record_kick(self, name: str, reason: str) -> None:
        """Run ban detection for a kick.

        Raises:
            BanDetected: If the kick reason matched and the identity was flagged
        """
        if self.mark_flagged(name, reason):
            raise BanDetected(name, reason)
