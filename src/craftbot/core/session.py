# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Session record for one live connection to a world server."""

from __future__ import annotations

import time
from enum import StrEnum
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


class EndReason(StrEnum):
    DISCONNECT = "disconnect"
    KICKED = "kicked"
    ERROR = "error"
    SHUTDOWN = "shutdown"


class Session(BaseModel):
    """One active connection, created on login and finished exactly once."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    identity: str
    server_host: str
    server_port: int
    started_at: float = Field(default_factory=time.time)
    ended_at: float | None = None
    end_reason: EndReason | None = None
    end_detail: str | None = None
    reconnect_attempt_number: int = 0

    model_config = ConfigDict(extra="ignore")

    @property
    def is_active(self) -> bool:
        return self.ended_at is None

    @property
    def duration_s(self) -> float | None:
        if self.ended_at is None:
            return None
        return self.ended_at - self.started_at

    def finish(self, reason: EndReason, detail: str | None = None, *, now: float | None = None) -> bool:
        """Close the session. Returns False if it was already closed."""
        if not self.is_active:
            return False
        self.ended_at = time.time() if now is None else now
        self.end_reason = reason
        self.end_detail = detail
        return True
