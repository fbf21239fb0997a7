# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Core connection lifecycle: events, sessions, identities, reconnects."""

from __future__ import annotations

from craftbot.core.events import EventBus
from craftbot.core.identity import IdentityRecord, IdentityRotator, is_ban_reason
from craftbot.core.reconnect import ReconnectConfig, ReconnectMode, ReconnectPolicy
from craftbot.core.session import EndReason, Session
from craftbot.core.supervisor import ConnectionSupervisor, SupervisorState, SupervisorStatus

__all__ = [
    "ConnectionSupervisor",
    "EndReason",
    "EventBus",
    "IdentityRecord",
    "IdentityRotator",
    "ReconnectConfig",
    "ReconnectMode",
    "ReconnectPolicy",
    "Session",
    "SupervisorState",
    "SupervisorStatus",
    "is_ban_reason",
]
