# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Exception hierarchy for craftbot."""

from __future__ import annotations


class CraftbotError(Exception):
    """Base exception for craftbot."""

    pass


class TransientNetworkError(CraftbotError):
    """Socket or protocol failure. Always routed to reconnect backoff."""

    pass


class ActionError(CraftbotError):
    """A single task step failed (target vanished, recipe missing, ...)."""

    pass


class BanDetected(CraftbotError):
    """Kick reason matched the ban keyword heuristic."""

    def __init__(self, name: str, reason: str) -> None:
        super().__init__(f"{name} flagged: {reason}")
        self.name = name
        self.reason = reason


class PersistenceError(CraftbotError):
    """Persistence sink unavailable or a write failed."""

    pass


class ExternalGenerationError(CraftbotError):
    """Text-generation collaborator failed or returned nothing usable."""

    pass


class ReconnectExhausted(CraftbotError):
    """Finite reconnect budget used up (give_up mode only)."""

    pass
