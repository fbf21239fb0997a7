# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Task enum and the mutable per-session agent state."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Literal


class Task(StrEnum):
    EXPLORING = "exploring"
    GATHERING_RESOURCE = "gathering_resource"
    CRAFTING_INTERMEDIATE = "crafting_intermediate"
    CRAFTING_TOOL = "crafting_tool"
    EXTRACTING_RESOURCE = "extracting_resource"
    FOLLOWING_TARGET = "following_target"
    SEEKING_SUSTENANCE = "seeking_sustenance"


# Tasks that only their own step or an explicit trigger may leave.
STICKY_TASKS = frozenset({Task.FOLLOWING_TARGET, Task.SEEKING_SUSTENANCE})

PROGRESSION = (
    Task.GATHERING_RESOURCE,
    Task.CRAFTING_INTERMEDIATE,
    Task.CRAFTING_TOOL,
    Task.EXTRACTING_RESOURCE,
)


@dataclass(frozen=True)
class Trigger:
    """External request from chat, consumed by the next decision tick."""

    kind: Literal["follow", "explore", "task"]
    target: str | None = None
    task: Task | None = None


@dataclass
class AgentState:
    current_task: Task = Task.EXPLORING
    target_player: str | None = None
    last_chat_at: float | None = None
    last_action_at: float | None = None
    last_extracted_at: float | None = None
    is_mid_action: bool = False
    goals_remaining: list[Task] = field(default_factory=lambda: list(PROGRESSION))
    reopened_goals: set[Task] = field(default_factory=set)
    pending_trigger: Trigger | None = None
    alive: bool = True
