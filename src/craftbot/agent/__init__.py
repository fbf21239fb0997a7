# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Per-session player behaviour: tasks, chat and periodic timers."""

from __future__ import annotations

from craftbot.agent.config import ChatConfig, TaskConfig, TimerConfig, TimerSpec
from craftbot.agent.runtime import Agent
from craftbot.agent.state import AgentState, Task, Trigger
from craftbot.agent.tasks import InventorySnapshot, StepResult, TaskStateMachine, select_task

__all__ = [
    "Agent",
    "AgentState",
    "ChatConfig",
    "InventorySnapshot",
    "StepResult",
    "Task",
    "TaskConfig",
    "TaskStateMachine",
    "TimerConfig",
    "TimerSpec",
    "Trigger",
    "select_task",
]
