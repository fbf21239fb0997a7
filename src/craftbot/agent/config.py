# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Tunables for the agent: task thresholds, chat pacing, timer periods."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class TaskConfig(BaseModel):
    """Item names and thresholds used by task selection and task steps."""

    raw_blocks: list[str] = Field(
        default_factory=lambda: ["oak_log", "birch_log", "spruce_log", "jungle_log"]
    )
    # Substring identifying a raw resource item in the inventory.
    raw_marker: str = "_log"
    planks_item: str = "oak_planks"
    planks_marker: str = "planks"
    stick_item: str = "stick"
    intermediate_item: str = "crafting_table"
    tool_item: str = "wooden_pickaxe"
    tool_marker: str = "pickaxe"
    extract_blocks: list[str] = Field(default_factory=lambda: ["stone", "cobblestone"])
    consumable_markers: list[str] = Field(
        default_factory=lambda: ["bread", "apple", "carrot", "potato", "meat", "fish"]
    )

    low_health: float = 10.0
    gather_radius: float = 32.0
    gather_count: int = 10
    extract_radius: float = 8.0
    extract_count: int = 3
    extract_cooldown_s: float = 10.0
    extract_probability: float = 0.4
    extract_announce_probability: float = 0.1
    extract_revert_probability: float = 0.6
    surface_y: float = 50.0
    explore_wander_probability: float = 0.4
    explore_switch_probability: float = 0.1
    follow_near: float = 5.0
    follow_far: float = 25.0
    follow_sprint: float = 8.0
    follow_burst_s: float = 1.5
    sustenance_status_probability: float = 0.2
    planks_per_craft: int = 4
    planks_for_intermediate: int = 4
    sticks_per_craft: int = 1
    surface_jump_s: float = 3.0

    model_config = ConfigDict(extra="ignore")


class ChatConfig(BaseModel):
    """Chat pacing and probabilities."""

    spam_guard_s: float = 3.0
    reply_cooldown_s: float = 1.5
    keyword_reply_probability: float = 0.9
    generic_reply_probability: float = 0.7
    mention_delay_s: tuple[float, float] = (0.8, 2.3)
    keyword_delay_s: tuple[float, float] = (0.5, 2.0)
    generic_delay_s: tuple[float, float] = (0.8, 2.8)
    welcome_delay_s: tuple[float, float] = (1.5, 4.0)
    ambient_quiet_s: float = 15.0
    ambient_probability: float = 0.4
    history_turns: int = Field(default=10, ge=1)
    greet_joins: bool = True

    model_config = ConfigDict(extra="ignore")


class TimerSpec(BaseModel):
    base_s: float = Field(gt=0)
    jitter_s: float = Field(default=0.0, ge=0)


class TimerConfig(BaseModel):
    """Base period plus uniform jitter for each periodic timer."""

    decision: TimerSpec = TimerSpec(base_s=3.0, jitter_s=5.0)
    movement: TimerSpec = TimerSpec(base_s=2.0, jitter_s=1.0)
    look: TimerSpec = TimerSpec(base_s=5.0, jitter_s=10.0)
    ambient_chat: TimerSpec = TimerSpec(base_s=30.0, jitter_s=60.0)
    inventory: TimerSpec = TimerSpec(base_s=15.0, jitter_s=5.0)
    inventory_stack_limit: int = 30
    low_value_overflow: int = 32
    look_player_radius: float = 10.0
    look_player_probability: float = 0.4

    model_config = ConfigDict(extra="ignore")
