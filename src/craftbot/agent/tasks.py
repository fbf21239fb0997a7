# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Task selection and guarded task steps.

``select_task`` is a pure function of the agent state, an inventory
snapshot, health and an optional trigger. ``TaskStateMachine`` applies it
once per decision tick and runs one step for the selected task under the
``is_mid_action`` guard. Steps never mutate ``AgentState`` themselves; they
return a ``StepResult`` that is applied after the guard is released and only
while the agent is still alive.
"""

from __future__ import annotations

import asyncio
import random
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from craftbot.agent import behaviors
from craftbot.agent.config import TaskConfig
from craftbot.agent.state import PROGRESSION, STICKY_TASKS, AgentState, Task, Trigger
from craftbot.errors import ActionError
from craftbot.logging import get_logger
from craftbot.world.base import Item, WorldClient

if TYPE_CHECKING:
    from craftbot.agent.chat import ChatOutbox

logger = get_logger(__name__)

MINING_LINES = (
    "found some good stone here!",
    "these blocks are perfect for building",
    "mining is relaxing, but exploring is more fun!",
    "gathering resources for future projects",
)


@dataclass(frozen=True)
class InventorySnapshot:
    """Derived inventory facts for one decision tick."""

    items: tuple[Item, ...]
    raw_count: int
    planks_count: int
    stick_count: int
    has_intermediate: bool
    tool: Item | None
    consumable: Item | None
    extracted_count: int

    @property
    def has_raw(self) -> bool:
        return self.raw_count > 0

    @property
    def has_tool(self) -> bool:
        return self.tool is not None

    @classmethod
    def from_items(cls, items: list[Item], config: TaskConfig) -> InventorySnapshot:
        def total(pred: Callable[[Item], bool]) -> int:
            return sum(i.count for i in items if pred(i))

        return cls(
            items=tuple(items),
            raw_count=total(lambda i: config.raw_marker in i.name),
            planks_count=total(lambda i: config.planks_marker in i.name),
            stick_count=total(lambda i: i.name == config.stick_item),
            has_intermediate=any(i.name == config.intermediate_item for i in items),
            tool=next((i for i in items if config.tool_marker in i.name), None),
            consumable=next(
                (i for i in items if any(m in i.name for m in config.consumable_markers)),
                None,
            ),
            extracted_count=total(lambda i: i.name in config.extract_blocks),
        )

    def satisfies(self, goal: Task, *, reopened: bool = False) -> bool:
        """Whether the product of ``goal`` is present.

        Holding a later product also meets the gathering goal, unless a step
        reopened it because it ran out of raw material.
        """
        if goal is Task.GATHERING_RESOURCE:
            return self.has_raw or (not reopened and (self.has_intermediate or self.has_tool))
        if goal is Task.CRAFTING_INTERMEDIATE:
            return self.has_intermediate
        if goal is Task.CRAFTING_TOOL:
            return self.has_tool
        if goal is Task.EXTRACTING_RESOURCE:
            return self.extracted_count > 0
        return False


@dataclass(frozen=True)
class StepResult:
    """State changes requested by a step, applied after the guard is released."""

    next_task: Task | None = None
    clear_target: bool = False
    extracted_at: float | None = None
    reopen: Task | None = None
    announce: str | None = None
    acted: bool = False


def select_task(
    state: AgentState,
    inventory: InventorySnapshot,
    health: float | None,
    trigger: Trigger | None,
    config: TaskConfig,
) -> Task:
    """Pick the task for this tick. Pure in its arguments."""
    if health is not None and health < config.low_health:
        return Task.SEEKING_SUSTENANCE

    if trigger is not None:
        if trigger.kind == "follow" and trigger.target:
            return Task.FOLLOWING_TARGET
        if trigger.kind == "explore":
            return Task.EXPLORING
        if trigger.kind == "task" and trigger.task is not None:
            return trigger.task

    if state.current_task in STICKY_TASKS:
        return state.current_task

    gather = Task.GATHERING_RESOURCE
    if gather in state.goals_remaining and not inventory.satisfies(gather, reopened=gather in state.reopened_goals):
        return Task.GATHERING_RESOURCE
    if inventory.has_raw and not inventory.has_intermediate:
        return Task.CRAFTING_INTERMEDIATE
    if inventory.has_intermediate and not inventory.has_tool:
        return Task.CRAFTING_TOOL
    if inventory.has_tool:
        return Task.EXTRACTING_RESOURCE
    return state.current_task


StepFn = Callable[[], Awaitable[StepResult | None]]


class TaskStateMachine:
    """Owns ``AgentState`` and runs one guarded step per decision tick."""

    def __init__(
        self,
        client: WorldClient,
        state: AgentState,
        config: TaskConfig,
        outbox: ChatOutbox,
        *,
        rng: random.Random,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.client = client
        self.state = state
        self.config = config
        self.outbox = outbox
        self.rng = rng
        self.clock = clock
        self.sleep = sleep
        self._steps: dict[Task, StepFn] = {
            Task.EXPLORING: self._explore,
            Task.GATHERING_RESOURCE: self._gather,
            Task.CRAFTING_INTERMEDIATE: self._craft_intermediate,
            Task.CRAFTING_TOOL: self._craft_tool,
            Task.EXTRACTING_RESOURCE: self._extract,
            Task.FOLLOWING_TARGET: self._follow,
            Task.SEEKING_SUSTENANCE: self._seek_sustenance,
        }

    def snapshot(self) -> InventorySnapshot:
        return InventorySnapshot.from_items(self.client.inventory(), self.config)

    def request(self, trigger: Trigger) -> None:
        """Queue a trigger for the next decision tick. A newer trigger replaces an older one."""
        if not self.state.alive:
            return
        self.state.pending_trigger = trigger
        logger.debug("trigger_queued", kind=trigger.kind, target=trigger.target, task=trigger.task)

    def evaluate(self) -> Task:
        """Retire satisfied goals, consume any trigger and select the task."""
        inventory = self.snapshot()
        for goal in list(self.state.goals_remaining):
            if inventory.satisfies(goal, reopened=goal in self.state.reopened_goals):
                self.state.goals_remaining.remove(goal)
                self.state.reopened_goals.discard(goal)
                logger.info("goal_reached", goal=str(goal))

        trigger, self.state.pending_trigger = self.state.pending_trigger, None
        selected = select_task(self.state, inventory, self.client.health, trigger, self.config)

        if trigger is not None and selected is not Task.SEEKING_SUSTENANCE:
            if trigger.kind == "follow":
                self.state.target_player = trigger.target
            elif trigger.kind == "explore":
                self.state.target_player = None

        self._set_task(selected)
        return selected

    async def tick(self) -> bool:
        """One decision tick. Returns False when the tick was dropped."""
        if not self.state.alive:
            return False
        if self.state.is_mid_action:
            logger.debug("tick_dropped", reason="mid_action", task=str(self.state.current_task))
            return False
        task = self.evaluate()
        return await self.run_exclusive(self._steps[task], name=str(task))

    async def run_exclusive(self, step: StepFn, *, name: str = "action") -> bool:
        """Run ``step`` under the action guard.

        Returns False if another action was in flight and this one was dropped.
        """
        if self.state.is_mid_action or not self.state.alive:
            return False
        self.state.is_mid_action = True
        result: StepResult | None = None
        try:
            result = await step()
        except ActionError as e:
            logger.debug("action_failed", action=name, error=str(e))
        except Exception as e:
            logger.debug("action_failed", action=name, error=str(e), error_type=type(e).__name__)
        finally:
            self.state.is_mid_action = False
        if result is not None:
            self.apply(result)
        return True

    def apply(self, result: StepResult) -> None:
        if not self.state.alive:
            logger.debug("step_result_discarded", next_task=result.next_task)
            return
        if result.acted:
            self.state.last_action_at = self.clock()
        if result.extracted_at is not None:
            self.state.last_extracted_at = result.extracted_at
        if result.reopen is not None:
            self.state.reopened_goals.add(result.reopen)
            if result.reopen not in self.state.goals_remaining:
                self.state.goals_remaining.append(result.reopen)
                self.state.goals_remaining.sort(key=PROGRESSION.index)
        if result.clear_target:
            self.state.target_player = None
        if result.next_task is not None:
            self._set_task(result.next_task)
        if result.announce:
            self.outbox.send(result.announce)

    def _set_task(self, task: Task) -> None:
        previous = self.state.current_task
        if task is previous:
            return
        self.state.current_task = task
        logger.info("task_changed", previous=str(previous), task=str(task), target=self.state.target_player)

    async def _wander(self) -> StepResult:
        await behaviors.wander(self.client, self.rng, self.sleep)
        return StepResult(acted=True)

    async def _craft(self, item: str, times: int = 1) -> bool:
        ok = await self.client.craft(item, times)
        if ok:
            logger.info("crafted", item=item, times=times)
        else:
            logger.debug("craft_unavailable", item=item)
        return ok

    # Steps

    async def _explore(self) -> StepResult:
        acted = False
        if self.rng.random() < self.config.explore_wander_probability:
            await behaviors.wander(self.client, self.rng, self.sleep)
            acted = True
        next_task = None
        if self.rng.random() < self.config.explore_switch_probability:
            next_task = self.rng.choice((Task.GATHERING_RESOURCE, Task.EXTRACTING_RESOURCE))
        return StepResult(next_task=next_task, acted=acted)

    async def _gather(self) -> StepResult:
        found = self.client.find_blocks(self.config.raw_blocks, self.config.gather_radius, self.config.gather_count)
        if not found:
            return await self._wander()
        target = found[0]
        logger.info("gathering", position=target)
        await self.client.look_at(target)
        block = self.client.block_at(target)
        if block is None:
            raise ActionError(f"No block at {target}")
        await self.client.dig(block)
        return StepResult(acted=True, announce="getting some wood for crafting")

    async def _craft_intermediate(self) -> StepResult:
        inv = self.snapshot()
        if inv.has_intermediate:
            return StepResult()
        failed = StepResult(next_task=Task.GATHERING_RESOURCE, reopen=Task.GATHERING_RESOURCE)
        try:
            if inv.planks_count < self.config.planks_for_intermediate and inv.has_raw:
                times = min(inv.raw_count, self.config.planks_per_craft)
                if not await self._craft(self.config.planks_item, times):
                    return failed
                return StepResult(acted=True)
            if inv.planks_count >= self.config.planks_for_intermediate:
                if not await self._craft(self.config.intermediate_item):
                    return failed
                return StepResult(
                    acted=True,
                    next_task=Task.CRAFTING_TOOL,
                    announce="awesome! just made a crafting table. time to craft some tools!",
                )
        except Exception as e:
            logger.debug("action_failed", action=str(Task.CRAFTING_INTERMEDIATE), error=str(e))
            return failed
        return failed

    async def _craft_tool(self) -> StepResult:
        inv = self.snapshot()
        if inv.has_tool:
            return StepResult(next_task=Task.EXTRACTING_RESOURCE)
        out_of_wood = StepResult(next_task=Task.GATHERING_RESOURCE, reopen=Task.GATHERING_RESOURCE)

        if inv.stick_count < 2:
            if inv.planks_count >= 2:
                await self._craft(self.config.stick_item, self.config.sticks_per_craft)
                return StepResult(acted=True)
            if inv.has_raw:
                await self._craft(self.config.planks_item)
                return StepResult(acted=True)
            return out_of_wood

        if inv.planks_count < 3:
            if inv.has_raw:
                await self._craft(self.config.planks_item)
                return StepResult(acted=True)
            return out_of_wood

        if not await self._craft(self.config.tool_item):
            raise ActionError(f"Cannot craft {self.config.tool_item}")
        return StepResult(
            acted=True,
            next_task=Task.EXTRACTING_RESOURCE,
            announce="made a pickaxe! time to mine some stone",
        )

    async def _extract(self) -> StepResult:
        cfg = self.config
        last = self.state.last_extracted_at
        if last is not None and self.clock() - last < cfg.extract_cooldown_s:
            return await self._wander()

        me = self.client.position
        if me is not None and me.y < cfg.surface_y:
            logger.info("returning_to_surface", y=me.y)
            await behaviors.hold(self.client, ("jump",), self.sleep, cfg.surface_jump_s)
            return StepResult(acted=True, next_task=Task.EXPLORING)

        found = self.client.find_blocks(cfg.extract_blocks, cfg.extract_radius, cfg.extract_count)
        if not found or self.rng.random() >= cfg.extract_probability:
            return await self._wander()

        target = found[0]
        await self.client.look_at(target)
        block = self.client.block_at(target)
        if block is None:
            raise ActionError(f"No block at {target}")
        tool = self.snapshot().tool
        if tool is not None:
            await self.client.equip(tool)
        await self.client.dig(block)
        logger.info("extracted", block=block.name)

        announce = None
        if self.rng.random() < cfg.extract_announce_probability:
            announce = self.rng.choice(MINING_LINES)
        next_task = None
        if self.rng.random() < cfg.extract_revert_probability:
            next_task = Task.EXPLORING
        return StepResult(acted=True, extracted_at=self.clock(), announce=announce, next_task=next_task)

    async def _follow(self) -> StepResult:
        cfg = self.config
        name = self.state.target_player
        lost = StepResult(next_task=Task.EXPLORING, clear_target=True)
        if not name:
            return lost
        entity = self.client.player(name)
        me = self.client.position
        if entity is None or me is None:
            logger.debug("follow_target_missing", target=name)
            return lost

        distance = me.distance_to(entity.position)
        if distance <= cfg.follow_near:
            return StepResult()
        if distance > cfg.follow_far:
            return StepResult(
                next_task=Task.EXPLORING,
                clear_target=True,
                announce=f"{name} you're too far away! come back if you need me",
            )

        logger.debug("following", target=name, distance=round(distance, 1))
        await self.client.look_at(entity.position)
        controls: tuple[str, ...] = ("forward",)
        if distance > cfg.follow_sprint:
            controls = ("forward", "sprint")
        await behaviors.hold(self.client, controls, self.sleep, cfg.follow_burst_s)
        return StepResult(acted=True)

    async def _seek_sustenance(self) -> StepResult:
        food = self.snapshot().consumable
        if food is not None:
            await self.client.equip(food)
            await self.client.consume()
            return StepResult(
                acted=True,
                next_task=Task.EXPLORING,
                announce="eating some food to restore health",
            )
        await behaviors.wander(self.client, self.rng, self.sleep)
        announce = None
        if self.rng.random() < self.config.sustenance_status_probability:
            announce = "looking for food, getting a bit hungry"
        return StepResult(acted=True, announce=announce)
