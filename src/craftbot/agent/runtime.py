# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Per-session agent: state machine, chat responder and timers for one connection."""

from __future__ import annotations

import asyncio
import math
import random
import time
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from craftbot.agent import behaviors
from craftbot.agent.chat import ChatOutbox, ChatResponder
from craftbot.agent.config import ChatConfig, TaskConfig, TimerConfig
from craftbot.agent.scheduler import TickScheduler
from craftbot.agent.state import AgentState, Task
from craftbot.agent.tasks import StepResult, TaskStateMachine
from craftbot.logging import get_logger

if TYPE_CHECKING:
    from craftbot.core.session import Session
    from craftbot.llm.reply import ReplyGenerator
    from craftbot.persistence.base import PersistenceSink
    from craftbot.world.base import WorldClient

logger = get_logger(__name__)


class Agent:
    """Everything that lives exactly as long as one session."""

    def __init__(
        self,
        client: WorldClient,
        session: Session,
        *,
        tasks: TaskConfig | None = None,
        chat: ChatConfig | None = None,
        timers: TimerConfig | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        generator: ReplyGenerator | None = None,
        sink: PersistenceSink | None = None,
    ) -> None:
        self.client = client
        self.session = session
        self.task_config = tasks or TaskConfig()
        self.chat_config = chat or ChatConfig()
        self.timer_config = timers or TimerConfig()
        self.rng = rng or random.Random()
        self.sleep = sleep

        self.state = AgentState()
        self.outbox = ChatOutbox(client, self.state, self.chat_config, clock)
        self.machine = TaskStateMachine(
            client,
            self.state,
            self.task_config,
            self.outbox,
            rng=self.rng,
            clock=clock,
            sleep=sleep,
        )
        self.chat = ChatResponder(
            username=session.identity,
            state=self.state,
            outbox=self.outbox,
            config=self.chat_config,
            request=self.machine.request,
            rng=self.rng,
            clock=clock,
            sleep=sleep,
            generator=generator,
            gesture=self.gesture,
            sink=sink,
        )
        self.scheduler = TickScheduler(self.rng, sleep)
        t = self.timer_config
        self.scheduler.add("decision", t.decision.base_s, t.decision.jitter_s, self.machine.tick)
        self.scheduler.add("movement", t.movement.base_s, t.movement.jitter_s, self.idle_move)
        self.scheduler.add("look", t.look.base_s, t.look.jitter_s, self.idle_look)
        self.scheduler.add("ambient_chat", t.ambient_chat.base_s, t.ambient_chat.jitter_s, self.chat.ambient)
        self.scheduler.add("inventory", t.inventory.base_s, t.inventory.jitter_s, self.maintain_inventory)

    @property
    def current_task(self) -> Task:
        return self.state.current_task

    @property
    def chat_messages_sent(self) -> int:
        return self.outbox.sent

    @property
    def alive(self) -> bool:
        return self.state.alive

    def start(self) -> None:
        if not self.state.alive:
            return
        self.scheduler.start()
        logger.info("agent_started", identity=self.session.identity, session_id=self.session.id)

    async def stop(self) -> None:
        """Cancel timers and pending replies. Late action results are discarded."""
        if not self.state.alive:
            return
        self.state.alive = False
        await self.scheduler.stop()
        await self.chat.cancel_pending()
        for control in ("forward", "back", "left", "right", "jump", "sprint"):
            try:
                self.client.set_control_state(control, False)
            except Exception as e:
                logger.debug("control_release_failed", control=control, error=str(e))
        logger.info("agent_stopped", identity=self.session.identity, chat_sent=self.outbox.sent)

    # Event routing

    def handle_chat(self, sender: str, message: str) -> None:
        self.chat.on_message(sender, message)

    def handle_player_joined(self, name: str) -> None:
        logger.info("player_joined", player=name)
        self.chat.on_player_joined(name)

    def handle_health(self) -> None:
        health = self.client.health
        if health is not None and health < self.task_config.low_health:
            logger.warning("low_health", health=health)

    # Timer callbacks

    async def idle_move(self) -> bool:
        async def _step() -> StepResult:
            await behaviors.wander(self.client, self.rng, self.sleep)
            return StepResult(acted=True)

        return await self.machine.run_exclusive(_step, name="idle_move")

    async def idle_look(self) -> None:
        if self.state.is_mid_action:
            return
        await behaviors.look_around(self.client, self.rng, self.timer_config)

    async def maintain_inventory(self) -> bool:
        async def _step() -> None:
            await behaviors.tidy_inventory(self.client, self.timer_config)

        return await self.machine.run_exclusive(_step, name="inventory")

    async def gesture(self, name: str) -> None:
        """Chat-requested jump or dance."""

        async def _step() -> None:
            if name == "jump" and not self.client.on_ground:
                return
            await behaviors.tap(self.client, "jump", self.sleep)
            if name == "dance":
                await self.sleep(0.2)
                await self.client.look(self.client.yaw + math.pi / 2, self.client.pitch)

        await self.machine.run_exclusive(_step, name=f"gesture:{name}")
