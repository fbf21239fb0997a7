# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Tests for the per-session agent and session records."""

from __future__ import annotations

import asyncio
import random

import pytest

from craftbot.agent.config import TimerConfig, TimerSpec
from craftbot.agent.runtime import Agent
from craftbot.agent.state import Task
from craftbot.core.session import EndReason, Session
from craftbot.world.sim import SimulatedClient

SLOW = TimerSpec(base_s=3600.0)
QUIET_TIMERS = TimerConfig(decision=SLOW, movement=SLOW, look=SLOW, ambient_chat=SLOW, inventory=SLOW)


async def _yield(_delay: float) -> None:
    await asyncio.sleep(0)


@pytest.fixture
def agent(sim: SimulatedClient, clock) -> Agent:
    session = Session(identity="AIPlayer", server_host="localhost", server_port=25565, started_at=clock())
    return Agent(sim, session, timers=QUIET_TIMERS, rng=random.Random(8), clock=clock, sleep=_yield)


class TestSession:
    def test_finish_is_idempotent(self) -> None:
        session = Session(identity="AIPlayer", server_host="localhost", server_port=25565, started_at=100.0)
        assert session.is_active
        assert session.duration_s is None

        assert session.finish(EndReason.KICKED, "Server restarting", now=160.0) is True
        assert session.finish(EndReason.ERROR, "late", now=200.0) is False

        assert not session.is_active
        assert session.end_reason is EndReason.KICKED
        assert session.end_detail == "Server restarting"
        assert session.duration_s == 60.0

    def test_ids_are_unique(self) -> None:
        a = Session(identity="A", server_host="h", server_port=1)
        b = Session(identity="A", server_host="h", server_port=1)
        assert a.id != b.id


@pytest.mark.asyncio
async def test_start_and_stop_lifecycle(agent: Agent, sim: SimulatedClient) -> None:
    agent.start()
    assert agent.scheduler.running
    assert {s.name for s in agent.scheduler.status()} == {
        "decision",
        "movement",
        "look",
        "ambient_chat",
        "inventory",
    }

    await agent.stop()
    await agent.stop()

    assert agent.alive is False
    assert not agent.scheduler.running
    assert not any(s.running for s in agent.scheduler.status())
    released = {control for control, state in sim.controls if state is False}
    assert {"forward", "jump", "sprint"} <= released


@pytest.mark.asyncio
async def test_start_after_stop_does_nothing(agent: Agent) -> None:
    await agent.stop()
    agent.start()

    assert not agent.scheduler.running


@pytest.mark.asyncio
async def test_decision_timer_drives_state_machine(agent: Agent) -> None:
    await agent.scheduler.fire("decision")

    assert agent.current_task is Task.GATHERING_RESOURCE
    assert agent.chat_messages_sent == 1


@pytest.mark.asyncio
async def test_chat_keyword_queues_trigger(agent: Agent) -> None:
    agent.handle_chat("Steve", "follow me")

    trigger = agent.state.pending_trigger
    assert trigger is not None
    assert trigger.kind == "follow"
    assert trigger.target == "Steve"

    await agent.stop()
    assert agent.chat.pending == 0


@pytest.mark.asyncio
async def test_idle_timers_respect_action_guard(agent: Agent, sim: SimulatedClient) -> None:
    agent.state.is_mid_action = True

    assert await agent.idle_move() is False
    await agent.idle_look()
    assert await agent.maintain_inventory() is False

    assert sim.controls == []
    assert sim.actions == []


@pytest.mark.asyncio
async def test_idle_move_wanders(agent: Agent, sim: SimulatedClient, clock) -> None:
    assert await agent.idle_move() is True

    assert sim.controls
    assert agent.state.last_action_at == clock.now
    assert agent.state.is_mid_action is False


@pytest.mark.asyncio
async def test_dance_gesture(agent: Agent, sim: SimulatedClient) -> None:
    await agent.gesture("dance")

    assert sim.controls == [("jump", True), ("jump", False)]
    assert sim.actions[-1][0] == "look"


@pytest.mark.asyncio
async def test_jump_gesture_needs_ground(agent: Agent, sim: SimulatedClient) -> None:
    sim.on_ground = False

    await agent.gesture("jump")

    assert sim.controls == []
