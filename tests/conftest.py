# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Pytest configuration and fixtures."""

from __future__ import annotations

import asyncio
import random

import pytest

from craftbot.agent.chat import ChatOutbox
from craftbot.agent.config import ChatConfig, TaskConfig
from craftbot.agent.state import AgentState
from craftbot.agent.tasks import TaskStateMachine
from craftbot.core.events import EventBus
from craftbot.world.sim import SimulatedClient


class FakeClock:
    """Manually advanced wall clock."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# Environment variables read by Settings.
SETTINGS_ENV = (
    "CRAFTBOT_CONFIG",
    "CRAFTBOT_HOST",
    "MINECRAFT_HOST",
    "HOST",
    "CRAFTBOT_PORT",
    "MINECRAFT_PORT",
    "CRAFTBOT_USERNAME",
    "MINECRAFT_USERNAME",
    "USERNAME",
    "CRAFTBOT_STATUS_PORT",
    "PORT",
)


async def no_sleep(_delay: float) -> None:
    await asyncio.sleep(0)


@pytest.fixture(autouse=True)
def clean_settings_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in SETTINGS_ENV:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
async def sim(bus: EventBus) -> SimulatedClient:
    """Connected and spawned simulated client with no other listeners."""
    client = SimulatedClient("localhost", 25565, "AIPlayer", bus)
    await client.connect()
    return client


@pytest.fixture
def make_machine(rng: random.Random, clock: FakeClock):
    """Factory for a task state machine around a client."""

    def _make(client: SimulatedClient, **task_overrides) -> TaskStateMachine:
        state = AgentState()
        outbox = ChatOutbox(client, state, ChatConfig(), clock)
        return TaskStateMachine(
            client,
            state,
            TaskConfig(**task_overrides),
            outbox,
            rng=rng,
            clock=clock,
            sleep=no_sleep,
        )

    return _make
