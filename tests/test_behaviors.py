# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Tests for movement bursts and inventory upkeep."""

from __future__ import annotations

import random

import pytest

from craftbot.agent import behaviors
from craftbot.agent.config import TimerConfig
from craftbot.world.base import Entity, Item, Vec3
from craftbot.world.sim import SimulatedClient


def _released(client: SimulatedClient) -> bool:
    final: dict[str, bool] = {}
    for control, state in client.controls:
        final[control] = state
    return not any(final.values())


async def _instant(_delay: float) -> None:
    return None


@pytest.mark.asyncio
async def test_hold_releases_controls_when_interrupted(sim: SimulatedClient) -> None:
    async def interrupted(_delay: float) -> None:
        raise RuntimeError("connection dropped")

    with pytest.raises(RuntimeError):
        await behaviors.hold(sim, ("forward", "sprint"), interrupted, 1.5)

    assert sim.controls == [
        ("forward", True),
        ("sprint", True),
        ("forward", False),
        ("sprint", False),
    ]


@pytest.mark.parametrize("seed", range(12))
@pytest.mark.asyncio
async def test_wander_always_releases_controls(sim: SimulatedClient, seed: int) -> None:
    name = await behaviors.wander(sim, random.Random(seed), _instant)

    assert name in {"sprint_forward", "walk_and_jump", "turn_and_move", "hop"}
    assert _released(sim)


@pytest.mark.asyncio
async def test_look_around_prefers_nearby_player(bus) -> None:
    sim = SimulatedClient(
        "localhost",
        25565,
        "AIPlayer",
        bus,
        players=[Entity(username="Steve", position=Vec3(3.0, 64.0, 0.0))],
    )
    await sim.connect()
    config = TimerConfig(look_player_probability=1.0)

    assert await behaviors.look_around(sim, random.Random(1), config) == "Steve"
    kind, target = sim.actions[0]
    assert kind == "look_at"
    assert (target.x, target.z) == (3.0, 0.0)
    assert target.y > 64.0


@pytest.mark.asyncio
async def test_look_around_random_glance(sim: SimulatedClient) -> None:
    assert await behaviors.look_around(sim, random.Random(1), TimerConfig()) is None
    assert sim.actions[0][0] == "look"


def _stacks(n: int, name: str = "oak_planks", count: int = 1) -> list[Item]:
    return [Item(name, count) for _ in range(n)]


class TestPickDiscard:
    def test_under_limit_keeps_everything(self) -> None:
        items = _stacks(29) + [Item("dirt", 64)]
        assert behaviors.pick_discard(items, TimerConfig()) is None

    def test_tosses_dirt_first(self) -> None:
        items = _stacks(30) + [Item("dirt", 12)]
        discard = behaviors.pick_discard(items, TimerConfig())
        assert discard is not None and discard.name == "dirt"

    def test_tosses_cobblestone_over_threshold(self) -> None:
        items = _stacks(29) + [Item("cobblestone", 20), Item("cobblestone", 20)]
        discard = behaviors.pick_discard(items, TimerConfig())
        assert discard is not None and discard.name == "cobblestone"

    def test_keeps_small_cobblestone_pile(self) -> None:
        items = _stacks(30) + [Item("cobblestone", 10)]
        assert behaviors.pick_discard(items, TimerConfig()) is None


@pytest.mark.asyncio
async def test_tidy_inventory_tosses_from_client(bus) -> None:
    items = _stacks(30, "stick") + [Item("dirt", 5)]
    sim = SimulatedClient("localhost", 25565, "AIPlayer", bus, inventory=items)
    await sim.connect()

    dropped = await behaviors.tidy_inventory(sim, TimerConfig())

    assert dropped is not None and dropped.name == "dirt"
    assert ("toss", "dirt") in sim.actions
    assert all(i.name != "dirt" for i in sim.inventory())
