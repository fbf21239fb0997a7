# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Idle behaviours shared by task steps and periodic timers.

Movement is done with timed control-state bursts. Every burst releases its
controls in ``finally`` so a failed or cancelled step never leaves a key held.
"""

from __future__ import annotations

import math
import random
from collections.abc import Awaitable, Callable
from typing import Any

from craftbot.agent.config import TimerConfig
from craftbot.logging import get_logger
from craftbot.world.base import Item, WorldClient

logger = get_logger(__name__)

Sleep = Callable[[float], Awaitable[Any]]

JUMP_TAP_S = 0.1


async def tap(client: WorldClient, control: str, sleep: Sleep, duration: float = JUMP_TAP_S) -> None:
    """Press a control briefly."""
    client.set_control_state(control, True)
    try:
        await sleep(duration)
    finally:
        client.set_control_state(control, False)


async def hold(client: WorldClient, controls: tuple[str, ...], sleep: Sleep, duration: float) -> None:
    for control in controls:
        client.set_control_state(control, True)
    try:
        await sleep(duration)
    finally:
        for control in controls:
            client.set_control_state(control, False)


async def _sprint_forward(client: WorldClient, rng: random.Random, sleep: Sleep) -> None:
    await hold(client, ("sprint", "forward"), sleep, 1.5 + rng.random() * 2.0)


async def _walk_and_jump(client: WorldClient, rng: random.Random, sleep: Sleep) -> None:
    duration = 2.0 + rng.random() * 1.5
    client.set_control_state("forward", True)
    try:
        if rng.random() < 0.6:
            await sleep(0.5)
            await tap(client, "jump", sleep)
            duration = max(0.0, duration - 0.5 - JUMP_TAP_S)
        await sleep(duration)
    finally:
        client.set_control_state("forward", False)


async def _turn_and_move(client: WorldClient, rng: random.Random, sleep: Sleep) -> None:
    yaw = client.yaw + (rng.random() - 0.5) * math.pi
    await client.look(yaw, client.pitch)
    await sleep(0.3)
    controls: tuple[str, ...] = ("forward",)
    if rng.random() < 0.4:
        controls = ("forward", "sprint")
    await hold(client, controls, sleep, 1.0 + rng.random() * 2.0)


async def _hop(client: WorldClient, rng: random.Random, sleep: Sleep) -> None:
    if not client.on_ground:
        return
    await tap(client, "jump", sleep)
    if rng.random() < 0.3:
        await sleep(0.3)
        await tap(client, "jump", sleep)


WANDER_PATTERNS = (_sprint_forward, _walk_and_jump, _turn_and_move, _hop)


async def wander(client: WorldClient, rng: random.Random, sleep: Sleep) -> str:
    """Run one randomly chosen movement pattern. Returns the pattern name."""
    pattern = WANDER_PATTERNS[rng.randrange(len(WANDER_PATTERNS))]
    await pattern(client, rng, sleep)
    return pattern.__name__.lstrip("_")


async def look_around(client: WorldClient, rng: random.Random, config: TimerConfig) -> str | None:
    """Glance at a nearby player, else look in a random direction.

    Returns the username looked at, or None for a random glance.
    """
    me = client.position
    if me is None:
        return None
    nearby = [
        p
        for p in client.players()
        if p.username != client.username and p.position.distance_to(me) < config.look_player_radius
    ]
    if nearby and rng.random() < config.look_player_probability:
        target = nearby[0]
        await client.look_at(target.position.offset(0, 1.6, 0))
        logger.debug("looking_at_player", player=target.username)
        return target.username
    yaw = client.yaw + (rng.random() - 0.5) * math.pi
    pitch = (rng.random() - 0.5) * math.pi / 3
    await client.look(yaw, pitch)
    return None


def pick_discard(items: list[Item], config: TimerConfig) -> Item | None:
    """First low-value stack to toss once the inventory is over its stack limit."""
    if len(items) <= config.inventory_stack_limit:
        return None
    totals: dict[str, int] = {}
    for item in items:
        totals[item.name] = totals.get(item.name, 0) + item.count
    for item in items:
        if "dirt" in item.name:
            return item
        if "cobblestone" in item.name and totals[item.name] > config.low_value_overflow:
            return item
    return None


async def tidy_inventory(client: WorldClient, config: TimerConfig) -> Item | None:
    items = client.inventory()
    logger.debug("inventory_checked", stacks=len(items))
    discard = pick_discard(items, config)
    if discard is None:
        return None
    await client.toss(discard)
    logger.debug("item_dropped", item=discard.name, count=discard.count)
    return discard
