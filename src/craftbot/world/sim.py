# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""In-process simulated world client.

Holds a tiny world (block map, inventory, other players) and implements the
``WorldClient`` surface without any networking. Used for offline runs and as
the fake in tests: every action is recorded in ``actions`` and every control
change in ``controls``.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from craftbot.errors import ActionError, TransientNetworkError
from craftbot.logging import get_logger
from craftbot.world import base as events
from craftbot.world.base import Block, Entity, Item, Vec3

if TYPE_CHECKING:
    from craftbot.core.events import EventBus

logger = get_logger(__name__)

SPAWN_POINT = Vec3(0.0, 64.0, 0.0)

# product -> (units produced per craft, ingredients per craft)
RECIPES: dict[str, tuple[int, dict[str, int]]] = {
    "oak_planks": (4, {"_log": 1}),
    "stick": (4, {"planks": 2}),
    "crafting_table": (1, {"planks": 4}),
    "wooden_pickaxe": (1, {"planks": 3, "stick": 2}),
}

# Blocks that drop something other than themselves.
DROPS = {"stone": "cobblestone", "grass_block": "dirt"}


def default_blocks() -> dict[Vec3, str]:
    """A few trees and a stone patch around spawn."""
    blocks: dict[Vec3, str] = {}
    for x, z in ((4, 3), (-6, 5), (9, -4)):
        for dy in range(3):
            blocks[Vec3(x, 64 + dy, z)] = "oak_log"
    for x in range(-2, 3):
        for z in range(-8, -5):
            blocks[Vec3(x, 63, z)] = "stone"
    return blocks


class SimulatedClient:
    """World client backed by in-memory state."""

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        bus: EventBus,
        *,
        blocks: dict[Vec3, str] | None = None,
        inventory: list[Item] | None = None,
        players: list[Entity] | None = None,
        health: float = 20.0,
        position: Vec3 = SPAWN_POINT,
        auto_login: bool = True,
        refuse: bool = False,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.bus = bus
        self.blocks = dict(default_blocks() if blocks is None else blocks)
        self.items: list[Item] = list(inventory or [])
        self.others: dict[str, Entity] = {p.username: p for p in players or ()}
        self.yaw = 0.0
        self.pitch = 0.0
        self.on_ground = True
        self.auto_login = auto_login
        self.refuse = refuse
        self.connected = False
        self.quit_reason: str | None = None
        self.actions: list[tuple[str, Any]] = []
        self.controls: list[tuple[str, bool]] = []
        self.chat_log: list[str] = []
        self.held: str | None = None
        self._health = health
        self._position = position
        self._spawned = False

    # Lifecycle

    async def connect(self) -> None:
        if self.refuse:
            raise TransientNetworkError(f"Connection refused by {self.host}:{self.port}")
        self.connected = True
        logger.debug("sim_connected", host=self.host, port=self.port, username=self.username)
        if self.auto_login:
            await self.login()

    async def login(self) -> None:
        """Emit ``login`` then ``spawn``."""
        await self.bus.emit(events.LOGIN)
        self._spawned = True
        await self.bus.emit(events.SPAWN)

    async def quit(self, reason: str = "") -> None:
        if not self.connected:
            return
        self.connected = False
        self.quit_reason = reason
        await self.bus.emit(events.END, reason or "quit")

    async def emit(self, event: str, *args: Any) -> None:
        """Deliver an arbitrary lifecycle event, as a server would."""
        await self.bus.emit(event, *args)

    # State

    @property
    def position(self) -> Vec3 | None:
        return self._position if self._spawned else None

    @position.setter
    def position(self, value: Vec3) -> None:
        self._position = value

    @property
    def health(self) -> float | None:
        return self._health if self._spawned else None

    async def set_health(self, value: float) -> None:
        self._health = value
        await self.bus.emit(events.HEALTH)

    def inventory(self) -> list[Item]:
        return [Item(i.name, i.count) for i in self.items if i.count > 0]

    def players(self) -> list[Entity]:
        return list(self.others.values())

    def player(self, username: str) -> Entity | None:
        return self.others.get(username)

    def move_player(self, username: str, position: Vec3) -> None:
        self.others[username] = Entity(username=username, position=position)

    async def add_player(self, username: str, position: Vec3 | None = None) -> None:
        self.move_player(username, position or self._position.offset(3, 0, 3))
        await self.bus.emit(events.PLAYER_JOINED, username)

    async def remove_player(self, username: str) -> None:
        self.others.pop(username, None)
        await self.bus.emit(events.PLAYER_LEFT, username)

    def find_blocks(self, names: Iterable[str], max_distance: float, count: int) -> list[Vec3]:
        wanted = set(names)
        origin = self._position
        hits = [
            pos
            for pos, name in self.blocks.items()
            if name in wanted and pos.distance_to(origin) <= max_distance
        ]
        hits.sort(key=lambda p: p.distance_to(origin))
        return hits[:count]

    def block_at(self, position: Vec3) -> Block | None:
        name = self.blocks.get(position)
        return Block(name, position) if name else None

    # Actions

    def _give(self, name: str, count: int) -> None:
        for item in self.items:
            if item.name == name:
                item.count += count
                return
        self.items.append(Item(name, count))

    def _count(self, marker: str) -> int:
        return sum(i.count for i in self.items if marker in i.name)

    def _take(self, marker: str, count: int) -> None:
        for item in self.items:
            if count <= 0:
                break
            if marker in item.name:
                used = min(item.count, count)
                item.count -= used
                count -= used
        self.items = [i for i in self.items if i.count > 0]

    async def dig(self, block: Block) -> None:
        self.actions.append(("dig", block.position))
        if self.blocks.get(block.position) != block.name:
            raise ActionError(f"{block.name} at {block.position} is gone")
        del self.blocks[block.position]
        self._give(DROPS.get(block.name, block.name), 1)

    async def look_at(self, position: Vec3) -> None:
        self.actions.append(("look_at", position))
        dx = position.x - self._position.x
        dz = position.z - self._position.z
        self.yaw = math.atan2(-dx, -dz)

    async def look(self, yaw: float, pitch: float) -> None:
        self.actions.append(("look", (yaw, pitch)))
        self.yaw, self.pitch = yaw, pitch

    def set_control_state(self, control: str, state: bool) -> None:
        self.controls.append((control, state))

    async def craft(self, item_name: str, times: int = 1) -> bool:
        recipe = RECIPES.get(item_name)
        if recipe is None or times < 1:
            return False
        produced, ingredients = recipe
        if any(self._count(marker) < need * times for marker, need in ingredients.items()):
            return False
        for marker, need in ingredients.items():
            self._take(marker, need * times)
        self._give(item_name, produced * times)
        self.actions.append(("craft", (item_name, times)))
        return True

    async def equip(self, item: Item) -> None:
        if self._count(item.name) <= 0:
            raise ActionError(f"No {item.name} to equip")
        self.actions.append(("equip", item.name))
        self.held = item.name

    async def consume(self) -> None:
        held = self.held
        if held is None or self._count(held) <= 0:
            raise ActionError("Nothing edible in hand")
        self._take(held, 1)
        self._health = min(20.0, self._health + 6.0)
        self.actions.append(("consume", held))

    async def toss(self, item: Item) -> None:
        self._take(item.name, item.count)
        self.actions.append(("toss", item.name))

    def chat(self, message: str) -> None:
        if not self.connected:
            raise TransientNetworkError("Not connected")
        self.chat_log.append(message)
