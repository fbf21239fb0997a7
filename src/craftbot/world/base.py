# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Protocol for world/protocol clients and the value types they exchange.

The client owns the network connection, world model, physics and pathing.
craftbot only consumes this surface; any implementation can be plugged in
through ``Settings.client``.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from craftbot.core.events import EventBus

# Lifecycle events a client emits onto its bus.
LOGIN = "login"
SPAWN = "spawn"
CHAT = "chat"
PLAYER_JOINED = "player_joined"
PLAYER_LEFT = "player_left"
HEALTH = "health"
KICKED = "kicked"
ERROR = "error"
END = "end"


@dataclass(frozen=True)
class Vec3:
    """Position in world coordinates."""

    x: float
    y: float
    z: float

    def distance_to(self, other: Vec3) -> float:
        return math.dist((self.x, self.y, self.z), (other.x, other.y, other.z))

    def offset(self, dx: float, dy: float, dz: float) -> Vec3:
        return Vec3(self.x + dx, self.y + dy, self.z + dz)


@dataclass
class Item:
    """One inventory stack."""

    name: str
    count: int = 1


@dataclass
class Entity:
    """Another player (or mob) visible to the client."""

    username: str
    position: Vec3
    kind: str = "player"


@dataclass(frozen=True)
class Block:
    name: str
    position: Vec3


class WorldClient(Protocol):
    """Surface of an external world/protocol client.

    Awaitable methods may suspend for network round trips and raise on
    failure; callers treat any exception as a failed action.
    """

    username: str
    yaw: float
    pitch: float
    on_ground: bool

    @property
    def position(self) -> Vec3 | None:
        """Own position, None before spawn."""
        ...

    @property
    def health(self) -> float | None:
        ...

    async def connect(self) -> None:
        """Start the handshake. Completion is signalled by a ``login`` event."""
        ...

    async def quit(self, reason: str = "") -> None:
        ...

    def inventory(self) -> list[Item]:
        ...

    def players(self) -> list[Entity]:
        ...

    def player(self, username: str) -> Entity | None:
        ...

    def find_blocks(self, names: Iterable[str], max_distance: float, count: int) -> list[Vec3]:
        """Positions of matching blocks, nearest first."""
        ...

    def block_at(self, position: Vec3) -> Block | None:
        ...

    async def dig(self, block: Block) -> None:
        ...

    async def look_at(self, position: Vec3) -> None:
        ...

    async def look(self, yaw: float, pitch: float) -> None:
        ...

    def set_control_state(self, control: str, state: bool) -> None:
        ...

    async def craft(self, item_name: str, times: int = 1) -> bool:
        """Apply a recipe ``times`` times. False when no recipe is usable."""
        ...

    async def equip(self, item: Item) -> None:
        ...

    async def consume(self) -> None:
        ...

    async def toss(self, item: Item) -> None:
        ...

    def chat(self, message: str) -> None:
        ...


class ClientFactory(Protocol):
    """Builds a client for one connection attempt."""

    def __call__(self, host: str, port: int, username: str, bus: EventBus) -> WorldClient:
        ...
