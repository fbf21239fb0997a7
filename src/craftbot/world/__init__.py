# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""World/protocol client surface and client factory resolution."""

from __future__ import annotations

import importlib

from craftbot.world.base import Block, ClientFactory, Entity, Item, Vec3, WorldClient

__all__ = [
    "Block",
    "ClientFactory",
    "Entity",
    "Item",
    "Vec3",
    "WorldClient",
    "load_client_factory",
]


def load_client_factory(path: str) -> ClientFactory:
    """Resolve a ``module:attribute`` path to a client factory.

    Args:
        path: Dotted module path and attribute, e.g. ``craftbot.world.sim:SimulatedClient``

    Returns:
        Callable building a client for one connection attempt

    Raises:
        ValueError: If the path is malformed or does not resolve to a callable
    """
    module_name, sep, attr = path.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"Client factory must look like 'module:attribute', got {path!r}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ValueError(f"Cannot import client module {module_name!r}: {e}") from e
    factory = getattr(module, attr, None)
    if factory is None or not callable(factory):
        raise ValueError(f"{path!r} is not a callable client factory")
    return factory
