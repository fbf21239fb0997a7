# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Centralized default values for craftbot."""

from __future__ import annotations

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 25565
DEFAULT_USERNAME = "AIPlayer"

STATUS_HOST = "0.0.0.0"
STATUS_PORT = 5000

DEFAULT_CLIENT = "craftbot.world.sim:SimulatedClient"

IDENTITY_POOL = (
    "AIPlayer",
    "BotHelper",
    "AutoCrafter",
    "MineBot",
    "PlayerAI",
    "CraftBot",
    "ExploreBot",
    "BuildHelper",
    "GameBot",
    "ServerBot",
    "FriendlyAI",
    "HelpBot",
    "ChatBot",
    "WorkBot",
    "PlayBot",
    "SmartBot",
    "QuickBot",
    "FastBot",
    "CoolBot",
    "NiceBot",
)

# Kick reasons containing any of these (case-insensitive) flag the identity.
BAN_KEYWORDS = ("ban", "banned", "blacklist", "prohibited", "blocked", "suspended")
