# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Persistence sinks for session, identity and interaction records."""

from __future__ import annotations

from craftbot.persistence.base import NullSink, PersistenceSink, SafeSink
from craftbot.persistence.json_store import InteractionRecord, JsonStore

__all__ = ["InteractionRecord", "JsonStore", "NullSink", "PersistenceSink", "SafeSink"]
