# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""In-process event bus for client lifecycle events.

Handlers run on the caller's event loop, one at a time, in registration
order. Async handlers are awaited before the next handler runs, so delivery
is reproducible in tests without a real network.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable
from typing import Any

from craftbot.logging import get_logger

logger = get_logger(__name__)

Handler = Callable[..., Any]


class EventBus:
    """Ordered publish/subscribe for one client connection."""

    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = {}
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def on(self, event: str, handler: Handler) -> None:
        """Register a handler for ``event``."""
        if self._closed:
            raise RuntimeError("EventBus is closed")
        self._handlers.setdefault(event, []).append(handler)

    def off(self, event: str, handler: Handler) -> None:
        """Remove a handler. Safe to call even if it is not registered."""
        handlers = self._handlers.get(event)
        if handlers and handler in handlers:
            handlers.remove(handler)

    def handler_count(self, event: str) -> int:
        return len(self._handlers.get(event, ()))

    async def emit(self, event: str, *args: Any) -> None:
        """Deliver ``event`` to every handler in registration order.

        A failing handler is logged and does not stop delivery to the rest.
        Events emitted after ``close()`` are dropped.
        """
        if self._closed:
            logger.debug("event_dropped_bus_closed", event_name=event)
            return
        for handler in list(self._handlers.get(event, ())):
            try:
                result = handler(*args)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error("event_handler_failed", event_name=event, error=str(e), exc_info=True)

    def close(self) -> None:
        """Drop all handlers; late events from a dead connection are ignored."""
        self._closed = True
        self._handlers.clear()
