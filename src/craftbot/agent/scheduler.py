# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import asyncio
import contextlib
import inspect
import random
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from craftbot.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = get_logger(__name__)


class TimerStatus(BaseModel):
    name: str
    base_s: float
    jitter_s: float
    running: bool
    fired: int
    failures: int


@dataclass
class _Timer:
    name: str
    base_s: float
    jitter_s: float
    callback: Callable[[], Any]
    task: asyncio.Task[None] | None = None
    fired: int = 0
    failures: int = 0


class TickScheduler:
    """Named periodic timers re-armed with a jittered interval after each firing."""

    def __init__(
        self,
        rng: random.Random | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._rng = rng or random.Random()
        self._sleep = sleep
        self._timers: dict[str, _Timer] = {}
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def add(self, name: str, base_s: float, jitter_s: float, callback: Callable[[], Any]) -> None:
        if name in self._timers:
            raise ValueError(f"Timer {name!r} already registered")
        if base_s <= 0:
            raise ValueError(f"Timer {name!r} needs a positive base period")
        self._timers[name] = _Timer(name=name, base_s=base_s, jitter_s=max(0.0, jitter_s), callback=callback)
        if self._running:
            self._arm(self._timers[name])

    def next_interval(self, name: str) -> float:
        timer = self._timers[name]
        return timer.base_s + self._rng.uniform(0, timer.jitter_s)

    def start(self) -> None:
        if self._running:
            return
        self._running = True
        for timer in self._timers.values():
            self._arm(timer)
        logger.debug("scheduler_started", timers=sorted(self._timers))

    async def stop(self) -> None:
        """Cancel every timer as a group, then wait for them to unwind."""
        self._running = False
        current = asyncio.current_task()
        pending = []
        for timer in self._timers.values():
            task, timer.task = timer.task, None
            if task is not None and not task.done():
                task.cancel()
                if task is not current:
                    pending.append(task)
        for task in pending:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        logger.debug("scheduler_stopped")

    def status(self) -> list[TimerStatus]:
        return [
            TimerStatus(
                name=t.name,
                base_s=t.base_s,
                jitter_s=t.jitter_s,
                running=t.task is not None and not t.task.done(),
                fired=t.fired,
                failures=t.failures,
            )
            for t in self._timers.values()
        ]

    async def fire(self, name: str) -> None:
        """Run one timer's callback now. Failures are logged, never raised."""
        timer = self._timers[name]
        timer.fired += 1
        try:
            result = timer.callback()
            if inspect.isawaitable(result):
                await result
        except asyncio.CancelledError:
            raise
        except Exception as e:
            timer.failures += 1
            logger.warning("timer_callback_failed", timer=name, error=str(e))

    def _arm(self, timer: _Timer) -> None:
        if timer.task and not timer.task.done():
            timer.task.cancel()
        timer.task = asyncio.create_task(self._loop(timer), name=f"timer:{timer.name}")

    async def _loop(self, timer: _Timer) -> None:
        try:
            while self._running:
                await self._sleep(self.next_interval(timer.name))
                if not self._running:
                    break
                await self.fire(timer.name)
        except asyncio.CancelledError:
            return
