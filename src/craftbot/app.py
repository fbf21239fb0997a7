# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Wires settings into a supervisor and runs it until shutdown."""

from __future__ import annotations

import asyncio
import contextlib
import random
import signal
import time
from collections.abc import Awaitable, Callable
from typing import Any

from craftbot.agent.runtime import Agent
from craftbot.core.identity import IdentityRecord, IdentityRotator
from craftbot.core.reconnect import ReconnectPolicy
from craftbot.core.session import Session
from craftbot.core.supervisor import ConnectionSupervisor
from craftbot.errors import PersistenceError
from craftbot.llm import LLMReplyGenerator, get_provider
from craftbot.logging import get_logger
from craftbot.persistence import JsonStore, NullSink, PersistenceSink, SafeSink
from craftbot.settings import Settings
from craftbot.status import StatusServer
from craftbot.world import ClientFactory, WorldClient, load_client_factory

logger = get_logger(__name__)


def open_sink(settings: Settings) -> tuple[PersistenceSink, list[IdentityRecord]]:
    """JSON store under ``data_dir`` plus its identity history, or a null sink."""
    if settings.data_dir is None:
        return NullSink(), []
    try:
        store = JsonStore(settings.data_dir, server_host=settings.host, server_port=settings.port)
        history = store.load_identity_history()
    except PersistenceError as e:
        logger.warning("persistence_unavailable", data_dir=str(settings.data_dir), error=str(e))
        return NullSink(), []
    logger.info("persistence_enabled", data_dir=str(settings.data_dir), identities=len(history))
    return store, history


def build_supervisor(
    settings: Settings,
    *,
    client_factory: ClientFactory | None = None,
    sink: PersistenceSink | None = None,
    history: list[IdentityRecord] | None = None,
    generator: LLMReplyGenerator | None = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    clock: Callable[[], float] = time.time,
) -> ConnectionSupervisor:
    rng = random.Random(settings.seed)
    safe_sink = SafeSink(sink or NullSink())
    rotator = IdentityRotator(
        settings.username,
        settings.identity_pool,
        settings.host,
        settings.port,
        rng=rng,
        history=history,
    )

    def agent_factory(client: WorldClient, session: Session) -> Agent:
        return Agent(
            client,
            session,
            tasks=settings.tasks,
            chat=settings.chat,
            timers=settings.timers,
            rng=rng,
            clock=clock,
            sleep=sleep,
            generator=generator,
            sink=safe_sink,
        )

    return ConnectionSupervisor(
        host=settings.host,
        port=settings.port,
        rotator=rotator,
        client_factory=client_factory or load_client_factory(settings.client),
        agent_factory=agent_factory,
        reconnect=ReconnectPolicy(settings.reconnect),
        sink=safe_sink,
        sleep=sleep,
        clock=clock,
    )


async def run(settings: Settings, *, client_factory: ClientFactory | None = None) -> int:
    """Run until a shutdown signal or an exhausted reconnect budget.

    Returns:
        Process exit code: 0 after a graceful shutdown, 1 when reconnects gave up
    """
    sink, history = open_sink(settings)
    generator = None
    if settings.llm.enabled:
        generator = LLMReplyGenerator(get_provider(settings.llm), settings.llm)
        logger.info("reply_generator_enabled", provider=settings.llm.provider, model=settings.llm.get_model())

    supervisor = build_supervisor(
        settings,
        client_factory=client_factory,
        sink=sink,
        history=history,
        generator=generator,
    )

    status_server = None
    if settings.status_port:
        status_server = StatusServer(supervisor.status, settings.status_host, settings.status_port)
        status_server.start()

    loop = asyncio.get_running_loop()
    shutdowns: set[asyncio.Task[None]] = set()

    def _on_signal(name: str) -> None:
        logger.info("signal_received", signal=name)
        task = asyncio.ensure_future(supervisor.shutdown())
        shutdowns.add(task)
        task.add_done_callback(shutdowns.discard)

    installed = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, _on_signal, sig.name)
            installed.append(sig)

    logger.info("craftbot_starting", server=settings.server, identity=settings.username)
    try:
        await supervisor.start()
        await supervisor.wait_stopped()
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)
        if status_server is not None:
            await status_server.stop()
        if generator is not None:
            await generator.close()

    if supervisor.exhausted:
        logger.error("craftbot_exiting", reason="reconnect_exhausted")
        return 1
    logger.info("craftbot_exiting", reason="shutdown")
    return 0
