# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Connection supervisor: session lifecycle, reconnect backoff, identity rotation.

State flow::

    IDLE -> CONNECTING -> ACTIVE -> TERMINATING -> BACKOFF -> CONNECTING ...
                                         \\-> STOPPED (shutdown or exhausted budget)

Each connection attempt gets a fresh event bus and client. Every termination
signal (kicked, error, end) funnels into ``_terminate``; the reconnect policy
guard makes sure a burst of signals from one dying connection schedules
exactly one reconnect.
"""

from __future__ import annotations

import asyncio
import contextlib
import time
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field

from craftbot.core.events import EventBus
from craftbot.core.identity import IdentityRotator
from craftbot.core.reconnect import ReconnectPolicy
from craftbot.core.session import EndReason, Session
from craftbot.errors import BanDetected, ReconnectExhausted, TransientNetworkError
from craftbot.logging import get_logger
from craftbot.persistence.base import NullSink, PersistenceSink, SafeSink
from craftbot.world import base as world
from craftbot.world.base import ClientFactory, WorldClient

logger = get_logger(__name__)


class SupervisorState(StrEnum):
    IDLE = "idle"
    CONNECTING = "connecting"
    ACTIVE = "active"
    TERMINATING = "terminating"
    BACKOFF = "backoff"
    STOPPED = "stopped"


class SessionAgent(Protocol):
    """Per-session behaviour driven by the supervisor."""

    current_task: str
    chat_messages_sent: int

    def start(self) -> None: ...

    async def stop(self) -> None: ...

    def handle_chat(self, sender: str, message: str) -> None: ...

    def handle_player_joined(self, name: str) -> None: ...

    def handle_health(self) -> None: ...


AgentFactory = Callable[[WorldClient, Session], SessionAgent]


class SupervisorStatus(BaseModel):
    """Read-only projection served by the status endpoint."""

    running: bool
    identity: str | None = None
    server: str
    last_seen: str | None = Field(default=None, alias="lastSeen")
    uptime: str
    uptime_seconds: float
    reconnect_attempts: int = Field(alias="reconnectAttempts")
    state: SupervisorState
    session_id: str | None = None
    current_task: str | None = None
    total_sessions: int = 0
    chat_messages_sent: int = 0

    model_config = ConfigDict(populate_by_name=True)


def format_uptime(seconds: float) -> str:
    total = max(0, int(seconds))
    hours, rem = divmod(total, 3600)
    minutes, secs = divmod(rem, 60)
    return f"{hours}h {minutes}m {secs}s"


class ConnectionSupervisor:
    """Owns the one live connection, its Session and its Agent."""

    def __init__(
        self,
        *,
        host: str,
        port: int,
        rotator: IdentityRotator,
        client_factory: ClientFactory,
        agent_factory: AgentFactory,
        reconnect: ReconnectPolicy | None = None,
        sink: PersistenceSink | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.host = host
        self.port = port
        self.rotator = rotator
        self.client_factory = client_factory
        self.agent_factory = agent_factory
        self.policy = reconnect or ReconnectPolicy()
        self.sink = SafeSink(sink or NullSink())
        self._sleep = sleep
        self._clock = clock

        self.state = SupervisorState.IDLE
        self.client: WorldClient | None = None
        self.session: Session | None = None
        self.agent: SessionAgent | None = None
        self.identity: str | None = None
        self.total_sessions = 0
        self.last_seen: float | None = None

        self._bus: EventBus | None = None
        self._started_at = clock()
        self._connect_attempt = 0
        self._chat_sent_before = 0
        self._reconnect_task: asyncio.Task[None] | None = None
        self._stop_requested = False
        self._exhausted = False
        self._stopped = asyncio.Event()

    @property
    def exhausted(self) -> bool:
        return self._exhausted

    @property
    def pending_reconnect(self) -> asyncio.Task[None] | None:
        return self._reconnect_task

    async def start(self) -> None:
        """Begin the first connection attempt."""
        if self.state is not SupervisorState.IDLE:
            raise RuntimeError(f"Supervisor already started (state={self.state})")
        self._started_at = self._clock()
        await self._connect()

    async def wait_stopped(self) -> None:
        await self._stopped.wait()

    # Connection

    async def _connect(self) -> None:
        self.state = SupervisorState.CONNECTING
        self._connect_attempt = self.policy.attempt_count
        name = self.rotator.next_identity(self._connect_attempt)
        self.identity = name
        self.sink.log_identity_usage(name, False)

        bus = EventBus()
        bus.on(world.LOGIN, self._on_login)
        bus.on(world.SPAWN, self._on_spawn)
        bus.on(world.CHAT, self._on_chat)
        bus.on(world.PLAYER_JOINED, self._on_player_joined)
        bus.on(world.HEALTH, self._on_health)
        bus.on(world.KICKED, self._on_kicked)
        bus.on(world.ERROR, self._on_error)
        bus.on(world.END, self._on_end)
        self._bus = bus

        logger.info(
            "connecting",
            host=self.host,
            port=self.port,
            identity=name,
            attempt=self._connect_attempt,
        )
        try:
            self.client = self.client_factory(self.host, self.port, name, bus)
            await self.client.connect()
        except Exception as e:
            err = TransientNetworkError(f"Connect to {self.host}:{self.port} failed: {e}")
            logger.warning("connect_failed", identity=name, error=str(err))
            await self._terminate(EndReason.ERROR, str(err))

    # Event handlers

    async def _on_login(self) -> None:
        if self.state is not SupervisorState.CONNECTING:
            logger.debug("login_ignored", state=str(self.state))
            return
        self.policy.reset()
        now = self._clock()
        self.session = Session(
            identity=self.identity or "",
            server_host=self.host,
            server_port=self.port,
            started_at=now,
            reconnect_attempt_number=self._connect_attempt,
        )
        self.total_sessions += 1
        self.sink.create_session(self.session)
        self.agent = self.agent_factory(self.client, self.session)
        self.state = SupervisorState.ACTIVE
        self.last_seen = now
        logger.info("session_started", session_id=self.session.id, identity=self.identity)

    def _on_spawn(self) -> None:
        self.last_seen = self._clock()
        if self.state is SupervisorState.ACTIVE and self.agent is not None:
            self.agent.start()
            logger.info("spawned", identity=self.identity)

    def _on_chat(self, sender: str, message: str) -> None:
        self.last_seen = self._clock()
        if self.state is not SupervisorState.ACTIVE or self.agent is None:
            return
        if sender != self.identity:
            self.sink.log_interaction(sender, "chat", message)
        self.agent.handle_chat(sender, message)

    def _on_player_joined(self, name: str) -> None:
        if self.state is not SupervisorState.ACTIVE or self.agent is None:
            return
        if name != self.identity:
            self.sink.log_interaction(name, "join", "")
        self.agent.handle_player_joined(name)

    def _on_health(self, *_args: Any) -> None:
        self.last_seen = self._clock()
        if self.state is SupervisorState.ACTIVE and self.agent is not None:
            self.agent.handle_health()

    async def _on_kicked(self, reason: Any = "") -> None:
        text = str(reason)
        logger.warning("kicked", identity=self.identity, reason=text)
        if self.identity is not None:
            try:
                self.rotator.record_kick(self.identity, text)
            except BanDetected as e:
                logger.warning("identity_flagged", identity=e.name, reason=e.reason)
                self.sink.log_identity_usage(e.name, True, e.reason)
        await self._terminate(EndReason.KICKED, text)

    async def _on_error(self, error: Any = None) -> None:
        logger.warning("client_error", identity=self.identity, error=str(error))
        await self._terminate(EndReason.ERROR, str(error))

    async def _on_end(self, reason: Any = "") -> None:
        logger.info("connection_ended", identity=self.identity, reason=str(reason))
        await self._terminate(EndReason.DISCONNECT, str(reason) if reason else None)

    # Termination and backoff

    async def _terminate(self, reason: EndReason, detail: str | None = None) -> None:
        if self.state in (SupervisorState.STOPPED, SupervisorState.TERMINATING):
            return
        if self.policy.is_reconnecting:
            logger.debug("termination_ignored_reconnect_pending", reason=str(reason))
            return

        self.state = SupervisorState.TERMINATING
        await self._teardown(reason, detail)

        if reason is EndReason.SHUTDOWN or self._stop_requested:
            self._mark_stopped()
            return
        self._schedule_reconnect()

    async def _teardown(self, reason: EndReason, detail: str | None) -> None:
        agent, self.agent = self.agent, None
        if agent is not None:
            self._chat_sent_before += agent.chat_messages_sent
            try:
                await agent.stop()
            except Exception as e:
                logger.warning("agent_stop_failed", error=str(e))

        session = self.session
        if session is not None and session.finish(reason, detail, now=self._clock()):
            self.sink.end_session(session, reason)
            logger.info(
                "session_ended",
                session_id=session.id,
                reason=str(reason),
                detail=detail,
                duration_s=session.duration_s,
            )

        if self._bus is not None:
            self._bus.close()
            self._bus = None

        client, self.client = self.client, None
        if client is not None:
            try:
                await client.quit(str(reason))
            except Exception as e:
                logger.debug("client_quit_failed", error=str(e))

    def _schedule_reconnect(self) -> None:
        try:
            delay = self.policy.begin()
        except ReconnectExhausted as e:
            logger.error("reconnect_exhausted", error=str(e))
            self._exhausted = True
            self._mark_stopped()
            return
        if delay is None:
            return
        self.state = SupervisorState.BACKOFF
        logger.info("reconnect_scheduled", attempt=self.policy.attempt_count, delay_s=delay)
        self._reconnect_task = asyncio.create_task(self._reconnect_after(delay))

    async def _reconnect_after(self, delay: float) -> None:
        await self._sleep(delay)
        self.policy.finish()
        if self.state is SupervisorState.STOPPED or self._stop_requested:
            return
        await self._connect()

    # Shutdown

    async def shutdown(self) -> None:
        """Graceful stop: cancel any pending reconnect, flush the session, quit."""
        if self.state is SupervisorState.STOPPED:
            return
        self._stop_requested = True
        logger.info("shutdown_requested", state=str(self.state))

        task = self._reconnect_task
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self.policy.finish()

        if self.state is SupervisorState.TERMINATING:
            # Teardown in progress; it ends in STOPPED because of the flag.
            await self._stopped.wait()
            return

        self.state = SupervisorState.TERMINATING
        await self._teardown(EndReason.SHUTDOWN, None)
        self._mark_stopped()

    def _mark_stopped(self) -> None:
        self.state = SupervisorState.STOPPED
        self._stopped.set()
        logger.info("supervisor_stopped", exhausted=self._exhausted)

    # Status

    def status(self) -> SupervisorStatus:
        now = self._clock()
        uptime_s = max(0.0, now - self._started_at)
        last_seen = None
        if self.last_seen is not None:
            last_seen = datetime.fromtimestamp(self.last_seen, tz=UTC).isoformat()
        agent = self.agent
        sent = self._chat_sent_before + (agent.chat_messages_sent if agent else 0)
        return SupervisorStatus(
            running=self.state is SupervisorState.ACTIVE,
            identity=self.identity,
            server=f"{self.host}:{self.port}",
            last_seen=last_seen,
            uptime=format_uptime(uptime_s),
            uptime_seconds=round(uptime_s, 3),
            reconnect_attempts=self.policy.attempt_count,
            state=self.state,
            session_id=self.session.id if self.session and self.session.is_active else None,
            current_task=str(agent.current_task) if agent else None,
            total_sessions=self.total_sessions,
            chat_messages_sent=sent,
        )
