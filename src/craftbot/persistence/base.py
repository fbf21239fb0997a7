# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Persistence sink protocol plus the null and failure-swallowing sinks."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from craftbot.logging import get_logger

if TYPE_CHECKING:
    from craftbot.core.session import EndReason, Session

logger = get_logger(__name__)


class PersistenceSink(Protocol):
    def create_session(self, session: Session) -> None: ...

    def end_session(self, session: Session, reason: EndReason) -> None: ...

    def log_interaction(self, sender: str, kind: str, text: str, response: str | None = None) -> None: ...

    def log_identity_usage(self, name: str, was_flagged: bool, reason: str | None = None) -> None: ...


class NullSink:
    """Sink used when persistence is disabled."""

    def create_session(self, session: Session) -> None:
        pass

    def end_session(self, session: Session, reason: EndReason) -> None:
        pass

    def log_interaction(self, sender: str, kind: str, text: str, response: str | None = None) -> None:
        pass

    def log_identity_usage(self, name: str, was_flagged: bool, reason: str | None = None) -> None:
        pass


class SafeSink:
    """Wraps a sink so a failing write is logged and never reaches the caller."""

    def __init__(self, inner: PersistenceSink) -> None:
        self.inner = inner
        self.failures = 0

    def _call(self, op: str, *args, **kwargs) -> None:
        try:
            getattr(self.inner, op)(*args, **kwargs)
        except Exception as e:
            self.failures += 1
            logger.warning("persistence_write_failed", op=op, error=str(e))

    def create_session(self, session: Session) -> None:
        self._call("create_session", session)

    def end_session(self, session: Session, reason: EndReason) -> None:
        self._call("end_session", session, reason)

    def log_interaction(self, sender: str, kind: str, text: str, response: str | None = None) -> None:
        self._call("log_interaction", sender, kind, text, response)

    def log_identity_usage(self, name: str, was_flagged: bool, reason: str | None = None) -> None:
        self._call("log_identity_usage", name, was_flagged, reason)
