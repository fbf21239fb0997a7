# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""JSON file persistence for sessions, identities and chat interactions.

Layout under ``data_dir``:

- ``sessions.json``: bounded list of session records, newest last
- ``identities.jsonl``: append-only identity usage and flag entries
- ``interactions.jsonl``: one chat interaction per line
"""

from __future__ import annotations

import json
import time
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field

from craftbot.core.identity import IdentityRecord
from craftbot.core.session import Session
from craftbot.errors import PersistenceError
from craftbot.logging import get_logger

if TYPE_CHECKING:
    from craftbot.core.session import EndReason

logger = get_logger(__name__)


class InteractionRecord(BaseModel):
    sender: str
    kind: str
    text: str
    response: str | None = None
    at: float = Field(default_factory=time.time)

    model_config = ConfigDict(extra="ignore")


class JsonStore:
    """JSON-backed persistence sink for one server endpoint."""

    def __init__(
        self,
        data_dir: str | Path,
        *,
        server_host: str,
        server_port: int,
        max_sessions: int = 500,
    ) -> None:
        self.data_dir = Path(data_dir)
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PersistenceError(f"Cannot create data dir {self.data_dir}: {e}") from e
        self.server_host = server_host
        self.server_port = server_port
        self.max_sessions = max(10, int(max_sessions))

    @property
    def sessions_path(self) -> Path:
        return self.data_dir / "sessions.json"

    @property
    def identities_path(self) -> Path:
        return self.data_dir / "identities.jsonl"

    @property
    def interactions_path(self) -> Path:
        return self.data_dir / "interactions.jsonl"

    def _read_list(self, path: Path) -> list[dict[str, Any]]:
        if not path.exists():
            return []
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise PersistenceError(f"Cannot read {path}: {e}") from e
        if not isinstance(data, list):
            raise PersistenceError(f"{path} does not hold a list")
        return data

    def _write_list(self, path: Path, rows: list[dict[str, Any]]) -> None:
        tmp = path.with_suffix(".tmp")
        try:
            tmp.write_text(json.dumps(rows, indent=2), encoding="utf-8")
            tmp.replace(path)
        except OSError as e:
            raise PersistenceError(f"Cannot write {path}: {e}") from e

    # Sessions

    def load_sessions(self) -> list[Session]:
        return [Session.model_validate(row) for row in self._read_list(self.sessions_path)]

    def create_session(self, session: Session) -> None:
        rows = self._read_list(self.sessions_path)
        rows.append(session.model_dump(mode="json"))
        if len(rows) > self.max_sessions:
            rows = rows[-self.max_sessions :]
        self._write_list(self.sessions_path, rows)

    def end_session(self, session: Session, reason: EndReason) -> None:
        rows = self._read_list(self.sessions_path)
        dumped = session.model_dump(mode="json")
        dumped["end_reason"] = str(reason)
        for idx in range(len(rows) - 1, -1, -1):
            if rows[idx].get("id") == session.id:
                rows[idx] = dumped
                break
        else:
            rows.append(dumped)
        self._write_list(self.sessions_path, rows)

    # Identities

    def _read_identity_rows(self) -> list[dict[str, Any]]:
        if not self.identities_path.exists():
            return []
        try:
            lines = self.identities_path.read_text(encoding="utf-8").splitlines()
            return [json.loads(line) for line in lines if line.strip()]
        except (OSError, ValueError) as e:
            raise PersistenceError(f"Cannot read {self.identities_path}: {e}") from e

    def load_identity_history(self, server_host: str | None = None, server_port: int | None = None) -> list[IdentityRecord]:
        """Identity records for one endpoint (this store's endpoint by default).

        A flag entry marks the latest earlier record with the same name on the
        same endpoint, or stands as its own record when there is none.
        """
        host = self.server_host if server_host is None else server_host
        port = self.server_port if server_port is None else server_port
        records: list[IdentityRecord] = []
        for row in self._read_identity_rows():
            record = IdentityRecord.model_validate(row)
            if record.server_host != host or record.server_port != port:
                continue
            if record.was_flagged:
                earlier = next((r for r in reversed(records) if r.name == record.name), None)
                if earlier is not None:
                    earlier.was_flagged = True
                    earlier.flag_reason = record.flag_reason
                    continue
            records.append(record)
        return records

    def log_identity_usage(self, name: str, was_flagged: bool, reason: str | None = None) -> None:
        record = IdentityRecord(
            name=name,
            server_host=self.server_host,
            server_port=self.server_port,
            was_flagged=was_flagged,
            flag_reason=reason if was_flagged else None,
        )
        try:
            with self.identities_path.open("a", encoding="utf-8") as fh:
                fh.write(record.model_dump_json() + "\n")
        except OSError as e:
            raise PersistenceError(f"Cannot append to {self.identities_path}: {e}") from e
        if was_flagged:
            logger.info("identity_flag_persisted", identity=name, reason=reason)

    # Interactions

    def log_interaction(self, sender: str, kind: str, text: str, response: str | None = None) -> None:
        record = InteractionRecord(sender=sender, kind=kind, text=text, response=response)
        try:
            with self.interactions_path.open("a", encoding="utf-8") as fh:
                fh.write(record.model_dump_json() + "\n")
        except OSError as e:
            raise PersistenceError(f"Cannot append to {self.interactions_path}: {e}") from e

    def load_interactions(self) -> list[InteractionRecord]:
        if not self.interactions_path.exists():
            return []
        out: list[InteractionRecord] = []
        for line in self.interactions_path.read_text(encoding="utf-8").splitlines():
            if line.strip():
                out.append(InteractionRecord.model_validate_json(line))
        return out
