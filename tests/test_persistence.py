# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Tests for the JSON store and the failure-swallowing sink wrapper."""

from __future__ import annotations

import random
from pathlib import Path

import pytest

from craftbot.core.identity import IdentityRotator
from craftbot.core.session import EndReason, Session
from craftbot.errors import PersistenceError
from craftbot.persistence import JsonStore, SafeSink


def _store(path: Path, **kwargs) -> JsonStore:
    return JsonStore(path, server_host="mc.example.org", server_port=25565, **kwargs)


def _session(identity: str = "AIPlayer") -> Session:
    return Session(identity=identity, server_host="mc.example.org", server_port=25565, started_at=1000.0)


def test_session_round_trip_with_end_reason(tmp_path: Path) -> None:
    store = _store(tmp_path)
    session = _session()
    store.create_session(session)

    session.finish(EndReason.KICKED, "Server restarting", now=1090.0)
    store.end_session(session, EndReason.KICKED)

    loaded = store.load_sessions()
    assert len(loaded) == 1
    assert loaded[0].id == session.id
    assert loaded[0].end_reason is EndReason.KICKED
    assert loaded[0].duration_s == 90.0


def test_session_history_is_bounded(tmp_path: Path) -> None:
    store = _store(tmp_path, max_sessions=10)
    sessions = [_session(f"Bot{i}") for i in range(12)]
    for session in sessions:
        store.create_session(session)

    loaded = store.load_sessions()
    assert [s.id for s in loaded] == [s.id for s in sessions[-10:]]


def test_flag_updates_latest_identity_record(tmp_path: Path) -> None:
    store = _store(tmp_path)
    store.log_identity_usage("AIPlayer", False)
    store.log_identity_usage("BotHelper12", False)

    store.log_identity_usage("AIPlayer", True, "You have been banned: blacklisted")

    history = store.load_identity_history()
    assert [r.name for r in history] == ["AIPlayer", "BotHelper12"]
    assert history[0].was_flagged is True
    assert history[0].flag_reason == "You have been banned: blacklisted"
    assert history[1].was_flagged is False


def test_identity_log_only_appends(tmp_path: Path) -> None:
    store = _store(tmp_path)
    store.log_identity_usage("AIPlayer", False)
    before = store.identities_path.read_text(encoding="utf-8")

    store.log_identity_usage("AIPlayer", True, "banned")
    store.log_identity_usage("BotHelper3", False)

    after = store.identities_path.read_text(encoding="utf-8")
    assert after.startswith(before)
    assert len(after.splitlines()) == 3
    assert [(r.name, r.was_flagged) for r in store.load_identity_history()] == [
        ("AIPlayer", True),
        ("BotHelper3", False),
    ]


def test_flag_without_prior_use_is_its_own_record(tmp_path: Path) -> None:
    store = _store(tmp_path)
    store.log_identity_usage("BotHelper9", True, "suspended")

    history = store.load_identity_history()

    assert [(r.name, r.flag_reason) for r in history] == [("BotHelper9", "suspended")]


def test_identity_history_is_per_endpoint(tmp_path: Path) -> None:
    _store(tmp_path).log_identity_usage("AIPlayer", True, "banned")
    other = JsonStore(tmp_path, server_host="mc.example.org", server_port=25566)

    assert other.load_identity_history() == []
    assert len(other.load_identity_history("mc.example.org", 25565)) == 1


def test_persisted_flag_survives_restart(tmp_path: Path) -> None:
    _store(tmp_path).log_identity_usage("BotHelper5", True, "blacklisted")

    history = _store(tmp_path).load_identity_history()
    rotator = IdentityRotator(
        "AIPlayer",
        ("AIPlayer", "BotHelper"),
        "mc.example.org",
        25565,
        rng=random.Random(0),
        history=history,
    )

    assert "BotHelper5" in rotator.flagged_names()
    assert all(rotator.next_identity(1) != "BotHelper5" for _ in range(5))


def test_interactions_append_only(tmp_path: Path) -> None:
    store = _store(tmp_path)
    store.log_interaction("Steve", "chat", "hello")
    store.log_interaction("Steve", "keyword", "hello", "hey Steve! good to see you!")

    records = store.load_interactions()

    assert [(r.sender, r.kind, r.response) for r in records] == [
        ("Steve", "chat", None),
        ("Steve", "keyword", "hey Steve! good to see you!"),
    ]


def test_corrupt_file_raises_persistence_error(tmp_path: Path) -> None:
    store = _store(tmp_path)
    store.sessions_path.write_text("{not json", encoding="utf-8")

    with pytest.raises(PersistenceError):
        store.load_sessions()


def test_unusable_data_dir_raises(tmp_path: Path) -> None:
    blocker = tmp_path / "occupied"
    blocker.write_text("", encoding="utf-8")

    with pytest.raises(PersistenceError):
        _store(blocker / "data")


class ExplodingSink:
    def create_session(self, session):
        raise PersistenceError("disk full")

    def end_session(self, session, reason):
        raise OSError("read-only file system")

    def log_interaction(self, sender, kind, text, response=None):
        raise PersistenceError("disk full")

    def log_identity_usage(self, name, was_flagged, reason=None):
        raise PersistenceError("disk full")


def test_safe_sink_logs_and_counts_failures() -> None:
    sink = SafeSink(ExplodingSink())
    session = _session()

    sink.create_session(session)
    sink.end_session(session, EndReason.ERROR)
    sink.log_interaction("Steve", "chat", "hello")
    sink.log_identity_usage("AIPlayer", False)

    assert sink.failures == 4
