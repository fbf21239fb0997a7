# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Tests for the HTTP status surface."""

from __future__ import annotations

from fastapi.testclient import TestClient

from craftbot.core.supervisor import SupervisorState, SupervisorStatus, format_uptime
from craftbot.status import create_status_app


def _status() -> SupervisorStatus:
    return SupervisorStatus(
        running=True,
        identity="BotHelper42",
        server="mc.example.org:25565",
        last_seen="2026-01-01T00:00:00+00:00",
        uptime=format_uptime(3725),
        uptime_seconds=3725.0,
        reconnect_attempts=0,
        state=SupervisorState.ACTIVE,
        session_id="abc123",
        current_task="gathering_resource",
        total_sessions=3,
        chat_messages_sent=17,
    )


def test_health_and_ping() -> None:
    client = TestClient(create_status_app(_status))

    for path in ("/health", "/ping"):
        response = client.get(path)
        assert response.status_code == 200
        assert response.text == "OK"
        assert response.headers["cache-control"].startswith("no-cache")


def test_status_json_uses_monitor_field_names() -> None:
    client = TestClient(create_status_app(_status))

    for path in ("/", "/status"):
        response = client.get(path)
        assert response.status_code == 200
        data = response.json()
        assert data["running"] is True
        assert data["identity"] == "BotHelper42"
        assert data["server"] == "mc.example.org:25565"
        assert data["lastSeen"] == "2026-01-01T00:00:00+00:00"
        assert data["reconnectAttempts"] == 0
        assert data["uptime"] == "1h 2m 5s"
        assert data["state"] == "active"
        assert data["current_task"] == "gathering_resource"
        assert response.headers["pragma"] == "no-cache"


def test_status_reflects_provider_each_request() -> None:
    calls: list[int] = []

    def provider() -> SupervisorStatus:
        calls.append(1)
        status = _status()
        status.reconnect_attempts = len(calls)
        return status

    client = TestClient(create_status_app(provider))

    assert client.get("/status").json()["reconnectAttempts"] == 1
    assert client.get("/status").json()["reconnectAttempts"] == 2


def test_unknown_path_is_404() -> None:
    client = TestClient(create_status_app(_status))

    assert client.get("/metrics").status_code == 404


def test_format_uptime() -> None:
    assert format_uptime(0) == "0h 0m 0s"
    assert format_uptime(59.9) == "0h 0m 59s"
    assert format_uptime(90061) == "25h 1m 1s"
    assert format_uptime(-5) == "0h 0m 0s"
