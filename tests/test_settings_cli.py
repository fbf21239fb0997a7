# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Tests for settings resolution and the command line entry point."""

from __future__ import annotations

from pathlib import Path

import pytest
from click.testing import CliRunner
from pydantic import ValidationError

from craftbot import cli
from craftbot.core.reconnect import ReconnectMode
from craftbot.settings import Settings


def test_defaults() -> None:
    settings = Settings()

    assert settings.host == "localhost"
    assert settings.port == 25565
    assert settings.username == "AIPlayer"
    assert settings.status_port == 5000
    assert settings.reconnect.mode is ReconnectMode.DEGRADE
    assert settings.server == "localhost:25565"


@pytest.mark.parametrize(
    ("env", "field", "value"),
    [
        ("CRAFTBOT_HOST", "host", "a.example.org"),
        ("MINECRAFT_HOST", "host", "b.example.org"),
        ("HOST", "host", "c.example.org"),
        ("MINECRAFT_PORT", "port", 25570),
        ("MINECRAFT_USERNAME", "username", "Tester_1"),
        ("PORT", "status_port", 8080),
    ],
)
def test_environment_aliases(monkeypatch: pytest.MonkeyPatch, env: str, field: str, value) -> None:
    monkeypatch.setenv(env, str(value))

    assert getattr(Settings(), field) == value


def test_prefixed_alias_wins_over_generic(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HOST", "generic.example.org")
    monkeypatch.setenv("CRAFTBOT_HOST", "specific.example.org")

    assert Settings().host == "specific.example.org"


def test_nested_environment_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CRAFTBOT_RECONNECT__MODE", "give_up")
    monkeypatch.setenv("CRAFTBOT_LLM__ENABLED", "true")

    settings = Settings()

    assert settings.reconnect.mode is ReconnectMode.GIVE_UP
    assert settings.llm.enabled is True


def test_yaml_file_below_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config = tmp_path / "craftbot.yaml"
    config.write_text(
        "host: yaml.example.org\n"
        "port: 25600\n"
        "status_port: 0\n"
        "reconnect:\n"
        "  max_attempts: 8\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("CRAFTBOT_CONFIG", str(config))
    monkeypatch.setenv("CRAFTBOT_PORT", "25601")

    settings = Settings()

    assert settings.host == "yaml.example.org"
    assert settings.port == 25601
    assert settings.status_port == 0
    assert settings.reconnect.max_attempts == 8


@pytest.mark.parametrize("username", ["ab", "way_too_long_for_minecraft", "bad name", "emoji✓"])
def test_invalid_username_rejected(username: str) -> None:
    with pytest.raises(ValidationError):
        Settings(username=username)


def test_cli_arguments_override_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CRAFTBOT_HOST", "env.example.org")
    monkeypatch.setenv("CRAFTBOT_USERNAME", "EnvBot")

    settings = cli.load_settings("cli.example.org", "25570", None)

    assert settings.host == "cli.example.org"
    assert settings.port == 25570
    assert settings.username == "EnvBot"


def test_cli_runs_app(monkeypatch: pytest.MonkeyPatch) -> None:
    seen: list[Settings] = []

    async def fake_run(settings: Settings) -> int:
        seen.append(settings)
        return 0

    monkeypatch.setattr(cli, "run", fake_run)
    monkeypatch.setattr(cli, "configure_logging", lambda settings: None)

    result = CliRunner().invoke(cli.main, ["mc.example.org", "25570", "Helper_Bot"])

    assert result.exit_code == 0
    assert seen[0].server == "mc.example.org:25570"
    assert seen[0].username == "Helper_Bot"


def test_cli_exit_code_from_run(monkeypatch: pytest.MonkeyPatch) -> None:
    async def exhausted(settings: Settings) -> int:
        return 1

    monkeypatch.setattr(cli, "run", exhausted)
    monkeypatch.setattr(cli, "configure_logging", lambda settings: None)

    result = CliRunner().invoke(cli.main, [])

    assert result.exit_code == 1


@pytest.mark.parametrize("args", [["mc.example.org", "notaport"], ["mc.example.org", "70000"], ["h", "25565", "x"]])
def test_cli_invalid_arguments_exit_nonzero(args: list[str]) -> None:
    result = CliRunner().invoke(cli.main, args)

    assert result.exit_code == 1
    assert "Invalid configuration" in result.output


def test_cli_help() -> None:
    result = CliRunner().invoke(cli.main, ["-h"])

    assert result.exit_code == 0
    assert "HOST" in result.output
