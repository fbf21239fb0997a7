# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import asyncio
import sys

import click
from pydantic import ValidationError

from craftbot.app import run
from craftbot.logging import configure_logging
from craftbot.settings import Settings


def load_settings(host: str | None, port: str | int | None, identity: str | None) -> Settings:
    """Settings with positional CLI arguments taking precedence over env and YAML."""
    # Keyed by the first alias of each field so they outrank every env alias.
    overrides = {
        key: value
        for key, value in (
            ("CRAFTBOT_HOST", host),
            ("CRAFTBOT_PORT", port),
            ("CRAFTBOT_USERNAME", identity),
        )
        if value is not None
    }
    return Settings(**overrides)


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("host", required=False)
@click.argument("port", required=False)
@click.argument("identity", required=False)
def main(host: str | None, port: str | None, identity: str | None) -> None:
    """Run the game client against HOST:PORT as IDENTITY.

    Missing arguments fall back to CRAFTBOT_HOST / MINECRAFT_HOST / HOST,
    CRAFTBOT_PORT / MINECRAFT_PORT and CRAFTBOT_USERNAME / MINECRAFT_USERNAME /
    USERNAME, then to localhost 25565 AIPlayer. Optional YAML defaults are read
    from the file named by CRAFTBOT_CONFIG.
    """
    try:
        settings = load_settings(host, port, identity)
    except ValidationError as e:
        raise click.ClickException(f"Invalid configuration:\n{e}") from e

    configure_logging(settings)
    sys.exit(asyncio.run(run(settings)))


if __name__ == "__main__":
    main()
