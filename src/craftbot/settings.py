# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Application settings.

Precedence, highest first: constructor arguments (the CLI), environment
variables, the YAML file named by ``CRAFTBOT_CONFIG``, field defaults.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from craftbot.agent.config import ChatConfig, TaskConfig, TimerConfig
from craftbot.core.reconnect import ReconnectConfig
from craftbot.defaults import (
    DEFAULT_CLIENT,
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_USERNAME,
    IDENTITY_POOL,
    STATUS_HOST,
    STATUS_PORT,
)
from craftbot.llm.config import LLMConfig

CONFIG_ENV = "CRAFTBOT_CONFIG"


class Settings(BaseSettings):
    host: str = Field(
        default=DEFAULT_HOST,
        min_length=1,
        validation_alias=AliasChoices("CRAFTBOT_HOST", "MINECRAFT_HOST", "HOST"),
    )
    port: int = Field(
        default=DEFAULT_PORT,
        ge=1,
        le=65535,
        validation_alias=AliasChoices("CRAFTBOT_PORT", "MINECRAFT_PORT"),
    )
    username: str = Field(
        default=DEFAULT_USERNAME,
        min_length=3,
        max_length=16,
        pattern=r"^[A-Za-z0-9_]+$",
        validation_alias=AliasChoices("CRAFTBOT_USERNAME", "MINECRAFT_USERNAME", "USERNAME"),
    )
    # 0 disables the status endpoint.
    status_host: str = STATUS_HOST
    status_port: int = Field(
        default=STATUS_PORT,
        ge=0,
        le=65535,
        validation_alias=AliasChoices("CRAFTBOT_STATUS_PORT", "PORT"),
    )
    log_level: str = "INFO"
    seed: int | None = None
    client: str = DEFAULT_CLIENT
    data_dir: Path | None = None
    identity_pool: list[str] = Field(default_factory=lambda: list(IDENTITY_POOL), min_length=1)
    reconnect: ReconnectConfig = Field(default_factory=ReconnectConfig)
    tasks: TaskConfig = Field(default_factory=TaskConfig)
    chat: ChatConfig = Field(default_factory=ChatConfig)
    timers: TimerConfig = Field(default_factory=TimerConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)

    model_config = SettingsConfigDict(
        env_prefix="CRAFTBOT_",
        env_nested_delimiter="__",
        extra="ignore",
        populate_by_name=True,
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        sources: tuple[PydanticBaseSettingsSource, ...] = (init_settings, env_settings)
        config_path = os.environ.get(CONFIG_ENV)
        if config_path:
            sources += (YamlConfigSettingsSource(settings_cls, yaml_file=Path(config_path)),)
        return sources

    @property
    def server(self) -> str:
        return f"{self.host}:{self.port}"
