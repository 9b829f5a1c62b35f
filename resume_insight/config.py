"""Service configuration read from environment variables."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

DEFAULT_FILES_DIR = "./data/files"
DEFAULT_LOGS_DIR = "./logs"
DEFAULT_DATABASE_URL = "sqlite://data/resume.db?mode=rwc"


class ConfigError(Exception):
    """Raised when a required setting is missing."""


@dataclass(frozen=True)
class LlmConfig:
    base_url: str
    model: str
    api_key: str


@dataclass(frozen=True)
class ServerConfig:
    files_dir: str
    logs_dir: str
    base_url: str


@dataclass(frozen=True)
class DatabaseConfig:
    url: str


@dataclass(frozen=True)
class Config:
    llm: LlmConfig
    server: ServerConfig
    database: DatabaseConfig

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Config:
        """Build a configuration from ``environ`` (the process environment by default)."""
        env = os.environ if environ is None else environ

        def required(name: str, message: str | None = None) -> str:
            try:
                return env[name]
            except KeyError:
                raise ConfigError(message or f"{name} not set") from None

        llm = LlmConfig(
            required("LLM_BASE_URL"),
            required("LLM_MODEL"),
            required("LLM_API_KEY"),
        )
        server = ServerConfig(
            files_dir=env.get("FILES_DIR", DEFAULT_FILES_DIR),
            logs_dir=env.get("LOGS_DIR", DEFAULT_LOGS_DIR),
            base_url=required(
                "SERVER_BASE_URL",
                "SERVER_BASE_URL not set (e.g., http://localhost:3000)",
            ),
        )
        database = DatabaseConfig(url=env.get("DATABASE_URL", DEFAULT_DATABASE_URL))
        return cls(llm=llm, server=server, database=database)