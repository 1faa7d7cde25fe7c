"""Application settings (env/.env)."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

TWO_GIB = 2 * 1024**3


class Settings(BaseSettings):
    """Settings for the vault store and the MCP server that exposes it."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    store_path: Path = Field(default=Path("nyaya-vault.json"), alias="VAULT_STORE_PATH")
    store_key: str = Field(default="nyaya_vault", alias="VAULT_STORE_KEY", min_length=1)
    storage_limit_bytes: int = Field(
        default=TWO_GIB,
        alias="VAULT_STORAGE_LIMIT_BYTES",
        gt=0,
    )
    unique_sibling_names: bool = Field(default=False, alias="VAULT_UNIQUE_SIBLING_NAMES")

    mcp_host: str = Field(default="127.0.0.1", alias="MCP_HOST")
    mcp_port: int = Field(default=5005, alias="MCP_PORT", ge=1, le=65535)

    log_level: Literal["critical", "error", "warning", "info", "debug"] = Field(
        default="info",
        alias="LOG_LEVEL",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _lower_log_level(cls, value: object) -> object:
        return value.lower() if isinstance(value, str) else value
