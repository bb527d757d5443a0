"""Proxy configuration via environment variables or defaults."""

from __future__ import annotations

from typing import Any

from pydantic import field_validator
from pydantic_settings import BaseSettings

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ProxyConfig(BaseSettings):
    bind_host: str = "0.0.0.0"
    port: int = 3000
    base_url: str | None = None
    disable_warning: bool = False
    mode: str = ""
    upstream_timeout: float | None = None
    log_level: str = "INFO"
    log_dir: str | None = None

    model_config = {"frozen": True}

    @field_validator("port")
    @classmethod
    def _check_port(cls, value: int) -> int:
        if not 0 < value < 65536:
            raise ValueError(f"port out of range: {value}")
        return value

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"unknown log level: {value!r}")
        return level

    @field_validator("base_url", "log_dir", "upstream_timeout", mode="before")
    @classmethod
    def _empty_as_unset(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("disable_warning", mode="before")
    @classmethod
    def _parse_disable_warning(cls, value: Any) -> Any:
        # Only the literal "true" / "1" switch the banner off.
        if isinstance(value, str):
            return value in ("true", "1")
        return value

    @property
    def banner_enabled(self) -> bool:
        return not self.disable_warning
