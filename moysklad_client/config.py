"""Client configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

DEFAULT_BASE_URL = "https://api.moysklad.ru/api/remap/1.2"

# Config file search paths (in order of precedence, last wins)
CONFIG_SEARCH_PATHS = [
    Path.home() / ".moysklad" / "client.yaml",  # User-level defaults
    Path(".moysklad.yaml"),  # Project-level overrides
]


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).lower() == "true"


@dataclass
class ClientConfig:
    """
    Configuration for the MoySklad client.

    Precedence (lowest to highest):
    1. Defaults
    2. ~/.moysklad/client.yaml
    3. .moysklad.yaml (project root)
    4. Environment variables (MOYSKLAD_*)
    5. Constructor arguments
    """
    # API root, without trailing slash
    base_url: str = field(
        default_factory=lambda: os.environ.get("MOYSKLAD_BASE_URL", DEFAULT_BASE_URL)
    )

    # Request timeout (seconds)
    timeout: float = field(
        default_factory=lambda: float(os.environ.get("MOYSKLAD_TIMEOUT", "30"))
    )

    user_agent: str = field(
        default_factory=lambda: os.environ.get("MOYSKLAD_USER_AGENT", "moysklad-client/0.1.0")
    )

    # The service requires gzip for responses
    gzip: bool = field(
        default_factory=lambda: _env_bool("MOYSKLAD_GZIP", "true")
    )

    # Bearer token settings
    token: str | None = None  # Direct token (not from env for security)
    token_env: str = field(
        default_factory=lambda: os.environ.get("MOYSKLAD_TOKEN_ENV", "MOYSKLAD_TOKEN")
    )
    token_file: str | None = field(
        default_factory=lambda: os.environ.get("MOYSKLAD_TOKEN_FILE")
    )

    # Basic auth (used when no token is available)
    username: str | None = field(
        default_factory=lambda: os.environ.get("MOYSKLAD_USERNAME")
    )
    password: str | None = field(
        default_factory=lambda: os.environ.get("MOYSKLAD_PASSWORD")
    )

    # Asynchronous job polling (seconds)
    async_poll_interval: float = field(
        default_factory=lambda: float(os.environ.get("MOYSKLAD_ASYNC_POLL_INTERVAL", "1"))
    )
    async_poll_max_interval: float = field(
        default_factory=lambda: float(os.environ.get("MOYSKLAD_ASYNC_POLL_MAX_INTERVAL", "10"))
    )
    async_poll_timeout: float = field(
        default_factory=lambda: float(os.environ.get("MOYSKLAD_ASYNC_POLL_TIMEOUT", "300"))
    )

    # Caller-level retry helper defaults (the client itself never retries)
    retry_max_attempts: int = field(
        default_factory=lambda: int(os.environ.get("MOYSKLAD_RETRY_MAX_ATTEMPTS", "3"))
    )
    retry_backoff_factor: float = field(
        default_factory=lambda: float(os.environ.get("MOYSKLAD_RETRY_BACKOFF_FACTOR", "0.5"))
    )

    def url(self, path: str) -> str:
        """Absolute URL for a path relative to the API root."""
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ClientConfig:
        """Create config from dictionary."""
        return cls(
            base_url=data.get("base_url", os.environ.get("MOYSKLAD_BASE_URL", DEFAULT_BASE_URL)),
            timeout=float(data.get("timeout", os.environ.get("MOYSKLAD_TIMEOUT", "30"))),
            user_agent=data.get("user_agent", os.environ.get("MOYSKLAD_USER_AGENT", "moysklad-client/0.1.0")),
            gzip=data.get("gzip", _env_bool("MOYSKLAD_GZIP", "true")),
            token=data.get("token"),
            token_env=data.get("token_env", os.environ.get("MOYSKLAD_TOKEN_ENV", "MOYSKLAD_TOKEN")),
            token_file=data.get("token_file", os.environ.get("MOYSKLAD_TOKEN_FILE")),
            username=data.get("username", os.environ.get("MOYSKLAD_USERNAME")),
            password=data.get("password", os.environ.get("MOYSKLAD_PASSWORD")),
            async_poll_interval=float(data.get("async_poll_interval", os.environ.get("MOYSKLAD_ASYNC_POLL_INTERVAL", "1"))),
            async_poll_max_interval=float(data.get("async_poll_max_interval", os.environ.get("MOYSKLAD_ASYNC_POLL_MAX_INTERVAL", "10"))),
            async_poll_timeout=float(data.get("async_poll_timeout", os.environ.get("MOYSKLAD_ASYNC_POLL_TIMEOUT", "300"))),
            retry_max_attempts=int(data.get("retry_max_attempts", os.environ.get("MOYSKLAD_RETRY_MAX_ATTEMPTS", "3"))),
            retry_backoff_factor=float(data.get("retry_backoff_factor", os.environ.get("MOYSKLAD_RETRY_BACKOFF_FACTOR", "0.5"))),
        )

    @classmethod
    def from_yaml(cls, path: str | Path) -> ClientConfig:
        """Load config from YAML file."""
        import yaml
        with open(path, "r") as f:
            data = yaml.safe_load(f)
        return cls.from_dict(data or {})

    @classmethod
    def load(cls, config_file: str | Path | None = None) -> ClientConfig:
        """
        Load config with auto-discovery.

        Search order (last wins):
        1. ~/.moysklad/client.yaml
        2. .moysklad.yaml
        3. Explicit config_file argument
        """
        import yaml

        merged: dict[str, Any] = {}

        for path in CONFIG_SEARCH_PATHS:
            if path.exists():
                with open(path, "r") as f:
                    data = yaml.safe_load(f) or {}
                merged.update(data)

        if config_file:
            with open(config_file, "r") as f:
                data = yaml.safe_load(f) or {}
            merged.update(data)

        return cls.from_dict(merged)
