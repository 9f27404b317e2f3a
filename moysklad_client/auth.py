"""Authentication helpers for the MoySklad client."""

from __future__ import annotations

import base64
import logging
import os
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .config import ClientConfig

logger = logging.getLogger(__name__)

# Empty dict singleton - avoid allocation on hot path
_EMPTY_HEADERS: dict[str, str] = {}


@dataclass
class ClientAuth:
    """Builds the Authorization header from a ClientConfig."""

    # Cache for bearer headers (token doesn't change often)
    _token_cache: dict[str, str] = field(default_factory=dict, repr=False)
    _token_cache_value: str | None = field(default=None, repr=False)

    def get_auth_headers(self, config: ClientConfig) -> dict[str, str]:
        """
        Get Authorization header based on config.

        A bearer token wins over username/password.

        Args:
            config: Client configuration with auth settings

        Returns:
            Dictionary with Authorization header, or empty dict if no auth
        """
        token = self._get_token(config)
        if token:
            return self._get_bearer_headers_cached(token)
        if config.username and config.password is not None:
            return self._get_basic_headers(config.username, config.password)
        return _EMPTY_HEADERS

    def _get_bearer_headers_cached(self, token: str) -> dict[str, str]:
        # Cache hit - same token as before
        if token == self._token_cache_value and self._token_cache:
            return self._token_cache

        self._token_cache = {"Authorization": f"Bearer {token}"}
        self._token_cache_value = token
        return self._token_cache

    def _get_basic_headers(self, username: str, password: str) -> dict[str, str]:
        creds = base64.b64encode(f"{username}:{password}".encode()).decode("ascii")
        return {"Authorization": f"Basic {creds}"}

    def _get_token(self, config: ClientConfig) -> str | None:
        """Get bearer token from config, environment, or file."""
        # 1. Explicit token in config
        if config.token:
            return config.token

        # 2. Environment variable
        if config.token_env:
            token = os.environ.get(config.token_env)
            if token:
                return token

        # 3. Token file
        if config.token_file:
            try:
                with open(config.token_file, "r") as f:
                    return f.read().strip() or None
            except OSError as e:
                logger.warning(f"Failed to read token file: {e}")

        return None


# Default instance
_client_auth = ClientAuth()


def get_auth_headers(config: ClientConfig) -> dict[str, str]:
    """Get authentication headers for the given config."""
    return _client_auth.get_auth_headers(config)
