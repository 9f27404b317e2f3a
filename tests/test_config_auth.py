"""Tests for ClientConfig loading and Authorization headers."""

from __future__ import annotations

import base64

import pytest

from moysklad_client import config as config_module
from moysklad_client.auth import ClientAuth
from moysklad_client.client import MoySkladClient
from moysklad_client.config import DEFAULT_BASE_URL, ClientConfig
from moysklad_client.resilience import RetryConfig


class TestClientConfig:
    """Test defaults, environment and file loading."""

    def test_defaults(self):
        config = ClientConfig()
        assert config.base_url == DEFAULT_BASE_URL
        assert config.timeout == 30.0
        assert config.gzip is True
        assert config.token is None
        assert config.token_env == "MOYSKLAD_TOKEN"

    def test_environment(self, monkeypatch):
        monkeypatch.setenv("MOYSKLAD_BASE_URL", "https://sandbox.example/api/remap/1.2")
        monkeypatch.setenv("MOYSKLAD_TIMEOUT", "5")
        monkeypatch.setenv("MOYSKLAD_GZIP", "false")

        config = ClientConfig()
        assert config.base_url == "https://sandbox.example/api/remap/1.2"
        assert config.timeout == 5.0
        assert config.gzip is False

    def test_constructor_wins_over_environment(self, monkeypatch):
        monkeypatch.setenv("MOYSKLAD_TIMEOUT", "5")
        assert ClientConfig(timeout=12).timeout == 12

    def test_url(self):
        config = ClientConfig(base_url="https://api.example/api/remap/1.2/")
        assert config.url("entity/product") == "https://api.example/api/remap/1.2/entity/product"
        assert config.url("/entity/product") == "https://api.example/api/remap/1.2/entity/product"
        assert config.url("https://other/x") == "https://other/x"

    def test_from_dict(self):
        config = ClientConfig.from_dict({"base_url": "http://local", "timeout": "7", "gzip": False, "token": "t"})
        assert config.base_url == "http://local"
        assert config.timeout == 7.0
        assert config.gzip is False
        assert config.token == "t"
        assert config.async_poll_timeout == 300.0

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "client.yaml"
        path.write_text("base_url: http://yaml\nasync_poll_interval: 0.25\n")

        config = ClientConfig.from_yaml(path)
        assert config.base_url == "http://yaml"
        assert config.async_poll_interval == 0.25

    def test_from_empty_yaml(self, tmp_path):
        path = tmp_path / "client.yaml"
        path.write_text("")
        assert ClientConfig.from_yaml(path).base_url == DEFAULT_BASE_URL

    def test_load_merges_in_order(self, tmp_path, monkeypatch):
        """Later files override earlier ones key by key."""
        user = tmp_path / "user.yaml"
        user.write_text("base_url: http://user\ntimeout: 10\n")
        project = tmp_path / "project.yaml"
        project.write_text("timeout: 20\n")
        explicit = tmp_path / "explicit.yaml"
        explicit.write_text("gzip: false\n")
        monkeypatch.setattr(config_module, "CONFIG_SEARCH_PATHS", [user, project, tmp_path / "missing.yaml"])

        config = ClientConfig.load(explicit)
        assert config.base_url == "http://user"
        assert config.timeout == 20.0
        assert config.gzip is False

    def test_retry_config_from_client_config(self):
        retry = RetryConfig.from_client_config(ClientConfig(retry_max_attempts=5, retry_backoff_factor=0.1))
        assert retry.max_retries == 5
        assert retry.base_delay_seconds == 0.1


class TestClientAuth:
    """Test Authorization header selection."""

    def test_explicit_token(self):
        headers = ClientAuth().get_auth_headers(ClientConfig(token="abc"))
        assert headers == {"Authorization": "Bearer abc"}

    def test_token_from_environment(self, monkeypatch):
        monkeypatch.setenv("MY_TOKEN", "from-env")
        headers = ClientAuth().get_auth_headers(ClientConfig(token_env="MY_TOKEN"))
        assert headers == {"Authorization": "Bearer from-env"}

    def test_token_from_file(self, tmp_path):
        path = tmp_path / "token"
        path.write_text("from-file\n")
        headers = ClientAuth().get_auth_headers(ClientConfig(token_file=str(path)))
        assert headers == {"Authorization": "Bearer from-file"}

    def test_unreadable_token_file(self, tmp_path):
        headers = ClientAuth().get_auth_headers(ClientConfig(token_file=str(tmp_path / "missing")))
        assert headers == {}

    def test_explicit_token_beats_environment(self, monkeypatch):
        monkeypatch.setenv("MOYSKLAD_TOKEN", "from-env")
        headers = ClientAuth().get_auth_headers(ClientConfig(token="explicit"))
        assert headers["Authorization"] == "Bearer explicit"

    def test_basic_auth(self):
        headers = ClientAuth().get_auth_headers(ClientConfig(username="admin@shop", password="s3cret"))
        expected = base64.b64encode(b"admin@shop:s3cret").decode("ascii")
        assert headers == {"Authorization": f"Basic {expected}"}

    def test_token_beats_basic_auth(self):
        headers = ClientAuth().get_auth_headers(ClientConfig(token="abc", username="u", password="p"))
        assert headers["Authorization"] == "Bearer abc"

    def test_no_credentials(self):
        assert ClientAuth().get_auth_headers(ClientConfig()) == {}

    def test_bearer_headers_cached(self):
        auth = ClientAuth()
        first = auth.get_auth_headers(ClientConfig(token="abc"))
        assert auth.get_auth_headers(ClientConfig(token="abc")) is first
        assert auth.get_auth_headers(ClientConfig(token="xyz")) == {"Authorization": "Bearer xyz"}


class TestClientHeaders:
    """Test headers assembled by MoySkladClient."""

    @pytest.mark.parametrize("has_body", [False, True])
    def test_content_type_only_with_body(self, has_body):
        headers = MoySkladClient(config=ClientConfig(token="abc"))._get_headers(has_body=has_body)
        assert ("Content-Type" in headers) is has_body

    def test_gzip_disabled(self):
        headers = MoySkladClient(config=ClientConfig(gzip=False))._get_headers()
        assert "Accept-Encoding" not in headers
        assert "Authorization" not in headers
