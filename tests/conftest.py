"""Shared pytest fixtures for moysklad_client tests."""

from __future__ import annotations

from typing import Any

import pytest

from moysklad_client.client import MoySkladClient, set_default_client
from moysklad_client.config import ClientConfig

from tests.fixtures.mock_service import (
    BASE_URL,
    MockMoySkladService,
    create_mock_service_for_assortment,
    create_mock_service_for_documents,
    create_mock_service_for_payments,
    make_entity,
)


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    """Keep MOYSKLAD_* variables of the developer machine out of tests."""
    for name in (
        "MOYSKLAD_BASE_URL",
        "MOYSKLAD_TOKEN",
        "MOYSKLAD_TOKEN_ENV",
        "MOYSKLAD_TOKEN_FILE",
        "MOYSKLAD_USERNAME",
        "MOYSKLAD_PASSWORD",
        "MOYSKLAD_TIMEOUT",
        "MOYSKLAD_GZIP",
        "MOYSKLAD_USER_AGENT",
        "MOYSKLAD_ASYNC_POLL_INTERVAL",
        "MOYSKLAD_ASYNC_POLL_MAX_INTERVAL",
        "MOYSKLAD_ASYNC_POLL_TIMEOUT",
        "MOYSKLAD_RETRY_MAX_ATTEMPTS",
        "MOYSKLAD_RETRY_BACKOFF_FACTOR",
    ):
        monkeypatch.delenv(name, raising=False)
    yield
    set_default_client(None)


@pytest.fixture
def mock_config():
    """Factory fixture for creating ClientConfig instances pointed at the mock service."""
    def _factory(**kwargs) -> ClientConfig:
        kwargs.setdefault("base_url", BASE_URL)
        kwargs.setdefault("token", "test-token")
        kwargs.setdefault("async_poll_interval", 0.0)
        kwargs.setdefault("async_poll_max_interval", 0.0)
        kwargs.setdefault("async_poll_timeout", 5.0)
        return ClientConfig(**kwargs)
    return _factory


@pytest.fixture
def make_client(mock_config):
    """Factory fixture: client whose httpx transport is the given mock service."""
    import httpx

    clients: list[httpx.Client] = []

    def _factory(service: MockMoySkladService, **config_kwargs) -> MoySkladClient:
        http = httpx.Client(transport=service.get_transport())
        clients.append(http)
        return MoySkladClient(config=mock_config(**config_kwargs), http_client=http)

    yield _factory
    for http in clients:
        http.close()


@pytest.fixture
def payments_service():
    return create_mock_service_for_payments()


@pytest.fixture
def assortment_service():
    return create_mock_service_for_assortment()


@pytest.fixture
def documents_service():
    return create_mock_service_for_documents()


@pytest.fixture
def entity_payload():
    """Factory fixture for raw entity payloads (dicts as the service sends them)."""
    def _factory(type_name: str = "product", name: str = "Chair", **fields: Any) -> dict[str, Any]:
        return make_entity(f"entity/{type_name}", type_name, name, **fields)
    return _factory
