"""MoySklad client facade."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from .auth import get_auth_headers
from .config import ClientConfig
from .context import Context
from .params import Params
from .request import RawResponse, RequestBuilder, execute
from .services import (
    AssortmentService,
    CustomEntityService,
    EntityService,
    build_service,
)

logger = logging.getLogger(__name__)

ACCEPT = "application/json;charset=utf-8"


@dataclass
class MoySkladClient:
    """
    Client for the MoySklad JSON API.

    Usage:
        client = MoySkladClient()
        page = client.cash_out.get_list(Params().with_limit(10))

        # Or with custom config
        client = MoySkladClient(config=ClientConfig(
            token="...",
            timeout=60,
        ))

        # Reuse connections by handing in an httpx.Client (owned by the caller)
        with httpx.Client() as http:
            client = MoySkladClient(http_client=http)
    """
    config: ClientConfig = field(default_factory=ClientConfig)

    # Shared transport; when None each call opens its own httpx.Client
    http_client: httpx.Client | None = None

    # Built services, by keyword
    _services: dict[str, Any] = field(default_factory=dict, init=False, repr=False)

    def request(self, path: str, shape: Any = None) -> RequestBuilder[Any]:
        """RequestBuilder for any path under the API root (or an absolute URL)."""
        return RequestBuilder(self, path, shape)

    def execute(
        self,
        method: str,
        path: str,
        params: Params | None = None,
        body: Any = None,
        ctx: Context | None = None,
    ) -> RawResponse:
        """Issue one raw call; the response status is not checked."""
        return execute(self, method, path, params, body, ctx)

    def entity_service(self, keyword: str) -> EntityService[Any]:
        """Service for ``entity/{keyword}``, built once per client."""
        service = self._services.get(keyword)
        if service is None:
            service = build_service(self, keyword)
            self._services[keyword] = service
        return service

    @property
    def assortment(self) -> AssortmentService:
        if "assortment" not in self._services:
            self._services["assortment"] = AssortmentService(self)
        return self._services["assortment"]

    @property
    def custom_entity(self) -> CustomEntityService:
        if "customentity" not in self._services:
            self._services["customentity"] = CustomEntityService(self)
        return self._services["customentity"]

    @property
    def product(self) -> EntityService[Any]:
        return self.entity_service("product")

    @property
    def variant(self) -> EntityService[Any]:
        return self.entity_service("variant")

    @property
    def bundle(self) -> EntityService[Any]:
        return self.entity_service("bundle")

    @property
    def service(self) -> EntityService[Any]:
        return self.entity_service("service")

    @property
    def consignment(self) -> EntityService[Any]:
        return self.entity_service("consignment")

    @property
    def cash_in(self) -> EntityService[Any]:
        return self.entity_service("cashin")

    @property
    def cash_out(self) -> EntityService[Any]:
        return self.entity_service("cashout")

    @property
    def payment_in(self) -> EntityService[Any]:
        return self.entity_service("paymentin")

    @property
    def payment_out(self) -> EntityService[Any]:
        return self.entity_service("paymentout")

    @property
    def enter(self) -> EntityService[Any]:
        return self.entity_service("enter")

    @property
    def invoice_out(self) -> EntityService[Any]:
        return self.entity_service("invoiceout")

    def _get_headers(self, has_body: bool = False) -> dict[str, str]:
        """Build request headers including authentication."""
        headers = {
            "Accept": ACCEPT,
            "User-Agent": self.config.user_agent,
        }
        if self.config.gzip:
            headers["Accept-Encoding"] = "gzip"
        if has_body:
            headers["Content-Type"] = "application/json"

        # Add authentication headers
        auth_headers = get_auth_headers(self.config)
        headers.update(auth_headers)

        return headers


# Module-level default client
_default_client: MoySkladClient | None = None


def _get_client() -> MoySkladClient:
    """Get or create the default client."""
    global _default_client
    if _default_client is None:
        _default_client = MoySkladClient()
    return _default_client


def set_default_client(client: MoySkladClient | None) -> None:
    """Replace the client used by the module-level helpers (None resets it)."""
    global _default_client
    _default_client = client


def entity_service(keyword: str) -> EntityService[Any]:
    """
    Service for ``entity/{keyword}`` on the default client.

    Usage:
        from moysklad_client import entity_service
        page = entity_service("cashout").get_list()
    """
    return _get_client().entity_service(keyword)


def assortment() -> AssortmentService:
    """Assortment service on the default client."""
    return _get_client().assortment
