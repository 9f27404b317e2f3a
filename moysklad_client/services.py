"""
Per-entity services.

Services are composed from the building blocks in endpoint.py. Each one
forwards its list, CRUD and bulk calls explicitly and exposes sub-resources
as attributes, so a missing capability is simply an attribute set to None.

Usage:
    client = MoySkladClient()

    page = client.cash_out.get_list(Params().with_limit(50))
    created = client.cash_out.create(CashOut(name="0001"))
    client.cash_out.attributes.list()
    client.enter.positions.list(enter_id)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Generic, Iterable, Sequence, TypeVar

from . import bulk
from .async_operation import AsyncOperation
from .bulk import BulkResult
from .codec import ListResult, Paged
from .context import Context
from .endpoint import (
    AttributesOps,
    BulkOps,
    CrudOps,
    Endpoint,
    FilesOps,
    Id,
    ListOps,
    MetadataOps,
    NamedFiltersOps,
    PositionsOps,
    PublicationsOps,
    StatesOps,
)
from .entities import (
    AssortmentSettings,
    Bundle,
    CashIn,
    CashOut,
    Consignment,
    CustomEntity,
    CustomEntityElement,
    Enter,
    EnterPosition,
    EntityMetadata,
    InvoiceOut,
    InvoicePosition,
    PaymentIn,
    PaymentOut,
    Product,
    Service,
    Variant,
)
from .envelope import Envelope
from .meta import Meta
from .params import Params

if TYPE_CHECKING:
    from .client import MoySkladClient

logger = logging.getLogger(__name__)

E = TypeVar("E")


class EntityService(Generic[E]):
    """
    Standard service for one entity collection.

    Args:
        endpoint: Base path of the collection
        entity: Entity class rows and single reads decode into
        position: Position class for documents with line items
        states, files, publications, named_filters: Whether the collection
            supports that sub-resource
    """

    def __init__(
        self,
        endpoint: Endpoint,
        entity: type[E],
        *,
        position: type[Any] | None = None,
        states: bool = True,
        files: bool = True,
        publications: bool = True,
        named_filters: bool = True,
    ):
        self.endpoint = endpoint
        self.entity = entity
        self._list = ListOps(endpoint, entity)
        self._crud = CrudOps(endpoint, entity)
        self._bulk = BulkOps(endpoint, entity)
        self._metadata = MetadataOps(endpoint)

        self.attributes = AttributesOps(endpoint)
        self.states = StatesOps(endpoint) if states else None
        self.files = FilesOps(endpoint) if files else None
        self.publications = PublicationsOps(endpoint) if publications else None
        self.named_filters = NamedFiltersOps(endpoint) if named_filters else None
        self.positions = PositionsOps(endpoint, position) if position is not None else None

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.endpoint.uri!r}, {self.entity.__name__})"

    @property
    def uri(self) -> str:
        return self.endpoint.uri

    def get_list(self, params: Params | None = None, ctx: Context | None = None) -> ListResult[E]:
        return self._list.get_list(params, ctx)

    def get_list_async(self, params: Params | None = None, ctx: Context | None = None) -> AsyncOperation[ListResult[E]]:
        return self._list.get_list_async(params, ctx)

    def get_by_id(self, id: Id, params: Params | None = None, ctx: Context | None = None) -> E:
        return self._crud.get_by_id(id, params, ctx)

    def create(self, entity: Any, params: Params | None = None, ctx: Context | None = None) -> E:
        return self._crud.create(entity, params, ctx)

    def update(self, id: Id, entity: Any, params: Params | None = None, ctx: Context | None = None) -> E:
        return self._crud.update(id, entity, params, ctx)

    def delete(self, id: Id, ctx: Context | None = None, missing_ok: bool = False) -> bool:
        return self._crud.delete(id, ctx, missing_ok)

    def move_to_trash(self, id: Id, ctx: Context | None = None) -> bool:
        return self._crud.move_to_trash(id, ctx)

    def get_by_sync_id(self, sync_id: Id, ctx: Context | None = None) -> E:
        return self._crud.get_by_sync_id(sync_id, ctx)

    def delete_by_sync_id(self, sync_id: Id, ctx: Context | None = None, missing_ok: bool = False) -> bool:
        return self._crud.delete_by_sync_id(sync_id, ctx, missing_ok)

    def create_or_update_many(
        self,
        entities: Sequence[Any],
        params: Params | None = None,
        ctx: Context | None = None,
    ) -> BulkResult[E]:
        return self._bulk.create_or_update_many(entities, params, ctx)

    def delete_many(self, refs: Iterable[Any], ctx: Context | None = None) -> BulkResult[Meta]:
        return self._bulk.delete_many(refs, ctx)

    def get_metadata(self, ctx: Context | None = None) -> EntityMetadata:
        return self._metadata.get_metadata(ctx)


class AssortmentService:
    """
    Products, variants, bundles, services and consignments in one list.

    Rows come back as Envelopes; narrow them with ``as_product()`` and
    friends, or ``filter_by_type``.
    """

    def __init__(self, client: MoySkladClient):
        self.endpoint = Endpoint(client, "entity/assortment")

    def get(self, params: Params | None = None, ctx: Context | None = None) -> ListResult[Envelope]:
        return self.endpoint.request(shape=Paged(Envelope)).set_params(params).get(ctx)

    def get_async(self, params: Params | None = None, ctx: Context | None = None) -> AsyncOperation[ListResult[Envelope]]:
        return AsyncOperation.submit(self.endpoint.client, self.endpoint.uri, Paged(Envelope), params, ctx)

    def delete_many(self, refs: Iterable[Any], ctx: Context | None = None) -> BulkResult[Meta]:
        """Delete any mix of assortment variants, envelopes or Meta references."""
        return bulk.delete_many(self.endpoint.client, self.endpoint.uri, refs, ctx)

    def get_settings(self, ctx: Context | None = None) -> AssortmentSettings:
        return self.endpoint.request("settings", shape=AssortmentSettings).get(ctx)

    def update_settings(self, settings: AssortmentSettings | dict[str, Any], ctx: Context | None = None) -> AssortmentSettings:
        return self.endpoint.request("settings", shape=AssortmentSettings).put(settings, ctx)


class CustomEntityService:
    """
    User-defined catalogues (``entity/customentity``).

    The catalogue itself is created, renamed and deleted here; its elements
    live at ``entity/customentity/{id}[/{element_id}]``.
    """

    def __init__(self, client: MoySkladClient):
        self.endpoint = Endpoint(client, "entity/customentity")
        self._crud = CrudOps(self.endpoint, CustomEntity)

    def create(self, entity: CustomEntity | dict[str, Any], params: Params | None = None, ctx: Context | None = None) -> CustomEntity:
        return self._crud.create(entity, params, ctx)

    def update(self, id: Id, entity: CustomEntity | dict[str, Any], params: Params | None = None, ctx: Context | None = None) -> CustomEntity:
        return self._crud.update(id, entity, params, ctx)

    def delete(self, id: Id, ctx: Context | None = None, missing_ok: bool = False) -> bool:
        return self._crud.delete(id, ctx, missing_ok)

    def get_elements(self, id: Id, params: Params | None = None, ctx: Context | None = None) -> ListResult[CustomEntityElement]:
        return self.endpoint.request(id, shape=Paged(CustomEntityElement)).set_params(params).get(ctx)

    def get_element(self, id: Id, element_id: Id, ctx: Context | None = None) -> CustomEntityElement:
        return self.endpoint.request(id, element_id, shape=CustomEntityElement).get(ctx)

    def create_element(self, id: Id, element: Any, ctx: Context | None = None) -> CustomEntityElement:
        return self.endpoint.request(id, shape=CustomEntityElement).post(element, ctx)

    def update_element(self, id: Id, element_id: Id, element: Any, ctx: Context | None = None) -> CustomEntityElement:
        return self.endpoint.request(id, element_id, shape=CustomEntityElement).put(element, ctx)

    def delete_element(self, id: Id, element_id: Id, ctx: Context | None = None, missing_ok: bool = False) -> bool:
        return self.endpoint.request(id, element_id).delete(ctx, missing_ok=missing_ok)


# Keyword -> (entity class, service options)
_CATALOG_OPTIONS: dict[str, Any] = {"states": False, "publications": False}
_DOCUMENT_OPTIONS: dict[str, Any] = {}

ENTITY_SERVICES: dict[str, tuple[type[Any], dict[str, Any]]] = {
    "product": (Product, _CATALOG_OPTIONS),
    "variant": (Variant, {**_CATALOG_OPTIONS, "files": False}),
    "bundle": (Bundle, _CATALOG_OPTIONS),
    "service": (Service, _CATALOG_OPTIONS),
    "consignment": (Consignment, {**_CATALOG_OPTIONS, "files": False}),
    "cashin": (CashIn, _DOCUMENT_OPTIONS),
    "cashout": (CashOut, _DOCUMENT_OPTIONS),
    "paymentin": (PaymentIn, _DOCUMENT_OPTIONS),
    "paymentout": (PaymentOut, _DOCUMENT_OPTIONS),
    "enter": (Enter, {"position": EnterPosition}),
    "invoiceout": (InvoiceOut, {"position": InvoicePosition}),
}


def build_service(client: MoySkladClient, keyword: str) -> EntityService[Any]:
    """
    Build the service for ``entity/{keyword}``.

    Raises:
        KeyError: No service is defined for the keyword
    """
    try:
        entity, options = ENTITY_SERVICES[keyword]
    except KeyError:
        raise KeyError(f"No service for entity keyword {keyword!r}") from None
    return EntityService(Endpoint(client, f"entity/{keyword}"), entity, **options)
