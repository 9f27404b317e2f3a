"""
Endpoint building blocks.

An Endpoint is only a client plus a base path such as ``entity/cashout``.
Each *Ops class holds an Endpoint and implements one family of calls on top
of RequestBuilder; services combine the families they need.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Generic, Iterable, Sequence, TypeVar
from uuid import UUID

from . import bulk
from .async_operation import AsyncOperation
from .bulk import BulkResult
from .codec import ListResult, Many, Paged
from .context import Context
from .entities import (
    Attribute,
    EntityMetadata,
    File,
    NamedFilter,
    Publication,
    State,
    TrackingCode,
)
from .meta import Meta
from .params import Params
from .request import RequestBuilder

if TYPE_CHECKING:
    from .client import MoySkladClient

logger = logging.getLogger(__name__)

E = TypeVar("E")
P = TypeVar("P")

Id = UUID | str


class Endpoint:
    """A client bound to one resource path."""

    def __init__(self, client: MoySkladClient, uri: str):
        self.client = client
        self.uri = uri.strip("/")

    def __repr__(self) -> str:
        return f"Endpoint({self.uri!r})"

    def path(self, *parts: Any) -> str:
        return "/".join([self.uri, *(str(p) for p in parts)])

    def request(self, *parts: Any, shape: Any = None) -> RequestBuilder[Any]:
        return RequestBuilder(self.client, self.path(*parts), shape)


class ListOps(Generic[E]):
    """Collection reads: ``GET {uri}``, synchronously or as an async job."""

    def __init__(self, endpoint: Endpoint, entity: type[E]):
        self.endpoint = endpoint
        self.entity = entity

    def get_list(self, params: Params | None = None, ctx: Context | None = None) -> ListResult[E]:
        return self.endpoint.request(shape=Paged(self.entity)).set_params(params).get(ctx)

    def get_list_async(
        self,
        params: Params | None = None,
        ctx: Context | None = None,
    ) -> AsyncOperation[ListResult[E]]:
        return AsyncOperation.submit(
            self.endpoint.client, self.endpoint.uri, Paged(self.entity), params, ctx
        )


class CrudOps(Generic[E]):
    """Single-entity reads and writes."""

    def __init__(self, endpoint: Endpoint, entity: type[E]):
        self.endpoint = endpoint
        self.entity = entity

    def get_by_id(self, id: Id, params: Params | None = None, ctx: Context | None = None) -> E:
        return self.endpoint.request(id, shape=self.entity).set_params(params).get(ctx)

    def create(self, entity: Any, params: Params | None = None, ctx: Context | None = None) -> E:
        return self.endpoint.request(shape=self.entity).set_params(params).post(entity, ctx)

    def update(self, id: Id, entity: Any, params: Params | None = None, ctx: Context | None = None) -> E:
        return self.endpoint.request(id, shape=self.entity).set_params(params).put(entity, ctx)

    def delete(self, id: Id, ctx: Context | None = None, missing_ok: bool = False) -> bool:
        return self.endpoint.request(id).delete(ctx, missing_ok=missing_ok)

    def move_to_trash(self, id: Id, ctx: Context | None = None) -> bool:
        self.endpoint.request(id, "trash").send("POST", ctx=ctx)
        return True

    def get_by_sync_id(self, sync_id: Id, ctx: Context | None = None) -> E:
        return self.endpoint.request("syncid", sync_id, shape=self.entity).get(ctx)

    def delete_by_sync_id(self, sync_id: Id, ctx: Context | None = None, missing_ok: bool = False) -> bool:
        return self.endpoint.request("syncid", sync_id).delete(ctx, missing_ok=missing_ok)


class BulkOps(Generic[E]):
    """Batch create/update and batch delete against the collection."""

    def __init__(self, endpoint: Endpoint, entity: type[E]):
        self.endpoint = endpoint
        self.entity = entity

    def create_or_update_many(
        self,
        entities: Sequence[Any],
        params: Params | None = None,
        ctx: Context | None = None,
    ) -> BulkResult[E]:
        return bulk.create_or_update_many(
            self.endpoint.client, self.endpoint.uri, entities, self.entity, params, ctx
        )

    def delete_many(self, refs: Iterable[Any], ctx: Context | None = None) -> BulkResult[Meta]:
        return bulk.delete_many(self.endpoint.client, self.endpoint.uri, refs, ctx)


class MetadataOps:
    def __init__(self, endpoint: Endpoint):
        self.endpoint = endpoint

    def get_metadata(self, ctx: Context | None = None) -> EntityMetadata:
        return self.endpoint.request("metadata", shape=EntityMetadata).get(ctx)


class AttributesOps:
    """Additional field definitions: ``{uri}/metadata/attributes``."""

    def __init__(self, endpoint: Endpoint):
        self.endpoint = Endpoint(endpoint.client, endpoint.path("metadata", "attributes"))

    def list(self, ctx: Context | None = None) -> ListResult[Attribute]:
        return self.endpoint.request(shape=Paged(Attribute)).get(ctx)

    def get(self, id: Id, ctx: Context | None = None) -> Attribute:
        return self.endpoint.request(id, shape=Attribute).get(ctx)

    def create(self, attribute: Any, ctx: Context | None = None) -> Attribute:
        return self.endpoint.request(shape=Attribute).post(attribute, ctx)

    def create_many(self, attributes: Sequence[Any], ctx: Context | None = None) -> BulkResult[Attribute]:
        return bulk.create_or_update_many(
            self.endpoint.client, self.endpoint.uri, attributes, Attribute, ctx=ctx
        )

    def update(self, id: Id, attribute: Any, ctx: Context | None = None) -> Attribute:
        return self.endpoint.request(id, shape=Attribute).put(attribute, ctx)

    def delete(self, id: Id, ctx: Context | None = None, missing_ok: bool = False) -> bool:
        return self.endpoint.request(id).delete(ctx, missing_ok=missing_ok)

    def delete_many(self, refs: Iterable[Any], ctx: Context | None = None) -> BulkResult[Meta]:
        return bulk.delete_many(self.endpoint.client, self.endpoint.uri, refs, ctx)


class StatesOps:
    """Document statuses: ``{uri}/metadata/states``."""

    def __init__(self, endpoint: Endpoint):
        self.endpoint = Endpoint(endpoint.client, endpoint.path("metadata", "states"))

    def get(self, id: Id, ctx: Context | None = None) -> State:
        return self.endpoint.request(id, shape=State).get(ctx)

    def create(self, state: Any, ctx: Context | None = None) -> State:
        return self.endpoint.request(shape=State).post(state, ctx)

    def update(self, id: Id, state: Any, ctx: Context | None = None) -> State:
        return self.endpoint.request(id, shape=State).put(state, ctx)

    def create_or_update_many(self, states: Sequence[Any], ctx: Context | None = None) -> BulkResult[State]:
        return bulk.create_or_update_many(self.endpoint.client, self.endpoint.uri, states, State, ctx=ctx)

    def delete(self, id: Id, ctx: Context | None = None, missing_ok: bool = False) -> bool:
        return self.endpoint.request(id).delete(ctx, missing_ok=missing_ok)


class FilesOps:
    """Attached files: ``{uri}/{id}/files``."""

    def __init__(self, endpoint: Endpoint):
        self.endpoint = endpoint

    def list(self, entity_id: Id, ctx: Context | None = None) -> ListResult[File]:
        return self.endpoint.request(entity_id, "files", shape=Paged(File)).get(ctx)

    def create(self, entity_id: Id, file: Any, ctx: Context | None = None) -> list[File]:
        """Attach one file; the service answers with every file of the entity."""
        return self.endpoint.request(entity_id, "files", shape=Many(File)).post([file], ctx)

    def update_many(self, entity_id: Id, files: Sequence[Any], ctx: Context | None = None) -> list[File]:
        return self.endpoint.request(entity_id, "files", shape=Many(File)).post(list(files), ctx)

    def delete(self, entity_id: Id, file_id: Id, ctx: Context | None = None, missing_ok: bool = False) -> bool:
        return self.endpoint.request(entity_id, "files", file_id).delete(ctx, missing_ok=missing_ok)

    def delete_many(self, entity_id: Id, refs: Iterable[Any], ctx: Context | None = None) -> BulkResult[Meta]:
        return bulk.delete_many(self.endpoint.client, self.endpoint.path(entity_id, "files"), refs, ctx)


class PublicationsOps:
    """Published print forms: ``{uri}/{id}/publications``."""

    def __init__(self, endpoint: Endpoint):
        self.endpoint = endpoint

    def list(self, entity_id: Id, ctx: Context | None = None) -> ListResult[Publication]:
        return self.endpoint.request(entity_id, "publications", shape=Paged(Publication)).get(ctx)

    def get(self, entity_id: Id, publication_id: Id, ctx: Context | None = None) -> Publication:
        return self.endpoint.request(entity_id, "publications", publication_id, shape=Publication).get(ctx)

    def publish(self, entity_id: Id, template: Any, ctx: Context | None = None) -> Publication:
        """Publish with a print template (Meta, entity or ``{"meta": ...}``)."""
        body = {"template": bulk.to_meta(template).wrap()}
        return self.endpoint.request(entity_id, "publications", shape=Publication).post(body, ctx)

    def delete(self, entity_id: Id, publication_id: Id, ctx: Context | None = None, missing_ok: bool = False) -> bool:
        return self.endpoint.request(entity_id, "publications", publication_id).delete(ctx, missing_ok=missing_ok)


class NamedFiltersOps:
    """Saved filters: ``{uri}/namedfilter``."""

    def __init__(self, endpoint: Endpoint):
        self.endpoint = Endpoint(endpoint.client, endpoint.path("namedfilter"))

    def list(self, params: Params | None = None, ctx: Context | None = None) -> ListResult[NamedFilter]:
        return self.endpoint.request(shape=Paged(NamedFilter)).set_params(params).get(ctx)

    def get(self, id: Id, ctx: Context | None = None) -> NamedFilter:
        return self.endpoint.request(id, shape=NamedFilter).get(ctx)


class PositionsOps(Generic[P]):
    """Document line items: ``{uri}/{id}/positions``."""

    def __init__(self, endpoint: Endpoint, position: type[P]):
        self.endpoint = endpoint
        self.position = position

    def list(self, document_id: Id, params: Params | None = None, ctx: Context | None = None) -> ListResult[P]:
        return (
            self.endpoint.request(document_id, "positions", shape=Paged(self.position))
            .set_params(params)
            .get(ctx)
        )

    def get(self, document_id: Id, position_id: Id, params: Params | None = None, ctx: Context | None = None) -> P:
        return (
            self.endpoint.request(document_id, "positions", position_id, shape=self.position)
            .set_params(params)
            .get(ctx)
        )

    def create(self, document_id: Id, position: Any, ctx: Context | None = None) -> P:
        return self.endpoint.request(document_id, "positions", shape=self.position).post(position, ctx)

    def create_many(self, document_id: Id, positions: Sequence[Any], ctx: Context | None = None) -> BulkResult[P]:
        return bulk.create_or_update_many(
            self.endpoint.client,
            self.endpoint.path(document_id, "positions"),
            positions,
            self.position,
            ctx=ctx,
        )

    def update(
        self,
        document_id: Id,
        position_id: Id,
        position: Any,
        params: Params | None = None,
        ctx: Context | None = None,
    ) -> P:
        return (
            self.endpoint.request(document_id, "positions", position_id, shape=self.position)
            .set_params(params)
            .put(position, ctx)
        )

    def delete(self, document_id: Id, position_id: Id, ctx: Context | None = None, missing_ok: bool = False) -> bool:
        return self.endpoint.request(document_id, "positions", position_id).delete(ctx, missing_ok=missing_ok)

    def tracking_codes(self, document_id: Id, position_id: Id, ctx: Context | None = None) -> ListResult[TrackingCode]:
        """Marking codes of one position."""
        return (
            self.endpoint.request(document_id, "positions", position_id, "trackingCodes", shape=Paged(TrackingCode))
            .get(ctx)
        )

    def create_or_update_tracking_codes(
        self,
        document_id: Id,
        position_id: Id,
        codes: Sequence[Any],
        ctx: Context | None = None,
    ) -> BulkResult[TrackingCode]:
        return bulk.create_or_update_many(
            self.endpoint.client,
            self.endpoint.path(document_id, "positions", position_id, "trackingCodes"),
            codes,
            TrackingCode,
            ctx=ctx,
        )

    def delete_tracking_codes(
        self,
        document_id: Id,
        position_id: Id,
        codes: Iterable[Any],
        ctx: Context | None = None,
    ) -> BulkResult[Any]:
        """Codes are matched by ``cis``; each is sent whole, not as a meta reference."""
        return bulk.delete_values(
            self.endpoint.client,
            self.endpoint.path(document_id, "positions", position_id, "trackingCodes"),
            codes,
            ctx=ctx,
        )
