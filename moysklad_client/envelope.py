"""
Polymorphic records.

Collections such as the assortment or the payment list return rows of
different entity kinds side by side. Each row is decoded into an Envelope,
which exposes the handful of fields every entity shares and keeps the exact
bytes of the row. Narrowing re-decodes those bytes into a concrete entity
class, but only when the row's ``meta.type`` matches that class.

Usage:
    page = client.assortment.get(Params().with_limit(100))

    for row in page:
        product = row.as_product()
        if product is not None:
            print(product.article)

    # Or keep only one kind
    bundles = filter_by_type(page.rows, Bundle)
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, TypeVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from .codec import loads
from .entities import (
    Bundle,
    CashIn,
    CashOut,
    Consignment,
    Entity,
    PaymentIn,
    PaymentOut,
    Product,
    Service,
    Variant,
    variant_for,
)
from .errors import DecodeError
from .meta import Meta, MetaType, resolve_type
from .wire import describe_error

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Entity)


class Envelope(BaseModel):
    """
    Partially decoded entity that owns the original payload bytes.

    ``raw`` is the exact byte slice received for this object; narrowing
    always decodes from it, never from the already-extracted fields.
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True, extra="ignore")

    meta: Meta
    raw: bytes = Field(repr=False, exclude=True)
    id: UUID | None = None
    account_id: UUID | None = None
    code: str | None = None
    description: str | None = None
    external_code: str | None = None
    name: str | None = None

    @classmethod
    def from_wire(cls, data: Any, raw: bytes) -> Envelope:
        if not isinstance(data, dict):
            raise DecodeError(f"Envelope: expected object, got {type(data).__name__}")
        if "meta" not in data:
            raise DecodeError("Envelope: payload has no 'meta'")
        meta = Meta.from_dict(data["meta"])
        if not meta.is_known_type:
            logger.warning(f"Unknown entity type {meta.type!r} at {meta.href}")
        try:
            return cls.model_validate({**data, "meta": meta, "raw": bytes(raw)})
        except ValidationError as e:
            raise DecodeError(describe_error(cls, e)) from e

    @classmethod
    def from_json(cls, raw: bytes) -> Envelope:
        return cls.from_wire(loads(raw), raw)

    @classmethod
    def from_entity(cls, entity: Entity) -> Envelope:
        """Wrap a typed entity, e.g. to put it in a heterogeneous batch."""
        from .codec import dumps

        return cls.from_json(dumps(entity))

    @property
    def type(self) -> str | None:
        return self.meta.type

    @property
    def meta_type(self) -> MetaType:
        """Resolved discriminator; raises UnknownTypeError for unknown kinds."""
        return resolve_type(self.meta)

    def is_type(self, variant: type[Entity]) -> bool:
        return variant.META_TYPE is not None and self.meta.type == variant.META_TYPE.value

    def narrow(self, variant: type[E]) -> E | None:
        return narrow(self, variant)

    def concrete(self) -> Entity:
        """Decode into whichever entity class is registered for this type."""
        return variant_for(self.meta.type).from_json(self.raw)

    def as_reference(self) -> dict[str, Any]:
        return self.meta.wrap()

    def to_dict(self) -> dict[str, Any]:
        return loads(self.raw)

    def as_product(self) -> Product | None:
        return narrow(self, Product)

    def as_variant(self) -> Variant | None:
        return narrow(self, Variant)

    def as_bundle(self) -> Bundle | None:
        return narrow(self, Bundle)

    def as_service(self) -> Service | None:
        return narrow(self, Service)

    def as_consignment(self) -> Consignment | None:
        return narrow(self, Consignment)

    def as_cash_in(self) -> CashIn | None:
        return narrow(self, CashIn)

    def as_cash_out(self) -> CashOut | None:
        return narrow(self, CashOut)

    def as_payment_in(self) -> PaymentIn | None:
        return narrow(self, PaymentIn)

    def as_payment_out(self) -> PaymentOut | None:
        return narrow(self, PaymentOut)


def decode_envelope(raw: bytes) -> Envelope:
    """Decode one JSON object into an Envelope, keeping ``raw`` verbatim."""
    return Envelope.from_json(raw)


def narrow(envelope: Envelope, variant: type[E]) -> E | None:
    """
    Convert an Envelope into ``variant`` if its discriminator matches.

    Returns:
        The fully decoded entity, or None on a type mismatch

    Raises:
        DecodeError: The type matches but the payload is malformed
    """
    if not envelope.is_type(variant):
        return None
    return variant.from_json(envelope.raw)


def filter_by_type(envelopes: Iterable[Envelope], variant: type[E]) -> list[E]:
    """Narrow every envelope, keeping matches in their original order."""
    out: list[E] = []
    for envelope in envelopes:
        entity = narrow(envelope, variant)
        if entity is not None:
            out.append(entity)
    return out
