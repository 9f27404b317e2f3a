"""
Entity models.

Only the fields the client itself relies on are modelled explicitly; every
other member of the payload is kept in ``extra`` and written back on
serialization, so updates never drop data the client does not know about.

Each concrete class declares its ``META_TYPE``; subclasses register
themselves against that discriminator, which is what Envelope narrowing and
``Envelope.concrete()`` use.
"""

from __future__ import annotations

from typing import Any, ClassVar
from uuid import UUID

from .errors import DecodeError, UnknownTypeError
from .meta import Meta, MetaType
from .wire import WireModel

# Discriminator -> concrete entity class
_REGISTRY: dict[str, type[Entity]] = {}


def variant_for(type_name: str | None) -> type[Entity]:
    """Registered entity class for a discriminator."""
    try:
        return _REGISTRY[type_name]  # type: ignore[index]
    except KeyError:
        raise UnknownTypeError(type_name) from None


def registered_types() -> dict[str, type[Entity]]:
    return dict(_REGISTRY)


class Entity(WireModel):
    """Common fields shared by every remote entity."""
    META_TYPE: ClassVar[MetaType | None] = None

    meta: Meta | None = None
    id: UUID | None = None
    account_id: UUID | None = None
    name: str | None = None
    code: str | None = None
    description: str | None = None
    external_code: str | None = None

    @classmethod
    def __pydantic_init_subclass__(cls, **kwargs: Any) -> None:
        super().__pydantic_init_subclass__(**kwargs)
        meta_type = cls.__dict__.get("META_TYPE")
        if meta_type is not None:
            _REGISTRY[meta_type.value] = cls

    def get_meta(self) -> Meta:
        if self.meta is None:
            raise DecodeError(f"{type(self).__name__} has no meta")
        return self.meta

    def as_reference(self) -> dict[str, Any]:
        """``{"meta": ...}`` form used when this entity is referenced by another."""
        return self.get_meta().wrap()


# =============================================================================
# Assortment
# =============================================================================


class Product(Entity):
    META_TYPE: ClassVar[MetaType | None] = MetaType.PRODUCT

    article: str | None = None
    archived: bool | None = None
    path_name: str | None = None
    weighed: bool | None = None
    weight: float | None = None
    volume: float | None = None
    variants_count: int | None = None
    barcodes: list[dict[str, Any]] | None = None
    sale_prices: list[dict[str, Any]] | None = None
    attributes: list[dict[str, Any]] | None = None


class Variant(Entity):
    META_TYPE: ClassVar[MetaType | None] = MetaType.VARIANT

    archived: bool | None = None
    characteristics: list[dict[str, Any]] | None = None
    product: dict[str, Any] | None = None
    barcodes: list[dict[str, Any]] | None = None
    sale_prices: list[dict[str, Any]] | None = None


class Bundle(Entity):
    META_TYPE: ClassVar[MetaType | None] = MetaType.BUNDLE

    article: str | None = None
    archived: bool | None = None
    path_name: str | None = None
    components: dict[str, Any] | None = None
    sale_prices: list[dict[str, Any]] | None = None


class Service(Entity):
    META_TYPE: ClassVar[MetaType | None] = MetaType.SERVICE

    archived: bool | None = None
    path_name: str | None = None
    sale_prices: list[dict[str, Any]] | None = None


class Consignment(Entity):
    META_TYPE: ClassVar[MetaType | None] = MetaType.CONSIGNMENT

    label: str | None = None
    assortment: dict[str, Any] | None = None
    barcodes: list[dict[str, Any]] | None = None


class AssortmentSettings(WireModel):
    """Settings of the assortment catalogue (``entity/assortment/settings``)."""
    meta: Meta | None = None
    barcode_rules: dict[str, Any] | None = None
    unique_code_rules: dict[str, Any] | None = None
    created_shared: bool | None = None


# =============================================================================
# Documents
# =============================================================================


class Document(Entity):
    """Fields shared by operations (payments, stock documents, invoices)."""
    moment: str | None = None
    created: str | None = None
    updated: str | None = None
    deleted: str | None = None
    applicable: bool | None = None
    shared: bool | None = None
    printed: bool | None = None
    published: bool | None = None
    sum: float | None = None
    sync_id: UUID | None = None
    organization: dict[str, Any] | None = None
    agent: dict[str, Any] | None = None
    owner: dict[str, Any] | None = None
    group: dict[str, Any] | None = None
    state: dict[str, Any] | None = None
    rate: dict[str, Any] | None = None
    project: dict[str, Any] | None = None
    attributes: list[dict[str, Any]] | None = None
    files: dict[str, Any] | None = None


class Payment(Document):
    payment_purpose: str | None = None
    vat_sum: float | None = None
    linked_sum: float | None = None
    operations: list[dict[str, Any]] | None = None


class CashIn(Payment):
    META_TYPE: ClassVar[MetaType | None] = MetaType.CASH_IN


class CashOut(Payment):
    META_TYPE: ClassVar[MetaType | None] = MetaType.CASH_OUT

    expense_item: dict[str, Any] | None = None


class PaymentIn(Payment):
    META_TYPE: ClassVar[MetaType | None] = MetaType.PAYMENT_IN

    incoming_number: str | None = None
    incoming_date: str | None = None


class PaymentOut(Payment):
    META_TYPE: ClassVar[MetaType | None] = MetaType.PAYMENT_OUT

    expense_item: dict[str, Any] | None = None
    organization_account: dict[str, Any] | None = None
    agent_account: dict[str, Any] | None = None


class Position(Entity):
    """Line item of a document (``{id}/positions``)."""
    quantity: float | None = None
    price: float | None = None
    discount: float | None = None
    vat: int | None = None
    assortment: dict[str, Any] | None = None


class EnterPosition(Position):
    META_TYPE: ClassVar[MetaType | None] = MetaType.ENTER_POSITION

    overhead: float | None = None
    reason: str | None = None


class InvoicePosition(Position):
    META_TYPE: ClassVar[MetaType | None] = MetaType.INVOICE_POSITION


class Enter(Document):
    META_TYPE: ClassVar[MetaType | None] = MetaType.ENTER

    store: dict[str, Any] | None = None
    overhead: dict[str, Any] | None = None
    positions: dict[str, Any] | None = None


class InvoiceOut(Document):
    META_TYPE: ClassVar[MetaType | None] = MetaType.INVOICE_OUT

    payed_sum: float | None = None
    shipped_sum: float | None = None
    payment_planned_moment: str | None = None
    vat_enabled: bool | None = None
    vat_included: bool | None = None
    positions: dict[str, Any] | None = None


# =============================================================================
# Custom entities
# =============================================================================


class CustomEntity(Entity):
    """User-defined catalogue (``entity/customentity``)."""
    META_TYPE: ClassVar[MetaType | None] = MetaType.CUSTOM_ENTITY


class CustomEntityElement(Entity):
    """Element of a user-defined catalogue; shares the catalogue's meta type."""
    shared: bool | None = None
    updated: str | None = None
    owner: dict[str, Any] | None = None
    group: dict[str, Any] | None = None


# =============================================================================
# Sub-resources
# =============================================================================


class Attribute(Entity):
    """Additional field definition (``metadata/attributes``)."""
    META_TYPE: ClassVar[MetaType | None] = MetaType.ATTRIBUTE_METADATA

    type: str | None = None
    required: bool | None = None
    show: bool | None = None
    value: Any = None


class State(Entity):
    """Custom status of a document (``metadata/states``)."""
    META_TYPE: ClassVar[MetaType | None] = MetaType.STATE

    color: int | None = None
    state_type: str | None = None
    entity_type: str | None = None


class File(Entity):
    """File attached to an entity (``{id}/files``)."""
    META_TYPE: ClassVar[MetaType | None] = MetaType.FILES

    title: str | None = None
    filename: str | None = None
    size: int | None = None
    created: str | None = None
    content: str | None = None
    miniature: dict[str, Any] | None = None


class Publication(Entity):
    """Published print form of a document (``{id}/publications``)."""
    META_TYPE: ClassVar[MetaType | None] = MetaType.PUBLICATION

    href: str | None = None
    template: dict[str, Any] | None = None


class NamedFilter(Entity):
    """Saved filter (``namedfilter``)."""
    META_TYPE: ClassVar[MetaType | None] = MetaType.NAMED_FILTER

    owner: dict[str, Any] | None = None


class TrackingCode(WireModel):
    """
    Marking code of a document position (``positions/{id}/trackingCodes``).

    Codes carry no ``meta``; the service addresses them by ``cis``. Packs
    (``type`` "consumerpack" or "transportpack") nest their codes.
    """
    id: UUID | None = None
    cis: str | None = None
    type: str | None = None
    tracking_codes: list[TrackingCode] | None = None


class EntityMetadata(WireModel):
    """``{base}/metadata``: additional fields, statuses and sharing default."""
    meta: Meta | None = None
    attributes: list[Attribute] | None = None
    states: list[State] | None = None
    create_shared: bool | None = None
