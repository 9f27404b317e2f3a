"""Entity metadata (``meta`` objects) and the closed set of type discriminators."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import ConfigDict, StrictInt

from .errors import UnknownTypeError
from .wire import WireModel


class MetaType(str, Enum):
    """Known values of ``meta.type``."""
    ASSORTMENT = "assortment"
    ASSORTMENT_SETTINGS = "assortmentsettings"
    PRODUCT = "product"
    VARIANT = "variant"
    BUNDLE = "bundle"
    SERVICE = "service"
    CONSIGNMENT = "consignment"
    PRODUCT_FOLDER = "productfolder"
    CASH_IN = "cashin"
    CASH_OUT = "cashout"
    PAYMENT_IN = "paymentin"
    PAYMENT_OUT = "paymentout"
    ENTER = "enter"
    ENTER_POSITION = "enterposition"
    INVOICE_OUT = "invoiceout"
    INVOICE_POSITION = "invoiceposition"
    CUSTOM_ENTITY = "customentity"
    CUSTOM_ENTITY_METADATA = "customentitymetadata"
    ATTRIBUTE_METADATA = "attributemetadata"
    STATE = "state"
    FILES = "files"
    PUBLICATION = "operationpublication"
    EMBEDDED_TEMPLATE = "embeddedtemplate"
    CUSTOM_TEMPLATE = "customtemplate"
    NAMED_FILTER = "namedfilter"
    COUNTERPARTY = "counterparty"
    ORGANIZATION = "organization"
    EMPLOYEE = "employee"
    GROUP = "group"
    STORE = "store"
    PROJECT = "project"
    CONTRACT = "contract"
    CURRENCY = "currency"
    SALES_CHANNEL = "saleschannel"
    EXPENSE_ITEM = "expenseitem"
    ACCOUNT = "account"
    UOM = "uom"
    COUNTRY = "country"
    METADATA = "metadata"


_KNOWN_TYPES = {t.value: t for t in MetaType}


class Meta(WireModel):
    """
    Location and type of a remote entity.

    Collection responses reuse the same object with paging fields
    (``size``, ``limit``, ``offset``, ``next_href``, ``previous_href``).
    ``type`` keeps the string exactly as received; use ``meta_type`` to
    resolve it against the closed set.
    """

    model_config = ConfigDict(frozen=True)

    href: str
    type: str | None = None
    media_type: str | None = "application/json"
    metadata_href: str | None = None
    uuid_href: str | None = None
    download_href: str | None = None
    size: StrictInt | None = None
    limit: StrictInt | None = None
    offset: StrictInt | None = None
    next_href: str | None = None
    previous_href: str | None = None

    @property
    def meta_type(self) -> MetaType:
        """Resolved discriminator; raises UnknownTypeError outside the closed set."""
        return resolve_type(self)

    @property
    def is_known_type(self) -> bool:
        return self.type in _KNOWN_TYPES

    def clean(self) -> Meta:
        """Reference-only projection, without paging or extra links."""
        return Meta(
            href=self.href,
            type=self.type,
            media_type=self.media_type,
            metadata_href=self.metadata_href,
        )

    def wrap(self) -> dict[str, Any]:
        """``{"meta": {...}}`` reference form used in request bodies."""
        return {"meta": self.clean().to_dict()}

    def with_paging(self, size: int, limit: int, offset: int) -> Meta:
        return self.model_copy(update={"size": size, "limit": limit, "offset": offset})


def resolve_type(meta: Meta | str | None) -> MetaType:
    """
    Extract and validate an entity type discriminator.

    Args:
        meta: A Meta object or the raw ``meta.type`` string

    Raises:
        UnknownTypeError: The value is not one of MetaType
    """
    type_name = meta.type if isinstance(meta, Meta) else meta
    try:
        return _KNOWN_TYPES[type_name]  # type: ignore[index]
    except KeyError:
        raise UnknownTypeError(type_name) from None
