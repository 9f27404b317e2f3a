"""
MoySklad Client Library

Typed access to the MoySklad JSON API 1.2.

Usage:
    from moysklad_client import MoySkladClient, Params

    client = MoySkladClient()

    # One page of a collection
    page = client.cash_out.get_list(Params().with_limit(100).with_order("moment", "desc"))
    while page.has_more():
        page = client.cash_out.get_list(page.next_params())

    # Heterogeneous lists keep every row as an Envelope
    for row in client.assortment.get():
        product = row.as_product()
        if product is not None:
            print(product.article)

    # Long queries run as asynchronous jobs
    op = client.assortment.get_async(Params().with_limit(1000))
    rows = op.wait(timeout=120)

    # Bulk calls report failures per item
    result = client.cash_out.delete_many(page.rows)
    for item in result:
        if not item.ok:
            print(item.index, item.error.code, item.error.message)
"""

from .async_operation import AsyncOperation, AsyncState
from .bulk import BulkError, BulkItem, BulkResult
from .client import (
    # Core classes
    MoySkladClient,
    # Convenience functions
    assortment,
    entity_service,
    set_default_client,
)
from .codec import ListResult, Many, Paged, RawShape, ResponseContext, Single, Untyped
from .config import ClientConfig
from .context import Context
from .endpoint import Endpoint
from .entities import (
    AssortmentSettings,
    Attribute,
    Bundle,
    CashIn,
    CashOut,
    Consignment,
    CustomEntity,
    CustomEntityElement,
    Document,
    Enter,
    EnterPosition,
    Entity,
    EntityMetadata,
    File,
    InvoiceOut,
    InvoicePosition,
    NamedFilter,
    Payment,
    PaymentIn,
    PaymentOut,
    Position,
    Product,
    Publication,
    Service,
    State,
    TrackingCode,
    Variant,
)
from .envelope import Envelope, decode_envelope, filter_by_type, narrow
from .errors import (
    AccessDeniedError,
    AsyncOperationError,
    AsyncTimeoutError,
    CancelledError,
    DeadlineExceededError,
    DecodeError,
    MoySkladError,
    NotFoundError,
    RemoteAPIError,
    RequestTimeoutError,
    TransportError,
    UnknownTypeError,
)
from .meta import Meta, MetaType, resolve_type
from .params import FilterOperator, OrderDirection, Params
from .request import RequestBuilder
from .resilience import RetryConfig, RetryExhausted, retry_with_backoff
from .services import AssortmentService, CustomEntityService, EntityService

__version__ = "0.1.0"

__all__ = [
    # Core classes
    "MoySkladClient",
    "ClientConfig",
    "Context",
    "Params",
    "FilterOperator",
    "OrderDirection",
    "RequestBuilder",
    "Endpoint",
    "EntityService",
    "AssortmentService",
    "CustomEntityService",
    # Convenience functions
    "entity_service",
    "assortment",
    "set_default_client",
    "retry_with_backoff",
    "RetryConfig",
    "RetryExhausted",
    # Result types
    "ListResult",
    "ResponseContext",
    "Single",
    "Paged",
    "Many",
    "RawShape",
    "Untyped",
    "AsyncOperation",
    "AsyncState",
    "BulkResult",
    "BulkItem",
    "BulkError",
    # Meta and envelopes
    "Meta",
    "MetaType",
    "resolve_type",
    "Envelope",
    "decode_envelope",
    "narrow",
    "filter_by_type",
    # Entities
    "Entity",
    "Product",
    "Variant",
    "Bundle",
    "Service",
    "Consignment",
    "AssortmentSettings",
    "Document",
    "Payment",
    "CashIn",
    "CashOut",
    "PaymentIn",
    "PaymentOut",
    "Position",
    "EnterPosition",
    "InvoicePosition",
    "Enter",
    "InvoiceOut",
    "CustomEntity",
    "CustomEntityElement",
    "Attribute",
    "State",
    "File",
    "Publication",
    "NamedFilter",
    "TrackingCode",
    "EntityMetadata",
    # Exceptions
    "MoySkladError",
    "TransportError",
    "RequestTimeoutError",
    "DecodeError",
    "UnknownTypeError",
    "RemoteAPIError",
    "NotFoundError",
    "AccessDeniedError",
    "CancelledError",
    "DeadlineExceededError",
    "AsyncOperationError",
    "AsyncTimeoutError",
]
