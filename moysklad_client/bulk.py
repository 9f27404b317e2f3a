"""
Bulk create/update and bulk delete.

Both calls send one request for the whole batch. The service answers with an
array aligned with the input: each element is either the processed entity
or an ``{"errors": [...]}`` document. Partial failure never raises; the
caller inspects every BulkItem.

Usage:
    result = client.cash_out.delete_many([a, b, c])
    for item in result:
        if not item.ok:
            print(item.index, item.error.code, item.error.message)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Generic, Iterable, Iterator, Sequence, TypeVar

from .codec import _text, loads, scan_array
from .context import Context
from .errors import DecodeError
from .meta import Meta
from .params import Params
from .request import RequestBuilder

if TYPE_CHECKING:
    from .client import MoySkladClient

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class BulkError:
    """Failure of one batch element."""
    index: int
    code: Any
    message: str
    parameter: str | None = None
    errors: list[dict[str, Any]] = field(default_factory=list, repr=False)

    @classmethod
    def from_errors(cls, index: int, errors: list[Any]) -> BulkError:
        details = [e for e in errors if isinstance(e, dict)]
        first = details[0] if details else {}
        return cls(
            index=index,
            code=first.get("code"),
            message=first.get("error") or "Unknown error",
            parameter=first.get("parameter"),
            errors=details,
        )


@dataclass(frozen=True)
class BulkItem(Generic[T]):
    """Outcome of one batch element: exactly one of ``value`` / ``error`` is set."""
    index: int
    value: T | None = None
    error: BulkError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class BulkResult(Sequence[BulkItem[T]]):
    """Per-item outcomes, in input order. ``len`` always equals the input length."""

    def __init__(self, items: list[BulkItem[T]]):
        self.items = items

    def __len__(self) -> int:
        return len(self.items)

    def __getitem__(self, index):  # type: ignore[override]
        return self.items[index]

    def __iter__(self) -> Iterator[BulkItem[T]]:
        return iter(self.items)

    def __repr__(self) -> str:
        return f"BulkResult(ok={len(self.values())}, failed={len(self.errors())})"

    @property
    def ok(self) -> bool:
        return all(item.ok for item in self.items)

    def values(self) -> list[T]:
        return [item.value for item in self.items if item.ok]  # type: ignore[misc]

    def errors(self) -> list[BulkError]:
        return [item.error for item in self.items if item.error is not None]


def decode_bulk_response(
    raw: bytes,
    count: int,
    decode_item: Callable[[int, Any, bytes], T],
) -> BulkResult[T]:
    """
    Align a response array with a batch of ``count`` inputs.

    A malformed element only fails its own slot.

    Raises:
        DecodeError: The body is not an array of ``count`` elements
    """
    text = _text(raw)
    elements = scan_array(text)
    if len(elements) != count:
        raise DecodeError(f"Bulk response has {len(elements)} items, expected {count}")

    items: list[BulkItem[T]] = []
    for index, (data, start, end) in enumerate(elements):
        if isinstance(data, dict) and "errors" in data:
            errors = data["errors"] if isinstance(data["errors"], list) else []
            items.append(BulkItem(index, error=BulkError.from_errors(index, errors)))
            continue
        try:
            value = decode_item(index, data, text[start:end].encode("utf-8"))
        except DecodeError as e:
            logger.warning(f"Bulk item {index} could not be decoded: {e}")
            items.append(BulkItem(index, error=BulkError(index, "DECODE_ERROR", str(e))))
            continue
        items.append(BulkItem(index, value=value))
    return BulkResult(items)


def _post_batch(
    client: MoySkladClient,
    path: str,
    body: list[Any],
    params: Params | None,
    ctx: Context | None,
) -> bytes:
    response = RequestBuilder(client, path).set_params(params).send("POST", body, ctx, check=False)
    if not response.ok:
        # A rejected batch still answers per element when it was accepted for processing
        try:
            data = loads(response.content) if response.content.strip() else None
        except DecodeError:
            data = None
        if not (isinstance(data, list) and len(data) == len(body)):
            response.raise_for_error()
    logger.debug(f"Bulk POST {path}: {len(body)} items -> {response.status_code}")
    return response.content


def create_or_update_many(
    client: MoySkladClient,
    path: str,
    items: Sequence[Any],
    item_type: Any,
    params: Params | None = None,
    ctx: Context | None = None,
) -> BulkResult[Any]:
    """
    POST an array of entities to a collection.

    Elements with ``meta`` are updated, elements without are created.
    """
    body = list(items)
    if not body:
        return BulkResult([])
    raw = _post_batch(client, path, body, params, ctx)
    return decode_bulk_response(raw, len(body), lambda _, data, item_raw: item_type.from_wire(data, item_raw))


def to_meta(ref: Any) -> Meta:
    """Reduce an entity, envelope, ``{"meta": ...}`` dict or Meta to its Meta."""
    if isinstance(ref, Meta):
        return ref
    if isinstance(ref, dict):
        return Meta.from_dict(ref.get("meta", ref))
    meta = getattr(ref, "meta", None)
    if isinstance(meta, Meta):
        return meta
    raise TypeError(f"Cannot reference {type(ref).__name__} without meta")


def _delete_batch(
    client: MoySkladClient,
    path: str,
    body: list[Any],
    values: list[T],
    ctx: Context | None,
) -> BulkResult[T]:
    if not body:
        return BulkResult([])
    raw = _post_batch(client, f"{path.rstrip('/')}/delete", body, None, ctx)
    return decode_bulk_response(raw, len(body), lambda index, _data, _raw: values[index])


def delete_many(
    client: MoySkladClient,
    path: str,
    refs: Iterable[Any],
    ctx: Context | None = None,
) -> BulkResult[Meta]:
    """
    Remove several entities with one POST to ``{path}/delete``.

    Every reference is sent as ``{"meta": ...}`` only. Successful items carry
    the reference's Meta as their value.
    """
    metas = [to_meta(ref) for ref in refs]
    return _delete_batch(client, path, [meta.wrap() for meta in metas], metas, ctx)


def delete_values(
    client: MoySkladClient,
    path: str,
    items: Iterable[Any],
    ctx: Context | None = None,
) -> BulkResult[Any]:
    """
    Remove objects the service addresses by content rather than by meta
    (tracking codes), sending each one whole to ``{path}/delete``.

    Successful items carry the input object as their value.
    """
    values = list(items)
    return _delete_batch(client, path, values, values, ctx)
