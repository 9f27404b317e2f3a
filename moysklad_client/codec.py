"""
JSON encoding and decoding.

Covers three things:
- turning entity models, Meta objects and plain values into request bodies
- locating the exact byte span of every element of a ``rows`` array, so that
  polymorphic rows can keep their original payload
- result shapes that a RequestBuilder decodes a response body into

Field-level decoding of objects is done by the pydantic models themselves
(see wire.WireModel).
"""

from __future__ import annotations

import json
import logging
import typing
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Iterator, Protocol, TypeVar
from uuid import UUID

from pydantic import BaseModel

from .errors import DecodeError
from .meta import Meta

if typing.TYPE_CHECKING:
    from .params import Params

logger = logging.getLogger(__name__)

T = TypeVar("T")

_decoder = json.JSONDecoder()
_WHITESPACE = " \t\n\r"


# =============================================================================
# Plain JSON helpers
# =============================================================================


def loads(raw: bytes | str) -> Any:
    """Parse a JSON document, raising DecodeError on malformed input."""
    try:
        return json.loads(raw)
    except (ValueError, UnicodeDecodeError) as e:
        raise DecodeError(f"Malformed JSON: {e}") from e


def dumps(value: Any) -> bytes:
    """Serialize entities, Meta objects and plain values to JSON bytes."""
    return json.dumps(encode_value(value), ensure_ascii=False, separators=(",", ":")).encode("utf-8")


def _text(raw: bytes) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecodeError(f"Response is not valid UTF-8: {e}") from e


def _skip_ws(text: str, idx: int) -> int:
    while idx < len(text) and text[idx] in _WHITESPACE:
        idx += 1
    return idx


def _raw_decode(text: str, idx: int) -> tuple[Any, int]:
    try:
        return _decoder.raw_decode(text, idx)
    except ValueError as e:
        raise DecodeError(f"Malformed JSON at offset {idx}: {e}") from e


def scan_object(text: str, idx: int = 0) -> dict[str, tuple[Any, int, int]]:
    """
    Scan a JSON object member by member.

    Returns:
        Mapping of key -> (decoded value, start offset, end offset)
    """
    idx = _skip_ws(text, idx)
    if idx >= len(text) or text[idx] != "{":
        raise DecodeError("Expected a JSON object")
    members: dict[str, tuple[Any, int, int]] = {}
    idx = _skip_ws(text, idx + 1)
    if idx < len(text) and text[idx] == "}":
        return members
    while True:
        if idx >= len(text) or text[idx] != '"':
            raise DecodeError(f"Expected object key at offset {idx}")
        key, idx = _raw_decode(text, idx)
        idx = _skip_ws(text, idx)
        if idx >= len(text) or text[idx] != ":":
            raise DecodeError(f"Expected ':' at offset {idx}")
        idx = _skip_ws(text, idx + 1)
        value, end = _raw_decode(text, idx)
        members[key] = (value, idx, end)
        idx = _skip_ws(text, end)
        if idx < len(text) and text[idx] == ",":
            idx = _skip_ws(text, idx + 1)
            continue
        if idx < len(text) and text[idx] == "}":
            return members
        raise DecodeError(f"Expected ',' or '}}' at offset {idx}")


def scan_array(text: str, idx: int = 0) -> list[tuple[Any, int, int]]:
    """
    Scan a JSON array element by element.

    Returns:
        List of (decoded value, start offset, end offset), in array order
    """
    idx = _skip_ws(text, idx)
    if idx >= len(text) or text[idx] != "[":
        raise DecodeError("Expected a JSON array")
    items: list[tuple[Any, int, int]] = []
    idx = _skip_ws(text, idx + 1)
    if idx < len(text) and text[idx] == "]":
        return items
    while True:
        value, end = _raw_decode(text, idx)
        items.append((value, idx, end))
        idx = _skip_ws(text, end)
        if idx < len(text) and text[idx] == ",":
            idx = _skip_ws(text, idx + 1)
            continue
        if idx < len(text) and text[idx] == "]":
            return items
        raise DecodeError(f"Expected ',' or ']' at offset {idx}")


# =============================================================================
# Encoding
# =============================================================================


def encode_value(value: Any) -> Any:
    """Convert models and Python values into JSON-ready structures."""
    if isinstance(value, Enum):
        return value.value
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, UUID):
        return str(value)
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True, exclude_none=True)
    if isinstance(value, dict):
        return {k: encode_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [encode_value(v) for v in value]
    return value


# =============================================================================
# Lists
# =============================================================================


@dataclass(frozen=True)
class ResponseContext:
    """``context`` block of list responses: the employee who made the request."""
    employee: Meta | None = None

    @classmethod
    def from_dict(cls, data: Any) -> ResponseContext:
        if not isinstance(data, dict):
            return cls()
        employee = data.get("employee")
        if isinstance(employee, dict) and "meta" in employee:
            return cls(employee=Meta.from_dict(employee["meta"]))
        return cls()


@dataclass
class ListResult(Generic[T]):
    """
    One page of a collection.

    The core never fetches further pages on its own; use ``has_more`` and
    ``next_params`` to request the next window.
    """
    rows: list[T]
    meta: Meta
    context: ResponseContext | None = None

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[T]:
        return iter(self.rows)

    def __getitem__(self, index: int) -> T:
        return self.rows[index]

    @property
    def size(self) -> int:
        """Total number of entities in the collection, as reported by the service."""
        return self.meta.size if self.meta.size is not None else len(self.rows)

    def has_more(self) -> bool:
        """
        True when rows exist past this page (uses the returned meta, not the request).

        An empty page never has more: the next window would not advance.
        """
        if not self.rows:
            return False
        offset = self.meta.offset or 0
        return offset + len(self.rows) < self.size

    def next_offset(self) -> int:
        offset = self.meta.offset or 0
        limit = self.meta.limit if self.meta.limit is not None else len(self.rows)
        return offset + limit

    def next_params(self, params: Params | None = None) -> Params:
        """Copy of ``params`` positioned at the next page window."""
        from .params import Params

        base = params.copy() if params is not None else Params()
        if self.meta.limit is not None:
            base.with_limit(self.meta.limit)
        return base.with_offset(self.next_offset())

    def filter(self, variant: type[Any]) -> list[Any]:
        """Narrow envelope rows to ``variant`` (see envelope.filter_by_type)."""
        from .envelope import filter_by_type

        return filter_by_type(self.rows, variant)  # type: ignore[arg-type]


# =============================================================================
# Result shapes
# =============================================================================


class WireDecodable(Protocol):
    @classmethod
    def from_wire(cls, data: Any, raw: bytes) -> Any: ...


class Shape(Generic[T]):
    """How a response body turns into a result."""

    def decode(self, raw: bytes) -> T:
        raise NotImplementedError

    def matches(self, data: Any) -> bool:
        """Whether an already-parsed body looks like this shape's result."""
        return True


class Single(Shape[T]):
    """A single JSON object decoded into ``item``."""

    def __init__(self, item: type[T]):
        self.item = item

    def decode(self, raw: bytes) -> T:
        data = loads(raw)
        return self.item.from_wire(data, raw)  # type: ignore[attr-defined]

    def matches(self, data: Any) -> bool:
        return isinstance(data, dict) and "errors" not in data

    def __repr__(self) -> str:
        return f"Single({self.item.__name__})"


class Paged(Shape[ListResult[T]]):
    """``{context, meta, rows: [...]}`` decoded into a ListResult of ``item``."""

    def __init__(self, item: type[T]):
        self.item = item

    def decode(self, raw: bytes) -> ListResult[T]:
        text = _text(raw)
        members = scan_object(text)
        if "meta" not in members:
            raise DecodeError("List response has no 'meta'")
        meta = Meta.from_dict(members["meta"][0])
        rows: list[T] = []
        if "rows" in members:
            _, start, _ = members["rows"]
            for data, s, e in scan_array(text, start):
                rows.append(self.item.from_wire(data, text[s:e].encode("utf-8")))  # type: ignore[attr-defined]
        context = ResponseContext.from_dict(members["context"][0]) if "context" in members else None
        return ListResult(rows=rows, meta=meta, context=context)

    def matches(self, data: Any) -> bool:
        return isinstance(data, dict) and "rows" in data

    def __repr__(self) -> str:
        return f"Paged({self.item.__name__})"


class Many(Shape[list[T]]):
    """A top-level JSON array decoded element by element."""

    def __init__(self, item: type[T]):
        self.item = item

    def decode(self, raw: bytes) -> list[T]:
        text = _text(raw)
        return [
            self.item.from_wire(data, text[s:e].encode("utf-8"))  # type: ignore[attr-defined]
            for data, s, e in scan_array(text)
        ]

    def matches(self, data: Any) -> bool:
        return isinstance(data, list)

    def __repr__(self) -> str:
        return f"Many({self.item.__name__})"


class RawShape(Shape[bytes]):
    """Body bytes passed through untouched."""

    def decode(self, raw: bytes) -> bytes:
        return raw


class Untyped(Shape[Any]):
    """Parsed JSON without any typing."""

    def decode(self, raw: bytes) -> Any:
        return loads(raw) if raw.strip() else None


def as_shape(target: Any) -> Shape[Any]:
    """Accept either a Shape instance or a class with ``from_wire``."""
    if target is None:
        return Untyped()
    if isinstance(target, Shape):
        return target
    if isinstance(target, type) and hasattr(target, "from_wire"):
        return Single(target)
    raise TypeError(f"Cannot decode into {target!r}")
