"""Query parameters for list and read requests."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from uuid import UUID

from .meta import Meta


class FilterOperator(str, Enum):
    EQUALS = "="
    NOT_EQUALS = "!="
    GREATER = ">"
    LESS = "<"
    GREATER_OR_EQUALS = ">="
    LESS_OR_EQUALS = "<="
    LIKE = "~"
    PREFIX = "~="
    SUFFIX = "=~"


class OrderDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class FilterCondition:
    field: str
    operator: FilterOperator
    value: str

    def render(self) -> str:
        return f"{self.field}{self.operator.value}{self.value}"


def _filter_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Meta):
        return value.href
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, UUID):
        return str(value)
    return str(value)


@dataclass
class Params:
    """
    Accumulates query options for one request.

    Every option starts unset; unset options are not rendered at all.
    Methods return ``self`` so calls can be chained.

    Filter conditions are combined with AND. Several ``=`` conditions on the
    same field are treated by the service as OR, which is what
    ``with_filter_any`` produces.

    Usage:
        params = (
            Params()
            .with_filter_equals("archived", False)
            .with_filter("updated", FilterOperator.GREATER_OR_EQUALS, "2024-01-01 00:00:00")
            .with_expand("agent", "organization")
            .with_order("moment", OrderDirection.DESC)
            .with_limit(100)
        )
    """
    filters: list[FilterCondition] = field(default_factory=list)
    expand: list[str] = field(default_factory=list)
    order: list[tuple[str, OrderDirection]] = field(default_factory=list)
    fields: list[str] = field(default_factory=list)
    limit: int | None = None
    offset: int | None = None
    search: str | None = None
    named_filter: str | None = None
    is_async: bool = False

    def copy(self) -> Params:
        return copy.deepcopy(self)

    def with_filter(self, name: str, operator: FilterOperator | str, value: Any) -> Params:
        self.filters.append(FilterCondition(name, FilterOperator(operator), _filter_value(value)))
        return self

    def with_filter_equals(self, name: str, value: Any) -> Params:
        return self.with_filter(name, FilterOperator.EQUALS, value)

    def with_filter_not_equals(self, name: str, value: Any) -> Params:
        return self.with_filter(name, FilterOperator.NOT_EQUALS, value)

    def with_filter_greater(self, name: str, value: Any) -> Params:
        return self.with_filter(name, FilterOperator.GREATER, value)

    def with_filter_less(self, name: str, value: Any) -> Params:
        return self.with_filter(name, FilterOperator.LESS, value)

    def with_filter_like(self, name: str, value: Any) -> Params:
        return self.with_filter(name, FilterOperator.LIKE, value)

    def with_filter_any(self, name: str, *values: Any) -> Params:
        """Match any of ``values`` (OR on one field)."""
        for value in values:
            self.with_filter_equals(name, value)
        return self

    def with_filter_deleted(self, deleted: bool = True) -> Params:
        """Include entities moved to trash."""
        return self.with_filter_equals("isDeleted", deleted)

    def with_expand(self, *paths: str) -> Params:
        """
        Inline related entities (dotted paths, e.g. ``positions.assortment``).

        The service caps expansion depth and may reject expansion on large
        pages; that is not checked here.
        """
        for path in paths:
            if path not in self.expand:
                self.expand.append(path)
        return self

    def with_order(self, name: str, direction: OrderDirection | str = OrderDirection.ASC) -> Params:
        self.order.append((name, OrderDirection(direction)))
        return self

    def with_fields(self, *names: str) -> Params:
        for name in names:
            if name not in self.fields:
                self.fields.append(name)
        return self

    def with_limit(self, limit: int) -> Params:
        if limit < 0:
            raise ValueError(f"limit must be non-negative, got {limit}")
        self.limit = limit
        return self

    def with_offset(self, offset: int) -> Params:
        if offset < 0:
            raise ValueError(f"offset must be non-negative, got {offset}")
        self.offset = offset
        return self

    def with_search(self, text: str) -> Params:
        self.search = text
        return self

    def with_named_filter(self, named_filter: Meta | str) -> Params:
        self.named_filter = named_filter.href if isinstance(named_filter, Meta) else named_filter
        return self

    def with_async(self) -> Params:
        self.is_async = True
        return self

    def to_query(self) -> list[tuple[str, str]]:
        """Render to query parameters in a fixed order."""
        query: list[tuple[str, str]] = []
        if self.filters:
            query.append(("filter", ";".join(c.render() for c in self.filters)))
        if self.expand:
            query.append(("expand", ",".join(self.expand)))
        if self.order:
            query.append((
                "order",
                ";".join(
                    name if direction is OrderDirection.ASC else f"{name},{direction.value}"
                    for name, direction in self.order
                ),
            ))
        if self.limit is not None:
            query.append(("limit", str(self.limit)))
        if self.offset is not None:
            query.append(("offset", str(self.offset)))
        if self.fields:
            query.append(("fields", ",".join(self.fields)))
        if self.search is not None:
            query.append(("search", self.search))
        if self.named_filter is not None:
            query.append(("namedfilter", self.named_filter))
        if self.is_async:
            query.append(("async", "true"))
        return query
