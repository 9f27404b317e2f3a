"""Pydantic base for objects exchanged with the service."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from .errors import DecodeError


def describe_error(cls: type, e: ValidationError) -> str:
    first = e.errors()[0]
    location = ".".join(str(part) for part in first["loc"])
    return f"{cls.__name__}.{location}: {first['msg']}" if location else f"{cls.__name__}: {first['msg']}"


class WireModel(BaseModel):
    """
    camelCase on the wire, snake_case in Python.

    Members without a declared field are kept (``extra``) and written back
    on serialization.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    @classmethod
    def from_dict(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            raise DecodeError(f"{cls.__name__}: expected object, got {type(data).__name__}")
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise DecodeError(describe_error(cls, e)) from e

    @classmethod
    def from_json(cls, raw: bytes | str) -> Any:
        """Decode a full payload; malformed JSON or fields raise DecodeError."""
        try:
            return cls.model_validate_json(raw)
        except ValidationError as e:
            raise DecodeError(describe_error(cls, e)) from e

    @classmethod
    def from_wire(cls, data: Any, raw: bytes) -> Any:
        return cls.from_dict(data)

    @property
    def extra(self) -> dict[str, Any]:
        return self.model_extra if self.model_extra is not None else {}

    def to_dict(self) -> dict[str, Any]:
        """JSON object form, omitting unset (None) fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
