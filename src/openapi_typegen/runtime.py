"""Serialization helpers imported by generated model modules.

Generated code never defines its own codecs; it refers to these names so
the wire contract lives in one place:

* ``TimestampSeconds`` - ``datetime`` carried as integer epoch seconds.
* ``Flatten`` / ``FlattenedModel`` - fields whose own fields are merged into
  the parent mapping instead of nested under the field name.
* ``ExternalTag`` - union member carried as ``{"<Tag>": payload}``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any

from pydantic import (
    BaseModel,
    BeforeValidator,
    GetCoreSchemaHandler,
    PlainSerializer,
    SerializerFunctionWrapHandler,
    model_serializer,
    model_validator,
)
from pydantic_core import core_schema

_WIRE_SCALARS = (str, int, float, bool, type(None))


def _from_epoch_seconds(value: Any) -> Any:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    return value


def _to_epoch_seconds(value: datetime) -> int:
    # Naive values are taken as UTC, matching what validation produces.
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp())


TimestampSeconds = Annotated[
    datetime,
    BeforeValidator(_from_epoch_seconds),
    PlainSerializer(_to_epoch_seconds, return_type=int),
]


@dataclass(frozen=True)
class Flatten:
    """Field marker: serialize the value's fields as the parent's own."""


class FlattenedModel(BaseModel):
    """Base for product types built from ``allOf`` references."""

    @classmethod
    def flattened_fields(cls) -> tuple[str, ...]:
        """Return names of fields marked with ``Flatten``."""
        return tuple(
            name
            for name, info in cls.model_fields.items()
            if any(isinstance(item, Flatten) for item in info.metadata)
        )

    @model_validator(mode="before")
    @classmethod
    def spread_flattened_input(cls, data: Any) -> Any:
        """Hand the whole wire mapping to every flattened field."""
        if not isinstance(data, dict) or cls._holds_member_instances(data):
            return data
        return {**data, **{name: data for name in cls.flattened_fields()}}

    @classmethod
    def _holds_member_instances(cls, data: dict[str, Any]) -> bool:
        """Whether ``data`` was built from Python member values rather than read from the wire.

        A member's own wire property may share a name with a flattened field,
        so a matching key alone proves nothing; the value must already be an
        instance of that field's type.
        """
        present = [name for name in cls.flattened_fields() if name in data]
        if not present:
            return False
        for name in present:
            annotation = cls.model_fields[name].annotation
            if not isinstance(annotation, type) or not isinstance(data[name], annotation):
                return False
        return True

    @model_serializer(mode="wrap")
    def merge_flattened_output(self, handler: SerializerFunctionWrapHandler) -> Any:
        """Merge each flattened field's mapping into the parent mapping."""
        serialized = handler(self)
        if not isinstance(serialized, dict):
            return serialized
        flattened = self.flattened_fields()
        merged: dict[str, Any] = {}
        for key, value in serialized.items():
            if key in flattened and isinstance(value, dict):
                merged.update(value)
            else:
                merged[key] = value
        return merged


@dataclass(frozen=True)
class ExternalTag:
    """``Annotated`` metadata carrying a union member as ``{tag: payload}``."""

    tag: str

    def __get_pydantic_core_schema__(
        self,
        source_type: Any,
        handler: GetCoreSchemaHandler,
    ) -> core_schema.CoreSchema:
        inner = handler(source_type)
        return core_schema.no_info_wrap_validator_function(
            self._unwrap,
            inner,
            serialization=core_schema.wrap_serializer_function_ser_schema(
                self._wrap,
                schema=inner,
            ),
        )

    def _unwrap(self, value: Any, handler: core_schema.ValidatorFunctionWrapHandler) -> Any:
        if isinstance(value, dict):
            if len(value) == 1 and self.tag in value:
                return handler(value[self.tag])
            raise ValueError(f"expected a mapping with the single key {self.tag!r}")
        # Bare scalars are left to the sum's tag enum; enum members and other
        # built values are payloads constructed in Python.
        if isinstance(value, _WIRE_SCALARS) and not isinstance(value, Enum):
            raise ValueError(f"expected a mapping with the single key {self.tag!r}")
        return handler(value)

    def _wrap(self, value: Any, handler: core_schema.SerializerFunctionWrapHandler) -> Any:
        return {self.tag: handler(value)}
