"""Internal datatypes for schema classification, expansion, and rendering."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Optional, Union

from .json_types import JSONObject


class Primitive(StrEnum):
    """Target primitive a non-composite schema maps to."""

    STRING = "str"
    FLOAT = "float"
    INTEGER = "int"
    UNSIGNED_INTEGER = "NonNegativeInt"
    BOOLEAN = "bool"
    TIMESTAMP = "datetime"


class Codec(StrEnum):
    """Serializer override attached to a field."""

    TIMESTAMP_SECONDS = "TimestampSeconds"


@dataclass(frozen=True)
class PrimitiveKind:
    """``string`` without enumeration, ``number``, ``integer`` or ``boolean``."""

    declared: str
    minimum: Optional[float] = None


@dataclass(frozen=True)
class EnumKind:
    """``string`` with a non-empty enumeration."""

    constants: tuple[str, ...]


@dataclass(frozen=True)
class ArrayKind:
    """``array``; ``items`` is ``None`` when the schema declares none."""

    items: Optional[JSONObject]


@dataclass(frozen=True)
class ObjectKind:
    """``object`` with properties in document order."""

    properties: tuple[tuple[str, JSONObject], ...]
    required: frozenset[str]


@dataclass(frozen=True)
class UnionKind:
    """``anyOf``, directly or wrapped in an untyped schema."""

    branches: tuple[JSONObject, ...]


@dataclass(frozen=True)
class IntersectionKind:
    """``allOf``."""

    branches: tuple[JSONObject, ...]


@dataclass(frozen=True)
class NullKind:
    """Untyped schema whose declared type is exactly ``"null"``."""


@dataclass(frozen=True)
class UnknownKind:
    """Any shape the classifier has no category for."""

    declared: Optional[str]


type SchemaKind = Union[
    PrimitiveKind,
    EnumKind,
    ArrayKind,
    ObjectKind,
    UnionKind,
    IntersectionKind,
    NullKind,
    UnknownKind,
]


@dataclass(frozen=True)
class SchemaNode:
    """One classified schema: a declared component or a synthesized inline one."""

    name: str
    kind: SchemaKind
    title: Optional[str] = None
    description: Optional[str] = None
    nullable: bool = False

    @property
    def docs(self) -> tuple[str, ...]:
        """Title and description, in that order, skipping missing ones."""
        return tuple(text for text in (self.title, self.description) if text)


@dataclass(frozen=True)
class FieldSpec:
    """One field of a product type."""

    wire_name: str
    identifier: str
    type_name: str
    nullable: bool
    reference: Optional[str] = None
    codec: Optional[Codec] = None
    flatten: bool = False
    title: Optional[str] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class VariantSpec:
    """One alternative of a sum type; ``payload`` is ``None`` for a bare tag."""

    tag: str
    identifier: str
    payload: Optional[str] = None


@dataclass(frozen=True)
class AliasDef:
    """Alias of a primitive or a sequence."""

    name: str
    target: str
    docs: tuple[str, ...] = ()


@dataclass(frozen=True)
class SumDef:
    """Sum type with an ordered variant list.

    ``tag_enum_name`` names the synthesized enum of bare tags when the sum
    also carries referenced payloads.
    """

    name: str
    variants: tuple[VariantSpec, ...]
    docs: tuple[str, ...] = ()
    tag_enum_name: Optional[str] = None

    @property
    def bare_variants(self) -> tuple[VariantSpec, ...]:
        """Variants without payload."""
        return tuple(variant for variant in self.variants if variant.payload is None)

    @property
    def is_plain_enum(self) -> bool:
        """Whether every variant is a bare tag."""
        return all(variant.payload is None for variant in self.variants)


@dataclass(frozen=True)
class ProductDef:
    """Product type with an ordered field list."""

    name: str
    fields: tuple[FieldSpec, ...]
    docs: tuple[str, ...] = ()
    flattened: bool = False


type Definition = Union[AliasDef, SumDef, ProductDef]


@dataclass(frozen=True)
class Unsupported:
    """A schema shape that produced no definition or no field."""

    schema_name: str
    reason: str

    def describe(self) -> str:
        """Render the record as a warning line."""
        return f"{self.schema_name}: {self.reason}"


@dataclass(frozen=True)
class VerificationItem:
    """Source schemas backing one enum-style sum type."""

    name: str
    enum_schemas: tuple[JSONObject, ...]


@dataclass
class NullableRegistry:
    """Schema names that carry an explicit ``null`` branch in an ``anyOf``."""

    _names: set[str] = field(default_factory=set)

    def add(self, name: str) -> bool:
        """Record ``name``; return whether it was newly added."""
        if name in self._names:
            return False
        self._names.add(name)
        return True

    def __contains__(self, name: object) -> bool:
        return name in self._names

    def snapshot(self) -> frozenset[str]:
        """Return an immutable copy of the registered names."""
        return frozenset(self._names)


@dataclass(frozen=True)
class GenerationResult:
    """Outcome of expanding every component schema of one document."""

    definitions: tuple[Definition, ...]
    nullable: frozenset[str]
    unsupported: tuple[Unsupported, ...]
    verification_items: tuple[VerificationItem, ...]
    warnings: tuple[str, ...] = ()

    def definition(self, name: str) -> Definition:
        """Return the emitted definition called ``name``."""
        for definition in self.definitions:
            if definition.name == name:
                return definition
        raise KeyError(name)
