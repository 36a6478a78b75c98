"""Classify raw schema mappings into schema nodes and target primitives."""

from __future__ import annotations

from typing import Any, Optional

from .json_types import JSONObject
from .loader import OpenAPILoadError
from .model_types import (
    ArrayKind,
    Codec,
    EnumKind,
    IntersectionKind,
    NullKind,
    ObjectKind,
    Primitive,
    PrimitiveKind,
    SchemaKind,
    SchemaNode,
    UnionKind,
    UnknownKind,
)

_PRIMITIVE_TYPES = frozenset({"string", "number", "integer", "boolean"})
_TIMESTAMP_MARKER = "timestamp"


def classify_schema(name: str, schema: JSONObject) -> SchemaNode:
    """Classify one inline schema mapping.

    Composition keywords win over ``type``: an untyped (or loosely typed)
    wrapper around a non-empty ``anyOf`` is a union.
    """
    declared, nullable = _declared_type(schema)
    return SchemaNode(
        name=name,
        kind=_classify_kind(name, schema, declared),
        title=_string_or_none(schema.get("title")),
        description=_string_or_none(schema.get("description")),
        nullable=nullable or schema.get("nullable") is True,
    )


def classify_primitive(node: SchemaNode) -> Optional[tuple[Primitive, Optional[Codec]]]:
    """Map a node to a representable primitive, or ``None`` when it has none.

    Integers documented as timestamps become epoch-seconds datetimes;
    integers with a strictly positive minimum become unsigned.
    """
    kind = node.kind
    if not isinstance(kind, PrimitiveKind):
        return None
    if kind.declared == "string":
        return Primitive.STRING, None
    if kind.declared == "number":
        return Primitive.FLOAT, None
    if kind.declared == "boolean":
        return Primitive.BOOLEAN, None
    if node.description is not None and _TIMESTAMP_MARKER in node.description:
        return Primitive.TIMESTAMP, Codec.TIMESTAMP_SECONDS
    if kind.minimum is not None and kind.minimum > 0:
        return Primitive.UNSIGNED_INTEGER, None
    return Primitive.INTEGER, None


def describe_kind(kind: SchemaKind) -> str:
    """Short human-readable label for warnings."""
    if isinstance(kind, PrimitiveKind):
        return kind.declared
    if isinstance(kind, EnumKind):
        return "string enum"
    if isinstance(kind, ArrayKind):
        return "array"
    if isinstance(kind, ObjectKind):
        return "object"
    if isinstance(kind, UnionKind):
        return "anyOf"
    if isinstance(kind, IntersectionKind):
        return "allOf"
    if isinstance(kind, NullKind):
        return "null"
    return f"untyped ({kind.declared})" if kind.declared else "untyped"


def _classify_kind(name: str, schema: JSONObject, declared: Optional[str]) -> SchemaKind:
    any_of = schema.get("anyOf")
    if isinstance(any_of, list) and any_of:
        return UnionKind(branches=_branches(name, "anyOf", any_of))

    all_of = schema.get("allOf")
    if isinstance(all_of, list) and all_of:
        return IntersectionKind(branches=_branches(name, "allOf", all_of))

    if declared == "null":
        return NullKind()
    if declared == "string":
        enum = schema.get("enum")
        if isinstance(enum, list) and enum:
            return EnumKind(constants=_enum_constants(name, enum))
        return PrimitiveKind(declared=declared)
    if declared in _PRIMITIVE_TYPES:
        return PrimitiveKind(declared=declared, minimum=_number_or_none(schema.get("minimum")))
    if declared == "array":
        items = schema.get("items")
        return ArrayKind(items=items if isinstance(items, dict) else None)
    if declared == "object" or (declared is None and isinstance(schema.get("properties"), dict)):
        return _object_kind(name, schema)
    return UnknownKind(declared=declared)


def _declared_type(schema: JSONObject) -> tuple[Optional[str], bool]:
    """Return the single declared type and whether ``null`` was listed with it."""
    schema_type = schema.get("type")
    if isinstance(schema_type, str):
        return schema_type, False
    if isinstance(schema_type, list):
        members = [member for member in schema_type if member != "null"]
        nullable = len(members) < len(schema_type)
        if not members:
            return "null", False
        if len(members) == 1 and isinstance(members[0], str):
            return members[0], nullable
        return "|".join(str(member) for member in members), nullable
    return None, False


def _object_kind(name: str, schema: JSONObject) -> ObjectKind:
    raw_properties = schema.get("properties", {})
    if not isinstance(raw_properties, dict):
        raise OpenAPILoadError(f"Schema {name!r}: 'properties' must be a mapping")
    properties: list[tuple[str, JSONObject]] = []
    for property_name, property_schema in raw_properties.items():
        if not isinstance(property_name, str) or not isinstance(property_schema, dict):
            raise OpenAPILoadError(f"Schema {name!r}: property {property_name!r} must be a mapping")
        properties.append((property_name, property_schema))

    raw_required = schema.get("required", [])
    if not isinstance(raw_required, list):
        raise OpenAPILoadError(f"Schema {name!r}: 'required' must be a list")
    required = frozenset(item for item in raw_required if isinstance(item, str))
    return ObjectKind(properties=tuple(properties), required=required)


def _branches(name: str, keyword: str, raw: list[Any]) -> tuple[JSONObject, ...]:
    for branch in raw:
        if not isinstance(branch, dict):
            raise OpenAPILoadError(f"Schema {name!r}: every {keyword} branch must be a mapping")
    return tuple(raw)


def _enum_constants(name: str, enum: list[Any]) -> tuple[str, ...]:
    constants: list[str] = []
    for value in enum:
        if value is None:
            continue
        if not isinstance(value, str):
            raise OpenAPILoadError(
                f"Schema {name!r}: string enumeration holds non-string value {value!r}"
            )
        constants.append(value)
    return tuple(constants)


def _number_or_none(value: Any) -> Optional[float]:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    return None


def _string_or_none(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None
