"""Expand classified component schemas into type definitions."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from typing import Optional

from pydantic import BaseModel, RootModel

from .classifier import classify_primitive, classify_schema, describe_kind
from .json_types import JSONObject
from .model_types import (
    AliasDef,
    ArrayKind,
    Definition,
    EnumKind,
    FieldSpec,
    IntersectionKind,
    NullableRegistry,
    NullKind,
    ObjectKind,
    PrimitiveKind,
    ProductDef,
    SchemaNode,
    SumDef,
    UnionKind,
    Unsupported,
    VariantSpec,
    VerificationItem,
)
from .namespace import TypeNamespace
from .naming import SynthesisError, field_name, snake_case, struct_name, variant_name
from .resolver import parse_reference, reference_of
from .runtime import FlattenedModel

_LOGGER = logging.getLogger(__name__)

# Names a field identifier must not shadow inside a generated class body.
_RENDER_NAMES = {
    "Annotated",
    "BaseModel",
    "ExternalTag",
    "Field",
    "Flatten",
    "FlattenedModel",
    "NonNegativeInt",
    "Optional",
    "RootModel",
    "StrEnum",
    "TimestampSeconds",
    "Union",
    "datetime",
}
_BUILTIN_IDENTIFIER_RESERVED = {
    "bool",
    "bytes",
    "complex",
    "dict",
    "float",
    "frozenset",
    "int",
    "list",
    "set",
    "str",
    "tuple",
    "type",
}
_RESERVED_FIELD_NAMES = frozenset(
    set(dir(BaseModel))
    | set(dir(RootModel))
    | set(dir(FlattenedModel))
    | _BUILTIN_IDENTIFIER_RESERVED
    | _RENDER_NAMES
)


@dataclass
class ExpansionContext:
    """Accumulators threaded through one expansion pass."""

    namespace: TypeNamespace = field(default_factory=TypeNamespace)
    nullable: NullableRegistry = field(default_factory=NullableRegistry)
    definitions: list[Definition] = field(default_factory=list)
    unsupported: list[Unsupported] = field(default_factory=list)
    verification_items: list[VerificationItem] = field(default_factory=list)

    def emitted_names(self) -> set[str]:
        """Names of definitions emitted so far."""
        return {definition.name for definition in self.definitions}


class SchemaExpander:
    """Turn schema mappings into alias, sum, and product definitions."""

    def __init__(self, context: ExpansionContext) -> None:
        self._context = context

    def expand_schema(self, schema_name: str, schema: JSONObject) -> None:
        """Expand one named schema, emitting zero or more definitions.

        Auxiliary types (array items, tag enums) are emitted before the
        definition that refers to them.
        """
        ident = struct_name(schema_name)
        node = classify_schema(ident, schema)
        kind = node.kind

        if isinstance(kind, PrimitiveKind):
            self._expand_primitive(node, ident)
        elif isinstance(kind, EnumKind):
            self._expand_enum(node, ident, kind, schema)
        elif isinstance(kind, ArrayKind):
            self._expand_array(node, ident, kind)
        elif isinstance(kind, ObjectKind):
            self._expand_object(node, ident, kind)
        elif isinstance(kind, UnionKind):
            self._expand_any_of(node, ident, kind)
        elif isinstance(kind, IntersectionKind):
            self._expand_all_of(node, ident, kind)
        else:
            self._unsupported(ident, f"{describe_kind(kind)} schema produces no definition")

    def _expand_primitive(self, node: SchemaNode, ident: str) -> None:
        primitive = classify_primitive(node)
        if primitive is None:
            self._unsupported(ident, f"{describe_kind(node.kind)} schema produces no definition")
            return
        value, codec = primitive
        target = codec.value if codec is not None else value.value
        if node.nullable:
            target = f"Optional[{target}]"
        self._emit(AliasDef(name=ident, target=target, docs=node.docs))

    def _expand_enum(
        self,
        node: SchemaNode,
        ident: str,
        kind: EnumKind,
        schema: JSONObject,
    ) -> None:
        variants = tuple(_bare_variant(constant) for constant in kind.constants)
        _ensure_unique_identifiers(ident, (variant.identifier for variant in variants))
        self._context.verification_items.append(
            VerificationItem(name=ident, enum_schemas=(schema,))
        )
        self._emit(SumDef(name=ident, variants=variants, docs=node.docs))

    def _expand_array(self, node: SchemaNode, ident: str, kind: ArrayKind) -> None:
        items = kind.items
        if items is None:
            self._unsupported(ident, "array without an item schema produces no definition")
            return

        reference = reference_of(items)
        if reference is not None:
            item_type = struct_name(parse_reference(reference))
        else:
            item_type = self._context.namespace.claim(f"{ident}Item", f"items of {ident!r}")
            self.expand_schema(item_type, items)
            if item_type not in self._context.emitted_names():
                self._unsupported(ident, f"item type {item_type!r} could not be generated")
                return

        self._emit(AliasDef(name=ident, target=f"list[{item_type}]", docs=node.docs))

    def _expand_object(self, node: SchemaNode, ident: str, kind: ObjectKind) -> None:
        pending: list[FieldSpec] = []
        for property_name, property_schema in kind.properties:
            spec = self._object_field(ident, property_name, property_schema)
            if spec is None:
                continue
            nullable = spec.nullable or property_name not in kind.required
            pending.append(replace(spec, nullable=nullable))

        self._emit(
            ProductDef(
                name=ident,
                fields=_assign_field_identifiers(pending),
                docs=node.docs,
            )
        )

    def _object_field(
        self,
        ident: str,
        property_name: str,
        property_schema: JSONObject,
    ) -> Optional[FieldSpec]:
        reference = reference_of(property_schema)
        if reference is not None:
            type_name = struct_name(parse_reference(reference))
            return FieldSpec(
                wire_name=property_name,
                identifier=property_name,
                type_name=type_name,
                nullable=False,
                reference=type_name,
            )

        property_node = classify_schema(f"{ident}.{property_name}", property_schema)
        primitive = classify_primitive(property_node)
        if primitive is None:
            self._unsupported(
                ident,
                f"inline {describe_kind(property_node.kind)} property {property_name!r} is dropped",
            )
            return None
        value, codec = primitive
        return FieldSpec(
            wire_name=property_name,
            identifier=property_name,
            type_name=value.value,
            nullable=property_node.nullable,
            codec=codec,
            title=property_node.title,
            description=property_node.description,
        )

    def _expand_any_of(self, node: SchemaNode, ident: str, kind: UnionKind) -> None:
        docs = list(node.docs)
        variants: list[VariantSpec] = []
        enum_schemas: list[JSONObject] = []

        for index, branch in enumerate(kind.branches):
            reference = reference_of(branch)
            if reference is not None:
                name = struct_name(parse_reference(reference))
                variants.append(VariantSpec(tag=name, identifier=name, payload=name))
                continue

            branch_node = classify_schema(f"{ident}.anyOf[{index}]", branch)
            if isinstance(branch_node.kind, NullKind):
                if self._context.nullable.add(ident):
                    _LOGGER.debug("Registered %s as nullable", ident)
                continue
            if isinstance(branch_node.kind, EnumKind):
                docs.extend(branch_node.docs)
                variants.extend(_bare_variant(constant) for constant in branch_node.kind.constants)
                enum_schemas.append(branch)
                continue
            self._unsupported(
                ident,
                f"inline {describe_kind(branch_node.kind)} anyOf branch {index} is dropped",
            )

        _ensure_unique_identifiers(ident, (variant.identifier for variant in variants))
        sum_def = SumDef(name=ident, variants=tuple(variants), docs=tuple(docs))
        if not sum_def.is_plain_enum and sum_def.bare_variants:
            tag_enum_name = self._context.namespace.claim(f"{ident}Tag", f"tags of {ident!r}")
            sum_def = SumDef(
                name=ident,
                variants=sum_def.variants,
                docs=sum_def.docs,
                tag_enum_name=tag_enum_name,
            )
        if enum_schemas:
            self._context.verification_items.append(
                VerificationItem(
                    name=sum_def.tag_enum_name or ident,
                    enum_schemas=tuple(enum_schemas),
                )
            )
        self._emit(sum_def)

    def _expand_all_of(self, node: SchemaNode, ident: str, kind: IntersectionKind) -> None:
        pending: list[FieldSpec] = []
        for index, branch in enumerate(kind.branches):
            reference = reference_of(branch)
            if reference is None:
                branch_node = classify_schema(f"{ident}.allOf[{index}]", branch)
                self._unsupported(
                    ident,
                    f"inline {describe_kind(branch_node.kind)} allOf branch {index} is dropped",
                )
                continue
            name = struct_name(parse_reference(reference))
            pending.append(
                FieldSpec(
                    wire_name=snake_case(name),
                    identifier=snake_case(name),
                    type_name=name,
                    nullable=False,
                    reference=name,
                    flatten=True,
                )
            )

        # Flattened fields never appear on the wire under their own name.
        fields = tuple(
            replace(spec, wire_name=spec.identifier)
            for spec in _assign_field_identifiers(pending)
        )
        self._emit(ProductDef(name=ident, fields=fields, docs=node.docs, flattened=True))

    def _emit(self, definition: Definition) -> None:
        _LOGGER.debug("Emitting %s %s", type(definition).__name__, definition.name)
        self._context.definitions.append(definition)

    def _unsupported(self, schema_name: str, reason: str) -> None:
        _LOGGER.debug("Unsupported shape in %s: %s", schema_name, reason)
        self._context.unsupported.append(Unsupported(schema_name=schema_name, reason=reason))


def _bare_variant(constant: str) -> VariantSpec:
    return VariantSpec(tag=constant, identifier=variant_name(constant))


def _assign_field_identifiers(pending: list[FieldSpec]) -> tuple[FieldSpec, ...]:
    """Derive collision-free identifiers; wire names stay untouched."""
    reserved = _RESERVED_FIELD_NAMES | {spec.type_name for spec in pending}
    used: set[str] = set()
    fields: list[FieldSpec] = []
    for spec in pending:
        candidate = field_name(spec.wire_name, reserved=reserved)
        identifier = candidate
        suffix = 2
        while identifier in used:
            identifier = f"{candidate}_{suffix}"
            suffix += 1
        used.add(identifier)
        fields.append(replace(spec, identifier=identifier))
    return tuple(fields)


def _ensure_unique_identifiers(owner: str, identifiers: Iterable[str]) -> None:
    seen: set[str] = set()
    for identifier in identifiers:
        if identifier in seen:
            raise SynthesisError(f"Duplicate member {identifier!r} generated for {owner!r}")
        seen.add(identifier)

