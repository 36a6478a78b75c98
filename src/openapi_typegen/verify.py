"""Verification of a generated module against the definitions it was rendered from."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from types import ModuleType
from typing import Any

from jsonschema.validators import validator_for
from pydantic import BaseModel

from .errors import GenerationError
from .model_types import AliasDef, GenerationResult, ProductDef, SumDef, VerificationItem
from .module_loading import load_module_from_path


@dataclass(frozen=True)
class VerificationMismatch:
    """One verification mismatch."""

    definition: str
    check: str
    expected: Any
    actual: Any


@dataclass(frozen=True)
class VerificationReport:
    """Result of the verification phase."""

    verified_count: int
    mismatch_count: int
    mismatches: tuple[VerificationMismatch, ...]


def verify_module(result: GenerationResult, *, module_path: Path) -> VerificationReport:
    """Import a generated module and check it matches the emitted definitions.

    Enum-style sum types are also checked against their source schemas: each
    member value must validate against the string enumeration it came from,
    and every enumerated string must be a member value.
    """
    if not module_path.exists():
        raise GenerationError(f"Generated module not found: {module_path}")
    module = load_module_from_path(module_path=module_path)

    mismatches: list[VerificationMismatch] = []
    for definition in result.definitions:
        value = getattr(module, definition.name, None)
        if value is None:
            mismatches.append(
                VerificationMismatch(definition.name, "defined", definition.name, None)
            )
            continue
        if isinstance(definition, SumDef):
            mismatches.extend(_check_sum(module, definition, value))
        elif isinstance(definition, ProductDef):
            mismatches.extend(_check_product(definition, value))
        elif isinstance(definition, AliasDef) and not hasattr(value, "__value__"):
            mismatches.append(
                VerificationMismatch(definition.name, "type alias", definition.target, value)
            )

    for item in result.verification_items:
        mismatches.extend(_check_enum_sources(module, item))

    return VerificationReport(
        verified_count=len(result.definitions),
        mismatch_count=len(mismatches),
        mismatches=tuple(mismatches),
    )


def format_report(report: VerificationReport) -> str:
    """Render report as CLI output text."""
    lines = [
        f"Verified definitions: {report.verified_count}",
        f"Mismatches: {report.mismatch_count}",
    ]
    for mismatch in report.mismatches:
        lines.extend(
            [
                f"- {mismatch.definition} ({mismatch.check})",
                f"  expected: {short_repr(mismatch.expected)}",
                f"  actual: {short_repr(mismatch.actual)}",
            ]
        )
    return "\n".join(lines)


def short_repr(value: Any, *, limit: int = 160) -> str:
    """A short representation for mismatch diagnostics."""
    text = repr(value)
    return text if len(text) <= limit else f"{text[: limit - 3]}..."


def _check_sum(module: ModuleType, definition: SumDef, value: Any) -> list[VerificationMismatch]:
    if definition.is_plain_enum:
        enum_type, variants = value, definition.variants
    else:
        if not _is_model_type(value):
            return [VerificationMismatch(definition.name, "root model", "RootModel", value)]
        if definition.tag_enum_name is None:
            return []
        enum_type = getattr(module, definition.tag_enum_name, None)
        variants = definition.bare_variants

    expected = [(variant.identifier, variant.tag) for variant in variants]
    if not isinstance(enum_type, type) or not issubclass(enum_type, Enum):
        return [VerificationMismatch(definition.name, "enum members", expected, enum_type)]
    actual = [(member.name, member.value) for member in enum_type]
    if actual != expected:
        return [VerificationMismatch(definition.name, "enum members", expected, actual)]
    return []


def _check_product(definition: ProductDef, value: Any) -> list[VerificationMismatch]:
    if not _is_model_type(value):
        return [VerificationMismatch(definition.name, "model", "BaseModel", value)]
    expected = [(spec.identifier, spec.wire_name) for spec in definition.fields]
    actual = [(name, info.alias or name) for name, info in value.model_fields.items()]
    if actual != expected:
        return [VerificationMismatch(definition.name, "field wire names", expected, actual)]
    return []


def _check_enum_sources(module: ModuleType, item: VerificationItem) -> list[VerificationMismatch]:
    enum_type = getattr(module, item.name, None)
    if not isinstance(enum_type, type) or not issubclass(enum_type, Enum):
        return [VerificationMismatch(item.name, "enum source", "Enum", enum_type)]

    validators = [validator_for(schema)(schema) for schema in item.enum_schemas]
    member_values = [member.value for member in enum_type]
    mismatches: list[VerificationMismatch] = []
    for member_value in member_values:
        if not any(validator.is_valid(member_value) for validator in validators):
            mismatches.append(
                VerificationMismatch(item.name, "wire tag validates", "valid", member_value)
            )

    source_values = [
        constant
        for schema in item.enum_schemas
        for constant in schema.get("enum", [])
        if isinstance(constant, str)
    ]
    missing = [constant for constant in source_values if constant not in member_values]
    if missing:
        mismatches.append(VerificationMismatch(item.name, "enum coverage", source_values, missing))
    return mismatches


def _is_model_type(value: Any) -> bool:
    return isinstance(value, type) and issubclass(value, BaseModel)
