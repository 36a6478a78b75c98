"""High-level generator orchestration."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Optional

from .codegen_ast import render_module
from .config import GeneratorSettings, UnsupportedPolicy
from .errors import GenerationError
from .json_types import JSONObject
from .loader import (
    OpenAPILoadError,
    component_schemas,
    ensure_supported_version,
    get_openapi_version,
    load_openapi_document,
)
from .model_types import (
    Definition,
    GenerationResult,
    NullableRegistry,
    ProductDef,
    Unsupported,
)
from .naming import struct_name
from .schema_to_models import ExpansionContext, SchemaExpander
from .verify import VerificationReport, verify_module
from .writer import WriteError, format_generated_module, write_module

_LOGGER = logging.getLogger(__name__)


class UsageError(GenerationError):
    """Raised when the generator is invoked with something other than a location string."""


class UnsupportedSchemaError(GenerationError):
    """Raised under the ``fail`` policy when any schema shape was not representable."""

    def __init__(self, unsupported: tuple[Unsupported, ...]) -> None:
        details = "\n".join(f"- {item.describe()}" for item in unsupported)
        super().__init__(f"{len(unsupported)} unsupported schema shape(s):\n{details}")
        self.unsupported = unsupported


@dataclass(frozen=True)
class GenerationRun:
    """Rendered output of one pass with optional verification report."""

    result: GenerationResult
    source: str
    output_path: Optional[Path]
    verification_report: Optional[VerificationReport]


def generate_definitions(
    document: JSONObject,
    *,
    policy: UnsupportedPolicy = UnsupportedPolicy.WARN,
) -> GenerationResult:
    """Expand every component schema of a loaded document.

    Args:
        document (JSONObject): Deserialized OpenAPI document.
        policy (UnsupportedPolicy): How unrepresentable schema shapes are reported.

    Returns:
        GenerationResult: Definitions in emission order plus the nullable registry.
    """
    schemas = component_schemas(document)
    context = ExpansionContext()
    for schema_name in schemas:
        context.namespace.claim(struct_name(schema_name), f"schema {schema_name!r}")

    expander = SchemaExpander(context)
    for schema_name, schema in schemas.items():
        expander.expand_schema(schema_name, schema)

    definitions = resolve_nullable_fields(context.definitions, context.nullable)
    unsupported = tuple(context.unsupported)
    warnings = _apply_policy(unsupported, policy)

    _LOGGER.info(
        "Generated %d definitions from %d schemas (%d nullable, %d unsupported)",
        len(definitions),
        len(schemas),
        len(context.nullable.snapshot()),
        len(unsupported),
    )
    return GenerationResult(
        definitions=definitions,
        nullable=context.nullable.snapshot(),
        unsupported=unsupported,
        verification_items=tuple(context.verification_items),
        warnings=warnings,
    )


def resolve_nullable_fields(
    definitions: Iterable[Definition],
    registry: NullableRegistry,
) -> tuple[Definition, ...]:
    """Make fields referencing a registered-nullable schema optional.

    Runs after every schema has been expanded, so the registry is complete
    regardless of declaration order.
    """
    resolved: list[Definition] = []
    for definition in definitions:
        if not isinstance(definition, ProductDef):
            resolved.append(definition)
            continue
        fields = tuple(
            replace(spec, nullable=True)
            if not spec.flatten and not spec.nullable and spec.reference in registry
            else spec
            for spec in definition.fields
        )
        resolved.append(replace(definition, fields=fields))
    return tuple(resolved)


def run_generation(
    document_location: Any,
    *,
    settings: GeneratorSettings,
    output_path: Optional[Path] = None,
    verify: bool = False,
) -> GenerationRun:
    """Generate a models module for a document located under the project root.

    Args:
        document_location (Any): Document path relative to ``settings.project_root``;
            must be a ``str``.
        settings (GeneratorSettings): Resolved generator settings.
        output_path (Optional[Path]): File to write; ``None`` renders only.
        verify (bool): Whether to import and check the written module.

    Returns:
        GenerationRun: Generation result, rendered source and optional report.
    """
    if not isinstance(document_location, str):
        raise UsageError(
            f"Expected the document location as a string, got {type(document_location).__name__}"
        )

    input_path = settings.project_root / document_location
    document = load_openapi_document(input_path)
    ensure_supported_version(get_openapi_version(document))

    result = generate_definitions(document, policy=settings.unsupported_policy)
    source = render_module(result.definitions, source_label=document_location)

    if output_path is None:
        if verify:
            raise UsageError("Verification needs an output path to import the module from")
        return GenerationRun(
            result=result,
            source=source,
            output_path=None,
            verification_report=None,
        )

    write_module(output_path, source)
    if settings.format_output:
        format_generated_module(output_path)
        source = output_path.read_text(encoding="utf-8")

    report = verify_module(result, module_path=output_path) if verify else None
    return GenerationRun(
        result=result,
        source=source,
        output_path=output_path,
        verification_report=report,
    )


def _apply_policy(
    unsupported: tuple[Unsupported, ...],
    policy: UnsupportedPolicy,
) -> tuple[str, ...]:
    if not unsupported or policy is UnsupportedPolicy.SKIP:
        return ()
    if policy is UnsupportedPolicy.FAIL:
        raise UnsupportedSchemaError(unsupported)
    warnings = tuple(item.describe() for item in unsupported)
    for warning in warnings:
        _LOGGER.warning("Unsupported schema shape: %s", warning)
    return warnings


__all__ = [
    "GenerationRun",
    "OpenAPILoadError",
    "UnsupportedSchemaError",
    "UsageError",
    "WriteError",
    "generate_definitions",
    "resolve_nullable_fields",
    "run_generation",
]
