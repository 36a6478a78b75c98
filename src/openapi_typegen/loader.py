"""OpenAPI document loading and basic validation."""

from __future__ import annotations

from pathlib import Path

import yaml
from openapi_python_client.schema import OpenAPI
from pydantic import ValidationError

from .errors import GenerationError
from .json_types import JSONObject, JSONValue


class OpenAPILoadError(GenerationError):
    """Raised when a source OpenAPI document cannot be read or deserialized."""


def load_openapi_document(path: Path) -> JSONObject:
    """Read one OpenAPI document (YAML or JSON) and validate its overall shape."""
    try:
        content = path.read_bytes()
    except OSError as exc:
        raise OpenAPILoadError(f"Could not read file at {str(path)!r}: {exc}") from exc

    try:
        payload = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        raise OpenAPILoadError(f"Could not deserialize OpenAPI in {path}: {exc}") from exc

    payload_value: JSONValue = payload
    if not isinstance(payload_value, dict):
        raise OpenAPILoadError(
            f"OpenAPI document must deserialize to a mapping, got {type(payload_value)!r}"
        )

    try:
        OpenAPI.model_validate(payload_value)
    except ValidationError as exc:
        raise OpenAPILoadError(f"OpenAPI schema validation failed for {path}: {exc}") from exc

    return payload_value


def get_openapi_version(document: JSONObject) -> str:
    """Return the declared OpenAPI version string."""
    version = document.get("openapi")
    if not isinstance(version, str) or not version.strip():
        raise OpenAPILoadError("Missing or invalid 'openapi' version field")
    return version.strip()


def ensure_supported_version(version: str) -> None:
    """Validate that the input version is OpenAPI v3+."""
    major_text = version.split(".", maxsplit=1)[0]
    try:
        major = int(major_text)
    except ValueError as exc:
        raise OpenAPILoadError(f"Unable to parse OpenAPI version: {version}") from exc
    if major < 3:
        raise OpenAPILoadError(f"Unsupported OpenAPI version {version}; only v3+ is supported")


def component_schemas(document: JSONObject) -> dict[str, JSONObject]:
    """Return the named schemas under ``components/schemas`` in document order.

    Top-level entries that are themselves references are skipped; they name
    no new shape.
    """
    components = document.get("components")
    if components is None:
        return {}
    if not isinstance(components, dict):
        raise OpenAPILoadError("'components' must be a mapping")

    raw_schemas = components.get("schemas")
    if raw_schemas is None:
        return {}
    if not isinstance(raw_schemas, dict):
        raise OpenAPILoadError("'components/schemas' must be a mapping")

    schemas: dict[str, JSONObject] = {}
    for name, schema in raw_schemas.items():
        if not isinstance(name, str) or not isinstance(schema, dict):
            raise OpenAPILoadError(f"Schema entry {name!r} must be a named mapping")
        if "$ref" in schema:
            continue
        schemas[name] = schema
    return schemas
