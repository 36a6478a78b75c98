"""Local schema reference resolution."""

from __future__ import annotations

from typing import Any, Optional

from .errors import GenerationError

_SCHEMA_REF_PREFIX = "#/components/schemas"


class InvalidReferenceError(GenerationError):
    """Raised when a reference does not point at a local component schema."""

    def __init__(self, reference: str) -> None:
        super().__init__(f"Invalid reference: {reference}")
        self.reference = reference


def parse_reference(reference: str) -> str:
    """Return the schema name denoted by ``#/components/schemas/<Name>``.

    Everything before the last ``/`` must be exactly the component schema
    prefix; external documents and other local sections are rejected.
    """
    prefix, separator, name = reference.rpartition("/")
    if not separator or prefix != _SCHEMA_REF_PREFIX or not name:
        raise InvalidReferenceError(reference)
    return name


def reference_of(node: Any) -> Optional[str]:
    """Return the raw ``$ref`` string of a reference node, else ``None``."""
    if isinstance(node, dict):
        ref_value = node.get("$ref")
        if isinstance(ref_value, str):
            return ref_value
    return None
