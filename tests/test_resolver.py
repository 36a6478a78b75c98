"""Unit tests for local reference resolution."""

from __future__ import annotations

import pytest

from openapi_typegen.resolver import InvalidReferenceError, parse_reference, reference_of


def test_parse_local_schema_reference() -> None:
    """The name after the component schema prefix is returned verbatim."""
    assert parse_reference("#/components/schemas/ResponseFormatText") == "ResponseFormatText"
    assert parse_reference("#/components/schemas/Response-Item") == "Response-Item"


@pytest.mark.parametrize(
    "reference",
    [
        "ResponseFormatText",
        "#/components/responses/NotFound",
        "#/components/schemas/",
        "other.yaml#/components/schemas/Foo",
        "#/components/schemas/Nested/Foo",
        "#/definitions/Foo",
    ],
)
def test_non_local_references_are_rejected(reference: str) -> None:
    """Anything but ``#/components/schemas/<Name>`` is an invalid reference."""
    with pytest.raises(InvalidReferenceError) as excinfo:
        parse_reference(reference)
    assert excinfo.value.reference == reference


def test_reference_of() -> None:
    """Only mappings with a string ``$ref`` count as references."""
    assert reference_of({"$ref": "#/components/schemas/Foo"}) == "#/components/schemas/Foo"
    assert reference_of({"type": "string"}) is None
    assert reference_of({"$ref": 3}) is None
    assert reference_of("#/components/schemas/Foo") is None
