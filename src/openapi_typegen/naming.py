"""Naming helpers for generated type, member, and field identifiers.

Wire tags are never touched here; every helper derives only the in-code
identifier, and callers keep the original string for serialization.
"""

from __future__ import annotations

import keyword
import re
from collections.abc import Iterable

from .errors import GenerationError

_IDENTIFIER_SANITIZE_RE = re.compile(r"[^0-9a-zA-Z_]+")
_LOWER_UPPER_RE = re.compile(r"([a-z0-9])([A-Z])")
_ACRONYM_RE = re.compile(r"([A-Z]+)([A-Z][a-z])")
_WORD_SEPARATOR_RE = re.compile(r"[_\s]+")


class SynthesisError(GenerationError):
    """Raised when a generated identifier is not valid Python syntax."""


def split_words(raw: str) -> list[str]:
    """Split text into words at separators and case boundaries.

    ``api_key`` -> ``["api", "key"]``, ``HTTPServer`` -> ``["HTTP", "Server"]``.
    """
    text = _ACRONYM_RE.sub(r"\1 \2", raw)
    text = _LOWER_UPPER_RE.sub(r"\1 \2", text)
    return [word for word in _WORD_SEPARATOR_RE.split(text) if word]


def pascal_case(raw: str) -> str:
    """Capitalize every word and join without a separator."""
    return "".join(word[0].upper() + word[1:].lower() for word in split_words(raw))


def snake_case(raw: str) -> str:
    """Lowercase every word and join with ``_``."""
    return "_".join(word.lower() for word in split_words(raw))


def struct_name(raw: str) -> str:
    """Convert a schema name into a type name.

    Only ``-`` is rewritten; casing is left to the document author.
    """
    name = raw.replace("-", "_")
    if not name.isidentifier() or keyword.iskeyword(name):
        raise SynthesisError(f"Schema name {raw!r} does not produce a valid type name {name!r}")
    return name


def variant_name(raw: str) -> str:
    """Convert an enumerated string constant into an enum member name.

    Each ``.`` segment is split on ``-``, every part is pascal-cased, parts
    are rejoined with ``_`` and segments are rejoined with ``_``, so
    ``api_key.created`` becomes ``ApiKey_Created``. Generated code already
    depends on this exact shape.
    """
    name = "_".join(
        "_".join(pascal_case(part) for part in segment.split("-"))
        for segment in raw.split(".")
    )
    if name[:1].isdigit():
        name = f"_{name}"
    name = escape_keyword(name)
    if not name.isidentifier():
        raise SynthesisError(f"Enum constant {raw!r} does not produce a valid member name {name!r}")
    return name


def field_name(raw: str, *, reserved: Iterable[str] = ()) -> str:
    """Convert a property name into a field identifier.

    ``.`` becomes ``_``; anything else that cannot appear in an identifier is
    sanitized, keywords get a trailing ``_``, and names in ``reserved`` get a
    ``_field`` suffix. The alias keeps the original property name on the wire.
    """
    text = raw.replace(".", "_")
    if not text.isidentifier():
        text = _IDENTIFIER_SANITIZE_RE.sub("_", text)
    text = text.lstrip("_") or "field"
    if text[0].isdigit():
        text = f"x_{text}"
    text = escape_keyword(text)
    if text in set(reserved):
        text = f"{text}_field"
    if not text.isidentifier():
        raise SynthesisError(f"Property {raw!r} does not produce a valid field name {text!r}")
    return text


def escape_keyword(name: str) -> str:
    """Append ``_`` to Python keywords (``class`` -> ``class_``)."""
    if keyword.iskeyword(name):
        return f"{name}_"
    return name
