"""Single-writer registry of generated type names."""

from __future__ import annotations

from .naming import SynthesisError


class TypeNamespace:
    """Every type name emitted by one pass, each claimed exactly once."""

    def __init__(self) -> None:
        self._origins: dict[str, str] = {}

    def claim(self, name: str, origin: str) -> str:
        """Register ``name`` for ``origin``; a second claim is a collision."""
        existing = self._origins.get(name)
        if existing is not None:
            raise SynthesisError(
                f"Type name {name!r} for {origin} collides with the one for {existing}"
            )
        self._origins[name] = origin
        return name

    def __contains__(self, name: object) -> bool:
        return name in self._origins

    def names(self) -> frozenset[str]:
        """Return all claimed names."""
        return frozenset(self._origins)
