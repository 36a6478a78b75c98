"""Exception hierarchy shared by the generator stages."""

from __future__ import annotations


class GenerationError(RuntimeError):
    """Base class for every fatal generation failure."""
