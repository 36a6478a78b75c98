"""Generate pydantic types from OpenAPI component schemas."""

from __future__ import annotations

import logging

from .cli import main
from .config import GeneratorSettings, UnsupportedPolicy, load_settings
from .generator import GenerationRun, generate_definitions, run_generation

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "GenerationRun",
    "GeneratorSettings",
    "UnsupportedPolicy",
    "generate_definitions",
    "load_settings",
    "main",
    "run_generation",
]
