"""Shared helpers for fixture-driven tests."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from types import ModuleType
from typing import ParamSpec, TypeVar

import pytest

from openapi_typegen.module_loading import load_module_from_path

_FIXTURE_DIR = Path(__file__).resolve().parent / "fixtures" / "openapi_specs"
_P = ParamSpec("_P")
_R = TypeVar("_R")


def fixture_dir() -> Path:
    """Return the OpenAPI fixtures directory."""
    return _FIXTURE_DIR


def iter_fixture_paths() -> list[Path]:
    """Return all YAML fixture paths sorted by name."""
    paths = sorted(_FIXTURE_DIR.glob("*.yaml")) + sorted(_FIXTURE_DIR.glob("*.yml"))
    return [path for path in paths if path.is_file()]


def parametrize_fixtures() -> Callable[[Callable[_P, _R]], Callable[_P, _R]]:
    """Parametrize a test over all fixture paths."""

    def _decorator(func: Callable[_P, _R]) -> Callable[_P, _R]:
        decorator: Callable[[Callable[_P, _R]], Callable[_P, _R]]
        decorator = pytest.mark.parametrize(
            "fixture_path",
            iter_fixture_paths(),
            ids=lambda path: path.name,
        )
        return decorator(func)

    return _decorator


def load_generated_source(source: str, directory: Path, *, stem: str = "generated") -> ModuleType:
    """Write rendered source into ``directory`` and import it."""
    module_path = directory / f"{stem}.py"
    module_path.write_text(source, encoding="utf-8")
    return load_module_from_path(module_path=module_path)
