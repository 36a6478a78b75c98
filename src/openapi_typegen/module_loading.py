"""Helpers for dynamically loading generated Python modules."""

from __future__ import annotations

import importlib.util
import itertools
from pathlib import Path
import sys
from types import ModuleType
from typing import Optional

_COUNTER = itertools.count(1)


def load_module_from_path(*, module_path: Path, module_name: Optional[str] = None) -> ModuleType:
    """Load a module from file path and register it in ``sys.modules``.

    Args:
        module_path (Path): File system path to the Python module.
        module_name (Optional[str]): Import name; a unique one is derived when omitted.

    Returns:
        ModuleType: Imported Python module object.
    """
    name = module_name or f"generated_{module_path.stem}_{next(_COUNTER)}"
    spec = importlib.util.spec_from_file_location(name, module_path)
    if spec is None or spec.loader is None:
        raise RuntimeError(f"Unable to import module from: {module_path}")

    module = importlib.util.module_from_spec(spec)
    sys.modules[name] = module
    try:
        spec.loader.exec_module(module)
    except Exception:
        sys.modules.pop(name, None)
        raise
    return module
