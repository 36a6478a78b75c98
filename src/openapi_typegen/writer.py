"""Filesystem writer and formatter for generated model modules."""

from __future__ import annotations

from pathlib import Path
import subprocess
import sys

from .errors import GenerationError


class WriteError(GenerationError):
    """Raised when output files cannot be written or formatted."""


def write_module(path: Path, source: str) -> None:
    """Write a rendered module, creating parent directories as needed.

    Args:
        path (Path): Destination ``.py`` file.
        source (str): Rendered Python source.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(source, encoding="utf-8")
    except OSError as exc:
        raise WriteError(f"Failed to write file {path}: {exc}") from exc


def format_generated_module(path: Path) -> None:
    """Run the Ruff formatter against a generated module.

    Args:
        path (Path): Generated module to format in place.
    """
    command = [sys.executable, "-m", "ruff", "format", str(path)]
    try:
        subprocess.run(
            command,
            check=True,
            capture_output=True,
            text=True,
        )
    except OSError as exc:
        raise WriteError(f"Failed to execute ruff format for {path}: {exc}") from exc
    except subprocess.CalledProcessError as exc:
        error_text = exc.stderr.strip() or exc.stdout.strip() or str(exc)
        raise WriteError(f"ruff format failed for {path}: {error_text}") from exc
