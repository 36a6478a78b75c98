"""Generator settings and their environment/CLI sources."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Optional

from .errors import GenerationError

PROJECT_ROOT_ENV = "OPENAPI_TYPEGEN_PROJECT_ROOT"
UNSUPPORTED_POLICY_ENV = "OPENAPI_TYPEGEN_UNSUPPORTED"


class ConfigurationError(GenerationError):
    """Raised when required location context or settings are missing or invalid."""


class UnsupportedPolicy(StrEnum):
    """What the driver does with schema shapes the expanders cannot represent."""

    SKIP = "skip"
    WARN = "warn"
    FAIL = "fail"


@dataclass(frozen=True)
class GeneratorSettings:
    """Resolved settings for one generation pass."""

    project_root: Path
    unsupported_policy: UnsupportedPolicy = UnsupportedPolicy.WARN
    format_output: bool = True


def load_settings(
    *,
    project_root: Optional[str] = None,
    unsupported_policy: Optional[str] = None,
    format_output: bool = True,
    environ: Optional[Mapping[str, str]] = None,
) -> GeneratorSettings:
    """Merge explicit values with environment variables into settings.

    Explicit arguments win over the environment. The project root has no
    default: documents are always located relative to an explicit root.
    """
    env = os.environ if environ is None else environ

    root_text = project_root or env.get(PROJECT_ROOT_ENV)
    if not root_text:
        raise ConfigurationError(
            f"Project root is not configured; pass --project-root or set {PROJECT_ROOT_ENV}"
        )

    policy_text = unsupported_policy or env.get(UNSUPPORTED_POLICY_ENV) or UnsupportedPolicy.WARN
    try:
        policy = UnsupportedPolicy(policy_text.strip().lower())
    except ValueError as exc:
        choices = ", ".join(member.value for member in UnsupportedPolicy)
        raise ConfigurationError(
            f"Invalid unsupported-schema policy {policy_text!r}; expected one of: {choices}"
        ) from exc

    return GeneratorSettings(
        project_root=Path(root_text),
        unsupported_policy=policy,
        format_output=format_output,
    )
