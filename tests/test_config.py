"""Tests for settings resolution."""

from __future__ import annotations

from pathlib import Path

import pytest

from openapi_typegen.config import (
    PROJECT_ROOT_ENV,
    UNSUPPORTED_POLICY_ENV,
    ConfigurationError,
    UnsupportedPolicy,
    load_settings,
)


def test_project_root_is_required() -> None:
    """Without an explicit root or environment variable the pass cannot start."""
    with pytest.raises(ConfigurationError, match=PROJECT_ROOT_ENV):
        load_settings(environ={})


def test_environment_supplies_defaults() -> None:
    """Environment variables fill in anything not passed explicitly."""
    settings = load_settings(
        environ={PROJECT_ROOT_ENV: "/srv/specs", UNSUPPORTED_POLICY_ENV: "FAIL"},
    )
    assert settings.project_root == Path("/srv/specs")
    assert settings.unsupported_policy is UnsupportedPolicy.FAIL
    assert settings.format_output


def test_explicit_values_win_over_environment() -> None:
    """Arguments take precedence over the environment."""
    settings = load_settings(
        project_root="specs",
        unsupported_policy="skip",
        format_output=False,
        environ={PROJECT_ROOT_ENV: "/srv/specs", UNSUPPORTED_POLICY_ENV: "fail"},
    )
    assert settings.project_root == Path("specs")
    assert settings.unsupported_policy is UnsupportedPolicy.SKIP
    assert not settings.format_output


def test_policy_defaults_to_warn() -> None:
    """Unrepresentable shapes are reported by default."""
    settings = load_settings(project_root="specs", environ={})
    assert settings.unsupported_policy is UnsupportedPolicy.WARN


def test_invalid_policy_is_rejected() -> None:
    """Unknown policy names are configuration errors."""
    with pytest.raises(ConfigurationError, match="ignore"):
        load_settings(project_root="specs", unsupported_policy="ignore", environ={})
