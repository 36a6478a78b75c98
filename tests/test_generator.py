"""Integration tests for generator behavior."""

from __future__ import annotations

import ast
import subprocess
import sys
from pathlib import Path

import pytest

from openapi_typegen.cli import main
from openapi_typegen.config import PROJECT_ROOT_ENV, GeneratorSettings, UnsupportedPolicy
from openapi_typegen.generator import (
    OpenAPILoadError,
    UnsupportedSchemaError,
    UsageError,
    run_generation,
)
from openapi_typegen.model_types import ProductDef
from openapi_typegen.verify import verify_module
from .fixture_helpers import fixture_dir, load_generated_source, parametrize_fixtures

_RESPONSES = "responses_subset.yaml"
_EDGE_CASES = "edge_cases.yaml"


def _settings(
    *,
    policy: UnsupportedPolicy = UnsupportedPolicy.WARN,
    format_output: bool = False,
) -> GeneratorSettings:
    return GeneratorSettings(
        project_root=fixture_dir(),
        unsupported_policy=policy,
        format_output=format_output,
    )


@parametrize_fixtures()
def test_generation_smoke(fixture_path: Path) -> None:
    """Each fixture renders to a syntactically valid module."""
    run = run_generation(fixture_path.name, settings=_settings(policy=UnsupportedPolicy.SKIP))
    assert run.output_path is None
    assert run.verification_report is None
    ast.parse(run.source)


@parametrize_fixtures()
def test_generation_with_verification(fixture_path: Path, tmp_path: Path) -> None:
    """The written module matches every definition it was rendered from."""
    run = run_generation(
        fixture_path.name,
        settings=_settings(policy=UnsupportedPolicy.SKIP),
        output_path=tmp_path / "models.py",
        verify=True,
    )
    report = run.verification_report
    assert report is not None
    assert report.verified_count == len(run.result.definitions)
    if report.mismatch_count > 0:
        preview = "\n".join(
            f"{m.definition} ({m.check}) expected={m.expected!r} actual={m.actual!r}"
            for m in report.mismatches[:8]
        )
        pytest.fail(f"Verification mismatches for {fixture_path.name}:\n{preview}")


def test_responses_fixture_definitions() -> None:
    """Auxiliary types, the nullable registry and warnings come out of one pass."""
    run = run_generation(_RESPONSES, settings=_settings())
    result = run.result

    assert [definition.name for definition in result.definitions] == [
        "AuditLogEventType",
        "ServiceTier",
        "ResponseFormatText",
        "ResponseFormatJsonObject",
        "ResponseFormat",
        "ResponseUsage",
        "ResponseProperties",
        "Response",
        "ResponseStatus",
        "ResponseEnvelope",
        "ResponseUsageListItem",
        "ResponseUsageList",
        "ResponseList",
        "ResponseId",
        "Temperature",
    ]
    assert result.nullable == frozenset({"ServiceTier"})
    assert result.warnings == ("ResponseProperties: inline object property 'metadata' is dropped",)

    properties = result.definition("ResponseProperties")
    assert isinstance(properties, ProductDef)
    service_tier = next(spec for spec in properties.fields if spec.wire_name == "service_tier")
    assert service_tier.nullable


def test_responses_fixture_wire_contract(tmp_path: Path) -> None:
    """Generated types read and write the documented wire shapes."""
    run = run_generation(_RESPONSES, settings=_settings())
    module = load_generated_source(run.source, tmp_path)

    assert module.AuditLogEventType("api_key.created") is module.AuditLogEventType.ApiKey_Created
    assert [member.name for member in module.ServiceTier] == [
        "Auto",
        "Default",
        "Flex",
        "Scale",
        "Priority",
    ]

    wire = {
        "previous_response_id": None,
        "service_tier": None,
        "id": "resp_123",
        "object": "response",
        "created_at": 1700000000,
        "status": "in_progress",
        "usage": {"input_tokens": 3, "output_tokens": 5, "total_tokens": 8},
    }
    envelope = module.ResponseEnvelope.model_validate(wire)
    assert envelope.response.status is module.ResponseStatus.InProgress
    assert envelope.response.created_at.year == 2023
    assert envelope.response_properties.service_tier is None
    dumped = envelope.model_dump(mode="json", by_alias=True, exclude_none=True)
    assert dumped == {key: value for key, value in wire.items() if value is not None}

    text = module.ResponseFormatText.model_validate({"type": "text"})
    assert text.type_field == "text"
    assert module.ResponseFormat.model_validate("auto").root is module.ResponseFormatTag.Auto
    tagged = module.ResponseFormat.model_validate({"ResponseFormatText": {"type": "text"}})
    assert tagged.root == text

    with pytest.raises(ValueError):
        module.ResponseUsage.model_validate(
            {"input_tokens": 1, "output_tokens": 1, "total_tokens": -1}
        )


def test_edge_cases_fixture_wire_contract(tmp_path: Path) -> None:
    """Escaped identifiers keep their original wire names."""
    run = run_generation(_EDGE_CASES, settings=_settings())
    module = load_generated_source(run.source, tmp_path)

    assert [member.value for member in module.Chat_Role] == ["system", "user", "assistant"]
    assert module.ImageSize("1024x1024") is module.ImageSize._1024x1024
    assert module.ConversationTag("none") is module.ConversationTag.None_

    message = module.Message.model_validate(
        {
            "role": "user",
            "from": "alice",
            "model_config": "strict",
            "file_search_call.results": True,
            "file_search_call_results": False,
        }
    )
    assert message.from_ == "alice"
    assert message.model_config_field == "strict"
    assert message.file_search_call_results is True
    assert message.file_search_call_results_2 is False

    thread = module.Thread.model_validate({"conversation": None})
    assert thread.conversation is None
    assert set(module.Palette.__value__.__args__) == {module.PaletteItem}


def test_fail_policy_raises_with_every_unsupported_shape() -> None:
    """Under ``fail`` nothing is rendered and every dropped shape is listed."""
    with pytest.raises(UnsupportedSchemaError) as excinfo:
        run_generation(_EDGE_CASES, settings=_settings(policy=UnsupportedPolicy.FAIL))
    assert [item.schema_name for item in excinfo.value.unsupported] == [
        "MessageWithExtras",
        "Opaque",
    ]


def test_skip_policy_collects_no_warnings() -> None:
    """Under ``skip`` the shapes are still recorded but not reported."""
    run = run_generation(_EDGE_CASES, settings=_settings(policy=UnsupportedPolicy.SKIP))
    assert run.result.warnings == ()
    assert len(run.result.unsupported) == 2


def test_generation_is_idempotent() -> None:
    """The same document renders to the same text every time."""
    first = run_generation(_RESPONSES, settings=_settings()).source
    second = run_generation(_RESPONSES, settings=_settings()).source
    assert first == second


def test_document_location_must_be_a_string() -> None:
    """Anything but a location string is a usage error."""
    with pytest.raises(UsageError):
        run_generation(fixture_dir() / _RESPONSES, settings=_settings())


def test_missing_document(tmp_path: Path) -> None:
    """Missing documents fail before anything is generated."""
    settings = GeneratorSettings(project_root=tmp_path, format_output=False)
    with pytest.raises(OpenAPILoadError, match="Could not read file at"):
        run_generation("missing.yaml", settings=settings)


def test_verification_requires_an_output_path() -> None:
    """Only a written module can be imported and checked."""
    with pytest.raises(UsageError):
        run_generation(_RESPONSES, settings=_settings(), verify=True)


def test_verification_reports_missing_definitions(tmp_path: Path) -> None:
    """A module that lacks the generated types is reported, not accepted."""
    run = run_generation(_RESPONSES, settings=_settings())
    module_path = tmp_path / "empty_models.py"
    module_path.write_text('"""Nothing here."""\n', encoding="utf-8")

    report = verify_module(run.result, module_path=module_path)
    assert report.mismatch_count > 0
    assert report.mismatches[0].definition == "AuditLogEventType"
    assert report.mismatches[0].check == "defined"


def test_generation_invokes_ruff_formatting(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Written modules are handed to the formatter when formatting is enabled."""
    captured: dict[str, Path] = {}

    def _fake_format(path: Path) -> None:
        captured["path"] = path

    monkeypatch.setattr("openapi_typegen.generator.format_generated_module", _fake_format)

    output_path = tmp_path / "generated" / "models.py"
    run_generation(_RESPONSES, settings=_settings(format_output=True), output_path=output_path)
    assert captured == {"path": output_path}, f"ruff formatting hook was not called: {captured!r}"


def test_generated_module_passes_ruff_check(tmp_path: Path) -> None:
    """Formatted output passes the default ruff checks."""
    output_path = tmp_path / "models.py"
    run_generation(_RESPONSES, settings=_settings(format_output=True), output_path=output_path)

    lint = subprocess.run(
        [sys.executable, "-m", "ruff", "check", "--no-cache", str(output_path)],
        check=False,
        capture_output=True,
        text=True,
    )
    details = f"{lint.stdout}\n{lint.stderr}".strip()
    assert lint.returncode == 0, details


def test_cli_writes_source_and_warnings(capsys: pytest.CaptureFixture[str]) -> None:
    """Without ``--output`` the module goes to stdout and warnings to stderr."""
    exit_code = main([_RESPONSES, "--project-root", str(fixture_dir()), "--no-format"])
    captured = capsys.readouterr()
    assert exit_code == 0
    assert "class ResponseEnvelope(FlattenedModel):" in captured.out
    assert "Warning: ResponseProperties: inline object property 'metadata' is dropped" in (
        captured.err
    )


def test_cli_verify_prints_report(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """``--verify`` reports the number of checked definitions."""
    output_path = tmp_path / "models.py"
    exit_code = main(
        [
            _RESPONSES,
            "--project-root",
            str(fixture_dir()),
            "--output",
            str(output_path),
            "--no-format",
            "--unsupported",
            "skip",
            "--verify",
        ]
    )
    captured = capsys.readouterr()
    assert exit_code == 0
    assert output_path.is_file()
    assert "Mismatches: 0" in captured.out
    assert "Warning:" not in captured.err


def test_cli_requires_project_root(monkeypatch: pytest.MonkeyPatch) -> None:
    """Missing location context is reported as a usage error."""
    monkeypatch.delenv(PROJECT_ROOT_ENV, raising=False)
    with pytest.raises(SystemExit) as excinfo:
        main([_RESPONSES])
    assert excinfo.value.code == 2


def test_cli_reports_load_errors(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """Load failures exit with a usage error naming the path."""
    with pytest.raises(SystemExit) as excinfo:
        main(["missing.yaml", "--project-root", str(tmp_path)])
    assert excinfo.value.code == 2
    assert "Could not read file at" in capsys.readouterr().err


def test_cli_help_screen() -> None:
    """Running the CLI help should succeed and print usage information."""
    result = subprocess.run(
        [sys.executable, "-m", "openapi_typegen", "--help"],
        check=False,
        capture_output=True,
        text=True,
    )
    assert result.returncode == 0
    assert "usage:" in result.stdout.lower()
