"""Command line interface for OpenAPI component type generation."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from .config import UnsupportedPolicy, load_settings
from .errors import GenerationError
from .generator import run_generation
from .verify import format_report


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI parser."""
    parser = argparse.ArgumentParser(
        prog="openapi-typegen",
        description="Generate pydantic types from the component schemas of an OpenAPI document",
    )
    parser.add_argument(
        "document",
        help="Path of the OpenAPI YAML/JSON document, relative to the project root",
    )
    parser.add_argument(
        "--project-root",
        default=None,
        help="Directory the document path is resolved against "
        "(default: $OPENAPI_TYPEGEN_PROJECT_ROOT)",
    )
    parser.add_argument(
        "--output",
        default=None,
        help="Python module to write; the rendered source goes to stdout when omitted",
    )
    parser.add_argument(
        "--unsupported",
        choices=[policy.value for policy in UnsupportedPolicy],
        default=None,
        help="How to handle schema shapes that cannot be represented "
        "(default: $OPENAPI_TYPEGEN_UNSUPPORTED or warn)",
    )
    parser.add_argument(
        "--no-format",
        action="store_true",
        help="Skip running ruff format on the written module",
    )
    parser.add_argument(
        "--verify",
        action="store_true",
        help="Import the written module and check it against the generated definitions",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Run CLI and return process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = load_settings(
            project_root=args.project_root,
            unsupported_policy=args.unsupported,
            format_output=not args.no_format,
        )
        run = run_generation(
            args.document,
            settings=settings,
            output_path=Path(args.output) if args.output else None,
            verify=bool(args.verify),
        )
    except GenerationError as exc:
        parser.error(str(exc))
        return 2

    for warning in run.result.warnings:
        print(f"Warning: {warning}", file=sys.stderr)

    if run.output_path is None:
        sys.stdout.write(run.source)

    if run.verification_report is not None:
        print(format_report(run.verification_report))
        if run.verification_report.mismatch_count > 0:
            return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
