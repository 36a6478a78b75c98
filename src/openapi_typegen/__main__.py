"""Entry point: python -m openapi_typegen."""

from __future__ import annotations

from .cli import main

raise SystemExit(main())
