"""Shared Typer option definitions for CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer


SCAN_PANEL = "Scan Window"
STORAGE_PANEL = "Storage"
DIAGNOSTICS_PANEL = "Diagnostics"

DatabaseOption = Annotated[
    Path | None,
    typer.Option(
        "--database",
        help="SQLite database holding scan batches (defaults to the user data directory).",
        dir_okay=False,
        resolve_path=True,
        rich_help_panel=STORAGE_PANEL,
    ),
]

VerboseOption = Annotated[
    int,
    typer.Option(
        "--verbose",
        "-v",
        count=True,
        help="Increase CLI verbosity. Combine multiple times for additional diagnostics.",
        rich_help_panel=DIAGNOSTICS_PANEL,
    ),
]

DebugOption = Annotated[
    bool,
    typer.Option(
        "--debug",
        help="Show full tracebacks when an unexpected error occurs.",
        rich_help_panel=DIAGNOSTICS_PANEL,
    ),
]

PixelThresholdOption = Annotated[
    int | None,
    typer.Option(
        "--pixel-threshold",
        min=0,
        help="Minimum ʻokina/apostrophe distinction score required for auto-approval.",
        rich_help_panel=SCAN_PANEL,
    ),
]
