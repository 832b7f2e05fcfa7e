"""Implementation of the ``okinascan scan`` command."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from okinascan.core.config import ScannerConfig
from okinascan.core.exceptions import ConflictError
from okinascan.core.models import ScanStatus, ScanType
from okinascan.scan.logging import ScanProgressLogger

from .._options import (
    SCAN_PANEL,
    STORAGE_PANEL,
    DatabaseOption,
    DebugOption,
    PixelThresholdOption,
    VerboseOption,
)
from ..diagnostics import CliEmitter
from ..presenter import present_batch, present_results, present_summary
from ..runtime import build_catalog, build_tracker, open_store
from ..state import configure_logging, emit_error, set_cli_state


def scan(
    offset: Annotated[
        int,
        typer.Option(
            "--offset",
            min=0,
            help="Index of the first catalog font to analyse.",
            rich_help_panel=SCAN_PANEL,
        ),
    ] = 0,
    limit: Annotated[
        int | None,
        typer.Option(
            "--limit",
            min=1,
            help="Number of catalog fonts to analyse (defaults to the configured batch size).",
            rich_help_panel=SCAN_PANEL,
        ),
    ] = None,
    pixel_threshold: PixelThresholdOption = None,
    database: DatabaseOption = None,
    output_dir: Annotated[
        Path | None,
        typer.Option(
            "--output-dir",
            file_okay=False,
            resolve_path=True,
            help="Also write the batch results as JSON into this directory.",
            rich_help_panel=STORAGE_PANEL,
        ),
    ] = None,
    verbose: VerboseOption = 0,
    debug: DebugOption = False,
) -> None:
    """Run one manual scan batch over a window of the font catalog."""
    state = set_cli_state(verbosity=verbose, debug=debug)
    configure_logging(state)

    config = ScannerConfig.from_env(pixel_threshold=pixel_threshold)
    store = open_store(database)
    catalog = build_catalog(config)
    tracker = build_tracker(
        config, store, catalog, emitter=CliEmitter(state), output_dir=output_dir
    )
    progress_logger = ScanProgressLogger(verbose=verbose > 0, console=state.err_console)

    try:
        with progress_logger.progress("Scanning fonts") as update:
            batch = tracker.run_now(ScanType.MANUAL, offset=offset, limit=limit, progress=update)
    except ConflictError as exc:
        emit_error(str(exc), exception=exc)
        raise typer.Exit(code=1) from exc
    except KeyboardInterrupt:
        tracker.shutdown(timeout=30)
        raise
    finally:
        catalog.close()

    results = tracker.results(batch.id)
    present_results(state, results)
    present_summary(state, results)
    present_batch(state, batch)
    if batch.status is not ScanStatus.COMPLETED:
        raise typer.Exit(code=1)


__all__ = ["scan"]
