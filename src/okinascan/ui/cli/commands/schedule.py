"""Implementation of the ``okinascan schedule`` command."""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path
from typing import Annotated

import typer

from okinascan.core.config import ScannerConfig, SchedulerConfig
from okinascan.scan.scheduler import IncrementalScheduler

from .._options import STORAGE_PANEL, DatabaseOption, DebugOption, VerboseOption
from ..diagnostics import CliEmitter
from ..runtime import build_catalog, build_tracker, open_store
from ..state import configure_logging, set_cli_state


SCHEDULE_PANEL = "Schedule"


def schedule(
    interval_days: Annotated[
        float | None,
        typer.Option(
            "--interval-days",
            min=0,
            help="Minimum number of days between incremental batches.",
            rich_help_panel=SCHEDULE_PANEL,
        ),
    ] = None,
    check_interval: Annotated[
        float | None,
        typer.Option(
            "--check-interval",
            min=1,
            help="Seconds between schedule evaluations.",
            rich_help_panel=SCHEDULE_PANEL,
        ),
    ] = None,
    stale_after_hours: Annotated[
        float,
        typer.Option(
            "--stale-after-hours",
            min=0,
            help="Fail batches left running longer than this before scheduling starts.",
            rich_help_panel=SCHEDULE_PANEL,
        ),
    ] = 24.0,
    database: DatabaseOption = None,
    output_dir: Annotated[
        Path | None,
        typer.Option(
            "--output-dir",
            file_okay=False,
            resolve_path=True,
            help="Also write each batch's results as JSON into this directory.",
            rich_help_panel=STORAGE_PANEL,
        ),
    ] = None,
    verbose: VerboseOption = 0,
    debug: DebugOption = False,
) -> None:
    """Run incremental scans in the foreground whenever the interval has elapsed."""
    state = set_cli_state(verbosity=verbose, debug=debug)
    configure_logging(state)

    scheduler_config = SchedulerConfig.from_env(
        min_interval=timedelta(days=interval_days) if interval_days is not None else None,
        check_interval=check_interval,
    )
    config = ScannerConfig.from_env()
    emitter = CliEmitter(state)
    store = open_store(database)
    catalog = build_catalog(config)
    tracker = build_tracker(config, store, catalog, emitter=emitter, output_dir=output_dir)

    recovered = tracker.recover_stale(timedelta(hours=stale_after_hours))
    for batch_id in recovered:
        emitter.warning(f"Marked stale batch {batch_id} as failed.")

    scheduler = IncrementalScheduler(tracker, store, scheduler_config, emitter=emitter)
    state.console.print(
        f"Scheduling incremental scans every {scheduler_config.min_interval} "
        f"(checking every {scheduler_config.check_interval:g}s). Press Ctrl+C to stop."
    )
    try:
        scheduler.run_forever()
    except KeyboardInterrupt:
        state.console.print("Stopping scheduler, waiting for the running batch to close...")
        scheduler.stop(timeout=60)
    finally:
        catalog.close()


__all__ = ["schedule"]
