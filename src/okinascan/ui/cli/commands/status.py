"""Implementation of the ``okinascan status`` command."""

from __future__ import annotations

from typing import Annotated

import typer

from .._options import DatabaseOption, DebugOption, VerboseOption
from ..presenter import present_batch, present_batches
from ..runtime import open_store
from ..state import emit_error, set_cli_state


def status(
    batch_id: Annotated[
        int | None,
        typer.Argument(help="Show a single batch by its identifier."),
    ] = None,
    recent: Annotated[
        int,
        typer.Option("--recent", min=1, help="Number of recent batches to list."),
    ] = 10,
    database: DatabaseOption = None,
    verbose: VerboseOption = 0,
    debug: DebugOption = False,
) -> None:
    """Show the running batch and the most recent scan history."""
    state = set_cli_state(verbosity=verbose, debug=debug)
    store = open_store(database)

    if batch_id is not None:
        batch = store.get_batch(batch_id)
        if batch is None:
            emit_error(f"No scan batch with id {batch_id}.")
            raise typer.Exit(code=1)
        present_batch(state, batch)
        return

    running = store.running_batch()
    if running is not None:
        state.console.print(
            f"Batch {running.batch_number} is running "
            f"(window {running.offset}-{running.window_end})."
        )
    present_batches(state, store.recent_batches(recent))


__all__ = ["status"]
