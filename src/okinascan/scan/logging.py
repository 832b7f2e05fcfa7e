"""Small logging helpers that integrate scan runs with the okinascan CLI."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)


@dataclass(slots=True)
class ScanProgressLogger:
    """Console logger with an optional Rich progress bar for batch runs."""

    verbose: bool = False
    console: Console | None = None

    def __post_init__(self) -> None:
        if self.console is None:
            self.console = Console(stderr=True)

    @contextmanager
    def progress(
        self, task: str, total: int | None = None
    ) -> Iterator[Callable[[int, int], None]]:
        """Yield a ``(completed, total)`` updater bound to a progress bar."""
        with Progress(
            SpinnerColumn(),
            TextColumn(f"[bold cyan]{task}"),
            BarColumn(),
            TextColumn("{task.completed}/{task.total}"),
            TimeElapsedColumn(),
            console=self.console,
            transient=not self.verbose,
        ) as progress:
            task_id: TaskID = progress.add_task(task, total=total)

            def _update(completed: int, new_total: int) -> None:
                progress.update(task_id, completed=completed, total=new_total)

            yield _update


__all__ = ["ScanProgressLogger"]
