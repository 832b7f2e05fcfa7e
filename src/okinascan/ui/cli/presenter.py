"""Rich presenters for scan batches and per-font results."""

from __future__ import annotations

from collections.abc import Sequence

from rich import box
from rich.table import Table
from rich.text import Text

from okinascan.core.models import FontAnalysisResult, ScanBatch, ScanStatus

from .state import CLIState


_STATUS_STYLES = {
    ScanStatus.PENDING: "dim",
    ScanStatus.RUNNING: "cyan",
    ScanStatus.COMPLETED: "green",
    ScanStatus.FAILED: "red",
}


def _build_table(*, title: str | None, columns: Sequence[str]) -> Table:
    """Create a Rich table with the house style."""
    table = Table(
        title=title or None,
        box=box.SQUARE,
        show_edge=True,
        header_style="bold cyan",
    )
    for col in columns:
        table.add_column(col)
    return table


def _format_time(batch: ScanBatch, attr: str) -> str:
    value = getattr(batch, attr)
    if value is None:
        return "-"
    return value.strftime("%Y-%m-%d %H:%M:%S")


def _status_text(status: ScanStatus) -> Text:
    return Text(status.value, style=_STATUS_STYLES.get(status, ""))


def present_batches(state: CLIState, batches: Sequence[ScanBatch]) -> None:
    """Render a table with one row per batch."""
    if not batches:
        state.console.print("No scan batches recorded yet.")
        return
    table = _build_table(
        title="Scan batches",
        columns=("#", "Type", "Window", "Status", "Started", "Completed", "Processed", "Approved"),
    )
    for batch in batches:
        table.add_row(
            str(batch.batch_number),
            batch.scan_type.value,
            f"{batch.offset}-{batch.window_end}",
            _status_text(batch.status),
            _format_time(batch, "started_at"),
            _format_time(batch, "completed_at"),
            str(batch.fonts_processed),
            str(batch.fonts_approved),
        )
    state.console.print(table)


def present_batch(state: CLIState, batch: ScanBatch) -> None:
    """Render a single batch with its error message, if any."""
    present_batches(state, [batch])
    if batch.error_message:
        state.console.print(Text(f"Error: {batch.error_message}", style="red"))


def present_results(state: CLIState, results: Sequence[FontAnalysisResult]) -> None:
    """Render the per-font outcome of a finished batch."""
    if not results:
        state.console.print("No fonts were analysed.")
        return
    table = _build_table(
        title="Font analysis",
        columns=("Font", "Score", "Distinct", "Diacritics", "Approved"),
    )
    for result in results:
        if not result.succeeded:
            table.add_row(
                result.font_family,
                "-",
                "-",
                "-",
                Text(f"error: {result.error}", style="red"),
            )
            continue
        support = result.diacritical_support
        table.add_row(
            result.font_family,
            str(result.distinction_score),
            "yes" if result.has_visual_distinction else "no",
            f"{support.supported_count}/{support.total_count}" if support else "-",
            Text("yes", style="green") if result.auto_approved else Text("no", style="yellow"),
        )
    state.console.print(table)


def present_summary(state: CLIState, results: Sequence[FontAnalysisResult]) -> None:
    """Render batch totals and the list of auto-approved fonts."""
    analysed = [result for result in results if result.succeeded]
    approved = [result.font_family for result in analysed if result.auto_approved]
    distinct = sum(1 for result in analysed if result.has_visual_distinction)
    full_support = sum(
        1
        for result in analysed
        if result.diacritical_support is not None and result.diacritical_support.all_supported
    )

    table = _build_table(title="Scan summary", columns=("Metric", "Fonts"))
    table.add_row("Analysed", str(len(analysed)))
    table.add_row("Errors", str(len(results) - len(analysed)))
    table.add_row("Visually distinct ʻokina", str(distinct))
    table.add_row("Full kahakō support", str(full_support))
    table.add_row("Auto-approved", Text(str(len(approved)), style="bold green"))
    state.console.print(table)
    if approved:
        state.console.print(Text("Approved: " + ", ".join(approved), style="green"))


__all__ = ["present_batch", "present_batches", "present_results", "present_summary"]
