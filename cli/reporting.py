"""Terminal rendering of run progress."""

from __future__ import annotations

from datetime import timedelta

import typer

from harvester.pipeline.progress import ProgressReporter, RunStats


def _fmt(delta: timedelta) -> str:
    return f"{delta.total_seconds():.3f}s"


class ConsoleReporter(ProgressReporter):
    """One character per finished item plus a summary every N lines."""

    def __init__(self, command: str) -> None:
        self.command = command

    def on_resumed(self, count: int) -> None:
        typer.echo(f"[{self.command}] Skipped {count} already checked urls")

    def on_progress(self, code: str) -> None:
        typer.echo(code, nl=False)

    def on_scanned(self, count: int, since_last: timedelta, since_start: timedelta) -> None:
        typer.echo(f"\nScanned {count} urls in {_fmt(since_last)} (total : {_fmt(since_start)})")

    def on_finished(self, stats: RunStats) -> None:
        counts = stats.as_dict()
        summary = "  ".join(f"{key}={counts[key]}" for key in sorted(counts))
        typer.echo("")
        typer.echo(f"[{self.command}] Done. {summary or 'nothing to do'}")
