"""Progress observation for the run drivers.

Drivers never print.  They call a :class:`ProgressReporter`, and the CLI
supplies one that writes to the terminal.  Tests can pass their own.
"""

from __future__ import annotations

import threading
from collections import Counter
from datetime import timedelta
from typing import Dict


class RunStats:
    """Thread-safe tally of what happened during a run."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counts: Counter = Counter()

    def incr(self, key: str, amount: int = 1) -> None:
        with self._lock:
            self._counts[key] += amount

    def __getitem__(self, key: str) -> int:
        with self._lock:
            return self._counts[key]

    def as_dict(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._counts)


class ProgressReporter:
    """Observer interface; every hook is a no-op by default."""

    def on_resumed(self, count: int) -> None:
        """*count* checkpoint entries were validated and will be skipped."""

    def on_progress(self, code: str) -> None:
        """One item finished with the single-character *code*."""

    def on_scanned(self, count: int, since_last: timedelta, since_start: timedelta) -> None:
        """*count* input lines have been processed so far."""

    def on_finished(self, stats: RunStats) -> None:
        """The run drained; *stats* is final."""
