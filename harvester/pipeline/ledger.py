"""Line-oriented URL ledgers.

The checkpoint ledger records every URL in dispatch order, before it is
fetched, so on restart its N-th line must equal the N-th URL of the input.
The parsed ledger only receives URLs whose download and extraction really
succeeded.  Both are plain text, one entry per line, append-only.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import IO, Generator, Iterator, Optional

from harvester.config import settings
from harvester.pipeline.errors import InputFileError, LedgerMismatchError, OutputFileError


def _lines(fh: IO[str]) -> Iterator[str]:
    for line in fh:
        entry = line.strip()
        if entry:
            yield entry


def iter_urls(path: Path) -> Generator[str, None, None]:
    """Yield the stripped, non-blank lines of *path* in order.

    The file is opened before the first item is requested, so a missing
    file raises :class:`InputFileError` from this call, not from iteration.
    """
    path = Path(path)
    try:
        fh = open(path, "r", encoding="utf-8", errors="replace")
    except OSError as exc:
        raise InputFileError(path, exc.strerror or str(exc)) from exc
    return _closing_lines(fh)


def _closing_lines(fh: IO[str]) -> Generator[str, None, None]:
    with fh:
        yield from _lines(fh)


def ensure_output_dir(path: Path) -> None:
    """Create *path* (and parents); failure is an :class:`OutputFileError`."""
    try:
        settings.ensure_dir(path)
    except OSError as exc:
        raise OutputFileError(path, exc.strerror or str(exc)) from exc


def validate_checkpoint(urls: Iterator[str], checkfile: Path) -> int:
    """Consume one URL from *urls* per checkpoint entry and compare them.

    Returns the number of validated entries; *urls* is left positioned just
    after them.  A missing checkpoint file counts as empty.

    Raises:
        LedgerMismatchError: On the first differing line, or when the
            checkpoint has more entries than the input.
    """
    checkfile = Path(checkfile)
    if not checkfile.exists():
        return 0
    try:
        fh = open(checkfile, "r", encoding="utf-8", errors="replace")
    except OSError as exc:
        raise OutputFileError(checkfile, exc.strerror or str(exc)) from exc

    count = 0
    with fh:
        for entry in _lines(fh):
            count += 1
            url = next(urls, "")
            if url != entry:
                raise LedgerMismatchError(count, url, entry)
    return count


class Ledger:
    """Append-only, line-per-entry file shared by many threads.

    Each :meth:`append` is written and flushed under a lock, so concurrent
    workers never interleave partial lines and an interrupted run keeps
    every line it wrote.
    """

    def __init__(self, path: Path, truncate: bool = False) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()
        try:
            self._fh: Optional[IO[str]] = open(
                self.path, "w" if truncate else "a", encoding="utf-8"
            )
        except OSError as exc:
            raise OutputFileError(self.path, exc.strerror or str(exc)) from exc

    def append(self, entry: str) -> None:
        with self._lock:
            if self._fh is None:
                raise ValueError(f"ledger {self.path} is closed")
            self._fh.write(f"{entry}\n")
            self._fh.flush()

    def close(self) -> None:
        with self._lock:
            if self._fh is not None:
                self._fh.close()
                self._fh = None

    def __enter__(self) -> "Ledger":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
