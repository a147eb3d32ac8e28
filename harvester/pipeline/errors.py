"""Fatal setup errors.

Anything raised from here aborts the run; per-URL problems are never
expressed as exceptions past the worker boundary.
"""

from __future__ import annotations

from pathlib import Path


class HarvestError(Exception):
    """Base class for errors that stop a run before or during setup."""


class InputFileError(HarvestError):
    """The URL list (or filename list) cannot be read."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = Path(path)
        super().__init__(f"Can't open {self.path} : {reason}")


class OutputFileError(HarvestError):
    """A checkpoint, parsed list or output file cannot be opened."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = Path(path)
        super().__init__(f"Can't open {self.path} : {reason}")


class LedgerMismatchError(HarvestError):
    """The checkpoint file no longer lines up with the input file."""

    def __init__(self, line: int, expected: str, found: str) -> None:
        self.line = line
        self.expected = expected
        self.found = found
        super().__init__(
            f"Check file seems to be corrupted at line {line}: "
            f"{expected!r} != {found!r}"
        )
