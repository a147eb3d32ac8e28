"""Data models for the fetch pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional


class FetchOutcome(str, Enum):
    """Classification of a single visit.

    Each value is the one-character progress code shown to the operator.
    """

    OK = "."
    NOT_FOUND = "4"
    BAD_STATUS = "S"
    TIMEOUT = "T"
    TRANSPORT = "F"
    NO_RESPONSE = "E"
    BAD_REQUEST = "R"
    CREATE_FAILED = "C"
    EMPTY = "-"

    @property
    def persisted(self) -> bool:
        """``True`` when the outcome leaves an artifact on disk."""
        return self in (FetchOutcome.OK, FetchOutcome.NOT_FOUND)


@dataclass
class VisitResult:
    """What happened to one URL."""

    url: str
    outcome: FetchOutcome
    status_code: Optional[int] = None
    path: Optional[Path] = None
    error: str = ""
