"""Run pipeline package: ledgers, worker pool and the two run drivers."""

from harvester.pipeline.batch import ExtractConfig, run_extract
from harvester.pipeline.driver import DownloadConfig, run_download
from harvester.pipeline.errors import (
    HarvestError,
    InputFileError,
    LedgerMismatchError,
    OutputFileError,
)
from harvester.pipeline.ledger import Ledger, iter_urls, validate_checkpoint
from harvester.pipeline.pool import WorkerPool
from harvester.pipeline.progress import ProgressReporter, RunStats

__all__ = [
    "run_download",
    "run_extract",
    "DownloadConfig",
    "ExtractConfig",
    "Ledger",
    "iter_urls",
    "validate_checkpoint",
    "WorkerPool",
    "ProgressReporter",
    "RunStats",
    "HarvestError",
    "InputFileError",
    "LedgerMismatchError",
    "OutputFileError",
]
