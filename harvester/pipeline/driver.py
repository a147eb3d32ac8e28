"""Download run driver.

Streams the URL list, resumes from the checkpoint ledger, skips URLs whose
artifact already exists and feeds the rest to a :class:`WorkerPool`::

    read URL → append to checkpoint → artifact exists? skip : acquire token
             → visit (fetch → extract?) → parsed ledger → release token
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional

import httpx

from harvester.config import settings
from harvester.pipeline.ledger import Ledger, ensure_output_dir, iter_urls, validate_checkpoint
from harvester.pipeline.pool import WorkerPool
from harvester.pipeline.progress import ProgressReporter, RunStats
from harvester.scraper.fetcher import make_client, visit
from harvester.scraper.models import FetchOutcome, VisitResult
from harvester.scraper.naming import url_to_filename

logger = logging.getLogger(__name__)


@dataclass
class DownloadConfig:
    """Everything one ``download`` run needs."""

    infile: Path = field(default_factory=lambda: settings.infile)
    outdir: Path = field(default_factory=lambda: settings.download_outdir)
    checkfile: Path = field(default_factory=lambda: settings.checkfile)
    parsedfile: Optional[Path] = None
    max_concurrent_downloads: int = field(default_factory=lambda: settings.max_concurrent_downloads)
    timeout: float = field(default_factory=lambda: settings.request_timeout)
    min_length: int = field(default_factory=lambda: settings.min_length)
    extract: bool = False
    progress_every: int = field(default_factory=lambda: settings.progress_every)


def _record(
    result: VisitResult,
    stats: RunStats,
    reporter: ProgressReporter,
    parsed: Optional[Ledger],
) -> None:
    stats.incr(result.outcome.name.lower())
    if parsed is not None and result.outcome is FetchOutcome.OK and result.path is not None:
        parsed.append(result.url)
    reporter.on_progress(result.outcome.value)


def run_download(
    config: DownloadConfig,
    reporter: Optional[ProgressReporter] = None,
    client: Optional[httpx.Client] = None,
) -> RunStats:
    """Fetch every URL of ``config.infile`` that has no artifact yet.

    Returns only after every dispatched fetch has finished.

    Raises:
        InputFileError: ``config.infile`` cannot be read.
        LedgerMismatchError: The checkpoint does not match the input.
        OutputFileError: A ledger file cannot be opened.
    """
    reporter = reporter or ProgressReporter()
    stats = RunStats()
    outdir = Path(config.outdir)

    urls = iter_urls(config.infile)
    try:
        resumed = validate_checkpoint(urls, config.checkfile)
        stats.incr("resumed", resumed)
        reporter.on_resumed(resumed)

        ensure_output_dir(outdir)
        with Ledger(config.checkfile) as checkpoint:
            parsed = Ledger(config.parsedfile) if config.extract and config.parsedfile else None
            http = client
            try:
                if http is None:
                    http = make_client(
                        timeout=config.timeout,
                        max_connections=config.max_concurrent_downloads,
                    )
                _dispatch(config, urls, outdir, checkpoint, parsed, http, stats, reporter)
            finally:
                if client is None and http is not None:
                    http.close()
                if parsed is not None:
                    parsed.close()
    finally:
        urls.close()

    reporter.on_finished(stats)
    return stats


def _dispatch(
    config: DownloadConfig,
    urls: Iterator[str],
    outdir: Path,
    checkpoint: Ledger,
    parsed: Optional[Ledger],
    http: httpx.Client,
    stats: RunStats,
    reporter: ProgressReporter,
) -> None:
    def task(url: str) -> None:
        result = visit(
            http,
            url,
            outdir,
            extract=config.extract,
            min_length=config.min_length,
        )
        _record(result, stats, reporter, parsed)

    start = last = datetime.now()
    with WorkerPool(config.max_concurrent_downloads) as pool:
        for i, url in enumerate(urls):
            checkpoint.append(url)
            if i % config.progress_every == 0:
                now = datetime.now()
                reporter.on_scanned(i, now - last, now - start)
                last = now
            stats.incr("scanned")

            if (outdir / url_to_filename(url)).exists():
                stats.incr("skipped")
                continue

            stats.incr("dispatched")
            pool.submit(task, url)
    logger.debug("download drained: %s", stats.as_dict())
