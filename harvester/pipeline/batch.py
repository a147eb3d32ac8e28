"""Batch extraction over an already downloaded corpus.

Walks a list of artifact filenames (typically the download checkpoint or
``ls -1`` of the data directory) and writes the extracted text of each one
to a parallel output directory.  Sequential on purpose: this pass is CPU
bound text scanning, not network bound.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional

from harvester.config import settings
from harvester.pipeline.ledger import Ledger, ensure_output_dir, iter_urls
from harvester.pipeline.progress import ProgressReporter, RunStats
from harvester.scraper.extractor import extract_file

logger = logging.getLogger(__name__)

PARSED = "parsed"
EMPTY = "empty"
UNREADABLE = "unreadable"
WRITE_FAILED = "write_failed"

_CODES = {PARSED: ".", EMPTY: "-", UNREADABLE: "F", WRITE_FAILED: "C"}


@dataclass
class ExtractConfig:
    """Everything one ``extract`` run needs."""

    listfile: Path = field(default_factory=lambda: settings.listfile)
    datadir: Path = field(default_factory=lambda: settings.datadir)
    outdir: Path = field(default_factory=lambda: settings.extract_outdir)
    outfile: Path = field(default_factory=lambda: settings.outfile)
    min_length: int = field(default_factory=lambda: settings.min_length)
    progress_every: int = field(default_factory=lambda: settings.progress_every)


def parse_file(datadir: Path, filename: str, min_length: int, outdir: Path) -> str:
    """Extract ``datadir/filename`` into ``outdir/filename``.

    Returns one of ``"parsed"``, ``"empty"`` (no qualifying text, nothing
    written), ``"unreadable"`` or ``"write_failed"``.
    """
    source = Path(datadir) / filename
    try:
        text = extract_file(source, min_length=min_length)
    except OSError as exc:
        logger.warning("Failed to open %s: %s", source, exc)
        return UNREADABLE

    if not text:
        return EMPTY

    target = Path(outdir) / filename
    try:
        target.write_text(text, encoding="utf-8")
    except OSError as exc:
        logger.warning("Failed to write %s: %s", target, exc)
        return WRITE_FAILED
    return PARSED


def run_extract(config: ExtractConfig, reporter: Optional[ProgressReporter] = None) -> RunStats:
    """Extract every file named in ``config.listfile``.

    ``config.outfile`` is rewritten from scratch and lists every filename
    that was processed, whatever the result.

    Raises:
        InputFileError: ``config.listfile`` cannot be read.
        OutputFileError: ``config.outfile`` cannot be created.
    """
    reporter = reporter or ProgressReporter()
    stats = RunStats()

    filenames = iter_urls(config.listfile)
    try:
        ensure_output_dir(Path(config.outdir))
        start = last = datetime.now()
        with Ledger(config.outfile, truncate=True) as done:
            for i, filename in enumerate(filenames):
                result = parse_file(config.datadir, filename, config.min_length, config.outdir)
                stats.incr(result)
                stats.incr("scanned")
                reporter.on_progress(_CODES[result])
                done.append(filename)
                if i % config.progress_every == 0:
                    now = datetime.now()
                    reporter.on_scanned(i, now - last, now - start)
                    last = now
    finally:
        filenames.close()

    reporter.on_finished(stats)
    return stats
