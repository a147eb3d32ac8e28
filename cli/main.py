"""harvest CLI — bulk download and text extraction.

Usage:
    python cli/main.py --help

Commands:
    download  → fetch every URL of a list into one file per URL (resumable)
    extract   → turn an already downloaded corpus into plain text
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from harvester.xxx import
# ...` works when the CLI is invoked as `python cli/main.py` from any
# working directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import logging
from typing import Optional

import typer

from harvester.config import settings
from harvester.pipeline import (
    DownloadConfig,
    ExtractConfig,
    HarvestError,
    run_download,
    run_extract,
)
from cli.reporting import ConsoleReporter

app = typer.Typer(
    name="harvest",
    help="Bulk URL harvesting and HTML text extraction.",
    no_args_is_help=True,
)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )


def _fail(command: str, exc: HarvestError) -> None:
    typer.echo(f"[{command}] ❌ {exc}", err=True)
    raise typer.Exit(code=1)


# ---------------------------------------------------------------------------
# download
# ---------------------------------------------------------------------------
@app.command("download")
def download(
    max_concurrent_downloads: int = typer.Option(
        settings.max_concurrent_downloads,
        "--max-concurrent-downloads",
        min=1,
        help="Don't open more concurrent downloads than this.",
    ),
    outdir: Path = typer.Option(
        settings.download_outdir, help="Output directory with one file per URL (will be huge)."
    ),
    infile: Path = typer.Option(settings.infile, help="The file containing the URLs, one per line."),
    checkfile: Path = typer.Option(
        settings.checkfile, help="The file recording which URLs have been dispatched."
    ),
    parsedfile: Optional[Path] = typer.Option(
        None, help="With --extract: file listing URLs whose text was extracted."
    ),
    timeout: float = typer.Option(
        settings.request_timeout, help="Seconds after which a request is considered failed."
    ),
    min_length: int = typer.Option(
        settings.min_length, "--min-length", help="Minimum size of the strings to be captured."
    ),
    extract: bool = typer.Option(
        False, "--extract/--raw", help="Store extracted text instead of raw response bytes."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every failed URL."),
) -> None:
    """Download every URL of INFILE that has no file in OUTDIR yet."""
    _configure_logging(verbose)
    config = DownloadConfig(
        infile=infile,
        outdir=outdir,
        checkfile=checkfile,
        parsedfile=parsedfile or (settings.parsedfile if extract else None),
        max_concurrent_downloads=max_concurrent_downloads,
        timeout=timeout,
        min_length=min_length,
        extract=extract,
    )
    try:
        run_download(config, reporter=ConsoleReporter("download"))
    except HarvestError as exc:
        _fail("download", exc)


# ---------------------------------------------------------------------------
# extract
# ---------------------------------------------------------------------------
@app.command("extract")
def extract(
    listfile: Path = typer.Option(
        settings.listfile,
        help="A file listing the filenames to parse (faster than scanning the directory, "
        "e.g. `ls -1 > list.txt`).",
    ),
    datadir: Path = typer.Option(settings.datadir, help="Directory that contains the downloaded files."),
    outdir: Path = typer.Option(settings.extract_outdir, help="Directory that will contain cleaned text."),
    outfile: Path = typer.Option(settings.outfile, help="A file listing every processed filename."),
    min_length: int = typer.Option(
        settings.min_length, "--min-length", help="Minimum size of the strings to be captured."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log unreadable files."),
) -> None:
    """Extract plain text from every downloaded file named in LISTFILE."""
    _configure_logging(verbose)
    config = ExtractConfig(
        listfile=listfile,
        datadir=datadir,
        outdir=outdir,
        outfile=outfile,
        min_length=min_length,
    )
    try:
        run_extract(config, reporter=ConsoleReporter("extract"))
    except HarvestError as exc:
        _fail("extract", exc)


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
def main() -> None:
    app()


if __name__ == "__main__":
    main()
