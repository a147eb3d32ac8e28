"""Centralised settings for the harvester.

All runtime defaults are resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).  Command-line flags
take precedence over both.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (two levels up from this file)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)

_CHROME_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/70.0.3538.77 Safari/537.36"
)


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Download
    # ------------------------------------------------------------------
    max_concurrent_downloads: int = field(
        default_factory=lambda: int(os.environ.get("HARVEST_MAX_CONCURRENT_DOWNLOADS", "20"))
    )
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("HARVEST_TIMEOUT", "30"))
    )
    user_agent: str = field(
        default_factory=lambda: os.environ.get("HARVEST_USER_AGENT", _CHROME_UA)
    )
    download_outdir: Path = field(
        default_factory=lambda: Path(os.environ.get("HARVEST_OUTDIR", "scraped"))
    )
    infile: Path = field(
        default_factory=lambda: Path(os.environ.get("HARVEST_INFILE", "urls.txt"))
    )
    checkfile: Path = field(
        default_factory=lambda: Path(os.environ.get("HARVEST_CHECKFILE", "scraped.txt"))
    )
    parsedfile: Path = field(
        default_factory=lambda: Path(os.environ.get("HARVEST_PARSEDFILE", "parsed.txt"))
    )

    # ------------------------------------------------------------------
    # Extraction
    # ------------------------------------------------------------------
    min_length: int = field(
        default_factory=lambda: int(os.environ.get("HARVEST_MIN_LENGTH", "100"))
    )
    listfile: Path = field(
        default_factory=lambda: Path(os.environ.get("HARVEST_LISTFILE", "scraped.txt"))
    )
    datadir: Path = field(
        default_factory=lambda: Path(os.environ.get("HARVEST_DATADIR", "scraped"))
    )
    extract_outdir: Path = field(
        default_factory=lambda: Path(os.environ.get("HARVEST_EXTRACT_OUTDIR", "parsed"))
    )
    outfile: Path = field(
        default_factory=lambda: Path(os.environ.get("HARVEST_OUTFILE", "parsed.text"))
    )

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------
    progress_every: int = field(
        default_factory=lambda: int(os.environ.get("HARVEST_PROGRESS_EVERY", "1000"))
    )

    @staticmethod
    def ensure_dir(path: Path) -> None:
        """Create *path* (and parents) if it does not exist."""
        Path(path).mkdir(parents=True, exist_ok=True)


# Module-level singleton — import this everywhere:
#   from harvester.config import settings
settings = Settings()
