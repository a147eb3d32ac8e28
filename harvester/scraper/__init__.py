"""Scraper package — URL naming, HTTP visit & text extraction."""

from harvester.scraper.extractor import TextExtractor, extract_file, extract_text
from harvester.scraper.fetcher import make_client, visit
from harvester.scraper.models import FetchOutcome, VisitResult
from harvester.scraper.naming import url_to_filename

__all__ = [
    "visit",
    "make_client",
    "extract_text",
    "extract_file",
    "TextExtractor",
    "url_to_filename",
    "FetchOutcome",
    "VisitResult",
]
