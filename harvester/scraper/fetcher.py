"""HTTP visit: one GET per URL, classified and persisted."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import httpx

from harvester.config import settings
from harvester.scraper.extractor import extract_text
from harvester.scraper.models import FetchOutcome, VisitResult
from harvester.scraper.naming import url_to_filename

logger = logging.getLogger(__name__)


def make_client(
    timeout: Optional[float] = None,
    user_agent: Optional[str] = None,
    max_connections: Optional[int] = None,
) -> httpx.Client:
    """Return an ``httpx.Client`` shared by every worker thread.

    A browser user-agent is sent because some origins reject library
    defaults.
    """
    limits = httpx.Limits(
        max_connections=max_connections or settings.max_concurrent_downloads,
        max_keepalive_connections=max_connections or settings.max_concurrent_downloads,
    )
    return httpx.Client(
        headers={"User-Agent": user_agent or settings.user_agent},
        timeout=timeout if timeout is not None else settings.request_timeout,
        limits=limits,
        follow_redirects=True,
    )


def _classify_error(exc: Exception) -> FetchOutcome:
    if isinstance(exc, (httpx.InvalidURL, httpx.UnsupportedProtocol)):
        return FetchOutcome.BAD_REQUEST
    if isinstance(exc, httpx.TimeoutException):
        return FetchOutcome.TIMEOUT
    return FetchOutcome.TRANSPORT


def _write_raw(response: httpx.Response, target: Path) -> None:
    with open(target, "wb") as out:
        for chunk in response.iter_bytes():
            out.write(chunk)


def _write_extracted(response: httpx.Response, target: Path, min_length: int, url: str) -> bool:
    """Write the extracted text of *response*; return ``False`` if empty."""
    text = extract_text(
        response.iter_bytes(),
        min_length=min_length,
        encoding=response.charset_encoding,
        name=url,
    )
    if not text:
        return False
    target.write_text(text, encoding="utf-8")
    return True


def visit(
    client: httpx.Client,
    url: str,
    outdir: Path,
    *,
    extract: bool = False,
    min_length: int = 100,
) -> VisitResult:
    """Fetch *url* once and store the body under *outdir*.

    2xx and 404 responses are persisted to ``outdir/url_to_filename(url)``,
    either as raw bytes or, with ``extract=True``, as extracted text (an
    empty extraction writes nothing).  Every other outcome is reported in
    the returned :class:`VisitResult` and leaves no file behind.

    Never raises for per-URL problems.
    """
    try:
        request = client.build_request("GET", url)
    except (httpx.InvalidURL, httpx.HTTPError) as exc:
        logger.debug("bad request %s: %s", url, exc)
        return VisitResult(url, FetchOutcome.BAD_REQUEST, error=str(exc))

    target = Path(outdir) / url_to_filename(url)
    response: Optional[httpx.Response] = None
    try:
        response = client.send(request, stream=True)
        if response is None:
            return VisitResult(url, FetchOutcome.NO_RESPONSE)

        status = response.status_code
        if 200 <= status <= 299:
            outcome = FetchOutcome.OK
        elif status == 404:
            outcome = FetchOutcome.NOT_FOUND
        else:
            logger.debug("skipping %s: HTTP %s", url, status)
            return VisitResult(url, FetchOutcome.BAD_STATUS, status_code=status)

        try:
            if extract:
                if not _write_extracted(response, target, min_length, url):
                    return VisitResult(url, FetchOutcome.EMPTY, status_code=status)
            else:
                _write_raw(response, target)
        except OSError as exc:
            logger.debug("cannot write %s: %s", target, exc)
            target.unlink(missing_ok=True)
            return VisitResult(url, FetchOutcome.CREATE_FAILED, status_code=status, error=str(exc))
        except httpx.HTTPError:
            target.unlink(missing_ok=True)
            raise

        return VisitResult(url, outcome, status_code=status, path=target)
    except (httpx.InvalidURL, httpx.HTTPError) as exc:
        logger.debug("fetch failed %s: %s", url, exc)
        return VisitResult(url, _classify_error(exc), error=str(exc))
    finally:
        if response is not None:
            response.close()
