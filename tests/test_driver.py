"""Tests for the download run driver: resume, skip, dispatch and drain."""

from __future__ import annotations

import threading
import time
from unittest.mock import patch

import httpx
import pytest
import respx

from harvester.pipeline.driver import DownloadConfig, run_download
from harvester.pipeline.errors import InputFileError, LedgerMismatchError, OutputFileError
from harvester.pipeline.progress import ProgressReporter
from harvester.scraper.models import FetchOutcome, VisitResult
from harvester.scraper.naming import url_to_filename


_PARAGRAPH = "this is a sufficiently long piece of visible paragraph text without slashes"
_HTML = f"<html><body><p>{_PARAGRAPH}</p></body></html>"


class RecordingReporter(ProgressReporter):
    def __init__(self) -> None:
        self.codes: list[str] = []
        self.scanned: list[int] = []
        self.resumed: list[int] = []
        self.finished = False
        self._lock = threading.Lock()

    def on_resumed(self, count: int) -> None:
        self.resumed.append(count)

    def on_progress(self, code: str) -> None:
        with self._lock:
            self.codes.append(code)

    def on_scanned(self, count, since_last, since_start) -> None:
        self.scanned.append(count)

    def on_finished(self, stats) -> None:
        self.finished = True


def _urls(n: int) -> list[str]:
    return [f"https://example.com/page/{i}" for i in range(n)]


@pytest.fixture
def workdir(tmp_path):
    infile = tmp_path / "urls.txt"
    infile.write_text("\n".join(_urls(5)) + "\n", encoding="utf-8")
    return tmp_path


def _config(workdir, **overrides) -> DownloadConfig:
    values = dict(
        infile=workdir / "urls.txt",
        outdir=workdir / "scraped",
        checkfile=workdir / "scraped.txt",
        parsedfile=None,
        max_concurrent_downloads=3,
        timeout=5,
        min_length=10,
        extract=False,
        progress_every=1000,
    )
    values.update(overrides)
    return DownloadConfig(**values)


# ---------------------------------------------------------------------------
# Basic run
# ---------------------------------------------------------------------------

class TestRunDownload:
    def test_fetches_every_url_and_records_checkpoint(self, workdir) -> None:
        reporter = RecordingReporter()
        with respx.mock:
            route = respx.get(url__startswith="https://example.com/").mock(
                return_value=httpx.Response(200, text="body")
            )
            stats = run_download(_config(workdir), reporter=reporter)

        assert route.call_count == 5
        assert stats["ok"] == 5
        assert stats["dispatched"] == 5
        for url in _urls(5):
            assert (workdir / "scraped" / url_to_filename(url)).read_text() == "body"
        assert (workdir / "scraped.txt").read_text().splitlines() == _urls(5)
        assert sorted(reporter.codes) == ["."] * 5
        assert reporter.resumed == [0]
        assert reporter.finished

    def test_creates_output_directory(self, workdir) -> None:
        outdir = workdir / "deep" / "nested" / "out"
        with respx.mock:
            respx.get(url__startswith="https://example.com/").mock(
                return_value=httpx.Response(200, text="body")
            )
            run_download(_config(workdir, outdir=outdir))
        assert len(list(outdir.iterdir())) == 5

    def test_failures_do_not_abort_the_run(self, workdir) -> None:
        urls = _urls(5)
        with respx.mock:
            respx.get(urls[0]).mock(return_value=httpx.Response(200, text="ok"))
            respx.get(urls[1]).mock(return_value=httpx.Response(404, text="missing"))
            respx.get(urls[2]).mock(return_value=httpx.Response(500))
            respx.get(urls[3]).mock(side_effect=httpx.ReadTimeout)
            respx.get(urls[4]).mock(side_effect=httpx.ConnectError)
            stats = run_download(_config(workdir))

        assert stats["ok"] == 1
        assert stats["not_found"] == 1
        assert stats["bad_status"] == 1
        assert stats["timeout"] == 1
        assert stats["transport"] == 1
        names = {p.name for p in (workdir / "scraped").iterdir()}
        assert names == {url_to_filename(urls[0]), url_to_filename(urls[1])}

    def test_missing_infile_is_fatal(self, tmp_path) -> None:
        with pytest.raises(InputFileError):
            run_download(_config(tmp_path))

    def test_uncreatable_outdir_is_fatal(self, workdir) -> None:
        blocker = workdir / "blocker"
        blocker.write_text("x", encoding="utf-8")
        with pytest.raises(OutputFileError) as excinfo:
            run_download(_config(workdir, outdir=blocker / "out"))
        assert excinfo.value.path == blocker / "out"
        assert not (workdir / "scraped.txt").exists()

    def test_progress_summary_every_n_lines(self, workdir) -> None:
        reporter = RecordingReporter()
        with respx.mock:
            respx.get(url__startswith="https://example.com/").mock(
                return_value=httpx.Response(200)
            )
            run_download(_config(workdir, progress_every=2), reporter=reporter)
        assert reporter.scanned == [0, 2, 4]


# ---------------------------------------------------------------------------
# Resume & idempotence
# ---------------------------------------------------------------------------

class TestResume:
    def test_second_run_makes_no_requests(self, workdir) -> None:
        with respx.mock:
            respx.get(url__startswith="https://example.com/").mock(
                return_value=httpx.Response(200, text="body")
            )
            run_download(_config(workdir))

        with respx.mock(assert_all_called=False) as mock:
            route = mock.get(url__startswith="https://example.com/").mock(
                return_value=httpx.Response(200, text="body")
            )
            stats = run_download(_config(workdir))

        assert route.call_count == 0
        assert stats["resumed"] == 5
        assert stats["dispatched"] == 0

    def test_existing_artifacts_are_skipped_without_checkpoint(self, workdir) -> None:
        with respx.mock:
            respx.get(url__startswith="https://example.com/").mock(
                return_value=httpx.Response(200, text="body")
            )
            run_download(_config(workdir))
        (workdir / "scraped.txt").unlink()

        with respx.mock(assert_all_called=False) as mock:
            route = mock.get(url__startswith="https://example.com/").mock(
                return_value=httpx.Response(200, text="body")
            )
            stats = run_download(_config(workdir))

        assert route.call_count == 0
        assert stats["skipped"] == 5
        # Skipped URLs are still checkpointed so positions stay aligned.
        assert (workdir / "scraped.txt").read_text().splitlines() == _urls(5)

    def test_partial_checkpoint_resumes_after_last_entry(self, workdir) -> None:
        urls = _urls(5)
        (workdir / "scraped.txt").write_text("\n".join(urls[:2]) + "\n", encoding="utf-8")

        with respx.mock(assert_all_called=False) as mock:
            route = mock.get(url__startswith="https://example.com/").mock(
                return_value=httpx.Response(200, text="body")
            )
            stats = run_download(_config(workdir))

        requested = sorted(str(call.request.url) for call in route.calls)
        assert requested == sorted(urls[2:])
        assert stats["resumed"] == 2
        assert (workdir / "scraped.txt").read_text().splitlines() == urls

    def test_corrupted_checkpoint_aborts_before_fetching(self, workdir) -> None:
        urls = _urls(5)
        (workdir / "scraped.txt").write_text(
            f"{urls[0]}\nhttps://other.example.org/\n", encoding="utf-8"
        )

        with respx.mock(assert_all_called=False) as mock:
            route = mock.get(url__startswith="https://example.com/").mock(
                return_value=httpx.Response(200, text="body")
            )
            with pytest.raises(LedgerMismatchError):
                run_download(_config(workdir))

        assert route.call_count == 0
        assert not (workdir / "scraped").exists()
        # The checkpoint is left untouched.
        assert (workdir / "scraped.txt").read_text().splitlines() == [
            urls[0],
            "https://other.example.org/",
        ]


# ---------------------------------------------------------------------------
# Extract variant
# ---------------------------------------------------------------------------

class TestExtractVariant:
    def test_writes_text_and_parsed_ledger(self, workdir) -> None:
        urls = _urls(5)
        parsed = workdir / "parsed.txt"
        with respx.mock:
            respx.get(urls[0]).mock(return_value=httpx.Response(200, text=_HTML))
            respx.get(urls[1]).mock(
                return_value=httpx.Response(200, text="<html><head></head></html>")
            )
            respx.get(urls[2]).mock(return_value=httpx.Response(404, text=_HTML))
            respx.get(urls[3]).mock(return_value=httpx.Response(500))
            respx.get(urls[4]).mock(side_effect=httpx.ConnectError)
            stats = run_download(_config(workdir, extract=True, parsedfile=parsed))

        outdir = workdir / "scraped"
        assert (outdir / url_to_filename(urls[0])).read_text() == _PARAGRAPH + "\n"
        assert not (outdir / url_to_filename(urls[1])).exists()
        assert stats["empty"] == 1
        assert parsed.read_text().splitlines() == [urls[0]]

    def test_parsed_ledger_ignored_for_raw_downloads(self, workdir) -> None:
        parsed = workdir / "parsed.txt"
        with respx.mock:
            respx.get(url__startswith="https://example.com/").mock(
                return_value=httpx.Response(200, text=_HTML)
            )
            run_download(_config(workdir, parsedfile=parsed))
        assert not parsed.exists()


# ---------------------------------------------------------------------------
# Concurrency bound
# ---------------------------------------------------------------------------

class TestConcurrency:
    def test_in_flight_fetches_never_exceed_limit(self, tmp_path) -> None:
        infile = tmp_path / "urls.txt"
        infile.write_text("\n".join(_urls(40)) + "\n", encoding="utf-8")
        lock = threading.Lock()
        gauge = {"current": 0, "peak": 0}

        def fake_visit(client, url, outdir, *, extract=False, min_length=100):
            with lock:
                gauge["current"] += 1
                gauge["peak"] = max(gauge["peak"], gauge["current"])
            time.sleep(0.01)
            with lock:
                gauge["current"] -= 1
            return VisitResult(url, FetchOutcome.OK)

        with patch("harvester.pipeline.driver.visit", side_effect=fake_visit):
            stats = run_download(
                _config(tmp_path, max_concurrent_downloads=4),
                client=httpx.Client(),
            )

        assert stats["ok"] == 40
        assert 1 <= gauge["peak"] <= 4
        assert gauge["current"] == 0
