"""Streaming HTML → text extraction.

The document is scanned as a flat token stream (``html.parser`` callbacks),
never built into a tree.  Two booleans drive the scan:

* ``in_body`` — set by ``<body>``, cleared by ``</body>``.
* ``suppressed`` — set by ``<script>``, ``<style>`` or ``<noscript>`` and
  cleared by the matching end tag.  It is a single flag, not a depth
  counter, so ``<script><script></script>text`` captures ``text``.

A text token is kept only when inside the body, not suppressed, longer than
``min_length`` UTF-8 bytes after stripping, and free of ``/`` (which filters
out paths, breadcrumbs and link-like navigation strings).  Each kept fragment is
followed by a newline.
"""

from __future__ import annotations

import codecs
import logging
from functools import partial
from html.parser import HTMLParser
from pathlib import Path
from typing import Iterable, List, Optional

logger = logging.getLogger(__name__)

_SUPPRESSING_TAGS = frozenset({"script", "style", "noscript"})
_READ_CHUNK = 64 * 1024


def _incremental_decoder(encoding: Optional[str]) -> codecs.IncrementalDecoder:
    """Return a replacing decoder for *encoding*, UTF-8 when unknown."""
    try:
        factory = codecs.getincrementaldecoder(encoding or "utf-8")
    except LookupError:
        factory = codecs.getincrementaldecoder("utf-8")
    return factory(errors="replace")


class TextExtractor(HTMLParser):
    """Token-stream text extractor for a single document.

    Create one per document; the state is never shared or reused.
    """

    def __init__(self, min_length: int = 100, encoding: Optional[str] = None) -> None:
        super().__init__(convert_charrefs=True)
        self.min_length = min_length
        self.in_body = False
        self.suppressed = False
        self.error: Optional[str] = None
        self._parts: List[str] = []
        self._pending: List[str] = []
        self._decoder = _incremental_decoder(encoding)

    # ------------------------------------------------------------------
    # Token callbacks
    # ------------------------------------------------------------------

    def handle_starttag(self, tag: str, attrs) -> None:
        self._flush_text()
        if tag == "body":
            self.in_body = True
        elif tag in _SUPPRESSING_TAGS:
            self.suppressed = True

    def handle_endtag(self, tag: str) -> None:
        self._flush_text()
        if tag == "body":
            self.in_body = False
        elif tag in _SUPPRESSING_TAGS:
            self.suppressed = False

    def handle_startendtag(self, tag: str, attrs) -> None:
        # <body/> and <script/> are self-closing tokens, not start tags.
        self._flush_text()

    def handle_comment(self, data: str) -> None:
        self._flush_text()

    def handle_decl(self, decl: str) -> None:
        self._flush_text()

    def handle_pi(self, data: str) -> None:
        self._flush_text()

    def unknown_decl(self, data: str) -> None:
        self._flush_text()

    def handle_data(self, data: str) -> None:
        # The parser may split one text token at feed boundaries.
        self._pending.append(data)

    def _flush_text(self) -> None:
        if not self._pending:
            return
        data = "".join(self._pending)
        self._pending.clear()
        if not self.in_body or self.suppressed:
            return
        text = data.strip()
        if len(text.encode("utf-8")) > self.min_length and "/" not in text:
            self._parts.append(text)
            self._parts.append("\n")

    # ------------------------------------------------------------------
    # Feeding
    # ------------------------------------------------------------------

    @property
    def failed(self) -> bool:
        return self.error is not None

    def _safe_feed(self, text: str) -> None:
        if self.failed or not text:
            return
        try:
            self.feed(text)
        except Exception as exc:  # tokenizer gave up on this document
            self.error = str(exc) or exc.__class__.__name__

    def feed_bytes(self, chunk: bytes) -> None:
        """Decode *chunk* and push it through the tokenizer."""
        self._safe_feed(self._decoder.decode(chunk))

    def finish(self) -> str:
        """Flush buffered input and return the accumulated text."""
        self._safe_feed(self._decoder.decode(b"", final=True))
        if not self.failed:
            try:
                self.close()
            except Exception as exc:
                self.error = str(exc) or exc.__class__.__name__
        self._flush_text()
        return self.text

    @property
    def text(self) -> str:
        return "".join(self._parts)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def extract_text(
    chunks: Iterable[bytes],
    min_length: int = 100,
    encoding: Optional[str] = None,
    name: str = "<stream>",
) -> str:
    """Extract the interesting body text from a stream of HTML bytes.

    Returns an empty string when nothing qualifies; that is a normal result.
    A tokenizer failure is logged and whatever was collected before it is
    returned.
    """
    extractor = TextExtractor(min_length=min_length, encoding=encoding)
    for chunk in chunks:
        extractor.feed_bytes(chunk)
        if extractor.failed:
            break
    text = extractor.finish()
    if extractor.failed:
        logger.warning("Error parsing %s: %s", name, extractor.error)
    return text


def extract_file(path: Path, min_length: int = 100) -> str:
    """Extract text from the HTML file at *path*.

    Raises:
        OSError: If the file cannot be opened.
    """
    path = Path(path)
    with open(path, "rb") as fh:
        chunks = iter(partial(fh.read, _READ_CHUNK), b"")
        return extract_text(chunks, min_length=min_length, name=path.name)
