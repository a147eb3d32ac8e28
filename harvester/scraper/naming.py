"""URL → artifact filename mapping.

The mapping must stay a pure function of the URL: resumption relies on the
same URL producing the same filename on every run.
"""

from __future__ import annotations

from slugify import slugify

MAX_SLUG_LENGTH = 200
ARTIFACT_SUFFIX = ".txt"


def url_to_filename(url: str) -> str:
    """Map *url* to ``<slug>.txt`` with the slug capped at 200 characters.

    Non-Latin text is transliterated, so ``/статья`` and ``/новости`` get
    distinct names.  Distinct URLs may still collide (``/a_b`` and ``/a-b``
    share a slug); that is accepted.
    """
    return slugify(url)[:MAX_SLUG_LENGTH] + ARTIFACT_SUFFIX
