"""Fetch an article page and isolate its main body text."""
from __future__ import annotations

import os
import re
from http.client import HTTPException
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from bs4 import BeautifulSoup
from readability import Document

BROWSER_HEADERS = {
    "User-Agent": "Mozilla/5.0 (compatible; NewsBriefBot/1.0)",
    "Accept": "text/html,application/xhtml+xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}

_TAG_RE = re.compile(r"<[^>]+>")
_SPACE_RE = re.compile(r"\s+")


class ExtractionError(RuntimeError):
    """Raised when an article page cannot be fetched or parsed."""


def strip_html(text: str) -> str:
    return _SPACE_RE.sub(" ", _TAG_RE.sub(" ", text or "")).strip()


def extract_text(html: str) -> str:
    try:
        content_html = Document(html).summary(html_partial=True)
    except Exception as exc:
        raise ExtractionError(f"Could not isolate article body: {exc}") from exc
    soup = BeautifulSoup(content_html, "html.parser")
    return strip_html(soup.get_text(" ", strip=True))


def fetch_html(url: str, timeout_seconds: float | None = None) -> str:
    if timeout_seconds is None:
        timeout_seconds = max(1.0, float(os.getenv("EXTRACTOR_TIMEOUT_SEC", "15")))
    try:
        request = Request(url, method="GET", headers=BROWSER_HEADERS)
        with urlopen(request, timeout=timeout_seconds) as response:
            raw = response.read()
            charset = response.headers.get_content_charset() or "utf-8"
    except HTTPError as exc:
        raise ExtractionError(f"Article page HTTP {exc.code}") from exc
    except URLError as exc:
        raise ExtractionError(f"Article page unreachable: {exc}") from exc
    except (OSError, HTTPException, ValueError) as exc:
        raise ExtractionError(f"Article page request failed: {exc!r}") from exc
    try:
        return raw.decode(charset, errors="ignore")
    except LookupError:
        return raw.decode("utf-8", errors="ignore")


def extract_article(url: str) -> str:
    return extract_text(fetch_html(url))
