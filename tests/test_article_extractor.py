from __future__ import annotations

import io
from email.message import Message
from http.client import IncompleteRead, RemoteDisconnected
from unittest.mock import patch
from urllib.error import HTTPError

import pytest

from newsbrief.article_extractor import ExtractionError, extract_article, extract_text, strip_html

ARTICLE_HTML = """
<html>
  <head><title>Council votes on budget</title></head>
  <body>
    <nav><a href="/">Home</a> <a href="/world">World</a></nav>
    <article>
      <h1>Council votes on budget</h1>
      <p>The city council approved the annual budget on Monday after a lengthy debate
      that stretched late into the evening, with members split over transit funding.</p>
      <p>Supporters said the plan protects core services while opponents argued that
      the spending increases were not matched by new revenue over the next decade.</p>
      <p>The budget now moves to the mayor, who is expected to sign it later this week
      according to officials familiar with the schedule and the remaining steps.</p>
    </article>
    <footer>Copyright 2026</footer>
  </body>
</html>
"""


class _FakeResponse:
    def __init__(self, body: bytes, charset: str = "utf-8") -> None:
        self._body = body
        self.headers = Message()
        self.headers["Content-Type"] = f"text/html; charset={charset}"

    def read(self) -> bytes:
        return self._body

    def __enter__(self) -> "_FakeResponse":
        return self

    def __exit__(self, *_args) -> None:
        return None


def test_strip_html_removes_tags_and_collapses_whitespace() -> None:
    assert strip_html("<p>Hello <b>world</b></p>\n\n  again") == "Hello world again"
    assert strip_html("") == ""


def test_extract_text_keeps_article_body() -> None:
    text = extract_text(ARTICLE_HTML)
    assert "city council approved the annual budget" in text
    assert "<p>" not in text


def test_extract_article_fetches_and_extracts() -> None:
    calls = []

    def fake_urlopen(request, timeout=0):
        calls.append((request.full_url, timeout, request.headers.get("User-agent")))
        return _FakeResponse(ARTICLE_HTML.encode("utf-8"))

    with patch("newsbrief.article_extractor.urlopen", side_effect=fake_urlopen):
        text = extract_article("https://news.example/budget")

    assert "mayor" in text
    assert calls[0][0] == "https://news.example/budget"
    assert calls[0][2]


def test_extract_article_http_error_raises_extraction_error() -> None:
    def fake_urlopen(request, timeout=0):
        raise HTTPError(request.full_url, 404, "missing", hdrs=None, fp=io.BytesIO(b""))

    with patch("newsbrief.article_extractor.urlopen", side_effect=fake_urlopen):
        with pytest.raises(ExtractionError):
            extract_article("https://bad.example/404")


def test_invalid_url_raises_extraction_error() -> None:
    with pytest.raises(ExtractionError):
        extract_article("not a url")


@pytest.mark.parametrize(
    "error",
    [
        RemoteDisconnected("Remote end closed connection"),
        ConnectionResetError(104, "Connection reset by peer"),
        TimeoutError("The read operation timed out"),
    ],
)
def test_connection_failures_raise_extraction_error(error: Exception) -> None:
    with patch("newsbrief.article_extractor.urlopen", side_effect=error):
        with pytest.raises(ExtractionError):
            extract_article("https://news.example/dropped")


def test_truncated_body_raises_extraction_error() -> None:
    class _Truncated(_FakeResponse):
        def read(self) -> bytes:
            raise IncompleteRead(b"<html><body>")

    with patch("newsbrief.article_extractor.urlopen", return_value=_Truncated(b"")):
        with pytest.raises(ExtractionError):
            extract_article("https://news.example/partial")
