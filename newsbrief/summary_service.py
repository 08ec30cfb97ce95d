"""Article summarization through an LLM chat completion API with a text fallback."""
from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass
from http.client import HTTPException
from typing import Callable, Optional, Union
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from .article_extractor import ExtractionError, extract_article, strip_html
from .news_feed_service import NO_SUMMARY

logger = logging.getLogger(__name__)

INPUT_CHAR_LIMIT = 2000
FALLBACK_CHAR_LIMIT = 300
DEGRADED_NOTE = "AI summarization temporarily unavailable, showing extracted content"
EXTRACTION_FAILED = "EXTRACTION_FAILED"

CHAT_COMPLETION_URLS = {
    "together": "https://api.together.xyz/v1/chat/completions",
    "openai": "https://api.openai.com/v1/chat/completions",
}


class SummaryConfigError(RuntimeError):
    """Raised when the LLM provider key is missing."""


class SummaryRateLimitError(RuntimeError):
    """Raised when the LLM provider is rate-limited."""


class SummaryUpstreamError(RuntimeError):
    """Raised when the LLM call fails or returns an unusable body."""


@dataclass(frozen=True)
class SummaryConfig:
    ai_provider: str
    ai_model: str
    ai_key: str
    timeout_seconds: float


@dataclass(frozen=True)
class Summarized:
    summary: str
    full_article: str


@dataclass(frozen=True)
class Degraded:
    summary: str
    full_article: str
    reason: str
    note: Optional[str] = DEGRADED_NOTE


@dataclass(frozen=True)
class ExtractionFailed:
    error: str = EXTRACTION_FAILED


SummaryResult = Union[Summarized, Degraded, ExtractionFailed]
Summarizer = Callable[[str, str, SummaryConfig], str]


def _load_config() -> SummaryConfig:
    provider = os.getenv("AI_PROVIDER", "together").strip().lower() or "together"
    timeout = float(os.getenv("SUMMARY_TIMEOUT_SEC", "30"))

    if provider == "openai":
        ai_key = os.getenv("OPENAI_API_KEY", "").strip()
        ai_model = os.getenv("OPENAI_MODEL", "gpt-4o-mini").strip() or "gpt-4o-mini"
    else:
        provider = "together"
        ai_key = (os.getenv("TOGETHER_API_KEY", "") or os.getenv("TOGETHER_API", "")).strip()
        default_model = "meta-llama/Meta-Llama-3.1-8B-Instruct-Turbo"
        ai_model = os.getenv("TOGETHER_MODEL", default_model).strip() or default_model

    return SummaryConfig(
        ai_provider=provider,
        ai_model=ai_model,
        ai_key=ai_key,
        timeout_seconds=max(1.0, timeout),
    )


def _language_name(lang: str) -> str:
    return "English" if lang == "en" else lang


def _error_code(exc: Exception) -> str:
    if isinstance(exc, SummaryConfigError):
        return "NO_KEY"
    if isinstance(exc, SummaryRateLimitError):
        return "RATE_LIMITED"
    text = str(exc)
    match = re.search(r"HTTP\s+(\d{3})", text)
    if match:
        return f"HTTP_{match.group(1)}"
    if "timed out" in text.lower():
        return "TIMEOUT"
    return "UPSTREAM_ERROR"


def call_chat_completion(text: str, lang: str, config: SummaryConfig) -> str:
    if not config.ai_key:
        raise SummaryConfigError("Missing LLM API key for article summarization.")

    body = {
        "model": config.ai_model,
        "messages": [
            {
                "role": "system",
                "content": (
                    "You are a helpful assistant that summarizes news articles. "
                    f"Provide concise summaries under 100 words in {_language_name(lang)} language."
                ),
            },
            {
                "role": "user",
                "content": f"Please summarize this news article in 2-4 lines: {text[:INPUT_CHAR_LIMIT]}",
            },
        ],
        "max_tokens": 200,
        "temperature": 0.5,
        "stream": False,
    }
    request = Request(
        CHAT_COMPLETION_URLS[config.ai_provider],
        data=json.dumps(body).encode("utf-8"),
        method="POST",
        headers={
            "Authorization": f"Bearer {config.ai_key}",
            "Content-Type": "application/json",
        },
    )
    try:
        with urlopen(request, timeout=config.timeout_seconds) as response:
            parsed = json.loads(response.read().decode("utf-8"))
    except HTTPError as exc:
        if exc.code == 429:
            raise SummaryRateLimitError("LLM provider rate limit reached") from exc
        raise SummaryUpstreamError(f"LLM provider HTTP {exc.code}") from exc
    except URLError as exc:
        raise SummaryUpstreamError(f"LLM provider unreachable: {exc}") from exc
    except TimeoutError as exc:
        raise SummaryUpstreamError("LLM provider request timed out") from exc
    except (OSError, HTTPException) as exc:
        raise SummaryUpstreamError(f"LLM provider connection failed: {exc!r}") from exc
    except json.JSONDecodeError as exc:
        raise SummaryUpstreamError("LLM provider returned invalid JSON") from exc

    try:
        content = parsed["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise SummaryUpstreamError("LLM response is missing choices[0].message.content") from exc
    return str(content or "").strip()


def fallback_summary(text: str) -> str:
    if len(text) > FALLBACK_CHAR_LIMIT:
        return text[:FALLBACK_CHAR_LIMIT] + "..."
    return text


def summarize_article(
    url: Optional[str] = None,
    title: str = "",
    summary: str = "",
    lang: str = "en",
    *,
    extractor: Callable[[str], str] = extract_article,
    summarizer: Summarizer = call_chat_completion,
    config: Optional[SummaryConfig] = None,
) -> SummaryResult:
    """Summarize an article by URL, or from its title/summary when no URL is given.

    A failed extraction returns ``ExtractionFailed`` without trying the
    title/summary path so the caller can offer a manual paste instead. LLM
    failures never propagate: the working text itself becomes the summary.
    """
    text = ""
    full_article = ""
    if url:
        try:
            full_article = extractor(url)
        except ExtractionError as exc:
            logger.warning("article_extraction_failed url=%s error=%s", url, exc)
            return ExtractionFailed()
        text = full_article

    if not text:
        text = strip_html(summary or title)
        full_article = text
    if not text:
        return Degraded(summary=NO_SUMMARY, full_article="", reason="NO_CONTENT", note=None)

    config = config or _load_config()
    try:
        result = summarizer(text, lang, config)
    except (SummaryConfigError, SummaryRateLimitError, SummaryUpstreamError) as exc:
        reason = _error_code(exc)
        logger.warning("article_summary_degraded reason=%s error=%s", reason, exc)
        return Degraded(summary=fallback_summary(text), full_article=full_article, reason=reason)
    except Exception as exc:  # pragma: no cover - guard provider/schema drift
        logger.exception("article_summary_unhandled_error")
        return Degraded(summary=fallback_summary(text), full_article=full_article, reason=_error_code(exc))

    if not result:
        logger.warning("article_summary_degraded reason=EMPTY_RESPONSE")
        return Degraded(summary=fallback_summary(text), full_article=full_article, reason="EMPTY_RESPONSE")

    logger.info("article_summary_success provider=%s model=%s", config.ai_provider, config.ai_model)
    return Summarized(summary=result, full_article=full_article)


__all__ = [
    "Degraded",
    "ExtractionFailed",
    "Summarized",
    "SummaryConfig",
    "call_chat_completion",
    "fallback_summary",
    "summarize_article",
]
