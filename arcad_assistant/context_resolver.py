"""Fetch page text used as grounding context for streamed answers."""

from __future__ import annotations

import logging
import re
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

import requests
from bs4 import BeautifulSoup

from .constants import FALLBACK_CONTEXT_URL, FETCH_TIMEOUT_SEC, MIN_CONTEXT_LENGTH
from .content_cache import ContentCache
from .errors import CancellationError, NetworkError, to_assistant_error
from .sinks import OutputSink

logger = logging.getLogger("arcad.context")

PRIMARY_SELECTORS = ("main",)
FALLBACK_SELECTORS = ("article", "div.markdown-body", "main")
CHUNK_SIZE = 16 * 1024
USER_AGENT = "arcad-assistant/0.1 (+https://www.arcadsoftware.com)"


@dataclass(frozen=True)
class ContextResult:
    """Page text plus the URL it actually came from."""
    text: str
    source_url: str


def extract_text(html: str, selectors: Sequence[str]) -> str:
    """Purpose: Extract the text of the first matching content region.
    Inputs/Outputs: Inputs are raw HTML and CSS selectors in priority order; output is
        whitespace-collapsed text (falls back to <body>, then the whole document).
    Side Effects / State: None.
    Dependencies: BeautifulSoup with the stdlib html.parser.
    Failure Modes: Returns "" for empty or text-free documents.
    If Removed: Prompts would be built from raw HTML markup.
    Testing Notes: A page with <main> returns only the main text.
    """
    # Scripts and styles never carry answerable content.
    soup = BeautifulSoup(html or "", "html.parser")
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()
    region = None
    for selector in selectors:
        region = soup.select_one(selector)
        if region is not None:
            break
    if region is None:
        region = soup.body or soup
    return re.sub(r"\s+", " ", region.get_text(" ")).strip()


class ContextResolver:
    """Fetch page text with a short-content fallback and an owned cache."""

    def __init__(
        self,
        cache: Optional[ContentCache] = None,
        session: Optional[requests.Session] = None,
        timeout: float = FETCH_TIMEOUT_SEC,
        min_length: int = MIN_CONTEXT_LENGTH,
        fallback_url: str = FALLBACK_CONTEXT_URL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._cache = cache if cache is not None else ContentCache()
        self._session = session or requests.Session()
        self._timeout = timeout
        self._min_length = min_length
        self._fallback_url = fallback_url
        self._clock = clock

    def get_context(
        self,
        url: str,
        cancel_event: Optional[threading.Event] = None,
        sink: Optional[OutputSink] = None,
    ) -> ContextResult:
        """Purpose: Resolve grounding text for a URL, falling back when it is too short.
        Inputs/Outputs: Inputs are the target URL, the request cancel event, and an
            optional sink for notes; output is a ContextResult.
        Side Effects / State: HTTP GETs; populates the content cache; may emit an
            informational status on the sink.
        Dependencies: Uses _fetch_text, extract_text, and ContentCache.
        Failure Modes: NetworkError on connection failure, HTTP error, or timeout;
            CancellationError when the cancel event fires mid-fetch.
        If Removed: The LLM path has no grounding context.
        Testing Notes: Short primary text must return the fallback URL as source.
        """
        # Primary page first; fallback only when the main region is too thin.
        text = self._fetch_text(url, PRIMARY_SELECTORS, cancel_event)
        if len(text) >= self._min_length:
            return ContextResult(text=text, source_url=url)

        logger.info(
            "context too short url=%s length=%d min=%d; using fallback=%s",
            url,
            len(text),
            self._min_length,
            self._fallback_url,
        )
        if sink is not None:
            sink.status_changed(True, "Limited information on that page, checking ARCAD's GitHub for more context...")
        fallback_text = self._fetch_text(self._fallback_url, FALLBACK_SELECTORS, cancel_event)
        return ContextResult(text=fallback_text, source_url=self._fallback_url)

    def _fetch_text(self, url: str, selectors: Sequence[str], cancel_event: Optional[threading.Event]) -> str:
        cache_key = f"{url}#{','.join(selectors)}"
        cached = self._cache.get(cache_key)
        if cached is not None:
            logger.debug("context cache hit url=%s", url)
            return cached

        html = self._download(url, cancel_event)
        text = extract_text(html, selectors)
        self._cache.set(cache_key, text)
        logger.info("context fetched url=%s length=%d", url, len(text))
        return text

    def _download(self, url: str, cancel_event: Optional[threading.Event]) -> str:
        _raise_if_cancelled(cancel_event)
        # requests applies the timeout per socket read; this bounds the whole body.
        deadline = self._clock() + self._timeout
        try:
            response = self._session.get(
                url,
                timeout=self._timeout,
                stream=True,
                headers={"User-Agent": USER_AGENT},
            )
        except requests.RequestException as exc:
            logger.warning("context fetch failed url=%s error=%s", url, exc)
            raise to_assistant_error(exc) from exc

        try:
            response.raise_for_status()
            chunks = []
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                _raise_if_cancelled(cancel_event)
                if self._clock() > deadline:
                    logger.warning("context fetch exceeded %.1fs url=%s", self._timeout, url)
                    raise NetworkError("Timed out fetching context", code="TIMEOUT")
                if chunk:
                    chunks.append(chunk)
            encoding = response.encoding or "utf-8"
            return b"".join(chunks).decode(encoding, errors="replace")
        except requests.RequestException as exc:
            logger.warning("context fetch failed url=%s error=%s", url, exc)
            raise to_assistant_error(exc) from exc
        finally:
            response.close()


def _raise_if_cancelled(cancel_event: Optional[threading.Event]) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise CancellationError()
