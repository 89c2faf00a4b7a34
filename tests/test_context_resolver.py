import threading

import pytest
import requests

from arcad_assistant.constants import GITHUB_URL, PRODUCTS_URL
from arcad_assistant.content_cache import ContentCache
from arcad_assistant.context_resolver import ContextResolver, extract_text
from arcad_assistant.errors import CancellationError, NetworkError
from arcad_assistant.models import STATUS_CHANGED
from arcad_assistant.sinks import CollectingSink

LONG_TEXT = "ARCAD Software delivers DevOps for IBM i. " * 10


def page(main_text: str) -> str:
    return (
        "<html><head><script>var tracking = 1;</script></head>"
        f"<body><nav>Menu Home Contact</nav><main><p>{main_text}</p></main></body></html>"
    )


class FakeResponse:
    def __init__(self, html: str, status_code: int = 200) -> None:
        self._body = html.encode("utf-8")
        self.status_code = status_code
        self.encoding = "utf-8"
        self.closed = False

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error", response=self)

    def iter_content(self, chunk_size=1):
        for start in range(0, len(self._body), 64):
            yield self._body[start:start + 64]

    def close(self) -> None:
        self.closed = True


class FakeSession:
    def __init__(self, pages: dict) -> None:
        self.pages = pages
        self.calls = []

    def get(self, url, timeout=None, stream=False, headers=None):
        self.calls.append({"url": url, "timeout": timeout, "stream": stream})
        result = self.pages[url]
        if isinstance(result, BaseException):
            raise result
        return result


def test_extract_text_prefers_main_region():
    text = extract_text(page("Hello   from\n main"), ["main"])
    assert text == "Hello from main"


def test_extract_text_falls_back_to_body():
    text = extract_text("<html><body><div>Only body</div><style>p{}</style></body></html>", ["article"])
    assert text == "Only body"


def test_primary_page_is_used_and_cached():
    response = FakeResponse(page(LONG_TEXT))
    session = FakeSession({PRODUCTS_URL: response})
    resolver = ContextResolver(cache=ContentCache(), session=session, timeout=10.0)

    first = resolver.get_context(PRODUCTS_URL)
    second = resolver.get_context(PRODUCTS_URL)

    assert first.source_url == PRODUCTS_URL
    assert first.text == LONG_TEXT.strip()
    assert second == first
    assert len(session.calls) == 1
    assert session.calls[0]["timeout"] == 10.0
    assert session.calls[0]["stream"] is True
    assert response.closed


def test_short_page_switches_to_fallback():
    session = FakeSession(
        {
            PRODUCTS_URL: FakeResponse(page("Too short")),
            GITHUB_URL: FakeResponse(f"<html><body><article>{LONG_TEXT}</article></body></html>"),
        }
    )
    sink = CollectingSink()
    resolver = ContextResolver(session=session)

    result = resolver.get_context(PRODUCTS_URL, sink=sink)

    assert result.source_url == GITHUB_URL
    assert "DevOps for IBM i" in result.text
    assert [call["url"] for call in session.calls] == [PRODUCTS_URL, GITHUB_URL]
    assert len(sink.of_type(STATUS_CHANGED)) == 1


def test_timeout_maps_to_network_error():
    session = FakeSession({PRODUCTS_URL: requests.Timeout("read timed out")})
    resolver = ContextResolver(session=session)

    with pytest.raises(NetworkError) as excinfo:
        resolver.get_context(PRODUCTS_URL)
    assert excinfo.value.code == "TIMEOUT"


def test_http_error_maps_to_network_error():
    response = FakeResponse("boom", status_code=500)
    resolver = ContextResolver(session=FakeSession({PRODUCTS_URL: response}))

    with pytest.raises(NetworkError):
        resolver.get_context(PRODUCTS_URL)
    assert response.closed


def test_cancelled_request_never_fetches():
    session = FakeSession({PRODUCTS_URL: FakeResponse(page(LONG_TEXT))})
    cancel_event = threading.Event()
    cancel_event.set()

    with pytest.raises(CancellationError):
        ContextResolver(session=session).get_context(PRODUCTS_URL, cancel_event)
    assert session.calls == []


def test_cancel_during_download_closes_response():
    cancel_event = threading.Event()

    class CancellingResponse(FakeResponse):
        def iter_content(self, chunk_size=1):
            for index, chunk in enumerate(super().iter_content(chunk_size)):
                if index == 1:
                    cancel_event.set()
                yield chunk

    response = CancellingResponse(page(LONG_TEXT))
    resolver = ContextResolver(session=FakeSession({PRODUCTS_URL: response}))

    with pytest.raises(CancellationError):
        resolver.get_context(PRODUCTS_URL, cancel_event)
    assert response.closed


def test_slow_body_hits_overall_deadline():
    ticks = iter(range(0, 1000, 4))
    response = FakeResponse(page(LONG_TEXT))
    resolver = ContextResolver(
        session=FakeSession({PRODUCTS_URL: response}),
        timeout=10.0,
        clock=lambda: float(next(ticks)),
    )

    with pytest.raises(NetworkError) as excinfo:
        resolver.get_context(PRODUCTS_URL)
    assert excinfo.value.code == "TIMEOUT"
    assert response.closed
