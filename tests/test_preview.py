"""Tests for preview classification and the client-side renderer."""

import httpx
import pytest

from docmarket.client.api import ApiClient
from docmarket.client.preview import MOCKUP_SLIDES, PreviewRenderer, ViewState
from docmarket.preview import (
    DEFAULT_OVERLAY,
    ERROR_MESSAGE,
    PLACEHOLDER_MESSAGE,
    PreviewStrategy,
    classify,
    file_extension,
    needs_content_fetch,
    truncate_text,
)


@pytest.mark.parametrize(
    ("location", "strategy"),
    [
        ("/uploads/documents/a.pdf", PreviewStrategy.PDF),
        ("/uploads/documents/a.docx", PreviewStrategy.PDF),
        ("report.XLSX", PreviewStrategy.SPREADSHEET),
        ("data.csv", PreviewStrategy.SPREADSHEET),
        ("legacy.xls", PreviewStrategy.SPREADSHEET),
        ("deck.pptx", PreviewStrategy.SLIDE_MOCKUP),
        ("deck.ppt", PreviewStrategy.SLIDE_MOCKUP),
        ("notes.txt", PreviewStrategy.TEXT),
        ("letter.rtf", PreviewStrategy.TEXT),
        ("photo.jpeg", PreviewStrategy.IMAGE),
        ("photo.gif", PreviewStrategy.IMAGE),
        ("old.doc", PreviewStrategy.UNSUPPORTED),
        ("sheet.ods", PreviewStrategy.UNSUPPORTED),
        ("README", PreviewStrategy.UNSUPPORTED),
    ],
)
def test_classify(location: str, strategy: PreviewStrategy):
    assert classify(location) is strategy


def test_extension_ignores_query_string():
    assert file_extension("https://cdn.example.com/files/a.PDF?v=2") == "pdf"
    assert classify("https://cdn.example.com/files/a.txt?download=1") is PreviewStrategy.TEXT


def test_only_text_needs_content_fetch():
    assert [s for s in PreviewStrategy if needs_content_fetch(s)] == [PreviewStrategy.TEXT]


def test_truncate_text():
    assert truncate_text("a" * 5000) == "a" * 5000
    assert truncate_text("a" * 5001) == "a" * 5000 + "..."
    assert truncate_text("short") == "short"


def test_overlay_covers_lower_half():
    assert DEFAULT_OVERLAY.offset_px(600) == 300
    assert DEFAULT_OVERLAY.to_dict()["coverage"] == 0.5


def make_renderer(handler) -> tuple[PreviewRenderer, list[httpx.Request]]:
    requests: list[httpx.Request] = []

    def recording_handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(request)

    http = httpx.Client(base_url="http://testserver", transport=httpx.MockTransport(recording_handler))
    return PreviewRenderer(ApiClient(http=http)), requests


class TestRenderer:
    """PreviewRenderer builds views and only fetches text files."""

    def test_unsupported_shows_placeholder_without_fetching(self):
        renderer, requests = make_renderer(lambda request: httpx.Response(200, text="unused"))
        view = renderer.render("/uploads/documents/old.doc")
        assert view.state is ViewState.PLACEHOLDER
        assert view.message == PLACEHOLDER_MESSAGE
        assert view.format == "DOC"
        assert requests == []

    @pytest.mark.parametrize("url", ["/uploads/a.pdf", "/uploads/a.xlsx", "/uploads/a.png"])
    def test_viewer_strategies_do_not_fetch(self, url: str):
        renderer, requests = make_renderer(lambda request: httpx.Response(200, text="unused"))
        view = renderer.render(url)
        assert view.state is ViewState.READY
        assert view.text is None
        assert requests == []

    def test_slides_are_mocked(self):
        renderer, requests = make_renderer(lambda request: httpx.Response(200))
        view = renderer.render("/uploads/deck.pptx")
        assert view.strategy is PreviewStrategy.SLIDE_MOCKUP
        assert view.slides == MOCKUP_SLIDES
        assert requests == []

    def test_text_is_fetched_and_truncated(self):
        renderer, requests = make_renderer(lambda request: httpx.Response(200, text="b" * 6000))
        view = renderer.render("/uploads/documents/long.txt")
        assert view.state is ViewState.READY
        assert view.text == "b" * 5000 + "..."
        assert [r.url.path for r in requests] == ["/uploads/documents/long.txt"]

    def test_every_view_is_look_only_with_overlay(self):
        renderer, _ = make_renderer(lambda request: httpx.Response(200, text="x"))
        for url in ("/a.pdf", "/a.csv", "/a.txt", "/a.jpg", "/a.ppt", "/a.odt"):
            view = renderer.render(url)
            assert view.interactive is False
            assert view.frame_height == 600
            assert view.overlay == DEFAULT_OVERLAY

    def test_failed_text_fetch_is_error_state(self):
        renderer, _ = make_renderer(lambda request: httpx.Response(404, text="missing"))
        view = renderer.render("/uploads/documents/gone.txt")
        assert view.state is ViewState.ERROR
        assert view.message == ERROR_MESSAGE
        assert view.text is None

    def test_network_failure_is_error_state(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        renderer, _ = make_renderer(handler)
        view = renderer.render("/uploads/documents/notes.txt")
        assert view.state is ViewState.ERROR

    def test_viewer_failure_moves_to_error(self):
        renderer, _ = make_renderer(lambda request: httpx.Response(200))
        view = renderer.fail(renderer.render("/uploads/a.pdf"), "viewer crashed")
        assert view.state is ViewState.ERROR
        assert view.message == ERROR_MESSAGE
        assert view.strategy is PreviewStrategy.PDF
