"""Client-side preview renderer.

``render()`` classifies a document URL once and builds a ``PreviewView``:
the strategy-specific content plus the fixed-height, look-only frame and its
masked overlay. Only the text strategy downloads the file itself.
"""

import enum
import logging
from dataclasses import dataclass, field, replace

from docmarket.client.api import ApiClient, ApiError
from docmarket.preview import (
    DEFAULT_OVERLAY,
    ERROR_MESSAGE,
    FRAME_HEIGHT_PX,
    PLACEHOLDER_MESSAGE,
    Overlay,
    PreviewStrategy,
    classify,
    file_extension,
    truncate_text,
)

logger = logging.getLogger("docmarket.client")

MOCKUP_SLIDES = ("Title slide", "Overview", "Key points")


class ViewState(enum.Enum):
    READY = "ready"
    PLACEHOLDER = "placeholder"
    ERROR = "error"


@dataclass(frozen=True)
class PreviewView:
    strategy: PreviewStrategy
    source_url: str
    format: str
    state: ViewState
    text: str | None = None
    slides: tuple[str, ...] = ()
    message: str | None = None
    frame_height: int = FRAME_HEIGHT_PX
    interactive: bool = False
    overlay: Overlay = field(default=DEFAULT_OVERLAY)


class PreviewRenderer:
    """Builds preview views, fetching content through ``api`` when needed."""

    def __init__(self, api: ApiClient) -> None:
        self.api = api

    def render(self, document_url: str) -> PreviewView:
        strategy = classify(document_url)
        view = PreviewView(
            strategy=strategy,
            source_url=document_url,
            format=file_extension(document_url).upper(),
            state=ViewState.READY,
        )

        if strategy is PreviewStrategy.UNSUPPORTED:
            return replace(view, state=ViewState.PLACEHOLDER, message=PLACEHOLDER_MESSAGE)
        if strategy is PreviewStrategy.TEXT:
            return self._render_text(view)
        if strategy is PreviewStrategy.SLIDE_MOCKUP:
            # Slides are never rendered from the file
            return replace(view, slides=MOCKUP_SLIDES)
        if strategy in (PreviewStrategy.PDF, PreviewStrategy.SPREADSHEET, PreviewStrategy.IMAGE):
            return view
        raise ValueError(f"Unhandled preview strategy: {strategy}")

    def _render_text(self, view: PreviewView) -> PreviewView:
        try:
            text = self.api.fetch_text(view.source_url)
        except ApiError as exc:
            return self.fail(view, exc.message)
        return replace(view, text=truncate_text(text))

    def fail(self, view: PreviewView, reason: str) -> PreviewView:
        """Move a view to the error state, e.g. when a viewer cannot draw the file."""
        logger.error("Preview of %s failed: %s", view.source_url, reason)
        return replace(view, state=ViewState.ERROR, text=None, message=ERROR_MESSAGE)
