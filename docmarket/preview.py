"""Preview classification shared by the API server and the client renderer.

A document's preview strategy depends only on its file extension. The
strategy decides how a viewer renders the file; every strategy is shown in a
fixed-height, look-only frame whose lower half is covered by a masked
overlay. The overlay is visual only: the underlying file is served unmodified.
"""

import enum
from dataclasses import asdict, dataclass
from pathlib import PurePosixPath
from urllib.parse import urlsplit

TEXT_PREVIEW_LIMIT = 5000
TRUNCATION_MARKER = "..."

FRAME_HEIGHT_PX = 600
OVERLAY_COVERAGE = 0.5
OVERLAY_MESSAGE = "Contact us for the full document"
ERROR_MESSAGE = "This preview could not be loaded. Please contact us to receive the document."
PLACEHOLDER_MESSAGE = "Preview is not available for this format. Contact us for the full document."


class PreviewStrategy(enum.Enum):
    PDF = "pdf"
    SPREADSHEET = "spreadsheet"
    TEXT = "text"
    IMAGE = "image"
    SLIDE_MOCKUP = "slide_mockup"
    UNSUPPORTED = "unsupported"


_STRATEGY_BY_EXTENSION = {
    "pdf": PreviewStrategy.PDF,
    "docx": PreviewStrategy.PDF,
    "xlsx": PreviewStrategy.SPREADSHEET,
    "xls": PreviewStrategy.SPREADSHEET,
    "csv": PreviewStrategy.SPREADSHEET,
    "pptx": PreviewStrategy.SLIDE_MOCKUP,
    "ppt": PreviewStrategy.SLIDE_MOCKUP,
    "txt": PreviewStrategy.TEXT,
    "rtf": PreviewStrategy.TEXT,
    "jpg": PreviewStrategy.IMAGE,
    "jpeg": PreviewStrategy.IMAGE,
    "png": PreviewStrategy.IMAGE,
    "gif": PreviewStrategy.IMAGE,
}


def file_extension(location: str) -> str:
    """Lower-cased extension of a filename, path or URL, without the dot."""
    path = urlsplit(location).path or location
    return PurePosixPath(path).suffix.lstrip(".").lower()


def classify(location: str) -> PreviewStrategy:
    """Pick the preview strategy for a filename, path or URL.

    doc/odt/ods/odp and unknown extensions are ``UNSUPPORTED``.
    """
    return _STRATEGY_BY_EXTENSION.get(file_extension(location), PreviewStrategy.UNSUPPORTED)


def needs_content_fetch(strategy: PreviewStrategy) -> bool:
    """Whether the renderer must download the file itself to build the view."""
    return strategy is PreviewStrategy.TEXT


def truncate_text(text: str, limit: int = TEXT_PREVIEW_LIMIT) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + TRUNCATION_MARKER


@dataclass(frozen=True)
class Overlay:
    """Geometry and copy of the masked panel drawn over the lower part of the frame."""

    coverage: float = OVERLAY_COVERAGE
    gradient: str = "to-top"
    message: str = OVERLAY_MESSAGE
    call_to_action: str = "Contact us"

    def offset_px(self, frame_height: int = FRAME_HEIGHT_PX) -> int:
        """Distance from the top of the frame to where the overlay starts."""
        return int(frame_height * (1 - self.coverage))

    def to_dict(self) -> dict:
        return asdict(self)


DEFAULT_OVERLAY = Overlay()
