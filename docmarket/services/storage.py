"""Upload storage: validation, streaming to disk and removal of uploaded files."""

import logging
import os
import uuid
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from fastapi import UploadFile
from sqlalchemy.orm import Session

from docmarket.config import get_settings
from docmarket.errors import PayloadTooLarge, UnsupportedMediaType

logger = logging.getLogger("docmarket")

PUBLIC_PREFIX = "/uploads"
CHUNK_SIZE = 1024 * 64  # 64KB chunks

IMAGE_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".gif", ".webp"})
IMAGE_MIME_TYPES = frozenset({"image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp"})

DOCUMENT_EXTENSIONS = frozenset(
    {
        ".pdf",
        ".doc",
        ".docx",
        ".xls",
        ".xlsx",
        ".csv",
        ".ppt",
        ".pptx",
        ".txt",
        ".rtf",
        ".odt",
        ".ods",
        ".odp",
        ".jpg",
        ".jpeg",
        ".png",
        ".gif",
    }
)
DOCUMENT_MIME_TYPES = frozenset(
    {
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/vnd.ms-excel",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "application/vnd.ms-powerpoint",
        "application/vnd.openxmlformats-officedocument.presentationml.presentation",
        "application/vnd.oasis.opendocument.text",
        "application/vnd.oasis.opendocument.spreadsheet",
        "application/vnd.oasis.opendocument.presentation",
        "application/rtf",
        "text/rtf",
        "text/plain",
        "text/csv",
        "image/jpeg",
        "image/png",
        "image/gif",
        # Browsers fall back to this for csv/rtf on some platforms
        "application/octet-stream",
    }
)

MB = 1024 * 1024


@dataclass(frozen=True)
class UploadPolicy:
    """Allow-list and size ceiling for one upload field."""

    field: str
    kind: str
    extensions: frozenset[str]
    mime_types: frozenset[str]
    max_bytes: int


IMAGE_POLICY = UploadPolicy("image", "images", IMAGE_EXTENSIONS, IMAGE_MIME_TYPES, 5 * MB)
THUMBNAIL_POLICY = UploadPolicy("thumbnail", "thumbnails", IMAGE_EXTENSIONS, IMAGE_MIME_TYPES, 5 * MB)
DOCUMENT_POLICY = UploadPolicy("document", "documents", DOCUMENT_EXTENSIONS, DOCUMENT_MIME_TYPES, 25 * MB)


@dataclass
class StoredFile:
    """A file written to the upload directory."""

    public_path: str
    disk_path: Path
    size: int
    original_filename: str


def has_upload(upload: UploadFile | None) -> bool:
    """Multipart forms send an empty part for file inputs left blank."""
    return upload is not None and bool(upload.filename)


class UploadStorage:
    """Stores uploads under ``UPLOAD_DIR/<kind>/`` and serves them as ``/uploads/<kind>/<name>``."""

    def __init__(self, root: str | Path | None = None) -> None:
        self.root = Path(root or get_settings().UPLOAD_DIR)

    def ensure_directories(self) -> None:
        for policy in (IMAGE_POLICY, THUMBNAIL_POLICY, DOCUMENT_POLICY):
            (self.root / policy.kind).mkdir(parents=True, exist_ok=True)

    def validate(self, upload: UploadFile, policy: UploadPolicy) -> None:
        """Check extension and MIME type against the field's allow-list."""
        ext = Path(upload.filename or "").suffix.lower()
        if ext not in policy.extensions:
            allowed = ", ".join(sorted(policy.extensions))
            raise UnsupportedMediaType(f"Unsupported {policy.field} file type '{ext}'. Allowed: {allowed}")

        content_type = (upload.content_type or "").split(";")[0].strip().lower()
        if content_type and content_type not in policy.mime_types:
            raise UnsupportedMediaType(f"Invalid content type '{content_type}' for {policy.field}")

    async def store(self, upload: UploadFile, policy: UploadPolicy) -> StoredFile:
        """Stream an upload to disk, enforcing the field's size ceiling.

        Raises PayloadTooLarge when the ceiling is exceeded. The partial file
        is removed whenever the write does not complete.
        """
        self.validate(upload, policy)

        ext = Path(upload.filename or "").suffix.lower()
        stored_name = f"{uuid.uuid4()}{ext}"
        target_dir = self.root / policy.kind
        target_dir.mkdir(parents=True, exist_ok=True)
        file_path = target_dir / stored_name
        file_size = 0

        try:
            with open(file_path, "wb") as f:
                while True:
                    chunk = await upload.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    file_size += len(chunk)
                    if file_size > policy.max_bytes:
                        raise PayloadTooLarge(
                            f"File too large for {policy.field}. Maximum size is {policy.max_bytes // MB}MB."
                        )
                    f.write(chunk)
        except Exception:
            if file_path.exists():
                os.remove(file_path)
            raise

        return StoredFile(
            public_path=f"{PUBLIC_PREFIX}/{policy.kind}/{stored_name}",
            disk_path=file_path,
            size=file_size,
            original_filename=upload.filename or stored_name,
        )

    async def store_all(self, uploads: Iterable[tuple[UploadFile | None, UploadPolicy]]) -> dict[str, StoredFile]:
        """Store several fields of one request. All or nothing.

        Every present upload is validated before any byte is written; if a
        later file is rejected, files already written are removed.
        """
        present = [(upload, policy) for upload, policy in uploads if has_upload(upload)]
        for upload, policy in present:
            self.validate(upload, policy)

        stored: dict[str, StoredFile] = {}
        try:
            for upload, policy in present:
                stored[policy.field] = await self.store(upload, policy)
        except Exception:
            self.discard(stored.values())
            raise
        return stored

    def resolve(self, public_path: str | None) -> Path | None:
        """Map a ``/uploads/...`` reference to a path inside the upload root."""
        if not public_path or not public_path.startswith(PUBLIC_PREFIX + "/"):
            return None
        relative = public_path[len(PUBLIC_PREFIX) + 1 :]
        root = self.root.resolve()
        candidate = (root / relative).resolve()
        if root not in candidate.parents:
            return None
        return candidate

    def remove(self, public_path: str | None) -> bool:
        """Delete a stored file. Missing files are logged, not raised."""
        if not public_path:
            return False
        path = self.resolve(public_path)
        if path is None or not path.exists():
            logger.warning("Upload already absent, nothing to remove: %s", public_path)
            return False
        try:
            os.remove(path)
        except OSError:
            logger.exception("Failed to remove upload %s", public_path)
            return False
        return True

    def discard(self, stored: Iterable[StoredFile]) -> None:
        """Remove files written for a request that did not complete."""
        for item in stored:
            if item.disk_path.exists():
                os.remove(item.disk_path)

    @contextmanager
    def cleanup_on_error(self, stored: dict[str, StoredFile]) -> Iterator[None]:
        """Remove ``stored`` files if the enclosed block raises."""
        try:
            yield
        except Exception:
            self.discard(stored.values())
            raise

    def commit_replacing(self, db: Session, stored: dict[str, StoredFile], previous: Iterable[str | None]) -> None:
        """Commit a row that now references ``stored``, then delete ``previous`` files.

        New files are already on disk when this runs. If the commit fails the
        new files are removed and the old references stay valid.
        """
        try:
            db.commit()
        except Exception:
            db.rollback()
            self.discard(stored.values())
            raise
        for public_path in previous:
            if public_path:
                self.remove(public_path)


_upload_storage: UploadStorage | None = None


def get_upload_storage() -> UploadStorage:
    """Get singleton upload storage instance."""
    global _upload_storage
    if _upload_storage is None:
        _upload_storage = UploadStorage()
    return _upload_storage
