"""Tests for upload storage."""

import asyncio
from pathlib import Path

import pytest

from docmarket.errors import PayloadTooLarge
from docmarket.services.storage import CHUNK_SIZE, DOCUMENT_POLICY, IMAGE_POLICY, UploadStorage


class FakeUpload:
    """Upload that yields ``chunks`` and then raises ``error``, like a dropped connection."""

    def __init__(self, filename: str, content_type: str, chunks: list[bytes], error: Exception | None = None):
        self.filename = filename
        self.content_type = content_type
        self._chunks = list(chunks)
        self._error = error

    async def read(self, size: int = -1) -> bytes:
        if self._chunks:
            return self._chunks.pop(0)
        if self._error:
            raise self._error
        return b""


class TestStore:
    """Streaming uploads to disk."""

    def test_store_writes_file(self, tmp_path: Path):
        storage = UploadStorage(tmp_path)
        upload = FakeUpload("report.PDF", "application/pdf", [b"%PDF", b"-1.4"])

        stored = asyncio.run(storage.store(upload, DOCUMENT_POLICY))

        assert stored.public_path.startswith("/uploads/documents/")
        assert stored.public_path.endswith(".pdf")
        assert stored.disk_path.read_bytes() == b"%PDF-1.4"
        assert stored.size == 8
        assert storage.resolve(stored.public_path) == stored.disk_path.resolve()

    def test_interrupted_stream_leaves_no_file(self, tmp_path: Path):
        storage = UploadStorage(tmp_path)
        upload = FakeUpload("report.pdf", "application/pdf", [b"0" * CHUNK_SIZE], error=OSError("connection reset"))

        with pytest.raises(OSError):
            asyncio.run(storage.store(upload, DOCUMENT_POLICY))

        assert list((tmp_path / "documents").iterdir()) == []

    def test_oversized_upload_leaves_no_file(self, tmp_path: Path):
        storage = UploadStorage(tmp_path)
        chunks = [b"\x00" * CHUNK_SIZE] * (IMAGE_POLICY.max_bytes // CHUNK_SIZE + 1)
        upload = FakeUpload("big.png", "image/png", chunks)

        with pytest.raises(PayloadTooLarge):
            asyncio.run(storage.store(upload, IMAGE_POLICY))

        assert list((tmp_path / "images").iterdir()) == []

    def test_store_all_discards_earlier_files_on_failure(self, tmp_path: Path):
        storage = UploadStorage(tmp_path)
        document = FakeUpload("a.pdf", "application/pdf", [b"%PDF"])
        thumbnail = FakeUpload("cover.png", "image/png", [b"\x89PNG"], error=OSError("connection reset"))

        with pytest.raises(OSError):
            asyncio.run(storage.store_all([(document, DOCUMENT_POLICY), (thumbnail, IMAGE_POLICY)]))

        assert list((tmp_path / "documents").iterdir()) == []
        assert list((tmp_path / "images").iterdir()) == []


class TestResolve:
    """Mapping public paths back onto the upload root."""

    def test_rejects_paths_outside_root(self, tmp_path: Path):
        storage = UploadStorage(tmp_path)
        assert storage.resolve("/uploads/../secrets.txt") is None
        assert storage.resolve("/static/documents/a.pdf") is None
        assert storage.resolve(None) is None

    def test_remove_missing_file_is_not_an_error(self, tmp_path: Path):
        storage = UploadStorage(tmp_path)
        assert storage.remove("/uploads/documents/missing.pdf") is False
