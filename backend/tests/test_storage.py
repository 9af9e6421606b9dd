"""Tests for upload validation and the local storage provider."""

import base64
from uuid import uuid4

import pytest

from app.services.storage import (
    FileTooLargeError,
    InvalidFileDataError,
    LocalStorageProvider,
    StorageService,
    UnsupportedFileTypeError,
    decode_base64_payload,
)

PDF_BYTES = b"%PDF-1.4 fake invoice"


@pytest.fixture
def storage(tmp_path):
    return StorageService(LocalStorageProvider(str(tmp_path)), max_size_bytes=1024)


class TestBase64:

    def test_plain_payload(self):
        assert decode_base64_payload(base64.b64encode(PDF_BYTES).decode()) == PDF_BYTES

    def test_data_url_prefix_stripped(self):
        payload = "data:application/pdf;base64," + base64.b64encode(PDF_BYTES).decode()
        assert decode_base64_payload(payload) == PDF_BYTES

    def test_invalid_payload(self):
        with pytest.raises(InvalidFileDataError):
            decode_base64_payload("not base64 at all!")


class TestValidation:

    def test_allowed_type(self, storage):
        storage.validate_upload("application/pdf", 10)

    def test_unsupported_type(self, storage):
        with pytest.raises(UnsupportedFileTypeError):
            storage.validate_upload("application/x-msdownload", 10)

    def test_too_large(self, storage):
        with pytest.raises(FileTooLargeError):
            storage.validate_upload("image/png", 1025)

    def test_object_path_drops_directories(self, storage):
        project_id, document_id = uuid4(), uuid4()
        path = storage.generate_object_path(project_id, document_id, "../../etc/passwd")
        assert path == f"projects/{project_id}/documents/{document_id}/passwd"


class TestLocalProvider:

    async def test_upload_download_delete(self, storage):
        payload = base64.b64encode(PDF_BYTES).decode()
        path, size = await storage.upload_document(uuid4(), uuid4(), "invoice.pdf", "application/pdf", payload)

        assert size == len(PDF_BYTES)
        assert await storage.download(path) == PDF_BYTES
        assert await storage.delete(path) is True
        with pytest.raises(FileNotFoundError):
            await storage.download(path)

    async def test_delete_missing_is_false(self, storage):
        assert await storage.delete("projects/nothing/here.pdf") is False

    async def test_path_escape_rejected(self, tmp_path):
        provider = LocalStorageProvider(str(tmp_path / "root"))
        with pytest.raises(ValueError):
            await provider.put_object("../outside.txt", b"x", "text/plain")

    async def test_oversized_upload_not_written(self, storage, tmp_path):
        payload = base64.b64encode(b"x" * 2048).decode()
        with pytest.raises(FileTooLargeError):
            await storage.upload_document(uuid4(), uuid4(), "big.png", "image/png", payload)
        assert not any(tmp_path.rglob("big.png"))
