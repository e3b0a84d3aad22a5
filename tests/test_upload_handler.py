"""
Tests for src/personalizer_api/services/upload_handler.py

Coverage
--------
- UploadHandler.validate  (allow-list, size limit, empty/missing)
- UploadHandler.store  (generated name, storage call)
"""

import asyncio

import pytest

from personalizer_api.exceptions import UploadRejected
from personalizer_api.services.page_storage import LocalPageStorage
from personalizer_api.services.upload_handler import UploadHandler


class TestUploadHandler:
    def _handler(self, tmp_path, max_bytes=1024):
        return UploadHandler(LocalPageStorage(tmp_path), max_bytes=max_bytes)

    def test_accepts_png(self, tmp_path):
        assert self._handler(tmp_path).validate("Logo.PNG", "image/png", 10) == ".png"

    def test_jpeg_normalized(self, tmp_path):
        assert self._handler(tmp_path).validate("a.jpeg", "image/jpeg", 10) == ".jpg"

    @pytest.mark.parametrize(
        "filename,content_type",
        [("notes.txt", "text/plain"), ("logo.png", "text/html"), ("logo.exe", "image/png")],
    )
    def test_rejects_non_images(self, tmp_path, filename, content_type):
        with pytest.raises(UploadRejected):
            self._handler(tmp_path).validate(filename, content_type, 10)

    def test_rejects_large_file(self, tmp_path):
        with pytest.raises(UploadRejected, match="límite"):
            self._handler(tmp_path, max_bytes=100).validate("a.png", "image/png", 101)

    def test_rejects_empty_and_missing(self, tmp_path):
        handler = self._handler(tmp_path)
        with pytest.raises(UploadRejected):
            handler.validate("a.png", "image/png", 0)
        with pytest.raises(UploadRejected):
            handler.validate(None, "image/png", 10)

    def test_store_writes_file(self, tmp_path):
        result = asyncio.run(self._handler(tmp_path).store("brand.png", "image/png", b"PNGDATA", "logo"))
        assert result.filename.startswith("logo-")
        assert result.filename.endswith(".png")
        assert result.url == f"/uploads/{result.filename}"
        assert (tmp_path / "uploads" / result.filename).read_bytes() == b"PNGDATA"
