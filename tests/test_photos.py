from __future__ import annotations

import io
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from PIL import Image

from dotlife.photos import THUMBNAIL_SIZE, PhotoStorage
from dotlife.repository import PhotoStorageFailedError


def _png_bytes(size: tuple[int, int]) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGBA", size, (10, 120, 200, 255)).save(buffer, format="PNG")
    return buffer.getvalue()


class PhotoStorageTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp_dir = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp_dir.cleanup)
        base = Path(self._tmp_dir.name)
        self.storage = PhotoStorage(base / "photos", base / "thumbnails")

    def test_store_writes_photo_and_thumbnail(self) -> None:
        data = _png_bytes((1200, 400))
        photo_name, thumbnail_name = self.storage.store(data)

        self.assertEqual(self.storage.read_photo(photo_name), data)
        self.assertIsNotNone(thumbnail_name)
        assert thumbnail_name is not None
        self.assertEqual(thumbnail_name, photo_name.replace(".jpg", "_thumb.jpg"))

        with Image.open(self.storage.thumbnail_path(thumbnail_name)) as thumbnail:
            self.assertEqual(thumbnail.format, "JPEG")
            self.assertEqual(thumbnail.size, (THUMBNAIL_SIZE[0], 67))

    def test_undecodable_data_has_no_thumbnail(self) -> None:
        photo_name, thumbnail_name = self.storage.store(b"not an image")
        self.assertIsNone(thumbnail_name)
        self.assertEqual(self.storage.read_photo(photo_name), b"not an image")

    def test_missing_files_read_as_none(self) -> None:
        self.assertIsNone(self.storage.read_photo("missing.jpg"))
        self.assertIsNone(self.storage.read_thumbnail("missing_thumb.jpg"))

    def test_delete_is_idempotent(self) -> None:
        photo_name, thumbnail_name = self.storage.store(_png_bytes((50, 50)))
        self.storage.delete(photo_name, thumbnail_name)
        self.storage.delete(photo_name, thumbnail_name)
        self.assertFalse(self.storage.photo_path(photo_name).exists())
        self.assertIsNone(self.storage.read_thumbnail(thumbnail_name or ""))

    def test_failed_thumbnail_write_removes_photo(self) -> None:
        original_write = Path.write_bytes

        def write_bytes(path: Path, data: bytes) -> int:
            if path.name.endswith("_thumb.jpg"):
                raise OSError("disk full")
            return original_write(path, data)

        with mock.patch.object(Path, "write_bytes", write_bytes):
            with self.assertRaises(PhotoStorageFailedError):
                self.storage.store(_png_bytes((50, 50)))
        self.assertEqual(list(self.storage.photo_path("x").parent.iterdir()), [])


if __name__ == "__main__":
    unittest.main()
