from __future__ import annotations

import io
import logging
import uuid
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from .repository import PhotoStorageFailedError

logger = logging.getLogger(__name__)

THUMBNAIL_SIZE = (200, 200)


class PhotoStorage:
    """Stores full-size photos and grid thumbnails as files.

    ``store`` returns bare file names; callers persist those and resolve
    them back through ``photo_path`` / ``thumbnail_path``.
    """

    def __init__(self, photos_dir: Path, thumbnails_dir: Path):
        self._photos_dir = Path(photos_dir)
        self._thumbnails_dir = Path(thumbnails_dir)

    def store(self, data: bytes) -> tuple[str, str | None]:
        try:
            self._photos_dir.mkdir(parents=True, exist_ok=True)
            self._thumbnails_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise PhotoStorageFailedError(f"Cannot create photo directories: {exc}") from exc

        photo_id = str(uuid.uuid4()).upper()
        photo_name = f"{photo_id}.jpg"
        photo_file = self._photos_dir / photo_name
        try:
            photo_file.write_bytes(data)
        except OSError as exc:
            raise PhotoStorageFailedError(f"Cannot write {photo_file}: {exc}") from exc

        thumbnail = _thumbnail_bytes(data)
        if thumbnail is None:
            return (photo_name, None)

        thumbnail_name = f"{photo_id}_thumb.jpg"
        thumbnail_file = self._thumbnails_dir / thumbnail_name
        try:
            thumbnail_file.write_bytes(thumbnail)
        except OSError as exc:
            self.delete(photo_name)
            raise PhotoStorageFailedError(f"Cannot write {thumbnail_file}: {exc}") from exc
        return (photo_name, thumbnail_name)

    def photo_path(self, name: str) -> Path:
        return self._photos_dir / name

    def thumbnail_path(self, name: str) -> Path:
        return self._thumbnails_dir / name

    def read_photo(self, name: str) -> bytes | None:
        return _read_if_exists(self.photo_path(name))

    def read_thumbnail(self, name: str) -> bytes | None:
        return _read_if_exists(self.thumbnail_path(name))

    def delete(self, photo_name: str, thumbnail_name: str | None = None) -> None:
        paths = [self.photo_path(photo_name)]
        if thumbnail_name:
            paths.append(self.thumbnail_path(thumbnail_name))
        for path in paths:
            try:
                path.unlink(missing_ok=True)
            except OSError as exc:
                logger.warning("Could not delete %s: %s", path, exc)


def _thumbnail_bytes(data: bytes) -> bytes | None:
    try:
        with Image.open(io.BytesIO(data)) as image:
            image.thumbnail(THUMBNAIL_SIZE, Image.Resampling.LANCZOS)
            output = io.BytesIO()
            image.convert("RGB").save(output, format="JPEG", quality=80)
    except (UnidentifiedImageError, OSError) as exc:
        logger.info("No thumbnail generated: %s", exc)
        return None
    return output.getvalue()


def _read_if_exists(path: Path) -> bytes | None:
    try:
        return path.read_bytes()
    except FileNotFoundError:
        return None
