"""
Content-addressed image storage.

Blobs are stored as ``<sha256 hex>.jpg`` inside a single directory, so identical
uploads collapse to one file and the on-disk name is never chosen by the client.
Lookups are confined to that directory and fall back to ``default.jpg`` when the
requested file does not exist.
"""
from __future__ import annotations

import hashlib
import os
import stat
import tempfile
import threading
from pathlib import Path
from typing import Optional, Union

from PIL import Image

from item_catalog.errors import InvalidExtension, InvalidPath, NotFound, StorageError
from item_catalog.util.cancel import check_cancelled

DEFAULT_IMAGE = "default.jpg"
IMAGE_SUFFIXES = (".jpg", ".jpeg")  # case-sensitive


def image_filename(data: bytes) -> str:
    """Content-derived filename for ``data``."""
    return f"{hashlib.sha256(data).hexdigest()}.jpg"


class ImageStore:
    def __init__(self, image_dir: Union[str, Path]):
        self.image_dir = Path(image_dir).resolve()

    @property
    def default_path(self) -> Path:
        return self.image_dir / DEFAULT_IMAGE

    def store(self, data: bytes, *, cancel: Optional[threading.Event] = None) -> str:
        """
        Store ``data`` under its content hash and return the filename.
        Storing the same bytes again is a no-op that returns the same name.
        """
        check_cancelled(cancel, "store_image")
        filename = image_filename(data)
        dst = self.image_dir / filename
        try:
            self.image_dir.mkdir(parents=True, exist_ok=True)
            if dst.exists():
                return filename
            fd, tmp_name = tempfile.mkstemp(dir=self.image_dir, prefix=".upload-", suffix=".tmp")
            tmp = Path(tmp_name)
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(data)
                # same hash means same bytes, so a concurrent replace is harmless
                os.replace(tmp, dst)
            finally:
                tmp.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError("store_image", e) from e
        return filename

    def resolve(self, filename: str, *, cancel: Optional[threading.Event] = None) -> Path:
        """
        Map a requested filename to a file inside the image directory.

        Raises InvalidPath for anything escaping the directory and InvalidExtension
        for non-jpeg names. A missing file resolves to ``default.jpg``.
        """
        check_cancelled(cancel, "resolve_image")
        if not filename:
            raise InvalidPath("filename is required", {"filename": filename})
        if "\x00" in filename:
            raise InvalidPath("invalid image path: embedded null byte", {"filename": filename})

        root = str(self.image_dir)
        try:
            candidate = os.path.normpath(os.path.join(root, filename))
            rel = os.path.relpath(candidate, root)
        except ValueError as e:
            raise InvalidPath(f"invalid image path: {filename}", {"filename": filename}) from e
        if rel == os.pardir or rel.startswith(os.pardir + os.sep):
            raise InvalidPath(f"invalid image path: {filename}", {"filename": filename})

        if not candidate.endswith(IMAGE_SUFFIXES):
            raise InvalidExtension(
                f"image path does not end with .jpg or .jpeg: {filename}", {"filename": filename}
            )

        try:
            st = os.stat(candidate)
        except FileNotFoundError:
            return self.default_path
        except OSError as e:
            raise NotFound(f"image not found: {filename}", {"filename": filename}) from e
        if not stat.S_ISREG(st.st_mode):
            # e.g. a directory named *.jpg
            return self.default_path
        return Path(candidate)

    def ensure_default_image(self, size: int = 256) -> Path:
        """Create the placeholder ``default.jpg`` if missing. Never overwrites it."""
        try:
            self.image_dir.mkdir(parents=True, exist_ok=True)
            if self.default_path.exists():
                return self.default_path
            im = Image.new("RGB", (size, size), color=(204, 204, 204))
            with self.default_path.open("xb") as f:
                im.save(f, format="JPEG", quality=85)
        except FileExistsError:
            pass
        except OSError as e:
            raise StorageError("ensure_default_image", e) from e
        return self.default_path
