"""
Storage capability for announcement photos.

The upload service only needs write-temp, atomic-move, remove and exists (plus read for serving),
so the local filesystem and the in-memory test double implement exactly that. A file only becomes
visible under its key through atomic_move; a half-written temp file is never readable by key.
"""
import os
import re
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from app.config import get_settings

_KEY_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]{0,200}$")


def is_valid_key(key: str) -> bool:
    """Keys are flat file names; no separators or leading dots."""
    return bool(_KEY_RE.match(key or "")) and ".." not in key


def photo_upload_dir() -> Path:
    settings = get_settings()
    if settings.photo_upload_dir:
        return Path(settings.photo_upload_dir)
    return Path(__file__).resolve().parent.parent.parent / "uploads" / "images"


class PhotoStorage(Protocol):
    """Defines the operations the photo services need from durable storage."""

    def write_temp(self, data: bytes) -> str:
        ...

    def atomic_move(self, temp_ref: str, key: str) -> None:
        ...

    def discard_temp(self, temp_ref: str) -> None:
        ...

    def remove(self, key: str) -> None:
        ...

    def exists(self, key: str) -> bool:
        ...

    def read(self, key: str) -> bytes:
        ...


class LocalPhotoStorage:
    """Photos as files in one directory; temp files live in the same directory so os.replace is atomic."""

    def __init__(self, root: Path | str | None = None):
        self.root = Path(root) if root is not None else photo_upload_dir()

    def _path(self, key: str) -> Path:
        if not is_valid_key(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.root / key

    def write_temp(self, data: bytes) -> str:
        self.root.mkdir(parents=True, exist_ok=True)
        fd, temp_path = tempfile.mkstemp(prefix=".upload-", suffix=".tmp", dir=self.root)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
        except BaseException:
            Path(temp_path).unlink(missing_ok=True)
            raise
        return temp_path

    def atomic_move(self, temp_ref: str, key: str) -> None:
        os.replace(temp_ref, self._path(key))

    def discard_temp(self, temp_ref: str) -> None:
        Path(temp_ref).unlink(missing_ok=True)

    def remove(self, key: str) -> None:
        self._path(key).unlink()

    def exists(self, key: str) -> bool:
        return self._path(key).is_file()

    def read(self, key: str) -> bytes:
        return self._path(key).read_bytes()


@dataclass
class InMemoryPhotoStorage:
    """Test double for photo storage."""

    objects: dict[str, bytes] = field(default_factory=dict)
    temps: dict[str, bytes] = field(default_factory=dict)
    _counter: int = 0

    def write_temp(self, data: bytes) -> str:
        self._counter += 1
        ref = f"tmp-{self._counter}"
        self.temps[ref] = bytes(data)
        return ref

    def atomic_move(self, temp_ref: str, key: str) -> None:
        if not is_valid_key(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        try:
            self.objects[key] = self.temps.pop(temp_ref)
        except KeyError:
            raise FileNotFoundError(temp_ref) from None

    def discard_temp(self, temp_ref: str) -> None:
        self.temps.pop(temp_ref, None)

    def remove(self, key: str) -> None:
        try:
            del self.objects[key]
        except KeyError:
            raise FileNotFoundError(key) from None

    def exists(self, key: str) -> bool:
        return key in self.objects

    def read(self, key: str) -> bytes:
        try:
            return self.objects[key]
        except KeyError:
            raise FileNotFoundError(key) from None
