"""
Binding an uploaded photo to an existing announcement.

Sequence (per announcement id, serialized by a row lock plus an in-process keyed lock):
  1. lock the row; check existence, management password, size, image format, photo policy
  2. write bytes to a temp file, then atomically move it to its content-derived key
  3. set photo_url/updated_at and commit
  4. if the commit fails, remove the file that was just moved in (unless the row already pointed at it)

The file always lands before the DB reference, so a crash can leave an unreferenced file
but never a reference to a missing file. Same bytes -> same key, so client retries are safe.
"""
import hashlib
import logging
import threading
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.auth import verify_password
from app.config import get_settings
from app.repositories.announcement_repository import AnnouncementRepository
from app.services.photo_storage import PhotoStorage, is_valid_key
from app.services.result import Err, ErrorKind, Ok, Result
from app.utils.image import MIME_TYPES_BY_EXTENSION, validate_image_format

logger = logging.getLogger(__name__)

PHOTO_URL_PREFIX = "/images/"


class KeyedLock:
    """One lock per key; entries are dropped when nobody holds or waits on them."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[str, list] = {}  # key -> [lock, holders + waiters]

    @contextmanager
    def hold(self, key: str):
        with self._guard:
            entry = self._locks.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1
        entry[0].acquire()
        try:
            yield
        finally:
            entry[0].release()
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]


# Shared by every service instance in this process
_announcement_locks = KeyedLock()


def storage_key(announcement_id: str, data: bytes, extension: str) -> str:
    digest = hashlib.sha256(data).hexdigest()[:16]
    return f"{announcement_id}-{digest}.{extension}"


def photo_url_for(key: str) -> str:
    return f"{PHOTO_URL_PREFIX}{key}"


def key_from_photo_url(photo_url: str) -> str:
    return photo_url.rstrip("/").rsplit("/", 1)[-1]


def delete_photo_file(storage: PhotoStorage, photo_url: str | None) -> bool:
    """Best-effort removal of a stored photo. Never raises; returns True if a file was removed."""
    if not photo_url:
        return False
    key = key_from_photo_url(photo_url)
    try:
        storage.remove(key)
    except FileNotFoundError:
        logger.warning("Photo file already missing: %s", key)
        return False
    except (OSError, ValueError) as e:
        logger.warning("Could not remove photo file %s: %s", key, e)
        return False
    logger.info("Removed photo file %s", key)
    return True


class PhotoUploadService:
    """Validates the management credential and image, then stores and binds the photo."""

    def __init__(
        self,
        storage: PhotoStorage,
        repository: AnnouncementRepository | None = None,
        *,
        validate_image=validate_image_format,
        overwrite_allowed: bool | None = None,
        max_bytes: int | None = None,
        locks: KeyedLock | None = None,
    ):
        settings = get_settings()
        self._storage = storage
        self._repo = repository or AnnouncementRepository()
        self._validate_image = validate_image
        self._overwrite_allowed = (
            settings.photo_overwrite_allowed if overwrite_allowed is None else overwrite_allowed
        )
        self._max_bytes = max_bytes or settings.photo_max_bytes
        self._locks = locks or _announcement_locks

    def upload_photo(
        self,
        db: Session,
        announcement_id: str,
        management_password: str | None,
        photo_bytes: bytes,
        declared_filename: str | None = None,
    ) -> Result[str]:
        """Returns Ok(photo_url) or an Err; precondition failures have no side effects."""
        if not management_password:
            return Err(ErrorKind.UNAUTHENTICATED, "Management password is required.")

        with self._locks.hold(announcement_id):
            try:
                return self._bind_photo(db, announcement_id, management_password, photo_bytes, declared_filename)
            finally:
                if db.in_transaction():
                    db.rollback()

    def _bind_photo(
        self,
        db: Session,
        announcement_id: str,
        management_password: str,
        photo_bytes: bytes,
        declared_filename: str | None,
    ) -> Result[str]:
        try:
            announcement = self._repo.lock_for_update(db, announcement_id)
        except SQLAlchemyError:
            logger.exception("Loading announcement %s for photo upload failed", announcement_id)
            return Err(ErrorKind.PERSISTENCE, "Could not load announcement.")
        if announcement is None:
            return Err(ErrorKind.NOT_FOUND, "Announcement not found.")
        if not verify_password(management_password, announcement.management_password_hash):
            return Err(ErrorKind.UNAUTHORIZED, "Invalid management password.")
        if len(photo_bytes) > self._max_bytes:
            return Err(ErrorKind.PAYLOAD_TOO_LARGE, f"Photo too large. Max is {self._max_bytes} bytes.")
        image_format = self._validate_image(photo_bytes)
        if image_format is None:
            logger.info("Rejected photo %r for %s: unsupported format", declared_filename, announcement_id)
            return Err(ErrorKind.UNSUPPORTED_MEDIA, "Unsupported image format.")

        key = storage_key(announcement.id, photo_bytes, image_format.extension)
        photo_url = photo_url_for(key)
        previous_url = announcement.photo_url
        replacing = bool(previous_url) and previous_url != photo_url
        if replacing and not self._overwrite_allowed:
            return Err(ErrorKind.CONFLICT, "Announcement already has a photo.")

        try:
            temp_ref = self._storage.write_temp(photo_bytes)
        except OSError:
            logger.exception("Writing temp photo for %s failed", announcement_id)
            return Err(ErrorKind.STORAGE, "Could not store photo.")
        try:
            self._storage.atomic_move(temp_ref, key)
        except OSError:
            logger.exception("Moving photo %s into place failed", key)
            try:
                self._storage.discard_temp(temp_ref)
            except OSError as e:
                logger.warning("Could not discard temp photo %s: %s", temp_ref, e)
            return Err(ErrorKind.STORAGE, "Could not store photo.")

        try:
            self._repo.set_photo_url(db, announcement, photo_url)
            db.commit()
        except SQLAlchemyError:
            logger.exception("Binding photo %s to announcement %s failed", key, announcement_id)
            db.rollback()
            if previous_url != photo_url:
                self._compensate(key)
            return Err(ErrorKind.PERSISTENCE, "Could not save photo reference.")

        if replacing:
            delete_photo_file(self._storage, previous_url)
        logger.info("Photo %s bound to announcement %s", key, announcement_id)
        return Ok(photo_url)

    def _compensate(self, key: str) -> None:
        """Remove a file that will never be referenced. Failure leaves a harmless orphan."""
        try:
            self._storage.remove(key)
        except OSError as e:
            logger.error("Compensating delete of %s failed, file is orphaned: %s", key, e)

    def get_photo(self, key: str) -> Result[tuple[bytes, str]]:
        """Returns Ok((bytes, media type)) for a stored photo key."""
        if not is_valid_key(key):
            return Err(ErrorKind.NOT_FOUND, "Photo not found.")
        try:
            data = self._storage.read(key)
        except FileNotFoundError:
            return Err(ErrorKind.NOT_FOUND, "Photo not found.")
        except OSError:
            logger.exception("Reading photo %s failed", key)
            return Err(ErrorKind.STORAGE, "Could not read photo.")
        extension = key.rsplit(".", 1)[-1].lower()
        return Ok((data, MIME_TYPES_BY_EXTENSION.get(extension, "application/octet-stream")))
