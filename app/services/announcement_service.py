"""
Announcement orchestration: validated creation with a one-time management password,
reads, and admin deletion (row first, then best-effort photo file removal).
"""
import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.auth import generate_management_password, hash_password
from app.models.announcement import Announcement
from app.repositories.announcement_repository import AnnouncementRepository
from app.services.photo_storage import PhotoStorage
from app.services.photo_upload import delete_photo_file
from app.services.result import Err, ErrorKind, Ok, Result
from app.schemas.announcement import validate_create_announcement

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CreatedAnnouncement:
    id: str
    management_password: str


class AnnouncementService:
    def __init__(
        self,
        photo_storage: PhotoStorage,
        repository: AnnouncementRepository | None = None,
        *,
        validator=validate_create_announcement,
        password_generator=generate_management_password,
        password_hasher=hash_password,
    ):
        self._storage = photo_storage
        self._repo = repository or AnnouncementRepository()
        self._validate = validator
        self._generate_password = password_generator
        self._hash_password = password_hasher

    def create_announcement(self, db: Session, payload) -> Result[CreatedAnnouncement]:
        """
        Validate, then insert. The plaintext password only exists in the returned value;
        the row stores its argon2 hash.
        """
        validation = self._validate(payload)
        if not validation.valid:
            return Err(ErrorKind.VALIDATION, "Validation failed.", list(validation.errors))

        data = validation.value
        password = self._generate_password()
        announcement = Announcement(
            pet_name=data.pet_name,
            species=data.species.value,
            breed=data.breed,
            sex=data.sex.value,
            age=data.age,
            description=data.description,
            microchip_number=data.microchip_number,
            location_latitude=data.location_latitude,
            location_longitude=data.location_longitude,
            last_seen_date=data.last_seen_date,
            email=data.email,
            phone=data.phone,
            status=data.status.value,
            reward=data.reward,
            management_password_hash=self._hash_password(password),
        )
        try:
            announcement = self._repo.insert(db, announcement)
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Inserting announcement failed")
            return Err(ErrorKind.PERSISTENCE, "Could not save announcement.")

        logger.info("Announcement %s created (species=%s)", announcement.id, announcement.species)
        return Ok(CreatedAnnouncement(id=announcement.id, management_password=password))

    def get_announcement_by_id(self, db: Session, announcement_id: str) -> Result[Announcement]:
        announcement = self._repo.get_by_id(db, announcement_id)
        if announcement is None:
            return Err(ErrorKind.NOT_FOUND, "Announcement not found.")
        return Ok(announcement)

    def get_all_announcements(self, db: Session) -> Result[list[Announcement]]:
        return Ok(self._repo.list_all(db))

    def delete_announcement(self, db: Session, announcement_id: str) -> Result[None]:
        """Hard delete. A photo file that cannot be removed is logged and left behind."""
        announcement = self._repo.get_by_id(db, announcement_id)
        if announcement is None:
            return Err(ErrorKind.NOT_FOUND, "Announcement not found.")
        photo_url = announcement.photo_url
        try:
            self._repo.delete(db, announcement)
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Deleting announcement %s failed", announcement_id)
            return Err(ErrorKind.PERSISTENCE, "Could not delete announcement.")

        delete_photo_file(self._storage, photo_url)
        logger.info("Announcement %s deleted", announcement_id)
        return Ok(None)
