"""
Announcement persistence. The repository is the only code that touches the announcements table.
All operations are sync and take the request's Session.
Photo binding is the one multi-step write: lock_for_update + set_photo_url run inside the
caller's transaction and the caller commits or rolls back.
"""
from datetime import datetime

from sqlalchemy import desc
from sqlalchemy.orm import Session

from app.models.announcement import Announcement


def insert(db: Session, announcement: Announcement) -> Announcement:
    """Persist a new announcement and commit."""
    db.add(announcement)
    db.commit()
    db.refresh(announcement)
    return announcement


def get_by_id(db: Session, announcement_id: str) -> Announcement | None:
    return db.query(Announcement).filter(Announcement.id == announcement_id).first()


def list_all(db: Session) -> list[Announcement]:
    return db.query(Announcement).order_by(desc(Announcement.created_at)).all()


def lock_for_update(db: Session, announcement_id: str) -> Announcement | None:
    """SELECT ... FOR UPDATE: the row stays locked until the caller's transaction ends."""
    return (
        db.query(Announcement)
        .filter(Announcement.id == announcement_id)
        .with_for_update()
        .populate_existing()
        .first()
    )


def set_photo_url(db: Session, announcement: Announcement, photo_url: str) -> None:
    """Update the photo reference inside the current transaction. Caller commits."""
    announcement.photo_url = photo_url
    announcement.updated_at = datetime.utcnow()
    db.flush()


def delete(db: Session, announcement: Announcement) -> None:
    db.delete(announcement)
    db.commit()


class AnnouncementRepository:
    """Thin wrapper for dependency injection; delegates to module functions."""

    @staticmethod
    def insert(db: Session, announcement: Announcement) -> Announcement:
        return insert(db, announcement)

    @staticmethod
    def get_by_id(db: Session, announcement_id: str) -> Announcement | None:
        return get_by_id(db, announcement_id)

    @staticmethod
    def list_all(db: Session) -> list[Announcement]:
        return list_all(db)

    @staticmethod
    def lock_for_update(db: Session, announcement_id: str) -> Announcement | None:
        return lock_for_update(db, announcement_id)

    @staticmethod
    def set_photo_url(db: Session, announcement: Announcement, photo_url: str) -> None:
        return set_photo_url(db, announcement, photo_url)

    @staticmethod
    def delete(db: Session, announcement: Announcement) -> None:
        return delete(db, announcement)
