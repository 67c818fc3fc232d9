"""
Dependency wiring for the FastAPI app. Services are built per request from explicit
collaborators; tests override get_photo_storage / get_db instead of patching modules.
"""
from fastapi import Depends

from app.repositories.announcement_repository import AnnouncementRepository
from app.services.announcement_service import AnnouncementService
from app.services.photo_storage import LocalPhotoStorage, PhotoStorage
from app.services.photo_upload import PhotoUploadService

_photo_storage: PhotoStorage | None = None


def get_photo_storage() -> PhotoStorage:
    global _photo_storage
    if _photo_storage is None:
        _photo_storage = LocalPhotoStorage()
    return _photo_storage


def get_announcement_service(
    storage: PhotoStorage = Depends(get_photo_storage),
) -> AnnouncementService:
    return AnnouncementService(storage, AnnouncementRepository())


def get_photo_upload_service(
    storage: PhotoStorage = Depends(get_photo_storage),
) -> PhotoUploadService:
    return PhotoUploadService(storage, AnnouncementRepository())
