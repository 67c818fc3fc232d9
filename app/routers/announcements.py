from typing import Any
from fastapi import APIRouter, Body, Depends, File, Form, HTTPException, Response, UploadFile, status
from fastapi.security import HTTPBasicCredentials
from sqlalchemy.orm import Session
from app.auth import basic_security
from app.config import get_settings
from app.database import get_db
from app.dependencies import get_announcement_service, get_photo_upload_service
from app.routers.errors import http_error
from app.schemas.announcement import AnnouncementCreateResponse, AnnouncementResponse
from app.services.announcement_service import AnnouncementService
from app.services.photo_upload import PhotoUploadService
from app.services.result import Err, ErrorKind

router = APIRouter(prefix="/api/v1/announcements", tags=["announcements"])


@router.get("", response_model=list[AnnouncementResponse])
def list_announcements(
    db: Session = Depends(get_db),
    service: AnnouncementService = Depends(get_announcement_service),
):
    result = service.get_all_announcements(db)
    if not result.ok:
        raise http_error(result)
    return [AnnouncementResponse.model_validate(x) for x in result.value]


@router.get("/{announcement_id}", response_model=AnnouncementResponse)
def get_announcement(
    announcement_id: str,
    db: Session = Depends(get_db),
    service: AnnouncementService = Depends(get_announcement_service),
):
    result = service.get_announcement_by_id(db, announcement_id)
    if not result.ok:
        raise http_error(result)
    return AnnouncementResponse.model_validate(result.value)


@router.post("", response_model=AnnouncementCreateResponse, status_code=status.HTTP_201_CREATED)
def create_announcement(
    payload: Any = Body(...),
    db: Session = Depends(get_db),
    service: AnnouncementService = Depends(get_announcement_service),
):
    """
    Create a lost/found pet announcement.
    The managementPassword in the response is shown only this once; it authorizes the photo upload.
    """
    result = service.create_announcement(db, payload)
    if not result.ok:
        raise http_error(result)
    created = result.value
    return AnnouncementCreateResponse(id=created.id, management_password=created.management_password)


@router.post("/{announcement_id}/photo", status_code=status.HTTP_204_NO_CONTENT)
def upload_photo(
    announcement_id: str,
    photo: UploadFile | None = File(None),
    management_password: str | None = Form(None, alias="managementPassword"),
    credentials: HTTPBasicCredentials | None = Depends(basic_security),
    db: Session = Depends(get_db),
    service: PhotoUploadService = Depends(get_photo_upload_service),
):
    """
    Attach the photo to an announcement (multipart field "photo").
    Credential: form field managementPassword, or Basic auth "<announcementId>:<managementPassword>".
    """
    password = management_password
    if password is None and credentials is not None:
        if credentials.username != announcement_id:
            raise http_error(Err(ErrorKind.UNAUTHORIZED, "Credentials do not match this announcement."))
        password = credentials.password
    if not password:
        raise http_error(Err(ErrorKind.UNAUTHENTICATED, "Management password is required."))
    if photo is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"code": "MISSING_FILE", "message": "Multipart field 'photo' is required."},
        )

    # One byte past the limit is enough for the service to reject oversized uploads
    data = photo.file.read(get_settings().photo_max_bytes + 1)
    result = service.upload_photo(db, announcement_id, password, data, photo.filename)
    if not result.ok:
        raise http_error(result)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
