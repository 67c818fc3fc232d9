"""Serves stored announcement photos at the photoUrl recorded on the announcement."""
from fastapi import APIRouter, Depends, Response
from app.dependencies import get_photo_upload_service
from app.routers.errors import http_error
from app.services.photo_upload import PhotoUploadService

router = APIRouter(prefix="/images", tags=["images"])


@router.get("/{key}")
def get_image(key: str, service: PhotoUploadService = Depends(get_photo_upload_service)):
    result = service.get_photo(key)
    if not result.ok:
        raise http_error(result)
    data, media_type = result.value
    return Response(content=data, media_type=media_type, headers={"Content-Disposition": "inline"})
