"""Privileged announcement management. Callers need an ADMIN bearer token."""
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session
from app.auth import get_current_admin
from app.database import get_db
from app.dependencies import get_announcement_service
from app.routers.errors import http_error
from app.schemas.auth import TokenPayload
from app.services.announcement_service import AnnouncementService

router = APIRouter(prefix="/api/v1/admin/v1/announcements", tags=["admin"])


@router.delete("/{announcement_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_announcement(
    announcement_id: str,
    db: Session = Depends(get_db),
    _admin: TokenPayload = Depends(get_current_admin),
    service: AnnouncementService = Depends(get_announcement_service),
):
    """Hard-delete the announcement; its photo file is removed best-effort."""
    result = service.delete_announcement(db, announcement_id)
    if not result.ok:
        raise http_error(result)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
