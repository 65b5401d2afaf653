from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session
from typing import List, Optional

from app.database import get_db
from app.models.notification import NotificationType
from app.models.user import User
from app.schemas.notification import BulkResult, NotificationOut, UnreadCount
from app.services.notification_service import NotificationService
from app.utils.auth import get_current_user

router = APIRouter()


@router.get("/", response_model=List[NotificationOut])
def get_notifications(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    unread_only: bool = Query(False),
    type: Optional[NotificationType] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Notifications for the current user, newest first"""
    service = NotificationService(db)
    if unread_only:
        return service.get_unread(current_user.id)
    if type is not None:
        return service.get_by_type(current_user.id, type)
    return service.get_by_user(current_user.id, limit=limit, offset=skip)


@router.get("/unread-count", response_model=UnreadCount)
def get_unread_count(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return {"count": NotificationService(db).get_unread_count(current_user.id)}


@router.post("/read-all", response_model=BulkResult)
def mark_all_as_read(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return {"count": NotificationService(db).mark_all_as_read(current_user.id)}


@router.delete("/read", response_model=BulkResult)
def delete_all_read(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return {"count": NotificationService(db).delete_all_read(current_user.id)}


@router.get("/{notification_id}", response_model=NotificationOut)
def get_notification(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return NotificationService(db).get_by_id(notification_id, current_user.id)


@router.patch("/{notification_id}/read", response_model=NotificationOut)
def mark_as_read(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return NotificationService(db).mark_as_read(notification_id, current_user.id)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_notification(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    NotificationService(db).delete(notification_id, current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
