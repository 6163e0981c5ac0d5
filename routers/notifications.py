# Notifications Router for Ziyara Marketplace
# Handles user notifications

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from sqlalchemy import desc
from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, validator

from database.config import get_db
from database.models import User
from database.marketplace_models import Notification
from auth.dependencies import get_current_user
from services.errors import NotFoundError
from services.notification_service import get_notification_service

router = APIRouter(prefix="/notifications", tags=["Notifications"])


class NotificationResponse(BaseModel):
    id: str
    type: str
    title: str
    message: str
    action_url: Optional[str] = None
    data: Optional[dict] = None
    is_read: bool = False
    read_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @validator("type", pre=True)
    def enum_to_value(cls, v):
        return getattr(v, "value", v)


# ============================================================================
# NOTIFICATION ENDPOINTS
# ============================================================================

@router.get("", response_model=List[NotificationResponse])
async def get_notifications(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    unread_only: bool = Query(False, description="Only return unread notifications"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    query = db.query(Notification).filter(Notification.user_id == current_user.id)

    if unread_only:
        query = query.filter(Notification.is_read == False)

    offset = (page - 1) * limit
    return query.order_by(desc(Notification.created_at)).offset(offset).limit(limit).all()


@router.get("/unread-count")
async def get_unread_count(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return {"unread_count": get_notification_service(db).get_unread_count(current_user.id)}


@router.post("/{notification_id}/read")
async def mark_as_read(
    notification_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    if not get_notification_service(db).mark_read(notification_id, current_user.id):
        raise NotFoundError("Notification not found")
    db.commit()
    return {"status": "success"}
