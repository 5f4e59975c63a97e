"""Notifications API."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from app.api.deps import Principal, get_current_principal, get_notification_service
from app.config import settings
from app.schemas.notification import (
    MarkAllReadResponse,
    NotificationListResponse,
    NotificationResponse,
)
from app.services.notification_service import NotificationService

router = APIRouter()


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    limit: Optional[int] = Query(None, ge=1, le=settings.MAX_PAGE_SIZE),
    unread_only: bool = Query(False),
    principal: Principal = Depends(get_current_principal),
    service: NotificationService = Depends(get_notification_service),
):
    """Recent notifications for the caller (admins also see the admin pool)."""
    return await service.list_for(principal, limit=limit, unread_only=unread_only)


@router.post("/read-all", response_model=MarkAllReadResponse)
async def mark_all_as_read(
    principal: Principal = Depends(get_current_principal),
    service: NotificationService = Depends(get_notification_service),
):
    updated = await service.mark_all_as_read(principal)
    return MarkAllReadResponse(updated=updated)


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_as_read(
    notification_id: UUID,
    principal: Principal = Depends(get_current_principal),
    service: NotificationService = Depends(get_notification_service),
):
    return await service.mark_as_read(principal, notification_id)
