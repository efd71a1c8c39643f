"""
通知API

所有操作都限定为当前用户自己的通知，访问他人通知与通知不存在返回相同的404
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.permissions import Actor
from app.db.database import get_db
from app.schemas.common import ResponseModel
from app.schemas.notification import (
    NotificationResponse, NotificationListResponse,
    UnreadCountResponse, BulkResultResponse
)
from app.services.notification_service import NotificationService
from app.utils.auth import get_current_actor

router = APIRouter(prefix="/api/notifications", tags=["通知"])


@router.get("", response_model=ResponseModel)
async def list_notifications(
    limit: int = Query(settings.NOTIFICATION_DEFAULT_LIMIT, ge=1, le=200, description="返回数量"),
    unreadOnly: bool = Query(False, description="只返回未读"),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db)
):
    """
    获取通知列表（按时间倒序）
    """
    service = NotificationService(db)
    notifications = await service.list_notifications(actor.id, unread_only=unreadOnly, limit=limit)
    unread = await service.unread_count(actor.id)
    return ResponseModel(data=NotificationListResponse(
        notifications=[NotificationResponse.from_model(n) for n in notifications],
        unreadCount=unread,
    ))


@router.get("/unread-count", response_model=ResponseModel)
async def get_unread_count(
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db)
):
    count = await NotificationService(db).unread_count(actor.id)
    return ResponseModel(data=UnreadCountResponse(count=count))


@router.put("/read-all", response_model=ResponseModel)
async def mark_all_as_read(
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db)
):
    """
    全部标记为已读
    """
    count = await NotificationService(db).mark_all_read(actor.id)
    return ResponseModel(
        message=f"{count} notifications marked as read",
        data=BulkResultResponse(count=count),
    )


@router.put("/{notification_id}/read", response_model=ResponseModel)
async def mark_as_read(
    notification_id: int,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db)
):
    notification = await NotificationService(db).mark_read(actor.id, notification_id)
    return ResponseModel(data=NotificationResponse.from_model(notification))


@router.delete("", response_model=ResponseModel)
async def delete_all_notifications(
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db)
):
    """
    清空当前用户的通知
    """
    count = await NotificationService(db).delete_all(actor.id)
    return ResponseModel(
        message=f"{count} notifications deleted",
        data=BulkResultResponse(count=count),
    )


@router.delete("/{notification_id}", response_model=ResponseModel)
async def delete_notification(
    notification_id: int,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db)
):
    await NotificationService(db).delete(actor.id, notification_id)
    return ResponseModel(message="Notification deleted")
