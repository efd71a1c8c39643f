"""
通知Schema模型
"""
from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime


class NotificationResponse(BaseModel):
    """通知响应模型"""
    id: int
    recipient: int
    type: str
    title: str
    message: str
    article: int
    articleTitle: str
    comment: Optional[int] = None
    read: bool
    createdAt: datetime
    
    @classmethod
    def from_model(cls, notification) -> "NotificationResponse":
        return cls(
            id=notification.id,
            recipient=notification.recipient_id,
            type=notification.type,
            title=notification.title,
            message=notification.message,
            article=notification.article_id,
            articleTitle=notification.article_title,
            comment=notification.comment_id,
            read=notification.read,
            createdAt=notification.created_at,
        )


class NotificationListResponse(BaseModel):
    notifications: List[NotificationResponse]
    unreadCount: int


class UnreadCountResponse(BaseModel):
    count: int


class BulkResultResponse(BaseModel):
    count: int
