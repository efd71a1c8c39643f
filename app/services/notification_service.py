"""
通知服务

负责持久化通知记录，以及根据领域事件计算接收者。
通知写入失败只记录日志，绝不影响触发它的业务操作。
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy import select, update, delete, func, and_
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import settings
from app.core.exceptions import NotFoundError
from app.events.domain_events import DomainEvent, NewComment, NewReply, NewLike
from app.models.notification import Notification, NotificationType

logger = logging.getLogger(__name__)

NOTIFICATION_NOT_FOUND = "Notification not found"


@dataclass(frozen=True)
class NotificationDraft:
    """一条待创建的通知"""
    recipient_id: int
    type: NotificationType
    title: str
    message: str
    article_id: int
    article_title: str
    comment_id: Optional[int] = None


def draft_for_event(event: DomainEvent) -> Optional[NotificationDraft]:
    """
    计算事件对应的通知，没有接收者时返回None

    - 顶层评论：通知文章作者
    - 回复：只通知父评论作者，不再通知文章作者
    - 点赞：通知文章作者（可通过配置关闭）
    - 自己对自己的操作不产生通知
    """
    if isinstance(event, NewReply):
        if event.parent_author_id == event.actor_id:
            return None
        return NotificationDraft(
            recipient_id=event.parent_author_id,
            type=NotificationType.REPLY,
            title="New Reply",
            message=f"{event.actor_username} replied to your comment on: {event.article_title}",
            article_id=event.article_id,
            article_title=event.article_title,
            comment_id=event.comment_id,
        )
    if isinstance(event, NewComment):
        if event.article_author_id == event.actor_id:
            return None
        return NotificationDraft(
            recipient_id=event.article_author_id,
            type=NotificationType.COMMENT,
            title="New Comment",
            message=f"{event.actor_username} commented on your article: {event.article_title}",
            article_id=event.article_id,
            article_title=event.article_title,
            comment_id=event.comment_id,
        )
    if isinstance(event, NewLike):
        if not settings.LIKE_NOTIFICATIONS_ENABLED or event.article_author_id == event.actor_id:
            return None
        return NotificationDraft(
            recipient_id=event.article_author_id,
            type=NotificationType.LIKE,
            title="New Like",
            message=f"{event.actor_username} liked your article: {event.article_title}",
            article_id=event.article_id,
            article_title=event.article_title,
        )
    return None


class NotificationService:
    """通知服务类，所有查询和修改都限定在接收者范围内"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, draft: NotificationDraft) -> Notification:
        notification = Notification(
            recipient_id=draft.recipient_id,
            type=draft.type.value,
            title=draft.title,
            message=draft.message,
            article_id=draft.article_id,
            article_title=draft.article_title,
            comment_id=draft.comment_id,
            read=False,
        )
        self.db.add(notification)
        await self.db.commit()
        await self.db.refresh(notification)
        logger.info("Notification created for user %s (%s)", draft.recipient_id, draft.type.value)
        return notification

    async def create_safely(self, draft: NotificationDraft) -> Optional[Notification]:
        """创建通知，失败时记录日志并返回None"""
        try:
            return await self.create(draft)
        except Exception:
            logger.exception("Create notification error (recipient %s)", draft.recipient_id)
            await self.db.rollback()
            return None

    async def list_notifications(
        self,
        recipient_id: int,
        unread_only: bool = False,
        limit: Optional[int] = None
    ) -> List[Notification]:
        """按创建时间倒序返回通知"""
        conditions = [Notification.recipient_id == recipient_id]
        if unread_only:
            conditions.append(Notification.read == False)

        result = await self.db.execute(
            select(Notification)
            .where(and_(*conditions))
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .limit(limit or settings.NOTIFICATION_DEFAULT_LIMIT)
        )
        return list(result.scalars().all())

    async def unread_count(self, recipient_id: int) -> int:
        result = await self.db.execute(
            select(func.count(Notification.id)).where(
                and_(
                    Notification.recipient_id == recipient_id,
                    Notification.read == False
                )
            )
        )
        return result.scalar_one()

    async def get(self, recipient_id: int, notification_id: int) -> Notification:
        """
        获取接收者自己的通知

        Raises:
            NotFoundError: 通知不存在或不属于该用户（两种情况返回完全相同的错误）
        """
        result = await self.db.execute(
            select(Notification).where(
                and_(
                    Notification.id == notification_id,
                    Notification.recipient_id == recipient_id
                )
            )
        )
        notification = result.scalar_one_or_none()
        if notification is None:
            raise NotFoundError(NOTIFICATION_NOT_FOUND)
        return notification

    async def mark_read(self, recipient_id: int, notification_id: int) -> Notification:
        notification = await self.get(recipient_id, notification_id)
        notification.read = True
        await self.db.commit()
        await self.db.refresh(notification)
        return notification

    async def mark_all_read(self, recipient_id: int) -> int:
        result = await self.db.execute(
            update(Notification)
            .where(
                and_(
                    Notification.recipient_id == recipient_id,
                    Notification.read == False
                )
            )
            .values(read=True)
        )
        await self.db.commit()
        return result.rowcount

    async def delete(self, recipient_id: int, notification_id: int) -> None:
        result = await self.db.execute(
            delete(Notification).where(
                and_(
                    Notification.id == notification_id,
                    Notification.recipient_id == recipient_id
                )
            )
        )
        if result.rowcount == 0:
            await self.db.rollback()
            raise NotFoundError(NOTIFICATION_NOT_FOUND)
        await self.db.commit()

    async def delete_all(self, recipient_id: int) -> int:
        result = await self.db.execute(
            delete(Notification).where(Notification.recipient_id == recipient_id)
        )
        await self.db.commit()
        return result.rowcount

    async def purge_expired(self, now: Optional[datetime] = None) -> int:
        """删除超过保留期的通知，不区分已读未读"""
        cutoff = (now or datetime.now(timezone.utc)) - timedelta(days=settings.NOTIFICATION_RETENTION_DAYS)
        result = await self.db.execute(
            delete(Notification).where(Notification.created_at < cutoff)
        )
        await self.db.commit()
        return result.rowcount


class NotificationEventHandler:
    """订阅领域事件并写入通知记录，每个事件最多写一条"""

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def handle(self, event: DomainEvent) -> None:
        draft = draft_for_event(event)
        if draft is None:
            return
        try:
            async with self.session_factory() as db:
                await NotificationService(db).create_safely(draft)
        except Exception:
            # 连接失败等情况，同样只记录日志
            logger.exception("Notification store unavailable for %s", type(event).__name__)
