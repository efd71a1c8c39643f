"""
实时广播

订阅领域事件，把事件转换为 Socket 消息发送到文章房间或用户房间。
事件名是前端契约的一部分，不要修改。
"""
import logging

from app.events.domain_events import DomainEvent, NewComment, NewLike, Unlike, CommentDeleted
from app.models.notification import NotificationType
from app.realtime.manager import RoomManager
from app.services.notification_service import draft_for_event

logger = logging.getLogger(__name__)

# 通知类型 -> 用户房间事件名
NOTIFICATION_EVENTS = {
    NotificationType.COMMENT: "commentNotification",
    NotificationType.REPLY: "replyNotification",
    NotificationType.LIKE: "likeNotification",
}


class BroadcastEventHandler:
    """领域事件 -> Socket 事件"""

    def __init__(self, rooms: RoomManager):
        self.rooms = rooms

    async def handle(self, event: DomainEvent) -> None:
        # NewReply 是 NewComment 的子类，房间内同样收到 newComment
        if isinstance(event, NewComment):
            self.rooms.emit_to_article(event.article_id, "newComment", event.comment)
            self._notify(event, "comment", event.comment)
        elif isinstance(event, NewLike):
            self.rooms.emit_to_article(event.article_id, "likeArticle", {
                "articleId": event.article_id,
                "userId": event.actor_id,
                "likeId": event.like_id,
                "user": event.user,
            })
            self._notify(event, "like", event.like)
        elif isinstance(event, Unlike):
            self.rooms.emit_to_article(event.article_id, "unlikeArticle", {
                "articleId": event.article_id,
                "userId": event.actor_id,
                "likeId": event.like_id,
            })
        elif isinstance(event, CommentDeleted):
            self.rooms.emit_to_article(event.article_id, "commentDeleted", {
                "commentId": event.comment_id,
                "articleId": event.article_id,
            })

    def _notify(self, event: DomainEvent, entity_key: str, entity: dict) -> None:
        """接收者与持久化通知一致，由 draft_for_event 统一计算"""
        draft = draft_for_event(event)
        if draft is None:
            return
        delivered = self.rooms.emit_to_user(draft.recipient_id, NOTIFICATION_EVENTS[draft.type], {
            "message": draft.message,
            entity_key: entity,
            "article": {"id": draft.article_id, "title": draft.article_title},
        })
        logger.debug(
            "Emitted %s to user_%s (%d connections)",
            NOTIFICATION_EVENTS[draft.type], draft.recipient_id, delivered
        )
