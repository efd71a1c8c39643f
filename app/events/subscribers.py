"""
事件订阅装配
"""
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.events.bus import EventBus
from app.events.domain_events import NewComment, NewReply, NewLike, Unlike, CommentDeleted
from app.realtime.broadcaster import BroadcastEventHandler
from app.realtime.manager import RoomManager
from app.services.notification_service import NotificationEventHandler

NOTIFYING_EVENTS = (NewComment, NewReply, NewLike)
BROADCAST_EVENTS = (NewComment, NewReply, NewLike, Unlike, CommentDeleted)


def register_event_handlers(
    bus: EventBus,
    rooms: RoomManager,
    session_factory: async_sessionmaker
) -> None:
    """
    把通知引擎和实时广播挂到事件总线上

    两者是同一事件的独立消费者：通知写库失败不影响广播，反之亦然
    """
    notifications = NotificationEventHandler(session_factory)
    broadcaster = BroadcastEventHandler(rooms)

    for event_type in NOTIFYING_EVENTS:
        bus.subscribe(event_type, notifications.handle)
    for event_type in BROADCAST_EVENTS:
        bus.subscribe(event_type, broadcaster.handle)
