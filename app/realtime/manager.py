"""
实时连接与房间管理

每个连接对应一个 SocketSession，持有独立的发送队列（保证单连接内按发送顺序送达）。
房间分两类：文章房间（正在查看该文章的连接）和用户房间（同一用户的所有在线连接）。
房间成员只存在于内存中，断开即清理，从不持久化。
"""
import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Set
from uuid import uuid4

from app.core.config import settings

logger = logging.getLogger(__name__)

# 发送队列中的关闭信号，发送任务收到后断开连接
CLOSE_FRAME = object()


def article_room(article_id: int) -> str:
    return f"article_{article_id}"


def user_room(user_id: int) -> str:
    return f"user_{user_id}"


@dataclass
class SocketSession:
    """一个已认证的在线连接"""
    connection_id: str
    user_id: int
    queue: asyncio.Queue = field(default_factory=asyncio.Queue)
    article_ids: Set[int] = field(default_factory=set)
    overflowed: bool = False


class RoomManager:
    """维护连接、文章房间、用户房间三者的映射"""

    def __init__(self, queue_size: Optional[int] = None) -> None:
        self.queue_size = queue_size or settings.SOCKET_QUEUE_MAX_SIZE
        self._sessions: Dict[str, SocketSession] = {}
        self._rooms: Dict[str, Set[str]] = defaultdict(set)

    def connect(self, user_id: int, connection_id: Optional[str] = None) -> SocketSession:
        """注册新连接，并隐式加入该用户的个人房间"""
        session = SocketSession(
            connection_id=connection_id or uuid4().hex,
            user_id=user_id,
            queue=asyncio.Queue(maxsize=self.queue_size),
        )
        self._sessions[session.connection_id] = session
        self._rooms[user_room(user_id)].add(session.connection_id)
        logger.info("User connected: %s (connection %s)", user_id, session.connection_id)
        return session

    def disconnect(self, connection_id: str) -> List[int]:
        """
        移除连接及其所有房间成员关系，可重复调用

        Returns:
            List[int]: 断开前所在的文章房间
        """
        session = self._sessions.pop(connection_id, None)
        if session is None:
            return []

        left = sorted(session.article_ids)
        for article_id in left:
            self._discard(article_room(article_id), connection_id)
        session.article_ids.clear()
        self._discard(user_room(session.user_id), connection_id)
        logger.info("User disconnected: %s (connection %s)", session.user_id, connection_id)
        return left

    def join_article(self, connection_id: str, article_id: int) -> bool:
        """加入文章房间，返回是否为新加入"""
        session = self._sessions.get(connection_id)
        if session is None:
            return False
        if article_id in session.article_ids:
            return False
        session.article_ids.add(article_id)
        self._rooms[article_room(article_id)].add(connection_id)
        return True

    def leave_article(self, connection_id: str, article_id: int) -> bool:
        """离开文章房间，返回之前是否在房间中"""
        session = self._sessions.get(connection_id)
        if session is None or article_id not in session.article_ids:
            return False
        session.article_ids.discard(article_id)
        self._discard(article_room(article_id), connection_id)
        return True

    def emit_to_article(
        self,
        article_id: int,
        event: str,
        data: Any,
        exclude: Optional[str] = None
    ) -> int:
        """向文章房间广播，exclude 用于跳过发起者自己的连接"""
        return self._emit(self._rooms.get(article_room(article_id), ()), event, data, exclude)

    def emit_to_user(self, user_id: int, event: str, data: Any) -> int:
        """向用户的所有在线连接发送；用户不在线时直接丢弃（持久化通知负责补偿）"""
        return self._emit(self._rooms.get(user_room(user_id), ()), event, data)

    def emit_to_connection(self, connection_id: str, event: str, data: Any) -> int:
        """只发给单个连接（确认消息、错误消息）"""
        return self._emit((connection_id,), event, data)

    def room_members(self, article_id: int) -> Set[str]:
        return set(self._rooms.get(article_room(article_id), ()))

    def is_user_online(self, user_id: int) -> bool:
        return bool(self._rooms.get(user_room(user_id)))

    @property
    def connection_count(self) -> int:
        return len(self._sessions)

    def _emit(
        self,
        connection_ids: Iterable[str],
        event: str,
        data: Any,
        exclude: Optional[str] = None
    ) -> int:
        # 只投递给此刻在房间中的连接，之后加入的连接不会补收
        frame = {"type": event, "data": data}
        delivered = 0
        for connection_id in list(connection_ids):
            if connection_id == exclude:
                continue
            session = self._sessions.get(connection_id)
            if session is None:
                continue
            if self._deliver(session, frame):
                delivered += 1
        return delivered

    def _deliver(self, session: SocketSession, frame: dict) -> bool:
        if session.overflowed:
            return False
        try:
            session.queue.put_nowait(frame)
            return True
        except asyncio.QueueFull:
            pass

        # 客户端长时间不读取：丢弃积压，只留关闭信号，之后不再投递
        logger.warning(
            "Socket queue full for user %s (connection %s), closing",
            session.user_id, session.connection_id
        )
        session.overflowed = True
        while not session.queue.empty():
            session.queue.get_nowait()
        session.queue.put_nowait(CLOSE_FRAME)
        return False

    def _discard(self, room: str, connection_id: str) -> None:
        members = self._rooms.get(room)
        if not members:
            return
        members.discard(connection_id)
        if not members:
            self._rooms.pop(room, None)


room_manager = RoomManager()


def get_room_manager() -> RoomManager:
    """房间管理器依赖"""
    return room_manager
