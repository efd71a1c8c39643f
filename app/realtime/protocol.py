"""
客户端Socket消息处理

帧格式双向一致：{"type": 事件名, "data": 负载}
"""
import json
import logging
from typing import Any, Optional

from app.realtime.manager import RoomManager, SocketSession

logger = logging.getLogger(__name__)


class ProtocolError(Exception):
    """客户端发送了无法处理的帧"""


def parse_frame(raw: str) -> tuple:
    try:
        frame = json.loads(raw)
    except ValueError:
        raise ProtocolError("Malformed message: expected JSON")
    if not isinstance(frame, dict) or not isinstance(frame.get("type"), str):
        raise ProtocolError("Malformed message: expected {type, data}")
    return frame["type"], frame.get("data")


def _article_id(value: Any) -> int:
    # joinArticle/leaveArticle 直接传ID，typing 传 {articleId, username}
    if isinstance(value, dict):
        value = value.get("articleId")
    if isinstance(value, bool):
        raise ProtocolError("Invalid articleId")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ProtocolError("Invalid articleId")


def _username(value: Any) -> Optional[str]:
    if isinstance(value, dict):
        return value.get("username")
    return None


def handle_client_message(rooms: RoomManager, session: SocketSession, event: str, data: Any) -> None:
    """
    处理一条客户端消息

    请求方收到 joinedArticle / leftArticle 确认，房间内其他连接收到 userJoined 等事件

    Raises:
        ProtocolError: 未知事件或参数不合法
    """
    cid = session.connection_id

    if event == "joinArticle":
        article_id = _article_id(data)
        if rooms.join_article(cid, article_id):
            logger.info("User %s joined article room: %s", session.user_id, article_id)
            rooms.emit_to_article(article_id, "userJoined", {
                "userId": session.user_id,
                "articleId": article_id,
            }, exclude=cid)
        rooms.emit_to_connection(cid, "joinedArticle", {"articleId": article_id})

    elif event == "leaveArticle":
        article_id = _article_id(data)
        if rooms.leave_article(cid, article_id):
            logger.info("User %s left article room: %s", session.user_id, article_id)
            rooms.emit_to_article(article_id, "userLeft", {
                "userId": session.user_id,
                "articleId": article_id,
            }, exclude=cid)
        rooms.emit_to_connection(cid, "leftArticle", {"articleId": article_id})

    elif event in ("typing", "stopTyping"):
        article_id = _article_id(data)
        rooms.emit_to_article(
            article_id,
            "userTyping" if event == "typing" else "userStoppedTyping",
            {"username": _username(data), "articleId": article_id},
            exclude=cid,
        )

    else:
        raise ProtocolError(f"Unknown event: {event}")


def announce_departure(rooms: RoomManager, session: SocketSession) -> None:
    """断开连接：清理房间成员关系并通知各文章房间"""
    for article_id in rooms.disconnect(session.connection_id):
        rooms.emit_to_article(article_id, "userLeft", {
            "userId": session.user_id,
            "articleId": article_id,
        })
