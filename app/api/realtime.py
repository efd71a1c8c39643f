"""
实时通信WebSocket接口

连接地址：/ws?token=<jwt>，握手阶段校验token并确认用户仍然存在，
失败以1008关闭，不会进入已连接状态。
"""
import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.core.exceptions import AuthenticationError
from app.db.database import get_session_factory
from app.realtime.manager import CLOSE_FRAME, RoomManager, SocketSession, get_room_manager
from app.realtime.protocol import ProtocolError, parse_frame, handle_client_message, announce_departure
from app.utils.auth import load_actor, user_id_from_token

logger = logging.getLogger(__name__)

router = APIRouter(tags=["实时通信"])


async def _pump(websocket: WebSocket, session: SocketSession) -> None:
    """按入队顺序把消息写到连接上，收到关闭信号时断开积压过多的连接"""
    while True:
        frame = await session.queue.get()
        if frame is CLOSE_FRAME:
            await websocket.close(code=status.WS_1013_TRY_AGAIN_LATER, reason="TooManyPendingMessages")
            return
        await websocket.send_json(frame)


async def _authenticate(token: Optional[str], session_factory: async_sessionmaker) -> int:
    user_id = user_id_from_token(token)
    async with session_factory() as db:
        actor = await load_actor(db, user_id)
    return actor.id


@router.websocket("/ws")
async def socket_endpoint(
    websocket: WebSocket,
    token: Optional[str] = Query(None),
    rooms: RoomManager = Depends(get_room_manager),
    session_factory: async_sessionmaker = Depends(get_session_factory)
):
    try:
        user_id = await _authenticate(token, session_factory)
    except AuthenticationError as e:
        logger.info("Socket handshake rejected: %s", e.message)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="AuthenticationFailed")
        return

    await websocket.accept()
    session = rooms.connect(user_id)
    sender = asyncio.create_task(_pump(websocket, session))

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            try:
                raw = message.get("text")
                if raw is None:
                    # 二进制帧
                    raise ProtocolError("Malformed message: expected JSON")
                event, data = parse_frame(raw)
                handle_client_message(rooms, session, event, data)
            except ProtocolError as e:
                rooms.emit_to_connection(session.connection_id, "error", {"message": str(e)})
    except WebSocketDisconnect:
        pass
    finally:
        announce_departure(rooms, session)
        sender.cancel()
        try:
            await sender
        except asyncio.CancelledError:
            pass
        except Exception as e:
            # 连接已关闭时发送失败
            logger.debug("Socket sender stopped for user %s: %r", user_id, e)
