"""
测试房间管理与WebSocket协议
"""
from contextlib import asynccontextmanager

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from starlette.websockets import WebSocketDisconnect

from app.api import realtime
from app.db.database import build_engine, build_session_factory, get_session_factory, init_models
from app.models.user import User
from app.realtime.manager import CLOSE_FRAME, RoomManager, get_room_manager
from app.realtime.protocol import ProtocolError, handle_client_message, parse_frame
from app.utils.auth import REFRESH_TOKEN_TYPE, create_access_token
from conftest import drain


def token_for(user_id: int) -> str:
    return create_access_token({"sub": str(user_id), "role": "Reader"})


def test_emit_only_reaches_current_members():
    rooms = RoomManager()
    early = rooms.connect(1)
    rooms.join_article(early.connection_id, 7)

    assert rooms.emit_to_article(7, "newComment", {"id": 1}) == 1
    late = rooms.connect(2)
    rooms.join_article(late.connection_id, 7)

    assert drain(early) == [{"type": "newComment", "data": {"id": 1}}]
    assert drain(late) == []
    assert rooms.emit_to_article(8, "newComment", {}) == 0


def test_user_room_covers_every_connection():
    rooms = RoomManager()
    phone = rooms.connect(5)
    laptop = rooms.connect(5)

    assert rooms.emit_to_user(5, "likeNotification", {"message": "hi"}) == 2
    assert len(drain(phone)) == len(drain(laptop)) == 1

    rooms.disconnect(phone.connection_id)
    assert rooms.is_user_online(5)
    rooms.disconnect(laptop.connection_id)
    assert not rooms.is_user_online(5)
    assert rooms.emit_to_user(5, "likeNotification", {}) == 0


def test_disconnect_clears_memberships():
    rooms = RoomManager()
    session = rooms.connect(3)
    rooms.join_article(session.connection_id, 1)
    rooms.join_article(session.connection_id, 2)

    assert rooms.disconnect(session.connection_id) == [1, 2]
    assert rooms.room_members(1) == set()
    assert rooms.connection_count == 0
    assert rooms.disconnect(session.connection_id) == []


def test_per_connection_order():
    rooms = RoomManager()
    session = rooms.connect(1)
    rooms.join_article(session.connection_id, 1)
    for i in range(5):
        rooms.emit_to_article(1, "newComment", {"id": i})
    assert [f["data"]["id"] for f in drain(session)] == [0, 1, 2, 3, 4]


def test_protocol_join_notifies_others_and_acknowledges():
    rooms = RoomManager()
    first = rooms.connect(1)
    second = rooms.connect(2)

    handle_client_message(rooms, first, "joinArticle", 9)
    handle_client_message(rooms, second, "joinArticle", "9")
    handle_client_message(rooms, second, "typing", {"articleId": 9, "username": "bob"})
    handle_client_message(rooms, second, "leaveArticle", 9)

    assert drain(first) == [
        {"type": "joinedArticle", "data": {"articleId": 9}},
        {"type": "userJoined", "data": {"userId": 2, "articleId": 9}},
        {"type": "userTyping", "data": {"username": "bob", "articleId": 9}},
        {"type": "userLeft", "data": {"userId": 2, "articleId": 9}},
    ]
    assert [f["type"] for f in drain(second)] == ["joinedArticle", "leftArticle"]


def test_protocol_rejects_bad_frames():
    rooms = RoomManager()
    session = rooms.connect(1)
    with pytest.raises(ProtocolError):
        parse_frame("not json")
    with pytest.raises(ProtocolError):
        parse_frame('["joinArticle", 1]')
    with pytest.raises(ProtocolError):
        handle_client_message(rooms, session, "dance", None)
    with pytest.raises(ProtocolError):
        handle_client_message(rooms, session, "joinArticle", {"articleId": "abc"})


def test_slow_connection_is_cut_off():
    rooms = RoomManager(queue_size=3)
    stalled = rooms.connect(1)
    healthy = rooms.connect(2)
    rooms.join_article(stalled.connection_id, 5)
    rooms.join_article(healthy.connection_id, 5)

    delivered = [rooms.emit_to_article(5, "newComment", {"id": i}) for i in range(3)]
    healthy_frames = drain(healthy)
    assert delivered == [2, 2, 2]

    # 第四条放不下：积压被丢弃，只剩关闭信号，之后不再投递
    assert rooms.emit_to_article(5, "newComment", {"id": 3}) == 1
    assert rooms.emit_to_article(5, "newComment", {"id": 4}) == 1
    assert drain(stalled) == [CLOSE_FRAME]
    assert len(healthy_frames) + len(drain(healthy)) == 5


@pytest.fixture
def socket_client():
    # 只挂载实时路由，避免启动完整应用的生命周期；
    # 以上下文方式使用TestClient，数据库、所有连接共用同一个事件循环
    rooms = RoomManager()
    user_ids = []

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        engine = build_engine(
            "sqlite+aiosqlite:///:memory:",
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
        await init_models(engine)
        factory = build_session_factory(engine)
        async with factory() as db:
            users = [
                User(username=name, email=f"{name}@example.com", password_hash="-", role="Reader")
                for name in ("alice", "bob")
            ]
            db.add_all(users)
            await db.commit()
            user_ids.extend(user.id for user in users)
        socket_app.dependency_overrides[get_session_factory] = lambda: factory
        yield
        await engine.dispose()

    socket_app = FastAPI(lifespan=lifespan)
    socket_app.include_router(realtime.router)
    socket_app.dependency_overrides[get_room_manager] = lambda: rooms
    with TestClient(socket_app) as client:
        yield client, rooms, user_ids


def test_handshake_rejects_missing_or_invalid_token(socket_client):
    client, rooms, _ = socket_client

    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect("/ws?token=garbage"):
            pass
    assert exc_info.value.code == 1008

    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect("/ws"):
            pass
    assert exc_info.value.code == 1008
    assert rooms.connection_count == 0


def test_handshake_rejects_deleted_user(socket_client):
    client, rooms, user_ids = socket_client
    missing_id = max(user_ids) + 1000

    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect(f"/ws?token={token_for(missing_id)}"):
            pass
    assert exc_info.value.code == 1008
    assert rooms.connection_count == 0


def test_handshake_rejects_refresh_token(socket_client):
    client, rooms, user_ids = socket_client
    refresh_token = create_access_token({"sub": str(user_ids[0])}, token_type=REFRESH_TOKEN_TYPE)

    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect(f"/ws?token={refresh_token}"):
            pass
    assert exc_info.value.code == 1008


def test_socket_join_typing_and_errors(socket_client):
    client, rooms, (alice_id, bob_id) = socket_client

    with client.websocket_connect(f"/ws?token={token_for(alice_id)}") as alice:
        alice.send_json({"type": "joinArticle", "data": 42})
        assert alice.receive_json() == {"type": "joinedArticle", "data": {"articleId": 42}}

        with client.websocket_connect(f"/ws?token={token_for(bob_id)}") as bob:
            bob.send_json({"type": "joinArticle", "data": 42})
            assert bob.receive_json() == {"type": "joinedArticle", "data": {"articleId": 42}}
            assert alice.receive_json() == {"type": "userJoined", "data": {"userId": bob_id, "articleId": 42}}

            bob.send_json({"type": "typing", "data": {"articleId": 42, "username": "bob"}})
            assert alice.receive_json() == {"type": "userTyping", "data": {"username": "bob", "articleId": 42}}

            bob.send_text("{broken")
            error = bob.receive_json()
            assert error["type"] == "error"
            assert "Malformed" in error["data"]["message"]

        # bob 断开后房间内其他成员收到 userLeft
        assert alice.receive_json() == {"type": "userLeft", "data": {"userId": bob_id, "articleId": 42}}


def test_binary_frame_gets_error_and_connection_stays_open(socket_client):
    client, rooms, (alice_id, _) = socket_client

    with client.websocket_connect(f"/ws?token={token_for(alice_id)}") as alice:
        alice.send_bytes(b'{"type":"joinArticle","data":1}')
        assert alice.receive_json() == {
            "type": "error",
            "data": {"message": "Malformed message: expected JSON"},
        }

        # 连接仍然可用
        alice.send_json({"type": "joinArticle", "data": 1})
        assert alice.receive_json() == {"type": "joinedArticle", "data": {"articleId": 1}}
        assert rooms.room_members(1)
