"""
测试公共夹具

使用内存SQLite（StaticPool保证所有会话共用同一连接），
每个测试独立的事件总线和房间管理器。
"""
import os

# 必须在导入 app 之前设置
os.environ.setdefault("DATABASE_URL_OVERRIDE", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("DEBUG", "false")

import httpx
import pytest
from sqlalchemy.pool import StaticPool

from app.db.database import build_engine, build_session_factory, get_db, get_session_factory, init_models
from app.events.bus import EventBus, get_event_bus
from app.events.subscribers import register_event_handlers
from app.models.user import User
from app.realtime.manager import RoomManager, get_room_manager
from app.services.auth_service import AuthService
from app.utils.auth import create_user_token
from main import app

TEST_PASSWORD = "secret123"


@pytest.fixture
async def engine():
    engine = build_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def rooms():
    return RoomManager()


@pytest.fixture
def bus(rooms, session_factory):
    bus = EventBus()
    register_event_handlers(bus, rooms, session_factory)
    return bus


@pytest.fixture
async def client(session_factory, bus, rooms):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_event_bus] = lambda: bus
    app.dependency_overrides[get_room_manager] = lambda: rooms

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    async def factory(role: str = "Reader", username: str = None) -> User:
        counter["n"] += 1
        name = username or f"{role.lower()}{counter['n']}"
        user = User(
            username=name,
            email=f"{name}@example.com",
            password_hash=AuthService.hash_password(TEST_PASSWORD),
            role=role,
        )
        db.add(user)
        await db.commit()
        await db.refresh(user)
        return user

    return factory


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_user_token(user)}"}


def drain(session) -> list:
    """取出连接队列中已有的全部消息"""
    frames = []
    while not session.queue.empty():
        frames.append(session.queue.get_nowait())
    return frames


@pytest.fixture
def make_article(client):
    async def factory(author: User, title: str = "Hello World", content: str = "Some article content", tags=None):
        response = await client.post(
            "/api/articles",
            json={"title": title, "content": content, "tags": tags or []},
            headers=auth_headers(author),
        )
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return factory
