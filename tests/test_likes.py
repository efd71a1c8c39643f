"""
测试点赞切换与点赞通知
"""
import pytest
from sqlalchemy import select

from app.core.exceptions import ConflictError
from app.core.permissions import Actor
from app.core.roles import Role
from app.models.like import Like
from app.models.notification import Notification
from app.services.like_service import LikeService
from conftest import auth_headers


async def count_rows(session_factory, model, *conditions):
    async with session_factory() as session:
        result = await session.execute(select(model).where(*conditions))
        return len(result.scalars().all())


async def test_toggle_twice_restores_state(client, session_factory, make_user, make_article):
    author = await make_user("Writer")
    liker = await make_user("Reader")
    article = await make_article(author, title="Likeable")

    response = await client.post("/api/likes", json={"articleId": article["id"]}, headers=auth_headers(liker))
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["liked"] is True
    assert data["like"]["user"]["id"] == liker.id

    response = await client.get("/api/notifications/unread-count", headers=auth_headers(author))
    assert response.json()["data"]["count"] == 1

    response = await client.post("/api/likes", json={"articleId": article["id"]}, headers=auth_headers(liker))
    assert response.status_code == 200
    assert response.json()["data"]["liked"] is False

    assert await count_rows(session_factory, Like, Like.article_id == article["id"]) == 0
    # 取消点赞不删除也不新增通知
    notifications = await count_rows(session_factory, Notification, Notification.recipient_id == author.id)
    assert notifications == 1

    response = await client.get(f"/api/likes/article/{article['id']}/check", headers=auth_headers(liker))
    assert response.json()["data"] == {"liked": False, "likeId": None}


async def test_like_notification_content(client, session_factory, make_user, make_article):
    author = await make_user("Writer")
    liker = await make_user("Reader")
    article = await make_article(author, title="Likeable")

    await client.post("/api/likes", json={"articleId": article["id"]}, headers=auth_headers(liker))

    async with session_factory() as session:
        result = await session.execute(select(Notification).where(Notification.recipient_id == author.id))
        notification = result.scalar_one()
    assert notification.type == "like"
    assert notification.title == "New Like"
    assert notification.message == f"{liker.username} liked your article: Likeable"
    assert notification.comment_id is None


async def test_liking_own_article_does_not_notify(client, session_factory, make_user, make_article):
    author = await make_user("Writer")
    article = await make_article(author)

    response = await client.post("/api/likes", json={"articleId": article["id"]}, headers=auth_headers(author))
    assert response.status_code == 201
    assert await count_rows(session_factory, Notification, Notification.recipient_id == author.id) == 0


async def test_like_missing_article(client, make_user):
    user = await make_user()
    response = await client.post("/api/likes", json={"articleId": 777}, headers=auth_headers(user))
    assert response.status_code == 404
    assert response.json()["message"] == "Article not found"


async def test_duplicate_like_race_is_conflict(session_factory, bus, make_user, make_article):
    author = await make_user("Writer")
    liker = await make_user("Reader")
    article = await make_article(author)
    actor = Actor(id=liker.id, role=Role.READER, username=liker.username)

    async with session_factory() as session:
        session.add(Like(user_id=liker.id, article_id=article["id"]))
        await session.commit()

    async with session_factory() as session:
        service = LikeService(session, bus)
        # 模拟另一个请求在检查之后、写入之前已经点赞
        async def not_found(user_id, article_id):
            return None
        service._find = not_found

        with pytest.raises(ConflictError) as exc_info:
            await service.toggle(actor, article["id"])

    assert exc_info.value.status_code == 400
    assert exc_info.value.message == "You have already liked this article"
    assert await count_rows(session_factory, Like, Like.article_id == article["id"]) == 1


async def test_like_listings(client, make_user, make_article):
    author = await make_user("Writer")
    first = await make_user("Reader")
    second = await make_user("Reader")
    article = await make_article(author, title="Popular")

    for user in (first, second):
        await client.post("/api/likes", json={"articleId": article["id"]}, headers=auth_headers(user))

    response = await client.get(f"/api/likes/article/{article['id']}")
    data = response.json()["data"]
    assert data["count"] == 2
    assert {u["id"] for u in data["likedBy"]} == {first.id, second.id}

    response = await client.get(f"/api/likes/user/{first.id}")
    data = response.json()["data"]
    assert data["count"] == 1
    assert data["articles"][0]["title"] == "Popular"
    assert data["articles"][0]["author"]["id"] == author.id

    response = await client.get(f"/api/likes/article/{article['id']}/check", headers=auth_headers(second))
    assert response.json()["data"]["liked"] is True
