"""
测试评论、回复、评论树与级联删除
"""
from sqlalchemy import select

from app.models.comment import Comment
from app.models.notification import Notification
from conftest import auth_headers


async def post_comment(client, user, article_id, content="A comment", parent_id=None):
    payload = {"content": content, "articleId": article_id}
    if parent_id is not None:
        payload["parentCommentId"] = parent_id
    return await client.post("/api/comments", json=payload, headers=auth_headers(user))


async def notifications_for(session_factory, user_id):
    async with session_factory() as session:
        result = await session.execute(
            select(Notification).where(Notification.recipient_id == user_id).order_by(Notification.id)
        )
        return list(result.scalars().all())


async def test_comment_then_reply_notifies_once_each(client, session_factory, make_user, make_article):
    writer = await make_user("Writer")
    reader = await make_user("Reader")
    second_reader = await make_user("Reader")
    article = await make_article(writer, title="Threaded")

    response = await post_comment(client, reader, article["id"], "Great post")
    assert response.status_code == 201
    c1 = response.json()["data"]
    assert c1["author"]["id"] == reader.id
    assert c1["article"] == {"id": article["id"], "title": "Threaded", "author": writer.id}

    notes = await notifications_for(session_factory, writer.id)
    assert [(n.type, n.comment_id) for n in notes] == [("comment", c1["id"])]
    assert notes[0].message == f"{reader.username} commented on your article: Threaded"

    response = await post_comment(client, second_reader, article["id"], "I agree", parent_id=c1["id"])
    assert response.status_code == 201
    reply = response.json()["data"]
    assert reply["parentComment"] == c1["id"]

    reply_notes = await notifications_for(session_factory, reader.id)
    assert [(n.type, n.comment_id) for n in reply_notes] == [("reply", reply["id"])]
    assert reply_notes[0].title == "New Reply"

    # 回复不再通知文章作者
    assert len(await notifications_for(session_factory, writer.id)) == 1


async def test_self_comment_and_self_reply_do_not_notify(client, session_factory, make_user, make_article):
    writer = await make_user("Writer")
    article = await make_article(writer)

    response = await post_comment(client, writer, article["id"], "My own note")
    own = response.json()["data"]
    await post_comment(client, writer, article["id"], "Replying to myself", parent_id=own["id"])

    assert await notifications_for(session_factory, writer.id) == []


async def test_comment_on_missing_article(client, make_user):
    reader = await make_user("Reader")
    response = await post_comment(client, reader, 4242, "Hello?")
    assert response.status_code == 404
    assert response.json()["message"] == "Article not found"


async def test_reply_parent_from_other_article(client, make_user, make_article):
    writer = await make_user("Writer")
    reader = await make_user("Reader")
    first = await make_article(writer, title="First article")
    second = await make_article(writer, title="Second article")

    parent = (await post_comment(client, reader, first["id"])).json()["data"]

    response = await post_comment(client, reader, second["id"], "Wrong place", parent_id=parent["id"])
    assert response.status_code == 400
    assert "does not belong to this article" in response.json()["message"]

    response = await post_comment(client, reader, second["id"], "No parent", parent_id=9999)
    assert response.status_code == 404
    assert response.json()["message"] == "Parent comment not found"


async def test_comment_content_is_trimmed_and_bounded(client, make_user, make_article):
    writer = await make_user("Writer")
    article = await make_article(writer)

    response = await post_comment(client, writer, article["id"], "   ")
    assert response.status_code == 400

    response = await post_comment(client, writer, article["id"], "x" * 1001)
    assert response.status_code == 400

    response = await post_comment(client, writer, article["id"], "  padded  ")
    assert response.json()["data"]["content"] == "padded"


async def test_comment_tree_order(client, make_user, make_article):
    writer = await make_user("Writer")
    reader = await make_user("Reader")
    article = await make_article(writer)

    older = (await post_comment(client, reader, article["id"], "older")).json()["data"]
    newer = (await post_comment(client, reader, article["id"], "newer")).json()["data"]
    r1 = (await post_comment(client, writer, article["id"], "reply 1", older["id"])).json()["data"]
    r2 = (await post_comment(client, writer, article["id"], "reply 2", older["id"])).json()["data"]
    nested = (await post_comment(client, reader, article["id"], "nested", r1["id"])).json()["data"]

    response = await client.get(f"/api/comments/article/{article['id']}")
    assert response.status_code == 200
    data = response.json()["data"]

    assert data["count"] == 2
    assert [c["id"] for c in data["comments"]] == [newer["id"], older["id"]]
    replies = data["comments"][1]["replies"]
    assert [r["id"] for r in replies] == [r1["id"], r2["id"]]
    assert [r["id"] for r in replies[0]["replies"]] == [nested["id"]]


async def test_deep_thread_is_fetched_and_deleted(client, session_factory, make_user, make_article):
    writer = await make_user("Writer")
    article = await make_article(writer)

    root = (await post_comment(client, writer, article["id"], "root")).json()["data"]
    parent_id = root["id"]
    for depth in range(60):
        parent_id = (await post_comment(client, writer, article["id"], f"depth {depth}", parent_id)).json()["data"]["id"]

    response = await client.get(f"/api/comments/article/{article['id']}")
    node = response.json()["data"]["comments"][0]
    depth = 0
    while node["replies"]:
        node = node["replies"][0]
        depth += 1
    assert depth == 60

    response = await client.delete(f"/api/comments/{root['id']}", headers=auth_headers(writer))
    assert response.status_code == 200
    assert response.json()["data"]["deletedCount"] == 61

    async with session_factory() as session:
        result = await session.execute(select(Comment).where(Comment.article_id == article["id"]))
        assert result.scalars().all() == []


async def test_cascade_delete_keeps_siblings(client, session_factory, make_user, make_article):
    writer = await make_user("Writer")
    reader = await make_user("Reader")
    article = await make_article(writer)

    keep = (await post_comment(client, reader, article["id"], "keep me")).json()["data"]
    target = (await post_comment(client, reader, article["id"], "delete me")).json()["data"]
    child = (await post_comment(client, writer, article["id"], "child", target["id"])).json()["data"]
    await post_comment(client, reader, article["id"], "grandchild", child["id"])
    kept_reply = (await post_comment(client, writer, article["id"], "kept reply", keep["id"])).json()["data"]

    response = await client.delete(f"/api/comments/{target['id']}", headers=auth_headers(reader))
    assert response.status_code == 200
    assert response.json()["data"]["deletedCount"] == 3

    async with session_factory() as session:
        remaining = await session.execute(select(Comment.id).where(Comment.article_id == article["id"]))
        assert set(remaining.scalars().all()) == {keep["id"], kept_reply["id"]}
        orphans = await session.execute(
            select(Comment.id).where(Comment.parent_comment_id.in_([target["id"], child["id"]]))
        )
        assert orphans.scalars().all() == []


async def test_delete_comment_permissions(client, make_user, make_article):
    writer = await make_user("Writer")
    author = await make_user("Reader")
    editor = await make_user("Editor")
    admin = await make_user("Admin")
    article = await make_article(writer)

    comment = (await post_comment(client, author, article["id"])).json()["data"]
    path = f"/api/comments/{comment['id']}"

    # 文章作者和Editor都不能删除别人的评论
    response = await client.delete(path, headers=auth_headers(writer))
    assert response.status_code == 403
    response = await client.delete(path, headers=auth_headers(editor))
    assert response.status_code == 403
    assert response.json()["details"]["yourRole"] == "Editor"

    response = await client.delete(path, headers=auth_headers(admin))
    assert response.status_code == 200

    response = await client.delete(path, headers=auth_headers(admin))
    assert response.status_code == 404
    assert response.json()["message"] == "Comment not found"
